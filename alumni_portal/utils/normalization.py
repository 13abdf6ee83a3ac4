"""
Normalization helpers for user-entered profile data.

Different casings and spellings of the same company or city would otherwise
show up as separate entries in the directory filters and suggestions.
"""
import re
from typing import Any, Dict, Optional


CITY_ALIASES = {
    "Bengaluru": "Bangalore",
    "Banguluru": "Bangalore",
    "Bengalooru": "Bangalore",
    "Mumbay": "Mumbai",
    "Bombay": "Mumbai",
    "Calcutta": "Kolkata",
    "Madras": "Chennai",
    "Poona": "Pune",
}

COUNTRY_ALIASES = {
    "Usa": "United States",
    "Us": "United States",
    "United States Of America": "United States",
    "Uk": "United Kingdom",
    "Great Britain": "United Kingdom",
    "Uae": "United Arab Emirates",
}

_ACRONYM_RE = re.compile(r"^[A-Z]+$")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def normalize_text(text: Any) -> str:
    """Trim, collapse whitespace and capitalize each word ("NEW delhi" -> "New Delhi")"""
    if not text or not isinstance(text, str):
        return ""
    return " ".join(word[:1].upper() + word[1:].lower() for word in text.split())


def normalize_company_name(company: Optional[str]) -> str:
    """
    Normalize a company name.

    Short all-caps acronyms (IBM, TCS) are kept as typed; everything else is
    title-cased like normal text.
    """
    if not company:
        return ""
    trimmed = company.strip()
    if len(trimmed) <= 6 and _ACRONYM_RE.match(trimmed):
        return trimmed
    return normalize_text(trimmed)


def normalize_city_name(city: Optional[str]) -> str:
    if not city:
        return ""
    normalized = normalize_text(city)
    return CITY_ALIASES.get(normalized, normalized)


def normalize_state_name(state: Optional[str]) -> str:
    if not state:
        return ""
    return normalize_text(state)


def normalize_country_name(country: Optional[str]) -> str:
    if not country:
        return ""
    normalized = normalize_text(country)
    return COUNTRY_ALIASES.get(normalized, normalized)


def normalize_industry(industry: Optional[str]) -> str:
    if not industry:
        return ""
    return normalize_text(industry)


def parse_location_string(location: Any) -> Dict[str, str]:
    """
    Split "City, State, Country" into its parts.

    Two parts are read as city and country, one part as city only.
    """
    empty = {"city": "", "state": "", "country": ""}
    if not location or not isinstance(location, str):
        return empty

    parts = [part.strip() for part in location.split(",") if part.strip()]

    if len(parts) == 3:
        return {
            "city": normalize_city_name(parts[0]),
            "state": normalize_state_name(parts[1]),
            "country": normalize_country_name(parts[2]),
        }
    if len(parts) == 2:
        return {
            "city": normalize_city_name(parts[0]),
            "state": "",
            "country": normalize_country_name(parts[1]),
        }
    if len(parts) == 1:
        return {"city": normalize_city_name(parts[0]), "state": "", "country": ""}
    return empty


def format_location_string(city: Optional[str], state: Optional[str], country: Optional[str]) -> str:
    parts = []
    if city:
        parts.append(normalize_city_name(city))
    if state:
        parts.append(normalize_state_name(state))
    if country:
        parts.append(normalize_country_name(country))
    return ", ".join(parts)


def fuzzy_match(first: Optional[str], second: Optional[str]) -> bool:
    """True when both strings are equal ignoring case and punctuation"""
    if not first or not second:
        return False
    return _NON_ALNUM_RE.sub("", first.lower()) == _NON_ALNUM_RE.sub("", second.lower())


_PROFILE_NORMALIZERS = {
    "current_company": normalize_company_name,
    "current_city": normalize_city_name,
    "current_state": normalize_state_name,
    "current_country": normalize_country_name,
    "hometown_city": normalize_city_name,
    "hometown_state": normalize_state_name,
    "higher_study_country": normalize_country_name,
    "industry": normalize_industry,
}


def normalize_profile_data(profile_data: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of profile_data with company, location and industry values normalized"""
    normalized = dict(profile_data)
    for key, normalizer in _PROFILE_NORMALIZERS.items():
        if normalized.get(key):
            normalized[key] = normalizer(normalized[key])
    return normalized
