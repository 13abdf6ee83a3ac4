"""
Unit Tests for profile data normalization
"""
from alumni_portal.utils.normalization import (
    normalize_text,
    normalize_company_name,
    normalize_city_name,
    normalize_country_name,
    parse_location_string,
    format_location_string,
    fuzzy_match,
    normalize_profile_data,
)


class TestNormalizeText:

    def test_title_cases_and_collapses_whitespace(self):
        assert normalize_text('  NEW   delhi ') == 'New Delhi'

    def test_empty_and_non_string(self):
        assert normalize_text(None) == ''
        assert normalize_text('') == ''
        assert normalize_text(42) == ''


class TestCompanyNames:

    def test_short_acronyms_kept(self):
        assert normalize_company_name('IBM') == 'IBM'
        assert normalize_company_name(' TCS ') == 'TCS'

    def test_long_names_title_cased(self):
        assert normalize_company_name('tata consultancy services') == 'Tata Consultancy Services'
        assert normalize_company_name('ACCENTURE') == 'Accenture'

    def test_empty(self):
        assert normalize_company_name(None) == ''


class TestLocations:

    def test_city_aliases(self):
        assert normalize_city_name('bengaluru') == 'Bangalore'
        assert normalize_city_name('BOMBAY') == 'Mumbai'
        assert normalize_city_name('raipur') == 'Raipur'

    def test_country_aliases(self):
        assert normalize_country_name('usa') == 'United States'
        assert normalize_country_name('uk') == 'United Kingdom'
        assert normalize_country_name('india') == 'India'

    def test_parse_three_parts(self):
        assert parse_location_string('bengaluru, karnataka, india') == {
            'city': 'Bangalore', 'state': 'Karnataka', 'country': 'India',
        }

    def test_parse_two_parts_is_city_and_country(self):
        assert parse_location_string('Seattle, USA') == {
            'city': 'Seattle', 'state': '', 'country': 'United States',
        }

    def test_parse_single_part_and_empty(self):
        assert parse_location_string('pune')['city'] == 'Pune'
        assert parse_location_string('') == {'city': '', 'state': '', 'country': ''}
        assert parse_location_string(None) == {'city': '', 'state': '', 'country': ''}

    def test_format_location(self):
        assert format_location_string('madras', None, 'india') == 'Chennai, India'


class TestFuzzyMatch:

    def test_ignores_case_and_punctuation(self):
        assert fuzzy_match('Amazon.com', 'amazon com') is True
        assert fuzzy_match('Google', 'Microsoft') is False

    def test_missing_values_never_match(self):
        assert fuzzy_match(None, None) is False
        assert fuzzy_match('', 'Google') is False


class TestNormalizeProfileData:

    def test_normalizes_known_fields_only(self):
        data = {
            'current_company': 'infosys limited',
            'current_city': 'bengaluru',
            'hometown_city': 'calcutta',
            'industry': 'information technology',
            'bio': 'keep as typed',
            'current_state': '',
        }

        normalized = normalize_profile_data(data)

        assert normalized['current_company'] == 'Infosys Limited'
        assert normalized['current_city'] == 'Bangalore'
        assert normalized['hometown_city'] == 'Kolkata'
        assert normalized['industry'] == 'Information Technology'
        assert normalized['bio'] == 'keep as typed'
        assert normalized['current_state'] == ''
        # input is not modified
        assert data['current_city'] == 'bengaluru'
