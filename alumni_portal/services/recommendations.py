"""
"People you may know" recommendations for the dashboard.

Candidates are gathered with a few narrow queries (same company, same city,
same branch and batch, same industry, shared skills), merged, then scored
and ranked in Python.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_portal.models.alumni_profile import AlumniProfile, has_skill
from alumni_portal.models.user import User
from alumni_portal.utils.normalization import fuzzy_match

# Signal weights
WEIGHT_SAME_COMPANY = 5
WEIGHT_SAME_BRANCH_AND_YEAR = 4
WEIGHT_SAME_BRANCH = 2
WEIGHT_SAME_CITY = 3
WEIGHT_SAME_INDUSTRY = 2
WEIGHT_SHARED_SKILL = 1
MAX_SKILL_POINTS = 5
WEIGHT_MENTOR = 1

CANDIDATE_FETCH_LIMIT = 50
MAX_SKILLS_QUERIED = 10
# Sort key for candidates without a graduation year
UNKNOWN_YEAR_DISTANCE = 10 ** 4


@dataclass
class Recommendation:
    profile: AlumniProfile
    score: int
    reasons: List[str] = field(default_factory=list)


def _same(first: Optional[str], second: Optional[str]) -> bool:
    if not first or not second:
        return False
    return first.strip().lower() == second.strip().lower()


def _skill_set(profile: AlumniProfile) -> set:
    return {s.strip().lower() for s in (profile.skills or []) if isinstance(s, str) and s.strip()}


def score_candidate(viewer: AlumniProfile, candidate: AlumniProfile) -> Tuple[int, List[str]]:
    """
    Score how relevant `candidate` is to `viewer`, with human-readable reasons.

    Work and academic signals only count when the candidate shows that section.
    """
    score = 0
    reasons: List[str] = []
    work = candidate.work_visible
    academic = candidate.academic_visible

    if work and fuzzy_match(viewer.current_company, candidate.current_company):
        score += WEIGHT_SAME_COMPANY
        reasons.append(f"Also works at {candidate.current_company}")

    if academic and _same(viewer.branch, candidate.branch):
        if viewer.graduation_year and viewer.graduation_year == candidate.graduation_year:
            score += WEIGHT_SAME_BRANCH_AND_YEAR
            reasons.append(f"Same branch and batch ({candidate.graduation_year})")
        else:
            score += WEIGHT_SAME_BRANCH
            reasons.append("Same branch")

    if _same(viewer.current_city, candidate.current_city):
        score += WEIGHT_SAME_CITY
        reasons.append(f"Also in {candidate.current_city}")

    if work and _same(viewer.industry, candidate.industry):
        score += WEIGHT_SAME_INDUSTRY
        reasons.append(f"Works in {candidate.industry}")

    shared = _skill_set(viewer) & _skill_set(candidate)
    if shared:
        score += min(len(shared) * WEIGHT_SHARED_SKILL, MAX_SKILL_POINTS)
        reasons.append(f"{len(shared)} shared skill{'s' if len(shared) != 1 else ''}")

    # Mentorship only adds to an existing connection
    if score and candidate.is_available_for_mentorship:
        score += WEIGHT_MENTOR
        reasons.append("Available for mentorship")

    return score, reasons


def _sort_key(viewer: AlumniProfile, item: Recommendation):
    candidate = item.profile
    if viewer.graduation_year and candidate.academic_visible and candidate.graduation_year:
        distance = abs(viewer.graduation_year - candidate.graduation_year)
    else:
        distance = UNKNOWN_YEAR_DISTANCE
    return (-item.score, distance, candidate.full_name.lower())


def _visible_profiles(viewer: AlumniProfile):
    return (
        select(AlumniProfile)
        .join(User, User.id == AlumniProfile.user_id)
        .where(
            User.is_approved.is_(True),
            User.is_active.is_(True),
            AlumniProfile.is_profile_public.is_(True),
            AlumniProfile.user_id != viewer.user_id,
        )
        .limit(CANDIDATE_FETCH_LIMIT)
    )


def _candidate_filters(viewer: AlumniProfile) -> list:
    filters = []
    if viewer.current_company:
        filters.append(
            AlumniProfile.show_work_info.is_(True)
            & (func.lower(AlumniProfile.current_company) == viewer.current_company.strip().lower())
        )
    if viewer.current_city:
        filters.append(func.lower(AlumniProfile.current_city) == viewer.current_city.strip().lower())
    if viewer.branch and viewer.graduation_year:
        filters.append(
            AlumniProfile.show_academic_info.is_(True)
            & (func.lower(AlumniProfile.branch) == viewer.branch.strip().lower())
            & (AlumniProfile.graduation_year == viewer.graduation_year)
        )
    if viewer.industry:
        filters.append(
            AlumniProfile.show_work_info.is_(True)
            & (func.lower(AlumniProfile.industry) == viewer.industry.strip().lower())
        )
    skills = sorted(_skill_set(viewer))[:MAX_SKILLS_QUERIED]
    if skills:
        filters.append(or_(*[has_skill(skill) for skill in skills]))
    return filters


async def get_recommendations(
    db: AsyncSession,
    viewer: AlumniProfile,
    limit: int = 10,
) -> List[Recommendation]:
    """Ranked recommendations for `viewer`, at most `limit` items"""
    candidates: Dict[str, AlumniProfile] = {}

    for condition in _candidate_filters(viewer):
        result = await db.execute(_visible_profiles(viewer).where(condition))
        for profile in result.scalars().all():
            candidates.setdefault(profile.id, profile)

    recommendations = []
    for profile in candidates.values():
        score, reasons = score_candidate(viewer, profile)
        if score > 0:
            recommendations.append(Recommendation(profile=profile, score=score, reasons=reasons))

    recommendations.sort(key=lambda item: _sort_key(viewer, item))
    return recommendations[:limit]
