"""
Unit Tests for the recommendation scoring
"""
import pytest
from sqlalchemy import select

from alumni_portal.models import AlumniProfile
from alumni_portal.services.recommendations import (
    WEIGHT_SAME_COMPANY,
    WEIGHT_SAME_BRANCH_AND_YEAR,
    WEIGHT_SAME_BRANCH,
    WEIGHT_SAME_CITY,
    WEIGHT_MENTOR,
    MAX_SKILL_POINTS,
    score_candidate,
    get_recommendations,
)


def profile(**fields) -> AlumniProfile:
    fields.setdefault('first_name', 'Test')
    fields.setdefault('last_name', 'User')
    return AlumniProfile(**fields)


class TestScoreCandidate:

    def test_same_company_ignores_punctuation(self):
        score, reasons = score_candidate(
            profile(current_company='Amazon.com'),
            profile(current_company='amazon com'),
        )

        assert score == WEIGHT_SAME_COMPANY
        assert reasons == ['Also works at amazon com']

    def test_branch_and_batch_beats_branch_only(self):
        viewer = profile(branch='CSE', graduation_year=2020)

        batchmate, _ = score_candidate(viewer, profile(branch='cse', graduation_year=2020))
        senior, reasons = score_candidate(viewer, profile(branch='CSE', graduation_year=2018))

        assert batchmate == WEIGHT_SAME_BRANCH_AND_YEAR
        assert senior == WEIGHT_SAME_BRANCH
        assert reasons == ['Same branch']

    def test_city(self):
        score, _ = score_candidate(profile(current_city='Pune'), profile(current_city=' pune '))

        assert score == WEIGHT_SAME_CITY

    def test_shared_skills_capped(self):
        skills = ['a', 'b', 'c', 'd', 'e', 'f', 'g']

        score, reasons = score_candidate(profile(skills=skills), profile(skills=[s.upper() for s in skills]))

        assert score == MAX_SKILL_POINTS
        assert reasons == ['7 shared skills']

    def test_single_shared_skill_reason(self):
        _, reasons = score_candidate(profile(skills=['Go']), profile(skills=['go', 'Rust']))

        assert reasons == ['1 shared skill']

    def test_mentorship_needs_another_signal(self):
        alone, _ = score_candidate(profile(), profile(is_available_for_mentorship=True))
        with_city, reasons = score_candidate(
            profile(current_city='Pune'),
            profile(current_city='Pune', is_available_for_mentorship=True),
        )

        assert alone == 0
        assert with_city == WEIGHT_SAME_CITY + WEIGHT_MENTOR
        assert 'Available for mentorship' in reasons

    def test_hidden_sections_do_not_score(self):
        viewer = profile(current_company='Acme', branch='CSE', graduation_year=2020, industry='Retail')
        candidate = profile(
            current_company='Acme', branch='CSE', graduation_year=2020, industry='Retail',
            show_work_info=False, show_academic_info=False, is_available_for_mentorship=True,
        )

        assert score_candidate(viewer, candidate) == (0, [])

    def test_nothing_in_common(self):
        assert score_candidate(profile(), profile()) == (0, [])


class TestGetRecommendations:

    @pytest.mark.asyncio
    async def test_excludes_self_hidden_and_unapproved(self, db_session, user_factory, test_user):
        await user_factory(first_name='Visible', current_company='Google')
        await user_factory(first_name='Private', current_company='Google', is_profile_public=False)
        await user_factory(first_name='Pending', current_company='Google', is_approved=False)
        await user_factory(first_name='Gone', current_company='Google', is_active=False)

        result = await db_session.execute(select(AlumniProfile).where(AlumniProfile.user_id == test_user.id))
        viewer = result.scalar_one()

        recommendations = await get_recommendations(db_session, viewer)

        assert [item.profile.first_name for item in recommendations] == ['Visible']

    @pytest.mark.asyncio
    async def test_ties_broken_by_batch_distance(self, db_session, user_factory, test_user):
        await user_factory(first_name='Far', current_city='Bangalore', graduation_year=2010)
        await user_factory(first_name='Near', current_city='Bangalore', graduation_year=2019)

        result = await db_session.execute(select(AlumniProfile).where(AlumniProfile.user_id == test_user.id))
        viewer = result.scalar_one()

        recommendations = await get_recommendations(db_session, viewer, limit=1)

        assert [item.profile.first_name for item in recommendations] == ['Near']

    @pytest.mark.asyncio
    async def test_viewer_with_empty_profile(self, db_session, user_factory):
        user = await user_factory()
        await user_factory(current_company='Google')

        result = await db_session.execute(select(AlumniProfile).where(AlumniProfile.user_id == user.id))
        viewer = result.scalar_one()

        assert await get_recommendations(db_session, viewer) == []

    @pytest.mark.asyncio
    async def test_hidden_company_not_used_to_find_candidates(self, db_session, user_factory, test_user):
        await user_factory(first_name='Quiet', current_company='Google', show_work_info=False)

        result = await db_session.execute(select(AlumniProfile).where(AlumniProfile.user_id == test_user.id))
        viewer = result.scalar_one()

        assert await get_recommendations(db_session, viewer) == []
