from pydantic import BaseModel
from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_, and_, String, cast
from datetime import datetime
from typing import Optional, List, Dict, Any, TypeVar
from collections import Counter

from alumni_portal.core.database import get_db
from alumni_portal.core.logging_config import logger
from alumni_portal.core.types import is_valid_uuid
from alumni_portal.api.deps import get_current_user
from alumni_portal.models.user import User
from alumni_portal.models.alumni_profile import AlumniProfile, has_skill
from alumni_portal.schemas.alumni import (
    ProfileCreate,
    ProfileUpdate,
    ProfileResponse,
    ProfileListResponse,
    ProfileSummary,
    EmploymentUpdate,
    HigherEducationUpdate,
    ConsentUpdate,
    SuggestionsResponse,
    RecommendationResponse,
    DashboardStats,
    check_company_required,
)
from alumni_portal.services.email_service import email_service
from alumni_portal.services.recommendations import get_recommendations
from alumni_portal.services.uploads import save_profile_picture, delete_profile_picture
from alumni_portal.utils.normalization import normalize_profile_data
from alumni_portal.utils.pagination import paginate

router = APIRouter()

SORT_FIELDS = {
    "graduation_year": AlumniProfile.graduation_year,
    "created_at": AlumniProfile.created_at,
    "first_name": AlumniProfile.first_name,
    "last_name": AlumniProfile.last_name,
}

SUGGESTION_COLUMNS = {
    "companies": AlumniProfile.current_company,
    "locations": AlumniProfile.current_city,
    "branches": AlumniProfile.branch,
}
SUGGESTION_TYPES = list(SUGGESTION_COLUMNS) + ["skills"]
SUGGESTION_LIMIT = 10
SKILL_SCAN_LIMIT = 1000

CONTACT_FIELDS = ("phone", "email", "date_of_birth", "hometown_city", "hometown_state")
WORK_FIELDS = (
    "employment_status", "current_company", "current_position", "industry", "work_experience_years",
)
ACADEMIC_FIELDS = (
    "student_id", "admission_year", "graduation_year", "degree", "branch", "cgpa",
    "higher_study_status", "higher_study_institution", "higher_study_program",
    "higher_study_field", "higher_study_country", "higher_study_year",
)


def directory_filters() -> list:
    """Profiles listed in the directory: approved, active account and public profile"""
    return [
        User.is_approved.is_(True),
        User.is_active.is_(True),
        AlumniProfile.is_profile_public.is_(True),
    ]


def directory_query():
    return (
        select(AlumniProfile)
        .join(User, User.id == AlumniProfile.user_id)
        .where(*directory_filters())
    )


async def get_own_profile(db: AsyncSession, user: User) -> AlumniProfile:
    result = await db.execute(select(AlumniProfile).where(AlumniProfile.user_id == user.id))
    profile = result.scalar_one_or_none()
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found. Please create your profile first."
        )
    return profile


def profile_response(profile: AlumniProfile, email: Optional[str] = None) -> ProfileResponse:
    response = ProfileResponse.model_validate(profile)
    response.email = email
    return response


ResponseT = TypeVar("ResponseT", bound=BaseModel)

# visibility flag that guards each section
SECTION_FLAGS = {
    "work": AlumniProfile.show_work_info,
    "academic": AlumniProfile.show_academic_info,
}
# suggestion columns that belong to a hideable section
SUGGESTION_SECTIONS = {"companies": "work", "branches": "academic"}


def apply_privacy(response: ResponseT, profile: AlumniProfile) -> ResponseT:
    """Blank the sections the owner chose to hide"""
    hidden: List[str] = []
    if not profile.show_contact_info:
        hidden.extend(CONTACT_FIELDS)
    if not profile.work_visible:
        hidden.extend(WORK_FIELDS)
    if not profile.academic_visible:
        hidden.extend(ACADEMIC_FIELDS)
    fields = type(response).model_fields
    return response.model_copy(update={name: None for name in hidden if name in fields})


def summary_response(profile: AlumniProfile) -> ProfileSummary:
    return apply_privacy(ProfileSummary.model_validate(profile), profile)


def apply_changes(profile: AlumniProfile, changes: Dict[str, Any]) -> None:
    for field, value in changes.items():
        setattr(profile, field, value)


@router.get("", response_model=ProfileListResponse)
async def list_alumni(
    search: Optional[str] = Query(None, description="Name, company or skill"),
    batch: Optional[int] = Query(None, description="Graduation year"),
    branch: Optional[str] = None,
    company: Optional[str] = None,
    location: Optional[str] = None,
    skills: Optional[str] = Query(None, description="Comma-separated skills, all must match"),
    sort_by: str = Query("graduation_year"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Alumni directory"""
    if sort_by not in SORT_FIELDS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"sort_by must be one of: {', '.join(SORT_FIELDS)}"
        )

    query = directory_query()

    if search:
        term = f"%{search.strip()}%"
        query = query.where(or_(
            AlumniProfile.first_name.ilike(term),
            AlumniProfile.last_name.ilike(term),
            (AlumniProfile.first_name + " " + AlumniProfile.last_name).ilike(term),
            and_(SECTION_FLAGS["work"].is_(True), AlumniProfile.current_company.ilike(term)),
            cast(AlumniProfile.skills, String).ilike(term),
        ))
    # hidden sections never match their filters
    if batch:
        query = query.where(SECTION_FLAGS["academic"].is_(True), AlumniProfile.graduation_year == batch)
    if branch:
        query = query.where(
            SECTION_FLAGS["academic"].is_(True), AlumniProfile.branch.ilike(f"%{branch.strip()}%")
        )
    if company:
        query = query.where(
            SECTION_FLAGS["work"].is_(True), AlumniProfile.current_company.ilike(f"%{company.strip()}%")
        )
    if location:
        term = f"%{location.strip()}%"
        query = query.where(or_(
            AlumniProfile.current_city.ilike(term),
            AlumniProfile.current_state.ilike(term),
            AlumniProfile.current_country.ilike(term),
        ))
    if skills:
        for skill in [s.strip() for s in skills.split(",") if s.strip()]:
            query = query.where(has_skill(skill))

    column = SORT_FIELDS[sort_by]
    order = column.asc() if sort_order == "asc" else column.desc()
    query = query.order_by(order, AlumniProfile.id)

    result = await paginate(db, query, page, page_size)
    result["items"] = [summary_response(profile) for profile in result["items"]]
    return result


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    profile = await get_own_profile(db, current_user)
    return profile_response(profile, current_user.email)


@router.post("/me", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_my_profile(
    profile_data: ProfileCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create the current user's profile"""
    result = await db.execute(select(AlumniProfile.id).where(AlumniProfile.user_id == current_user.id))
    if result.first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Profile already exists. Use PUT to update."
        )

    data = normalize_profile_data(profile_data.to_db_dict(exclude_unset=True))
    profile = AlumniProfile(user_id=current_user.id, **data)
    db.add(profile)
    await db.commit()
    await db.refresh(profile)

    logger.info(f"[Alumni] Profile created for user {current_user.id}")
    return profile_response(profile, current_user.email)


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    profile_data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update the current user's profile; only the fields sent are changed"""
    profile = await get_own_profile(db, current_user)
    changes = normalize_profile_data(profile_data.to_db_dict(exclude_unset=True))
    # names are required columns
    for field in ("first_name", "last_name"):
        if field in changes and changes[field] is None:
            changes.pop(field)

    status_after = changes.get("employment_status", profile.employment_status)
    company_after = changes.get("current_company", profile.current_company)
    try:
        check_company_required(status_after, company_after)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    apply_changes(profile, changes)
    profile.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(profile)

    return profile_response(profile, current_user.email)


@router.post("/me/picture", response_model=ProfileResponse)
async def upload_profile_picture(
    file: UploadFile = File(..., description="JPEG, PNG or WebP image (max 2MB)"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Upload or replace the profile picture"""
    profile = await get_own_profile(db, current_user)

    url = await save_profile_picture(current_user.id, file)
    old_url = profile.profile_picture_url
    profile.profile_picture_url = url
    await db.commit()
    await db.refresh(profile)

    await delete_profile_picture(old_url)
    return profile_response(profile, current_user.email)


@router.put("/me/employment", response_model=ProfileResponse)
async def update_employment(
    employment: EmploymentUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Onboarding step: employment details"""
    profile = await get_own_profile(db, current_user)
    apply_changes(profile, normalize_profile_data(employment.model_dump(exclude_unset=True)))
    await db.commit()
    await db.refresh(profile)
    return profile_response(profile, current_user.email)


@router.put("/me/higher-education", response_model=ProfileResponse)
async def update_higher_education(
    education: HigherEducationUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Onboarding step: higher education details"""
    profile = await get_own_profile(db, current_user)
    apply_changes(profile, normalize_profile_data(education.model_dump(exclude_unset=True)))
    await db.commit()
    await db.refresh(profile)
    return profile_response(profile, current_user.email)


@router.put("/me/consent", response_model=ProfileResponse)
async def update_consent(
    consent: ConsentUpdate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Final onboarding step: record consent and complete onboarding"""
    profile = await get_own_profile(db, current_user)
    apply_changes(profile, consent.model_dump(exclude_none=True))
    profile.consent_given_at = datetime.utcnow()

    first_completion = not current_user.onboarding_completed
    current_user.onboarding_completed = True
    await db.commit()
    await db.refresh(profile)

    if first_completion:
        background_tasks.add_task(
            email_service.send_welcome_email,
            to_email=current_user.email,
            user_name=profile.first_name,
        )

    return profile_response(profile, current_user.email)


@router.get("/search/suggestions", response_model=SuggestionsResponse)
async def search_suggestions(
    type: str = Query(..., description="companies, locations, skills or branches"),
    query: str = Query("", max_length=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Autocomplete values already used in the directory"""
    if type not in SUGGESTION_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"type must be one of: {', '.join(SUGGESTION_TYPES)}"
        )

    term = query.strip().lower()

    if type == "skills":
        result = await db.execute(
            select(AlumniProfile.skills)
            .join(User, User.id == AlumniProfile.user_id)
            .where(*directory_filters())
            .limit(SKILL_SCAN_LIMIT)
        )
        counts: Counter = Counter()
        display: Dict[str, str] = {}
        for skills in result.scalars().all():
            for skill in skills or []:
                if not isinstance(skill, str) or not skill.strip():
                    continue
                key = skill.strip().lower()
                if term and term not in key:
                    continue
                counts[key] += 1
                display.setdefault(key, skill.strip())
        suggestions = [display[key] for key, _ in counts.most_common(SUGGESTION_LIMIT)]
        return {"type": type, "suggestions": suggestions}

    column = SUGGESTION_COLUMNS[type]
    stmt = (
        select(column, func.count().label("uses"))
        .join(User, User.id == AlumniProfile.user_id)
        .where(*directory_filters(), column.isnot(None), column != "")
        .group_by(column)
        .order_by(func.count().desc(), column)
        .limit(SUGGESTION_LIMIT)
    )
    if type in SUGGESTION_SECTIONS:
        stmt = stmt.where(SECTION_FLAGS[SUGGESTION_SECTIONS[type]].is_(True))
    if term:
        stmt = stmt.where(column.ilike(f"%{term}%"))
    result = await db.execute(stmt)
    return {"type": type, "suggestions": [row[0] for row in result.all()]}


async def _count_by(db: AsyncSession, column, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    stmt = (
        select(column, func.count().label("total"))
        .join(User, User.id == AlumniProfile.user_id)
        .where(*directory_filters(), column.isnot(None))
        .group_by(column)
        .order_by(func.count().desc(), column)
    )
    if limit:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return [{"name": str(value), "count": total} for value, total in result.all() if value != ""]


async def _count_where(db: AsyncSession, *conditions) -> int:
    result = await db.execute(
        select(func.count(AlumniProfile.id))
        .join(User, User.id == AlumniProfile.user_id)
        .where(*directory_filters(), *conditions)
    )
    return result.scalar() or 0


async def _count_distinct(db: AsyncSession, column) -> int:
    result = await db.execute(
        select(func.count(func.distinct(func.lower(column))))
        .select_from(AlumniProfile)
        .join(User, User.id == AlumniProfile.user_id)
        .where(*directory_filters(), column.isnot(None), column != "")
    )
    return result.scalar() or 0


@router.get("/stats/dashboard", response_model=DashboardStats)
async def dashboard_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Directory-wide numbers for the dashboard"""
    return {
        "total_alumni": await _count_where(db),
        "open_to_work": await _count_where(db, AlumniProfile.is_open_to_work.is_(True)),
        "mentors": await _count_where(db, AlumniProfile.is_available_for_mentorship.is_(True)),
        "companies": await _count_distinct(db, AlumniProfile.current_company),
        "cities": await _count_distinct(db, AlumniProfile.current_city),
        "top_companies": await _count_by(db, AlumniProfile.current_company, limit=5),
        "top_cities": await _count_by(db, AlumniProfile.current_city, limit=5),
        "by_graduation_year": await _count_by(db, AlumniProfile.graduation_year),
        "by_branch": await _count_by(db, AlumniProfile.branch),
        "employment_status": await _count_by(db, AlumniProfile.employment_status),
    }


@router.get("/recommendations", response_model=List[RecommendationResponse])
async def recommendations(
    limit: int = Query(10, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """People you may know"""
    result = await db.execute(select(AlumniProfile).where(AlumniProfile.user_id == current_user.id))
    viewer = result.scalar_one_or_none()
    if not viewer:
        return []

    items = await get_recommendations(db, viewer, limit=limit)
    return [
        {"profile": summary_response(item.profile), "score": item.score, "reasons": item.reasons}
        for item in items
    ]


@router.get("/{profile_id}", response_model=ProfileResponse)
async def get_alumni_profile(
    profile_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Single profile, with hidden sections blanked for other viewers"""
    if not is_valid_uuid(profile_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")

    result = await db.execute(
        select(AlumniProfile, User)
        .join(User, User.id == AlumniProfile.user_id)
        .where(AlumniProfile.id == profile_id)
    )
    row = result.first()
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")

    profile, owner = row
    response = profile_response(profile, owner.email)

    if owner.id == current_user.id or current_user.is_admin:
        return response

    if not owner.is_approved or not owner.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")

    if not profile.is_profile_public:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This profile is private")

    return apply_privacy(response, profile)
