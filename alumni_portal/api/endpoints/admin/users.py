"""
Admin user management endpoints.
"""
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy import select, func, or_
from typing import Optional

from alumni_portal.core.config import settings
from alumni_portal.core.database import get_db
from alumni_portal.core.logging_config import logger
from alumni_portal.core.types import is_valid_uuid
from alumni_portal.api.deps import get_current_admin
from alumni_portal.models.user import User, UserRole, AuthProvider
from alumni_portal.models.alumni_profile import AlumniProfile
from alumni_portal.models.institute_record import InstituteRecord
from alumni_portal.schemas.admin import AdminUserResponse, AdminUsersResponse, UserRoleUpdate, UserStats
from alumni_portal.services.email_service import email_service
from alumni_portal.utils.pagination import paginate

router = APIRouter()


def admin_user_response(user: User) -> AdminUserResponse:
    response = AdminUserResponse.model_validate(user)
    if user.profile is not None:
        response.first_name = user.profile.first_name
        response.last_name = user.profile.last_name
    if user.institute_record is not None:
        response.roll_number = user.institute_record.roll_number
    return response


async def get_user_or_404(db: AsyncSession, user_id: str) -> User:
    if not is_valid_uuid(user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    result = await db.execute(
        select(User)
        .options(selectinload(User.profile), selectinload(User.institute_record))
        .where(User.id == user_id)
    )
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/users", response_model=AdminUsersResponse)
async def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    role: Optional[UserRole] = None,
    is_approved: Optional[bool] = None,
    is_active: Optional[bool] = None,
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """List all users with filtering and pagination"""
    query = (
        select(User)
        .options(selectinload(User.profile), selectinload(User.institute_record))
        .outerjoin(AlumniProfile, AlumniProfile.user_id == User.id)
        .outerjoin(InstituteRecord, InstituteRecord.id == User.institute_record_id)
    )

    if search:
        search_term = f"%{search.strip()}%"
        query = query.where(or_(
            User.email.ilike(search_term),
            AlumniProfile.first_name.ilike(search_term),
            AlumniProfile.last_name.ilike(search_term),
            InstituteRecord.roll_number.ilike(search_term),
        ))
    if role is not None:
        query = query.where(User.role == role)
    if is_approved is not None:
        query = query.where(User.is_approved == is_approved)
    if is_active is not None:
        query = query.where(User.is_active == is_active)

    order = User.created_at.asc() if sort_order == "asc" else User.created_at.desc()
    query = query.order_by(order)

    result = await paginate(db, query, page, page_size)
    result["items"] = [admin_user_response(user) for user in result["items"]]
    return result


@router.put("/users/{user_id}/approve", response_model=AdminUserResponse)
async def approve_user(
    user_id: str,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Approve a user account and notify the user"""
    user = await get_user_or_404(db, user_id)
    if user.is_approved:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User is already approved")

    user.is_approved = True
    await db.commit()

    logger.log_admin_action("approve_user", current_admin.email, target=user.email)
    background_tasks.add_task(
        email_service.send_approval_email,
        to_email=user.email,
        user_name=user.profile.first_name if user.profile else None,
    )
    return admin_user_response(user)


@router.put("/users/{user_id}/reject", response_model=AdminUserResponse)
async def reject_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Revoke approval; the profile leaves the directory"""
    user = await get_user_or_404(db, user_id)
    user.is_approved = False
    await db.commit()

    logger.log_admin_action("reject_user", current_admin.email, target=user.email)
    return admin_user_response(user)


@router.put("/users/{user_id}/activate", response_model=AdminUserResponse)
async def activate_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    user = await get_user_or_404(db, user_id)
    user.is_active = True
    await db.commit()

    logger.log_admin_action("activate_user", current_admin.email, target=user.email)
    return admin_user_response(user)


@router.put("/users/{user_id}/deactivate", response_model=AdminUserResponse)
async def deactivate_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    user = await get_user_or_404(db, user_id)
    if user.id == current_admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot deactivate your own account"
        )

    user.is_active = False
    await db.commit()

    logger.log_admin_action("deactivate_user", current_admin.email, target=user.email)
    return admin_user_response(user)


@router.put("/users/{user_id}/role", response_model=AdminUserResponse)
async def update_user_role(
    user_id: str,
    role_update: UserRoleUpdate,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    user = await get_user_or_404(db, user_id)
    if user.id == current_admin.id and role_update.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot remove your own admin role"
        )

    user.role = role_update.role
    await db.commit()

    logger.log_admin_action(
        "update_role", current_admin.email, target=user.email, new_role=role_update.role.value
    )
    return admin_user_response(user)


@router.get("/stats/users", response_model=UserStats)
async def user_stats(
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """User statistics for the admin dashboard"""
    async def count(*conditions) -> int:
        return await db.scalar(select(func.count(User.id)).where(*conditions)) or 0

    domain_suffix = f"%@{settings.INSTITUTE_EMAIL_DOMAIN.lower()}"
    total = await count()
    approved = await count(User.is_approved.is_(True))
    active = await count(User.is_active.is_(True))
    institute = await count(func.lower(User.email).like(domain_suffix))

    role_rows = await db.execute(select(User.role, func.count(User.id)).group_by(User.role))
    by_role = {role.value: 0 for role in UserRole}
    by_role.update({role.value: n for role, n in role_rows.all()})

    provider_rows = await db.execute(select(User.provider, func.count(User.id)).group_by(User.provider))
    by_provider = {provider.value: 0 for provider in AuthProvider}
    by_provider.update({provider.value: n for provider, n in provider_rows.all() if provider is not None})

    return {
        "total_users": total,
        "approved_users": approved,
        "pending_approval": total - approved,
        "active_users": active,
        "inactive_users": total - active,
        "verified_emails": await count(User.email_verified.is_(True)),
        "by_role": by_role,
        "by_provider": by_provider,
        "institute_emails": institute,
        "external_emails": total - institute,
    }
