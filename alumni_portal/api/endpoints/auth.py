from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from datetime import datetime
from typing import Optional

from alumni_portal.core.database import get_db
from alumni_portal.core.config import settings
from alumni_portal.core.exceptions import RecordVerificationError, RecordAlreadyLinkedError
from alumni_portal.core.logging_config import logger, set_user_id
from alumni_portal.core.rate_limiter import auth_rate_limit
from alumni_portal.core.security import (
    verify_password,
    get_password_hash,
    create_token_pair,
    create_email_verification_token,
    decode_token,
    generate_reset_token,
    hash_token,
)
from alumni_portal.api.deps import get_current_user
from alumni_portal.models.user import User, RegistrationPath
from alumni_portal.models.institute_record import InstituteRecord
from alumni_portal.models.alumni_profile import AlumniProfile
from alumni_portal.schemas.auth import (
    UserRegister,
    UserLogin,
    RefreshRequest,
    Token,
    LoginResponse,
    UserResponse,
    VerifyEmailRequest,
    EmailRequest,
    ResetPasswordRequest,
)
from alumni_portal.schemas.common import MessageResponse
from alumni_portal.services.email_service import email_service

router = APIRouter()

# Programme length used to derive the graduation year from the enrollment year
PROGRAM_YEARS = {"B.Tech": 4, "M.Tech": 2}

GENERIC_RESET_MESSAGE = "If an account with that email exists, you will receive password reset instructions."


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def find_matching_record(
    db: AsyncSession,
    roll_number: str,
    date_of_birth,
) -> InstituteRecord:
    """Active institute record for roll number + DOB, raising if there is no match or it is claimed"""
    result = await db.execute(
        select(InstituteRecord).where(
            func.upper(InstituteRecord.roll_number) == roll_number.strip().upper(),
            InstituteRecord.is_active.is_(True),
        ).with_for_update()
    )
    record = result.scalar_one_or_none()
    if not record or record.date_of_birth != date_of_birth:
        raise RecordVerificationError("Roll number and date of birth do not match our records")

    linked = await db.execute(select(User.id).where(User.institute_record_id == record.id))
    if linked.first():
        raise RecordAlreadyLinkedError(record.roll_number)
    return record


def profile_from_record(profile: AlumniProfile, record: InstituteRecord) -> None:
    """Copy what the institute record knows onto a fresh profile"""
    profile.student_id = record.roll_number
    profile.date_of_birth = record.date_of_birth
    profile.branch = record.branch
    profile.degree = record.degree
    profile.phone = profile.phone or record.contact_number
    if record.enrollment_year:
        profile.admission_year = record.enrollment_year
        years = PROGRAM_YEARS.get(record.degree or "")
        if years:
            profile.graduation_year = record.enrollment_year + years


@router.post("/register", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
@auth_rate_limit()
async def register(
    request: Request,
    user_data: UserRegister,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new alumni account.

    - Institute email: approved and verified immediately.
    - Personal email + roll number/DOB matching an institute record: linked and approved.
    - Personal email without a roll number: pending admin approval.
    """
    client_ip = _client_ip(request)
    email = user_data.email.lower()

    result = await db.execute(select(User).where(func.lower(User.email) == email))
    if result.scalar_one_or_none():
        logger.log_auth_event(
            event="register",
            success=False,
            user_email=email,
            reason="Email already registered",
            client_ip=client_ip
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    is_institute_email = settings.is_institute_email(email)
    record: Optional[InstituteRecord] = None

    if user_data.roll_number:
        try:
            record = await find_matching_record(db, user_data.roll_number, user_data.date_of_birth)
        except (RecordVerificationError, RecordAlreadyLinkedError) as e:
            logger.log_auth_event(
                event="register",
                success=False,
                user_email=email,
                reason=e.message,
                client_ip=client_ip
            )
            raise
    elif is_institute_email:
        # Institute addresses are imported with the record, link them when unclaimed
        result = await db.execute(
            select(InstituteRecord)
            .outerjoin(User, User.institute_record_id == InstituteRecord.id)
            .where(func.lower(InstituteRecord.institute_email) == email, User.id.is_(None))
            .with_for_update(of=InstituteRecord)
        )
        record = result.scalars().first()

    record_roll = record.roll_number if record else None
    user = User(
        email=email,
        hashed_password=get_password_hash(user_data.password),
        is_approved=is_institute_email or record is not None,
        email_verified=is_institute_email,
        registration_path=(
            RegistrationPath.INSTITUTE_EMAIL if is_institute_email else RegistrationPath.PERSONAL_EMAIL
        ),
        institute_record_id=record.id if record else None,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        # users.institute_record_id is unique: another account claimed the record first
        await db.rollback()
        if not record_roll:
            raise
        raise RecordAlreadyLinkedError(record_roll)

    profile = AlumniProfile(
        user_id=user.id,
        first_name=user_data.first_name,
        last_name=user_data.last_name,
    )
    if record:
        profile_from_record(profile, record)
    db.add(profile)

    await db.commit()
    await db.refresh(user)

    logger.log_auth_event(
        event="register",
        success=True,
        user_email=email,
        client_ip=client_ip,
        registration_path=user.registration_path.value,
        auto_approved=user.is_approved,
    )

    if not user.email_verified:
        background_tasks.add_task(
            email_service.send_verification_email,
            to_email=user.email,
            user_name=user_data.first_name,
            verification_token=create_email_verification_token(user.id, user.email),
        )

    if user.is_approved:
        message = "Registration successful"
    else:
        message = "Registration successful. Your account is pending admin approval."

    return {
        **create_token_pair(user),
        "user": UserResponse.model_validate(user),
        "message": message,
    }


@router.post("/login", response_model=LoginResponse)
@auth_rate_limit()
async def login(
    request: Request,
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Login with email and password"""
    client_ip = _client_ip(request)
    email = credentials.email.lower()

    result = await db.execute(select(User).where(func.lower(User.email) == email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.log_auth_event(
            event="login",
            success=False,
            user_email=email,
            reason="Invalid credentials",
            client_ip=client_ip
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    if not user.is_active:
        logger.log_auth_event(
            event="login",
            success=False,
            user_email=email,
            reason="Account deactivated",
            client_ip=client_ip
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is deactivated"
        )

    user.last_login = datetime.utcnow()
    await db.commit()
    await db.refresh(user)

    set_user_id(str(user.id))
    logger.log_auth_event(
        event="login",
        success=True,
        user_email=user.email,
        client_ip=client_ip,
        user_role=user.role.value
    )

    return {
        **create_token_pair(user),
        "user": UserResponse.model_validate(user),
        "message": "Login successful",
    }


@router.post("/refresh", response_model=Token)
async def refresh_token(
    token_request: RefreshRequest,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """Exchange a refresh token for a new token pair"""
    payload = decode_token(token_request.refresh_token)

    if payload.get("type") != "refresh":
        logger.log_auth_event(
            event="token_refresh",
            success=False,
            reason="Invalid token type",
            client_ip=_client_ip(request)
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type - expected refresh token"
        )

    result = await db.execute(select(User).where(User.id == payload.get("sub")))
    user = result.scalar_one_or_none()

    if not user or not user.is_active:
        logger.log_auth_event(
            event="token_refresh",
            success=False,
            user_email=user.email if user else None,
            reason="User not found" if not user else "Account deactivated",
            client_ip=_client_ip(request)
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token"
        )

    return create_token_pair(user)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user info"""
    return current_user


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: User = Depends(get_current_user)
):
    """
    Logout user.

    Tokens are stateless; the client discards them. This only records the event.
    """
    logger.log_auth_event(
        event="logout",
        success=True,
        user_email=current_user.email
    )
    return {"success": True, "message": "Logout successful"}


@router.post("/verify-email")
async def verify_email(
    payload_in: VerifyEmailRequest,
    db: AsyncSession = Depends(get_db)
):
    """Verify email address using the token from the verification email"""
    try:
        payload = decode_token(payload_in.token)
    except HTTPException:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired verification token"
        )

    if payload.get("type") != "email_verification":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid verification token"
        )

    result = await db.execute(select(User).where(User.id == payload.get("sub")))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    if user.email != payload.get("email"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Token email mismatch"
        )

    if user.email_verified:
        return {"success": True, "message": "Email already verified", "already_verified": True}

    user.email_verified = True
    await db.commit()

    logger.log_auth_event(event="email_verified", success=True, user_email=user.email)

    return {
        "success": True,
        "message": "Email verified successfully! You can now log in.",
        "already_verified": False
    }


@router.post("/resend-verification", response_model=MessageResponse)
@auth_rate_limit()
async def resend_verification_email(
    request: Request,
    payload_in: EmailRequest,
    db: AsyncSession = Depends(get_db)
):
    """Resend the verification email; the answer never reveals whether the email exists"""
    generic = {
        "success": True,
        "message": "If an account with that email exists, a verification email has been sent."
    }

    result = await db.execute(select(User).where(func.lower(User.email) == payload_in.email.lower()))
    user = result.scalar_one_or_none()

    if not user:
        return generic

    if user.email_verified:
        return {"success": True, "message": "This email is already verified. You can log in."}

    sent = await email_service.send_verification_email(
        to_email=user.email,
        user_name=None,
        verification_token=create_email_verification_token(user.id, user.email),
    )
    if not sent:
        logger.warning(f"[Auth] Failed to resend verification email to {user.email}")

    return generic


@router.post("/forgot-password", response_model=MessageResponse)
@auth_rate_limit()
async def forgot_password(
    request: Request,
    payload_in: EmailRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db)
):
    """Email a one-time password reset link"""
    result = await db.execute(select(User).where(func.lower(User.email) == payload_in.email.lower()))
    user = result.scalar_one_or_none()

    if not user or not user.is_active:
        return {"success": True, "message": GENERIC_RESET_MESSAGE}

    if not user.hashed_password:
        provider = user.provider.value
        return {
            "success": False,
            "message": f"This account uses {provider} for login. Please use the {provider.title()} sign in.",
        }

    token, token_hash, expires_at = generate_reset_token()
    user.reset_token_hash = token_hash
    user.reset_token_expires = expires_at
    await db.commit()

    background_tasks.add_task(
        email_service.send_password_reset_email,
        to_email=user.email,
        user_name=None,
        reset_token=token,
    )
    logger.log_auth_event(event="password_reset_requested", success=True, user_email=user.email)

    return {"success": True, "message": GENERIC_RESET_MESSAGE}


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    payload_in: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    """Reset password using the token from the forgot-password email"""
    result = await db.execute(
        select(User).where(User.reset_token_hash == hash_token(payload_in.token))
    )
    user = result.scalar_one_or_none()

    if not user or not user.reset_token_expires or user.reset_token_expires < datetime.utcnow():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset token"
        )

    user.hashed_password = get_password_hash(payload_in.new_password)
    user.reset_token_hash = None
    user.reset_token_expires = None
    await db.commit()

    logger.log_auth_event(event="password_reset", success=True, user_email=user.email)

    return {
        "success": True,
        "message": "Password has been reset successfully. You can now login with your new password."
    }
