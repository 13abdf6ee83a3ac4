from datetime import datetime, timedelta
from typing import Optional, Dict, Any, Tuple
from jose import JWTError, ExpiredSignatureError, jwt
import bcrypt
import hashlib
import secrets
from fastapi import HTTPException, status

from alumni_portal.core.config import settings


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password"""
    if not hashed_password:
        return False
    # Bcrypt has a 72 byte limit - truncate password if necessary
    password_bytes = plain_password.encode('utf-8')[:72]
    return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))


def get_password_hash(password: str) -> str:
    """Hash password with configurable rounds (BCRYPT_ROUNDS in .env)"""
    password_bytes = password.encode('utf-8')[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS))
    return hashed.decode('utf-8')


def _encode(data: Dict[str, Any], token_type: str, expire: datetime) -> str:
    to_encode = data.copy()
    to_encode.update({"exp": expire, "type": token_type})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(data, "access", expire)


def create_refresh_token(data: Dict[str, Any]) -> str:
    """Create JWT refresh token"""
    expire = datetime.utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return _encode(data, "refresh", expire)


def create_email_verification_token(user_id: str, email: str) -> str:
    """Create the signed token mailed out for email verification"""
    expire = datetime.utcnow() + timedelta(hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS)
    return _encode({"sub": str(user_id), "email": email}, "email_verification", expire)


def create_token_pair(user) -> Dict[str, str]:
    """Issue access + refresh tokens for a user row"""
    token_data = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role.value if hasattr(user.role, "value") else user.role,
    }
    return {
        "access_token": create_access_token(token_data),
        "refresh_token": create_refresh_token({"sub": str(user.id)}),
        "token_type": "bearer",
    }


def decode_token(token: str) -> Dict[str, Any]:
    """Decode JWT token"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        return payload
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


def hash_token(token: str) -> str:
    """SHA-256 digest used to store one-time tokens"""
    return hashlib.sha256(token.encode()).hexdigest()


def generate_reset_token() -> Tuple[str, str, datetime]:
    """
    Generate a password reset token.

    Returns (plain_token, token_hash, expires_at). Only the hash is stored;
    the plain token goes into the emailed link.
    """
    token = secrets.token_urlsafe(32)
    expires_at = datetime.utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
    return token, hash_token(token), expires_at
