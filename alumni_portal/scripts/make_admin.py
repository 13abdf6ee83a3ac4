#!/usr/bin/env python3
"""
Promote a user to admin, creating the account when it does not exist.

Usage:
    python -m alumni_portal.scripts.make_admin admin@iiitnr.edu.in
    python -m alumni_portal.scripts.make_admin someone@example.com --password 's3cret-pass'
"""

import argparse
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_portal.core.config import settings
from alumni_portal.core.database import AsyncSessionLocal
from alumni_portal.core.security import get_password_hash
from alumni_portal.models import User, UserRole, AlumniProfile
from alumni_portal.scripts import run_script


async def ensure_admin(session: AsyncSession, email: str, password: Optional[str] = None) -> Tuple[User, bool]:
    """
    Give ``email`` the admin role. Returns (user, created).

    An existing account keeps its password unless one is passed; a new
    account gets ``password`` or DEFAULT_ADMIN_PASSWORD.
    """
    email = email.strip().lower()
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    created = user is None

    if created:
        user = User(
            email=email,
            hashed_password=get_password_hash(password or settings.DEFAULT_ADMIN_PASSWORD),
            role=UserRole.ADMIN,
        )
        session.add(user)
        await session.flush()
        session.add(AlumniProfile(user_id=user.id, first_name="Portal", last_name="Admin"))
    else:
        user.role = UserRole.ADMIN
        if password:
            user.hashed_password = get_password_hash(password)

    user.is_approved = True
    user.is_active = True
    user.email_verified = True
    user.onboarding_completed = True
    return user, created


async def run(email: str, password: Optional[str] = None) -> int:
    print(f"[MakeAdmin] Checking if user {email} exists...")
    async with AsyncSessionLocal() as session:
        user, created = await ensure_admin(session, email, password)
        await session.commit()

    if created:
        print("[MakeAdmin] Created new admin user")
        if not password:
            print("[MakeAdmin] Password: DEFAULT_ADMIN_PASSWORD from settings, change it after first login")
    else:
        print("[MakeAdmin] Updated existing user to admin")

    print(f"  Email:    {user.email}")
    print(f"  Role:     {user.role.value}")
    print(f"  Approved: {user.is_approved}")
    print(f"  Active:   {user.is_active}")
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Promote or create an admin user")
    parser.add_argument("email", help="Account email")
    parser.add_argument("--password", help="Set this password (required to change an existing password)")
    args = parser.parse_args(argv)

    if args.password is not None and len(args.password) < 8:
        parser.error("password must be at least 8 characters")

    run_script(run(args.email, args.password))


if __name__ == "__main__":
    main()
