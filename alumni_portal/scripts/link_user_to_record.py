#!/usr/bin/env python3
"""
Link an existing account to an institute record, so the profile can be
pre-filled from the official data.

Usage:
    python -m alumni_portal.scripts.link_user_to_record user@gmail.com 21101001
    python -m alumni_portal.scripts.link_user_to_record user@gmail.com 21101001 --yes
"""

import argparse
from typing import List, Optional

from sqlalchemy import select, func

from alumni_portal.core.database import AsyncSessionLocal
from alumni_portal.models import User, InstituteRecord, RegistrationPath
from alumni_portal.scripts import run_script


async def run(email: str, roll_number: str, assume_yes: bool = False) -> int:
    async with AsyncSessionLocal() as session:
        result = await session.execute(select(User).where(func.lower(User.email) == email.strip().lower()))
        user = result.scalar_one_or_none()
        if not user:
            print(f"[Link] ERROR: User not found: {email}")
            return 1

        result = await session.execute(
            select(InstituteRecord).where(InstituteRecord.roll_number == roll_number.strip())
        )
        record = result.scalar_one_or_none()
        if not record:
            print(f"[Link] ERROR: Institute record not found: {roll_number}")
            return 1

        result = await session.execute(
            select(User).where(User.institute_record_id == record.id, User.id != user.id)
        )
        other = result.scalars().first()
        if other:
            print(f"[Link] ERROR: {record.roll_number} is already linked to {other.email}")
            return 1

        print("\nWill link:")
        print(f"  User: {user.email} (ID: {user.id})")
        print(f"  To:   {record.full_name} ({record.roll_number}, {record.branch or '-'}, {record.enrollment_year or '-'})\n")

        if not assume_yes:
            answer = input("Confirm? (yes/no): ")
            if answer.strip().lower() not in ("yes", "y"):
                print("[Link] Cancelled")
                return 1

        user.institute_record_id = record.id
        user.registration_path = RegistrationPath.PERSONAL_EMAIL
        await session.commit()

    print("[Link] User linked successfully")
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Link a user account to an institute record")
    parser.add_argument("email", help="Account email")
    parser.add_argument("roll_number", help="Institute roll number")
    parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    args = parser.parse_args(argv)

    run_script(run(args.email, args.roll_number, assume_yes=args.yes))


if __name__ == "__main__":
    main()
