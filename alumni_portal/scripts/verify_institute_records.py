#!/usr/bin/env python3
"""
Report on imported institute records and the accounts linked to them.

Usage:
    python -m alumni_portal.scripts.verify_institute_records
"""

import argparse
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_portal.core.database import AsyncSessionLocal
from alumni_portal.models import User, InstituteRecord, RegistrationPath
from alumni_portal.scripts import run_script


async def collect_report(session: AsyncSession) -> Dict[str, Any]:
    """Counts by branch and year, linked accounts and inconsistent links"""
    total = await session.scalar(select(func.count(InstituteRecord.id))) or 0
    inactive = await session.scalar(
        select(func.count(InstituteRecord.id)).where(InstituteRecord.is_active.is_(False))
    ) or 0

    by_branch = await session.execute(
        select(InstituteRecord.branch, func.count(InstituteRecord.id))
        .group_by(InstituteRecord.branch)
        .order_by(InstituteRecord.branch)
    )
    by_year = await session.execute(
        select(InstituteRecord.enrollment_year, func.count(InstituteRecord.id))
        .group_by(InstituteRecord.enrollment_year)
        .order_by(InstituteRecord.enrollment_year)
    )

    linked = await session.execute(
        select(User.email, InstituteRecord.roll_number, InstituteRecord.is_active)
        .join(InstituteRecord, InstituteRecord.id == User.institute_record_id)
        .order_by(InstituteRecord.roll_number)
    )
    linked_rows = linked.all()

    # personal-email accounts are verified through a record; without one they are orphans
    orphans = await session.execute(
        select(User.email)
        .where(
            User.registration_path == RegistrationPath.PERSONAL_EMAIL,
            User.institute_record_id.is_(None),
        )
        .order_by(User.email)
    )

    shared = await session.execute(
        select(InstituteRecord.roll_number, func.count(User.id))
        .join(User, User.institute_record_id == InstituteRecord.id)
        .group_by(InstituteRecord.roll_number)
        .having(func.count(User.id) > 1)
    )

    return {
        "total": total,
        "inactive": inactive,
        "by_branch": [(branch or "Unknown", count) for branch, count in by_branch.all()],
        "by_year": [(year or "Unknown", count) for year, count in by_year.all()],
        "linked": [(email, roll) for email, roll, _ in linked_rows],
        "linked_to_inactive": [(email, roll) for email, roll, active in linked_rows if not active],
        "orphans": list(orphans.scalars().all()),
        "shared_records": shared.all(),
    }


def print_report(report: Dict[str, Any]) -> None:
    print("=" * 50)
    print("  Institute Records Verification")
    print("=" * 50)
    print(f"Total records: {report['total']} ({report['inactive']} inactive)")

    print("\nBy branch:")
    for branch, count in report["by_branch"]:
        print(f"  {branch}: {count}")

    print("\nBy enrollment year:")
    for year, count in report["by_year"]:
        print(f"  {year}: {count}")

    print(f"\nLinked accounts: {len(report['linked'])}")
    for email, roll in report["linked"]:
        print(f"  {roll} -> {email}")

    if report["linked_to_inactive"]:
        print("\nWARNING: accounts linked to inactive records:")
        for email, roll in report["linked_to_inactive"]:
            print(f"  {roll} -> {email}")

    if report["orphans"]:
        print("\nWARNING: personal-email accounts without a record:")
        for email in report["orphans"]:
            print(f"  {email}")

    if report["shared_records"]:
        print("\nWARNING: records linked to more than one account:")
        for roll, count in report["shared_records"]:
            print(f"  {roll}: {count} accounts")


async def run() -> int:
    async with AsyncSessionLocal() as session:
        report = await collect_report(session)
    print_report(report)
    problems = report["orphans"] or report["shared_records"] or report["linked_to_inactive"]
    return 1 if problems else 0


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Verify imported institute records")
    parser.parse_args(argv)
    run_script(run())


if __name__ == "__main__":
    main()
