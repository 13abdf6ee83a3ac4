#!/usr/bin/env python3
"""
Database management for the alumni portal.

Commands:
    migrate   Create any missing tables
    reset     Drop and recreate every table (asks for confirmation unless --yes)
    seed      Create the default admin account
    setup     migrate + seed
    status    Show tables and row counts

Usage:
    python -m alumni_portal.scripts.manage_db setup
    python -m alumni_portal.scripts.manage_db reset --yes
"""

import argparse
from typing import List, Optional

from sqlalchemy import inspect, select, func

from alumni_portal.core.config import settings
from alumni_portal.core.database import AsyncSessionLocal, Base, get_engine, init_db, drop_db
from alumni_portal.scripts import run_script
from alumni_portal.scripts.make_admin import ensure_admin

COMMANDS = ("migrate", "reset", "seed", "setup", "status")


def _database_label() -> str:
    url = settings.DATABASE_URL
    return url.split("@")[1] if "@" in url else url


async def migrate() -> None:
    print("[ManageDB] Creating/verifying database tables...")
    await init_db()
    print("[ManageDB] Database tables created/verified!")


async def reset() -> None:
    print("[ManageDB] Dropping all tables...")
    await drop_db()
    await migrate()


async def seed() -> None:
    print("[ManageDB] Seeding initial data...")
    async with AsyncSessionLocal() as session:
        user, created = await ensure_admin(session, settings.DEFAULT_ADMIN_EMAIL)
        await session.commit()

    if created:
        print(f"[ManageDB] Admin user created (email: {user.email})")
    else:
        print(f"[ManageDB] Admin user already exists ({user.email})")


async def show_status() -> None:
    async with get_engine().connect() as conn:
        tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())

    print(f"[ManageDB] Total tables: {len(tables)}")
    async with AsyncSessionLocal() as session:
        for table in Base.metadata.sorted_tables:
            if table.name not in tables:
                print(f"  - {table.name} (missing)")
                continue
            count = await session.scalar(select(func.count()).select_from(table))
            print(f"  - {table.name}: {count} rows")


async def run(command: str, assume_yes: bool = False) -> int:
    print("=" * 50)
    print(f"  Alumni Portal - {command}")
    print(f"  Database: {_database_label()}")
    print("=" * 50)

    if command == "reset" and not assume_yes:
        answer = input("This deletes ALL data. Type 'yes' to continue: ")
        if answer.strip().lower() not in ("yes", "y"):
            print("[ManageDB] Cancelled")
            return 1

    if command == "migrate":
        await migrate()
    elif command == "reset":
        await reset()
    elif command == "seed":
        await seed()
    elif command == "setup":
        await migrate()
        await seed()
    elif command == "status":
        await show_status()

    print("[ManageDB] Done")
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Alumni portal database management")
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("--yes", action="store_true", help="Skip the reset confirmation")
    args = parser.parse_args(argv)

    run_script(run(args.command, assume_yes=args.yes))


if __name__ == "__main__":
    main()
