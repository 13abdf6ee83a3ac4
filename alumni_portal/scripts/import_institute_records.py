#!/usr/bin/env python3
"""
Import institute records from an Excel workbook.

Rows are upserted on roll number, so the same workbook can be imported
again after corrections.

Usage:
    python -m alumni_portal.scripts.import_institute_records records.xlsx
    python -m alumni_portal.scripts.import_institute_records records.xlsx --dry-run
"""

import argparse
from pathlib import Path
from typing import List, Optional

from alumni_portal.core.database import AsyncSessionLocal
from alumni_portal.core.exceptions import ImportFileError
from alumni_portal.core.logging_config import logger
from alumni_portal.services.institute_import import ImportSummary, read_workbook, import_institute_records
from alumni_portal.scripts import run_script

MAX_ERRORS_SHOWN = 20


def print_summary(summary: ImportSummary, dry_run: bool) -> None:
    print("\n" + "=" * 50)
    print("  Import Summary" + (" (dry run, nothing written)" if dry_run else ""))
    print("=" * 50)
    print(f"  Total rows:  {summary.total}")
    print(f"  Imported:    {summary.imported}")
    print(f"  Skipped:     {summary.skipped}")
    print(f"  Failed:      {summary.failed}")

    if summary.errors:
        print("\n  Errors:")
        for error in summary.errors[:MAX_ERRORS_SHOWN]:
            print(f"    - {error}")
        if len(summary.errors) > MAX_ERRORS_SHOWN:
            print(f"    ... and {len(summary.errors) - MAX_ERRORS_SHOWN} more")


async def run(path: Path, dry_run: bool = False) -> int:
    if not path.exists():
        print(f"[Import] ERROR: File not found: {path}")
        return 1

    print(f"[Import] Reading {path}...")
    try:
        rows = read_workbook(path)
    except ImportFileError as e:
        print(f"[Import] ERROR: {e.message}")
        return 1
    print(f"[Import] Found {len(rows)} data rows")

    try:
        async with AsyncSessionLocal() as session:
            summary = await import_institute_records(session, rows, source=path.name, dry_run=dry_run)
            if not dry_run:
                await session.commit()
    except Exception as e:
        logger.log_error_with_context(e, context="import_institute_records")
        print(f"[Import] FAILED: {e}")
        return 1

    print_summary(summary, dry_run)
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Import institute records from an Excel workbook")
    parser.add_argument("file", type=Path, help="Path to the .xlsx workbook")
    parser.add_argument("--dry-run", action="store_true", help="Validate rows without writing them")
    args = parser.parse_args(argv)

    run_script(run(args.file, dry_run=args.dry_run))


if __name__ == "__main__":
    main()
