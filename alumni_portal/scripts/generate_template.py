#!/usr/bin/env python3
"""
Write a sample institute records workbook with the expected columns.

Usage:
    python -m alumni_portal.scripts.generate_template
    python -m alumni_portal.scripts.generate_template records_template.xlsx
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from alumni_portal.services.institute_import import TEMPLATE_COLUMNS, SAMPLE_ROWS, build_template_workbook

DEFAULT_OUTPUT = "institute_records_template.xlsx"


def write_template(output: Path) -> Path:
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(build_template_workbook())
    return output


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Generate the institute records import template")
    parser.add_argument("output", nargs="?", default=DEFAULT_OUTPUT, type=Path, help="Output .xlsx path")
    args = parser.parse_args(argv)

    try:
        path = write_template(args.output)
    except OSError as e:
        print(f"[Template] ERROR: Could not write {args.output}: {e}")
        sys.exit(1)

    print(f"[Template] Template created: {path}")
    print(f"[Template] Columns: {', '.join(TEMPLATE_COLUMNS)}")
    print(f"[Template] {len(SAMPLE_ROWS)} sample rows included, replace them with real data")


if __name__ == "__main__":
    main()
