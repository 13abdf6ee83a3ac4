"""
Institute Records Import Service

Reads the registrar's Excel sheets (RollNo, StudentName, DOB, Email, Contact,
BranchCurrent, BatchYear) and upserts them into institute_records, keyed by
roll number. Re-running an import over the same sheet updates rows in place.
"""
import io
import re
import zipfile
from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font
from openpyxl.utils.datetime import from_excel
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_portal.core.config import settings
from alumni_portal.core.exceptions import ImportFileError
from alumni_portal.core.logging_config import logger
from alumni_portal.core.types import generate_uuid
from alumni_portal.models.institute_record import InstituteRecord


TEMPLATE_COLUMNS = ["RollNo", "StudentName", "DOB", "Email", "Contact", "BranchCurrent", "BatchYear"]

# Normalized header -> record field
HEADER_ALIASES = {
    "rollno": "roll_number",
    "rollnumber": "roll_number",
    "studentname": "full_name",
    "name": "full_name",
    "fullname": "full_name",
    "dob": "date_of_birth",
    "dateofbirth": "date_of_birth",
    "email": "institute_email",
    "instituteemail": "institute_email",
    "contact": "contact_number",
    "contactnumber": "contact_number",
    "phone": "contact_number",
    "branchcurrent": "branch",
    "branch": "branch",
    "batchyear": "enrollment_year",
    "enrollmentyear": "enrollment_year",
}

DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y")

BRANCH_ACRONYMS = {
    "CSE": "Computer Science & Engineering",
    "CS": "Computer Science & Engineering",
    "ECE": "Electronics & Communication Engineering",
    "EC": "Electronics & Communication Engineering",
    "EE": "Electrical Engineering",
    "ME": "Mechanical Engineering",
    "CE": "Civil Engineering",
    "IT": "Information Technology",
    "DSAI": "Data Science & Artificial Intelligence",
    "DS": "Data Science & Artificial Intelligence",
    "AI": "Data Science & Artificial Intelligence",
}

# Checked in order against the upper-cased branch text
BRANCH_NAMES = [
    ("COMPUTER SCIENCE", "Computer Science & Engineering"),
    ("INFORMATION TECHNOLOGY", "Information Technology"),
    ("DATA SCIENCE", "Data Science & Artificial Intelligence"),
    ("ARTIFICIAL INTELLIGENCE", "Data Science & Artificial Intelligence"),
    ("ELECTRICAL", "Electrical Engineering"),
    ("ELECTRONICS", "Electronics & Communication Engineering"),
    ("MECHANICAL", "Mechanical Engineering"),
    ("CIVIL", "Civil Engineering"),
]

SAMPLE_ROWS = [
    ["19115001", "Rahul Kumar Sharma", "15/08/2001", "19115001@iiitnr.edu.in", "9876543210", "CSE", 2019],
    ["19115002", "Priya Singh", "22/11/2001", "19115002@iiitnr.edu.in", "9876543211",
     "Computer Science & Engineering", 2019],
    ["19125001", "Amit Patel", "10/05/2001", "", "9876543212", "ECE", 2019],
    ["19125002", "Sneha Gupta", "28/09/2001", "19125002@iiitnr.edu.in", "9876543213",
     "Electronics & Communication Engineering", 2019],
    ["18115001", "Vikram Reddy", "17/03/2000", "18115001@iiitnr.edu.in", "9876543214", "CSE", 2018],
    ["20115001", "Rohan Mehta", "14/07/2002", "20115001@iiitnr.edu.in", "9876543216", "DSAI", 2020],
]

_TOKEN_RE = re.compile(r"[^A-Z0-9]+")
_HEADER_RE = re.compile(r"[\s_]+")


@dataclass
class ImportSummary:
    """Outcome of an import run"""
    total: int = 0
    imported: int = 0
    skipped: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def parse_date(value: Any) -> Optional[str]:
    """
    Parse a spreadsheet date cell into an ISO date string.

    Accepts date/datetime cells, Excel serial numbers (1900 date system) and
    strings in YYYY-MM-DD, DD/MM/YYYY or DD-MM-YYYY form. Returns None for
    anything else.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if value <= 0:
            return None
        try:
            converted = from_excel(value)
        except (ValueError, OverflowError):
            return None
        if isinstance(converted, datetime):
            return converted.date().isoformat()
        return None

    if isinstance(value, str):
        text = value.strip()
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt).date().isoformat()
            except ValueError:
                continue

    return None


def normalize_branch(branch: Optional[str]) -> Optional[str]:
    """
    Map a branch acronym or name onto the department's canonical name.

    "CSE", "B.Tech CSE" and "computer science" all give
    "Computer Science & Engineering". Unknown text is returned trimmed.
    """
    if branch is None:
        return None
    cleaned = str(branch).strip()
    if not cleaned:
        return None

    upper = cleaned.upper()
    if upper in BRANCH_ACRONYMS:
        return BRANCH_ACRONYMS[upper]

    for token in _TOKEN_RE.split(upper):
        if token in BRANCH_ACRONYMS:
            return BRANCH_ACRONYMS[token]

    for needle, canonical in BRANCH_NAMES:
        if needle in upper:
            return canonical

    return cleaned


def extract_degree(branch: Optional[str]) -> str:
    """Degree implied by the branch text, B.Tech unless it says otherwise"""
    text = (branch or "").upper()
    if "M.TECH" in text or "MTECH" in text:
        return "M.Tech"
    if "PHD" in text or "PH.D" in text:
        return "PhD"
    return "B.Tech"


def generate_institute_email(roll_number: Optional[str]) -> Optional[str]:
    if not roll_number:
        return None
    return f"{roll_number}@{settings.INSTITUTE_EMAIL_DOMAIN}".lower()


def _cell_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    # Numeric roll numbers come back from Excel as floats
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _parse_year(value: Any) -> Optional[int]:
    text = _cell_text(value)
    if not text:
        return None
    try:
        return int(float(text))
    except ValueError:
        return None


def _canonical_row(row: Dict[str, Any]) -> Dict[str, Any]:
    canonical: Dict[str, Any] = {}
    for header, value in row.items():
        if header is None:
            continue
        key = HEADER_ALIASES.get(_HEADER_RE.sub("", str(header)).lower())
        if key and key not in canonical:
            canonical[key] = value
    return canonical


def parse_row(row: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Turn one spreadsheet row into an institute_records payload.

    Returns None when the row lacks a roll number, a name or a parseable
    date of birth.
    """
    data = _canonical_row(row)

    roll_number = _cell_text(data.get("roll_number"))
    full_name = _cell_text(data.get("full_name"))
    dob = parse_date(data.get("date_of_birth"))

    if not roll_number or not full_name or not dob:
        return None

    email = _cell_text(data.get("institute_email"))
    branch_raw = _cell_text(data.get("branch"))

    return {
        "roll_number": roll_number,
        "full_name": full_name,
        "date_of_birth": dob,
        "enrollment_year": _parse_year(data.get("enrollment_year")),
        "degree": extract_degree(branch_raw),
        "branch": normalize_branch(branch_raw),
        "institute_email": email.lower() if email else generate_institute_email(roll_number),
        "contact_number": _cell_text(data.get("contact_number")),
        "is_active": True,
    }


def read_workbook(source: Union[str, Path, bytes]) -> List[Dict[str, Any]]:
    """
    Read the first worksheet into a list of dicts keyed by the header row.

    Fully blank rows are dropped. Raises ImportFileError when the file is not
    a readable .xlsx workbook.
    """
    handle = io.BytesIO(source) if isinstance(source, (bytes, bytearray)) else source
    try:
        workbook = load_workbook(handle, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        raise ImportFileError(f"Could not read Excel file: {e}")

    try:
        sheet = workbook.worksheets[0]
        rows = sheet.iter_rows(values_only=True)
        header = next(rows, None)
        if not header:
            return []
        keys = [str(cell).strip() if cell is not None else None for cell in header]

        records = []
        for values in rows:
            if all(v is None or (isinstance(v, str) and not v.strip()) for v in values):
                continue
            records.append({key: value for key, value in zip(keys, values) if key})
        return records
    finally:
        workbook.close()


def _insert_for(session: AsyncSession):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise ImportFileError(f"Upsert is not supported on the '{dialect}' database dialect")


async def upsert_institute_record(session: AsyncSession, record: Dict[str, Any]) -> None:
    """INSERT ... ON CONFLICT (roll_number) DO UPDATE for a parsed record"""
    values = dict(record)
    if isinstance(values.get("date_of_birth"), str):
        values["date_of_birth"] = date.fromisoformat(values["date_of_birth"])

    now = datetime.utcnow()
    insert = _insert_for(session)
    stmt = insert(InstituteRecord).values(
        id=generate_uuid(),
        created_at=now,
        updated_at=now,
        **values,
    )
    update_columns = {
        key: getattr(stmt.excluded, key)
        for key in values
        if key != "roll_number"
    }
    update_columns["updated_at"] = now
    stmt = stmt.on_conflict_do_update(index_elements=["roll_number"], set_=update_columns)
    await session.execute(stmt)


async def import_institute_records(
    session: AsyncSession,
    rows: Iterable[Dict[str, Any]],
    source: str = "upload",
    dry_run: bool = False,
) -> ImportSummary:
    """
    Import parsed spreadsheet rows.

    Every row is written inside its own savepoint, so a failing row is
    recorded in the summary and the rest of the batch still goes through.
    The caller commits. With dry_run the rows are only validated.
    """
    summary = ImportSummary()

    for index, row in enumerate(rows):
        summary.total += 1
        # Spreadsheet row number; row 1 is the header
        row_number = index + 2

        record = parse_row(row)
        if record is None:
            summary.skipped += 1
            logger.debug(f"Row {row_number}: missing required fields, skipped")
            continue

        if dry_run:
            summary.imported += 1
            continue

        try:
            async with session.begin_nested():
                await upsert_institute_record(session, record)
            summary.imported += 1
        except (SQLAlchemyError, ValueError) as e:
            summary.failed += 1
            summary.errors.append(f"Row {row_number} ({record['roll_number']}): {e}")

    logger.log_import_event(
        source,
        total=summary.total,
        imported=summary.imported,
        skipped=summary.skipped,
        failed=summary.failed,
        dry_run=dry_run,
    )
    return summary


def build_template_workbook() -> bytes:
    """Sample import workbook with the expected headers and example rows"""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Institute Records"
    sheet.append(TEMPLATE_COLUMNS)
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for row in SAMPLE_ROWS:
        sheet.append(row)

    for column, width in zip("ABCDEFG", (12, 25, 12, 30, 15, 40, 10)):
        sheet.column_dimensions[column].width = width

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
