"""
Admin endpoints for institute records: listing, Excel import and template download.
"""
import asyncio

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy import select, func, or_
from typing import Optional

from alumni_portal.core.config import settings
from alumni_portal.core.database import get_db
from alumni_portal.core.exceptions import FileTooLargeError, InvalidFileTypeError
from alumni_portal.core.logging_config import logger
from alumni_portal.api.deps import get_current_admin
from alumni_portal.models.institute_record import InstituteRecord
from alumni_portal.models.user import User
from alumni_portal.schemas.admin import (
    InstituteRecordResponse,
    InstituteRecordsResponse,
    ImportSummaryResponse,
    InstituteRecordStats,
)
from alumni_portal.services.institute_import import (
    read_workbook,
    import_institute_records,
    build_template_workbook,
)
from alumni_portal.utils.pagination import paginate

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
TEMPLATE_FILENAME = "institute_records_template.xlsx"


def record_response(record: InstituteRecord) -> InstituteRecordResponse:
    response = InstituteRecordResponse.model_validate(record)
    if record.users:
        response.linked_user_email = record.users[0].email
    return response


@router.get("", response_model=InstituteRecordsResponse)
async def list_institute_records(
    search: Optional[str] = Query(None, description="Roll number, name or email"),
    branch: Optional[str] = None,
    year: Optional[int] = Query(None, description="Enrollment year"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    query = select(InstituteRecord).options(selectinload(InstituteRecord.users))

    if search:
        search_term = f"%{search.strip()}%"
        query = query.where(or_(
            InstituteRecord.roll_number.ilike(search_term),
            InstituteRecord.full_name.ilike(search_term),
            InstituteRecord.institute_email.ilike(search_term),
        ))
    if branch:
        query = query.where(InstituteRecord.branch.ilike(f"%{branch.strip()}%"))
    if year:
        query = query.where(InstituteRecord.enrollment_year == year)

    query = query.order_by(InstituteRecord.roll_number.asc())

    result = await paginate(db, query, page, page_size)
    result["items"] = [record_response(record) for record in result["items"]]
    return result


@router.post("/import", response_model=ImportSummaryResponse)
async def import_records(
    file: UploadFile = File(..., description="Excel workbook (.xlsx)"),
    dry_run: bool = Query(False, description="Validate rows without writing them"),
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Upsert institute records from an uploaded workbook"""
    filename = (file.filename or "").lower()
    if not filename.endswith(".xlsx"):
        raise InvalidFileTypeError("Only .xlsx workbooks are accepted", [".xlsx"])

    content = await file.read()
    if len(content) > settings.MAX_IMPORT_FILE_SIZE:
        raise FileTooLargeError(settings.MAX_IMPORT_FILE_SIZE)
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")

    loop = asyncio.get_running_loop()
    rows = await loop.run_in_executor(None, read_workbook, content)
    summary = await import_institute_records(db, rows, source=file.filename, dry_run=dry_run)
    if not dry_run:
        await db.commit()

    logger.log_admin_action(
        "import_institute_records", current_admin.email, target=file.filename,
        imported=summary.imported, failed=summary.failed,
    )
    return summary.to_dict()


@router.get("/template")
async def download_template(current_admin: User = Depends(get_current_admin)):
    """Sample workbook with the expected columns"""
    content = await asyncio.get_running_loop().run_in_executor(None, build_template_workbook)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"'},
    )


@router.get("/stats", response_model=InstituteRecordStats)
async def institute_record_stats(
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    total = await db.scalar(select(func.count(InstituteRecord.id))) or 0
    active = await db.scalar(
        select(func.count(InstituteRecord.id)).where(InstituteRecord.is_active.is_(True))
    ) or 0
    linked = await db.scalar(
        select(func.count(func.distinct(User.institute_record_id)))
        .where(User.institute_record_id.isnot(None))
    ) or 0

    branch_rows = await db.execute(
        select(InstituteRecord.branch, func.count(InstituteRecord.id))
        .group_by(InstituteRecord.branch)
        .order_by(func.count(InstituteRecord.id).desc())
    )
    year_rows = await db.execute(
        select(InstituteRecord.enrollment_year, func.count(InstituteRecord.id))
        .group_by(InstituteRecord.enrollment_year)
        .order_by(InstituteRecord.enrollment_year)
    )

    return {
        "total_records": total,
        "active_records": active,
        "linked_records": linked,
        "unlinked_records": total - linked,
        "by_branch": {branch or "Unknown": count for branch, count in branch_rows.all()},
        "by_enrollment_year": {str(year) if year else "Unknown": count for year, count in year_rows.all()},
    }
