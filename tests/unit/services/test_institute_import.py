"""
Unit Tests for the institute records import service
Tests for: cell parsing, branch mapping, workbook reading, upsert
"""
import io
import pytest
from datetime import date, datetime
from openpyxl import Workbook, load_workbook
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from alumni_portal.core.exceptions import ImportFileError
from alumni_portal.models import InstituteRecord
from alumni_portal.services import institute_import
from alumni_portal.services.institute_import import (
    TEMPLATE_COLUMNS,
    parse_date,
    normalize_branch,
    extract_degree,
    generate_institute_email,
    parse_row,
    read_workbook,
    import_institute_records,
    build_template_workbook,
)


def sheet_row(**overrides) -> dict:
    row = {
        'RollNo': '21115001',
        'StudentName': 'Asha Verma',
        'DOB': '14/05/2003',
        'Email': None,
        'Contact': '9123456780',
        'BranchCurrent': 'CSE',
        'BatchYear': 2021,
    }
    row.update(overrides)
    return row


class TestParseDate:

    def test_excel_serial_number(self):
        assert parse_date(45123) == '2023-07-16'
        assert parse_date(37755.0) == '2003-05-14'

    def test_string_formats(self):
        assert parse_date('2003-05-14') == '2003-05-14'
        assert parse_date('14/05/2003') == '2003-05-14'
        assert parse_date('14-05-2003') == '2003-05-14'
        assert parse_date('  14/05/2003 ') == '2003-05-14'

    def test_date_objects(self):
        assert parse_date(date(2003, 5, 14)) == '2003-05-14'
        assert parse_date(datetime(2003, 5, 14, 0, 0)) == '2003-05-14'

    def test_unparseable(self):
        assert parse_date(None) is None
        assert parse_date('') is None
        assert parse_date('sometime in May') is None
        assert parse_date('31/02/2003') is None
        assert parse_date(0) is None
        assert parse_date(-5) is None
        assert parse_date(True) is None


class TestBranchMapping:

    def test_acronyms(self):
        assert normalize_branch('CSE') == 'Computer Science & Engineering'
        assert normalize_branch('ece') == 'Electronics & Communication Engineering'
        assert normalize_branch('DSAI') == 'Data Science & Artificial Intelligence'

    def test_acronym_inside_text(self):
        assert normalize_branch('B.Tech CSE') == 'Computer Science & Engineering'
        assert normalize_branch('M.Tech (IT)') == 'Information Technology'

    def test_long_names(self):
        assert normalize_branch('Computer Science and Engineering') == 'Computer Science & Engineering'
        assert normalize_branch('electronics & communication') == 'Electronics & Communication Engineering'
        assert normalize_branch('Electrical and Electronics') == 'Electrical Engineering'

    def test_unknown_kept(self):
        assert normalize_branch('  Biotechnology ') == 'Biotechnology'
        assert normalize_branch(None) is None
        assert normalize_branch('   ') is None

    def test_extract_degree(self):
        assert extract_degree('M.Tech CSE') == 'M.Tech'
        assert extract_degree('PhD Electronics') == 'PhD'
        assert extract_degree('CSE') == 'B.Tech'
        assert extract_degree(None) == 'B.Tech'


class TestParseRow:

    def test_full_row(self):
        record = parse_row(sheet_row())

        assert record == {
            'roll_number': '21115001',
            'full_name': 'Asha Verma',
            'date_of_birth': '2003-05-14',
            'enrollment_year': 2021,
            'degree': 'B.Tech',
            'branch': 'Computer Science & Engineering',
            'institute_email': '21115001@iiitnr.edu.in',
            'contact_number': '9123456780',
            'is_active': True,
        }

    def test_numeric_cells(self):
        """Excel hands back numbers as floats"""
        record = parse_row(sheet_row(RollNo=21115001.0, Contact=9123456780.0, BatchYear='2021'))

        assert record['roll_number'] == '21115001'
        assert record['contact_number'] == '9123456780'
        assert record['enrollment_year'] == 2021

    def test_header_aliases(self):
        record = parse_row({
            'Roll Number': '21115001',
            'name': 'Asha Verma',
            'date_of_birth': '2003-05-14',
            'Branch': 'IT',
            'Email': 'Asha.Verma@IIITNR.edu.in',
        })

        assert record['roll_number'] == '21115001'
        assert record['branch'] == 'Information Technology'
        assert record['institute_email'] == 'asha.verma@iiitnr.edu.in'
        assert record['enrollment_year'] is None

    def test_missing_required_fields(self):
        assert parse_row(sheet_row(RollNo=None)) is None
        assert parse_row(sheet_row(StudentName='  ')) is None
        assert parse_row(sheet_row(DOB='not a date')) is None

    def test_generate_email(self):
        assert generate_institute_email('21115001') == '21115001@iiitnr.edu.in'
        assert generate_institute_email(None) is None


def workbook_bytes(rows, header=TEMPLATE_COLUMNS) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(header)
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


class TestReadWorkbook:

    def test_reads_rows_keyed_by_header(self):
        content = workbook_bytes([
            ['21115001', 'Asha Verma', '14/05/2003', None, None, 'CSE', 2021],
            [None, None, None, None, None, None, None],
            ['21115002', 'Dev Mishra', '09/01/2003', None, None, 'ECE', 2021],
        ])

        rows = read_workbook(content)

        assert len(rows) == 2
        assert rows[0]['StudentName'] == 'Asha Verma'
        assert rows[1]['RollNo'] == '21115002'

    def test_reads_from_path(self, tmp_path):
        path = tmp_path / 'records.xlsx'
        path.write_bytes(workbook_bytes([['21115001', 'Asha Verma', '14/05/2003', None, None, 'CSE', 2021]]))

        assert len(read_workbook(path)) == 1

    def test_empty_sheet(self):
        buffer = io.BytesIO()
        Workbook().save(buffer)

        assert read_workbook(buffer.getvalue()) == []

    def test_not_a_workbook(self):
        with pytest.raises(ImportFileError):
            read_workbook(b'plain text, not xlsx')

    def test_template(self):
        sheet = load_workbook(io.BytesIO(build_template_workbook())).active

        assert [cell.value for cell in sheet[1]] == TEMPLATE_COLUMNS
        rows = read_workbook(build_template_workbook())
        assert all(parse_row(row) is not None for row in rows)


class TestImportRecords:

    @pytest.mark.asyncio
    async def test_import_is_idempotent(self, db_session):
        rows = [sheet_row(), sheet_row(RollNo='21115002', StudentName='Dev Mishra')]

        first = await import_institute_records(db_session, rows)
        await db_session.commit()
        second = await import_institute_records(db_session, [sheet_row(StudentName='Asha K Verma')])
        await db_session.commit()

        assert first.imported == 2
        assert second.imported == 1
        result = await db_session.execute(
            select(InstituteRecord)
            .order_by(InstituteRecord.roll_number)
            .execution_options(populate_existing=True)
        )
        records = result.scalars().all()
        assert [r.roll_number for r in records] == ['21115001', '21115002']
        assert records[0].full_name == 'Asha K Verma'
        assert records[0].date_of_birth == date(2003, 5, 14)

    @pytest.mark.asyncio
    async def test_summary_counts(self, db_session):
        rows = [sheet_row(), sheet_row(RollNo=None), sheet_row(RollNo='21115009', DOB='bad')]

        summary = await import_institute_records(db_session, rows)

        assert summary.to_dict() == {'total': 3, 'imported': 1, 'skipped': 2, 'failed': 0, 'errors': []}

    @pytest.mark.asyncio
    async def test_dry_run(self, db_session):
        summary = await import_institute_records(db_session, [sheet_row()], dry_run=True)
        await db_session.commit()

        assert summary.imported == 1
        result = await db_session.execute(select(InstituteRecord))
        assert result.scalars().all() == []

    @pytest.mark.asyncio
    async def test_failing_row_rolled_back_alone(self, db_session, monkeypatch):
        """A row that fails after writing is undone; the rest of the batch is kept"""
        real_upsert = institute_import.upsert_institute_record

        async def flaky_upsert(session, record):
            await real_upsert(session, record)
            if record['roll_number'] == '21115002':
                raise OperationalError('INSERT INTO institute_records', {}, Exception('disk I/O error'))

        monkeypatch.setattr(institute_import, 'upsert_institute_record', flaky_upsert)
        rows = [
            sheet_row(),
            sheet_row(RollNo='21115002', StudentName='Dev Mishra'),
            sheet_row(RollNo='21115003', StudentName='Kavya Nair'),
        ]

        summary = await import_institute_records(db_session, rows)
        await db_session.commit()

        assert summary.imported == 2
        assert summary.failed == 1
        assert len(summary.errors) == 1
        assert summary.errors[0].startswith('Row 3 (21115002)')
        result = await db_session.execute(select(InstituteRecord.roll_number).order_by(InstituteRecord.roll_number))
        assert result.scalars().all() == ['21115001', '21115003']
