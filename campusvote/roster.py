"""Roster file parsing.

Turns an uploaded ``.xlsx`` or ``.csv`` roster into a flat list of raw voter
rows. Every sheet of a workbook is read; each row is tagged with its sheet
name and spreadsheet row number. Validation is left to
``VoterRegistry.bulk_create_voters`` so uploads and offline imports share it.
"""
import csv
import io
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence

from openpyxl import load_workbook

from campusvote.errors import ValidationError

# Header names accepted for each voter field, compared case-insensitively
HEADER_ALIASES = {
    "reg_no": ("reg_no", "registration_no", "regno", "register number", "registration number"),
    "name": ("name", "student_name", "student name"),
    "email": ("email", "email_id", "email id", "student sonatech mail id"),
    "year": ("year", "academic_year", "academic year"),
    "section": ("section", "sec"),
    "department": ("dept", "department", "branch"),
}

_ALIAS_TO_FIELD = {alias: field for field, aliases in HEADER_ALIASES.items() for alias in aliases}


class ParsedRoster(NamedTuple):
    rows: List[dict]
    sheet_names: List[str]


def map_headers(headers: Sequence) -> Dict[int, str]:
    """Column index -> voter field for every recognised header."""
    mapping = {}
    for index, header in enumerate(headers):
        if header is None:
            continue
        field = _ALIAS_TO_FIELD.get(str(header).strip().lower())
        if field and field not in mapping.values():
            mapping[index] = field
    return mapping


def _rows_from_table(table: Iterable[Sequence], sheet_name: Optional[str]) -> List[dict]:
    table = iter(table)
    headers = next(table, None)
    if headers is None:
        return []
    columns = map_headers(headers)

    rows = []
    # row 1 holds the headers
    for row_number, values in enumerate(table, start=2):
        if all(v is None or str(v).strip() == "" for v in values):
            continue
        row = {field: values[index] if index < len(values) else None for index, field in columns.items()}
        row["row_number"] = row_number
        if sheet_name:
            row["sheet_name"] = sheet_name
        rows.append(row)
    return rows


def parse_xlsx(content: bytes) -> ParsedRoster:
    try:
        wb = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as e:
        raise ValidationError(f"Could not read workbook: {e}")

    rows = []
    try:
        for ws in wb.worksheets:
            rows.extend(_rows_from_table(ws.iter_rows(values_only=True), ws.title))
        sheet_names = list(wb.sheetnames)
    finally:
        wb.close()
    return ParsedRoster(rows, sheet_names)


def parse_csv(content: bytes, sheet_name: Optional[str] = None) -> ParsedRoster:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError("CSV roster must be UTF-8 encoded")
    rows = _rows_from_table(csv.reader(io.StringIO(text)), sheet_name)
    return ParsedRoster(rows, [sheet_name] if sheet_name else [])


def parse_roster(filename: str, content: bytes) -> ParsedRoster:
    name = (filename or "").lower()
    if name.endswith(".xlsx"):
        return parse_xlsx(content)
    if name.endswith(".csv"):
        return parse_csv(content)
    raise ValidationError("Unsupported roster file; upload an .xlsx or .csv file")
