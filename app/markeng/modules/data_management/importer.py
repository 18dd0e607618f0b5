"""
Spreadsheet reading and column auto-mapping.

Uploaded sheets are read into plain row dicts keyed by header text; a list of
target fields (key, label, required) is then matched against those headers
to build the entries each bulk import consumes.
"""
from __future__ import annotations

import csv
import io
import re
import zipfile
from dataclasses import dataclass
from typing import Any, Sequence

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

NO_VALID_RECORDS = (
    "No valid records found after mapping. Please ensure required fields are mapped to non-empty columns."
)


class SpreadsheetError(ValueError):
    pass


@dataclass(frozen=True)
class TargetField:
    key: str
    label: str
    required: bool = False


CUSTOMER_FIELDS = (
    TargetField("name", "Customer Name", required=True),
    TargetField("city", "City"),
    TargetField("state", "State"),
    TargetField("country", "Country"),
    TargetField("industry", "Industry"),
    TargetField("annual_turnover", "Annual Turnover"),
    TargetField("contact_name", "Primary Contact"),
    TargetField("contact_email", "Contact Email"),
)

PRICING_FIELDS = (
    TargetField("customer_name", "Customer Name", required=True),
    TargetField("tech", "Technology", required=True),
    TargetField("rate", "Rate", required=True),
    TargetField("unit", "Unit"),
    TargetField("date", "Date"),
)

EXPO_FIELDS = (
    TargetField("name", "Event Name", required=True),
    TargetField("location", "Location"),
    TargetField("region", "Region"),
    TargetField("date", "Date"),
    TargetField("industry", "Industry Focus"),
    TargetField("link", "Website Link"),
)

INQUIRY_FIELDS = (
    TargetField("inquiry_id", "Inquiry ID", required=True),
    TargetField("lead_name", "Lead Name", required=True),
    TargetField("date", "Date"),
    TargetField("city", "City"),
    TargetField("state", "State"),
    TargetField("pincode", "Pincode"),
    TargetField("industry", "Industry"),
    TargetField("value", "Value"),
    TargetField("status", "Status"),
)

IMPORT_FIELDS: dict[str, Sequence[TargetField]] = {
    "customers": CUSTOMER_FIELDS,
    "pricing": PRICING_FIELDS,
    "expos": EXPO_FIELDS,
    "inquiries": INQUIRY_FIELDS,
}

TEMPLATE_HEADERS: dict[str, tuple[str, ...]] = {
    "customers": (
        "Customer Name",
        "City",
        "State",
        "Country",
        "Industry",
        "Annual Turnover",
        "Project Turnover",
        "Contact 1 Name",
        "Contact 1 Email",
        "Contact 1 Phone",
        "Contact 1 Designation",
    ),
    "pricing": ("Customer Name", "Technology", "Rate", "Unit", "Date (YYYY-MM-DD)"),
    "expos": ("Event Name", "Location", "Region", "Date (YYYY-MM-DD)", "Industry Focus", "Website Link"),
}

TEMPLATE_FILENAMES = {
    "customers": "MarkEng_Customer_Template",
    "pricing": "MarkEng_Pricing_Template",
    "expos": "MarkEng_Expo_Template",
}

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_header(text: Any) -> str:
    return _NON_ALNUM.sub("", str(text or "").lower())


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _read_xlsx(data: bytes) -> tuple[list[str], list[dict[str, Any]]]:
    try:
        wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as e:
        raise SpreadsheetError(
            "Failed to read Excel file. Please ensure it is a valid .xlsx file."
        ) from e
    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        header_row = next(rows, None)
        if header_row is None:
            return [], []
        headers = [str(h).strip() if h is not None else "" for h in header_row]
        out = []
        for values in rows:
            if values is None or all(_blank(v) for v in values):
                continue
            out.append(
                {h: ("" if v is None else v) for h, v in zip(headers, values) if h}
            )
        return [h for h in headers if h], out
    finally:
        wb.close()


def _read_csv(data: bytes) -> tuple[list[str], list[dict[str, Any]]]:
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = data.decode("latin-1")
    reader = csv.reader(io.StringIO(text))
    header_row = next(reader, None)
    if header_row is None:
        return [], []
    headers = [h.strip() for h in header_row]
    out = []
    for values in reader:
        if all(_blank(v) for v in values):
            continue
        padded = list(values) + [""] * (len(headers) - len(values))
        out.append({h: v for h, v in zip(headers, padded) if h})
    return [h for h in headers if h], out


def parse_spreadsheet(data: bytes, filename: str) -> tuple[list[str], list[dict[str, Any]]]:
    """
    Read the first sheet of an .xlsx (or a .csv) into (columns, rows).

    Columns are the non-blank header cells in sheet order. Each row maps
    header -> cell value, with empty cells as "". Fully blank rows are skipped.
    """
    name = (filename or "").lower()
    if name.endswith(".csv"):
        columns, rows = _read_csv(data)
    elif name.endswith((".xlsx", ".xlsm")):
        columns, rows = _read_xlsx(data)
    else:
        raise SpreadsheetError("Unsupported file type. Please upload an .xlsx or .csv file.")
    if not rows:
        raise SpreadsheetError("The selected file appears to be empty.")
    return columns, rows


def auto_map(fields: Sequence[TargetField], columns: Sequence[str]) -> dict[str, str]:
    """
    Guess a column for each target field.

    A column matches when its normalized header equals the field's normalized
    label or key, contains the label, or is contained in the label. The first
    matching column wins; blank headers never match.
    """
    mapping: dict[str, str] = {}
    for field in fields:
        label = normalize_header(field.label)
        key = normalize_header(field.key)
        for col in columns:
            norm = normalize_header(col)
            if not norm:
                continue
            if norm == label or norm == key or label in norm or norm in label:
                mapping[field.key] = col
                break
    return mapping


def apply_mapping(
    fields: Sequence[TargetField],
    mapping: dict[str, str],
    rows: Sequence[dict[str, Any]],
) -> list[dict[str, Any]]:
    """
    Build one entry per row with every target key present. Strings are
    trimmed and unmapped fields are "". Entries missing a required field are
    dropped; SpreadsheetError when none survive.
    """
    entries = []
    for row in rows:
        entry: dict[str, Any] = {}
        for field in fields:
            col = mapping.get(field.key)
            if col:
                value = row.get(col, "")
                entry[field.key] = value.strip() if isinstance(value, str) else value
            else:
                entry[field.key] = ""
        if any(f.required and (not entry[f.key] or not str(entry[f.key]).strip()) for f in fields):
            continue
        entries.append(entry)
    if not entries:
        raise SpreadsheetError(NO_VALID_RECORDS)
    return entries
