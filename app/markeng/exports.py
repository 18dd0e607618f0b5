"""Tabular exports shared by the list views: XLSX via openpyxl, PDF via reportlab."""
from __future__ import annotations

import io
import re
from html import escape
from collections.abc import Sequence
from typing import Any

from flask import abort, send_file
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.markeng.dateutils import ist_timestamp

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MIMETYPE = "application/pdf"

_HEADER_FILL = PatternFill("solid", fgColor="1E293B")
_SHEET_TITLE_BAD = re.compile(r"[\\/*?:\[\]]")


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (int, float, str)):
        return value
    return str(value)


def xlsx_bytes(headers: Sequence[str], rows: Sequence[Sequence[Any]], *, sheet_title: str = "Sheet1") -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = _SHEET_TITLE_BAD.sub(" ", sheet_title)[:31] or "Sheet1"
    ws.append(list(headers))
    for cell in ws[1]:
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = _HEADER_FILL
    for row in rows:
        ws.append([_cell(v) for v in row])
    for idx, header in enumerate(headers, start=1):
        width = max([len(str(header))] + [len(str(_cell(r[idx - 1]))) for r in rows if len(r) >= idx])
        ws.column_dimensions[get_column_letter(idx)].width = min(max(width + 2, 10), 60)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def pdf_table_bytes(
    title: str,
    headers: Sequence[str],
    rows: Sequence[Sequence[Any]],
    *,
    summary: Sequence[tuple[str, Any]] = (),
) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4),
        leftMargin=12 * mm,
        rightMargin=12 * mm,
        topMargin=15 * mm,
        bottomMargin=15 * mm,
        title=title,
    )
    styles = getSampleStyleSheet()
    cell_style = styles["BodyText"].clone("ExportCell")
    cell_style.fontSize = 8
    cell_style.leading = 10

    elements: list[Any] = [
        Paragraph(escape(title), styles["Title"]),
        Paragraph(f"Generated {ist_timestamp()} IST", styles["Normal"]),
        Spacer(1, 6 * mm),
    ]
    for label, value in summary:
        elements.append(Paragraph(f"<b>{escape(label)}:</b> {escape(str(value))}", styles["Normal"]))
    if summary:
        elements.append(Spacer(1, 4 * mm))

    data = [list(headers)] + [[Paragraph(escape(str(_cell(v))), cell_style) for v in row] for row in rows]
    table = Table(data, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1E293B")),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, 0), 9),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#CBD5E1")),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F8FAFC")]),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]
        )
    )
    elements.append(table)
    doc.build(elements)
    return buffer.getvalue()


def export_response(
    fmt: str,
    *,
    filename: str,
    title: str,
    headers: Sequence[str],
    rows: Sequence[Sequence[Any]],
    summary: Sequence[tuple[str, Any]] = (),
):
    fmt = (fmt or "").lower()
    if fmt == "xlsx":
        data = xlsx_bytes(headers, rows, sheet_title=title)
        mimetype = XLSX_MIMETYPE
    elif fmt == "pdf":
        data = pdf_table_bytes(title, headers, rows, summary=summary)
        mimetype = PDF_MIMETYPE
    else:
        abort(404)
    return send_file(io.BytesIO(data), mimetype=mimetype, as_attachment=True, download_name=f"{filename}.{fmt}")
