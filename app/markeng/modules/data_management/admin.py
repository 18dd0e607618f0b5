from __future__ import annotations

import io
import json
import posixpath

from flask import Blueprint, abort, current_app, flash, g, redirect, render_template, request, send_file, url_for

from app.markeng.db import db_session
from app.markeng.exports import XLSX_MIMETYPE
from app.markeng.modules.customers.models import Customer
from app.markeng.modules.data_management.importer import (
    IMPORT_FIELDS,
    TEMPLATE_FILENAMES,
    SpreadsheetError,
    apply_mapping,
    auto_map,
    parse_spreadsheet,
)
from app.markeng.modules.data_management.service import (
    IMPORTERS,
    batch_time,
    latest_rollback_candidate,
    recent_batches,
    registry_export,
    rollback_latest,
    template_bytes,
)
from app.markeng.modules.expos.models import Expo
from app.markeng.modules.pricing.models import PricingRecord
from app.markeng.modules.team.models import TeamMember
from app.markeng.rbac import require_permission
from app.markeng.storage import StorageError, build_storage_key, storage_from_config

bp = Blueprint("data", __name__)

UPLOAD_PREFIX = "imports"
PREVIEW_ROWS = 5

IMPORT_TITLES = {
    "customers": "Customers",
    "pricing": "Pricing",
    "expos": "Master Inquiries",
    "inquiries": "Inquiry Ledger",
}


def _kind_or_404(kind: str) -> str:
    if kind not in IMPORT_FIELDS:
        abort(404)
    return kind


def _index():
    return redirect(url_for("data.data_index"))


@bp.get("/data")
@require_permission("data.import")
def data_index():
    s = db_session()
    insights = {
        "Total Customers": s.query(Customer).count(),
        "Inquiries Logged": s.query(Expo).count(),
        "Pricing Points": s.query(PricingRecord).count(),
        "Personnel Active": s.query(TeamMember).count(),
    }
    return render_template(
        "data/index.html",
        batches=recent_batches(s),
        batch_time=batch_time,
        rollback_candidate=latest_rollback_candidate(s),
        insights=insights,
        import_titles=IMPORT_TITLES,
        templates=TEMPLATE_FILENAMES,
    )


@bp.post("/data/import/<kind>")
@require_permission("data.import")
def data_upload(kind: str):
    kind = _kind_or_404(kind)
    f = request.files.get("file")
    if not f or not f.filename:
        flash("Please select a spreadsheet to import.", "danger")
        return _index()
    data = f.read()
    try:
        columns, rows = parse_spreadsheet(data, f.filename)
    except SpreadsheetError as e:
        flash(str(e), "danger")
        return _index()

    # Keep the upload so the mapping step can re-read it without a second upload.
    key = build_storage_key(UPLOAD_PREFIX, f.filename)
    try:
        storage_from_config(current_app.config).put_bytes(key, data, content_type=f.mimetype)
    except StorageError as e:
        current_app.logger.error("Import staging failed (%s): %s", f.filename, e)
        flash(f"Failed to stage {f.filename} for import.", "danger")
        return _index()

    fields = IMPORT_FIELDS[kind]
    return render_template(
        "data/mapping.html",
        kind=kind,
        title=IMPORT_TITLES[kind],
        fields=fields,
        columns=columns,
        mapping=auto_map(fields, columns),
        preview=rows[:PREVIEW_ROWS],
        row_count=len(rows),
        upload_key=key,
        filename=f.filename,
    )


@bp.post("/data/import/<kind>/execute")
@require_permission("data.import")
def data_execute(kind: str):
    kind = _kind_or_404(kind)
    key = (request.form.get("upload_key") or "").strip()
    filename = (request.form.get("filename") or "").strip()
    # Staged keys must stay inside the imports prefix after normalization.
    if posixpath.normpath(key) != key or ".." in key.split("/") or not key.startswith(f"{UPLOAD_PREFIX}/"):
        abort(400)
    storage = storage_from_config(current_app.config)
    try:
        data = storage.get_bytes(key)
    except StorageError:
        flash("The uploaded file has expired. Please upload it again.", "danger")
        return _index()

    fields = IMPORT_FIELDS[kind]
    mapping = {f.key: request.form.get(f"map_{f.key}") or "" for f in fields}
    try:
        _, rows = parse_spreadsheet(data, filename or key)
        entries = apply_mapping(fields, {k: v for k, v in mapping.items() if v}, rows)
    except SpreadsheetError as e:
        flash(str(e), "danger")
        return _index()

    s = db_session()
    result = IMPORTERS[kind](s, entries, g.current_user)
    s.commit()
    try:
        storage.delete(key)
    except StorageError as e:
        current_app.logger.warning("Could not remove staged import %s: %s", key, e)

    msg = f"{IMPORT_TITLES[kind]} import complete: {result.count()} records created"
    if result.skipped:
        msg += f", {result.skipped} skipped"
    flash(msg + ".", "success")
    return _index()


@bp.post("/data/rollback")
@require_permission("data.import")
def data_rollback():
    s = db_session()
    try:
        batch = rollback_latest(s, g.current_user)
    except ValueError as e:
        flash(str(e), "warning")
        return _index()
    s.commit()
    flash(f"Rolled back: {batch.action}.", "success")
    return _index()


@bp.get("/data/templates/<kind>.xlsx")
@require_permission("data.import")
def data_template(kind: str):
    if kind not in TEMPLATE_FILENAMES:
        abort(404)
    return send_file(
        io.BytesIO(template_bytes(kind)),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=f"{TEMPLATE_FILENAMES[kind]}.xlsx",
    )


@bp.get("/data/registry.json")
@require_permission("data.export")
def data_registry_export():
    s = db_session()
    payload = registry_export(s, g.current_user)
    s.commit()
    body = json.dumps(payload, indent=2, default=str).encode("utf-8")
    stamp = payload["meta"]["timestamp"].replace(" ", "_").replace(":", "").replace(",", "")
    return send_file(
        io.BytesIO(body),
        mimetype="application/json",
        as_attachment=True,
        download_name=f"MarkEng_Registry_{stamp}.json",
    )
