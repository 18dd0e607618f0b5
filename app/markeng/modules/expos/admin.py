from __future__ import annotations

import mimetypes

from flask import Blueprint, abort, current_app, flash, g, redirect, render_template, request, send_file, url_for

from app.markeng.constants import (
    EXPO_DOCUMENT_FIELDS,
    EXPO_PARTICIPATION_TYPES,
    EXPO_REGISTRATION_STATUSES,
    EXPO_STATUSES,
    ZONES,
)
from app.markeng.db import db_session
from app.markeng.genai_client import client_from_config
from app.markeng.modules.expos.models import Expo
from app.markeng.modules.expos.service import (
    create_expo,
    delete_expo,
    is_storage_key,
    list_expos,
    reminder_expo_ids,
    scout_expos,
    toggle_reminder,
    update_expo,
    upload_expo_document,
    validate_expo_payload,
)
from app.markeng.rbac import require_permission
from app.markeng.storage import StorageError, storage_from_config

bp = Blueprint("expos", __name__)


def _get_expo(expo_id: int) -> Expo:
    expo = db_session().get(Expo, expo_id)
    if not expo:
        abort(404)
    return expo


def _form_context() -> dict:
    return {
        "statuses": EXPO_STATUSES,
        "participation_types": EXPO_PARTICIPATION_TYPES,
        "registration_statuses": EXPO_REGISTRATION_STATUSES,
        "zones": ZONES[1:],
        "document_fields": EXPO_DOCUMENT_FIELDS,
    }


@bp.get("/expos")
@require_permission("expos.view")
def expos_list():
    s = db_session()
    search = (request.args.get("q") or "").strip()
    status = (request.args.get("status") or "").strip()
    return render_template(
        "expos/list.html",
        expos=list_expos(s, search=search, status=status),
        reminders=reminder_expo_ids(s, g.current_user),
        search=search,
        status=status,
        statuses=EXPO_STATUSES,
    )


@bp.get("/expos/new")
@require_permission("expos.create")
def expos_new_get():
    return render_template("expos/form.html", expo=None, **_form_context())


@bp.post("/expos/new")
@require_permission("expos.create")
def expos_new_post():
    s = db_session()
    payload = request.form.to_dict()
    errors = validate_expo_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("expos.expos_new_get"))
    expo = create_expo(s, payload, g.current_user)
    s.commit()
    flash("Event added to repository.", "success")
    return redirect(url_for("expos.expo_detail", expo_id=expo.id))


@bp.get("/expos/<int:expo_id>")
@require_permission("expos.view")
def expo_detail(expo_id: int):
    s = db_session()
    expo = _get_expo(expo_id)
    return render_template(
        "expos/detail.html",
        expo=expo,
        reminder_on=expo.id in reminder_expo_ids(s, g.current_user),
        is_storage_key=is_storage_key,
        **_form_context(),
    )


@bp.get("/expos/<int:expo_id>/edit")
@require_permission("expos.edit")
def expo_edit_get(expo_id: int):
    return render_template("expos/form.html", expo=_get_expo(expo_id), **_form_context())


@bp.post("/expos/<int:expo_id>/edit")
@require_permission("expos.edit")
def expo_edit_post(expo_id: int):
    s = db_session()
    expo = _get_expo(expo_id)
    payload = request.form.to_dict()
    errors = validate_expo_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("expos.expo_edit_get", expo_id=expo_id))
    update_expo(s, expo, payload, g.current_user)
    s.commit()
    flash("Event updated successfully.", "success")
    return redirect(url_for("expos.expo_detail", expo_id=expo_id))


@bp.post("/expos/<int:expo_id>/delete")
@require_permission("expos.delete")
def expo_delete(expo_id: int):
    s = db_session()
    delete_expo(s, _get_expo(expo_id), g.current_user)
    s.commit()
    flash("Event deleted.", "success")
    return redirect(url_for("expos.expos_list"))


@bp.post("/expos/<int:expo_id>/reminder")
@require_permission("expos.view")
def expo_reminder(expo_id: int):
    s = db_session()
    expo = _get_expo(expo_id)
    enabled = toggle_reminder(s, expo, g.current_user)
    s.commit()
    if enabled:
        flash(f"Alert set for {expo.name}! You will be notified closer to {expo.date}.", "success")
    else:
        flash(f"Alert removed for {expo.name}.", "info")
    return redirect(request.referrer or url_for("expos.expos_list"))


@bp.post("/expos/<int:expo_id>/documents/<field>")
@require_permission("expos.edit")
def expo_document_upload(expo_id: int, field: str):
    s = db_session()
    expo = _get_expo(expo_id)
    if field not in EXPO_DOCUMENT_FIELDS:
        abort(404)
    f = request.files.get("file")
    if not f or not f.filename:
        flash("Please select a file to upload.", "danger")
        return redirect(url_for("expos.expo_detail", expo_id=expo_id))

    storage = storage_from_config(current_app.config)
    try:
        upload_expo_document(
            s,
            storage,
            expo,
            field=field,
            file_bytes=f.read(),
            filename=f.filename,
            content_type=(f.mimetype or "application/octet-stream"),
            user=g.current_user,
        )
    except StorageError as e:
        s.rollback()
        current_app.logger.error("Expo upload failed (expo=%s field=%s): %s", expo_id, field, e)
        flash(f"Failed to upload {f.filename}.", "danger")
        return redirect(url_for("expos.expo_detail", expo_id=expo_id))
    s.commit()
    flash(f"{f.filename} uploaded successfully!", "success")
    return redirect(url_for("expos.expo_detail", expo_id=expo_id))


@bp.get("/expos/<int:expo_id>/documents/<field>")
@require_permission("expos.view")
def expo_document_download(expo_id: int, field: str):
    expo = _get_expo(expo_id)
    column = EXPO_DOCUMENT_FIELDS.get(field)
    value = getattr(expo, column) if column else None
    if not value:
        abort(404)
    if not is_storage_key(value):
        return redirect(value)
    storage = storage_from_config(current_app.config)
    try:
        fobj = storage.open(value)
    except StorageError:
        abort(404)
    filename = value.rsplit("/", 1)[-1]
    return send_file(
        fobj,
        mimetype=mimetypes.guess_type(filename)[0] or "application/octet-stream",
        as_attachment=True,
        download_name=filename,
    )


@bp.post("/expos/scout")
@require_permission("expos.scout")
def expos_scout():
    s = db_session()
    client = client_from_config(current_app.config)
    industry = (request.form.get("industry") or "").strip() or None
    created = scout_expos(s, client, g.current_user, industry)
    s.commit()
    if created:
        flash(f"Found {len(created)} new manufacturing expos in India!", "success")
    else:
        flash("Database is already up to date.", "info")
    return redirect(url_for("expos.expos_list"))
