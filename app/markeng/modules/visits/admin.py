from __future__ import annotations

from flask import Blueprint, abort, current_app, flash, g, redirect, render_template, request, send_file, url_for

from app.markeng.constants import PAYMENT_MODES, VISIT_CHECKLIST_ITEMS, VISIT_PAYMENT_STATUSES, VISIT_STATUSES
from app.markeng.dateutils import ist_today
from app.markeng.db import db_session
from app.markeng.modules.customers.models import Customer
from app.markeng.modules.visits.models import Visit
from app.markeng.modules.visits.service import (
    ALL_STATUSES,
    CALL_TYPES,
    add_attachment,
    add_call_log,
    add_met_contact,
    delete_visit,
    filter_visits,
    plan_visit,
    set_visit_status,
    toggle_checklist_item,
    update_visit,
    validate_visit_payload,
    visit_stats,
)
from app.markeng.rbac import require_permission
from app.markeng.storage import StorageError, storage_from_config

bp = Blueprint("visits", __name__)


def _get_visit(visit_id: int) -> Visit:
    visit = db_session().get(Visit, visit_id)
    if not visit:
        abort(404)
    return visit


def _back(visit_id: int):
    return redirect(url_for("visits.visit_detail", visit_id=visit_id))


@bp.get("/visits")
@require_permission("visits.view")
def visits_list():
    s = db_session()
    search = (request.args.get("q") or "").strip()
    status = (request.args.get("status") or ALL_STATUSES).strip()
    all_visits = filter_visits(s)
    return render_template(
        "visits/list.html",
        visits=filter_visits(s, search=search, status=status),
        stats=visit_stats(all_visits),
        search=search,
        status=status,
        statuses=VISIT_STATUSES,
        customers=s.query(Customer).order_by(Customer.name.asc()).all(),
        payment_modes=PAYMENT_MODES,
        payment_statuses=VISIT_PAYMENT_STATUSES,
        today=ist_today(),
    )


@bp.post("/visits/new")
@require_permission("visits.create")
def visits_new_post():
    s = db_session()
    payload = request.form.to_dict()
    errors = validate_visit_payload(s, payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("visits.visits_list"))
    visit = plan_visit(s, payload, g.current_user)
    s.commit()
    flash(f"Visit to {visit.customer_name} planned for {visit.date.isoformat()}.", "success")
    return _back(visit.id)


@bp.get("/visits/<int:visit_id>")
@require_permission("visits.view")
def visit_detail(visit_id: int):
    return render_template(
        "visits/detail.html",
        visit=_get_visit(visit_id),
        statuses=VISIT_STATUSES,
        checklist_items=VISIT_CHECKLIST_ITEMS,
        call_types=CALL_TYPES,
        payment_modes=PAYMENT_MODES,
        payment_statuses=VISIT_PAYMENT_STATUSES,
    )


@bp.post("/visits/<int:visit_id>/edit")
@require_permission("visits.edit")
def visit_edit_post(visit_id: int):
    s = db_session()
    visit = _get_visit(visit_id)
    payload = request.form.to_dict()
    payload.setdefault("customer_id", str(visit.customer_id))
    errors = validate_visit_payload(s, payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return _back(visit_id)
    update_visit(s, visit, payload, g.current_user)
    s.commit()
    flash("Visit updated.", "success")
    return _back(visit_id)


@bp.post("/visits/<int:visit_id>/status")
@require_permission("visits.edit")
def visit_status(visit_id: int):
    s = db_session()
    visit = _get_visit(visit_id)
    status = (request.form.get("status") or "").strip()
    if status not in VISIT_STATUSES:
        flash("Invalid visit status.", "danger")
        return _back(visit_id)
    set_visit_status(s, visit, status, g.current_user)
    s.commit()
    flash(f"Visit marked {status}.", "success")
    return redirect(request.referrer or url_for("visits.visits_list"))


@bp.post("/visits/<int:visit_id>/delete")
@require_permission("visits.delete")
def visit_delete(visit_id: int):
    s = db_session()
    delete_visit(s, _get_visit(visit_id), g.current_user)
    s.commit()
    flash("Visit record removed.", "success")
    return redirect(url_for("visits.visits_list"))


@bp.post("/visits/<int:visit_id>/calls")
@require_permission("visits.edit")
def visit_add_call(visit_id: int):
    s = db_session()
    visit = _get_visit(visit_id)
    try:
        add_call_log(s, visit, request.form.to_dict(), g.current_user)
    except ValueError as e:
        flash(str(e), "danger")
        return _back(visit_id)
    s.commit()
    flash("Call logged.", "success")
    return _back(visit_id)


@bp.post("/visits/<int:visit_id>/contacts")
@require_permission("visits.edit")
def visit_add_contact(visit_id: int):
    s = db_session()
    visit = _get_visit(visit_id)
    try:
        add_met_contact(s, visit, request.form.to_dict(), g.current_user)
    except ValueError as e:
        flash(str(e), "danger")
        return _back(visit_id)
    s.commit()
    flash("Contact added.", "success")
    return _back(visit_id)


@bp.post("/visits/<int:visit_id>/checklist/<item>")
@require_permission("visits.edit")
def visit_toggle_checklist(visit_id: int, item: str):
    s = db_session()
    visit = _get_visit(visit_id)
    if item not in VISIT_CHECKLIST_ITEMS:
        abort(404)
    toggle_checklist_item(s, visit, item, g.current_user)
    s.commit()
    return _back(visit_id)


@bp.post("/visits/<int:visit_id>/attachments")
@require_permission("visits.edit")
def visit_upload_attachment(visit_id: int):
    s = db_session()
    visit = _get_visit(visit_id)
    f = request.files.get("file")
    if not f or not f.filename:
        flash("Please select a file to upload.", "danger")
        return _back(visit_id)
    try:
        add_attachment(
            s,
            storage_from_config(current_app.config),
            visit,
            file_bytes=f.read(),
            filename=f.filename,
            content_type=(f.mimetype or "application/octet-stream"),
            user=g.current_user,
        )
    except StorageError as e:
        s.rollback()
        current_app.logger.error("Visit attachment upload failed (visit=%s): %s", visit_id, e)
        flash(f"Failed to upload {f.filename}.", "danger")
        return _back(visit_id)
    s.commit()
    flash(f"{f.filename} attached.", "success")
    return _back(visit_id)


@bp.get("/visits/<int:visit_id>/attachments/<attachment_id>")
@require_permission("visits.view")
def visit_download_attachment(visit_id: int, attachment_id: str):
    visit = _get_visit(visit_id)
    entry = next((a for a in visit.attachments or [] if a.get("id") == attachment_id), None)
    if not entry or not entry.get("storage_key"):
        abort(404)
    try:
        fobj = storage_from_config(current_app.config).open(entry["storage_key"])
    except StorageError:
        abort(404)
    return send_file(
        fobj,
        mimetype=entry.get("content_type") or "application/octet-stream",
        as_attachment=True,
        download_name=entry.get("name") or "attachment",
    )
