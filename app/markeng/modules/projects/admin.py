from __future__ import annotations

import re

from flask import Blueprint, abort, current_app, flash, g, redirect, render_template, request, send_file, url_for

from app.markeng.constants import (
    DOCUMENT_CATEGORIES,
    DOCUMENT_TAGS,
    EXPENSE_CATEGORIES,
    EXPENSE_STATUSES,
    INCOME_STATUSES,
    PAYMENT_MODES,
    PROJECT_STATUSES,
    PROJECT_TYPES,
    RATE_TYPES,
    VENDOR_TYPES,
)
from app.markeng.dateutils import ist_today
from app.markeng.db import db_session
from app.markeng.exports import export_response
from app.markeng.modules.data_management.importer import SpreadsheetError, parse_spreadsheet
from app.markeng.modules.projects import ledger
from app.markeng.modules.projects.models import Expense, Income, Project, ProjectDocument
from app.markeng.modules.projects.service import (
    EXPENSE_HEADERS,
    INCOME_HEADERS,
    PAYMENT_TERMS,
    add_client_payment,
    add_expense,
    add_extra_expense,
    add_income,
    add_vendor_payment,
    commercial_summary,
    create_project,
    delete_document,
    delete_expense,
    delete_income,
    expense_export_rows,
    import_expenses,
    import_incomes,
    income_export_rows,
    list_projects,
    list_vendors,
    project_payload,
    project_report_rows,
    set_expense_status,
    soft_delete_project,
    update_project,
    upload_document,
    validate_expense_payload,
    validate_income_payload,
    validate_payment_payload,
    validate_project_payload,
)
from app.markeng.rbac import require_permission
from app.markeng.storage import StorageError, storage_from_config

bp = Blueprint("projects", __name__)

TABS = ("overview", "commercials", "expenses", "income", "profit_loss", "documents", "activity")


def _get_project(project_id: int) -> Project:
    project = db_session().get(Project, project_id)
    if not project or project.is_deleted:
        abort(404)
    return project


def _get_child(model, project: Project, child_id: int):
    obj = db_session().get(model, child_id)
    if not obj or obj.project_id != project.id:
        abort(404)
    return obj


def _back(project_id: int, tab: str = "overview"):
    return redirect(url_for("projects.project_detail", project_id=project_id, tab=tab))


def _flash_errors(errors: list[str]) -> None:
    for e in errors:
        flash(e, "danger")


def _export_name(prefix: str, project: Project) -> str:
    return f"{prefix}_{re.sub(r'[^A-Za-z0-9]+', '_', project.name).strip('_')}"


def _form_context(**extra):
    return dict(
        project_types=PROJECT_TYPES,
        statuses=PROJECT_STATUSES,
        vendor_types=VENDOR_TYPES,
        rate_types=RATE_TYPES,
        payment_terms=PAYMENT_TERMS,
        vendors=list_vendors(db_session()),
        **extra,
    )


@bp.get("/projects")
@require_permission("projects.view")
def projects_list():
    s = db_session()
    search = (request.args.get("q") or "").strip()
    type_ = (request.args.get("type") or "").strip()
    status = (request.args.get("status") or "").strip()
    return render_template(
        "projects/list.html",
        projects=list_projects(s, search=search, type=type_, status=status),
        search=search,
        type=type_,
        status=status,
        project_types=PROJECT_TYPES,
        statuses=PROJECT_STATUSES,
    )


@bp.get("/projects/new")
@require_permission("projects.create")
def projects_new_get():
    return render_template("projects/form.html", **_form_context(project=None, values={"type": "IN_HOUSE"}))


@bp.post("/projects/new")
@require_permission("projects.create")
def projects_new_post():
    s = db_session()
    payload = request.form.to_dict()
    errors = validate_project_payload(payload)
    if errors:
        _flash_errors(errors)
        return render_template("projects/form.html", **_form_context(project=None, values=payload)), 400
    project = create_project(s, payload, g.current_user)
    s.commit()
    flash(f"Project {project.name} created.", "success")
    return _back(project.id)


@bp.get("/projects/<int:project_id>")
@require_permission("projects.view")
def project_detail(project_id: int):
    project = _get_project(project_id)
    tab = request.args.get("tab") or "overview"
    if tab not in TABS:
        tab = "overview"
    return render_template(
        "projects/detail.html",
        project=project,
        tab=tab,
        tabs=TABS,
        commercial=commercial_summary(project),
        pnl=ledger.profit_and_loss(project.incomes, project.expenses),
        expenses_by_category=ledger.expenses_by_category(project.expenses),
        expense_categories=EXPENSE_CATEGORIES,
        expense_statuses=EXPENSE_STATUSES,
        income_statuses=INCOME_STATUSES,
        payment_modes=PAYMENT_MODES,
        document_categories=DOCUMENT_CATEGORIES,
        document_tags=DOCUMENT_TAGS,
        today=ist_today(),
    )


@bp.get("/projects/<int:project_id>/edit")
@require_permission("projects.edit")
def project_edit_get(project_id: int):
    project = _get_project(project_id)
    return render_template("projects/form.html", **_form_context(project=project, values=project_payload(project)))


@bp.post("/projects/<int:project_id>/edit")
@require_permission("projects.edit")
def project_edit_post(project_id: int):
    s = db_session()
    project = _get_project(project_id)
    payload = request.form.to_dict()
    # Unchecked boxes are absent from the form; they must not fall back to stored values.
    for box in ("client_gst_applicable", "vendor_gst_applicable"):
        payload.setdefault(box, "")
    errors = validate_project_payload({**project_payload(project), **payload})
    if errors:
        _flash_errors(errors)
        return render_template("projects/form.html", **_form_context(project=project, values=payload)), 400
    update_project(s, project, payload, g.current_user)
    s.commit()
    flash("Project updated.", "success")
    return _back(project_id)


@bp.post("/projects/<int:project_id>/delete")
@require_permission("projects.delete")
def project_delete(project_id: int):
    s = db_session()
    soft_delete_project(s, _get_project(project_id), g.current_user)
    s.commit()
    flash("Project removed.", "success")
    return redirect(url_for("projects.projects_list"))


# --- Expenses ---------------------------------------------------------------


@bp.post("/projects/<int:project_id>/expenses")
@require_permission("projects.finance")
def project_add_expense(project_id: int):
    s = db_session()
    project = _get_project(project_id)
    payload = request.form.to_dict()
    errors = validate_expense_payload(payload)
    if errors:
        _flash_errors(errors)
        return _back(project_id, "expenses")
    expense = add_expense(s, project, payload, g.current_user)
    s.commit()
    flash(f"Expense {expense.name} recorded.", "success")
    return _back(project_id, "expenses")


@bp.post("/projects/<int:project_id>/expenses/import")
@require_permission("projects.finance")
def project_import_expenses(project_id: int):
    s = db_session()
    project = _get_project(project_id)
    f = request.files.get("file")
    if not f or not f.filename:
        flash("Please select a spreadsheet to import.", "danger")
        return _back(project_id, "expenses")
    try:
        _, rows = parse_spreadsheet(f.read(), f.filename)
    except SpreadsheetError as e:
        current_app.logger.warning("Expense import failed (project=%s): %s", project_id, e)
        flash(f"Import failed: {e}", "danger")
        return _back(project_id, "expenses")
    count = import_expenses(s, project, rows, g.current_user)
    s.commit()
    flash(f"Successfully imported {count} expenses!", "success")
    return _back(project_id, "expenses")


@bp.post("/projects/<int:project_id>/expenses/<int:expense_id>/status")
@require_permission("projects.finance")
def project_expense_status(project_id: int, expense_id: int):
    s = db_session()
    expense = _get_child(Expense, _get_project(project_id), expense_id)
    try:
        set_expense_status(
            s, expense, (request.form.get("status") or "").strip(), g.current_user, reason=request.form.get("reason")
        )
    except ValueError as e:
        flash(str(e), "danger")
        return _back(project_id, "expenses")
    s.commit()
    flash(f"Expense marked {expense.status}.", "success")
    return _back(project_id, "expenses")


@bp.post("/projects/<int:project_id>/expenses/<int:expense_id>/delete")
@require_permission("projects.finance")
def project_expense_delete(project_id: int, expense_id: int):
    s = db_session()
    project = _get_project(project_id)
    delete_expense(s, project, _get_child(Expense, project, expense_id), g.current_user)
    s.commit()
    flash("Expense removed.", "success")
    return _back(project_id, "expenses")


@bp.get("/projects/<int:project_id>/expenses/export.<fmt>")
@require_permission("projects.view")
def project_expenses_export(project_id: int, fmt: str):
    project = _get_project(project_id)
    if not project.expenses:
        flash("No expenses to export.", "warning")
        return _back(project_id, "expenses")
    total = ledger.total_amount(project.expenses)
    return export_response(
        fmt,
        filename=_export_name("Expenses", project),
        title=f"Expenses - {project.name}",
        headers=EXPENSE_HEADERS,
        rows=expense_export_rows(project.expenses),
        summary=[("Total", f"Rs. {total:,.2f}")],
    )


# --- Income -----------------------------------------------------------------


@bp.post("/projects/<int:project_id>/incomes")
@require_permission("projects.finance")
def project_add_income(project_id: int):
    s = db_session()
    project = _get_project(project_id)
    payload = request.form.to_dict()
    errors = validate_income_payload(payload)
    if errors:
        _flash_errors(errors)
        return _back(project_id, "income")
    add_income(s, project, payload, g.current_user)
    s.commit()
    flash("Income recorded.", "success")
    return _back(project_id, "income")


@bp.post("/projects/<int:project_id>/incomes/import")
@require_permission("projects.finance")
def project_import_incomes(project_id: int):
    s = db_session()
    project = _get_project(project_id)
    f = request.files.get("file")
    if not f or not f.filename:
        flash("Please select a spreadsheet to import.", "danger")
        return _back(project_id, "income")
    try:
        _, rows = parse_spreadsheet(f.read(), f.filename)
    except SpreadsheetError as e:
        current_app.logger.warning("Income import failed (project=%s): %s", project_id, e)
        flash(f"Import failed: {e}", "danger")
        return _back(project_id, "income")
    count = import_incomes(s, project, rows, g.current_user)
    s.commit()
    flash(f"Successfully imported {count} income records!", "success")
    return _back(project_id, "income")


@bp.post("/projects/<int:project_id>/incomes/<int:income_id>/delete")
@require_permission("projects.finance")
def project_income_delete(project_id: int, income_id: int):
    s = db_session()
    project = _get_project(project_id)
    delete_income(s, project, _get_child(Income, project, income_id), g.current_user)
    s.commit()
    flash("Income record removed.", "success")
    return _back(project_id, "income")


@bp.get("/projects/<int:project_id>/incomes/export.<fmt>")
@require_permission("projects.view")
def project_incomes_export(project_id: int, fmt: str):
    project = _get_project(project_id)
    if not project.incomes:
        flash("No income records to export.", "warning")
        return _back(project_id, "income")
    total = ledger.total_amount(project.incomes)
    return export_response(
        fmt,
        filename=_export_name("Income", project),
        title=f"Income - {project.name}",
        headers=INCOME_HEADERS,
        rows=income_export_rows(project.incomes),
        summary=[("Total", f"Rs. {total:,.2f}")],
    )


# --- Commercials ------------------------------------------------------------


def _record_payment(project_id: int, add, label: str):
    s = db_session()
    project = _get_project(project_id)
    if not project.is_vendor:
        abort(404)
    payload = request.form.to_dict()
    errors = validate_payment_payload(payload)
    if errors:
        _flash_errors(errors)
        return _back(project_id, "commercials")
    add(s, project, payload, g.current_user)
    s.commit()
    flash(f"{label} recorded.", "success")
    return _back(project_id, "commercials")


@bp.post("/projects/<int:project_id>/client-payments")
@require_permission("projects.finance")
def project_client_payment(project_id: int):
    return _record_payment(project_id, add_client_payment, "Client payment")


@bp.post("/projects/<int:project_id>/vendor-payments")
@require_permission("projects.finance")
def project_vendor_payment(project_id: int):
    return _record_payment(project_id, add_vendor_payment, "Vendor payment")


@bp.post("/projects/<int:project_id>/extra-expenses")
@require_permission("projects.finance")
def project_extra_expense(project_id: int):
    s = db_session()
    project = _get_project(project_id)
    payload = request.form.to_dict()
    errors = validate_payment_payload(payload)
    if errors:
        _flash_errors(errors)
        return _back(project_id, "commercials")
    try:
        add_extra_expense(s, project, payload, g.current_user)
    except ValueError as e:
        flash(str(e), "danger")
        return _back(project_id, "commercials")
    s.commit()
    flash("Extra expense recorded.", "success")
    return _back(project_id, "commercials")


# --- Documents --------------------------------------------------------------


@bp.post("/projects/<int:project_id>/documents")
@require_permission("projects.edit")
def project_upload_document(project_id: int):
    s = db_session()
    project = _get_project(project_id)
    f = request.files.get("file")
    if not f or not f.filename:
        flash("Please select a file to upload.", "danger")
        return _back(project_id, "documents")
    try:
        upload_document(
            s,
            storage_from_config(current_app.config),
            project,
            file_bytes=f.read(),
            filename=f.filename,
            content_type=(f.mimetype or "application/octet-stream"),
            category=request.form.get("category"),
            tags=request.form.getlist("tags"),
            user=g.current_user,
        )
    except ValueError as e:
        s.rollback()
        flash(str(e), "danger")
        return _back(project_id, "documents")
    except StorageError as e:
        s.rollback()
        current_app.logger.error("Project document upload failed (project=%s): %s", project_id, e)
        flash(f"Failed to upload {f.filename}.", "danger")
        return _back(project_id, "documents")
    s.commit()
    flash(f"{f.filename} uploaded.", "success")
    return _back(project_id, "documents")


@bp.get("/projects/<int:project_id>/documents/<int:doc_id>")
@require_permission("projects.view")
def project_download_document(project_id: int, doc_id: int):
    doc = _get_child(ProjectDocument, _get_project(project_id), doc_id)
    try:
        fobj = storage_from_config(current_app.config).open(doc.storage_key)
    except StorageError:
        abort(404)
    return send_file(
        fobj,
        mimetype=doc.file_type or "application/octet-stream",
        as_attachment=True,
        download_name=doc.name,
    )


@bp.post("/projects/<int:project_id>/documents/<int:doc_id>/delete")
@require_permission("projects.edit")
def project_delete_document(project_id: int, doc_id: int):
    s = db_session()
    project = _get_project(project_id)
    doc = _get_child(ProjectDocument, project, doc_id)
    try:
        delete_document(s, storage_from_config(current_app.config), project, doc, g.current_user)
    except StorageError as e:
        # The row is removed even when the blob delete fails.
        current_app.logger.warning("Project document blob delete failed (doc=%s): %s", doc_id, e)
    s.commit()
    flash("Document removed.", "success")
    return _back(project_id, "documents")


@bp.get("/projects/<int:project_id>/report.<fmt>")
@require_permission("projects.view")
def project_report_export(project_id: int, fmt: str):
    project = _get_project(project_id)
    return export_response(
        fmt,
        filename=_export_name("Project_Report", project),
        title=f"Project Report - {project.name}",
        headers=("Field", "Details"),
        rows=project_report_rows(project),
    )
