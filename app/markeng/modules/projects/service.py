from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Iterable

from sqlalchemy import func, or_

from app.markeng.audit import record_event
from app.markeng.constants import (
    ACTIVITY_TYPES,
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
from app.markeng.modules.projects import ledger
from app.markeng.storage import build_storage_key
from app.markeng.utils import clean, parse_bool, parse_date, parse_float, parse_int

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from app.markeng.models import User
    from app.markeng.modules.projects.models import (
        ClientPayment,
        Expense,
        ExtraExpense,
        Income,
        Project,
        ProjectDocument,
        Vendor,
        VendorPayment,
    )
    from app.markeng.storage import Storage

logger = logging.getLogger(__name__)

STORAGE_PREFIX = "projects"
PAYMENT_TERMS = ("Advance", "30 Days", "45 Days")

EXPENSE_HEADERS = ("Date", "Item", "Category", "Paid By", "Status", "Amount", "Notes")
INCOME_HEADERS = ("Date", "Client", "Invoice #", "Status", "Amount")

_VENDOR_FIELDS = (
    "vendor_contact",
    "vendor_mobile",
    "vendor_city",
    "vendor_state",
    "tracking_link",
    "milestones",
)
_CLIENT_AMOUNTS = ("client_project_cost", "client_advance_received", "client_gst_amount")
_VENDOR_AMOUNTS = ("vendor_total_cost", "vendor_advance_paid", "vendor_gst_amount")


def _actor_name(user: "User | None") -> str:
    return user.display_name if user else "System"


def _choice(errors: list[str], payload: dict, key: str, allowed: Iterable[str], label: str) -> None:
    value = clean(payload.get(key))
    if value and value not in allowed:
        errors.append(f"Invalid {label}. Must be one of: {', '.join(allowed)}")


def _amount(errors: list[str], payload: dict, key: str, label: str, *, required: bool = False) -> None:
    raw = payload.get(key)
    if clean(raw) is None:
        if required:
            errors.append(f"{label} is required.")
        return
    value = parse_float(raw)
    if value is None:
        errors.append(f"{label} must be a number.")
    elif value < 0:
        errors.append(f"{label} cannot be negative.")


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


def validate_project_payload(payload: dict) -> list[str]:
    errors = []
    if not clean(payload.get("name")):
        errors.append("Project Name is mandatory.")
    _choice(errors, payload, "type", PROJECT_TYPES, "project type")
    _choice(errors, payload, "status", PROJECT_STATUSES, "status")
    start, end = parse_date(payload.get("start_date")), parse_date(payload.get("end_date"))
    if start and end and end < start:
        errors.append("End date cannot be before start date.")
    if clean(payload.get("type")) == "VENDOR":
        if not clean(payload.get("vendor_id")):
            if not clean(payload.get("vendor_name")):
                errors.append("Vendor Name is mandatory.")
            if not clean(payload.get("vendor_type")):
                errors.append("Vendor Type is mandatory.")
        _choice(errors, payload, "vendor_type", VENDOR_TYPES, "vendor type")
        _choice(errors, payload, "rate_type", RATE_TYPES, "rate type")
        _choice(errors, payload, "client_payment_terms", PAYMENT_TERMS, "client payment terms")
        _choice(errors, payload, "vendor_payment_terms", PAYMENT_TERMS, "vendor payment terms")
        for key in _CLIENT_AMOUNTS + _VENDOR_AMOUNTS:
            _amount(errors, payload, key, key.replace("_", " ").capitalize())
    return errors


def project_payload(project: "Project") -> dict[str, Any]:
    """Current values in form shape, so partial updates keep untouched fields."""
    data: dict[str, Any] = {
        "name": project.name,
        "type": project.type,
        "description": project.description,
        "start_date": project.start_date,
        "end_date": project.end_date,
        "status": project.status,
        "created_by": project.created_by,
        "company_name": project.company_name,
        "location": project.location,
        "total_value": project.total_value,
    }
    vd = project.vendor_details
    if vd is not None:
        data.update(
            vendor_id=vd.vendor_id,
            vendor_name=vd.vendor_name,
            vendor_type=vd.vendor_type,
            timeline_weeks=vd.timeline_weeks,
            **{k: getattr(vd, k) for k in _VENDOR_FIELDS},
        )
    cd = project.commercial_details
    if cd is not None:
        for key in _CLIENT_AMOUNTS + _VENDOR_AMOUNTS:
            data[key] = getattr(cd, key)
        data.update(
            client_gst_applicable=cd.client_gst_applicable,
            client_gst_number=cd.client_gst_number,
            client_payment_terms=cd.client_payment_terms,
            vendor_gst_applicable=cd.vendor_gst_applicable,
            vendor_gst_number=cd.vendor_gst_number,
            vendor_payment_terms=cd.vendor_payment_terms,
            rate_type=cd.rate_type,
        )
    return data


def log_activity(
    s: "Session",
    project: "Project",
    kind: str,
    description: str,
    user: "User | None",
    details: dict | None = None,
) -> None:
    from app.markeng.modules.projects.models import ActivityLog

    if kind not in ACTIVITY_TYPES:
        raise ValueError(f"Unknown activity type: {kind}")
    project.activity.append(
        ActivityLog(
            project_id=project.id,
            type=kind,
            description=description,
            details=details,
            performed_by=_actor_name(user),
        )
    )


def _master_vendor(s: "Session", payload: dict, user: "User | None") -> "Vendor":
    """The linked master vendor, creating one from the form fields when no id was given."""
    from app.markeng.modules.projects.models import Vendor

    vendor_id = parse_int(payload.get("vendor_id"))
    if vendor_id:
        vendor = s.get(Vendor, vendor_id)
        if vendor is not None:
            return vendor
    vendor = Vendor(
        name=clean(payload.get("vendor_name")),
        type=clean(payload.get("vendor_type")),
        contact_person=clean(payload.get("vendor_contact")),
        mobile=clean(payload.get("vendor_mobile")),
        city=clean(payload.get("vendor_city")),
        state=clean(payload.get("vendor_state")),
    )
    s.add(vendor)
    s.flush()
    record_event(
        s,
        actor=user,
        action="vendor.create",
        entity_type="Vendor",
        entity_id=str(vendor.id),
        metadata={"name": vendor.name, "type": vendor.type},
    )
    return vendor


def _apply_vendor_details(s: "Session", project: "Project", payload: dict, user: "User | None") -> None:
    from app.markeng.modules.projects.models import VendorDetails

    vendor = _master_vendor(s, payload, user)
    vd = project.vendor_details
    if vd is None:
        vd = VendorDetails()
        project.vendor_details = vd
    vd.vendor_id = vendor.id
    vd.vendor_name = clean(payload.get("vendor_name")) or vendor.name
    vd.vendor_type = clean(payload.get("vendor_type")) or vendor.type
    vd.vendor_contact = clean(payload.get("vendor_contact")) or vendor.contact_person
    vd.vendor_mobile = clean(payload.get("vendor_mobile")) or vendor.mobile
    vd.vendor_city = clean(payload.get("vendor_city")) or vendor.city
    vd.vendor_state = clean(payload.get("vendor_state")) or vendor.state
    vd.timeline_weeks = parse_int(payload.get("timeline_weeks"), 0) or 0
    vd.tracking_link = clean(payload.get("tracking_link"))
    vd.milestones = clean(payload.get("milestones"))


def _apply_commercial_details(project: "Project", payload: dict) -> None:
    from app.markeng.modules.projects.models import CommercialDetails

    cd = project.commercial_details
    if cd is None:
        cd = CommercialDetails()
        project.commercial_details = cd
    for key in _CLIENT_AMOUNTS + _VENDOR_AMOUNTS:
        setattr(cd, key, parse_float(payload.get(key), 0.0) or 0.0)
    cd.client_gst_applicable = parse_bool(payload.get("client_gst_applicable"))
    cd.client_gst_number = clean(payload.get("client_gst_number")) if cd.client_gst_applicable else None
    cd.client_payment_terms = clean(payload.get("client_payment_terms")) or "Advance"
    cd.vendor_gst_applicable = parse_bool(payload.get("vendor_gst_applicable"))
    cd.vendor_gst_number = clean(payload.get("vendor_gst_number")) if cd.vendor_gst_applicable else None
    cd.vendor_payment_terms = clean(payload.get("vendor_payment_terms")) or "Advance"
    cd.rate_type = clean(payload.get("rate_type")) or "Per Piece"
    cd.margin_percent = ledger.margin_percent(cd.client_project_cost, cd.vendor_total_cost)


def _apply_fields(s: "Session", project: "Project", payload: dict, user: "User | None") -> None:
    project.name = clean(payload.get("name")) or project.name
    project.type = clean(payload.get("type")) or project.type or "IN_HOUSE"
    project.description = clean(payload.get("description"))
    project.start_date = parse_date(payload.get("start_date"))
    project.end_date = parse_date(payload.get("end_date"))
    project.status = clean(payload.get("status")) or project.status or "Active"
    project.created_by = clean(payload.get("created_by")) or project.created_by or _actor_name(user)
    project.company_name = clean(payload.get("company_name"))
    project.location = clean(payload.get("location"))
    project.total_value = parse_float(payload.get("total_value"), 0.0) or 0.0
    if project.is_vendor:
        _apply_vendor_details(s, project, payload, user)
        _apply_commercial_details(project, payload)
    else:
        project.vendor_details = None
        project.commercial_details = None
    project.updated_at = datetime.utcnow()


def create_project(s: "Session", payload: dict, user: "User | None") -> "Project":
    from app.markeng.modules.projects.models import Project

    project = Project(is_deleted=False)
    s.add(project)
    _apply_fields(s, project, payload, user)
    s.flush()
    log_activity(s, project, "PROJECT_CREATED", f"Project '{project.name}' created", user)
    if project.vendor_details is not None:
        log_activity(
            s,
            project,
            "VENDOR_ASSIGNED",
            f"Vendor {project.vendor_details.vendor_name} assigned",
            user,
            {"vendor_id": project.vendor_details.vendor_id},
        )
    record_event(
        s,
        actor=user,
        action="project.create",
        entity_type="Project",
        entity_id=str(project.id),
        metadata={"name": project.name, "type": project.type},
    )
    return project


def update_project(s: "Session", project: "Project", payload: dict, user: "User | None") -> "Project":
    payload = {**project_payload(project), **payload}
    old_status = project.status
    old_vendor = project.vendor_details.vendor_id if project.vendor_details else None
    cd = project.commercial_details
    old_costs = (cd.client_project_cost, cd.vendor_total_cost) if cd else None

    _apply_fields(s, project, payload, user)
    s.flush()

    if project.status != old_status:
        log_activity(
            s, project, "STATUS_UPDATED", f"Status changed from {old_status} to {project.status}", user,
            {"old": old_status, "new": project.status},
        )
    vd = project.vendor_details
    if vd is not None and vd.vendor_id != old_vendor:
        log_activity(s, project, "VENDOR_ASSIGNED", f"Vendor {vd.vendor_name} assigned", user, {"vendor_id": vd.vendor_id})
    cd = project.commercial_details
    new_costs = (cd.client_project_cost, cd.vendor_total_cost) if cd else None
    if cd is not None and new_costs != old_costs:
        log_activity(
            s, project, "COST_CHANGED", f"Commercials updated (margin {cd.margin_percent}%)", user,
            {"client_project_cost": cd.client_project_cost, "vendor_total_cost": cd.vendor_total_cost},
        )
    record_event(
        s,
        actor=user,
        action="project.edit",
        entity_type="Project",
        entity_id=str(project.id),
        metadata={"name": project.name, "status": {"old": old_status, "new": project.status}},
    )
    return project


def soft_delete_project(s: "Session", project: "Project", user: "User | None") -> None:
    project.is_deleted = True
    project.updated_at = datetime.utcnow()
    record_event(
        s,
        actor=user,
        action="project.delete",
        entity_type="Project",
        entity_id=str(project.id),
        metadata={"name": project.name},
    )


def list_projects(s: "Session", *, search: str = "", type: str = "", status: str = "") -> list["Project"]:
    """Active (not soft-deleted) projects, most recently touched first."""
    from app.markeng.modules.projects.models import Project

    q = s.query(Project).filter(or_(Project.is_deleted.is_(None), Project.is_deleted.is_(False)))
    if search:
        like = f"%{search.strip().lower()}%"
        q = q.filter(
            or_(
                func.lower(Project.name).like(like),
                func.lower(Project.company_name).like(like),
                func.lower(Project.created_by).like(like),
            )
        )
    if type:
        q = q.filter(Project.type == type)
    if status:
        q = q.filter(Project.status == status)
    return q.order_by(Project.updated_at.desc(), Project.id.desc()).all()


def list_vendors(s: "Session") -> list["Vendor"]:
    from app.markeng.modules.projects.models import Vendor

    return s.query(Vendor).order_by(Vendor.name.asc()).all()


def _touch(project: "Project") -> None:
    project.updated_at = datetime.utcnow()


# ---------------------------------------------------------------------------
# Ledgers
# ---------------------------------------------------------------------------


def validate_expense_payload(payload: dict) -> list[str]:
    errors = []
    if not clean(payload.get("name")):
        errors.append("Expense item is required.")
    _amount(errors, payload, "amount", "Amount", required=True)
    _choice(errors, payload, "category", EXPENSE_CATEGORIES, "category")
    _choice(errors, payload, "status", EXPENSE_STATUSES, "status")
    _choice(errors, payload, "payment_mode", PAYMENT_MODES, "payment mode")
    return errors


def add_expense(s: "Session", project: "Project", payload: dict, user: "User | None") -> "Expense":
    from app.markeng.modules.projects.models import Expense

    expense = Expense(
        project_id=project.id,
        name=clean(payload.get("name")),
        amount=parse_float(payload.get("amount"), 0.0) or 0.0,
        category=clean(payload.get("category")) or "Other",
        date=parse_date(payload.get("date")) or ist_today(),
        paid_by=clean(payload.get("paid_by")),
        payment_mode=clean(payload.get("payment_mode")) or "Cash",
        status=clean(payload.get("status")) or "Pending",
        notes=clean(payload.get("notes")),
    )
    project.expenses.append(expense)
    s.flush()
    _touch(project)
    record_event(
        s,
        actor=user,
        action="project.expense_add",
        entity_type="Project",
        entity_id=str(project.id),
        metadata={"expense_id": expense.id, "name": expense.name, "amount": expense.amount},
    )
    return expense


def set_expense_status(
    s: "Session", expense: "Expense", status: str, user: "User | None", *, reason: str | None = None
) -> "Expense":
    if status not in EXPENSE_STATUSES:
        raise ValueError(f"Invalid status. Must be one of: {', '.join(EXPENSE_STATUSES)}")
    if status == "Rejected" and not clean(reason):
        raise ValueError("A reason is required to reject an expense.")
    old = expense.status
    expense.status = status
    expense.rejection_reason = clean(reason) if status == "Rejected" else None
    record_event(
        s,
        actor=user,
        action="project.expense_status",
        entity_type="Project",
        entity_id=str(expense.project_id),
        reason=expense.rejection_reason,
        metadata={"expense_id": expense.id, "status": {"old": old, "new": status}},
    )
    return expense


def delete_expense(s: "Session", project: "Project", expense: "Expense", user: "User | None") -> None:
    record_event(
        s,
        actor=user,
        action="project.expense_delete",
        entity_type="Project",
        entity_id=str(expense.project_id),
        metadata={"expense_id": expense.id, "name": expense.name, "amount": expense.amount},
    )
    project.expenses.remove(expense)


def import_expenses(s: "Session", project: "Project", rows: list[dict], user: "User | None") -> int:
    """
    Rows keyed by the sheet headers Item, Amount, Category, Date, Paid By,
    Status, Notes. Rows without an Item or Amount are skipped.
    """
    count = 0
    for row in rows:
        if not clean(row.get("Item")) or parse_float(row.get("Amount")) is None:
            continue
        category = clean(row.get("Category"))
        status = clean(row.get("Status"))
        add_expense(
            s,
            project,
            {
                "name": row.get("Item"),
                "amount": row.get("Amount"),
                "category": category if category in EXPENSE_CATEGORIES else "Other",
                "date": row.get("Date"),
                "paid_by": row.get("Paid By"),
                "status": status if status in EXPENSE_STATUSES else "Pending",
                "notes": row.get("Notes"),
            },
            user,
        )
        count += 1
    logger.info("Imported %d expenses into project %s", count, project.id)
    return count


def validate_income_payload(payload: dict) -> list[str]:
    errors = []
    if not clean(payload.get("client_name")):
        errors.append("Client name is required.")
    _amount(errors, payload, "amount", "Amount", required=True)
    _choice(errors, payload, "status", INCOME_STATUSES, "status")
    _choice(errors, payload, "mode", PAYMENT_MODES, "payment mode")
    return errors


def add_income(s: "Session", project: "Project", payload: dict, user: "User | None") -> "Income":
    from app.markeng.modules.projects.models import Income

    income = Income(
        project_id=project.id,
        client_name=clean(payload.get("client_name")),
        amount=parse_float(payload.get("amount"), 0.0) or 0.0,
        invoice_number=clean(payload.get("invoice_number")),
        received_date=parse_date(payload.get("received_date")) or ist_today(),
        status=clean(payload.get("status")) or "Pending",
        mode=clean(payload.get("mode")) or "Bank",
        linked_to_commercial=parse_bool(payload.get("linked_to_commercial")),
    )
    project.incomes.append(income)
    s.flush()
    _touch(project)
    record_event(
        s,
        actor=user,
        action="project.income_add",
        entity_type="Project",
        entity_id=str(project.id),
        metadata={"income_id": income.id, "client": income.client_name, "amount": income.amount},
    )
    return income


def delete_income(s: "Session", project: "Project", income: "Income", user: "User | None") -> None:
    record_event(
        s,
        actor=user,
        action="project.income_delete",
        entity_type="Project",
        entity_id=str(income.project_id),
        metadata={"income_id": income.id, "amount": income.amount},
    )
    project.incomes.remove(income)


def import_incomes(s: "Session", project: "Project", rows: list[dict], user: "User | None") -> int:
    """Rows keyed by Client, Amount, Invoice, Date, Status; rows without Client or Amount are skipped."""
    count = 0
    for row in rows:
        if not clean(row.get("Client")) or parse_float(row.get("Amount")) is None:
            continue
        status = clean(row.get("Status"))
        add_income(
            s,
            project,
            {
                "client_name": row.get("Client"),
                "amount": row.get("Amount"),
                "invoice_number": row.get("Invoice"),
                "received_date": row.get("Date"),
                "status": status if status in INCOME_STATUSES else "Pending",
            },
            user,
        )
        count += 1
    logger.info("Imported %d incomes into project %s", count, project.id)
    return count


def validate_payment_payload(payload: dict) -> list[str]:
    errors = []
    _amount(errors, payload, "amount", "Amount", required=True)
    _choice(errors, payload, "mode", PAYMENT_MODES, "payment mode")
    if clean(payload.get("date")) and parse_date(payload.get("date")) is None:
        errors.append("Date must be YYYY-MM-DD.")
    return errors


def add_client_payment(s: "Session", project: "Project", payload: dict, user: "User | None") -> "ClientPayment":
    from app.markeng.modules.projects.models import ClientPayment

    payment = ClientPayment(
        project_id=project.id,
        date=parse_date(payload.get("date")) or ist_today(),
        invoice_no=clean(payload.get("invoice_no")),
        amount=parse_float(payload.get("amount"), 0.0) or 0.0,
        mode=clean(payload.get("mode")) or "Bank",
        reference=clean(payload.get("reference")),
        added_by=_actor_name(user),
        notes=clean(payload.get("notes")),
    )
    project.client_payments.append(payment)
    s.flush()
    _touch(project)
    log_activity(
        s, project, "PAYMENT_UPDATED", f"Client payment of {payment.amount:,.2f} received", user,
        {"side": "client", "payment_id": payment.id, "amount": payment.amount},
    )
    record_event(
        s,
        actor=user,
        action="project.client_payment",
        entity_type="Project",
        entity_id=str(project.id),
        metadata={"payment_id": payment.id, "amount": payment.amount, "mode": payment.mode},
    )
    return payment


def add_vendor_payment(s: "Session", project: "Project", payload: dict, user: "User | None") -> "VendorPayment":
    from app.markeng.modules.projects.models import VendorPayment

    payment = VendorPayment(
        project_id=project.id,
        date=parse_date(payload.get("date")) or ist_today(),
        voucher_no=clean(payload.get("voucher_no")),
        amount=parse_float(payload.get("amount"), 0.0) or 0.0,
        mode=clean(payload.get("mode")) or "Bank",
        reference=clean(payload.get("reference")),
        paid_by=clean(payload.get("paid_by")) or _actor_name(user),
        remarks=clean(payload.get("remarks")),
    )
    project.vendor_payments.append(payment)
    s.flush()
    _touch(project)
    log_activity(
        s, project, "PAYMENT_UPDATED", f"Vendor payment of {payment.amount:,.2f} made", user,
        {"side": "vendor", "payment_id": payment.id, "amount": payment.amount},
    )
    record_event(
        s,
        actor=user,
        action="project.vendor_payment",
        entity_type="Project",
        entity_id=str(project.id),
        metadata={"payment_id": payment.id, "amount": payment.amount, "mode": payment.mode},
    )
    return payment


def add_extra_expense(s: "Session", project: "Project", payload: dict, user: "User | None") -> "ExtraExpense":
    from app.markeng.modules.projects.models import ExtraExpense

    kind = clean(payload.get("type"))
    if not kind:
        raise ValueError("Expense type is required.")
    extra = ExtraExpense(
        project_id=project.id,
        date=parse_date(payload.get("date")) or ist_today(),
        type=kind,
        amount=parse_float(payload.get("amount"), 0.0) or 0.0,
        mode=clean(payload.get("mode")) or "Cash",
        reference=clean(payload.get("reference")),
        added_by=_actor_name(user),
    )
    project.extra_expenses.append(extra)
    s.flush()
    _touch(project)
    record_event(
        s,
        actor=user,
        action="project.extra_expense_add",
        entity_type="Project",
        entity_id=str(project.id),
        metadata={"extra_expense_id": extra.id, "type": extra.type, "amount": extra.amount},
    )
    return extra


def commercial_summary(project: "Project") -> dict[str, float]:
    cd = project.commercial_details
    return {
        "client_balance": ledger.client_balance(cd, project.client_payments),
        "vendor_balance": ledger.vendor_balance(cd, project.vendor_payments),
        "client_received": ledger.total_amount(project.client_payments),
        "vendor_paid": ledger.total_amount(project.vendor_payments),
        "extra_expenses": ledger.extra_expense_total(project.extra_expenses),
        "margin_percent": cd.margin_percent if cd else 0.0,
    }


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


def upload_document(
    s: "Session",
    storage: "Storage",
    project: "Project",
    *,
    file_bytes: bytes,
    filename: str,
    content_type: str,
    category: str | None,
    tags: Iterable[str],
    user: "User | None",
) -> "ProjectDocument":
    from app.markeng.modules.projects.models import ProjectDocument

    category = clean(category) or "Other"
    if category not in DOCUMENT_CATEGORIES:
        raise ValueError(f"Invalid category. Must be one of: {', '.join(DOCUMENT_CATEGORIES)}")
    tag_list = [t for t in (clean(t) for t in tags) if t in DOCUMENT_TAGS]

    key = build_storage_key(f"{STORAGE_PREFIX}/{project.id}", filename)
    storage.put_bytes(key, file_bytes, content_type=content_type)
    doc = ProjectDocument(
        project_id=project.id,
        name=filename,
        category=category,
        tags=tag_list,
        storage_key=key,
        file_type=content_type,
        size_bytes=len(file_bytes),
        uploaded_by=_actor_name(user),
    )
    project.documents.append(doc)
    s.flush()
    _touch(project)
    log_activity(s, project, "DOCUMENT_ADDED", f"{category} uploaded: {filename}", user, {"document_id": doc.id})
    record_event(
        s,
        actor=user,
        action="project.document_upload",
        entity_type="Project",
        entity_id=str(project.id),
        metadata={"document_id": doc.id, "storage_key": key, "size_bytes": len(file_bytes)},
    )
    return doc


def delete_document(s: "Session", storage: "Storage", project: "Project", doc: "ProjectDocument", user: "User | None") -> None:
    record_event(
        s,
        actor=user,
        action="project.document_delete",
        entity_type="Project",
        entity_id=str(doc.project_id),
        metadata={"document_id": doc.id, "storage_key": doc.storage_key},
    )
    project.documents.remove(doc)
    storage.delete(doc.storage_key)


# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------


def expense_export_rows(expenses: Iterable["Expense"]) -> list[list[Any]]:
    return [[e.date, e.name, e.category, e.paid_by or "-", e.status, e.amount, e.notes or ""] for e in expenses]


def income_export_rows(incomes: Iterable["Income"]) -> list[list[Any]]:
    return [[i.received_date, i.client_name, i.invoice_number or "-", i.status, i.amount] for i in incomes]


def project_report_rows(project: "Project") -> list[list[Any]]:
    rows: list[list[Any]] = [
        ["Project Name", project.name],
        ["Description", project.description or "N/A"],
        ["Start Date", project.start_date or "N/A"],
        ["End Date", project.end_date or "N/A"],
        ["Status", project.status],
        ["Created By", project.created_by],
        ["Company/Client", project.company_name or "N/A"],
    ]
    vd = project.vendor_details
    if project.is_vendor and vd is not None:
        rows += [
            ["Vendor Name", vd.vendor_name],
            ["Vendor Type", vd.vendor_type],
            ["Vendor Contact", vd.vendor_contact or "N/A"],
            ["Timeline", f"{vd.timeline_weeks} Weeks"],
        ]
    cd = project.commercial_details
    if project.is_vendor and cd is not None:
        summary = commercial_summary(project)
        rows += [
            ["Project Cost", cd.client_project_cost],
            ["Advance Received", cd.client_advance_received],
            ["Balance Receivable", summary["client_balance"]],
            ["Vendor Cost", cd.vendor_total_cost],
            ["Advance Paid", cd.vendor_advance_paid],
            ["Balance Payable", summary["vendor_balance"]],
            ["Margin %", cd.margin_percent],
            ["Rate Type", cd.rate_type or "N/A"],
            ["Payment Terms", cd.client_payment_terms or "N/A"],
            ["GST Applicable", "Yes" if cd.client_gst_applicable else "No"],
        ]
        if cd.client_gst_applicable:
            rows.append(["GST Number", cd.client_gst_number or "N/A"])
    pnl = ledger.profit_and_loss(project.incomes, project.expenses)
    rows += [
        ["Total Income", pnl.total_income],
        ["Total Expenses", pnl.total_expenses],
        ["Net Profit", pnl.net_profit],
        ["Profit Margin %", pnl.margin_percent],
    ]
    return rows
