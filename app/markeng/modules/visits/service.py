from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from app.markeng.audit import record_event
from app.markeng.constants import PAYMENT_MODES, VISIT_CHECKLIST_ITEMS, VISIT_PAYMENT_STATUSES, VISIT_STATUSES
from app.markeng.dateutils import ist_today
from app.markeng.storage import build_storage_key
from app.markeng.utils import clean, parse_bool, parse_date, parse_float, parse_int

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from app.markeng.models import User
    from app.markeng.modules.visits.models import Visit
    from app.markeng.storage import Storage

ALL_STATUSES = "All"
CALL_TYPES = ("Pre-Visit", "Post-Visit")
STORAGE_PREFIX = "visits"

_TEXT_FIELDS = (
    "notes",
    "location",
    "expense_note",
    "visit_result",
    "transport_mode",
    "vehicle_no",
    "start_location",
    "end_location",
)


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


def empty_checklist() -> dict[str, bool]:
    return {k: False for k in VISIT_CHECKLIST_ITEMS}


def validate_visit_payload(s: "Session", payload: dict) -> list[str]:
    from app.markeng.modules.customers.models import Customer

    errors = []
    customer_id = parse_int(payload.get("customer_id"))
    if not customer_id or s.get(Customer, customer_id) is None:
        errors.append("Select an existing customer for the visit.")
    status = clean(payload.get("status"))
    if status and status not in VISIT_STATUSES:
        errors.append(f"Invalid status. Must be one of: {', '.join(VISIT_STATUSES)}")
    payment_status = clean(payload.get("payment_status"))
    if payment_status and payment_status not in VISIT_PAYMENT_STATUSES:
        errors.append(f"Invalid payment status. Must be one of: {', '.join(VISIT_PAYMENT_STATUSES)}")
    payment_mode = clean(payload.get("payment_mode"))
    if payment_mode and payment_mode not in PAYMENT_MODES:
        errors.append(f"Invalid payment mode. Must be one of: {', '.join(PAYMENT_MODES)}")
    if clean(payload.get("date")) and parse_date(payload.get("date")) is None:
        errors.append("Visit date must be YYYY-MM-DD.")
    return errors


def plan_visit(s: "Session", payload: dict, user: "User | None") -> "Visit":
    """New visits always start as Planned; the customer name is copied onto the visit."""
    from app.markeng.modules.customers.models import Customer
    from app.markeng.modules.visits.models import Visit

    customer = s.get(Customer, parse_int(payload.get("customer_id")))
    if customer is None:
        raise ValueError("Customer not found")

    visit = Visit(
        customer_id=customer.id,
        customer_name=customer.name,
        date=parse_date(payload.get("date")) or ist_today(),
        purpose=clean(payload.get("purpose")) or "",
        assigned_to=clean(payload.get("assigned_to")) or (user.display_name if user else ""),
        status="Planned",
        expense_amount=parse_float(payload.get("expense_amount")),
        next_follow_up_date=parse_date(payload.get("next_follow_up_date")),
        reminder_enabled=parse_bool(payload.get("reminder_enabled")),
        distance=parse_float(payload.get("distance")),
        payment_mode=clean(payload.get("payment_mode")),
        expected_amount=parse_float(payload.get("expected_amount")),
        payment_status=clean(payload.get("payment_status")) or "Not Discussed",
        expected_payment_date=parse_date(payload.get("expected_payment_date")),
        call_logs=list(payload.get("call_logs") or []),
        met_contacts=list(payload.get("met_contacts") or []),
        checklist={**empty_checklist(), **(payload.get("checklist") or {})},
        attachments=list(payload.get("attachments") or []),
    )
    for key in _TEXT_FIELDS:
        setattr(visit, key, clean(payload.get(key)))
    s.add(visit)
    s.flush()

    record_event(
        s,
        actor=user,
        action="visit.create",
        entity_type="Visit",
        entity_id=str(visit.id),
        metadata={"customer_id": customer.id, "date": visit.date.isoformat(), "assigned_to": visit.assigned_to},
    )
    return visit


def update_visit(s: "Session", visit: "Visit", payload: dict, user: "User | None") -> "Visit":
    """Edit the scalar fields that are present in the payload."""
    for key in _TEXT_FIELDS:
        if key in payload:
            setattr(visit, key, clean(payload.get(key)))
    if "purpose" in payload:
        visit.purpose = clean(payload.get("purpose")) or ""
    if "assigned_to" in payload:
        visit.assigned_to = clean(payload.get("assigned_to")) or visit.assigned_to
    if parse_date(payload.get("date")):
        visit.date = parse_date(payload.get("date"))
    for key in ("expense_amount", "distance", "expected_amount"):
        if key in payload:
            setattr(visit, key, parse_float(payload.get(key)))
    for key in ("next_follow_up_date", "expected_payment_date"):
        if key in payload:
            setattr(visit, key, parse_date(payload.get(key)))
    for key in ("payment_mode", "payment_status"):
        if key in payload:
            setattr(visit, key, clean(payload.get(key)))
    if "reminder_enabled" in payload:
        visit.reminder_enabled = parse_bool(payload.get("reminder_enabled"))
    if clean(payload.get("status")) and payload["status"] != visit.status:
        return set_visit_status(s, visit, payload["status"], user)
    visit.updated_at = datetime.utcnow()
    record_event(s, actor=user, action="visit.edit", entity_type="Visit", entity_id=str(visit.id))
    return visit


def set_visit_status(s: "Session", visit: "Visit", status: str, user: "User | None") -> "Visit":
    if status not in VISIT_STATUSES:
        raise ValueError(f"Invalid visit status: {status}")
    old = visit.status
    visit.status = status
    visit.updated_at = datetime.utcnow()
    record_event(
        s,
        actor=user,
        action="visit.status",
        entity_type="Visit",
        entity_id=str(visit.id),
        metadata={"old": old, "new": status},
    )
    return visit


def delete_visit(s: "Session", visit: "Visit", user: "User | None") -> None:
    record_event(
        s,
        actor=user,
        action="visit.delete",
        entity_type="Visit",
        entity_id=str(visit.id),
        metadata={"customer_name": visit.customer_name, "date": visit.date.isoformat()},
    )
    s.delete(visit)


def add_call_log(s: "Session", visit: "Visit", payload: dict, user: "User | None") -> dict[str, Any]:
    call_type = clean(payload.get("type")) or "Pre-Visit"
    if call_type not in CALL_TYPES:
        raise ValueError(f"Invalid call type: {call_type}")
    entry = {
        "id": _new_id(),
        "type": call_type,
        "date": (parse_date(payload.get("date")) or ist_today()).isoformat(),
        "contact_person": clean(payload.get("contact_person")) or "",
        "purpose": clean(payload.get("purpose")) or "",
        "notes": clean(payload.get("notes")),
        "completed": parse_bool(payload.get("completed")),
    }
    visit.call_logs = [*(visit.call_logs or []), entry]
    visit.updated_at = datetime.utcnow()
    record_event(s, actor=user, action="visit.call_log", entity_type="Visit", entity_id=str(visit.id), metadata=entry)
    return entry


def add_met_contact(s: "Session", visit: "Visit", payload: dict, user: "User | None") -> dict[str, Any]:
    name = clean(payload.get("name"))
    if not name:
        raise ValueError("Contact name is required.")
    entry = {
        "id": _new_id(),
        "name": name,
        "designation": clean(payload.get("designation")) or "",
        "phone": clean(payload.get("phone")),
        "email": clean(payload.get("email")),
        "is_decision_maker": parse_bool(payload.get("is_decision_maker")),
    }
    visit.met_contacts = [*(visit.met_contacts or []), entry]
    visit.updated_at = datetime.utcnow()
    record_event(s, actor=user, action="visit.met_contact", entity_type="Visit", entity_id=str(visit.id), metadata={"name": name})
    return entry


def toggle_checklist_item(s: "Session", visit: "Visit", item: str, user: "User | None") -> bool:
    if item not in VISIT_CHECKLIST_ITEMS:
        raise ValueError(f"Unknown checklist item: {item}")
    checklist = {**empty_checklist(), **(visit.checklist or {})}
    checklist[item] = not checklist[item]
    visit.checklist = checklist
    visit.updated_at = datetime.utcnow()
    record_event(
        s,
        actor=user,
        action="visit.checklist",
        entity_type="Visit",
        entity_id=str(visit.id),
        metadata={"item": item, "done": checklist[item]},
    )
    return checklist[item]


def add_attachment(
    s: "Session",
    storage: "Storage",
    visit: "Visit",
    *,
    file_bytes: bytes,
    filename: str,
    content_type: str,
    user: "User | None",
) -> dict[str, Any]:
    key = build_storage_key(f"{STORAGE_PREFIX}/{visit.id}", filename)
    storage.put_bytes(key, file_bytes, content_type=content_type)
    if content_type.startswith("image/"):
        kind = "Image"
    elif content_type in ("application/pdf", "application/msword") or content_type.startswith(
        ("application/vnd.", "text/")
    ):
        kind = "Document"
    else:
        kind = "Other"
    entry = {"id": _new_id(), "name": filename, "type": kind, "storage_key": key, "content_type": content_type}
    visit.attachments = [*(visit.attachments or []), entry]
    visit.updated_at = datetime.utcnow()
    record_event(
        s,
        actor=user,
        action="visit.attachment_upload",
        entity_type="Visit",
        entity_id=str(visit.id),
        metadata={"name": filename, "storage_key": key},
    )
    return entry


def filter_visits(s: "Session", *, search: str = "", status: str = ALL_STATUSES) -> list["Visit"]:
    """Search over customer name, purpose and assignee; newest visit first."""
    from app.markeng.modules.visits.models import Visit

    q = s.query(Visit)
    if status and status != ALL_STATUSES:
        q = q.filter(Visit.status == status)
    visits = q.order_by(Visit.date.desc(), Visit.id.desc()).all()
    term = (search or "").strip().lower()
    if term:
        visits = [
            v
            for v in visits
            if term in (v.customer_name or "").lower()
            or term in (v.purpose or "").lower()
            or term in (v.assigned_to or "").lower()
        ]
    return visits


def visit_stats(visits: list["Visit"], *, today: date | None = None) -> dict[str, int]:
    today = today or ist_today()
    return {
        "total": len(visits),
        "upcoming": sum(1 for v in visits if v.status == "Planned" and v.date >= today),
        "completed": sum(1 for v in visits if v.status == "Completed"),
        "cancelled": sum(1 for v in visits if v.status == "Cancelled"),
    }
