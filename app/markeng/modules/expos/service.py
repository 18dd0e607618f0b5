from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, or_

from app.markeng.audit import record_event
from app.markeng.constants import (
    EXPO_DOCUMENT_FIELDS,
    EXPO_PARTICIPATION_TYPES,
    EXPO_REGISTRATION_STATUSES,
    EXPO_STATUSES,
)
from app.markeng.storage import build_storage_key
from app.markeng.utils import clean, parse_date, parse_float, parse_int

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from app.markeng.genai_client import GenAIClient
    from app.markeng.models import User
    from app.markeng.modules.expos.models import Expo
    from app.markeng.storage import Storage

logger = logging.getLogger(__name__)

STORAGE_PREFIX = "expos"

_TEXT_FIELDS = (
    "location",
    "link",
    "description",
    "organizer_name",
    "website",
    "city",
    "state",
    "venue",
    "zone",
    "stall_no",
    "booth_size",
    "assigned_team",
    "visit_plan",
    "transport_mode",
    "hotel_details",
)
_COUNT_FIELDS = (
    "leads_generated",
    "hot_leads",
    "warm_leads",
    "cold_leads",
    "orders_received",
    "pipeline_inquiries",
    "new_contacts",
)


def validate_expo_payload(payload: dict) -> list[str]:
    errors = []
    if not clean(payload.get("name")) or not (clean(payload.get("date")) or clean(payload.get("start_date"))):
        errors.append("Please enter Event Name and Start Date.")
    for key, allowed in (
        ("status", EXPO_STATUSES),
        ("participation_type", EXPO_PARTICIPATION_TYPES),
        ("registration_status", EXPO_REGISTRATION_STATUSES),
    ):
        value = clean(payload.get(key))
        if value and value not in allowed:
            errors.append(f"Invalid {key.replace('_', ' ')}. Must be one of: {', '.join(allowed)}")
    start, end = parse_date(payload.get("start_date")), parse_date(payload.get("end_date"))
    if start and end and end < start:
        errors.append("End date cannot be before start date.")
    return errors


def display_date(payload: dict) -> str:
    """'start to end' when both ends are known, else whichever single date was given."""
    start = clean(payload.get("start_date"))
    end = clean(payload.get("end_date"))
    if start and end:
        return f"{start} to {end}"
    return start or clean(payload.get("date")) or ""


def _apply_fields(expo: "Expo", payload: dict) -> None:
    expo.name = clean(payload.get("name")) or expo.name
    expo.date = display_date(payload)
    expo.industry = clean(payload.get("industry")) or "Mechanical"
    expo.region = clean(payload.get("region")) or "India"
    expo.event_type = clean(payload.get("event_type")) or "Expo / Trade Fair"
    expo.start_date = parse_date(payload.get("start_date"))
    expo.end_date = parse_date(payload.get("end_date"))
    expo.status = clean(payload.get("status")) or expo.status or "upcoming"
    expo.participation_type = clean(payload.get("participation_type")) or expo.participation_type or "Visitor"
    expo.registration_status = clean(payload.get("registration_status")) or expo.registration_status or "Applied"
    expo.fee_cost = parse_float(payload.get("fee_cost"), 0.0) or 0.0
    expo.budget = parse_float(payload.get("budget"), 0.0) or 0.0
    for key in _TEXT_FIELDS:
        setattr(expo, key, clean(payload.get(key)))
    for key in _COUNT_FIELDS:
        setattr(expo, key, parse_int(payload.get(key), 0) or 0)
    for column in EXPO_DOCUMENT_FIELDS.values():
        if column in payload:
            setattr(expo, column, clean(payload.get(column)))
    expo.updated_at = datetime.utcnow()


def expo_payload(expo: "Expo") -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": expo.name,
        "date": expo.date,
        "industry": expo.industry,
        "region": expo.region,
        "event_type": expo.event_type,
        "start_date": expo.start_date.isoformat() if expo.start_date else None,
        "end_date": expo.end_date.isoformat() if expo.end_date else None,
        "status": expo.status,
        "participation_type": expo.participation_type,
        "registration_status": expo.registration_status,
        "fee_cost": expo.fee_cost,
        "budget": expo.budget,
    }
    for key in _TEXT_FIELDS + _COUNT_FIELDS + tuple(EXPO_DOCUMENT_FIELDS.values()):
        data[key] = getattr(expo, key)
    return data


def create_expo(s: "Session", payload: dict, user: "User | None", *, is_ai_scouted: bool = False) -> "Expo":
    from app.markeng.modules.expos.models import Expo

    expo = Expo(is_ai_scouted=is_ai_scouted)
    _apply_fields(expo, payload)
    s.add(expo)
    s.flush()
    record_event(
        s,
        actor=user,
        action="expo.create",
        entity_type="Expo",
        entity_id=str(expo.id),
        metadata={"name": expo.name, "date": expo.date, "ai_scouted": is_ai_scouted},
    )
    return expo


def update_expo(s: "Session", expo: "Expo", payload: dict, user: "User | None") -> "Expo":
    payload = {**expo_payload(expo), **payload}
    old_status = expo.status
    _apply_fields(expo, payload)
    record_event(
        s,
        actor=user,
        action="expo.edit",
        entity_type="Expo",
        entity_id=str(expo.id),
        metadata={"name": expo.name, "status": {"old": old_status, "new": expo.status}},
    )
    return expo


def delete_expo(s: "Session", expo: "Expo", user: "User | None") -> None:
    record_event(s, actor=user, action="expo.delete", entity_type="Expo", entity_id=str(expo.id), metadata={"name": expo.name})
    s.delete(expo)


def list_expos(s: "Session", *, search: str = "", status: str = "") -> list["Expo"]:
    from app.markeng.modules.expos.models import Expo

    q = s.query(Expo)
    if search:
        like = f"%{search.strip().lower()}%"
        q = q.filter(
            or_(
                func.lower(Expo.name).like(like),
                func.lower(Expo.location).like(like),
                func.lower(Expo.industry).like(like),
                func.lower(Expo.city).like(like),
            )
        )
    if status:
        q = q.filter(Expo.status == status)
    return q.order_by(Expo.start_date.is_(None), Expo.start_date.asc(), Expo.id.desc()).all()


def upload_expo_document(
    s: "Session",
    storage: "Storage",
    expo: "Expo",
    *,
    field: str,
    file_bytes: bytes,
    filename: str,
    content_type: str,
    user: "User | None",
) -> str:
    """Store the file and point the expo's link field at its storage key."""
    column = EXPO_DOCUMENT_FIELDS.get(field)
    if column is None:
        raise ValueError(f"Unknown expo document field: {field}")
    key = build_storage_key(STORAGE_PREFIX, filename)
    storage.put_bytes(key, file_bytes, content_type=content_type)
    setattr(expo, column, key)
    expo.updated_at = datetime.utcnow()
    record_event(
        s,
        actor=user,
        action="expo.document_upload",
        entity_type="Expo",
        entity_id=str(expo.id),
        metadata={"field": field, "storage_key": key, "size_bytes": len(file_bytes)},
    )
    return key


def is_storage_key(value: str | None) -> bool:
    return bool(value) and value.startswith(f"{STORAGE_PREFIX}/")


def reminder_expo_ids(s: "Session", user: "User") -> set[int]:
    from app.markeng.modules.expos.models import ExpoReminder

    return {r.expo_id for r in s.query(ExpoReminder).filter(ExpoReminder.user_id == user.id).all()}


def toggle_reminder(s: "Session", expo: "Expo", user: "User") -> bool:
    """Flip the user's reminder for this expo; returns True when it is now on."""
    from app.markeng.modules.expos.models import ExpoReminder

    existing = (
        s.query(ExpoReminder)
        .filter(ExpoReminder.user_id == user.id, ExpoReminder.expo_id == expo.id)
        .one_or_none()
    )
    if existing is not None:
        s.delete(existing)
        enabled = False
    else:
        s.add(ExpoReminder(user_id=user.id, expo_id=expo.id))
        enabled = True
    record_event(
        s,
        actor=user,
        action="expo.reminder_on" if enabled else "expo.reminder_off",
        entity_type="Expo",
        entity_id=str(expo.id),
    )
    return enabled


def scout_expos(s: "Session", client: "GenAIClient", user: "User | None", industry: str | None = None) -> list["Expo"]:
    """
    Ask the generative API for upcoming events and persist the ones whose name
    (case-insensitive) is not already on file.
    """
    from app.markeng.modules.expos.models import Expo

    listings = client.fetch_upcoming_expos(industry) if industry else client.fetch_upcoming_expos()
    existing = {n.lower() for (n,) in s.query(Expo.name).all()}
    created: list[Expo] = []
    for item in listings:
        name = clean(item.get("name"))
        if not name or name.lower() in existing:
            continue
        existing.add(name.lower())
        payload = {
            "name": name,
            "date": clean(item.get("date")) or "TBA",
            "location": item.get("location"),
            "industry": item.get("industry"),
            "region": item.get("region"),
            "description": item.get("description"),
            "link": item.get("link"),
        }
        created.append(create_expo(s, payload, user, is_ai_scouted=True))
    logger.info("Expo scout: %d listings, %d new", len(listings), len(created))
    return created
