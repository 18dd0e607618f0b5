from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.markeng import geo
from app.markeng.audit import record_event
from app.markeng.constants import CUSTOMER_STATUSES, SYSTEM_NAME, SYSTEM_VERSION, normalize_tech_category
from app.markeng.dateutils import format_ist_time, ist_iso_date, ist_timestamp
from app.markeng.exports import xlsx_bytes
from app.markeng.modules.data_management.importer import TEMPLATE_HEADERS
from app.markeng.utils import clean, parse_date, parse_float

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from app.markeng.models import User
    from app.markeng.modules.data_management.models import ImportBatch

logger = logging.getLogger(__name__)

INQUIRY_CREATOR = "Inquiry Import"
HISTORY_LIMIT = 15


@dataclass
class ImportResult:
    created: dict[str, list[int]] = field(default_factory=dict)
    skipped: int = 0

    def add(self, kind: str, pk: int) -> None:
        self.created.setdefault(kind, []).append(pk)

    def count(self, kind: str | None = None) -> int:
        if kind is not None:
            return len(self.created.get(kind, []))
        return sum(len(v) for v in self.created.values())


def _name_key(name: Any) -> str:
    return str(name or "").strip().lower()


def _customers_by_name(s: "Session") -> dict[str, Any]:
    from app.markeng.modules.customers.models import Customer

    return {_name_key(c.name): c for c in s.query(Customer).all()}


def log_batch(
    s: "Session",
    *,
    kind: str,
    action: str,
    count: int,
    status: str = "Success",
    created: dict[str, list[int]] | None = None,
    user: "User | None" = None,
) -> "ImportBatch":
    from app.markeng.modules.data_management.models import ImportBatch

    batch = ImportBatch(
        kind=kind,
        action=action,
        record_count=count,
        status=status,
        created_ids=created or {},
        created_by_user_id=user.id if user else None,
    )
    s.add(batch)
    s.flush()
    record_event(
        s,
        actor=user,
        action=f"data.{kind}",
        entity_type="ImportBatch",
        entity_id=str(batch.id),
        metadata={"action": action, "count": count, "status": status},
    )
    logger.info("%s: %d records (%s)", action, count, status)
    return batch


def recent_batches(s: "Session", limit: int = HISTORY_LIMIT) -> list["ImportBatch"]:
    from app.markeng.modules.data_management.models import ImportBatch

    return s.query(ImportBatch).order_by(ImportBatch.created_at.desc(), ImportBatch.id.desc()).limit(limit).all()


def batch_time(batch: "ImportBatch") -> str:
    return format_ist_time(batch.created_at)


# ---------------------------------------------------------------------------
# Bulk imports
# ---------------------------------------------------------------------------


def import_customers(s: "Session", entries: list[dict], user: "User | None") -> ImportResult:
    """Create customers whose trimmed, case-insensitive name is new to both the DB and this batch."""
    from app.markeng.modules.customers.service import create_customer

    result = ImportResult()
    known = set(_customers_by_name(s))
    for entry in entries:
        key = _name_key(entry.get("name"))
        if not key or key in known:
            result.skipped += 1
            continue
        known.add(key)
        payload = {
            "name": clean(entry.get("name")),
            "city": clean(entry.get("city")) or "N/A",
            "state": clean(entry.get("state")),
            "country": clean(entry.get("country")) or "India",
            "industry": clean(entry.get("industry")) or "Manufacturing",
            "annual_turnover": parse_float(entry.get("annual_turnover"), 0.0),
            "project_turnover": 0,
        }
        contact_name = clean(entry.get("contact_name"))
        if contact_name:
            payload["contacts"] = [
                {"name": contact_name, "designation": "Contact", "email": clean(entry.get("contact_email"))}
            ]
        customer = create_customer(s, payload, user)
        result.add("customers", customer.id)
    log_batch(
        s, kind="customers", action="Bulk Saved Customers", count=len(entries), created=result.created, user=user
    )
    return result


def import_pricing(s: "Session", entries: list[dict], user: "User | None") -> ImportResult:
    """Attach approved quotes to customers matched by name; unmatched rows are skipped."""
    from app.markeng.modules.pricing.service import add_pricing_record

    result = ImportResult()
    customers = _customers_by_name(s)
    for entry in entries:
        customer = customers.get(_name_key(entry.get("customer_name")))
        if customer is None:
            result.skipped += 1
            continue
        record = add_pricing_record(
            s,
            customer,
            {
                "tech": normalize_tech_category(clean(entry.get("tech"))),
                "rate": parse_float(entry.get("rate"), 0.0),
                "unit": clean(entry.get("unit")) or "gram",
                "date": parse_date(entry.get("date")) or ist_iso_date(),
                "status": "Approved",
            },
            user,
        )
        result.add("pricing", record.id)
    log_batch(
        s, kind="pricing", action="Bulk Saved Pricing", count=result.count("pricing"), created=result.created, user=user
    )
    return result


def import_expos(s: "Session", entries: list[dict], user: "User | None") -> ImportResult:
    from app.markeng.modules.expos.service import create_expo

    result = ImportResult()
    for entry in entries:
        name = clean(entry.get("name"))
        if not name:
            result.skipped += 1
            continue
        date_value = entry.get("date")
        parsed = parse_date(date_value)
        expo = create_expo(
            s,
            {
                "name": name,
                "date": parsed.isoformat() if parsed else (clean(date_value) or ""),
                "start_date": parsed,
                "location": clean(entry.get("location")),
                "industry": clean(entry.get("industry")) or "Manufacturing",
                "region": clean(entry.get("region")) or "India",
                "link": clean(entry.get("link")),
            },
            user,
        )
        result.add("expos", expo.id)
    log_batch(
        s, kind="expos", action="Bulk Saved Master Inquiries", count=result.count("expos"), created=result.created, user=user
    )
    return result


def import_inquiries(s: "Session", entries: list[dict], user: "User | None") -> ImportResult:
    """
    One-stop ledger import: each lead row may yield a customer (new names
    only), a project-level quote (when the row has a value and the customer
    has no quote at that rate on that date), an "Inquiry: <id>" event and an
    IN_HOUSE project.
    """
    from app.markeng.modules.customers.service import create_customer
    from app.markeng.modules.expos.models import Expo
    from app.markeng.modules.expos.service import create_expo
    from app.markeng.modules.pricing.service import add_pricing_record, has_quote
    from app.markeng.modules.projects.service import create_project

    result = ImportResult()
    customers = _customers_by_name(s)
    expos = [(e.name, e.date) for e in s.query(Expo).all()]

    for entry in entries:
        lead = clean(entry.get("lead_name"))
        inquiry_id = clean(entry.get("inquiry_id"))
        if not lead or not inquiry_id:
            result.skipped += 1
            continue
        row_date = parse_date(entry.get("date"))
        date_text = row_date.isoformat() if row_date else ist_iso_date()
        city, state = geo.resolve_location(
            pincode=clean(entry.get("pincode")),
            city=clean(entry.get("city")),
            state=clean(entry.get("state")),
        )
        status = clean(entry.get("status"))

        customer = customers.get(_name_key(lead))
        if customer is None:
            customer = create_customer(
                s,
                {
                    "name": lead,
                    "city": city or "N/A",
                    "state": state,
                    "pincode": clean(entry.get("pincode")),
                    "country": "India",
                    "industry": clean(entry.get("industry")) or "Manufacturing",
                    "annual_turnover": 0,
                    "project_turnover": 0,
                    "status": status if status in CUSTOMER_STATUSES else None,
                },
                user,
            )
            customers[_name_key(lead)] = customer
            result.add("customers", customer.id)

        value = parse_float(entry.get("value"), 0.0) or 0.0
        if value > 0 and not has_quote(customer, rate=value, on=parse_date(date_text)):
            record = add_pricing_record(
                s,
                customer,
                {
                    "tech": normalize_tech_category("Mechanical"),
                    "rate": value,
                    "unit": "Project",
                    "date": date_text,
                    "status": "Approved",
                },
                user,
            )
            result.add("pricing", record.id)

        expo_name = f"Inquiry: {inquiry_id}"
        duplicate = any(name == expo_name or (d == date_text and lead in name) for name, d in expos)
        if not duplicate:
            expo = create_expo(
                s,
                {
                    "name": expo_name,
                    "date": date_text,
                    "start_date": date_text,
                    "location": city or "Direct",
                    "industry": "Mechanical",
                    "region": state or "India",
                },
                user,
            )
            expos.append((expo.name, expo.date))
            result.add("expos", expo.id)

        project = create_project(
            s,
            {
                "name": f"{lead} - {inquiry_id}",
                "type": "IN_HOUSE",
                "description": f"Created from inquiry ledger import. Source: {inquiry_id}",
                "start_date": date_text,
                "end_date": date_text,
                "status": "Active",
                "created_by": INQUIRY_CREATOR,
                "company_name": lead,
                "location": city or "N/A",
            },
            user,
        )
        result.add("projects", project.id)

    log_batch(s, kind="inquiries", action="Inquiry Ledger Sync", count=len(entries), created=result.created, user=user)
    return result


IMPORTERS = {
    "customers": import_customers,
    "pricing": import_pricing,
    "expos": import_expos,
    "inquiries": import_inquiries,
}


# ---------------------------------------------------------------------------
# Rollback
# ---------------------------------------------------------------------------


def latest_rollback_candidate(s: "Session") -> "ImportBatch | None":
    """The newest batch, if it inserted anything and is not already rolled back."""
    batches = recent_batches(s, limit=1)
    if batches and batches[0].can_roll_back:
        return batches[0]
    return None


def rollback_latest(s: "Session", user: "User | None") -> "ImportBatch":
    """
    Delete every record the latest import created. Projects created by the
    import are hard-deleted since they never existed before it.
    """
    from app.markeng.modules.customers.models import Customer
    from app.markeng.modules.expos.models import Expo
    from app.markeng.modules.pricing.models import PricingRecord
    from app.markeng.modules.projects.models import Project

    batch = latest_rollback_candidate(s)
    if batch is None:
        raise ValueError("Nothing to roll back.")

    removed = 0
    # Children before parents: quotes may hang off customers created in the same batch.
    for kind, model in (("pricing", PricingRecord), ("projects", Project), ("expos", Expo), ("customers", Customer)):
        for pk in batch.created_ids.get(kind, []):
            obj = s.get(model, pk)
            if obj is not None:
                s.delete(obj)
                removed += 1
        s.flush()
    batch.rolled_back_at = datetime.utcnow()
    log_batch(s, kind="rollback", action="System Rollback Triggered", count=removed, status="Recovered", user=user)
    return batch


# ---------------------------------------------------------------------------
# Templates and registry export
# ---------------------------------------------------------------------------


def template_bytes(kind: str) -> bytes:
    headers = TEMPLATE_HEADERS.get(kind)
    if headers is None:
        raise ValueError(f"Unknown template: {kind}")
    return xlsx_bytes(headers, [], sheet_title="Template")


def _customer_record(c) -> dict[str, Any]:
    return {
        "id": c.id,
        "name": c.name,
        "city": c.city,
        "state": c.state,
        "country": c.country,
        "zone": c.zone,
        "industry": c.industry,
        "annual_turnover": c.annual_turnover,
        "project_turnover": c.project_turnover,
        "status": c.status,
        "contacts": [
            {"name": ct.name, "designation": ct.designation, "email": ct.email, "phone": ct.phone}
            for ct in c.contacts
        ],
        "pricing_history": [
            {"tech": p.tech, "rate": p.rate, "unit": p.unit, "date": p.date, "status": p.status}
            for p in c.pricing_history
        ],
    }


def registry_export(s: "Session", user: "User | None" = None) -> dict[str, Any]:
    """Snapshot of the master registries plus a small meta header."""
    from app.markeng.modules.customers.models import Customer
    from app.markeng.modules.expos.models import Expo
    from app.markeng.modules.team.models import TeamMember
    from app.markeng.modules.visits.models import Visit

    customers = s.query(Customer).order_by(Customer.id.asc()).all()
    expos = s.query(Expo).order_by(Expo.id.asc()).all()
    team = s.query(TeamMember).order_by(TeamMember.id.asc()).all()
    visits = s.query(Visit).order_by(Visit.id.asc()).all()

    digest = base64.b64encode(
        json.dumps({"c": len(customers), "v": len(visits)}, separators=(",", ":")).encode("utf-8")
    ).decode("ascii")
    total = len(customers) + len(expos) + len(team) + len(visits)
    payload = {
        "meta": {
            "system": SYSTEM_NAME,
            "version": SYSTEM_VERSION,
            "timestamp": ist_timestamp(),
            "total_record_count": total,
            "state_digest": digest,
        },
        "registries": {
            "customers": [_customer_record(c) for c in customers],
            "expos": [
                {
                    "id": e.id,
                    "name": e.name,
                    "date": e.date,
                    "location": e.location,
                    "industry": e.industry,
                    "region": e.region,
                    "status": e.status,
                }
                for e in expos
            ],
            "personnel": [
                {"id": m.id, "name": m.name, "role": m.role, "email": m.email, "phone": m.phone} for m in team
            ],
            "visit_logs": [
                {
                    "id": v.id,
                    "customer_name": v.customer_name,
                    "date": v.date,
                    "purpose": v.purpose,
                    "assigned_to": v.assigned_to,
                    "status": v.status,
                }
                for v in visits
            ],
        },
    }
    log_batch(s, kind="export", action="Registry Export Executed", count=total, user=user)
    return payload
