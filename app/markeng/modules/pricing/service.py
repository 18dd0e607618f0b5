from __future__ import annotations

from collections import OrderedDict
from datetime import date
from typing import TYPE_CHECKING, Any

from app.markeng.audit import record_event
from app.markeng.constants import PRICING_STATUSES, TECH_CATEGORIES, normalize_tech_category
from app.markeng.dateutils import ist_today
from app.markeng.utils import clean, parse_bool, parse_date, parse_float, parse_int

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from app.markeng.models import User
    from app.markeng.modules.customers.models import Customer
    from app.markeng.modules.pricing.models import PricingRecord

ALL_TECH = "All"

_COST_FIELDS = (
    "raw_material_cost",
    "machining_cost",
    "labor_cost",
    "overhead",
    "transportation_cost",
    "other_charges",
    "margin_percent",
    "advance_percent",
)
_TEXT_FIELDS = (
    "product_name",
    "drawing_no",
    "material_type",
    "machine_type",
    "process",
    "payment_mode",
    "notes",
)


def validate_pricing_payload(s: "Session", payload: dict) -> list[str]:
    from app.markeng.modules.customers.models import Customer

    errors = []
    customer_id = parse_int(payload.get("customer_id"))
    if not customer_id:
        errors.append("Customer is required.")
    elif s.get(Customer, customer_id) is None:
        errors.append("Customer not found.")
    rate = parse_float(payload.get("rate"))
    if rate is None:
        errors.append("Rate is required.")
    elif rate < 0:
        errors.append("Rate cannot be negative.")
    status = clean(payload.get("status"))
    if status and status not in PRICING_STATUSES:
        errors.append(f"Invalid status. Must be one of: {', '.join(PRICING_STATUSES)}")
    return errors


def add_pricing_record(s: "Session", customer: "Customer", payload: dict, user: "User | None") -> "PricingRecord":
    """Append a quote to the customer's pricing history."""
    from app.markeng.modules.pricing.models import PricingRecord

    tech = clean(payload.get("tech"))
    rate = parse_float(payload.get("rate"), 0.0) or 0.0
    quoted_qty = parse_int(payload.get("quoted_qty"))
    total = parse_float(payload.get("total_amount"))
    if total is None and quoted_qty:
        total = round(rate * quoted_qty, 2)

    record = PricingRecord(
        customer=customer,
        tech=tech if tech in TECH_CATEGORIES else normalize_tech_category(tech),
        rate=rate,
        unit=clean(payload.get("unit")) or "gram",
        date=parse_date(payload.get("date")) or ist_today(),
        status=clean(payload.get("status")) or "Draft",
        sales_person=clean(payload.get("sales_person")) or (user.display_name if user else None),
        industry=clean(payload.get("industry")) or customer.industry,
        city=clean(payload.get("city")) or customer.city,
        state=clean(payload.get("state")) or customer.state,
        moq=parse_int(payload.get("moq")),
        quoted_qty=quoted_qty,
        total_amount=total,
        currency=clean(payload.get("currency")) or "INR",
        valid_till=parse_date(payload.get("valid_till")),
        credit_days=parse_int(payload.get("credit_days")),
        gst_included=parse_bool(payload.get("gst_included")),
    )
    for key in _COST_FIELDS:
        setattr(record, key, parse_float(payload.get(key)))
    for key in _TEXT_FIELDS:
        setattr(record, key, clean(payload.get(key)))
    s.add(record)
    s.flush()

    record_event(
        s,
        actor=user,
        action="pricing.create",
        entity_type="PricingRecord",
        entity_id=str(record.id),
        metadata={"customer_id": customer.id, "tech": record.tech, "rate": record.rate, "unit": record.unit},
    )
    return record


def delete_pricing_record(s: "Session", record: "PricingRecord", user: "User | None") -> None:
    record_event(
        s,
        actor=user,
        action="pricing.delete",
        entity_type="PricingRecord",
        entity_id=str(record.id),
        metadata={"customer_id": record.customer_id, "tech": record.tech, "rate": record.rate},
    )
    s.delete(record)


def price_history(s: "Session", tech: str = ALL_TECH) -> list["PricingRecord"]:
    """Every quote across customers, newest first, optionally limited to one technology."""
    from app.markeng.modules.pricing.models import PricingRecord

    q = s.query(PricingRecord)
    if tech and tech != ALL_TECH:
        q = q.filter(PricingRecord.tech == tech)
    return q.order_by(PricingRecord.date.desc(), PricingRecord.id.desc()).all()


def tech_benchmarks(records: list["PricingRecord"]) -> "OrderedDict[str, dict[str, Any]]":
    """
    Average rate per technology in display order. The unit comes from the most
    recent quote for that technology ("unit" when there are none).
    `records` is expected newest first, as returned by price_history().
    """
    out: OrderedDict[str, dict[str, Any]] = OrderedDict()
    for tech in TECH_CATEGORIES:
        rows = [r for r in records if r.tech == tech]
        avg = sum(r.rate for r in rows) / len(rows) if rows else 0.0
        out[tech] = {
            "average": round(avg, 2),
            "unit": rows[0].unit if rows else "unit",
            "count": len(rows),
            "recent": rows[:3],
        }
    return out


def tech_usage(records: list["PricingRecord"]) -> dict[str, int]:
    """Quote counts keyed by the first word of the technology ("SLS", "FDM", ...)."""
    usage: dict[str, int] = {}
    for r in records:
        key = (r.tech or "").split(" ")[0] or "Other"
        usage[key] = usage.get(key, 0) + 1
    return usage


def has_quote(customer: "Customer", *, rate: float, on: date | None) -> bool:
    return any(p.rate == rate and p.date == on for p in customer.pricing_history)
