from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, or_

from app.markeng import geo
from app.markeng.audit import record_event
from app.markeng.constants import COMPANY_SIZES, CUSTOMER_STATUSES, INDUSTRY_TYPES, ZONE_ALL, ZONES
from app.markeng.utils import clean, format_crore, parse_bool, parse_date, parse_float

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from app.markeng.models import User
    from app.markeng.modules.customers.models import Customer

logger = logging.getLogger(__name__)

DEFAULT_CITY = "Principal City"
DEFAULT_STATE = "N/A"
PRIMARY_CONTACT = "Primary Contact"
ALL_STATES = "All States"
ALL_CITIES = "All Cities"

EXPORT_HEADERS = (
    "Company Name",
    "City",
    "State",
    "Zone",
    "Industry",
    "Annual Turnover (Cr)",
    "Last Modified By",
    "Last Updated",
)


def validate_customer_payload(payload: dict) -> list[str]:
    errors = []
    if not clean(payload.get("name")):
        errors.append("Customer name is required.")
    status = clean(payload.get("status"))
    if status and status not in CUSTOMER_STATUSES:
        errors.append(f"Invalid status. Must be one of: {', '.join(CUSTOMER_STATUSES)}")
    industry_type = clean(payload.get("industry_type"))
    if industry_type and industry_type not in INDUSTRY_TYPES:
        errors.append(f"Invalid industry type. Must be one of: {', '.join(INDUSTRY_TYPES)}")
    size = clean(payload.get("company_size"))
    if size and size not in COMPANY_SIZES:
        errors.append(f"Invalid company size. Must be one of: {', '.join(COMPANY_SIZES)}")
    zone = clean(payload.get("zone"))
    if zone and zone not in ZONES[1:]:
        errors.append(f"Invalid zone. Must be one of: {', '.join(ZONES[1:])}")
    for key in ("annual_turnover", "project_turnover"):
        raw = payload.get(key)
        if clean(raw) is not None and parse_float(raw) is None:
            errors.append(f"{key.replace('_', ' ').capitalize()} must be a number.")
    return errors


def zone_for_customer(customer: "Customer") -> str:
    return geo.resolve_zone(customer.zone, customer.state, customer.city)


def _resolved_location(payload: dict) -> tuple[str, str]:
    city, state = geo.resolve_location(
        pincode=clean(payload.get("pincode")),
        city=clean(payload.get("city")),
        state=clean(payload.get("state")),
    )
    return city or DEFAULT_CITY, state or DEFAULT_STATE


def _machine_types(raw: Any) -> list[str] | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        raw = raw.split(",")
    items = [str(v).strip() for v in raw if str(v).strip()]
    return items or None


def _apply_fields(customer: "Customer", payload: dict) -> None:
    customer.name = clean(payload.get("name")) or customer.name
    customer.city, customer.state = _resolved_location(payload)
    customer.country = clean(payload.get("country")) or customer.country or "India"
    customer.area_sector = clean(payload.get("area_sector"))
    customer.pincode = clean(payload.get("pincode"))
    customer.industry = clean(payload.get("industry")) or customer.industry or "Manufacturing"
    customer.industry_type = clean(payload.get("industry_type"))
    customer.company_size = clean(payload.get("company_size"))
    customer.industrial_hub = clean(payload.get("industrial_hub"))
    customer.annual_turnover = parse_float(payload.get("annual_turnover"), 0.0) or 0.0
    if "project_turnover" in payload:
        customer.project_turnover = parse_float(payload.get("project_turnover"), 0.0) or 0.0
    if "machine_types" in payload:
        customer.machine_types = _machine_types(payload.get("machine_types"))
    customer.status = clean(payload.get("status")) or customer.status or "Open"
    customer.enquiry_no = clean(payload.get("enquiry_no"))
    customer.last_date = parse_date(payload.get("last_date"))
    customer.notes = clean(payload.get("notes"))
    if "is_discovered" in payload:
        customer.is_discovered = parse_bool(payload.get("is_discovered"))
    customer.latitude = parse_float(payload.get("latitude"))
    customer.longitude = parse_float(payload.get("longitude"))

    zone = clean(payload.get("zone"))
    customer.zone = zone or geo.zone_for_state(customer.state) or geo.zone_for_state(geo.infer_state_from_city(customer.city))


def _stamp(customer: "Customer", user: "User | None") -> None:
    customer.last_modified_by = user.display_name if user else "System"
    customer.updated_at = datetime.utcnow()


def replace_contacts(s: "Session", customer: "Customer", contacts: list[dict]) -> None:
    """Delete every contact of the customer and insert the given ones."""
    from app.markeng.modules.customers.models import Contact

    customer.contacts.clear()
    s.flush()
    for c in contacts:
        name = clean(c.get("name"))
        if not name:
            continue
        customer.contacts.append(
            Contact(
                name=name,
                designation=clean(c.get("designation")) or PRIMARY_CONTACT,
                email=clean(c.get("email")),
                phone=clean(c.get("phone")),
            )
        )


def _apply_primary_contact(s: "Session", customer: "Customer", payload: dict) -> None:
    if "contacts" in payload and isinstance(payload["contacts"], list):
        replace_contacts(s, customer, payload["contacts"])
        return
    if not any(k in payload for k in ("contact_name", "contact_email", "contact_phone")):
        return
    name = clean(payload.get("contact_name"))
    email = clean(payload.get("contact_email"))
    phone = clean(payload.get("contact_phone"))
    primary = customer.primary_contact
    if primary is not None:
        if name:
            primary.name = name
        if "contact_email" in payload:
            primary.email = email
        if phone is not None:
            primary.phone = phone
    elif name:
        replace_contacts(s, customer, [{"name": name, "email": email, "phone": phone, "designation": PRIMARY_CONTACT}])


def create_customer(s: "Session", payload: dict, user: "User | None") -> "Customer":
    from app.markeng.modules.customers.models import Customer

    customer = Customer(country="India", industry="Manufacturing", status="Open", project_turnover=0.0)
    _apply_fields(customer, payload)
    _stamp(customer, user)
    s.add(customer)
    s.flush()
    _apply_primary_contact(s, customer, payload)

    record_event(
        s,
        actor=user,
        action="customer.create",
        entity_type="Customer",
        entity_id=str(customer.id),
        metadata={"name": customer.name, "city": customer.city, "state": customer.state},
    )
    return customer


def customer_payload(customer: "Customer") -> dict[str, Any]:
    """Current values in payload shape, so partial updates keep untouched fields."""
    return {
        "name": customer.name,
        "city": customer.city,
        "state": customer.state,
        "country": customer.country,
        "area_sector": customer.area_sector,
        "pincode": customer.pincode,
        "industry": customer.industry,
        "industry_type": customer.industry_type,
        "company_size": customer.company_size,
        "industrial_hub": customer.industrial_hub,
        "annual_turnover": customer.annual_turnover,
        "status": customer.status,
        "enquiry_no": customer.enquiry_no,
        "last_date": customer.last_date,
        "notes": customer.notes,
        "latitude": customer.latitude,
        "longitude": customer.longitude,
    }


def update_customer(s: "Session", customer: "Customer", payload: dict, user: "User | None", reason: str | None = None) -> "Customer":
    payload = {**customer_payload(customer), **payload}
    before = {"name": customer.name, "city": customer.city, "state": customer.state, "status": customer.status}
    _apply_fields(customer, payload)
    _apply_primary_contact(s, customer, payload)
    _stamp(customer, user)
    after = {"name": customer.name, "city": customer.city, "state": customer.state, "status": customer.status}
    changes = {k: {"old": before[k], "new": after[k]} for k in before if before[k] != after[k]}

    record_event(
        s,
        actor=user,
        action="customer.edit",
        entity_type="Customer",
        entity_id=str(customer.id),
        reason=reason,
        metadata={"name": customer.name, "changes": changes},
    )
    return customer


def delete_customer(s: "Session", customer: "Customer", user: "User | None") -> None:
    """Removes the customer with its contacts, pricing history and visits."""
    visit_count = len(customer.visits)
    record_event(
        s,
        actor=user,
        action="customer.delete",
        entity_type="Customer",
        entity_id=str(customer.id),
        metadata={"name": customer.name, "visits_removed": visit_count},
    )
    s.delete(customer)
    logger.info("Deleted customer id=%s with %d visits", customer.id, visit_count)


def filter_customers(
    s: "Session",
    *,
    search: str = "",
    zone: str = ZONE_ALL,
    state: str = ALL_STATES,
    city: str = ALL_CITIES,
) -> list["Customer"]:
    from app.markeng.modules.customers.models import Customer

    q = s.query(Customer)
    search = (search or "").strip()
    if search:
        like = f"%{search.lower()}%"
        q = q.filter(
            or_(
                func.lower(Customer.name).like(like),
                func.lower(Customer.city).like(like),
                func.lower(Customer.state).like(like),
            )
        )
    if state and state != ALL_STATES:
        q = q.filter(Customer.state == state)
    customers = q.order_by(Customer.name.asc(), Customer.id.asc()).all()

    if city and city != ALL_CITIES:
        wanted = city.strip()
        customers = [c for c in customers if (c.city or "").strip() == wanted]
    if zone and zone != ZONE_ALL:
        customers = [c for c in customers if zone_for_customer(c) == zone]
    return customers


def zone_counts(customers: list["Customer"]) -> dict[str, int]:
    counts = Counter(zone_for_customer(c) for c in customers)
    result = {ZONE_ALL: len(customers)}
    for z in ZONES[1:]:
        result[z] = counts.get(z, 0)
    return result


def export_rows(customers: list["Customer"]) -> list[list[Any]]:
    from app.markeng.dateutils import ist_timestamp

    return [
        [
            c.name,
            c.city,
            c.state,
            zone_for_customer(c),
            c.industry,
            format_crore(c.annual_turnover),
            c.last_modified_by or "N/A",
            ist_timestamp(c.updated_at) if c.updated_at else "N/A",
        ]
        for c in customers
    ]


def map_markers(customers: list["Customer"]) -> list[dict[str, Any]]:
    """One marker per customer located in a known state, jittered by list position."""
    markers = []
    for i, c in enumerate(customers):
        pos = geo.marker_position(c.state or "", i)
        if pos is None:
            continue
        markers.append(
            {
                "id": c.id,
                "name": c.name,
                "city": c.city,
                "state": c.state,
                "industry": c.industry,
                "annual_turnover": c.annual_turnover,
                "lat": round(pos[0], 6),
                "lng": round(pos[1], 6),
            }
        )
    return markers


def map_customers(s: "Session", *, search: str = "", state: str = "", city: str = "") -> list["Customer"]:
    """Map filter: search over name and city only, then exact state and trimmed city."""
    from app.markeng.modules.customers.models import Customer

    customers = s.query(Customer).order_by(Customer.id.asc()).all()
    term = (search or "").strip().lower()
    if term:
        customers = [c for c in customers if term in (c.name or "").lower() or term in (c.city or "").lower()]
    if state and state != ALL_STATES:
        customers = [c for c in customers if c.state == state]
    if city and city != ALL_CITIES:
        customers = [c for c in customers if (c.city or "").strip() == city.strip()]
    return customers


def map_view(state: str = "") -> dict[str, Any]:
    info = geo.INDIA_GEO_DATA.get(state or "")
    if info:
        lat, lng = info["coords"]
        return {"center": [lat, lng], "zoom": geo.MAP_STATE_ZOOM}
    return {"center": list(geo.MAP_CENTER), "zoom": geo.MAP_ZOOM}
