from __future__ import annotations

from datetime import date

from flask import Blueprint, abort, flash, g, jsonify, redirect, render_template, request, url_for

from app.markeng import geo
from app.markeng.constants import COMPANY_SIZES, CUSTOMER_STATUSES, INDUSTRY_TYPES, ZONE_ALL, ZONES
from app.markeng.db import db_session
from app.markeng.exports import export_response
from app.markeng.models import User
from app.markeng.modules.customers.models import Customer
from app.markeng.modules.customers.service import (
    ALL_CITIES,
    ALL_STATES,
    EXPORT_HEADERS,
    create_customer,
    delete_customer,
    export_rows,
    filter_customers,
    map_customers,
    map_markers,
    map_view,
    update_customer,
    validate_customer_payload,
    zone_counts,
    zone_for_customer,
)
from app.markeng.rbac import require_permission
from app.markeng.utils import format_crore

bp = Blueprint("customers", __name__)

_FORM_FIELDS = (
    "name",
    "city",
    "state",
    "country",
    "area_sector",
    "pincode",
    "industry",
    "industry_type",
    "company_size",
    "industrial_hub",
    "annual_turnover",
    "project_turnover",
    "machine_types",
    "status",
    "enquiry_no",
    "last_date",
    "notes",
    "zone",
    "contact_name",
    "contact_email",
    "contact_phone",
)


def _current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


def _form_payload() -> dict:
    return {k: request.form.get(k) for k in _FORM_FIELDS if k in request.form}


def _filters() -> dict:
    return {
        "search": (request.args.get("q") or "").strip(),
        "zone": (request.args.get("zone") or ZONE_ALL).strip(),
        "state": (request.args.get("state") or ALL_STATES).strip(),
        "city": (request.args.get("city") or ALL_CITIES).strip(),
    }


def _form_context(**extra) -> dict:
    return {
        "states": geo.states(),
        "statuses": CUSTOMER_STATUSES,
        "industry_types": INDUSTRY_TYPES,
        "company_sizes": COMPANY_SIZES,
        "zones": ZONES[1:],
        **extra,
    }


# ---------- List ----------
@bp.get("/customers")
@require_permission("customers.view")
def customers_list():
    s = db_session()
    filters = _filters()
    customers = filter_customers(s, **filters)
    # Tab counts ignore the zone filter itself.
    tab_counts = zone_counts(filter_customers(s, **{**filters, "zone": ZONE_ALL}))
    return render_template(
        "customers/list.html",
        customers=customers,
        zone_of=zone_for_customer,
        crore=format_crore,
        zones=ZONES,
        zone_counts=tab_counts,
        states=geo.states(),
        cities=geo.cities_for_state(filters["state"]),
        **filters,
    )


@bp.get("/customers/export.<fmt>")
@require_permission("customers.view")
def customers_export(fmt: str):
    s = db_session()
    filters = _filters()
    customers = filter_customers(s, **filters)
    return export_response(
        fmt,
        filename=f"Customers_Export_{filters['zone'].replace(' ', '_')}",
        title="National Client Directory",
        headers=EXPORT_HEADERS,
        rows=export_rows(customers),
        summary=[("Region", filters["zone"]), ("Total Records", len(customers))],
    )


@bp.get("/customers/cities")
@require_permission("customers.view")
def customers_cities():
    state = (request.args.get("state") or "").strip()
    return jsonify({"state": state, "cities": geo.cities_for_state(state)})


# ---------- New ----------
@bp.get("/customers/new")
@require_permission("customers.create")
def customers_new_get():
    return render_template("customers/form.html", customer=None, **_form_context())


@bp.post("/customers/new")
@require_permission("customers.create")
def customers_new_post():
    s = db_session()
    payload = _form_payload()
    errors = validate_customer_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("customers.customers_new_get"))

    customer = create_customer(s, payload, _current_user())
    s.commit()
    flash(f"Customer {customer.name} created.", "success")
    return redirect(url_for("customers.customer_detail", customer_id=customer.id))


# ---------- Detail ----------
@bp.get("/customers/<int:customer_id>")
@require_permission("customers.view")
def customer_detail(customer_id: int):
    s = db_session()
    customer = s.get(Customer, customer_id)
    if not customer:
        abort(404)
    pricing = sorted(customer.pricing_history, key=lambda p: (p.date or date.min, p.id), reverse=True)
    return render_template(
        "customers/detail.html",
        customer=customer,
        zone=zone_for_customer(customer),
        pricing=pricing,
        crore=format_crore,
    )


# ---------- Edit ----------
@bp.get("/customers/<int:customer_id>/edit")
@require_permission("customers.edit")
def customer_edit_get(customer_id: int):
    s = db_session()
    customer = s.get(Customer, customer_id)
    if not customer:
        abort(404)
    return render_template("customers/form.html", customer=customer, **_form_context())


@bp.post("/customers/<int:customer_id>/edit")
@require_permission("customers.edit")
def customer_edit_post(customer_id: int):
    s = db_session()
    customer = s.get(Customer, customer_id)
    if not customer:
        abort(404)
    payload = _form_payload()
    errors = validate_customer_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("customers.customer_edit_get", customer_id=customer_id))

    update_customer(s, customer, payload, _current_user(), reason=(request.form.get("reason") or "").strip() or None)
    s.commit()
    flash("Customer updated.", "success")
    return redirect(url_for("customers.customer_detail", customer_id=customer_id))


# ---------- Delete ----------
@bp.post("/customers/<int:customer_id>/delete")
@require_permission("customers.delete")
def customer_delete(customer_id: int):
    s = db_session()
    customer = s.get(Customer, customer_id)
    if not customer:
        abort(404)
    name = customer.name
    delete_customer(s, customer, _current_user())
    s.commit()
    flash(f"Customer {name} deleted.", "success")
    return redirect(url_for("customers.customers_list"))


# ---------- Map ----------
@bp.get("/map")
@require_permission("customers.view")
def customers_map():
    state = (request.args.get("state") or "").strip()
    return render_template(
        "customers/map.html",
        states=geo.states(),
        cities=geo.cities_for_state(state),
        state=state,
        city=(request.args.get("city") or "").strip(),
        search=(request.args.get("q") or "").strip(),
        view=map_view(state),
    )


@bp.get("/map/data")
@require_permission("customers.view")
def customers_map_data():
    s = db_session()
    state = (request.args.get("state") or "").strip()
    customers = map_customers(
        s,
        search=request.args.get("q") or "",
        state=state,
        city=request.args.get("city") or "",
    )
    return jsonify({"view": map_view(state), "markers": map_markers(customers), "total": len(customers)})
