from __future__ import annotations

from flask import Blueprint, abort, flash, g, redirect, render_template, request, url_for

from app.markeng.constants import PRICING_STATUSES, PRICING_UNITS, TECH_CATEGORIES
from app.markeng.db import db_session
from app.markeng.exports import export_response
from app.markeng.modules.customers.models import Customer
from app.markeng.modules.pricing.models import PricingRecord
from app.markeng.modules.pricing.service import (
    ALL_TECH,
    add_pricing_record,
    delete_pricing_record,
    price_history,
    tech_benchmarks,
    validate_pricing_payload,
)
from app.markeng.rbac import require_permission
from app.markeng.utils import parse_int

bp = Blueprint("pricing", __name__)


@bp.get("/pricing")
@require_permission("pricing.view")
def pricing_list():
    s = db_session()
    tech = (request.args.get("tech") or ALL_TECH).strip()
    view = "benchmarks" if request.args.get("view") == "benchmarks" else "history"
    records = price_history(s, tech)
    return render_template(
        "pricing/list.html",
        records=records,
        benchmarks=tech_benchmarks(price_history(s)) if view == "benchmarks" else {},
        tech=tech,
        view=view,
        techs=TECH_CATEGORIES,
        units=PRICING_UNITS,
        statuses=PRICING_STATUSES,
        customers=s.query(Customer).order_by(Customer.name.asc()).all(),
    )


@bp.post("/pricing/new")
@require_permission("pricing.create")
def pricing_new_post():
    s = db_session()
    payload = request.form.to_dict()
    errors = validate_pricing_payload(s, payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("pricing.pricing_list"))

    customer = s.get(Customer, parse_int(payload.get("customer_id")))
    record = add_pricing_record(s, customer, payload, g.current_user)
    s.commit()
    flash(f"Quote logged for {customer.name}: {record.tech} at {record.rate:.2f}/{record.unit}.", "success")
    nxt = (request.form.get("next") or "").strip()
    if nxt.startswith("/") and not nxt.startswith("//"):
        return redirect(nxt)
    return redirect(url_for("pricing.pricing_list"))


@bp.post("/pricing/<int:record_id>/delete")
@require_permission("pricing.create")
def pricing_delete(record_id: int):
    s = db_session()
    record = s.get(PricingRecord, record_id)
    if not record:
        abort(404)
    delete_pricing_record(s, record, g.current_user)
    s.commit()
    flash("Quote removed.", "success")
    return redirect(url_for("pricing.pricing_list"))


@bp.get("/pricing/export.<fmt>")
@require_permission("pricing.view")
def pricing_export(fmt: str):
    s = db_session()
    tech = (request.args.get("tech") or ALL_TECH).strip()
    records = price_history(s, tech)
    rows = [
        [r.date.isoformat() if r.date else "", r.customer.name, r.tech, r.rate, r.unit, r.status, r.sales_person or ""]
        for r in records
    ]
    return export_response(
        fmt,
        filename="Pricing_Export",
        title="Pricing History",
        headers=("Date", "Customer", "Technology", "Rate", "Unit", "Status", "Sales Person"),
        rows=rows,
        summary=[("Technology", tech), ("Total Quotes", len(records))],
    )
