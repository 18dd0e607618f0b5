"""
Read-mostly JSON API.

Rows are serialized straight from their mapped columns and returned with
camelCase keys; request bodies are accepted in camelCase and renamed to the
snake_case payload shape the services take.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any

from flask import Blueprint, abort, g, request
from sqlalchemy import inspect as sa_inspect

from app.markeng.admin import dashboard_totals
from app.markeng.constants import ZONE_ALL
from app.markeng.db import db_session
from app.markeng.modules.customers.models import Customer
from app.markeng.modules.customers.service import (
    ALL_CITIES,
    ALL_STATES,
    create_customer,
    filter_customers,
    validate_customer_payload,
    zone_for_customer,
)
from app.markeng.modules.expos.service import list_expos
from app.markeng.modules.pricing.service import ALL_TECH, price_history, tech_benchmarks
from app.markeng.modules.projects.ledger import profit_and_loss
from app.markeng.modules.projects.models import Project
from app.markeng.modules.projects.service import commercial_summary, list_projects
from app.markeng.modules.team.service import list_members
from app.markeng.modules.visits.service import ALL_STATUSES, filter_visits, visit_stats
from app.markeng.rbac import require_permission
from app.markeng.utils import keys_to_camel, keys_to_snake, to_camel

bp = Blueprint("api", __name__)


def _value(v: Any) -> Any:
    if isinstance(v, (date, datetime)):
        return v.isoformat()
    return v


def to_json(obj: Any, *, exclude: tuple[str, ...] = ()) -> dict[str, Any]:
    row = {
        attr.key: _value(getattr(obj, attr.key))
        for attr in sa_inspect(obj).mapper.column_attrs
        if attr.key not in exclude
    }
    return keys_to_camel(row)


def _customer_json(c: Customer) -> dict[str, Any]:
    data = to_json(c)
    data["zone"] = zone_for_customer(c)
    data["contacts"] = [to_json(ct, exclude=("customer_id",)) for ct in c.contacts]
    data["pricingHistory"] = [to_json(p, exclude=("customer_id",)) for p in c.pricing_history]
    return data


def _project_json(p: Project, *, full: bool = False) -> dict[str, Any]:
    data = to_json(p)
    data["vendorDetails"] = to_json(p.vendor_details) if p.vendor_details else None
    data["commercialDetails"] = to_json(p.commercial_details) if p.commercial_details else None
    if not full:
        return data
    for key in ("client_payments", "vendor_payments", "expenses", "incomes", "extra_expenses", "documents", "activity"):
        data[to_camel(key)] = [to_json(row) for row in getattr(p, key)]
    pnl = profit_and_loss(p.incomes, p.expenses)
    data["profitAndLoss"] = {
        "totalIncome": pnl.total_income,
        "totalExpenses": pnl.total_expenses,
        "netProfit": pnl.net_profit,
        "marginPercent": pnl.margin_percent,
        "isProfitable": pnl.is_profitable,
    }
    if p.is_vendor:
        data["commercialSummary"] = keys_to_camel(commercial_summary(p))
    return data


@bp.get("/customers")
@require_permission("customers.view")
def customers_list():
    s = db_session()
    customers = filter_customers(
        s,
        search=request.args.get("search", ""),
        zone=request.args.get("zone", ZONE_ALL),
        state=request.args.get("state", ALL_STATES),
        city=request.args.get("city", ALL_CITIES),
    )
    return {"customers": [_customer_json(c) for c in customers]}


@bp.get("/customers/<int:customer_id>")
@require_permission("customers.view")
def customers_get(customer_id: int):
    c = db_session().get(Customer, customer_id)
    if not c:
        abort(404)
    return _customer_json(c)


@bp.post("/customers")
@require_permission("customers.create")
def customers_create():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return {"error": "JSON object body required"}, 400
    payload = keys_to_snake(body)
    errors = validate_customer_payload(payload)
    if errors:
        return {"errors": errors}, 400
    s = db_session()
    c = create_customer(s, payload, g.current_user)
    s.commit()
    return _customer_json(c), 201


@bp.get("/pricing")
@require_permission("pricing.view")
def pricing_list():
    records = price_history(db_session(), request.args.get("tech", ALL_TECH))
    return {
        "records": [to_json(r) | {"customerName": r.customer.name} for r in records],
        "benchmarks": {
            tech: {"average": b["average"], "unit": b["unit"], "count": b["count"]}
            for tech, b in tech_benchmarks(records).items()
        },
    }


@bp.get("/expos")
@require_permission("expos.view")
def expos_list():
    expos = list_expos(db_session(), search=request.args.get("search", ""), status=request.args.get("status", ""))
    return {"expos": [to_json(e) for e in expos]}


@bp.get("/visits")
@require_permission("visits.view")
def visits_list():
    visits = filter_visits(
        db_session(),
        search=request.args.get("search", ""),
        status=request.args.get("status", ALL_STATUSES),
    )
    return {"visits": [to_json(v) for v in visits], "stats": visit_stats(visits)}


@bp.get("/team")
@require_permission("team.view")
def team_list():
    return {"members": [to_json(m) for m in list_members(db_session())]}


@bp.get("/projects")
@require_permission("projects.view")
def projects_list():
    projects = list_projects(
        db_session(),
        search=request.args.get("search", ""),
        type=request.args.get("type", ""),
        status=request.args.get("status", ""),
    )
    return {"projects": [_project_json(p) for p in projects]}


@bp.get("/projects/<int:project_id>")
@require_permission("projects.view")
def projects_get(project_id: int):
    p = db_session().get(Project, project_id)
    if not p or p.is_deleted:
        abort(404)
    return _project_json(p, full=True)


@bp.get("/dashboard")
@require_permission("admin.view")
def dashboard():
    s = db_session()
    totals = dashboard_totals(s)
    return {
        "totalTurnover": totals["total_turnover"],
        "totalTurnoverDisplay": totals["total_turnover_display"],
        "totalCustomers": totals["customer_count"],
        "upcomingExposCount": totals["expo_count"],
        "techUsage": totals["tech_usage"],
        "activeMembers": len(list_members(s)),
    }
