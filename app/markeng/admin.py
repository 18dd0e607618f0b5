from __future__ import annotations

from datetime import date, datetime, time, timedelta

from flask import Blueprint, current_app, flash, g, redirect, render_template, request, url_for
from sqlalchemy import func

from app.markeng.audit import record_event
from app.markeng.db import db_session
from app.markeng.genai_client import client_from_config
from app.markeng.models import AuditEvent, User
from app.markeng.modules.customers.models import Customer
from app.markeng.modules.expos.models import Expo
from app.markeng.modules.pricing.models import PricingRecord
from app.markeng.modules.pricing.service import tech_usage
from app.markeng.modules.projects.service import list_projects
from app.markeng.modules.team.service import list_members
from app.markeng.rbac import require_permission
from app.markeng.utils import format_currency

bp = Blueprint("admin", __name__)


def _parse_date(s: str) -> date | None:
    s = (s or "").strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s)
    except ValueError:
        return None


def _current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


def dashboard_totals(s) -> dict:
    total_turnover = s.query(func.coalesce(func.sum(Customer.annual_turnover), 0.0)).scalar() or 0.0
    return {
        "total_turnover": float(total_turnover),
        "total_turnover_display": format_currency(total_turnover),
        "customer_count": s.query(Customer).count(),
        "expo_count": s.query(Expo).count(),
        "tech_usage": tech_usage(s.query(PricingRecord).all()),
    }


@bp.get("/")
@require_permission("admin.view")
def index():
    s = db_session()
    return render_template(
        "admin/index.html",
        totals=dashboard_totals(s),
        team=list_members(s),
        projects=list_projects(s)[:5],
        summary=None,
    )


@bp.post("/summary")
@require_permission("admin.view")
def market_summary():
    s = db_session()
    totals = dashboard_totals(s)
    client = client_from_config(current_app.config)
    if not client.api_key:
        flash("GEMINI_API_KEY is not configured.", "warning")
        return redirect(url_for("admin.index"))
    summary = client.generate_market_summary(
        {
            "totalTurnover": totals["total_turnover"],
            "customers": totals["customer_count"],
            "expos": totals["expo_count"],
            "techUsage": totals["tech_usage"],
        }
    )
    record_event(s, actor=_current_user(), action="dashboard.ai_summary", entity_type="Dashboard")
    s.commit()
    return render_template(
        "admin/index.html",
        totals=totals,
        team=list_members(s),
        projects=list_projects(s)[:5],
        summary=summary,
    )


@bp.get("/me")
@require_permission("admin.view")
def me():
    user = _current_user()
    role_keys = sorted({r.key for r in (user.roles or [])})
    perm_keys = sorted({p.key for r in (user.roles or []) for p in (r.permissions or [])})
    return render_template("admin/me.html", user=user, role_keys=role_keys, perm_keys=perm_keys)


@bp.post("/me")
@require_permission("admin.view")
def me_update():
    s = db_session()
    user = _current_user()
    name = (request.form.get("name") or "").strip()
    if not name:
        flash("Name is required.", "danger")
        return redirect(url_for("admin.me"))
    old = user.name
    user.name = name
    record_event(
        s,
        actor=user,
        action="user.update_profile",
        entity_type="User",
        entity_id=str(user.id),
        metadata={"name": {"old": old, "new": name}},
    )
    s.commit()
    flash("Profile updated.", "success")
    return redirect(url_for("admin.me"))


@bp.get("/audit")
@require_permission("admin.view")
def audit_list():
    """
    Last 200 audit events, filterable by action (contains), actor email
    (contains) and an inclusive YYYY-MM-DD date range.
    """
    s = db_session()
    action = (request.args.get("action") or "").strip()
    actor_email = (request.args.get("actor_email") or "").strip()
    date_from = _parse_date(request.args.get("date_from") or "")
    date_to = _parse_date(request.args.get("date_to") or "")

    if (request.args.get("date_from") or "").strip() and not date_from:
        flash("date_from must be YYYY-MM-DD", "danger")
    if (request.args.get("date_to") or "").strip() and not date_to:
        flash("date_to must be YYYY-MM-DD", "danger")

    q = s.query(AuditEvent)
    if action:
        q = q.filter(AuditEvent.action.like(f"%{action}%"))
    if actor_email:
        q = q.filter(AuditEvent.actor_user_email.like(f"%{actor_email.lower()}%"))
    if date_from:
        q = q.filter(AuditEvent.created_at >= datetime.combine(date_from, time.min))
    if date_to:
        q = q.filter(AuditEvent.created_at < datetime.combine(date_to + timedelta(days=1), time.min))

    events = q.order_by(AuditEvent.created_at.desc(), AuditEvent.id.desc()).limit(200).all()
    return render_template(
        "admin/audit.html",
        events=events,
        action=action,
        actor_email=actor_email,
        date_from=(request.args.get("date_from") or "").strip(),
        date_to=(request.args.get("date_to") or "").strip(),
    )
