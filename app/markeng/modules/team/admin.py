from __future__ import annotations

from flask import Blueprint, abort, flash, g, redirect, render_template, request, url_for

from app.markeng.db import db_session
from app.markeng.modules.team.models import TeamMember
from app.markeng.modules.team.service import (
    TeamError,
    add_member,
    is_own_profile,
    list_members,
    remove_member,
    update_member,
    validate_member_payload,
)
from app.markeng.rbac import require_permission

bp = Blueprint("team", __name__)


@bp.get("/team")
@require_permission("team.view")
def team_list():
    s = db_session()
    return render_template(
        "team/list.html",
        members=list_members(s),
        is_own_profile=lambda m: is_own_profile(m, g.current_user),
    )


@bp.post("/team/new")
@require_permission("team.edit")
def team_new_post():
    s = db_session()
    payload = request.form.to_dict()
    errors = validate_member_payload(payload)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("team.team_list"))
    member = add_member(s, payload, g.current_user)
    s.commit()
    flash(f"{member.name} added to the team.", "success")
    return redirect(url_for("team.team_list"))


@bp.post("/team/<int:member_id>/edit")
@require_permission("team.edit")
def team_edit_post(member_id: int):
    s = db_session()
    member = s.get(TeamMember, member_id)
    if not member:
        abort(404)
    try:
        update_member(s, member, request.form.to_dict(), g.current_user)
    except TeamError as e:
        flash(str(e), "danger")
        return redirect(url_for("team.team_list"))
    s.commit()
    flash("Profile updated.", "success")
    return redirect(url_for("team.team_list"))


@bp.post("/team/<int:member_id>/delete")
@require_permission("team.edit")
def team_delete(member_id: int):
    s = db_session()
    member = s.get(TeamMember, member_id)
    if not member:
        abort(404)
    try:
        remove_member(s, member, g.current_user)
    except TeamError as e:
        flash(str(e), "danger")
        return redirect(url_for("team.team_list"))
    s.commit()
    flash("Team member removed.", "success")
    return redirect(url_for("team.team_list"))
