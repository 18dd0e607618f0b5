from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import quote

from app.markeng.audit import record_event
from app.markeng.constants import DEFAULT_TEAM
from app.markeng.utils import clean

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from app.markeng.models import User
    from app.markeng.modules.team.models import TeamMember


class TeamError(ValueError):
    pass


def default_avatar(name: str) -> str:
    return f"https://picsum.photos/seed/{quote(name)}/128/128"


def validate_member_payload(payload: dict) -> list[str]:
    errors = []
    if not clean(payload.get("name")) or not clean(payload.get("role")):
        errors.append("Name and role are required.")
    return errors


def list_members(s: "Session") -> list["TeamMember"]:
    from app.markeng.modules.team.models import TeamMember

    return s.query(TeamMember).order_by(TeamMember.id.asc()).all()


def add_member(s: "Session", payload: dict, user: "User | None") -> "TeamMember":
    from app.markeng.modules.team.models import TeamMember

    name = clean(payload.get("name")) or ""
    member = TeamMember(
        name=name,
        role=clean(payload.get("role")) or "",
        avatar=clean(payload.get("avatar")) or default_avatar(name),
        email=(clean(payload.get("email")) or "").lower() or None,
        phone=clean(payload.get("phone")),
        bio=clean(payload.get("bio")),
    )
    s.add(member)
    s.flush()
    record_event(
        s,
        actor=user,
        action="team.add",
        entity_type="TeamMember",
        entity_id=str(member.id),
        metadata={"name": member.name, "role": member.role},
    )
    return member


def update_member(s: "Session", member: "TeamMember", payload: dict, user: "User | None") -> "TeamMember":
    role = clean(payload.get("role"))
    if member.is_system_admin and role and role != member.role:
        raise TeamError("System Administrator roles cannot be changed.")
    for key in ("name", "role"):
        value = clean(payload.get(key))
        if value:
            setattr(member, key, value)
    for key in ("avatar", "phone", "bio"):
        if key in payload:
            setattr(member, key, clean(payload.get(key)))
    if "email" in payload:
        member.email = (clean(payload.get("email")) or "").lower() or None
    if not member.avatar:
        member.avatar = default_avatar(member.name)
    record_event(s, actor=user, action="team.edit", entity_type="TeamMember", entity_id=str(member.id), metadata={"name": member.name})
    return member


def is_own_profile(member: "TeamMember", user: "User | None") -> bool:
    if not user or not member.email:
        return False
    return member.email.lower() == user.email.lower()


def remove_member(s: "Session", member: "TeamMember", user: "User | None") -> None:
    if is_own_profile(member, user):
        raise TeamError("You cannot remove your own active profile.")
    if member.is_system_admin:
        raise TeamError("System Administrators cannot be removed from the core registry.")
    record_event(
        s,
        actor=user,
        action="team.remove",
        entity_type="TeamMember",
        entity_id=str(member.id),
        metadata={"name": member.name, "role": member.role},
    )
    s.delete(member)


def seed_default_team(s: "Session") -> int:
    """Insert the default roster when the registry is empty; returns members added."""
    from app.markeng.modules.team.models import TeamMember

    if s.query(TeamMember).count():
        return 0
    for entry in DEFAULT_TEAM:
        first = entry["name"].removeprefix("Mr. ").split(" ")[0].lower()
        s.add(TeamMember(avatar=default_avatar(first), **entry))
    return len(DEFAULT_TEAM)
