import os
import sys
from pathlib import Path

from werkzeug.security import generate_password_hash

# Ensure repo root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.markeng.models import Permission, Role, User  # noqa: E402
from app.markeng.modules.team.service import seed_default_team  # noqa: E402
from scripts._db_utils import script_session  # noqa: E402

PERMISSIONS = (
    ("admin.view", "Admin: view dashboard"),
    ("customers.view", "Customers: view"),
    ("customers.create", "Customers: create"),
    ("customers.edit", "Customers: edit"),
    ("customers.delete", "Customers: delete"),
    ("pricing.view", "Pricing: view"),
    ("pricing.create", "Pricing: log quotes"),
    ("expos.view", "Expos: view"),
    ("expos.create", "Expos: create"),
    ("expos.edit", "Expos: edit and upload documents"),
    ("expos.delete", "Expos: delete"),
    ("expos.scout", "Expos: AI scouting"),
    ("visits.view", "Visits: view"),
    ("visits.create", "Visits: plan"),
    ("visits.edit", "Visits: edit"),
    ("visits.delete", "Visits: delete"),
    ("team.view", "Team: view"),
    ("team.edit", "Team: manage members"),
    ("projects.view", "Projects: view"),
    ("projects.create", "Projects: create"),
    ("projects.edit", "Projects: edit ledgers and documents"),
    ("projects.delete", "Projects: delete"),
    ("projects.finance", "Projects: commercials"),
    ("data.import", "Data: bulk import and rollback"),
    ("data.export", "Data: registry export"),
)

# admin gets everything
ROLES = {
    "admin": ("Administrator", None),
    "sales": (
        "Sales",
        (
            "admin.view",
            "customers.view",
            "customers.create",
            "customers.edit",
            "pricing.view",
            "pricing.create",
            "visits.view",
            "visits.create",
            "visits.edit",
            "projects.view",
            "projects.create",
            "projects.edit",
            "projects.finance",
            "team.view",
        ),
    ),
    "marketing": (
        "Marketing",
        (
            "admin.view",
            "customers.view",
            "pricing.view",
            "expos.view",
            "expos.create",
            "expos.edit",
            "expos.scout",
            "visits.view",
            "team.view",
            "data.import",
        ),
    ),
}


def seed_permissions(s) -> dict[str, Role]:
    """Idempotently create every permission and the built-in roles."""
    perms: dict[str, Permission] = {}
    for key, name in PERMISSIONS:
        p = s.query(Permission).filter(Permission.key == key).one_or_none()
        if not p:
            p = Permission(key=key, name=name)
            s.add(p)
        perms[key] = p

    roles: dict[str, Role] = {}
    for role_key, (role_name, keys) in ROLES.items():
        role = s.query(Role).filter(Role.key == role_key).one_or_none()
        if not role:
            role = Role(key=role_key, name=role_name)
            s.add(role)
        for key in keys or perms:
            if perms[key] not in role.permissions:
                role.permissions.append(perms[key])
        roles[role_key] = role
    return roles


def seed_only(*, database_url: str | None = None) -> None:
    """
    Seed permissions/roles/admin user and the default marketing team.
    Does NOT overwrite an existing admin user's password.
    """
    admin_email = (os.environ.get("ADMIN_EMAIL") or "admin@mark-eng.com").strip().lower()
    admin_password = os.environ.get("ADMIN_PASSWORD") or "change-me"

    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///markeng.db").strip()

    # Direct engine/session so release can run without importing app.wsgi.
    with script_session(db_url) as s:
        roles = seed_permissions(s)

        user = s.query(User).filter(User.email == admin_email).one_or_none()
        if not user:
            user = User(
                email=admin_email,
                name="Administrator",
                password_hash=generate_password_hash(admin_password),
                is_active=True,
            )
            s.add(user)
        if roles["admin"] not in user.roles:
            user.roles.append(roles["admin"])

        added = seed_default_team(s)

    print("Initialized database (seed_only).")
    print(f"Admin email: {admin_email}")
    print("Admin password: (from ADMIN_PASSWORD)")
    if added:
        print(f"Seeded {added} default team members.")


def main() -> None:
    seed_only(database_url=None)


if __name__ == "__main__":
    main()
