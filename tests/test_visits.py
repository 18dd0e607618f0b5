"""Tests for visit planning, field logs and attachments."""
import io
from datetime import date
from types import SimpleNamespace

import pytest
from werkzeug.security import generate_password_hash

from app.markeng import create_app
from app.markeng.db import session_scope
from app.markeng.models import Base, User
from app.markeng.modules.customers.service import create_customer
from app.markeng.modules.visits.models import Visit
from app.markeng.modules.visits.service import plan_visit, visit_stats
from scripts.init_db import seed_permissions


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    monkeypatch.setenv("STORAGE_ROOT", str(tmp_path / "storage"))
    for k in ("S3_ENDPOINT", "S3_REGION", "S3_BUCKET", "S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY", "GEMINI_API_KEY"):
        monkeypatch.delenv(k, raising=False)

    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])

    with session_scope(app) as s:
        roles = seed_permissions(s)
        u = User(email="admin@example.com", name="Asha Admin", password_hash=generate_password_hash("pw"), is_active=True)
        u.roles.append(roles["admin"])
        s.add(u)

    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def _login(client):
    client.post("/auth/login", data={"email": "admin@example.com", "password": "pw"}, follow_redirects=True)
    with client.session_transaction() as sess:
        sess["csrf_token"] = "test-token"
    client.environ_base["HTTP_X_CSRF_TOKEN"] = "test-token"


def _customer(app, name="Acme Tools") -> int:
    with session_scope(app) as s:
        return create_customer(s, {"name": name, "city": "Pune"}, None).id


def _visit(app, customer_id: int, **payload) -> int:
    with session_scope(app) as s:
        return plan_visit(s, {"customer_id": customer_id, "date": "2026-03-10", "purpose": "Demo", **payload}, None).id


def test_visit_stats_counts():
    today = date(2026, 3, 1)
    visits = [
        SimpleNamespace(status="Planned", date=date(2026, 3, 5)),
        SimpleNamespace(status="Planned", date=date(2026, 2, 1)),
        SimpleNamespace(status="Completed", date=date(2026, 2, 1)),
        SimpleNamespace(status="Cancelled", date=date(2026, 3, 9)),
    ]
    assert visit_stats(visits, today=today) == {"total": 4, "upcoming": 1, "completed": 1, "cancelled": 1}


def test_plan_visit_always_starts_planned(app, client):
    cid = _customer(app)
    _login(client)
    r = client.post(
        "/admin/visits/new",
        data={"customer_id": str(cid), "date": "2026-03-10", "purpose": "Sample review", "status": "Completed"},
        follow_redirects=True,
    )
    assert r.status_code == 200
    assert b"Visit to Acme Tools planned for 2026-03-10." in r.data

    with session_scope(app) as s:
        visit = s.query(Visit).one()
        assert visit.status == "Planned"
        assert visit.customer_name == "Acme Tools"
        assert visit.assigned_to == "Asha Admin"
        assert visit.payment_status == "Not Discussed"
        assert visit.checklist == {"quotation": False, "samples": False, "pricing": False, "technical": False}


def test_plan_visit_requires_existing_customer(app, client):
    _login(client)
    r = client.post("/admin/visits/new", data={"customer_id": "999", "date": "2026-03-10"}, follow_redirects=True)
    assert b"Select an existing customer for the visit." in r.data
    with session_scope(app) as s:
        assert s.query(Visit).count() == 0


def test_status_change_and_invalid_status(app, client):
    vid = _visit(app, _customer(app))
    _login(client)
    client.post(f"/admin/visits/{vid}/status", data={"status": "Completed"})
    with session_scope(app) as s:
        assert s.get(Visit, vid).status == "Completed"

    r = client.post(f"/admin/visits/{vid}/status", data={"status": "Done"}, follow_redirects=True)
    assert b"Invalid visit status." in r.data
    with session_scope(app) as s:
        assert s.get(Visit, vid).status == "Completed"


def test_edit_keeps_customer_and_updates_fields(app, client):
    cid = _customer(app)
    vid = _visit(app, cid)
    _login(client)
    client.post(
        f"/admin/visits/{vid}/edit",
        data={"purpose": "Follow-up", "expected_amount": "45000", "payment_status": "Pending"},
    )
    with session_scope(app) as s:
        visit = s.get(Visit, vid)
        assert visit.customer_id == cid
        assert visit.purpose == "Follow-up"
        assert visit.expected_amount == 45000.0
        assert visit.payment_status == "Pending"


def test_call_logs_and_contacts(app, client):
    vid = _visit(app, _customer(app))
    _login(client)
    client.post(f"/admin/visits/{vid}/calls", data={"type": "Pre-Visit", "contact_person": "Ravi", "purpose": "Confirm slot"})
    r = client.post(f"/admin/visits/{vid}/calls", data={"type": "Mid-Visit"}, follow_redirects=True)
    assert b"Invalid call type: Mid-Visit" in r.data

    client.post(f"/admin/visits/{vid}/contacts", data={"name": "Meera", "designation": "Plant Head", "is_decision_maker": "on"})
    r = client.post(f"/admin/visits/{vid}/contacts", data={"designation": "Buyer"}, follow_redirects=True)
    assert b"Contact name is required." in r.data

    with session_scope(app) as s:
        visit = s.get(Visit, vid)
        assert [c["contact_person"] for c in visit.call_logs] == ["Ravi"]
        assert len(visit.met_contacts) == 1
        assert visit.met_contacts[0]["name"] == "Meera"
        assert visit.met_contacts[0]["is_decision_maker"] is True


def test_checklist_toggle(app, client):
    vid = _visit(app, _customer(app))
    _login(client)
    client.post(f"/admin/visits/{vid}/checklist/samples")
    with session_scope(app) as s:
        assert s.get(Visit, vid).checklist["samples"] is True
    client.post(f"/admin/visits/{vid}/checklist/samples")
    with session_scope(app) as s:
        assert s.get(Visit, vid).checklist["samples"] is False

    assert client.post(f"/admin/visits/{vid}/checklist/coffee").status_code == 404


def test_attachment_upload_and_download(app, client):
    vid = _visit(app, _customer(app))
    _login(client)
    client.post(
        f"/admin/visits/{vid}/attachments",
        data={"file": (io.BytesIO(b"\x89PNG site photo"), "site.png")},
        content_type="multipart/form-data",
    )
    with session_scope(app) as s:
        [entry] = s.get(Visit, vid).attachments
        assert entry["type"] == "Image"
        assert entry["storage_key"].startswith(f"visits/{vid}/")
        attachment_id = entry["id"]

    r = client.get(f"/admin/visits/{vid}/attachments/{attachment_id}")
    assert r.status_code == 200
    assert r.data == b"\x89PNG site photo"
    assert client.get(f"/admin/visits/{vid}/attachments/missing").status_code == 404


def test_list_filters_by_status_and_search(app, client):
    cid = _customer(app)
    _visit(app, cid, purpose="Tooling audit")
    other = _visit(app, _customer(app, "Bengal Castings"), purpose="Casting trial")
    with session_scope(app) as s:
        s.get(Visit, other).status = "Cancelled"
    _login(client)

    r = client.get("/admin/visits?status=Cancelled")
    assert b"Casting trial" in r.data
    assert b"Tooling audit" not in r.data

    r = client.get("/admin/visits?q=tooling")
    assert b"Tooling audit" in r.data
    assert b"Casting trial" not in r.data


def test_delete_visit(app, client):
    vid = _visit(app, _customer(app))
    _login(client)
    client.post(f"/admin/visits/{vid}/delete")
    with session_scope(app) as s:
        assert s.get(Visit, vid) is None
