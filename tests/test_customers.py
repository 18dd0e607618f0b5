"""Tests for the customer directory, map and exports."""
import io

import pytest
from openpyxl import load_workbook
from werkzeug.security import generate_password_hash

from app.markeng import create_app
from app.markeng.db import session_scope
from app.markeng.models import AuditEvent, Base, User
from app.markeng.modules.customers.models import Customer
from app.markeng.modules.customers.service import create_customer
from app.markeng.modules.visits.models import Visit
from app.markeng.modules.visits.service import plan_visit
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
        u = User(
            email="admin@example.com",
            name="Asha Admin",
            password_hash=generate_password_hash("pw"),
            is_active=True,
        )
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


def _seed_customers(app):
    with session_scope(app) as s:
        create_customer(s, {"name": "Acme Tools", "city": "Pune", "annual_turnover": 50_000_000}, None)
        create_customer(s, {"name": "Bengal Castings", "city": "Kolkata", "state": "West Bengal"}, None)
        create_customer(s, {"name": "Coimbatore Pumps", "city": "Coimbatore"}, None)


def test_customers_list_requires_auth(client):
    r = client.get("/admin/customers")
    assert r.status_code in (302, 403)


def test_customer_create_infers_state_and_zone(app, client):
    _login(client)
    r = client.post(
        "/admin/customers/new",
        data={"name": "Acme Tools", "city": "Pune", "annual_turnover": "50000000", "contact_name": "R. Kulkarni"},
        follow_redirects=True,
    )
    assert r.status_code == 200
    assert b"Acme Tools" in r.data

    with session_scope(app) as s:
        c = s.query(Customer).one()
        assert c.state == "Maharashtra"
        assert c.zone == "West"
        assert c.last_modified_by == "Asha Admin"
        assert c.primary_contact.name == "R. Kulkarni"
        assert s.query(AuditEvent).filter(AuditEvent.action == "customer.create").count() == 1


def test_customer_create_pincode_overrides_city(app, client):
    _login(client)
    client.post("/admin/customers/new", data={"name": "Harbour Works", "city": "Chennai", "pincode": "400001"})
    with session_scope(app) as s:
        c = s.query(Customer).one()
        assert (c.city, c.state, c.zone) == ("Mumbai", "Maharashtra", "West")


def test_customer_create_requires_name(app, client):
    _login(client)
    r = client.post("/admin/customers/new", data={"name": "  ", "city": "Pune"}, follow_redirects=True)
    assert b"Customer name is required." in r.data
    with session_scope(app) as s:
        assert s.query(Customer).count() == 0


def test_customer_edit_recomputes_zone(app, client):
    _seed_customers(app)
    _login(client)
    with session_scope(app) as s:
        cid = s.query(Customer).filter(Customer.name == "Acme Tools").one().id

    r = client.post(
        f"/admin/customers/{cid}/edit",
        data={"name": "Acme Tools", "city": "Mysuru", "state": "Karnataka", "reason": "Relocated"},
        follow_redirects=True,
    )
    assert r.status_code == 200

    with session_scope(app) as s:
        c = s.get(Customer, cid)
        assert c.zone == "South"
        # Fields missing from the form keep their stored values.
        assert c.annual_turnover == 50_000_000
        evt = s.query(AuditEvent).filter(AuditEvent.action == "customer.edit").one()
        assert evt.reason == "Relocated"


def test_customer_delete_removes_visits(app, client):
    _seed_customers(app)
    with session_scope(app) as s:
        c = s.query(Customer).filter(Customer.name == "Acme Tools").one()
        plan_visit(s, {"customer_id": c.id, "date": "2025-06-01", "purpose": "Demo"}, None)
        cid = c.id

    _login(client)
    r = client.post(f"/admin/customers/{cid}/delete", follow_redirects=True)
    assert r.status_code == 200
    with session_scope(app) as s:
        assert s.get(Customer, cid) is None
        assert s.query(Visit).count() == 0


def test_customers_zone_filter(app, client):
    _seed_customers(app)
    _login(client)
    r = client.get("/admin/customers?zone=South")
    assert r.status_code == 200
    assert b"Coimbatore Pumps" in r.data
    assert b"Bengal Castings" not in r.data


def test_customers_export_xlsx(app, client):
    _seed_customers(app)
    _login(client)
    r = client.get("/admin/customers/export.xlsx?zone=West")
    assert r.status_code == 200
    ws = load_workbook(io.BytesIO(r.data)).active
    rows = list(ws.iter_rows(values_only=True))
    assert rows[0][0] == "Company Name"
    assert [row[0] for row in rows[1:]] == ["Acme Tools"]


def test_customers_export_pdf(app, client):
    _seed_customers(app)
    _login(client)
    r = client.get("/admin/customers/export.pdf")
    assert r.status_code == 200
    assert r.data.startswith(b"%PDF")


def test_customers_export_unknown_format(client):
    _login(client)
    assert client.get("/admin/customers/export.doc").status_code == 404


def test_map_data_markers(app, client):
    _seed_customers(app)
    _login(client)
    r = client.get("/admin/map/data?state=Tamil%20Nadu")
    assert r.status_code == 200
    body = r.get_json()
    assert body["total"] == 1
    assert body["markers"][0]["name"] == "Coimbatore Pumps"
    assert body["view"]["zoom"] == 7


def test_cities_lookup(client):
    _login(client)
    r = client.get("/admin/customers/cities?state=Karnataka")
    assert "Mysuru" in r.get_json()["cities"]
