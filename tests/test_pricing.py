"""Tests for quote logging, price history and per-technology benchmarks."""
import io
from datetime import date

import pytest
from openpyxl import load_workbook
from werkzeug.security import generate_password_hash

from app.markeng import create_app
from app.markeng.constants import TECH_CNC_VMC, TECH_SLS_PA2200
from app.markeng.db import session_scope
from app.markeng.models import Base, User
from app.markeng.modules.customers.models import Customer
from app.markeng.modules.customers.service import create_customer
from app.markeng.modules.pricing.models import PricingRecord
from app.markeng.modules.pricing.service import add_pricing_record, price_history, tech_benchmarks, tech_usage
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
        create_customer(s, {"name": "Acme Tools", "city": "Pune", "industry": "Automotive"}, None)

    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def _login(client):
    client.post("/auth/login", data={"email": "admin@example.com", "password": "pw"}, follow_redirects=True)
    with client.session_transaction() as sess:
        sess["csrf_token"] = "test-token"
    client.environ_base["HTTP_X_CSRF_TOKEN"] = "test-token"


def _customer_id(app) -> int:
    with session_scope(app) as s:
        return s.query(Customer).one().id


def test_log_quote_normalizes_tech_and_fills_context(app, client):
    _login(client)
    cid = _customer_id(app)
    r = client.post(
        "/admin/pricing/new",
        data={"customer_id": str(cid), "tech": "sls pa2200", "rate": "12.5", "unit": "gram", "quoted_qty": "100"},
        follow_redirects=True,
    )
    assert r.status_code == 200

    with session_scope(app) as s:
        rec = s.query(PricingRecord).one()
        assert rec.tech == TECH_SLS_PA2200
        assert rec.total_amount == 1250.0
        assert rec.status == "Draft"
        assert rec.sales_person == "Asha Admin"
        assert (rec.industry, rec.city, rec.state) == ("Automotive", "Pune", "Maharashtra")


def test_log_quote_rejects_negative_rate(app, client):
    _login(client)
    cid = _customer_id(app)
    r = client.post("/admin/pricing/new", data={"customer_id": str(cid), "tech": "FDM PLA", "rate": "-4"}, follow_redirects=True)
    assert b"Rate cannot be negative." in r.data
    with session_scope(app) as s:
        assert s.query(PricingRecord).count() == 0


def test_log_quote_requires_existing_customer(app, client):
    _login(client)
    r = client.post("/admin/pricing/new", data={"customer_id": "999", "rate": "4"}, follow_redirects=True)
    assert b"Customer not found." in r.data


def test_benchmarks_view_and_export(app, client):
    with session_scope(app) as s:
        c = s.query(Customer).one()
        add_pricing_record(s, c, {"tech": TECH_CNC_VMC, "rate": 800, "unit": "hour", "date": "2025-01-10"}, None)
        add_pricing_record(s, c, {"tech": TECH_CNC_VMC, "rate": 1000, "unit": "piece", "date": "2025-02-10"}, None)

    _login(client)
    r = client.get("/admin/pricing?view=benchmarks")
    assert r.status_code == 200

    r = client.get("/admin/pricing/export.xlsx", query_string={"tech": TECH_CNC_VMC})
    assert r.status_code == 200
    rows = list(load_workbook(io.BytesIO(r.data)).active.iter_rows(values_only=True))
    assert rows[0][:3] == ("Date", "Customer", "Technology")
    assert [row[3] for row in rows[1:]] == [1000, 800]


def test_delete_quote(app, client):
    with session_scope(app) as s:
        rec = add_pricing_record(s, s.query(Customer).one(), {"tech": "FDM PLA", "rate": 6}, None)
        rid = rec.id
    _login(client)
    client.post(f"/admin/pricing/{rid}/delete")
    with session_scope(app) as s:
        assert s.get(PricingRecord, rid) is None


def test_tech_benchmarks_average_and_latest_unit(app):
    with session_scope(app) as s:
        c = s.query(Customer).one()
        add_pricing_record(s, c, {"tech": TECH_CNC_VMC, "rate": 800, "unit": "hour", "date": "2025-01-10"}, None)
        add_pricing_record(s, c, {"tech": TECH_CNC_VMC, "rate": 1000, "unit": "piece", "date": "2025-02-10"}, None)
        add_pricing_record(s, c, {"tech": "FDM ABS", "rate": 7, "unit": "gram", "date": "2025-02-11"}, None)

        records = price_history(s)
        assert records[0].date == date(2025, 2, 11)

        bench = tech_benchmarks(records)
        assert bench[TECH_CNC_VMC]["average"] == 900.0
        assert bench[TECH_CNC_VMC]["unit"] == "piece"
        assert bench[TECH_CNC_VMC]["count"] == 2
        assert bench[TECH_SLS_PA2200] == {"average": 0.0, "unit": "unit", "count": 0, "recent": []}

        assert tech_usage(records) == {"CNC": 2, "FDM": 1}
