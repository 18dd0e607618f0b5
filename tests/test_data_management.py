"""Tests for bulk imports, rollback, templates and the registry export."""
import io
import json
import re

import pytest
from openpyxl import load_workbook
from werkzeug.security import generate_password_hash

from app.markeng import create_app
from app.markeng.db import session_scope
from app.markeng.models import Base, User
from app.markeng.modules.customers.models import Customer
from app.markeng.modules.customers.service import create_customer
from app.markeng.modules.data_management.models import ImportBatch
from app.markeng.modules.data_management.service import (
    INQUIRY_CREATOR,
    import_inquiries,
    import_pricing,
    latest_rollback_candidate,
    rollback_latest,
)
from app.markeng.modules.expos.models import Expo
from app.markeng.modules.pricing.models import PricingRecord
from app.markeng.modules.projects.models import Project
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


CUSTOMERS_CSV = (
    "Company,City,Annual Turnover,Contact\n"
    "acme tools ,Pune,100,Ravi\n"
    "Nova Dies,Chennai,2500000,Meera\n"
    "NOVA DIES,Chennai,1,\n"
    ",Delhi,5,\n"
).encode("utf-8")

INQUIRY_ROWS = [
    {"inquiry_id": "INQ-1", "lead_name": "Orbit Motors", "date": "2026-01-05", "city": "Pune", "state": "",
     "pincode": "", "industry": "", "value": "250000", "status": "Open"},
    {"inquiry_id": "INQ-2", "lead_name": "Orbit Motors", "date": "2026-01-05", "city": "Pune", "state": "",
     "pincode": "", "industry": "", "value": "250000", "status": "Open"},
    {"inquiry_id": "", "lead_name": "No Id Ltd", "date": "", "city": "", "state": "",
     "pincode": "", "industry": "", "value": "", "status": ""},
]


def _upload_key(html: bytes) -> str:
    m = re.search(rb'name="upload_key" value="([^"]+)"', html)
    assert m, "mapping form should carry the staged upload key"
    return m.group(1).decode("utf-8")


def test_customer_import_maps_and_dedupes(app, client, tmp_path):
    with session_scope(app) as s:
        create_customer(s, {"name": "Acme Tools", "city": "Pune"}, None)
    _login(client)

    r = client.post(
        "/admin/data/import/customers",
        data={"file": (io.BytesIO(CUSTOMERS_CSV), "customers.csv")},
        content_type="multipart/form-data",
    )
    assert r.status_code == 200
    assert b"Map columns: Customers" in r.data
    key = _upload_key(r.data)
    assert key.startswith("imports/")
    assert (tmp_path / "storage" / key).exists()

    r = client.post(
        "/admin/data/import/customers/execute",
        data={
            "upload_key": key,
            "filename": "customers.csv",
            "map_name": "Company",
            "map_city": "City",
            "map_annual_turnover": "Annual Turnover",
            "map_contact_name": "Contact",
        },
        follow_redirects=True,
    )
    assert b"Customers import complete: 1 records created, 2 skipped." in r.data
    assert not (tmp_path / "storage" / key).exists()

    with session_scope(app) as s:
        assert s.query(Customer).count() == 2
        nova = s.query(Customer).filter(Customer.name == "Nova Dies").one()
        assert nova.annual_turnover == 2500000.0
        assert nova.country == "India"
        assert [c.name for c in nova.contacts] == ["Meera"]
        batch = s.query(ImportBatch).one()
        assert batch.action == "Bulk Saved Customers"
        assert batch.record_count == 3
        assert batch.created_ids == {"customers": [nova.id]}


def test_import_without_required_mapping_fails(app, client):
    _login(client)
    r = client.post(
        "/admin/data/import/customers",
        data={"file": (io.BytesIO(CUSTOMERS_CSV), "customers.csv")},
        content_type="multipart/form-data",
    )
    key = _upload_key(r.data)
    r = client.post(
        "/admin/data/import/customers/execute",
        data={"upload_key": key, "filename": "customers.csv", "map_city": "City"},
        follow_redirects=True,
    )
    assert b"No valid records found after mapping." in r.data
    with session_scope(app) as s:
        assert s.query(ImportBatch).count() == 0


def test_execute_rejects_foreign_storage_key(client):
    _login(client)
    r = client.post("/admin/data/import/customers/execute", data={"upload_key": "projects/1/x.csv"})
    assert r.status_code == 400


def test_execute_rejects_key_escaping_imports_prefix(app, client, tmp_path):
    _login(client)
    target = tmp_path / "storage" / "projects" / "1" / "123-ledger.csv"
    target.parent.mkdir(parents=True)
    target.write_bytes(CUSTOMERS_CSV)
    r = client.post(
        "/admin/data/import/customers/execute",
        data={
            "upload_key": "imports/../projects/1/123-ledger.csv",
            "filename": "ledger.csv",
            "map_name": "Company",
        },
    )
    assert r.status_code == 400
    assert target.exists()
    with session_scope(app) as s:
        assert s.query(Customer).count() == 0


def test_unknown_import_kind_404(client):
    _login(client)
    r = client.post(
        "/admin/data/import/vendors",
        data={"file": (io.BytesIO(CUSTOMERS_CSV), "v.csv")},
        content_type="multipart/form-data",
    )
    assert r.status_code == 404


def test_bad_file_type_flashes(client):
    _login(client)
    r = client.post(
        "/admin/data/import/customers",
        data={"file": (io.BytesIO(b"hello"), "notes.txt")},
        content_type="multipart/form-data",
        follow_redirects=True,
    )
    assert b"Unsupported file type." in r.data


def test_pricing_import_skips_unknown_customers(app):
    with session_scope(app) as s:
        create_customer(s, {"name": "Acme Tools", "city": "Pune"}, None)
    with session_scope(app) as s:
        result = import_pricing(
            s,
            [
                {"customer_name": "ACME TOOLS", "tech": "fdm", "rate": "12", "unit": "", "date": "2026-01-02"},
                {"customer_name": "Ghost Corp", "tech": "SLA", "rate": "9", "unit": "", "date": ""},
            ],
            None,
        )
        assert result.count("pricing") == 1
        assert result.skipped == 1
    with session_scope(app) as s:
        record = s.query(PricingRecord).one()
        assert record.status == "Approved"
        assert record.unit == "gram"
        assert record.rate == 12.0


def test_inquiry_import_builds_ledger_and_rolls_back(app):
    with session_scope(app) as s:
        result = import_inquiries(s, INQUIRY_ROWS, None)
        assert result.skipped == 1
        assert result.count("customers") == 1
        # Same rate on the same date is not quoted twice.
        assert result.count("pricing") == 1
        assert result.count("expos") == 2
        assert result.count("projects") == 2

    with session_scope(app) as s:
        names = sorted(p.name for p in s.query(Project).all())
        assert names == ["Orbit Motors - INQ-1", "Orbit Motors - INQ-2"]
        assert {p.created_by for p in s.query(Project).all()} == {INQUIRY_CREATOR}
        assert {p.type for p in s.query(Project).all()} == {"IN_HOUSE"}
        assert sorted(e.name for e in s.query(Expo).all()) == ["Inquiry: INQ-1", "Inquiry: INQ-2"]
        quote = s.query(PricingRecord).one()
        assert quote.unit == "Project"
        assert quote.rate == 250000.0
        assert latest_rollback_candidate(s) is not None

    with session_scope(app) as s:
        batch = rollback_latest(s, None)
        assert batch.action == "Inquiry Ledger Sync"

    with session_scope(app) as s:
        assert s.query(Customer).count() == 0
        assert s.query(Project).count() == 0
        assert s.query(Expo).count() == 0
        assert s.query(PricingRecord).count() == 0
        assert latest_rollback_candidate(s) is None
        with pytest.raises(ValueError):
            rollback_latest(s, None)


def test_second_inquiry_import_skips_known_events(app):
    with session_scope(app) as s:
        import_inquiries(s, INQUIRY_ROWS[:1], None)
    with session_scope(app) as s:
        result = import_inquiries(s, INQUIRY_ROWS[:1], None)
        assert result.count("customers") == 0
        assert result.count("pricing") == 0
        assert result.count("expos") == 0
        # Every ledger row still opens a project.
        assert result.count("projects") == 1


def test_rollback_route(app, client):
    with session_scope(app) as s:
        import_inquiries(s, INQUIRY_ROWS[:1], None)
    _login(client)
    r = client.post("/admin/data/rollback", follow_redirects=True)
    assert b"Rolled back: Inquiry Ledger Sync." in r.data
    r = client.post("/admin/data/rollback", follow_redirects=True)
    assert b"Nothing to roll back." in r.data


def test_templates(client):
    _login(client)
    r = client.get("/admin/data/templates/customers.xlsx")
    assert r.status_code == 200
    ws = load_workbook(io.BytesIO(r.data)).active
    header = [c.value for c in ws[1]]
    assert header[0] == "Customer Name"
    assert "Annual Turnover" in header
    assert client.get("/admin/data/templates/inquiries.xlsx").status_code == 404


def test_registry_export_blocks_rollback(app, client):
    with session_scope(app) as s:
        create_customer(s, {"name": "Acme Tools", "city": "Pune"}, None)
        import_inquiries(s, INQUIRY_ROWS[:1], None)
    _login(client)
    r = client.get("/admin/data/registry.json")
    assert r.status_code == 200
    assert r.mimetype == "application/json"
    payload = json.loads(r.data)
    assert payload["meta"]["system"]
    assert [c["name"] for c in payload["registries"]["customers"]] == ["Acme Tools", "Orbit Motors"]
    assert payload["meta"]["total_record_count"] == 3

    with session_scope(app) as s:
        newest = s.query(ImportBatch).order_by(ImportBatch.id.desc()).first()
        assert newest.action == "Registry Export Executed"
        # Only the newest batch can be rolled back, and an export created nothing.
        assert latest_rollback_candidate(s) is None


def test_data_page_renders_history(app, client):
    with session_scope(app) as s:
        import_inquiries(s, INQUIRY_ROWS[:1], None)
    _login(client)
    r = client.get("/admin/data")
    assert r.status_code == 200
    assert b"Inquiry Ledger Sync" in r.data
