"""Tests for the expo repository: CRUD, reminders, documents and AI scouting."""
import io

import pytest
from werkzeug.security import generate_password_hash

from app.markeng import create_app
from app.markeng.db import session_scope
from app.markeng.models import Base, User
from app.markeng.modules.expos import admin as expos_admin
from app.markeng.modules.expos.models import Expo, ExpoReminder
from app.markeng.modules.expos.service import create_expo, display_date, validate_expo_payload
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


def _expo(app, **payload) -> int:
    with session_scope(app) as s:
        return create_expo(s, {"name": "IMTEX 2026", "start_date": "2026-01-22", **payload}, None).id


def test_display_date():
    assert display_date({"start_date": "2026-01-22", "end_date": "2026-01-28"}) == "2026-01-22 to 2026-01-28"
    assert display_date({"start_date": "2026-01-22"}) == "2026-01-22"
    assert display_date({"date": "Oct 12-14, 2025"}) == "Oct 12-14, 2025"


def test_validate_expo_payload():
    assert validate_expo_payload({"name": "IMTEX"}) == ["Please enter Event Name and Start Date."]
    errors = validate_expo_payload({"name": "IMTEX", "start_date": "2026-02-01", "end_date": "2026-01-01"})
    assert "End date cannot be before start date." in errors
    assert validate_expo_payload({"name": "IMTEX", "start_date": "2026-02-01", "status": "someday"})


def test_expos_list_requires_auth(client):
    r = client.get("/admin/expos")
    assert r.status_code in (302, 403)


def test_expo_create_and_edit(app, client):
    _login(client)
    r = client.post(
        "/admin/expos/new",
        data={
            "name": "IMTEX Forming",
            "start_date": "2026-01-22",
            "end_date": "2026-01-26",
            "city": "Bengaluru",
            "participation_type": "Exhibitor",
            "fee_cost": "150000",
            "leads_generated": "12",
        },
        follow_redirects=True,
    )
    assert r.status_code == 200
    assert b"IMTEX Forming" in r.data

    with session_scope(app) as s:
        expo = s.query(Expo).one()
        assert expo.date == "2026-01-22 to 2026-01-26"
        assert expo.participation_type == "Exhibitor"
        assert expo.fee_cost == 150000.0
        assert expo.leads_generated == 12
        assert expo.status == "upcoming"
        eid = expo.id

    client.post(f"/admin/expos/{eid}/edit", data={"name": "IMTEX Forming", "start_date": "2026-01-22", "status": "live"})
    with session_scope(app) as s:
        expo = s.get(Expo, eid)
        assert expo.status == "live"
        # Outcome counts not on the submitted form are kept.
        assert expo.leads_generated == 12


def test_expo_create_requires_name_and_date(app, client):
    _login(client)
    r = client.post("/admin/expos/new", data={"name": "No date"}, follow_redirects=True)
    assert b"Please enter Event Name and Start Date." in r.data
    with session_scope(app) as s:
        assert s.query(Expo).count() == 0


def test_expo_search_and_status_filter(app, client):
    _expo(app)
    _expo(app, name="Engimach", status="Completed")
    _login(client)
    r = client.get("/admin/expos?status=Completed")
    assert b"Engimach" in r.data
    assert b"IMTEX 2026" not in r.data


def test_reminder_toggles_per_user(app, client):
    eid = _expo(app)
    _login(client)
    client.post(f"/admin/expos/{eid}/reminder")
    with session_scope(app) as s:
        assert s.query(ExpoReminder).filter(ExpoReminder.expo_id == eid).count() == 1
    client.post(f"/admin/expos/{eid}/reminder")
    with session_scope(app) as s:
        assert s.query(ExpoReminder).count() == 0


def test_document_upload_and_download(app, client):
    eid = _expo(app)
    _login(client)
    r = client.post(
        f"/admin/expos/{eid}/documents/brochure",
        data={"file": (io.BytesIO(b"%PDF-1.4 brochure"), "brochure.pdf")},
        content_type="multipart/form-data",
        follow_redirects=True,
    )
    assert r.status_code == 200
    with session_scope(app) as s:
        assert s.get(Expo, eid).brochure_link.startswith("expos/")

    r = client.get(f"/admin/expos/{eid}/documents/brochure")
    assert r.status_code == 200
    assert r.data == b"%PDF-1.4 brochure"


def test_external_document_link_redirects(app, client):
    eid = _expo(app, brochure_link="https://example.com/brochure.pdf")
    _login(client)
    r = client.get(f"/admin/expos/{eid}/documents/brochure")
    assert r.status_code == 302
    assert r.headers["Location"] == "https://example.com/brochure.pdf"


def test_unknown_document_field_404(app, client):
    eid = _expo(app)
    _login(client)
    r = client.post(
        f"/admin/expos/{eid}/documents/poster",
        data={"file": (io.BytesIO(b"x"), "x.png")},
        content_type="multipart/form-data",
    )
    assert r.status_code == 404


class _FakeScout:
    api_key = "test"

    def fetch_upcoming_expos(self, industry="Manufacturing & 3D Printing"):
        return [
            {"name": "IMTEX 2026", "date": "Jan 22-28, 2026", "location": "Bengaluru, Karnataka"},
            {"name": "TCT 3Sixty India", "date": "Mar 4-6, 2026", "location": "Mumbai, Maharashtra", "industry": "AM"},
            {"name": "", "date": "TBA"},
        ]


def test_scout_skips_known_names(app, client, monkeypatch):
    _expo(app, name="imtex 2026")
    monkeypatch.setattr(expos_admin, "client_from_config", lambda config: _FakeScout())
    _login(client)
    r = client.post("/admin/expos/scout", follow_redirects=True)
    assert b"Found 1 new manufacturing expos in India!" in r.data
    with session_scope(app) as s:
        scouted = s.query(Expo).filter(Expo.is_ai_scouted.is_(True)).all()
        assert [e.name for e in scouted] == ["TCT 3Sixty India"]
        assert scouted[0].date == "Mar 4-6, 2026"
