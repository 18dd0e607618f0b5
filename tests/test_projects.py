"""Tests for projects: commercials, ledgers, documents and exports."""
import io

import pytest
from openpyxl import Workbook, load_workbook
from werkzeug.security import generate_password_hash

from app.markeng import create_app
from app.markeng.db import session_scope
from app.markeng.models import AuditEvent, Base, User
from app.markeng.modules.projects.models import Expense, Project, ProjectDocument, Vendor
from app.markeng.modules.projects.service import (
    add_client_payment,
    add_vendor_payment,
    commercial_summary,
    create_project,
    log_activity,
    validate_project_payload,
)
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


VENDOR_FORM = {
    "name": "Gearbox Housings",
    "type": "VENDOR",
    "company_name": "Acme Tools",
    "vendor_name": "Pune Precision",
    "vendor_type": "CNC",
    "vendor_city": "Pune",
    "timeline_weeks": "6",
    "client_project_cost": "100000",
    "client_advance_received": "20000",
    "client_gst_applicable": "on",
    "client_gst_number": "27ABCDE1234F1Z5",
    "vendor_total_cost": "75000",
    "vendor_advance_paid": "10000",
}


def _in_house(app, name="Fixture Build") -> int:
    with session_scope(app) as s:
        return create_project(s, {"name": name, "type": "IN_HOUSE", "company_name": "Acme Tools"}, None).id


def _vendor_project(app) -> int:
    with session_scope(app) as s:
        return create_project(s, dict(VENDOR_FORM), None).id


def _xlsx(headers, *rows) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.append(list(headers))
    for row in rows:
        ws.append(list(row))
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def test_validate_vendor_project_requires_vendor_fields():
    errors = validate_project_payload({"name": "X", "type": "VENDOR"})
    assert "Vendor Name is mandatory." in errors
    assert "Vendor Type is mandatory." in errors
    assert validate_project_payload({"type": "IN_HOUSE"}) == ["Project Name is mandatory."]
    assert "Client project cost cannot be negative." in validate_project_payload(
        {**VENDOR_FORM, "client_project_cost": "-5"}
    )


def test_create_in_house_project(app, client):
    _login(client)
    r = client.post("/admin/projects/new", data={"name": "Fixture Build", "type": "IN_HOUSE"}, follow_redirects=True)
    assert r.status_code == 200
    assert b"Project Fixture Build created." in r.data
    with session_scope(app) as s:
        project = s.query(Project).one()
        assert project.created_by == "Asha Admin"
        assert project.status == "Active"
        assert project.vendor_details is None
        assert project.commercial_details is None
        assert [a.type for a in project.activity] == ["PROJECT_CREATED"]


def test_create_project_validation_error_rerenders_form(app, client):
    _login(client)
    r = client.post("/admin/projects/new", data={"name": "Outsourced", "type": "VENDOR"})
    assert r.status_code == 400
    assert b"Vendor Name is mandatory." in r.data
    with session_scope(app) as s:
        assert s.query(Project).count() == 0


def test_create_vendor_project_computes_margin_and_master_vendor(app, client):
    _login(client)
    client.post("/admin/projects/new", data=VENDOR_FORM)
    with session_scope(app) as s:
        project = s.query(Project).one()
        vendor = s.query(Vendor).one()
        assert vendor.name == "Pune Precision"
        assert project.vendor_details.vendor_id == vendor.id
        assert project.vendor_details.timeline_weeks == 6
        cd = project.commercial_details
        assert cd.margin_percent == 25.0
        assert cd.client_gst_applicable is True
        assert cd.client_gst_number == "27ABCDE1234F1Z5"
        assert cd.vendor_gst_number is None
        assert {a.type for a in project.activity} == {"PROJECT_CREATED", "VENDOR_ASSIGNED"}


def test_edit_unchecked_gst_box_clears_flag(app, client):
    pid = _vendor_project(app)
    _login(client)
    client.post(f"/admin/projects/{pid}/edit", data={"name": "Gearbox Housings", "client_project_cost": "120000"})
    with session_scope(app) as s:
        project = s.get(Project, pid)
        cd = project.commercial_details
        assert cd.client_gst_applicable is False
        assert cd.client_gst_number is None
        assert cd.client_project_cost == 120000.0
        # Fields absent from the form keep their stored values.
        assert cd.vendor_total_cost == 75000.0
        assert project.vendor_details.vendor_name == "Pune Precision"
        assert "COST_CHANGED" in {a.type for a in project.activity}


def test_status_change_logs_activity(app, client):
    pid = _in_house(app)
    _login(client)
    client.post(f"/admin/projects/{pid}/edit", data={"status": "On Hold"})
    with session_scope(app) as s:
        project = s.get(Project, pid)
        assert project.status == "On Hold"
        [entry] = [a for a in project.activity if a.type == "STATUS_UPDATED"]
        assert entry.description == "Status changed from Active to On Hold"


def test_expenses_and_rejection_reason(app, client):
    pid = _in_house(app)
    _login(client)
    client.post(
        f"/admin/projects/{pid}/expenses",
        data={"name": "Aluminium billets", "amount": "12000", "category": "Raw Material", "date": "2026-02-01"},
    )
    r = client.post(f"/admin/projects/{pid}/expenses", data={"name": "Bad", "amount": "-1"}, follow_redirects=True)
    assert b"Amount cannot be negative." in r.data

    with session_scope(app) as s:
        [expense] = s.get(Project, pid).expenses
        assert expense.status == "Pending"
        eid = expense.id

    r = client.post(f"/admin/projects/{pid}/expenses/{eid}/status", data={"status": "Rejected"}, follow_redirects=True)
    assert b"A reason is required to reject an expense." in r.data

    client.post(f"/admin/projects/{pid}/expenses/{eid}/status", data={"status": "Rejected", "reason": "Duplicate bill"})
    with session_scope(app) as s:
        expense = s.get(Expense, eid)
        assert expense.status == "Rejected"
        assert expense.rejection_reason == "Duplicate bill"
        event = s.query(AuditEvent).filter(AuditEvent.action == "project.expense_status").one()
        assert event.reason == "Duplicate bill"

    client.post(f"/admin/projects/{pid}/expenses/{eid}/status", data={"status": "Approved"})
    with session_scope(app) as s:
        assert s.get(Expense, eid).rejection_reason is None


def test_expense_of_other_project_is_404(app, client):
    pid = _in_house(app)
    other = _in_house(app, "Other")
    _login(client)
    client.post(f"/admin/projects/{pid}/expenses", data={"name": "Tooling", "amount": "500"})
    with session_scope(app) as s:
        eid = s.get(Project, pid).expenses[0].id
    assert client.post(f"/admin/projects/{other}/expenses/{eid}/delete").status_code == 404


def test_expense_import_skips_incomplete_rows(app, client):
    pid = _in_house(app)
    _login(client)
    data = _xlsx(
        ("Item", "Amount", "Category", "Date", "Status"),
        ("Coolant", 1500, "Utility", "2026-02-02", "Approved"),
        ("Labour", 4000, "Overtime", "2026-02-03", "Paid"),
        ("", 900, "Other", "2026-02-04", "Pending"),
    )
    r = client.post(
        f"/admin/projects/{pid}/expenses/import",
        data={"file": (io.BytesIO(data), "expenses.xlsx")},
        content_type="multipart/form-data",
        follow_redirects=True,
    )
    assert b"Successfully imported 2 expenses!" in r.data
    with session_scope(app) as s:
        by_name = {e.name: e for e in s.get(Project, pid).expenses}
        assert by_name["Coolant"].status == "Approved"
        assert by_name["Labour"].category == "Other"
        assert by_name["Labour"].status == "Pending"


def test_incomes_and_profit_and_loss_export(app, client):
    pid = _in_house(app)
    _login(client)
    client.post(f"/admin/projects/{pid}/incomes", data={"client_name": "Acme Tools", "amount": "50000", "status": "Received"})
    client.post(f"/admin/projects/{pid}/expenses", data={"name": "Machining", "amount": "20000"})
    r = client.post(f"/admin/projects/{pid}/incomes", data={"amount": "10"}, follow_redirects=True)
    assert b"Client name is required." in r.data

    r = client.get(f"/admin/projects/{pid}/report.xlsx")
    assert r.status_code == 200
    ws = load_workbook(io.BytesIO(r.data)).active
    values = {row[0]: row[1] for row in ws.iter_rows(values_only=True) if row and row[0]}
    assert values["Total Income"] == 50000
    assert values["Net Profit"] == 30000
    assert values["Profit Margin %"] == 60.0

    r = client.get(f"/admin/projects/{pid}/incomes/export.pdf")
    assert r.status_code == 200
    assert r.data.startswith(b"%PDF")


def test_income_import_from_csv(app, client):
    pid = _in_house(app)
    _login(client)
    data = (
        b"Client,Amount,Invoice,Date,Status\n"
        b"Acme Tools,25000,INV-101,2026-03-01,Received\n"
        b"Acme Tools,4000,INV-102,2026-03-05,Overdue\n"
        b",900,INV-103,2026-03-06,Pending\n"
        b"Acme Tools,,INV-104,2026-03-07,Pending\n"
    )
    r = client.post(
        f"/admin/projects/{pid}/incomes/import",
        data={"file": (io.BytesIO(data), "incomes.csv")},
        content_type="multipart/form-data",
        follow_redirects=True,
    )
    assert b"Successfully imported 2 income records!" in r.data
    with session_scope(app) as s:
        by_invoice = {i.invoice_number: i for i in s.get(Project, pid).incomes}
        assert set(by_invoice) == {"INV-101", "INV-102"}
        assert by_invoice["INV-101"].status == "Received"
        assert by_invoice["INV-101"].amount == 25000
        assert by_invoice["INV-102"].status == "Pending"
        assert str(by_invoice["INV-102"].received_date) == "2026-03-05"


def test_log_activity_rejects_unknown_type(app):
    pid = _in_house(app)
    with session_scope(app) as s:
        project = s.get(Project, pid)
        with pytest.raises(ValueError):
            log_activity(s, project, "PRICE_GUESSED", "nope", None)
        assert [a.type for a in project.activity] == ["PROJECT_CREATED"]


def test_empty_expense_export_redirects(app, client):
    pid = _in_house(app)
    _login(client)
    r = client.get(f"/admin/projects/{pid}/expenses/export.xlsx", follow_redirects=True)
    assert b"No expenses to export." in r.data


def test_payments_and_balances(app, client):
    pid = _vendor_project(app)
    _login(client)
    client.post(f"/admin/projects/{pid}/client-payments", data={"amount": "30000", "mode": "UPI", "invoice_no": "INV-7"})
    client.post(f"/admin/projects/{pid}/vendor-payments", data={"amount": "15000"})
    client.post(f"/admin/projects/{pid}/extra-expenses", data={"type": "Transport", "amount": "2500"})
    r = client.post(f"/admin/projects/{pid}/extra-expenses", data={"amount": "100"}, follow_redirects=True)
    assert b"Expense type is required." in r.data

    with session_scope(app) as s:
        project = s.get(Project, pid)
        summary = commercial_summary(project)
        assert summary["client_balance"] == 50000.0
        assert summary["vendor_balance"] == 50000.0
        assert summary["client_received"] == 30000.0
        assert summary["extra_expenses"] == 2500.0
        assert project.client_payments[0].added_by == "Asha Admin"
        assert [a.type for a in project.activity].count("PAYMENT_UPDATED") == 2


def test_payments_rejected_for_in_house_project(app, client):
    pid = _in_house(app)
    _login(client)
    assert client.post(f"/admin/projects/{pid}/client-payments", data={"amount": "100"}).status_code == 404


def test_payment_service_records_actor_defaults(app):
    pid = _vendor_project(app)
    with session_scope(app) as s:
        project = s.get(Project, pid)
        payment = add_vendor_payment(s, project, {"amount": "1000"}, None)
        assert payment.paid_by == "System"
        assert payment.mode == "Bank"
        assert add_client_payment(s, project, {"amount": 5}, None).added_by == "System"


def test_document_upload_download_delete(app, client, tmp_path):
    pid = _in_house(app)
    _login(client)
    r = client.post(
        f"/admin/projects/{pid}/documents",
        data={
            "file": (io.BytesIO(b"%PDF-1.4 po"), "po.pdf"),
            "category": "Client PO",
            "tags": ["Client", "Bogus"],
        },
        content_type="multipart/form-data",
        follow_redirects=True,
    )
    assert b"po.pdf uploaded." in r.data
    with session_scope(app) as s:
        doc = s.query(ProjectDocument).one()
        assert doc.tags == ["Client"]
        assert doc.storage_key.startswith(f"projects/{pid}/")
        assert doc.size_bytes == len(b"%PDF-1.4 po")
        doc_id, key = doc.id, doc.storage_key

    r = client.get(f"/admin/projects/{pid}/documents/{doc_id}")
    assert r.data == b"%PDF-1.4 po"

    client.post(f"/admin/projects/{pid}/documents/{doc_id}/delete")
    with session_scope(app) as s:
        assert s.query(ProjectDocument).count() == 0
    assert not (tmp_path / "storage" / key).exists()


def test_document_with_unknown_category_is_rejected(app, client):
    pid = _in_house(app)
    _login(client)
    r = client.post(
        f"/admin/projects/{pid}/documents",
        data={"file": (io.BytesIO(b"x"), "x.pdf"), "category": "Memes"},
        content_type="multipart/form-data",
        follow_redirects=True,
    )
    assert b"Invalid category." in r.data
    with session_scope(app) as s:
        assert s.query(ProjectDocument).count() == 0


def test_soft_delete_hides_project(app, client):
    pid = _in_house(app, "Hidden Build")
    _login(client)
    client.post(f"/admin/projects/{pid}/delete")
    with session_scope(app) as s:
        assert s.get(Project, pid).is_deleted is True
    assert client.get(f"/admin/projects/{pid}").status_code == 404
    assert b"Hidden Build" not in client.get("/admin/projects").data


def test_detail_tabs_render(app, client):
    pid = _vendor_project(app)
    _login(client)
    for tab in ("overview", "commercials", "expenses", "income", "profit_loss", "documents", "activity", "bogus"):
        assert client.get(f"/admin/projects/{pid}?tab={tab}").status_code == 200
