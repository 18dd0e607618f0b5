"""initial sales hub schema

Revision ID: a0b1c2d3e4f5
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "a0b1c2d3e4f5"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=False),
        nullable=False,
        server_default=sa.func.current_timestamp(),
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at",
        sa.DateTime(timezone=False),
        nullable=False,
        server_default=sa.func.current_timestamp(),
    )


def _project_fk() -> sa.Column:
    return sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)


def upgrade() -> None:
    # --- auth / audit ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
    )
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("key", sa.String(64), nullable=False, unique=True),
        sa.Column("name", sa.String(128), nullable=False),
        _created_at(),
    )
    op.create_table(
        "permissions",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("key", sa.String(128), nullable=False, unique=True),
        sa.Column("name", sa.String(128), nullable=False),
        _created_at(),
    )
    op.create_table(
        "user_roles",
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_table(
        "role_permissions",
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
        sa.Column(
            "permission_id", sa.Integer(), sa.ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True
        ),
    )
    op.create_table(
        "audit_events",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        _created_at(),
        sa.Column("request_id", sa.String(64), nullable=True),
        sa.Column("client_ip", sa.String(64), nullable=True),
        sa.Column("actor_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("actor_user_email", sa.String(320), nullable=True),
        sa.Column("action", sa.String(128), nullable=False),
        sa.Column("entity_type", sa.String(128), nullable=True),
        sa.Column("entity_id", sa.String(128), nullable=True),
        sa.Column("reason", sa.String(512), nullable=True),
        sa.Column("metadata_json", sa.Text(), nullable=True),
    )

    # --- customers ---
    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("city", sa.String(128), nullable=True),
        sa.Column("state", sa.String(128), nullable=True),
        sa.Column("country", sa.String(64), nullable=False, server_default="India"),
        sa.Column("area_sector", sa.String(255), nullable=True),
        sa.Column("pincode", sa.String(16), nullable=True),
        sa.Column("zone", sa.String(32), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("industrial_hub", sa.String(255), nullable=True),
        sa.Column("is_discovered", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("annual_turnover", sa.Float(), nullable=False, server_default="0"),
        sa.Column("project_turnover", sa.Float(), nullable=False, server_default="0"),
        sa.Column("industry", sa.String(128), nullable=False, server_default="Manufacturing"),
        sa.Column("industry_type", sa.String(64), nullable=True),
        sa.Column("machine_types", JSONType, nullable=True),
        sa.Column("company_size", sa.String(16), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="Open"),
        sa.Column("enquiry_no", sa.String(64), nullable=True),
        sa.Column("last_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("last_modified_by", sa.String(255), nullable=True),
        _created_at(),
        _updated_at(),
    )
    op.create_index("idx_customers_name", "customers", ["name"])
    op.create_index("idx_customers_state", "customers", ["state"])
    op.create_index("idx_customers_zone", "customers", ["zone"])

    op.create_table(
        "customer_contacts",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("designation", sa.String(128), nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("phone", sa.String(64), nullable=True),
    )
    op.create_index("idx_customer_contacts_customer", "customer_contacts", ["customer_id"])

    # --- pricing ---
    op.create_table(
        "pricing_records",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tech", sa.String(64), nullable=False),
        sa.Column("rate", sa.Float(), nullable=False, server_default="0"),
        sa.Column("unit", sa.String(32), nullable=False, server_default="gram"),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(32), nullable=False, server_default="Draft"),
        sa.Column("sales_person", sa.String(255), nullable=True),
        sa.Column("industry", sa.String(128), nullable=True),
        sa.Column("city", sa.String(128), nullable=True),
        sa.Column("state", sa.String(128), nullable=True),
        sa.Column("product_name", sa.String(255), nullable=True),
        sa.Column("drawing_no", sa.String(128), nullable=True),
        sa.Column("material_type", sa.String(128), nullable=True),
        sa.Column("machine_type", sa.String(128), nullable=True),
        sa.Column("process", sa.String(128), nullable=True),
        sa.Column("moq", sa.Integer(), nullable=True),
        sa.Column("quoted_qty", sa.Integer(), nullable=True),
        sa.Column("raw_material_cost", sa.Float(), nullable=True),
        sa.Column("machining_cost", sa.Float(), nullable=True),
        sa.Column("labor_cost", sa.Float(), nullable=True),
        sa.Column("overhead", sa.Float(), nullable=True),
        sa.Column("transportation_cost", sa.Float(), nullable=True),
        sa.Column("other_charges", sa.Float(), nullable=True),
        sa.Column("total_amount", sa.Float(), nullable=True),
        sa.Column("margin_percent", sa.Float(), nullable=True),
        sa.Column("currency", sa.String(8), nullable=False, server_default="INR"),
        sa.Column("valid_till", sa.Date(), nullable=True),
        sa.Column("payment_mode", sa.String(64), nullable=True),
        sa.Column("credit_days", sa.Integer(), nullable=True),
        sa.Column("advance_percent", sa.Float(), nullable=True),
        sa.Column("gst_included", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("notes", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("idx_pricing_customer", "pricing_records", ["customer_id"])
    op.create_index("idx_pricing_tech", "pricing_records", ["tech"])
    op.create_index("idx_pricing_date", "pricing_records", ["date"])

    # --- expos ---
    op.create_table(
        "expos",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("date", sa.String(64), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("industry", sa.String(128), nullable=False, server_default="Mechanical"),
        sa.Column("region", sa.String(64), nullable=False, server_default="India"),
        sa.Column("link", sa.String(512), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_ai_scouted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("event_type", sa.String(64), nullable=False, server_default="Expo / Trade Fair"),
        sa.Column("organizer_name", sa.String(255), nullable=True),
        sa.Column("website", sa.String(512), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="upcoming"),
        sa.Column("city", sa.String(128), nullable=True),
        sa.Column("state", sa.String(128), nullable=True),
        sa.Column("venue", sa.String(255), nullable=True),
        sa.Column("zone", sa.String(32), nullable=True),
        sa.Column("participation_type", sa.String(16), nullable=False, server_default="Visitor"),
        sa.Column("stall_no", sa.String(64), nullable=True),
        sa.Column("booth_size", sa.String(64), nullable=True),
        sa.Column("fee_cost", sa.Float(), nullable=False, server_default="0"),
        sa.Column("registration_status", sa.String(16), nullable=False, server_default="Applied"),
        sa.Column("assigned_team", sa.String(255), nullable=True),
        sa.Column("visit_plan", sa.Text(), nullable=True),
        sa.Column("transport_mode", sa.String(64), nullable=True),
        sa.Column("hotel_details", sa.Text(), nullable=True),
        sa.Column("budget", sa.Float(), nullable=False, server_default="0"),
        sa.Column("leads_generated", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("hot_leads", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("warm_leads", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("cold_leads", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("orders_received", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("pipeline_inquiries", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("new_contacts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("brochure_link", sa.String(512), nullable=True),
        sa.Column("entry_pass_link", sa.String(512), nullable=True),
        sa.Column("stall_layout_link", sa.String(512), nullable=True),
        sa.Column("photos_link", sa.String(512), nullable=True),
        sa.Column("visitor_list_link", sa.String(512), nullable=True),
        _created_at(),
        _updated_at(),
    )
    op.create_index("idx_expos_name", "expos", ["name"])
    op.create_index("idx_expos_start_date", "expos", ["start_date"])

    op.create_table(
        "expo_reminders",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("expo_id", sa.Integer(), sa.ForeignKey("expos.id", ondelete="CASCADE"), nullable=False),
        _created_at(),
        sa.UniqueConstraint("user_id", "expo_id", name="uq_expo_reminder_user_expo"),
    )

    # --- visits ---
    op.create_table(
        "visits",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("purpose", sa.String(512), nullable=False, server_default=""),
        sa.Column("assigned_to", sa.String(255), nullable=False, server_default=""),
        sa.Column("status", sa.String(16), nullable=False, server_default="Planned"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("expense_amount", sa.Float(), nullable=True),
        sa.Column("expense_note", sa.String(512), nullable=True),
        sa.Column("visit_result", sa.Text(), nullable=True),
        sa.Column("next_follow_up_date", sa.Date(), nullable=True),
        sa.Column("reminder_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("transport_mode", sa.String(32), nullable=True),
        sa.Column("vehicle_no", sa.String(32), nullable=True),
        sa.Column("start_location", sa.String(255), nullable=True),
        sa.Column("end_location", sa.String(255), nullable=True),
        sa.Column("distance", sa.Float(), nullable=True),
        sa.Column("payment_mode", sa.String(32), nullable=True),
        sa.Column("expected_amount", sa.Float(), nullable=True),
        sa.Column("payment_status", sa.String(16), nullable=True),
        sa.Column("expected_payment_date", sa.Date(), nullable=True),
        sa.Column("call_logs", JSONType, nullable=False),
        sa.Column("met_contacts", JSONType, nullable=False),
        sa.Column("checklist", JSONType, nullable=False),
        sa.Column("attachments", JSONType, nullable=False),
        _created_at(),
        _updated_at(),
    )
    op.create_index("idx_visits_customer", "visits", ["customer_id"])
    op.create_index("idx_visits_date", "visits", ["date"])
    op.create_index("idx_visits_status", "visits", ["status"])

    # --- team ---
    op.create_table(
        "team_members",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(128), nullable=False),
        sa.Column("avatar", sa.String(512), nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("phone", sa.String(64), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        _created_at(),
    )

    # --- projects ---
    op.create_table(
        "vendors",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("contact_person", sa.String(255), nullable=True),
        sa.Column("mobile", sa.String(64), nullable=True),
        sa.Column("city", sa.String(128), nullable=True),
        sa.Column("state", sa.String(128), nullable=True),
        _created_at(),
    )
    op.create_index("idx_vendors_name", "vendors", ["name"])

    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", sa.String(16), nullable=False, server_default="IN_HOUSE"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="Active"),
        sa.Column("created_by", sa.String(255), nullable=False, server_default="System"),
        sa.Column("company_name", sa.String(255), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("total_value", sa.Float(), nullable=False, server_default="0"),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        _updated_at(),
    )
    op.create_index("idx_projects_updated_at", "projects", ["updated_at"])
    op.create_index("idx_projects_is_deleted", "projects", ["is_deleted"])

    op.create_table(
        "project_vendor_details",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "project_id", sa.Integer(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, unique=True
        ),
        sa.Column("vendor_id", sa.Integer(), sa.ForeignKey("vendors.id", ondelete="SET NULL"), nullable=True),
        sa.Column("vendor_name", sa.String(255), nullable=False),
        sa.Column("vendor_type", sa.String(32), nullable=False),
        sa.Column("vendor_contact", sa.String(255), nullable=True),
        sa.Column("vendor_mobile", sa.String(64), nullable=True),
        sa.Column("vendor_city", sa.String(128), nullable=True),
        sa.Column("vendor_state", sa.String(128), nullable=True),
        sa.Column("timeline_weeks", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tracking_link", sa.String(512), nullable=True),
        sa.Column("milestones", sa.Text(), nullable=True),
    )

    op.create_table(
        "project_commercial_details",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "project_id", sa.Integer(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, unique=True
        ),
        sa.Column("client_project_cost", sa.Float(), nullable=False, server_default="0"),
        sa.Column("client_advance_received", sa.Float(), nullable=False, server_default="0"),
        sa.Column("client_gst_amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("client_gst_applicable", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("client_gst_number", sa.String(32), nullable=True),
        sa.Column("client_payment_terms", sa.String(32), nullable=True),
        sa.Column("vendor_total_cost", sa.Float(), nullable=False, server_default="0"),
        sa.Column("vendor_advance_paid", sa.Float(), nullable=False, server_default="0"),
        sa.Column("vendor_gst_amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("vendor_gst_applicable", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("vendor_gst_number", sa.String(32), nullable=True),
        sa.Column("vendor_payment_terms", sa.String(32), nullable=True),
        sa.Column("margin_percent", sa.Float(), nullable=False, server_default="0"),
        sa.Column("rate_type", sa.String(16), nullable=True),
    )

    op.create_table(
        "project_client_payments",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        _project_fk(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("invoice_no", sa.String(64), nullable=True),
        sa.Column("amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("mode", sa.String(16), nullable=False, server_default="Bank"),
        sa.Column("reference", sa.String(255), nullable=True),
        sa.Column("added_by", sa.String(255), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("idx_client_payments_project", "project_client_payments", ["project_id"])

    op.create_table(
        "project_vendor_payments",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        _project_fk(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("voucher_no", sa.String(64), nullable=True),
        sa.Column("amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("mode", sa.String(16), nullable=False, server_default="Bank"),
        sa.Column("reference", sa.String(255), nullable=True),
        sa.Column("paid_by", sa.String(255), nullable=False),
        sa.Column("remarks", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("idx_vendor_payments_project", "project_vendor_payments", ["project_id"])

    op.create_table(
        "project_expenses",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        _project_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("category", sa.String(32), nullable=False, server_default="Other"),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("paid_by", sa.String(255), nullable=True),
        sa.Column("payment_mode", sa.String(16), nullable=False, server_default="Cash"),
        sa.Column("bill_photo_key", sa.String(512), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="Pending"),
        sa.Column("rejection_reason", sa.String(512), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("idx_expenses_project", "project_expenses", ["project_id"])

    op.create_table(
        "project_incomes",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        _project_fk(),
        sa.Column("client_name", sa.String(255), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("invoice_number", sa.String(64), nullable=True),
        sa.Column("received_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="Pending"),
        sa.Column("mode", sa.String(16), nullable=False, server_default="Bank"),
        sa.Column("linked_to_commercial", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
    )
    op.create_index("idx_incomes_project", "project_incomes", ["project_id"])

    op.create_table(
        "project_extra_expenses",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        _project_fk(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("type", sa.String(128), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("mode", sa.String(16), nullable=False, server_default="Cash"),
        sa.Column("reference", sa.String(255), nullable=True),
        sa.Column("added_by", sa.String(255), nullable=False),
        _created_at(),
    )
    op.create_index("idx_extra_expenses_project", "project_extra_expenses", ["project_id"])

    op.create_table(
        "project_documents",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        _project_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(64), nullable=False, server_default="Other"),
        sa.Column("tags", JSONType, nullable=False),
        sa.Column("storage_key", sa.String(512), nullable=False),
        sa.Column("file_type", sa.String(128), nullable=True),
        sa.Column("size_bytes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("uploaded_by", sa.String(255), nullable=False),
        _created_at(),
    )
    op.create_index("idx_project_documents_project", "project_documents", ["project_id"])

    op.create_table(
        "project_activity",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        _project_fk(),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("description", sa.String(512), nullable=False),
        sa.Column("details", JSONType, nullable=True),
        sa.Column("performed_by", sa.String(255), nullable=False),
        _created_at(),
    )
    op.create_index("idx_project_activity_project", "project_activity", ["project_id"])

    # --- data management ---
    op.create_table(
        "import_batches",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("kind", sa.String(32), nullable=False),
        sa.Column("action", sa.String(255), nullable=False),
        sa.Column("record_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(32), nullable=False, server_default="Success"),
        sa.Column("created_ids", JSONType, nullable=False),
        sa.Column(
            "created_by_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
        ),
        _created_at(),
        sa.Column("rolled_back_at", sa.DateTime(timezone=False), nullable=True),
    )
    op.create_index("idx_import_batches_created_at", "import_batches", ["created_at"])


def downgrade() -> None:
    for table in (
        "import_batches",
        "project_activity",
        "project_documents",
        "project_extra_expenses",
        "project_incomes",
        "project_expenses",
        "project_vendor_payments",
        "project_client_payments",
        "project_commercial_details",
        "project_vendor_details",
        "projects",
        "vendors",
        "team_members",
        "visits",
        "expo_reminders",
        "expos",
        "pricing_records",
        "customer_contacts",
        "customers",
        "audit_events",
        "role_permissions",
        "user_roles",
        "permissions",
        "roles",
        "users",
    ):
        op.drop_table(table)
