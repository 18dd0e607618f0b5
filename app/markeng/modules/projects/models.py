from __future__ import annotations

import datetime as dt

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.markeng.models import Base, JSONType


class Vendor(Base):
    """Master list of outside vendors; project vendor details may link back here."""

    __tablename__ = "vendors"
    __table_args__ = (Index("idx_vendors_name", "name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    contact_person: Mapped[str | None] = mapped_column(String(255), nullable=True)
    mobile: Mapped[str | None] = mapped_column(String(64), nullable=True)
    city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    state: Mapped[str | None] = mapped_column(String(128), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=dt.datetime.utcnow)


class Project(Base):
    __tablename__ = "projects"
    __table_args__ = (
        Index("idx_projects_updated_at", "updated_at"),
        Index("idx_projects_is_deleted", "is_deleted"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False, default="IN_HOUSE")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="Active")
    created_by: Mapped[str] = mapped_column(String(255), nullable=False, default="System")
    company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    total_value: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=dt.datetime.utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=dt.datetime.utcnow)

    vendor_details: Mapped["VendorDetails | None"] = relationship(
        "VendorDetails", back_populates="project", uselist=False, cascade="all, delete-orphan", lazy="selectin"
    )
    commercial_details: Mapped["CommercialDetails | None"] = relationship(
        "CommercialDetails", back_populates="project", uselist=False, cascade="all, delete-orphan", lazy="selectin"
    )
    client_payments: Mapped[list["ClientPayment"]] = relationship(
        "ClientPayment", cascade="all, delete-orphan", order_by="ClientPayment.date.desc()", lazy="selectin"
    )
    vendor_payments: Mapped[list["VendorPayment"]] = relationship(
        "VendorPayment", cascade="all, delete-orphan", order_by="VendorPayment.date.desc()", lazy="selectin"
    )
    expenses: Mapped[list["Expense"]] = relationship(
        "Expense", cascade="all, delete-orphan", order_by="Expense.date.desc()", lazy="selectin"
    )
    incomes: Mapped[list["Income"]] = relationship(
        "Income", cascade="all, delete-orphan", order_by="Income.received_date.desc()", lazy="selectin"
    )
    extra_expenses: Mapped[list["ExtraExpense"]] = relationship(
        "ExtraExpense", cascade="all, delete-orphan", order_by="ExtraExpense.date.desc()", lazy="selectin"
    )
    documents: Mapped[list["ProjectDocument"]] = relationship(
        "ProjectDocument", cascade="all, delete-orphan", order_by="ProjectDocument.created_at.desc()", lazy="selectin"
    )
    activity: Mapped[list["ActivityLog"]] = relationship(
        "ActivityLog", cascade="all, delete-orphan", order_by="ActivityLog.created_at.desc()", lazy="selectin"
    )

    @property
    def is_vendor(self) -> bool:
        return self.type == "VENDOR"


class VendorDetails(Base):
    __tablename__ = "project_vendor_details"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, unique=True)
    vendor_id: Mapped[int | None] = mapped_column(ForeignKey("vendors.id", ondelete="SET NULL"), nullable=True)
    vendor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    vendor_type: Mapped[str] = mapped_column(String(32), nullable=False)
    vendor_contact: Mapped[str | None] = mapped_column(String(255), nullable=True)
    vendor_mobile: Mapped[str | None] = mapped_column(String(64), nullable=True)
    vendor_city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    vendor_state: Mapped[str | None] = mapped_column(String(128), nullable=True)
    timeline_weeks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tracking_link: Mapped[str | None] = mapped_column(String(512), nullable=True)
    milestones: Mapped[str | None] = mapped_column(Text, nullable=True)

    project: Mapped[Project] = relationship("Project", back_populates="vendor_details")
    vendor: Mapped[Vendor | None] = relationship("Vendor", lazy="joined")


class CommercialDetails(Base):
    """Client-side receivable and vendor-side payable terms for a VENDOR project."""

    __tablename__ = "project_commercial_details"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, unique=True)

    # Client side
    client_project_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    client_advance_received: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    client_gst_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    client_gst_applicable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    client_gst_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    client_payment_terms: Mapped[str | None] = mapped_column(String(32), nullable=True)

    # Vendor side
    vendor_total_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    vendor_advance_paid: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    vendor_gst_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    vendor_gst_applicable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    vendor_gst_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    vendor_payment_terms: Mapped[str | None] = mapped_column(String(32), nullable=True)

    margin_percent: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    rate_type: Mapped[str | None] = mapped_column(String(16), nullable=True)

    project: Mapped[Project] = relationship("Project", back_populates="commercial_details")


class ClientPayment(Base):
    __tablename__ = "project_client_payments"
    __table_args__ = (Index("idx_client_payments_project", "project_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    invoice_no: Mapped[str | None] = mapped_column(String(64), nullable=True)
    amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    mode: Mapped[str] = mapped_column(String(16), nullable=False, default="Bank")
    reference: Mapped[str | None] = mapped_column(String(255), nullable=True)
    added_by: Mapped[str] = mapped_column(String(255), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=dt.datetime.utcnow)


class VendorPayment(Base):
    __tablename__ = "project_vendor_payments"
    __table_args__ = (Index("idx_vendor_payments_project", "project_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    voucher_no: Mapped[str | None] = mapped_column(String(64), nullable=True)
    amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    mode: Mapped[str] = mapped_column(String(16), nullable=False, default="Bank")
    reference: Mapped[str | None] = mapped_column(String(255), nullable=True)
    paid_by: Mapped[str] = mapped_column(String(255), nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=dt.datetime.utcnow)


class Expense(Base):
    __tablename__ = "project_expenses"
    __table_args__ = (Index("idx_expenses_project", "project_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    category: Mapped[str] = mapped_column(String(32), nullable=False, default="Other")
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    paid_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    payment_mode: Mapped[str] = mapped_column(String(16), nullable=False, default="Cash")
    bill_photo_key: Mapped[str | None] = mapped_column(String(512), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="Pending")
    rejection_reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=dt.datetime.utcnow)


class Income(Base):
    __tablename__ = "project_incomes"
    __table_args__ = (Index("idx_incomes_project", "project_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    invoice_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    received_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="Pending")
    mode: Mapped[str] = mapped_column(String(16), nullable=False, default="Bank")
    linked_to_commercial: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=dt.datetime.utcnow)


class ExtraExpense(Base):
    __tablename__ = "project_extra_expenses"
    __table_args__ = (Index("idx_extra_expenses_project", "project_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    type: Mapped[str] = mapped_column(String(128), nullable=False)  # free text, e.g. "Transport"
    amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    mode: Mapped[str] = mapped_column(String(16), nullable=False, default="Cash")
    reference: Mapped[str | None] = mapped_column(String(255), nullable=True)
    added_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=dt.datetime.utcnow)


class ProjectDocument(Base):
    __tablename__ = "project_documents"
    __table_args__ = (Index("idx_project_documents_project", "project_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False, default="Other")
    tags: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    storage_key: Mapped[str] = mapped_column(String(512), nullable=False)
    file_type: Mapped[str | None] = mapped_column(String(128), nullable=True)
    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    uploaded_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=dt.datetime.utcnow)


class ActivityLog(Base):
    """Human-readable project timeline; the audit trail is kept separately in audit_events."""

    __tablename__ = "project_activity"
    __table_args__ = (Index("idx_project_activity_project", "project_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    description: Mapped[str] = mapped_column(String(512), nullable=False)
    details: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    performed_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=dt.datetime.utcnow)
