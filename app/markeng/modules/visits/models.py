from __future__ import annotations

import datetime as dt

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.markeng.models import Base, JSONType
from app.markeng.modules.customers.models import Customer


class Visit(Base):
    """
    A planned or completed field visit to a customer. Call logs, met contacts,
    the preparation checklist and attachments are small embedded JSON documents;
    write them back as new lists/dicts so the change is detected.
    """

    __tablename__ = "visits"
    __table_args__ = (
        Index("idx_visits_customer", "customer_id"),
        Index("idx_visits_date", "date"),
        Index("idx_visits_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)  # denormalized for list views
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    purpose: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    assigned_to: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="Planned")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)

    expense_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    expense_note: Mapped[str | None] = mapped_column(String(512), nullable=True)
    visit_result: Mapped[str | None] = mapped_column(Text, nullable=True)
    next_follow_up_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    reminder_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Transport
    transport_mode: Mapped[str | None] = mapped_column(String(32), nullable=True)
    vehicle_no: Mapped[str | None] = mapped_column(String(32), nullable=True)
    start_location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    end_location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    distance: Mapped[float | None] = mapped_column(Float, nullable=True)  # km

    # Payment / commercial
    payment_mode: Mapped[str | None] = mapped_column(String(32), nullable=True)
    expected_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    payment_status: Mapped[str | None] = mapped_column(String(16), nullable=True)
    expected_payment_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)

    call_logs: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    met_contacts: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    checklist: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    attachments: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=dt.datetime.utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=dt.datetime.utcnow)

    customer: Mapped[Customer] = relationship("Customer", back_populates="visits")
