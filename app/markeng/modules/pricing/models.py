from __future__ import annotations

import datetime as dt

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.markeng.models import Base
from app.markeng.modules.customers.models import Customer


class PricingRecord(Base):
    """A quote given to a customer for one technology at a per-unit rate."""

    __tablename__ = "pricing_records"
    __table_args__ = (
        Index("idx_pricing_customer", "customer_id"),
        Index("idx_pricing_tech", "tech"),
        Index("idx_pricing_date", "date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)

    tech: Mapped[str] = mapped_column(String(64), nullable=False)
    rate: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    unit: Mapped[str] = mapped_column(String(32), nullable=False, default="gram")
    date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="Draft")

    # Context captured at quote time
    sales_person: Mapped[str | None] = mapped_column(String(255), nullable=True)
    industry: Mapped[str | None] = mapped_column(String(128), nullable=True)
    city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    state: Mapped[str | None] = mapped_column(String(128), nullable=True)

    # Part details
    product_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    drawing_no: Mapped[str | None] = mapped_column(String(128), nullable=True)
    material_type: Mapped[str | None] = mapped_column(String(128), nullable=True)
    machine_type: Mapped[str | None] = mapped_column(String(128), nullable=True)
    process: Mapped[str | None] = mapped_column(String(128), nullable=True)
    moq: Mapped[int | None] = mapped_column(Integer, nullable=True)
    quoted_qty: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Cost build-up
    raw_material_cost: Mapped[float | None] = mapped_column(Float, nullable=True)
    machining_cost: Mapped[float | None] = mapped_column(Float, nullable=True)
    labor_cost: Mapped[float | None] = mapped_column(Float, nullable=True)
    overhead: Mapped[float | None] = mapped_column(Float, nullable=True)
    transportation_cost: Mapped[float | None] = mapped_column(Float, nullable=True)
    other_charges: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    margin_percent: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Commercial terms
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="INR")
    valid_till: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    payment_mode: Mapped[str | None] = mapped_column(String(64), nullable=True)
    credit_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    advance_percent: Mapped[float | None] = mapped_column(Float, nullable=True)
    gst_included: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=dt.datetime.utcnow)

    customer: Mapped[Customer] = relationship("Customer", back_populates="pricing_history", lazy="joined")
