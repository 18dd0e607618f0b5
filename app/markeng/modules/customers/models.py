from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.markeng.models import Base, JSONType

if TYPE_CHECKING:
    from app.markeng.modules.pricing.models import PricingRecord
    from app.markeng.modules.visits.models import Visit


class Customer(Base):
    __tablename__ = "customers"
    __table_args__ = (
        Index("idx_customers_name", "name"),
        Index("idx_customers_state", "state"),
        Index("idx_customers_zone", "zone"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Location
    city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    state: Mapped[str | None] = mapped_column(String(128), nullable=True)
    country: Mapped[str] = mapped_column(String(64), nullable=False, default="India")
    area_sector: Mapped[str | None] = mapped_column(String(255), nullable=True)
    pincode: Mapped[str | None] = mapped_column(String(16), nullable=True)
    zone: Mapped[str | None] = mapped_column(String(32), nullable=True)  # North / South / East / West / Central
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    industrial_hub: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_discovered: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Business profile
    annual_turnover: Mapped[float] = mapped_column(Float, nullable=False, default=0)  # INR
    project_turnover: Mapped[float] = mapped_column(Float, nullable=False, default=0)  # INR
    industry: Mapped[str] = mapped_column(String(128), nullable=False, default="Manufacturing")
    industry_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    machine_types: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    company_size: Mapped[str | None] = mapped_column(String(16), nullable=True)

    # Enquiry tracking
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="Open")
    enquiry_no: Mapped[str | None] = mapped_column(String(64), nullable=True)
    last_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    last_modified_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    contacts: Mapped[list["Contact"]] = relationship(
        "Contact",
        back_populates="customer",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Contact.id",
    )
    pricing_history: Mapped[list["PricingRecord"]] = relationship(
        "PricingRecord",
        back_populates="customer",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    visits: Mapped[list["Visit"]] = relationship(
        "Visit",
        back_populates="customer",
        cascade="all, delete-orphan",
    )

    @property
    def primary_contact(self) -> "Contact | None":
        return self.contacts[0] if self.contacts else None


class Contact(Base):
    __tablename__ = "customer_contacts"
    __table_args__ = (Index("idx_customer_contacts_customer", "customer_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    designation: Mapped[str | None] = mapped_column(String(128), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)

    customer: Mapped[Customer] = relationship("Customer", back_populates="contacts")
