from __future__ import annotations

import datetime as dt

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.markeng.models import Base


class Expo(Base):
    __tablename__ = "expos"
    __table_args__ = (
        Index("idx_expos_name", "name"),
        Index("idx_expos_start_date", "start_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[str] = mapped_column(String(64), nullable=False)  # display string, e.g. "2025-03-01 to 2025-03-04"
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    industry: Mapped[str] = mapped_column(String(128), nullable=False, default="Mechanical")
    region: Mapped[str] = mapped_column(String(64), nullable=False, default="India")
    link: Mapped[str | None] = mapped_column(String(512), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_ai_scouted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Basic
    event_type: Mapped[str] = mapped_column(String(64), nullable=False, default="Expo / Trade Fair")
    organizer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    website: Mapped[str | None] = mapped_column(String(512), nullable=True)
    start_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="upcoming")

    # Location
    city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    state: Mapped[str | None] = mapped_column(String(128), nullable=True)
    venue: Mapped[str | None] = mapped_column(String(255), nullable=True)
    zone: Mapped[str | None] = mapped_column(String(32), nullable=True)

    # Participation
    participation_type: Mapped[str] = mapped_column(String(16), nullable=False, default="Visitor")
    stall_no: Mapped[str | None] = mapped_column(String(64), nullable=True)
    booth_size: Mapped[str | None] = mapped_column(String(64), nullable=True)
    fee_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    registration_status: Mapped[str] = mapped_column(String(16), nullable=False, default="Applied")

    # Planning
    assigned_team: Mapped[str | None] = mapped_column(String(255), nullable=True)
    visit_plan: Mapped[str | None] = mapped_column(Text, nullable=True)
    transport_mode: Mapped[str | None] = mapped_column(String(64), nullable=True)
    hotel_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    budget: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    # Outcomes
    leads_generated: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    hot_leads: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    warm_leads: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cold_leads: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    orders_received: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pipeline_inquiries: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    new_contacts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Documents: either an external URL or a storage key under "expos/"
    brochure_link: Mapped[str | None] = mapped_column(String(512), nullable=True)
    entry_pass_link: Mapped[str | None] = mapped_column(String(512), nullable=True)
    stall_layout_link: Mapped[str | None] = mapped_column(String(512), nullable=True)
    photos_link: Mapped[str | None] = mapped_column(String(512), nullable=True)
    visitor_list_link: Mapped[str | None] = mapped_column(String(512), nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=dt.datetime.utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=dt.datetime.utcnow)

    reminders: Mapped[list["ExpoReminder"]] = relationship(
        "ExpoReminder",
        back_populates="expo",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class ExpoReminder(Base):
    __tablename__ = "expo_reminders"
    __table_args__ = (UniqueConstraint("user_id", "expo_id", name="uq_expo_reminder_user_expo"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    expo_id: Mapped[int] = mapped_column(ForeignKey("expos.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=dt.datetime.utcnow)

    expo: Mapped[Expo] = relationship("Expo", back_populates="reminders")
