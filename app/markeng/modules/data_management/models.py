from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.markeng.models import Base, JSONType


class ImportBatch(Base):
    """
    One row per import/export/rollback action shown in the sync history.

    created_ids maps an entity name ("customers", "pricing", "expos",
    "projects") to the primary keys the action inserted, which is what a
    rollback deletes.
    """

    __tablename__ = "import_batches"
    __table_args__ = (Index("idx_import_batches_created_at", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    kind: Mapped[str] = mapped_column(String(32), nullable=False)  # customers|pricing|expos|inquiries|export|rollback
    action: Mapped[str] = mapped_column(String(255), nullable=False)
    record_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="Success")
    created_ids: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    created_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    rolled_back_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    @property
    def can_roll_back(self) -> bool:
        return self.rolled_back_at is None and any(self.created_ids.values())
