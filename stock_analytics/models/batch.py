import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, String
from sqlalchemy.orm import relationship

from stock_analytics.core.constants import BATCH_PROCESSING
from stock_analytics.database.base import Base


def _utcnow():
    return datetime.now(timezone.utc)


class InventoryBatch(Base):
    __tablename__ = "inventory_batches"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    file_name = Column(String, nullable=False)
    status = Column(String(20), nullable=False, default=BATCH_PROCESSING)
    error_message = Column(String)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    snapshots = relationship(
        "SkuSnapshot",
        back_populates="batch",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_batches_status_created", "status", "created_at"),
    )


__all__ = ["InventoryBatch"]
