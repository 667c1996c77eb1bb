import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Index, Integer, String

from stock_analytics.core.constants import BATCH_PROCESSED
from stock_analytics.database.base import Base


class SalesBatch(Base):
    __tablename__ = "sales_batches"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    file_name = Column(String, nullable=False)
    status = Column(String(20), nullable=False, default=BATCH_PROCESSED)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )


class SaleRecord(Base):
    __tablename__ = "sale_records"

    id = Column(Integer, primary_key=True)
    batch_id = Column(
        String(36),
        ForeignKey("sales_batches.id", ondelete="CASCADE"),
        nullable=False,
    )

    item = Column(String, nullable=False)
    shipment_date = Column(Date)
    quantity = Column(Float, nullable=False, default=0)
    cbm = Column(Float, nullable=False, default=0)

    __table_args__ = (
        Index("idx_sale_records_item_date", "item", "shipment_date"),
        Index("idx_sale_records_batch", "batch_id"),
    )


__all__ = ["SaleRecord", "SalesBatch"]
