from sqlalchemy import (
    Boolean,
    Column,
    Date,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from stock_analytics.core.categories import ProductCategory
from stock_analytics.database.base import Base


class SkuSnapshot(Base):
    __tablename__ = "sku_snapshots"

    id = Column(Integer, primary_key=True)
    batch_id = Column(
        String(36),
        ForeignKey("inventory_batches.id", ondelete="CASCADE"),
        nullable=False,
    )

    item = Column(String, nullable=False)
    warehouse = Column(String, nullable=False, default="Unknown")
    item_group = Column(String, nullable=False, default="Others")
    product_category = Column(String, nullable=False, default=ProductCategory.OTHERS.value)

    cbm_per_unit = Column(Float, nullable=False, default=0)
    is_total_row = Column(Boolean, nullable=False, default=False)

    batch = relationship("InventoryBatch", back_populates="snapshots")
    readings = relationship(
        "DailyReading",
        back_populates="snapshot",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_snapshots_batch", "batch_id"),
        Index("idx_snapshots_item_warehouse", "item", "warehouse"),
    )


class DailyReading(Base):
    __tablename__ = "daily_readings"

    id = Column(Integer, primary_key=True)
    snapshot_id = Column(
        Integer,
        ForeignKey("sku_snapshots.id", ondelete="CASCADE"),
        nullable=False,
    )
    stock_date = Column(Date, nullable=False)
    quantity = Column(Float, nullable=False)

    snapshot = relationship("SkuSnapshot", back_populates="readings")

    __table_args__ = (
        UniqueConstraint("snapshot_id", "stock_date", name="uq_readings_snapshot_date"),
        Index("idx_readings_date", "stock_date"),
    )


__all__ = ["DailyReading", "SkuSnapshot"]
