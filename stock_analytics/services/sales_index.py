import logging
from dataclasses import dataclass, field

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from stock_analytics.core.constants import BATCH_PROCESSED
from stock_analytics.models.sales import SaleRecord, SalesBatch
from stock_analytics.services.cache import result_cache

logger = logging.getLogger(__name__)


def normalize_item_key(value) -> str:
    """Join key shared by inventory and sales: trimmed, case-insensitive."""
    return str(value or "").strip().casefold()


@dataclass
class ItemSales:
    total_qty: float = 0.0
    total_cbm: float = 0.0
    sales_days: int = 0
    has_positive_sale: bool = False
    raw_items: set = field(default_factory=set)


class SalesIndex:
    """Per-item sales totals keyed by normalized item identifier.

    Totals come from one query grouped by raw item over processed sales
    batches. Items whose identifiers normalize to the same key are merged;
    that merge is logged, never rejected. Shipment days of merged keys are
    recounted so a day shipped under two spellings counts once.
    """

    def __init__(self, items: dict[str, ItemSales]):
        self._items = items

    @staticmethod
    def _scoped(stmt, batch_ids):
        stmt = stmt.join(SalesBatch, SalesBatch.id == SaleRecord.batch_id).where(
            SalesBatch.status == BATCH_PROCESSED
        )
        if batch_ids is not None:
            stmt = stmt.where(SaleRecord.batch_id.in_(list(batch_ids)))
        return stmt

    @classmethod
    def load(cls, db: Session, batch_ids=None) -> "SalesIndex":
        stmt = cls._scoped(
            select(
                SaleRecord.item,
                func.coalesce(func.sum(SaleRecord.quantity), 0).label("qty"),
                func.coalesce(func.sum(SaleRecord.cbm), 0).label("cbm"),
                func.max(SaleRecord.quantity).label("max_qty"),
                func.count(SaleRecord.shipment_date.distinct()).label("sales_days"),
            ),
            batch_ids,
        ).group_by(SaleRecord.item)

        items: dict[str, ItemSales] = {}
        for row in db.execute(stmt).mappings():
            key = normalize_item_key(row["item"])
            if not key:
                continue
            entry = items.setdefault(key, ItemSales())
            entry.total_qty += float(row["qty"] or 0)
            entry.total_cbm += float(row["cbm"] or 0)
            entry.sales_days += int(row["sales_days"] or 0)
            if (row["max_qty"] or 0) > 0:
                entry.has_positive_sale = True
            entry.raw_items.add(row["item"])

        merged = [key for key, entry in items.items() if len(entry.raw_items) > 1]
        if merged:
            cls._recount_days(db, items, merged, batch_ids)
            logger.info(
                "Sales index merged %d item keys spelled differently (e.g. %s)",
                len(merged),
                sorted(items[merged[0]].raw_items),
            )
        return cls(items)

    @classmethod
    def _recount_days(cls, db: Session, items, merged, batch_ids) -> None:
        raw_items = [raw for key in merged for raw in items[key].raw_items]
        rows = db.execute(
            cls._scoped(
                select(SaleRecord.item, SaleRecord.shipment_date),
                batch_ids,
            )
            .where(SaleRecord.item.in_(raw_items), SaleRecord.shipment_date.is_not(None))
            .distinct()
        ).all()
        days: dict[str, set] = {key: set() for key in merged}
        for raw_item, shipment_date in rows:
            days[normalize_item_key(raw_item)].add(shipment_date)
        for key in merged:
            items[key].sales_days = len(days[key])

    def __len__(self):
        return len(self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    def get(self, item) -> ItemSales | None:
        return self._items.get(normalize_item_key(item))

    def has_positive_sale(self, item) -> bool:
        entry = self.get(item)
        return bool(entry and entry.has_positive_sale)

    def sold_item_keys(self) -> set[str]:
        return {key for key, entry in self._items.items() if entry.has_positive_sale}


def record_sales_batch(db: Session, file_name: str, records, *, cache=None) -> str:
    """Store a processed batch of shipment records for the sales collaborator."""
    batch = SalesBatch(file_name=file_name, status=BATCH_PROCESSED)
    db.add(batch)
    db.flush()
    db.add_all(
        SaleRecord(
            batch_id=batch.id,
            item=record.item.strip(),
            shipment_date=record.shipment_date,
            quantity=record.quantity,
            cbm=record.cbm,
        )
        for record in records
    )
    db.commit()
    (cache if cache is not None else result_cache).invalidate_all()
    logger.info("Recorded sales batch %s from %s", batch.id, file_name, extra={"batch_id": batch.id})
    return batch.id


__all__ = ["ItemSales", "SalesIndex", "normalize_item_key", "record_sales_batch"]
