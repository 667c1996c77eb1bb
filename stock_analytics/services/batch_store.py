import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stock_analytics.config import get_settings
from stock_analytics.core.constants import BATCH_FAILED, BATCH_PROCESSED, BATCH_PROCESSING
from stock_analytics.core.errors import IngestionError, NotFoundError, ValidationError
from stock_analytics.models.batch import InventoryBatch
from stock_analytics.models.snapshot import DailyReading, SkuSnapshot
from stock_analytics.services.cache import result_cache

logger = logging.getLogger(__name__)


def _cache(cache):
    return cache if cache is not None else result_cache


def normalize_batch_id(value):
    text = str(value or "").strip()
    try:
        return str(uuid.UUID(text))
    except ValueError:
        raise ValidationError(f"batch id must be a valid UUID, got {text!r}") from None


def _get_batch(db: Session, batch_id) -> InventoryBatch:
    batch = db.get(InventoryBatch, normalize_batch_id(batch_id))
    if batch is None:
        raise NotFoundError(f"Inventory upload {batch_id} not found")
    return batch


def create_batch(db: Session, file_name: str, *, cache=None) -> str:
    batch = InventoryBatch(file_name=file_name, status=BATCH_PROCESSING)
    db.add(batch)
    db.commit()
    _cache(cache).invalidate_all()
    logger.info("Created inventory batch %s for %s", batch.id, file_name, extra={"batch_id": batch.id})
    return batch.id


def _chunks(rows, size):
    for start in range(0, len(rows), size):
        yield rows[start:start + size]


def append_snapshots(db: Session, batch_id, rows, *, chunk_size=None, cache=None) -> dict:
    """Insert every row and reading of ``rows`` in one transaction.

    Rows are flushed ``chunk_size`` at a time to bound the session size; the
    final commit makes all of them durable together. On a storage error the
    whole batch is rolled back and marked ``failed``.
    """
    batch = _get_batch(db, batch_id)
    if batch.status != BATCH_PROCESSING:
        raise IngestionError(
            f"Inventory upload {batch.id} is {batch.status}; rows can only be appended while processing",
            batch_id=batch.id,
        )
    batch_id = batch.id
    chunk_size = chunk_size or get_settings().INGEST_CHUNK_SIZE
    rows = list(rows)
    rows_inserted = 0
    readings_inserted = 0

    try:
        for chunk in _chunks(rows, chunk_size):
            for row in chunk:
                snapshot = SkuSnapshot(
                    batch_id=batch_id,
                    item=row.item,
                    warehouse=row.warehouse,
                    item_group=row.item_group,
                    product_category=row.product_category.value,
                    cbm_per_unit=0.0 if row.is_total_row else row.cbm_per_unit,
                    is_total_row=row.is_total_row,
                )
                snapshot.readings = [
                    DailyReading(stock_date=reading.stock_date, quantity=reading.quantity)
                    for reading in row.readings
                ]
                db.add(snapshot)
                readings_inserted += len(row.readings)
            db.flush()
            rows_inserted += len(chunk)
            db.expunge_all()
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to store rows for batch %s", batch_id, extra={"batch_id": batch_id})
        mark_failed(db, batch_id, f"{type(exc).__name__} while storing rows", cache=cache)
        raise IngestionError(
            f"Failed to store rows for inventory upload {batch_id}; resubmit the file",
            batch_id=batch_id,
        ) from exc

    logger.info(
        "Stored %d rows / %d readings for batch %s",
        rows_inserted,
        readings_inserted,
        batch_id,
        extra={"batch_id": batch_id, "rows": rows_inserted, "readings": readings_inserted},
    )
    return {"rows_inserted": rows_inserted, "readings_inserted": readings_inserted}


def _set_status(db: Session, batch_id, status, error_message=None, *, cache=None) -> InventoryBatch:
    batch = _get_batch(db, batch_id)
    batch.status = status
    batch.error_message = error_message
    batch.updated_at = datetime.now(timezone.utc)
    db.commit()
    _cache(cache).invalidate_all()
    return batch


def mark_processed(db: Session, batch_id, *, cache=None) -> None:
    _set_status(db, batch_id, BATCH_PROCESSED, cache=cache)
    logger.info("Batch %s processed", batch_id, extra={"batch_id": str(batch_id)})


def mark_failed(db: Session, batch_id, reason=None, *, cache=None) -> None:
    _set_status(db, batch_id, BATCH_FAILED, reason, cache=cache)
    logger.warning("Batch %s marked failed: %s", batch_id, reason, extra={"batch_id": str(batch_id)})


def delete_batch(db: Session, batch_id, *, cache=None) -> None:
    batch = _get_batch(db, batch_id)
    batch_id = batch.id
    snapshot_ids = select(SkuSnapshot.id).where(SkuSnapshot.batch_id == batch_id)
    db.execute(delete(DailyReading).where(DailyReading.snapshot_id.in_(snapshot_ids)))
    db.execute(delete(SkuSnapshot).where(SkuSnapshot.batch_id == batch_id))
    db.execute(delete(InventoryBatch).where(InventoryBatch.id == batch_id))
    db.commit()
    db.expunge_all()
    _cache(cache).invalidate_all()
    logger.info("Deleted inventory batch %s", batch_id, extra={"batch_id": batch_id})


def list_processed_batch_ids(db: Session, selector=None) -> list[str]:
    """Resolve a batch selector to processed batch ids.

    ``selector`` is ``None`` (every processed batch), one id, or a sequence of
    ids. Explicit ids must be distinct and name processed batches.
    """
    if selector is None:
        ids = db.execute(
            select(InventoryBatch.id)
            .where(InventoryBatch.status == BATCH_PROCESSED)
            .order_by(InventoryBatch.created_at)
        ).scalars().all()
        if not ids:
            raise NotFoundError("No processed inventory uploads found")
        return list(ids)

    requested = [selector] if isinstance(selector, str) else list(selector)
    if not requested:
        raise ValidationError("batch selector must name at least one upload")
    requested = [normalize_batch_id(value) for value in requested]
    if len(set(requested)) != len(requested):
        raise ValidationError("batch selector names the same upload more than once")
    found = set(
        db.execute(
            select(InventoryBatch.id).where(
                InventoryBatch.id.in_(set(requested)),
                InventoryBatch.status == BATCH_PROCESSED,
            )
        ).scalars().all()
    )
    missing = [value for value in requested if value not in found]
    if missing:
        raise NotFoundError(f"No processed inventory upload with id {missing[0]}")
    return requested


def list_batches(db: Session) -> list[dict]:
    row_counts = (
        select(SkuSnapshot.batch_id, func.count(SkuSnapshot.id).label("row_count"))
        .group_by(SkuSnapshot.batch_id)
        .subquery()
    )
    rows = db.execute(
        select(InventoryBatch, func.coalesce(row_counts.c.row_count, 0))
        .outerjoin(row_counts, row_counts.c.batch_id == InventoryBatch.id)
        .order_by(InventoryBatch.created_at.desc())
    ).all()
    return [
        {
            "batch_id": batch.id,
            "file_name": batch.file_name,
            "status": batch.status,
            "created_at": batch.created_at,
            "rows_inserted": row_count,
            "error_message": batch.error_message,
        }
        for batch, row_count in rows
    ]


def batch_date_range(db: Session, batch_id) -> dict:
    min_date, max_date = db.execute(
        select(func.min(DailyReading.stock_date), func.max(DailyReading.stock_date))
        .join(SkuSnapshot, SkuSnapshot.id == DailyReading.snapshot_id)
        .where(SkuSnapshot.batch_id == batch_id)
    ).one()
    return {"min_date": min_date, "max_date": max_date}


def ingest_batch(db: Session, file_name: str, rows, *, chunk_size=None, cache=None) -> dict:
    """Create a batch, store ``rows`` and mark it processed.

    ``rows`` must already be validated ``SkuSnapshotIn`` values. Any failure
    leaves the batch ``failed`` with none of its rows stored.
    """
    batch_id = create_batch(db, file_name, cache=cache)
    try:
        counts = append_snapshots(db, batch_id, rows, chunk_size=chunk_size, cache=cache)
        mark_processed(db, batch_id, cache=cache)
    except (SQLAlchemyError, TypeError, ValueError) as exc:
        db.rollback()
        mark_failed(db, batch_id, f"{type(exc).__name__} while storing upload", cache=cache)
        raise IngestionError(
            f"Failed to store inventory upload {batch_id}; resubmit the file",
            batch_id=batch_id,
        ) from exc

    return {
        "batch_id": batch_id,
        **counts,
        **batch_date_range(db, batch_id),
    }


__all__ = [
    "append_snapshots",
    "batch_date_range",
    "create_batch",
    "delete_batch",
    "ingest_batch",
    "list_batches",
    "list_processed_batch_ids",
    "mark_failed",
    "mark_processed",
    "normalize_batch_id",
]
