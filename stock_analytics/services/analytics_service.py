"""Read API used by the dashboard, billing and HTTP layers.

Input is validated into frozen query models before any database work; those
models double as cache keys.
"""

import logging

import pydantic
from pydantic import TypeAdapter
from sqlalchemy.orm import Session

from stock_analytics.config import get_settings
from stock_analytics.core.categories import parse_category_token
from stock_analytics.core.constants import ALL_FILTER_TOKEN, DEFAULT_GRANULARITY
from stock_analytics.core.dates import normalize_date
from stock_analytics.core.errors import ValidationError, format_validation_errors
from stock_analytics.schemas.filters import FastMovingQuery, SummaryQuery, ZeroOrderQuery
from stock_analytics.schemas.snapshot import SaleRecordIn, SkuSnapshotIn
from stock_analytics.services import batch_store, sales_index
from stock_analytics.services.aggregation import RowScope, summarize
from stock_analytics.services.cache import result_cache
from stock_analytics.services.dead_stock import zero_order_products
from stock_analytics.services.movement import fast_moving_skus

logger = logging.getLogger(__name__)

_SNAPSHOT_ROWS = TypeAdapter(list[SkuSnapshotIn])
_SALE_RECORDS = TypeAdapter(list[SaleRecordIn])


def _cache(cache):
    return cache if cache is not None else result_cache


def _clean_filter(value):
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.upper() == ALL_FILTER_TOKEN:
        return None
    return text


def _parse_date(value, field):
    try:
        return normalize_date(value)
    except ValueError as exc:
        raise ValidationError(f"{field}: {exc}") from None


def _parse_category(value):
    try:
        return parse_category_token(value)
    except ValueError as exc:
        raise ValidationError(str(exc)) from None


def _parse_categories(values):
    if values is None:
        return ()
    if isinstance(values, str):
        values = values.split(",")
    parsed = {_parse_category(value) for value in values}
    parsed.discard(None)
    return tuple(sorted(parsed, key=lambda category: category.value))


def _parse_batch_selector(selector):
    if selector is None:
        return None
    if isinstance(selector, str):
        if not selector.strip():
            return None
        selector = [selector]
    return tuple(sorted(batch_store.normalize_batch_id(value) for value in selector))


def _format_errors(exc: pydantic.ValidationError) -> str:
    return format_validation_errors(exc.errors())


def _build(model, **values):
    try:
        return model(**values)
    except pydantic.ValidationError as exc:
        raise ValidationError(_format_errors(exc)) from None


def build_summary_query(
    batch_selector=None,
    from_date=None,
    to_date=None,
    item_group=None,
    categories=None,
    warehouse=None,
    granularity=DEFAULT_GRANULARITY,
) -> SummaryQuery:
    return _build(
        SummaryQuery,
        batch_ids=_parse_batch_selector(batch_selector),
        from_date=_parse_date(from_date, "from_date"),
        to_date=_parse_date(to_date, "to_date"),
        item_group=_clean_filter(item_group),
        categories=_parse_categories(categories),
        warehouse=_clean_filter(warehouse),
        granularity=str(granularity or DEFAULT_GRANULARITY).strip().lower(),
    )


def _check_limit(query):
    max_limit = get_settings().MAX_RESULT_LIMIT
    if query.limit > max_limit:
        raise ValidationError(f"limit must be at most {max_limit}")


def get_summary(
    db: Session,
    batch_selector=None,
    from_date=None,
    to_date=None,
    item_group=None,
    categories=None,
    warehouse=None,
    granularity=DEFAULT_GRANULARITY,
    *,
    cache=None,
) -> dict:
    """Cards, filter lists and time series for the selected batches.

    Without a selector every processed batch is aggregated together.
    Raises ``NotFoundError`` when no processed batch matches.
    """
    query = build_summary_query(
        batch_selector, from_date, to_date, item_group, categories, warehouse, granularity
    )

    def compute():
        batch_ids = batch_store.list_processed_batch_ids(
            db, list(query.batch_ids) if query.batch_ids is not None else None
        )
        scope = RowScope(
            item_group=query.item_group,
            categories=query.categories,
            warehouse=query.warehouse,
            from_date=query.from_date,
            to_date=query.to_date,
        )
        return summarize(
            db,
            batch_ids,
            scope,
            granularity=query.granularity,
            highlight_category=get_settings().HIGHLIGHT_CATEGORY,
        )

    return _cache(cache).get_or_compute("summary", query, compute)


def get_fast_moving_skus(
    db: Session,
    warehouse=None,
    category=None,
    min_avg_qty=None,
    limit=None,
    *,
    cache=None,
) -> dict:
    settings = get_settings()
    query = _build(
        FastMovingQuery,
        warehouse=_clean_filter(warehouse),
        category=_parse_category(category),
        min_avg_qty=settings.FAST_MOVING_MIN_AVG_QTY if min_avg_qty is None else min_avg_qty,
        limit=settings.FAST_MOVING_LIMIT if limit is None else limit,
    )
    _check_limit(query)

    def compute():
        batch_ids = batch_store.list_processed_batch_ids(db)
        scope = RowScope(
            warehouse=query.warehouse,
            categories=(query.category,) if query.category else (),
        )
        return fast_moving_skus(
            db, batch_ids, scope, min_avg_qty=query.min_avg_qty, limit=query.limit
        )

    return _cache(cache).get_or_compute("fast_moving_skus", query, compute)


def get_zero_order_products(
    db: Session,
    warehouse=None,
    category=None,
    min_days_in_stock=None,
    limit=None,
    *,
    cache=None,
) -> dict:
    settings = get_settings()
    query = _build(
        ZeroOrderQuery,
        warehouse=_clean_filter(warehouse),
        category=_parse_category(category),
        min_days_in_stock=(
            settings.ZERO_ORDER_MIN_DAYS_IN_STOCK if min_days_in_stock is None else min_days_in_stock
        ),
        limit=settings.ZERO_ORDER_LIMIT if limit is None else limit,
    )
    _check_limit(query)

    def compute():
        batch_ids = batch_store.list_processed_batch_ids(db)
        scope = RowScope(
            warehouse=query.warehouse,
            categories=(query.category,) if query.category else (),
        )
        return zero_order_products(
            db,
            batch_ids,
            scope,
            min_days_in_stock=query.min_days_in_stock,
            limit=query.limit,
        )

    return _cache(cache).get_or_compute("zero_order_products", query, compute)


def list_batches(db: Session) -> list[dict]:
    return batch_store.list_batches(db)


def delete_batch(db: Session, batch_id, *, cache=None) -> None:
    batch_store.delete_batch(db, batch_id, cache=cache)


def ingest_snapshots(db: Session, file_name: str, rows, *, chunk_size=None, cache=None) -> dict:
    """Validate parsed rows, then store them as one processed batch.

    Rows that fail validation are rejected before a batch is created.
    """
    if not str(file_name or "").strip():
        raise ValidationError("file_name is required")
    try:
        parsed = _SNAPSHOT_ROWS.validate_python(list(rows))
    except pydantic.ValidationError as exc:
        raise ValidationError(_format_errors(exc)) from None
    if not parsed:
        raise ValidationError(f"{file_name} has no data rows")
    logger.debug("Validated %d rows from %s", len(parsed), file_name, extra={"file_name": file_name})
    return batch_store.ingest_batch(
        db, file_name.strip(), parsed, chunk_size=chunk_size, cache=cache
    )


def record_sales_batch(db: Session, file_name: str, records, *, cache=None) -> str:
    if not str(file_name or "").strip():
        raise ValidationError("file_name is required")
    try:
        parsed = _SALE_RECORDS.validate_python(list(records))
    except pydantic.ValidationError as exc:
        raise ValidationError(_format_errors(exc)) from None
    return sales_index.record_sales_batch(db, file_name.strip(), parsed, cache=cache)


__all__ = [
    "build_summary_query",
    "delete_batch",
    "get_fast_moving_skus",
    "get_summary",
    "get_zero_order_products",
    "ingest_snapshots",
    "list_batches",
    "record_sales_batch",
]
