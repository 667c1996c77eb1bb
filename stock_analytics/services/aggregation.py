"""Set-based aggregation over stock snapshots.

Every metric is computed in SQL from the same scoped row/reading set:

* a row is a non-Total ``SkuSnapshot`` of one of the selected batches that
  matches the item-group / category / warehouse filters;
* its readings are the ``DailyReading`` rows inside the date range.

Per-row statistics (``row_stats_subquery``) average only the readings that
exist, so a blank day never counts as zero. Scalar cards then sum those
per-row means ("average of averages"); the time series is a flat per-date sum.
The movement and dead-stock reports reuse ``row_stats_subquery``.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from stock_analytics.core.categories import ProductCategory, sorted_category_labels
from stock_analytics.core.dates import (
    day_label,
    iso_date,
    month_bounds,
    month_key,
    month_label,
    week_bounds,
    week_key,
)
from stock_analytics.core.numbers import round_metric, to_float
from stock_analytics.models.batch import InventoryBatch
from stock_analytics.models.snapshot import DailyReading, SkuSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RowScope:
    item_group: Optional[str] = None
    categories: Tuple[ProductCategory, ...] = ()
    warehouse: Optional[str] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None


def snapshot_conditions(batch_ids, scope: RowScope):
    conditions = [
        SkuSnapshot.batch_id.in_(list(batch_ids)),
        SkuSnapshot.is_total_row.is_(False),
    ]
    if scope.item_group:
        conditions.append(SkuSnapshot.item_group == scope.item_group)
    if scope.categories:
        conditions.append(SkuSnapshot.product_category.in_([c.value for c in scope.categories]))
    if scope.warehouse:
        conditions.append(SkuSnapshot.warehouse == scope.warehouse)
    return conditions


def reading_conditions(scope: RowScope):
    conditions = []
    if scope.from_date:
        conditions.append(DailyReading.stock_date >= scope.from_date)
    if scope.to_date:
        conditions.append(DailyReading.stock_date <= scope.to_date)
    return conditions


def row_stats_subquery(batch_ids, scope: RowScope):
    """One row per snapshot with at least one in-scope reading."""
    return (
        select(
            SkuSnapshot.id.label("row_id"),
            SkuSnapshot.item.label("item"),
            SkuSnapshot.warehouse.label("warehouse"),
            SkuSnapshot.item_group.label("item_group"),
            SkuSnapshot.product_category.label("product_category"),
            SkuSnapshot.cbm_per_unit.label("cbm_per_unit"),
            func.avg(DailyReading.quantity).label("avg_qty"),
            func.min(DailyReading.quantity).label("min_qty"),
            func.max(DailyReading.quantity).label("max_qty"),
            func.count(DailyReading.id).label("reading_count"),
            func.count(DailyReading.stock_date.distinct()).label("days_in_stock"),
        )
        .join(DailyReading, DailyReading.snapshot_id == SkuSnapshot.id)
        .where(*snapshot_conditions(batch_ids, scope), *reading_conditions(scope))
        .group_by(
            SkuSnapshot.id,
            SkuSnapshot.item,
            SkuSnapshot.warehouse,
            SkuSnapshot.item_group,
            SkuSnapshot.product_category,
            SkuSnapshot.cbm_per_unit,
        )
        .subquery("row_stats")
    )


def row_cbm_expression(stats):
    return case(
        (stats.c.cbm_per_unit > 0, stats.c.avg_qty * stats.c.cbm_per_unit),
        else_=0.0,
    )


def compute_cards(db: Session, batch_ids, scope: RowScope) -> dict:
    stats = row_stats_subquery(batch_ids, scope)
    inbound_item = case(
        ((stats.c.cbm_per_unit > 0) & (stats.c.max_qty > 0), stats.c.item),
    )
    row = db.execute(
        select(
            func.count(inbound_item.distinct()).label("inbound_sku_count"),
            func.coalesce(func.sum(stats.c.avg_qty), 0.0).label("inventory_qty_total"),
            func.coalesce(func.sum(row_cbm_expression(stats)), 0.0).label("total_cbm"),
        )
    ).mappings().one()
    return {
        "inbound_sku_count": int(row["inbound_sku_count"] or 0),
        "inventory_qty_total": round_metric(row["inventory_qty_total"]),
        "total_cbm": round_metric(row["total_cbm"]),
    }


def compute_daily_series(db: Session, batch_ids, scope: RowScope, highlight_category) -> list[dict]:
    """Flat per-date sums; only dates with at least one reading appear."""
    highlight = SkuSnapshot.product_category == ProductCategory(highlight_category).value
    reading_cbm = DailyReading.quantity * SkuSnapshot.cbm_per_unit
    rows = db.execute(
        select(
            DailyReading.stock_date.label("stock_date"),
            func.sum(DailyReading.quantity).label("quantity"),
            func.sum(reading_cbm).label("total_cbm"),
            func.sum(case((highlight, DailyReading.quantity), else_=0.0)).label("highlight_quantity"),
            func.sum(case((highlight, reading_cbm), else_=0.0)).label("highlight_cbm"),
        )
        .join(SkuSnapshot, SkuSnapshot.id == DailyReading.snapshot_id)
        .where(*snapshot_conditions(batch_ids, scope), *reading_conditions(scope))
        .group_by(DailyReading.stock_date)
        .order_by(DailyReading.stock_date)
    ).mappings().all()
    return [
        {
            "stock_date": row["stock_date"],
            "quantity": to_float(row["quantity"]),
            "total_cbm": to_float(row["total_cbm"]),
            "highlight_quantity": to_float(row["highlight_quantity"]),
            "highlight_cbm": to_float(row["highlight_cbm"]),
        }
        for row in rows
    ]


def _bucket_for(stock_date: date, granularity: str):
    if granularity == "week":
        start, end = week_bounds(stock_date)
        key = week_key(stock_date)
        return key, key, start, end
    if granularity == "month":
        start, end = month_bounds(stock_date)
        return month_key(stock_date), month_label(stock_date), start, end
    return stock_date.isoformat(), day_label(stock_date), stock_date, stock_date


def bucket_series(daily: list[dict], granularity: str = "day") -> list[dict]:
    buckets = {}
    for point in daily:
        key, label, start, end = _bucket_for(point["stock_date"], granularity)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = {
                "key": key,
                "label": label,
                "start_date": start,
                "end_date": end,
                "quantity": 0.0,
                "total_cbm": 0.0,
                "highlight_quantity": 0.0,
                "highlight_cbm": 0.0,
            }
        for metric in ("quantity", "total_cbm", "highlight_quantity", "highlight_cbm"):
            bucket[metric] += point[metric]

    points = []
    for key in sorted(buckets):
        bucket = buckets[key]
        points.append(
            {
                "key": bucket["key"],
                "label": bucket["label"],
                "start_date": iso_date(bucket["start_date"]),
                "end_date": iso_date(bucket["end_date"]),
                "quantity": round_metric(bucket["quantity"]),
                "total_cbm": round_metric(bucket["total_cbm"]),
                "highlight_quantity": round_metric(bucket["highlight_quantity"]),
                "highlight_cbm": round_metric(bucket["highlight_cbm"]),
            }
        )
    return points


def distinct_filters(db: Session, batch_ids) -> dict:
    """Values for the filter dropdowns, limited to the selected batches."""
    base = snapshot_conditions(batch_ids, RowScope())

    def _distinct(column):
        values = db.execute(select(column).where(*base).distinct()).scalars().all()
        return sorted(value for value in values if value)

    min_date, max_date = db.execute(
        select(func.min(DailyReading.stock_date), func.max(DailyReading.stock_date))
        .join(SkuSnapshot, SkuSnapshot.id == DailyReading.snapshot_id)
        .where(*base)
    ).one()

    return {
        "available_item_groups": _distinct(SkuSnapshot.item_group),
        "available_product_categories": sorted_category_labels(_distinct(SkuSnapshot.product_category)),
        "available_warehouses": _distinct(SkuSnapshot.warehouse),
        "available_date_range": {
            "min_date": iso_date(min_date),
            "max_date": iso_date(max_date),
        },
    }


def summarize(
    db: Session,
    batch_ids,
    scope: RowScope,
    *,
    granularity: str = "day",
    highlight_category: str = ProductCategory.EDEL.value,
) -> dict:
    cards = compute_cards(db, batch_ids, scope)
    daily = compute_daily_series(db, batch_ids, scope, highlight_category)
    filters = distinct_filters(db, batch_ids)
    logger.debug(
        "Summarized %d batches: %d SKUs, %d series dates",
        len(batch_ids),
        cards["inbound_sku_count"],
        len(daily),
    )
    return {
        "cards": cards,
        "filters": filters,
        "time_series": {
            "granularity": granularity,
            "highlight_category": ProductCategory(highlight_category).value,
            "points": bucket_series(daily, granularity),
        },
    }


def ranked_readings_subquery(batch_ids, scope: RowScope):
    """Readings numbered newest-first within each ``(item, warehouse)``."""
    return (
        select(
            SkuSnapshot.item.label("item"),
            SkuSnapshot.warehouse.label("warehouse"),
            DailyReading.quantity.label("quantity"),
            func.row_number()
            .over(
                partition_by=(SkuSnapshot.item, SkuSnapshot.warehouse),
                order_by=(
                    DailyReading.stock_date.desc(),
                    InventoryBatch.created_at.desc(),
                    DailyReading.id.desc(),
                ),
            )
            .label("recency"),
        )
        .join(DailyReading, DailyReading.snapshot_id == SkuSnapshot.id)
        .join(InventoryBatch, InventoryBatch.id == SkuSnapshot.batch_id)
        .where(*snapshot_conditions(batch_ids, scope), *reading_conditions(scope))
        .subquery("ranked_readings")
    )


def latest_quantities(db: Session, batch_ids, scope: RowScope) -> dict:
    """Most recent reading per ``(item, warehouse)`` across the batches."""
    ranked = ranked_readings_subquery(batch_ids, scope)
    rows = db.execute(
        select(ranked.c.item, ranked.c.warehouse, ranked.c.quantity).where(ranked.c.recency == 1)
    ).all()
    return {(item, warehouse): to_float(quantity) for item, warehouse, quantity in rows}


__all__ = [
    "RowScope",
    "bucket_series",
    "compute_cards",
    "compute_daily_series",
    "distinct_filters",
    "latest_quantities",
    "reading_conditions",
    "row_cbm_expression",
    "row_stats_subquery",
    "snapshot_conditions",
    "summarize",
]
