import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from stock_analytics.config import get_settings
from stock_analytics.core.categories import category_label
from stock_analytics.core.constants import STOCK_HIGH, STOCK_STATUS_THRESHOLDS, STOCK_STATUSES
from stock_analytics.core.numbers import round_half_away, round_metric, to_float
from stock_analytics.services.aggregation import (
    RowScope,
    distinct_filters,
    latest_quantities,
    row_cbm_expression,
    row_stats_subquery,
)
from stock_analytics.services.sales_index import SalesIndex

logger = logging.getLogger(__name__)


def classify_stock_status(days_of_stock: int) -> str:
    for upper_bound, status in STOCK_STATUS_THRESHOLDS:
        if days_of_stock < upper_bound:
            return status
    return STOCK_HIGH


def estimate_daily_consumption(avg_qty, sales, consumption_rate):
    """Return ``(daily_consumption, from_sales)`` for one row."""
    if sales is not None and sales.sales_days > 0:
        return sales.total_qty / sales.sales_days, True
    return avg_qty * consumption_rate, False


def days_of_stock(latest_qty, daily_consumption, cap) -> int:
    if daily_consumption <= 0:
        return cap
    return min(round_half_away(latest_qty / daily_consumption), cap)


def load_row_stats(db: Session, batch_ids, scope: RowScope):
    stats = row_stats_subquery(batch_ids, scope)
    return db.execute(
        select(stats, row_cbm_expression(stats).label("total_cbm"))
        .where(stats.c.avg_qty != 0)
    ).mappings().all()


def fast_moving_skus(
    db: Session,
    batch_ids,
    scope: RowScope,
    *,
    min_avg_qty: float,
    limit: int,
    sales_index: SalesIndex | None = None,
) -> dict:
    """Rank SKU rows by average stock and estimate how long stock will last.

    Velocity comes from the Sales Index when the item has sales. When no
    sales data is loaded at all, the ``NO_SALES_CONSUMPTION_RATE`` share of
    average stock stands in for daily consumption. Once sales data exists,
    rows without any sale for their item are not fast-moving; they are
    reported by the zero-order report instead.
    """
    settings = get_settings()
    sales_index = sales_index if sales_index is not None else SalesIndex.load(db)
    latest = latest_quantities(db, batch_ids, scope)

    candidates = []
    for row in load_row_stats(db, batch_ids, scope):
        avg_qty = to_float(row["avg_qty"])
        if avg_qty < min_avg_qty:
            continue
        sales = sales_index.get(row["item"])
        if not sales_index.is_empty and (sales is None or not sales.has_positive_sale):
            continue
        daily, from_sales = estimate_daily_consumption(
            avg_qty, sales, settings.NO_SALES_CONSUMPTION_RATE
        )
        latest_qty = latest.get((row["item"], row["warehouse"]), 0.0)
        stock_days = days_of_stock(latest_qty, daily, settings.DAYS_OF_STOCK_CAP)
        candidates.append(
            {
                "item": row["item"],
                "warehouse": row["warehouse"],
                "item_group": row["item_group"],
                "product_category": category_label(row["product_category"]),
                "cbm_per_unit": to_float(row["cbm_per_unit"]),
                "avg_qty": avg_qty,
                "min_qty": to_float(row["min_qty"]),
                "max_qty": to_float(row["max_qty"]),
                "latest_qty": latest_qty,
                "total_cbm": to_float(row["total_cbm"]),
                "total_sold_qty": sales.total_qty if sales else 0.0,
                "total_sold_cbm": sales.total_cbm if sales else 0.0,
                "sales_days": sales.sales_days if sales else 0,
                "avg_daily_sales": daily if from_sales else 0.0,
                "estimated_daily_consumption": daily,
                "has_sales_data": from_sales,
                "days_of_stock": stock_days,
                "stock_status": classify_stock_status(stock_days),
            }
        )

    candidates.sort(key=lambda entry: (-entry["avg_qty"], entry["item"], entry["warehouse"]))
    status_counts = {status: 0 for status in STOCK_STATUSES}
    for entry in candidates:
        status_counts[entry["stock_status"]] += 1

    skus = []
    for rank, entry in enumerate(candidates[:limit], start=1):
        for metric in (
            "cbm_per_unit",
            "avg_qty",
            "min_qty",
            "max_qty",
            "latest_qty",
            "total_cbm",
            "total_sold_qty",
            "total_sold_cbm",
            "avg_daily_sales",
            "estimated_daily_consumption",
        ):
            entry[metric] = round_metric(entry[metric])
        entry["rank"] = rank
        skus.append(entry)

    logger.debug("Fast-moving report: %d candidates, %d returned", len(candidates), len(skus))
    filters = distinct_filters(db, batch_ids)
    return {
        "skus": skus,
        "summary": {
            "total_skus": len(candidates),
            "returned": len(skus),
            "status_counts": status_counts,
            "has_sales_data": not sales_index.is_empty,
            "min_avg_qty": min_avg_qty,
        },
        "filters": {
            "available_warehouses": filters["available_warehouses"],
            "available_product_categories": filters["available_product_categories"],
        },
    }


__all__ = [
    "classify_stock_status",
    "days_of_stock",
    "estimate_daily_consumption",
    "fast_moving_skus",
    "load_row_stats",
]
