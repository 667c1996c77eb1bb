import logging

from sqlalchemy.orm import Session

from stock_analytics.core.categories import category_label
from stock_analytics.core.constants import CBM_LEVEL_THRESHOLDS, CBM_LEVELS, CBM_LOW
from stock_analytics.core.numbers import round_metric, to_float
from stock_analytics.services.aggregation import RowScope, distinct_filters
from stock_analytics.services.movement import load_row_stats
from stock_analytics.services.sales_index import SalesIndex

logger = logging.getLogger(__name__)


def classify_cbm_level(total_cbm: float) -> str:
    for lower_bound, level in CBM_LEVEL_THRESHOLDS:
        if total_cbm >= lower_bound:
            return level
    return CBM_LOW


def zero_order_products(
    db: Session,
    batch_ids,
    scope: RowScope,
    *,
    min_days_in_stock: int,
    limit: int,
    sales_index: SalesIndex | None = None,
) -> dict:
    """Stock rows whose item never shipped, largest volume first.

    Any positive shipment for the (normalized) item disqualifies it. With no
    sales data loaded every qualifying row is reported.
    """
    sales_index = sales_index if sales_index is not None else SalesIndex.load(db)
    sold_keys = sales_index.sold_item_keys()

    candidates = []
    excluded_sold = 0
    for row in load_row_stats(db, batch_ids, scope):
        if sales_index.has_positive_sale(row["item"]):
            excluded_sold += 1
            continue
        days_in_stock = int(row["days_in_stock"] or 0)
        if days_in_stock < min_days_in_stock:
            continue
        total_cbm = to_float(row["total_cbm"])
        candidates.append(
            {
                "item": row["item"],
                "warehouse": row["warehouse"],
                "item_group": row["item_group"],
                "product_category": category_label(row["product_category"]),
                "cbm_per_unit": to_float(row["cbm_per_unit"]),
                "avg_stock_qty": to_float(row["avg_qty"]),
                "days_in_stock": days_in_stock,
                "total_cbm": total_cbm,
                "cbm_level": classify_cbm_level(total_cbm),
            }
        )

    candidates.sort(key=lambda entry: (-entry["total_cbm"], entry["item"], entry["warehouse"]))
    level_counts = {level: 0 for level in CBM_LEVELS}
    total_cbm = 0.0
    for entry in candidates:
        level_counts[entry["cbm_level"]] += 1
        total_cbm += entry["total_cbm"]

    products = []
    for rank, entry in enumerate(candidates[:limit], start=1):
        entry["cbm_per_unit"] = round_metric(entry["cbm_per_unit"])
        entry["avg_stock_qty"] = round_metric(entry["avg_stock_qty"])
        entry["total_cbm"] = round_metric(entry["total_cbm"])
        entry["rank"] = rank
        products.append(entry)

    logger.debug(
        "Zero-order report: %d candidates, %d rows excluded by %d sold items",
        len(candidates),
        excluded_sold,
        len(sold_keys),
    )
    filters = distinct_filters(db, batch_ids)
    return {
        "products": products,
        "summary": {
            "total_products": len(candidates),
            "returned": len(products),
            "total_cbm": round_metric(total_cbm),
            "level_counts": level_counts,
            "has_sales_data": not sales_index.is_empty,
            "min_days_in_stock": min_days_in_stock,
        },
        "filters": {
            "available_warehouses": filters["available_warehouses"],
            "available_product_categories": filters["available_product_categories"],
        },
    }


__all__ = ["classify_cbm_level", "zero_order_products"]
