from stock_analytics.services.analytics_service import (
    delete_batch,
    get_fast_moving_skus,
    get_summary,
    get_zero_order_products,
    ingest_snapshots,
    list_batches,
    record_sales_batch,
)
from stock_analytics.services.cache import ResultCache, result_cache

__all__ = [
    "ResultCache",
    "delete_batch",
    "get_fast_moving_skus",
    "get_summary",
    "get_zero_order_products",
    "ingest_snapshots",
    "list_batches",
    "record_sales_batch",
    "result_cache",
]
