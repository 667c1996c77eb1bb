import importlib

from stock_analytics.models.batch import InventoryBatch
from stock_analytics.models.sales import SaleRecord, SalesBatch
from stock_analytics.models.snapshot import DailyReading, SkuSnapshot


def import_all_models() -> None:
    for module_name in (
        "stock_analytics.models.batch",
        "stock_analytics.models.sales",
        "stock_analytics.models.snapshot",
    ):
        importlib.import_module(module_name)


__all__ = [
    "DailyReading",
    "InventoryBatch",
    "SaleRecord",
    "SalesBatch",
    "SkuSnapshot",
    "import_all_models",
]
