from stock_analytics.database.session import get_db
from stock_analytics.services.cache import result_cache


def get_result_cache():
    return result_cache


__all__ = ["get_db", "get_result_cache"]
