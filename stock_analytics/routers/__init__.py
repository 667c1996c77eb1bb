from stock_analytics.routers.health import router as health_router
from stock_analytics.routers.inventory import router as inventory_router

__all__ = ["health_router", "inventory_router"]
