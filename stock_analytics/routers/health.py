from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from stock_analytics.config import get_settings
from stock_analytics.dependencies import get_result_cache

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(cache=Depends(get_result_cache)):
    settings = get_settings()
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "time": datetime.now(timezone.utc).isoformat(),
        "cache": cache.stats(),
    }
