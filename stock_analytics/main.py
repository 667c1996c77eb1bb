import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from stock_analytics.config import Settings, get_settings
from stock_analytics.core.errors import AnalyticsError, ValidationError, format_validation_errors
from stock_analytics.core.logging import setup_logging
from stock_analytics.database import Base, engine, ensure_sqlite_schema
from stock_analytics.models import import_all_models
from stock_analytics.routers import health_router, inventory_router

logger = logging.getLogger(__name__)

setup_logging()
settings: Settings = get_settings()


def init_database(bind=None):
    bind = bind if bind is not None else engine
    import_all_models()
    Base.metadata.create_all(bind=bind)
    ensure_sqlite_schema(bind)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_database()
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)


@app.exception_handler(AnalyticsError)
async def analytics_error_handler(request: Request, exc: AnalyticsError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(_request: Request, exc: RequestValidationError):
    error = ValidationError(format_validation_errors(exc.errors()))
    return JSONResponse(status_code=422, content=error.to_dict())


app.include_router(health_router)
app.include_router(inventory_router)


__all__ = ["app", "init_database"]
