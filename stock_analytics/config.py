from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ==============================
    # Application
    # ==============================
    APP_NAME: str = "Warehouse Stock Analytics"
    ENVIRONMENT: str = "local"

    # ==============================
    # Database
    # ==============================
    DATABASE_URL: str = "sqlite:///./stock_analytics.db"

    # ==============================
    # Logging
    # ==============================
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # ==============================
    # Ingestion
    # ==============================
    INGEST_CHUNK_SIZE: int = 500

    # ==============================
    # Result Cache
    # ==============================
    CACHE_ENABLED: bool = True
    RESULT_CACHE_MAX_ENTRIES: int = 256

    # ==============================
    # Analytics
    # ==============================
    HIGHLIGHT_CATEGORY: str = "EDEL"
    FAST_MOVING_MIN_AVG_QTY: float = 50
    FAST_MOVING_LIMIT: int = 50
    # Share of average stock assumed consumed per day when an item has no sales.
    NO_SALES_CONSUMPTION_RATE: float = 0.1
    DAYS_OF_STOCK_CAP: int = 999
    ZERO_ORDER_MIN_DAYS_IN_STOCK: int = 7
    ZERO_ORDER_LIMIT: int = 50
    MAX_RESULT_LIMIT: int = 1000


@lru_cache
def get_settings() -> Settings:
    """Cached settings loader (once per process)."""
    return Settings()


__all__ = ["Settings", "get_settings"]
