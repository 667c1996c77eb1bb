from stock_analytics.database.base import Base
from stock_analytics.database.engine import build_engine, engine, ensure_sqlite_schema
from stock_analytics.database.session import SessionLocal

__all__ = ["Base", "build_engine", "engine", "ensure_sqlite_schema", "SessionLocal"]
