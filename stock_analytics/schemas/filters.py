"""Canonical query values.

Each model is frozen and hashable so it can be used directly as a cache key;
set-like inputs are stored as sorted tuples so parameter order never changes
the key.
"""

from datetime import date
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from stock_analytics.core.categories import ProductCategory
from stock_analytics.core.constants import DEFAULT_GRANULARITY, GRANULARITIES


class SummaryQuery(BaseModel):
    batch_ids: Optional[Tuple[str, ...]] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    item_group: Optional[str] = None
    categories: Tuple[ProductCategory, ...] = ()
    warehouse: Optional[str] = None
    granularity: str = DEFAULT_GRANULARITY

    model_config = ConfigDict(frozen=True)

    @field_validator("granularity")
    @classmethod
    def _check_granularity(cls, value):
        if value not in GRANULARITIES:
            raise ValueError(f"granularity must be one of {', '.join(GRANULARITIES)}")
        return value

    @model_validator(mode="after")
    def _check_range(self):
        if self.from_date and self.to_date and self.from_date > self.to_date:
            raise ValueError("from_date must not be after to_date")
        return self


class FastMovingQuery(BaseModel):
    warehouse: Optional[str] = None
    category: Optional[ProductCategory] = None
    min_avg_qty: float = Field(ge=0)
    limit: int = Field(ge=1)

    model_config = ConfigDict(frozen=True)


class ZeroOrderQuery(BaseModel):
    warehouse: Optional[str] = None
    category: Optional[ProductCategory] = None
    min_days_in_stock: int = Field(ge=0)
    limit: int = Field(ge=1)

    model_config = ConfigDict(frozen=True)


__all__ = ["FastMovingQuery", "SummaryQuery", "ZeroOrderQuery"]
