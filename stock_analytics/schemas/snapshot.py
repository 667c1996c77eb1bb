from datetime import date, datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from stock_analytics.core.categories import ProductCategory, classify_item_group, parse_category_token


class DailyReadingIn(BaseModel):
    """One explicitly reported cell; blank cells are simply left out."""

    stock_date: date = Field(validation_alias=AliasChoices("stock_date", "date", "stockDate"))
    quantity: float = Field(allow_inf_nan=False, validation_alias=AliasChoices("quantity", "qty"))

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class SkuSnapshotIn(BaseModel):
    item: str = Field(min_length=1)
    warehouse: str = "Unknown"
    item_group: str = Field(
        default="Others",
        validation_alias=AliasChoices("item_group", "itemGroup"),
    )
    product_category: Optional[ProductCategory] = Field(
        default=None,
        validation_alias=AliasChoices("product_category", "productCategory"),
    )
    cbm_per_unit: float = Field(
        default=0.0,
        ge=0,
        validation_alias=AliasChoices("cbm_per_unit", "cbmPerUnit"),
    )
    is_total_row: bool = Field(
        default=False,
        validation_alias=AliasChoices("is_total_row", "isTotalRow"),
    )
    readings: List[DailyReadingIn] = Field(
        default_factory=list,
        validation_alias=AliasChoices("readings", "daily_quantities", "dailyQuantities"),
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("item", mode="before")
    @classmethod
    def _strip_item(cls, value):
        return str(value).strip() if value is not None else value

    @field_validator("warehouse", "item_group", mode="before")
    @classmethod
    def _blank_to_default(cls, value, info):
        text = str(value).strip() if value is not None else ""
        if text:
            return text
        return "Unknown" if info.field_name == "warehouse" else "Others"

    @field_validator("product_category", mode="before")
    @classmethod
    def _parse_category(cls, value):
        return parse_category_token(value)

    @model_validator(mode="after")
    def _normalize(self):
        if self.product_category is None:
            self.product_category = classify_item_group(self.item_group)
        if self.is_total_row:
            self.cbm_per_unit = 0.0
        seen = set()
        for reading in self.readings:
            if reading.stock_date in seen:
                raise ValueError(f"duplicate reading for {reading.stock_date.isoformat()} on item {self.item!r}")
            seen.add(reading.stock_date)
        return self


class SnapshotUploadRequest(BaseModel):
    file_name: str = Field(
        min_length=1,
        validation_alias=AliasChoices("file_name", "fileName"),
    )
    rows: List[SkuSnapshotIn]

    model_config = ConfigDict(populate_by_name=True)


class SaleRecordIn(BaseModel):
    item: str = Field(min_length=1)
    shipment_date: Optional[date] = Field(
        default=None,
        validation_alias=AliasChoices("shipment_date", "shipmentDate"),
    )
    quantity: float = 0.0
    cbm: float = 0.0

    model_config = ConfigDict(populate_by_name=True)


class BatchRead(BaseModel):
    batch_id: str
    file_name: str
    status: str
    created_at: datetime
    rows_inserted: int
    error_message: Optional[str] = None


class IngestResult(BaseModel):
    batch_id: str
    rows_inserted: int
    readings_inserted: int
    min_date: Optional[date] = None
    max_date: Optional[date] = None
