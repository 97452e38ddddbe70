# storefront/schemas/flash_sale.py
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, model_validator
from sqlmodel import SQLModel, Field

from storefront.models.flash_sale import as_utc
from storefront.schemas.common import Pagination

FlashSaleStatusFilter = Literal["active", "upcoming", "ended"]


class FlashSaleCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=255)
    start_time: datetime
    end_time: datetime
    is_active: bool = True

    @model_validator(mode="after")
    def window_is_ordered(self) -> "FlashSaleCreate":
        if as_utc(self.end_time) <= as_utc(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


class FlashSaleUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=255)
    start_time: datetime | None = None
    end_time: datetime | None = None
    is_active: bool | None = None


class FlashSaleItemCreate(SQLModel):
    product_id: int
    sale_price: float = Field(gt=0)
    item_limit: int | None = Field(default=None, ge=1)


class FlashSaleItemsAdd(SQLModel):
    model_config = ConfigDict(extra="forbid")

    items: list[FlashSaleItemCreate] = Field(min_length=1)


class FlashSaleItemRead(SQLModel):
    id: int
    flash_sale_id: int
    product_id: int
    sale_price: float
    item_limit: int | None = None
    product_name: str
    product_image: str | None = None
    product_sold: int


class FlashSaleRead(SQLModel):
    id: int
    name: str
    start_time: datetime
    end_time: datetime
    is_active: bool
    created_at: datetime
    updated_at: datetime


class FlashSaleWithItems(FlashSaleRead):
    items: list[FlashSaleItemRead]


class FlashSaleListData(SQLModel):
    flash_sales: list[FlashSaleRead]
    pagination: Pagination
