# storefront/models/flash_sale.py
from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


def as_utc(value: datetime) -> datetime:
    """Timezone-aware UTC; naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class FlashSale(SQLModel, table=True):
    """
    Time-boxed sale campaign.

    start_time/end_time are written as aware UTC; a sale is active while
    is_active and start_time <= now < end_time.
    """

    __tablename__ = "flash_sales"

    id: int | None = Field(default=None, primary_key=True)

    name: str = Field(max_length=255)
    start_time: datetime = Field(index=True)
    end_time: datetime = Field(index=True)
    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class FlashSaleItem(SQLModel, table=True):
    """
    Product taking part in a flash sale, with its sale price.
    """

    __tablename__ = "flash_sale_items"
    __table_args__ = (UniqueConstraint("flash_sale_id", "product_id"),)

    id: int | None = Field(default=None, primary_key=True)

    flash_sale_id: int = Field(
        foreign_key="flash_sales.id",
        index=True,
    )

    product_id: int = Field(
        foreign_key="products.id",
        index=True,
    )

    sale_price: float = Field(gt=0)

    # Max units sold at the sale price; None = unlimited
    item_limit: int | None = Field(default=None, ge=1)
