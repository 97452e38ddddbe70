# storefront/schemas/cart.py
from datetime import datetime

from sqlmodel import SQLModel, Field


class CartItemCreate(SQLModel):
    """
    Payload for adding to cart.
    """

    product_id: int
    quantity: int = Field(default=1, gt=0)


class CartItemUpdate(SQLModel):
    """
    Payload for updating quantity of a cart item.
    """

    quantity: int = Field(gt=0)


class CartItemRead(SQLModel):
    """
    Cart line joined with the current product data.
    """

    id: int
    product_id: int
    product_name: str
    product_image: str | None = None
    price: float
    price_before_discount: float | None = None
    product_quantity: int
    quantity: int
    line_total: float
    created_at: datetime
    updated_at: datetime


class CartSummary(SQLModel):
    """
    Full cart response model with totals.
    """

    items: list[CartItemRead]
    total_quantity: int
    total_price: float


class CartItemChange(SQLModel):
    """Result of add/update: which row changed and its new quantity."""

    cart_item_id: int
    quantity: int


class CartCount(SQLModel):
    count: int
