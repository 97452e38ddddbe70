# storefront/models/order.py
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class PaymentMethod(str, Enum):
    cod = "cod"
    stripe = "stripe"
    momo = "momo"


class PaymentStatus(str, Enum):
    pending = "pending"
    paid = "paid"
    failed = "failed"


class OrderStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    shipping = "shipping"
    delivered = "delivered"
    cancelled = "cancelled"


class TransactionType(str, Enum):
    order_status_change = "order_status_change"
    payment_status_change = "payment_status_change"


class Order(SQLModel, table=True):
    """
    Customer order.

    Status fields are only changed through the lifecycle service
    (storefront.services.order_lifecycle); see the transition tables there.
    """

    __tablename__ = "orders"

    id: int | None = Field(default=None, primary_key=True)

    user_id: int = Field(
        foreign_key="users.id",
        index=True,
    )

    # {fullName, phone, address, province?, district?, ward?, ...}
    delivery_address: dict[str, Any] = Field(
        sa_column=Column(JSON, nullable=False),
    )

    message: str | None = Field(
        default=None,
        description="Optional note from the customer",
    )

    payment_method: PaymentMethod

    payment_status: PaymentStatus = Field(
        default=PaymentStatus.pending,
        index=True,
    )

    order_status: OrderStatus = Field(
        default=OrderStatus.pending,
        index=True,
    )

    total_amount: float = Field(
        description="Sum of price * quantity over items at creation time",
    )

    # MoMo manual transfer
    momo_transfer_note: str | None = Field(default=None, max_length=255)
    user_payment_confirmed: int = Field(default=0)
    user_payment_confirmed_at: datetime | None = None

    # Stripe
    stripe_payment_intent_id: str | None = Field(default=None, max_length=255)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class OrderItem(SQLModel, table=True):
    """
    Line item inside an order, snapshotting product name/image/price.
    """

    __tablename__ = "order_items"

    id: int | None = Field(default=None, primary_key=True)

    order_id: int = Field(
        foreign_key="orders.id",
        index=True,
    )

    product_id: int = Field(
        foreign_key="products.id",
        index=True,
    )

    product_name: str
    product_image: str | None = None

    price: float = Field(description="Unit price paid")
    price_before_discount: float | None = None

    quantity: int = Field(
        gt=0,
        description="Quantity ordered (>=1)",
    )


class OrderTransaction(SQLModel, table=True):
    """
    Append-only audit record, one row per accepted status change.
    """

    __tablename__ = "order_transactions"

    id: int | None = Field(default=None, primary_key=True)

    order_id: int = Field(
        foreign_key="orders.id",
        index=True,
    )

    # None when the change was made by the customer or the payment gateway
    admin_id: int | None = Field(
        default=None,
        foreign_key="users.id",
    )

    transaction_type: TransactionType = Field(index=True)
    old_status: str | None = Field(default=None, max_length=50)
    new_status: str = Field(max_length=50)
    notes: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
    )
