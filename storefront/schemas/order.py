# storefront/schemas/order.py
from datetime import datetime

from pydantic import ConfigDict, field_validator, model_validator
from sqlmodel import SQLModel, Field

from storefront.models.order import (
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    TransactionType,
)
from storefront.schemas.common import Pagination


class DeliveryAddress(SQLModel):
    """
    Shipping address captured at checkout.

    province/district/ward hold administrative-unit codes picked through the
    cascading address selects. A lower level without its parent is rejected.
    """

    model_config = ConfigDict(extra="allow")

    fullName: str
    phone: str
    address: str
    province: str | None = None
    district: str | None = None
    ward: str | None = None

    @field_validator("fullName", "phone", "address")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @model_validator(mode="after")
    def hierarchy_complete(self) -> "DeliveryAddress":
        if self.ward and not self.district:
            raise ValueError("ward requires a district")
        if self.district and not self.province:
            raise ValueError("district requires a province")
        return self


class OrderItemCreate(SQLModel):
    product_id: int
    product_name: str
    product_image: str | None = None
    price: float = Field(gt=0)
    price_before_discount: float | None = None
    quantity: int = Field(gt=0)


class OrderCreate(SQLModel):
    """
    Checkout payload.

    Backend derives:
      - user_id from token
      - order_status = payment_status = 'pending'
    total_amount must equal sum(price * quantity) over items.
    """

    model_config = ConfigDict(extra="forbid")

    items: list[OrderItemCreate] = Field(min_length=1)
    delivery_address: DeliveryAddress
    message: str | None = None
    payment_method: PaymentMethod
    total_amount: float = Field(gt=0)

    @field_validator("message")
    @classmethod
    def normalize_message(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class OrderItemRead(SQLModel):
    product_id: int
    product_name: str
    product_image: str | None = None
    price: float
    price_before_discount: float | None = None
    quantity: int


class OrderRead(SQLModel):
    id: int
    user_id: int
    delivery_address: dict
    message: str | None = None
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    order_status: OrderStatus
    total_amount: float
    momo_transfer_note: str | None = None
    user_payment_confirmed: int
    user_payment_confirmed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemRead] = []


class StripePaymentIntent(SQLModel):
    client_secret: str
    payment_intent_id: str


class OrderCreated(SQLModel):
    order: OrderRead
    stripe_payment_intent: StripePaymentIntent | None = None


class OrderEnvelope(SQLModel):
    order: OrderRead


class ConfirmPaymentRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    payment_intent_id: str = Field(min_length=1)


class MomoConfirmRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    transfer_note: str | None = Field(default=None, max_length=255)


# ----- Admin -----


class OrderStatusUpdate(SQLModel):
    """
    Admin payload to change order and/or payment status.

    expected_* carry the status the admin saw when opening the order; if the
    order has moved on since, the update is rejected with 409.
    """

    model_config = ConfigDict(extra="forbid")

    order_status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
    notes: str | None = None
    expected_order_status: OrderStatus | None = None
    expected_payment_status: PaymentStatus | None = None

    @model_validator(mode="after")
    def something_to_change(self) -> "OrderStatusUpdate":
        if self.order_status is None and self.payment_status is None:
            raise ValueError("order_status or payment_status is required")
        return self


class OrderTransactionRead(SQLModel):
    id: int
    order_id: int
    admin_id: int | None = None
    admin_name: str | None = None
    admin_email: str | None = None
    transaction_type: TransactionType
    old_status: str | None = None
    new_status: str
    notes: str | None = None
    created_at: datetime


class AdminOrderRead(OrderRead):
    user_name: str | None = None
    user_email: str | None = None
    user_phone: str | None = None


class AdminOrderDetail(SQLModel):
    order: AdminOrderRead
    transactions: list[OrderTransactionRead]


class AdminOrderListData(SQLModel):
    orders: list[AdminOrderRead]
    pagination: Pagination


class MomoSettings(SQLModel):
    name: str = ""
    account_number: str = ""
    qr_image_url: str = ""
    instructions: str = ""


class MomoSettingsData(SQLModel):
    settings: MomoSettings
