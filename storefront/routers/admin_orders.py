# storefront/routers/admin_orders.py
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from storefront.core.auth import require_admin
from storefront.database import get_session
from storefront.models.order import OrderStatus, PaymentStatus
from storefront.models.user import User
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.setting_repo import SettingRepository
from storefront.schemas.common import ApiResponse
from storefront.schemas.order import (
    AdminOrderDetail,
    AdminOrderListData,
    MomoSettings,
    MomoSettingsData,
    OrderStatusUpdate,
)
from storefront.services.order_service import OrderService

router = APIRouter(
    prefix="/admin",
    tags=["Admin Orders"],
    dependencies=[Depends(require_admin)],
)

service = OrderService(
    OrderRepository(),
    CartRepository(),
    ProductRepository(),
    SettingRepository(),
)


@router.get("/orders", response_model=ApiResponse[AdminOrderListData])
def list_orders(
    session: Session = Depends(get_session),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status: OrderStatus | None = None,
    payment_status: PaymentStatus | None = None,
    search: str | None = None,
):
    """
    List all orders, newest first.

    Filters:
      - status: order status
      - payment_status
      - search: customer name / email substring, or exact order id
    """
    return ApiResponse(
        message="Orders loaded",
        data=service.list_orders_admin(
            session,
            page=page,
            limit=limit,
            order_status=status,
            payment_status=payment_status,
            search=search,
        ),
    )


@router.get("/orders/{order_id}", response_model=ApiResponse[AdminOrderDetail])
def get_order(
    order_id: int,
    session: Session = Depends(get_session),
):
    """
    Order with items, customer and its status history (newest first).
    """
    return ApiResponse(message="Order loaded", data=service.get_order_detail(session, order_id))


@router.put("/orders/{order_id}/status", response_model=ApiResponse[AdminOrderDetail])
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    """
    Change order and/or payment status.

      pending   -> confirmed, cancelled

      confirmed -> shipping, cancelled

      shipping  -> delivered

      payment: pending -> paid, failed

    Send expected_order_status / expected_payment_status with the values
    you loaded; 409 if someone changed the order in between.
    """
    return ApiResponse(
        message="Order status updated",
        data=service.update_order_status(session, order_id, payload, admin.id),
    )


# -------- Shop settings --------


@router.get("/settings/momo", response_model=ApiResponse[MomoSettingsData])
def get_momo_settings(session: Session = Depends(get_session)):
    return ApiResponse(
        message="MoMo settings loaded",
        data=MomoSettingsData(settings=service.get_momo_settings(session)),
    )


@router.put("/settings/momo", response_model=ApiResponse[MomoSettingsData])
def update_momo_settings(
    payload: MomoSettings,
    session: Session = Depends(get_session),
):
    return ApiResponse(
        message="MoMo settings updated",
        data=MomoSettingsData(settings=service.update_momo_settings(session, payload)),
    )
