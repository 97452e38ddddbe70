# storefront/routers/orders.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from storefront.core.auth import require_auth
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.setting_repo import SettingRepository
from storefront.schemas.common import ApiResponse
from storefront.schemas.order import (
    ConfirmPaymentRequest,
    MomoConfirmRequest,
    MomoSettingsData,
    OrderCreate,
    OrderCreated,
    OrderEnvelope,
    OrderRead,
)
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])

order_repo = OrderRepository()
cart_repo = CartRepository()
product_repo = ProductRepository()
setting_repo = SettingRepository()
service = OrderService(order_repo, cart_repo, product_repo, setting_repo)


@router.post(
    "",
    response_model=ApiResponse[OrderCreated],
    status_code=status.HTTP_201_CREATED,
)
def create_order(
    payload: OrderCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Place an order for the current user.

    - Ordered products are removed from the cart.
    - payment_method='stripe' also returns a payment intent client_secret.
    """
    return ApiResponse(
        message="Order created",
        data=service.create_order(session, current_user.id, payload),
    )


@router.get("", response_model=ApiResponse[list[OrderRead]])
def list_my_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    List the authenticated user's orders, newest first.
    """
    return ApiResponse(
        message="Orders loaded",
        data=service.list_user_orders(session, current_user.id),
    )


# Public so the checkout page can show transfer details; above /{order_id}
@router.get("/momo-settings", response_model=ApiResponse[MomoSettingsData])
def get_momo_settings(session: Session = Depends(get_session)):
    return ApiResponse(
        message="MoMo settings loaded",
        data=MomoSettingsData(settings=service.get_momo_settings(session)),
    )


@router.get("/{order_id}", response_model=ApiResponse[OrderEnvelope])
def get_my_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Get a single order (with items) belonging to the current user.
    """
    order = service.get_user_order(session, current_user.id, order_id)
    return ApiResponse(message="Order loaded", data=OrderEnvelope(order=order))


@router.post("/{order_id}/confirm-payment", response_model=ApiResponse[OrderEnvelope])
def confirm_payment(
    order_id: int,
    payload: ConfirmPaymentRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Verify a Stripe payment intent and settle the order's payment.
    """
    order = service.confirm_gateway_payment(
        session, current_user.id, order_id, payload.payment_intent_id
    )
    return ApiResponse(message="Payment processed", data=OrderEnvelope(order=order))


@router.post("/{order_id}/momo-confirm", response_model=ApiResponse[OrderEnvelope])
def confirm_momo_transfer(
    order_id: int,
    payload: MomoConfirmRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Customer reports a MoMo transfer; payment stays pending until an admin
    checks it.
    """
    order = service.submit_manual_transfer_confirmation(
        session, current_user.id, order_id, payload.transfer_note
    )
    return ApiResponse(message="Transfer confirmation received", data=OrderEnvelope(order=order))


@router.post("/{order_id}/cancel", response_model=ApiResponse[OrderEnvelope])
def cancel_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Cancel a pending or confirmed order; stock is restored.
    """
    order = service.cancel_order(session, current_user.id, order_id)
    return ApiResponse(message="Order cancelled", data=OrderEnvelope(order=order))
