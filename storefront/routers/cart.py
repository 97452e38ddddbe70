# storefront/routers/cart.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from storefront.core.auth import require_auth
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.cart import (
    CartCount,
    CartItemChange,
    CartItemCreate,
    CartItemUpdate,
    CartSummary,
)
from storefront.schemas.common import ApiResponse
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])

cart_repo = CartRepository()
product_repo = ProductRepository()
service = CartService(cart_repo, product_repo)


@router.get("", response_model=ApiResponse[CartSummary])
def get_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Get the current user's cart summary.
    """
    return ApiResponse(
        message="Cart loaded",
        data=service.get_cart_summary(session, current_user.id),
    )


@router.get("/count", response_model=ApiResponse[CartCount])
def count_items(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """Total quantity across all cart lines (header badge)."""
    return ApiResponse(message="Cart count loaded", data=service.count(session, current_user.id))


@router.post(
    "",
    response_model=ApiResponse[CartItemChange],
    status_code=status.HTTP_201_CREATED,
)
def add_to_cart(
    payload: CartItemCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Add an item to the cart.

    - 400 with data.availableQuantity when stock is too low.
    """
    return ApiResponse(
        message="Added to cart",
        data=service.add_to_cart(session, current_user.id, payload),
    )


@router.put("/{item_id}", response_model=ApiResponse[CartItemChange])
def update_cart_item(
    item_id: int,
    payload: CartItemUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Change the quantity of a cart line.
    """
    return ApiResponse(
        message="Cart updated",
        data=service.update_quantity(session, current_user.id, item_id, payload),
    )


@router.delete("/{item_id}", response_model=ApiResponse[None])
def remove_cart_item(
    item_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    service.remove_item(session, current_user.id, item_id)
    return ApiResponse(message="Removed from cart")


@router.delete("", response_model=ApiResponse[None])
def clear_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Clear all items from the current user's cart.
    """
    service.clear_cart(session, current_user.id)
    return ApiResponse(message="Cart cleared")
