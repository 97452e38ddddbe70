# storefront/routers/products.py
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from storefront.database import get_session
from storefront.repositories.flash_sale_repo import FlashSaleRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.common import ApiResponse
from storefront.schemas.flash_sale import FlashSaleWithItems
from storefront.schemas.product import (
    CategoryRead,
    ProductAvailability,
    ProductListData,
    ProductListParams,
    ProductRead,
)
from storefront.services.flash_sale_service import FlashSaleService
from storefront.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])
categories_router = APIRouter(prefix="/categories", tags=["Categories"])

repo = ProductRepository()
service = ProductService(repo)
flash_sale_service = FlashSaleService(FlashSaleRepository(), repo)


# -------- Public endpoints --------


@router.get("", response_model=ApiResponse[ProductListData])
def list_products(
    params: Annotated[ProductListParams, Query()],
    session: Session = Depends(get_session),
):
    """
    List products.

    - Public endpoint.
    - Filters: price_min/price_max, rating_filter, name (substring),
      category, exclude (product id).
    - Sorting: sort_by in createdAt|view|sold|price, order asc|desc.
    """
    return ApiResponse(
        message="Products loaded",
        data=service.list_products(session, params),
    )


# Must stay above /{product_id}
@router.get("/flash-sale/active", response_model=ApiResponse[FlashSaleWithItems])
def get_active_flash_sale(session: Session = Depends(get_session)):
    """
    The flash sale running right now, with its items; data is null when
    no sale is running.
    """
    sale = flash_sale_service.get_active(session)
    message = "Active flash sale loaded" if sale else "No active flash sale"
    return ApiResponse(message=message, data=sale)


@router.get("/{product_id}", response_model=ApiResponse[ProductRead])
def get_product(
    product_id: int,
    session: Session = Depends(get_session),
):
    """
    Get a single product by id (increments its view counter).

    - Public endpoint.
    """
    return ApiResponse(message="Product loaded", data=service.get_product(session, product_id))


@router.get(
    "/{product_id}/availability",
    response_model=ApiResponse[ProductAvailability],
)
def check_availability(
    product_id: int,
    quantity: int = Query(default=1, ge=1),
    session: Session = Depends(get_session),
):
    return ApiResponse(
        message="Availability checked",
        data=service.check_availability(session, product_id, quantity),
    )


# -------- Categories --------


@categories_router.get("", response_model=ApiResponse[list[CategoryRead]])
def list_categories(session: Session = Depends(get_session)):
    return ApiResponse(message="Categories loaded", data=service.list_categories(session))


@categories_router.get("/{category_id}", response_model=ApiResponse[CategoryRead])
def get_category(
    category_id: int,
    session: Session = Depends(get_session),
):
    return ApiResponse(message="Category loaded", data=service.get_category(session, category_id))
