# storefront/routers/admin_catalog.py
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from storefront.core.auth import require_admin
from storefront.database import get_session
from storefront.repositories.flash_sale_repo import FlashSaleRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.common import ApiResponse
from storefront.schemas.flash_sale import (
    FlashSaleCreate,
    FlashSaleItemsAdd,
    FlashSaleListData,
    FlashSaleStatusFilter,
    FlashSaleUpdate,
    FlashSaleWithItems,
)
from storefront.schemas.product import (
    CategoryCreate,
    CategoryRead,
    CategoryUpdate,
    ProductCreate,
    ProductRead,
    ProductUpdate,
)
from storefront.services.flash_sale_service import FlashSaleService
from storefront.services.product_service import ProductService

router = APIRouter(
    prefix="/admin",
    tags=["Admin Catalog"],
    dependencies=[Depends(require_admin)],
)

product_repo = ProductRepository()
service = ProductService(product_repo)
flash_sale_service = FlashSaleService(FlashSaleRepository(), product_repo)


# -------- Products --------


@router.post(
    "/products",
    response_model=ApiResponse[ProductRead],
    status_code=status.HTTP_201_CREATED,
)
def create_product(
    payload: ProductCreate,
    session: Session = Depends(get_session),
):
    """
    Create a new product (admin only).
    """
    return ApiResponse(message="Product created", data=service.create_product(session, payload))


@router.put("/products/{product_id}", response_model=ApiResponse[ProductRead])
def update_product(
    product_id: int,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
):
    """
    Partially update a product (admin only).
    """
    return ApiResponse(
        message="Product updated",
        data=service.update_product(session, product_id, payload),
    )


@router.delete("/products/{product_id}", response_model=ApiResponse[None])
def delete_product(
    product_id: int,
    session: Session = Depends(get_session),
):
    service.delete_product(session, product_id)
    return ApiResponse(message="Product deleted")


# -------- Categories --------


@router.post(
    "/categories",
    response_model=ApiResponse[CategoryRead],
    status_code=status.HTTP_201_CREATED,
)
def create_category(
    payload: CategoryCreate,
    session: Session = Depends(get_session),
):
    return ApiResponse(message="Category created", data=service.create_category(session, payload))


@router.put("/categories/{category_id}", response_model=ApiResponse[CategoryRead])
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    session: Session = Depends(get_session),
):
    return ApiResponse(
        message="Category updated",
        data=service.update_category(session, category_id, payload),
    )


@router.delete("/categories/{category_id}", response_model=ApiResponse[None])
def delete_category(
    category_id: int,
    session: Session = Depends(get_session),
):
    """
    Delete a category; refused while products still use it.
    """
    service.delete_category(session, category_id)
    return ApiResponse(message="Category deleted")


# -------- Flash sales --------


@router.get("/flash-sales", response_model=ApiResponse[FlashSaleListData])
def list_flash_sales(
    session: Session = Depends(get_session),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    search: str | None = None,
    status: FlashSaleStatusFilter | None = None,
):
    return ApiResponse(
        message="Flash sales loaded",
        data=flash_sale_service.list_sales(
            session, page=page, limit=limit, search=search, status=status
        ),
    )


@router.post(
    "/flash-sales",
    response_model=ApiResponse[FlashSaleWithItems],
    status_code=status.HTTP_201_CREATED,
)
def create_flash_sale(
    payload: FlashSaleCreate,
    session: Session = Depends(get_session),
):
    return ApiResponse(
        message="Flash sale created",
        data=flash_sale_service.create_sale(session, payload),
    )


@router.get("/flash-sales/{sale_id}", response_model=ApiResponse[FlashSaleWithItems])
def get_flash_sale(
    sale_id: int,
    session: Session = Depends(get_session),
):
    return ApiResponse(message="Flash sale loaded", data=flash_sale_service.get_sale(session, sale_id))


@router.put("/flash-sales/{sale_id}", response_model=ApiResponse[FlashSaleWithItems])
def update_flash_sale(
    sale_id: int,
    payload: FlashSaleUpdate,
    session: Session = Depends(get_session),
):
    return ApiResponse(
        message="Flash sale updated",
        data=flash_sale_service.update_sale(session, sale_id, payload),
    )


@router.post("/flash-sales/{sale_id}/items", response_model=ApiResponse[FlashSaleWithItems])
def add_flash_sale_items(
    sale_id: int,
    payload: FlashSaleItemsAdd,
    session: Session = Depends(get_session),
):
    """
    Add products to a sale; re-adding a product replaces its sale price.
    """
    return ApiResponse(
        message="Flash sale items saved",
        data=flash_sale_service.add_items(session, sale_id, payload),
    )


@router.delete("/flash-sales/{sale_id}/items/{product_id}", response_model=ApiResponse[None])
def remove_flash_sale_item(
    sale_id: int,
    product_id: int,
    session: Session = Depends(get_session),
):
    flash_sale_service.remove_item(session, sale_id, product_id)
    return ApiResponse(message="Flash sale item removed")
