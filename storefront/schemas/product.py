# storefront/schemas/product.py
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from storefront.schemas.common import Pagination

SortBy = Literal["createdAt", "view", "sold", "price"]
SortOrder = Literal["asc", "desc"]


# ----- Categories -----


class CategoryCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=255)
    image: str | None = None
    description: str | None = None

    @field_validator("name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class CategoryUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=255)
    image: str | None = None
    description: str | None = None

    @field_validator("name")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class CategoryRead(SQLModel):
    id: int
    name: str
    image: str | None = None
    description: str | None = None
    product_count: int | None = None
    created_at: datetime
    updated_at: datetime


# ----- Products -----


class ProductCreate(SQLModel):
    """
    Payload for creating a product (admin).
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=255)
    description: str | None = None
    category_id: int | None = None
    image: str | None = None
    images: list[str] = Field(default_factory=list)
    price: float = Field(gt=0)
    price_before_discount: float | None = Field(default=None, gt=0)
    quantity: int = Field(default=0, ge=0)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class ProductUpdate(SQLModel):
    """
    Partial update payload for products.
    All fields are optional.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=255)
    description: str | None = None
    category_id: int | None = None
    image: str | None = None
    images: list[str] | None = None
    price: float | None = Field(default=None, gt=0)
    price_before_discount: float | None = Field(default=None, gt=0)
    quantity: int | None = Field(default=None, ge=0)
    rating: float | None = Field(default=None, ge=0, le=5)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class ProductRead(SQLModel):
    """
    Product representation for clients.
    """

    id: int
    name: str
    description: str | None = None
    category_id: int | None = None
    category_name: str | None = None
    image: str | None = None
    images: list[str] = []
    price: float
    price_before_discount: float | None = None
    quantity: int
    sold: int
    view: int
    rating: float
    created_at: datetime
    updated_at: datetime


class ProductListParams(SQLModel):
    """
    Query parameters for the catalog listing.

    Filters are optional; unset filters are not applied.
    """

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=30, ge=1, le=100)
    sort_by: SortBy = "createdAt"
    order: SortOrder = "desc"
    price_min: float | None = Field(default=None, ge=0)
    price_max: float | None = Field(default=None, ge=0)
    rating_filter: float | None = Field(default=None, ge=0, le=5)
    name: str | None = None
    category: int | None = None
    exclude: int | None = None


class ProductListData(SQLModel):
    products: list[ProductRead]
    pagination: Pagination


class ProductAvailability(SQLModel):
    """
    Stock check for a requested quantity.
    Field names follow the storefront client's camelCase contract.
    """

    available: bool
    availableQuantity: int
    requestedQuantity: int
    productName: str
