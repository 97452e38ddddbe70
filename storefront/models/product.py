# storefront/models/product.py
from datetime import datetime, timezone

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class Category(SQLModel, table=True):
    """
    Product category shown in the catalog sidebar.
    """

    __tablename__ = "categories"

    id: int | None = Field(default=None, primary_key=True)

    name: str = Field(
        max_length=255,
        unique=True,
        index=True,
    )

    image: str | None = None
    description: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class Product(SQLModel, table=True):
    """
    Product catalog entry.

    - quantity: units currently in stock
    - sold/view: counters used for "popular" / "best selling" sorting
    - images: gallery URLs stored as a JSON list
    """

    __tablename__ = "products"

    id: int | None = Field(default=None, primary_key=True)

    name: str = Field(
        max_length=255,
        index=True,
        description="Display name of the product",
    )

    description: str | None = None

    category_id: int | None = Field(
        default=None,
        foreign_key="categories.id",
        index=True,
    )

    image: str | None = Field(
        default=None,
        description="Main image URL",
    )

    images: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    price: float = Field(
        gt=0,
        index=True,
        description="Current selling price (VND)",
    )

    price_before_discount: float | None = Field(
        default=None,
        description="Original price shown struck through",
    )

    quantity: int = Field(
        default=0,
        ge=0,
        description="How many units currently in stock",
    )

    sold: int = Field(default=0, ge=0, index=True)
    view: int = Field(default=0, ge=0, index=True)
    rating: float = Field(default=0, ge=0, le=5, index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
