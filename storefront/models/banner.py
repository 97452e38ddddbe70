# storefront/models/banner.py
from datetime import datetime, timezone
from enum import Enum

from sqlmodel import SQLModel, Field


class BannerPosition(str, Enum):
    main = "main"  # homepage carousel
    right = "right"  # side slots next to the carousel


class Banner(SQLModel, table=True):
    """
    Homepage promotional banner. `image` is a URL or path the frontend
    resolves; uploads are handled outside this service.
    """

    __tablename__ = "banners"

    id: int | None = Field(default=None, primary_key=True)

    image: str = Field(max_length=255)
    link: str | None = Field(default=None, max_length=255)
    position: BannerPosition = Field(default=BannerPosition.main, index=True)
    sort_order: int = Field(default=0)
    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
