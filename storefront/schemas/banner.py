# storefront/schemas/banner.py
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from storefront.models.banner import BannerPosition


class BannerCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    image: str = Field(max_length=255)
    link: str | None = Field(default=None, max_length=255)
    position: BannerPosition = BannerPosition.main
    sort_order: int = 0
    is_active: bool = True

    @field_validator("image")
    @classmethod
    def image_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("image cannot be empty")
        return v


class BannerUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    image: str | None = Field(default=None, max_length=255)
    link: str | None = Field(default=None, max_length=255)
    position: BannerPosition | None = None
    sort_order: int | None = None
    is_active: bool | None = None

    @field_validator("image")
    @classmethod
    def image_not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("image cannot be empty")
        return v


class BannerRead(SQLModel):
    id: int
    image: str
    link: str | None = None
    position: BannerPosition
    sort_order: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
