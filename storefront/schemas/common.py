# storefront/schemas/common.py
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """
    Envelope used by every endpoint:

        {"message": "...", "data": <payload or null>}
    """

    message: str
    data: T | None = None


class Pagination(BaseModel):
    """
    Paging block returned next to list payloads.

    page_size is the number of rows on *this* page:
        max(0, min(limit, total - (page - 1) * limit))
    """

    page: int
    limit: int
    page_size: int
    total: int


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    page_size = max(0, min(limit, total - (page - 1) * limit))
    return Pagination(page=page, limit=limit, page_size=page_size, total=total)
