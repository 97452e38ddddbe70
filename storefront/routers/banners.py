# storefront/routers/banners.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from storefront.core.auth import require_admin
from storefront.database import get_session
from storefront.models.banner import BannerPosition
from storefront.repositories.banner_repo import BannerRepository
from storefront.schemas.banner import BannerCreate, BannerRead, BannerUpdate
from storefront.schemas.common import ApiResponse
from storefront.services.banner_service import BannerService

router = APIRouter(prefix="/banners", tags=["Banners"])
admin_router = APIRouter(
    prefix="/admin/banners",
    tags=["Admin Banners"],
    dependencies=[Depends(require_admin)],
)

service = BannerService(BannerRepository())


# -------- Public --------


@router.get("", response_model=ApiResponse[list[BannerRead]])
def list_banners(
    position: BannerPosition = BannerPosition.main,
    session: Session = Depends(get_session),
):
    """
    Active banners for one homepage slot, in display order.
    """
    return ApiResponse(
        message="Banners loaded",
        data=service.list_banners(session, position=position),
    )


# -------- Admin --------


@admin_router.get("", response_model=ApiResponse[list[BannerRead]])
def list_all_banners(
    position: BannerPosition | None = None,
    session: Session = Depends(get_session),
):
    """
    Every banner, hidden ones included; all positions unless filtered.
    """
    return ApiResponse(
        message="Banners loaded",
        data=service.list_banners(session, position=position, include_inactive=True),
    )


@admin_router.post(
    "",
    response_model=ApiResponse[BannerRead],
    status_code=status.HTTP_201_CREATED,
)
def create_banner(
    payload: BannerCreate,
    session: Session = Depends(get_session),
):
    return ApiResponse(message="Banner created", data=service.create_banner(session, payload))


@admin_router.put("/{banner_id}", response_model=ApiResponse[BannerRead])
def update_banner(
    banner_id: int,
    payload: BannerUpdate,
    session: Session = Depends(get_session),
):
    return ApiResponse(
        message="Banner updated",
        data=service.update_banner(session, banner_id, payload),
    )


@admin_router.delete("/{banner_id}", response_model=ApiResponse[None])
def delete_banner(
    banner_id: int,
    session: Session = Depends(get_session),
):
    service.delete_banner(session, banner_id)
    return ApiResponse(message="Banner deleted")
