# storefront/services/banner_service.py
import logging
from datetime import datetime, timezone

from sqlmodel import Session

from storefront.core.errors import NotFound
from storefront.models.banner import Banner, BannerPosition
from storefront.repositories.banner_repo import BannerRepository
from storefront.schemas.banner import BannerCreate, BannerRead, BannerUpdate

logger = logging.getLogger(__name__)


class BannerService:
    """Homepage banners: public listing and admin management."""

    def __init__(self, repo: BannerRepository):
        self.repo = repo

    def _get(self, session: Session, banner_id: int) -> Banner:
        banner = self.repo.get_by_id(session, banner_id)
        if not banner:
            raise NotFound("Banner not found")
        return banner

    def list_banners(
        self,
        session: Session,
        position: BannerPosition | None = BannerPosition.main,
        include_inactive: bool = False,
    ) -> list[BannerRead]:
        banners = self.repo.list_banners(
            session, position=position, only_active=not include_inactive
        )
        return [BannerRead(**b.model_dump()) for b in banners]

    def create_banner(self, session: Session, payload: BannerCreate) -> BannerRead:
        banner = self.repo.save(session, Banner(**payload.model_dump()))
        logger.info("Created %s banner %s", banner.position.value, banner.id)
        return BannerRead(**banner.model_dump())

    def update_banner(
        self,
        session: Session,
        banner_id: int,
        payload: BannerUpdate,
    ) -> BannerRead:
        banner = self._get(session, banner_id)
        for field, value in payload.model_dump(exclude_unset=True).items():
            # link may be cleared; the other columns are required
            if value is None and field != "link":
                continue
            setattr(banner, field, value)
        banner.updated_at = datetime.now(timezone.utc)
        banner = self.repo.save(session, banner)
        return BannerRead(**banner.model_dump())

    def delete_banner(self, session: Session, banner_id: int) -> None:
        banner = self._get(session, banner_id)
        self.repo.delete(session, banner)
        logger.info("Deleted banner %s", banner_id)
