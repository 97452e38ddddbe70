# storefront/repositories/banner_repo.py
from sqlmodel import Session, select

from storefront.models.banner import Banner, BannerPosition


class BannerRepository:

    def get_by_id(self, session: Session, banner_id: int) -> Banner | None:
        return session.get(Banner, banner_id)

    def list_banners(
        self,
        session: Session,
        *,
        position: BannerPosition | None = None,
        only_active: bool = True,
    ) -> list[Banner]:
        """Lowest sort_order first; newer banners win ties."""
        stmt = select(Banner)
        if position is not None:
            stmt = stmt.where(Banner.position == position)
        if only_active:
            stmt = stmt.where(Banner.is_active == True)  # noqa: E712
        stmt = stmt.order_by(Banner.sort_order.asc(), Banner.id.desc())
        return list(session.exec(stmt).all())

    def save(self, session: Session, banner: Banner) -> Banner:
        session.add(banner)
        session.commit()
        session.refresh(banner)
        return banner

    def delete(self, session: Session, banner: Banner) -> None:
        session.delete(banner)
        session.commit()
