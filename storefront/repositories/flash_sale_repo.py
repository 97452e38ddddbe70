# storefront/repositories/flash_sale_repo.py
from datetime import datetime

from sqlalchemy import func
from sqlmodel import Session, select

from storefront.models.flash_sale import FlashSale, FlashSaleItem
from storefront.models.product import Product


class FlashSaleRepository:
    """
    Data access layer for flash sales and their items.
    """

    def get_by_id(self, session: Session, sale_id: int) -> FlashSale | None:
        return session.get(FlashSale, sale_id)

    def get_active_at(self, session: Session, now: datetime) -> FlashSale | None:
        """Most recently started sale whose window contains `now`."""
        stmt = (
            select(FlashSale)
            .where(
                FlashSale.is_active == True,  # noqa: E712
                FlashSale.start_time <= now,
                FlashSale.end_time > now,
            )
            .order_by(FlashSale.start_time.desc())
            .limit(1)
        )
        return session.exec(stmt).first()

    @staticmethod
    def _status_filter(stmt, status: str | None, now: datetime):
        if status == "active":
            stmt = stmt.where(
                FlashSale.is_active == True,  # noqa: E712
                FlashSale.start_time <= now,
                FlashSale.end_time > now,
            )
        elif status == "upcoming":
            stmt = stmt.where(FlashSale.start_time > now)
        elif status == "ended":
            stmt = stmt.where(FlashSale.end_time <= now)
        return stmt

    def list_sales(
        self,
        session: Session,
        *,
        now: datetime,
        skip: int = 0,
        limit: int = 10,
        search: str | None = None,
        status: str | None = None,
    ) -> list[FlashSale]:
        stmt = select(FlashSale)
        if search:
            stmt = stmt.where(FlashSale.name.ilike(f"%{search}%"))
        stmt = self._status_filter(stmt, status, now)
        stmt = (
            stmt.order_by(FlashSale.created_at.desc(), FlashSale.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def count(
        self,
        session: Session,
        *,
        now: datetime,
        search: str | None = None,
        status: str | None = None,
    ) -> int:
        stmt = select(func.count()).select_from(FlashSale)
        if search:
            stmt = stmt.where(FlashSale.name.ilike(f"%{search}%"))
        stmt = self._status_filter(stmt, status, now)
        return int(session.exec(stmt).one() or 0)

    def save(self, session: Session, sale: FlashSale) -> FlashSale:
        session.add(sale)
        session.commit()
        session.refresh(sale)
        return sale

    # ----- Items -----

    def list_items(
        self, session: Session, sale_id: int
    ) -> list[tuple[FlashSaleItem, Product]]:
        stmt = (
            select(FlashSaleItem, Product)
            .join(Product, Product.id == FlashSaleItem.product_id)
            .where(FlashSaleItem.flash_sale_id == sale_id)
            .order_by(FlashSaleItem.id)
        )
        return list(session.exec(stmt).all())

    def get_item(
        self, session: Session, sale_id: int, product_id: int
    ) -> FlashSaleItem | None:
        stmt = select(FlashSaleItem).where(
            FlashSaleItem.flash_sale_id == sale_id,
            FlashSaleItem.product_id == product_id,
        )
        return session.exec(stmt).first()

    def upsert_items(self, session: Session, items: list[FlashSaleItem]) -> None:
        """
        Insert items, or update sale_price/item_limit when the product is
        already in the sale. All-or-nothing.
        """
        try:
            for item in items:
                existing = self.get_item(session, item.flash_sale_id, item.product_id)
                if existing:
                    existing.sale_price = item.sale_price
                    existing.item_limit = item.item_limit
                    session.add(existing)
                else:
                    session.add(item)
                session.flush()
            session.commit()
        except Exception:
            session.rollback()
            raise

    def delete_item(self, session: Session, item: FlashSaleItem) -> None:
        session.delete(item)
        session.commit()
