# storefront/services/flash_sale_service.py
import logging
from datetime import datetime, timezone

from sqlmodel import Session

from storefront.core.errors import NotFound, ValidationError
from storefront.models.flash_sale import FlashSale, FlashSaleItem, as_utc
from storefront.repositories.flash_sale_repo import FlashSaleRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.common import build_pagination
from storefront.schemas.flash_sale import (
    FlashSaleCreate,
    FlashSaleItemRead,
    FlashSaleItemsAdd,
    FlashSaleListData,
    FlashSaleRead,
    FlashSaleStatusFilter,
    FlashSaleUpdate,
    FlashSaleWithItems,
)

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FlashSaleService:
    """
    Flash sale campaigns.

    Customers only see the active sale; admins manage the rest.
    """

    def __init__(self, repo: FlashSaleRepository, product_repo: ProductRepository):
        self.repo = repo
        self.product_repo = product_repo

    def _with_items(self, session: Session, sale: FlashSale) -> FlashSaleWithItems:
        items = [
            FlashSaleItemRead(
                **item.model_dump(),
                product_name=product.name,
                product_image=product.image,
                product_sold=product.sold,
            )
            for item, product in self.repo.list_items(session, sale.id)
        ]
        return FlashSaleWithItems(**sale.model_dump(), items=items)

    def _get_sale(self, session: Session, sale_id: int) -> FlashSale:
        sale = self.repo.get_by_id(session, sale_id)
        if not sale:
            raise NotFound("Flash sale not found")
        return sale

    # ----- Public -----

    def get_active(
        self, session: Session, now: datetime | None = None
    ) -> FlashSaleWithItems | None:
        """The most recently started sale running right now, or None."""
        sale = self.repo.get_active_at(session, as_utc(now) if now else utcnow())
        if sale is None:
            return None
        return self._with_items(session, sale)

    # ----- Admin -----

    def list_sales(
        self,
        session: Session,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
        status: FlashSaleStatusFilter | None = None,
    ) -> FlashSaleListData:
        now = utcnow()
        total = self.repo.count(session, now=now, search=search, status=status)
        sales = self.repo.list_sales(
            session,
            now=now,
            skip=(page - 1) * limit,
            limit=limit,
            search=search,
            status=status,
        )
        return FlashSaleListData(
            flash_sales=[FlashSaleRead(**s.model_dump()) for s in sales],
            pagination=build_pagination(page, limit, total),
        )

    def get_sale(self, session: Session, sale_id: int) -> FlashSaleWithItems:
        return self._with_items(session, self._get_sale(session, sale_id))

    def create_sale(self, session: Session, payload: FlashSaleCreate) -> FlashSaleWithItems:
        sale = self.repo.save(
            session,
            FlashSale(
                name=payload.name.strip(),
                start_time=as_utc(payload.start_time),
                end_time=as_utc(payload.end_time),
                is_active=payload.is_active,
            ),
        )
        logger.info("Created flash sale %s (%s - %s)", sale.id, sale.start_time, sale.end_time)
        return self._with_items(session, sale)

    def update_sale(
        self,
        session: Session,
        sale_id: int,
        payload: FlashSaleUpdate,
    ) -> FlashSaleWithItems:
        sale = self._get_sale(session, sale_id)
        changes = payload.model_dump(exclude_unset=True)
        for field in ("start_time", "end_time"):
            if changes.get(field) is not None:
                changes[field] = as_utc(changes[field])

        # older sqlmodel releases load these columns naive
        start = as_utc(changes.get("start_time") or sale.start_time)
        end = as_utc(changes.get("end_time") or sale.end_time)
        if end <= start:
            raise ValidationError(
                "end_time must be after start_time",
                data={"start_time": start.isoformat(), "end_time": end.isoformat()},
            )

        for field, value in changes.items():
            if value is not None:
                setattr(sale, field, value)
        sale.updated_at = datetime.now(timezone.utc)
        sale = self.repo.save(session, sale)
        return self._with_items(session, sale)

    def add_items(
        self,
        session: Session,
        sale_id: int,
        payload: FlashSaleItemsAdd,
    ) -> FlashSaleWithItems:
        """
        Put products on sale. A product already in the sale gets its
        sale_price / item_limit replaced.
        """
        sale = self._get_sale(session, sale_id)
        for item in payload.items:
            product = self.product_repo.get_by_id(session, item.product_id)
            if not product:
                raise NotFound(f"Product {item.product_id} not found")
            if item.sale_price >= product.price:
                raise ValidationError(
                    "Sale price must be lower than the product price",
                    data={"product_id": item.product_id, "price": product.price},
                )

        self.repo.upsert_items(
            session,
            [
                FlashSaleItem(flash_sale_id=sale.id, **item.model_dump())
                for item in payload.items
            ],
        )
        session.refresh(sale)
        return self._with_items(session, sale)

    def remove_item(self, session: Session, sale_id: int, product_id: int) -> None:
        self._get_sale(session, sale_id)
        item = self.repo.get_item(session, sale_id, product_id)
        if not item:
            raise NotFound("Product is not in this flash sale")
        self.repo.delete_item(session, item)
