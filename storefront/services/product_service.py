# storefront/services/product_service.py
import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from storefront.core.errors import InvalidState, NotFound, ValidationError
from storefront.models.product import Category, Product
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.common import build_pagination
from storefront.schemas.product import (
    CategoryCreate,
    CategoryRead,
    CategoryUpdate,
    ProductAvailability,
    ProductCreate,
    ProductListData,
    ProductListParams,
    ProductRead,
    ProductUpdate,
)

logger = logging.getLogger(__name__)


class ProductService:
    """
    Business logic for the catalog (products + categories).

    Responsibilities:
      - filtered / sorted / paginated listing
      - detail view with view counter
      - stock availability checks
      - admin-only CRUD (enforced at router via require_admin)
    """

    def __init__(self, repo: ProductRepository):
        self.repo = repo

    # ----- Helpers -----

    @staticmethod
    def _to_read(product: Product, category_name: str | None) -> ProductRead:
        return ProductRead(**product.model_dump(), category_name=category_name)

    def _ensure_category(self, session: Session, category_id: int | None) -> None:
        if category_id is not None and not self.repo.get_category(session, category_id):
            raise ValidationError(
                "Category does not exist",
                data={"category_id": category_id},
            )

    def _get_product(self, session: Session, product_id: int) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise NotFound("Product not found")
        return product

    # ----- Products -----

    def list_products(self, session: Session, params: ProductListParams) -> ProductListData:
        total = self.repo.count(session, params)
        rows = self.repo.list_products(session, params)
        return ProductListData(
            products=[self._to_read(p, name) for p, name in rows],
            pagination=build_pagination(params.page, params.limit, total),
        )

    def get_product(
        self, session: Session, product_id: int, count_view: bool = True
    ) -> ProductRead:
        """Product detail; each customer view bumps the view counter."""
        if count_view and self.repo.get_by_id(session, product_id) is not None:
            self.repo.increment_view(session, product_id)
        row = self.repo.get_with_category_name(session, product_id)
        if not row:
            raise NotFound("Product not found")
        product, category_name = row
        session.refresh(product)
        return self._to_read(product, category_name)

    def check_availability(
        self, session: Session, product_id: int, quantity: int
    ) -> ProductAvailability:
        product = self._get_product(session, product_id)
        return ProductAvailability(
            available=product.quantity >= quantity,
            availableQuantity=product.quantity,
            requestedQuantity=quantity,
            productName=product.name,
        )

    def create_product(self, session: Session, payload: ProductCreate) -> ProductRead:
        self._ensure_category(session, payload.category_id)
        product = self.repo.create(session, Product(**payload.model_dump()))
        logger.info("Created product %s (%s)", product.id, product.name)
        return self.get_product(session, product.id, count_view=False)

    def update_product(
        self,
        session: Session,
        product_id: int,
        payload: ProductUpdate,
    ) -> ProductRead:
        """Partial update; only fields sent by the client are touched."""
        product = self._get_product(session, product_id)
        changes = payload.model_dump(exclude_unset=True)
        if "category_id" in changes:
            self._ensure_category(session, changes["category_id"])

        for field, value in changes.items():
            setattr(product, field, value)
        product.updated_at = datetime.now(timezone.utc)

        self.repo.update(session, product)
        return self.get_product(session, product_id, count_view=False)

    def delete_product(self, session: Session, product_id: int) -> None:
        product = self._get_product(session, product_id)
        try:
            self.repo.delete(session, product)
        except IntegrityError:
            # Still referenced by orders, carts or flash sales
            session.rollback()
            raise InvalidState("Product is referenced by existing orders")
        logger.info("Deleted product %s", product_id)

    # ----- Categories -----

    def list_categories(self, session: Session) -> list[CategoryRead]:
        return [
            CategoryRead(**c.model_dump(), product_count=int(n))
            for c, n in self.repo.list_categories_with_counts(session)
        ]

    def get_category(self, session: Session, category_id: int) -> CategoryRead:
        category = self.repo.get_category(session, category_id)
        if not category:
            raise NotFound("Category not found")
        return CategoryRead(
            **category.model_dump(),
            product_count=self.repo.count_products_in_category(session, category_id),
        )

    def create_category(self, session: Session, payload: CategoryCreate) -> CategoryRead:
        if self.repo.get_category_by_name(session, payload.name):
            raise ValidationError(
                "Category name already exists",
                data={"name": payload.name},
            )
        category = self.repo.save_category(session, Category(**payload.model_dump()))
        return CategoryRead(**category.model_dump(), product_count=0)

    def update_category(
        self,
        session: Session,
        category_id: int,
        payload: CategoryUpdate,
    ) -> CategoryRead:
        category = self.repo.get_category(session, category_id)
        if not category:
            raise NotFound("Category not found")

        changes = payload.model_dump(exclude_unset=True)
        new_name = changes.get("name")
        if new_name and new_name != category.name:
            if self.repo.get_category_by_name(session, new_name):
                raise ValidationError(
                    "Category name already exists",
                    data={"name": new_name},
                )

        for field, value in changes.items():
            setattr(category, field, value)
        category.updated_at = datetime.now(timezone.utc)
        self.repo.save_category(session, category)
        return self.get_category(session, category_id)

    def delete_category(self, session: Session, category_id: int) -> None:
        """
        Raises:
            InvalidState: if products still belong to the category.
        """
        category = self.repo.get_category(session, category_id)
        if not category:
            raise NotFound("Category not found")
        in_use = self.repo.count_products_in_category(session, category_id)
        if in_use:
            raise InvalidState(
                "Category still has products",
                data={"product_count": in_use},
            )
        self.repo.delete_category(session, category)
