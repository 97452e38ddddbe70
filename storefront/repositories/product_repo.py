# storefront/repositories/product_repo.py
from sqlalchemy import func, update
from sqlmodel import Session, select

from storefront.models.product import Category, Product
from storefront.schemas.product import ProductListParams

# sort_by value -> column
SORT_COLUMNS = {
    "createdAt": Product.created_at,
    "view": Product.view,
    "sold": Product.sold,
    "price": Product.price,
}


class ProductRepository:
    """
    Data access layer for Product & Category.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    # ----- Products -----

    def get_by_id(self, session: Session, product_id: int) -> Product | None:
        return session.get(Product, product_id)

    def get_with_category_name(
        self, session: Session, product_id: int
    ) -> tuple[Product, str | None] | None:
        stmt = (
            select(Product, Category.name)
            .join(Category, Category.id == Product.category_id, isouter=True)
            .where(Product.id == product_id)
        )
        return session.exec(stmt).first()

    @staticmethod
    def _apply_filters(stmt, params: ProductListParams):
        if params.category is not None:
            stmt = stmt.where(Product.category_id == params.category)
        if params.exclude is not None:
            stmt = stmt.where(Product.id != params.exclude)
        if params.rating_filter is not None:
            stmt = stmt.where(Product.rating >= params.rating_filter)
        if params.price_min is not None:
            stmt = stmt.where(Product.price >= params.price_min)
        if params.price_max is not None:
            stmt = stmt.where(Product.price <= params.price_max)
        if params.name:
            stmt = stmt.where(Product.name.ilike(f"%{params.name}%"))
        return stmt

    def list_products(
        self,
        session: Session,
        params: ProductListParams,
    ) -> list[tuple[Product, str | None]]:
        """
        Filtered, sorted page of products with their category name.
        Ties are broken by id so paging is stable.
        """
        column = SORT_COLUMNS[params.sort_by]
        direction = column.asc() if params.order == "asc" else column.desc()
        tiebreak = Product.id.asc() if params.order == "asc" else Product.id.desc()

        stmt = select(Product, Category.name).join(
            Category, Category.id == Product.category_id, isouter=True
        )
        stmt = self._apply_filters(stmt, params)
        stmt = (
            stmt.order_by(direction, tiebreak)
            .offset((params.page - 1) * params.limit)
            .limit(params.limit)
        )
        return list(session.exec(stmt).all())

    def count(self, session: Session, params: ProductListParams) -> int:
        stmt = self._apply_filters(select(func.count()).select_from(Product), params)
        return int(session.exec(stmt).one() or 0)

    def create(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def update(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def delete(self, session: Session, product: Product) -> None:
        session.delete(product)
        session.commit()

    def increment_view(self, session: Session, product_id: int) -> None:
        session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(view=Product.view + 1)
        )
        session.commit()

    # ----- Stock (no commit; part of the caller's transaction) -----

    def reserve_stock(self, session: Session, product_id: int, quantity: int) -> bool:
        """
        Atomically take `quantity` units out of stock.

        Returns False (and changes nothing) if fewer units are available.
        """
        result = session.execute(
            update(Product)
            .where(Product.id == product_id, Product.quantity >= quantity)
            .values(quantity=Product.quantity - quantity, sold=Product.sold + quantity)
        )
        return result.rowcount > 0

    def release_stock(self, session: Session, product_id: int, quantity: int) -> None:
        session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(quantity=Product.quantity + quantity, sold=Product.sold - quantity)
        )

    # ----- Categories -----

    def get_category(self, session: Session, category_id: int) -> Category | None:
        return session.get(Category, category_id)

    def get_category_by_name(self, session: Session, name: str) -> Category | None:
        stmt = select(Category).where(Category.name == name)
        return session.exec(stmt).first()

    def list_categories_with_counts(
        self, session: Session
    ) -> list[tuple[Category, int]]:
        stmt = (
            select(Category, func.count(Product.id))
            .join(Product, Product.category_id == Category.id, isouter=True)
            .group_by(Category.id)
            .order_by(Category.name)
        )
        return list(session.exec(stmt).all())

    def count_products_in_category(self, session: Session, category_id: int) -> int:
        stmt = (
            select(func.count())
            .select_from(Product)
            .where(Product.category_id == category_id)
        )
        return int(session.exec(stmt).one() or 0)

    def save_category(self, session: Session, category: Category) -> Category:
        session.add(category)
        session.commit()
        session.refresh(category)
        return category

    def delete_category(self, session: Session, category: Category) -> None:
        session.delete(category)
        session.commit()
