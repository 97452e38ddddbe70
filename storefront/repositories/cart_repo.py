# storefront/repositories/cart_repo.py
from sqlalchemy import delete, func
from sqlmodel import Session, select

from storefront.models.cart import CartItem
from storefront.models.product import Product


class CartRepository:

    # Get items for a user, newest first, joined with the product row
    def list_for_user(
        self, session: Session, user_id: int
    ) -> list[tuple[CartItem, Product]]:
        stmt = (
            select(CartItem, Product)
            .join(Product, Product.id == CartItem.product_id)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.created_at.desc(), CartItem.id.desc())
        )
        return list(session.exec(stmt).all())

    def get_item(
        self, session: Session, user_id: int, product_id: int
    ) -> CartItem | None:
        stmt = select(CartItem).where(
            CartItem.user_id == user_id, CartItem.product_id == product_id
        )
        return session.exec(stmt).first()

    def get_user_item(
        self, session: Session, user_id: int, item_id: int
    ) -> CartItem | None:
        """Cart row by id, only if it belongs to the user."""
        stmt = select(CartItem).where(
            CartItem.id == item_id, CartItem.user_id == user_id
        )
        return session.exec(stmt).first()

    def count_quantity(self, session: Session, user_id: int) -> int:
        stmt = select(func.coalesce(func.sum(CartItem.quantity), 0)).where(
            CartItem.user_id == user_id
        )
        return int(session.exec(stmt).one() or 0)

    # CRUD
    def save(self, session: Session, item: CartItem) -> CartItem:
        session.add(item)
        session.commit()
        session.refresh(item)
        return item

    def delete(self, session: Session, item: CartItem) -> None:
        session.delete(item)
        session.commit()

    def clear_user_cart(self, session: Session, user_id: int) -> None:
        session.execute(delete(CartItem).where(CartItem.user_id == user_id))
        session.commit()

    def remove_products(
        self, session: Session, user_id: int, product_ids: list[int]
    ) -> None:
        """
        Drop the given products from the user's cart.
        No commit: used inside checkout's transaction.
        """
        session.execute(
            delete(CartItem).where(
                CartItem.user_id == user_id,
                CartItem.product_id.in_(product_ids),
            )
        )
