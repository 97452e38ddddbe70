# storefront/services/cart_service.py
import logging
from datetime import datetime, timezone

from sqlmodel import Session

from storefront.core.errors import InsufficientStock, NotFound
from storefront.models.cart import CartItem
from storefront.models.product import Product
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.cart import (
    CartCount,
    CartItemChange,
    CartItemCreate,
    CartItemRead,
    CartItemUpdate,
    CartSummary,
)

logger = logging.getLogger(__name__)


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - validate product existence
      - enforce cart quantity <= product stock (InsufficientStock otherwise)
      - price lines from the current product row
      - compute line totals and cart totals
    """

    def __init__(self, cart_repo: CartRepository, product_repo: ProductRepository):
        self.cart_repo = cart_repo
        self.product_repo = product_repo

    # ---- internal helpers ----

    def _get_product(self, session: Session, product_id: int) -> Product:
        product = self.product_repo.get_by_id(session, product_id)
        if not product:
            raise NotFound("Product not found")
        return product

    @staticmethod
    def _check_stock(product: Product, quantity: int) -> None:
        if quantity > product.quantity:
            logger.info(
                "Cart quantity %s exceeds stock %s for product %s",
                quantity, product.quantity, product.id,
            )
            raise InsufficientStock(product.name, product.quantity)

    # ---- public operations ----

    def get_cart_summary(self, session: Session, user_id: int) -> CartSummary:
        """
        Return full cart summary:
          - list of CartItemRead (with line_total)
          - total_quantity
          - total_price
        """
        rows = self.cart_repo.list_for_user(session, user_id)

        item_reads: list[CartItemRead] = []
        total_qty = 0
        total_price = 0.0

        for item, product in rows:
            line_total = item.quantity * product.price
            total_qty += item.quantity
            total_price += line_total

            item_reads.append(
                CartItemRead(
                    id=item.id,
                    product_id=product.id,
                    product_name=product.name,
                    product_image=product.image,
                    price=product.price,
                    price_before_discount=product.price_before_discount,
                    product_quantity=product.quantity,
                    quantity=item.quantity,
                    line_total=line_total,
                    created_at=item.created_at,
                    updated_at=item.updated_at,
                )
            )

        return CartSummary(
            items=item_reads,
            total_quantity=total_qty,
            total_price=total_price,
        )

    def add_to_cart(
        self,
        session: Session,
        user_id: int,
        payload: CartItemCreate,
    ) -> CartItemChange:
        """
        Add a product to the user's cart, merging with an existing line.

        Rules:
          - product must exist
          - quantity + existing quantity <= product stock
        """
        product = self._get_product(session, payload.product_id)
        existing = self.cart_repo.get_item(session, user_id, payload.product_id)

        if existing:
            new_qty = existing.quantity + payload.quantity
            self._check_stock(product, new_qty)
            existing.quantity = new_qty
            existing.updated_at = datetime.now(timezone.utc)
            item = self.cart_repo.save(session, existing)
        else:
            self._check_stock(product, payload.quantity)
            item = self.cart_repo.save(
                session,
                CartItem(
                    user_id=user_id,
                    product_id=payload.product_id,
                    quantity=payload.quantity,
                ),
            )

        return CartItemChange(cart_item_id=item.id, quantity=item.quantity)

    def update_quantity(
        self,
        session: Session,
        user_id: int,
        item_id: int,
        payload: CartItemUpdate,
    ) -> CartItemChange:
        """
        Set the quantity of one cart line.

        404 if the line is not in this user's cart.
        """
        item = self.cart_repo.get_user_item(session, user_id, item_id)
        if not item:
            raise NotFound("Cart item not found")

        product = self._get_product(session, item.product_id)
        self._check_stock(product, payload.quantity)

        item.quantity = payload.quantity
        item.updated_at = datetime.now(timezone.utc)
        item = self.cart_repo.save(session, item)
        return CartItemChange(cart_item_id=item.id, quantity=item.quantity)

    def remove_item(self, session: Session, user_id: int, item_id: int) -> None:
        item = self.cart_repo.get_user_item(session, user_id, item_id)
        if not item:
            raise NotFound("Cart item not found")
        self.cart_repo.delete(session, item)

    def clear_cart(self, session: Session, user_id: int) -> None:
        self.cart_repo.clear_user_cart(session, user_id)

    def count(self, session: Session, user_id: int) -> CartCount:
        return CartCount(count=self.cart_repo.count_quantity(session, user_id))
