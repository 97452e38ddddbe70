# storefront/repositories/order_repo.py
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import String, cast, func, or_, update
from sqlmodel import Session, select

from storefront.models.order import (
    Order,
    OrderItem,
    OrderStatus,
    OrderTransaction,
    PaymentStatus,
)
from storefront.models.user import User


class OrderRepository:
    """
    Data access layer for orders, order_items and order_transactions.

    NOTE:
      - No commits here; order creation and status changes are multi-step
        transactions. The service is responsible for calling session.commit().
    """

    # ---- Orders ----

    def get_by_id(self, session: Session, order_id: int) -> Order | None:
        return session.get(Order, order_id)

    def get_for_user(
        self, session: Session, order_id: int, user_id: int
    ) -> Order | None:
        stmt = select(Order).where(Order.id == order_id, Order.user_id == user_id)
        return session.exec(stmt).first()

    def list_for_user(self, session: Session, user_id: int) -> list[Order]:
        stmt = (
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        return list(session.exec(stmt).all())

    @staticmethod
    def _admin_filters(
        stmt,
        order_status: OrderStatus | None,
        payment_status: PaymentStatus | None,
        search: str | None,
    ):
        if order_status is not None:
            stmt = stmt.where(Order.order_status == order_status)
        if payment_status is not None:
            stmt = stmt.where(Order.payment_status == payment_status)
        if search:
            term = f"%{search}%"
            stmt = stmt.where(
                or_(
                    User.name.ilike(term),
                    User.email.ilike(term),
                    cast(Order.id, String) == search,
                )
            )
        return stmt

    def list_admin(
        self,
        session: Session,
        *,
        skip: int,
        limit: int,
        order_status: OrderStatus | None = None,
        payment_status: PaymentStatus | None = None,
        search: str | None = None,
    ) -> list[tuple[Order, User | None]]:
        stmt = select(Order, User).join(User, User.id == Order.user_id, isouter=True)
        stmt = self._admin_filters(stmt, order_status, payment_status, search)
        stmt = (
            stmt.order_by(Order.created_at.desc(), Order.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def count_admin(
        self,
        session: Session,
        *,
        order_status: OrderStatus | None = None,
        payment_status: PaymentStatus | None = None,
        search: str | None = None,
    ) -> int:
        stmt = select(func.count(Order.id)).join(
            User, User.id == Order.user_id, isouter=True
        )
        stmt = self._admin_filters(stmt, order_status, payment_status, search)
        return int(session.exec(stmt).one() or 0)

    def create_order(self, session: Session, order: Order) -> Order:
        """
        Insert an Order without committing, but ensure id is populated.
        """
        session.add(order)
        session.flush()  # Assign PK
        session.refresh(order)
        return order

    def update_order(self, session: Session, order: Order) -> Order:
        order.updated_at = datetime.now(timezone.utc)
        session.add(order)
        session.flush()
        session.refresh(order)
        return order

    def compare_and_set(
        self,
        session: Session,
        order_id: int,
        field: str,
        expected: Any,
        new: Any,
    ) -> bool:
        """
        Set orders.<field> = new only if it still equals `expected`.

        Returns False when another writer got there first.
        """
        column = getattr(Order, field)
        result = session.execute(
            update(Order)
            .where(Order.id == order_id, column == expected)
            .values({field: new, "updated_at": datetime.now(timezone.utc)})
        )
        return result.rowcount == 1

    # ---- Order items ----

    def list_items_for_order(
        self,
        session: Session,
        order_id: int,
    ) -> list[OrderItem]:
        stmt = (
            select(OrderItem)
            .where(OrderItem.order_id == order_id)
            .order_by(OrderItem.id)
        )
        return list(session.exec(stmt).all())

    def list_items_for_orders(
        self,
        session: Session,
        order_ids: list[int],
    ) -> dict[int, list[OrderItem]]:
        grouped: dict[int, list[OrderItem]] = {oid: [] for oid in order_ids}
        if not order_ids:
            return grouped
        stmt = (
            select(OrderItem)
            .where(OrderItem.order_id.in_(order_ids))
            .order_by(OrderItem.id)
        )
        for item in session.exec(stmt).all():
            grouped[item.order_id].append(item)
        return grouped

    def create_items(
        self,
        session: Session,
        items: list[OrderItem],
    ) -> list[OrderItem]:
        session.add_all(items)
        session.flush()
        for item in items:
            session.refresh(item)
        return items

    # ---- Audit trail ----

    def add_transaction(
        self, session: Session, transaction: OrderTransaction
    ) -> OrderTransaction:
        session.add(transaction)
        session.flush()
        return transaction

    def list_transactions(
        self, session: Session, order_id: int
    ) -> list[tuple[OrderTransaction, User | None]]:
        """Audit rows for an order, newest first, with the acting admin."""
        stmt = (
            select(OrderTransaction, User)
            .join(User, User.id == OrderTransaction.admin_id, isouter=True)
            .where(OrderTransaction.order_id == order_id)
            .order_by(OrderTransaction.created_at.desc(), OrderTransaction.id.desc())
        )
        return list(session.exec(stmt).all())
