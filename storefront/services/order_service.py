# storefront/services/order_service.py
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from sqlmodel import Session

from storefront.core.errors import (
    ConflictError,
    InsufficientStock,
    InvalidState,
    NotFound,
    ValidationError,
)
from storefront.core.stripe_client import StripeGateway, get_payment_gateway
from storefront.models.order import (
    Order,
    OrderItem,
    OrderStatus,
    OrderTransaction,
    PaymentMethod,
    PaymentStatus,
    TransactionType,
)
from storefront.models.user import User
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.setting_repo import SettingRepository
from storefront.schemas.common import build_pagination
from storefront.schemas.order import (
    AdminOrderDetail,
    AdminOrderListData,
    AdminOrderRead,
    MomoSettings,
    OrderCreate,
    OrderCreated,
    OrderItemRead,
    OrderRead,
    OrderStatusUpdate,
    OrderTransactionRead,
    StripePaymentIntent,
)
from storefront.services.order_lifecycle import (
    CANCELLABLE_ORDER_STATES,
    TERMINAL_ORDER_STATES,
    OrderLocks,
    order_locks,
    check_order_transition,
    check_payment_transition,
)

logger = logging.getLogger(__name__)

# Allowed gap between the client's total_amount and the recomputed sum
TOTAL_TOLERANCE = 0.01

MOMO_SETTINGS_KEY = "momo"


class OrderService:
    """
    Business logic for orders and their payment.

    Responsibilities:
      - Create order from checkout payload (stock reservation, cart cleanup,
        Stripe payment intent)
      - Customer actions: Stripe confirmation, MoMo transfer confirmation,
        cancellation
      - Admin status changes with optimistic concurrency (expected_* + CAS)
      - One OrderTransaction row per accepted status change
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        setting_repo: SettingRepository,
        gateway: StripeGateway | None = None,
        locks: OrderLocks | None = None,
    ):
        self.order_repo = order_repo
        self.cart_repo = cart_repo
        self.product_repo = product_repo
        self.setting_repo = setting_repo
        self.gateway = gateway
        self.locks = locks or order_locks

    # -------- Transaction helpers --------

    @contextmanager
    def _locked(self, session: Session, order_id: int) -> Iterator[None]:
        """
        Hold the order's lock for one unit of work.

        Commits on success; rolls back before releasing the lock on failure
        so the next writer never sees half-applied changes.
        """
        with self.locks.hold(order_id):
            try:
                yield
                session.commit()
            except Exception:
                session.rollback()
                raise

    def _record_change(
        self,
        session: Session,
        order: Order,
        field: str,
        new_status: OrderStatus | PaymentStatus,
        admin_id: int | None,
        notes: str | None,
    ) -> None:
        """Compare-and-set one status field and append the audit row."""
        old_status = getattr(order, field)
        if field == "order_status":
            check_order_transition(old_status, new_status)
            transaction_type = TransactionType.order_status_change
        else:
            check_payment_transition(old_status, new_status)
            transaction_type = TransactionType.payment_status_change

        if not self.order_repo.compare_and_set(
            session, order.id, field, old_status, new_status
        ):
            raise ConflictError(
                "Order was modified by another request",
                data={"field": field, "expected": old_status.value},
            )
        session.refresh(order)

        self.order_repo.add_transaction(
            session,
            OrderTransaction(
                order_id=order.id,
                admin_id=admin_id,
                transaction_type=transaction_type,
                old_status=old_status.value,
                new_status=new_status.value,
                notes=notes,
            ),
        )
        logger.info(
            "Order %s %s: %s -> %s (admin=%s)",
            order.id, field, old_status.value, new_status.value, admin_id,
        )

    def _restore_stock(self, session: Session, order_id: int) -> None:
        for item in self.order_repo.list_items_for_order(session, order_id):
            self.product_repo.release_stock(session, item.product_id, item.quantity)

    # -------- User-facing operations --------

    def create_order(
        self,
        session: Session,
        user_id: int,
        payload: OrderCreate,
    ) -> OrderCreated:
        """
        Place an order.

        Steps:
          1. Check total_amount against sum(price * quantity).
          2. Ensure every product exists.
          3. Create Order (pending/pending) + OrderItem rows.
          4. Reserve stock per item (guarded UPDATE).
          5. Remove ordered products from the user's cart.
          6. Stripe only: create a payment intent.
          7. Commit; any failure rolls everything back.
        """
        # 1) Totals
        expected_total = sum(item.price * item.quantity for item in payload.items)
        if abs(expected_total - payload.total_amount) > TOTAL_TOLERANCE:
            raise ValidationError(
                "Total amount does not match order items",
                data={
                    "total_amount": payload.total_amount,
                    "expected": round(expected_total, 2),
                },
            )

        try:
            # 2) Products
            for item in payload.items:
                if self.product_repo.get_by_id(session, item.product_id) is None:
                    raise NotFound(f"Product {item.product_id} not found")

            # 3) Order + items
            order = self.order_repo.create_order(
                session,
                Order(
                    user_id=user_id,
                    delivery_address=payload.delivery_address.model_dump(exclude_none=True),
                    message=payload.message,
                    payment_method=payload.payment_method,
                    payment_status=PaymentStatus.pending,
                    order_status=OrderStatus.pending,
                    total_amount=payload.total_amount,
                ),
            )
            self.order_repo.create_items(
                session,
                [
                    OrderItem(
                        order_id=order.id,
                        product_id=item.product_id,
                        product_name=item.product_name,
                        product_image=item.product_image,
                        price=item.price,
                        price_before_discount=item.price_before_discount,
                        quantity=item.quantity,
                    )
                    for item in payload.items
                ],
            )

            # 4) Stock
            for item in payload.items:
                if not self.product_repo.reserve_stock(
                    session, item.product_id, item.quantity
                ):
                    product = self.product_repo.get_by_id(session, item.product_id)
                    session.refresh(product)
                    logger.warning(
                        "Insufficient stock for product %s: requested %s, have %s",
                        product.id, item.quantity, product.quantity,
                    )
                    raise InsufficientStock(product.name, product.quantity)

            # 5) Cart
            self.cart_repo.remove_products(
                session, user_id, [item.product_id for item in payload.items]
            )

            # 6) Stripe
            stripe_intent = None
            if payload.payment_method == PaymentMethod.stripe:
                intent = self._gateway().create_intent(
                    order.id, user_id, payload.total_amount
                )
                order.stripe_payment_intent_id = intent.id
                self.order_repo.update_order(session, order)
                stripe_intent = StripePaymentIntent(
                    client_secret=intent.client_secret or "",
                    payment_intent_id=intent.id,
                )

            # 7) Commit
            session.commit()
        except Exception:
            session.rollback()
            raise

        # commit expired the rows; reload before serializing
        session.refresh(order)
        items = self.order_repo.list_items_for_order(session, order.id)
        logger.info(
            "Order %s created for user %s (%s, total=%s)",
            order.id, user_id, order.payment_method.value, order.total_amount,
        )
        return OrderCreated(
            order=self._to_read(order, items),
            stripe_payment_intent=stripe_intent,
        )

    def list_user_orders(self, session: Session, user_id: int) -> list[OrderRead]:
        """Orders of the user, newest first, with items."""
        orders = self.order_repo.list_for_user(session, user_id)
        items = self.order_repo.list_items_for_orders(session, [o.id for o in orders])
        return [self._to_read(o, items[o.id]) for o in orders]

    def get_user_order(self, session: Session, user_id: int, order_id: int) -> OrderRead:
        """
        Single order of the user, including items.

        - 404 if order not found or does not belong to this user.
        """
        order = self._get_owned(session, user_id, order_id)
        items = self.order_repo.list_items_for_order(session, order.id)
        return self._to_read(order, items)

    def confirm_gateway_payment(
        self,
        session: Session,
        user_id: int,
        order_id: int,
        payment_intent_id: str,
    ) -> OrderRead:
        """
        Settle a Stripe order from the gateway's view of the intent.

        succeeded + matching amount -> paid (pending order becomes confirmed);
        anything else -> failed.

        Raises:
            InvalidState: not a Stripe order, order delivered or cancelled, or
                payment no longer pending.
            PaymentGatewayError: Stripe unreachable; the order is unchanged.
        """
        with self._locked(session, order_id):
            order = self._get_owned(session, user_id, order_id)
            if order.payment_method != PaymentMethod.stripe:
                raise InvalidState("Order is not paid with Stripe")
            if order.order_status in TERMINAL_ORDER_STATES:
                raise InvalidState(f"Order is {order.order_status.value}")
            if order.payment_status != PaymentStatus.pending:
                raise InvalidState(
                    f"Order payment is already {order.payment_status.value}"
                )
            if (
                order.stripe_payment_intent_id
                and order.stripe_payment_intent_id != payment_intent_id
            ):
                raise ValidationError(
                    "Payment intent does not belong to this order",
                    data={"payment_intent_id": payment_intent_id},
                )

            intent = self._gateway().retrieve_intent(payment_intent_id)
            succeeded = (
                intent.status == "succeeded"
                and intent.amount == round(order.total_amount)
            )
            note = f"Stripe payment intent {intent.id} ({intent.status})"

            if succeeded:
                self._record_change(
                    session, order, "payment_status", PaymentStatus.paid, None, note
                )
                if order.order_status == OrderStatus.pending:
                    self._record_change(
                        session, order, "order_status", OrderStatus.confirmed, None,
                        "Confirmed after Stripe payment",
                    )
            else:
                logger.warning(
                    "Stripe payment for order %s not successful: status=%s amount=%s",
                    order.id, intent.status, intent.amount,
                )
                self._record_change(
                    session, order, "payment_status", PaymentStatus.failed, None, note
                )

        return self.get_user_order(session, user_id, order_id)

    def submit_manual_transfer_confirmation(
        self,
        session: Session,
        user_id: int,
        order_id: int,
        transfer_note: str | None,
    ) -> OrderRead:
        """
        Customer reports a MoMo transfer.

        Only flags the order for admin review; payment_status stays pending
        until an admin marks it paid.
        """
        with self._locked(session, order_id):
            order = self._get_owned(session, user_id, order_id)
            if order.payment_method != PaymentMethod.momo:
                raise InvalidState("Order is not paid with MoMo")
            if order.payment_status != PaymentStatus.pending:
                raise InvalidState(
                    f"Order payment is already {order.payment_status.value}"
                )
            if order.order_status in TERMINAL_ORDER_STATES:
                raise InvalidState(f"Order is {order.order_status.value}")

            order.momo_transfer_note = transfer_note
            order.user_payment_confirmed = 1
            order.user_payment_confirmed_at = datetime.now(timezone.utc)
            self.order_repo.update_order(session, order)
            logger.info("MoMo transfer reported for order %s", order.id)

        return self.get_user_order(session, user_id, order_id)

    def cancel_order(self, session: Session, user_id: int, order_id: int) -> OrderRead:
        """
        Customer cancellation; allowed while pending or confirmed.
        Reserved stock goes back to the products.
        """
        with self._locked(session, order_id):
            order = self._get_owned(session, user_id, order_id)
            if order.order_status not in CANCELLABLE_ORDER_STATES:
                raise InvalidState(
                    f"Cannot cancel an order that is {order.order_status.value}"
                )
            self._restore_stock(session, order.id)
            self._record_change(
                session, order, "order_status", OrderStatus.cancelled, None,
                "Cancelled by customer",
            )

        return self.get_user_order(session, user_id, order_id)

    # -------- Admin operations --------

    def list_orders_admin(
        self,
        session: Session,
        page: int = 1,
        limit: int = 10,
        order_status: OrderStatus | None = None,
        payment_status: PaymentStatus | None = None,
        search: str | None = None,
    ) -> AdminOrderListData:
        filters = dict(
            order_status=order_status, payment_status=payment_status, search=search
        )
        total = self.order_repo.count_admin(session, **filters)
        rows = self.order_repo.list_admin(
            session, skip=(page - 1) * limit, limit=limit, **filters
        )
        items = self.order_repo.list_items_for_orders(session, [o.id for o, _ in rows])
        return AdminOrderListData(
            orders=[self._to_admin_read(o, items[o.id], u) for o, u in rows],
            pagination=build_pagination(page, limit, total),
        )

    def get_order_detail(self, session: Session, order_id: int) -> AdminOrderDetail:
        order = self._get_any(session, order_id)
        customer = session.get(User, order.user_id)
        items = self.order_repo.list_items_for_order(session, order.id)
        transactions = [
            OrderTransactionRead(
                **t.model_dump(),
                admin_name=admin.name if admin else None,
                admin_email=admin.email if admin else None,
            )
            for t, admin in self.order_repo.list_transactions(session, order.id)
        ]
        return AdminOrderDetail(
            order=self._to_admin_read(order, items, customer),
            transactions=transactions,
        )

    def update_order_status(
        self,
        session: Session,
        order_id: int,
        payload: OrderStatusUpdate,
        admin_id: int,
    ) -> AdminOrderDetail:
        """
        Admin change of order_status and/or payment_status.

        Rules:
          - expected_* must match the stored status, else 409
          - delivered / cancelled orders are frozen
          - each axis follows its transition table, else 400
          - MoMo can only be marked paid after the customer reported the
            transfer
          - cancelling restores stock
          - a status equal to the current one is a no-op
        """
        with self._locked(session, order_id):
            order = self._get_any(session, order_id)

            if (
                payload.expected_order_status is not None
                and payload.expected_order_status != order.order_status
            ):
                raise ConflictError(
                    "Order status has changed since it was loaded",
                    data={
                        "expected": payload.expected_order_status.value,
                        "current": order.order_status.value,
                    },
                )
            if (
                payload.expected_payment_status is not None
                and payload.expected_payment_status != order.payment_status
            ):
                raise ConflictError(
                    "Payment status has changed since it was loaded",
                    data={
                        "expected": payload.expected_payment_status.value,
                        "current": order.payment_status.value,
                    },
                )

            new_order = payload.order_status
            if new_order is not None and new_order != order.order_status:
                check_order_transition(order.order_status, new_order)

            new_payment = payload.payment_status
            if new_payment is not None and new_payment != order.payment_status:
                if order.order_status in TERMINAL_ORDER_STATES:
                    raise InvalidState(f"Order is {order.order_status.value}")
                if (
                    new_payment == PaymentStatus.paid
                    and order.payment_method == PaymentMethod.momo
                    and not order.user_payment_confirmed
                ):
                    raise InvalidState(
                        "Customer has not confirmed the MoMo transfer yet"
                    )
                self._record_change(
                    session, order, "payment_status", new_payment, admin_id, payload.notes
                )

            if new_order is not None and new_order != order.order_status:
                if new_order == OrderStatus.cancelled:
                    self._restore_stock(session, order.id)
                self._record_change(
                    session, order, "order_status", new_order, admin_id, payload.notes
                )

        return self.get_order_detail(session, order_id)

    # -------- Shop settings --------

    def get_momo_settings(self, session: Session) -> MomoSettings:
        row = self.setting_repo.get(session, MOMO_SETTINGS_KEY)
        if row is None:
            return MomoSettings()
        return MomoSettings(**row.setting_value)

    def update_momo_settings(self, session: Session, payload: MomoSettings) -> MomoSettings:
        row = self.setting_repo.put(session, MOMO_SETTINGS_KEY, payload.model_dump())
        logger.info("MoMo settings updated")
        return MomoSettings(**row.setting_value)

    # -------- Helpers --------

    def _gateway(self) -> StripeGateway:
        if self.gateway is None:
            self.gateway = get_payment_gateway()
        return self.gateway

    def _get_owned(self, session: Session, user_id: int, order_id: int) -> Order:
        order = self.order_repo.get_for_user(session, order_id, user_id)
        if not order:
            raise NotFound("Order not found")
        return order

    def _get_any(self, session: Session, order_id: int) -> Order:
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise NotFound("Order not found")
        return order

    @staticmethod
    def _to_read(order: Order, items: list[OrderItem]) -> OrderRead:
        return OrderRead(
            **order.model_dump(),
            items=[OrderItemRead(**it.model_dump()) for it in items],
        )

    @staticmethod
    def _to_admin_read(
        order: Order, items: list[OrderItem], customer: User | None
    ) -> AdminOrderRead:
        return AdminOrderRead(
            **order.model_dump(),
            items=[OrderItemRead(**it.model_dump()) for it in items],
            user_name=customer.name if customer else None,
            user_email=customer.email if customer else None,
            user_phone=customer.phone if customer else None,
        )
