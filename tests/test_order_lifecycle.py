"""Tests for order/payment state machines and the order service."""

import threading
from types import SimpleNamespace

import pytest
from sqlmodel import Session, SQLModel, select

from storefront.core.errors import (
    ConflictError,
    InsufficientStock,
    InvalidState,
    InvalidTransition,
    NotFound,
    ValidationError,
)
from storefront.database import build_engine
from storefront.models.cart import CartItem
from storefront.models.order import (
    Order,
    OrderStatus,
    OrderTransaction,
    PaymentMethod,
    PaymentStatus,
)
from storefront.models.product import Product
from storefront.models.user import User
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.setting_repo import SettingRepository
from storefront.schemas.order import MomoSettings, OrderCreate, OrderStatusUpdate
from storefront.services.order_lifecycle import (
    ORDER_TRANSITIONS,
    PAYMENT_TRANSITIONS,
    OrderLocks,
    can_transition_order,
    can_transition_payment,
    check_order_transition,
)
from storefront.services.order_service import OrderService

ALLOWED_ORDER = {
    ("pending", "confirmed"),
    ("pending", "cancelled"),
    ("confirmed", "shipping"),
    ("confirmed", "cancelled"),
    ("shipping", "delivered"),
}

ALLOWED_PAYMENT = {("pending", "paid"), ("pending", "failed")}


def checkout_payload(product, quantity=1, method="cod", total=None):
    return OrderCreate(
        items=[
            {
                "product_id": product.id,
                "product_name": product.name,
                "price": product.price,
                "quantity": quantity,
            }
        ],
        delivery_address={
            "fullName": "Nguyen Van A",
            "phone": "0901234567",
            "address": "1 Trang Tien",
            "province": "1",
            "district": "1",
            "ward": "1",
        },
        payment_method=method,
        total_amount=product.price * quantity if total is None else total,
    )


class TestTransitionTables:
    @pytest.mark.parametrize("current", list(OrderStatus))
    @pytest.mark.parametrize("new", list(OrderStatus))
    def test_order_table(self, current, new):
        expected = (current.value, new.value) in ALLOWED_ORDER
        assert can_transition_order(current, new) is expected

    @pytest.mark.parametrize("current", list(PaymentStatus))
    @pytest.mark.parametrize("new", list(PaymentStatus))
    def test_payment_table(self, current, new):
        expected = (current.value, new.value) in ALLOWED_PAYMENT
        assert can_transition_payment(current, new) is expected

    def test_terminal_states_have_no_exits(self):
        assert ORDER_TRANSITIONS[OrderStatus.delivered] == frozenset()
        assert ORDER_TRANSITIONS[OrderStatus.cancelled] == frozenset()
        assert PAYMENT_TRANSITIONS[PaymentStatus.paid] == frozenset()
        assert PAYMENT_TRANSITIONS[PaymentStatus.failed] == frozenset()

    def test_rejected_transition_carries_details(self):
        with pytest.raises(InvalidTransition) as exc:
            check_order_transition(OrderStatus.delivered, OrderStatus.shipping)
        assert exc.value.status_code == 400
        assert exc.value.data == {"field": "order_status", "from": "delivered", "to": "shipping"}


class TestOrderLocks:
    def test_lock_entry_removed_after_use(self):
        locks = OrderLocks()
        with locks.hold(1):
            assert len(locks) == 1
        assert len(locks) == 0

    def test_same_order_is_serialized(self):
        locks = OrderLocks()
        inside = []
        overlap = []

        def worker():
            with locks.hold(7):
                inside.append(1)
                if len(inside) > 1:
                    overlap.append(True)
                threading.Event().wait(0.01)
                inside.pop()

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert overlap == []


class TestCreateOrder:
    def test_creates_pending_order_and_reserves_stock(
        self, session, order_service, customer, make_product
    ):
        product = make_product(price=50.0, quantity=5)
        created = order_service.create_order(session, customer.id, checkout_payload(product, 2))

        order = created.order
        assert order.order_status == OrderStatus.pending
        assert order.payment_status == PaymentStatus.pending
        assert order.total_amount == 100.0
        assert [i.quantity for i in order.items] == [2]
        assert created.stripe_payment_intent is None

        session.refresh(product)
        assert product.quantity == 3
        assert product.sold == 2

    def test_returned_items_carry_line_details(
        self, session, order_service, customer, make_product
    ):
        product = make_product(name="Blender", price=40.0, quantity=5)
        created = order_service.create_order(session, customer.id, checkout_payload(product, 3))

        item = created.order.items[0]
        assert (item.product_id, item.product_name, item.price, item.quantity) == (
            product.id,
            "Blender",
            40.0,
            3,
        )
        assert created.order.id is not None
        assert created.order.user_id == customer.id

    def test_removes_ordered_products_from_cart(
        self, session, order_service, customer, make_product
    ):
        bought = make_product(name="Bought")
        kept = make_product(name="Kept")
        session.add(CartItem(user_id=customer.id, product_id=bought.id, quantity=1))
        session.add(CartItem(user_id=customer.id, product_id=kept.id, quantity=1))
        session.commit()

        order_service.create_order(session, customer.id, checkout_payload(bought))

        remaining = session.exec(select(CartItem).where(CartItem.user_id == customer.id)).all()
        assert [c.product_id for c in remaining] == [kept.id]

    def test_total_mismatch_rejected(self, session, order_service, customer, make_product):
        product = make_product(price=50.0)
        with pytest.raises(ValidationError):
            order_service.create_order(
                session, customer.id, checkout_payload(product, 2, total=90.0)
            )

    def test_insufficient_stock_rolls_back(
        self, session, order_service, customer, make_product
    ):
        product = make_product(name="Rare", quantity=1)
        with pytest.raises(InsufficientStock) as exc:
            order_service.create_order(session, customer.id, checkout_payload(product, 3))
        assert exc.value.data == {"availableQuantity": 1}

        assert session.exec(select(Order)).all() == []
        session.refresh(product)
        assert product.quantity == 1

    def test_unknown_product(self, session, order_service, customer):
        ghost = SimpleNamespace(id=999, name="Ghost", price=10.0)
        with pytest.raises(NotFound):
            order_service.create_order(session, customer.id, checkout_payload(ghost))

    def test_stripe_order_gets_payment_intent(
        self, session, order_service, gateway, customer, make_product
    ):
        product = make_product(price=250000.0)
        created = order_service.create_order(
            session, customer.id, checkout_payload(product, method="stripe")
        )
        intent = created.stripe_payment_intent
        assert intent.payment_intent_id == f"pi_test_{created.order.id}"
        assert intent.client_secret.endswith("_secret")
        assert session.get(Order, created.order.id).stripe_payment_intent_id == intent.payment_intent_id


@pytest.fixture
def place_order(session, order_service, customer, make_product):
    def _place(method="cod", quantity=1):
        product = make_product(price=100.0, quantity=10)
        created = order_service.create_order(
            session, customer.id, checkout_payload(product, quantity, method=method)
        )
        return created.order.id, product.id

    return _place


def transitions_for(session, order_id):
    return session.exec(
        select(OrderTransaction)
        .where(OrderTransaction.order_id == order_id)
        .order_by(OrderTransaction.id)
    ).all()


class TestCancelOrder:
    @pytest.mark.parametrize("reached", ["pending", "confirmed"])
    def test_cancel_allowed(self, session, order_service, customer, admin, place_order, reached):
        order_id, product_id = place_order(quantity=4)
        if reached == "confirmed":
            order_service.update_order_status(
                session, order_id, OrderStatusUpdate(order_status="confirmed"), admin.id
            )

        order = order_service.cancel_order(session, customer.id, order_id)

        assert order.order_status == OrderStatus.cancelled
        product = session.get(Product, product_id)
        session.refresh(product)
        assert product.quantity == 10
        assert product.sold == 0
        last = transitions_for(session, order_id)[-1]
        assert (last.old_status, last.new_status) == (reached, "cancelled")
        assert last.admin_id is None

    @pytest.mark.parametrize("path", [["confirmed", "shipping"], ["confirmed", "shipping", "delivered"]])
    def test_cancel_refused_after_shipping(
        self, session, order_service, customer, admin, place_order, path
    ):
        order_id, _ = place_order()
        for status in path:
            order_service.update_order_status(
                session, order_id, OrderStatusUpdate(order_status=status), admin.id
            )
        with pytest.raises(InvalidState):
            order_service.cancel_order(session, customer.id, order_id)

    def test_cancel_twice_refused(self, session, order_service, customer, place_order):
        order_id, _ = place_order()
        order_service.cancel_order(session, customer.id, order_id)
        with pytest.raises(InvalidState):
            order_service.cancel_order(session, customer.id, order_id)

    def test_cannot_cancel_someone_elses_order(
        self, session, order_service, make_user, place_order
    ):
        order_id, _ = place_order()
        other = make_user(email="other@gmail.com")
        with pytest.raises(NotFound):
            order_service.cancel_order(session, other.id, order_id)


class TestAdminStatusUpdate:
    def test_full_happy_path_audited(self, session, order_service, admin, place_order):
        order_id, _ = place_order()
        for status in ["confirmed", "shipping", "delivered"]:
            detail = order_service.update_order_status(
                session, order_id, OrderStatusUpdate(order_status=status, notes=status), admin.id
            )
        assert detail.order.order_status == OrderStatus.delivered
        # newest first
        assert [t.new_status for t in detail.transactions] == ["delivered", "shipping", "confirmed"]
        assert {t.admin_email for t in detail.transactions} == {admin.email}

    def test_skipping_a_step_rejected(self, session, order_service, admin, place_order):
        order_id, _ = place_order()
        with pytest.raises(InvalidTransition):
            order_service.update_order_status(
                session, order_id, OrderStatusUpdate(order_status="delivered"), admin.id
            )
        assert transitions_for(session, order_id) == []

    def test_terminal_order_rejected(self, session, order_service, customer, admin, place_order):
        order_id, _ = place_order()
        order_service.cancel_order(session, customer.id, order_id)
        with pytest.raises(InvalidTransition):
            order_service.update_order_status(
                session, order_id, OrderStatusUpdate(order_status="confirmed"), admin.id
            )

    def test_same_status_is_noop(self, session, order_service, admin, place_order):
        order_id, _ = place_order()
        order_service.update_order_status(
            session, order_id, OrderStatusUpdate(order_status="pending"), admin.id
        )
        assert transitions_for(session, order_id) == []

    def test_stale_expected_status_conflicts(self, session, order_service, admin, place_order):
        order_id, _ = place_order()
        payload = OrderStatusUpdate(order_status="confirmed", expected_order_status="pending")

        order_service.update_order_status(session, order_id, payload, admin.id)
        with pytest.raises(ConflictError) as exc:
            order_service.update_order_status(session, order_id, payload, admin.id)

        assert exc.value.status_code == 409
        assert len(transitions_for(session, order_id)) == 1

    def test_cod_paid_on_delivery(self, session, order_service, admin, place_order):
        order_id, _ = place_order()
        for status in ["confirmed", "shipping"]:
            order_service.update_order_status(
                session, order_id, OrderStatusUpdate(order_status=status), admin.id
            )
        detail = order_service.update_order_status(
            session,
            order_id,
            OrderStatusUpdate(order_status="delivered", payment_status="paid"),
            admin.id,
        )
        assert detail.order.order_status == OrderStatus.delivered
        assert detail.order.payment_status == PaymentStatus.paid

    def test_admin_cancel_restores_stock(self, session, order_service, admin, place_order):
        order_id, product_id = place_order(quantity=3)
        order_service.update_order_status(
            session, order_id, OrderStatusUpdate(order_status="cancelled"), admin.id
        )
        product = session.get(Product, product_id)
        session.refresh(product)
        assert product.quantity == 10


class TestMomoPayment:
    def test_customer_confirmation_keeps_payment_pending(
        self, session, order_service, customer, place_order
    ):
        order_id, _ = place_order(method="momo")
        order = order_service.submit_manual_transfer_confirmation(
            session, customer.id, order_id, "MOMO 12345"
        )
        assert order.user_payment_confirmed == 1
        assert order.payment_status == PaymentStatus.pending
        assert order.momo_transfer_note == "MOMO 12345"
        assert order.user_payment_confirmed_at is not None

    def test_admin_cannot_mark_paid_before_customer_confirms(
        self, session, order_service, admin, place_order
    ):
        order_id, _ = place_order(method="momo")
        with pytest.raises(InvalidState):
            order_service.update_order_status(
                session, order_id, OrderStatusUpdate(payment_status="paid"), admin.id
            )

    def test_admin_marks_paid_after_confirmation(
        self, session, order_service, customer, admin, place_order
    ):
        order_id, _ = place_order(method="momo")
        order_service.submit_manual_transfer_confirmation(session, customer.id, order_id, None)
        detail = order_service.update_order_status(
            session,
            order_id,
            OrderStatusUpdate(payment_status="paid", expected_payment_status="pending"),
            admin.id,
        )
        assert detail.order.payment_status == PaymentStatus.paid
        assert detail.transactions[0].transaction_type == "payment_status_change"

    def test_only_for_momo_orders(self, session, order_service, customer, place_order):
        order_id, _ = place_order(method="cod")
        with pytest.raises(InvalidState):
            order_service.submit_manual_transfer_confirmation(session, customer.id, order_id, None)

    def test_settings_default_and_update(self, session, order_service):
        assert order_service.get_momo_settings(session) == MomoSettings()
        saved = order_service.update_momo_settings(
            session, MomoSettings(name="Shop", account_number="0909000111")
        )
        assert saved.account_number == "0909000111"
        assert order_service.get_momo_settings(session).name == "Shop"


class TestStripePayment:
    def test_success_marks_paid_and_confirms(
        self, session, order_service, gateway, customer, place_order
    ):
        order_id, _ = place_order(method="stripe")
        order = order_service.confirm_gateway_payment(
            session, customer.id, order_id, f"pi_test_{order_id}"
        )
        assert order.payment_status == PaymentStatus.paid
        assert order.order_status == OrderStatus.confirmed
        kinds = [t.transaction_type for t in transitions_for(session, order_id)]
        assert kinds == ["payment_status_change", "order_status_change"]

    def test_gateway_failure_marks_failed(
        self, session, order_service, gateway, customer, place_order
    ):
        gateway.status = "canceled"
        order_id, _ = place_order(method="stripe")
        order = order_service.confirm_gateway_payment(
            session, customer.id, order_id, f"pi_test_{order_id}"
        )
        assert order.payment_status == PaymentStatus.failed
        assert order.order_status == OrderStatus.pending

    def test_second_confirmation_refused(self, session, order_service, customer, place_order):
        order_id, _ = place_order(method="stripe")
        order_service.confirm_gateway_payment(session, customer.id, order_id, f"pi_test_{order_id}")
        with pytest.raises(InvalidState):
            order_service.confirm_gateway_payment(
                session, customer.id, order_id, f"pi_test_{order_id}"
            )

    def test_foreign_intent_rejected(self, session, order_service, gateway, customer, place_order):
        order_id, _ = place_order(method="stripe")
        with pytest.raises(ValidationError):
            order_service.confirm_gateway_payment(session, customer.id, order_id, "pi_other")
        assert gateway.retrieved == []

    def test_not_a_stripe_order(self, session, order_service, customer, place_order):
        order_id, _ = place_order(method="cod")
        with pytest.raises(InvalidState):
            order_service.confirm_gateway_payment(session, customer.id, order_id, "pi_x")

    def test_cancelled_order_cannot_be_paid(
        self, session, order_service, gateway, customer, place_order
    ):
        order_id, _ = place_order(method="stripe")
        order_service.cancel_order(session, customer.id, order_id)
        with pytest.raises(InvalidState):
            order_service.confirm_gateway_payment(
                session, customer.id, order_id, f"pi_test_{order_id}"
            )
        order = session.get(Order, order_id)
        session.refresh(order)
        assert order.payment_status == PaymentStatus.pending
        assert order.order_status == OrderStatus.cancelled
        assert gateway.retrieved == []

    def test_delivered_order_cannot_be_paid(
        self, session, order_service, gateway, customer, admin, place_order
    ):
        order_id, _ = place_order(method="stripe")
        for status in ["confirmed", "shipping", "delivered"]:
            order_service.update_order_status(
                session, order_id, OrderStatusUpdate(order_status=status), admin.id
            )
        with pytest.raises(InvalidState):
            order_service.confirm_gateway_payment(
                session, customer.id, order_id, f"pi_test_{order_id}"
            )
        order = session.get(Order, order_id)
        session.refresh(order)
        assert order.payment_status == PaymentStatus.pending
        assert gateway.retrieved == []


class TestConcurrentAdmins:
    def test_two_admins_same_stale_status(self, tmp_path):
        """Both saw 'pending'; exactly one confirm wins, the other conflicts."""
        engine = build_engine(f"sqlite:///{tmp_path / 'orders.db'}")
        SQLModel.metadata.create_all(engine)

        with Session(engine) as s:
            admin = User(email="ops@shop.vn", password_hash="x", name="Ops", roles="Admin")
            s.add(admin)
            s.commit()
            order = Order(
                user_id=admin.id,
                delivery_address={"fullName": "A", "phone": "1", "address": "x"},
                payment_method=PaymentMethod.cod,
                total_amount=10.0,
            )
            s.add(order)
            s.commit()
            order_id, admin_id = order.id, admin.id

        service = OrderService(
            OrderRepository(),
            CartRepository(),
            ProductRepository(),
            SettingRepository(),
            locks=OrderLocks(),
        )
        payload = OrderStatusUpdate(order_status="confirmed", expected_order_status="pending")
        barrier = threading.Barrier(2)
        outcomes = []

        def admin_request():
            barrier.wait()
            with Session(engine) as s:
                try:
                    service.update_order_status(s, order_id, payload, admin_id)
                    outcomes.append("ok")
                except ConflictError:
                    outcomes.append("conflict")

        threads = [threading.Thread(target=admin_request) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == ["conflict", "ok"]
        with Session(engine) as s:
            assert s.get(Order, order_id).order_status == OrderStatus.confirmed
            assert len(s.exec(select(OrderTransaction)).all()) == 1
        engine.dispose()
