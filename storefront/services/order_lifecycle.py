# storefront/services/order_lifecycle.py
"""
Order and payment state machines.

Two independent axes per order:

    order_status:   pending -> confirmed -> shipping -> delivered
                    pending | confirmed -> cancelled
    payment_status: pending -> paid | failed

delivered, cancelled, paid and failed are terminal for their axis. Every
status change in the codebase goes through check_order_transition /
check_payment_transition.
"""
import threading
from contextlib import contextmanager
from typing import Iterator

from storefront.core.errors import InvalidTransition
from storefront.models.order import OrderStatus, PaymentStatus

ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.pending: frozenset({OrderStatus.confirmed, OrderStatus.cancelled}),
    OrderStatus.confirmed: frozenset({OrderStatus.shipping, OrderStatus.cancelled}),
    OrderStatus.shipping: frozenset({OrderStatus.delivered}),
    OrderStatus.delivered: frozenset(),
    OrderStatus.cancelled: frozenset(),
}

PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.pending: frozenset({PaymentStatus.paid, PaymentStatus.failed}),
    PaymentStatus.paid: frozenset(),
    PaymentStatus.failed: frozenset(),
}

# Orders in these states only accept audit-trail appends
TERMINAL_ORDER_STATES = frozenset({OrderStatus.delivered, OrderStatus.cancelled})

CANCELLABLE_ORDER_STATES = frozenset({OrderStatus.pending, OrderStatus.confirmed})


def can_transition_order(current: OrderStatus, new: OrderStatus) -> bool:
    return new in ORDER_TRANSITIONS[current]


def can_transition_payment(current: PaymentStatus, new: PaymentStatus) -> bool:
    return new in PAYMENT_TRANSITIONS[current]


def check_order_transition(current: OrderStatus, new: OrderStatus) -> None:
    if not can_transition_order(current, new):
        raise InvalidTransition(current.value, new.value, "order_status")


def check_payment_transition(current: PaymentStatus, new: PaymentStatus) -> None:
    if not can_transition_payment(current, new):
        raise InvalidTransition(current.value, new.value, "payment_status")


class OrderLocks:
    """
    One mutex per order id, created on demand and dropped when unused.

    Serializes status changes on the same order inside this process;
    the compare-and-set UPDATE in OrderRepository covers other processes.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[int, list] = {}  # order_id -> [lock, holders]

    @contextmanager
    def hold(self, order_id: int) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(order_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[order_id]

    def __len__(self) -> int:
        return len(self._locks)


# Process-wide registry shared by every OrderService
order_locks = OrderLocks()
