"""
Order lifecycle rules.

Order.status only moves forward:

    pending -> paid -> processing -> shipped -> delivered

with two side exits: cancelled (from any non-terminal state) and refunded (from
paid onwards). payment_status is pending -> paid | failed. Setting a field to its
current value is always allowed. Writers that react to external events (webhook
replays, carrier callbacks) use advance_* so a late or duplicated event can never
move an order backwards.
"""
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


ORDER_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.PROCESSING, OrderStatus.CANCELLED, OrderStatus.REFUNDED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED, OrderStatus.REFUNDED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REFUNDED},
    OrderStatus.DELIVERED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),
    OrderStatus.REFUNDED: set(),
}

PAYMENT_TRANSITIONS: dict[str, set[str]] = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.PAID: set(),
    PaymentStatus.FAILED: set(),
}


def _allowed(transitions: dict, current: str, target: str) -> bool:
    if current == target:
        return True
    return target in transitions.get(current, set())


def can_transition(current: str, target: str) -> bool:
    return _allowed(ORDER_TRANSITIONS, current, target)


def can_transition_payment(current: str, target: str) -> bool:
    return _allowed(PAYMENT_TRANSITIONS, current, target)


def advance_status(order, target: str) -> bool:
    """Moves order.status to target if legal. Returns whether the field now holds target."""
    target = OrderStatus(target).value
    if not can_transition(order.status, target):
        return False
    order.status = target
    return True


def advance_payment_status(order, target: str) -> bool:
    target = PaymentStatus(target).value
    if not can_transition_payment(order.payment_status, target):
        return False
    order.payment_status = target
    return True
