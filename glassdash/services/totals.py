from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from ..models.entities import STATUS_COMPLETED, STATUS_UNPAID, Adjustment, Order, OrderItem


def compute_total(items: Iterable[OrderItem], fee: Adjustment, discount: Adjustment) -> float:
    # No floor: a discount larger than the items is allowed to push the total negative.
    subtotal = sum(item.price for item in items)
    return subtotal + fee.amount - discount.amount


def compute_status(total: float, amount_paid: float) -> str:
    if amount_paid >= total:
        return STATUS_COMPLETED
    return STATUS_UNPAID


def compute_balance(order: Order) -> float:
    return order.total - order.amount_paid


def round_half_up(value: float, places: int = 0) -> float:
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP)
    return float(rounded)


def round_currency(value: float) -> float:
    return round_half_up(value, 2)


def exact_sum(*values: float) -> float:
    """Add quantities in decimal so amounts typed with a few decimal places stay exact."""
    return float(sum((Decimal(repr(float(value))) for value in values), Decimal(0)))
