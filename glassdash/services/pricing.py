"""Tier resolution for order lines.

A line is either one of the product's named tiers taken verbatim, or a custom
line. Custom lines priced from a quantity alone use the unit price of the
product's smallest positive-quantity tier, rounded to whole currency.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..models.entities import CUSTOM_TIER_LABEL, OrderItem, Product, Tier
from .errors import TierResolutionError, ValidationError
from .totals import round_half_up


@dataclass
class ResolvedLine:
    quantity: float
    price: float
    tier_label: str

    def to_item(self, product_id: str) -> OrderItem:
        return OrderItem(
            product_id=product_id,
            quantity=self.quantity,
            price=self.price,
            tier_label=self.tier_label,
        )


def smallest_tier(product: Product) -> Optional[Tier]:
    candidates = [tier for tier in product.tiers if tier.quantity > 0]
    if not candidates:
        return None
    # min() keeps the first of equal quantities, matching a stable ascending sort.
    return min(candidates, key=lambda tier: tier.quantity)


def base_unit_price(product: Product) -> Optional[float]:
    tier = smallest_tier(product)
    if tier is None:
        return None
    return tier.price / tier.quantity


def resolve_line(
    product: Product,
    tier_label: Optional[str] = None,
    quantity: Optional[float] = None,
    price: Optional[float] = None,
) -> ResolvedLine:
    if quantity is not None and quantity < 0:
        raise ValidationError("Quantity cannot be negative.")
    if price is not None and price < 0:
        raise ValidationError("Price cannot be negative.")

    tier = product.find_tier(tier_label)
    if tier is not None:
        return ResolvedLine(quantity=tier.quantity, price=tier.price, tier_label=tier.label)

    if quantity is not None and price is not None:
        return ResolvedLine(quantity=float(quantity), price=float(price), tier_label=CUSTOM_TIER_LABEL)

    if quantity is not None:
        unit_price = base_unit_price(product)
        if unit_price is not None:
            return ResolvedLine(
                quantity=float(quantity),
                price=round_half_up(quantity * unit_price),
                tier_label=CUSTOM_TIER_LABEL,
            )

    raise TierResolutionError(
        f"Cannot price {product.name}: choose a tier or enter both quantity and price."
    )
