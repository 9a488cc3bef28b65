"""Stock reconciliation for order create, edit and delete.

Every operation is reduced to one signed delta per product and validated as a
whole against the products as they were before the operation. A plan that
would leave any product below zero is rejected and nothing is applied.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Sequence

from ..models.entities import OrderItem, Product
from .errors import InsufficientStockError, StockShortfall, ValidationError
from .totals import exact_sum

logger = logging.getLogger("glassdash.stock")

_STOCK_EPSILON = 1e-9


@dataclass
class StockPlan:
    deltas: Dict[str, float] = field(default_factory=dict)
    touched: List[str] = field(default_factory=list)

    def delta_for(self, product_id: str) -> float:
        return self.deltas.get(product_id, 0.0)


def summarize_quantities(items: Iterable[OrderItem]) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    for item in items:
        product_id = item.product_id.strip()
        if not product_id:
            continue
        totals[product_id] = exact_sum(totals.get(product_id, 0.0), item.quantity)
    return totals


def plan_create(products: Sequence[Product], items: Iterable[OrderItem]) -> StockPlan:
    consumed = summarize_quantities(items)
    _require_known_products(products, consumed)
    plan = StockPlan(
        deltas={product_id: -quantity for product_id, quantity in consumed.items()},
        touched=list(consumed),
    )
    validate_plan(products, plan)
    return plan


def plan_update(
    products: Sequence[Product],
    original_items: Iterable[OrderItem],
    updated_items: Iterable[OrderItem],
) -> StockPlan:
    returned = summarize_quantities(original_items)
    consumed = summarize_quantities(updated_items)
    _require_known_products(products, consumed)

    known = {product.id for product in products}
    deltas: Dict[str, float] = {}
    for product_id, quantity in returned.items():
        if product_id in known:
            deltas[product_id] = quantity
    for product_id, quantity in consumed.items():
        deltas[product_id] = exact_sum(deltas.get(product_id, 0.0), -quantity)

    plan = StockPlan(deltas=deltas, touched=list(consumed))
    validate_plan(products, plan)
    return plan


def plan_delete(products: Sequence[Product], items: Iterable[OrderItem]) -> StockPlan:
    returned = summarize_quantities(items)
    known = {product.id for product in products}
    # Items whose product no longer exists have nowhere to return to.
    deltas = {product_id: quantity for product_id, quantity in returned.items() if product_id in known}
    return StockPlan(deltas=deltas, touched=[])


def validate_plan(products: Sequence[Product], plan: StockPlan) -> None:
    shortfalls: List[StockShortfall] = []
    for product in products:
        delta = plan.delta_for(product.id)
        if delta >= 0:
            continue
        if exact_sum(product.stock, delta) < -_STOCK_EPSILON:
            shortfalls.append(
                StockShortfall(
                    product_id=product.id,
                    product_name=product.name,
                    available=product.stock,
                    requested=-delta,
                )
            )

    if shortfalls:
        logger.info(
            "Rejected stock plan: %s",
            ", ".join(f"{item.product_id} short by {item.requested - item.available:g}" for item in shortfalls),
        )
        raise InsufficientStockError(shortfalls)


def apply_plan(products: Sequence[Product], plan: StockPlan, now: datetime) -> List[Product]:
    touched = set(plan.touched)
    updated: List[Product] = []
    for product in products:
        delta = plan.delta_for(product.id)
        if product.id not in plan.deltas and product.id not in touched:
            updated.append(product)
            continue
        new_stock = _normalize_stock(exact_sum(product.stock, delta))
        last_ordered = now if product.id in touched else product.last_ordered
        updated.append(replace(product, stock=new_stock, last_ordered=last_ordered))
        if delta:
            logger.debug("Stock %s: %g -> %g", product.id, product.stock, new_stock)
    return updated


def _require_known_products(products: Sequence[Product], quantities: Mapping[str, float]) -> None:
    known = {product.id for product in products}
    missing = [product_id for product_id in quantities if product_id not in known]
    if missing:
        raise ValidationError(f"Unknown product(s): {', '.join(missing)}.")


def _normalize_stock(value: float) -> float:
    if abs(value) < _STOCK_EPSILON:
        return 0.0
    return value
