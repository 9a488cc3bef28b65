from __future__ import annotations

import logging
from dataclasses import dataclass

from ..models.entities import Product
from .errors import InsufficientStockError, StockShortfall, ValidationError
from .totals import exact_sum, round_currency

logger = logging.getLogger("glassdash.costing")


@dataclass
class Replenishment:
    new_stock: float
    new_unit_cost: float
    expense_amount: float = 0.0

    @property
    def creates_expense(self) -> bool:
        return self.expense_amount > 0


def purchase_expense_required(added_quantity: float, purchase_cost: float) -> bool:
    return purchase_cost > 0 and added_quantity > 0


def replenish(product: Product, added_quantity: float, purchase_cost: float = 0.0) -> Replenishment:
    """Weighted-average cost update for a stock receipt or correction.

    The unit cost only moves when stock is added with a positive purchase cost;
    corrections (negative quantities) and free receipts leave it alone.
    """
    if purchase_cost < 0:
        raise ValidationError("Purchase cost cannot be negative.")

    new_stock = exact_sum(product.stock, added_quantity)
    if new_stock < 0:
        raise InsufficientStockError(
            [
                StockShortfall(
                    product_id=product.id,
                    product_name=product.name,
                    available=product.stock,
                    requested=-added_quantity,
                )
            ]
        )

    new_unit_cost = product.unit_cost
    if added_quantity > 0 and purchase_cost > 0 and new_stock > 0:
        inventory_value = product.stock * product.unit_cost + purchase_cost
        new_unit_cost = round_currency(inventory_value / new_stock)
        logger.debug(
            "Unit cost for %s: %.2f -> %.2f over %g units",
            product.id,
            product.unit_cost,
            new_unit_cost,
            new_stock,
        )

    expense_amount = purchase_cost if purchase_expense_required(added_quantity, purchase_cost) else 0.0
    return Replenishment(new_stock=new_stock, new_unit_cost=new_unit_cost, expense_amount=expense_amount)
