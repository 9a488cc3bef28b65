"""Derived client and inventory views.

Nothing here is stored. Every function folds over a tuple copy of the
collections taken at call time, so a snapshot swapped in by a refresh while a
fold is running cannot change the result half way through.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, Iterable, List, Tuple

from ..models.entities import Order, Product, Snapshot
from ..models.views import ClientStats, DashboardStats, InventorySummary, LowStockAlert, ProductValuation
from .pricing import base_unit_price


def client_stats(snapshot: Snapshot) -> List[ClientStats]:
    clients = tuple(snapshot.clients)
    orders = tuple(snapshot.orders)

    by_client: Dict[str, List[Order]] = {client.id: [] for client in clients}
    for order in orders:
        bucket = by_client.get(order.client_id)
        if bucket is not None:
            bucket.append(order)

    results: List[ClientStats] = []
    for client in clients:
        client_orders = by_client[client.id]
        results.append(
            ClientStats(
                client=client,
                orders=len(client_orders),
                total_spent=sum(order.total for order in client_orders),
                total_paid=sum(order.amount_paid for order in client_orders),
                total_discounts=sum(order.discount.amount for order in client_orders),
            )
        )
    return results


def inventory_retail_value(product: Product) -> float:
    if product.stock <= 0 or not product.tiers:
        return 0.0
    unit_price = base_unit_price(product)
    if unit_price is None:
        return 0.0
    return product.stock * unit_price


def inventory_cost(product: Product) -> float:
    return product.stock * product.unit_cost


def inventory_summary(products: Iterable[Product]) -> InventorySummary:
    rows = [
        ProductValuation(
            product=product,
            retail_value=inventory_retail_value(product),
            cost_value=inventory_cost(product),
        )
        for product in tuple(products)
    ]
    return InventorySummary(
        retail_value=sum(row.retail_value for row in rows),
        cost_value=sum(row.cost_value for row in rows),
        rows=rows,
    )


def dashboard_stats(snapshot: Snapshot, today: date) -> DashboardStats:
    orders = tuple(snapshot.orders)
    inventory = inventory_summary(snapshot.products)
    week_start, month_start = _period_starts(today)

    todays_orders = [order for order in orders if order.date == today]
    unpaid = [order for order in orders if order.balance > 0]

    return DashboardStats(
        inventory_retail_value=inventory.retail_value,
        inventory_cost=inventory.cost_value,
        sales_today=sum(order.total for order in todays_orders),
        orders_today=len(todays_orders),
        outstanding_debt=sum(order.balance for order in unpaid),
        unpaid_orders=len(unpaid),
        sales_this_week=sum(order.total for order in orders if week_start <= order.date <= today),
        sales_this_month=sum(order.total for order in orders if month_start <= order.date <= today),
    )


def low_stock_alerts(products: Iterable[Product], threshold: float) -> List[LowStockAlert]:
    alerts = [
        LowStockAlert(product=product, stock=product.stock, threshold=threshold)
        for product in tuple(products)
        if not product.inactive and product.stock <= threshold
    ]
    alerts.sort(key=lambda alert: (alert.stock, alert.product.name.lower()))
    return alerts


def _period_starts(today: date) -> Tuple[date, date]:
    # Weeks start on Sunday.
    days_since_sunday = (today.weekday() + 1) % 7
    return today - timedelta(days=days_since_sunday), today.replace(day=1)
