"""Filtering and ordering for the list views.

Sortable columns are a closed set of keys, each bound to a key function, in
place of looking attributes up by name.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from ..models.entities import STATUS_COMPLETED, STATUS_UNPAID, Client, Order, Product
from ..models.views import ClientStats

STATUS_FILTER_ALL = "All"


class OrderSortKey(Enum):
    ID = "id"
    CLIENT = "client"
    DATE = "date"
    TOTAL = "total"
    BALANCE = "balance"
    STATUS = "status"


class ClientSortKey(Enum):
    DISPLAY_ID = "display_id"
    NAME = "name"
    ORDERS = "orders"
    TOTAL_SPENT = "total_spent"
    BALANCE = "balance"
    DISCOUNTS = "discounts"


def effective_status(order: Order) -> str:
    if order.balance <= 0:
        return STATUS_COMPLETED
    return order.status


def filter_orders(
    orders: Iterable[Order],
    clients: Iterable[Client],
    *,
    query: str = "",
    status: str = STATUS_FILTER_ALL,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> List[Order]:
    names = {client.id: client.name.lower() for client in clients}
    needle = query.strip().lower()
    results: List[Order] = []

    for order in tuple(orders):
        if needle and needle not in order.id.lower() and needle not in names.get(order.client_id, ""):
            continue
        if date_from is not None and order.date < date_from:
            continue
        if date_to is not None and order.date > date_to:
            continue
        if status == STATUS_COMPLETED:
            if not (order.status == STATUS_COMPLETED or order.balance <= 0):
                continue
        elif status == STATUS_UNPAID:
            if not (order.status == STATUS_UNPAID and order.balance > 0):
                continue
        elif status != STATUS_FILTER_ALL and order.status != status:
            continue
        results.append(order)

    return results


def sort_orders(
    orders: Iterable[Order],
    clients: Iterable[Client],
    key: OrderSortKey,
    *,
    descending: bool = False,
) -> List[Order]:
    names = {client.id: client.name.lower() for client in clients}
    key_functions: Dict[OrderSortKey, Callable[[Order], object]] = {
        OrderSortKey.ID: lambda order: order.id,
        OrderSortKey.CLIENT: lambda order: names.get(order.client_id, ""),
        OrderSortKey.DATE: lambda order: order.date,
        OrderSortKey.TOTAL: lambda order: order.total,
        OrderSortKey.BALANCE: lambda order: order.balance,
        OrderSortKey.STATUS: effective_status,
    }
    return sorted(orders, key=key_functions[key], reverse=descending)


_CLIENT_KEYS: Dict[ClientSortKey, Callable[[ClientStats], object]] = {
    ClientSortKey.DISPLAY_ID: lambda stats: stats.client.display_id,
    ClientSortKey.NAME: lambda stats: stats.client.name.lower(),
    ClientSortKey.ORDERS: lambda stats: stats.orders,
    ClientSortKey.TOTAL_SPENT: lambda stats: stats.total_spent,
    ClientSortKey.BALANCE: lambda stats: stats.balance,
    ClientSortKey.DISCOUNTS: lambda stats: stats.total_discounts,
}


def search_clients(rows: Iterable[ClientStats], query: str = "") -> List[ClientStats]:
    needle = query.strip().lower()
    if not needle:
        return list(rows)
    return [
        stats
        for stats in rows
        if needle in stats.client.name.lower()
        or needle in stats.client.email.lower()
        or needle in stats.client.display_label
    ]


def sort_clients(
    rows: Iterable[ClientStats],
    key: ClientSortKey = ClientSortKey.BALANCE,
    *,
    descending: bool = True,
) -> List[ClientStats]:
    ordered = list(rows)
    if key != ClientSortKey.ORDERS:
        # Secondary order: busiest clients first among equal primary values.
        ordered.sort(key=lambda stats: stats.orders, reverse=True)
    ordered.sort(key=_CLIENT_KEYS[key], reverse=descending)
    return ordered


def default_product_order(products: Iterable[Product]) -> List[Product]:
    products = tuple(products)
    in_stock = [product for product in products if product.stock > 0]
    out_of_stock = [product for product in products if product.stock <= 0]

    in_stock.sort(key=lambda product: product.name.lower())
    in_stock.sort(key=lambda product: product.stock * product.unit_cost, reverse=True)
    in_stock.sort(
        key=lambda product: product.last_ordered.timestamp() if product.last_ordered else 0.0,
        reverse=True,
    )
    in_stock.sort(key=lambda product: product.last_ordered is None)

    out_of_stock.sort(key=lambda product: product.name.lower())
    return in_stock + out_of_stock
