from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..models.entities import Client, Expense, Order, Product
from ..models.views import ProductProfit, ReportSummary, SeriesPoint, Transaction, TransactionLedger

UNCATEGORIZED = "Uncategorized"


@dataclass
class ReportWindow:
    start: Optional[date] = None
    end: Optional[date] = None

    def contains(self, value: date) -> bool:
        if self.start is not None and value < self.start:
            return False
        if self.end is not None and value > self.end:
            return False
        return True

    def orders(self, orders: Iterable[Order]) -> List[Order]:
        return [order for order in orders if self.contains(order.date)]

    def expenses(self, expenses: Iterable[Expense]) -> List[Expense]:
        return [expense for expense in expenses if self.contains(expense.date)]


class ProfitSortKey(Enum):
    NAME = "name"
    UNITS_SOLD = "units_sold"
    TOTAL_SALES = "total_sales"
    TOTAL_COST = "total_cost"
    NET_PROFIT = "net_profit"
    MARGIN = "margin"


_PROFIT_KEYS: Dict[ProfitSortKey, Callable[[ProductProfit], object]] = {
    ProfitSortKey.NAME: lambda row: row.name.lower(),
    ProfitSortKey.UNITS_SOLD: lambda row: row.units_sold,
    ProfitSortKey.TOTAL_SALES: lambda row: row.total_sales,
    ProfitSortKey.TOTAL_COST: lambda row: row.total_cost,
    ProfitSortKey.NET_PROFIT: lambda row: row.net_profit,
    ProfitSortKey.MARGIN: lambda row: row.margin,
}


def order_cost(order: Order, products: Dict[str, Product]) -> float:
    cost = 0.0
    for item in order.items:
        product = products.get(item.product_id)
        if product is not None:
            cost += item.quantity * product.unit_cost
    return cost


def summarize(
    orders: Sequence[Order],
    expenses: Sequence[Expense],
    products: Iterable[Product],
    window: Optional[ReportWindow] = None,
) -> ReportSummary:
    window = window or ReportWindow()
    product_index = {product.id: product for product in tuple(products)}
    selected_orders = window.orders(tuple(orders))
    selected_expenses = window.expenses(tuple(expenses))
    return ReportSummary(
        revenue=sum(order.total for order in selected_orders),
        cost=sum(order_cost(order, product_index) for order in selected_orders),
        expenses=sum(expense.amount for expense in selected_expenses),
        order_count=len(selected_orders),
    )


def product_profitability(
    orders: Sequence[Order],
    products: Iterable[Product],
    window: Optional[ReportWindow] = None,
    *,
    sort_key: ProfitSortKey = ProfitSortKey.NET_PROFIT,
    descending: bool = True,
) -> List[ProductProfit]:
    window = window or ReportWindow()
    product_index = {product.id: product for product in tuple(products)}
    rows: Dict[str, ProductProfit] = {}

    for order in window.orders(tuple(orders)):
        for item in order.items:
            product = product_index.get(item.product_id)
            if product is None:
                continue
            row = rows.get(product.id)
            if row is None:
                row = ProductProfit(product_id=product.id, name=product.name)
                rows[product.id] = row
            row.units_sold += item.quantity
            row.total_sales += item.price
            row.total_cost += item.quantity * product.unit_cost

    return sorted(rows.values(), key=_PROFIT_KEYS[sort_key], reverse=descending)


def top_products(
    orders: Sequence[Order],
    products: Iterable[Product],
    window: Optional[ReportWindow] = None,
    limit: int = 10,
) -> List[SeriesPoint]:
    window = window or ReportWindow()
    product_index = {product.id: product for product in tuple(products)}
    sales: Dict[str, float] = {}
    labels: Dict[str, str] = {}
    for order in window.orders(tuple(orders)):
        for item in order.items:
            product = product_index.get(item.product_id)
            if product is None:
                continue
            labels.setdefault(product.id, product.name)
            sales[product.id] = sales.get(product.id, 0.0) + item.price
    return _top(((labels[key], value) for key, value in sales.items()), limit)


def top_clients(
    orders: Sequence[Order],
    clients: Iterable[Client],
    window: Optional[ReportWindow] = None,
    limit: int = 10,
) -> List[SeriesPoint]:
    window = window or ReportWindow()
    client_index = {client.id: client for client in tuple(clients)}
    sales: Dict[str, float] = {}
    for order in window.orders(tuple(orders)):
        client = client_index.get(order.client_id)
        if client is None:
            continue
        sales[client.id] = sales.get(client.id, 0.0) + order.total
    return _top(((client_index[key].name, value) for key, value in sales.items()), limit)


def monthly_sales(orders: Sequence[Order], window: Optional[ReportWindow] = None) -> List[SeriesPoint]:
    window = window or ReportWindow()
    totals: Dict[str, float] = {}
    for order in window.orders(tuple(orders)):
        month = order.date.strftime("%Y-%m")
        totals[month] = totals.get(month, 0.0) + order.total
    return [SeriesPoint(label=label, value=totals[label]) for label in sorted(totals)]


def expenses_by_category(expenses: Sequence[Expense], window: Optional[ReportWindow] = None) -> List[SeriesPoint]:
    window = window or ReportWindow()
    totals: Dict[str, float] = {}
    for expense in window.expenses(tuple(expenses)):
        category = (expense.category or "").strip() or UNCATEGORIZED
        totals[category] = totals.get(category, 0.0) + expense.amount
    points = [SeriesPoint(label=label, value=value) for label, value in totals.items()]
    return sorted(points, key=lambda point: point.value, reverse=True)


def transactions(
    orders: Sequence[Order],
    expenses: Sequence[Expense],
    clients: Iterable[Client],
    window: Optional[ReportWindow] = None,
    query: str = "",
) -> TransactionLedger:
    window = window or ReportWindow()
    client_index = {client.id: client for client in tuple(clients)}
    needle = query.strip().lower()

    rows: List[Transaction] = []
    for order in tuple(orders):
        client = client_index.get(order.client_id)
        client_name = client.name if client else "Unknown Client"
        rows.append(
            Transaction(
                id=f"order-{order.id}",
                date=order.date,
                kind="Income",
                description=f"Order {order.id} for {client_name}",
                amount=order.total,
                source=order,
            )
        )
    for expense in tuple(expenses):
        rows.append(
            Transaction(
                id=f"expense-{expense.id}",
                date=expense.date,
                kind="Expense",
                description=expense.description,
                amount=-expense.amount,
                source=expense,
            )
        )

    def matches(row: Transaction) -> bool:
        if not window.contains(row.date):
            return False
        if not needle:
            return True
        category = getattr(row.source, "category", None) or ""
        return needle in row.description.lower() or needle in category.lower()

    selected = sorted((row for row in rows if matches(row)), key=lambda row: row.date, reverse=True)
    return TransactionLedger(
        rows=selected,
        income=sum(row.amount for row in selected if row.kind == "Income"),
        expenses=sum(row.amount for row in selected if row.kind == "Expense"),
    )


def _top(pairs: Iterable[Tuple[str, float]], limit: int) -> List[SeriesPoint]:
    points = [SeriesPoint(label=label, value=value) for label, value in pairs]
    points.sort(key=lambda point: point.value, reverse=True)
    return points[: max(0, limit)]
