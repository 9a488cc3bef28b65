from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from .entities import Client, Expense, LogEntry, Order, Product, Snapshot


@dataclass
class ClientStats:
    client: Client
    orders: int
    total_spent: float
    total_paid: float
    total_discounts: float

    @property
    def balance(self) -> float:
        return self.total_spent - self.total_paid

    @property
    def average_order(self) -> float:
        if self.orders == 0:
            return 0.0
        return self.total_spent / self.orders


@dataclass
class ProductValuation:
    product: Product
    retail_value: float
    cost_value: float


@dataclass
class InventorySummary:
    retail_value: float
    cost_value: float
    rows: List[ProductValuation] = field(default_factory=list)


@dataclass
class DashboardStats:
    inventory_retail_value: float
    inventory_cost: float
    sales_today: float
    orders_today: int
    outstanding_debt: float
    unpaid_orders: int
    sales_this_week: float
    sales_this_month: float


@dataclass
class LowStockAlert:
    product: Product
    stock: float
    threshold: float

    @property
    def message(self) -> str:
        unit = "" if self.product.unit == "unit" else self.product.unit
        return f"Inventory low for {self.product.name}: {self.stock:g}{unit} on hand."


@dataclass
class ReportSummary:
    revenue: float
    cost: float
    expenses: float
    order_count: int

    @property
    def profit(self) -> float:
        return self.revenue - self.cost

    @property
    def net_income(self) -> float:
        return self.profit - self.expenses

    @property
    def average_order_value(self) -> float:
        if self.order_count == 0:
            return 0.0
        return self.revenue / self.order_count


@dataclass
class ProductProfit:
    product_id: str
    name: str
    units_sold: float = 0.0
    total_sales: float = 0.0
    total_cost: float = 0.0

    @property
    def net_profit(self) -> float:
        return self.total_sales - self.total_cost

    @property
    def margin(self) -> float:
        if self.total_sales == 0:
            return 0.0
        return self.net_profit / self.total_sales * 100


@dataclass
class SeriesPoint:
    label: str
    value: float


@dataclass
class Transaction:
    id: str
    date: date
    kind: str
    description: str
    amount: float
    source: object


@dataclass
class TransactionLedger:
    rows: List[Transaction]
    income: float
    expenses: float

    @property
    def net(self) -> float:
        return self.income + self.expenses


@dataclass
class MutationResult:
    snapshot: Snapshot
    log: Optional[LogEntry] = None
    expense: Optional[Expense] = None
    order: Optional[Order] = None
