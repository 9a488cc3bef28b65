from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple


UNIT_KINDS: Tuple[str, ...] = ("g", "ml", "unit")

STATUS_DRAFT = "Draft"
STATUS_UNPAID = "Unpaid"
STATUS_COMPLETED = "Completed"
ORDER_STATUSES: Tuple[str, ...] = (STATUS_DRAFT, STATUS_UNPAID, STATUS_COMPLETED)

CUSTOM_TIER_LABEL = "custom"
INVENTORY_EXPENSE_CATEGORY = "Inventory"


@dataclass
class Tier:
    label: str
    quantity: float
    price: float

    @property
    def unit_price(self) -> Optional[float]:
        if self.quantity <= 0:
            return None
        return self.price / self.quantity


@dataclass
class Product:
    id: str
    name: str
    unit: str = "unit"
    stock: float = 0.0
    unit_cost: float = 0.0
    increment: float = 1.0
    tiers: List[Tier] = field(default_factory=list)
    last_ordered: Optional[datetime] = None
    inactive: bool = False

    def find_tier(self, label: Optional[str]) -> Optional[Tier]:
        if not label:
            return None
        for tier in self.tiers:
            if tier.label == label:
                return tier
        return None


@dataclass
class OrderItem:
    product_id: str
    quantity: float
    price: float
    tier_label: Optional[str] = None


@dataclass
class Adjustment:
    amount: float = 0.0
    description: str = ""


@dataclass
class PaymentMethods:
    cash: bool = False
    etransfer: bool = False
    other: bool = False
    other_details: str = ""

    @property
    def summary(self) -> str:
        methods: List[str] = []
        if self.cash:
            methods.append("Cash")
        if self.etransfer:
            methods.append("E-Transfer")
        if self.other:
            methods.append(self.other_details.strip() or "Other")
        return ", ".join(methods) or "N/A"


@dataclass
class Order:
    id: str
    client_id: str
    items: List[OrderItem]
    total: float
    status: str
    date: date
    notes: str = ""
    amount_paid: float = 0.0
    payment_methods: PaymentMethods = field(default_factory=PaymentMethods)
    fee: Adjustment = field(default_factory=Adjustment)
    discount: Adjustment = field(default_factory=Adjustment)
    reconciled: bool = False

    @property
    def balance(self) -> float:
        return self.total - self.amount_paid


@dataclass
class OrderDraft:
    """Caller-supplied order fields; total and status are always derived."""

    client_id: str
    items: List[OrderItem]
    date: date
    notes: str = ""
    amount_paid: float = 0.0
    payment_methods: PaymentMethods = field(default_factory=PaymentMethods)
    fee: Adjustment = field(default_factory=Adjustment)
    discount: Adjustment = field(default_factory=Adjustment)


@dataclass
class Client:
    id: str
    display_id: int
    name: str
    email: str = ""
    phone: str = ""
    address: str = ""
    notes: str = ""
    etransfer: str = ""
    inactive: bool = False

    @property
    def display_label(self) -> str:
        return f"#{self.display_id}"


@dataclass
class Expense:
    id: str
    date: date
    description: str
    amount: float
    category: Optional[str] = None
    notes: str = ""


@dataclass
class LogEntry:
    id: str
    timestamp: datetime
    actor: str
    action: str
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Snapshot:
    clients: Tuple[Client, ...] = ()
    products: Tuple[Product, ...] = ()
    orders: Tuple[Order, ...] = ()
    expenses: Tuple[Expense, ...] = ()
    logs: Tuple[LogEntry, ...] = ()

    def find_client(self, client_id: str) -> Optional[Client]:
        return next((client for client in self.clients if client.id == client_id), None)

    def find_product(self, product_id: str) -> Optional[Product]:
        return next((product for product in self.products if product.id == product_id), None)

    def find_order(self, order_id: str) -> Optional[Order]:
        return next((order for order in self.orders if order.id == order_id), None)


@dataclass
class AppSettings:
    business_name: str
    operator_name: str
    low_stock_threshold: float = 5.0
    order_number_format: str = "ord-{seq:04d}"
