from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt

from ..models.entities import LogEntry, Order, Product
from ..services.listing import effective_status


ColumnAccessor = Callable[[object], object]

_LEFT = int(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter)
_RIGHT = int(Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter)


@dataclass
class Column:
    title: str
    accessor: ColumnAccessor
    numeric: bool = False


def format_money(value: float) -> str:
    if value < 0:
        return f"-${-value:,.2f}"
    return f"${value:,.2f}"


def format_quantity(value: float, unit: str = "unit") -> str:
    suffix = "" if unit == "unit" else unit
    return f"{value:g}{suffix}"


class ListTableModel(QAbstractTableModel):
    def __init__(self, columns: Sequence[Column], rows: Iterable[object] | None = None) -> None:
        super().__init__()
        self._columns: List[Column] = list(columns)
        self._rows: List[object] = list(rows or [])

    def rowCount(self, parent: QModelIndex | None = None) -> int:  # noqa: N802
        if parent and parent.isValid():
            return 0
        return len(self._rows)

    def columnCount(self, parent: QModelIndex | None = None) -> int:  # noqa: N802
        return len(self._columns)

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole) -> object | None:  # noqa: N802
        if not index.isValid() or not (0 <= index.row() < len(self._rows)):
            return None

        column = self._columns[index.column()]
        if role in (Qt.ItemDataRole.DisplayRole, Qt.ItemDataRole.EditRole):
            value = column.accessor(self._rows[index.row()])
            return "" if value is None else value

        if role == Qt.ItemDataRole.TextAlignmentRole:
            return _RIGHT if column.numeric else _LEFT

        return None

    def headerData(self, section: int, orientation: Qt.Orientation, role: int = Qt.ItemDataRole.DisplayRole) -> object | None:  # noqa: N802
        if orientation == Qt.Orientation.Horizontal and role == Qt.ItemDataRole.DisplayRole:
            return self._columns[section].title
        return super().headerData(section, orientation, role)

    def update_rows(self, rows: Iterable[object]) -> None:
        self.beginResetModel()
        self._rows = list(rows)
        self.endResetModel()

    def row_at(self, row: int) -> Optional[object]:
        if 0 <= row < len(self._rows):
            return self._rows[row]
        return None

    def clear(self) -> None:
        self.update_rows([])


def order_columns(client_names: Dict[str, str]) -> List[Column]:
    def client_name(order: Order) -> str:
        return client_names.get(order.client_id, "Unknown Client")

    return [
        Column("Order #", lambda order: order.id),
        Column("Client", client_name),
        Column("Date", lambda order: order.date.isoformat()),
        Column("Items", lambda order: len(order.items), numeric=True),
        Column("Total", lambda order: format_money(order.total), numeric=True),
        Column("Paid", lambda order: format_money(order.amount_paid), numeric=True),
        Column("Balance", lambda order: format_money(order.balance), numeric=True),
        Column("Status", effective_status),
        Column("Payment", lambda order: order.payment_methods.summary),
    ]


def client_columns() -> List[Column]:
    return [
        Column("ID", lambda stats: stats.client.display_label),
        Column("Name", lambda stats: stats.client.name),
        Column("Email", lambda stats: stats.client.email),
        Column("Phone", lambda stats: stats.client.phone),
        Column("Orders", lambda stats: stats.orders, numeric=True),
        Column("Total Spent", lambda stats: format_money(stats.total_spent), numeric=True),
        Column("Balance", lambda stats: format_money(stats.balance), numeric=True),
        Column("Discounts", lambda stats: format_money(stats.total_discounts), numeric=True),
    ]


def product_columns() -> List[Column]:
    def tiers(product: Product) -> str:
        return ", ".join(f"{tier.label} {format_money(tier.price)}" for tier in product.tiers)

    def last_ordered(product: Product) -> str:
        return product.last_ordered.strftime("%Y-%m-%d %H:%M") if product.last_ordered else ""

    return [
        Column("Name", lambda product: product.name + (" (inactive)" if product.inactive else "")),
        Column("Stock", lambda product: format_quantity(product.stock, product.unit), numeric=True),
        Column("Cost / Unit", lambda product: format_money(product.unit_cost), numeric=True),
        Column("Inventory Cost", lambda product: format_money(product.stock * product.unit_cost), numeric=True),
        Column("Tiers", tiers),
        Column("Last Ordered", last_ordered),
    ]


def profit_columns() -> List[Column]:
    return [
        Column("Product", lambda row: row.name),
        Column("Units Sold", lambda row: f"{row.units_sold:g}", numeric=True),
        Column("Sales", lambda row: format_money(row.total_sales), numeric=True),
        Column("Cost", lambda row: format_money(row.total_cost), numeric=True),
        Column("Net Profit", lambda row: format_money(row.net_profit), numeric=True),
        Column("Margin", lambda row: f"{row.margin:.1f}%", numeric=True),
    ]


def transaction_columns() -> List[Column]:
    return [
        Column("Date", lambda row: row.date.isoformat()),
        Column("Type", lambda row: row.kind),
        Column("Description", lambda row: row.description),
        Column("Amount", lambda row: format_money(row.amount), numeric=True),
    ]


def log_columns() -> List[Column]:
    def details(entry: LogEntry) -> str:
        return ", ".join(f"{key}: {value}" for key, value in entry.details.items())

    return [
        Column("When", lambda entry: entry.timestamp.strftime("%Y-%m-%d %H:%M:%S")),
        Column("User", lambda entry: entry.actor),
        Column("Action", lambda entry: entry.action),
        Column("Details", details),
    ]

