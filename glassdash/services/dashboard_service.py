from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional

from ..data import settings_repository, snapshot_repository
from ..models.entities import AppSettings, Client, Order, OrderDraft, Product, Snapshot
from ..models.views import (
    ClientStats,
    DashboardStats,
    InventorySummary,
    LowStockAlert,
    MutationResult,
    ProductProfit,
    ReportSummary,
    SeriesPoint,
    TransactionLedger,
)
from . import aggregation, listing, reconciliation, reporting, transfer
from .errors import ImportValidationError, IntegrityViolation, ValidationError
from .listing import ClientSortKey, OrderSortKey
from .reporting import ProfitSortKey, ReportWindow

logger = logging.getLogger("glassdash.service")

# One writer at a time: load, compute and commit run under this lock.
_WRITE_LOCK = threading.RLock()

CSV_EXPORT_KINDS = ("orders", "clients", "products", "expenses")


def get_snapshot() -> Snapshot:
    return snapshot_repository.load_snapshot()


def get_app_settings() -> AppSettings:
    return settings_repository.get_app_settings()


def update_app_settings(settings: AppSettings) -> AppSettings:
    if "{seq" not in settings.order_number_format:
        raise ValidationError("Order number format must contain {seq}, for example ord-{seq:04d}.")
    if settings.low_stock_threshold < 0:
        raise ValidationError("Low stock threshold cannot be negative.")
    return settings_repository.update_app_settings(settings)


def _mutate(operation: Callable[[Snapshot, str], MutationResult]) -> MutationResult:
    actor = settings_repository.get_app_settings().operator_name
    with _WRITE_LOCK:
        current = snapshot_repository.load_snapshot()
        result = operation(current, actor)
        reconciliation.verify_integrity(result.snapshot)
        committed = snapshot_repository.commit(result.snapshot)
    if result.log is not None:
        logger.info("%s by %s: %s", result.log.action, actor, result.log.details)
    return replace(result, snapshot=committed)


# Orders ---------------------------------------------------------------------


def create_order(draft: OrderDraft) -> MutationResult:
    order_number_format = settings_repository.get_app_settings().order_number_format
    return _mutate(
        lambda snapshot, actor: reconciliation.create_order(
            snapshot, draft, actor=actor, order_number_format=order_number_format
        )
    )


def update_order(order_id: str, draft: OrderDraft) -> MutationResult:
    return _mutate(lambda snapshot, actor: reconciliation.update_order(snapshot, order_id, draft, actor=actor))


def delete_order(order_id: str) -> MutationResult:
    return _mutate(lambda snapshot, actor: reconciliation.delete_order(snapshot, order_id, actor=actor))


def mark_order_paid(order_id: str) -> MutationResult:
    return _mutate(lambda snapshot, actor: reconciliation.mark_order_paid(snapshot, order_id, actor=actor))


def list_orders(
    *,
    query: str = "",
    status: str = listing.STATUS_FILTER_ALL,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    sort_key: OrderSortKey = OrderSortKey.DATE,
    descending: bool = True,
) -> List[Order]:
    snapshot = get_snapshot()
    selected = listing.filter_orders(
        snapshot.orders,
        snapshot.clients,
        query=query,
        status=status,
        date_from=date_from,
        date_to=date_to,
    )
    return listing.sort_orders(selected, snapshot.clients, sort_key, descending=descending)


# Stock and expenses ---------------------------------------------------------


def replenish_stock(product_id: str, added_quantity: float, purchase_cost: float = 0.0) -> MutationResult:
    return _mutate(
        lambda snapshot, actor: reconciliation.replenish_stock(
            snapshot, product_id, added_quantity, purchase_cost, actor=actor
        )
    )


def create_expense(
    expense_date: date,
    description: str,
    amount: float,
    category: Optional[str] = None,
    notes: str = "",
) -> MutationResult:
    return _mutate(
        lambda snapshot, actor: reconciliation.create_expense(
            snapshot,
            expense_date=expense_date,
            description=description,
            amount=amount,
            category=category,
            notes=notes,
            actor=actor,
        )
    )


# Clients and products ---------------------------------------------------------


def create_client(client: Client) -> MutationResult:
    return _mutate(lambda snapshot, actor: reconciliation.create_client(snapshot, client, actor=actor))


def update_client(client: Client) -> MutationResult:
    return _mutate(lambda snapshot, actor: reconciliation.update_client(snapshot, client, actor=actor))


def delete_client(client_id: str) -> MutationResult:
    return _mutate(lambda snapshot, actor: reconciliation.delete_client(snapshot, client_id, actor=actor))


def list_client_stats(
    *,
    query: str = "",
    sort_key: ClientSortKey = ClientSortKey.BALANCE,
    descending: bool = True,
) -> List[ClientStats]:
    rows = listing.search_clients(aggregation.client_stats(get_snapshot()), query)
    return listing.sort_clients(rows, sort_key, descending=descending)


def create_product(product: Product) -> MutationResult:
    return _mutate(lambda snapshot, actor: reconciliation.create_product(snapshot, product, actor=actor))


def update_product(product: Product) -> MutationResult:
    return _mutate(lambda snapshot, actor: reconciliation.update_product(snapshot, product, actor=actor))


def delete_product(product_id: str) -> MutationResult:
    return _mutate(lambda snapshot, actor: reconciliation.delete_product(snapshot, product_id, actor=actor))


def list_products() -> List[Product]:
    return listing.default_product_order(get_snapshot().products)


# Dashboard and reports ----------------------------------------------------------


def get_dashboard_stats(today: Optional[date] = None) -> DashboardStats:
    return aggregation.dashboard_stats(get_snapshot(), today or date.today())


def get_inventory_summary() -> InventorySummary:
    return aggregation.inventory_summary(get_snapshot().products)


def list_notifications() -> List[LowStockAlert]:
    threshold = settings_repository.get_app_settings().low_stock_threshold
    return aggregation.low_stock_alerts(get_snapshot().products, threshold)


def get_report_summary(window: Optional[ReportWindow] = None) -> ReportSummary:
    snapshot = get_snapshot()
    return reporting.summarize(snapshot.orders, snapshot.expenses, snapshot.products, window)


def list_product_profitability(
    window: Optional[ReportWindow] = None,
    *,
    sort_key: ProfitSortKey = ProfitSortKey.NET_PROFIT,
    descending: bool = True,
) -> List[ProductProfit]:
    snapshot = get_snapshot()
    return reporting.product_profitability(
        snapshot.orders, snapshot.products, window, sort_key=sort_key, descending=descending
    )


def list_top_products(window: Optional[ReportWindow] = None, limit: int = 10) -> List[SeriesPoint]:
    snapshot = get_snapshot()
    return reporting.top_products(snapshot.orders, snapshot.products, window, limit)


def list_top_clients(window: Optional[ReportWindow] = None, limit: int = 10) -> List[SeriesPoint]:
    snapshot = get_snapshot()
    return reporting.top_clients(snapshot.orders, snapshot.clients, window, limit)


def list_monthly_sales(window: Optional[ReportWindow] = None) -> List[SeriesPoint]:
    return reporting.monthly_sales(get_snapshot().orders, window)


def list_expenses_by_category(window: Optional[ReportWindow] = None) -> List[SeriesPoint]:
    return reporting.expenses_by_category(get_snapshot().expenses, window)


def list_transactions(window: Optional[ReportWindow] = None, query: str = "") -> TransactionLedger:
    snapshot = get_snapshot()
    return reporting.transactions(snapshot.orders, snapshot.expenses, snapshot.clients, window, query)


# Import, export and wipe --------------------------------------------------------


def default_export_filename(kind: str, today: Optional[date] = None) -> str:
    stamp = (today or date.today()).isoformat()
    if kind == "all":
        return f"dashboard_export_{stamp}.json"
    return f"{kind}_export_{stamp}.csv"


def export_all(destination: str) -> Path:
    path = _prepare_destination(destination)
    with _WRITE_LOCK:
        snapshot = snapshot_repository.load_snapshot()
        path.write_text(transfer.dumps_snapshot(snapshot), encoding="utf-8")
    _mutate(lambda current, actor: reconciliation.record_event(current, "Data Exported", {"type": "all"}, actor=actor))
    return path


def export_table(kind: str, destination: str) -> Path:
    if kind not in CSV_EXPORT_KINDS:
        raise ValidationError(f"Unknown export type '{kind}'.")
    content = transfer.export_table(transfer.table_records(get_snapshot(), kind))
    path = _prepare_destination(destination)
    with path.open("w", newline="", encoding="utf-8") as handle:
        handle.write(content)
    _mutate(lambda current, actor: reconciliation.record_event(current, "Data Exported", {"type": kind}, actor=actor))
    return path


def import_file(source: str) -> Snapshot:
    path = Path(source).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ImportValidationError(f"File content could not be read as text: {exc}") from exc

    imported = transfer.import_snapshot(text)
    try:
        reconciliation.verify_integrity(imported)
    except IntegrityViolation as exc:
        raise ImportValidationError(f"Invalid file contents: {exc}") from exc

    details = {"fileName": path.name, "source": "user_upload"}
    result = _mutate(
        lambda current, actor: reconciliation.record_event(imported, "Data Imported", details, actor=actor)
    )
    logger.info("Imported %s: %d orders, %d clients", path.name, len(imported.orders), len(imported.clients))
    return result.snapshot


def delete_all_data() -> Snapshot:
    return _mutate(lambda snapshot, actor: reconciliation.wipe(snapshot, actor=actor)).snapshot


def _prepare_destination(destination: str) -> Path:
    path = Path(destination).expanduser()
    if not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    return path
