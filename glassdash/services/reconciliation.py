"""Snapshot-to-snapshot operations behind every user action.

Each operation validates against the snapshot it is given, builds the complete
successor snapshot and returns it with the log entry it appended. When
validation fails an exception is raised and the input snapshot is the only
state there is, so nothing needs undoing.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence
from uuid import uuid4

from ..models.entities import (
    INVENTORY_EXPENSE_CATEGORY,
    STATUS_DRAFT,
    UNIT_KINDS,
    Client,
    Expense,
    LogEntry,
    Order,
    OrderDraft,
    OrderItem,
    Product,
    Snapshot,
    Tier,
)
from ..models.views import MutationResult
from . import costing, stock
from .errors import IntegrityViolation, NotFoundError, ValidationError
from .totals import compute_status, compute_total

logger = logging.getLogger("glassdash.reconciliation")

DEFAULT_ACTOR = "Unknown User"
DEFAULT_ORDER_NUMBER_FORMAT = "ord-{seq:04d}"

_SEQUENCE_PATTERN = re.compile(r"(\d+)(?!.*\d)")
_TOTAL_TOLERANCE = 1e-6


# Orders ---------------------------------------------------------------------


def create_order(
    snapshot: Snapshot,
    draft: OrderDraft,
    *,
    actor: str = DEFAULT_ACTOR,
    now: Optional[datetime] = None,
    order_number_format: str = DEFAULT_ORDER_NUMBER_FORMAT,
) -> MutationResult:
    now = now or datetime.now()
    items = _validate_draft(snapshot, draft)

    plan = stock.plan_create(snapshot.products, items)
    total = compute_total(items, draft.fee, draft.discount)
    order = Order(
        id=next_order_id(snapshot.orders, order_number_format),
        client_id=draft.client_id,
        items=items,
        total=total,
        status=compute_status(total, draft.amount_paid),
        date=draft.date,
        notes=draft.notes,
        amount_paid=draft.amount_paid,
        payment_methods=draft.payment_methods,
        fee=draft.fee,
        discount=draft.discount,
    )

    log = _log_entry(actor, now, "Order Created", {"orderId": order.id, "client": order.client_id, "total": total})
    updated = replace(
        snapshot,
        products=tuple(stock.apply_plan(snapshot.products, plan, now)),
        orders=(order,) + snapshot.orders,
        logs=(log,) + snapshot.logs,
    )
    return MutationResult(snapshot=updated, log=log, order=order)


def update_order(
    snapshot: Snapshot,
    order_id: str,
    draft: OrderDraft,
    *,
    actor: str = DEFAULT_ACTOR,
    now: Optional[datetime] = None,
) -> MutationResult:
    now = now or datetime.now()
    existing = _require_order(snapshot, order_id)
    items = _validate_draft(snapshot, draft)

    # Stock is reconciled against the stored order, never a caller-held copy.
    plan = stock.plan_update(snapshot.products, existing.items, items)
    total = compute_total(items, draft.fee, draft.discount)
    order = replace(
        existing,
        client_id=draft.client_id,
        items=items,
        total=total,
        status=compute_status(total, draft.amount_paid),
        date=draft.date,
        notes=draft.notes,
        amount_paid=draft.amount_paid,
        payment_methods=draft.payment_methods,
        fee=draft.fee,
        discount=draft.discount,
    )

    log = _log_entry(actor, now, "Order Updated", {"orderId": order.id, "total": total})
    updated = replace(
        snapshot,
        products=tuple(stock.apply_plan(snapshot.products, plan, now)),
        orders=tuple(order if candidate.id == order.id else candidate for candidate in snapshot.orders),
        logs=(log,) + snapshot.logs,
    )
    return MutationResult(snapshot=updated, log=log, order=order)


def delete_order(
    snapshot: Snapshot,
    order_id: str,
    *,
    actor: str = DEFAULT_ACTOR,
    now: Optional[datetime] = None,
) -> MutationResult:
    now = now or datetime.now()
    existing = _require_order(snapshot, order_id)
    plan = stock.plan_delete(snapshot.products, existing.items)

    log = _log_entry(actor, now, "Order Deleted", {"orderId": existing.id})
    updated = replace(
        snapshot,
        products=tuple(stock.apply_plan(snapshot.products, plan, now)),
        orders=tuple(order for order in snapshot.orders if order.id != existing.id),
        logs=(log,) + snapshot.logs,
    )
    return MutationResult(snapshot=updated, log=log, order=existing)


def mark_order_paid(
    snapshot: Snapshot,
    order_id: str,
    *,
    actor: str = DEFAULT_ACTOR,
    now: Optional[datetime] = None,
) -> MutationResult:
    now = now or datetime.now()
    existing = _require_order(snapshot, order_id)
    # Overpayment is kept as credit.
    amount_paid = max(existing.amount_paid, existing.total, 0.0)
    order = replace(existing, amount_paid=amount_paid, status=compute_status(existing.total, amount_paid))

    log = _log_entry(actor, now, "Order Marked as Paid", {"orderId": order.id})
    updated = replace(
        snapshot,
        orders=tuple(order if candidate.id == order.id else candidate for candidate in snapshot.orders),
        logs=(log,) + snapshot.logs,
    )
    return MutationResult(snapshot=updated, log=log, order=order)


def next_order_id(orders: Iterable[Order], order_number_format: str = DEFAULT_ORDER_NUMBER_FORMAT) -> str:
    existing = {order.id for order in orders}
    sequences = [_extract_sequence_value(order_id) for order_id in existing]
    sequence = max((value for value in sequences if value is not None), default=0) + 1

    candidate = _format_order_number(order_number_format, sequence)
    while candidate in existing:
        sequence += 1
        candidate = _format_order_number(order_number_format, sequence)
    return candidate


# Stock and expenses ---------------------------------------------------------


def replenish_stock(
    snapshot: Snapshot,
    product_id: str,
    added_quantity: float,
    purchase_cost: float = 0.0,
    *,
    actor: str = DEFAULT_ACTOR,
    now: Optional[datetime] = None,
) -> MutationResult:
    now = now or datetime.now()
    product = _require_product(snapshot, product_id)
    receipt = costing.replenish(product, added_quantity, purchase_cost)

    updated_product = replace(product, stock=receipt.new_stock, unit_cost=receipt.new_unit_cost)
    result = MutationResult(
        snapshot=replace(
            snapshot,
            products=tuple(updated_product if item.id == product.id else item for item in snapshot.products),
        )
    )

    if receipt.creates_expense:
        result = create_expense(
            result.snapshot,
            expense_date=now.date(),
            description=f"Stock purchase for {product.name}",
            amount=receipt.expense_amount,
            category=INVENTORY_EXPENSE_CATEGORY,
            actor=actor,
            now=now,
        )

    log = _log_entry(
        actor,
        now,
        "Stock Updated",
        {"productId": product.id, "name": product.name, "change": added_quantity, "newStock": receipt.new_stock},
    )
    updated = replace(result.snapshot, logs=(log,) + result.snapshot.logs)
    return MutationResult(snapshot=updated, log=log, expense=result.expense)


def create_expense(
    snapshot: Snapshot,
    *,
    expense_date: date,
    description: str,
    amount: float,
    category: Optional[str] = None,
    notes: str = "",
    actor: str = DEFAULT_ACTOR,
    now: Optional[datetime] = None,
) -> MutationResult:
    now = now or datetime.now()
    description = description.strip()
    if not description:
        raise ValidationError("Expense description is required.")
    if amount <= 0:
        raise ValidationError("Expense amount must be greater than zero.")

    category = (category or "").strip() or None
    expense = Expense(
        id=_new_id("exp"),
        date=expense_date,
        description=description,
        amount=float(amount),
        category=category,
        notes=notes.strip(),
    )
    log = _log_entry(actor, now, "Expense Created", {"description": description, "amount": expense.amount})
    updated = replace(
        snapshot,
        expenses=(expense,) + snapshot.expenses,
        logs=(log,) + snapshot.logs,
    )
    return MutationResult(snapshot=updated, log=log, expense=expense)


# Clients ----------------------------------------------------------------------


def create_client(
    snapshot: Snapshot,
    client: Client,
    *,
    actor: str = DEFAULT_ACTOR,
    now: Optional[datetime] = None,
) -> MutationResult:
    """Add a client. The id and display id on ``client`` are ignored and assigned here."""
    now = now or datetime.now()
    name = _require_name(client.name, "Client")
    display_id = max((existing.display_id for existing in snapshot.clients), default=0) + 1
    created = replace(client, id=_new_id("c"), display_id=display_id, name=name)

    log = _log_entry(actor, now, "Client Created", {"clientId": created.id, "name": created.name})
    updated = replace(
        snapshot,
        clients=snapshot.clients + (created,),
        logs=(log,) + snapshot.logs,
    )
    return MutationResult(snapshot=updated, log=log)


def update_client(
    snapshot: Snapshot,
    client: Client,
    *,
    actor: str = DEFAULT_ACTOR,
    now: Optional[datetime] = None,
) -> MutationResult:
    now = now or datetime.now()
    existing = snapshot.find_client(client.id)
    if existing is None:
        raise NotFoundError(f"Client {client.id} not found.")
    edited = replace(client, display_id=existing.display_id, name=_require_name(client.name, "Client"))

    log = _log_entry(actor, now, "Client Updated", {"clientId": edited.id})
    updated = replace(
        snapshot,
        clients=tuple(edited if candidate.id == edited.id else candidate for candidate in snapshot.clients),
        logs=(log,) + snapshot.logs,
    )
    return MutationResult(snapshot=updated, log=log)


def delete_client(
    snapshot: Snapshot,
    client_id: str,
    *,
    actor: str = DEFAULT_ACTOR,
    now: Optional[datetime] = None,
) -> MutationResult:
    now = now or datetime.now()
    if snapshot.find_client(client_id) is None:
        raise NotFoundError(f"Client {client_id} not found.")
    if any(order.client_id == client_id for order in snapshot.orders):
        raise ValidationError(
            "Cannot delete client with existing orders. Please reassign or delete their orders first."
        )

    log = _log_entry(actor, now, "Client Deleted", {"clientId": client_id})
    updated = replace(
        snapshot,
        clients=tuple(client for client in snapshot.clients if client.id != client_id),
        logs=(log,) + snapshot.logs,
    )
    return MutationResult(snapshot=updated, log=log)


# Products ---------------------------------------------------------------------


def create_product(
    snapshot: Snapshot,
    product: Product,
    *,
    actor: str = DEFAULT_ACTOR,
    now: Optional[datetime] = None,
) -> MutationResult:
    now = now or datetime.now()
    if product.stock < 0:
        raise ValidationError("Opening stock cannot be negative.")
    created = _validated_product(replace(product, id=_new_id("p")))

    log = _log_entry(actor, now, "Product Created", {"productId": created.id, "name": created.name})
    updated = replace(
        snapshot,
        products=snapshot.products + (created,),
        logs=(log,) + snapshot.logs,
    )
    return MutationResult(snapshot=updated, log=log)


def update_product(
    snapshot: Snapshot,
    product: Product,
    *,
    actor: str = DEFAULT_ACTOR,
    now: Optional[datetime] = None,
) -> MutationResult:
    now = now or datetime.now()
    existing = _require_product(snapshot, product.id)
    # Stock only moves through orders and replenishment.
    edited = _validated_product(replace(product, stock=existing.stock, last_ordered=existing.last_ordered))

    log = _log_entry(actor, now, "Product Updated", {"productId": edited.id})
    updated = replace(
        snapshot,
        products=tuple(edited if candidate.id == edited.id else candidate for candidate in snapshot.products),
        logs=(log,) + snapshot.logs,
    )
    return MutationResult(snapshot=updated, log=log)


def delete_product(
    snapshot: Snapshot,
    product_id: str,
    *,
    actor: str = DEFAULT_ACTOR,
    now: Optional[datetime] = None,
) -> MutationResult:
    now = now or datetime.now()
    _require_product(snapshot, product_id)

    log = _log_entry(actor, now, "Product Deleted", {"productId": product_id})
    updated = replace(
        snapshot,
        products=tuple(product for product in snapshot.products if product.id != product_id),
        logs=(log,) + snapshot.logs,
    )
    return MutationResult(snapshot=updated, log=log)


# Whole dataset ----------------------------------------------------------------


def record_event(
    snapshot: Snapshot,
    action: str,
    details: Dict[str, Any],
    *,
    actor: str = DEFAULT_ACTOR,
    now: Optional[datetime] = None,
) -> MutationResult:
    log = _log_entry(actor, now or datetime.now(), action, details)
    return MutationResult(snapshot=replace(snapshot, logs=(log,) + snapshot.logs), log=log)


def wipe(
    snapshot: Snapshot,
    *,
    actor: str = DEFAULT_ACTOR,
    now: Optional[datetime] = None,
) -> MutationResult:
    log = _log_entry(
        actor,
        now or datetime.now(),
        "All Data Deleted",
        {"message": "All user-generated data has been wiped."},
    )
    logger.warning(
        "Wiping %d clients, %d products, %d orders, %d expenses",
        len(snapshot.clients),
        len(snapshot.products),
        len(snapshot.orders),
        len(snapshot.expenses),
    )
    return MutationResult(snapshot=Snapshot(logs=(log,)), log=log)


def verify_integrity(snapshot: Snapshot) -> None:
    problems: List[str] = []
    for order in snapshot.orders:
        expected_total = compute_total(order.items, order.fee, order.discount)
        if abs(expected_total - order.total) > _TOTAL_TOLERANCE:
            problems.append(f"order {order.id} total {order.total:g} != {expected_total:g}")
        if order.amount_paid < 0:
            problems.append(f"order {order.id} amount paid {order.amount_paid:g} below zero")
        if order.status == STATUS_DRAFT:
            continue
        expected_status = compute_status(order.total, order.amount_paid)
        if order.status != expected_status:
            problems.append(f"order {order.id} status {order.status} != {expected_status}")
    for product in snapshot.products:
        if product.stock < 0:
            problems.append(f"product {product.id} stock {product.stock:g} below zero")
        for tier in product.tiers:
            if tier.quantity <= 0:
                problems.append(f"product {product.id} tier {tier.label!r} quantity {tier.quantity:g} not positive")

    if problems:
        logger.error("Integrity check failed: %s", "; ".join(problems))
        raise IntegrityViolation("; ".join(problems))


# Helpers ----------------------------------------------------------------------


def _validate_draft(snapshot: Snapshot, draft: OrderDraft) -> List[OrderItem]:
    if snapshot.find_client(draft.client_id) is None:
        raise NotFoundError("Please select a valid client.")
    if not draft.items:
        raise ValidationError("An order needs at least one item.")
    if draft.amount_paid < 0:
        raise ValidationError("Amount paid cannot be negative.")

    items: List[OrderItem] = []
    for item in draft.items:
        if not item.product_id.strip():
            raise ValidationError("Every item needs a product.")
        if item.quantity <= 0:
            raise ValidationError("Item quantities must be greater than zero.")
        if item.price < 0:
            raise ValidationError("Item prices cannot be negative.")
        items.append(replace(item, product_id=item.product_id.strip()))
    return items


def _validated_product(product: Product) -> Product:
    name = _require_name(product.name, "Product")
    if product.unit not in UNIT_KINDS:
        raise ValidationError(f"Unit must be one of: {', '.join(UNIT_KINDS)}.")
    if product.unit_cost < 0:
        raise ValidationError("Cost per unit cannot be negative.")
    if product.increment <= 0:
        raise ValidationError("Order increment must be greater than zero.")
    _validate_tiers(product.tiers)
    return replace(product, name=name, tiers=list(product.tiers))


def _validate_tiers(tiers: Sequence[Tier]) -> None:
    labels = set()
    for tier in tiers:
        label = tier.label.strip()
        if not label:
            raise ValidationError("Every price tier needs a size label.")
        if label in labels:
            raise ValidationError(f"Duplicate price tier '{label}'.")
        if tier.quantity <= 0:
            raise ValidationError(f"Tier '{label}' quantity must be greater than zero.")
        if tier.price < 0:
            raise ValidationError(f"Tier '{label}' price cannot be negative.")
        labels.add(label)


def _require_name(value: str, kind: str) -> str:
    name = value.strip()
    if not name:
        raise ValidationError(f"{kind} name is required.")
    return name


def _require_order(snapshot: Snapshot, order_id: str) -> Order:
    order = snapshot.find_order(order_id)
    if order is None:
        raise NotFoundError(f"Order {order_id} not found.")
    return order


def _require_product(snapshot: Snapshot, product_id: str) -> Product:
    product = snapshot.find_product(product_id)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found.")
    return product


def _log_entry(actor: str, now: datetime, action: str, details: Dict[str, Any]) -> LogEntry:
    return LogEntry(id=_new_id("log"), timestamp=now, actor=actor or DEFAULT_ACTOR, action=action, details=details)


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex[:12]}"


def _format_order_number(fmt: str, sequence: int) -> str:
    try:
        formatted = fmt.format(seq=sequence)
    except (KeyError, IndexError, ValueError):
        formatted = f"ord-{sequence:04d}"
    formatted = formatted.strip()
    return formatted or f"ord-{sequence:04d}"


def _extract_sequence_value(order_id: str) -> Optional[int]:
    match = _SEQUENCE_PATTERN.search(order_id)
    if match:
        return int(match.group(1))
    return None
