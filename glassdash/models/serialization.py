from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from .entities import (
    ORDER_STATUSES,
    UNIT_KINDS,
    Adjustment,
    Client,
    Expense,
    LogEntry,
    Order,
    OrderItem,
    PaymentMethods,
    Product,
    Tier,
)


def client_to_dict(client: Client) -> Dict[str, Any]:
    return {
        "id": client.id,
        "displayId": client.display_id,
        "name": client.name,
        "email": client.email,
        "phone": client.phone,
        "address": client.address,
        "notes": client.notes,
        "etransfer": client.etransfer,
        "inactive": client.inactive,
    }


def client_from_dict(payload: Mapping[str, Any]) -> Client:
    # orders/totalSpent may be present in older exports; they are derived and ignored.
    return Client(
        id=_require_text(payload, "id"),
        display_id=int(payload["displayId"]),
        name=_require_text(payload, "name"),
        email=_text(payload.get("email")),
        phone=_text(payload.get("phone")),
        address=_text(payload.get("address")),
        notes=_text(payload.get("notes")),
        etransfer=_text(payload.get("etransfer")),
        inactive=bool(payload.get("inactive", False)),
    )


def tier_to_dict(tier: Tier) -> Dict[str, Any]:
    return {"sizeLabel": tier.label, "quantity": tier.quantity, "price": tier.price}


def tier_from_dict(payload: Mapping[str, Any]) -> Tier:
    quantity = float(payload["quantity"])
    if quantity <= 0:
        raise ValueError(f"tier quantity {quantity:g} must be greater than zero")
    return Tier(
        label=_text(payload.get("sizeLabel")),
        quantity=quantity,
        price=float(payload["price"]),
    )


def product_to_dict(product: Product) -> Dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "type": product.unit,
        "stock": product.stock,
        "costPerUnit": product.unit_cost,
        "increment": product.increment,
        "tiers": [tier_to_dict(tier) for tier in product.tiers],
        "lastOrdered": format_timestamp(product.last_ordered),
        "inactive": product.inactive,
    }


def product_from_dict(payload: Mapping[str, Any]) -> Product:
    unit = _text(payload.get("type")) or "unit"
    if unit not in UNIT_KINDS:
        raise ValueError(f"unknown unit type '{unit}'")
    tiers = payload.get("tiers") or []
    if not isinstance(tiers, list):
        raise ValueError("tiers must be a list")
    return Product(
        id=_require_text(payload, "id"),
        name=_require_text(payload, "name"),
        unit=unit,
        stock=float(payload.get("stock", 0) or 0),
        unit_cost=float(payload.get("costPerUnit", 0) or 0),
        increment=float(payload.get("increment", 1) or 1),
        tiers=[tier_from_dict(entry) for entry in tiers],
        last_ordered=parse_timestamp(payload.get("lastOrdered")),
        inactive=bool(payload.get("inactive", False)),
    )


def item_to_dict(item: OrderItem) -> Dict[str, Any]:
    return {
        "productId": item.product_id,
        "quantity": item.quantity,
        "price": item.price,
        "sizeLabel": item.tier_label,
    }


def item_from_dict(payload: Mapping[str, Any]) -> OrderItem:
    label = payload.get("sizeLabel")
    return OrderItem(
        product_id=_require_text(payload, "productId"),
        quantity=float(payload["quantity"]),
        price=float(payload["price"]),
        tier_label=str(label) if label is not None else None,
    )


def adjustment_to_dict(adjustment: Adjustment) -> Dict[str, Any]:
    return {"amount": adjustment.amount, "description": adjustment.description}


def adjustment_from_dict(payload: Optional[Mapping[str, Any]]) -> Adjustment:
    if not payload:
        return Adjustment()
    return Adjustment(
        amount=float(payload.get("amount", 0) or 0),
        description=_text(payload.get("description")),
    )


def payment_methods_to_dict(methods: PaymentMethods) -> Dict[str, Any]:
    return {
        "cash": methods.cash,
        "etransfer": methods.etransfer,
        "other": methods.other,
        "otherDetails": methods.other_details,
    }


def payment_methods_from_dict(payload: Optional[Mapping[str, Any]]) -> PaymentMethods:
    if not payload:
        return PaymentMethods()
    return PaymentMethods(
        cash=bool(payload.get("cash", False)),
        etransfer=bool(payload.get("etransfer", False)),
        other=bool(payload.get("other", False)),
        other_details=_text(payload.get("otherDetails")),
    )


def order_to_dict(order: Order) -> Dict[str, Any]:
    return {
        "id": order.id,
        "clientId": order.client_id,
        "items": [item_to_dict(item) for item in order.items],
        "total": order.total,
        "status": order.status,
        "date": order.date.isoformat(),
        "notes": order.notes,
        "amountPaid": order.amount_paid,
        "paymentMethods": payment_methods_to_dict(order.payment_methods),
        "fees": adjustment_to_dict(order.fee),
        "discount": adjustment_to_dict(order.discount),
        "reconciled": order.reconciled,
    }


def order_from_dict(payload: Mapping[str, Any]) -> Order:
    status = _require_text(payload, "status")
    if status not in ORDER_STATUSES:
        raise ValueError(f"unknown order status '{status}'")
    items = payload.get("items")
    if not isinstance(items, list):
        raise ValueError("items must be a list")
    amount_paid = float(payload.get("amountPaid", 0) or 0)
    if amount_paid < 0:
        raise ValueError(f"amountPaid {amount_paid:g} cannot be negative")
    return Order(
        id=_require_text(payload, "id"),
        client_id=_require_text(payload, "clientId"),
        items=[item_from_dict(entry) for entry in items],
        total=float(payload["total"]),
        status=status,
        date=parse_date(payload["date"]),
        notes=_text(payload.get("notes")),
        amount_paid=amount_paid,
        payment_methods=payment_methods_from_dict(payload.get("paymentMethods")),
        fee=adjustment_from_dict(payload.get("fees")),
        discount=adjustment_from_dict(payload.get("discount")),
        reconciled=bool(payload.get("reconciled", False)),
    )


def expense_to_dict(expense: Expense) -> Dict[str, Any]:
    return {
        "id": expense.id,
        "date": expense.date.isoformat(),
        "description": expense.description,
        "amount": expense.amount,
        "category": expense.category,
        "notes": expense.notes,
    }


def expense_from_dict(payload: Mapping[str, Any]) -> Expense:
    category = payload.get("category")
    return Expense(
        id=_require_text(payload, "id"),
        date=parse_date(payload["date"]),
        description=_text(payload.get("description")),
        amount=float(payload["amount"]),
        category=str(category) if category is not None else None,
        notes=_text(payload.get("notes")),
    )


def log_to_dict(entry: LogEntry) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "timestamp": format_timestamp(entry.timestamp),
        "user": entry.actor,
        "action": entry.action,
        "details": dict(entry.details),
    }


def log_from_dict(payload: Mapping[str, Any]) -> LogEntry:
    timestamp = parse_timestamp(payload.get("timestamp"))
    if timestamp is None:
        raise ValueError("timestamp is required")
    details = payload.get("details") or {}
    if not isinstance(details, dict):
        raise ValueError("details must be an object")
    return LogEntry(
        id=_require_text(payload, "id"),
        timestamp=timestamp,
        actor=_text(payload.get("user")),
        action=_require_text(payload, "action"),
        details=details,
    )


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def parse_timestamp(value: object) -> Optional[datetime]:
    if value is None or value == "":
        return None
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def parse_date(value: object) -> date:
    text = str(value).strip()
    # Accept full timestamps as well as plain YYYY-MM-DD values.
    return date.fromisoformat(text[:10])


def _require_text(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None or str(value).strip() == "":
        raise ValueError(f"'{key}' is required")
    return str(value)


def _text(value: object) -> str:
    return "" if value is None else str(value)


ENTITY_ENCODERS = {
    "clients": client_to_dict,
    "products": product_to_dict,
    "orders": order_to_dict,
    "expenses": expense_to_dict,
    "logs": log_to_dict,
}

ENTITY_DECODERS = {
    "clients": client_from_dict,
    "products": product_from_dict,
    "orders": order_from_dict,
    "expenses": expense_from_dict,
    "logs": log_from_dict,
}

SNAPSHOT_KEYS: List[str] = list(ENTITY_ENCODERS)
