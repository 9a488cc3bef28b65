from datetime import date, datetime

import pytest

from glassdash.data import database
from glassdash.models.entities import (
    STATUS_COMPLETED,
    STATUS_UNPAID,
    Adjustment,
    Client,
    Expense,
    Order,
    OrderItem,
    Product,
    Snapshot,
    Tier,
)


@pytest.fixture
def flower() -> Product:
    return Product(
        id="p-flower",
        name="House Flower",
        unit="g",
        stock=10.0,
        unit_cost=2.0,
        tiers=[Tier("1g", 1, 10), Tier("3.5g", 3.5, 30)],
        last_ordered=datetime(2026, 3, 1, 9, 30),
    )


@pytest.fixture
def cartridge() -> Product:
    return Product(
        id="p-cart",
        name="Cartridge",
        unit="unit",
        stock=3.0,
        unit_cost=5.0,
        tiers=[Tier("1", 1, 25)],
    )


@pytest.fixture
def snapshot(flower: Product, cartridge: Product) -> Snapshot:
    clients = (
        Client(id="c-alice", display_id=1, name="Alice", email="alice@example.com"),
        Client(id="c-bob", display_id=2, name="Bob"),
    )
    orders = (
        Order(
            id="ord-0002",
            client_id="c-bob",
            items=[OrderItem("p-cart", 1, 25, "1")],
            total=25.0,
            status=STATUS_UNPAID,
            date=date(2026, 3, 10),
            amount_paid=5.0,
        ),
        Order(
            id="ord-0001",
            client_id="c-alice",
            items=[OrderItem("p-flower", 3.5, 30, "3.5g")],
            total=35.0,
            status=STATUS_COMPLETED,
            date=date(2026, 2, 20),
            amount_paid=35.0,
            fee=Adjustment(5.0, "Delivery"),
        ),
    )
    expenses = (
        Expense(id="exp-1", date=date(2026, 3, 2), description="Jars", amount=12.0, category="Packaging"),
    )
    return Snapshot(clients=clients, products=(flower, cartridge), orders=orders, expenses=expenses)


@pytest.fixture
def storage(tmp_path, monkeypatch):
    home = tmp_path / "glassdash-home"
    monkeypatch.setenv("GLASSDASH_HOME", str(home))
    database.initialize()
    return home
