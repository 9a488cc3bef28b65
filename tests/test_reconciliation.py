from dataclasses import replace
from datetime import date, datetime

import pytest

from glassdash.models.entities import (
    STATUS_COMPLETED,
    STATUS_DRAFT,
    STATUS_UNPAID,
    Adjustment,
    Client,
    OrderDraft,
    OrderItem,
    Product,
    Tier,
)
from glassdash.services import reconciliation
from glassdash.services.errors import (
    InsufficientStockError,
    IntegrityViolation,
    NotFoundError,
    ValidationError,
)

NOW = datetime(2026, 3, 11, 12, 0, 0)


def _draft(client_id="c-alice", items=None, amount_paid=0.0, **kwargs):
    return OrderDraft(
        client_id=client_id,
        items=items if items is not None else [OrderItem("p-flower", 2, 20)],
        date=date(2026, 3, 11),
        amount_paid=amount_paid,
        **kwargs,
    )


class TestCreateOrder:
    def test_consumes_stock_and_prepends(self, snapshot):
        result = reconciliation.create_order(snapshot, _draft(), actor="Sam", now=NOW)
        order = result.order
        assert order.id == "ord-0003"
        assert (order.total, order.status) == (20, STATUS_UNPAID)
        assert result.snapshot.orders[0] is order
        flower = result.snapshot.find_product("p-flower")
        assert flower.stock == 8
        assert flower.last_ordered == NOW
        assert result.log.action == "Order Created"
        assert result.log.details == {"orderId": "ord-0003", "client": "c-alice", "total": 20}
        assert result.snapshot.logs == (result.log,)
        reconciliation.verify_integrity(result.snapshot)

    def test_total_includes_fee_and_discount(self, snapshot):
        draft = _draft(amount_paid=23, fee=Adjustment(5, "Delivery"), discount=Adjustment(2, "Promo"))
        order = reconciliation.create_order(snapshot, draft, now=NOW).order
        assert order.total == 23
        assert order.status == STATUS_COMPLETED

    def test_custom_number_format(self, snapshot):
        result = reconciliation.create_order(snapshot, _draft(), now=NOW, order_number_format="INV-{seq}")
        assert result.order.id == "INV-3"

    def test_insufficient_stock_leaves_snapshot_untouched(self, snapshot):
        draft = _draft(items=[OrderItem("p-cart", 2, 50), OrderItem("p-cart", 2, 50)])
        with pytest.raises(InsufficientStockError):
            reconciliation.create_order(snapshot, draft, now=NOW)
        assert snapshot.find_product("p-cart").stock == 3
        assert len(snapshot.orders) == 2

    def test_requires_known_client(self, snapshot):
        with pytest.raises(NotFoundError, match="valid client"):
            reconciliation.create_order(snapshot, _draft(client_id="c-ghost"), now=NOW)

    @pytest.mark.parametrize(
        "items, message",
        [
            ([], "at least one item"),
            ([OrderItem("p-flower", 0, 0)], "greater than zero"),
            ([OrderItem("p-flower", 1, -1)], "cannot be negative"),
            ([OrderItem(" ", 1, 1)], "needs a product"),
        ],
    )
    def test_rejects_bad_items(self, snapshot, items, message):
        with pytest.raises(ValidationError, match=message):
            reconciliation.create_order(snapshot, _draft(items=items), now=NOW)


class TestNextOrderId:
    def test_follows_highest_sequence(self, snapshot):
        orders = [replace(snapshot.orders[0], id="ord-0009")] + list(snapshot.orders)
        assert reconciliation.next_order_id(orders) == "ord-0010"

    def test_first_order(self):
        assert reconciliation.next_order_id([]) == "ord-0001"

    def test_broken_format_falls_back(self):
        assert reconciliation.next_order_id([], "ord-{number}") == "ord-0001"


class TestUpdateOrder:
    def test_reconciles_against_stored_items(self, snapshot):
        draft = _draft(client_id="c-bob", items=[OrderItem("p-cart", 3, 75)], amount_paid=5)
        result = reconciliation.update_order(snapshot, "ord-0002", draft, now=NOW)
        assert result.snapshot.find_product("p-cart").stock == 1
        assert result.order.id == "ord-0002"
        assert result.order.total == 75
        assert [order.id for order in result.snapshot.orders] == ["ord-0002", "ord-0001"]
        assert result.log.details == {"orderId": "ord-0002", "total": 75}

    def test_switching_products_returns_old_stock(self, snapshot):
        draft = _draft(items=[OrderItem("p-cart", 1, 25)], amount_paid=35)
        result = reconciliation.update_order(snapshot, "ord-0001", draft, now=NOW)
        assert result.snapshot.find_product("p-flower").stock == 13.5
        assert result.snapshot.find_product("p-cart").stock == 2
        assert result.order.status == STATUS_COMPLETED
        assert result.snapshot.find_product("p-flower").last_ordered == datetime(2026, 3, 1, 9, 30)

    def test_keeps_reconciled_flag(self, snapshot):
        flagged = replace(snapshot, orders=(replace(snapshot.orders[0], reconciled=True),) + snapshot.orders[1:])
        draft = _draft(client_id="c-bob", items=[OrderItem("p-cart", 1, 25)])
        result = reconciliation.update_order(flagged, "ord-0002", draft, now=NOW)
        assert result.order.reconciled

    def test_unknown_order(self, snapshot):
        with pytest.raises(NotFoundError):
            reconciliation.update_order(snapshot, "ord-9999", _draft(), now=NOW)


class TestDeleteAndPay:
    def test_delete_returns_stock(self, snapshot):
        result = reconciliation.delete_order(snapshot, "ord-0001", now=NOW)
        assert result.snapshot.find_product("p-flower").stock == 13.5
        assert [order.id for order in result.snapshot.orders] == ["ord-0002"]
        assert result.log.action == "Order Deleted"

    def test_mark_paid(self, snapshot):
        result = reconciliation.mark_order_paid(snapshot, "ord-0002", now=NOW)
        assert result.order.amount_paid == 25
        assert result.order.status == STATUS_COMPLETED
        assert result.snapshot.find_product("p-cart").stock == 3
        reconciliation.verify_integrity(result.snapshot)

    def test_mark_paid_keeps_overpayment(self, snapshot):
        overpaid = replace(snapshot.orders[0], amount_paid=40.0, status=STATUS_COMPLETED)
        result = reconciliation.mark_order_paid(replace(snapshot, orders=(overpaid,)), "ord-0002", now=NOW)
        assert result.order.amount_paid == 40
        assert result.order.balance == -15

    def test_mark_paid_with_negative_total_pays_nothing(self, snapshot):
        discounted = replace(
            snapshot.orders[0], discount=Adjustment(30.0, "Promo"), total=-5.0, status=STATUS_COMPLETED, amount_paid=0.0
        )
        result = reconciliation.mark_order_paid(replace(snapshot, orders=(discounted,)), "ord-0002", now=NOW)
        assert result.order.amount_paid == 0
        assert result.order.status == STATUS_COMPLETED
        reconciliation.verify_integrity(result.snapshot)


class TestReplenishStock:
    def test_purchase_creates_inventory_expense(self, snapshot):
        result = reconciliation.replenish_stock(snapshot, "p-flower", 10, 40, actor="Sam", now=NOW)
        flower = result.snapshot.find_product("p-flower")
        assert (flower.stock, flower.unit_cost) == (20, 3.0)
        assert result.expense.category == "Inventory"
        assert result.expense.description == "Stock purchase for House Flower"
        assert result.expense.date == NOW.date()
        assert result.snapshot.expenses[0] is result.expense
        assert [log.action for log in result.snapshot.logs] == ["Stock Updated", "Expense Created"]
        assert result.log.details == {"productId": "p-flower", "name": "House Flower", "change": 10, "newStock": 20}

    def test_correction_without_expense(self, snapshot):
        result = reconciliation.replenish_stock(snapshot, "p-cart", -1, now=NOW)
        assert result.expense is None
        assert result.snapshot.expenses == snapshot.expenses
        assert result.snapshot.find_product("p-cart").stock == 2

    def test_unknown_product(self, snapshot):
        with pytest.raises(NotFoundError):
            reconciliation.replenish_stock(snapshot, "p-ghost", 1, now=NOW)


class TestExpenses:
    def test_create_expense(self, snapshot):
        result = reconciliation.create_expense(
            snapshot, expense_date=date(2026, 3, 5), description=" Rent ", amount=500, category=" ", now=NOW
        )
        assert result.expense.description == "Rent"
        assert result.expense.category is None
        assert result.snapshot.expenses[0] is result.expense
        assert result.log.details == {"description": "Rent", "amount": 500.0}

    @pytest.mark.parametrize("description, amount", [("Rent", 0), ("Rent", -5), ("  ", 10)])
    def test_rejects_bad_expense(self, snapshot, description, amount):
        with pytest.raises(ValidationError):
            reconciliation.create_expense(
                snapshot, expense_date=date(2026, 3, 5), description=description, amount=amount, now=NOW
            )


class TestClients:
    def test_create_assigns_next_display_id(self, snapshot):
        result = reconciliation.create_client(snapshot, Client(id="", display_id=0, name=" Carol "), now=NOW)
        created = result.snapshot.clients[-1]
        assert created.display_id == 3
        assert created.name == "Carol"
        assert created.id.startswith("c-")

    def test_update_keeps_display_id(self, snapshot):
        edited = Client(id="c-bob", display_id=99, name="Robert", phone="555-0100")
        result = reconciliation.update_client(snapshot, edited, now=NOW)
        bob = result.snapshot.find_client("c-bob")
        assert (bob.display_id, bob.name, bob.phone) == (2, "Robert", "555-0100")

    def test_delete_with_orders_is_rejected(self, snapshot):
        with pytest.raises(ValidationError, match="existing orders"):
            reconciliation.delete_client(snapshot, "c-alice", now=NOW)

    def test_delete_without_orders(self, snapshot):
        emptied = replace(snapshot, orders=snapshot.orders[:1])
        result = reconciliation.delete_client(emptied, "c-alice", now=NOW)
        assert [client.id for client in result.snapshot.clients] == ["c-bob"]

    def test_name_required(self, snapshot):
        with pytest.raises(ValidationError, match="name is required"):
            reconciliation.create_client(snapshot, Client(id="", display_id=0, name=""), now=NOW)


class TestProducts:
    def test_create_appends(self, snapshot):
        product = Product(id="", name="Pre-roll", stock=12, tiers=[Tier("1", 1, 8)])
        result = reconciliation.create_product(snapshot, product, now=NOW)
        created = result.snapshot.products[-1]
        assert created.id.startswith("p-")
        assert created.stock == 12

    @pytest.mark.parametrize(
        "product, message",
        [
            (Product(id="", name="X", stock=-1), "Opening stock"),
            (Product(id="", name="X", unit="oz"), "Unit must be one of"),
            (Product(id="", name="X", tiers=[Tier("1", 1, 5), Tier("1", 2, 9)]), "Duplicate"),
            (Product(id="", name="X", tiers=[Tier("1", 0, 5)]), "quantity must be greater"),
            (Product(id="", name="X", increment=0), "increment"),
        ],
    )
    def test_create_rejects(self, snapshot, product, message):
        with pytest.raises(ValidationError, match=message):
            reconciliation.create_product(snapshot, product, now=NOW)

    def test_update_keeps_stock(self, snapshot, flower):
        edited = replace(flower, name="Top Shelf", stock=999, last_ordered=None, unit_cost=4)
        result = reconciliation.update_product(snapshot, edited, now=NOW)
        product = result.snapshot.find_product("p-flower")
        assert (product.name, product.stock, product.unit_cost) == ("Top Shelf", 10, 4)
        assert product.last_ordered == datetime(2026, 3, 1, 9, 30)

    def test_delete_leaves_orders(self, snapshot):
        result = reconciliation.delete_product(snapshot, "p-cart", now=NOW)
        assert result.snapshot.find_product("p-cart") is None
        assert len(result.snapshot.orders) == 2
        # Deleting the order afterwards has nowhere to return the cartridge to.
        after = reconciliation.delete_order(result.snapshot, "ord-0002", now=NOW)
        assert after.snapshot.find_product("p-flower").stock == 10


class TestDataset:
    def test_wipe_keeps_only_its_log(self, snapshot):
        result = reconciliation.wipe(snapshot, actor="Sam", now=NOW)
        assert result.snapshot.clients == ()
        assert result.snapshot.products == ()
        assert result.snapshot.logs == (result.log,)
        assert result.log.action == "All Data Deleted"
        assert result.log.actor == "Sam"

    def test_record_event(self, snapshot):
        result = reconciliation.record_event(snapshot, "Data Exported", {"type": "orders"}, now=NOW)
        assert result.snapshot.logs[0].details == {"type": "orders"}
        assert result.snapshot.orders == snapshot.orders

    def test_blank_actor_defaults(self, snapshot):
        result = reconciliation.record_event(snapshot, "Data Exported", {}, actor="", now=NOW)
        assert result.log.actor == "Unknown User"


class TestVerifyIntegrity:
    def test_fixture_is_consistent(self, snapshot):
        reconciliation.verify_integrity(snapshot)

    def test_wrong_total(self, snapshot):
        broken = replace(snapshot, orders=(replace(snapshot.orders[0], total=30.0),) + snapshot.orders[1:])
        with pytest.raises(IntegrityViolation, match="ord-0002 total"):
            reconciliation.verify_integrity(broken)

    def test_wrong_status(self, snapshot):
        broken = replace(snapshot, orders=(replace(snapshot.orders[0], status=STATUS_COMPLETED),))
        with pytest.raises(IntegrityViolation, match="status"):
            reconciliation.verify_integrity(broken)

    def test_draft_orders_are_exempt_from_status(self, snapshot):
        drafted = replace(snapshot, orders=(replace(snapshot.orders[0], status=STATUS_DRAFT),))
        reconciliation.verify_integrity(drafted)

    def test_negative_amount_paid(self, snapshot):
        broken = replace(snapshot, orders=(replace(snapshot.orders[0], amount_paid=-1.0),))
        with pytest.raises(IntegrityViolation, match="amount paid"):
            reconciliation.verify_integrity(broken)

    def test_tier_quantity_must_be_positive(self, snapshot, flower):
        broken = replace(snapshot, products=(replace(flower, tiers=[Tier("0g", 0, 5)]),))
        with pytest.raises(IntegrityViolation, match="not positive"):
            reconciliation.verify_integrity(broken)

    def test_negative_stock(self, snapshot, cartridge):
        broken = replace(snapshot, products=(replace(cartridge, stock=-1.0),))
        with pytest.raises(IntegrityViolation, match="below zero"):
            reconciliation.verify_integrity(broken)
