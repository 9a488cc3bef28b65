import random
from dataclasses import replace
from datetime import datetime

import pytest

from glassdash.models.entities import OrderItem
from glassdash.services import stock
from glassdash.services.errors import InsufficientStockError, ValidationError

NOW = datetime(2026, 3, 11, 12, 0, 0)


def _stock_of(products, product_id):
    return next(product.stock for product in products if product.id == product_id)


class TestPlanCreate:
    def test_sums_every_item_per_product(self, flower, cartridge):
        items = [OrderItem("p-flower", 1, 10), OrderItem("p-flower", 3.5, 30), OrderItem("p-cart", 1, 25)]
        plan = stock.plan_create([flower, cartridge], items)
        assert plan.deltas == {"p-flower": -4.5, "p-cart": -1}
        assert set(plan.touched) == {"p-flower", "p-cart"}

    def test_stock_may_reach_exactly_zero(self, cartridge):
        plan = stock.plan_create([cartridge], [OrderItem("p-cart", 3, 75)])
        products = stock.apply_plan([cartridge], plan, NOW)
        assert products[0].stock == 0

    def test_rejects_more_than_available(self, cartridge):
        with pytest.raises(InsufficientStockError) as excinfo:
            stock.plan_create([cartridge], [OrderItem("p-cart", 5, 125)])
        shortfall = excinfo.value.shortfalls[0]
        assert (shortfall.product_id, shortfall.available, shortfall.requested) == ("p-cart", 3, 5)
        assert cartridge.stock == 3

    def test_reports_every_shortfall(self, flower, cartridge):
        items = [OrderItem("p-flower", 11, 110), OrderItem("p-cart", 4, 100)]
        with pytest.raises(InsufficientStockError) as excinfo:
            stock.plan_create([flower, cartridge], items)
        assert {item.product_id for item in excinfo.value.shortfalls} == {"p-flower", "p-cart"}

    def test_unknown_product_is_rejected(self, flower):
        with pytest.raises(ValidationError, match="p-ghost"):
            stock.plan_create([flower], [OrderItem("p-ghost", 1, 1)])


class TestApplyPlan:
    def test_sets_last_ordered_on_touched_products(self, flower, cartridge):
        plan = stock.plan_create([flower, cartridge], [OrderItem("p-cart", 1, 25)])
        products = stock.apply_plan([flower, cartridge], plan, NOW)
        assert products[1].last_ordered == NOW
        assert products[0].last_ordered == flower.last_ordered

    def test_does_not_mutate_inputs(self, cartridge):
        plan = stock.plan_create([cartridge], [OrderItem("p-cart", 2, 50)])
        stock.apply_plan([cartridge], plan, NOW)
        assert cartridge.stock == 3


class TestRoundTrips:
    def test_create_then_delete_restores_stock(self, flower, cartridge):
        items = [OrderItem("p-flower", 3.5, 30), OrderItem("p-cart", 2, 50)]
        products = [flower, cartridge]
        after_create = stock.apply_plan(products, stock.plan_create(products, items), NOW)
        after_delete = stock.apply_plan(after_create, stock.plan_delete(after_create, items), NOW)
        assert _stock_of(after_delete, "p-flower") == 10
        assert _stock_of(after_delete, "p-cart") == 3

    def test_edit_a_to_b_to_a_restores_stock(self, flower, cartridge):
        products = [flower, cartridge]
        a = [OrderItem("p-flower", 1, 10)]
        b = [OrderItem("p-flower", 7, 70), OrderItem("p-cart", 3, 75)]

        products = stock.apply_plan(products, stock.plan_create(products, a), NOW)
        products = stock.apply_plan(products, stock.plan_update(products, a, b), NOW)
        assert _stock_of(products, "p-flower") == 3
        assert _stock_of(products, "p-cart") == 0

        products = stock.apply_plan(products, stock.plan_update(products, b, a), NOW)
        assert _stock_of(products, "p-flower") == 9
        assert _stock_of(products, "p-cart") == 3

    def test_edit_validates_against_coalesced_delta(self, cartridge):
        # 3 held by the order plus 0 on the shelf covers a re-edit to 3.
        products = stock.apply_plan([cartridge], stock.plan_create([cartridge], [OrderItem("p-cart", 3, 75)]), NOW)
        plan = stock.plan_update(products, [OrderItem("p-cart", 3, 75)], [OrderItem("p-cart", 3, 75)])
        assert plan.delta_for("p-cart") == 0

    def test_edit_rejects_growth_beyond_stock(self, cartridge):
        with pytest.raises(InsufficientStockError):
            stock.plan_update([cartridge], [OrderItem("p-cart", 1, 25)], [OrderItem("p-cart", 5, 125)])

    def test_edit_only_touches_updated_products(self, flower, cartridge):
        products = [flower, cartridge]
        plan = stock.plan_update(products, [OrderItem("p-cart", 1, 25)], [OrderItem("p-flower", 1, 10)])
        updated = stock.apply_plan(products, plan, NOW)
        assert updated[0].last_ordered == NOW
        assert updated[1].last_ordered is None
        assert updated[1].stock == 4


class TestPlanDelete:
    def test_items_for_missing_products_are_ignored(self, flower):
        plan = stock.plan_delete([flower], [OrderItem("p-flower", 1, 10), OrderItem("p-gone", 2, 20)])
        assert plan.deltas == {"p-flower": 1}
        assert plan.touched == []


class TestFractionalQuantities:
    def test_edit_round_trip_is_exact_for_decimal_quantities(self, flower):
        rng = random.Random(20260311)
        for _ in range(500):
            opening = round(rng.uniform(5, 40), 1)
            first = [OrderItem("p-flower", round(rng.uniform(0.1, 5), 1), 10)]
            second = [OrderItem("p-flower", round(rng.uniform(0.1, 5), 1), 10)]
            products = [replace(flower, stock=opening)]

            products = stock.apply_plan(products, stock.plan_create(products, first), NOW)
            products = stock.apply_plan(products, stock.plan_update(products, first, second), NOW)
            products = stock.apply_plan(products, stock.plan_update(products, second, first), NOW)
            assert products[0].stock == round(opening - first[0].quantity, 1)

            products = stock.apply_plan(products, stock.plan_delete(products, first), NOW)
            assert products[0].stock == opening

    def test_tenths_add_up(self, flower):
        products = [replace(flower, stock=0.3)]
        items = [OrderItem("p-flower", 0.1, 1), OrderItem("p-flower", 0.2, 2)]
        products = stock.apply_plan(products, stock.plan_create(products, items), NOW)
        assert products[0].stock == 0.0
