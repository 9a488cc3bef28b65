import pytest

pytest.importorskip("PySide6.QtCore")

from PySide6.QtCore import Qt  # noqa: E402

from glassdash.viewmodels.table_models import (  # noqa: E402
    ListTableModel,
    format_money,
    format_quantity,
    order_columns,
)


class TestFormatting:
    def test_money(self):
        assert format_money(1234.5) == "$1,234.50"
        assert format_money(-5) == "-$5.00"

    def test_quantity(self):
        assert format_quantity(3.5, "g") == "3.5g"
        assert format_quantity(2.0) == "2"


class TestListTableModel:
    def test_order_rows(self, snapshot):
        names = {client.id: client.name for client in snapshot.clients}
        model = ListTableModel(order_columns(names), snapshot.orders)
        assert model.rowCount() == 2
        assert model.headerData(0, Qt.Orientation.Horizontal) == "Order #"
        assert model.data(model.index(0, 1)) == "Bob"
        assert model.data(model.index(0, 6)) == "$20.00"
        assert model.data(model.index(1, 7)) == "Completed"
        assert model.row_at(1).id == "ord-0001"
        assert model.row_at(5) is None

    def test_numeric_columns_align_right(self, snapshot):
        model = ListTableModel(order_columns({}), snapshot.orders)
        alignment = model.data(model.index(0, 4), Qt.ItemDataRole.TextAlignmentRole)
        assert alignment & int(Qt.AlignmentFlag.AlignRight)
        assert model.data(model.index(0, 1)) == "Unknown Client"

    def test_update_and_clear(self, snapshot):
        model = ListTableModel(order_columns({}))
        model.update_rows(snapshot.orders[:1])
        assert model.rowCount() == 1
        model.clear()
        assert model.rowCount() == 0
