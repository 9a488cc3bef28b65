from __future__ import annotations

from typing import Optional

from PySide6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QDoubleSpinBox,
    QFormLayout,
    QLabel,
    QMessageBox,
    QVBoxLayout,
    QWidget,
)

from ..models.entities import Product
from ..services import costing
from ..services.errors import ValidationError
from ..viewmodels.table_models import format_money, format_quantity


class StockUpdateDialog(QDialog):
    """Receive stock (positive quantity) or correct it (negative quantity)."""

    def __init__(self, *, product: Product, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle(f"Update Stock: {product.name}")
        self.resize(420, 220)
        self._product = product

        layout = QVBoxLayout()
        layout.setContentsMargins(16, 16, 16, 16)
        layout.setSpacing(10)
        self.setLayout(layout)

        form = QFormLayout()
        layout.addLayout(form)

        form.addRow("Current Stock", QLabel(format_quantity(product.stock, product.unit)))
        form.addRow("Cost / Unit", QLabel(format_money(product.unit_cost)))

        self._quantity_input = QDoubleSpinBox()
        self._quantity_input.setDecimals(2)
        self._quantity_input.setRange(-1_000_000.0, 1_000_000.0)
        self._quantity_input.setSingleStep(product.increment or 1.0)
        self._quantity_input.valueChanged.connect(self._refresh_preview)
        form.addRow("Quantity to Add", self._quantity_input)

        self._cost_input = QDoubleSpinBox()
        self._cost_input.setDecimals(2)
        self._cost_input.setRange(0.0, 1_000_000.0)
        self._cost_input.setPrefix("$")
        self._cost_input.valueChanged.connect(self._refresh_preview)
        form.addRow("Purchase Cost", self._cost_input)

        self._preview_label = QLabel()
        self._preview_label.setWordWrap(True)
        layout.addWidget(self._preview_label)

        button_box = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel)
        button_box.accepted.connect(self.accept)
        button_box.rejected.connect(self.reject)
        layout.addWidget(button_box)

        self._refresh_preview()

    @property
    def added_quantity(self) -> float:
        return self._quantity_input.value()

    @property
    def purchase_cost(self) -> float:
        return self._cost_input.value()

    def _refresh_preview(self, *_args) -> None:
        try:
            receipt = costing.replenish(self._product, self.added_quantity, self.purchase_cost)
        except ValidationError as exc:
            self._preview_label.setText(str(exc))
            self._preview_label.setStyleSheet("color: #c62828;")
            return

        text = (
            f"New stock: {format_quantity(receipt.new_stock, self._product.unit)}, "
            f"cost / unit: {format_money(receipt.new_unit_cost)}"
        )
        if receipt.creates_expense:
            text += f"\nAn Inventory expense of {format_money(receipt.expense_amount)} will be recorded."
        self._preview_label.setText(text)
        self._preview_label.setStyleSheet("")

    def accept(self) -> None:  # noqa: D401
        if self.added_quantity == 0:
            QMessageBox.warning(self, "Update Stock", "Enter a quantity to add or remove.")
            return
        try:
            costing.replenish(self._product, self.added_quantity, self.purchase_cost)
        except ValidationError as exc:
            QMessageBox.warning(self, "Update Stock", str(exc))
            return
        super().accept()
