from __future__ import annotations

from dataclasses import replace
from typing import List, Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QAbstractItemView,
    QCheckBox,
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QDoubleSpinBox,
    QFormLayout,
    QHBoxLayout,
    QHeaderView,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from ..models.entities import UNIT_KINDS, Product, Tier


class ProductEditorDialog(QDialog):
    """Create or edit a product and its price tiers.

    Stock is only editable when creating; afterwards it moves through orders
    and the stock dialog.
    """

    def __init__(self, *, product: Optional[Product] = None, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Edit Product" if product else "New Product")
        self.resize(560, 520)
        self._original = product
        self._result: Optional[Product] = None

        layout = QVBoxLayout()
        layout.setContentsMargins(16, 16, 16, 16)
        layout.setSpacing(10)
        self.setLayout(layout)

        form = QFormLayout()
        layout.addLayout(form)

        self._name_input = QLineEdit(product.name if product else "")
        form.addRow("Name", self._name_input)

        self._unit_input = QComboBox()
        self._unit_input.addItems(list(UNIT_KINDS))
        self._unit_input.setCurrentText(product.unit if product else "unit")
        form.addRow("Unit", self._unit_input)

        self._stock_input = QDoubleSpinBox()
        self._stock_input.setDecimals(2)
        self._stock_input.setRange(0.0, 1_000_000.0)
        self._stock_input.setValue(product.stock if product else 0.0)
        self._stock_input.setEnabled(product is None)
        form.addRow("Stock", self._stock_input)

        self._cost_input = QDoubleSpinBox()
        self._cost_input.setDecimals(2)
        self._cost_input.setRange(0.0, 1_000_000.0)
        self._cost_input.setPrefix("$")
        self._cost_input.setValue(product.unit_cost if product else 0.0)
        form.addRow("Cost / Unit", self._cost_input)

        self._increment_input = QDoubleSpinBox()
        self._increment_input.setDecimals(2)
        self._increment_input.setRange(0.01, 10_000.0)
        self._increment_input.setValue(product.increment if product else 1.0)
        form.addRow("Order Increment", self._increment_input)

        self._inactive_checkbox = QCheckBox("Inactive")
        self._inactive_checkbox.setChecked(product.inactive if product else False)
        form.addRow("", self._inactive_checkbox)

        self._table = QTableWidget(0, 3)
        self._table.setHorizontalHeaderLabels(["Size Label", "Quantity", "Price"])
        header = self._table.horizontalHeader()
        header.setSectionResizeMode(0, QHeaderView.ResizeMode.Stretch)
        header.setSectionResizeMode(1, QHeaderView.ResizeMode.ResizeToContents)
        header.setSectionResizeMode(2, QHeaderView.ResizeMode.ResizeToContents)
        self._table.verticalHeader().setVisible(False)
        self._table.setAlternatingRowColors(True)
        self._table.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        self._table.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        layout.addWidget(self._table)

        button_row = QHBoxLayout()
        add_button = QPushButton("Add Tier")
        add_button.clicked.connect(self._handle_add_row)
        remove_button = QPushButton("Remove Tier")
        remove_button.clicked.connect(self._handle_remove_row)
        button_row.addWidget(add_button)
        button_row.addWidget(remove_button)
        button_row.addStretch(1)
        layout.addLayout(button_row)

        button_box = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel)
        button_box.accepted.connect(self.accept)
        button_box.rejected.connect(self.reject)
        layout.addWidget(button_box)

        for tier in (product.tiers if product else []):
            self._append_tier(tier)
        if self._table.rowCount() == 0:
            self._append_tier()

    def _append_tier(self, tier: Tier | None = None) -> None:
        row = self._table.rowCount()
        self._table.insertRow(row)

        label_item = QTableWidgetItem(tier.label if tier else "")
        quantity_item = QTableWidgetItem(f"{tier.quantity:g}" if tier else "")
        price_item = QTableWidgetItem(f"{tier.price:.2f}" if tier else "")
        for item in (quantity_item, price_item):
            item.setTextAlignment(int(Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter))

        self._table.setItem(row, 0, label_item)
        self._table.setItem(row, 1, quantity_item)
        self._table.setItem(row, 2, price_item)

    def _handle_add_row(self) -> None:
        self._append_tier()

    def _handle_remove_row(self) -> None:
        current = self._table.currentRow()
        if current < 0:
            return
        self._table.removeRow(current)
        if self._table.rowCount() == 0:
            self._append_tier()

    def product(self) -> Optional[Product]:
        return self._result

    def accept(self) -> None:  # noqa: D401
        try:
            tiers = self._collect_tiers()
        except ValueError as exc:
            QMessageBox.warning(self, "Price Tiers", str(exc))
            return

        fields = dict(
            name=self._name_input.text().strip(),
            unit=self._unit_input.currentText(),
            unit_cost=self._cost_input.value(),
            increment=self._increment_input.value(),
            tiers=tiers,
            inactive=self._inactive_checkbox.isChecked(),
        )
        if self._original is not None:
            self._result = replace(self._original, **fields)
        else:
            self._result = Product(id="", stock=self._stock_input.value(), **fields)
        super().accept()

    def _collect_tiers(self) -> List[Tier]:
        results: List[Tier] = []
        for row in range(self._table.rowCount()):
            label_item = self._table.item(row, 0)
            quantity_item = self._table.item(row, 1)
            price_item = self._table.item(row, 2)

            label = label_item.text().strip() if label_item else ""
            quantity_text = quantity_item.text().strip() if quantity_item else ""
            price_text = price_item.text().strip() if price_item else ""

            if not label and not quantity_text and not price_text:
                continue

            try:
                quantity = float(quantity_text)
                price = float(price_text)
            except ValueError as exc:
                raise ValueError(f"Row {row + 1}: enter a numeric quantity and price.") from exc

            if not label:
                raise ValueError(f"Row {row + 1}: provide a size label.")

            results.append(Tier(label=label, quantity=quantity, price=price))

        return results
