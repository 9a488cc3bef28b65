from __future__ import annotations

from datetime import date
from typing import List, Optional

from PySide6.QtCore import QDate, Qt
from PySide6.QtWidgets import (
    QAbstractItemView,
    QCheckBox,
    QComboBox,
    QDateEdit,
    QDialog,
    QDialogButtonBox,
    QDoubleSpinBox,
    QFormLayout,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from ..models.entities import CUSTOM_TIER_LABEL, Adjustment, Order, OrderDraft, OrderItem, PaymentMethods, Snapshot
from ..services import pricing
from ..services.errors import ValidationError
from ..services.totals import compute_status, compute_total
from ..viewmodels.table_models import format_money, format_quantity


class OrderEditorDialog(QDialog):
    def __init__(self, *, snapshot: Snapshot, order: Optional[Order] = None, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle(f"Edit Order {order.id}" if order else "New Order")
        self.resize(760, 720)
        self._snapshot = snapshot
        self._items: List[OrderItem] = list(order.items) if order else []
        self._draft: Optional[OrderDraft] = None

        layout = QVBoxLayout()
        layout.setContentsMargins(16, 16, 16, 16)
        layout.setSpacing(10)
        self.setLayout(layout)

        form = QFormLayout()
        layout.addLayout(form)

        self._client_combo = QComboBox()
        for client in snapshot.clients:
            if client.inactive and (order is None or order.client_id != client.id):
                continue
            self._client_combo.addItem(f"{client.display_label} {client.name}", client.id)
        if order is not None:
            index = self._client_combo.findData(order.client_id)
            if index >= 0:
                self._client_combo.setCurrentIndex(index)
        form.addRow("Client", self._client_combo)

        self._date_input = QDateEdit()
        self._date_input.setCalendarPopup(True)
        order_date = order.date if order else date.today()
        self._date_input.setDate(QDate(order_date.year, order_date.month, order_date.day))
        form.addRow("Date", self._date_input)

        line_row = QHBoxLayout()
        layout.addLayout(line_row)

        self._product_combo = QComboBox()
        for product in snapshot.products:
            if product.inactive:
                continue
            self._product_combo.addItem(
                f"{product.name} ({format_quantity(product.stock, product.unit)} in stock)", product.id
            )
        self._product_combo.currentIndexChanged.connect(self._on_product_changed)
        line_row.addWidget(self._product_combo, stretch=2)

        self._tier_combo = QComboBox()
        self._tier_combo.currentIndexChanged.connect(self._on_tier_changed)
        line_row.addWidget(self._tier_combo, stretch=1)

        self._quantity_input = QDoubleSpinBox()
        self._quantity_input.setDecimals(2)
        self._quantity_input.setRange(0.0, 1_000_000.0)
        line_row.addWidget(self._quantity_input)

        self._price_input = QDoubleSpinBox()
        self._price_input.setDecimals(2)
        self._price_input.setRange(0.0, 1_000_000.0)
        self._price_input.setPrefix("$")
        self._price_input.setToolTip("Leave at $0.00 to price a custom quantity from the smallest tier.")
        line_row.addWidget(self._price_input)

        add_button = QPushButton("Add Item")
        add_button.clicked.connect(self._handle_add_item)
        line_row.addWidget(add_button)
        remove_button = QPushButton("Remove Item")
        remove_button.clicked.connect(self._handle_remove_item)
        line_row.addWidget(remove_button)

        self._items_table = QTableWidget(0, 4)
        self._items_table.setHorizontalHeaderLabels(["Product", "Size", "Quantity", "Price"])
        self._items_table.horizontalHeader().setSectionResizeMode(0, QHeaderView.ResizeMode.Stretch)
        self._items_table.verticalHeader().setVisible(False)
        self._items_table.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self._items_table.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        self._items_table.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        layout.addWidget(self._items_table, stretch=1)

        money_form = QFormLayout()
        layout.addLayout(money_form)

        self._fee_input, self._fee_description = self._adjustment_row(money_form, "Fees", order.fee if order else None)
        self._discount_input, self._discount_description = self._adjustment_row(
            money_form, "Discount", order.discount if order else None
        )

        self._paid_input = QDoubleSpinBox()
        self._paid_input.setDecimals(2)
        self._paid_input.setRange(0.0, 1_000_000.0)
        self._paid_input.setPrefix("$")
        self._paid_input.setValue(order.amount_paid if order else 0.0)
        self._paid_input.valueChanged.connect(self._refresh_totals)
        money_form.addRow("Amount Paid", self._paid_input)

        methods = order.payment_methods if order else PaymentMethods()
        payment_row = QHBoxLayout()
        self._cash_checkbox = QCheckBox("Cash")
        self._cash_checkbox.setChecked(methods.cash)
        self._etransfer_checkbox = QCheckBox("E-Transfer")
        self._etransfer_checkbox.setChecked(methods.etransfer)
        self._other_checkbox = QCheckBox("Other")
        self._other_checkbox.setChecked(methods.other)
        self._other_details_input = QLineEdit(methods.other_details)
        self._other_details_input.setPlaceholderText("Other payment details")
        for widget in (self._cash_checkbox, self._etransfer_checkbox, self._other_checkbox, self._other_details_input):
            payment_row.addWidget(widget)
        money_form.addRow("Payment", payment_row)

        self._notes_input = QTextEdit()
        self._notes_input.setPlainText(order.notes if order else "")
        self._notes_input.setFixedHeight(60)
        money_form.addRow("Notes", self._notes_input)

        self._totals_label = QLabel()
        self._totals_label.setStyleSheet("font-size: 16px; font-weight: bold;")
        layout.addWidget(self._totals_label)

        button_box = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel)
        button_box.accepted.connect(self.accept)
        button_box.rejected.connect(self.reject)
        layout.addWidget(button_box)

        self._on_product_changed(self._product_combo.currentIndex())
        self._render_items()

    def draft(self) -> Optional[OrderDraft]:
        return self._draft

    def _adjustment_row(self, form: QFormLayout, title: str, adjustment: Optional[Adjustment]):
        row = QHBoxLayout()
        amount_input = QDoubleSpinBox()
        amount_input.setDecimals(2)
        amount_input.setRange(-1_000_000.0, 1_000_000.0)
        amount_input.setPrefix("$")
        amount_input.setValue(adjustment.amount if adjustment else 0.0)
        amount_input.valueChanged.connect(self._refresh_totals)
        description_input = QLineEdit(adjustment.description if adjustment else "")
        description_input.setPlaceholderText("Description")
        row.addWidget(amount_input)
        row.addWidget(description_input, stretch=1)
        form.addRow(title, row)
        return amount_input, description_input

    def _selected_product(self):
        product_id = self._product_combo.currentData()
        if not product_id:
            return None
        return self._snapshot.find_product(product_id)

    def _on_product_changed(self, _index: int) -> None:
        self._tier_combo.clear()
        product = self._selected_product()
        if product is None:
            return
        for tier in product.tiers:
            self._tier_combo.addItem(f"{tier.label} ({format_money(tier.price)})", tier.label)
        self._tier_combo.addItem("Custom", CUSTOM_TIER_LABEL)
        self._quantity_input.setSingleStep(product.increment or 1.0)
        self._on_tier_changed(self._tier_combo.currentIndex())

    def _on_tier_changed(self, _index: int) -> None:
        custom = self._tier_combo.currentData() == CUSTOM_TIER_LABEL
        self._quantity_input.setEnabled(custom)
        self._price_input.setEnabled(custom)

    def _handle_add_item(self) -> None:
        product = self._selected_product()
        if product is None:
            QMessageBox.warning(self, "Order", "Select a product first.")
            return

        label = self._tier_combo.currentData()
        try:
            if label == CUSTOM_TIER_LABEL:
                price = self._price_input.value() or None
                line = pricing.resolve_line(product, quantity=self._quantity_input.value(), price=price)
                if line.quantity <= 0:
                    raise ValidationError("Enter a quantity greater than zero.")
            else:
                line = pricing.resolve_line(product, tier_label=label)
        except ValidationError as exc:
            QMessageBox.warning(self, "Order", str(exc))
            return

        self._items.append(line.to_item(product.id))
        self._render_items()

    def _handle_remove_item(self) -> None:
        current = self._items_table.currentRow()
        if current < 0:
            return
        del self._items[current]
        self._render_items()

    def _render_items(self) -> None:
        self._items_table.setRowCount(0)
        for row, item in enumerate(self._items):
            product = self._snapshot.find_product(item.product_id)
            name = product.name if product else "Unknown Product"
            unit = product.unit if product else "unit"
            self._items_table.insertRow(row)
            cells = (name, item.tier_label or "", format_quantity(item.quantity, unit), format_money(item.price))
            for column, text in enumerate(cells):
                cell = QTableWidgetItem(text)
                if column >= 2:
                    cell.setTextAlignment(int(Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter))
                self._items_table.setItem(row, column, cell)
        self._refresh_totals()

    def _current_adjustments(self):
        fee = Adjustment(amount=self._fee_input.value(), description=self._fee_description.text().strip())
        discount = Adjustment(amount=self._discount_input.value(), description=self._discount_description.text().strip())
        return fee, discount

    def _refresh_totals(self, *_args) -> None:
        fee, discount = self._current_adjustments()
        total = compute_total(self._items, fee, discount)
        status = compute_status(total, self._paid_input.value())
        balance = total - self._paid_input.value()
        self._totals_label.setText(f"Total: {format_money(total)}   Balance: {format_money(balance)}   Status: {status}")

    def accept(self) -> None:  # noqa: D401
        client_id = self._client_combo.currentData()
        if not client_id:
            QMessageBox.warning(self, "Order", "Please select a client.")
            return
        if not self._items:
            QMessageBox.warning(self, "Order", "Add at least one item before saving.")
            return

        fee, discount = self._current_adjustments()
        picked = self._date_input.date()
        self._draft = OrderDraft(
            client_id=client_id,
            items=list(self._items),
            date=date(picked.year(), picked.month(), picked.day()),
            notes=self._notes_input.toPlainText().strip(),
            amount_paid=self._paid_input.value(),
            payment_methods=PaymentMethods(
                cash=self._cash_checkbox.isChecked(),
                etransfer=self._etransfer_checkbox.isChecked(),
                other=self._other_checkbox.isChecked(),
                other_details=self._other_details_input.text().strip(),
            ),
            fee=fee,
            discount=discount,
        )
        super().accept()
