from __future__ import annotations

import logging
import sqlite3
from datetime import date
from typing import Callable, Dict, Optional, TypeVar

from PySide6.QtCore import QDate
from PySide6.QtWidgets import (
    QAbstractItemView,
    QComboBox,
    QDateEdit,
    QDoubleSpinBox,
    QFileDialog,
    QFormLayout,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QTableView,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

from ..models.entities import STATUS_COMPLETED, STATUS_DRAFT, STATUS_UNPAID, AppSettings, Client, Order, Product
from ..models.views import ClientStats
from ..services import dashboard_service, listing
from ..services.errors import ValidationError
from ..services.listing import ClientSortKey, OrderSortKey
from ..services.reporting import ReportWindow
from ..viewmodels.table_models import (
    Column,
    ListTableModel,
    client_columns,
    format_money,
    log_columns,
    order_columns,
    product_columns,
    profit_columns,
    transaction_columns,
)
from .client_dialog import ClientEditorDialog
from .order_dialog import OrderEditorDialog
from .product_dialog import ProductEditorDialog
from .stock_dialog import StockUpdateDialog


APP_NAME = "Glass Dashboard"

logger = logging.getLogger("glassdash.ui")

T = TypeVar("T")


class MainWindow(QMainWindow):
    def __init__(self) -> None:
        super().__init__()
        self._app_settings: AppSettings = dashboard_service.get_app_settings()
        self.setWindowTitle(self._app_settings.business_name or APP_NAME)
        self.resize(1280, 820)

        self._tab_widget = QTabWidget()
        self.setCentralWidget(self._tab_widget)

        self._dashboard_tab = QWidget()
        self._orders_tab = QWidget()
        self._clients_tab = QWidget()
        self._products_tab = QWidget()
        self._transactions_tab = QWidget()
        self._reports_tab = QWidget()
        self._log_tab = QWidget()
        self._settings_tab = QWidget()

        self._tab_widget.addTab(self._dashboard_tab, "Dashboard")
        self._tab_widget.addTab(self._orders_tab, "Orders")
        self._tab_widget.addTab(self._clients_tab, "Clients")
        self._tab_widget.addTab(self._products_tab, "Products")
        self._tab_widget.addTab(self._transactions_tab, "Transactions")
        self._tab_widget.addTab(self._reports_tab, "Reports")
        self._tab_widget.addTab(self._log_tab, "Activity Log")
        self._tab_widget.addTab(self._settings_tab, "Settings")

        self._stat_labels: Dict[str, QLabel] = {}
        self._client_names: Dict[str, str] = {}

        self._build_dashboard_tab()
        self._build_orders_tab()
        self._build_clients_tab()
        self._build_products_tab()
        self._build_transactions_tab()
        self._build_reports_tab()
        self._build_log_tab()
        self._build_settings_tab()

        self.refresh_all()

    # Dashboard tab
    def _build_dashboard_tab(self) -> None:
        layout = QVBoxLayout()
        self._dashboard_tab.setLayout(layout)

        header_layout = QHBoxLayout()
        layout.addLayout(header_layout)
        for key, title in (
            ("retail", "Inventory Retail Value"),
            ("cost", "Inventory Cost"),
            ("today", "Sales Today"),
            ("debt", "Outstanding Debt"),
            ("week", "Sales This Week"),
            ("month", "Sales This Month"),
        ):
            label = QLabel(f"{title}\n$0")
            label.setStyleSheet("font-size: 18px; font-weight: bold;")
            self._stat_labels[key] = label
            header_layout.addWidget(label)
        header_layout.addStretch(1)

        refresh_button = QPushButton("Refresh")
        refresh_button.clicked.connect(self.refresh_all)
        header_layout.addWidget(refresh_button)

        body_layout = QHBoxLayout()
        layout.addLayout(body_layout)

        self._notifications_model = ListTableModel(
            (
                Column("Product", lambda alert: alert.product.name),
                Column("Message", lambda alert: alert.message),
            )
        )
        self._top_products_model = ListTableModel(
            (Column("Product", lambda point: point.label), Column("Sales", lambda point: format_money(point.value), numeric=True))
        )
        self._top_clients_model = ListTableModel(
            (Column("Client", lambda point: point.label), Column("Sales", lambda point: format_money(point.value), numeric=True))
        )

        body_layout.addWidget(self._wrap_group("Low Stock", self._make_table(self._notifications_model)), stretch=2)
        body_layout.addWidget(self._wrap_group("Top Products", self._make_table(self._top_products_model)), stretch=1)
        body_layout.addWidget(self._wrap_group("Top Clients", self._make_table(self._top_clients_model)), stretch=1)

    # Orders tab
    def _build_orders_tab(self) -> None:
        layout = QVBoxLayout()
        self._orders_tab.setLayout(layout)

        filter_layout = QHBoxLayout()
        layout.addLayout(filter_layout)

        self._order_search_input = QLineEdit()
        self._order_search_input.setPlaceholderText("Search order # or client")
        self._order_search_input.textChanged.connect(self._load_orders)
        filter_layout.addWidget(self._order_search_input, stretch=2)

        self._order_status_filter = QComboBox()
        self._order_status_filter.addItems([listing.STATUS_FILTER_ALL, STATUS_UNPAID, STATUS_COMPLETED, STATUS_DRAFT])
        self._order_status_filter.currentIndexChanged.connect(self._load_orders)
        filter_layout.addWidget(self._order_status_filter)

        self._order_from_filter = self._make_date_filter("No Start")
        self._order_to_filter = self._make_date_filter("No End")
        for control in (self._order_from_filter, self._order_to_filter):
            control.dateChanged.connect(self._load_orders)
            filter_layout.addWidget(control)

        self._order_sort_combo = QComboBox()
        for key in OrderSortKey:
            self._order_sort_combo.addItem(key.value.title(), key)
        self._order_sort_combo.setCurrentIndex(list(OrderSortKey).index(OrderSortKey.DATE))
        self._order_sort_combo.currentIndexChanged.connect(self._load_orders)
        filter_layout.addWidget(self._order_sort_combo)

        self._orders_model = ListTableModel(order_columns(self._client_names))
        self._orders_table = self._make_table(self._orders_model)
        self._orders_table.doubleClicked.connect(lambda _index: self._handle_edit_order())
        layout.addWidget(self._orders_table, stretch=1)

        button_row = QHBoxLayout()
        layout.addLayout(button_row)
        for title, handler in (
            ("New Order", self._handle_new_order),
            ("Edit Order", self._handle_edit_order),
            ("Mark as Paid", self._handle_mark_paid),
            ("Delete Order", self._handle_delete_order),
        ):
            button = QPushButton(title)
            button.clicked.connect(handler)
            button_row.addWidget(button)
        button_row.addStretch(1)

    # Clients tab
    def _build_clients_tab(self) -> None:
        layout = QVBoxLayout()
        self._clients_tab.setLayout(layout)

        filter_layout = QHBoxLayout()
        layout.addLayout(filter_layout)
        self._client_search_input = QLineEdit()
        self._client_search_input.setPlaceholderText("Search name, email or #id")
        self._client_search_input.textChanged.connect(self._load_clients)
        filter_layout.addWidget(self._client_search_input, stretch=1)

        self._client_sort_combo = QComboBox()
        for key in ClientSortKey:
            self._client_sort_combo.addItem(key.value.replace("_", " ").title(), key)
        self._client_sort_combo.setCurrentIndex(list(ClientSortKey).index(ClientSortKey.BALANCE))
        self._client_sort_combo.currentIndexChanged.connect(self._load_clients)
        filter_layout.addWidget(self._client_sort_combo)

        self._clients_model = ListTableModel(client_columns())
        self._clients_table = self._make_table(self._clients_model)
        self._clients_table.doubleClicked.connect(lambda _index: self._handle_edit_client())
        layout.addWidget(self._clients_table, stretch=1)

        button_row = QHBoxLayout()
        layout.addLayout(button_row)
        for title, handler in (
            ("New Client", self._handle_new_client),
            ("Edit Client", self._handle_edit_client),
            ("Delete Client", self._handle_delete_client),
        ):
            button = QPushButton(title)
            button.clicked.connect(handler)
            button_row.addWidget(button)
        button_row.addStretch(1)

    # Products tab
    def _build_products_tab(self) -> None:
        layout = QVBoxLayout()
        self._products_tab.setLayout(layout)

        self._inventory_label = QLabel()
        self._inventory_label.setStyleSheet("font-weight: bold;")
        layout.addWidget(self._inventory_label)

        self._products_model = ListTableModel(product_columns())
        self._products_table = self._make_table(self._products_model)
        self._products_table.doubleClicked.connect(lambda _index: self._handle_edit_product())
        layout.addWidget(self._products_table, stretch=1)

        button_row = QHBoxLayout()
        layout.addLayout(button_row)
        for title, handler in (
            ("New Product", self._handle_new_product),
            ("Edit Product", self._handle_edit_product),
            ("Update Stock", self._handle_update_stock),
            ("Delete Product", self._handle_delete_product),
        ):
            button = QPushButton(title)
            button.clicked.connect(handler)
            button_row.addWidget(button)
        button_row.addStretch(1)

    # Transactions tab
    def _build_transactions_tab(self) -> None:
        layout = QVBoxLayout()
        self._transactions_tab.setLayout(layout)

        expense_form = QFormLayout()
        layout.addLayout(expense_form)
        self._expense_date_input = QDateEdit()
        self._expense_date_input.setCalendarPopup(True)
        self._expense_date_input.setDate(QDate.currentDate())
        expense_form.addRow("Expense Date", self._expense_date_input)
        self._expense_description_input = QLineEdit()
        expense_form.addRow("Description", self._expense_description_input)
        self._expense_amount_input = QDoubleSpinBox()
        self._expense_amount_input.setDecimals(2)
        self._expense_amount_input.setRange(0.0, 1_000_000.0)
        self._expense_amount_input.setPrefix("$")
        expense_form.addRow("Amount", self._expense_amount_input)
        self._expense_category_input = QLineEdit()
        self._expense_category_input.setPlaceholderText("Optional")
        expense_form.addRow("Category", self._expense_category_input)
        add_expense_button = QPushButton("Add Expense")
        add_expense_button.clicked.connect(self._handle_add_expense)
        expense_form.addRow("", add_expense_button)

        self._transaction_search_input = QLineEdit()
        self._transaction_search_input.setPlaceholderText("Search description or category")
        self._transaction_search_input.textChanged.connect(self._load_transactions)
        layout.addWidget(self._transaction_search_input)

        self._transactions_model = ListTableModel(transaction_columns())
        layout.addWidget(self._make_table(self._transactions_model), stretch=1)

        self._ledger_label = QLabel()
        self._ledger_label.setStyleSheet("font-weight: bold;")
        layout.addWidget(self._ledger_label)

    # Reports tab
    def _build_reports_tab(self) -> None:
        layout = QVBoxLayout()
        self._reports_tab.setLayout(layout)

        filter_layout = QHBoxLayout()
        layout.addLayout(filter_layout)
        self._report_start_date = self._make_date_filter("No Start")
        self._report_end_date = self._make_date_filter("No End")
        filter_layout.addWidget(QLabel("From"))
        filter_layout.addWidget(self._report_start_date)
        filter_layout.addWidget(QLabel("To"))
        filter_layout.addWidget(self._report_end_date)
        run_button = QPushButton("Run Report")
        run_button.clicked.connect(self._run_report)
        filter_layout.addWidget(run_button)
        filter_layout.addStretch(1)

        self._report_summary_label = QLabel()
        self._report_summary_label.setStyleSheet("font-size: 16px; font-weight: bold;")
        layout.addWidget(self._report_summary_label)

        body_layout = QHBoxLayout()
        layout.addLayout(body_layout, stretch=1)

        self._profit_model = ListTableModel(profit_columns())
        self._monthly_model = ListTableModel(
            (Column("Month", lambda point: point.label), Column("Sales", lambda point: format_money(point.value), numeric=True))
        )
        self._category_model = ListTableModel(
            (Column("Category", lambda point: point.label), Column("Spent", lambda point: format_money(point.value), numeric=True))
        )
        body_layout.addWidget(self._wrap_group("Product Profitability", self._make_table(self._profit_model)), stretch=3)
        body_layout.addWidget(self._wrap_group("Monthly Sales", self._make_table(self._monthly_model)), stretch=1)
        body_layout.addWidget(self._wrap_group("Expenses by Category", self._make_table(self._category_model)), stretch=1)

    # Activity log tab
    def _build_log_tab(self) -> None:
        layout = QVBoxLayout()
        self._log_tab.setLayout(layout)
        self._log_model = ListTableModel(log_columns())
        layout.addWidget(self._make_table(self._log_model), stretch=1)

    # Settings tab
    def _build_settings_tab(self) -> None:
        layout = QVBoxLayout()
        self._settings_tab.setLayout(layout)

        form_layout = QFormLayout()
        layout.addLayout(form_layout)

        self._business_name_input = QLineEdit(self._app_settings.business_name)
        form_layout.addRow("Business Name", self._business_name_input)
        self._operator_name_input = QLineEdit(self._app_settings.operator_name)
        form_layout.addRow("Your Name (activity log)", self._operator_name_input)
        self._low_stock_input = QDoubleSpinBox()
        self._low_stock_input.setDecimals(2)
        self._low_stock_input.setRange(0.0, 1_000_000.0)
        self._low_stock_input.setValue(self._app_settings.low_stock_threshold)
        form_layout.addRow("Low Stock Threshold", self._low_stock_input)
        self._order_number_format_input = QLineEdit(self._app_settings.order_number_format)
        form_layout.addRow("Order Number Format", self._order_number_format_input)

        save_button = QPushButton("Save Settings")
        save_button.clicked.connect(self._handle_save_settings)
        form_layout.addRow("", save_button)

        self._settings_status_label = QLabel()
        layout.addWidget(self._settings_status_label)

        data_layout = QHBoxLayout()
        layout.addLayout(data_layout)

        export_all_button = QPushButton("Export All (JSON)")
        export_all_button.clicked.connect(self._handle_export_all)
        data_layout.addWidget(export_all_button)

        self._export_kind_combo = QComboBox()
        self._export_kind_combo.addItems(list(dashboard_service.CSV_EXPORT_KINDS))
        data_layout.addWidget(self._export_kind_combo)
        export_csv_button = QPushButton("Export CSV")
        export_csv_button.clicked.connect(self._handle_export_table)
        data_layout.addWidget(export_csv_button)

        import_button = QPushButton("Import Backup")
        import_button.clicked.connect(self._handle_import)
        data_layout.addWidget(import_button)

        delete_button = QPushButton("Delete All Data")
        delete_button.setStyleSheet("color: #c62828;")
        delete_button.clicked.connect(self._handle_delete_all)
        data_layout.addWidget(delete_button)
        data_layout.addStretch(1)
        layout.addStretch(1)

    # Loading
    def refresh_all(self) -> None:
        snapshot = dashboard_service.get_snapshot()
        self._client_names.clear()
        self._client_names.update({client.id: client.name for client in snapshot.clients})

        stats = dashboard_service.get_dashboard_stats()
        self._stat_labels["retail"].setText(f"Inventory Retail Value\n${stats.inventory_retail_value:,.0f}")
        self._stat_labels["cost"].setText(f"Inventory Cost\n${stats.inventory_cost:,.0f}")
        self._stat_labels["today"].setText(
            f"Sales Today\n${stats.sales_today:,.0f} ({stats.orders_today} {'order' if stats.orders_today == 1 else 'orders'})"
        )
        self._stat_labels["debt"].setText(
            f"Outstanding Debt\n${stats.outstanding_debt:,.0f} (from {stats.unpaid_orders} unpaid orders)"
        )
        self._stat_labels["week"].setText(f"Sales This Week\n${stats.sales_this_week:,.0f}")
        self._stat_labels["month"].setText(f"Sales This Month\n${stats.sales_this_month:,.0f}")

        self._notifications_model.update_rows(dashboard_service.list_notifications())
        self._top_products_model.update_rows(dashboard_service.list_top_products())
        self._top_clients_model.update_rows(dashboard_service.list_top_clients())

        self._load_orders()
        self._load_clients()
        self._load_products()
        self._load_transactions()
        self._run_report()
        self._log_model.update_rows(snapshot.logs)

    def _load_orders(self, *_args) -> None:
        orders = dashboard_service.list_orders(
            query=self._order_search_input.text(),
            status=self._order_status_filter.currentText(),
            date_from=self._extract_optional_date(self._order_from_filter),
            date_to=self._extract_optional_date(self._order_to_filter),
            sort_key=self._order_sort_combo.currentData(),
            descending=True,
        )
        self._orders_model.update_rows(orders)

    def _load_clients(self, *_args) -> None:
        key = self._client_sort_combo.currentData()
        rows = dashboard_service.list_client_stats(
            query=self._client_search_input.text(),
            sort_key=key,
            descending=key != ClientSortKey.NAME,
        )
        self._clients_model.update_rows(rows)

    def _load_products(self) -> None:
        self._products_model.update_rows(dashboard_service.list_products())
        summary = dashboard_service.get_inventory_summary()
        self._inventory_label.setText(
            f"Retail value: {format_money(summary.retail_value)}    Cost: {format_money(summary.cost_value)}"
        )

    def _load_transactions(self, *_args) -> None:
        ledger = dashboard_service.list_transactions(query=self._transaction_search_input.text())
        self._transactions_model.update_rows(ledger.rows)
        self._ledger_label.setText(
            f"Income: {format_money(ledger.income)}    Expenses: {format_money(ledger.expenses)}    "
            f"Net: {format_money(ledger.net)}"
        )

    def _run_report(self) -> None:
        window = ReportWindow(
            start=self._extract_optional_date(self._report_start_date),
            end=self._extract_optional_date(self._report_end_date),
        )
        summary = dashboard_service.get_report_summary(window)
        self._report_summary_label.setText(
            f"Revenue {format_money(summary.revenue)} | Cost {format_money(summary.cost)} | "
            f"Profit {format_money(summary.profit)} | Expenses {format_money(summary.expenses)} | "
            f"Net Income {format_money(summary.net_income)} | Avg Order {format_money(summary.average_order_value)}"
        )
        self._profit_model.update_rows(dashboard_service.list_product_profitability(window))
        self._monthly_model.update_rows(dashboard_service.list_monthly_sales(window))
        self._category_model.update_rows(dashboard_service.list_expenses_by_category(window))

    # Order handlers
    def _selected_order(self) -> Optional[Order]:
        return self._selected_row(self._orders_table, self._orders_model)

    def _handle_new_order(self) -> None:
        dialog = OrderEditorDialog(snapshot=dashboard_service.get_snapshot(), parent=self)
        if dialog.exec() and dialog.draft() is not None:
            self._perform(lambda: dashboard_service.create_order(dialog.draft()))

    def _handle_edit_order(self) -> None:
        order = self._selected_order()
        if order is None:
            self._show_message("Select an order first.")
            return
        dialog = OrderEditorDialog(snapshot=dashboard_service.get_snapshot(), order=order, parent=self)
        if dialog.exec() and dialog.draft() is not None:
            self._perform(lambda: dashboard_service.update_order(order.id, dialog.draft()))

    def _handle_mark_paid(self) -> None:
        order = self._selected_order()
        if order is None:
            self._show_message("Select an order first.")
            return
        self._perform(lambda: dashboard_service.mark_order_paid(order.id))

    def _handle_delete_order(self) -> None:
        order = self._selected_order()
        if order is None:
            self._show_message("Select an order first.")
            return
        if self._confirm(f"Delete order {order.id}? Its stock will be returned to inventory."):
            self._perform(lambda: dashboard_service.delete_order(order.id))

    # Client handlers
    def _selected_client(self) -> Optional[Client]:
        stats: Optional[ClientStats] = self._selected_row(self._clients_table, self._clients_model)
        return stats.client if stats is not None else None

    def _handle_new_client(self) -> None:
        dialog = ClientEditorDialog(parent=self)
        if dialog.exec() and dialog.client() is not None:
            self._perform(lambda: dashboard_service.create_client(dialog.client()))

    def _handle_edit_client(self) -> None:
        client = self._selected_client()
        if client is None:
            self._show_message("Select a client first.")
            return
        dialog = ClientEditorDialog(client=client, parent=self)
        if dialog.exec() and dialog.client() is not None:
            self._perform(lambda: dashboard_service.update_client(dialog.client()))

    def _handle_delete_client(self) -> None:
        client = self._selected_client()
        if client is None:
            self._show_message("Select a client first.")
            return
        if self._confirm(f"Delete client {client.name}?"):
            self._perform(lambda: dashboard_service.delete_client(client.id))

    # Product handlers
    def _selected_product(self) -> Optional[Product]:
        return self._selected_row(self._products_table, self._products_model)

    def _handle_new_product(self) -> None:
        dialog = ProductEditorDialog(parent=self)
        if dialog.exec() and dialog.product() is not None:
            self._perform(lambda: dashboard_service.create_product(dialog.product()))

    def _handle_edit_product(self) -> None:
        product = self._selected_product()
        if product is None:
            self._show_message("Select a product first.")
            return
        dialog = ProductEditorDialog(product=product, parent=self)
        if dialog.exec() and dialog.product() is not None:
            self._perform(lambda: dashboard_service.update_product(dialog.product()))

    def _handle_update_stock(self) -> None:
        product = self._selected_product()
        if product is None:
            self._show_message("Select a product first.")
            return
        dialog = StockUpdateDialog(product=product, parent=self)
        if dialog.exec():
            self._perform(
                lambda: dashboard_service.replenish_stock(product.id, dialog.added_quantity, dialog.purchase_cost)
            )

    def _handle_delete_product(self) -> None:
        product = self._selected_product()
        if product is None:
            self._show_message("Select a product first.")
            return
        if self._confirm(f"Delete product {product.name}?"):
            self._perform(lambda: dashboard_service.delete_product(product.id))

    def _handle_add_expense(self) -> None:
        picked = self._expense_date_input.date()
        result = self._perform(
            lambda: dashboard_service.create_expense(
                date(picked.year(), picked.month(), picked.day()),
                self._expense_description_input.text(),
                self._expense_amount_input.value(),
                self._expense_category_input.text(),
            )
        )
        if result is not None:
            self._expense_description_input.clear()
            self._expense_amount_input.setValue(0.0)
            self._expense_category_input.clear()

    # Settings and data handlers
    def _handle_save_settings(self) -> None:
        updated = AppSettings(
            business_name=self._business_name_input.text().strip() or APP_NAME,
            operator_name=self._operator_name_input.text().strip(),
            low_stock_threshold=self._low_stock_input.value(),
            order_number_format=self._order_number_format_input.text().strip(),
        )
        settings = self._perform(lambda: dashboard_service.update_app_settings(updated))
        if settings is None:
            return
        self._app_settings = settings
        self.setWindowTitle(settings.business_name)
        self._operator_name_input.setText(settings.operator_name)
        self._order_number_format_input.setText(settings.order_number_format)
        self._settings_status_label.setText("Settings saved.")

    def _handle_export_all(self) -> None:
        destination, _ = QFileDialog.getSaveFileName(
            self, "Export All Data", dashboard_service.default_export_filename("all"), "JSON Files (*.json)"
        )
        if destination:
            path = self._perform(lambda: dashboard_service.export_all(destination))
            if path is not None:
                self._settings_status_label.setText(f"Exported to {path}")

    def _handle_export_table(self) -> None:
        kind = self._export_kind_combo.currentText()
        destination, _ = QFileDialog.getSaveFileName(
            self, f"Export {kind.title()}", dashboard_service.default_export_filename(kind), "CSV Files (*.csv)"
        )
        if destination:
            path = self._perform(lambda: dashboard_service.export_table(kind, destination))
            if path is not None:
                self._settings_status_label.setText(f"Exported to {path}")

    def _handle_import(self) -> None:
        source, _ = QFileDialog.getOpenFileName(self, "Import Backup", "", "JSON Files (*.json)")
        if not source:
            return
        if not self._confirm("Importing replaces ALL current data. Continue?"):
            return
        if self._perform(lambda: dashboard_service.import_file(source)) is not None:
            self._show_message("Data imported successfully.")

    def _handle_delete_all(self) -> None:
        if not self._confirm("Permanently delete all clients, products, orders, expenses and logs?"):
            return
        if self._perform(dashboard_service.delete_all_data) is not None:
            self._show_message("All application data has been permanently deleted.")

    # Helpers
    def _perform(self, action: Callable[[], T]) -> Optional[T]:
        try:
            result = action()
        except ValidationError as exc:
            QMessageBox.warning(self, APP_NAME, str(exc))
            return None
        except (sqlite3.Error, OSError) as exc:
            logger.exception("Storage failure")
            QMessageBox.critical(self, APP_NAME, f"The change could not be saved: {exc}")
            return None
        self.refresh_all()
        return result

    def _selected_row(self, table: QTableView, model: ListTableModel):
        index = table.currentIndex()
        if not index.isValid():
            return None
        return model.row_at(index.row())

    def _confirm(self, message: str) -> bool:
        answer = QMessageBox.question(
            self,
            APP_NAME,
            message,
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        return answer == QMessageBox.StandardButton.Yes

    def _make_table(self, model: ListTableModel) -> QTableView:
        table = QTableView()
        table.setModel(model)
        self._configure_table(table)
        return table

    def _make_date_filter(self, empty_text: str) -> QDateEdit:
        control = QDateEdit()
        control.setCalendarPopup(True)
        control.setSpecialValueText(empty_text)
        control.setMinimumDate(QDate(2000, 1, 1))
        control.setDate(control.minimumDate())
        return control

    def _configure_table(self, table: QTableView) -> None:
        header = table.horizontalHeader()
        header.setStretchLastSection(True)
        header.setSectionResizeMode(QHeaderView.ResizeMode.Interactive)
        table.setAlternatingRowColors(True)
        table.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        table.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)

    def _wrap_group(self, title: str, widget: QWidget) -> QWidget:
        container = QWidget()
        layout = QVBoxLayout()
        container.setLayout(layout)
        label = QLabel(title)
        label.setStyleSheet("font-weight: bold;")
        layout.addWidget(label)
        layout.addWidget(widget)
        return container

    def _show_message(self, message: str) -> None:
        QMessageBox.information(self, APP_NAME, message)

    @staticmethod
    def _extract_optional_date(control: QDateEdit) -> Optional[date]:
        value = control.date()
        if not value.isValid() or value == control.minimumDate():
            return None
        return date(value.year(), value.month(), value.day())
