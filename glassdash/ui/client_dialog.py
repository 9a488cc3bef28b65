from __future__ import annotations

from dataclasses import replace
from typing import Optional

from PySide6.QtWidgets import (
    QCheckBox,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QLineEdit,
    QMessageBox,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from ..models.entities import Client


class ClientEditorDialog(QDialog):
    def __init__(self, *, client: Optional[Client] = None, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle(f"Edit Client {client.display_label}" if client else "New Client")
        self._original = client
        self._result: Optional[Client] = None

        layout = QVBoxLayout()
        form = QFormLayout()
        layout.addLayout(form)

        self._name_input = QLineEdit(client.name if client else "")
        form.addRow("Name", self._name_input)
        self._email_input = QLineEdit(client.email if client else "")
        form.addRow("Email", self._email_input)
        self._phone_input = QLineEdit(client.phone if client else "")
        form.addRow("Phone", self._phone_input)
        self._etransfer_input = QLineEdit(client.etransfer if client else "")
        form.addRow("E-Transfer", self._etransfer_input)

        self._address_input = QTextEdit()
        self._address_input.setPlainText(client.address if client else "")
        self._address_input.setFixedHeight(70)
        form.addRow("Address", self._address_input)

        self._notes_input = QTextEdit()
        self._notes_input.setPlainText(client.notes if client else "")
        self._notes_input.setFixedHeight(70)
        form.addRow("Notes", self._notes_input)

        self._inactive_checkbox = QCheckBox("Inactive")
        self._inactive_checkbox.setChecked(client.inactive if client else False)
        form.addRow("", self._inactive_checkbox)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel)
        buttons.accepted.connect(self._on_accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

        self.setLayout(layout)

    def client(self) -> Optional[Client]:
        return self._result

    def _on_accept(self) -> None:
        name = self._name_input.text().strip()
        if not name:
            QMessageBox.warning(self, "Client", "Client name is required.")
            return

        fields = dict(
            name=name,
            email=self._email_input.text().strip(),
            phone=self._phone_input.text().strip(),
            etransfer=self._etransfer_input.text().strip(),
            address=self._address_input.toPlainText().strip(),
            notes=self._notes_input.toPlainText().strip(),
            inactive=self._inactive_checkbox.isChecked(),
        )
        if self._original is not None:
            self._result = replace(self._original, **fields)
        else:
            self._result = Client(id="", display_id=0, **fields)
        self.accept()
