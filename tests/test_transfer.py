import json
from dataclasses import replace
from datetime import datetime

import pytest

from glassdash.models.entities import LogEntry
from glassdash.services import transfer
from glassdash.services.errors import ImportValidationError, ValidationError


def _payload(snapshot):
    return json.loads(transfer.dumps_snapshot(snapshot))


class TestSnapshotJson:
    def test_round_trip(self, snapshot):
        log = LogEntry(
            id="log-1",
            timestamp=datetime(2026, 3, 10, 8, 15),
            actor="Sam",
            action="Order Created",
            details={"orderId": "ord-0002", "total": 25},
        )
        original = replace(snapshot, logs=(log,))
        assert transfer.import_snapshot(transfer.dumps_snapshot(original)) == original

    def test_uses_camel_case_keys(self, snapshot):
        payload = _payload(snapshot)
        assert list(payload) == ["clients", "products", "orders", "expenses", "logs"]
        order = payload["orders"][1]
        assert order["clientId"] == "c-alice"
        assert order["fees"] == {"amount": 5.0, "description": "Delivery"}
        assert order["items"][0]["sizeLabel"] == "3.5g"
        assert payload["products"][0]["costPerUnit"] == 2.0
        assert payload["clients"][0]["displayId"] == 1

    def test_accepts_utc_timestamps_and_extra_fields(self, snapshot):
        payload = _payload(snapshot)
        payload["products"][0]["lastOrdered"] = "2026-03-01T09:30:00.000Z"
        payload["clients"][0]["totalSpent"] = 999
        payload["orders"][0]["date"] = "2026-03-10T00:00:00.000Z"
        imported = transfer.import_snapshot(payload)
        assert imported.products[0].last_ordered.year == 2026
        assert imported.orders[0].date.isoformat() == "2026-03-10"

    def test_optional_order_sections_default(self, snapshot):
        payload = _payload(snapshot)
        for key in ("paymentMethods", "fees", "discount", "reconciled", "amountPaid"):
            del payload["orders"][0][key]
        order = transfer.import_snapshot(payload).orders[0]
        assert order.amount_paid == 0
        assert order.fee.amount == 0
        assert order.payment_methods.summary == "N/A"


class TestImportRejections:
    def test_bad_json(self):
        with pytest.raises(ImportValidationError, match="Invalid file format"):
            transfer.import_snapshot("{not json")

    def test_not_an_object(self):
        with pytest.raises(ImportValidationError, match="expected a JSON object"):
            transfer.import_snapshot("[]")

    def test_missing_collection(self, snapshot):
        payload = _payload(snapshot)
        del payload["expenses"]
        with pytest.raises(ImportValidationError, match="missing 'expenses'"):
            transfer.import_snapshot(payload)

    def test_collection_must_be_an_array(self, snapshot):
        payload = _payload(snapshot)
        payload["logs"] = {}
        with pytest.raises(ImportValidationError, match="'logs' must be an array"):
            transfer.import_snapshot(payload)

    def test_bad_record_names_position(self, snapshot):
        payload = _payload(snapshot)
        del payload["orders"][1]["total"]
        with pytest.raises(ImportValidationError, match="'orders' at position 1"):
            transfer.import_snapshot(payload)

    def test_unknown_status(self, snapshot):
        payload = _payload(snapshot)
        payload["orders"][0]["status"] = "Shipped"
        with pytest.raises(ImportValidationError, match="Shipped"):
            transfer.import_snapshot(payload)

    def test_negative_amount_paid(self, snapshot):
        payload = _payload(snapshot)
        payload["orders"][0]["amountPaid"] = -5
        with pytest.raises(ImportValidationError, match="'orders' at position 0.*cannot be negative"):
            transfer.import_snapshot(payload)

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_tier_quantity_must_be_positive(self, snapshot, quantity):
        payload = _payload(snapshot)
        payload["products"][0]["tiers"][0]["quantity"] = quantity
        with pytest.raises(ImportValidationError, match="'products' at position 0.*greater than zero"):
            transfer.import_snapshot(payload)

    def test_duplicate_ids(self, snapshot):
        payload = _payload(snapshot)
        payload["clients"][1]["id"] = "c-alice"
        with pytest.raises(ImportValidationError, match="duplicate id 'c-alice'"):
            transfer.import_snapshot(payload)


class TestCsvExport:
    def test_header_and_cells(self, snapshot):
        text = transfer.export_table(transfer.table_records(snapshot, "expenses"))
        lines = text.splitlines()
        assert lines[0] == "id,date,description,amount,category,notes"
        assert lines[1] == "exp-1,2026-03-02,Jars,12,Packaging,"

    def test_nested_values_are_json(self, snapshot):
        text = transfer.export_table(transfer.table_records(snapshot, "orders"))
        assert '"{""amount"":5.0,""description"":""Delivery""}"' in text
        assert ",false" in text

    def test_empty_table(self, snapshot):
        with pytest.raises(ValidationError, match="no data to export"):
            transfer.export_table(transfer.table_records(snapshot, "logs"))

    def test_unknown_kind(self, snapshot):
        with pytest.raises(ValidationError, match="Unknown data type"):
            transfer.table_records(snapshot, "invoices")
