from datetime import datetime

from glassdash.data import database, settings_repository, snapshot_repository
from glassdash.models.entities import AppSettings, LogEntry, Snapshot


class _ConnectionWithWriteAfterFirstRead:
    """Runs ``on_first_read`` right after the first SELECT has been fetched."""

    def __init__(self, connection, on_first_read):
        self._connection = connection
        self._on_first_read = on_first_read

    def execute(self, sql, *params):
        cursor = self._connection.execute(sql, *params)
        if not sql.startswith("SELECT"):
            return cursor
        rows = cursor.fetchall()
        if self._on_first_read is not None:
            hook, self._on_first_read = self._on_first_read, None
            hook()
        return rows

    def commit(self):
        self._connection.commit()

    def close(self):
        self._connection.close()


class TestDatabase:
    def test_storage_root_follows_environment(self, storage):
        assert database.get_database_path() == storage / "glassdash.db"
        assert database.get_database_path().exists()

    def test_initialize_is_idempotent(self, storage):
        database.initialize()
        connection = database.create_connection()
        try:
            tables = {row["name"] for row in connection.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
        finally:
            connection.close()
        assert set(database.ENTITY_TABLES) | {"settings"} <= tables


class TestSnapshotRepository:
    def test_empty_store(self, storage):
        assert snapshot_repository.load_snapshot() == Snapshot()

    def test_commit_round_trip_keeps_order(self, storage, snapshot):
        stored = snapshot_repository.commit(snapshot)
        assert stored == snapshot
        assert [order.id for order in snapshot_repository.load_snapshot().orders] == ["ord-0002", "ord-0001"]

    def test_commit_replaces_everything(self, storage, snapshot):
        snapshot_repository.commit(snapshot)
        log = LogEntry(id="log-1", timestamp=datetime(2026, 3, 11, 9, 0), actor="Sam", action="All Data Deleted")
        stored = snapshot_repository.commit(Snapshot(logs=(log,)))
        assert stored.clients == ()
        assert stored.orders == ()
        assert stored.logs == (log,)

    def test_load_is_not_torn_by_a_concurrent_commit(self, storage, snapshot, monkeypatch):
        snapshot_repository.commit(snapshot)
        opened = []

        def create_connection():
            connection = database.create_connection()
            if opened:
                return connection
            opened.append(connection)
            return _ConnectionWithWriteAfterFirstRead(connection, lambda: snapshot_repository.commit(Snapshot()))

        monkeypatch.setattr(snapshot_repository, "create_connection", create_connection)
        assert snapshot_repository.load_snapshot() == snapshot
        assert snapshot_repository.load_snapshot() == Snapshot()


class TestSettingsRepository:
    def test_defaults(self, storage):
        settings = settings_repository.get_app_settings()
        assert settings.business_name == "Glass Dashboard"
        assert settings.operator_name == "Unknown User"
        assert settings.low_stock_threshold == 5
        assert settings.order_number_format == "ord-{seq:04d}"

    def test_update_round_trip(self, storage):
        updated = settings_repository.update_app_settings(
            AppSettings(business_name=" Corner Shop ", operator_name="Sam", low_stock_threshold=2.5)
        )
        assert updated.business_name == "Corner Shop"
        assert updated.operator_name == "Sam"
        assert updated.low_stock_threshold == 2.5
        assert settings_repository.get_setting("low_stock_threshold") == "2.5"

    def test_bad_stored_values_fall_back(self, storage):
        settings_repository.set_setting("low_stock_threshold", "lots")
        settings_repository.set_setting("order_number_format", "ORDER")
        settings = settings_repository.get_app_settings()
        assert settings.low_stock_threshold == 5
        assert settings.order_number_format == "ord-{seq:04d}"

    def test_unknown_key(self, storage):
        assert settings_repository.get_setting("nonexistent") == ""
