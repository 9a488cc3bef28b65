from __future__ import annotations

import os
import sqlite3
from pathlib import Path


_DB_FILE = "glassdash.db"

# Entity tables share one layout: the record is stored as JSON and ``position``
# keeps the collection order a snapshot had when it was committed.
ENTITY_TABLES = ("clients", "products", "orders", "expenses", "logs")


def _get_storage_directory() -> Path:
    override = os.getenv("GLASSDASH_HOME")
    if override:
        target = Path(override).expanduser()
    else:
        base = Path(os.getenv("LOCALAPPDATA", Path.home()))
        target = base / "GlassDash"
    target.mkdir(parents=True, exist_ok=True)
    return target


def get_database_path() -> Path:
    return _get_storage_directory() / _DB_FILE


def create_connection() -> sqlite3.Connection:
    connection = sqlite3.connect(get_database_path())
    connection.row_factory = sqlite3.Row
    _apply_pragmas(connection)
    return connection


def _apply_pragmas(connection: sqlite3.Connection) -> None:
    cursor = connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON;")
    cursor.execute("PRAGMA journal_mode = WAL;")
    cursor.close()


def initialize() -> None:
    with create_connection() as connection:
        cursor = connection.cursor()
        for table in ENTITY_TABLES:
            cursor.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {table} (
                    id TEXT PRIMARY KEY,
                    position INTEGER NOT NULL,
                    payload TEXT NOT NULL
                );
                """
            )
            cursor.execute(f"CREATE INDEX IF NOT EXISTS idx_{table}_position ON {table}(position);")

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
            """
        )
        cursor.close()
        connection.commit()
