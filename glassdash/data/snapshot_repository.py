from __future__ import annotations

import json
import logging
from typing import Dict, Tuple

from ..models.entities import Snapshot
from ..models.serialization import ENTITY_DECODERS, ENTITY_ENCODERS
from .database import ENTITY_TABLES, create_connection

logger = logging.getLogger("glassdash.storage")


def load_snapshot() -> Snapshot:
    connection = create_connection()
    try:
        # One read transaction so every table comes from the same commit.
        connection.execute("BEGIN")
        collections: Dict[str, Tuple] = {}
        for table in ENTITY_TABLES:
            decoder = ENTITY_DECODERS[table]
            collections[table] = tuple(
                decoder(json.loads(row["payload"]))
                for row in connection.execute(f"SELECT payload FROM {table} ORDER BY position ASC")
            )
        connection.commit()
    finally:
        connection.close()
    return Snapshot(**collections)


def commit(snapshot: Snapshot) -> Snapshot:
    """Replace every stored collection with ``snapshot`` in a single transaction.

    Either all five tables hold the new state afterwards or, on any error, all
    of them still hold the previous one. Returns the snapshot as re-read from
    storage.
    """
    rows = {
        table: [
            (entity.id, position, json.dumps(ENTITY_ENCODERS[table](entity), ensure_ascii=False))
            for position, entity in enumerate(getattr(snapshot, table))
        ]
        for table in ENTITY_TABLES
    }

    connection = create_connection()
    try:
        with connection:
            for table in ENTITY_TABLES:
                connection.execute(f"DELETE FROM {table}")
                connection.executemany(
                    f"INSERT INTO {table} (id, position, payload) VALUES (?, ?, ?)",
                    rows[table],
                )
    finally:
        connection.close()

    logger.debug(
        "Committed snapshot: %s",
        ", ".join(f"{len(rows[table])} {table}" for table in ENTITY_TABLES),
    )
    return load_snapshot()
