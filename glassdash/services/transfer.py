"""Whole-dataset JSON backup and per-table CSV export.

An import either yields a complete replacement snapshot or raises
ImportValidationError; a partially decoded file is never returned.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from typing import Any, Dict, List, Mapping, Sequence, Union

from ..models.entities import Snapshot
from ..models.serialization import ENTITY_DECODERS, ENTITY_ENCODERS, SNAPSHOT_KEYS
from .errors import ImportValidationError, ValidationError

logger = logging.getLogger("glassdash.transfer")


def export_snapshot(snapshot: Snapshot) -> Dict[str, List[Dict[str, Any]]]:
    return {key: table_records(snapshot, key) for key in SNAPSHOT_KEYS}


def dumps_snapshot(snapshot: Snapshot) -> str:
    return json.dumps(export_snapshot(snapshot), indent=2, ensure_ascii=False)


def table_records(snapshot: Snapshot, kind: str) -> List[Dict[str, Any]]:
    encoder = ENTITY_ENCODERS.get(kind)
    if encoder is None:
        raise ValidationError(f"Unknown data type '{kind}'.")
    return [encoder(entity) for entity in getattr(snapshot, kind)]


def import_snapshot(source: Union[str, bytes, Mapping[str, Any]]) -> Snapshot:
    if isinstance(source, (str, bytes)):
        try:
            payload = json.loads(source)
        except json.JSONDecodeError as exc:
            raise ImportValidationError(f"Invalid file format: {exc.msg} (line {exc.lineno}).") from exc
    else:
        payload = source

    if not isinstance(payload, Mapping):
        raise ImportValidationError("Invalid file format: expected a JSON object.")

    for key in SNAPSHOT_KEYS:
        if key not in payload:
            raise ImportValidationError(f"Invalid file format: missing '{key}'.")
        if not isinstance(payload[key], list):
            raise ImportValidationError(f"Invalid file format: '{key}' must be an array.")

    collections: Dict[str, tuple] = {}
    for key in SNAPSHOT_KEYS:
        decoder = ENTITY_DECODERS[key]
        decoded = []
        for index, record in enumerate(payload[key]):
            if not isinstance(record, Mapping):
                raise ImportValidationError(f"Invalid record in '{key}' at position {index}: expected an object.")
            try:
                decoded.append(decoder(record))
            except (KeyError, TypeError, ValueError) as exc:
                detail = f"missing field {exc}" if isinstance(exc, KeyError) else str(exc)
                raise ImportValidationError(f"Invalid record in '{key}' at position {index}: {detail}.") from exc
        collections[key] = tuple(decoded)

    _require_unique_ids(collections)
    snapshot = Snapshot(**collections)
    logger.info(
        "Decoded import: %s",
        ", ".join(f"{len(collections[key])} {key}" for key in SNAPSHOT_KEYS),
    )
    return snapshot


def export_table(records: Sequence[Mapping[str, Any]]) -> str:
    if not records:
        raise ValidationError("There is no data to export.")

    headers = list(records[0].keys())
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    for record in records:
        writer.writerow([_format_cell(record.get(header)) for header in headers])
    return buffer.getvalue()


def _format_cell(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def _require_unique_ids(collections: Mapping[str, Sequence[Any]]) -> None:
    for key, entities in collections.items():
        seen = set()
        for entity in entities:
            if entity.id in seen:
                raise ImportValidationError(f"Invalid file format: duplicate id '{entity.id}' in '{key}'.")
            seen.add(entity.id)
