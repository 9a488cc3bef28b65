from __future__ import annotations

from typing import Dict

from ..models.entities import AppSettings
from .database import create_connection

_DEFAULTS: Dict[str, str] = {
    "business_name": "Glass Dashboard",
    "operator_name": "Unknown User",
    "low_stock_threshold": "5",
    "order_number_format": "ord-{seq:04d}",
}


def get_setting(key: str) -> str:
    key = key.strip()
    with create_connection() as connection:
        row = connection.execute(
            "SELECT value FROM settings WHERE key = ?",
            (key,),
        ).fetchone()

    if row is None:
        return _DEFAULTS.get(key, "")
    return row["value"]


def set_setting(key: str, value: str) -> None:
    key = key.strip()
    with create_connection() as connection:
        connection.execute(
            """
            INSERT INTO settings (key, value)
            VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value
            """,
            (key, value),
        )
        connection.commit()


def get_app_settings() -> AppSettings:
    business_name = get_setting("business_name").strip() or _DEFAULTS["business_name"]
    operator_name = get_setting("operator_name").strip() or _DEFAULTS["operator_name"]

    try:
        low_stock = float(get_setting("low_stock_threshold") or _DEFAULTS["low_stock_threshold"])
    except ValueError:
        low_stock = float(_DEFAULTS["low_stock_threshold"])

    order_number_format = get_setting("order_number_format").strip() or _DEFAULTS["order_number_format"]
    if "{seq" not in order_number_format:
        order_number_format = _DEFAULTS["order_number_format"]

    return AppSettings(
        business_name=business_name,
        operator_name=operator_name,
        low_stock_threshold=max(0.0, low_stock),
        order_number_format=order_number_format,
    )


def update_app_settings(settings: AppSettings) -> AppSettings:
    set_setting("business_name", settings.business_name.strip())
    set_setting("operator_name", settings.operator_name.strip())
    set_setting("low_stock_threshold", f"{max(0.0, float(settings.low_stock_threshold)):g}")
    format_value = settings.order_number_format.strip() or _DEFAULTS["order_number_format"]
    set_setting("order_number_format", format_value)
    return get_app_settings()
