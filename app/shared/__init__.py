"""Shared utilities: telemetry and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from app.shared.utils import (
    ensure_utc,
    parse_address,
    parse_message_date,
    to_epoch_seconds,
    to_iso_z,
    utc_now,
)

__all__ = [
    "utc_now",
    "ensure_utc",
    "to_epoch_seconds",
    "to_iso_z",
    "parse_address",
    "parse_message_date",
]
