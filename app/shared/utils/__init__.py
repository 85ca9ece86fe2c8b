"""Shared utilities: UTC datetimes and email header parsing."""

from app.shared.utils.datetime import ensure_utc, to_epoch_seconds, to_iso_z, utc_now
from app.shared.utils.email_headers import parse_address, parse_message_date

__all__ = [
    "utc_now",
    "ensure_utc",
    "to_epoch_seconds",
    "to_iso_z",
    "parse_address",
    "parse_message_date",
]
