"""Email header normalization shared by all provider clients.

Analytics ("from me", reply detection) compare addresses parsed here, so
Gmail and Outlook summaries must go through the same functions.
"""

import re
from datetime import datetime
from email.utils import parsedate_to_datetime

from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import ensure_utc, utc_now

logger = get_logger(__name__)

_ADDRESS_RE = re.compile(r"<([^>]+)>|([\w.+-]+@[\w.-]+)")
_BRACKETED_RE = re.compile(r"<[^>]+>")


def parse_address(header: str | None) -> tuple[str, str]:
    """Split a From/To header into (email, name).

    Accepts ``Name <email>`` or a bare ``email``. When no address is found
    the whole trimmed header is used as both email and name. Empty input
    gives ("", ""). For a bare address the name is the address itself.

    Args:
        header: Raw header value.

    Returns:
        Tuple of (email, display name).
    """
    if not header:
        return "", ""
    value = header.strip()
    match = _ADDRESS_RE.search(value)
    if not match:
        return value, value.replace('"', "").strip()
    email = (match.group(1) or match.group(2)).strip()
    name = _BRACKETED_RE.sub("", value).replace('"', "").strip()
    return email, name


def _parse_iso(text: str) -> datetime:
    return datetime.fromisoformat(text.replace("Z", "+00:00"))


def _parse_iso_prefix(text: str) -> datetime:
    # Graph sometimes returns more fractional digits than fromisoformat accepts.
    return datetime.fromisoformat(text[:19])


_DATE_PARSERS = (_parse_iso, parsedate_to_datetime, _parse_iso_prefix)


def parse_message_date(value: str | None) -> datetime:
    """Parse a provider date (ISO-8601 or RFC 2822) into an aware UTC datetime.

    Falls back to the current time when the value is missing or unparseable.
    """
    if not value:
        return utc_now()
    text = value.strip()
    for parser in _DATE_PARSERS:
        try:
            return ensure_utc(parser(text))
        except (TypeError, ValueError, IndexError):
            continue
    logger.debug("Unparseable message date %r; using current time", value)
    return utc_now()
