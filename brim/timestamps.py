"""
Timestamp normalization for foreign browser stores.

Every timestamp written to the canonical store is Unix milliseconds.
Chromium stores microseconds since 1601-01-01, Gecko microseconds since
the Unix epoch (milliseconds in logins.json, seconds for cookie expiry).

Malformed, zero or pre-1970 source values are clamped to "now" so they
never sort ahead of real history.
"""
import time
from datetime import datetime, timezone
from typing import Any, Optional

# Milliseconds between 1601-01-01 and 1970-01-01
CHROMIUM_EPOCH_OFFSET_MS = 11_644_473_600_000

# Gecko cookie expiry moved from seconds to milliseconds; anything above
# this is already milliseconds (year 5138 in seconds).
GECKO_EXPIRY_MS_THRESHOLD = 10 ** 11


def now_ms() -> int:
    """Current Unix time in milliseconds."""
    return int(time.time() * 1000)


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def unix_ms(ms: Any) -> int:
    """Clamp a Unix-milliseconds value: non-positive or invalid becomes now."""
    value = _as_int(ms)
    return value if value > 0 else now_ms()


def chromium_to_unix_ms(us: Any) -> int:
    """
    Convert a Chromium timestamp (microseconds since 1601) to Unix ms.

    >>> chromium_to_unix_ms(13_350_000_000_000_000)
    1705526400000
    """
    value = _as_int(us)
    if value <= 0:
        return now_ms()
    return unix_ms(value // 1000 - CHROMIUM_EPOCH_OFFSET_MS)


def gecko_to_unix_ms(us: Any) -> int:
    """Convert a Gecko timestamp (microseconds since 1970) to Unix ms."""
    return unix_ms(_as_int(us) // 1000)


def expiry_to_unix_ms(value: Any, family: str) -> Optional[int]:
    """
    Convert a cookie expiry to Unix ms.

    Zero or missing means a session cookie, which has no expiry.
    """
    raw = _as_int(value)
    if raw <= 0:
        return None
    if family == "chromium":
        ms = raw // 1000 - CHROMIUM_EPOCH_OFFSET_MS
        return ms if ms > 0 else None
    if raw > GECKO_EXPIRY_MS_THRESHOLD:
        return raw
    return raw * 1000


def to_datetime(ms: Optional[int]) -> Optional[datetime]:
    """Unix ms to an aware UTC datetime (for display)."""
    if ms is None:
        return None
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
