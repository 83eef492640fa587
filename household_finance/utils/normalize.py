"""
Value Normalization

Records arrive from the external store in whatever shape the store and
the clients that wrote them produced: timestamps as wrapper objects,
native dates, epoch milliseconds or date strings; amounts as numbers,
numeric strings or garbage.

DESIGN DECISION: Normalization never fails.
- Dates fall back to "now" when absent or unparseable.
- Numbers fall back to 0 when absent or non-numeric.
Every derived view can therefore run on any record list without
raising.

Every instant ends up as a naive local datetime, whichever shape it
arrived in, so month scoping is the same for all of them.
"""

import math
from datetime import date, datetime, time, timezone
from typing import Any, Optional

from dateutil import parser as date_parser


def _to_local_naive(dt: datetime) -> datetime:
    """Aware datetimes are shifted to local time and made naive."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


def _parse_string(text: str) -> Optional[datetime]:
    """Parse a date or datetime string, None on failure."""
    s = text.strip()
    if not s:
        return None

    # Convert trailing "Z" to "+00:00" for ISO format compatibility
    iso = s[:-1] + "+00:00" if s.endswith("Z") else s
    try:
        return datetime.fromisoformat(iso)
    except ValueError:
        pass

    # Anything else dateutil understands: "Jan 5, 2024", RFC 2822, "2024/01/05"
    try:
        return date_parser.parse(s)
    except (ValueError, OverflowError):
        return None


def _from_epoch_ms(value: float) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


def normalize_date(value: Any, now: Optional[datetime] = None) -> datetime:
    """
    Turn a date-like value into a naive local datetime.

    Supports:
    - External timestamp wrappers exposing ToDatetime() (protobuf
      Timestamp) or to_datetime(); a naive result is read as UTC
    - datetime (aware values are converted to local time)
    - date (midnight of that day)
    - int or float, read as milliseconds since the Unix epoch
    - Strings: ISO 8601 ("2024-01-05", "2024-01-05T10:00:00Z") first,
      then any format dateutil parses ("Jan 5, 2024")

    Args:
        value: The value to normalize
        now: Fallback for absent or unparseable input.
             Defaults to the current time.

    Returns:
        A naive datetime. Never raises.
    """
    fallback = _to_local_naive(now) if now is not None else datetime.now()

    if value is None or isinstance(value, bool):
        return fallback

    for method_name in ("ToDatetime", "to_datetime"):
        method = getattr(value, method_name, None)
        if callable(method) and not isinstance(value, (datetime, date)):
            try:
                value = method()
            except Exception:
                return fallback
            if isinstance(value, datetime) and value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            break

    if isinstance(value, datetime):
        return _to_local_naive(value)

    if isinstance(value, date):
        return datetime.combine(value, time.min)

    if isinstance(value, (int, float)):
        if math.isnan(value) or math.isinf(value):
            return fallback
        parsed = _from_epoch_ms(value)
    elif isinstance(value, str):
        parsed = _parse_string(value)
    else:
        parsed = None

    if parsed is None:
        return fallback
    return _to_local_naive(parsed)


def coerce_number(value: Any) -> float:
    """
    Coerce a value to a finite float, defaulting to 0.

    Booleans, non-numeric strings, NaN and infinities all become 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0

    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0

    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def coerce_amount(value: Any) -> float:
    """Transaction amounts are non-negative; direction comes from the type."""
    return abs(coerce_number(value))
