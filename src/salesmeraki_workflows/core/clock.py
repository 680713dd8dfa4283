"""Timestamp helpers.

Workflows carry ISO-8601 strings on the wire. Comparisons go through
:func:`parse_timestamp`, which never raises: anything missing or unreadable is
treated as the Unix epoch so that a record with a real timestamp always wins.
"""

from __future__ import annotations

from datetime import datetime, timezone

__all__ = ["EPOCH", "epoch_millis", "parse_timestamp", "to_iso", "utc_now"]

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(moment: datetime) -> str:
    """Format an aware datetime the way the web client does (``...123Z``)."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def epoch_millis(moment: datetime) -> int:
    """Milliseconds since the Unix epoch."""
    return int(moment.timestamp() * 1000)


def parse_timestamp(value: str | datetime | None) -> datetime:
    """Coerce a wire timestamp to an aware UTC datetime.

    Date-only strings are read as UTC midnight and naive values as UTC.

    Args:
        value: ISO-8601 string, datetime, or ``None``.

    Returns:
        The parsed moment, or :data:`EPOCH` when ``value`` is missing or unparsable.
    """
    if value is None or value == "":
        return EPOCH
    if isinstance(value, datetime):
        moment = value
    else:
        try:
            moment = datetime.fromisoformat(str(value).strip())
        except ValueError:
            return EPOCH
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment
