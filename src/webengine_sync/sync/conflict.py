"""Decide whether the remote copy moved on since our last sync.

The comparison is deliberately asymmetric:

* remote timestamp missing or unparsable -> ``UNKNOWN`` (callers treat it
  as "not ahead"; the remote signal is unreliable and must not block).
* local timestamp missing or unparsable -> ``REMOTE_AHEAD`` (a resource
  whose sync history is unknown is never silently overwritten).
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone

from .models import ConflictStatus, ResourceRecord

logger = logging.getLogger(__name__)

# Values above this are epoch milliseconds rather than seconds.
_EPOCH_MS_THRESHOLD = 10**11

# fromisoformat() before 3.11 only takes 3 or 6 fractional digits
_FRACTION = re.compile(r"(?<=\d)\.(\d+)")


def parse_timestamp(value: object) -> datetime | None:
    """Parse a remote or recorded timestamp into an aware UTC datetime.

    Accepts ISO 8601 strings (``Z`` or offset suffix, ``T`` or space
    separator), epoch seconds or milliseconds (int, float or digit
    string) and ``datetime`` instances.  Naive values are taken as UTC.

    Returns:
        The parsed datetime, or ``None`` when *value* is empty or
        unparsable.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        dt = _from_epoch(float(value))
    elif isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").replace(".", "", 1).isdigit():
            dt = _from_epoch(float(text))
        else:
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            text = _FRACTION.sub(_six_digit_fraction, text, count=1)
            try:
                dt = datetime.fromisoformat(text)
            except ValueError:
                return None
    else:
        return None

    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _six_digit_fraction(match: re.Match) -> str:
    return "." + match[1][:6].ljust(6, "0")


def _from_epoch(number: float) -> datetime | None:
    if number >= _EPOCH_MS_THRESHOLD:
        number = number / 1000.0
    try:
        return datetime.fromtimestamp(number, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def local_timestamp(record: ResourceRecord | None) -> datetime | None:
    """Last-sync time of *record*, falling back to its ``updated_at``."""
    if record is None:
        return None
    return parse_timestamp(record.last_synced_at or record.updated_at)


def classify(
    remote_updated_at: object, record: ResourceRecord | None
) -> ConflictStatus:
    """Classify the remote copy relative to the local sync history.

    Args:
        remote_updated_at: Modification time reported by the remote.
        record: Local sync record for the resource.

    Returns:
        ``UNKNOWN`` if the remote time is unusable, ``REMOTE_AHEAD`` if
        there is no local time or the remote is strictly newer, otherwise
        ``UNCHANGED``.
    """
    remote_ts = parse_timestamp(remote_updated_at)
    if remote_ts is None:
        logger.debug(
            "Unparsable remote timestamp %r; not blocking",
            remote_updated_at,
        )
        return ConflictStatus.UNKNOWN

    local_ts = local_timestamp(record)
    if local_ts is None:
        return ConflictStatus.REMOTE_AHEAD

    if remote_ts > local_ts:
        return ConflictStatus.REMOTE_AHEAD
    return ConflictStatus.UNCHANGED


def is_remote_ahead(status: ConflictStatus) -> bool:
    """``True`` only for ``REMOTE_AHEAD``; ``UNKNOWN`` never blocks."""
    return status == ConflictStatus.REMOTE_AHEAD


def utc_now_iso() -> str:
    """Current UTC time as ISO 8601 with a ``Z`` suffix."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )
