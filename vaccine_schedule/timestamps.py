"""Timestamp normalization for backend and user supplied dates.

Collapses every timestamp shape the vaccine API or the user can produce into a
single canonical instant: integer epoch milliseconds, UTC.

**Recognized shapes (checked in this order):**

- Mapping or object exposing ``_seconds`` or ``seconds`` (legacy and current
  server timestamps), combined with ``_nanoseconds``/``nanoseconds`` (default 0)
- Object exposing a zero-argument conversion method (``to_datetime``,
  ``toDate``, ``ToDatetime``) returning a datetime
- ISO-8601 string (``2024-01-05``, ``2024-01-05T10:30:00Z``, ...)
- ``DD/MM/YYYY`` display string, delegated to date_labels.decode
- ``datetime``, ``pandas.Timestamp`` or ``date`` value; naive values are UTC
- Finite number of epoch milliseconds

**Error Handling:**

Anything else yields None, the unparseable sentinel. The normalizer never
substitutes "now" or zero; call sites decide explicitly what to do with a
value that did not parse (usually: keep the record, exclude it from matching).
"""

from __future__ import annotations

import logging
import math
import numbers
import re
from collections.abc import Mapping
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

import pandas as pd

LOG = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)
_PD_EPOCH = pd.Timestamp(0, tz="UTC")
_PD_ONE_MS = pd.Timedelta(milliseconds=1)

# Python datetime range (years 1..9999)
MIN_INSTANT = -62_135_596_800_000
MAX_INSTANT = 253_402_300_799_999

_ISO_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}(?:[T ].+)?$")
_LABEL_PATTERN = re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$")
_CONVERSION_METHODS = ("to_datetime", "toDate", "ToDatetime")


def to_epoch_ms(moment: datetime) -> int:
    """Convert a datetime to epoch milliseconds, treating naive values as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (moment - EPOCH) // _ONE_MS


def from_epoch_ms(instant: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return EPOCH + timedelta(milliseconds=instant)


def to_iso(instant: int) -> str:
    """Format an instant as the ISO-8601 UTC string the vaccine API expects.

    Examples
    --------
    >>> to_iso(1704412800000)
    '2024-01-05T00:00:00.000Z'
    """
    return from_epoch_ms(instant).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _clip(value: float) -> Optional[int]:
    if not math.isfinite(value):
        return None
    instant = int(value)
    if instant < MIN_INSTANT or instant > MAX_INSTANT:
        return None
    return instant


def _seconds_fields(raw: Any) -> Optional[tuple[Any, Any]]:
    """Return (seconds, nanoseconds) when raw is a server timestamp, else None."""
    if isinstance(raw, (str, bytes, numbers.Number, date, timedelta)):
        return None

    if isinstance(raw, Mapping):
        if "_seconds" in raw:
            return raw["_seconds"], raw.get("_nanoseconds")
        if "seconds" in raw:
            return raw["seconds"], raw.get("nanoseconds")
        return None

    if hasattr(raw, "_seconds"):
        return getattr(raw, "_seconds"), getattr(raw, "_nanoseconds", None)
    if hasattr(raw, "seconds"):
        return getattr(raw, "seconds"), getattr(raw, "nanoseconds", None)
    return None


def _normalize_native(value: Any) -> Optional[int]:
    if isinstance(value, datetime):
        if pd.isna(value):
            return None
        return _clip(to_epoch_ms(value))
    if isinstance(value, date):
        return _clip(
            to_epoch_ms(datetime(value.year, value.month, value.day, tzinfo=timezone.utc))
        )
    return None


def _normalize_string(text: str) -> Optional[int]:
    candidate = text.strip()

    if _ISO_PATTERN.match(candidate):
        parsed = pd.to_datetime(candidate, format="ISO8601", utc=True, errors="coerce")
        if pd.isna(parsed):
            return None
        return _clip((parsed - _PD_EPOCH) // _PD_ONE_MS)

    if _LABEL_PATTERN.match(candidate):
        from .date_labels import decode

        return decode(candidate)

    return None


def normalize(raw: Any) -> Optional[int]:
    """Normalize a raw timestamp to epoch milliseconds.

    Parameters
    ----------
    raw : Any
        Timestamp in any of the shapes listed in the module docstring.

    Returns
    -------
    Optional[int]
        Epoch milliseconds (UTC), or None when the value is missing or not
        recognized. None is never replaced by a default here.

    Examples
    --------
    >>> normalize({"_seconds": 1704067200, "_nanoseconds": 500000000})
    1704067200500
    >>> normalize("01/01/2024")
    1704067200000
    >>> normalize("next tuesday") is None
    True
    """
    if raw is None:
        return None

    fields = _seconds_fields(raw)
    if fields is not None:
        seconds, nanoseconds = fields
        if nanoseconds is None:
            nanoseconds = 0
        if not _is_number(seconds) or not _is_number(nanoseconds):
            LOG.debug("Server timestamp with non-numeric fields: %r", raw)
            return None
        return _clip(seconds * 1000 + nanoseconds / 1e6)

    for method_name in _CONVERSION_METHODS:
        method = getattr(raw, method_name, None)
        if callable(method) and not isinstance(raw, (str, date)):
            try:
                converted = method()
            except (TypeError, ValueError, OverflowError) as exc:
                LOG.debug("Timestamp conversion via %s failed: %s", method_name, exc)
                return None
            return _normalize_native(converted)

    if isinstance(raw, str):
        instant = _normalize_string(raw)
        if instant is None:
            LOG.debug("Unparseable timestamp string: %r", raw)
        return instant

    if isinstance(raw, date):
        return _normalize_native(raw)

    if _is_number(raw):
        return _clip(float(raw))

    LOG.debug("Unrecognized timestamp shape %s: %r", type(raw).__name__, raw)
    return None
