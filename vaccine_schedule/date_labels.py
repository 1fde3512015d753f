"""DD/MM/YYYY date labels for form input and display.

Bidirectional conversion between instants and the ``DD/MM/YYYY`` text typed
into the registration form, plus the incremental formatter that inserts
separators while the user types.

**Validation Contract:**

- Everything except ASCII digits and '/' is stripped before parsing
- Exactly three '/'-separated numeric parts are required
- Day must be 1..31, month 1..12, year 1900..2100
- Day counts are NOT checked against the month: '31/02/2024' is accepted and
  rolls forward to 2 March 2024. This leniency is known and intentional.

Decoded labels are midnight UTC of the given calendar day.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from babel.dates import format_date

from .enums import Language
from .timestamps import from_epoch_ms, to_epoch_ms
from .translation_helpers import no_date_label

MIN_YEAR = 1900
MAX_YEAR = 2100
MIN_LABEL_LENGTH = 8

_NOT_LABEL_CHARS = re.compile(r"[^0-9/]")
_NOT_DIGITS = re.compile(r"[^0-9]")

_BABEL_LOCALES = {Language.ENGLISH: "en_US", Language.SPANISH: "es_ES"}


def encode(instant: int) -> str:
    """Format an instant as ``DD/MM/YYYY`` (UTC calendar date).

    Examples
    --------
    >>> encode(1704412800000)
    '05/01/2024'
    """
    moment = from_epoch_ms(instant)
    return f"{moment.day:02d}/{moment.month:02d}/{moment.year}"


def decode(text: str) -> Optional[int]:
    """Parse a ``DD/MM/YYYY`` label into an instant.

    Parameters
    ----------
    text : str
        Label typed by the user, possibly with stray characters.

    Returns
    -------
    Optional[int]
        Midnight UTC of the labelled day (epoch ms), or None when the label is
        incomplete or out of bounds.

    Examples
    --------
    >>> decode("05/01/2024")
    1704412800000
    >>> decode("05/01") is None
    True
    >>> decode("32/01/2024") is None
    True
    """
    if not isinstance(text, str) or len(text) < MIN_LABEL_LENGTH:
        return None

    parts = _NOT_LABEL_CHARS.sub("", text).split("/")
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        return None

    day, month, year = (int(part) for part in parts)
    if not 1 <= day <= 31:
        return None
    if not 1 <= month <= 12:
        return None
    if not MIN_YEAR <= year <= MAX_YEAR:
        return None

    first_of_month = datetime(year, month, 1, tzinfo=timezone.utc)
    return to_epoch_ms(first_of_month + timedelta(days=day - 1))


def format_while_typing(text: str) -> str:
    """Insert '/' separators after the 2nd and 4th digit as the user types.

    Non-digits are dropped and input is capped at eight digits. No validation.

    Examples
    --------
    >>> format_while_typing("0501")
    '05/01'
    >>> format_while_typing("05012024")
    '05/01/2024'
    """
    digits = _NOT_DIGITS.sub("", text or "")

    if not digits:
        return ""
    if len(digits) <= 2:
        return digits
    if len(digits) <= 4:
        return f"{digits[:2]}/{digits[2:]}"
    return f"{digits[:2]}/{digits[2:4]}/{digits[4:8]}"


def format_display_date(instant: Optional[int], language: str = "en") -> str:
    """Format an instant as a medium, locale-aware date for display.

    Uses Babel for locale-aware formatting, e.g. "Jan 5, 2024" (en). Missing
    instants render as the localized "no date" placeholder.

    Parameters
    ----------
    instant : Optional[int]
        Epoch milliseconds, or None.
    language : str
        Language code ('en' or 'es').

    Returns
    -------
    str
        Display string.
    """
    if instant is None:
        return no_date_label(language)

    locale = _BABEL_LOCALES[Language.from_string(language)]
    return format_date(from_epoch_ms(instant).date(), format="medium", locale=locale)
