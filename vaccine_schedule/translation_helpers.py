"""Localized display strings for age buckets, statuses and empty dates.

**Contracts:**

- Bucket labels follow the calendar age: 'Newborn' for month 0, months up to
  11, whole years from 12 months, and '1y 6m' style for the rest
- Week-based templates are labelled in weeks and never converted to months
- Status labels cover every RecordStatus for every Language
- Unknown languages raise ValueError through Language.from_string
"""

from __future__ import annotations

from typing import Dict

from .enums import AgeUnit, Language, RecordStatus

_AGE_WORDS: Dict[Language, Dict[str, str]] = {
    Language.ENGLISH: {
        "newborn": "Newborn",
        "month": "month",
        "months": "months",
        "year": "year",
        "years": "years",
        "week": "week",
        "weeks": "weeks",
        "compound": "{years}y {months}m",
    },
    Language.SPANISH: {
        "newborn": "Nacimiento",
        "month": "mes",
        "months": "meses",
        "year": "año",
        "years": "años",
        "week": "semana",
        "weeks": "semanas",
        "compound": "{years}a {months}m",
    },
}

_STATUS_LABELS: Dict[Language, Dict[RecordStatus, str]] = {
    Language.ENGLISH: {
        RecordStatus.PENDING: "Pending",
        RecordStatus.APPLIED: "Applied",
        RecordStatus.OVERDUE: "Overdue",
    },
    Language.SPANISH: {
        RecordStatus.PENDING: "Pendiente",
        RecordStatus.APPLIED: "Aplicada",
        RecordStatus.OVERDUE: "Vencida",
    },
}

_NO_DATE: Dict[Language, str] = {
    Language.ENGLISH: "No date",
    Language.SPANISH: "Sin fecha",
}


def _format_number(value: float) -> str:
    return f"{value:g}"


def _counted(value: float, singular: str, plural: str) -> str:
    return f"{_format_number(value)} {singular if value == 1 else plural}"


def age_label(value: float, unit: AgeUnit = AgeUnit.MONTHS, language: str = "en") -> str:
    """Build the display label for a bucket age.

    Parameters
    ----------
    value : float
        Target age in the given unit.
    unit : AgeUnit
        MONTHS or WEEKS.
    language : str
        Language code ('en' or 'es').

    Returns
    -------
    str
        Label such as 'Newborn', '2 months', '1 year', '1y 6m', '6 weeks'.

    Examples
    --------
    >>> age_label(18)
    '1y 6m'
    >>> age_label(24, language="es")
    '2 años'
    """
    words = _AGE_WORDS[Language.from_string(language)]

    if unit == AgeUnit.WEEKS:
        return _counted(value, words["week"], words["weeks"])

    if value == 0:
        return words["newborn"]
    if value < 12 or value != int(value):
        return _counted(value, words["month"], words["months"])

    years, months = divmod(int(value), 12)
    if months == 0:
        return _counted(years, words["year"], words["years"])
    return words["compound"].format(years=years, months=months)


def status_label(status: RecordStatus, language: str = "en") -> str:
    """Localized text for a record or entry status."""
    return _STATUS_LABELS[Language.from_string(language)][status]


def no_date_label(language: str = "en") -> str:
    """Localized placeholder shown where a date is missing."""
    return _NO_DATE[Language.from_string(language)]
