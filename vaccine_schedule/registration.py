"""Helpers for registering and editing vaccine doses.

Builds pre-filled drafts when the caregiver picks a dose from the calendar or
taps a pending bucket entry, and validates form input into the payload sent to
the create/update endpoints.

**Validation Contract:**
- Name is required
- Applied doses require a valid applied date label
- Any given scheduled date label must be valid
- Date labels are validated by date_labels.decode; invalid labels raise
  ValueError here and never reach reconciliation
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

from rapidfuzz import fuzz, process

from .age import DAY_MS, offset_in_range, project_target_date
from .data_models import DoseTemplate, PendingEntry, RegistrationDraft
from .date_labels import decode
from .enums import AgeUnit, RecordStatus
from .reconcile import match_key
from .timestamps import normalize, to_iso

LOG = logging.getLogger(__name__)

THRESHOLD = 80


def draft_from_template(template: DoseTemplate, birth: Any, today: Any) -> RegistrationDraft:
    """Pre-fill a registration form from a calendar dose.

    Parameters
    ----------
    template : DoseTemplate
        Dose chosen from the calendar list.
    birth : Any
        Child's birth date (any raw timestamp), or None when unknown.
    today : Any
        Reference date for deciding whether the dose is already due.

    Returns
    -------
    RegistrationDraft
        Scheduled date projected from the birth date (today when unknown).
        Doses due before today are drafted as applied on their scheduled date;
        later doses as pending.

    Raises
    ------
    ValueError
        If today cannot be parsed.
    """
    today_instant = normalize(today)
    if today_instant is None:
        raise ValueError(f"Invalid reference date: {today!r}")

    if template.age_unit == AgeUnit.WEEKS:
        offset = {"weeks": template.age_value}
    else:
        offset = {"months": template.age_value}

    birth_instant = normalize(birth)
    if birth_instant is not None and not offset_in_range(**offset):
        LOG.warning(
            "Template '%s' has an invalid target age %r; scheduling for today",
            template.name,
            template.age_value,
        )
        birth_instant = None
    if birth_instant is None:
        return RegistrationDraft(
            name=template.name,
            status=RecordStatus.PENDING,
            scheduled_date=today_instant - today_instant % DAY_MS,
            notes=template.notes,
        )

    scheduled = project_target_date(birth_instant, **offset)

    if scheduled // DAY_MS < today_instant // DAY_MS:
        return RegistrationDraft(
            name=template.name,
            status=RecordStatus.APPLIED,
            scheduled_date=scheduled,
            applied_date=scheduled,
            notes=template.notes,
        )
    return RegistrationDraft(
        name=template.name,
        status=RecordStatus.PENDING,
        scheduled_date=scheduled,
        notes=template.notes,
    )


def draft_from_pending(entry: PendingEntry, today: Any) -> RegistrationDraft:
    """Pre-fill a registration form from a pending bucket entry.

    Follows the same rules as draft_from_template, starting from the entry's
    suggested date. Entries without a suggested date are scheduled for today.

    Raises
    ------
    ValueError
        If today cannot be parsed.
    """
    today_instant = normalize(today)
    if today_instant is None:
        raise ValueError(f"Invalid reference date: {today!r}")

    scheduled = entry.suggested_scheduled_date
    if scheduled is None:
        scheduled = today_instant - today_instant % DAY_MS

    if scheduled // DAY_MS < today_instant // DAY_MS:
        return RegistrationDraft(
            name=entry.template_name,
            status=RecordStatus.APPLIED,
            scheduled_date=scheduled,
            applied_date=scheduled,
            notes=entry.notes,
        )
    return RegistrationDraft(
        name=entry.template_name,
        status=RecordStatus.PENDING,
        scheduled_date=scheduled,
        notes=entry.notes,
    )


def _required_instant(label: str, field_name: str) -> int:
    instant = decode(label)
    if instant is None:
        raise ValueError(f"{field_name} is not valid: {label!r}. Use the DD/MM/YYYY format.")
    return instant


def build_record_payload(
    name: str,
    status: str = "applied",
    applied_label: str = "",
    scheduled_label: str = "",
    location: str = "",
    batch: str = "",
    notes: str = "",
) -> Dict[str, Any]:
    """Validate form input and build the create/update request body.

    Parameters
    ----------
    name : str
        Vaccine name.
    status : str
        'applied' or 'pending'.
    applied_label : str
        Applied date as ``DD/MM/YYYY``; required when status is applied,
        ignored otherwise.
    scheduled_label : str
        Optional scheduled date as ``DD/MM/YYYY``.
    location, batch, notes : str
        Optional free text; omitted from the payload when blank.

    Returns
    -------
    Dict[str, Any]
        Request body with ISO-8601 dates.

    Raises
    ------
    ValueError
        If the name is blank, the status is not pending/applied, an applied
        dose has no applied date, or a given date label is invalid.
    """
    clean_name = (name or "").strip()
    if not clean_name:
        raise ValueError("Vaccine name is required")

    status_enum = RecordStatus.from_string(status)
    if status_enum == RecordStatus.OVERDUE:
        raise ValueError("Doses can only be registered as pending or applied")

    payload: Dict[str, Any] = {"name": clean_name, "status": status_enum.value}

    if status_enum == RecordStatus.APPLIED:
        if not (applied_label or "").strip():
            raise ValueError("Applied date is required for applied doses")
        payload["appliedDate"] = to_iso(_required_instant(applied_label, "Applied date"))

    if (scheduled_label or "").strip():
        payload["scheduledDate"] = to_iso(_required_instant(scheduled_label, "Scheduled date"))

    for key, value in (("location", location), ("batch", batch), ("notes", notes)):
        text = (value or "").strip()
        if text:
            payload[key] = text

    return payload


def suggest_template(
    name: str, templates: Sequence[DoseTemplate], threshold: int = THRESHOLD
) -> Optional[DoseTemplate]:
    """Find the calendar dose closest to a typed custom vaccine name.

    Uses rapidfuzz partial ratio on normalized names; returns the first
    template in calendar order with the best score, or None when no score
    reaches the threshold.
    """
    query = match_key(name)
    if not query or not templates:
        return None

    result = process.extractOne(
        query=query,
        choices=[match_key(template.name) for template in templates],
        scorer=fuzz.partial_ratio,
        score_cutoff=threshold,
    )
    if result is None:
        return None

    _, score, index = result
    LOG.debug("Suggesting '%s' for '%s' with score %s", templates[index].name, name, score)
    return templates[index]
