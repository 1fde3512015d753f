"""Reconciliation of a country immunization calendar with a child's records.

Pairs each dose template of the calendar with at most one recorded dose and
groups the result into age buckets ('Newborn', '2 months', ...) for browsing.

**Matching rules:**

- A record matches a template when the names are equal ignoring case and
  surrounding whitespace, AND the record's scheduled date lies within the
  tolerance (default one average month of 30.44 days) of the template's
  projected target date. Both ages are measured with age.age_in_months, the
  same convention used to project the target date.
- Records without a scheduled date never match; they remain in the caller's
  flat list of records.
- Templates are visited in bucket order; each template takes the FIRST
  unconsumed qualifying record in the original record order. Closeness is not
  considered. A consumed record is never matched again in the same call.

**Error Handling:**

reconcile never raises for malformed data. A missing or unparseable birth date
downgrades to one all-pending bucket per distinct template name. Inputs are
never mutated; every call builds fresh buckets.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .age import age_in_months, offset_days, offset_in_range, project_target_date
from .data_models import (
    AgeBucket,
    BucketEntry,
    DoseTemplate,
    MatchedEntry,
    PendingEntry,
    VaccineRecord,
)
from .enums import AgeUnit, RecordStatus
from .timestamps import MAX_INSTANT, normalize
from .translation_helpers import age_label

LOG = logging.getLogger(__name__)

TOLERANCE_MONTHS = 1.0

# Float slack for ages computed from whole-millisecond instants
_EPSILON = 1e-9


def match_key(name: str) -> str:
    """Case- and whitespace-insensitive key for vaccine names."""
    return (name or "").strip().casefold()


def bucket_key(unit: AgeUnit, value: float) -> str:
    """Stable key for an age bucket, e.g. 'months:2' or 'weeks:6'."""
    return f"{unit.value}:{value:g}"


def _template_age(template: DoseTemplate) -> Tuple[AgeUnit, float]:
    unit = template.age_unit
    value = template.age_value
    in_range = isinstance(value, (int, float)) and offset_in_range(
        **_projection_kwargs(unit, value)
    )
    if not in_range:
        LOG.warning(
            "Template '%s' has an invalid target age %r; placing it at birth",
            template.name,
            value,
        )
        return AgeUnit.MONTHS, 0
    return unit, value


def _projection_kwargs(unit: AgeUnit, value: float) -> Dict[str, float]:
    if unit == AgeUnit.WEEKS:
        return {"weeks": value}
    return {"months": value}


def _bucket_order(unit: AgeUnit, value: float) -> Tuple[int, int, float]:
    return (
        offset_days(**_projection_kwargs(unit, value)),
        0 if unit == AgeUnit.MONTHS else 1,
        value,
    )


def within_tolerance(
    birth: int, record_date: int, target_date: int, tolerance_months: float = TOLERANCE_MONTHS
) -> bool:
    """Whether a record date falls inside the tolerance window around a target date."""
    record_age = age_in_months(birth, record_date)
    target_age = age_in_months(birth, target_date)
    return abs(record_age - target_age) <= tolerance_months + _EPSILON


def _find_match(
    template: DoseTemplate,
    birth: int,
    target_date: int,
    records: Sequence[VaccineRecord],
    consumed: Set[str],
    tolerance_months: float,
) -> Optional[VaccineRecord]:
    wanted = match_key(template.name)
    for record in records:
        if record.id in consumed:
            continue
        if match_key(record.name) != wanted:
            continue
        if record.scheduled_date is None:
            continue
        if within_tolerance(birth, record.scheduled_date, target_date, tolerance_months):
            return record
    return None


def _pending(template: DoseTemplate, suggested: Optional[int]) -> PendingEntry:
    return PendingEntry(
        template_name=template.name,
        template_id=template.id,
        suggested_scheduled_date=suggested,
        notes=template.notes,
        target_age_months=template.target_age_months,
        target_age_weeks=template.target_age_weeks,
    )


def _pending_by_name(templates: Sequence[DoseTemplate]) -> List[AgeBucket]:
    """One all-pending bucket per distinct template name, in first-seen order."""
    groups: Dict[str, List[DoseTemplate]] = {}
    for template in templates:
        groups.setdefault(match_key(template.name), []).append(template)

    buckets: List[AgeBucket] = []
    for key, group in groups.items():
        first = group[0]
        buckets.append(
            AgeBucket(
                key=f"name:{key}",
                label=first.name,
                target_age_months=first.target_age_months,
                target_age_weeks=first.target_age_weeks,
                entries=[_pending(template, None) for template in group],
            )
        )
    return buckets


def reconcile(
    templates: Sequence[DoseTemplate],
    birth: Any,
    records: Sequence[VaccineRecord],
    tolerance_months: float = TOLERANCE_MONTHS,
    language: str = "en",
) -> List[AgeBucket]:
    """Build the age-bucketed view of a calendar against recorded doses.

    Parameters
    ----------
    templates : Sequence[DoseTemplate]
        Dose templates of the child's assigned country calendar.
    birth : Any
        Birth instant (epoch ms) or any raw timestamp; None when unknown.
    records : Sequence[VaccineRecord]
        The child's recorded doses, in backend order.
    tolerance_months : float
        Half-width of the matching window, in average months.
    language : str
        Language for bucket labels ('en' or 'es').

    Returns
    -------
    List[AgeBucket]
        Buckets in ascending age order, one entry per template. Without a
        usable birth date: one bucket per distinct template name, all pending.

    Examples
    --------
    >>> bcg = DoseTemplate(id="t1", name="BCG", target_age_months=0)
    >>> record = VaccineRecord(id="r1", name="bcg", scheduled_date=1704412800000)
    >>> [b.label for b in reconcile([bcg], "2024-01-01", [record])]
    ['Newborn']
    """
    birth_instant = normalize(birth)
    if birth_instant is None:
        if birth is not None:
            LOG.warning("Unparseable birth date %r; showing calendar without matching", birth)
        return _pending_by_name(templates)

    groups: Dict[Tuple[AgeUnit, float], List[DoseTemplate]] = {}
    for template in templates:
        groups.setdefault(_template_age(template), []).append(template)

    consumed: Set[str] = set()
    buckets: List[AgeBucket] = []
    for (unit, value), group in sorted(groups.items(), key=lambda item: _bucket_order(*item[0])):
        entries: List[BucketEntry] = []
        for template in group:
            target_date = project_target_date(birth_instant, **_projection_kwargs(unit, value))
            if target_date > MAX_INSTANT:
                LOG.warning(
                    "Target date of template '%s' falls outside the supported range; "
                    "leaving it pending without a date",
                    template.name,
                )
                entries.append(_pending(template, None))
                continue
            record = _find_match(
                template, birth_instant, target_date, records, consumed, tolerance_months
            )
            if record is not None:
                consumed.add(record.id)
                entries.append(MatchedEntry(record=record))
                LOG.debug("Matched template '%s' to record %s", template.name, record.id)
            else:
                entries.append(_pending(template, target_date))

        buckets.append(
            AgeBucket(
                key=bucket_key(unit, value),
                label=age_label(value, unit, language),
                target_age_months=value if unit == AgeUnit.MONTHS else None,
                target_age_weeks=value if unit == AgeUnit.WEEKS else None,
                entries=entries,
            )
        )

    LOG.info(
        "Reconciled %d templates against %d records: %d matched",
        len(templates),
        len(records),
        len(consumed),
    )
    return buckets


def matched_record_ids(buckets: Iterable[AgeBucket]) -> Set[str]:
    """Ids of all records placed in a bucket."""
    return {
        entry.record.id
        for bucket in buckets
        for entry in bucket.entries
        if isinstance(entry, MatchedEntry)
    }


def unmatched_records(
    buckets: Iterable[AgeBucket], records: Sequence[VaccineRecord]
) -> List[VaccineRecord]:
    """Records not placed in any bucket (custom doses, undated records), in order."""
    placed = matched_record_ids(buckets)
    return [record for record in records if record.id not in placed]


def records_for_age(
    records: Sequence[VaccineRecord],
    birth: Any,
    age_months: float,
    tolerance_months: float = TOLERANCE_MONTHS,
) -> List[VaccineRecord]:
    """Filter records to an age when the child has no calendar assigned.

    Uses the applied date when present, otherwise the scheduled date, and
    compares whole completed months against age_months.

    Returns an empty list when the birth date is missing or unparseable.
    """
    birth_instant = normalize(birth)
    if birth_instant is None:
        return []

    selected: List[VaccineRecord] = []
    for record in records:
        when = record.applied_date if record.applied_date is not None else record.scheduled_date
        if when is None:
            continue
        months = math.floor(age_in_months(birth_instant, when))
        if abs(months - age_months) <= tolerance_months:
            selected.append(record)
    return selected


def entry_status(entry: BucketEntry, today: Any = None) -> RecordStatus:
    """Effective status of a bucket entry.

    Matched entries report their record's status. Pending entries report
    OVERDUE once their suggested date is before ``today``; without a usable
    ``today`` or suggested date they stay PENDING.
    """
    if isinstance(entry, MatchedEntry):
        return entry.record.status

    today_instant = normalize(today)
    if (
        today_instant is not None
        and entry.suggested_scheduled_date is not None
        and entry.suggested_scheduled_date < today_instant
    ):
        return RecordStatus.OVERDUE
    return RecordStatus.PENDING
