"""Counters and tabular views derived from reconciled age buckets.

All functions here are pure: they read the buckets produced by
reconcile.reconcile and never fail on well-formed buckets.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

import pandas as pd

from .data_models import AgeBucket, BucketCount, MatchedEntry
from .date_labels import encode
from .enums import RecordStatus
from .reconcile import entry_status

FRAME_COLUMNS = [
    "bucket",
    "label",
    "kind",
    "name",
    "status",
    "record_id",
    "template_id",
    "scheduled_date",
    "applied_date",
    "suggested_date",
    "notes",
]


def summarize(buckets: Iterable[AgeBucket]) -> Dict[str, BucketCount]:
    """Count applied doses per bucket.

    Parameters
    ----------
    buckets : Iterable[AgeBucket]
        Output of reconcile.

    Returns
    -------
    Dict[str, BucketCount]
        Keyed by bucket key, in bucket order. ``applied`` counts matched
        entries whose record status is applied; ``total`` counts all entries.
    """
    summary: Dict[str, BucketCount] = {}
    for bucket in buckets:
        applied = sum(
            1
            for entry in bucket.entries
            if isinstance(entry, MatchedEntry) and entry.record.status == RecordStatus.APPLIED
        )
        summary[bucket.key] = BucketCount(applied=applied, total=len(bucket.entries))
    return summary


def overall_completion(summary: Dict[str, BucketCount]) -> BucketCount:
    """Sum per-bucket counters into a schedule-wide counter."""
    return BucketCount(
        applied=sum(count.applied for count in summary.values()),
        total=sum(count.total for count in summary.values()),
    )


def _label_or_none(instant: Any) -> Any:
    return encode(instant) if instant is not None else None


def bucket_frame(buckets: Iterable[AgeBucket], today: Any = None) -> pd.DataFrame:
    """Flatten buckets into one DataFrame row per entry.

    Dates are rendered as ``DD/MM/YYYY`` labels; the status column is the
    effective status from reconcile.entry_status, so pending entries whose
    suggested date has passed show as overdue when ``today`` is given.
    """
    rows: List[Dict[str, Any]] = []
    for bucket in buckets:
        for entry in bucket.entries:
            row: Dict[str, Any] = {
                "bucket": bucket.key,
                "label": bucket.label,
                "kind": entry.kind.value,
                "name": entry.name,
                "status": entry_status(entry, today).value,
            }
            if isinstance(entry, MatchedEntry):
                record = entry.record
                row.update(
                    {
                        "record_id": record.id,
                        "template_id": None,
                        "scheduled_date": _label_or_none(record.scheduled_date),
                        "applied_date": _label_or_none(record.applied_date),
                        "suggested_date": None,
                        "notes": record.notes,
                    }
                )
            else:
                row.update(
                    {
                        "record_id": None,
                        "template_id": entry.template_id,
                        "scheduled_date": None,
                        "applied_date": None,
                        "suggested_date": _label_or_none(entry.suggested_scheduled_date),
                        "notes": entry.notes,
                    }
                )
            rows.append(row)

    return pd.DataFrame(rows, columns=FRAME_COLUMNS)
