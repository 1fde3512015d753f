"""Unified data models for the immunization schedule engine.

All instants are integer epoch milliseconds (UTC). Every model is a frozen
dataclass: the engine reads snapshots handed to it by the caller and builds
new output structures instead of mutating its inputs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union

from .enums import AgeUnit, EntryKind, RecordStatus

Instant = int


@dataclass(frozen=True)
class DoseTemplate:
    """One scheduled entry of a country immunization calendar.

    Fields
    ------
    id : str
        Template identifier (synthesized by the adapter when the source has none).
    name : str
        Vaccine name as published by the calendar (e.g., 'BCG', 'Pentavalent').
    target_age_months : Optional[float]
        Target age in months. Mutually exclusive with target_age_weeks.
    target_age_weeks : Optional[float]
        Target age in weeks. Mutually exclusive with target_age_months.
    notes : Optional[str]
        Dose notes from the calendar (e.g., '1st dose').
    """

    id: str
    name: str
    target_age_months: Optional[float] = None
    target_age_weeks: Optional[float] = None
    notes: Optional[str] = None

    @property
    def age_unit(self) -> AgeUnit:
        if self.target_age_months is None and self.target_age_weeks is not None:
            return AgeUnit.WEEKS
        return AgeUnit.MONTHS

    @property
    def age_value(self) -> float:
        if self.age_unit == AgeUnit.WEEKS:
            return self.target_age_weeks
        # templates built without any age sit at birth
        return self.target_age_months if self.target_age_months is not None else 0


@dataclass(frozen=True)
class VaccineRecord:
    """A dose recorded for a child.

    A record with neither date is legal; it cannot be placed in an age bucket
    but stays in the caller's flat list of records.

    Fields
    ------
    id : str
        Record identifier assigned by the backend.
    name : str
        Vaccine name as typed or chosen by the caregiver.
    status : RecordStatus
        pending, applied or overdue.
    scheduled_date : Optional[int]
        When the dose was due (epoch ms). Decides bucket placement.
    applied_date : Optional[int]
        When the dose was given (epoch ms).
    location, batch, notes : Optional[str]
        Free-text details.
    """

    id: str
    name: str
    status: RecordStatus = RecordStatus.PENDING
    scheduled_date: Optional[Instant] = None
    applied_date: Optional[Instant] = None
    location: Optional[str] = None
    batch: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class MatchedEntry:
    """Bucket entry for a template paired with a recorded dose."""

    record: VaccineRecord

    kind = EntryKind.MATCHED

    @property
    def name(self) -> str:
        return self.record.name


@dataclass(frozen=True)
class PendingEntry:
    """Bucket entry for a template with no matching record.

    suggested_scheduled_date is the projected target date, used to pre-fill a
    registration form; it is None when the child has no birth date.
    """

    template_name: str
    template_id: str
    suggested_scheduled_date: Optional[Instant] = None
    notes: Optional[str] = None
    target_age_months: Optional[float] = None
    target_age_weeks: Optional[float] = None

    kind = EntryKind.PENDING

    @property
    def name(self) -> str:
        return self.template_name


BucketEntry = Union[MatchedEntry, PendingEntry]


@dataclass(frozen=True)
class AgeBucket:
    """Templates sharing one target age, with their matched or pending entries.

    Fields
    ------
    key : str
        Stable bucket key ('months:2', 'weeks:6', or 'name:bcg' when the
        child has no birth date).
    label : str
        Display label ('Newborn', '2 months', ...).
    target_age_months : Optional[float]
        Bucket age when templates declare months.
    target_age_weeks : Optional[float]
        Bucket age when templates declare weeks.
    entries : List[BucketEntry]
        One entry per template, in template order.
    """

    key: str
    label: str
    target_age_months: Optional[float] = None
    target_age_weeks: Optional[float] = None
    entries: List[BucketEntry] = field(default_factory=list)


@dataclass(frozen=True)
class BucketCount:
    """Applied-versus-total counter for a bucket or a whole schedule."""

    applied: int
    total: int

    @property
    def fraction(self) -> str:
        return f"{self.applied}/{self.total}"

    @property
    def is_complete(self) -> bool:
        return self.total > 0 and self.applied == self.total


@dataclass(frozen=True)
class Country:
    """A country that publishes an immunization calendar."""

    id: str
    name: str


@dataclass(frozen=True)
class RecordsResponse:
    """Parsed vaccine records response.

    Parameters
    ----------
    records : List[VaccineRecord]
        Records in backend order.
    needs_country_assignment : bool
        True when the backend asks the caller to pick a calendar country first;
        records is empty in that state and reconciliation is not meaningful.
    """

    records: List[VaccineRecord]
    needs_country_assignment: bool = False


@dataclass(frozen=True)
class RegistrationDraft:
    """Pre-filled values for registering a dose suggested by the calendar."""

    name: str
    status: RecordStatus
    scheduled_date: Optional[Instant] = None
    applied_date: Optional[Instant] = None
    notes: Optional[str] = None
