"""Adapters for the vaccine API responses.

Pins down the shapes returned by the external calendar and records services
and converts them into the engine's data models. This is the only module that
knows about those wire shapes.

**Input Contract:**
- Calendar listing: ``[{countryId, countryName, items: [...]}, ...]``, bare or
  wrapped in ``{data: [...]}`` / ``{schedules: [...]}``
- Per-country calendar: ``{items: [...]}``, ``{data: {items: [...]}}`` or a
  bare list of dose items
- Records: ``{data: [...], needsVaccinationCountry?: bool}`` or a bare list

**Output Contract:**
- Every DoseTemplate has exactly one of target_age_months / target_age_weeks
- Every VaccineRecord has a non-empty id and name and normalized dates

**Error Handling:**
- Malformed items are logged as warnings and skipped; processing continues
- Unparseable record dates become None (logged); the record is kept so it
  stays visible in the caller's flat list
"""

from __future__ import annotations

import logging
import math
import numbers
from collections.abc import Mapping
from hashlib import sha1
from typing import Any, Dict, List, Optional

from .age import offset_in_range
from .data_models import Country, DoseTemplate, RecordsResponse, VaccineRecord
from .enums import RecordStatus
from .timestamps import normalize

LOG = logging.getLogger(__name__)

MONTH_KEYS = ("ageMonths", "targetAgeMonths", "age_months")
WEEK_KEYS = ("ageWeeks", "targetAgeWeeks", "age_weeks")


def string_or_empty(value: Any) -> str:
    """Safely convert value to a stripped string, empty for None."""
    if value is None:
        return ""
    return str(value).strip()


def optional_text(value: Any) -> Optional[str]:
    """Stripped string, or None when empty."""
    text = string_or_empty(value)
    return text or None


def synthesize_identifier(existing: Any, source: str, prefix: str) -> str:
    """Generate a deterministic identifier if one is not provided."""
    existing = string_or_empty(existing)
    if existing:
        return existing

    base = (source or "").strip().lower() or "unknown"
    digest = sha1(base.encode("utf-8")).hexdigest()[:10]
    return f"{prefix}_{digest}"


def _extract_list(raw: Any, *paths: tuple[str, ...]) -> List[Any]:
    """Return the first list found at any of the key paths (or raw itself)."""
    if isinstance(raw, list):
        return raw
    for path in paths:
        node = raw
        for key in path:
            if not isinstance(node, Mapping):
                node = None
                break
            node = node.get(key)
        if isinstance(node, list):
            return node
    return []


def _age_value(item: Mapping, keys: tuple[str, ...]) -> Optional[float]:
    """Read the first present age field, rejecting non-numeric or negative values."""
    for key in keys:
        if key not in item or item[key] is None:
            continue
        value = item[key]
        if isinstance(value, bool):
            return None
        if isinstance(value, str):
            try:
                value = float(value.strip())
            except ValueError:
                return None
        if not isinstance(value, numbers.Real) or value < 0:
            return None
        if isinstance(value, numbers.Integral):
            return int(value)
        value = float(value)
        if not math.isfinite(value):
            return None
        return int(value) if value.is_integer() else value
    return None


def _dose_items(raw: Any, country_id: Optional[str]) -> List[Any]:
    items = _extract_list(raw, ("data", "items"), ("items",), ("data",), ("schedules",))
    flattened: List[Any] = []
    for item in items:
        if isinstance(item, Mapping) and isinstance(item.get("items"), list):
            # A country calendar inside a listing
            if country_id is not None and string_or_empty(item.get("countryId")) != country_id:
                continue
            flattened.extend(item["items"])
        else:
            flattened.append(item)
    return flattened


def template_from_item(item: Any) -> Optional[DoseTemplate]:
    """Convert one calendar dose item to a DoseTemplate.

    Parameters
    ----------
    item : Any
        Dose item from the calendar response.

    Returns
    -------
    Optional[DoseTemplate]
        The template, or None when the item has no name or no usable age.
    """
    if not isinstance(item, Mapping):
        LOG.warning("Skipping calendar item that is not an object: %r", item)
        return None

    name = string_or_empty(item.get("name"))
    if not name:
        LOG.warning("Skipping calendar item without a name: %r", item)
        return None

    months = _age_value(item, MONTH_KEYS)
    weeks = _age_value(item, WEEK_KEYS)
    if months is None and weeks is None:
        LOG.warning("Skipping calendar item '%s' without a target age", name)
        return None
    if months is not None and weeks is not None:
        LOG.warning(
            "Calendar item '%s' declares both months (%s) and weeks (%s); using months",
            name,
            months,
            weeks,
        )
        weeks = None
    if not offset_in_range(months=months, weeks=weeks):
        LOG.warning(
            "Skipping calendar item '%s' with an age too large to project: %s",
            name,
            months if months is not None else weeks,
        )
        return None

    age_source = f"{name}|{'m' if months is not None else 'w'}{months if months is not None else weeks}"
    return DoseTemplate(
        id=synthesize_identifier(item.get("id"), age_source, "dose"),
        name=name,
        target_age_months=months,
        target_age_weeks=weeks,
        notes=optional_text(item.get("notes")),
    )


def templates_for_country(raw: Any, country_id: Optional[str] = None) -> List[DoseTemplate]:
    """Flatten a calendar response into dose templates.

    Parameters
    ----------
    raw : Any
        Calendar response in any documented shape: a bare list of dose items,
        ``{items: [...]}``, ``{data: {items: [...]}}``, or a listing of country
        calendars.
    country_id : str, optional
        When raw is a listing of country calendars, only the calendar with this
        countryId is used. Ignored for single-calendar responses.

    Returns
    -------
    List[DoseTemplate]
        Templates in calendar order. Week ages are kept as weeks.
    """
    templates: List[DoseTemplate] = []
    for item in _dose_items(raw, country_id):
        template = template_from_item(item)
        if template is not None:
            templates.append(template)

    LOG.info("Loaded %d dose templates", len(templates))
    return templates


def countries_from_listing(raw: Any) -> List[Country]:
    """Extract unique countries from the calendar listing, in listing order."""
    schedules = _extract_list(raw, ("data",), ("schedules",))

    countries: Dict[str, Country] = {}
    for schedule in schedules:
        if not isinstance(schedule, Mapping):
            continue
        country_id = string_or_empty(schedule.get("countryId"))
        country_name = string_or_empty(schedule.get("countryName"))
        if country_id and country_name and country_id not in countries:
            countries[country_id] = Country(id=country_id, name=country_name)

    if not countries:
        LOG.warning("No countries with immunization calendars found in listing")
    return list(countries.values())


def _record_date(item: Mapping, key: str, record_id: str) -> Optional[int]:
    raw = item.get(key)
    if raw is None or raw == "":
        return None
    instant = normalize(raw)
    if instant is None:
        LOG.warning("Unparseable %s for vaccine record %s: %r", key, record_id, raw)
    return instant


def record_from_item(item: Any) -> Optional[VaccineRecord]:
    """Convert one record item from the API into a VaccineRecord.

    Returns None (with a warning) when the item has no id or no name.
    Unknown statuses fall back to pending.
    """
    if not isinstance(item, Mapping):
        LOG.warning("Skipping vaccine record that is not an object: %r", item)
        return None

    record_id = string_or_empty(item.get("id"))
    name = string_or_empty(item.get("name"))
    if not record_id or not name:
        LOG.warning("Skipping vaccine record without id or name: %r", item)
        return None

    raw_status = item.get("status")
    try:
        status = RecordStatus.from_string(raw_status if isinstance(raw_status, str) else None)
    except ValueError as exc:
        LOG.warning("Vaccine record %s: %s; treating as pending", record_id, exc)
        status = RecordStatus.PENDING

    return VaccineRecord(
        id=record_id,
        name=name,
        status=status,
        scheduled_date=_record_date(item, "scheduledDate", record_id),
        applied_date=_record_date(item, "appliedDate", record_id),
        location=optional_text(item.get("location")),
        batch=optional_text(item.get("batch")),
        notes=optional_text(item.get("notes")),
    )


def parse_records_response(raw: Any) -> RecordsResponse:
    """Parse the child's vaccine records response.

    Parameters
    ----------
    raw : Any
        ``{data: [...], needsVaccinationCountry?: bool}`` or a bare list.

    Returns
    -------
    RecordsResponse
        Parsed records in backend order. When the response asks for a country
        assignment the records list is empty and the flag is set.
    """
    if isinstance(raw, Mapping) and raw.get("needsVaccinationCountry") is True:
        LOG.warning("Records response requires a vaccination country assignment")
        return RecordsResponse(records=[], needs_country_assignment=True)

    records: List[VaccineRecord] = []
    for item in _extract_list(raw, ("data",)):
        record = record_from_item(item)
        if record is not None:
            records.append(record)

    LOG.info("Loaded %d vaccine records", len(records))
    return RecordsResponse(records=records, needs_country_assignment=False)
