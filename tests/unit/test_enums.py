"""Unit tests for enums module - record status, entry kind, age unit and language.

Tests cover:
- RecordStatus values and string conversion
- Language values, string conversion and supported codes
- Error handling for invalid values
- Case-insensitive conversion
- Default behavior for None values

Real-world significance:
- Record status comes from the backend as free text and drives the badges
- Language code selects bucket labels, status text and date formatting
"""

from __future__ import annotations

import pytest

from vaccine_schedule.enums import AgeUnit, EntryKind, Language, RecordStatus


@pytest.mark.unit
class TestRecordStatus:
    """Unit tests for RecordStatus enumeration."""

    def test_enum_values_correct(self) -> None:
        """Verify RecordStatus has the backend's status strings.

        Real-world significance:
        - Values are written back to the API in registration payloads
        """
        assert RecordStatus.PENDING.value == "pending"
        assert RecordStatus.APPLIED.value == "applied"
        assert RecordStatus.OVERDUE.value == "overdue"

    def test_from_string_is_case_and_whitespace_insensitive(self) -> None:
        """Verify from_string tolerates casing and padding.

        Real-world significance:
        - Older records were saved with 'Applied' and trailing spaces
        """
        assert RecordStatus.from_string("applied") == RecordStatus.APPLIED
        assert RecordStatus.from_string(" APPLIED ") == RecordStatus.APPLIED
        assert RecordStatus.from_string("Overdue") == RecordStatus.OVERDUE

    def test_from_string_none_defaults_to_pending(self) -> None:
        """Verify None defaults to PENDING.

        Real-world significance:
        - Records created without a status are treated as not yet given
        """
        assert RecordStatus.from_string(None) == RecordStatus.PENDING

    def test_from_string_invalid_raises_error(self) -> None:
        """Verify invalid status raises ValueError listing the options."""
        with pytest.raises(ValueError, match="Unknown record status"):
            RecordStatus.from_string("done")


@pytest.mark.unit
class TestSupportingEnums:
    """Unit tests for EntryKind and AgeUnit."""

    def test_entry_kind_values(self) -> None:
        assert EntryKind.MATCHED.value == "matched"
        assert EntryKind.PENDING.value == "pending"

    def test_age_unit_values(self) -> None:
        assert AgeUnit.MONTHS.value == "months"
        assert AgeUnit.WEEKS.value == "weeks"


@pytest.mark.unit
class TestLanguage:
    """Unit tests for Language enumeration."""

    def test_enum_values_correct(self) -> None:
        """Verify Language has expected codes.

        Real-world significance:
        - The app ships English and Spanish interfaces
        """
        assert Language.ENGLISH.value == "en"
        assert Language.SPANISH.value == "es"

    def test_from_string_case_insensitive(self) -> None:
        assert Language.from_string("es") == Language.SPANISH
        assert Language.from_string("EN") == Language.ENGLISH

    def test_from_string_none_defaults_to_english(self) -> None:
        assert Language.from_string(None) == Language.ENGLISH

    def test_from_string_invalid_raises_error(self) -> None:
        """Verify unsupported language raises ValueError.

        Real-world significance:
        - A typo in config must fail fast instead of rendering blank labels
        """
        with pytest.raises(ValueError, match="Unsupported language"):
            Language.from_string("fr")

    def test_all_codes(self) -> None:
        assert Language.all_codes() == {"en", "es"}
