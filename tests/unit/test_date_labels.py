"""Unit tests for date_labels module - DD/MM/YYYY encoding, decoding and display.

Tests cover:
- Encoding instants as DD/MM/YYYY
- Decoding typed labels with bounds checking
- Known day-rollover leniency
- Separator insertion while typing
- Locale-aware display dates

Real-world significance:
- Caregivers type dates from paper vaccination cards in DD/MM/YYYY
- Invalid labels must be rejected at the form, before reaching the API
"""

from __future__ import annotations

import pytest

from vaccine_schedule import date_labels

JAN_5 = 1704412800000


@pytest.mark.unit
class TestEncodeDecode:
    """Unit tests for encode and decode."""

    def test_encode(self) -> None:
        assert date_labels.encode(JAN_5) == "05/01/2024"

    def test_decode_padded_label(self) -> None:
        assert date_labels.decode("05/01/2024") == JAN_5

    def test_decode_unpadded_label(self) -> None:
        assert date_labels.decode("5/1/2024") == JAN_5

    def test_decode_ignores_stray_characters(self) -> None:
        assert date_labels.decode("05/01/2024 ") == JAN_5

    def test_decode_returns_midnight_utc(self) -> None:
        assert date_labels.decode("05/01/2024") % 86_400_000 == 0

    @pytest.mark.parametrize(
        "text",
        ["", "05/01", "32/01/2024", "00/01/2024", "05/13/2024", "05/01/1899", "05/01/2101", "05-01-2024"],
    )
    def test_decode_rejects_invalid_labels(self, text: str) -> None:
        """Verify incomplete or out-of-range labels decode to None.

        Real-world significance:
        - The registration form shows an error instead of saving a bad date
        """
        assert date_labels.decode(text) is None

    def test_decode_rejects_non_strings(self) -> None:
        assert date_labels.decode(None) is None  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        "label", ["01/01/1900", "31/12/2100", "29/02/2000", "29/02/2024", "15/06/1965"]
    )
    def test_label_round_trip(self, label: str) -> None:
        """Verify labels survive decode then encode, including pre-1970 dates.

        Real-world significance:
        - Birth dates of adult patients predate the epoch and must not shift
        """
        instant = date_labels.decode(label)

        assert instant is not None
        assert date_labels.encode(instant) == label
        assert date_labels.decode(date_labels.encode(instant)) == instant

    def test_instant_round_trip(self) -> None:
        assert date_labels.decode(date_labels.encode(JAN_5)) == JAN_5

    def test_day_overflow_rolls_into_next_month(self) -> None:
        """Verify '31/02/2024' is accepted and rolls forward to 2 March.

        Real-world significance:
        - Day counts are not checked against the month; this leniency is
          known and kept so existing saved labels keep decoding
        """
        assert date_labels.encode(date_labels.decode("31/02/2024")) == "02/03/2024"


@pytest.mark.unit
class TestFormatWhileTyping:
    """Unit tests for format_while_typing."""

    @pytest.mark.parametrize(
        "typed, expected",
        [
            ("", ""),
            ("0", "0"),
            ("05", "05"),
            ("050", "05/0"),
            ("0501", "05/01"),
            ("05012", "05/01/2"),
            ("05012024", "05/01/2024"),
            ("05a01-2024999", "05/01/2024"),
        ],
    )
    def test_inserts_separators(self, typed: str, expected: str) -> None:
        assert date_labels.format_while_typing(typed) == expected


@pytest.mark.unit
class TestFormatDisplayDate:
    """Unit tests for format_display_date."""

    def test_english_medium_date(self) -> None:
        assert date_labels.format_display_date(JAN_5, "en") == "Jan 5, 2024"

    def test_spanish_medium_date(self) -> None:
        text = date_labels.format_display_date(JAN_5, "es")

        assert "2024" in text
        assert "ene" in text

    def test_missing_date_placeholder(self) -> None:
        assert date_labels.format_display_date(None, "en") == "No date"
        assert date_labels.format_display_date(None, "es") == "Sin fecha"
