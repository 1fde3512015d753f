"""Enumerations for the immunization schedule engine."""

from enum import Enum


class RecordStatus(Enum):
    """Lifecycle status of a recorded vaccine dose."""

    PENDING = "pending"
    APPLIED = "applied"
    OVERDUE = "overdue"

    @classmethod
    def from_string(cls, value: str | None) -> "RecordStatus":
        """Convert string to RecordStatus.

        Parameters
        ----------
        value : str | None
            Status name ('pending', 'applied', 'overdue'), or None for default.
            Case-insensitive; surrounding whitespace is ignored.

        Returns
        -------
        RecordStatus
            Corresponding RecordStatus enum, defaults to PENDING if value is None.

        Raises
        ------
        ValueError
            If value is not a valid status name.
        """
        if value is None:
            return cls.PENDING

        value_lower = value.strip().lower()
        for status in cls:
            if status.value == value_lower:
                return status

        raise ValueError(
            f"Unknown record status: {value}. "
            f"Valid options: {', '.join(s.value for s in cls)}"
        )


class EntryKind(Enum):
    """Kind of entry placed in an age bucket."""

    MATCHED = "matched"
    PENDING = "pending"


class AgeUnit(Enum):
    """Unit in which a dose template declares its target age.

    Months and weeks project into dates differently (see age.project_target_date),
    so downstream code branches on the unit instead of converting between them.
    """

    MONTHS = "months"
    WEEKS = "weeks"


class Language(Enum):
    """Supported languages for bucket labels, status text and dates.

    Attributes
    ----------
    ENGLISH : str
        English language code ('en').
    SPANISH : str
        Spanish language code ('es').

    See Also
    --------
    translation_helpers.age_label : Localized bucket labels
    """

    ENGLISH = "en"
    SPANISH = "es"

    @classmethod
    def from_string(cls, value: str | None) -> "Language":
        """Convert string to Language enum.

        Parameters
        ----------
        value : str | None
            Language code ('en', 'es'), or None for default (ENGLISH).
            Case-insensitive.

        Returns
        -------
        Language
            Corresponding Language enum value.

        Raises
        ------
        ValueError
            If value is not a valid language code.

        Examples
        --------
        >>> Language.from_string('ES')
        <Language.SPANISH: 'es'>

        >>> Language.from_string(None)
        <Language.ENGLISH: 'en'>
        """
        if value is None:
            return cls.ENGLISH

        value_lower = value.lower()
        for lang in cls:
            if lang.value == value_lower:
                return lang

        raise ValueError(
            f"Unsupported language: {value}. "
            f"Valid options: {', '.join(lang.value for lang in cls)}"
        )

    @classmethod
    def all_codes(cls) -> set[str]:
        """Get set of all supported language codes."""
        return {lang.value for lang in cls}
