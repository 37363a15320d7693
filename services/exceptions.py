"""Exception hierarchy for the scheduling core.

Exception Hierarchy:
    SchedulingError (base)
    ├── ConfigurationError
    └── InvalidInputError
        └── UnknownTimezoneError

Degenerate-but-valid input (no hour passes the filters, nobody available
at the same time) is never an error; callers get an empty result instead.
"""

from typing import Optional


class SchedulingError(Exception):
    """Base exception for all scheduling core errors."""

    pass


class ConfigurationError(SchedulingError):
    """Configuration value is invalid.

    Raised when:
        - An environment variable cannot be parsed
        - A configured work hour is out of range
    """

    pass


class InvalidInputError(SchedulingError):
    """Caller supplied invalid input.

    Raised synchronously at the entry point of the function that received
    the input. ``field`` names the offending argument so callers can report
    it without parsing the message.

    Raised when:
        - Participant list is empty
        - Hour is outside 0-23
        - Reference date is malformed
        - top_n is not a positive integer
        - An aggregate is requested over an empty list
    """

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class UnknownTimezoneError(InvalidInputError):
    """Timezone identifier is not in the IANA database.

    This is a data-quality error. Retrying will not help.
    """

    def __init__(self, timezone: str, participant_id: Optional[str] = None):
        self.timezone = timezone
        self.participant_id = participant_id
        where = f" for participant {participant_id}" if participant_id else ""
        super().__init__("timezone", f"unknown timezone {timezone!r}{where}")
