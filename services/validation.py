"""Input validation shared by the scheduling services.

Every public entry point validates its own arguments here so bad input is
rejected before any computation starts.
"""

from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional, Sequence

from models.entities import Chronotype, Participant
from services.exceptions import InvalidInputError


def validate_hour(value: Any, field: str = "hour") -> int:
    """Return ``value`` if it is an integer hour in 0-23."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(field, f"must be an integer hour, got {value!r}")
    if not 0 <= value <= 23:
        raise InvalidInputError(field, f"must be between 0 and 23, got {value}")
    return value


def validate_end_hour(value: Any, field: str = "work_end_hour") -> int:
    """Return ``value`` if it is an exclusive end hour in 0-24.

    24 closes a window at midnight, so 0-24 covers the whole day.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(field, f"must be an integer hour, got {value!r}")
    if not 0 <= value <= 24:
        raise InvalidInputError(field, f"must be between 0 and 24, got {value}")
    return value


def coerce_reference_date(value: Any) -> date:
    """Normalize a reference date.

    Accepts a ``date``, a ``datetime`` (converted to its UTC calendar date when
    aware), an ISO-8601 date string, or None for today in UTC.
    """
    if value is None:
        return datetime.now(timezone.utc).date()
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            raise InvalidInputError("reference_date", f"not an ISO date: {value!r}")
    raise InvalidInputError("reference_date", f"unsupported type {type(value).__name__}")


def validate_top_n(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError("top_n", f"must be a positive integer, got {value!r}")
    if value <= 0:
        raise InvalidInputError("top_n", f"must be a positive integer, got {value}")
    return value


def validate_score(value: Any, field: str, upper: float = 100.0) -> float:
    """Return ``value`` as a float if it lies in [0, upper]."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(field, f"must be a number, got {value!r}")
    if not 0 <= value <= upper:
        raise InvalidInputError(field, f"must be between 0 and {upper:g}, got {value}")
    return float(value)


def _validate_hours(hours: Iterable[Any], field: str) -> None:
    for hour in hours:
        validate_hour(hour, field)


def validate_participant(participant: Participant) -> Participant:
    """Check one participant's preferences and timezone."""
    if not isinstance(participant, Participant):
        raise InvalidInputError("participants", f"expected Participant, got {type(participant).__name__}")

    # Import here to avoid circular dependency
    from services.timezone_service import get_timezone

    get_timezone(participant.timezone, participant_id=participant.id)

    if not isinstance(participant.chronotype, Chronotype):
        raise InvalidInputError("chronotype", f"unknown chronotype {participant.chronotype!r}")

    validate_hour(participant.work_start_hour, "work_start_hour")
    validate_end_hour(participant.work_end_hour, "work_end_hour")
    if participant.work_start_hour == participant.work_end_hour:
        raise InvalidInputError(
            "work_end_hour",
            f"work window for {participant.id} is empty ({participant.work_start_hour}-{participant.work_end_hour})",
        )

    if participant.energy_curve:
        _validate_hours(participant.energy_curve.keys(), "energy_curve")
        for sharpness in participant.energy_curve.values():
            validate_score(sharpness, "energy_curve", upper=1.0)

    if participant.unavailable_hours is not None:
        _validate_hours(participant.unavailable_hours, "unavailable_hours")

    return participant


def validate_participants(participants: Optional[Sequence[Participant]]) -> list[Participant]:
    """Reject an empty or invalid participant list."""
    if not participants:
        raise InvalidInputError("participants", "at least one participant is required")
    return [validate_participant(p) for p in participants]
