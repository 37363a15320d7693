"""Per-participant hourly availability.

A local hour is available when it falls inside the participant's work window
and is not one of their unavailable hours. Work windows are half-open:
9-17 means 09:00 is available and 17:00 is not, and 0-24 is the whole day.
"""

from models.entities import HourProfile, Participant
from services.energy_curves import default_unavailable_hours, get_sharpness
from services.validation import validate_end_hour, validate_hour


def is_within_work_hours(local_hour: int, work_start_hour: int, work_end_hour: int) -> bool:
    """Half-open ``[start, end)`` check; wraps past midnight when start > end."""
    if work_start_hour < work_end_hour:
        return work_start_hour <= local_hour < work_end_hour
    return local_hour >= work_start_hour or local_hour < work_end_hour


def effective_unavailable_hours(participant: Participant) -> frozenset[int]:
    """Custom unavailable hours, or the chronotype's sleep hours."""
    if participant.unavailable_hours is not None:
        return frozenset(participant.unavailable_hours)
    return default_unavailable_hours(participant.chronotype)


def is_hour_available(local_hour: int, participant: Participant) -> bool:
    local_hour = validate_hour(local_hour, "local_hour")
    if not is_within_work_hours(local_hour, participant.work_start_hour, participant.work_end_hour):
        return False
    return local_hour not in effective_unavailable_hours(participant)


def work_hours_to_unavailable(work_start_hour: int, work_end_hour: int) -> list[int]:
    """Local hours outside the work window, in ascending order."""
    validate_hour(work_start_hour, "work_start_hour")
    validate_end_hour(work_end_hour, "work_end_hour")
    return [h for h in range(24) if not is_within_work_hours(h, work_start_hour, work_end_hour)]


def available_local_hours(participant: Participant) -> list[int]:
    return [h for h in range(24) if is_hour_available(h, participant)]


def build_hour_profile(local_hour: int, participant: Participant) -> HourProfile:
    return HourProfile(
        local_hour=local_hour,
        sharpness=get_sharpness(local_hour, participant),
        is_available=is_hour_available(local_hour, participant),
    )
