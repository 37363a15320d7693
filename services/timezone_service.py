"""Wall-clock and UTC conversion helpers.

All conversions go through full datetime arithmetic on a reference date so
fractional offsets (UTC+5:30, UTC+5:45, UTC+8:45) and daylight-saving
transitions come out right.

DST policy for local -> UTC conversion:
    - A local hour that does not exist (spring-forward gap) is shifted
      forward by the gap, e.g. 02:00 becomes 03:00 in America/New_York.
    - An ambiguous local hour (fall-back overlap) resolves to its first
      occurrence, i.e. the daylight-time instant.
"""

from datetime import datetime, time, timedelta, tzinfo
from typing import Any, Iterable, Optional

import pytz

from services.exceptions import UnknownTimezoneError
from services.validation import coerce_reference_date, validate_hour


def get_timezone(name: Any, participant_id: Optional[str] = None) -> tzinfo:
    """Resolve an IANA timezone identifier.

    Raises:
        UnknownTimezoneError: if the identifier is not in the tz database
    """
    if not isinstance(name, str) or not name.strip():
        raise UnknownTimezoneError(str(name), participant_id)
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        raise UnknownTimezoneError(name, participant_id)


def is_valid_timezone(name: Any) -> bool:
    try:
        get_timezone(name)
    except UnknownTimezoneError:
        return False
    return True


def utc_hour_to_datetime(utc_hour: int, reference_date: Any = None) -> datetime:
    """Aware UTC datetime for ``utc_hour`` on the reference date."""
    utc_hour = validate_hour(utc_hour, "utc_hour")
    day = coerce_reference_date(reference_date)
    return pytz.UTC.localize(datetime.combine(day, time(utc_hour)))


def to_local(utc_datetime: datetime, timezone: str) -> datetime:
    """Convert an aware datetime to the participant's wall clock."""
    if utc_datetime.tzinfo is None:
        utc_datetime = pytz.UTC.localize(utc_datetime)
    return utc_datetime.astimezone(get_timezone(timezone))


def utc_to_local_hour(utc_hour: int, timezone: str, reference_date: Any = None) -> int:
    """Local wall-clock hour (0-23) in ``timezone`` at ``utc_hour`` UTC.

    Args:
        utc_hour: Hour of the day in UTC (0-23)
        timezone: IANA timezone identifier
        reference_date: Calendar date used to resolve the offset (default: today UTC)

    Returns:
        Local hour 0-23. For UTC+5:30 the half hour is truncated, so 03:00 UTC
        is local hour 8 in Asia/Kolkata.
    """
    return to_local(utc_hour_to_datetime(utc_hour, reference_date), timezone).hour


def resolve_local_time(local_hour: int, timezone: str, reference_date: Any = None) -> datetime:
    """Aware local datetime for ``local_hour`` on the reference date.

    Applies the module DST policy to nonexistent and ambiguous hours.
    """
    local_hour = validate_hour(local_hour, "local_hour")
    day = coerce_reference_date(reference_date)
    tz = get_timezone(timezone)
    naive = datetime.combine(day, time(local_hour))

    try:
        return tz.localize(naive, is_dst=None)
    except pytz.AmbiguousTimeError:
        return tz.localize(naive, is_dst=True)
    except pytz.NonExistentTimeError:
        return tz.normalize(tz.localize(naive, is_dst=False))


def local_hour_to_utc(local_hour: int, timezone: str, reference_date: Any = None) -> datetime:
    """Aware UTC datetime at which ``timezone`` reads ``local_hour`` o'clock."""
    return resolve_local_time(local_hour, timezone, reference_date).astimezone(pytz.UTC)


def get_utc_offset(timezone: str, reference_date: Any = None) -> timedelta:
    """UTC offset of ``timezone`` at noon UTC on the reference date."""
    noon = utc_hour_to_datetime(12, reference_date)
    offset = noon.astimezone(get_timezone(timezone)).utcoffset()
    return offset if offset is not None else timedelta(0)


def get_utc_offset_hours(timezone: str, reference_date: Any = None) -> float:
    return get_utc_offset(timezone, reference_date).total_seconds() / 3600


def format_utc_offset(timezone: str, reference_date: Any = None) -> str:
    """Offset label such as "UTC-8" or "UTC+5:30"."""
    total_minutes = int(get_utc_offset(timezone, reference_date).total_seconds() // 60)
    sign = "+" if total_minutes >= 0 else "-"
    hours, minutes = divmod(abs(total_minutes), 60)
    if minutes == 0:
        return f"UTC{sign}{hours}"
    return f"UTC{sign}{hours}:{minutes:02d}"


def calculate_timezone_spread(timezones: Iterable[str], reference_date: Any = None) -> float:
    """Hours between the westernmost and easternmost offsets.

    Returns 0 for fewer than two distinct timezones.
    """
    day = coerce_reference_date(reference_date)
    offsets = [get_utc_offset_hours(tz, day) for tz in set(timezones)]
    if len(offsets) < 2:
        return 0.0
    return round(max(offsets) - min(offsets), 2)
