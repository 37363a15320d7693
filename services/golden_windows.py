"""Golden Windows - overlap detection and energy-weighted scoring.

For each of the 24 UTC hours of a reference date, every participant's local
hour is looked up against their energy curve and availability, and the
results are combined into one scored window:

    energy_score   mean sharpness of all participants (0-100)
    quality_score  mean of sharpness x availability (0-100); an unavailable
                   participant contributes 0, so gaps pull the score down
                   instead of disappearing from the average
    golden_score   0.9 x quality + 10 when everyone is available

The +10 boost means an all-available slot outranks any slot with a gap
unless the gap slot's quality is more than 11.1 points higher.
"""

from datetime import timedelta
from typing import Any, Optional, Sequence

from models.entities import (
    CombinedHourScore,
    HeatmapCell,
    HeatmapData,
    HeatmapRow,
    OverlapWindow,
    Participant,
    ParticipantWindow,
)
from services.availability import is_hour_available
from services.energy_curves import get_sharpness
from services.exceptions import InvalidInputError
from services.logging_setup import get_logger
from services.timezone_service import format_utc_offset, get_timezone, utc_hour_to_datetime
from services.validation import coerce_reference_date, validate_hour, validate_participants

logger = get_logger(__name__)

HOURS_PER_DAY = 24
WINDOW_MINUTES = 60
GOLDEN_QUALITY_WEIGHT = 0.9
ALL_AVAILABLE_BOOST = 10.0


def get_participant_window(participant: Participant, utc_hour: int, reference_date: Any = None) -> ParticipantWindow:
    """What ``utc_hour`` on the reference date looks like for one participant."""
    utc_start = utc_hour_to_datetime(utc_hour, reference_date)
    tz = get_timezone(participant.timezone, participant_id=participant.id)
    local_start = utc_start.astimezone(tz)
    local_end = (utc_start + timedelta(minutes=WINDOW_MINUTES)).astimezone(tz)
    local_hour = local_start.hour

    return ParticipantWindow(
        participant=participant,
        local_start=local_start,
        local_end=local_end,
        local_hour=local_hour,
        sharpness=get_sharpness(local_hour, participant),
        is_available=is_hour_available(local_hour, participant),
    )


def calculate_quality_score(participant_windows: Sequence[ParticipantWindow]) -> float:
    """Availability-weighted mean sharpness on a 0-100 scale."""
    if not participant_windows:
        raise InvalidInputError("participants", "cannot score a window with no participants")
    weighted = sum(pw.sharpness for pw in participant_windows if pw.is_available)
    return round(weighted / len(participant_windows) * 100, 1)


def calculate_energy_score(participant_windows: Sequence[ParticipantWindow]) -> float:
    """Plain mean sharpness on a 0-100 scale, ignoring availability."""
    if not participant_windows:
        raise InvalidInputError("participants", "cannot score a window with no participants")
    return round(sum(pw.sharpness for pw in participant_windows) / len(participant_windows) * 100, 1)


def calculate_golden_score(quality_score: float, all_available: bool) -> float:
    boost = ALL_AVAILABLE_BOOST if all_available else 0.0
    return round(quality_score * GOLDEN_QUALITY_WEIGHT + boost, 1)


def _build_window(utc_hour: int, participants: Sequence[Participant], reference_date) -> OverlapWindow:
    utc_start = utc_hour_to_datetime(utc_hour, reference_date)
    windows = tuple(get_participant_window(p, utc_hour, reference_date) for p in participants)

    available_count = sum(1 for pw in windows if pw.is_available)
    all_available = available_count == len(windows)
    quality_score = calculate_quality_score(windows)

    return OverlapWindow(
        utc_start=utc_start,
        utc_end=utc_start + timedelta(minutes=WINDOW_MINUTES),
        utc_hour=utc_hour,
        duration_minutes=WINDOW_MINUTES,
        participants=windows,
        energy_score=calculate_energy_score(windows),
        quality_score=quality_score,
        golden_score=calculate_golden_score(quality_score, all_available),
        all_available=all_available,
        available_count=available_count,
    )


def calculate_overlap_window(
    utc_hour: int,
    participants: Sequence[Participant],
    reference_date: Any = None,
) -> OverlapWindow:
    """Score one UTC hour across all participants.

    Raises:
        InvalidInputError: on an empty participant list, a bad hour or date
        UnknownTimezoneError: if any participant's timezone is unknown
    """
    participants = validate_participants(participants)
    utc_hour = validate_hour(utc_hour, "utc_hour")
    day = coerce_reference_date(reference_date)
    return _build_window(utc_hour, participants, day)


def find_all_overlap_windows(
    participants: Sequence[Participant],
    reference_date: Any = None,
) -> list[OverlapWindow]:
    """All 24 hourly windows of the reference date, in UTC hour order."""
    participants = validate_participants(participants)
    day = coerce_reference_date(reference_date)

    windows = [_build_window(hour, participants, day) for hour in range(HOURS_PER_DAY)]

    logger.debug(
        "Computed overlap timeline",
        extra={
            "context": {
                "participant_count": len(participants),
                "reference_date": day.isoformat(),
                "all_available_hours": sum(1 for w in windows if w.all_available),
            }
        },
    )
    return windows


def find_valid_overlap_windows(
    participants: Sequence[Participant],
    reference_date: Any = None,
    min_available: Optional[int] = None,
) -> list[OverlapWindow]:
    """Windows meeting the availability policy.

    Args:
        participants: Meeting participants
        reference_date: Date used to resolve offsets
        min_available: Minimum number of available participants. None means
            everyone must be available.
    """
    windows = find_all_overlap_windows(participants, reference_date)

    if min_available is None:
        return [w for w in windows if w.all_available]

    if isinstance(min_available, bool) or not isinstance(min_available, int) or min_available < 1:
        raise InvalidInputError("min_available", f"must be a positive integer, got {min_available!r}")
    if min_available > len(participants):
        raise InvalidInputError(
            "min_available",
            f"{min_available} exceeds the number of participants ({len(participants)})",
        )
    return [w for w in windows if w.available_count >= min_available]


# ============================================================================
# HEATMAP
# ============================================================================

def _heatmap_cell(utc_hour: int, pw: ParticipantWindow) -> HeatmapCell:
    return HeatmapCell(
        utc_hour=utc_hour,
        participant_id=pw.participant.id,
        local_hour=pw.local_hour,
        sharpness=pw.sharpness,
        is_available=pw.is_available,
        intensity=round(pw.sharpness * 100) if pw.is_available else 0,
    )


def generate_heatmap_data(participants: Sequence[Participant], reference_date: Any = None) -> HeatmapData:
    """24-hour x N-participant grid plus the combined score row.

    Cell intensity is sharpness x 100 when available and 0 otherwise.
    """
    windows = find_all_overlap_windows(participants, reference_date)
    day = coerce_reference_date(reference_date)

    rows = []
    for index, participant in enumerate(participants):
        cells = tuple(_heatmap_cell(window.utc_hour, window.participants[index]) for window in windows)
        rows.append(HeatmapRow(
            participant_id=participant.id,
            participant_name=participant.display_name,
            timezone=participant.timezone,
            utc_offset=format_utc_offset(participant.timezone, day),
            cells=cells,
        ))

    combined = tuple(
        CombinedHourScore(
            utc_hour=w.utc_hour,
            golden_score=w.golden_score,
            quality_score=w.quality_score,
            all_available=w.all_available,
        )
        for w in windows
    )

    return HeatmapData(hours=tuple(range(HOURS_PER_DAY)), rows=tuple(rows), combined_scores=combined)
