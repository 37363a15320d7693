"""Best-times ranking over the 24-hour golden windows timeline."""

from typing import Any, Iterable, Sequence

from models.entities import BestTimeRange, BestTimeSlot, OverlapWindow, Participant, Recommendation
from services.exceptions import InvalidInputError
from services.golden_windows import find_all_overlap_windows
from services.logging_setup import get_logger
from services.validation import validate_score, validate_top_n

logger = get_logger(__name__)

# Minimum quality score for each recommendation label
QUALITY_THRESHOLDS: tuple[tuple[float, Recommendation], ...] = (
    (80, Recommendation.EXCELLENT),
    (65, Recommendation.GOOD),
    (50, Recommendation.FAIR),
)

DEFAULT_RANGE_MIN_QUALITY = 50.0


def get_recommendation(quality_score: float) -> Recommendation:
    for threshold, recommendation in QUALITY_THRESHOLDS:
        if quality_score >= threshold:
            return recommendation
    return Recommendation.POOR


def generate_slot_summary(window: OverlapWindow) -> str:
    """One-sentence description of a window for display next to its rank."""
    total = window.participant_count
    if not window.all_available:
        unavailable = total - window.available_count
        return (
            f"{unavailable} of {total} participant(s) unavailable "
            f"(quality {window.quality_score:g}/100)"
        )

    recommendation = get_recommendation(window.quality_score)
    if recommendation is Recommendation.EXCELLENT:
        return f"Peak energy alignment for all {total} participant(s) ({window.energy_score:g}% avg sharpness)"
    if recommendation is Recommendation.GOOD:
        return f"Good energy levels across all {total} participant(s) (quality {window.quality_score:g}/100)"
    if recommendation is Recommendation.FAIR:
        return f"Workable time for all {total} participant(s), some not at peak (quality {window.quality_score:g}/100)"
    return f"Low energy period for multiple participants (quality {window.quality_score:g}/100)"


def _sort_key(window: OverlapWindow) -> tuple:
    # Higher golden score first, then all-available, then earlier UTC hour
    return (-window.golden_score, not window.all_available, window.utc_hour)


def rank_windows(windows: Iterable[OverlapWindow], top_n: int) -> list[BestTimeSlot]:
    """Sort windows best-first and assign contiguous 1-based ranks."""
    top_n = validate_top_n(top_n)
    ordered = sorted(windows, key=_sort_key)[:top_n]
    return [
        BestTimeSlot(
            window=window,
            rank=index,
            recommendation=get_recommendation(window.quality_score),
            summary=generate_slot_summary(window),
        )
        for index, window in enumerate(ordered, 1)
    ]


def _validate_flag(value: Any, field: str) -> bool:
    if not isinstance(value, bool):
        raise InvalidInputError(field, f"must be a boolean, got {value!r}")
    return value


def find_best_times(
    participants: Sequence[Participant],
    top_n: int = 5,
    require_all_available: bool = True,
    min_quality_score: float = 0.0,
    reference_date: Any = None,
) -> list[BestTimeSlot]:
    """
    Find the best meeting hours for a group of participants.

    Args:
        participants: Meeting participants
        top_n: Maximum number of slots to return
        require_all_available: Only keep hours where everyone is available
        min_quality_score: Minimum quality score (0-100)
        reference_date: Date used to resolve offsets (default: today UTC)

    Returns:
        Up to ``top_n`` slots ranked by golden score. Ties go to the
        all-available slot, then to the earlier UTC hour. An empty list means
        no hour passed the filters.
    """
    top_n = validate_top_n(top_n)
    require_all_available = _validate_flag(require_all_available, "require_all_available")
    min_quality_score = validate_score(min_quality_score, "min_quality_score")

    windows = find_all_overlap_windows(participants, reference_date)
    if require_all_available:
        windows = [w for w in windows if w.all_available]
    windows = [w for w in windows if w.quality_score >= min_quality_score]

    slots = rank_windows(windows, top_n)
    logger.debug(
        "Ranked best times",
        extra={"context": {"candidates": len(windows), "returned": len(slots)}},
    )
    return slots


def _close_range(start_hour: int, scores: list[float]) -> BestTimeRange:
    avg = round(sum(scores) / len(scores), 1)
    return BestTimeRange(
        start_hour=start_hour,
        end_hour=start_hour + len(scores),
        duration_hours=len(scores),
        avg_quality_score=avg,
        recommendation=get_recommendation(avg),
    )


def find_best_time_ranges(
    participants: Sequence[Participant],
    min_duration_hours: int = 1,
    min_quality_score: float = DEFAULT_RANGE_MIN_QUALITY,
    require_all_available: bool = True,
    reference_date: Any = None,
) -> list[BestTimeRange]:
    """Merge strictly consecutive qualifying UTC hours into ranges.

    Ranges do not wrap past midnight UTC; hour 23 and hour 0 of the same
    reference date are not adjacent. A lone qualifying hour is a range of
    length one. Ranges are ordered by average quality, then start hour.
    """
    if isinstance(min_duration_hours, bool) or not isinstance(min_duration_hours, int) or min_duration_hours < 1:
        raise InvalidInputError("min_duration_hours", f"must be a positive integer, got {min_duration_hours!r}")
    require_all_available = _validate_flag(require_all_available, "require_all_available")
    min_quality_score = validate_score(min_quality_score, "min_quality_score")

    qualifying = {
        w.utc_hour: w.quality_score
        for w in find_all_overlap_windows(participants, reference_date)
        if (w.all_available or not require_all_available) and w.quality_score >= min_quality_score
    }

    ranges: list[BestTimeRange] = []
    start_hour = None
    scores: list[float] = []

    for hour in range(24):
        if hour in qualifying:
            if start_hour is None:
                start_hour = hour
            scores.append(qualifying[hour])
            continue
        if start_hour is not None and len(scores) >= min_duration_hours:
            ranges.append(_close_range(start_hour, scores))
        start_hour, scores = None, []

    if start_hour is not None and len(scores) >= min_duration_hours:
        ranges.append(_close_range(start_hour, scores))

    return sorted(ranges, key=lambda r: (-r.avg_quality_score, r.start_hour))
