"""Sacrifice Score - pain weights, per-meeting scores and fairness tracking.

The sacrifice score makes the cost of a bad meeting time visible. Every local
hour has a fixed base pain weight; the meeting's attributes then scale it:

    points = base x duration x recurring x organizer x custom

Pain perception is categorical, so the base weights are a lookup table and
the duration multiplier steps at fixed thresholds.
"""

from dataclasses import replace
from datetime import date, datetime, timedelta, timezone as dt_timezone
from typing import Mapping, Optional, Sequence, Union

import pytz

from models.entities import (
    AggregateSacrifice,
    FairnessStatus,
    ImpactLevel,
    LeaderboardEntry,
    MultiplierBreakdown,
    PainBand,
    PainWeight,
    Participant,
    SacrificeCategory,
    SacrificeRecord,
    SacrificeScoreResult,
    ScoreHistoryEntry,
    Trend,
    WorstSlotCount,
)
from services.exceptions import InvalidInputError
from services.logging_setup import get_logger
from services.timezone_service import to_local
from services.validation import validate_hour

logger = get_logger(__name__)

# (base points, band) per local hour
PAIN_TABLE: tuple[tuple[float, PainBand], ...] = (
    (10, PainBand.GRAVEYARD),        # 00
    (10, PainBand.GRAVEYARD),        # 01
    (10, PainBand.GRAVEYARD),        # 02
    (10, PainBand.GRAVEYARD),        # 03
    (10, PainBand.GRAVEYARD),        # 04
    (10, PainBand.GRAVEYARD),        # 05
    (10, PainBand.GRAVEYARD),        # 06
    (3, PainBand.EARLY_MORNING),     # 07
    (2, PainBand.ACCEPTABLE),        # 08
    (1.5, PainBand.GOOD),            # 09
    (1, PainBand.GOLDEN),            # 10
    (1, PainBand.GOLDEN),            # 11
    (1, PainBand.GOLDEN),            # 12
    (1, PainBand.GOLDEN),            # 13
    (1, PainBand.GOLDEN),            # 14
    (1, PainBand.GOLDEN),            # 15
    (1.5, PainBand.GOOD),            # 16
    (2, PainBand.ACCEPTABLE),        # 17
    (3, PainBand.EVENING),           # 18
    (3, PainBand.EVENING),           # 19
    (4, PainBand.LATE_EVENING),      # 20
    (5, PainBand.NIGHT),             # 21
    (6, PainBand.LATE_NIGHT),        # 22
    (10, PainBand.GRAVEYARD),        # 23
)

BAND_DESCRIPTIONS: dict[PainBand, str] = {
    PainBand.GOLDEN: "Peak productivity hours",
    PainBand.GOOD: "Good working hours",
    PainBand.ACCEPTABLE: "Edge of working hours",
    PainBand.EARLY_MORNING: "Early morning (sleep impact)",
    PainBand.EVENING: "Evening (personal time)",
    PainBand.LATE_EVENING: "Late evening (family time)",
    PainBand.NIGHT: "Night hours (significant disruption)",
    PainBand.LATE_NIGHT: "Late night (severe impact)",
    PainBand.GRAVEYARD: "Graveyard shift (career damage)",
}

# Bands counted separately on the leaderboard
WORST_BANDS: dict[PainBand, str] = {
    PainBand.GRAVEYARD: "graveyard",
    PainBand.LATE_NIGHT: "late_night",
    PainBand.NIGHT: "night",
    PainBand.EARLY_MORNING: "early_morning",
}

# Upper bound of base points for each category, best to worst
CATEGORY_BANDS: tuple[tuple[float, SacrificeCategory], ...] = (
    (2, SacrificeCategory.AWAKE_FINE),
    (4, SacrificeCategory.INCONVENIENT),
    (6, SacrificeCategory.BAD),
)

IMPACT_LEVELS: dict[float, ImpactLevel] = {
    1: ImpactLevel.MINIMAL,
    1.5: ImpactLevel.MINIMAL,
    2: ImpactLevel.LOW,
    3: ImpactLevel.MEDIUM,
    4: ImpactLevel.HIGH,
    5: ImpactLevel.SEVERE,
    6: ImpactLevel.SEVERE,
    10: ImpactLevel.EXTREME,
}

# (max duration in minutes, multiplier); longer meetings use LONG_MEETING_MULTIPLIER
DURATION_STEPS: tuple[tuple[int, float], ...] = (
    (30, 1.0),
    (60, 1.5),
    (90, 2.0),
)
LONG_MEETING_MULTIPLIER = 2.5
RECURRING_MULTIPLIER = 1.5
ORGANIZER_MULTIPLIER = 0.8

IMBALANCE_RATIO = 2.0
IMBALANCE_MIN_POINTS = 4


# ============================================================================
# PAIN WEIGHTS
# ============================================================================

def category_for_points(base_points: float) -> SacrificeCategory:
    for upper, category in CATEGORY_BANDS:
        if base_points <= upper:
            return category
    return SacrificeCategory.TERRIBLE


def get_pain_weight(local_hour: int) -> PainWeight:
    """Base pain of meeting at ``local_hour``."""
    local_hour = validate_hour(local_hour, "local_hour")
    points, band = PAIN_TABLE[local_hour]
    return PainWeight(
        base_points=points,
        category=category_for_points(points),
        impact_level=IMPACT_LEVELS[points],
        hour_description=BAND_DESCRIPTIONS[band],
        band=band,
    )


def get_pain_weight_table() -> list[PainWeight]:
    """Pain weights for hours 0-23, indexed by hour."""
    return [get_pain_weight(hour) for hour in range(24)]


# ============================================================================
# SCORE CALCULATION
# ============================================================================

def duration_multiplier(duration_minutes: int) -> float:
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int) or duration_minutes <= 0:
        raise InvalidInputError("duration_minutes", f"must be a positive integer, got {duration_minutes!r}")
    for max_minutes, multiplier in DURATION_STEPS:
        if duration_minutes <= max_minutes:
            return multiplier
    return LONG_MEETING_MULTIPLIER


def calculate_sacrifice_score(
    local_hour: int,
    duration_minutes: int = 30,
    is_recurring: bool = False,
    is_organizer: bool = False,
    custom_multiplier: float = 1.0,
) -> SacrificeScoreResult:
    """
    Calculate the sacrifice score for one participant at one local hour.

    Args:
        local_hour: Participant's local hour of the meeting start (0-23)
        duration_minutes: Meeting length
        is_recurring: Recurring meetings repeat the cost
        is_organizer: Organizers chose the time and get a discount
        custom_multiplier: Caller override, must be positive

    Returns:
        Score with multiplier breakdown
    """
    if isinstance(custom_multiplier, bool) or not isinstance(custom_multiplier, (int, float)) or custom_multiplier <= 0:
        raise InvalidInputError("custom_multiplier", f"must be a positive number, got {custom_multiplier!r}")

    pain = get_pain_weight(local_hour)

    duration = duration_multiplier(duration_minutes)
    recurring = RECURRING_MULTIPLIER if is_recurring else 1.0
    organizer = ORGANIZER_MULTIPLIER if is_organizer else 1.0
    custom = float(custom_multiplier)
    total = duration * recurring * organizer * custom

    parts = [f"Base: {pain.base_points:g} pts ({pain.category.value})"]
    if duration != 1.0:
        parts.append(f"Duration: x{duration:g} ({duration_minutes} min)")
    if is_recurring:
        parts.append(f"Recurring: x{RECURRING_MULTIPLIER:g}")
    if is_organizer:
        parts.append(f"Organizer: x{ORGANIZER_MULTIPLIER:g}")
    if custom != 1.0:
        parts.append(f"Custom: x{custom:g}")

    return SacrificeScoreResult(
        points=round(pain.base_points * total, 1),
        base_points=pain.base_points,
        local_hour=local_hour,
        category=pain.category,
        impact_level=pain.impact_level,
        multipliers=MultiplierBreakdown(
            duration=duration,
            recurring=recurring,
            organizer=organizer,
            custom=custom,
            total=round(total, 4),
        ),
        breakdown=" -> ".join(parts),
        band=pain.band,
    )


def parse_meeting_time(meeting_time_utc: Union[str, datetime]) -> datetime:
    if isinstance(meeting_time_utc, str):
        text = meeting_time_utc.strip().replace("Z", "+00:00")
        try:
            meeting_time_utc = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidInputError("meeting_time_utc", f"not an ISO-8601 datetime: {meeting_time_utc!r}")
    if not isinstance(meeting_time_utc, datetime):
        raise InvalidInputError("meeting_time_utc", f"unsupported type {type(meeting_time_utc).__name__}")
    if meeting_time_utc.tzinfo is None:
        return pytz.UTC.localize(meeting_time_utc)
    return meeting_time_utc.astimezone(pytz.UTC)


def calculate_score_for_timezone(
    meeting_time_utc: Union[str, datetime],
    timezone: str,
    duration_minutes: int = 30,
    is_recurring: bool = False,
    is_organizer: bool = False,
    custom_multiplier: float = 1.0,
    participant_id: Optional[str] = None,
) -> SacrificeScoreResult:
    """Sacrifice score for a participant in ``timezone``.

    Naive datetimes are treated as UTC.
    """
    meeting_time = parse_meeting_time(meeting_time_utc)
    local_hour = to_local(meeting_time, timezone).hour

    result = calculate_sacrifice_score(
        local_hour,
        duration_minutes=duration_minutes,
        is_recurring=is_recurring,
        is_organizer=is_organizer,
        custom_multiplier=custom_multiplier,
    )
    return replace(result, participant_id=participant_id, timezone=timezone)


def calculate_meeting_total_sacrifice(participant_scores: Sequence[SacrificeScoreResult]) -> AggregateSacrifice:
    """Aggregate sacrifice across all participants of one meeting slot.

    The fairness index is max / average: 1.0 when everyone pays the same,
    growing as one participant carries more of the cost.

    Raises:
        InvalidInputError: if ``participant_scores`` is empty
    """
    if not participant_scores:
        raise InvalidInputError("participant_scores", "at least one score is required")

    points = [s.points for s in participant_scores]
    total = sum(points)
    average = total / len(points)
    maximum = max(points)
    worst_index = points.index(maximum)

    if average > 0:
        fairness_index = maximum / average
        variance = sum((p - average) ** 2 for p in points) / len(points)
        cv = variance ** 0.5 / average
    else:
        fairness_index = 1.0
        cv = 0.0

    imbalance = fairness_index > IMBALANCE_RATIO and maximum >= IMBALANCE_MIN_POINTS
    message = None
    if imbalance:
        who = participant_scores[worst_index].participant_id or f"Participant {worst_index + 1}"
        message = f"{who} is taking {round(fairness_index)}x the average sacrifice"
        logger.info("Sacrifice imbalance detected", extra={"context": {"worst": who, "ratio": round(fairness_index, 2)}})

    return AggregateSacrifice(
        total_points=round(total, 1),
        average_points=round(average, 1),
        max_points=round(maximum, 1),
        fairness_index=round(fairness_index, 2),
        coefficient_of_variation=round(cv, 2),
        imbalance_warning=imbalance,
        participant_count=len(points),
        worst_participant_index=worst_index,
        imbalance_message=message,
    )


# ============================================================================
# FAIRNESS TRACKING
# ============================================================================

def to_sacrifice_record(
    score: SacrificeScoreResult,
    meeting_slot_id: str,
    user_id: Optional[str] = None,
    calculated_at: Optional[datetime] = None,
) -> SacrificeRecord:
    """Store a participant's score for fairness tracking, keeping its band."""
    user_id = user_id or score.participant_id
    if not user_id:
        raise InvalidInputError("user_id", "score has no participant_id and no user_id was given")
    return SacrificeRecord(
        user_id=user_id,
        points=score.points,
        category=score.category,
        meeting_slot_id=meeting_slot_id,
        calculated_at=calculated_at,
        band=score.band,
    )


def _trend(current: float, previous: Optional[float]) -> tuple[Trend, int]:
    if previous is None:
        return Trend.STABLE, 0
    if previous > 0:
        percent = round((current - previous) / previous * 100)
        if percent > 10:
            return Trend.UP, percent
        if percent < -10:
            return Trend.DOWN, percent
        return Trend.STABLE, percent
    if current > 0:
        return Trend.UP, 100
    return Trend.STABLE, 0


def _fairness_status(total: float, average: float) -> FairnessStatus:
    if total > average * 3:
        return FairnessStatus.CRITICAL
    if total > average * 2:
        return FairnessStatus.HIGH_SACRIFICE
    if total > average * 1.3:
        return FairnessStatus.ABOVE_AVERAGE
    return FairnessStatus.BALANCED


def calculate_leaderboard(
    records: Sequence[SacrificeRecord],
    users: Mapping[str, Participant],
    previous_period_totals: Optional[Mapping[str, float]] = None,
) -> list[LeaderboardEntry]:
    """
    Rank users by accumulated sacrifice, most sacrifice first.

    Args:
        records: Stored per-meeting sacrifice scores
        users: Participant details keyed by user id
        previous_period_totals: Total points per user in the previous period,
            used for the trend. Omit to report every trend as stable.

    Returns:
        Leaderboard entries with contiguous ranks
    """
    totals: dict[str, float] = {}
    slots: dict[str, set[str]] = {}
    categories: dict[str, dict[SacrificeCategory, int]] = {}
    bands: dict[str, dict[str, int]] = {}

    for record in records:
        totals[record.user_id] = totals.get(record.user_id, 0.0) + record.points
        slots.setdefault(record.user_id, set()).add(record.meeting_slot_id)
        counts = categories.setdefault(record.user_id, {})
        counts[record.category] = counts.get(record.category, 0) + 1
        band_counts = bands.setdefault(record.user_id, {})
        if record.band in WORST_BANDS:
            field = WORST_BANDS[record.band]
            band_counts[field] = band_counts.get(field, 0) + 1

    if not totals:
        return []

    grand_total = sum(totals.values())
    average = grand_total / len(totals)

    entries = []
    for user_id, total in totals.items():
        user = users.get(user_id)
        meeting_count = len(slots[user_id])
        previous = None
        if previous_period_totals is not None:
            previous = previous_period_totals.get(user_id, 0.0)
        trend, trend_percent = _trend(total, previous)
        counts = categories[user_id]

        entries.append(dict(
            user_id=user_id,
            user_name=user.name if user else None,
            user_email=user.email if user else "Unknown",
            timezone=user.timezone if user else "UTC",
            total_points=round(total, 1),
            meeting_count=meeting_count,
            average_per_meeting=round(total / meeting_count, 1),
            worst_slot_count=WorstSlotCount(
                terrible=counts.get(SacrificeCategory.TERRIBLE, 0),
                bad=counts.get(SacrificeCategory.BAD, 0),
                inconvenient=counts.get(SacrificeCategory.INCONVENIENT, 0),
                **bands[user_id],
            ),
            trend=trend,
            trend_percent=trend_percent,
            percent_of_total=round(total / grand_total * 100) if grand_total > 0 else 0,
            fairness_status=_fairness_status(total, average),
        ))

    entries.sort(key=lambda e: (-e["total_points"], e["user_id"]))
    return [LeaderboardEntry(rank=index, **entry) for index, entry in enumerate(entries, 1)]


def aggregate_score_history(
    records: Sequence[SacrificeRecord],
    days: int = 30,
    today: Optional[date] = None,
) -> list[ScoreHistoryEntry]:
    """Bucket sacrifice points per UTC day for the last ``days`` days.

    Records without a timestamp or outside the window are skipped.
    """
    if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
        raise InvalidInputError("days", f"must be a positive integer, got {days!r}")
    if today is None:
        today = datetime.now(dt_timezone.utc).date()

    buckets = {
        today - timedelta(days=offset): ScoreHistoryEntry(day=today - timedelta(days=offset))
        for offset in range(days)
    }

    for record in records:
        if record.calculated_at is None:
            continue
        stamp = record.calculated_at
        if stamp.tzinfo is not None:
            stamp = stamp.astimezone(dt_timezone.utc)
        bucket = buckets.get(stamp.date())
        if bucket is None:
            continue
        bucket.points = round(bucket.points + record.points, 1)
        bucket.meeting_count += 1
        bucket.categories[record.category] = bucket.categories.get(record.category, 0) + 1

    return sorted(buckets.values(), key=lambda b: b.day)
