"""Async Nudge - decide when a meeting should become asynchronous.

A stateless classifier: each independent trigger that fires adds a weighted
reason, the weights add up to a 0-100 nudge strength, and the strength maps
to an urgency. Large timezone spreads put a floor under the strength so a
meeting spanning half the planet is always a strong candidate for async.
"""

import re
from typing import Any, Optional, Sequence

from models.entities import (
    AsyncAlternative,
    AsyncType,
    MeetingType,
    MeetingUrgency,
    NudgeDecision,
    NudgeInput,
    NudgeReason,
    NudgeRecord,
    NudgeResult,
    NudgeUrgency,
    OrganizerPreference,
    ReasonType,
    ReclaimedStats,
    Trend,
    TypeTally,
)
from services.exceptions import InvalidInputError
from services.logging_setup import get_logger

logger = get_logger(__name__)


# ============================================================================
# THRESHOLDS
# ============================================================================

SACRIFICE_GENTLE = 15
SACRIFICE_MODERATE = 25
SACRIFICE_STRONG = 40
INDIVIDUAL_SACRIFICE = 6
IMBALANCE_RATIO = 2.0

SPREAD_NOTABLE = 5
SPREAD_HIGH = 8
SPREAD_EXTREME = 10

LOW_ENERGY = 0.5
DURATION_SHORT = 15
DURATION_LONG = 60
MANY_PARTICIPANTS = 6
MANY_TRIGGERS = 4

STRONG_STRENGTH = 70
MODERATE_STRENGTH = 45
NUDGE_STRENGTH = 25

PREFERENCE_MODIFIERS = {
    OrganizerPreference.PREFER_ASYNC: 1.2,
    OrganizerPreference.NEUTRAL: 1.0,
    OrganizerPreference.PREFER_SYNC: 0.6,
}

# Meeting purposes that usually need live discussion
SYNC_PREFERRED_TYPES = frozenset({MeetingType.BRAINSTORM, MeetingType.ONE_ON_ONE, MeetingType.PLANNING})
SYNC_TYPE_MODIFIER = 0.5


# ============================================================================
# PATTERNS AND ALTERNATIVES
# ============================================================================

# Title patterns that suggest async is viable; only the first match counts
ASYNC_FRIENDLY_PATTERNS: tuple[tuple[re.Pattern, tuple[AsyncType, ...], int], ...] = (
    (re.compile(r"status|update|check-?in", re.I), (AsyncType.DOC, AsyncType.SLACK), 25),
    (re.compile(r"standup|daily", re.I), (AsyncType.SLACK, AsyncType.DOC), 30),
    (re.compile(r"fyi|announcement|info", re.I), (AsyncType.EMAIL, AsyncType.LOOM), 35),
    (re.compile(r"demo|walkthrough|tutorial", re.I), (AsyncType.LOOM,), 40),
    (re.compile(r"review|feedback", re.I), (AsyncType.DOC, AsyncType.LOOM), 20),
    (re.compile(r"poll|vote|decision", re.I), (AsyncType.POLL, AsyncType.SLACK), 30),
    (re.compile(r"sync|catch-?up", re.I), (AsyncType.SLACK, AsyncType.DOC), 15),
    (re.compile(r"weekly|bi-?weekly", re.I), (AsyncType.DOC, AsyncType.SLACK), 20),
)

PURPOSE_BOOSTS: dict[MeetingType, dict[AsyncType, int]] = {
    MeetingType.DECISION: {AsyncType.POLL: 30, AsyncType.DOC: 20},
    MeetingType.STATUS_UPDATE: {AsyncType.LOOM: 25, AsyncType.SLACK: 20, AsyncType.DOC: 10},
    MeetingType.STANDUP: {AsyncType.LOOM: 25, AsyncType.SLACK: 20, AsyncType.DOC: 10},
    MeetingType.REVIEW: {AsyncType.DOC: 25, AsyncType.LOOM: 10},
    MeetingType.DEMO: {AsyncType.LOOM: 30},
    MeetingType.ANNOUNCEMENT: {AsyncType.EMAIL: 30, AsyncType.LOOM: 15},
    MeetingType.PLANNING: {AsyncType.DOC: 20, AsyncType.POLL: 10},
    MeetingType.BRAINSTORM: {AsyncType.DOC: 15},
}

KEYWORD_BOOSTS: tuple[tuple[re.Pattern, AsyncType, int], ...] = (
    (re.compile(r"demo|walk|show|present", re.I), AsyncType.LOOM, 25),
    (re.compile(r"review|feedback|rfc", re.I), AsyncType.DOC, 25),
    (re.compile(r"decision|vote|choose|pick", re.I), AsyncType.POLL, 30),
)

BASE_SUITABILITY = 50

ALTERNATIVE_CATALOG: dict[AsyncType, tuple[str, str, str]] = {
    AsyncType.LOOM: (
        "Loom Video",
        "Record a video message that participants can watch anytime",
        "Demos, updates, walkthroughs",
    ),
    AsyncType.DOC: (
        "Shared Document",
        "Create a collaborative doc for comments and discussion",
        "Reviews, status updates, decisions with context",
    ),
    AsyncType.POLL: (
        "Quick Poll",
        "Get everyone's input asynchronously via a poll",
        "Decisions, preferences, quick votes",
    ),
    AsyncType.EMAIL: (
        "Email Thread",
        "Send a structured email for async discussion",
        "Announcements, FYI updates, formal communication",
    ),
    AsyncType.SLACK: (
        "Slack/Chat Thread",
        "Start a dedicated thread for discussion",
        "Quick syncs, daily updates, informal check-ins",
    ),
}

# Concrete alternatives offered to the user; OTHER only appears in records
SUGGESTED_TYPES: tuple[AsyncType, ...] = (
    AsyncType.LOOM,
    AsyncType.DOC,
    AsyncType.POLL,
    AsyncType.EMAIL,
    AsyncType.SLACK,
)

MESSAGE_PREFIXES = {
    NudgeUrgency.MILD: "Quick thought:",
    NudgeUrgency.MODERATE: "Worth considering:",
    NudgeUrgency.STRONG: "Recommendation:",
}


# ============================================================================
# TRIGGERS
# ============================================================================

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_count(value: Any, field: str, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise InvalidInputError(field, f"must be an integer of at least {minimum}, got {value!r}")


def _check_non_negative(value: Any, field: str, optional: bool = False) -> None:
    if value is None and optional:
        return
    if not _is_number(value) or value < 0:
        raise InvalidInputError(field, f"must be a non-negative number, got {value!r}")


def _validate_input(nudge_input: NudgeInput) -> None:
    if not isinstance(nudge_input, NudgeInput):
        raise InvalidInputError("nudge_input", f"expected NudgeInput, got {type(nudge_input).__name__}")
    if not isinstance(nudge_input.title, str):
        raise InvalidInputError("title", f"must be a string, got {nudge_input.title!r}")

    _check_count(nudge_input.duration_minutes, "duration_minutes", 1)
    _check_count(nudge_input.participant_count, "participant_count", 1)
    _check_non_negative(nudge_input.total_sacrifice_points, "total_sacrifice_points")
    _check_non_negative(nudge_input.max_individual_sacrifice, "max_individual_sacrifice")
    _check_non_negative(nudge_input.fairness_index, "fairness_index", optional=True)
    _check_non_negative(nudge_input.timezone_spread, "timezone_spread", optional=True)

    energy = nudge_input.average_energy
    if energy is not None and (not _is_number(energy) or not 0 <= energy <= 1):
        raise InvalidInputError("average_energy", f"must be between 0 and 1, got {energy!r}")

    if not isinstance(nudge_input.is_recurring, bool):
        raise InvalidInputError("is_recurring", f"must be a boolean, got {nudge_input.is_recurring!r}")
    for field, value, enum_class in (
        ("meeting_type", nudge_input.meeting_type, MeetingType),
        ("meeting_urgency", nudge_input.meeting_urgency, MeetingUrgency),
        ("organizer_preference", nudge_input.organizer_preference, OrganizerPreference),
    ):
        if not isinstance(value, enum_class):
            raise InvalidInputError(field, f"unknown value {value!r}")


def _match_title_pattern(title: str) -> Optional[tuple[re.Pattern, tuple[AsyncType, ...], int]]:
    for pattern in ASYNC_FRIENDLY_PATTERNS:
        if pattern[0].search(title):
            return pattern
    return None


def _collect_reasons(nudge_input: NudgeInput) -> list[NudgeReason]:
    reasons: list[NudgeReason] = []
    total_sacrifice = nudge_input.total_sacrifice_points

    if total_sacrifice >= SACRIFICE_GENTLE:
        if total_sacrifice >= SACRIFICE_STRONG:
            weight = 40
        elif total_sacrifice >= SACRIFICE_MODERATE:
            weight = 30
        else:
            weight = 20
        reasons.append(NudgeReason(
            type=ReasonType.HIGH_SACRIFICE,
            description="High sacrifice score across participants",
            weight=weight,
            details=f"Total: {total_sacrifice:g} points (threshold: {SACRIFICE_GENTLE})",
        ))

    if nudge_input.max_individual_sacrifice >= INDIVIDUAL_SACRIFICE:
        weight = min(25, round((nudge_input.max_individual_sacrifice - INDIVIDUAL_SACRIFICE + 1) * 5))
        reasons.append(NudgeReason(
            type=ReasonType.HIGH_SACRIFICE,
            description="One participant is sacrificing significantly more",
            weight=weight,
            details=f"Max individual: {nudge_input.max_individual_sacrifice:g} points",
        ))

    if nudge_input.fairness_index is not None and nudge_input.fairness_index > IMBALANCE_RATIO:
        reasons.append(NudgeReason(
            type=ReasonType.SACRIFICE_IMBALANCE,
            description="Sacrifice is unevenly distributed",
            weight=15,
            details=f"Worst-off participant carries {nudge_input.fairness_index:g}x the average",
        ))

    spread = nudge_input.timezone_spread
    if spread is not None and spread >= SPREAD_NOTABLE:
        if spread > SPREAD_EXTREME:
            weight = 35
        elif spread > SPREAD_HIGH:
            weight = 25
        else:
            weight = 10
        reasons.append(NudgeReason(
            type=ReasonType.TIMEZONE_SPREAD,
            description=f"{spread:g}-hour timezone spread",
            weight=weight,
            details=f"Spread: {spread:g}h makes finding good times hard",
        ))

    if nudge_input.average_energy is not None and nudge_input.average_energy < LOW_ENERGY:
        reasons.append(NudgeReason(
            type=ReasonType.LOW_ENERGY,
            description="Low cognitive energy at the meeting time",
            weight=round((1 - nudge_input.average_energy) * 30),
            details=f"Average energy: {round(nudge_input.average_energy * 100)}%",
        ))

    if nudge_input.meeting_urgency is MeetingUrgency.LOW:
        reasons.append(NudgeReason(
            type=ReasonType.LOW_URGENCY,
            description="Meeting purpose is not time-critical",
            weight=15,
            details="Low-urgency topics rarely need everyone live",
        ))

    matched = _match_title_pattern(nudge_input.title)
    if matched is not None:
        reasons.append(NudgeReason(
            type=ReasonType.PATTERN_MATCH,
            description=f'"{nudge_input.title}" matches an async-friendly pattern',
            weight=matched[2],
            details="This type of meeting often works well async",
        ))

    if nudge_input.duration_minutes <= DURATION_SHORT:
        reasons.append(NudgeReason(
            type=ReasonType.DURATION,
            description="Very short meeting could be a message",
            weight=20,
            details=f"{nudge_input.duration_minutes} min meeting could be a quick chat message",
        ))

    if nudge_input.is_recurring and nudge_input.duration_minutes >= DURATION_LONG:
        reasons.append(NudgeReason(
            type=ReasonType.RECURRING_COST,
            description="Recurring meeting amplifies sacrifice over time",
            weight=25,
            details=f"{nudge_input.duration_minutes} min x recurring = significant ongoing cost",
        ))

    if nudge_input.participant_count >= MANY_PARTICIPANTS:
        reasons.append(NudgeReason(
            type=ReasonType.PARTICIPANT_COUNT,
            description="Large group hard to schedule fairly",
            weight=15,
            details=f"{nudge_input.participant_count} people = complex coordination",
        ))

    return reasons


def _strength_floor(nudge_input: NudgeInput, reason_count: int) -> int:
    spread = nudge_input.timezone_spread or 0
    if spread > SPREAD_EXTREME:
        return STRONG_STRENGTH
    if spread > SPREAD_HIGH:
        return MODERATE_STRENGTH
    if spread >= SPREAD_NOTABLE and nudge_input.meeting_urgency is MeetingUrgency.LOW:
        return MODERATE_STRENGTH
    if reason_count >= MANY_TRIGGERS:
        return MODERATE_STRENGTH
    return 0


def urgency_for_strength(strength: int) -> NudgeUrgency:
    if strength >= STRONG_STRENGTH:
        return NudgeUrgency.STRONG
    if strength >= MODERATE_STRENGTH:
        return NudgeUrgency.MODERATE
    return NudgeUrgency.MILD


# ============================================================================
# ALTERNATIVES, HOURS SAVED, MESSAGE
# ============================================================================

def find_best_alternatives(nudge_input: NudgeInput) -> list[AsyncAlternative]:
    """Rank all five concrete async alternatives for this meeting.

    Always returns every suggested type, best first; ties keep catalog order.
    """
    scores = {async_type: BASE_SUITABILITY for async_type in SUGGESTED_TYPES}

    matched = _match_title_pattern(nudge_input.title)
    if matched is not None:
        for async_type in matched[1]:
            scores[async_type] += 30

    for async_type, boost in PURPOSE_BOOSTS.get(nudge_input.meeting_type, {}).items():
        scores[async_type] += boost

    for pattern, async_type, boost in KEYWORD_BOOSTS:
        if pattern.search(nudge_input.title):
            scores[async_type] += boost

    if nudge_input.duration_minutes <= DURATION_SHORT:
        scores[AsyncType.SLACK] += 20

    alternatives = []
    for async_type in SUGGESTED_TYPES:
        name, description, best_for = ALTERNATIVE_CATALOG[async_type]
        alternatives.append(AsyncAlternative(
            type=async_type,
            name=name,
            description=description,
            best_for=best_for,
            suitability_score=min(100, scores[async_type]),
        ))

    order = {async_type: index for index, async_type in enumerate(SUGGESTED_TYPES)}
    return sorted(alternatives, key=lambda a: (-a.suitability_score, order[a.type]))


def calculate_hours_saved(nudge_input: NudgeInput) -> float:
    """Person-hours saved if the meeting goes async.

    Meeting time for everyone plus a quarter hour of coordination overhead
    per person, scaled by 1.5 for recurring meetings.
    """
    base = nudge_input.duration_minutes / 60 * nudge_input.participant_count
    overhead = 0.25 * nudge_input.participant_count
    recurring = 1.5 if nudge_input.is_recurring else 1.0
    return round((base + overhead) * recurring, 1)


def _reason_sentence(reason: NudgeReason, nudge_input: NudgeInput) -> str:
    if reason.type is ReasonType.HIGH_SACRIFICE:
        return "This meeting has a high sacrifice score. Someone's waking up early or staying late."
    if reason.type is ReasonType.SACRIFICE_IMBALANCE:
        return "One participant is carrying most of the cost of this time."
    if reason.type is ReasonType.TIMEZONE_SPREAD:
        return f"With {nudge_input.timezone_spread:g} hours between participants, finding a fair time is tough."
    if reason.type is ReasonType.LOW_ENERGY:
        return "The meeting falls at a low-energy time. Consider async for better engagement."
    if reason.type is ReasonType.LOW_URGENCY:
        return "Nothing here needs an answer in real time."
    if reason.type is ReasonType.PATTERN_MATCH:
        return "This type of meeting often works well async."
    if reason.type is ReasonType.DURATION:
        return "Quick meetings can often be a chat message instead."
    if reason.type is ReasonType.RECURRING_COST:
        return "Recurring meetings compound the sacrifice over time."
    return "Large groups are hard to schedule fairly."


def generate_nudge_message(
    reasons: Sequence[NudgeReason],
    urgency: NudgeUrgency,
    nudge_input: NudgeInput,
    top_alternative: Optional[AsyncAlternative] = None,
) -> str:
    message = MESSAGE_PREFIXES[urgency] + " "
    if not reasons:
        return message + "This meeting might work well async."

    message += _reason_sentence(reasons[0], nudge_input)
    if top_alternative is not None:
        article = "an" if top_alternative.name[0] in "AEIOU" else "a"
        message += f" Try {article} {top_alternative.name} instead?"
    return message


# ============================================================================
# MAIN NUDGE LOGIC
# ============================================================================

def analyze_for_async_nudge(nudge_input: NudgeInput) -> NudgeResult:
    """
    Analyze a meeting and decide whether to nudge it to async.

    Args:
        nudge_input: Meeting parameters, sacrifice aggregates and spread

    Returns:
        Nudge recommendation with weighted reasons and all five alternatives
    """
    _validate_input(nudge_input)

    reasons = _collect_reasons(nudge_input)
    total_weight = sum(r.weight for r in reasons)

    modifier = PREFERENCE_MODIFIERS[nudge_input.organizer_preference]
    if nudge_input.meeting_type in SYNC_PREFERRED_TYPES:
        modifier *= SYNC_TYPE_MODIFIER

    weighted = min(100, round(total_weight * modifier))
    strength = max(weighted, _strength_floor(nudge_input, len(reasons)))
    urgency = urgency_for_strength(strength)

    # sorted() is stable, so equal weights keep trigger order
    reasons = sorted(reasons, key=lambda r: -r.weight)
    alternatives = find_best_alternatives(nudge_input)

    result = NudgeResult(
        should_nudge=strength >= NUDGE_STRENGTH,
        urgency=urgency,
        nudge_strength=strength,
        reasons=reasons,
        primary_reason=reasons[0] if reasons else None,
        suggested_alternatives=alternatives,
        estimated_hours_saved=calculate_hours_saved(nudge_input),
        message=generate_nudge_message(reasons, urgency, nudge_input, alternatives[0]),
    )

    logger.debug(
        "Async nudge evaluated",
        extra={
            "context": {
                "should_nudge": result.should_nudge,
                "strength": strength,
                "urgency": urgency.value,
                "reasons": len(reasons),
            }
        },
    )
    return result


# ============================================================================
# HOURS RECLAIMED TRACKING
# ============================================================================

def _async_hours(records: Sequence[NudgeRecord]) -> list[NudgeRecord]:
    return [r for r in records if r.decision is NudgeDecision.WENT_ASYNC]


def calculate_reclaimed_stats(
    current_records: Sequence[NudgeRecord],
    previous_records: Optional[Sequence[NudgeRecord]] = None,
) -> ReclaimedStats:
    """Hours reclaimed by meetings that went async, with period-over-period trend.

    When the previous period has no reclaimed hours there is no baseline: the
    trend is stable at 0% rather than undefined.
    """
    converted = _async_hours(current_records)
    total = sum(r.hours_saved or 0 for r in converted)
    count = len(converted)

    tallies = {async_type: [0, 0.0] for async_type in AsyncType}
    for record in converted:
        tally = tallies[record.async_type or AsyncType.OTHER]
        tally[0] += 1
        tally[1] += record.hours_saved or 0

    previous_total = sum(r.hours_saved or 0 for r in _async_hours(previous_records or []))
    has_baseline = previous_total > 0

    trend, trend_percent = Trend.STABLE, 0
    if has_baseline:
        trend_percent = round((total - previous_total) / previous_total * 100)
        if trend_percent > 10:
            trend = Trend.UP
        elif trend_percent < -10:
            trend = Trend.DOWN

    return ReclaimedStats(
        total_hours_reclaimed=round(total, 1),
        meetings_converted=count,
        average_hours_per_meeting=round(total / count, 1) if count else 0.0,
        by_type={t: TypeTally(count=c, hours=round(h, 1)) for t, (c, h) in tallies.items()},
        previous_hours_reclaimed=round(previous_total, 1),
        trend=trend,
        trend_percent=trend_percent,
        has_baseline=has_baseline,
    )
