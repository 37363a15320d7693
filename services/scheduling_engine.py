"""Scheduling engine - wires the scoring components per request."""

from datetime import datetime
from typing import Mapping, Optional, Sequence, Union

from models.entities import (
    Chronotype,
    GoldenWindowsQuery,
    GoldenWindowsReport,
    MeetingSacrifice,
    MeetingType,
    MeetingUrgency,
    NudgeInput,
    NudgeResult,
    OrganizerPreference,
    Participant,
)
from services.async_nudge import analyze_for_async_nudge
from services.best_times import DEFAULT_RANGE_MIN_QUALITY, find_best_time_ranges, find_best_times
from services.energy_curves import get_sharpness
from services.exceptions import InvalidInputError
from services.golden_windows import generate_heatmap_data
from services.logging_setup import bind_context, get_logger
from services.sacrifice_score import (
    calculate_meeting_total_sacrifice,
    calculate_score_for_timezone,
    parse_meeting_time,
)
from services.settings import Settings, get_settings
from services.timezone_service import calculate_timezone_spread, to_local
from services.validation import coerce_reference_date, validate_participant, validate_participants

logger = get_logger(__name__)


class SchedulingEngine:
    """Engine for finding golden windows and judging meeting times."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize scheduling engine."""
        self.settings = settings or get_settings()

    def build_participant(
        self,
        participant_id: str,
        email: str,
        timezone: str,
        name: Optional[str] = None,
        chronotype: Chronotype = Chronotype.NORMAL,
        energy_curve: Optional[Mapping[int, float]] = None,
        unavailable_hours: Optional[Sequence[int]] = None,
        work_start_hour: Optional[int] = None,
        work_end_hour: Optional[int] = None,
    ) -> Participant:
        """Create a validated participant, filling the work window from settings."""
        participant = Participant(
            id=participant_id,
            email=email,
            timezone=timezone,
            name=name,
            chronotype=chronotype,
            energy_curve=dict(energy_curve) if energy_curve is not None else None,
            unavailable_hours=frozenset(unavailable_hours) if unavailable_hours is not None else None,
            work_start_hour=self.settings.default_work_start_hour if work_start_hour is None else work_start_hour,
            work_end_hour=self.settings.default_work_end_hour if work_end_hour is None else work_end_hour,
        )
        return validate_participant(participant)

    def find_golden_windows(
        self,
        participants: Sequence[Participant],
        query: Optional[GoldenWindowsQuery] = None,
    ) -> GoldenWindowsReport:
        """
        Find the best meeting hours for a group.

        Args:
            participants: Meeting participants
            query: Ranking options; heatmap and ranges are only computed
                when requested

        Returns:
            Report with ranked best times and the optional extras
        """
        query = query or GoldenWindowsQuery()
        participants = validate_participants(participants)
        day = coerce_reference_date(query.reference_date)
        top_n = self.settings.default_top_n if query.top_n is None else query.top_n

        best_times = find_best_times(
            participants,
            top_n=top_n,
            require_all_available=query.require_all_available,
            min_quality_score=query.min_quality_score,
            reference_date=day,
        )

        heatmap = generate_heatmap_data(participants, day) if query.include_heatmap else None
        ranges = None
        if query.include_ranges:
            ranges = find_best_time_ranges(
                participants,
                min_quality_score=max(query.min_quality_score, DEFAULT_RANGE_MIN_QUALITY),
                require_all_available=query.require_all_available,
                reference_date=day,
            )

        log = bind_context(logger, participant_count=len(participants), reference_date=day)
        log.info("Golden windows found", extra={"context": {"best_times": len(best_times)}})
        if ranges is not None:
            log.debug("Best time ranges merged", extra={"context": {"ranges": len(ranges)}})

        return GoldenWindowsReport(
            reference_date=day,
            participant_count=len(participants),
            best_times=best_times,
            heatmap=heatmap,
            ranges=ranges,
        )

    def score_meeting(
        self,
        participants: Sequence[Participant],
        meeting_time_utc: Union[str, datetime],
        duration_minutes: int = 30,
        is_recurring: bool = False,
        organizer_id: Optional[str] = None,
        custom_multipliers: Optional[Mapping[str, float]] = None,
    ) -> MeetingSacrifice:
        """
        Score the sacrifice every participant makes for one meeting time.

        Args:
            participants: Meeting participants
            meeting_time_utc: Meeting start, ISO-8601 string or datetime
            duration_minutes: Meeting length
            is_recurring: Whether the meeting repeats
            organizer_id: Participant id of the organizer, who gets a discount
            custom_multipliers: Extra multiplier per participant id

        Returns:
            Per-participant scores in input order plus the aggregate
        """
        participants = validate_participants(participants)
        meeting_time = parse_meeting_time(meeting_time_utc)
        custom_multipliers = custom_multipliers or {}

        known_ids = {p.id for p in participants}
        if organizer_id is not None and organizer_id not in known_ids:
            raise InvalidInputError("organizer_id", f"{organizer_id!r} is not a participant")

        scores = [
            calculate_score_for_timezone(
                meeting_time,
                p.timezone,
                duration_minutes=duration_minutes,
                is_recurring=is_recurring,
                is_organizer=p.id == organizer_id,
                custom_multiplier=custom_multipliers.get(p.id, 1.0),
                participant_id=p.id,
            )
            for p in participants
        ]
        aggregate = calculate_meeting_total_sacrifice(scores)

        log = bind_context(logger, participant_count=len(participants), meeting_time_utc=meeting_time)
        log.info(
            "Meeting scored",
            extra={"context": {"total_points": aggregate.total_points, "imbalance": aggregate.imbalance_warning}},
        )
        return MeetingSacrifice(meeting_time_utc=meeting_time, scores=scores, aggregate=aggregate)

    def evaluate_async_nudge(
        self,
        participants: Sequence[Participant],
        meeting_time_utc: Union[str, datetime],
        title: str,
        duration_minutes: int = 30,
        meeting_type: MeetingType = MeetingType.OTHER,
        meeting_urgency: MeetingUrgency = MeetingUrgency.NORMAL,
        is_recurring: bool = False,
        organizer_id: Optional[str] = None,
        organizer_preference: OrganizerPreference = OrganizerPreference.NEUTRAL,
    ) -> NudgeResult:
        """
        Decide whether a proposed meeting should go async.

        Sacrifice, timezone spread and average energy are all measured at the
        proposed meeting time before the classifier runs.
        """
        sacrifice = self.score_meeting(
            participants,
            meeting_time_utc,
            duration_minutes=duration_minutes,
            is_recurring=is_recurring,
            organizer_id=organizer_id,
        )
        participants = validate_participants(participants)
        meeting_time = sacrifice.meeting_time_utc

        spread = calculate_timezone_spread([p.timezone for p in participants], meeting_time.date())
        energies = [get_sharpness(to_local(meeting_time, p.timezone).hour, p) for p in participants]

        nudge_input = NudgeInput(
            title=title,
            duration_minutes=duration_minutes,
            participant_count=len(participants),
            total_sacrifice_points=sacrifice.aggregate.total_points,
            max_individual_sacrifice=sacrifice.aggregate.max_points,
            fairness_index=sacrifice.aggregate.fairness_index,
            meeting_type=meeting_type,
            meeting_urgency=meeting_urgency,
            is_recurring=is_recurring,
            average_energy=round(sum(energies) / len(energies), 2),
            timezone_spread=spread,
            organizer_preference=organizer_preference,
        )
        return analyze_for_async_nudge(nudge_input)
