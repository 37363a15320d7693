"""Tests for the async nudge classifier and reclaimed-hours tracking."""

import pytest

from models.entities import (
    AsyncType,
    MeetingType,
    MeetingUrgency,
    NudgeDecision,
    NudgeInput,
    NudgeRecord,
    NudgeUrgency,
    OrganizerPreference,
    ReasonType,
    Trend,
)
from services.async_nudge import (
    SUGGESTED_TYPES,
    analyze_for_async_nudge,
    calculate_hours_saved,
    calculate_reclaimed_stats,
    find_best_alternatives,
    urgency_for_strength,
)
from services.exceptions import InvalidInputError


def make_input(**kwargs) -> NudgeInput:
    defaults = dict(title="Architecture deep dive", duration_minutes=45, participant_count=3)
    defaults.update(kwargs)
    return NudgeInput(**defaults)


class TestAnalyze:
    """Test trigger weighting and strength."""

    def test_wide_spread_forces_strong_nudge(self):
        """New York to Tokyo is 14 hours in January."""
        result = analyze_for_async_nudge(make_input(title="Team sync", duration_minutes=30, timezone_spread=14))
        assert result.should_nudge is True
        assert result.urgency is NudgeUrgency.STRONG
        assert result.nudge_strength >= 70
        assert len(result.suggested_alternatives) == 5
        assert {a.type for a in result.suggested_alternatives} == set(SUGGESTED_TYPES)
        assert result.primary_reason.type is ReasonType.TIMEZONE_SPREAD
        assert result.message.startswith("Recommendation:")

    def test_no_triggers_no_nudge(self):
        result = analyze_for_async_nudge(make_input())
        assert result.should_nudge is False
        assert result.nudge_strength == 0
        assert result.urgency is NudgeUrgency.MILD
        assert result.reasons == []
        assert result.primary_reason is None
        assert result.message == "Quick thought: This meeting might work well async."

    def test_sacrifice_tiers(self):
        weights = [
            analyze_for_async_nudge(make_input(total_sacrifice_points=points)).nudge_strength
            for points in (14, 15, 25, 40)
        ]
        assert weights == [0, 20, 30, 40]

    def test_individual_sacrifice_weight(self):
        assert analyze_for_async_nudge(make_input(max_individual_sacrifice=6)).nudge_strength == 5
        assert analyze_for_async_nudge(make_input(max_individual_sacrifice=10)).nudge_strength == 25

    def test_low_energy_weight(self):
        result = analyze_for_async_nudge(make_input(average_energy=0.3))
        assert result.reasons[0].type is ReasonType.LOW_ENERGY
        assert result.reasons[0].weight == 21

    def test_organizer_preference_scales_strength(self):
        neutral = analyze_for_async_nudge(make_input(total_sacrifice_points=40))
        prefer_sync = analyze_for_async_nudge(
            make_input(total_sacrifice_points=40, organizer_preference=OrganizerPreference.PREFER_SYNC)
        )
        prefer_async = analyze_for_async_nudge(
            make_input(total_sacrifice_points=40, organizer_preference=OrganizerPreference.PREFER_ASYNC)
        )
        assert (prefer_sync.nudge_strength, neutral.nudge_strength, prefer_async.nudge_strength) == (24, 40, 48)
        assert prefer_sync.should_nudge is False
        assert prefer_async.urgency is NudgeUrgency.MODERATE

    def test_sync_preferred_meeting_type_halves_strength(self):
        result = analyze_for_async_nudge(make_input(total_sacrifice_points=40, meeting_type=MeetingType.BRAINSTORM))
        assert result.nudge_strength == 20

    def test_spread_floor(self):
        """A 9-hour spread alone is worth 25 but is floored to moderate."""
        result = analyze_for_async_nudge(make_input(timezone_spread=9))
        assert result.nudge_strength == 45
        assert result.urgency is NudgeUrgency.MODERATE

    def test_low_urgency_with_notable_spread_floor(self):
        result = analyze_for_async_nudge(make_input(timezone_spread=5, meeting_urgency=MeetingUrgency.LOW))
        assert result.nudge_strength == 45

    def test_many_triggers_floor(self):
        result = analyze_for_async_nudge(
            make_input(
                total_sacrifice_points=15,
                duration_minutes=15,
                participant_count=6,
                meeting_urgency=MeetingUrgency.LOW,
                organizer_preference=OrganizerPreference.PREFER_SYNC,
            )
        )
        assert len(result.reasons) == 4
        assert result.nudge_strength == 45

    def test_strength_capped_at_100(self):
        result = analyze_for_async_nudge(
            make_input(
                title="Daily standup",
                total_sacrifice_points=50,
                max_individual_sacrifice=10,
                timezone_spread=12,
                duration_minutes=15,
                participant_count=8,
            )
        )
        assert result.nudge_strength == 100

    def test_reasons_sorted_by_weight(self):
        result = analyze_for_async_nudge(make_input(title="Weekly update", timezone_spread=14, participant_count=7))
        weights = [r.weight for r in result.reasons]
        assert weights == sorted(weights, reverse=True)

    def test_recurring_long_meeting(self):
        result = analyze_for_async_nudge(make_input(duration_minutes=60, is_recurring=True))
        assert [r.type for r in result.reasons] == [ReasonType.RECURRING_COST]

    @pytest.mark.parametrize(
        "field,kwargs",
        [
            ("duration_minutes", {"duration_minutes": 0}),
            ("participant_count", {"participant_count": 0}),
            ("average_energy", {"average_energy": 1.5}),
            ("timezone_spread", {"timezone_spread": -1}),
            ("duration_minutes", {"duration_minutes": "30"}),
            ("duration_minutes", {"duration_minutes": True}),
            ("participant_count", {"participant_count": 2.5}),
            ("title", {"title": None}),
            ("total_sacrifice_points", {"total_sacrifice_points": "high"}),
            ("max_individual_sacrifice", {"max_individual_sacrifice": -3}),
            ("fairness_index", {"fairness_index": "2"}),
            ("timezone_spread", {"timezone_spread": "14"}),
            ("average_energy", {"average_energy": "0.4"}),
            ("is_recurring", {"is_recurring": "yes"}),
            ("meeting_type", {"meeting_type": "standup"}),
            ("meeting_urgency", {"meeting_urgency": None}),
            ("organizer_preference", {"organizer_preference": "prefer_async"}),
        ],
    )
    def test_invalid_input(self, field: str, kwargs: dict):
        with pytest.raises(InvalidInputError) as exc_info:
            analyze_for_async_nudge(make_input(**kwargs))
        assert exc_info.value.field == field

    @pytest.mark.parametrize(
        "strength,urgency",
        [(0, NudgeUrgency.MILD), (44, NudgeUrgency.MILD), (45, NudgeUrgency.MODERATE), (70, NudgeUrgency.STRONG)],
    )
    def test_urgency_bands(self, strength: int, urgency: NudgeUrgency):
        assert urgency_for_strength(strength) is urgency


class TestAlternatives:
    """Test alternative ranking."""

    def test_ties_keep_catalog_order(self):
        alternatives = find_best_alternatives(make_input())
        assert [a.type for a in alternatives] == list(SUGGESTED_TYPES)
        assert all(a.suitability_score == 50 for a in alternatives)

    def test_demo_prefers_video(self):
        alternatives = find_best_alternatives(make_input(title="Product demo", meeting_type=MeetingType.DEMO))
        assert alternatives[0].type is AsyncType.LOOM
        assert alternatives[0].suitability_score == 100

    def test_decision_prefers_poll(self):
        alternatives = find_best_alternatives(make_input(title="Pick a vendor", meeting_type=MeetingType.DECISION))
        assert alternatives[0].type is AsyncType.POLL

    def test_short_meeting_prefers_chat(self):
        alternatives = find_best_alternatives(make_input(duration_minutes=10))
        assert alternatives[0].type is AsyncType.SLACK

    def test_other_never_suggested(self):
        alternatives = find_best_alternatives(make_input(title="FYI: announcement"))
        assert AsyncType.OTHER not in {a.type for a in alternatives}


class TestHoursSaved:
    """Test person-hours estimate."""

    def test_one_off(self):
        assert calculate_hours_saved(make_input(duration_minutes=30, participant_count=2)) == 1.5

    def test_recurring(self):
        assert calculate_hours_saved(make_input(duration_minutes=60, participant_count=4, is_recurring=True)) == 7.5


def async_record(hours: float, async_type=None) -> NudgeRecord:
    return NudgeRecord(decision=NudgeDecision.WENT_ASYNC, hours_saved=hours, async_type=async_type)


class TestReclaimedStats:
    """Test hours reclaimed tracking."""

    def test_empty_periods_report_zero(self):
        stats = calculate_reclaimed_stats([], [])
        assert stats.total_hours_reclaimed == 0
        assert stats.meetings_converted == 0
        assert stats.average_hours_per_meeting == 0
        assert stats.trend is Trend.STABLE
        assert stats.trend_percent == 0
        assert stats.has_baseline is False
        assert set(stats.by_type) == set(AsyncType)

    def test_only_async_decisions_count(self):
        current = [
            async_record(2.0, AsyncType.LOOM),
            async_record(1.0),
            NudgeRecord(decision=NudgeDecision.SCHEDULED_ANYWAY, hours_saved=5.0, async_type=AsyncType.DOC),
        ]
        stats = calculate_reclaimed_stats(current, [async_record(2.0)])
        assert stats.total_hours_reclaimed == 3.0
        assert stats.meetings_converted == 2
        assert stats.average_hours_per_meeting == 1.5
        assert stats.by_type[AsyncType.LOOM].hours == 2.0
        assert stats.by_type[AsyncType.OTHER].count == 1
        assert stats.by_type[AsyncType.DOC].count == 0
        assert (stats.trend, stats.trend_percent) == (Trend.UP, 50)
        assert stats.previous_hours_reclaimed == 2.0

    def test_downward_trend(self):
        stats = calculate_reclaimed_stats([async_record(1.0)], [async_record(2.0)])
        assert (stats.trend, stats.trend_percent) == (Trend.DOWN, -50)

    def test_small_change_is_stable(self):
        stats = calculate_reclaimed_stats([async_record(2.1)], [async_record(2.0)])
        assert stats.trend is Trend.STABLE
        assert stats.has_baseline is True

    def test_no_baseline_with_current_hours(self):
        stats = calculate_reclaimed_stats([async_record(4.0)])
        assert (stats.trend, stats.trend_percent, stats.has_baseline) == (Trend.STABLE, 0, False)
