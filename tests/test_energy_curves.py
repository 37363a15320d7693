"""Tests for chronotype energy curves."""

import pytest

from models.entities import Chronotype, Participant
from services.energy_curves import (
    CHRONOTYPE_CURVES,
    default_unavailable_hours,
    get_energy_curve,
    get_sharpness,
    participant_curve,
    peak_hours,
)
from services.exceptions import InvalidInputError


class TestCurves:
    """Test the built-in tables."""

    @pytest.mark.parametrize("chronotype", list(Chronotype))
    def test_every_curve_has_24_values_in_range(self, chronotype: Chronotype):
        curve = CHRONOTYPE_CURVES[chronotype]
        assert len(curve) == 24
        assert all(0 <= value <= 1 for value in curve)

    def test_peaks_follow_chronotype(self):
        """Early birds peak before normal sleepers, night owls after."""
        early = min(peak_hours(CHRONOTYPE_CURVES[Chronotype.EARLY_BIRD]))
        normal = min(peak_hours(CHRONOTYPE_CURVES[Chronotype.NORMAL]))
        owl = min(peak_hours(CHRONOTYPE_CURVES[Chronotype.NIGHT_OWL]))
        assert early < normal < owl

    def test_normal_morning_peak(self):
        assert peak_hours(CHRONOTYPE_CURVES[Chronotype.NORMAL]) == [10, 11]

    def test_custom_uses_normal_base(self):
        assert get_energy_curve(Chronotype.CUSTOM) == CHRONOTYPE_CURVES[Chronotype.NORMAL]


class TestOverrides:
    """Test per-participant overrides."""

    def test_override_replaces_only_given_hours(self):
        curve = get_energy_curve(Chronotype.NIGHT_OWL, {9: 1.0})
        assert curve[9] == 1.0
        assert curve[10] == CHRONOTYPE_CURVES[Chronotype.NIGHT_OWL][10]

    def test_sharpness_uses_override(self):
        participant = Participant(id="p", email="p@example.com", timezone="UTC", energy_curve={14: 0.1})
        assert get_sharpness(14, participant) == 0.1
        assert get_sharpness(10, participant) == 0.95
        assert participant_curve(participant)[14] == 0.1

    def test_sharpness_rejects_bad_hour(self):
        participant = Participant(id="p", email="p@example.com", timezone="UTC")
        with pytest.raises(InvalidInputError):
            get_sharpness(24, participant)


class TestSleepHours:
    """Test default unavailable hours per chronotype."""

    def test_normal_sleeps_midnight_to_six(self):
        assert default_unavailable_hours(Chronotype.NORMAL) == frozenset(range(6))

    def test_night_owl_sleeps_late(self):
        assert 8 in default_unavailable_hours(Chronotype.NIGHT_OWL)
        assert 0 not in default_unavailable_hours(Chronotype.NIGHT_OWL)
