"""Chronotype energy curves.

Each curve is a fixed 24-entry table indexed by local hour giving cognitive
sharpness from 0 (asleep on your feet) to 1 (peak performance). The tables
are categorical on purpose: a rise from the overnight trough to a daytime
peak, a post-lunch dip, then a decline into the evening, with the peak moved
earlier for early birds and later for night owls.
"""

from typing import Mapping, Optional

from models.entities import Chronotype, Participant
from services.validation import validate_hour

EARLY_BIRD_CURVE: tuple[float, ...] = (
    0.15, 0.15, 0.20, 0.25, 0.40, 0.60,  # 00-05
    0.80, 0.90, 0.95, 0.95, 0.90, 0.85,  # 06-11
    0.75, 0.65, 0.60, 0.55, 0.50, 0.45,  # 12-17
    0.40, 0.35, 0.30, 0.25, 0.20, 0.15,  # 18-23
)

NORMAL_CURVE: tuple[float, ...] = (
    0.20, 0.15, 0.15, 0.15, 0.20, 0.35,  # 00-05 night
    0.55, 0.70, 0.85, 0.90, 0.95, 0.95,  # 06-11 ramp-up and morning peak
    0.85, 0.65, 0.70, 0.80, 0.85, 0.75,  # 12-17 post-lunch dip and recovery
    0.65, 0.55, 0.45, 0.35, 0.30, 0.25,  # 18-23 wind-down
)

NIGHT_OWL_CURVE: tuple[float, ...] = (
    0.40, 0.35, 0.30, 0.25, 0.20, 0.20,  # 00-05
    0.25, 0.35, 0.50, 0.60, 0.70, 0.75,  # 06-11
    0.80, 0.75, 0.80, 0.85, 0.90, 0.95,  # 12-17
    0.95, 0.90, 0.85, 0.80, 0.70, 0.55,  # 18-23
)

CHRONOTYPE_CURVES: dict[Chronotype, tuple[float, ...]] = {
    Chronotype.EARLY_BIRD: EARLY_BIRD_CURVE,
    Chronotype.NORMAL: NORMAL_CURVE,
    Chronotype.NIGHT_OWL: NIGHT_OWL_CURVE,
    Chronotype.CUSTOM: NORMAL_CURVE,
}

# Local hours each chronotype is normally asleep
CHRONOTYPE_SLEEP_HOURS: dict[Chronotype, frozenset[int]] = {
    Chronotype.EARLY_BIRD: frozenset({21, 22, 23, 0, 1, 2, 3, 4}),
    Chronotype.NORMAL: frozenset({0, 1, 2, 3, 4, 5}),
    Chronotype.NIGHT_OWL: frozenset({3, 4, 5, 6, 7, 8}),
    Chronotype.CUSTOM: frozenset({0, 1, 2, 3, 4, 5}),
}


def get_energy_curve(
    chronotype: Chronotype,
    overrides: Optional[Mapping[int, float]] = None,
) -> tuple[float, ...]:
    """Full 24-hour curve for a chronotype with optional per-hour overrides.

    Hours missing from ``overrides`` keep the chronotype's base value; a
    CUSTOM chronotype uses the normal curve as its base.
    """
    base = CHRONOTYPE_CURVES[chronotype]
    if not overrides:
        return base
    return tuple(overrides.get(hour, base[hour]) for hour in range(24))


def participant_curve(participant: Participant) -> tuple[float, ...]:
    return get_energy_curve(participant.chronotype, participant.energy_curve)


def get_sharpness(local_hour: int, participant: Participant) -> float:
    """Sharpness (0-1) of ``participant`` at ``local_hour``."""
    local_hour = validate_hour(local_hour, "local_hour")
    if participant.energy_curve and local_hour in participant.energy_curve:
        return float(participant.energy_curve[local_hour])
    return CHRONOTYPE_CURVES[participant.chronotype][local_hour]


def default_unavailable_hours(chronotype: Chronotype) -> frozenset[int]:
    return CHRONOTYPE_SLEEP_HOURS[chronotype]


def peak_hours(curve: tuple[float, ...]) -> list[int]:
    """Local hours at which ``curve`` reaches its maximum."""
    top = max(curve)
    return [hour for hour, value in enumerate(curve) if value == top]
