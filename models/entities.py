"""Domain models for the Golden Windows scheduling core."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Mapping, Optional


# ============================================================================
# ENUMERATIONS
# ============================================================================

class Chronotype(str, Enum):
    """Circadian profile of a participant."""
    EARLY_BIRD = "early_bird"
    NORMAL = "normal"
    NIGHT_OWL = "night_owl"
    CUSTOM = "custom"


class Recommendation(str, Enum):
    """Qualitative label for a candidate slot."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class SacrificeCategory(str, Enum):
    """Ordinal pain buckets, best to worst."""
    AWAKE_FINE = "awake_fine"
    INCONVENIENT = "inconvenient"
    BAD = "bad"
    TERRIBLE = "terrible"

    @property
    def ordinal(self) -> int:
        return list(SacrificeCategory).index(self)


class PainBand(str, Enum):
    """Named band of the local day a meeting lands in."""
    GOLDEN = "golden"
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    EARLY_MORNING = "early_morning"
    EVENING = "evening"
    LATE_EVENING = "late_evening"
    NIGHT = "night"
    LATE_NIGHT = "late_night"
    GRAVEYARD = "graveyard"


class ImpactLevel(str, Enum):
    MINIMAL = "minimal"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    SEVERE = "severe"
    EXTREME = "extreme"


class FairnessStatus(str, Enum):
    BALANCED = "balanced"
    ABOVE_AVERAGE = "above_average"
    HIGH_SACRIFICE = "high_sacrifice"
    CRITICAL = "critical"


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class AsyncType(str, Enum):
    """Asynchronous replacement for a meeting."""
    LOOM = "loom"
    DOC = "doc"
    POLL = "poll"
    EMAIL = "email"
    SLACK = "slack"
    OTHER = "other"


class NudgeUrgency(str, Enum):
    MILD = "mild"
    MODERATE = "moderate"
    STRONG = "strong"


class ReasonType(str, Enum):
    HIGH_SACRIFICE = "high_sacrifice"
    SACRIFICE_IMBALANCE = "sacrifice_imbalance"
    TIMEZONE_SPREAD = "timezone_spread"
    LOW_ENERGY = "low_energy"
    LOW_URGENCY = "low_urgency"
    PATTERN_MATCH = "pattern_match"
    DURATION = "duration"
    RECURRING_COST = "recurring_cost"
    PARTICIPANT_COUNT = "participant_count"


class MeetingType(str, Enum):
    """Stated purpose of a meeting."""
    STANDUP = "standup"
    STATUS_UPDATE = "status_update"
    PLANNING = "planning"
    ONE_ON_ONE = "1on1"
    REVIEW = "review"
    BRAINSTORM = "brainstorm"
    DECISION = "decision"
    DEMO = "demo"
    ANNOUNCEMENT = "announcement"
    OTHER = "other"


class MeetingUrgency(str, Enum):
    """How time-critical the meeting's purpose is."""
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class OrganizerPreference(str, Enum):
    PREFER_ASYNC = "prefer_async"
    NEUTRAL = "neutral"
    PREFER_SYNC = "prefer_sync"


class NudgeDecision(str, Enum):
    WENT_ASYNC = "went_async"
    SCHEDULED_ANYWAY = "scheduled_anyway"


# ============================================================================
# PARTICIPANTS AND HOURLY PROFILES
# ============================================================================

@dataclass(frozen=True)
class Participant:
    """A meeting participant with timezone and energy preferences."""
    id: str
    email: str
    timezone: str  # IANA identifier, e.g. "Asia/Kolkata"
    name: Optional[str] = None
    chronotype: Chronotype = Chronotype.NORMAL
    energy_curve: Optional[Mapping[int, float]] = None  # local hour -> sharpness 0-1
    unavailable_hours: Optional[frozenset[int]] = None  # local hours
    work_start_hour: int = 9
    work_end_hour: int = 17  # exclusive, 24 means midnight

    @property
    def display_name(self) -> str:
        return self.name or self.email


@dataclass(frozen=True)
class HourProfile:
    """Sharpness and availability of one participant at one local hour."""
    local_hour: int
    sharpness: float
    is_available: bool


@dataclass(frozen=True)
class ParticipantWindow:
    """What a given UTC hour looks like for one participant."""
    participant: Participant
    local_start: datetime
    local_end: datetime
    local_hour: int
    sharpness: float
    is_available: bool


# ============================================================================
# OVERLAP WINDOWS AND RANKED SLOTS
# ============================================================================

@dataclass(frozen=True)
class OverlapWindow:
    """One candidate UTC hour scored across all participants."""
    utc_start: datetime
    utc_end: datetime
    utc_hour: int
    duration_minutes: int
    participants: tuple[ParticipantWindow, ...]
    energy_score: float  # mean sharpness, 0-100
    quality_score: float  # availability-weighted sharpness, 0-100
    golden_score: float  # quality with all-available boost, 0-100
    all_available: bool
    available_count: int

    @property
    def participant_count(self) -> int:
        return len(self.participants)


@dataclass(frozen=True)
class BestTimeSlot:
    """A ranked overlap window with a recommendation."""
    window: OverlapWindow
    rank: int
    recommendation: Recommendation
    summary: str

    @property
    def utc_hour(self) -> int:
        return self.window.utc_hour

    @property
    def utc_start(self) -> datetime:
        return self.window.utc_start

    @property
    def golden_score(self) -> float:
        return self.window.golden_score

    @property
    def quality_score(self) -> float:
        return self.window.quality_score

    @property
    def all_available(self) -> bool:
        return self.window.all_available


@dataclass(frozen=True)
class BestTimeRange:
    """Consecutive qualifying UTC hours merged into one range."""
    start_hour: int
    end_hour: int  # exclusive, may be 24
    duration_hours: int
    avg_quality_score: float
    recommendation: Recommendation


@dataclass(frozen=True)
class HeatmapCell:
    utc_hour: int
    participant_id: str
    local_hour: int
    sharpness: float
    is_available: bool
    intensity: int  # 0-100, 0 when unavailable


@dataclass(frozen=True)
class HeatmapRow:
    participant_id: str
    participant_name: str
    timezone: str
    utc_offset: str
    cells: tuple[HeatmapCell, ...]


@dataclass(frozen=True)
class CombinedHourScore:
    utc_hour: int
    golden_score: float
    quality_score: float
    all_available: bool


@dataclass(frozen=True)
class HeatmapData:
    """24 x N grid of hourly profiles plus one combined row."""
    hours: tuple[int, ...]
    rows: tuple[HeatmapRow, ...]
    combined_scores: tuple[CombinedHourScore, ...]


@dataclass(frozen=True)
class GoldenWindowsQuery:
    """Query parameters for a golden windows request."""
    top_n: Optional[int] = None  # None -> configured default
    require_all_available: bool = True
    min_quality_score: float = 0.0
    include_heatmap: bool = False
    include_ranges: bool = False
    reference_date: Optional[date] = None  # None -> today (UTC)


@dataclass(frozen=True)
class GoldenWindowsReport:
    reference_date: date
    participant_count: int
    best_times: list[BestTimeSlot]
    heatmap: Optional[HeatmapData] = None
    ranges: Optional[list[BestTimeRange]] = None


# ============================================================================
# SACRIFICE SCORE
# ============================================================================

@dataclass(frozen=True)
class PainWeight:
    """Base pain of meeting at one local hour."""
    base_points: float
    category: SacrificeCategory
    impact_level: ImpactLevel
    hour_description: str
    band: PainBand


@dataclass(frozen=True)
class MultiplierBreakdown:
    duration: float
    recurring: float
    organizer: float
    custom: float
    total: float


@dataclass(frozen=True)
class SacrificeScoreResult:
    """Sacrifice of one participant for one candidate meeting instant."""
    points: float
    base_points: float
    local_hour: int
    category: SacrificeCategory
    impact_level: ImpactLevel
    multipliers: MultiplierBreakdown
    breakdown: str
    participant_id: Optional[str] = None
    timezone: Optional[str] = None
    band: Optional[PainBand] = None


@dataclass(frozen=True)
class AggregateSacrifice:
    """Sacrifice statistics across all participants of one meeting slot."""
    total_points: float
    average_points: float
    max_points: float
    fairness_index: float  # max / average, 1.0 is perfectly even
    coefficient_of_variation: float
    imbalance_warning: bool
    participant_count: int
    worst_participant_index: int
    imbalance_message: Optional[str] = None


@dataclass(frozen=True)
class MeetingSacrifice:
    meeting_time_utc: datetime
    scores: list[SacrificeScoreResult]
    aggregate: AggregateSacrifice


@dataclass(frozen=True)
class SacrificeRecord:
    """A stored sacrifice score used for fairness tracking."""
    user_id: str
    points: float
    category: SacrificeCategory
    meeting_slot_id: str
    calculated_at: Optional[datetime] = None
    band: Optional[PainBand] = None


@dataclass(frozen=True)
class WorstSlotCount:
    """How often a user drew a painful slot, by category and by night-time band."""
    terrible: int = 0
    bad: int = 0
    inconvenient: int = 0
    graveyard: int = 0
    late_night: int = 0
    night: int = 0
    early_morning: int = 0


@dataclass(frozen=True)
class LeaderboardEntry:
    user_id: str
    user_name: Optional[str]
    user_email: str
    timezone: str
    total_points: float
    meeting_count: int
    average_per_meeting: float
    worst_slot_count: WorstSlotCount
    trend: Trend
    trend_percent: int
    rank: int
    percent_of_total: int
    fairness_status: FairnessStatus


@dataclass
class ScoreHistoryEntry:
    day: date
    points: float = 0.0
    meeting_count: int = 0
    categories: dict[SacrificeCategory, int] = field(default_factory=dict)


# ============================================================================
# ASYNC NUDGE
# ============================================================================

@dataclass(frozen=True)
class NudgeInput:
    """Meeting parameters analysed by the async nudge."""
    title: str
    duration_minutes: int
    participant_count: int
    total_sacrifice_points: float = 0.0
    max_individual_sacrifice: float = 0.0
    fairness_index: Optional[float] = None
    meeting_type: MeetingType = MeetingType.OTHER
    meeting_urgency: MeetingUrgency = MeetingUrgency.NORMAL
    is_recurring: bool = False
    average_energy: Optional[float] = None  # 0-1
    timezone_spread: Optional[float] = None  # hours
    organizer_preference: OrganizerPreference = OrganizerPreference.NEUTRAL


@dataclass(frozen=True)
class NudgeReason:
    type: ReasonType
    description: str
    weight: int
    details: Optional[str] = None


@dataclass(frozen=True)
class AsyncAlternative:
    type: AsyncType
    name: str
    description: str
    best_for: str
    suitability_score: int


@dataclass(frozen=True)
class NudgeResult:
    should_nudge: bool
    urgency: NudgeUrgency
    nudge_strength: int  # 0-100
    reasons: list[NudgeReason]
    suggested_alternatives: list[AsyncAlternative]
    estimated_hours_saved: float
    message: str
    primary_reason: Optional[NudgeReason] = None


@dataclass(frozen=True)
class NudgeRecord:
    """A recorded outcome of a nudge."""
    decision: NudgeDecision
    hours_saved: float
    async_type: Optional[AsyncType] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class TypeTally:
    count: int = 0
    hours: float = 0.0


@dataclass(frozen=True)
class ReclaimedStats:
    total_hours_reclaimed: float
    meetings_converted: int
    average_hours_per_meeting: float
    by_type: dict[AsyncType, TypeTally]
    previous_hours_reclaimed: float
    trend: Trend
    trend_percent: int
    has_baseline: bool
