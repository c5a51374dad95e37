"""Core data structures for draws, combinations and positional statistics."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple


class ComboType(str, Enum):
    """Classification by number of distinct digits."""
    SINGLE = "single"
    DOUBLE = "double"
    TRIPLE = "triple"


class BetType(str, Enum):
    """Bet type enumeration."""
    STRAIGHT = "straight"
    BOX = "box"


class Trend(str, Enum):
    """Direction of a skip or value series over time."""
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"
    CYCLICAL = "cyclical"


class DrawValidationError(ValueError):
    """Raised when raw draw input has the wrong width or non-numeric digits."""


class DrawOrderError(ValueError):
    """Raised when a draw is appended out of chronological order."""


@dataclass(frozen=True)
class Draw:
    """One historical draw: a date, an optional session and its digits."""
    draw_date: date
    digits: Tuple[int, ...]
    session: str = ""

    def __post_init__(self):
        if not isinstance(self.digits, tuple):
            object.__setattr__(self, 'digits', tuple(self.digits))

    @property
    def width(self) -> int:
        return len(self.digits)

    @property
    def straight(self) -> str:
        return ''.join(str(d) for d in self.digits)


@dataclass(frozen=True)
class Combination:
    """A possible outcome and its derived attributes."""
    straight: str
    digits: Tuple[int, ...]
    box: str
    sum: int
    root_sum: int
    sum_last_digit: int
    vtrac: str
    mirror: str
    combo_type: ComboType

    @property
    def is_single(self) -> bool:
        return self.combo_type == ComboType.SINGLE

    @property
    def is_double(self) -> bool:
        return self.combo_type == ComboType.DOUBLE

    @property
    def is_triple(self) -> bool:
        return self.combo_type == ComboType.TRIPLE


@dataclass
class GroupSummary:
    """Combinations sharing one attribute value."""
    key: object
    straights: List[str]
    boxes: List[str]
    count: int
    probability: float
    odds: float


@dataclass
class BetOdds:
    """Odds for one combination under one bet type."""
    straight: str
    bet_type: BetType
    permutations: int
    odds: int
    probability: float


@dataclass
class SkipStat:
    """Appearance and gap statistics shared by digit and pattern trackers."""
    total_appearances: int
    last_seen_index: Optional[int]
    last_seen_date: Optional[date]
    current_skip: int
    skip_history: List[int]
    average_gap: float
    median_gap: float
    mode_gap: int
    max_gap: int
    min_gap: int
    variance: float
    std_dev: float
    trend: Trend


@dataclass
class ColumnStat(SkipStat):
    """Statistics for one digit value at one position."""
    position: int
    digit: int
    is_hot: bool
    is_cold: bool


@dataclass
class PatternStat(SkipStat):
    """Statistics for one pattern; position is None for draw-wide patterns."""
    pattern: str
    position: Optional[int]


@dataclass
class ColumnSummary:
    """Aggregate skip statistics for a whole position."""
    position: int
    total_draws: int = 0
    unique_numbers: int = 0
    most_frequent_number: Optional[int] = None
    least_frequent_number: Optional[int] = None
    average_skips: float = 0.0
    max_skips: int = 0
    min_skips: int = 0
    median_skips: float = 0.0
    mode_skips: int = 0
    standard_deviation: float = 0.0
    variance: float = 0.0
    range: int = 0


@dataclass
class ColumnAnalysis:
    """Full analysis of one position."""
    position: int
    number_stats: Dict[int, ColumnStat] = field(default_factory=dict)
    pattern_stats: Dict[str, PatternStat] = field(default_factory=dict)
    summary: Optional[ColumnSummary] = None


@dataclass
class ColumnTrend:
    """Regression trend of the digit values drawn at one position."""
    position: int
    trend: Trend
    confidence: float
    slope: float
    r_squared: float
    period: Optional[int] = None


@dataclass
class CorrelationResult:
    """Correlation between the series of two positions."""
    position_a: int
    position_b: int
    coefficient: float
    significance: float
    sample_size: int
    strength: str = "weak"
    series: str = "digit"


@dataclass
class PredictionAccuracy:
    """Hit rate of predicted digits against actual draws at one position."""
    position: int
    total_predictions: int
    correct_predictions: int
    accuracy: float
    recent_accuracy: float
    trend: str
    has_data: bool = True

    @classmethod
    def no_data(cls, position: int) -> 'PredictionAccuracy':
        return cls(
            position=position,
            total_predictions=0,
            correct_predictions=0,
            accuracy=0.0,
            recent_accuracy=0.0,
            trend='stable',
            has_data=False
        )


@dataclass
class ImportSummary:
    """Outcome of a best-effort import."""
    imported: int = 0
    skipped: int = 0
    errors: int = 0
    success: bool = True
    messages: List[str] = field(default_factory=list)
