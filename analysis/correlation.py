"""Cross-position correlation and prediction accuracy tracking."""

from collections import deque
from itertools import combinations
from typing import TYPE_CHECKING, Deque, Dict, List, Optional, Sequence
import logging

from analysis.statistics import correlation_significance, correlation_strength, pearson
from models.draw_models import CorrelationResult, PredictionAccuracy
from utils.helpers import safe_divide

if TYPE_CHECKING:
    from analysis.columns import ColumnAnalyzer

logger = logging.getLogger(__name__)

SERIES_KINDS = ('digit', 'skip')


def score_predictions(position: int, predicted_values: Sequence[int], actual_values: Sequence[int],
                      recent_window: int = 10, trend_margin: float = 0.05) -> PredictionAccuracy:
    """Exact-match accuracy overall and over the most recent predictions."""
    if not actual_values or len(predicted_values) != len(actual_values):
        if len(predicted_values) != len(actual_values):
            logger.warning(
                f"Position {position}: {len(predicted_values)} predictions for "
                f"{len(actual_values)} actual draws, nothing scored"
            )
        return PredictionAccuracy.no_data(position)

    hits = [p == a for p, a in zip(predicted_values, actual_values)]
    correct = sum(hits)
    accuracy = correct / len(hits)

    recent = hits[-recent_window:] if recent_window > 0 else hits
    recent_accuracy = sum(recent) / len(recent)

    if recent_accuracy > accuracy + trend_margin:
        trend = 'improving'
    elif recent_accuracy < accuracy - trend_margin:
        trend = 'declining'
    else:
        trend = 'stable'

    return PredictionAccuracy(
        position=position,
        total_predictions=len(hits),
        correct_predictions=correct,
        accuracy=accuracy,
        recent_accuracy=recent_accuracy,
        trend=trend
    )


class CorrelationTracker:
    """Pearson correlation between the series of two positions."""

    def __init__(self, analyzer: 'ColumnAnalyzer'):
        self.analyzer = analyzer

    def _series(self, position: int, series: str) -> List[int]:
        if series == 'digit':
            return self.analyzer.digit_series(position)
        if series == 'skip':
            return self.analyzer.skip_series(position)
        raise ValueError(f"Unknown series kind {series!r}; expected one of {SERIES_KINDS}")

    def correlate(self, position_a: int, position_b: int, series: str = 'digit') -> CorrelationResult:
        """Correlate two positions; degenerate data yields a zero coefficient."""
        xs = self._series(position_a, series)
        ys = self._series(position_b, series)
        sample_size = min(len(xs), len(ys))

        coefficient = pearson(xs, ys)
        significance = correlation_significance(coefficient, sample_size) if coefficient else 0.0

        return CorrelationResult(
            position_a=position_a,
            position_b=position_b,
            coefficient=coefficient,
            significance=significance,
            sample_size=sample_size,
            strength=correlation_strength(coefficient),
            series=series
        )

    def correlate_all(self, series: str = 'digit') -> List[CorrelationResult]:
        """Every position pair, strongest absolute correlation first."""
        results = [
            self.correlate(a, b, series)
            for a, b in combinations(range(self.analyzer.width), 2)
        ]
        return sorted(results, key=lambda r: abs(r.coefficient), reverse=True)


class AccuracyTracker:
    """Accumulates per-position prediction outcomes with rolling windows."""

    def __init__(self, windows: Sequence[int] = (10, 25, 50, 100), trend_margin: float = 0.02,
                 min_trend_samples: int = 5):
        self.windows = sorted(set(windows))
        self.trend_margin = trend_margin
        self.min_trend_samples = min_trend_samples
        self._outcomes: Dict[int, List[bool]] = {}
        self._rolling: Dict[int, Dict[int, Deque[bool]]] = {}

    def record(self, position: int, predicted: int, actual: int) -> bool:
        """Store one prediction outcome; returns whether it hit."""
        hit = predicted == actual
        self._outcomes.setdefault(position, []).append(hit)

        rolling = self._rolling.setdefault(
            position, {size: deque(maxlen=size) for size in self.windows}
        )
        for window in rolling.values():
            window.append(hit)
        return hit

    def record_many(self, position: int, predicted_values: Sequence[int],
                    actual_values: Sequence[int]) -> int:
        """Record paired outcomes; returns the number of hits."""
        if len(predicted_values) != len(actual_values):
            raise ValueError(
                f"Got {len(predicted_values)} predictions for {len(actual_values)} actual values"
            )
        return sum(self.record(position, p, a) for p, a in zip(predicted_values, actual_values))

    def positions(self) -> List[int]:
        return sorted(self._outcomes)

    def total(self, position: Optional[int] = None) -> int:
        if position is None:
            return sum(len(o) for o in self._outcomes.values())
        return len(self._outcomes.get(position, []))

    def overall_accuracy(self, position: Optional[int] = None) -> float:
        if position is None:
            outcomes = [hit for o in self._outcomes.values() for hit in o]
        else:
            outcomes = self._outcomes.get(position, [])
        return safe_divide(sum(outcomes), len(outcomes))

    def _window_trend(self, outcomes: Sequence[bool]) -> str:
        if len(outcomes) < self.min_trend_samples:
            return 'stable'

        half = len(outcomes) // 2
        first, second = outcomes[:half], outcomes[half:]
        diff = sum(second) / len(second) - sum(first) / len(first)
        if diff > self.trend_margin:
            return 'improving'
        if diff < -self.trend_margin:
            return 'declining'
        return 'stable'

    def rolling_accuracy(self, position: int) -> List[Dict[str, object]]:
        """Accuracy and trend label for each rolling window of a position."""
        rolling = self._rolling.get(position)
        if not rolling:
            return []

        report = []
        for size in self.windows:
            outcomes = list(rolling[size])
            report.append({
                'window': size,
                'samples': len(outcomes),
                'accuracy': safe_divide(sum(outcomes), len(outcomes)),
                'trend': self._window_trend(outcomes)
            })
        return report

    def summary(self, position: int, recent_window: int = 10,
                trend_margin: float = 0.05) -> PredictionAccuracy:
        """Score the stored outcomes of a position like score_predictions does."""
        outcomes = self._outcomes.get(position, [])
        if not outcomes:
            return PredictionAccuracy.no_data(position)

        # Outcomes are stored as hits, so compare them against all-True actuals
        return score_predictions(
            position, outcomes, [True] * len(outcomes),
            recent_window=recent_window, trend_margin=trend_margin
        )

    def reset(self, position: Optional[int] = None) -> None:
        if position is None:
            self._outcomes.clear()
            self._rolling.clear()
        else:
            self._outcomes.pop(position, None)
            self._rolling.pop(position, None)
