"""Positional (column) skip, hot/cold and trend analysis over a draw history."""

import json
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union
import logging

import pandas as pd

from analysis.combinations import CombinationUniverse
from analysis.correlation import CorrelationTracker, score_predictions
from analysis.patterns import (
    DRAW_PATTERN_KINDS, draw_pattern, pattern_values, resolve_digit_patterns
)
from analysis.statistics import describe_gaps, detect_periodicity, linear_trend
from config.settings import AnalysisSettings, settings as default_settings
from models.draw_models import (
    ColumnAnalysis, ColumnStat, ColumnSummary, ColumnTrend, Combination, Draw,
    DrawOrderError, DrawValidationError, ImportSummary, PatternStat,
    PredictionAccuracy, Trend
)
from models.schemas import ColumnExportPayload, DrawRow

logger = logging.getLogger(__name__)

DIGIT_VALUES = 10
EXPORT_VERSION = "1.0"


class SkipTracker:
    """Appearance bookkeeping for one digit or pattern."""

    __slots__ = ('count', 'last_index', 'last_date', 'gaps')

    def __init__(self):
        self.count = 0
        self.last_index: Optional[int] = None
        self.last_date = None
        self.gaps: List[int] = []

    def record(self, index: int, draw_date) -> None:
        if self.last_index is not None:
            self.gaps.append(index - self.last_index)
        self.last_index = index
        self.last_date = draw_date
        self.count += 1

    def current_skip(self, total_draws: int) -> int:
        if self.last_index is None:
            return total_draws
        return total_draws - 1 - self.last_index


class _Aggregate:
    """Live trackers for one history; replaced wholesale on rebuild."""

    def __init__(self, width: int, digit_pattern_names: Iterable[str]):
        self.draws: List[Draw] = []
        self.digits: Dict[Tuple[int, int], SkipTracker] = {
            (position, digit): SkipTracker()
            for position in range(width)
            for digit in range(DIGIT_VALUES)
        }
        self.patterns: Dict[Tuple[int, str], SkipTracker] = {
            (position, name): SkipTracker()
            for position in range(width)
            for name in digit_pattern_names
        }
        self.draw_patterns: Dict[Tuple[str, str], SkipTracker] = {
            (kind, value): SkipTracker()
            for kind in DRAW_PATTERN_KINDS
            for value in pattern_values(kind, width)
        }

    def add(self, draw: Draw, combo: Combination, digit_patterns) -> None:
        index = len(self.draws)
        self.draws.append(draw)

        for position, digit in enumerate(draw.digits):
            self.digits[(position, digit)].record(index, draw.draw_date)
            for name, matches in digit_patterns.items():
                if matches(digit):
                    self.patterns[(position, name)].record(index, draw.draw_date)

        for kind in DRAW_PATTERN_KINDS:
            self.draw_patterns[(kind, draw_pattern(kind, combo))].record(index, draw.draw_date)


class ColumnAnalyzer:
    """Per-position digit and pattern statistics over an ordered draw history.

    New draws are folded in incrementally with ``append_draw``; ``rebuild``
    replaces the whole history and only swaps the live aggregate once the new
    one is complete.
    """

    def __init__(self, draws: Optional[Iterable[Draw]] = None, width: Optional[int] = None,
                 app_settings: Optional[AnalysisSettings] = None,
                 universe: Optional[CombinationUniverse] = None):
        self.settings = app_settings or default_settings
        self.width = width or self.settings.digit_width
        self.universe = universe or CombinationUniverse(self.width, self.settings.vtrac_mode)
        if self.universe.width != self.width:
            raise ValueError(
                f"Universe width {self.universe.width} does not match analyzer width {self.width}"
            )

        self.digit_patterns = resolve_digit_patterns(self.settings.column_patterns)
        self._state = _Aggregate(self.width, self.digit_patterns)
        self._version = 0
        self._analysis_cache: Dict[int, ColumnAnalysis] = {}

        if draws:
            self.rebuild(draws)

    # ------------------------------------------------------------------
    # History maintenance
    # ------------------------------------------------------------------
    @property
    def total_draws(self) -> int:
        return len(self._state.draws)

    @property
    def draws(self) -> Tuple[Draw, ...]:
        return tuple(self._state.draws)

    @property
    def version(self) -> int:
        """Incremented every time the history changes."""
        return self._version

    def _check_draw(self, draw: Draw) -> Combination:
        if draw.width != self.width:
            raise DrawValidationError(
                f"Draw {draw.straight!r} on {draw.draw_date} has {draw.width} digits, expected {self.width}"
            )
        if any(not 0 <= d < DIGIT_VALUES for d in draw.digits):
            raise DrawValidationError(f"Draw {draw.digits} on {draw.draw_date} has digits outside 0-9")
        return self.universe.combination_for(draw.digits)

    def _touch(self) -> None:
        self._version += 1
        self._analysis_cache.clear()

    def append_draw(self, draw: Draw) -> None:
        """Fold one new draw into the statistics."""
        combo = self._check_draw(draw)

        if self._state.draws and draw.draw_date < self._state.draws[-1].draw_date:
            raise DrawOrderError(
                f"Draw dated {draw.draw_date} is older than the latest draw "
                f"{self._state.draws[-1].draw_date}; use rebuild() for backfills"
            )

        self._state.add(draw, combo, self.digit_patterns)
        self._touch()

    def extend(self, draws: Iterable[Draw]) -> int:
        """Append draws in order; returns how many were added."""
        added = 0
        for draw in draws:
            self.append_draw(draw)
            added += 1
        return added

    def rebuild(self, draws: Iterable[Draw]) -> None:
        """Replace the history, sorting by date, without exposing partial state."""
        ordered = sorted(draws, key=lambda d: d.draw_date)
        fresh = _Aggregate(self.width, self.digit_patterns)

        for draw in ordered:
            fresh.add(draw, self._check_draw(draw), self.digit_patterns)

        self._state = fresh
        self._touch()
        logger.info(f"Column statistics rebuilt from {len(ordered)} draws")

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------
    def _check_position(self, position: int) -> None:
        if not 0 <= position < self.width:
            raise ValueError(f"Position must be in 0..{self.width - 1}, got {position}")

    def classify_trend(self, gaps: Sequence[int]) -> Trend:
        """Compare recent gaps to the all-time average, then look for periodicity."""
        s = self.settings
        if len(gaps) < max(s.trend_min_gaps, 1):
            return Trend.STABLE

        baseline = sum(gaps) / len(gaps)
        recent = gaps[-s.trend_window:]
        recent_average = sum(recent) / len(recent)
        if baseline == 0:
            return Trend.STABLE

        ratio = recent_average / baseline
        if ratio < 1 - s.trend_tolerance:
            return Trend.INCREASING
        if ratio > 1 + s.trend_tolerance:
            return Trend.DECREASING

        period = detect_periodicity(
            gaps,
            threshold=s.cyclical_threshold,
            min_samples=s.cyclical_min_samples
        )
        return Trend.CYCLICAL if period else Trend.STABLE

    def _skip_fields(self, tracker: SkipTracker, total: int) -> Dict[str, Any]:
        described = describe_gaps(tracker.gaps)
        return {
            'total_appearances': tracker.count,
            'last_seen_index': tracker.last_index,
            'last_seen_date': tracker.last_date,
            'current_skip': tracker.current_skip(total),
            'skip_history': list(tracker.gaps),
            'average_gap': described['mean'],
            'median_gap': described['median'],
            'mode_gap': described['mode'],
            'max_gap': described['max'],
            'min_gap': described['min'],
            'variance': described['variance'],
            'std_dev': described['std'],
            'trend': self.classify_trend(tracker.gaps)
        }

    def _column_stat(self, position: int, digit: int, total: int) -> ColumnStat:
        tracker = self._state.digits[(position, digit)]
        fields = self._skip_fields(tracker, total)
        current_skip = fields['current_skip']

        # Digits without gap history are judged against the uniform expectation
        baseline = fields['average_gap'] if tracker.gaps else DIGIT_VALUES
        is_cold = total > 0 and current_skip > self.settings.cold_gap_multiplier * baseline
        is_hot = tracker.count > 0 and current_skip <= self.settings.hot_skip_threshold

        return ColumnStat(position=position, digit=digit, is_hot=is_hot, is_cold=is_cold, **fields)

    def _summary(self, position: int, total: int) -> ColumnSummary:
        if total == 0:
            return ColumnSummary(position=position)

        trackers = {d: self._state.digits[(position, d)] for d in range(DIGIT_VALUES)}
        counts = {d: t.count for d, t in trackers.items()}

        skips: List[int] = []
        for tracker in trackers.values():
            if tracker.count == 0:
                skips.append(total)
                continue
            skips.extend(tracker.gaps)
            current = tracker.current_skip(total)
            if current > 0:
                skips.append(current)

        described = describe_gaps(skips)
        return ColumnSummary(
            position=position,
            total_draws=total,
            unique_numbers=sum(1 for c in counts.values() if c > 0),
            most_frequent_number=max(counts, key=lambda d: (counts[d], -d)),
            least_frequent_number=min(counts, key=lambda d: (counts[d], d)),
            average_skips=described['mean'],
            max_skips=described['max'],
            min_skips=described['min'],
            median_skips=described['median'],
            mode_skips=described['mode'],
            standard_deviation=described['std'],
            variance=described['variance'],
            range=described['max'] - described['min']
        )

    def analyze_column(self, position: int) -> ColumnAnalysis:
        """Digit stats, pattern stats and a summary for one position."""
        self._check_position(position)
        cached = self._analysis_cache.get(position)
        if cached is not None:
            return cached

        total = self.total_draws
        number_stats = {
            digit: self._column_stat(position, digit, total)
            for digit in range(DIGIT_VALUES)
        }
        pattern_stats = {
            name: PatternStat(
                pattern=name,
                position=position,
                **self._skip_fields(self._state.patterns[(position, name)], total)
            )
            for name in self.digit_patterns
        }

        analysis = ColumnAnalysis(
            position=position,
            number_stats=number_stats,
            pattern_stats=pattern_stats,
            summary=self._summary(position, total)
        )
        self._analysis_cache[position] = analysis
        return analysis

    def analyze_all(self) -> Dict[int, ColumnAnalysis]:
        return {position: self.analyze_column(position) for position in range(self.width)}

    def get_column_stat(self, position: int, digit: int) -> ColumnStat:
        return self.analyze_column(position).number_stats[digit]

    def digit_across_positions(self, digit: int) -> List[ColumnStat]:
        """Stats of one digit value at every position."""
        return [self.get_column_stat(position, digit) for position in range(self.width)]

    def hot_digits(self, position: int) -> List[int]:
        """Hot digits, most recent first."""
        stats = self.analyze_column(position).number_stats.values()
        hot = sorted((s for s in stats if s.is_hot), key=lambda s: (s.current_skip, s.digit))
        return [s.digit for s in hot]

    def cold_digits(self, position: int) -> List[int]:
        """Cold digits, longest skip first."""
        stats = self.analyze_column(position).number_stats.values()
        cold = sorted((s for s in stats if s.is_cold), key=lambda s: (-s.current_skip, s.digit))
        return [s.digit for s in cold]

    def trending_digits(self, position: int, trend: Union[Trend, str]) -> List[int]:
        trend = Trend(trend)
        stats = self.analyze_column(position).number_stats.values()
        return [s.digit for s in stats if s.trend == trend]

    def analyze_draw_patterns(self, kind: str) -> Dict[str, PatternStat]:
        """Skip statistics of draw-wide composite patterns of one kind."""
        if kind not in DRAW_PATTERN_KINDS:
            raise ValueError(f"Unknown draw pattern kind: {kind}")

        total = self.total_draws
        return {
            value: PatternStat(
                pattern=value,
                position=None,
                **self._skip_fields(self._state.draw_patterns[(kind, value)], total)
            )
            for value in pattern_values(kind, self.width)
        }

    # ------------------------------------------------------------------
    # Series
    # ------------------------------------------------------------------
    def digit_series(self, position: int) -> List[int]:
        self._check_position(position)
        return [draw.digits[position] for draw in self._state.draws]

    def skip_series(self, position: int) -> List[int]:
        """Skip each drawn digit had accumulated at the moment it hit."""
        self._check_position(position)
        last_seen: Dict[int, int] = {}
        series = []
        for index, draw in enumerate(self._state.draws):
            digit = draw.digits[position]
            series.append(index - last_seen[digit] - 1 if digit in last_seen else index)
            last_seen[digit] = index
        return series

    def detect_column_trend(self, position: int) -> ColumnTrend:
        """Regression trend of drawn digit values, with a periodicity fallback."""
        s = self.settings
        values = self.digit_series(position)

        if len(values) < s.column_trend_min_draws:
            return ColumnTrend(position=position, trend=Trend.STABLE, confidence=0.0,
                               slope=0.0, r_squared=0.0)

        slope, r_squared = linear_trend(values)
        period = None
        if abs(slope) > s.column_trend_min_slope and r_squared > s.column_trend_min_r_squared:
            trend = Trend.INCREASING if slope > 0 else Trend.DECREASING
        else:
            period = detect_periodicity(values, threshold=s.cyclical_threshold)
            trend = Trend.CYCLICAL if period else Trend.STABLE

        return ColumnTrend(
            position=position,
            trend=trend,
            confidence=max(0.0, r_squared),
            slope=slope,
            r_squared=r_squared,
            period=period
        )

    def track_prediction_accuracy(self, position: int, predicted_values: Sequence[int],
                                  actual_values: Sequence[int]) -> PredictionAccuracy:
        """Exact-match hit rate of predicted digits at one position."""
        self._check_position(position)
        return score_predictions(
            position,
            predicted_values,
            actual_values,
            recent_window=self.settings.recent_accuracy_window,
            trend_margin=self.settings.accuracy_trend_margin
        )

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------
    def export_column_data(self) -> str:
        """Serialize the history and derived column statistics to JSON."""
        correlations = CorrelationTracker(self).correlate_all()
        payload = {
            'version': EXPORT_VERSION,
            'exportedAt': datetime.now().isoformat(),
            'width': self.width,
            'totalDraws': self.total_draws,
            'draws': [
                {
                    'date': draw.draw_date.isoformat(),
                    'digits': draw.straight,
                    'session': draw.session
                }
                for draw in self._state.draws
            ],
            'columns': [
                {
                    'position': position,
                    'analysis': asdict(self.analyze_column(position)),
                    'trend': asdict(self.detect_column_trend(position)),
                    'correlations': [
                        asdict(result) for result in correlations
                        if position in (result.position_a, result.position_b)
                    ]
                }
                for position in range(self.width)
            ]
        }
        return json.dumps(payload, default=str, indent=2)

    def export_column_csv(self) -> str:
        """One row per (draw, position) as CSV."""
        rows = [
            {
                'position': position,
                'draw_index': index,
                'digit': digit,
                'date': draw.draw_date.isoformat()
            }
            for index, draw in enumerate(self._state.draws)
            for position, digit in enumerate(draw.digits)
        ]
        frame = pd.DataFrame(rows, columns=['position', 'draw_index', 'digit', 'date'])
        return frame.to_csv(index=False)

    def import_column_data(self, payload: Union[str, bytes, Dict[str, Any]],
                           merge: bool = False) -> ImportSummary:
        """Load draws from a column export, skipping and reporting bad rows.

        Derived statistics in the payload are ignored and recomputed. With
        ``merge`` the imported draws are added to the current history instead
        of replacing it.
        """
        try:
            data = json.loads(payload) if isinstance(payload, (str, bytes)) else payload
            header = ColumnExportPayload.model_validate(data)
        except (ValueError, TypeError) as e:
            logger.error(f"Column import rejected: {e}")
            return ImportSummary(errors=1, success=False, messages=[f"Invalid payload: {e}"])

        if header.width != self.width:
            message = f"Payload width {header.width} does not match analyzer width {self.width}"
            logger.error(f"Column import rejected: {message}")
            return ImportSummary(errors=1, success=False, messages=[message])

        summary = ImportSummary()
        draws = list(self._state.draws) if merge else []
        seen = {(d.draw_date, d.session, d.digits) for d in draws}

        for row_number, row in enumerate(header.draws):
            try:
                parsed = DrawRow.model_validate(row)
                if len(parsed.digits) != self.width:
                    raise ValueError(f"expected {self.width} digits, got {parsed.digits!r}")
            except ValueError as e:
                summary.errors += 1
                summary.messages.append(f"Row {row_number}: {e}")
                logger.warning(f"Skipping malformed draw row {row_number}: {e}")
                continue

            draw = Draw(parsed.draw_date, tuple(int(c) for c in parsed.digits), parsed.session)
            key = (draw.draw_date, draw.session, draw.digits)
            if key in seen:
                summary.skipped += 1
                continue

            seen.add(key)
            draws.append(draw)
            summary.imported += 1

        self.rebuild(draws)
        logger.info(
            f"Column import: {summary.imported} imported, {summary.skipped} skipped, "
            f"{summary.errors} errors"
        )
        return summary
