"""Process-wide analysis context owning the analyzer, trackers and result cache."""

import time
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Union
import logging

from analysis.columns import ColumnAnalyzer
from analysis.combinations import CombinationUniverse
from analysis.correlation import AccuracyTracker, CorrelationTracker
from analysis.patterns import DRAW_PATTERN_KINDS
from config.logging_config import setup_logging
from config.settings import AnalysisSettings, settings as default_settings
from models.draw_models import (
    ColumnAnalysis, ColumnTrend, CorrelationResult, Draw, ImportSummary, PatternStat, Trend
)
from models.schemas import (
    AccuracyEntry, AccuracyReport, AnalyticsReport, CorrelationEntry, CorrelationsReport,
    OverdueDigit, PatternsReport, PerformanceReport, REPORT_KINDS, RiskReport, TrendEntry,
    TrendsReport, analytics_report_adapter
)
from utils.cache import ResultCache, cached_analysis
from utils.helpers import safe_divide

logger = logging.getLogger(__name__)


class AnalysisContext:
    """Single owner of the live history and everything derived from it.

    Build one at process start and hand it to consumers. Every change to the
    history clears the result cache.
    """

    def __init__(self, app_settings: Optional[AnalysisSettings] = None,
                 draws: Optional[Iterable[Draw]] = None,
                 clock: Callable[[], float] = time.time,
                 configure_logging: bool = False):
        self.settings = app_settings or default_settings
        if configure_logging:
            setup_logging(self.settings)

        self.universe = CombinationUniverse(self.settings.digit_width, self.settings.vtrac_mode)
        self.analyzer = ColumnAnalyzer(
            width=self.settings.digit_width,
            app_settings=self.settings,
            universe=self.universe
        )
        self.correlation_tracker = CorrelationTracker(self.analyzer)
        self.accuracy_tracker = AccuracyTracker(windows=self.settings.accuracy_rolling_windows)
        self.cache = ResultCache.from_settings(self.settings, clock=clock)

        if draws:
            self.rebuild(draws)

        logger.info(
            f"Analysis context ready: width={self.analyzer.width}, "
            f"{len(self.universe)} combinations, {self.analyzer.total_draws} draws"
        )

    @property
    def total_draws(self) -> int:
        return self.analyzer.total_draws

    # ------------------------------------------------------------------
    # History changes
    # ------------------------------------------------------------------
    def append_draw(self, draw: Draw) -> None:
        self.analyzer.append_draw(draw)
        self.cache.clear()

    def extend(self, draws: Iterable[Draw]) -> int:
        try:
            return self.analyzer.extend(draws)
        finally:
            # Draws appended before a failure are still part of the history
            self.cache.clear()

    def rebuild(self, draws: Iterable[Draw]) -> None:
        self.analyzer.rebuild(draws)
        self.cache.clear()

    def import_column_data(self, payload: Union[str, bytes, Dict[str, Any]],
                           merge: bool = False) -> ImportSummary:
        summary = self.analyzer.import_column_data(payload, merge=merge)
        if summary.success:
            self.cache.clear()
        return summary

    def record_prediction(self, position: int, predicted: int, actual: int) -> bool:
        return self.accuracy_tracker.record(position, predicted, actual)

    # ------------------------------------------------------------------
    # Cached analyses
    # ------------------------------------------------------------------
    @cached_analysis('column')
    def column_analysis(self, position: int) -> ColumnAnalysis:
        return self.analyzer.analyze_column(position)

    @cached_analysis('column_trend')
    def column_trend(self, position: int) -> ColumnTrend:
        return self.analyzer.detect_column_trend(position)

    @cached_analysis('draw_patterns')
    def draw_patterns(self, kind: str) -> Dict[str, PatternStat]:
        return self.analyzer.analyze_draw_patterns(kind)

    @cached_analysis('correlations')
    def correlations(self, series: str = 'digit') -> List[CorrelationResult]:
        return self.correlation_tracker.correlate_all(series)

    @cached_analysis('hot_digits')
    def hot_digits(self, position: int) -> List[int]:
        return self.analyzer.hot_digits(position)

    @cached_analysis('cold_digits')
    def cold_digits(self, position: int) -> List[int]:
        return self.analyzer.cold_digits(position)

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------
    def build_report(self, kind: str, **options) -> AnalyticsReport:
        """Build one analytics report; kind is one of REPORT_KINDS."""
        builders = {
            'performance': self._performance_report,
            'trends': self._trends_report,
            'patterns': self._patterns_report,
            'accuracy': self._accuracy_report,
            'correlations': self._correlations_report,
            'risk': self._risk_report,
        }
        if kind not in builders:
            raise ValueError(f"Unknown report kind {kind!r}; expected one of {REPORT_KINDS}")
        return builders[kind](**options)

    @staticmethod
    def parse_report(data: Union[str, bytes, Dict[str, Any]]) -> AnalyticsReport:
        """Validate a serialized report back into its tagged variant."""
        if isinstance(data, (str, bytes)):
            return analytics_report_adapter.validate_json(data)
        return analytics_report_adapter.validate_python(data)

    def _performance_report(self) -> PerformanceReport:
        stats = self.cache.get_stats()
        return PerformanceReport(
            generated_at=datetime.now(),
            total_draws=self.total_draws,
            history_version=self.analyzer.version,
            cache_size=stats['size'],
            cache_hit_rate=stats['hit_rate'],
            cache_total_accesses=stats['total_accesses']
        )

    def _trends_report(self) -> TrendsReport:
        positions = range(self.analyzer.width)
        column_trends = []
        for position in positions:
            trend = self.column_trend(position)
            column_trends.append(TrendEntry(
                position=trend.position,
                trend=trend.trend.value,
                confidence=trend.confidence,
                slope=trend.slope,
                r_squared=trend.r_squared,
                period=trend.period
            ))

        return TrendsReport(
            generated_at=datetime.now(),
            column_trends=column_trends,
            trending_up={p: self.analyzer.trending_digits(p, Trend.INCREASING) for p in positions},
            trending_down={p: self.analyzer.trending_digits(p, Trend.DECREASING) for p in positions}
        )

    def _patterns_report(self) -> PatternsReport:
        return PatternsReport(
            generated_at=datetime.now(),
            draw_patterns={
                kind: {value: stat.total_appearances for value, stat in self.draw_patterns(kind).items()}
                for kind in DRAW_PATTERN_KINDS
            }
        )

    def _accuracy_report(self) -> AccuracyReport:
        entries = []
        for position in range(self.analyzer.width):
            summary = self.accuracy_tracker.summary(
                position,
                recent_window=self.settings.recent_accuracy_window,
                trend_margin=self.settings.accuracy_trend_margin
            )
            entries.append(AccuracyEntry(
                position=summary.position,
                total_predictions=summary.total_predictions,
                correct_predictions=summary.correct_predictions,
                accuracy=summary.accuracy,
                recent_accuracy=summary.recent_accuracy,
                trend=summary.trend,
                has_data=summary.has_data
            ))

        return AccuracyReport(
            generated_at=datetime.now(),
            overall_accuracy=self.accuracy_tracker.overall_accuracy(),
            positions=entries
        )

    def _correlations_report(self, series: str = 'digit') -> CorrelationsReport:
        return CorrelationsReport(
            generated_at=datetime.now(),
            series=series,
            correlations=[
                CorrelationEntry(
                    position_a=r.position_a,
                    position_b=r.position_b,
                    coefficient=r.coefficient,
                    significance=r.significance,
                    sample_size=r.sample_size,
                    strength=r.strength,
                    series=r.series
                )
                for r in self.correlations(series)
            ]
        )

    def _risk_report(self) -> RiskReport:
        volatility = {}
        overdue = []

        for position in range(self.analyzer.width):
            stats = self.column_analysis(position).number_stats.values()
            spread = [s.std_dev for s in stats if len(s.skip_history) > 1]
            volatility[position] = safe_divide(sum(spread), len(spread))

            for stat in stats:
                if stat.skip_history and stat.current_skip > stat.max_gap:
                    overdue.append(OverdueDigit(
                        position=position,
                        digit=stat.digit,
                        current_skip=stat.current_skip,
                        max_gap=stat.max_gap,
                        average_gap=stat.average_gap
                    ))

        overdue.sort(key=lambda o: (-o.current_skip, o.position, o.digit))
        return RiskReport(generated_at=datetime.now(), gap_volatility=volatility, overdue=overdue)
