"""Models package for the Pick3 analysis engine."""

from .draw_models import (
    ComboType,
    BetType,
    Trend,
    DrawValidationError,
    DrawOrderError,
    Draw,
    Combination,
    GroupSummary,
    BetOdds,
    SkipStat,
    ColumnStat,
    PatternStat,
    ColumnSummary,
    ColumnAnalysis,
    ColumnTrend,
    CorrelationResult,
    PredictionAccuracy,
    ImportSummary
)

from .schemas import (
    DrawRow,
    ColumnExportPayload,
    CacheExportEntry,
    CacheExportMetadata,
    AnalyticsReport,
    analytics_report_adapter,
    REPORT_KINDS
)

__all__ = [
    # Core data structures
    'ComboType',
    'BetType',
    'Trend',
    'DrawValidationError',
    'DrawOrderError',
    'Draw',
    'Combination',
    'GroupSummary',
    'BetOdds',
    'SkipStat',
    'ColumnStat',
    'PatternStat',
    'ColumnSummary',
    'ColumnAnalysis',
    'ColumnTrend',
    'CorrelationResult',
    'PredictionAccuracy',
    'ImportSummary',

    # Schemas
    'DrawRow',
    'ColumnExportPayload',
    'CacheExportEntry',
    'CacheExportMetadata',
    'AnalyticsReport',
    'analytics_report_adapter',
    'REPORT_KINDS'
]
