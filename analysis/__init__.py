"""Analysis package for the Pick3 statistics engine."""

from .combinations import (
    CombinationUniverse,
    generate_all,
    classify,
    permutation_count,
    group_by,
    odds,
    box_of
)
from .columns import ColumnAnalyzer
from .correlation import CorrelationTracker, AccuracyTracker, score_predictions
from .context import AnalysisContext

__all__ = [
    'CombinationUniverse',
    'generate_all',
    'classify',
    'permutation_count',
    'group_by',
    'odds',
    'box_of',
    'ColumnAnalyzer',
    'CorrelationTracker',
    'AccuracyTracker',
    'score_predictions',
    'AnalysisContext'
]
