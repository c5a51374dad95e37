"""Descriptive statistics for skip histories and digit series."""

import numpy as np
from scipy import stats
from collections import Counter
from typing import Dict, Optional, Sequence, Tuple
import logging

from utils.helpers import clamp

logger = logging.getLogger(__name__)


def describe_gaps(gaps: Sequence[int]) -> Dict[str, float]:
    """Distribution measures of a gap list; degenerate inputs give zeros."""
    if not gaps:
        return {
            'mean': 0.0,
            'median': 0.0,
            'mode': 0,
            'max': 0,
            'min': 0,
            'variance': 0.0,
            'std': 0.0
        }

    values = np.asarray(gaps, dtype=float)
    counts = Counter(gaps)
    top = max(counts.values())

    return {
        'mean': float(np.mean(values)),
        'median': float(np.median(values)),
        'mode': int(min(g for g, c in counts.items() if c == top)),
        'max': int(max(gaps)),
        'min': int(min(gaps)),
        'variance': float(np.var(values)) if len(gaps) > 1 else 0.0,
        'std': float(np.std(values)) if len(gaps) > 1 else 0.0
    }


def autocorrelation(data: Sequence[float], lag: int) -> float:
    """Sample autocorrelation of a series at one lag."""
    values = np.asarray(data, dtype=float)
    n = len(values) - lag
    if lag < 1 or n < 1:
        return 0.0

    centered = values - values.mean()
    denominator = float(np.sum(centered[:n] ** 2))
    if denominator == 0:
        return 0.0
    return float(np.sum(centered[:n] * centered[lag:lag + n]) / denominator)


def detect_periodicity(data: Sequence[float], threshold: float = 0.3,
                       min_samples: int = 20, max_lag: int = 50) -> Optional[int]:
    """Lag (>= 2) with the strongest autocorrelation above threshold, if any."""
    if len(data) < min_samples:
        return None

    upper = min(max_lag, len(data) // 3)
    best_period = None
    best_correlation = threshold

    for lag in range(2, upper + 1):
        correlation = autocorrelation(data, lag)
        if correlation > best_correlation:
            best_correlation = correlation
            best_period = lag

    return best_period


def pearson(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson correlation; 0.0 when undefined."""
    n = min(len(x), len(y))
    if n < 2:
        return 0.0

    xs = np.asarray(x[:n], dtype=float)
    ys = np.asarray(y[:n], dtype=float)
    if np.std(xs) == 0 or np.std(ys) == 0:
        return 0.0

    return float(np.corrcoef(xs, ys)[0, 1])


def correlation_significance(coefficient: float, sample_size: int) -> float:
    """Confidence (1 - two-sided p-value) that a correlation is non-zero."""
    if sample_size < 3:
        return 0.0
    if abs(coefficient) >= 1.0:
        return 1.0

    df = sample_size - 2
    t_stat = coefficient * np.sqrt(df / (1 - coefficient ** 2))
    p_value = 2 * stats.t.sf(abs(t_stat), df)
    return float(clamp(1.0 - p_value, 0.0, 1.0))


def correlation_strength(coefficient: float) -> str:
    absolute = abs(coefficient)
    if absolute >= 0.8:
        return 'very-strong'
    if absolute >= 0.6:
        return 'strong'
    if absolute >= 0.3:
        return 'moderate'
    return 'weak'


def linear_trend(values: Sequence[float]) -> Tuple[float, float]:
    """Least-squares slope and R-squared of a series over its index."""
    if len(values) < 2:
        return 0.0, 0.0

    y = np.asarray(values, dtype=float)
    x = np.arange(len(y), dtype=float)
    slope, intercept = np.polyfit(x, y, 1)

    ss_tot = float(np.sum((y - y.mean()) ** 2))
    if ss_tot == 0:
        return float(slope), 0.0

    ss_res = float(np.sum((y - (slope * x + intercept)) ** 2))
    return float(slope), 1.0 - ss_res / ss_tot
