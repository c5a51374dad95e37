"""Analysis engine settings using Pydantic BaseSettings."""

from pydantic_settings import BaseSettings
from typing import List


class AnalysisSettings(BaseSettings):
    """Tunable parameters for the combination, column and cache layers."""

    # ========================================
    # GAME CONFIGURATION
    # ========================================
    digit_width: int = 3

    # "legacy" maps only 0 -> 5; "standard" is the five-way 0/5, 1/6, ... grouping
    vtrac_mode: str = "legacy"

    # ========================================
    # COLUMN ANALYSIS THRESHOLDS
    # ========================================
    hot_skip_threshold: int = 2
    cold_gap_multiplier: float = 2.0

    # Trend detection over gap history
    trend_window: int = 3
    trend_min_gaps: int = 4
    trend_tolerance: float = 0.2
    cyclical_threshold: float = 0.3
    cyclical_min_samples: int = 8

    # Whole-column regression trend
    column_trend_min_draws: int = 10
    column_trend_min_slope: float = 0.1
    column_trend_min_r_squared: float = 0.3

    # Per-position patterns tracked alongside raw digits
    column_patterns: List[str] = [
        'even', 'odd', 'high', 'low', 'prime', 'non-prime'
    ]

    # ========================================
    # ACCURACY TRACKING
    # ========================================
    recent_accuracy_window: int = 10
    accuracy_trend_margin: float = 0.05
    accuracy_rolling_windows: List[int] = [10, 25, 50, 100]

    # ========================================
    # CACHE CONFIGURATION
    # ========================================
    cache_max_size: int = 1000
    cache_ttl_seconds: int = 1800  # 30 minutes
    cache_unordered_keys: List[str] = ['filters', 'enabled_filters']

    # ========================================
    # LOGGING CONFIGURATION
    # ========================================
    log_level: str = "INFO"
    log_format: str = "text"

    model_config = {
        "env_file": ".env",
        "env_prefix": "PICK3_",
        "case_sensitive": False,
        "extra": "ignore",
    }


# Default settings instance; components also accept an explicit one
settings = AnalysisSettings()

