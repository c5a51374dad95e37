"""Utilities package for the Pick3 analysis engine."""

from .cache import ResultCache, CacheEntry, CacheImportSummary, cached_analysis, fingerprint
from .helpers import (
    ValidationResult,
    parse_draw,
    parse_digits,
    validate_draw_record,
    draws_from_frame,
    safe_divide,
    clamp
)

__all__ = [
    'ResultCache',
    'CacheEntry',
    'CacheImportSummary',
    'cached_analysis',
    'fingerprint',
    'ValidationResult',
    'parse_draw',
    'parse_digits',
    'validate_draw_record',
    'draws_from_frame',
    'safe_divide',
    'clamp'
]
