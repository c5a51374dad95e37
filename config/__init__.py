"""Configuration package for the Pick3 analysis engine."""

from .settings import settings, AnalysisSettings
from .logging_config import setup_logging

__all__ = [
    'settings',
    'AnalysisSettings',
    'setup_logging'
]
