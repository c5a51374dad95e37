"""Shared fixtures for the analysis engine tests."""

from datetime import date, timedelta
from typing import List, Sequence

import pytest

from analysis.columns import ColumnAnalyzer
from analysis.context import AnalysisContext
from config.settings import AnalysisSettings
from models.draw_models import Draw


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def build_draws(straights: Sequence[str], start: date = date(2024, 1, 1)) -> List[Draw]:
    """One draw per day starting at ``start``."""
    return [
        Draw(start + timedelta(days=i), tuple(int(c) for c in straight))
        for i, straight in enumerate(straights)
    ]


@pytest.fixture
def analysis_settings():
    return AnalysisSettings()


@pytest.fixture
def make_draws():
    return build_draws


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sample_draws():
    return build_draws(['123', '456', '123'])


@pytest.fixture
def analyzer(sample_draws, analysis_settings):
    return ColumnAnalyzer(sample_draws, app_settings=analysis_settings)


@pytest.fixture
def context(sample_draws, analysis_settings, clock):
    return AnalysisContext(app_settings=analysis_settings, draws=sample_draws, clock=clock)
