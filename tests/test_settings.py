"""Tests for settings and logging setup."""

import io
import json
import logging

import pytest
import structlog

from config.logging_config import setup_logging
from config.settings import AnalysisSettings


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    level = root.level
    structlog.reset_defaults()
    yield root
    for handler in list(root.handlers):
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()


def test_defaults():
    app_settings = AnalysisSettings()

    assert app_settings.digit_width == 3
    assert app_settings.vtrac_mode == 'legacy'
    assert app_settings.hot_skip_threshold == 2
    assert app_settings.accuracy_rolling_windows == [10, 25, 50, 100]
    assert app_settings.cache_unordered_keys == ['filters', 'enabled_filters']


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv('PICK3_HOT_SKIP_THRESHOLD', '5')
    monkeypatch.setenv('PICK3_VTRAC_MODE', 'standard')

    app_settings = AnalysisSettings()

    assert app_settings.hot_skip_threshold == 5
    assert app_settings.vtrac_mode == 'standard'


def test_setup_logging_json(restore_root_logging):
    setup_logging(AnalysisSettings(log_format='json', log_level='debug'))

    assert structlog.is_configured()


def test_setup_logging_json_renders_stdlib_records(restore_root_logging):
    stream = io.StringIO()
    setup_logging(AnalysisSettings(log_format='json', log_level='info'), stream=stream)

    logging.getLogger('analysis.columns').warning("Column import rejected: bad width")

    record = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert record['event'] == "Column import rejected: bad width"
    assert record['level'] == 'warning'
    assert record['logger'] == 'analysis.columns'
    assert 'timestamp' in record


def test_setup_logging_json_renders_structlog_events(restore_root_logging):
    stream = io.StringIO()
    setup_logging(AnalysisSettings(log_format='json', log_level='info'), stream=stream)

    structlog.get_logger('analysis.cache').info("cache_optimized", removed=2)

    record = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert record['event'] == 'cache_optimized'
    assert record['removed'] == 2
    assert record['level'] == 'info'


def test_setup_logging_text_leaves_structlog_alone(restore_root_logging):
    setup_logging(AnalysisSettings(log_format='text'))

    assert not structlog.is_configured()
    assert logging.getLogger('analysis').getEffectiveLevel() <= logging.WARNING
