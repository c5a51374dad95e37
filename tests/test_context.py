"""Tests for the analysis context and its reports."""

from datetime import date

import pytest

from analysis.context import AnalysisContext
from models.draw_models import Draw
from models.schemas import (
    AccuracyReport, CorrelationsReport, PatternsReport, PerformanceReport, REPORT_KINDS,
    RiskReport, TrendsReport
)


def test_cached_analysis_is_reused(context):
    first = context.column_analysis(0)

    assert context.column_analysis(0) is first
    assert len(context.cache) == 1


def test_append_draw_clears_cache(context):
    context.column_analysis(0)
    version = context.analyzer.version

    context.append_draw(Draw(date(2024, 1, 4), (4, 5, 6)))

    assert len(context.cache) == 0
    assert context.analyzer.version == version + 1
    assert context.column_analysis(0).number_stats[4].current_skip == 0


def test_rebuild_clears_cache(context, make_draws):
    context.hot_digits(0)
    context.rebuild(make_draws(['999', '888']))

    assert len(context.cache) == 0
    assert context.total_draws == 2
    assert context.hot_digits(0) == [8, 9]


def test_failed_extend_still_clears_cache(context):
    context.cold_digits(0)
    draws = [Draw(date(2024, 1, 4), (1, 1, 1)), Draw(date(2024, 1, 1), (2, 2, 2))]

    with pytest.raises(ValueError):
        context.extend(draws)

    assert len(context.cache) == 0
    assert context.total_draws == 4


def test_import_clears_cache_on_success(context):
    exported = context.analyzer.export_column_data()
    context.column_analysis(1)

    summary = context.import_column_data(exported)

    assert summary.imported == 3
    assert len(context.cache) == 0


@pytest.mark.parametrize('kind,report_type', [
    ('performance', PerformanceReport),
    ('trends', TrendsReport),
    ('patterns', PatternsReport),
    ('accuracy', AccuracyReport),
    ('correlations', CorrelationsReport),
    ('risk', RiskReport),
])
def test_build_report_variants_round_trip(context, kind, report_type):
    report = context.build_report(kind)

    assert isinstance(report, report_type)
    assert report.kind == kind
    parsed = AnalysisContext.parse_report(report.model_dump_json())
    assert type(parsed) is report_type
    assert parsed == report


def test_report_kinds_are_complete(context):
    assert {context.build_report(kind).kind for kind in REPORT_KINDS} == set(REPORT_KINDS)


def test_unknown_report_kind(context):
    with pytest.raises(ValueError):
        context.build_report('forecast')


def test_performance_report_reflects_cache(context):
    context.column_analysis(0)
    context.column_analysis(0)
    report = context.build_report('performance')

    assert report.total_draws == 3
    assert report.cache_size == 1
    assert report.cache_total_accesses == 1
    assert report.cache_hit_rate == 1.0


def test_patterns_report_counts(context):
    report = context.build_report('patterns')

    assert report.draw_patterns['parity']['OEO'] == 2
    assert report.draw_patterns['combo_type']['single'] == 3
    assert sum(report.draw_patterns['root_sum'].values()) == 3


def test_accuracy_report(context):
    context.record_prediction(0, 1, 1)
    context.record_prediction(0, 2, 3)
    report = context.build_report('accuracy')

    assert report.overall_accuracy == 0.5
    assert report.positions[0].total_predictions == 2
    assert report.positions[0].has_data
    assert not report.positions[1].has_data


def test_correlations_report_series(context):
    report = context.build_report('correlations', series='skip')

    assert report.series == 'skip'
    assert len(report.correlations) == 3
    assert all(c.series == 'skip' for c in report.correlations)


def test_risk_report_flags_overdue_digits(make_draws, clock):
    context = AnalysisContext(draws=make_draws(['100', '100', '200', '200', '200']), clock=clock)
    report = context.build_report('risk')

    overdue = [(o.position, o.digit) for o in report.overdue]
    assert (0, 1) in overdue
    flagged = next(o for o in report.overdue if (o.position, o.digit) == (0, 1))
    assert flagged.current_skip == 3
    assert flagged.max_gap == 1
    assert set(report.gap_volatility) == {0, 1, 2}


def test_trends_report_shape(context):
    report = context.build_report('trends')

    assert [t.position for t in report.column_trends] == [0, 1, 2]
    assert all(t.trend == 'stable' for t in report.column_trends)
    assert report.trending_up == {0: [], 1: [], 2: []}
