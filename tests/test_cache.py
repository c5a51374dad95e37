"""Tests for the fingerprint-keyed result cache."""

import json

import pytest

from config.settings import AnalysisSettings
from utils.cache import ResultCache, cached_analysis, fingerprint


def test_fingerprint_ignores_filter_order():
    a = fingerprint({'filters': ['a', 'b'], 'max': 50})
    b = fingerprint({'max': 50.0, 'filters': ['b', 'a']})

    assert a == b == 'filters=a,b|max=50'


def test_fingerprint_normalizes_values():
    assert fingerprint({'weights': None}) == 'weights=default'
    assert fingerprint({'weights': {'b': 1, 'a': 2}}) == 'weights={"a": 2, "b": 1}'
    assert fingerprint({'ratio': 0.25, 'flag': True}) == 'flag=true|ratio=0.25'


def test_fingerprint_keeps_order_of_other_lists():
    assert fingerprint({'order': [1, 2]}) != fingerprint({'order': [2, 1]})


def test_set_and_get_with_reordered_filters(clock):
    cache = ResultCache(clock=clock)
    cache.set({'filters': ['a', 'b'], 'max': 50}, 'R')

    assert cache.get({'filters': ['b', 'a'], 'max': 50}) == 'R'
    assert cache.has({'max': 50, 'filters': ['a', 'b']})


def test_expired_entries_are_unreachable(clock):
    cache = ResultCache(ttl_seconds=10, clock=clock)
    cache.set({'k': 1}, 'value')

    clock.advance(10)
    assert cache.get({'k': 1}) == 'value'

    clock.advance(1)
    assert cache.get({'k': 1}) is None
    assert not cache.has({'k': 1})


def test_lru_eviction_at_capacity(clock):
    cache = ResultCache(max_size=2, clock=clock)
    cache.set({'k': 'a'}, 1)
    clock.advance(1)
    cache.set({'k': 'b'}, 2)
    clock.advance(1)
    cache.get({'k': 'a'})
    clock.advance(1)

    cache.set({'k': 'c'}, 3)

    assert cache.has({'k': 'a'})
    assert not cache.has({'k': 'b'})
    assert cache.has({'k': 'c'})


def test_eviction_tie_removes_first_entry(clock):
    cache = ResultCache(max_size=2, clock=clock)
    cache.set({'k': 'a'}, 1)
    cache.set({'k': 'b'}, 2)
    cache.set({'k': 'c'}, 3)

    assert not cache.has({'k': 'a'})
    assert cache.has({'k': 'b'})


def test_eviction_sweeps_expired_first(clock):
    cache = ResultCache(max_size=2, ttl_seconds=10, clock=clock)
    cache.set({'k': 'a'}, 1)
    clock.advance(5)
    cache.set({'k': 'b'}, 2)
    clock.advance(6)

    cache.set({'k': 'c'}, 3)

    assert len(cache) == 2
    assert cache.has({'k': 'b'})
    assert cache.has({'k': 'c'})


def test_overwrite_does_not_evict(clock):
    cache = ResultCache(max_size=2, clock=clock)
    cache.set({'k': 'a'}, 1)
    cache.set({'k': 'b'}, 2)
    cache.set({'k': 'a'}, 10)

    assert cache.get({'k': 'a'}) == 10
    assert cache.has({'k': 'b'})


def test_get_or_compute_runs_once(clock):
    cache = ResultCache(clock=clock)
    calls = []

    def compute():
        calls.append(1)
        return None

    assert cache.get_or_compute({'q': 1}, compute) is None
    assert cache.get_or_compute({'q': 1}, compute) is None
    assert len(calls) == 1


def test_delete_clear_and_clear_expired(clock):
    cache = ResultCache(ttl_seconds=10, clock=clock)
    cache.set({'k': 1}, 1)
    cache.set({'k': 2}, 2)

    assert cache.delete({'k': 1})
    assert not cache.delete({'k': 1})

    clock.advance(11)
    cache.set({'k': 3}, 3)
    assert cache.clear_expired() == 1
    assert cache.clear() == 1
    assert len(cache) == 0


def test_optimize_keeps_uniform_entries(clock):
    cache = ResultCache(clock=clock)
    for i in range(4):
        cache.set({'k': i}, i)
        cache.get({'k': i})

    assert cache.optimize() == {'removed': 0, 'kept': 4}


def test_optimize_removes_entries_below_median(clock):
    cache = ResultCache(clock=clock)
    for i in range(4):
        cache.set({'k': i}, i)
    cache.get({'k': 2})
    for _ in range(5):
        cache.get({'k': 3})

    result = cache.optimize()

    assert result == {'removed': 2, 'kept': 2}
    assert cache.has({'k': 2})
    assert cache.has({'k': 3})


def test_stats(clock):
    cache = ResultCache(max_size=10, clock=clock)
    assert cache.get_stats()['hit_rate'] == 0.0

    cache.set({'k': 1}, 1)
    clock.advance(4)
    cache.set({'k': 2}, 2)
    cache.get({'k': 1})
    cache.get({'k': 1})
    stats = cache.get_stats()

    assert stats['size'] == 2
    assert stats['max_size'] == 10
    assert stats['hit_rate'] == 0.5
    assert stats['total_accesses'] == 2
    assert stats['total_hits'] == 1
    assert stats['average_age'] == 2.0
    assert stats['oldest_entry'] == 4.0
    assert stats['newest_entry'] == 0.0


def test_export_uses_milliseconds(clock):
    cache = ResultCache(ttl_seconds=60, max_size=5, clock=clock)
    cache.set({'k': 1}, {'value': 1})
    exported = cache.export_data()

    row = exported['exportData'][0]
    assert row['key'] == 'k=1'
    assert row['timestamp'] == clock.now * 1000
    assert row['accessCount'] == 0
    assert exported['metadata']['ttl'] == 60000
    assert exported['metadata']['maxSize'] == 5


def test_import_restores_exported_entries(clock):
    source = ResultCache(clock=clock)
    source.set({'filters': ['x', 'y']}, [1, 2, 3])
    source.set({'k': 2}, {'a': 1})
    source.get({'k': 2})

    target = ResultCache(clock=clock)
    summary = target.import_data(source.export_json())

    assert summary.success
    assert summary.imported == 2
    assert target.get({'filters': ['y', 'x']}) == [1, 2, 3]
    assert target.get({'k': 2}) == {'a': 1}


def test_import_skips_expired_entries(clock):
    source = ResultCache(ttl_seconds=10, clock=clock)
    source.set({'k': 1}, 1)
    payload = source.export_data()

    clock.advance(20)
    target = ResultCache(ttl_seconds=10, clock=clock)
    summary = target.import_data(payload)

    assert summary.imported == 0
    assert summary.skipped == 1
    assert len(target) == 0


def test_import_counts_malformed_rows(clock):
    payload = {
        'exportData': [
            {'key': '', 'result': 1, 'timestamp': 0},
            {'result': 1},
            {'key': 'ok', 'result': 1, 'timestamp': clock.now * 1000},
        ],
        'metadata': {}
    }
    summary = ResultCache(clock=clock).import_data(json.dumps(payload))

    assert summary.success
    assert summary.errors == 2
    assert summary.imported == 1


@pytest.mark.parametrize('payload', ['{broken', '[]', {'metadata': {}}, {'exportData': 'nope'}])
def test_import_unparseable_payload(clock, payload):
    summary = ResultCache(clock=clock).import_data(payload)
    assert not summary.success
    assert summary.imported == 0


def test_import_undecodable_bytes(clock):
    cache = ResultCache(clock=clock)
    summary = cache.import_data(b'\xff{"exportData": []}')

    assert not summary.success
    assert summary.errors == 1
    assert len(cache) == 0


def test_import_rejects_non_finite_times(clock):
    payload = (
        '{"exportData": ['
        '{"key": "nan", "result": 1, "timestamp": NaN},'
        '{"key": "inf", "result": 1, "timestamp": 0, "lastAccessed": Infinity},'
        '{"key": "ok", "result": 1, "timestamp": %s}'
        ']}' % (clock.now * 1000)
    )
    cache = ResultCache(clock=clock)
    summary = cache.import_data(payload)

    assert summary.errors == 2
    assert summary.imported == 1
    assert not cache.has('nan')
    stats = cache.get_stats()
    assert stats['average_age'] == 0.0
    assert stats['oldest_entry'] == 0.0


def test_import_reports_version_mismatch(clock):
    source = ResultCache(clock=clock)
    source.set({'k': 1}, 'v')
    payload = source.export_data()
    payload['metadata']['version'] = '0.9'

    target = ResultCache(clock=clock)
    summary = target.import_data(payload)

    assert summary.success
    assert summary.imported == 1
    assert any('version 0.9' in message for message in summary.messages)


def test_import_reports_invalid_metadata(clock):
    summary = ResultCache(clock=clock).import_data({'exportData': [], 'metadata': {'version': 1}})

    assert summary.success
    assert summary.messages and summary.messages[0].startswith('Metadata:')


def test_import_accepts_current_metadata(clock):
    source = ResultCache(clock=clock)
    source.set({'k': 1}, 'v')

    summary = ResultCache(clock=clock).import_data(source.export_json())

    assert summary.messages == []


def test_invalid_construction():
    with pytest.raises(ValueError):
        ResultCache(max_size=0)
    with pytest.raises(ValueError):
        ResultCache(ttl_seconds=0)


def test_from_settings(clock):
    cache = ResultCache.from_settings(AnalysisSettings(cache_max_size=7, cache_ttl_seconds=30), clock=clock)
    assert cache.max_size == 7
    assert cache.ttl_seconds == 30


class _Owner:
    def __init__(self, cache):
        self.cache = cache
        self.calls = 0

    @cached_analysis('square')
    def square(self, value):
        self.calls += 1
        return value * value


def test_cached_analysis_decorator(clock):
    owner = _Owner(ResultCache(clock=clock))

    assert owner.square(3) == 9
    assert owner.square(3) == 9
    assert owner.square(4) == 16
    assert owner.calls == 2


def test_cached_analysis_without_cache():
    owner = _Owner(None)
    owner.square(2)
    owner.square(2)
    assert owner.calls == 2
