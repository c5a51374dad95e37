"""In-process result cache keyed by parameter fingerprints."""

import functools
import json
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union
import logging

from pydantic import ValidationError

from config.settings import AnalysisSettings
from models.schemas import CacheExportEntry, CacheExportMetadata

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"
DEFAULT_UNORDERED_KEYS = ('filters', 'enabled_filters')

_MISSING = object()


def _normalize(value: Any) -> str:
    """Render one parameter value in a stable textual form."""
    if value is None:
        return 'default'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, Mapping):
        return json.dumps(value, sort_keys=True, default=str)
    if isinstance(value, (set, frozenset)):
        return ','.join(sorted(_normalize(v) for v in value))
    if isinstance(value, (list, tuple)):
        return ','.join(_normalize(v) for v in value)
    return str(value)


def fingerprint(params: Any, unordered_keys: Iterable[str] = DEFAULT_UNORDERED_KEYS) -> str:
    """Deterministic cache key for a parameter set.

    Keys are sorted, list values under ``unordered_keys`` are sorted before
    joining, and ``None`` renders as ``default``; e.g.
    ``{'max': 50.0, 'filters': ['b', 'a']}`` -> ``filters=a,b|max=50``.
    """
    if not isinstance(params, Mapping):
        return _normalize(params)

    unordered = set(unordered_keys)
    parts = []
    for key in sorted(params, key=str):
        value = params[key]
        if key in unordered and isinstance(value, (list, tuple, set, frozenset)):
            rendered = ','.join(sorted(_normalize(v) for v in value))
        else:
            rendered = _normalize(value)
        parts.append(f"{key}={rendered}")
    return '|'.join(parts)


@dataclass
class CacheEntry:
    """Cached result plus its bookkeeping (times in epoch seconds)."""
    result: Any
    timestamp: float
    access_count: int = 0
    last_accessed: float = 0.0


@dataclass
class CacheImportSummary:
    """Outcome of a best-effort cache import."""
    imported: int = 0
    skipped: int = 0
    errors: int = 0
    success: bool = True
    messages: List[str] = field(default_factory=list)


class ResultCache:
    """Bounded TTL + LRU memoization store.

    Mutations go through a re-entrant lock so a cache can be shared by
    threads; computations in ``get_or_compute`` run under the same lock.
    """

    def __init__(self, max_size: int = 1000, ttl_seconds: float = 1800,
                 clock: Callable[[], float] = time.time,
                 unordered_keys: Iterable[str] = DEFAULT_UNORDERED_KEYS):
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got {max_size}")
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")

        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.unordered_keys = tuple(unordered_keys)
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()

    @classmethod
    def from_settings(cls, app_settings: AnalysisSettings,
                      clock: Callable[[], float] = time.time) -> 'ResultCache':
        return cls(
            max_size=app_settings.cache_max_size,
            ttl_seconds=app_settings.cache_ttl_seconds,
            clock=clock,
            unordered_keys=app_settings.cache_unordered_keys
        )

    def __len__(self) -> int:
        return len(self._entries)

    def fingerprint(self, params: Any) -> str:
        return fingerprint(params, self.unordered_keys)

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.timestamp > self.ttl_seconds

    def _live_entry(self, key: str) -> Optional[CacheEntry]:
        """Entry for key, dropping it if it has expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._is_expired(entry, self.clock()):
            del self._entries[key]
            return None
        return entry

    def _make_room(self) -> None:
        if len(self._entries) < self.max_size:
            return

        self.clear_expired()
        if len(self._entries) < self.max_size:
            return

        # min() keeps the first key on ties
        victim = min(self._entries, key=lambda k: self._entries[k].last_accessed)
        del self._entries[victim]
        logger.debug(f"Evicted least recently used cache entry {victim!r}")

    def _store(self, key: str, entry: CacheEntry) -> None:
        if key not in self._entries:
            self._make_room()
        self._entries[key] = entry

    def set(self, params: Any, result: Any) -> str:
        """Store a result; returns its fingerprint."""
        key = self.fingerprint(params)
        with self._lock:
            now = self.clock()
            self._store(key, CacheEntry(result=result, timestamp=now, last_accessed=now))
        return key

    def _lookup(self, params: Any) -> Any:
        key = self.fingerprint(params)
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return _MISSING
            entry.access_count += 1
            entry.last_accessed = self.clock()
            return entry.result

    def get(self, params: Any) -> Optional[Any]:
        """Cached result, or None when absent or expired."""
        result = self._lookup(params)
        return None if result is _MISSING else result

    def has(self, params: Any) -> bool:
        key = self.fingerprint(params)
        with self._lock:
            return self._live_entry(key) is not None

    def delete(self, params: Any) -> bool:
        key = self.fingerprint(params)
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        if count:
            logger.debug(f"Cleared {count} cache entries")
        return count

    def clear_expired(self) -> int:
        with self._lock:
            now = self.clock()
            expired = [k for k, e in self._entries.items() if self._is_expired(e, now)]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def get_or_compute(self, params: Any, compute: Callable[[], Any]) -> Any:
        """Return the cached result or compute, store and return it."""
        with self._lock:
            result = self._lookup(params)
            if result is not _MISSING:
                return result

            result = compute()
            self.set(params, result)
            return result

    def optimize(self) -> Dict[str, int]:
        """Drop entries accessed less often than the median entry."""
        with self._lock:
            if not self._entries:
                return {'removed': 0, 'kept': 0}

            counts = sorted(e.access_count for e in self._entries.values())
            median = counts[len(counts) // 2]
            low_value = [k for k, e in self._entries.items() if e.access_count < median]
            for key in low_value:
                del self._entries[key]

            kept = len(self._entries)

        logger.info(f"Cache optimized: removed {len(low_value)}, kept {kept}")
        return {'removed': len(low_value), 'kept': kept}

    def get_stats(self) -> Dict[str, Any]:
        """Size, hit rate and entry age statistics."""
        with self._lock:
            now = self.clock()
            entries = list(self._entries.values())

        size = len(entries)
        total_accesses = sum(e.access_count for e in entries)
        total_hits = sum(1 for e in entries if e.access_count > 0)
        ages = [now - e.timestamp for e in entries]

        return {
            'size': size,
            'max_size': self.max_size,
            'hit_rate': total_hits / size if total_accesses > 0 else 0.0,
            'total_accesses': total_accesses,
            'total_hits': total_hits,
            'average_age': sum(ages) / size if size else 0.0,
            'oldest_entry': max(ages) if ages else 0.0,
            'newest_entry': min(ages) if ages else 0.0
        }

    # ------------------------------------------------------------------
    # Persistence format (times in epoch milliseconds)
    # ------------------------------------------------------------------
    def export_data(self) -> Dict[str, Any]:
        with self._lock:
            rows = [
                {
                    'key': key,
                    'result': entry.result,
                    'timestamp': entry.timestamp * 1000,
                    'accessCount': entry.access_count,
                    'lastAccessed': entry.last_accessed * 1000
                }
                for key, entry in self._entries.items()
            ]

        return {
            'exportData': rows,
            'metadata': {
                'exportedAt': datetime.now().isoformat(),
                'version': EXPORT_VERSION,
                'ttl': self.ttl_seconds * 1000,
                'maxSize': self.max_size
            }
        }

    def export_json(self) -> str:
        return json.dumps(self.export_data(), default=str)

    def import_data(self, payload: Union[str, bytes, Mapping[str, Any]]) -> CacheImportSummary:
        """Restore entries from the persistence format, skipping bad rows."""
        try:
            data = json.loads(payload) if isinstance(payload, (str, bytes)) else payload
            rows = data['exportData']
            if not isinstance(rows, list):
                raise TypeError("exportData must be a list")
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Cache import failed: {e}")
            return CacheImportSummary(errors=1, success=False, messages=[f"Invalid payload: {e}"])

        summary = CacheImportSummary()
        metadata = data.get('metadata')
        if metadata is not None:
            try:
                header = CacheExportMetadata.model_validate(metadata)
            except ValidationError as e:
                logger.warning(f"Cache import metadata invalid: {e.error_count()} validation errors")
                summary.messages.append(f"Metadata: {e.error_count()} validation errors")
            else:
                if header.version != EXPORT_VERSION:
                    logger.warning(
                        f"Cache import version {header.version} differs from {EXPORT_VERSION}"
                    )
                    summary.messages.append(
                        f"Metadata: version {header.version} differs from {EXPORT_VERSION}"
                    )

        with self._lock:
            now = self.clock()
            for row_number, row in enumerate(rows):
                try:
                    parsed = CacheExportEntry.model_validate(row)
                except ValidationError as e:
                    summary.errors += 1
                    summary.messages.append(f"Row {row_number}: {e.error_count()} validation errors")
                    continue

                timestamp = parsed.timestamp / 1000
                entry = CacheEntry(
                    result=parsed.result,
                    timestamp=timestamp,
                    access_count=parsed.accessCount,
                    last_accessed=(parsed.lastAccessed / 1000
                                   if parsed.lastAccessed is not None else timestamp)
                )
                if self._is_expired(entry, now):
                    summary.skipped += 1
                    continue

                self._store(parsed.key, entry)
                summary.imported += 1

        logger.info(
            f"Cache import: {summary.imported} imported, {summary.skipped} expired, "
            f"{summary.errors} errors"
        )
        return summary


class CachedAnalysis:
    """Method decorator that memoizes results through ``self.cache``."""

    def __init__(self, namespace: str):
        self.namespace = namespace

    def __call__(self, func):
        @functools.wraps(func)
        def wrapper(owner, *args, **kwargs):
            cache: Optional[ResultCache] = getattr(owner, 'cache', None)
            if cache is None:
                return func(owner, *args, **kwargs)

            params = {'namespace': self.namespace, 'args': list(args), 'kwargs': kwargs}
            return cache.get_or_compute(params, lambda: func(owner, *args, **kwargs))

        return wrapper


cached_analysis = CachedAnalysis
