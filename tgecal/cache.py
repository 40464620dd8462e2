"""
PERIOD CACHE

In-memory cache of aggregated events keyed by calendar month ("yyyy-MM").
Avoids re-hitting every source each time the user flips back to a month.

- TTL-based expiration (checked on read, swept by evict_expired)
- Size limit with oldest-inserted-first eviction
- Neighbour preloading (previous / next month)

Memory only: rebuilt from scratch every session.
"""

import logging
import time
from typing import Awaitable, Callable, Dict, List, Optional

from .metrics import CalendarMetrics
from .models import CachedPeriod, TgeEvent
from .periods import DateLike, neighbors, period_key

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30 * 60
DEFAULT_MAX_ENTRIES = 24


def _now_ms() -> int:
    return int(time.time() * 1000)


class PeriodCache:
    """
    Month-keyed cache owned exclusively by the query facade.

    Entries are replaced wholesale on put(); callers get copies of the
    event lists so nothing outside can mutate a cached period.
    """

    def __init__(self, config: Dict = None, metrics: CalendarMetrics = None,
                 clock: Callable[[], int] = None):
        """
        Initialize cache.

        Args:
            config: ttl_seconds, max_entries
            metrics: Shared metrics collaborator
            clock: Epoch-millis clock, injectable for tests
        """
        self.config = config or {}
        self.ttl_ms = int(float(self.config.get('ttl_seconds', DEFAULT_TTL_SECONDS)) * 1000)
        self.max_entries = int(self.config.get('max_entries', DEFAULT_MAX_ENTRIES))
        self.metrics = metrics or CalendarMetrics()
        self._clock = clock or _now_ms

        # dict order == insertion order, oldest first
        self._cache: Dict[str, CachedPeriod] = {}

        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, period_date: DateLike) -> Optional[List[TgeEvent]]:
        """
        Get cached events if present and fresh.

        Returns:
            Copy of the cached list, or None (stale entries are purged)
        """
        key = period_key(period_date)
        entry = self._cache.get(key)

        if entry is None:
            self._record(hit=False)
            logger.debug(f"[CACHE] No cache found for {key}")
            return None

        if self._is_expired(entry):
            del self._cache[key]
            self._record(hit=False)
            logger.debug(f"[CACHE] Cache expired for {key}, removed")
            return None

        self._record(hit=True)
        logger.debug(f"[CACHE] Cache hit for {key}: {len(entry.events)} events")
        return list(entry.events)

    def put(self, period_date: DateLike, events: List[TgeEvent]):
        """
        Store events for a period, replacing any existing entry.

        Args:
            period_date: Any date inside the period
            events: Events ordered by start date
        """
        key = period_key(period_date)

        if key in self._cache:
            # Re-insert so a refreshed period counts as the newest
            del self._cache[key]
        elif len(self._cache) >= self.max_entries:
            self._evict_oldest()

        self._cache[key] = CachedPeriod(
            period_key=key,
            events=list(events),
            cached_at=self._clock(),
        )
        logger.debug(f"[CACHE] Cached {len(events)} events for {key}")

    def is_fresh(self, period_date: DateLike) -> bool:
        entry = self._cache.get(period_key(period_date))
        return entry is not None and not self._is_expired(entry)

    async def preload_neighbors(self, period_date: DateLike,
                                fetch_fn: Callable[[object], Awaitable[List[TgeEvent]]]):
        """
        Populate previous and next month unless they are already fresh.

        Failures are logged per month and never propagated.
        """
        for month in neighbors(period_date):
            key = period_key(month)
            if self.is_fresh(month):
                continue
            try:
                logger.info(f"[CACHE] Preloading {key}...")
                events = await fetch_fn(month)
                self.put(month, events)
            except Exception as e:
                self.metrics.record_preload_failure()
                logger.warning(f"[CACHE] Failed to preload {key}: {e!r}")

    def evict_expired(self) -> int:
        """Remove all expired entries."""
        expired_keys = [key for key, entry in self._cache.items() if self._is_expired(entry)]
        for key in expired_keys:
            del self._cache[key]
        if expired_keys:
            logger.info(f"[CACHE] Cleared {len(expired_keys)} expired entries")
        return len(expired_keys)

    def clear(self):
        """Clear all cache entries."""
        size = len(self._cache)
        self._cache.clear()
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        logger.info(f"[CACHE] Cleared all cache ({size} entries)")

    def get_cached_periods(self) -> List[str]:
        return list(self._cache.keys())

    def __len__(self) -> int:
        return len(self._cache)

    def _is_expired(self, entry: CachedPeriod) -> bool:
        return self._clock() - entry.cached_at >= self.ttl_ms

    def _evict_oldest(self):
        if not self._cache:
            return
        oldest_key = next(iter(self._cache))
        del self._cache[oldest_key]
        self.evictions += 1
        logger.info(f"[CACHE] Removed oldest cache entry: {oldest_key}")

    def _record(self, hit: bool):
        if hit:
            self.hits += 1
        else:
            self.misses += 1
        self.metrics.record_cache(hit)

    def get_stats(self) -> Dict:
        """
        Get cache statistics.

        Returns:
            Dict with cache stats
        """
        valid = [e for e in self._cache.values() if not self._is_expired(e)]
        by_age = sorted(self._cache.values(), key=lambda e: e.cached_at)
        lookups = self.hits + self.misses

        return {
            'size': len(self._cache),
            'max_entries': self.max_entries,
            'valid_entries': len(valid),
            'expired_entries': len(self._cache) - len(valid),
            'total_events': sum(len(e.events) for e in valid),
            'hits': self.hits,
            'misses': self.misses,
            'hit_rate_pct': (self.hits / lookups * 100) if lookups else 0.0,
            'evictions': self.evictions,
            'oldest_entry': by_age[0].period_key if by_age else None,
            'newest_entry': by_age[-1].period_key if by_age else None,
            'ttl_seconds': self.ttl_ms / 1000,
        }
