"""
Period cache tests: freshness boundary, capacity eviction, preloading.
"""

import asyncio

from tgecal.cache import PeriodCache
from tgecal.metrics import CalendarMetrics

TTL_MS = 30 * 60 * 1000


def make_cache(clock, **config):
    return PeriodCache(config, metrics=CalendarMetrics(), clock=clock)


class TestPeriodCache:

    def test_miss_then_hit(self, clock, make_event):
        cache = make_cache(clock)
        event = make_event('A', '2025-09-03T00:00:00Z')

        assert cache.get('2025-09-15') is None
        cache.put('2025-09-01', [event])

        assert cache.get('2025-09-30') == [event]
        assert cache.hits == 1
        assert cache.misses == 1
        assert cache.metrics.cache_hits == 1

    def test_fresh_just_before_ttl(self, clock, make_event):
        cache = make_cache(clock)
        cache.put('2025-09', [make_event()])

        clock.advance(TTL_MS - 1)
        assert cache.get('2025-09') is not None

    def test_stale_at_and_after_ttl_is_purged(self, clock, make_event):
        cache = make_cache(clock)
        cache.put('2025-09', [make_event()])

        clock.advance(TTL_MS + 1)
        assert cache.is_fresh('2025-09') is False
        assert len(cache) == 1
        assert cache.get('2025-09') is None
        assert len(cache) == 0

    def test_exactly_ttl_counts_as_stale(self, clock, make_event):
        cache = make_cache(clock)
        cache.put('2025-09', [make_event()])
        clock.advance(TTL_MS)
        assert cache.get('2025-09') is None

    def test_returns_copy(self, clock, make_event):
        cache = make_cache(clock)
        cache.put('2025-09', [make_event()])

        cache.get('2025-09').clear()
        assert len(cache.get('2025-09')) == 1

    def test_capacity_evicts_oldest_insert(self, clock):
        cache = make_cache(clock, max_entries=3)
        for month in ('2025-01', '2025-02', '2025-03'):
            cache.put(month, [])
            clock.advance(1)

        cache.put('2025-04', [])

        assert cache.get_cached_periods() == ['2025-02', '2025-03', '2025-04']
        assert cache.evictions == 1

    def test_replacing_key_refreshes_position(self, clock):
        cache = make_cache(clock, max_entries=2)
        cache.put('2025-01', [])
        cache.put('2025-02', [])
        cache.put('2025-01', [])   # now the newest

        cache.put('2025-03', [])

        assert cache.get_cached_periods() == ['2025-01', '2025-03']
        assert cache.evictions == 1

    def test_default_limits(self, clock):
        cache = make_cache(clock)
        for i in range(25):
            cache.put(f"{2024 + i // 12}-{i % 12 + 1:02d}", [])
        assert len(cache) == 24
        assert '2024-01' not in cache.get_cached_periods()

    def test_evict_expired(self, clock):
        cache = make_cache(clock)
        cache.put('2025-01', [])
        clock.advance(TTL_MS)
        cache.put('2025-02', [])

        assert cache.evict_expired() == 1
        assert cache.get_cached_periods() == ['2025-02']

    def test_stats(self, clock, make_event):
        cache = make_cache(clock)
        cache.put('2025-09', [make_event(), make_event('B')])
        cache.get('2025-09')
        cache.get('2025-10')

        stats = cache.get_stats()

        assert stats['size'] == 1
        assert stats['valid_entries'] == 1
        assert stats['total_events'] == 2
        assert stats['hit_rate_pct'] == 50.0
        assert stats['oldest_entry'] == '2025-09'
        assert stats['ttl_seconds'] == 1800

    def test_clear(self, clock):
        cache = make_cache(clock)
        cache.put('2025-09', [])
        cache.clear()
        assert len(cache) == 0


class TestPreloadNeighbors:

    def test_loads_previous_and_next_month(self, clock, make_event):
        cache = make_cache(clock)
        requested = []

        async def fetch(month):
            requested.append(month.strftime('%Y-%m'))
            return [make_event('N', month.strftime('%Y-%m-05T00:00:00Z'))]

        asyncio.run(cache.preload_neighbors('2025-09-15', fetch))

        assert requested == ['2025-08', '2025-10']
        assert set(cache.get_cached_periods()) == {'2025-08', '2025-10'}

    def test_skips_fresh_neighbors(self, clock):
        cache = make_cache(clock)
        cache.put('2025-08', [])
        requested = []

        async def fetch(month):
            requested.append(month.strftime('%Y-%m'))
            return []

        asyncio.run(cache.preload_neighbors('2025-09', fetch))
        assert requested == ['2025-10']

    def test_failures_are_swallowed_per_month(self, clock):
        cache = make_cache(clock)

        async def fetch(month):
            if month.month == 8:
                raise RuntimeError('source down')
            return []

        asyncio.run(cache.preload_neighbors('2025-09', fetch))

        assert cache.get_cached_periods() == ['2025-10']
        assert cache.metrics.preload_failures == 1
