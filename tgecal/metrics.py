"""
CALENDAR METRICS

Counters handed to the aggregator, cache and facade instead of scattered
print statements. Pure in-process state; snapshot with get_stats().
"""

from collections import defaultdict
from datetime import datetime
from typing import Dict


class CalendarMetrics:
    def __init__(self):
        self.source_success = defaultdict(int)
        self.source_failure = defaultdict(int)
        self.source_events = defaultdict(int)
        self.cache_hits = 0
        self.cache_misses = 0
        self.dedup_collisions = 0
        self.fallbacks = 0
        self.preload_failures = 0
        self.started_at = datetime.now()

    def record_source(self, source: str, ok: bool, count: int = 0):
        if ok:
            self.source_success[source] += 1
            self.source_events[source] += count
        else:
            self.source_failure[source] += 1

    def record_cache(self, hit: bool):
        if hit:
            self.cache_hits += 1
        else:
            self.cache_misses += 1

    def record_dedup(self, collisions: int):
        self.dedup_collisions += collisions

    def record_fallback(self):
        self.fallbacks += 1

    def record_preload_failure(self):
        self.preload_failures += 1

    def get_stats(self) -> Dict:
        lookups = self.cache_hits + self.cache_misses
        return {
            'sources': {
                name: {
                    'success': self.source_success[name],
                    'failure': self.source_failure[name],
                    'events': self.source_events[name],
                }
                for name in sorted(set(self.source_success) | set(self.source_failure))
            },
            'cache_hits': self.cache_hits,
            'cache_misses': self.cache_misses,
            'cache_hit_rate_pct': (self.cache_hits / lookups * 100) if lookups else 0.0,
            'dedup_collisions': self.dedup_collisions,
            'fallbacks': self.fallbacks,
            'preload_failures': self.preload_failures,
            'uptime_seconds': (datetime.now() - self.started_at).total_seconds(),
        }
