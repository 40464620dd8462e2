"""
EVENT AGGREGATOR

Fans out to every source concurrently, keeps whatever succeeded, and turns
the union into one clean, ordered list.

  CryptoRank / CoinMarketCal / DeFiLlama / Community
          ↓  (all issued at once, settle-all)
  CONCAT in source order
          ↓  (empty? -> community fallback)
  DEDUP (first source wins)
          ↓
  WINDOW FILTER + SORT by start date
"""

import asyncio
import logging
from typing import List, Optional

from .base_source import BaseSource
from .deduplicator import EventDeduplicator
from .metrics import CalendarMetrics
from .models import FetchParams, TgeEvent, sort_by_start

logger = logging.getLogger(__name__)


class EventAggregator:
    """
    Merges all sources. fetch_all() never raises.

    Usage:
        aggregator = EventAggregator([cryptorank, coinmarketcal, defillama], community)
        events = await aggregator.fetch_all(FetchParams(start, end))
    """

    def __init__(self, sources: List[BaseSource], fallback: Optional[BaseSource] = None,
                 metrics: CalendarMetrics = None, deduplicator: EventDeduplicator = None):
        """
        Args:
            sources: Adapters in priority order (earlier wins on duplicates)
            fallback: Static source used when every source comes back empty.
                      Usually also present in `sources`.
        """
        self.sources = list(sources)
        self.fallback = fallback
        self.metrics = metrics or CalendarMetrics()
        self.deduplicator = deduplicator or EventDeduplicator()
        self.runs = 0

    async def fetch_all(self, params: FetchParams = None) -> List[TgeEvent]:
        params = params or FetchParams()
        self.runs += 1

        results = await asyncio.gather(
            *(source.fetch_events(params) for source in self.sources),
            return_exceptions=True,
        )

        combined: List[TgeEvent] = []
        for source, result in zip(self.sources, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                logger.warning(f"[AGGREGATOR] {source.name} failed: {result!r}")
                self.metrics.record_source(source.name, ok=False)
                continue
            self.metrics.record_source(source.name, ok=True, count=len(result))
            logger.debug(f"[AGGREGATOR] {source.name}: {len(result)} events")
            combined.extend(result)

        if not combined and self.fallback is not None:
            logger.info("[AGGREGATOR] No events from any source, using community fallback")
            try:
                combined = await self.fallback.fetch_events(params)
            except Exception as e:
                logger.error(f"[AGGREGATOR] Fallback source failed: {e!r}")
                combined = []

        before = self.deduplicator.stats['collisions']
        unique = self.deduplicator.deduplicate(combined)
        self.metrics.record_dedup(self.deduplicator.stats['collisions'] - before)

        in_window = [event for event in unique if params.contains(event)]
        ordered = sort_by_start(in_window)

        logger.info(f"[AGGREGATOR] {len(combined)} raw -> {len(unique)} unique -> "
                    f"{len(ordered)} in window")
        return ordered

    async def close(self):
        sources = list(self.sources)
        if self.fallback is not None and self.fallback not in sources:
            sources.append(self.fallback)
        for source in sources:
            await source.close()

    def get_stats(self):
        return {
            'runs': self.runs,
            'sources': [source.get_stats() for source in self.sources],
            'dedup': self.deduplicator.get_stats(),
        }
