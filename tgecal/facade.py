"""
TGE QUERY FACADE

Single entry point the calendar UI talks to.

  get_events_for_period(date)
      ↓
  PERIOD CACHE ── hit ──────────────────────────────┐
      ↓ miss                                        │
  AGGREGATOR (month window)                         │
      ↓                                             │
  cache.put + store.add_events + persist            │
      ↓                                             ↓
  answer (mock data if empty / failed)    schedule neighbour preload

The UI never sees an exception and never sees an empty month.
"""

import logging
from typing import Dict, List

from .aggregator import EventAggregator
from .cache import PeriodCache
from .metrics import CalendarMetrics
from .mock_data import mock_events_for_period
from .models import EventsResponse, FetchParams, SearchFilters, SearchOptions, SearchResult, Suggestion, TgeEvent
from .periods import DateLike, period_bounds, period_key
from .scheduler import BackgroundScheduler
from .search_service import SearchService
from .search_store import SearchableStore

logger = logging.getLogger(__name__)


class TgeQueryFacade:
    """
    Coordinates cache, aggregation, indexing and background preloading.

    Usage:
        calendar = create_calendar()
        response = await calendar.get_events_for_period("2025-09")
        result = await calendar.search("aster", SearchFilters(blockchain="Ethereum"))
    """

    def __init__(self, aggregator: EventAggregator, cache: PeriodCache,
                 store: SearchableStore, search_service: SearchService,
                 scheduler: BackgroundScheduler = None, metrics: CalendarMetrics = None,
                 config: Dict = None):
        self.aggregator = aggregator
        self.cache = cache
        self.store = store
        self.search_service = search_service
        self.scheduler = scheduler or BackgroundScheduler()
        self.metrics = metrics or CalendarMetrics()
        self.config = config or {}
        self.preload_enabled = self.config.get('preload_neighbors', True)

    async def get_events_for_period(self, period_date: DateLike) -> EventsResponse:
        """
        Events for the month containing period_date.

        Returns:
            EventsResponse with origin 'cache', 'aggregator' or 'fallback'
        """
        key = period_key(period_date)

        cached = self.cache.get(period_date)
        if cached is not None:
            self._schedule_preload(period_date)
            if not cached:
                logger.debug(f"[FACADE] {key}: cached month is empty, serving mock data")
                return self._fallback(period_date, key)
            logger.debug(f"[FACADE] {key}: serving {len(cached)} cached events")
            return self._answer(cached, key, 'cache')

        try:
            events = await self._fetch_period(period_date)
        except Exception as e:
            logger.error(f"[FACADE] {key}: aggregation failed, serving mock data: {e!r}")
            return self._fallback(period_date, key)

        self.cache.put(period_date, events)
        self.cache.evict_expired()
        self._schedule_preload(period_date)

        if not events:
            logger.warning(f"[FACADE] {key}: no events from any source, serving mock data")
            return self._fallback(period_date, key)

        logger.info(f"[FACADE] {key}: {len(events)} events")
        return self._answer(events, key, 'aggregator')

    async def _fetch_period(self, period_date: DateLike) -> List[TgeEvent]:
        """Aggregate one month and index the result for search."""
        start, end = period_bounds(period_date)
        events = await self.aggregator.fetch_all(FetchParams(start=start, end=end))
        self.store.add_events(events)
        self.store.persist()
        return events

    def _schedule_preload(self, period_date: DateLike):
        if not self.preload_enabled:
            return
        self.scheduler.submit(
            self.cache.preload_neighbors(period_date, self._fetch_period),
            name=f"preload-{period_key(period_date)}",
        )

    def _fallback(self, period_date: DateLike, key: str) -> EventsResponse:
        self.metrics.record_fallback()
        return self._answer(mock_events_for_period(period_date), key, 'fallback')

    @staticmethod
    def _answer(events: List[TgeEvent], key: str, origin: str) -> EventsResponse:
        return EventsResponse(events=events, total=len(events), period=key, origin=origin)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(self, query: str = '', filters: SearchFilters = None,
                     options: SearchOptions = None) -> SearchResult:
        return await self.search_service.search(query, filters, options)

    def get_suggestions(self, query: str, limit: int = 5) -> List[Suggestion]:
        return self.search_service.get_suggestions(query, limit)

    def get_search_history(self) -> List[str]:
        return self.search_service.get_search_history()

    def clear_search_history(self):
        self.search_service.clear_search_history()

    # ------------------------------------------------------------------
    # Cache management / introspection
    # ------------------------------------------------------------------

    def get_cache_stats(self) -> Dict:
        return self.cache.get_stats()

    def get_cached_periods(self) -> List[str]:
        return self.cache.get_cached_periods()

    def clear_expired(self) -> int:
        return self.cache.evict_expired()

    def clear_all(self):
        """Clear the period cache. The searchable store is left alone."""
        self.cache.clear()

    def get_metrics(self) -> Dict:
        return {
            **self.metrics.get_stats(),
            'aggregator': self.aggregator.get_stats(),
            'cache': self.cache.get_stats(),
            'store': self.store.get_stats(),
            'scheduler': self.scheduler.get_stats(),
        }

    async def close(self):
        await self.scheduler.shutdown()
        await self.aggregator.close()
