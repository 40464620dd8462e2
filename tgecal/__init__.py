"""
TGE CALENDAR MODULE

Aggregates crypto Token Generation Events from several unreliable,
rate-limited sources into one deduplicated, cached and searchable calendar.

GOAL:
- The calendar never renders empty and never shows an error
- Every source may fail independently without taking the others down
- Flipping between months does not re-hit every API

Architecture:
  CryptoRank / CoinMarketCal / DeFiLlama / Community
          ↓
  NORMALIZER → DEDUP → SORT (Aggregator)
          ↓
  PERIOD CACHE + SEARCHABLE STORE
          ↓
  QUERY FACADE
"""

from .aggregator import EventAggregator
from .base_source import BaseSource
from .cache import PeriodCache
from .coinmarketcal_source import CoinMarketCalSource
from .community_source import CommunitySource
from .cryptorank_source import CryptoRankSource
from .deduplicator import EventDeduplicator
from .defillama_source import DefiLlamaSource
from .facade import TgeQueryFacade
from .integration import close_calendar, create_calendar
from .kv_store import KeyValueStore
from .metrics import CalendarMetrics
from .models import (
    Credibility,
    EventsResponse,
    FetchParams,
    MarketLink,
    SearchFilters,
    SearchOptions,
    SearchResult,
    Suggestion,
    TgeEvent,
)
from .normalizer import EventNormalizer
from .scheduler import BackgroundScheduler
from .search_service import SearchService
from .search_store import SearchableStore

__all__ = [
    'BaseSource',
    'CryptoRankSource',
    'CoinMarketCalSource',
    'DefiLlamaSource',
    'CommunitySource',
    'EventNormalizer',
    'EventDeduplicator',
    'EventAggregator',
    'PeriodCache',
    'KeyValueStore',
    'SearchableStore',
    'SearchService',
    'BackgroundScheduler',
    'CalendarMetrics',
    'TgeQueryFacade',
    'create_calendar',
    'close_calendar',
    'Credibility',
    'EventsResponse',
    'FetchParams',
    'MarketLink',
    'SearchFilters',
    'SearchOptions',
    'SearchResult',
    'Suggestion',
    'TgeEvent',
]
