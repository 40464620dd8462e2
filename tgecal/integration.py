"""
TGE CALENDAR INTEGRATION

Composition root: builds every component, wires the shared collaborators
(normalizer, metrics, key-value store) and hands back a ready facade.

ARCHITECTURE:
  CryptoRank / CoinMarketCal / DeFiLlama / Community
          ↓
  AGGREGATOR (normalize, dedup, sort)
          ↓
  PERIOD CACHE  +  SEARCHABLE STORE (persisted)
          ↓
  QUERY FACADE (This Module builds it)
          ↓
  CLI / UI
"""

import logging
from typing import Dict, List

from .aggregator import EventAggregator
from .base_source import BaseSource
from .cache import PeriodCache
from .coinmarketcal_source import CoinMarketCalSource
from .community_source import CommunitySource
from .config import DB_PATH, TGE_CALENDAR_CONFIG, load_source_configs
from .cryptorank_source import CryptoRankSource
from .defillama_source import DefiLlamaSource
from .facade import TgeQueryFacade
from .kv_store import KeyValueStore
from .metrics import CalendarMetrics
from .normalizer import EventNormalizer
from .scheduler import BackgroundScheduler
from .search_service import SearchService
from .search_store import SearchableStore

logger = logging.getLogger(__name__)


def build_sources(source_configs: Dict, normalizer: EventNormalizer) -> List[BaseSource]:
    """Instantiate adapters in priority order (earlier wins on duplicates)."""
    return [
        CryptoRankSource(source_configs.get('cryptorank') or {}, normalizer),
        CoinMarketCalSource(source_configs.get('coinmarketcal') or {}, normalizer),
        DefiLlamaSource(source_configs.get('defillama') or {}, normalizer),
        CommunitySource(source_configs.get('community') or {}, normalizer),
    ]


def create_calendar(config: Dict = None, db_path: str = None, source_configs: Dict = None,
                    sources: List[BaseSource] = None) -> TgeQueryFacade:
    """
    Build a fully wired calendar.

    Args:
        config: Calendar config (defaults to TGE_CALENDAR_CONFIG)
        db_path: SQLite path for the key-value store (defaults to TGECAL_DB_PATH)
        source_configs: Per-source settings (defaults to sources.yaml + env keys)
        sources: Pre-built adapters, replacing the default set entirely

    Returns:
        TgeQueryFacade with persisted events and search history already loaded
    """
    config = config or TGE_CALENDAR_CONFIG
    metrics = CalendarMetrics()
    normalizer = EventNormalizer()

    if sources is None:
        sources = build_sources(source_configs if source_configs is not None else load_source_configs(),
                                normalizer)

    community = next((s for s in sources if isinstance(s, CommunitySource) and s.enabled), None)
    fallback = community or CommunitySource(normalizer=normalizer)

    aggregator = EventAggregator(sources, fallback=fallback, metrics=metrics)
    cache = PeriodCache(config.get('cache', {}), metrics=metrics)

    kv_store = KeyValueStore(db_path or DB_PATH)
    store = SearchableStore(kv_store)
    search_service = SearchService(store, kv_store, config.get('search', {}))

    # Eager load: both persisted keys are read once at startup
    store.load()
    search_service.load_search_history()

    calendar = TgeQueryFacade(
        aggregator=aggregator,
        cache=cache,
        store=store,
        search_service=search_service,
        scheduler=BackgroundScheduler(config.get('scheduler', {})),
        metrics=metrics,
        config=config.get('facade', {}),
    )

    enabled = [s.name for s in sources if s.enabled]
    logger.info(f"[CALENDAR] Initialized with sources: {enabled}")
    logger.info(f"[CALENDAR] Store: {len(store)} events, history: {len(search_service.get_search_history())}")
    return calendar


async def close_calendar(calendar: TgeQueryFacade, drain: bool = True):
    """Finish (or cancel) background work and close HTTP sessions."""
    if drain:
        await calendar.scheduler.drain()
    await calendar.close()
    logger.info("[CALENDAR] Resources closed")
