"""
Search facade over the SearchableStore.

Adds sorting and limits on top of the raw index search, autocomplete
suggestions, and a small most-recent-first search history persisted in the
key-value store.
"""

import logging
import sqlite3
from collections import Counter
from dataclasses import replace
from typing import Dict, List

from .kv_store import HISTORY_KEY, KeyValueStore
from .models import SearchFilters, SearchOptions, SearchResult, Suggestion, TgeEvent
from .search_store import SearchableStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_HISTORY = 10

POPULAR_TOKENS = ['Bitcoin', 'Ethereum', 'Solana', 'Polygon', 'Arbitrum']
POPULAR_BLOCKCHAINS = ['Ethereum', 'Solana', 'Polygon', 'Arbitrum', 'Base']


class SearchService:
    def __init__(self, store: SearchableStore, kv_store: KeyValueStore = None, config: Dict = None):
        self.store = store
        self.kv_store = kv_store
        self.config = config or {}
        self.max_history = int(self.config.get('max_history', DEFAULT_MAX_HISTORY))
        self._history: List[str] = []
        self.searches = 0

    async def search(self, query: str = '', filters: SearchFilters = None,
                     options: SearchOptions = None) -> SearchResult:
        """
        Search the store.

        Args:
            query: Free text, recorded in history when non-blank
            filters: Facets (blockchain, credibility, date_range, tags)
            options: sort_by (date|name|relevance), sort_order, limit

        Returns:
            SearchResult; total counts matches before the limit is applied
        """
        options = options or SearchOptions()
        query = (query or '').strip()
        self.searches += 1

        if query:
            self._add_to_history(query)

        effective = replace(filters or SearchFilters(), query=query or None)
        result = self.store.search(effective)

        events = result.events
        if options.sort_by:
            events = self._sort_events(events, options.sort_by, options.sort_order)
        if options.limit:
            events = events[:options.limit]
        result.events = events

        logger.debug(f"[SEARCH] '{query}' -> {result.total} matches")
        return result

    @staticmethod
    def _sort_events(events: List[TgeEvent], sort_by: str, sort_order: str) -> List[TgeEvent]:
        reverse = sort_order == 'desc'
        if sort_by == 'name':
            return sorted(events, key=lambda e: e.name.lower(), reverse=reverse)
        if sort_by in ('date', 'relevance'):
            # no relevance scoring yet, date order stands in for it
            return sorted(events, key=lambda e: e.start, reverse=reverse)
        return list(events)

    # ------------------------------------------------------------------
    # Suggestions
    # ------------------------------------------------------------------

    def get_suggestions(self, query: str, limit: int = 5) -> List[Suggestion]:
        """
        Autocomplete suggestions for a partial query.

        Empty query returns popular defaults.
        """
        needle = (query or '').strip().lower()
        if not needle:
            return self._popular_suggestions(limit)

        matches = self.store.search(SearchFilters(query=needle)).events

        suggestions = []
        suggestions += self._counted(
            'token',
            (t for e in matches for t in (e.name, e.symbol) if t and needle in t.lower()),
            limit,
        )
        suggestions += [
            Suggestion(text=chain, type='blockchain')
            for chain in self.store.get_blockchains() if needle in chain.lower()
        ][:limit]
        suggestions += self._counted(
            'market',
            (m.title for e in matches for m in e.markets if needle in m.title.lower()),
            limit,
        )
        suggestions += [
            Suggestion(text=tag, type='tag')
            for tag in self.store.get_tags() if needle in tag.lower()
        ][:limit]

        seen = set()
        unique = []
        for s in suggestions:
            if (s.text, s.type) in seen:
                continue
            seen.add((s.text, s.type))
            unique.append(s)

        unique.sort(key=lambda s: s.count, reverse=True)
        return unique[:limit]

    @staticmethod
    def _counted(kind: str, values, limit: int) -> List[Suggestion]:
        return [Suggestion(text=text, type=kind, count=count)
                for text, count in Counter(values).most_common(limit)]

    @staticmethod
    def _popular_suggestions(limit: int) -> List[Suggestion]:
        popular = [Suggestion(text=t, type='token') for t in POPULAR_TOKENS]
        popular += [Suggestion(text=b, type='blockchain') for b in POPULAR_BLOCKCHAINS]
        return popular[:limit]

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def _add_to_history(self, query: str):
        self._history = [q for q in self._history if q != query]
        self._history.insert(0, query)
        self._history = self._history[:self.max_history]
        self._persist_history()

    def get_search_history(self) -> List[str]:
        return list(self._history)

    def clear_search_history(self):
        self._history = []
        self._persist_history()

    def _persist_history(self):
        if self.kv_store is None:
            return
        try:
            self.kv_store.set(HISTORY_KEY, self._history)
        except (sqlite3.Error, OSError) as e:
            logger.warning(f"[SEARCH] Failed to persist search history: {e!r}")

    def load_search_history(self) -> List[str]:
        if self.kv_store is None:
            return []
        try:
            stored = self.kv_store.get(HISTORY_KEY) or []
        except (sqlite3.Error, ValueError) as e:
            logger.warning(f"[SEARCH] Failed to load search history: {e!r}")
            return []

        if isinstance(stored, list):
            self._history = [str(q) for q in stored][:self.max_history]
        return list(self._history)

    def get_search_analytics(self) -> Dict:
        return {
            'total_searches': len(self._history),
            'searches_this_session': self.searches,
            'recent_searches': self._history[:5],
            'store_stats': self.store.get_stats(),
        }
