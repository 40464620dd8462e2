"""
SEARCHABLE EVENT STORE

Secondary copy of every normalized event, enriched with precomputed search
text and tags, plus inverted indexes for faceted search:

  word        -> {event ids}
  blockchain  -> {event ids}   (case-insensitive)
  credibility -> {event ids}
  month       -> {event ids}   ("yyyy-MM")
  tag         -> {event ids}

Independent of the period cache; the two may disagree for a while and
nobody reconciles them. Indexes only grow, except when an upsert replaces
an event's old postings or clear() wipes everything.
"""

import logging
import re
import sqlite3
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from .kv_store import EVENTS_KEY, KeyValueStore
from .models import SearchFilters, SearchResult, TgeEvent, parse_iso, sort_by_start
from .periods import DateLike, period_key

logger = logging.getLogger(__name__)

MIN_WORD_LENGTH = 3

CATEGORY_KEYWORDS = {
    'category-defi': ('defi', 'lending', 'yield'),
    'category-gaming': ('gaming', 'nft', 'metaverse'),
    'category-infrastructure': ('layer', 'scaling', 'rollup'),
    'category-governance': ('governance', 'dao'),
}


def tokenize(text: str) -> List[str]:
    return [w for w in text.lower().split() if len(w) >= MIN_WORD_LENGTH]


def slugify(text: str) -> str:
    return re.sub(r'\s+', '-', text.strip().lower())


@dataclass
class IndexedEvent:
    event: TgeEvent
    search_text: str
    tags: List[str] = field(default_factory=list)
    words: Set[str] = field(default_factory=set)


class SearchableStore:
    """
    Event store with inverted indexes.

    Usage:
        store = SearchableStore(kv)
        store.load()
        store.add_events(events)
        result = store.search(SearchFilters(blockchain="Solana", credibility="verified"))
    """

    def __init__(self, kv_store: KeyValueStore = None):
        self.kv_store = kv_store
        self._events: Dict[str, IndexedEvent] = {}
        self._word_index: Dict[str, Set[str]] = {}
        self._blockchain_index: Dict[str, Set[str]] = {}
        self._blockchain_names: Dict[str, str] = {}
        self._credibility_index: Dict[str, Set[str]] = {}
        self._period_index: Dict[str, Set[str]] = {}
        self._tag_index: Dict[str, Set[str]] = {}

    # ------------------------------------------------------------------
    # Ingest
    # ------------------------------------------------------------------

    def add_events(self, events: List[TgeEvent]):
        """Upsert events by id; the last write wins."""
        for event in events:
            previous = self._events.get(event.id)
            if previous is not None:
                self._unindex(previous)
            indexed = self._enhance(event)
            self._events[event.id] = indexed
            self._index(indexed)

        logger.debug(f"[STORE] Added {len(events)} events. Total: {len(self._events)}")

    def _enhance(self, event: TgeEvent) -> IndexedEvent:
        parts = [
            event.name,
            event.symbol,
            event.description,
            event.blockchain,
            *[m.title for m in event.markets],
            event.credibility.value,
        ]
        search_text = ' '.join(p for p in parts if p).lower()
        return IndexedEvent(
            event=event,
            search_text=search_text,
            tags=self._generate_tags(event),
            words=set(tokenize(search_text)),
        )

    @staticmethod
    def _generate_tags(event: TgeEvent) -> List[str]:
        tags = []
        if event.blockchain:
            tags.append(f"blockchain-{slugify(event.blockchain)}")
        tags.append(f"credibility-{event.credibility.value}")
        for market in event.markets:
            tags.append(f"market-{slugify(market.title)}")

        tags.append(f"month-{period_key(event.start)}")
        tags.append(f"year-{event.start.year}")

        description = event.description.lower()
        for tag, keywords in CATEGORY_KEYWORDS.items():
            if any(k in description for k in keywords):
                tags.append(tag)
        # a market listed twice would otherwise produce a duplicate tag
        return list(dict.fromkeys(tags))

    def _index(self, item: IndexedEvent):
        event_id = item.event.id
        for word in item.words:
            self._word_index.setdefault(word, set()).add(event_id)

        if item.event.blockchain:
            chain = item.event.blockchain.lower()
            self._blockchain_index.setdefault(chain, set()).add(event_id)
            self._blockchain_names.setdefault(chain, item.event.blockchain)

        self._credibility_index.setdefault(item.event.credibility.value, set()).add(event_id)
        self._period_index.setdefault(period_key(item.event.start), set()).add(event_id)

        for tag in item.tags:
            self._tag_index.setdefault(tag, set()).add(event_id)

    def _unindex(self, item: IndexedEvent):
        event_id = item.event.id
        chain = item.event.blockchain.lower() if item.event.blockchain else None
        postings = [
            *((self._word_index, w) for w in item.words),
            *((self._tag_index, t) for t in item.tags),
            (self._credibility_index, item.event.credibility.value),
            (self._period_index, period_key(item.event.start)),
        ]
        if chain:
            postings.append((self._blockchain_index, chain))

        for index, key in postings:
            ids = index.get(key)
            if ids is None:
                continue
            ids.discard(event_id)
            if not ids:
                del index[key]
                if index is self._blockchain_index:
                    self._blockchain_names.pop(key, None)

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def search(self, filters: SearchFilters = None) -> SearchResult:
        """
        Intersect the candidate sets of every filter present.

        Returns:
            SearchResult sorted by start date; every event when no filter is set
        """
        filters = filters or SearchFilters()

        if filters.is_empty():
            candidates = set(self._events)
        else:
            candidate_sets = []
            if filters.query:
                candidate_sets.append(self._match_query(filters.query))
            if filters.blockchain:
                candidate_sets.append(self._blockchain_index.get(filters.blockchain.lower(), set()))
            if filters.credibility:
                candidate_sets.append(self._credibility_index.get(str(filters.credibility).lower(), set()))
            if filters.date_range:
                start, end = (parse_iso(v) for v in filters.date_range)
                # a missing or unreadable bound leaves that side open
                candidate_sets.append({
                    event_id for event_id, item in self._events.items()
                    if (start is None or start <= item.event.start)
                    and (end is None or item.event.start <= end)
                })
            if filters.tags:
                tagged = set()
                for tag in filters.tags:
                    tagged |= self._tag_index.get(tag, set())
                candidate_sets.append(tagged)
            candidates = set.intersection(*candidate_sets)

        events = sort_by_start([self._events[i].event for i in candidates if i in self._events])
        return SearchResult(
            events=events,
            total=len(events),
            query=filters.query or '',
            filters=filters,
        )

    def _match_query(self, query: str) -> Set[str]:
        """
        Per token: union of postings of every indexed word containing it.
        Tokens are intersected. Short-token queries scan the search text.
        """
        tokens = tokenize(query)
        if not tokens:
            needle = query.strip().lower()
            return {i for i, item in self._events.items() if needle in item.search_text}

        matched: Optional[Set[str]] = None
        for token in tokens:
            ids = set(self._word_index.get(token, set()))
            for word, postings in self._word_index.items():
                if token in word:
                    ids |= postings
            matched = ids if matched is None else matched & ids
            if not matched:
                return set()
        return matched

    def get_events_for_period(self, period_date: DateLike) -> List[TgeEvent]:
        ids = self._period_index.get(period_key(period_date), set())
        return sort_by_start([self._events[i].event for i in ids])

    def get_event(self, event_id: str) -> Optional[TgeEvent]:
        item = self._events.get(event_id)
        return item.event if item else None

    def get_tags_for(self, event_id: str) -> List[str]:
        item = self._events.get(event_id)
        return list(item.tags) if item else []

    def all_events(self) -> List[TgeEvent]:
        return sort_by_start([item.event for item in self._events.values()])

    def get_blockchains(self) -> List[str]:
        return sorted(self._blockchain_names.values())

    def get_credibility_levels(self) -> List[str]:
        return sorted(self._credibility_index)

    def get_tags(self) -> List[str]:
        return sorted(self._tag_index)

    def get_stats(self) -> Dict:
        return {
            'total_events': len(self._events),
            'blockchains': len(self._blockchain_index),
            'credibility_levels': len(self._credibility_index),
            'indexed_words': len(self._word_index),
            'months': len(self._period_index),
            'tags': len(self._tag_index),
        }

    def __len__(self) -> int:
        return len(self._events)

    def clear(self):
        self._events.clear()
        self._word_index.clear()
        self._blockchain_index.clear()
        self._blockchain_names.clear()
        self._credibility_index.clear()
        self._period_index.clear()
        self._tag_index.clear()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def persist(self):
        """Write the full event snapshot to the key-value store."""
        if self.kv_store is None:
            return
        try:
            self.kv_store.set(EVENTS_KEY, {
                'events': [item.event.to_dict() for item in self._events.values()],
            })
            logger.debug(f"[STORE] Persisted {len(self._events)} events")
        except (sqlite3.Error, OSError, ValueError, TypeError) as e:
            logger.warning(f"[STORE] Failed to persist events: {e!r}")

    def load(self) -> int:
        """Load the persisted snapshot. Returns the number of events loaded."""
        if self.kv_store is None:
            return 0
        try:
            data = self.kv_store.get(EVENTS_KEY) or {}
            events = [TgeEvent.from_dict(raw) for raw in data.get('events', [])]
        except (sqlite3.Error, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"[STORE] Failed to load persisted events: {e!r}")
            return 0

        valid = [e for e in events if e.start is not None]
        self.add_events(valid)
        logger.info(f"[STORE] Loaded {len(valid)} events from persistent store")
        return len(valid)
