"""
Searchable store, search service and key-value persistence tests.
"""

import asyncio
import inspect
import sqlite3
from datetime import datetime, timezone

import pytest

from tgecal import config
from tgecal.kv_store import EVENTS_KEY, HISTORY_KEY, KeyValueStore
from tgecal.models import SearchFilters, SearchOptions
from tgecal.search_service import SearchService
from tgecal.search_store import SearchableStore


@pytest.fixture
def kv(tmp_path):
    return KeyValueStore(str(tmp_path / 'db' / 'tgecal.db'))


@pytest.fixture
def events(make_event):
    return [
        make_event('Aster Network (ASTER/USDT)', '2025-09-17T00:00:00Z', id='aster',
                   symbol='ASTER', blockchain='Ethereum', markets=['Binance', 'KuCoin'],
                   description='Layer 1 blockchain | Gaming focus'),
        make_event('XPL Protocol Token', '2025-09-25T00:00:00Z', id='xpl',
                   symbol='XPL', blockchain='Solana', markets=['Raydium'],
                   description='DeFi protocol | Yield farming'),
        make_event('Pump Fun Token', '2025-10-03T00:00:00Z', id='pump',
                   symbol='PUMP', blockchain='Solana', credibility='rumor',
                   description='Memecoin launchpad'),
    ]


@pytest.fixture
def store(events):
    store = SearchableStore()
    store.add_events(events)
    return store


class TestKeyValueStore:

    def test_round_trip(self, kv):
        kv.set('k', {'a': [1, 2]})
        assert kv.get('k') == {'a': [1, 2]}
        assert kv.get('missing', 'dflt') == 'dflt'
        assert kv.updated_at('k') is not None

    def test_default_path_comes_from_config(self):
        default = inspect.signature(KeyValueStore).parameters['db_path'].default
        assert default == config.DB_PATH

    def test_overwrite_and_delete(self, kv):
        kv.set('k', 1)
        kv.set('k', 2)
        assert kv.get('k') == 2
        assert kv.keys() == ['k']
        kv.delete('k')
        assert kv.get('k') is None


class TestSearchableStore:

    def test_empty_filters_return_everything(self, store):
        result = store.search(SearchFilters())
        assert result.total == 3
        assert [e.id for e in result.events] == ['aster', 'xpl', 'pump']

    def test_query_matches_word_substrings(self, store):
        assert [e.id for e in store.search(SearchFilters(query='aste')).events] == ['aster']
        assert [e.id for e in store.search(SearchFilters(query='solana token')).events] == ['xpl', 'pump']

    def test_short_query_falls_back_to_scan(self, store):
        assert [e.id for e in store.search(SearchFilters(query='xp')).events] == ['xpl']

    def test_blockchain_is_case_insensitive(self, store):
        result = store.search(SearchFilters(blockchain='SOLANA'))
        assert [e.id for e in result.events] == ['xpl', 'pump']

    def test_filters_intersect(self, store):
        result = store.search(SearchFilters(blockchain='solana', credibility='verified'))
        assert [e.id for e in result.events] == ['xpl']

        nothing = store.search(SearchFilters(query='aster', blockchain='solana'))
        assert nothing.total == 0

    def test_date_range_is_inclusive(self, store):
        result = store.search(SearchFilters(date_range=(
            datetime(2025, 9, 17, tzinfo=timezone.utc),
            datetime(2025, 9, 25, tzinfo=timezone.utc),
        )))
        assert [e.id for e in result.events] == ['aster', 'xpl']

    def test_date_range_missing_bound_is_open(self, store):
        since = store.search(SearchFilters(date_range=(
            datetime(2025, 9, 20, tzinfo=timezone.utc), None)))
        assert [e.id for e in since.events] == ['xpl', 'pump']

        until = store.search(SearchFilters(date_range=('not-a-date', '2025-09-30')))
        assert [e.id for e in until.events] == ['aster', 'xpl']

        assert store.search(SearchFilters(date_range=(None, None))).total == 3

    def test_tags_match_any(self, store):
        assert 'category-defi' in store.get_tags_for('xpl')
        assert 'category-gaming' in store.get_tags_for('aster')
        assert 'month-2025-09' in store.get_tags_for('aster')
        assert 'market-binance' in store.get_tags_for('aster')

        result = store.search(SearchFilters(tags=['category-defi', 'credibility-rumor']))
        assert [e.id for e in result.events] == ['xpl', 'pump']

    def test_upsert_replaces_postings(self, store, make_event):
        store.add_events([make_event('Aster Renamed', '2025-11-01T00:00:00Z', id='aster',
                                     blockchain='Base')])

        assert len(store) == 3
        assert store.search(SearchFilters(query='network')).total == 0
        assert [e.id for e in store.search(SearchFilters(blockchain='base')).events] == ['aster']
        assert 'Ethereum' not in store.get_blockchains()
        assert [e.id for e in store.get_events_for_period('2025-11')] == ['aster']
        assert [e.id for e in store.get_events_for_period('2025-09')] == ['xpl']

    def test_facets(self, store):
        assert store.get_blockchains() == ['Ethereum', 'Solana']
        assert store.get_credibility_levels() == ['rumor', 'verified']
        assert store.get_stats()['total_events'] == 3

    def test_clear(self, store):
        store.clear()
        assert store.search(SearchFilters()).total == 0
        assert store.get_tags() == []

    def test_persist_and_load(self, kv, events):
        original = SearchableStore(kv)
        original.add_events(events)
        original.persist()

        restored = SearchableStore(kv)
        assert restored.load() == 3
        assert [e.id for e in restored.search(SearchFilters(blockchain='solana')).events] == ['xpl', 'pump']
        assert restored.get_event('aster') == events[0]

    def test_corrupt_snapshot_starts_empty(self, kv):
        conn = sqlite3.connect(kv.db_path)
        conn.execute("INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, 0)",
                     (EVENTS_KEY, '{not json'))
        conn.commit()
        conn.close()

        store = SearchableStore(kv)
        assert store.load() == 0
        assert len(store) == 0


class TestSearchService:

    def test_sort_and_limit(self, store):
        service = SearchService(store)
        result = asyncio.run(service.search('', SearchFilters(blockchain='solana'),
                                            SearchOptions(sort_by='name', sort_order='desc', limit=1)))
        assert [e.id for e in result.events] == ['xpl']
        assert result.total == 2

    def test_history_most_recent_first_and_capped(self, store, kv):
        service = SearchService(store, kv, {'max_history': 3})
        for query in ['aster', 'xpl', 'pump', 'aster', 'solana']:
            asyncio.run(service.search(query))

        assert service.get_search_history() == ['solana', 'aster', 'pump']
        assert kv.get(HISTORY_KEY) == ['solana', 'aster', 'pump']

        reloaded = SearchService(store, kv, {'max_history': 3})
        assert reloaded.load_search_history() == ['solana', 'aster', 'pump']

    def test_blank_query_not_recorded(self, store):
        service = SearchService(store)
        asyncio.run(service.search('   '))
        assert service.get_search_history() == []

    def test_clear_history(self, store, kv):
        service = SearchService(store, kv)
        asyncio.run(service.search('aster'))
        service.clear_search_history()
        assert service.get_search_history() == []
        assert kv.get(HISTORY_KEY) == []

    def test_suggestions(self, store):
        service = SearchService(store)
        suggestions = service.get_suggestions('sol', limit=10)

        pairs = {(s.text, s.type) for s in suggestions}
        assert ('Solana', 'blockchain') in pairs
        assert ('blockchain-solana', 'tag') in pairs
        assert len(pairs) == len(suggestions)

    def test_token_suggestions_ranked_by_count(self, store):
        suggestions = SearchService(store).get_suggestions('token', limit=5)
        tokens = [s for s in suggestions if s.type == 'token']
        assert {s.text for s in tokens} == {'XPL Protocol Token', 'Pump Fun Token'}
        counts = [s.count for s in suggestions]
        assert counts == sorted(counts, reverse=True)

    def test_popular_suggestions_for_empty_query(self, store):
        suggestions = SearchService(store).get_suggestions('', limit=3)
        assert [s.text for s in suggestions] == ['Bitcoin', 'Ethereum', 'Solana']

    def test_analytics(self, store):
        service = SearchService(store)
        asyncio.run(service.search('aster'))
        analytics = service.get_search_analytics()
        assert analytics['recent_searches'] == ['aster']
        assert analytics['store_stats']['total_events'] == 3
