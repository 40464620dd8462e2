"""
Deduplicator and aggregator tests.
"""

import asyncio
import random
from datetime import datetime, timezone

from tgecal.aggregator import EventAggregator
from tgecal.deduplicator import EventDeduplicator, dedup_key, deduplicate_events, normalize_name
from tgecal.metrics import CalendarMetrics
from tgecal.models import FetchParams

SEPTEMBER = FetchParams(
    start=datetime(2025, 9, 1, tzinfo=timezone.utc),
    end=datetime(2025, 9, 30, 23, 59, 59, tzinfo=timezone.utc),
)


class TestDeduplicator:

    def test_normalize_name_strips_brackets_and_punctuation(self):
        assert normalize_name('Aster Network (ASTER/USDT)') == 'asternetwork'
        assert normalize_name('aster network') == 'asternetwork'
        assert normalize_name('(WLFI)') == 'wlfi'

    def test_key_ignores_time_of_day(self, make_event):
        morning = make_event('Aster', '2025-09-17T01:00:00Z')
        evening = make_event('ASTER!', '2025-09-17T22:30:00Z')
        assert dedup_key(morning) == dedup_key(evening)

    def test_first_occurrence_wins(self, make_event):
        first = make_event('Aster Network (ASTER/USDT)', '2025-09-17T00:00:00Z', source='community')
        second = make_event('aster network', '2025-09-17T12:00:00Z', source='coinmarketcal')
        other_day = make_event('aster network', '2025-09-18T00:00:00Z', source='coinmarketcal')

        dedup = EventDeduplicator()
        unique = dedup.deduplicate([first, second, other_day])

        assert unique == [first, other_day]
        assert dedup.stats['collisions'] == 1

    def test_idempotent(self, make_event):
        events = [make_event(n, d) for n, d in [
            ('A', '2025-09-01T00:00:00Z'), ('a', '2025-09-01T05:00:00Z'),
            ('B', '2025-09-02T00:00:00Z'), ('A', '2025-09-03T00:00:00Z'),
        ]]
        once = deduplicate_events(events)
        assert deduplicate_events(once) == once


class TestEventAggregator:

    def test_merges_in_source_order_and_sorts(self, make_event, stub_source):
        late = make_event('Late', '2025-09-20T00:00:00Z', source='a')
        early = make_event('Early', '2025-09-02T00:00:00Z', source='b')
        aggregator = EventAggregator([stub_source('a', [late]), stub_source('b', [early])])

        events = asyncio.run(aggregator.fetch_all(SEPTEMBER))

        assert [e.name for e in events] == ['Early', 'Late']

    def test_sorted_for_any_input_order(self, make_event, stub_source):
        days = list(range(1, 29))
        random.Random(7).shuffle(days)
        events = [make_event(f'E{d}', f'2025-09-{d:02d}T00:00:00Z') for d in days]
        aggregator = EventAggregator([stub_source('a', events)])

        result = asyncio.run(aggregator.fetch_all(SEPTEMBER))

        starts = [e.start for e in result]
        assert starts == sorted(starts)

    def test_earlier_source_wins_duplicates(self, make_event, stub_source):
        community = make_event('Aster Network (ASTER/USDT)', '2025-09-17T00:00:00Z', source='community')
        cmc = make_event('aster network', '2025-09-17T00:00:00Z', source='coinmarketcal')
        metrics = CalendarMetrics()
        aggregator = EventAggregator(
            [stub_source('community', [community]), stub_source('coinmarketcal', [cmc])],
            metrics=metrics,
        )

        events = asyncio.run(aggregator.fetch_all(SEPTEMBER))

        assert events == [community]
        assert metrics.dedup_collisions == 1

    def test_partial_failure_keeps_other_sources(self, make_event, stub_source):
        good = make_event('Survivor', '2025-09-05T00:00:00Z')
        metrics = CalendarMetrics()
        aggregator = EventAggregator([
            stub_source('broken', error=RuntimeError('down'), raise_outside=True),
            stub_source('good', [good]),
        ], metrics=metrics)

        events = asyncio.run(aggregator.fetch_all(SEPTEMBER))

        assert events == [good]
        assert metrics.source_failure['broken'] == 1
        assert metrics.source_success['good'] == 1

    def test_all_sources_fail_uses_fallback(self, make_event, stub_source):
        seed = make_event('Seed', '2025-09-09T00:00:00Z', source='community')
        fallback = stub_source('community', [seed])
        aggregator = EventAggregator([
            stub_source('a', error=RuntimeError('x')),
            stub_source('b', error=RuntimeError('y'), raise_outside=True),
        ], fallback=fallback)

        events = asyncio.run(aggregator.fetch_all(SEPTEMBER))

        assert events == [seed]
        assert len(fallback.calls) == 1

    def test_everything_failing_returns_empty(self, stub_source):
        aggregator = EventAggregator(
            [stub_source('a', error=RuntimeError('x'))],
            fallback=stub_source('community', error=RuntimeError('y')),
        )
        assert asyncio.run(aggregator.fetch_all(SEPTEMBER)) == []

    def test_window_filter(self, make_event, stub_source):
        inside = make_event('Inside', '2025-09-30T23:00:00Z')
        outside = make_event('Outside', '2025-10-01T00:00:00Z')
        aggregator = EventAggregator([stub_source('a', [inside, outside])])

        assert asyncio.run(aggregator.fetch_all(SEPTEMBER)) == [inside]

    def test_sources_run_concurrently(self, make_event, stub_source):
        started = []

        class SlowSource(stub_source):
            async def _fetch(self, params):
                started.append(self.name)
                await asyncio.sleep(0)
                # every source has started before any finishes
                assert len(started) == 2
                return list(self.events)

        aggregator = EventAggregator([
            SlowSource('a', [make_event('A', '2025-09-01T00:00:00Z')]),
            SlowSource('b', [make_event('B', '2025-09-02T00:00:00Z')]),
        ])

        events = asyncio.run(aggregator.fetch_all(SEPTEMBER))
        assert [e.name for e in events] == ['A', 'B']
