import pytest

from tgecal.base_source import BaseSource
from tgecal.models import Credibility, MarketLink, TgeEvent


def _make_event(name="Token Launch", start="2025-09-10T00:00:00Z", source="test", **kwargs):
    kwargs.setdefault('id', f"{source}-{name.lower().replace(' ', '-')}-{start[:10]}")
    markets = [MarketLink(title=m) if isinstance(m, str) else m for m in kwargs.pop('markets', [])]
    credibility = Credibility.coerce(kwargs.pop('credibility', 'verified'))
    return TgeEvent(name=name, start_date=start, source=source,
                    markets=markets, credibility=credibility, **kwargs)


class StubSource(BaseSource):
    """Source returning canned events, or failing with `error`."""

    def __init__(self, name="stub", events=None, error=None, raise_outside=False):
        super().__init__({})
        self.name = name
        self.events = events or []
        self.error = error
        self.raise_outside = raise_outside
        self.calls = []

    async def fetch_events(self, params=None):
        if self.raise_outside:
            self.calls.append(params)
            raise self.error
        return await super().fetch_events(params)

    async def _fetch(self, params):
        self.calls.append(params)
        if self.error:
            raise self.error
        return list(self.events)


@pytest.fixture
def make_event():
    return _make_event


@pytest.fixture
def stub_source():
    return StubSource


class FakeClock:
    """Epoch-millis clock the tests move by hand."""

    def __init__(self, now=1_700_000_000_000):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()
