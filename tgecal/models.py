"""
TGE DATA MODELS

Canonical shapes shared by every component of the calendar core.

JSON layout (to_dict / from_dict) keeps the camelCase field names the
calendar front end consumes:
{
  "id": "coinmarketcal-12345",
  "name": "Aster Network (ASTER/USDT)",
  "description": "Layer 1 blockchain TGE",
  "startDate": "2025-09-17T00:00:00Z",
  "endDate": null,
  "blockchain": "Ethereum",
  "symbol": "ASTER",
  "credibility": "verified",
  "announcementUrl": "https://asternetwork.io",
  "markets": [{"title": "Binance", "url": null}],
  "source": "community"
}
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple


ISO_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class Credibility(str, Enum):
    VERIFIED = "verified"
    UNVERIFIED = "unverified"
    RUMOR = "rumor"

    @classmethod
    def coerce(cls, value, default: "Credibility" = None) -> "Credibility":
        """Map a loose string onto the enum, falling back to default (rumor)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return default or cls.RUMOR


def parse_iso(value) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or datetime string into an aware UTC datetime.

    Accepts 'YYYY-MM-DD', 'YYYY-MM-DDTHH:MM[:SS]' with or without a 'Z' /
    offset suffix, plus date and datetime objects. Naive values are treated
    as UTC. Returns None when the value cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            dt = datetime.fromisoformat(text.replace('Z', '+00:00'))
        except ValueError:
            return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime(ISO_FORMAT)


@dataclass
class MarketLink:
    title: str
    url: Optional[str] = None

    def to_dict(self) -> Dict:
        return {'title': self.title, 'url': self.url}


@dataclass
class TgeEvent:
    """A single normalized Token Generation Event."""
    id: str
    name: str
    start_date: str
    description: str = ""
    end_date: Optional[str] = None
    blockchain: Optional[str] = None
    symbol: Optional[str] = None
    credibility: Credibility = Credibility.UNVERIFIED
    announcement_url: Optional[str] = None
    markets: List[MarketLink] = field(default_factory=list)
    logo: Optional[str] = None
    source: str = ""

    @property
    def start(self) -> datetime:
        """start_date as an aware datetime (normalized events always parse)."""
        return parse_iso(self.start_date)

    @property
    def day(self) -> date:
        return self.start.date()

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'startDate': self.start_date,
            'endDate': self.end_date,
            'blockchain': self.blockchain,
            'symbol': self.symbol,
            'credibility': self.credibility.value,
            'announcementUrl': self.announcement_url,
            'markets': [m.to_dict() for m in self.markets],
            'logo': self.logo,
            'source': self.source,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "TgeEvent":
        markets = []
        for m in data.get('markets') or []:
            if isinstance(m, dict):
                markets.append(MarketLink(title=str(m.get('title', '')), url=m.get('url')))
            else:
                markets.append(MarketLink(title=str(m)))
        return cls(
            id=str(data['id']),
            name=str(data['name']),
            start_date=str(data['startDate']),
            description=data.get('description') or "",
            end_date=data.get('endDate'),
            blockchain=data.get('blockchain'),
            symbol=data.get('symbol'),
            credibility=Credibility.coerce(data.get('credibility')),
            announcement_url=data.get('announcementUrl'),
            markets=markets,
            logo=data.get('logo'),
            source=data.get('source') or "",
        )


def sort_by_start(events: List[TgeEvent]) -> List[TgeEvent]:
    """Stable ascending sort by start date."""
    return sorted(events, key=lambda e: e.start)


@dataclass
class FetchParams:
    """Window passed to every source adapter. Both bounds are optional."""
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    page_size: int = 100

    def contains(self, event: TgeEvent) -> bool:
        when = event.start
        if self.start and when < self.start:
            return False
        if self.end and when > self.end:
            return False
        return True


@dataclass
class CachedPeriod:
    period_key: str
    events: List[TgeEvent]
    cached_at: int  # epoch millis


@dataclass
class SearchFilters:
    query: Optional[str] = None
    blockchain: Optional[str] = None
    credibility: Optional[str] = None
    date_range: Optional[Tuple[datetime, datetime]] = None
    tags: Optional[List[str]] = None

    def is_empty(self) -> bool:
        return not (self.query or self.blockchain or self.credibility
                    or self.date_range or self.tags)


@dataclass
class SearchOptions:
    limit: Optional[int] = None
    sort_by: Optional[str] = None      # date | name | relevance
    sort_order: str = "asc"


@dataclass
class SearchResult:
    events: List[TgeEvent]
    total: int
    query: str = ""
    filters: SearchFilters = field(default_factory=SearchFilters)


@dataclass
class Suggestion:
    text: str
    type: str       # token | blockchain | market | tag
    count: int = 0


@dataclass
class EventsResponse:
    """Answer handed to the UI for one calendar period."""
    events: List[TgeEvent]
    total: int
    period: str
    origin: str = "aggregator"     # cache | aggregator | fallback
