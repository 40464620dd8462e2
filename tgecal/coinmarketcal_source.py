"""
COINMARKETCAL SOURCE

General-purpose crypto events calendar (AMAs, updates, listings, forks...).
Only a fraction of its events are token launches, so results go through a
keyword relevance filter after normalization.

API: https://developers.coinmarketcal.com
- API key REQUIRED (x-api-key); without one the source is skipped
- Paginated: page 1 first, remaining pages swept concurrently (capped)
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, TypedDict

import aiohttp

from .base_source import BaseSource
from .models import FetchParams, TgeEvent

logger = logging.getLogger(__name__)

TGE_KEYWORDS = (
    'tge', 'token generation', 'token launch', 'listing', 'listed', 'mainnet',
    'launch', 'airdrop', 'ico', 'ido', 'ieo', 'binance', 'coinbase', 'okx',
    'bybit', 'kucoin', 'gate.io', 'mexc', 'kraken',
)


class RawCoinMarketCalEvent(TypedDict, total=False):
    id: int
    title: Any            # str or {"en": "..."}
    description: Any      # str or {"en": "..."}
    date_event: str
    created_date: str
    date_end: str
    coins: List[Dict]
    proof: str
    source: str
    important: Any
    importance: Any
    categories: List[Dict]


def is_tge_related(event: TgeEvent, keywords=TGE_KEYWORDS) -> bool:
    """True when name + description + blockchain mention a launch keyword."""
    text = ' '.join(filter(None, [event.name, event.description, event.blockchain])).lower()
    return any(keyword in text for keyword in keywords)


class CoinMarketCalSource(BaseSource):
    """
    CoinMarketCal API client with a concurrent pagination sweep.

    Credibility: non-empty 'proof' -> verified; importance above threshold
    -> unverified; otherwise rumor.
    """

    name = "coinmarketcal"
    BASE_URL = "https://developers.coinmarketcal.com"

    def __init__(self, config: Dict = None, normalizer=None):
        super().__init__(config, normalizer)
        self.page_size = int(self.config.get('page_size', 50))
        self.max_pages = int(self.config.get('max_pages', 10))
        self.importance_threshold = float(self.config.get('importance_threshold', 0))
        self.keywords = tuple(self.config.get('keywords') or TGE_KEYWORDS)
        self.filtered_out = 0

    async def _fetch(self, params: FetchParams) -> List[TgeEvent]:
        if not self.api_key:
            logger.warning("[COINMARKETCAL] COINMARKETCAL_API_KEY not set - source skipped")
            return []

        first = await self._fetch_page(1, params)
        if first is None:
            return []
        records, page_count = first

        last_page = min(page_count, self.max_pages)
        if last_page > 1:
            logger.info(f"[COINMARKETCAL] Sweeping pages 2-{last_page} of {page_count}")
            pages = await asyncio.gather(
                *(self._fetch_page(page, params) for page in range(2, last_page + 1)),
                return_exceptions=True,
            )
            for page, result in enumerate(pages, start=2):
                if isinstance(result, BaseException) or result is None:
                    logger.warning(f"[COINMARKETCAL] Page {page} failed: {result!r}")
                    continue
                records.extend(result[0])

        events = []
        for raw in records:
            event = self.map_record(raw)
            if event is None:
                continue
            if not is_tge_related(event, self.keywords):
                self.filtered_out += 1
                continue
            events.append(event)

        logger.info(f"[COINMARKETCAL] {len(events)} TGE-related events from {len(records)} records")
        return events

    async def _fetch_page(self, page: int, params: FetchParams) -> Optional[tuple]:
        """
        Fetch one page.

        Returns:
            (records, page_count) or None on failure
        """
        url = f"{self.base_url}/v1/events"
        query = {
            'page': page,
            'max': self.page_size,
            'dateRangeStart': params.start.strftime('%Y-%m-%d') if params.start else None,
            'dateRangeEnd': params.end.strftime('%Y-%m-%d') if params.end else None,
            'sortBy': 'created_desc',
            'showMetaData': 'true',
        }
        headers = {'x-api-key': self.api_key}

        try:
            status, data = await self._request(url, query, headers)
        except (asyncio.TimeoutError, aiohttp.ClientError) as e:
            self.error_count += 1
            logger.warning(f"[COINMARKETCAL] Page {page} request error: {e!r}")
            return None

        if status != 200 or data is None:
            self.error_count += 1
            if status == 429:
                logger.warning("[COINMARKETCAL] Rate limited!")
            else:
                logger.warning(f"[COINMARKETCAL] HTTP {status} on page {page}")
            return None

        return self._extract_page(data)

    @staticmethod
    def _extract_page(data: Any) -> tuple:
        """Accepts {'body': [...]} and {'body': {'result': [...]}} layouts."""
        body = data.get('body') if isinstance(data, dict) else data
        if isinstance(body, dict):
            records = body.get('result') or []
            page_count = body.get('page_count')
        else:
            records = body or []
            page_count = None

        if page_count is None and isinstance(data, dict):
            page_count = (data.get('_metadata') or {}).get('page_count')
        try:
            page_count = max(1, int(page_count or 1))
        except (TypeError, ValueError):
            page_count = 1
        return (list(records) if isinstance(records, list) else []), page_count

    def map_record(self, raw: RawCoinMarketCalEvent) -> Optional[TgeEvent]:
        if not isinstance(raw, dict):
            return None
        try:
            coins = raw.get('coins') or []
            coin = coins[0] if coins and isinstance(coins[0], dict) else {}

            candidate = {
                'id': raw.get('id'),
                'name': self._localized(raw.get('title')) or raw.get('name'),
                'description': self._localized(raw.get('description')) or "",
                'start_date': raw.get('date_event') or raw.get('created_date'),
                'end_date': raw.get('date_end'),
                'blockchain': coin.get('platform') or raw.get('platform'),
                'symbol': coin.get('symbol') or raw.get('symbol'),
                'credibility': self._credibility(raw),
                'announcement_url': raw.get('source'),
            }
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.debug(f"[COINMARKETCAL] Skipping malformed event: {e}")
            return None
        return self.normalizer.normalize(candidate, self.name)

    def _credibility(self, raw: Dict) -> str:
        if raw.get('proof'):
            return 'verified'
        importance = raw.get('important', raw.get('importance'))
        if isinstance(importance, bool):
            importance = int(importance)
        if isinstance(importance, (int, float)) and importance > self.importance_threshold:
            return 'unverified'
        return 'rumor'

    @staticmethod
    def _localized(value) -> Optional[str]:
        """Resolve {'en': ..., 'fr': ...} objects, English first."""
        if isinstance(value, dict):
            if value.get('en'):
                return str(value['en'])
            for text in value.values():
                if text:
                    return str(text)
            return None
        return str(value) if value else None
