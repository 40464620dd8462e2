"""
DEFILLAMA SOURCE

FREE API, no key. New protocol listings on DeFiLlama are a decent proxy
for upcoming launches: anything listed in the last 30 days is reported.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, TypedDict

import aiohttp

from .base_source import BaseSource
from .models import FetchParams, TgeEvent

logger = logging.getLogger(__name__)


class RawLlamaProtocol(TypedDict, total=False):
    id: str
    name: str
    symbol: str
    description: str
    chain: str
    url: str
    logo: str
    slug: str
    listedAt: int
    date: int


class DefiLlamaSource(BaseSource):
    """DeFiLlama protocols client. Every listing counts as verified."""

    name = "defillama"
    BASE_URL = "https://api.llama.fi"

    def __init__(self, config: Dict = None, normalizer=None,
                 clock: Callable[[], datetime] = None):
        super().__init__(config, normalizer)
        self.lookback_days = int(self.config.get('lookback_days', 30))
        self.max_results = int(self.config.get('max_results', 15))
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def _fetch(self, params: FetchParams) -> List[TgeEvent]:
        url = f"{self.base_url}/protocols"
        try:
            status, data = await self._request(url)
        except (asyncio.TimeoutError, aiohttp.ClientError) as e:
            self.error_count += 1
            logger.warning(f"[DEFILLAMA] Request error: {e!r}")
            return []

        if status != 200 or not isinstance(data, list):
            self.error_count += 1
            logger.warning(f"[DEFILLAMA] HTTP {status}: {url}")
            return []

        cutoff = self._clock() - timedelta(days=self.lookback_days)
        recent = [p for p in data if self._listed_at(p) and self._listed_at(p) > cutoff]

        events = []
        for raw in recent[:self.max_results]:
            event = self.map_record(raw)
            if event:
                events.append(event)

        logger.info(f"[DEFILLAMA] {len(events)} recent protocol launches")
        return events

    @staticmethod
    def _listed_at(raw: Dict) -> Optional[datetime]:
        if not isinstance(raw, dict):
            return None
        ts = raw.get('listedAt') or raw.get('date')
        try:
            return datetime.fromtimestamp(float(ts), tz=timezone.utc) if ts else None
        except (TypeError, ValueError, OverflowError, OSError):
            return None

    def map_record(self, raw: RawLlamaProtocol) -> Optional[TgeEvent]:
        listed = self._listed_at(raw)
        name = raw.get('name') if isinstance(raw, dict) else None
        if listed is None or not name:
            return None

        symbol = raw.get('symbol')
        if not symbol or symbol == '-':
            symbol = name[:4].upper()
        slug = raw.get('slug') or name.lower().replace(' ', '-')

        candidate = {
            'id': raw.get('id'),
            'name': f"{name} Protocol Launch",
            'description': f"New DeFi protocol launch: {raw.get('description') or 'DeFi protocol'}",
            'start_date': listed,
            'blockchain': raw.get('chain') or 'Multiple',
            'symbol': symbol,
            'credibility': 'verified',
            'announcement_url': raw.get('url') or f"https://defillama.com/protocol/{slug}",
            'logo': raw.get('logo'),
        }
        return self.normalizer.normalize(candidate, self.name)
