"""
CRYPTORANK SOURCE

Token sales, launchpads and upcoming listings from CryptoRank.

Free tier is strict about rate limits and rejects bad keys outright, so:
- transient failures (timeout, connection error, HTTP 5xx) are retried
  with exponential backoff (2s, 4s, ...)
- 401/403 (auth) and 429 (rate limit) are terminal: no retry, log, []
- the X-API-KEY header is only sent when a key is configured
"""

import asyncio
import logging
from typing import Dict, List, Optional, TypedDict

import aiohttp

from .base_source import BaseSource
from .models import FetchParams, TgeEvent

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = {401, 403, 429}


class RawCryptoRankCoin(TypedDict, total=False):
    id: int
    name: str
    projectName: str
    symbol: str
    ticker: str
    type: str
    description: str
    status: str
    launchDate: str
    tokenSaleStartDate: str
    totalRaised: float
    tokenPrice: float
    blockchain: Dict
    network: str
    exchanges: List
    launchpads: List
    website: str
    projectWebsite: str
    logo: str


class CryptoRankSource(BaseSource):
    """
    CryptoRank API client with bounded retry.

    Credibility: status 'upcoming' / 'ongoing' -> verified, anything else -> rumor.
    """

    name = "cryptorank"
    BASE_URL = "https://api.cryptorank.io/v2"

    def __init__(self, config: Dict = None, normalizer=None):
        super().__init__(config, normalizer)
        self.max_attempts = int(self.config.get('max_attempts', 3))
        self.retry_base_delay = float(self.config.get('retry_base_delay', 2.0))
        self.page_size = int(self.config.get('page_size', 100))

    async def _fetch(self, params: FetchParams) -> List[TgeEvent]:
        url = f"{self.base_url}/currencies"
        headers = {'X-API-KEY': self.api_key} if self.api_key else None
        query = {'limit': self.page_size, 'sortBy': 'launchDate', 'sortDirection': 'ASC'}

        data = await self._request_with_retry(url, query, headers)
        if not data:
            return []

        records = data.get('data') if isinstance(data, dict) else data
        if not isinstance(records, list):
            logger.warning(f"[CRYPTORANK] Unexpected payload shape: {type(records).__name__}")
            return []

        events = []
        for raw in records:
            event = self.map_record(raw)
            if event:
                events.append(event)

        logger.info(f"[CRYPTORANK] {len(events)} events from {len(records)} coins")
        return events

    async def _request_with_retry(self, url: str, params: Dict,
                                  headers: Optional[Dict]) -> Optional[Dict]:
        """
        GET with exponential backoff on transient failures.

        Returns:
            Parsed JSON, or None once attempts are exhausted or on a terminal status
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                status, data = await self._request(url, params, headers)
            except (asyncio.TimeoutError, aiohttp.ClientError) as e:
                status, data = None, None
                reason = f"{type(e).__name__}: {e}"
            else:
                if status == 200:
                    return data
                if status in TERMINAL_STATUSES:
                    kind = "rate limited" if status == 429 else "authentication rejected"
                    logger.warning(f"[CRYPTORANK] HTTP {status} ({kind}), not retrying")
                    return None
                if status < 500:
                    logger.warning(f"[CRYPTORANK] HTTP {status}: {url}")
                    return None
                reason = f"HTTP {status}"

            self.error_count += 1
            if attempt == self.max_attempts:
                logger.error(f"[CRYPTORANK] Giving up after {attempt} attempts ({reason})")
                return None

            delay = self.retry_base_delay * (2 ** (attempt - 1))
            logger.warning(f"[CRYPTORANK] {reason}, retrying in {delay:.0f}s "
                           f"(attempt {attempt}/{self.max_attempts})")
            await asyncio.sleep(delay)
        return None

    def map_record(self, raw: RawCryptoRankCoin) -> Optional[TgeEvent]:
        """Map one coin record; None when it carries no launch information."""
        if not isinstance(raw, dict):
            return None
        try:
            start = raw.get('launchDate') or raw.get('tokenSaleStartDate')
            if not start:
                return None

            symbol = raw.get('symbol') or raw.get('ticker') or ''
            title = raw.get('name') or raw.get('projectName')
            blockchain = raw.get('blockchain')
            chain_name = blockchain.get('name') if isinstance(blockchain, dict) else blockchain

            parts = [
                (raw.get('type') or 'Token Launch').upper(),
                raw.get('description') and f"Description: {raw['description']}",
                raw.get('totalRaised') and f"Raised: ${float(raw['totalRaised']):,.0f}",
                raw.get('tokenPrice') and f"Price: ${raw['tokenPrice']}",
                chain_name and f"Network: {chain_name}",
            ]

            status = str(raw.get('status') or '').lower()
            credibility = 'verified' if status in ('upcoming', 'ongoing') else 'rumor'

            candidate = {
                'id': f"coin-{raw['id']}" if raw.get('id') is not None else None,
                'name': f"{title} ({symbol or 'TGE'})" if title else None,
                'description': ' | '.join(p for p in parts if p),
                'start_date': start,
                'blockchain': chain_name or raw.get('network') or 'Multiple',
                'symbol': symbol,
                'credibility': credibility,
                'markets': raw.get('exchanges') or raw.get('launchpads') or [],
                'announcement_url': (raw.get('website') or raw.get('projectWebsite')
                                     or (f"https://cryptorank.io/price/{raw['id']}" if raw.get('id') else None)),
                'logo': raw.get('logo'),
            }
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.debug(f"[CRYPTORANK] Skipping malformed coin: {e}")
            return None
        return self.normalizer.normalize(candidate, self.name)
