"""
EVENT NORMALIZER

Converts provider-specific candidate records into the canonical TgeEvent.

Adapters pull whatever they can out of their raw payloads into a flat
candidate dict using the canonical field names:

{
  "id": "12345",                      # optional, synthesized when missing
  "name": "Aster Network",            # placeholder when missing
  "description": "...",
  "start_date": "2025-09-17",         # now() when missing, dropped when invalid
  "end_date": None,
  "blockchain": "eth",                # mapped to display name
  "symbol": "ASTER",
  "credibility": "verified",
  "announcement_url": "https://...",
  "markets": ["Binance", {"title": "Polymarket", "url": "https://..."}],
}

The normalizer is the only place defaults and date policy are applied, so
every source ends up with the same shape.
"""

import hashlib
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from .models import Credibility, MarketLink, TgeEvent, format_iso, parse_iso

logger = logging.getLogger(__name__)

PLACEHOLDER_NAME = "Unknown Event"


class EventNormalizer:
    """
    Normalizes candidate records from any source into TgeEvent.

    Rules:
    - id: "<source>-<raw id>", or a stable hash of source/name/date
    - name: never empty
    - start_date: canonical UTC ISO string; missing -> now, unparseable -> drop
    - end_date: unparseable -> None (record kept)
    """

    def __init__(self, clock: Callable[[], datetime] = None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.stats = {
            'normalized': 0,
            'dropped': 0,
        }

    def normalize(self, candidate: Dict, source: str) -> Optional[TgeEvent]:
        """
        Build a TgeEvent from a candidate dict.

        Returns:
            TgeEvent, or None when the record cannot be represented
        """
        try:
            event = self._build(candidate, source)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"[NORMALIZER] {source}: dropping malformed record: {e}")
            event = None

        if event is None:
            self.stats['dropped'] += 1
        else:
            self.stats['normalized'] += 1
        return event

    def normalize_many(self, candidates: List[Dict], source: str) -> List[TgeEvent]:
        events = []
        for candidate in candidates:
            event = self.normalize(candidate, source)
            if event:
                events.append(event)
        return events

    def _build(self, candidate: Dict, source: str) -> Optional[TgeEvent]:
        raw_start = candidate.get('start_date')
        if raw_start in (None, ""):
            start = self._clock()
        else:
            start = parse_iso(raw_start)
            if start is None:
                logger.debug(f"[NORMALIZER] {source}: unparseable start date {raw_start!r}")
                return None

        end = parse_iso(candidate.get('end_date')) if candidate.get('end_date') else None

        name = self._clean(candidate.get('name')) or PLACEHOLDER_NAME
        start_date = format_iso(start)

        return TgeEvent(
            id=self._make_id(candidate.get('id'), source, name, start_date),
            name=name,
            description=self._clean(candidate.get('description')) or "",
            start_date=start_date,
            end_date=format_iso(end) if end else None,
            blockchain=self._normalize_chain(candidate.get('blockchain')),
            symbol=self._clean(candidate.get('symbol')),
            credibility=Credibility.coerce(candidate.get('credibility')),
            announcement_url=self._clean(candidate.get('announcement_url')),
            markets=self._normalize_markets(candidate.get('markets')),
            logo=self._clean(candidate.get('logo')),
            source=source,
        )

    def _make_id(self, raw_id, source: str, name: str, start_date: str) -> str:
        raw = self._clean(raw_id)
        if raw:
            return raw if raw.startswith(f"{source}-") else f"{source}-{raw}"
        digest = hashlib.sha1(f"{source}|{name}|{start_date}".encode('utf-8')).hexdigest()
        return f"{source}-{digest[:16]}"

    def _normalize_markets(self, markets) -> List[MarketLink]:
        if not markets:
            return []
        if isinstance(markets, (str, dict)):
            markets = [markets]

        links = []
        for market in markets:
            if isinstance(market, dict):
                title = self._clean(market.get('title') or market.get('name'))
                url = self._clean(market.get('url') or market.get('link'))
            else:
                title, url = self._clean(market), None
            if title:
                links.append(MarketLink(title=title, url=url))
        return links

    def _normalize_chain(self, chain) -> Optional[str]:
        """Map tickers and slugs onto display names; unknown names pass through."""
        chain = self._clean(chain)
        if not chain:
            return None
        chain_map = {
            'eth': 'Ethereum',
            'ethereum': 'Ethereum',
            'sol': 'Solana',
            'solana': 'Solana',
            'matic': 'Polygon',
            'polygon': 'Polygon',
            'bsc': 'BNB Chain',
            'bnb': 'BNB Chain',
            'avax': 'Avalanche',
            'avalanche': 'Avalanche',
            'arb': 'Arbitrum',
            'arbitrum': 'Arbitrum',
            'op': 'Optimism',
            'optimism': 'Optimism',
            'base': 'Base',
        }
        return chain_map.get(chain.lower(), chain)

    @staticmethod
    def _clean(value) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None
