"""
BASE SOURCE - Abstract base class for TGE data sources

Defines the interface every source adapter implements and owns the
boundary guarantee: fetch_events() never raises. Whatever goes wrong inside
an adapter (network, HTTP status, payload shape) ends as an empty list and
a log line.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from .models import FetchParams, TgeEvent
from .normalizer import EventNormalizer

logger = logging.getLogger(__name__)


class BaseSource(ABC):
    """
    Abstract base class for TGE sources.

    Subclasses implement _fetch(); callers only ever use fetch_events().
    """

    name = "base"
    BASE_URL = ""

    def __init__(self, config: Dict = None, normalizer: EventNormalizer = None):
        """
        Initialize base source.

        Args:
            config: Source settings (base_url, api_key, timeout_seconds, enabled)
            normalizer: Shared EventNormalizer
        """
        self.config = config or {}
        self.base_url = (self.config.get('base_url') or self.BASE_URL).rstrip('/')
        self.api_key = (self.config.get('api_key') or '').strip()
        self.timeout = float(self.config.get('timeout_seconds', 15))
        self.enabled = self.config.get('enabled', True)
        self.normalizer = normalizer or EventNormalizer()

        self.session: Optional[aiohttp.ClientSession] = None
        self.last_request_time = None
        self.request_count = 0
        self.error_count = 0

    async def fetch_events(self, params: FetchParams = None) -> List[TgeEvent]:
        """
        Fetch and normalize events from this source.

        Returns:
            List of TgeEvent; empty on any unrecoverable failure
        """
        if not self.enabled:
            return []
        params = params or FetchParams()
        try:
            return await self._fetch(params)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.error_count += 1
            logger.error(f"[{self.name.upper()}] Unexpected error, returning no events: {e!r}")
            return []

    @abstractmethod
    async def _fetch(self, params: FetchParams) -> List[TgeEvent]:
        """Provider-specific fetch + mapping."""

    async def _ensure_session(self):
        """Ensure aiohttp session exists."""
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={'Accept': 'application/json'},
            )

    async def close(self):
        """Close aiohttp session."""
        if self.session:
            await self.session.close()
            self.session = None

    async def _request(self, url: str, params: Dict = None,
                       headers: Dict = None) -> Tuple[int, Optional[Any]]:
        """
        Single HTTP GET.

        Returns:
            (status, parsed JSON or None)

        Raises:
            asyncio.TimeoutError, aiohttp.ClientError: left to the caller,
            which decides whether the failure is worth a retry
        """
        await self._ensure_session()

        clean_params = {k: v for k, v in (params or {}).items() if v is not None}
        async with self.session.get(url, params=clean_params, headers=headers) as response:
            self._update_rate_limit()
            if response.status != 200:
                return response.status, None
            return response.status, await response.json(content_type=None)

    def _update_rate_limit(self):
        """Update internal request tracking."""
        self.last_request_time = datetime.now()
        self.request_count += 1

    def get_stats(self) -> Dict:
        """
        Get source statistics.

        Returns:
            Dict with request count, errors, last request time, etc.
        """
        return {
            'source': self.name,
            'enabled': self.enabled,
            'request_count': self.request_count,
            'error_count': self.error_count,
            'last_request': self.last_request_time.isoformat() if self.last_request_time else None,
        }
