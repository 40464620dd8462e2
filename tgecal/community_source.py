"""
COMMUNITY SOURCE

Curated seed list of TGE events. No network call, never empty.

The entries are placeholder seed data maintained by hand; what matters is
that the calendar always has something to show when every API is down.
"""

import logging
from typing import Dict, List

from .base_source import BaseSource
from .models import FetchParams, TgeEvent

logger = logging.getLogger(__name__)


COMMUNITY_EVENTS: List[Dict] = [
    {
        'id': 'wlfi-tge',
        'name': 'World Liberty Financial (WLFI)',
        'description': 'DeFi platform | Governance token | High-profile launch',
        'start_date': '2025-09-01T00:00:00Z',
        'blockchain': 'Ethereum',
        'symbol': 'WLFI',
        'markets': ['Binance', 'Coinbase', 'Kraken'],
        'announcement_url': 'https://worldlibertyfinancial.com',
    },
    {
        'id': 'aster-tge',
        'name': 'Aster Network (ASTER/USDT)',
        'description': 'Layer 1 blockchain TGE | Multi-chain compatibility | Gaming focus',
        'start_date': '2025-09-17T00:00:00Z',
        'blockchain': 'Ethereum',
        'symbol': 'ASTER',
        'markets': ['Binance', 'KuCoin', 'Gate.io'],
        'announcement_url': 'https://asternetwork.io',
    },
    {
        'id': 'xpl-tge',
        'name': 'XPL Protocol Token',
        'description': 'DeFi protocol TGE | Cross-chain liquidity | Yield farming',
        'start_date': '2025-09-25T00:00:00Z',
        'blockchain': 'Solana',
        'symbol': 'XPL',
        'markets': ['Raydium', 'Orca', 'Jupiter'],
        'announcement_url': 'https://xpl.protocol',
    },
    {
        'id': 'pol-upgrade',
        'name': 'Polygon 2.0 Token (POL)',
        'description': 'Polygon ecosystem upgrade | Multi-chain scaling | Governance token',
        'start_date': '2025-10-05T00:00:00Z',
        'blockchain': 'Polygon',
        'symbol': 'POL',
        'markets': ['Binance', 'KuCoin', 'Coinbase'],
        'announcement_url': 'https://polygon.technology',
    },
    {
        'id': 'arb-orbit',
        'name': 'Arbitrum Orbit Token (ARB)',
        'description': 'Layer 2 scaling solution | Ethereum compatibility | DeFi focus',
        'start_date': '2025-10-15T00:00:00Z',
        'blockchain': 'Arbitrum',
        'symbol': 'ARB',
        'markets': ['Uniswap', 'SushiSwap', '1inch'],
        'announcement_url': 'https://arbitrum.io',
    },
    {
        'id': 'base-token',
        'name': 'Base Network Token (BASE)',
        'description': 'Coinbase Layer 2 | Ethereum scaling | Institutional adoption',
        'start_date': '2025-11-10T00:00:00Z',
        'blockchain': 'Base',
        'symbol': 'BASE',
        'markets': ['Coinbase', 'Uniswap'],
        'announcement_url': 'https://base.org',
    },
    {
        'id': 'strk-unlock',
        'name': 'Starknet Token (STRK)',
        'description': 'Zero-knowledge rollup | Ethereum scaling | Cairo VM',
        'start_date': '2025-11-20T00:00:00Z',
        'blockchain': 'Starknet',
        'symbol': 'STRK',
        'markets': ['Binance', 'KuCoin'],
        'announcement_url': 'https://starknet.io',
    },
    {
        'id': 'tia-launch',
        'name': 'Celestia Token (TIA)',
        'description': 'Modular blockchain | Data availability | Cosmos ecosystem',
        'start_date': '2025-12-05T00:00:00Z',
        'blockchain': 'Celestia',
        'symbol': 'TIA',
        'markets': ['Binance', 'KuCoin', 'Osmosis'],
        'announcement_url': 'https://celestia.org',
    },
    {
        'id': 'sui-launch',
        'name': 'Sui Network Token (SUI)',
        'description': 'Move-based blockchain | High performance | Gaming focus',
        'start_date': '2025-12-15T00:00:00Z',
        'blockchain': 'Sui',
        'symbol': 'SUI',
        'markets': ['Binance', 'KuCoin'],
        'announcement_url': 'https://sui.io',
    },
    {
        'id': 'apt-launch',
        'name': 'Aptos Token (APT)',
        'description': 'Move-based blockchain | High throughput',
        'start_date': '2026-01-10T00:00:00Z',
        'blockchain': 'Aptos',
        'symbol': 'APT',
        'markets': ['Binance', 'KuCoin'],
        'announcement_url': 'https://aptoslabs.com',
    },
    {
        'id': 'avax-subnet',
        'name': 'Avalanche Subnet Token (AVAX)',
        'description': 'Subnet architecture | Enterprise adoption',
        'start_date': '2026-02-05T00:00:00Z',
        'blockchain': 'Avalanche',
        'symbol': 'AVAX',
        'markets': ['Binance', 'KuCoin'],
        'announcement_url': 'https://avax.network',
    },
    {
        'id': 'dot-parachain',
        'name': 'Polkadot Parachain Token (DOT)',
        'description': 'Multi-chain protocol | Parachain architecture | Governance',
        'start_date': '2026-04-05T00:00:00Z',
        'blockchain': 'Polkadot',
        'symbol': 'DOT',
        'markets': ['Binance', 'KuCoin'],
        'announcement_url': 'https://polkadot.network',
    },
    {
        'id': 'link-ccip',
        'name': 'Chainlink CCIP Token (LINK)',
        'description': 'Oracle network | Cross-chain connectivity',
        'start_date': '2026-07-10T00:00:00Z',
        'blockchain': 'Ethereum',
        'symbol': 'LINK',
        'markets': ['Binance', 'Uniswap'],
        'announcement_url': 'https://chain.link',
    },
    {
        'id': 'aave-v4',
        'name': 'Aave V4 Token (AAVE)',
        'description': 'DeFi lending protocol | Liquidity pools | Governance token',
        'start_date': '2026-08-05T00:00:00Z',
        'blockchain': 'Ethereum',
        'symbol': 'AAVE',
        'markets': ['Binance', 'Uniswap'],
        'announcement_url': 'https://aave.com',
    },
]


class CommunitySource(BaseSource):
    """Static community list. Entries default to verified."""

    name = "community"

    def __init__(self, config: Dict = None, normalizer=None, events: List[Dict] = None):
        super().__init__(config, normalizer)
        self.seed = COMMUNITY_EVENTS if events is None else events

    async def _fetch(self, params: FetchParams) -> List[TgeEvent]:
        candidates = [{'credibility': 'verified', **entry} for entry in self.seed]
        events = self.normalizer.normalize_many(candidates, self.name)
        logger.debug(f"[COMMUNITY] Returning {len(events)} community events")
        return events
