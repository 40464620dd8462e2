"""
Synthetic TGE events used when the live pipeline cannot answer.

The facade falls back to this set so the calendar never renders empty.
Dates are offsets from the start of the requested month.
"""

from datetime import timedelta
from typing import List

from .models import Credibility, MarketLink, TgeEvent, format_iso
from .periods import DateLike, period_key, period_start

MOCK_SOURCE = 'mock'

# (day offset, name, description, blockchain, symbol, credibility, markets)
MOCK_TEMPLATES = [
    (2, "Solana DeFi Protocol Launch", "Revolutionary DeFi protocol on Solana with yield farming",
     "Solana", "DEFI", Credibility.VERIFIED, ["Binance", "Coinbase"]),
    (5, "Layer 2 Gaming Token", "Gaming-focused Layer 2 scaling solution",
     "Ethereum", "GAME", Credibility.VERIFIED, ["OKX", "Bybit"]),
    (7, "Cross-Chain Bridge Protocol", "Secure cross-chain bridge for multi-chain DeFi",
     "Polygon", "BRIDGE", Credibility.UNVERIFIED, ["KuCoin"]),
    (10, "AI Trading Platform", "AI-powered trading platform with governance token",
     "Arbitrum", "AIBOT", Credibility.VERIFIED, ["Binance", "OKX"]),
    (14, "NFT Marketplace Token", "Community-driven NFT marketplace launching its token",
     "Base", "NFT", Credibility.UNVERIFIED, ["Coinbase"]),
    (21, "Decentralized Storage Network", "Storage network rumored to announce a TGE",
     "Filecoin", "STORE", Credibility.RUMOR, []),
]


def mock_events_for_period(period_date: DateLike) -> List[TgeEvent]:
    """Return the mock dataset for the month containing period_date, sorted by start."""
    start = period_start(period_date)
    key = period_key(start)
    events = []
    for offset, name, description, chain, symbol, credibility, markets in MOCK_TEMPLATES:
        events.append(TgeEvent(
            id=f"{MOCK_SOURCE}-{key}-{symbol.lower()}",
            name=name,
            description=description,
            start_date=format_iso(start + timedelta(days=offset)),
            blockchain=chain,
            symbol=symbol,
            credibility=credibility,
            markets=[MarketLink(title=m) for m in markets],
            source=MOCK_SOURCE,
        ))
    return events
