"""
EVENT DEDUPLICATOR

Collapses the same TGE reported by several sources.

Key = normalized name + UTC calendar day of start_date, where the
normalized name drops bracketed suffixes ("(ASTER/USDT)") and keeps only
lower-cased alphanumerics. First occurrence wins, so source order decides
which record survives.
"""

import re
from typing import Dict, List

from .models import TgeEvent

_BRACKETED = re.compile(r"[\(\[\{][^\)\]\}]*[\)\]\}]")
_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_name(name: str) -> str:
    stripped = _BRACKETED.sub(' ', name or '').lower()
    normalized = _NON_ALNUM.sub('', stripped)
    # Names that are nothing but a bracketed ticker still need a key
    return normalized or _NON_ALNUM.sub('', (name or '').lower())


def dedup_key(event: TgeEvent) -> str:
    return f"{normalize_name(event.name)}|{event.day.isoformat()}"


class EventDeduplicator:
    """
    Tracks collisions across runs for stats; each deduplicate() call is
    independent (no state carried between batches).
    """

    def __init__(self):
        self.stats = {
            'batches': 0,
            'collisions': 0,
        }

    def deduplicate(self, events: List[TgeEvent]) -> List[TgeEvent]:
        seen = set()
        unique = []
        for event in events:
            key = dedup_key(event)
            if key in seen:
                self.stats['collisions'] += 1
                continue
            seen.add(key)
            unique.append(event)

        self.stats['batches'] += 1
        return unique

    def get_stats(self) -> Dict:
        return dict(self.stats)


def deduplicate_events(events: List[TgeEvent]) -> List[TgeEvent]:
    return EventDeduplicator().deduplicate(events)
