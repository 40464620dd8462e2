#!/usr/bin/env python3
"""
Quick Calendar Status - Fast overview without API calls
Shows persisted events and search history from the local store
"""

from collections import Counter
from datetime import datetime

from colorama import Fore, init

from tgecal.config import DB_PATH
from tgecal.kv_store import EVENTS_KEY, HISTORY_KEY, KeyValueStore
from tgecal.search_store import SearchableStore

init(autoreset=True)


def quick_status(db_path: str = DB_PATH):
    """Quick calendar status from database"""

    kv = KeyValueStore(db_path)
    store = SearchableStore(kv)
    store.load()

    print(f"{Fore.CYAN}━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━")
    print(f"{Fore.GREEN}📅 TGE CALENDAR STATUS")
    print(f"{Fore.CYAN}━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━")

    if not len(store):
        print(f"{Fore.YELLOW}No events stored yet")
    else:
        updated = kv.updated_at(EVENTS_KEY)
        if updated:
            print(f"Last update: {datetime.fromtimestamp(updated / 1000):%Y-%m-%d %H:%M}")

        events = store.all_events()
        by_month = Counter(e.start.strftime('%Y-%m') for e in events)
        for month, count in sorted(by_month.items()):
            print(f"📆 {month}: {count:3d} events")

        by_credibility = Counter(e.credibility.value for e in events)
        icons = {'verified': '🟢', 'unverified': '🟡', 'rumor': '🔴'}
        print()
        for level, count in by_credibility.most_common():
            print(f"{icons.get(level, '⚪')} {level:10s}: {count:3d}")

        print(f"\n{Fore.YELLOW}Blockchains: {', '.join(store.get_blockchains())}")

    history = kv.get(HISTORY_KEY, [])
    if history:
        print(f"\n{Fore.YELLOW}🔍 RECENT SEARCHES:")
        for query in history[:5]:
            print(f"  {query}")

    print(f"{Fore.CYAN}━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━")
    print(f"{Fore.CYAN}💡 Run 'python main.py --month YYYY-MM' to refresh from live sources")
    print(f"{Fore.CYAN}━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━\n")


if __name__ == "__main__":
    quick_status()
