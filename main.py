import argparse
import asyncio
import json
import logging
from datetime import datetime, timezone

from colorama import init, Fore, Style

from tgecal import SearchFilters, SearchOptions, close_calendar, create_calendar
from tgecal.periods import period_key

init(autoreset=True)

CREDIBILITY_COLORS = {
    'verified': Fore.GREEN,
    'unverified': Fore.YELLOW,
    'rumor': Fore.RED,
}

ORIGIN_LABELS = {
    'cache': f"{Fore.CYAN}cache",
    'aggregator': f"{Fore.GREEN}live sources",
    'fallback': f"{Fore.YELLOW}sample data (all sources unavailable)",
}


def print_event(event):
    color = CREDIBILITY_COLORS.get(event.credibility.value, Fore.WHITE)
    day = event.start.strftime('%Y-%m-%d')
    symbol = f" ({event.symbol})" if event.symbol else ""
    chain = event.blockchain or "-"
    print(f"  {Fore.WHITE}{day}  {Style.BRIGHT}{event.name}{Style.RESET_ALL}{symbol}")
    print(f"        {chain:12s} {color}{event.credibility.value:10s}{Style.RESET_ALL} via {event.source}")
    if event.markets:
        print(f"        Markets: {', '.join(m.title for m in event.markets)}")


def print_events(title, events):
    print(f"\n{Fore.CYAN}{'='*60}")
    print(f"{Fore.CYAN}{title}")
    print(f"{Fore.CYAN}{'='*60}")
    if not events:
        print(f"{Fore.YELLOW}  No events")
    for event in events:
        print_event(event)
    print(f"{Fore.CYAN}{'='*60}\n")


def print_stats(calendar):
    stats = calendar.get_metrics()

    print(f"\n{Fore.CYAN}{'='*60}")
    print(f"{Fore.CYAN}TGE CALENDAR STATISTICS")
    print(f"{Fore.CYAN}{'='*60}")

    print(f"\n📡 SOURCES:")
    for name, source in stats['sources'].items():
        print(f"  {name:15s} ok={source['success']} failed={source['failure']} events={source['events']}")

    cache = stats['cache']
    print(f"\n💾 CACHE:")
    print(f"  Entries:             {cache['size']} / {cache['max_entries']} ({cache['valid_entries']} fresh)")
    print(f"  Hit rate:            {cache['hit_rate_pct']:.1f}%")
    print(f"  Evictions:           {cache['evictions']}")
    print(f"  Periods:             {', '.join(calendar.get_cached_periods()) or '-'}")

    store = stats['store']
    print(f"\n🔍 SEARCH STORE:")
    print(f"  Events:              {store['total_events']}")
    print(f"  Blockchains:         {store['blockchains']}")
    print(f"  Tags:                {store['tags']}")

    print(f"\n🔄 PIPELINE:")
    print(f"  Dedup collisions:    {stats['dedup_collisions']}")
    print(f"  Fallbacks served:    {stats['fallbacks']}")
    print(f"  Preload failures:    {stats['preload_failures']}")
    print(f"{Fore.CYAN}{'='*60}\n")


async def main():
    parser = argparse.ArgumentParser(description="Crypto TGE Calendar")
    parser.add_argument("--month", default=None,
                        help="Month to show (YYYY-MM). Default: current month")
    parser.add_argument("--search", default=None, help="Free-text search over indexed events")
    parser.add_argument("--blockchain", default=None, help="Filter search by blockchain")
    parser.add_argument("--credibility", choices=['verified', 'unverified', 'rumor'],
                        help="Filter search by credibility")
    parser.add_argument("--tag", action="append", default=None,
                        help="Filter search by tag (repeatable, any-of)")
    parser.add_argument("--sort", choices=['date', 'name', 'relevance'], default=None,
                        help="Sort search results")
    parser.add_argument("--limit", type=int, default=None, help="Limit search results")
    parser.add_argument("--suggest", default=None, help="Show autocomplete suggestions for a query")
    parser.add_argument("--history", action="store_true", help="Show recent searches")
    parser.add_argument("--stats", action="store_true", help="Show cache/source statistics")
    parser.add_argument("--json", action="store_true", help="Print raw JSON instead of formatted output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    calendar = create_calendar()
    try:
        if args.suggest is not None:
            suggestions = calendar.get_suggestions(args.suggest)
            if args.json:
                print(json.dumps([s.__dict__ for s in suggestions], indent=2))
            else:
                print(f"{Fore.CYAN}Suggestions for '{args.suggest}':")
                for s in suggestions:
                    print(f"  {s.text:30s} {Fore.MAGENTA}{s.type:10s}{Style.RESET_ALL} {s.count}")
            return

        if args.history:
            history = calendar.get_search_history()
            if args.json:
                print(json.dumps(history, indent=2))
            else:
                print(f"{Fore.CYAN}Recent searches:")
                for query in history:
                    print(f"  {query}")
                if not history:
                    print(f"{Fore.YELLOW}  (none)")
            return

        month = args.month or period_key(datetime.now(timezone.utc))
        searching = args.search or args.blockchain or args.credibility or args.tag

        if searching:
            filters = SearchFilters(blockchain=args.blockchain, credibility=args.credibility, tags=args.tag)
            options = SearchOptions(limit=args.limit, sort_by=args.sort)
            result = await calendar.search(args.search or '', filters, options)
            if args.json:
                print(json.dumps({'total': result.total, 'events': [e.to_dict() for e in result.events]}, indent=2))
            else:
                print_events(f"SEARCH '{result.query}': {result.total} matches", result.events)
        else:
            response = await calendar.get_events_for_period(month)
            if args.json:
                print(json.dumps({
                    'period': response.period,
                    'origin': response.origin,
                    'total': response.total,
                    'events': [e.to_dict() for e in response.events],
                }, indent=2))
            else:
                print_events(f"TGE EVENTS {response.period}: {response.total} events", response.events)
                print(f"Source: {ORIGIN_LABELS.get(response.origin, response.origin)}")

        if args.stats:
            print_stats(calendar)
    finally:
        await close_calendar(calendar)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print(f"\n{Fore.YELLOW}Interrupted")
