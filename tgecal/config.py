import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

load_dotenv()

# API keys (optional; sources degrade gracefully without them)
CRYPTORANK_API_KEY = os.getenv("CRYPTORANK_API_KEY", "")
COINMARKETCAL_API_KEY = os.getenv("COINMARKETCAL_API_KEY", "")

# Persistent key-value store (searchable events + search history)
DB_PATH = os.getenv("TGECAL_DB_PATH", os.path.join("database", "tgecal.db"))

# Calendar-level behaviour
TGE_CALENDAR_CONFIG = {
    'cache': {
        'ttl_seconds': 30 * 60,      # a cached month is fresh for 30 minutes
        'max_entries': 24,           # two years of months
    },
    'search': {
        'max_history': 10,
    },
    'facade': {
        'preload_neighbors': True,   # warm previous/next month in the background
    },
    'scheduler': {
        'max_dead_letters': 50,
    },
}

SOURCES_CONFIG_PATH = Path(__file__).parent / "sources.yaml"

API_KEY_ENV = {
    'cryptorank': 'CRYPTORANK_API_KEY',
    'coinmarketcal': 'COINMARKETCAL_API_KEY',
}


def load_source_configs(path: Path = SOURCES_CONFIG_PATH):
    """Load per-source settings from sources.yaml, with API keys from the environment."""
    configs = {"sources": {}}
    if Path(path).exists():
        with open(path, 'r') as f:
            configs = yaml.safe_load(f) or configs

    sources = configs.get('sources') or {}
    for name, env_var in API_KEY_ENV.items():
        key = os.getenv(env_var, "")
        if key and name in sources:
            sources[name]['api_key'] = key
    return sources
