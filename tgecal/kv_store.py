"""
Persistent key-value store for the calendar.
Holds JSON snapshots (searchable event set, search history) in SQLite.
"""

import json
import logging
import os
import sqlite3
import time
from typing import Any, List, Optional

from .config import DB_PATH

logger = logging.getLogger(__name__)

EVENTS_KEY = 'tge-events-store'
HISTORY_KEY = 'tge-search-history'


class KeyValueStore:
    def __init__(self, db_path: str = DB_PATH):
        self.db_path = db_path
        self._ensure_db_dir()
        self._init_db()

    def _ensure_db_dir(self):
        directory = os.path.dirname(self.db_path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)

    def _get_conn(self):
        return sqlite3.connect(self.db_path)

    def _init_db(self):
        """Initialize database schema."""
        conn = self._get_conn()
        try:
            conn.execute('''
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at INTEGER NOT NULL
            )
            ''')
            conn.commit()
        finally:
            conn.close()
        logger.debug(f"[KV] Store ready at {self.db_path}")

    def get(self, key: str, default: Any = None) -> Any:
        """Return the decoded JSON value for key, or default."""
        conn = self._get_conn()
        try:
            row = conn.execute('SELECT value FROM kv_store WHERE key = ?', (key,)).fetchone()
        finally:
            conn.close()
        if row is None:
            return default
        return json.loads(row[0])

    def set(self, key: str, value: Any):
        payload = json.dumps(value)
        conn = self._get_conn()
        try:
            conn.execute(
                '''
                INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                               updated_at = excluded.updated_at
                ''',
                (key, payload, int(time.time() * 1000)),
            )
            conn.commit()
        finally:
            conn.close()

    def delete(self, key: str):
        conn = self._get_conn()
        try:
            conn.execute('DELETE FROM kv_store WHERE key = ?', (key,))
            conn.commit()
        finally:
            conn.close()

    def updated_at(self, key: str) -> Optional[int]:
        conn = self._get_conn()
        try:
            row = conn.execute('SELECT updated_at FROM kv_store WHERE key = ?', (key,)).fetchone()
        finally:
            conn.close()
        return row[0] if row else None

    def keys(self) -> List[str]:
        conn = self._get_conn()
        try:
            rows = conn.execute('SELECT key FROM kv_store ORDER BY key').fetchall()
        finally:
            conn.close()
        return [r[0] for r in rows]
