"""
SQLite response cache and cached GET helper used by the fetch clients.
Stores decoded JSON bodies keyed by a caller-chosen key (e.g. "github:pulls:<org>/<repo>:page:1").
"""

import sqlite3
import json
import time
import threading
import logging
from typing import Optional, Any, Dict

from .retry import perform_request_with_retries, RetryPolicy

log = logging.getLogger(__name__)

# noinspection SqlResolve
SQL_CREATE = """
CREATE TABLE IF NOT EXISTS responses (
    key TEXT PRIMARY KEY,
    body TEXT,
    status INTEGER,
    fetched_at REAL
);
"""


class Cache:
    def __init__(self, path: Optional[str] = None):
        """Open (or create) a cache.

        :param path: SQLite file path or None for in-memory.
        """
        self.path = path or ':memory:'
        # fetch threads share one connection; every statement runs under the lock
        self.conn = sqlite3.connect(self.path, check_same_thread=False)
        self._lock = threading.RLock()
        with self._lock:
            self.conn.executescript(SQL_CREATE)
            self.conn.commit()

    def close(self):
        with self._lock:
            if self.conn is not None:
                self.conn.close()
                self.conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # noinspection SqlWithoutWhere
    def clear(self) -> int:
        """Remove every entry. Returns the number of rows deleted."""
        with self._lock:
            cur = self.conn.execute('DELETE FROM responses')
            self.conn.commit()
            return cur.rowcount

    # noinspection SqlResolve
    def get(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            row = self.conn.execute('SELECT body, status, fetched_at FROM responses WHERE key = ?', (key,)).fetchone()
        if not row:
            return None
        body, status, fetched_at = row
        return {'response': json.loads(body), 'status': status, 'timestamp': fetched_at}

    # noinspection SqlResolve
    def set(self, key: str, response: Any, status: int = 200):
        payload = json.dumps(response, ensure_ascii=False)
        with self._lock:
            self.conn.execute(
                'REPLACE INTO responses(key, body, status, fetched_at) VALUES (?, ?, ?, ?)', (key, payload, status, time.time())
            )
            self.conn.commit()


def _fresh(cache: Optional[Cache], cache_key: Optional[str], max_age: Optional[float]) -> Optional[Dict[str, Any]]:
    if cache is None or not cache_key:
        return None
    cached = cache.get(cache_key)
    if not cached:
        return None
    if max_age is not None and time.time() - float(cached.get('timestamp') or 0) > float(max_age):
        return None
    return cached


def cached_get(
    url: str,
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, Any]] = None,
    cache: Optional[Cache] = None,
    cache_key: Optional[str] = None,
    max_age: Optional[float] = None,
    policy: Optional[RetryPolicy] = None,
    refresh: bool = False,
) -> Dict[str, Any]:
    """Public API: GET with cache lookup (honoring max_age), rate-limit handling and retries.

    With refresh the lookup is skipped but a successful response still replaces the cached entry.
    Returns {'response', 'status', 'timestamp'} whether the answer came from cache or network.
    """
    cached = None if refresh else _fresh(cache, cache_key, max_age)
    if cached:
        log.debug("cache hit %s", cache_key)
        return cached
    return perform_request_with_retries(url, headers or {}, params or {}, cache, cache_key or '', policy)


__all__ = ["Cache", "cached_get"]
