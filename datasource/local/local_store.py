# =============================================================================
# datasource/local/local_store.py
# Unencrypted On-Device Key/Value Storage with Expiring Cache Entries
# =============================================================================
"""
LocalStore - SQLite-backed preferences and cache.

Features:
- Typed getters/setters (string, int, double, bool, string list, JSON)
- Cache entries with optional expiry, invalidated lazily on read
- Bulk clear of the cache namespace or of everything

Keys are caller-supplied and not namespaced; callers must avoid collisions.
Cache entries live in their own table, so ``clear_cache()`` never touches
preferences.
"""

from __future__ import annotations
import json
import sqlite3
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, List, Optional, Union
import logging

from datasource.errors import StorageUnavailableError

logger = logging.getLogger(__name__)


def now_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class CacheEntry:
    """A cached value with its creation time and optional lifetime."""
    value: Any
    stored_at_millis: int
    expiry_millis: Optional[int] = None

    @property
    def expires_at_millis(self) -> Optional[int]:
        if self.expiry_millis is None:
            return None
        return self.stored_at_millis + self.expiry_millis

    def is_expired(self, now: int) -> bool:
        expires_at = self.expires_at_millis
        return expires_at is not None and now >= expires_at


class LocalStore:
    """
    Local preferences and cache storage.

    Usage:
        store = LocalStore(Path("local_data/local.db"))
        store.initialize()

        store.set_string("theme", "dark")
        store.get_string("theme")  # "dark"

        store.set_cache_item("feed", items, expiry=timedelta(minutes=30))
        store.get_cache_item("feed")  # items, or None once expired
    """

    SCHEMA = {
        "preferences": """
            CREATE TABLE IF NOT EXISTS preferences (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                value_type TEXT NOT NULL,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """,
        "cache_entries": """
            CREATE TABLE IF NOT EXISTS cache_entries (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                stored_at INTEGER NOT NULL,
                expiry_ms INTEGER
            )
        """,
    }

    # Type tags stored alongside preference values
    STRING = "string"
    INT = "int"
    DOUBLE = "double"
    BOOL = "bool"
    STRING_LIST = "string_list"
    JSON = "json"

    def __init__(
        self,
        db_path: Union[str, Path],
        clock: Callable[[], int] = now_millis,
    ):
        """
        Args:
            db_path: SQLite file for preferences and cache entries
            clock: Returns the current time in epoch milliseconds
        """
        self.db_path = Path(db_path)
        self._clock = clock
        self._connection: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    def initialize(self) -> None:
        """Open the storage file and create tables. Safe to call more than once."""
        with self._lock:
            if self._connection is not None:
                return

            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
                conn.row_factory = sqlite3.Row
                for table_name, schema in self.SCHEMA.items():
                    conn.execute(schema)
                    logger.debug(f"Created/verified table: {table_name}")
                conn.commit()
            except (sqlite3.Error, OSError) as e:
                raise StorageUnavailableError(
                    f"Cannot open local storage at {self.db_path}: {e}",
                    store="local",
                    operation="initialize",
                )

            self._connection = conn
            logger.info(f"Local store initialized at: {self.db_path}")

    @contextmanager
    def _transaction(self, operation: str):
        """Yield the open connection and commit; roll back on any failure."""
        with self._lock:
            if self._connection is None:
                raise StorageUnavailableError(
                    "Local storage is not initialized. Call initialize() first.",
                    store="local",
                    operation=operation,
                )
            conn = self._connection
            try:
                yield conn
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise StorageUnavailableError(
                    f"Local storage {operation} failed: {e}",
                    store="local",
                    operation=operation,
                )
            except Exception:
                conn.rollback()
                raise

    # =========================================================================
    # PREFERENCES
    # =========================================================================

    def _set(self, key: str, value: Any, value_type: str) -> None:
        encoded = json.dumps(value)
        with self._transaction("set") as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO preferences (key, value, value_type, updated_at)
                VALUES (?, ?, ?, ?)
                """,
                [key, encoded, value_type, datetime.now().isoformat()],
            )

    def _get(self, key: str, value_type: str) -> Any:
        with self._transaction("get") as conn:
            row = conn.execute(
                "SELECT value, value_type FROM preferences WHERE key = ?", [key]
            ).fetchone()
        if row is None:
            return None
        if row["value_type"] != value_type:
            logger.debug(f"Key '{key}' holds {row['value_type']}, not {value_type}")
            return None
        return json.loads(row["value"])

    def set_string(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"set_string expects str, got {type(value).__name__}")
        self._set(key, value, self.STRING)

    def get_string(self, key: str) -> Optional[str]:
        return self._get(key, self.STRING)

    def set_int(self, key: str, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"set_int expects int, got {type(value).__name__}")
        self._set(key, value, self.INT)

    def get_int(self, key: str) -> Optional[int]:
        return self._get(key, self.INT)

    def set_double(self, key: str, value: float) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"set_double expects float, got {type(value).__name__}")
        self._set(key, float(value), self.DOUBLE)

    def get_double(self, key: str) -> Optional[float]:
        value = self._get(key, self.DOUBLE)
        return None if value is None else float(value)

    def set_bool(self, key: str, value: bool) -> None:
        if not isinstance(value, bool):
            raise TypeError(f"set_bool expects bool, got {type(value).__name__}")
        self._set(key, value, self.BOOL)

    def get_bool(self, key: str) -> Optional[bool]:
        return self._get(key, self.BOOL)

    def set_string_list(self, key: str, value: List[str]) -> None:
        if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
            raise TypeError("set_string_list expects a list of str")
        self._set(key, list(value), self.STRING_LIST)

    def get_string_list(self, key: str) -> Optional[List[str]]:
        return self._get(key, self.STRING_LIST)

    def set_json(self, key: str, value: Any) -> None:
        """Store any JSON-serializable object (raises TypeError otherwise)."""
        self._set(key, value, self.JSON)

    def get_json(self, key: str) -> Any:
        return self._get(key, self.JSON)

    def remove(self, key: str) -> None:
        with self._transaction("remove") as conn:
            conn.execute("DELETE FROM preferences WHERE key = ?", [key])

    def contains_key(self, key: str) -> bool:
        with self._transaction("contains_key") as conn:
            row = conn.execute("SELECT 1 FROM preferences WHERE key = ?", [key]).fetchone()
        return row is not None

    def keys(self) -> List[str]:
        """All preference keys (cache entries excluded)."""
        with self._transaction("keys") as conn:
            rows = conn.execute("SELECT key FROM preferences ORDER BY key").fetchall()
        return [row["key"] for row in rows]

    # =========================================================================
    # CACHE
    # =========================================================================

    def set_cache_item(
        self,
        key: str,
        value: Any,
        expiry: Optional[timedelta] = None,
    ) -> None:
        """
        Cache a JSON-serializable value.

        Args:
            key: Cache key
            value: Value to cache
            expiry: Lifetime of the entry; None means it never expires
        """
        expiry_ms = None
        if expiry is not None:
            expiry_ms = int(expiry.total_seconds() * 1000)
            if expiry_ms < 0:
                raise ValueError("expiry must not be negative")

        encoded = json.dumps(value)
        with self._transaction("set_cache_item") as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO cache_entries (key, value, stored_at, expiry_ms)
                VALUES (?, ?, ?, ?)
                """,
                [key, encoded, self._clock(), expiry_ms],
            )

    def get_cache_entry(self, key: str) -> Optional[CacheEntry]:
        """Raw cache entry, expired or not."""
        with self._transaction("get_cache_entry") as conn:
            row = conn.execute(
                "SELECT value, stored_at, expiry_ms FROM cache_entries WHERE key = ?", [key]
            ).fetchone()
        if row is None:
            return None
        return CacheEntry(
            value=json.loads(row["value"]),
            stored_at_millis=row["stored_at"],
            expiry_millis=row["expiry_ms"],
        )

    def get_cache_item(self, key: str) -> Any:
        """
        Cached value, or None if missing or expired.

        Expired entries stay in storage until overwritten or cleared.
        """
        entry = self.get_cache_entry(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            logger.debug(f"Cache entry '{key}' expired")
            return None
        return entry.value

    def remove_cache_item(self, key: str) -> None:
        with self._transaction("remove_cache_item") as conn:
            conn.execute("DELETE FROM cache_entries WHERE key = ?", [key])

    def clear_cache(self) -> None:
        """Remove every cache entry; preferences are kept."""
        with self._transaction("clear_cache") as conn:
            cursor = conn.execute("DELETE FROM cache_entries")
        logger.info(f"Cleared {cursor.rowcount} cache entries")

    # =========================================================================
    # MAINTENANCE
    # =========================================================================

    def clear_all(self) -> None:
        """Remove all preferences and cache entries. The store stays usable."""
        with self._transaction("clear_all") as conn:
            conn.execute("DELETE FROM preferences")
            conn.execute("DELETE FROM cache_entries")
        logger.info("Local store cleared")

    def close(self) -> None:
        """Close the storage handle."""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
