# =============================================================================
# datasource/secure/secure_store.py
# Encrypted Token Storage
# =============================================================================
"""
SecureStore - encrypted key/value storage for credentials.

Holds exactly three logical entries: the access token, the refresh token and
the push-notification (FCM) token. Values are encrypted with Fernet before
they reach the SQLite file; the key comes from configuration or from a key
file created next to the database with owner-only permissions.
"""

from __future__ import annotations
import os
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Union
import logging

from cryptography.fernet import Fernet, InvalidToken

from datasource.errors import SecureStorageError

logger = logging.getLogger(__name__)


ACCESS_TOKEN_KEY = "access_token"
REFRESH_TOKEN_KEY = "refresh_token"
FCM_TOKEN_KEY = "fcm_token"


def _mask(value: Optional[str]) -> str:
    return "None" if value is None else "'***'"


@dataclass(frozen=True)
class TokenPair:
    """Access/refresh token pair. Never logged; repr masks both values."""
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"TokenPair(access_token={_mask(self.access_token)}, "
            f"refresh_token={_mask(self.refresh_token)})"
        )


class SecureStore:
    """
    Encrypted storage for authentication tokens.

    Usage:
        store = SecureStore(Path("local_data/secure.db"))
        store.initialize()
        store.set_tokens("abc123", "xyz789")
        store.has_tokens()  # True
    """

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS secure_entries (
            key TEXT PRIMARY KEY,
            ciphertext BLOB NOT NULL,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """

    def __init__(
        self,
        db_path: Union[str, Path],
        key: Optional[Union[str, bytes]] = None,
        key_path: Optional[Union[str, Path]] = None,
    ):
        """
        Args:
            db_path: SQLite file holding the encrypted entries
            key: Fernet key (urlsafe base64). Takes precedence over key_path.
            key_path: File to load the key from, created on first use
        """
        self.db_path = Path(db_path)
        self.key_path = Path(key_path) if key_path else self.db_path.with_suffix(".key")
        self._key = key.encode() if isinstance(key, str) else key
        self._fernet: Optional[Fernet] = None
        self._connection: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    def initialize(self) -> None:
        """Open the encrypted storage handle. Safe to call more than once."""
        with self._lock:
            if self._connection is not None:
                return

            fernet = Fernet(self._load_key())
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
                conn.execute(self.SCHEMA)
                conn.commit()
            except (sqlite3.Error, OSError) as e:
                raise SecureStorageError(
                    f"Cannot open secure storage at {self.db_path}: {e}",
                    operation="initialize",
                )

            self._fernet = fernet
            self._connection = conn
            logger.info(f"Secure store initialized at: {self.db_path}")

    def _load_key(self) -> bytes:
        """Return the configured key, or read/create the key file."""
        if self._key:
            key = self._key
        else:
            try:
                if self.key_path.exists():
                    key = self.key_path.read_bytes().strip()
                else:
                    key = Fernet.generate_key()
                    self.key_path.parent.mkdir(parents=True, exist_ok=True)
                    fd = os.open(str(self.key_path), os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
                    with os.fdopen(fd, "wb") as f:
                        f.write(key)
                    logger.info(f"Generated new secure storage key at: {self.key_path}")
            except OSError as e:
                raise SecureStorageError(
                    f"Cannot access secure storage key at {self.key_path}: {e}",
                    operation="load_key",
                )

        try:
            Fernet(key)
        except (ValueError, TypeError):
            raise SecureStorageError(
                "Secure storage key is not a valid Fernet key",
                operation="load_key",
            )
        return key

    @contextmanager
    def _transaction(self, operation: str):
        """Yield the open connection and commit; roll back on any failure."""
        with self._lock:
            if self._connection is None:
                raise SecureStorageError(
                    "Secure storage is not initialized. Call initialize() first.",
                    operation=operation,
                )
            conn = self._connection
            try:
                yield conn
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise SecureStorageError(f"Secure storage {operation} failed: {e}", operation=operation)
            except Exception:
                conn.rollback()
                raise

    # =========================================================================
    # LOW-LEVEL ENTRY ACCESS
    # =========================================================================

    def _write(self, conn: sqlite3.Connection, key: str, value: str) -> None:
        ciphertext = self._fernet.encrypt(value.encode("utf-8"))
        conn.execute(
            """
            INSERT OR REPLACE INTO secure_entries (key, ciphertext, updated_at)
            VALUES (?, ?, ?)
            """,
            [key, ciphertext, datetime.now().isoformat()],
        )

    def _read(self, key: str) -> Optional[str]:
        with self._transaction("read") as conn:
            row = conn.execute(
                "SELECT ciphertext FROM secure_entries WHERE key = ?", [key]
            ).fetchone()
        if row is None:
            return None
        try:
            return self._fernet.decrypt(row[0]).decode("utf-8")
        except InvalidToken:
            raise SecureStorageError(
                f"Stored value for '{key}' cannot be decrypted with the configured key",
                operation="read",
            )

    def _delete(self, *keys: str) -> None:
        with self._transaction("delete") as conn:
            conn.executemany("DELETE FROM secure_entries WHERE key = ?", [[k] for k in keys])

    # =========================================================================
    # TOKENS
    # =========================================================================

    def set_tokens(self, access_token: str, refresh_token: Optional[str] = None) -> None:
        """
        Store both tokens in a single transaction.

        A missing refresh token removes any stored one so the pair always
        comes from the same login.
        """
        with self._transaction("set_tokens") as conn:
            self._write(conn, ACCESS_TOKEN_KEY, access_token)
            if refresh_token is None:
                conn.execute("DELETE FROM secure_entries WHERE key = ?", [REFRESH_TOKEN_KEY])
            else:
                self._write(conn, REFRESH_TOKEN_KEY, refresh_token)
        logger.debug("Tokens stored")

    def get_access_token(self) -> Optional[str]:
        return self._read(ACCESS_TOKEN_KEY)

    def get_refresh_token(self) -> Optional[str]:
        return self._read(REFRESH_TOKEN_KEY)

    def get_tokens(self) -> TokenPair:
        return TokenPair(self.get_access_token(), self.get_refresh_token())

    def has_tokens(self) -> bool:
        """True iff an access token is stored."""
        return self.get_access_token() is not None

    def clear_tokens(self) -> None:
        """Remove access and refresh tokens. The push token is kept."""
        self._delete(ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY)
        logger.debug("Tokens cleared")

    # =========================================================================
    # PUSH NOTIFICATION TOKEN
    # =========================================================================

    def set_fcm_token(self, token: str) -> None:
        with self._transaction("set_fcm_token") as conn:
            self._write(conn, FCM_TOKEN_KEY, token)

    def get_fcm_token(self) -> Optional[str]:
        return self._read(FCM_TOKEN_KEY)

    def delete_fcm_token(self) -> None:
        self._delete(FCM_TOKEN_KEY)

    # =========================================================================
    # MAINTENANCE
    # =========================================================================

    def delete_all(self) -> None:
        """Remove every secure entry, push token included."""
        with self._transaction("delete_all") as conn:
            conn.execute("DELETE FROM secure_entries")
        logger.info("Secure store wiped")

    def close(self) -> None:
        """Close the storage handle."""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
                self._fernet = None
