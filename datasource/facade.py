# =============================================================================
# datasource/facade.py
# DataSource - Single Entry Point for Remote, Local and Secure Storage
# =============================================================================
"""
DataSource ties the three stores together and owns their startup order.

Usage:
------
from datasource import DataSource, load_config

ds = DataSource.open(load_config())      # construct + initialize

response = ds.remote.get("/users/me")
ds.local.set_string("theme", "dark")
ds.secure.set_tokens("abc123", "xyz789")

if ds.is_logged_in:
    ...

ds.clear_all()                           # logout

Pass the DataSource instance to whatever needs it; there is no global.
"""

from __future__ import annotations
import threading
from typing import Callable, Optional
import logging

import requests

from datasource.config import DataSourceConfig, load_config
from datasource.errors import NotInitializedError
from datasource.local import LocalStore, now_millis
from datasource.logging import LogContext, set_request_logging
from datasource.remote import RemoteClient
from datasource.secure import SecureStore

logger = logging.getLogger(__name__)


class DataSource:
    """
    Unified access to remote, local and secure storage.

    Two states: uninitialized and initialized. Accessors raise
    NotInitializedError until initialize() has completed.
    """

    def __init__(
        self,
        config: Optional[DataSourceConfig] = None,
        secure: Optional[SecureStore] = None,
        local: Optional[LocalStore] = None,
        session: Optional[requests.Session] = None,
        clock: Callable[[], int] = now_millis,
    ):
        """
        Args:
            config: Settings (default: load_config())
            secure: Pre-built SecureStore (default: built from config)
            local: Pre-built LocalStore (default: built from config)
            session: requests session handed to the RemoteClient
            clock: Millisecond clock for cache expiry
        """
        self.config = config or load_config()
        self._secure = secure or SecureStore(
            self.config.secure_db_path,
            key=self.config.secure_key,
            key_path=self.config.secure_key_path,
        )
        self._local = local or LocalStore(self.config.local_db_path, clock=clock)
        self._session = session
        self._remote: Optional[RemoteClient] = None

        self._initialized = False
        self._init_lock = threading.Lock()

    @classmethod
    def open(cls, config: Optional[DataSourceConfig] = None, **kwargs) -> DataSource:
        """Construct and initialize in one step."""
        ds = cls(config, **kwargs)
        ds.initialize()
        return ds

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """
        Bring up the stores: secure, then local, then the remote client.

        Repeat calls are no-ops. Concurrent callers block until the first
        initialization finishes.
        """
        if self._initialized:
            return

        with self._init_lock:
            if self._initialized:
                return

            set_request_logging(self.config.log_requests)

            with LogContext(logger, "Initializing DataSource"):
                self._secure.initialize()
                self._local.initialize()
                self._remote = RemoteClient(self.config, self._secure, session=self._session)
                self._initialized = True

    def _check_initialized(self, accessor: str) -> None:
        if not self._initialized:
            raise NotInitializedError(accessor)

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    @property
    def remote(self) -> RemoteClient:
        """API client"""
        self._check_initialized("remote")
        return self._remote

    @property
    def local(self) -> LocalStore:
        """Preferences and cache"""
        self._check_initialized("local")
        return self._local

    @property
    def secure(self) -> SecureStore:
        """Encrypted token storage"""
        self._check_initialized("secure")
        return self._secure

    # =========================================================================
    # SESSION OPERATIONS
    # =========================================================================

    def clear_all(self) -> None:
        """Logout: delete tokens, then every local value."""
        self._check_initialized("clear_all")
        self._secure.clear_tokens()
        self._local.clear_all()
        logger.info("DataSource cleared (logout)")

    def clear_cache(self) -> None:
        """Delete cache entries only."""
        self._check_initialized("clear_cache")
        self._local.clear_cache()

    @property
    def is_logged_in(self) -> bool:
        self._check_initialized("is_logged_in")
        return self._secure.has_tokens()

    def close(self) -> None:
        """Release the HTTP session and storage handles."""
        if self._remote is not None:
            self._remote.close()
        self._local.close()
        self._secure.close()

    def __enter__(self) -> DataSource:
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False
