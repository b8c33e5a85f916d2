# =============================================================================
# datasource/__init__.py
# Unified Remote / Local / Secure Data Access
# =============================================================================
"""
DataSource layer for client applications.

    ┌───────────────────────────────────────────────┐
    │                  DataSource                    │
    │   (initialize: secure → local → remote)        │
    └───────────────────────────────────────────────┘
          │                  │                │
          ▼                  ▼                ▼
    ┌────────────┐    ┌────────────┐    ┌────────────┐
    │RemoteClient│───►│SecureStore │    │ LocalStore │
    │ (requests) │    │ (Fernet +  │    │  (SQLite)  │
    └────────────┘    │  SQLite)   │    └────────────┘
                      └────────────┘
"""

from datasource.config import DataSourceConfig, load_config
from datasource.errors import (
    DataSourceError,
    NotInitializedError,
    StorageUnavailableError,
    SecureStorageError,
    ConfigurationError,
)
from datasource.local import LocalStore, CacheEntry
from datasource.logging import setup_logging
from datasource.remote import ApiResponse, RemoteClient
from datasource.secure import SecureStore, TokenPair
from datasource.facade import DataSource

__version__ = "0.1.0"

__all__ = [
    # Facade (main API)
    "DataSource",
    # Configuration
    "DataSourceConfig",
    "load_config",
    "setup_logging",
    # Stores
    "RemoteClient",
    "ApiResponse",
    "LocalStore",
    "CacheEntry",
    "SecureStore",
    "TokenPair",
    # Errors
    "DataSourceError",
    "NotInitializedError",
    "StorageUnavailableError",
    "SecureStorageError",
    "ConfigurationError",
]
