# =============================================================================
# datasource/errors/__init__.py
# Error Hierarchy for the DataSource Layer
# =============================================================================

from .exceptions import (
    DataSourceError,
    NotInitializedError,
    StorageUnavailableError,
    SecureStorageError,
    ConfigurationError,
)

__all__ = [
    "DataSourceError",
    "NotInitializedError",
    "StorageUnavailableError",
    "SecureStorageError",
    "ConfigurationError",
]
