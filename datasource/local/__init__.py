# =============================================================================
# datasource/local/__init__.py
# On-Device Preferences and Cache
# =============================================================================

from datasource.local.local_store import (
    LocalStore,
    CacheEntry,
    now_millis,
)

__all__ = [
    "LocalStore",
    "CacheEntry",
    "now_millis",
]
