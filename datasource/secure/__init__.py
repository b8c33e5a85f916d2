# =============================================================================
# datasource/secure/__init__.py
# Encrypted Token Storage
# =============================================================================

from datasource.secure.secure_store import (
    SecureStore,
    TokenPair,
    ACCESS_TOKEN_KEY,
    REFRESH_TOKEN_KEY,
    FCM_TOKEN_KEY,
)

__all__ = [
    "SecureStore",
    "TokenPair",
    "ACCESS_TOKEN_KEY",
    "REFRESH_TOKEN_KEY",
    "FCM_TOKEN_KEY",
]
