# =============================================================================
# datasource/remote/__init__.py
# Remote API Access
# =============================================================================

from datasource.remote.api_response import (
    ApiResponse,
    Envelope,
    RawBody,
    decode_body,
    NETWORK_ERROR,
    TIMEOUT,
    UNAUTHORIZED,
)

from datasource.remote.remote_client import RemoteClient

__all__ = [
    "ApiResponse",
    "Envelope",
    "RawBody",
    "decode_body",
    "NETWORK_ERROR",
    "TIMEOUT",
    "UNAUTHORIZED",
    "RemoteClient",
]
