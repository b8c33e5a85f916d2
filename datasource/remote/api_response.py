# =============================================================================
# datasource/remote/api_response.py
# Uniform Result Shape for Every Remote Call
# =============================================================================
"""
ApiResponse - every RemoteClient call returns one of these, success or not.

The backend answers in one of two shapes, decoded by :func:`decode_body`:

Envelope
    A JSON object carrying a status key (``status`` or ``statusCode``) and a
    payload key (``data`` or ``message``)::

        {"status": 200, "message": "ok", "data": {...}}

Raw body
    Anything else. The whole body becomes ``data`` and the status is the
    HTTP status of the transport response.

Usage:
    response = client.get("/users/me")
    if response.succeeded:
        user = response.data
    else:
        print(f"Error: {response.message} ({response.error_code})")
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

T = TypeVar("T")

NETWORK_ERROR = "NETWORK_ERROR"
TIMEOUT = "TIMEOUT"
UNAUTHORIZED = "UNAUTHORIZED"

DEFAULT_ERROR_MESSAGE = "An error occurred"
NETWORK_ERROR_MESSAGE = "Please check your network connection"
TIMEOUT_MESSAGE = "The request timed out"
UNAUTHORIZED_MESSAGE = "Login required"

STATUS_KEYS = ("status", "statusCode")
PAYLOAD_KEYS = ("data", "message")


# =============================================================================
# BODY DECODING
# =============================================================================

@dataclass(frozen=True)
class Envelope:
    """Wrapped payload: the server supplied its own status and message."""
    status: Any
    message: Optional[str]
    data: Any


@dataclass(frozen=True)
class RawBody:
    """Unwrapped payload: the body itself is the data."""
    data: Any


def is_envelope(payload: Any) -> bool:
    return (
        isinstance(payload, dict)
        and any(key in payload for key in STATUS_KEYS)
        and any(key in payload for key in PAYLOAD_KEYS)
    )


def decode_body(payload: Any) -> Union[Envelope, RawBody]:
    """Classify a decoded response body as one of the two accepted shapes."""
    if is_envelope(payload):
        status = payload.get("status")
        if status is None:
            status = payload.get("statusCode")
        message = payload.get("message")
        return Envelope(
            status=status,
            message=message if isinstance(message, str) else None,
            data=payload.get("data"),
        )
    return RawBody(data=payload)


def _as_status(value: Any, fallback: int) -> int:
    if isinstance(value, bool):
        return fallback
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return fallback


# =============================================================================
# RESPONSE
# =============================================================================

@dataclass(frozen=True)
class ApiResponse(Generic[T]):
    """
    Normalized outcome of a remote call.

    Invariants: a successful response has no error_code, a failed response
    has no data.
    """
    status_code: int
    succeeded: bool
    message: Optional[str] = None
    data: Optional[T] = None
    error_code: Optional[str] = None

    def __post_init__(self):
        if self.succeeded and self.error_code is not None:
            raise ValueError("A successful ApiResponse cannot carry an error_code")
        if not self.succeeded and self.data is not None:
            raise ValueError("A failed ApiResponse cannot carry data")

    def __bool__(self) -> bool:
        return self.succeeded

    @classmethod
    def success(cls, body: Any, status_code: int = 200) -> ApiResponse:
        """
        Create a successful response from a decoded body.

        Args:
            body: Parsed JSON (or text) returned by the server
            status_code: HTTP status of the transport response
        """
        decoded = decode_body(body)
        if isinstance(decoded, Envelope):
            return cls(
                status_code=_as_status(decoded.status, status_code),
                succeeded=True,
                message=decoded.message,
                data=decoded.data,
            )
        return cls(status_code=status_code, succeeded=True, data=decoded.data)

    @classmethod
    def error(
        cls,
        status_code: int = 500,
        message: Optional[str] = None,
        error_code: Optional[str] = None,
    ) -> ApiResponse:
        """Create a failed response"""
        return cls(
            status_code=status_code,
            succeeded=False,
            message=message or DEFAULT_ERROR_MESSAGE,
            error_code=error_code,
        )

    @classmethod
    def network_error(cls) -> ApiResponse:
        return cls(
            status_code=0,
            succeeded=False,
            message=NETWORK_ERROR_MESSAGE,
            error_code=NETWORK_ERROR,
        )

    @classmethod
    def timeout(cls) -> ApiResponse:
        return cls(
            status_code=408,
            succeeded=False,
            message=TIMEOUT_MESSAGE,
            error_code=TIMEOUT,
        )

    @classmethod
    def unauthorized(cls) -> ApiResponse:
        return cls(
            status_code=401,
            succeeded=False,
            message=UNAUTHORIZED_MESSAGE,
            error_code=UNAUTHORIZED,
        )

    def __str__(self) -> str:
        return (
            f"ApiResponse(status_code={self.status_code}, succeeded={self.succeeded}, "
            f"message={self.message}, data={self.data})"
        )
