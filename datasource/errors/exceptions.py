# =============================================================================
# datasource/errors/exceptions.py
# Custom Exception Hierarchy for the DataSource Layer
# =============================================================================

from typing import Optional, Dict, Any


class DataSourceError(Exception):
    """
    Base exception for all DataSource errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "STORAGE_001")
        details: Additional context as a dictionary
        recoverable: Whether the caller can reasonably recover
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "DS_000"
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# LIFECYCLE EXCEPTIONS
# =============================================================================

class NotInitializedError(DataSourceError, RuntimeError):
    """
    Raised when a DataSource accessor is used before initialize() completed.

    This is a startup-ordering bug, never a runtime condition to handle.
    """

    def __init__(self, accessor: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if accessor:
            details["accessor"] = accessor

        super().__init__(
            message="DataSource not initialized. Call DataSource.initialize() at startup first.",
            code="DS_001",
            details=details,
            recoverable=False,
            **kwargs,
        )


# =============================================================================
# STORAGE EXCEPTIONS
# =============================================================================

class StorageUnavailableError(DataSourceError):
    """Raised when the local storage handle is closed or a storage call fails"""

    def __init__(
        self,
        message: str,
        store: Optional[str] = None,
        operation: Optional[str] = None,
        code: str = "STORAGE_001",
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if store:
            details["store"] = store
        if operation:
            details["operation"] = operation

        super().__init__(
            message=message,
            code=code,
            details=details,
            **kwargs,
        )


class SecureStorageError(StorageUnavailableError):
    """Raised when the encrypted keystore cannot be opened, read or written"""

    def __init__(self, message: str, operation: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            store="secure",
            operation=operation,
            code="STORAGE_002",
            **kwargs,
        )


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================

class ConfigurationError(DataSourceError):
    """Raised when configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type

        super().__init__(
            message=message,
            code="CONFIG_001",
            details=details,
            recoverable=False,
            **kwargs,
        )
