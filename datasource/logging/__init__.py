# =============================================================================
# datasource/logging/__init__.py
# Centralized Logging Configuration
# =============================================================================

from .config import LogContext, set_request_logging, setup_logging

__all__ = ["setup_logging", "set_request_logging", "LogContext"]
