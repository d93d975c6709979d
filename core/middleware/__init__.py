"""
Core middleware package.

This package provides:
- Error handlers with sensitive data sanitization
- Structured JSON logging and request logging
"""

from core.middleware.error_handling import (
    setup_error_handlers,
    sanitize_error_message,
    get_safe_error_details,
)

from core.middleware.logging import (
    StructuredLoggingMiddleware,
    setup_logging,
    get_logger,
)

__all__ = [
    # Error handling
    "setup_error_handlers",
    "sanitize_error_message",
    "get_safe_error_details",
    # Logging
    "StructuredLoggingMiddleware",
    "setup_logging",
    "get_logger",
]
