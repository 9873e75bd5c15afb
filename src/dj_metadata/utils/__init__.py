"""Utility functions for DJ Metadata Toolkit."""

from .error_handler import ErrorHandler, ErrorCategory, UserFriendlyError, handle_user_error

__all__ = [
    "ErrorHandler",
    "ErrorCategory",
    "UserFriendlyError",
    "handle_user_error",
]
