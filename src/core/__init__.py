"""
Core module for cross-cutting concerns.

This module provides:
- Structured logging configuration
- Request tracing middleware
- Authentication utilities
- Offset pagination helpers
"""

from core.logging import configure_logging, get_logger
from core.auth import require_auth, get_current_user, SupabaseUser
from core.pagination import PageRange, get_range

__all__ = [
    "configure_logging",
    "get_logger",
    "require_auth",
    "get_current_user",
    "SupabaseUser",
    "PageRange",
    "get_range",
]
