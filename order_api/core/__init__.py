"""
Core module initialization.
Exports configuration, errors and message utilities.
"""

from order_api.core.config import get_settings, Settings, EnvironmentMode, Locale
from order_api.core.errors import (
    OrderApiError,
    ValidationError,
    Unauthorized,
    InternalError,
)
from order_api.core.messages import get_message

__all__ = [
    "get_settings",
    "Settings",
    "EnvironmentMode",
    "Locale",
    "OrderApiError",
    "ValidationError",
    "Unauthorized",
    "InternalError",
    "get_message",
]
