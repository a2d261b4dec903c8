# src/marketpulse/shared/__init__.py
"""
Shared Utilities - Cross-cutting Concerns

This package contains shared utilities used across all layers:
- Validation
- Command throttling
- Message catalog
- Logging configuration
"""

from marketpulse.shared.validators import (
    normalize_recipient_id,
    validate_api_key,
    validate_bot_token,
    validate_clock_time,
)
from marketpulse.shared.throttle import CommandThrottle
from marketpulse.shared.language import (
    translate,
    symbol_label,
    LANG_ENGLISH,
    LANG_VIETNAMESE,
)

__all__ = [
    "normalize_recipient_id",
    "validate_api_key",
    "validate_bot_token",
    "validate_clock_time",
    "CommandThrottle",
    "translate",
    "symbol_label",
    "LANG_ENGLISH",
    "LANG_VIETNAMESE",
]
