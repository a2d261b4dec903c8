# src/marketpulse/adapters/formatting/__init__.py
"""
Formatting Adapters - Message Rendering

This package renders reports into Telegram messages.
"""

from marketpulse.adapters.formatting.formatter import format_price, format_report, format_vnd

__all__ = [
    "format_report",
    "format_price",
    "format_vnd",
]
