# src/marketpulse/__init__.py
"""
MarketPulse - Telegram Market Bulletin Bot

Gathers gold, EUR/USD and Bitcoin quotes plus translated market headlines,
converts prices to VND through a cached USD/VND rate, and broadcasts the
bulletin to every registered chat on a schedule or on demand.
"""

__version__ = "1.0.0"
