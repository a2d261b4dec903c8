# src/marketpulse/adapters/__init__.py
"""
Adapters Layer - External Interfaces

This package contains all adapters for external systems:
- Providers (quote and news APIs)
- Translation (headline translation endpoint)
- Persistence (subscriber registry: JSON file or Redis)
- Formatting (Telegram message rendering)
- Telegram (bot interface)
- Serverless (single-invocation entry point)
"""

__all__ = []
