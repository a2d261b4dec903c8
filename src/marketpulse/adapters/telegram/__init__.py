# src/marketpulse/adapters/telegram/__init__.py
"""
Telegram Adapters - Bot Interface

This package contains Telegram bot adapters:
- Bot application builder and message transport
- Command handlers
- Scheduled jobs
"""

from marketpulse.adapters.telegram.bot import TelegramSender, build_application
from marketpulse.adapters.telegram.handlers import build_handlers
from marketpulse.adapters.telegram.jobs import broadcast_job

__all__ = [
    "build_application",
    "build_handlers",
    "broadcast_job",
    "TelegramSender",
]
