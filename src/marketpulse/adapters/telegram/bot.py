# src/marketpulse/adapters/telegram/bot.py
"""
Telegram Bot - Application Builder and Message Transport

This module builds the python-telegram-bot Application and provides the
``send(recipient_id, text)`` transport used by the broadcast dispatcher.
Telegram failures are translated into ``DeliveryError`` with a short reason
so a broadcast records them per recipient.

Files that USE this module:
- marketpulse.app (build_application, TelegramSender)
- marketpulse.adapters.telegram.jobs (TelegramSender for scheduled cycles)
- marketpulse.adapters.serverless.handler (TelegramSender for one-shot cycles)

Files that this module USES:
- telegram (Bot API client)
- marketpulse.domain.errors (DeliveryError)
"""

from __future__ import annotations

import logging

from telegram import Bot, LinkPreviewOptions
from telegram.constants import ParseMode
from telegram.error import BadRequest, Forbidden, NetworkError, RetryAfter, TelegramError, TimedOut
from telegram.ext import Application

from marketpulse.domain.errors import DeliveryError
from marketpulse.domain.models import RecipientId

logger = logging.getLogger(__name__)

NO_PREVIEW = LinkPreviewOptions(is_disabled=True)


def build_application(bot_token: str) -> Application:
    """
    Build Telegram bot application.

    Args:
        bot_token: Telegram bot token

    Returns:
        Configured Application instance (with job queue)
    """
    return Application.builder().token(bot_token).build()


async def send_markdown(bot: Bot, chat_id: RecipientId, text: str) -> None:
    """Send a report-style message: legacy Markdown, no link previews."""
    await bot.send_message(
        chat_id=chat_id,
        text=text,
        parse_mode=ParseMode.MARKDOWN,
        link_preview_options=NO_PREVIEW,
    )


class TelegramSender:
    """Callable transport ``await sender(recipient_id, text)`` raising DeliveryError."""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def __call__(self, recipient_id: RecipientId, text: str) -> None:
        try:
            await send_markdown(self.bot, recipient_id, text)
        except Forbidden as e:
            raise DeliveryError(f"blocked by user: {e.message}") from e
        except BadRequest as e:
            raise DeliveryError(f"bad request: {e.message}") from e
        except RetryAfter as e:
            raise DeliveryError(f"rate limited: retry after {e.retry_after}s") from e
        except TimedOut as e:
            raise DeliveryError("telegram request timed out") from e
        except NetworkError as e:
            raise DeliveryError(f"network error: {e.message}") from e
        except TelegramError as e:
            raise DeliveryError(f"telegram error: {e.message}") from e
