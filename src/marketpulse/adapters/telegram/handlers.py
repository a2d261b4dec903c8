# src/marketpulse/adapters/telegram/handlers.py
"""
Telegram Handlers - Command Processing

This module contains the bot's command handlers:
- /start registers the chat for the daily bulletin
- /update replies with a freshly built bulletin (throttled per chat)
- /help lists the commands

Handlers find their collaborators in ``context.bot_data``:
``"pipeline"`` (BroadcastPipeline) and ``"update_throttle"`` (CommandThrottle).

Files that USE this module:
- marketpulse.app (build_handlers registers them on the Application)
- marketpulse.adapters.serverless.handler (webhook updates)
- tests.test_handlers (unit tests)

Files that this module USES:
- marketpulse.application.pipeline (BroadcastPipeline via bot_data)
- marketpulse.shared.language (translate for replies)
- marketpulse.shared.throttle (CommandThrottle via bot_data)
- marketpulse.config (settings for language and broadcast time)
"""
from __future__ import annotations

import logging
from typing import List

from telegram import Update
from telegram.constants import ParseMode
from telegram.error import TelegramError
from telegram.ext import BaseHandler, CommandHandler, ContextTypes

from marketpulse.adapters.telegram.bot import NO_PREVIEW
from marketpulse.config import settings
from marketpulse.domain.errors import RegistryError
from marketpulse.shared.language import translate

logger = logging.getLogger(__name__)


# --- /start: subscribe this chat ---
async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /start command - register the chat as a bulletin subscriber.

    Re-sending /start is harmless: the registry keeps one entry per chat.
    """
    chat_id = update.effective_chat.id
    pipeline = context.bot_data["pipeline"]
    lang = settings.default_language

    try:
        await pipeline.register(chat_id)
    except (RegistryError, ValueError) as e:
        logger.error("Failed to register chat %s: %s", chat_id, e)
        await update.effective_message.reply_text(translate("register_failed", lang))
        return

    await update.effective_message.reply_text(
        translate("welcome", lang, time=settings.broadcast_time)
    )


# --- /update: on-demand bulletin ---
async def update_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /update command - build a fresh bulletin for the requesting chat only.
    """
    chat_id = update.effective_chat.id
    lang = settings.default_language

    throttle = context.bot_data.get("update_throttle")
    if throttle is not None and not throttle.allow(f"update:chat:{chat_id}"):
        logger.warning(
            "Throttled /update for chat %s (retry after %.0fs)",
            chat_id, throttle.retry_after(f"update:chat:{chat_id}") or 0,
        )
        await update.effective_message.reply_text(translate("update_throttled", lang))
        return

    pipeline = context.bot_data["pipeline"]
    try:
        text = await pipeline.build_message()
    except Exception:
        logger.exception("Failed to build bulletin for /update (chat %s)", chat_id)
        await update.effective_message.reply_text(translate("update_failed", lang))
        return

    try:
        await update.effective_message.reply_text(
            text,
            parse_mode=ParseMode.MARKDOWN,
            link_preview_options=NO_PREVIEW,
        )
    except TelegramError as e:
        logger.error("Failed to reply to /update in chat %s: %s", chat_id, e)


# --- /help ---
async def help_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.effective_message.reply_text(translate("help", settings.default_language))


def build_handlers() -> List[BaseHandler]:
    """Build the list of command handlers to register on the Application."""
    return [
        CommandHandler("start", start),
        CommandHandler("update", update_cmd),
        CommandHandler("help", help_cmd),
    ]
