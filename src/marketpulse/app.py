# src/marketpulse/app.py
"""
Application Entry Point - Bot Initialization and Startup

This module serves as the composition root for the MarketPulse Telegram bot.
It wires all dependencies and starts the bot application.

Files that USE this module:
- python -m marketpulse / the ``marketpulse`` console script
- marketpulse.adapters.serverless.handler (build_pipeline)

Files that this module USES:
- marketpulse.shared.logging_conf (setup_logging for logging configuration)
- marketpulse.config (settings for configuration management)
- marketpulse.application (RateCache, MarketAggregator, BroadcastDispatcher, BroadcastPipeline)
- marketpulse.adapters.* (providers, translation, registry, Telegram handlers and jobs)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations for forward references

import atexit  # Register cleanup functions to run when program exits
import logging  # Standard library for logging messages and errors
import os  # Operating system interface for environment variables and process management
import sys  # System-specific parameters and functions for exit codes
from datetime import timedelta  # Repeating job interval
from pathlib import Path  # Object-oriented filesystem paths

from telegram.error import Conflict, NetworkError, TimedOut  # Telegram API error exceptions

from marketpulse.adapters.persistence import build_registry  # File or Redis subscriber registry
from marketpulse.adapters.providers import FeedNewsProvider, TwelveDataProvider  # Upstream data
from marketpulse.adapters.telegram.bot import build_application  # Application builder
from marketpulse.adapters.telegram.handlers import build_handlers  # Telegram command handlers factory
from marketpulse.adapters.telegram.jobs import broadcast_job  # Scheduled broadcast job
from marketpulse.adapters.translation import GoogleScriptTranslator, PassthroughTranslator
from marketpulse.application import BroadcastDispatcher, BroadcastPipeline, MarketAggregator, RateCache
from marketpulse.shared.language import LANG_VIETNAMESE
from marketpulse.shared.logging_conf import setup_logging  # Configure logging with file rotation
from marketpulse.shared.throttle import CommandThrottle  # Per-chat /update limit

logger = logging.getLogger(__name__)


def build_pipeline(settings) -> BroadcastPipeline:
    """
    Wire the engine from settings.

    Args:
        settings: marketpulse.config.Settings instance

    Returns:
        BroadcastPipeline shared by every trigger
    """
    timeout = settings.http_timeout_seconds
    quotes = TwelveDataProvider(
        api_key=settings.twelve_data_api_key,
        base_url=settings.twelve_data_url,
        timeout=timeout,
    )
    news = FeedNewsProvider(url=settings.news_feed_url, timeout=timeout)

    # Headlines are English; only the Vietnamese bulletin needs translating
    if settings.google_script_url and settings.default_language == LANG_VIETNAMESE:
        translator = GoogleScriptTranslator(
            url=settings.google_script_url, source="en", target=LANG_VIETNAMESE, timeout=timeout
        )
    else:
        translator = PassthroughTranslator()

    aggregator = MarketAggregator(
        quote_provider=quotes,
        news_provider=news,
        translator=translator,
        rate_cache=RateCache(ttl=settings.rate_cache_ttl, name=settings.local_rate_symbol),
        anchor_symbol=settings.anchor_symbol,
        symbols=settings.quote_symbols,
        local_rate_symbol=settings.local_rate_symbol,
        news_limit=settings.news_limit,
        stale_grace=settings.rate_stale_grace,
    )
    dispatcher = BroadcastDispatcher(
        max_concurrency=settings.broadcast_concurrency,
        send_timeout=settings.send_timeout_seconds,
    )
    return BroadcastPipeline(
        aggregator=aggregator,
        registry=build_registry(settings),
        dispatcher=dispatcher,
        lang=settings.default_language,
        tz=settings.tzinfo,
    )


# PID file path for preventing two polling instances (Telegram allows only one)
# Can be overridden via MARKETPULSE_PID_FILE environment variable
def _get_pid_file(settings) -> Path:
    pid_file = os.environ.get("MARKETPULSE_PID_FILE")
    if pid_file:
        return Path(pid_file)
    return settings.subscribers_file.parent / "bot.pid"


def _acquire_pid_file(pid_file: Path) -> None:
    """
    Create the PID file, refusing to start if its process is still alive.

    Raises:
        RuntimeError: If another instance is running
    """
    if pid_file.exists():
        try:
            old_pid = int(pid_file.read_text().strip())
        except (ValueError, OSError):
            old_pid = None
        if old_pid:
            try:
                os.kill(old_pid, 0)  # Signal 0 only checks existence
            except ProcessLookupError:
                pass
            except PermissionError:
                raise RuntimeError(f"Another bot instance is already running (PID: {old_pid})")
            else:
                raise RuntimeError(
                    f"Another bot instance is already running (PID: {old_pid}).\n"
                    f"Please stop it first with: kill {old_pid}"
                )
    pid_file.parent.mkdir(parents=True, exist_ok=True)
    pid_file.write_text(str(os.getpid()))


def _release_pid_file(pid_file: Path) -> None:
    try:
        pid_file.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove PID file %s: %s", pid_file, e)


def main() -> None:
    """
    Initialize and start the Telegram bot application.

    This function:
    1. Sets up logging from configuration
    2. Builds the pipeline and the Telegram application
    3. Registers command handlers
    4. Schedules the daily (and optional repeating) broadcast
    5. Starts the bot polling loop
    """
    # Logging + config
    from marketpulse.config import settings

    setup_logging(
        level=settings.log_level,
        log_file=settings.log_file,
        log_dir=settings.log_dir,
        log_stdout=settings.log_stdout,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
    )
    logger.info("Working directory: %s", os.getcwd())

    pid_file = _get_pid_file(settings)
    try:
        _acquire_pid_file(pid_file)
    except RuntimeError as e:
        logger.error(str(e))
        sys.exit(1)
    atexit.register(_release_pid_file, pid_file)
    logger.info("Bot instance lock acquired (PID: %d, file: %s)", os.getpid(), pid_file)

    app = build_application(settings.bot_token)
    app.bot_data["pipeline"] = build_pipeline(settings)
    app.bot_data["update_throttle"] = CommandThrottle(
        settings.update_command_limit, settings.update_command_window_seconds
    )

    for h in build_handlers():
        app.add_handler(h)

    # Daily bulletin at BROADCAST_TIME in TIMEZONE
    app.job_queue.run_daily(
        callback=broadcast_job,
        time=settings.daily_broadcast_time,
        name="daily_broadcast",
    )

    # Optional extra broadcast every N minutes
    if settings.broadcast_interval_minutes > 0:
        interval = timedelta(minutes=settings.broadcast_interval_minutes)
        app.job_queue.run_repeating(
            callback=broadcast_job,
            interval=interval,
            first=interval,
            name="repeating_broadcast",
        )

    logger.info(
        "Starting bot polling… daily broadcast at %s %s, repeating every %s minutes, registry=%s",
        settings.broadcast_time,
        settings.timezone,
        settings.broadcast_interval_minutes or "-",
        settings.registry_backend,
    )

    try:
        app.run_polling(drop_pending_updates=False)
    except Conflict as e:
        logger.error("Telegram Conflict error: %s", e, exc_info=True)
        logger.error(
            "Another bot instance is already polling for updates. "
            "Telegram only allows ONE instance to poll at a time; stop the other one and restart."
        )
        raise
    except (TimedOut, NetworkError) as e:
        logger.error(
            "Network error during bot operation (timeout connecting to Telegram API): %s (type: %s)",
            e,
            type(e).__name__,
            exc_info=True,
        )
        raise
    except KeyboardInterrupt:
        logger.info("Bot stopped by user (KeyboardInterrupt)")
    finally:
        _release_pid_file(pid_file)


if __name__ == "__main__":
    main()
