# src/marketpulse/adapters/serverless/handler.py
"""
Serverless Handler - One Cycle per Invocation

Entry point for function-as-a-service hosting (AWS Lambda style
``handler(event, context)``). Two kinds of invocation are supported:

- webhook: the event carries a Telegram update in ``body`` (API gateway);
  it is dispatched to the same /start, /update and /help handlers the
  polling bot uses;
- scheduled: any other event (e.g. a cron rule) runs one broadcast cycle.

The pipeline (and with it the rate cache) lives at module level, so warm
invocations reuse a cached USD/VND rate. Use REGISTRY_BACKEND=redis here;
function filesystems are not durable.

Files that USE this module:
- hosting platform (configured handler path)
- tests.test_serverless (unit tests)

Files that this module USES:
- marketpulse.app (build_pipeline)
- marketpulse.adapters.telegram (build_application, build_handlers, TelegramSender)
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from telegram import Update

from marketpulse.adapters.telegram.bot import TelegramSender, build_application
from marketpulse.adapters.telegram.handlers import build_handlers
from marketpulse.application.pipeline import BroadcastPipeline
from marketpulse.config import settings
from marketpulse.shared.logging_conf import setup_logging
from marketpulse.shared.throttle import CommandThrottle

logger = logging.getLogger(__name__)

_pipeline: Optional[BroadcastPipeline] = None
_throttle: Optional[CommandThrottle] = None


def _get_pipeline() -> BroadcastPipeline:
    global _pipeline
    if _pipeline is None:
        from marketpulse.app import build_pipeline

        setup_logging(level=settings.log_level, log_stdout=True)
        _pipeline = build_pipeline(settings)
        logger.info("Pipeline initialized (cold start)")
    return _pipeline


def _get_throttle() -> CommandThrottle:
    global _throttle
    if _throttle is None:
        _throttle = CommandThrottle(settings.update_command_limit, settings.update_command_window_seconds)
    return _throttle


def _webhook_payload(event: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Extract the Telegram update from an API-gateway style event, if any."""
    body = event.get("body")
    if not body:
        return None
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            logger.warning("Ignoring invocation with non-JSON body")
            return None
    return body if isinstance(body, dict) else None


def _response(status: int, payload: Dict[str, Any]) -> Dict[str, Any]:
    return {"statusCode": status, "body": json.dumps(payload)}


async def _process(event: Dict[str, Any]) -> Dict[str, Any]:
    pipeline = _get_pipeline()
    application = build_application(settings.bot_token)
    application.bot_data["pipeline"] = pipeline
    application.bot_data["update_throttle"] = _get_throttle()
    for h in build_handlers():
        application.add_handler(h)

    payload = _webhook_payload(event)
    async with application:
        if payload is not None:
            update = Update.de_json(payload, application.bot)
            await application.process_update(update)
            return _response(200, {"ok": True})

        summary = await pipeline.run_cycle(TelegramSender(application.bot))
        if summary is None:
            return _response(200, {"ok": False, "skipped": True})
        return _response(
            200,
            {
                "ok": True,
                "delivered": summary.successes,
                "failed": summary.failures,
                "failed_ids": [str(i) for i in summary.failed_ids],
            },
        )


def handler(event: Optional[Dict[str, Any]], context: Any = None) -> Dict[str, Any]:
    """
    Function entry point.

    Args:
        event: Invocation event (webhook or scheduler payload)
        context: Platform context object (unused)

    Returns:
        API-gateway style response dict
    """
    try:
        return asyncio.run(_process(event or {}))
    except Exception:
        logger.exception("Invocation failed")
        return _response(500, {"ok": False})
