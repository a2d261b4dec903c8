# src/marketpulse/adapters/telegram/jobs.py
"""
Telegram Jobs - Scheduled Broadcasts

Job-queue callbacks that run one broadcast cycle: build the bulletin once
and send it to every registered chat.

Files that USE this module:
- marketpulse.app (broadcast_job is registered with run_daily / run_repeating)

Files that this module USES:
- marketpulse.application.pipeline (BroadcastPipeline via bot_data)
- marketpulse.adapters.telegram.bot (TelegramSender)
"""
from __future__ import annotations

import logging

from telegram.ext import ContextTypes

from marketpulse.adapters.telegram.bot import TelegramSender

logger = logging.getLogger(__name__)


async def broadcast_job(context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Scheduled job: run one broadcast cycle through the shared pipeline.

    Errors are logged and never propagate into the job queue, so the next
    scheduled run still happens.
    """
    job_name = context.job.name if context.job else "broadcast"
    pipeline = context.bot_data["pipeline"]
    logger.info("Job %s started", job_name)
    try:
        summary = await pipeline.run_cycle(TelegramSender(context.bot))
    except Exception:
        logger.exception("Job %s failed", job_name)
        return

    if summary is None:
        logger.info("Job %s finished without broadcasting", job_name)
    else:
        logger.info(
            "Job %s finished: %d delivered, %d failed",
            job_name, summary.successes, summary.failures,
        )
