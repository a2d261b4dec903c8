# src/marketpulse/application/dispatcher.py
"""
Broadcast Dispatcher - Fan-out of One Bulletin to Many Chats

Sends the same rendered text to every recipient. Sends run concurrently
under a semaphore and each one is bounded by a timeout. A failing recipient
(blocked bot, deleted chat, network error, timeout) only produces a failed
``DispatchResult``; the others are unaffected. ``broadcast`` returns after
every send has finished, with one result per distinct recipient in input
order. Each recipient is attempted at most once per call, with no retries.

Files that USE this module:
- marketpulse.application.pipeline (run_cycle fans out the report)
- tests.test_dispatcher (unit tests)

Files that this module USES:
- marketpulse.domain.models (Recipient, DispatchResult, BroadcastSummary)
- marketpulse.domain.errors (DeliveryError)
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, List

from marketpulse.domain.errors import DeliveryError
from marketpulse.domain.models import BroadcastSummary, DispatchResult, Recipient, RecipientId

logger = logging.getLogger(__name__)

SendFunc = Callable[[RecipientId, str], Awaitable[None]]


class BroadcastDispatcher:
    """Concurrent, failure-isolated delivery of one message to many recipients."""

    def __init__(self, max_concurrency: int = 10, send_timeout: float = 15.0):
        """
        Args:
            max_concurrency: Maximum number of sends in flight
            send_timeout: Seconds allowed for a single send
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.max_concurrency = max_concurrency
        self.send_timeout = send_timeout

    async def broadcast(
        self,
        text: str,
        recipients: Iterable[Recipient],
        send: SendFunc,
    ) -> BroadcastSummary:
        """
        Deliver ``text`` to every recipient.

        Args:
            text: Rendered message (shared read-only by all sends)
            recipients: Snapshot of recipients; duplicate ids are sent once
            send: Coroutine function ``send(recipient_id, text)`` raising on failure

        Returns:
            BroadcastSummary with one DispatchResult per distinct recipient
        """
        unique: List[Recipient] = []
        seen = set()
        for recipient in recipients:
            if recipient.id in seen:
                continue
            seen.add(recipient.id)
            unique.append(recipient)

        if not unique:
            logger.info("Broadcast skipped: no recipients")
            return BroadcastSummary()

        semaphore = asyncio.Semaphore(self.max_concurrency)
        results = await asyncio.gather(
            *(self._deliver(recipient, text, send, semaphore) for recipient in unique)
        )
        summary = BroadcastSummary(results=tuple(results))
        logger.info(
            "Broadcast finished: %d delivered, %d failed (of %d)",
            summary.successes, summary.failures, len(summary),
        )
        if summary.failures:
            logger.warning("Broadcast failed for: %s", ", ".join(str(i) for i in summary.failed_ids))
        return summary

    async def _deliver(
        self,
        recipient: Recipient,
        text: str,
        send: SendFunc,
        semaphore: asyncio.Semaphore,
    ) -> DispatchResult:
        async with semaphore:
            try:
                await asyncio.wait_for(send(recipient.id, text), timeout=self.send_timeout)
            except asyncio.TimeoutError:
                reason = f"timed out after {self.send_timeout:g}s"
            except DeliveryError as e:
                reason = e.reason
            except asyncio.CancelledError:
                raise
            except Exception as e:
                reason = f"{type(e).__name__}: {e}"
            else:
                logger.debug("Delivered to %s", recipient.id)
                return DispatchResult(recipient=recipient, ok=True)

        logger.warning("Delivery to %s failed: %s", recipient.id, reason)
        return DispatchResult(recipient=recipient, ok=False, reason=reason)
