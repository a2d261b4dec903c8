# src/marketpulse/application/pipeline.py
"""
Broadcast Pipeline - Produce, Render and Fan Out

One pipeline instance ties the aggregation-cache-and-fan-out engine together
and is shared by every trigger (daily job, repeating job, /update command,
serverless invocation):

    aggregator.produce_report -> format_report -> registry.all -> dispatcher.broadcast

The aggregator and registry do blocking I/O and run via ``asyncio.to_thread``.
Scheduled cycles never overlap: a cycle that fires while another is still
running is skipped.

Files that USE this module:
- marketpulse.app (composition root builds the pipeline)
- marketpulse.adapters.telegram.handlers / jobs (triggers)
- marketpulse.adapters.serverless.handler (triggers)
- tests.test_pipeline (unit tests)

Files that this module USES:
- marketpulse.application.aggregator (MarketAggregator)
- marketpulse.application.dispatcher (BroadcastDispatcher, SendFunc)
- marketpulse.adapters.persistence.base (SubscriberRegistry protocol)
- marketpulse.adapters.formatting.formatter (format_report)
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from datetime import tzinfo as TzInfo
from typing import Optional

from marketpulse.adapters.formatting.formatter import format_report
from marketpulse.adapters.persistence.base import SubscriberRegistry
from marketpulse.application.aggregator import MarketAggregator
from marketpulse.application.dispatcher import BroadcastDispatcher, SendFunc
from marketpulse.domain.errors import RegistryError
from marketpulse.domain.models import BroadcastSummary, Recipient, RecipientId

logger = logging.getLogger(__name__)


class BroadcastPipeline:
    """Shared produce-and-broadcast use case."""

    def __init__(
        self,
        aggregator: MarketAggregator,
        registry: SubscriberRegistry,
        dispatcher: BroadcastDispatcher,
        lang: Optional[str] = None,
        tz: Optional[TzInfo] = None,
    ):
        self.aggregator = aggregator
        self.registry = registry
        self.dispatcher = dispatcher
        self.lang = lang
        self.tz = tz
        self._cycle_lock = asyncio.Lock()

    def render(self, now: Optional[datetime] = None) -> str:
        """Produce a fresh report and render it (blocking)."""
        report = self.aggregator.produce_report(now=now)
        return format_report(
            report,
            lang=self.lang,
            tz=self.tz,
            symbols=[self.aggregator.anchor_symbol, *self.aggregator.symbols],
            anchor_symbol=self.aggregator.anchor_symbol,
        )

    async def build_message(self, now: Optional[datetime] = None) -> str:
        """Produce and render a report without blocking the event loop."""
        return await asyncio.to_thread(self.render, now)

    async def register(self, recipient_id: RecipientId) -> Recipient:
        """
        Register a recipient.

        Raises:
            ValueError: If the id is malformed
            RegistryWriteError: If the registry cannot persist it
        """
        return await asyncio.to_thread(self.registry.register, recipient_id)

    async def run_cycle(self, send: SendFunc, now: Optional[datetime] = None) -> Optional[BroadcastSummary]:
        """
        Run one scheduled broadcast: build one message and send it to every subscriber.

        Args:
            send: Transport coroutine ``send(recipient_id, text)``
            now: Report time (defaults to UTC now)

        Returns:
            BroadcastSummary, an empty one when there are no subscribers, or
            None when the cycle was skipped (overlap) or aborted (registry unreadable)
        """
        if self._cycle_lock.locked():
            logger.warning("Broadcast cycle skipped: previous cycle still running")
            return None

        async with self._cycle_lock:
            now = now or datetime.now(timezone.utc)
            try:
                recipients = await asyncio.to_thread(self.registry.all)
            except RegistryError as e:
                logger.error("Broadcast cycle aborted: cannot read subscribers: %s", e)
                return None

            if not recipients:
                logger.info("Broadcast cycle: no subscribers, nothing to send")
                return BroadcastSummary()

            text = await self.build_message(now)
            logger.info("Broadcast cycle: sending report to %d subscribers", len(recipients))
            return await self.dispatcher.broadcast(text, recipients, send)
