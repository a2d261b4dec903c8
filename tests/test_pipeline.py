# tests/test_pipeline.py
"""
Broadcast Pipeline Tests - Produce, Render and Fan Out

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- marketpulse.application.pipeline (BroadcastPipeline)
- marketpulse.application.dispatcher (BroadcastDispatcher)
- pytest-asyncio (coroutine tests)
"""
import asyncio
from decimal import Decimal
from unittest.mock import Mock

import pytest

from marketpulse.application.dispatcher import BroadcastDispatcher
from marketpulse.application.pipeline import BroadcastPipeline
from marketpulse.domain.errors import RegistryError
from marketpulse.domain.models import Quote, Recipient, Report


def _aggregator(report):
    aggregator = Mock()
    aggregator.anchor_symbol = "XAU/USD"
    aggregator.symbols = ["EUR/USD"]
    aggregator.produce_report.return_value = report
    return aggregator


def _available_report(t0):
    return Report(
        generated_at=t0,
        quotes={"XAU/USD": Quote("XAU/USD", Decimal("2000"))},
        derived_values={"XAU/USD": Decimal("50000000")},
        local_rate=Decimal("25000"),
    )


@pytest.mark.asyncio
async def test_run_cycle_sends_one_message_to_every_subscriber(t0):
    aggregator = _aggregator(_available_report(t0))
    registry = Mock()
    registry.all.return_value = (Recipient(1, t0), Recipient(2, t0))
    sent = []

    async def send(recipient_id, text):
        sent.append((recipient_id, text))

    pipeline = BroadcastPipeline(aggregator, registry, BroadcastDispatcher(), lang="vi")
    summary = await pipeline.run_cycle(send, now=t0)

    assert summary.successes == 2
    aggregator.produce_report.assert_called_once_with(now=t0)
    assert sent[0][1] == sent[1][1]
    assert "*50.000.000 VNĐ*" in sent[0][1]
    assert "• EURUSD: N/A ⚠️" in sent[0][1]


@pytest.mark.asyncio
async def test_run_cycle_without_subscribers_skips_report(t0):
    aggregator = _aggregator(_available_report(t0))
    registry = Mock()
    registry.all.return_value = ()

    async def send(recipient_id, text):
        raise AssertionError("should not be called")

    summary = await BroadcastPipeline(aggregator, registry, BroadcastDispatcher()).run_cycle(send, now=t0)

    assert len(summary) == 0
    aggregator.produce_report.assert_not_called()


@pytest.mark.asyncio
async def test_unavailable_report_is_still_broadcast(t0):
    aggregator = _aggregator(Report.unavailable(t0))
    registry = Mock()
    registry.all.return_value = (Recipient(1, t0),)
    sent = []

    async def send(recipient_id, text):
        sent.append(text)

    await BroadcastPipeline(aggregator, registry, BroadcastDispatcher(), lang="vi").run_cycle(send, now=t0)

    assert "Hệ thống đang bảo trì" in sent[0]


@pytest.mark.asyncio
async def test_registry_read_failure_aborts_cycle(t0):
    aggregator = _aggregator(_available_report(t0))
    registry = Mock()
    registry.all.side_effect = RegistryError("redis down")

    async def send(recipient_id, text):
        raise AssertionError("should not be called")

    result = await BroadcastPipeline(aggregator, registry, BroadcastDispatcher()).run_cycle(send, now=t0)

    assert result is None
    aggregator.produce_report.assert_not_called()


@pytest.mark.asyncio
async def test_overlapping_cycle_is_skipped(t0):
    aggregator = _aggregator(_available_report(t0))
    registry = Mock()
    registry.all.return_value = (Recipient(1, t0),)
    release = asyncio.Event()

    async def slow_send(recipient_id, text):
        await release.wait()

    pipeline = BroadcastPipeline(aggregator, registry, BroadcastDispatcher())
    first = asyncio.create_task(pipeline.run_cycle(slow_send, now=t0))
    while not pipeline._cycle_lock.locked():
        await asyncio.sleep(0)

    second = await pipeline.run_cycle(slow_send, now=t0)
    release.set()
    summary = await first

    assert second is None
    assert summary.successes == 1


@pytest.mark.asyncio
async def test_register_delegates_to_registry(t0):
    registry = Mock()
    registry.register.return_value = Recipient(42, t0)
    pipeline = BroadcastPipeline(_aggregator(None), registry, BroadcastDispatcher())

    recipient = await pipeline.register(42)

    assert recipient.id == 42
    registry.register.assert_called_once_with(42)
