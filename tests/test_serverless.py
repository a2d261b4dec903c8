# tests/test_serverless.py
"""
Serverless Handler Tests - Webhook and Scheduled Invocations

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- marketpulse.adapters.serverless.handler (handler, _webhook_payload)
- unittest.mock (fake Application and pipeline)
"""
import json
from unittest.mock import AsyncMock, MagicMock, Mock, patch

import pytest

from marketpulse.adapters.serverless import handler as serverless
from marketpulse.adapters.telegram.bot import TelegramSender
from marketpulse.domain.models import BroadcastSummary, DispatchResult, Recipient


def _fake_application():
    app = MagicMock()
    app.bot_data = {}
    app.bot = Mock()
    app.process_update = AsyncMock()
    app.__aenter__.return_value = app
    app.__aexit__.return_value = False
    return app


@pytest.fixture
def fake_app():
    app = _fake_application()
    with patch.object(serverless, "build_application", return_value=app):
        yield app


class TestWebhookPayload:
    def test_json_string_body(self):
        assert serverless._webhook_payload({"body": '{"update_id": 1}'}) == {"update_id": 1}

    def test_dict_body(self):
        assert serverless._webhook_payload({"body": {"update_id": 1}}) == {"update_id": 1}

    @pytest.mark.parametrize("event", [{}, {"source": "aws.events"}, {"body": "not json"}, {"body": "[1]"}])
    def test_no_update(self, event):
        assert serverless._webhook_payload(event) is None


class TestHandler:
    def test_scheduled_invocation_runs_cycle(self, fake_app, t0):
        summary = BroadcastSummary(
            results=(
                DispatchResult(Recipient(1, t0), ok=True),
                DispatchResult(Recipient(2, t0), ok=False, reason="blocked by user"),
            )
        )
        pipeline = Mock(run_cycle=AsyncMock(return_value=summary))

        with patch.object(serverless, "_get_pipeline", return_value=pipeline):
            response = serverless.handler({"source": "aws.events"}, None)

        assert response["statusCode"] == 200
        assert json.loads(response["body"]) == {
            "ok": True, "delivered": 1, "failed": 1, "failed_ids": ["2"],
        }
        sender = pipeline.run_cycle.await_args.args[0]
        assert isinstance(sender, TelegramSender)
        assert sender.bot is fake_app.bot

    def test_webhook_invocation_processes_update(self, fake_app):
        pipeline = Mock(run_cycle=AsyncMock())
        update = object()

        with patch.object(serverless, "_get_pipeline", return_value=pipeline), \
                patch.object(serverless.Update, "de_json", return_value=update) as de_json:
            response = serverless.handler({"body": json.dumps({"update_id": 7})}, None)

        assert response["statusCode"] == 200
        de_json.assert_called_once_with({"update_id": 7}, fake_app.bot)
        fake_app.process_update.assert_awaited_once_with(update)
        pipeline.run_cycle.assert_not_called()
        assert fake_app.bot_data["pipeline"] is pipeline

    def test_failure_returns_500(self, fake_app):
        pipeline = Mock(run_cycle=AsyncMock(side_effect=RuntimeError("boom")))
        with patch.object(serverless, "_get_pipeline", return_value=pipeline):
            response = serverless.handler(None, None)
        assert response["statusCode"] == 500
