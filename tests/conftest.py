# tests/conftest.py
"""
Shared test configuration.

The settings module is instantiated at import time, so the required
environment is set here before any marketpulse module is imported.
"""
import os

os.environ["TELEGRAM_TOKEN"] = "123456789:" + "A" * 35
os.environ["TWELVE_DATA_API_KEY"] = "test-api-key-123"
os.environ["GOOGLE_SCRIPT_URL"] = ""
os.environ["DEFAULT_LANGUAGE"] = "vi"
os.environ["MARKETPULSE_LOG_STDOUT"] = "false"

from datetime import datetime, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402

from marketpulse.domain.models import Headline, Quote  # noqa: E402


@pytest.fixture
def t0():
    return datetime(2026, 3, 2, 1, 0, tzinfo=timezone.utc)


@pytest.fixture
def gold():
    return Quote("XAU/USD", Decimal("2034.50"), Decimal("0.52"))


@pytest.fixture
def headlines():
    return [Headline(f"Headline {i}", f"https://example.com/{i}") for i in range(10)]
