# src/marketpulse/adapters/persistence/redis_store.py
"""
Redis Store - Shared Subscriber Registry

Keeps subscribers in one Redis hash (``field = chat id``, ``value = ISO
registration time``). HSET makes ``register`` an idempotent upsert and
HGETALL returns a consistent snapshot, so several bot processes or
serverless invocations can share the registry safely.

Numeric chat ids are stored as their decimal string and converted back to
int on read; ``@channel`` usernames are stored as-is.

Files that USE this module:
- marketpulse.adapters.persistence (build_registry for REGISTRY_BACKEND=redis)
- tests.test_registry (unit tests with a mocked client)

Files that this module USES:
- redis (client library)
- marketpulse.shared.validators (normalize_recipient_id)
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

import redis
from redis.exceptions import RedisError

from marketpulse.domain.errors import RegistryError, RegistryWriteError
from marketpulse.domain.models import Recipient, RecipientId
from marketpulse.shared.validators import normalize_recipient_id

logger = logging.getLogger(__name__)


def _decode(value) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else str(value)


class RedisSubscriberRegistry:
    """Subscriber registry stored in a Redis hash."""

    def __init__(
        self,
        client: "redis.Redis",
        key: str = "marketpulse:subscribers",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.client = client
        self.key = key
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @classmethod
    def from_url(cls, url: str, key: str = "marketpulse:subscribers", socket_timeout: float = 5.0):
        """Create a registry connected to ``url`` (e.g. redis://localhost:6379/0)."""
        client = redis.Redis.from_url(url, socket_timeout=socket_timeout, socket_connect_timeout=socket_timeout)
        return cls(client, key=key)

    def register(self, recipient_id: RecipientId, now: Optional[datetime] = None) -> Recipient:
        """
        Upsert a recipient.

        Raises:
            ValueError: If the id is not a valid chat id/username
            RegistryWriteError: If Redis rejects or cannot take the write
        """
        rid = normalize_recipient_id(recipient_id)
        recipient = Recipient(id=rid, registered_at=now or self._clock())
        try:
            created = self.client.hset(self.key, str(rid), recipient.registered_at.isoformat())
        except RedisError as e:
            raise RegistryWriteError(f"Failed to store subscriber {rid}: {e}") from e

        if created:
            logger.info("New subscriber registered: %s", rid)
        else:
            logger.info("Subscriber re-registered: %s", rid)
        return recipient

    def all(self) -> Tuple[Recipient, ...]:
        """
        Snapshot of all subscribers, oldest registration first.

        Raises:
            RegistryError: If Redis cannot be read
        """
        try:
            raw = self.client.hgetall(self.key)
        except RedisError as e:
            raise RegistryError(f"Failed to read subscribers: {e}") from e

        recipients: List[Recipient] = []
        for field, value in raw.items():
            try:
                rid = normalize_recipient_id(_decode(field))
                registered_at = datetime.fromisoformat(_decode(value))
            except ValueError as e:
                logger.warning("Skipping malformed subscriber %r: %s", field, e)
                continue
            if registered_at.tzinfo is None:
                registered_at = registered_at.replace(tzinfo=timezone.utc)
            recipients.append(Recipient(id=rid, registered_at=registered_at))

        recipients.sort(key=lambda r: r.registered_at)
        return tuple(recipients)
