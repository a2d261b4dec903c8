# src/marketpulse/adapters/persistence/base.py
"""
Subscriber Registry Interface

Every registry backend offers the same two operations:
- ``register(recipient_id)``: idempotent upsert; re-registering refreshes
  ``registered_at`` and never creates a duplicate. Raises RegistryWriteError
  when the backend cannot persist the change.
- ``all()``: snapshot of the current recipients (distinct ids). Raises
  RegistryError when the backend cannot be read.

Files that USE this module:
- marketpulse.adapters.persistence.file_store / redis_store (implementations)
- marketpulse.application.pipeline (depends on the protocol only)
"""
from typing import Protocol, Tuple

from marketpulse.domain.models import Recipient, RecipientId


class SubscriberRegistry(Protocol):
    def register(self, recipient_id: RecipientId) -> Recipient:
        ...

    def all(self) -> Tuple[Recipient, ...]:
        ...
