# src/marketpulse/adapters/persistence/__init__.py
"""
Persistence Adapters - Subscriber Registry Storage

This package contains the subscriber registry backends:
- File-based storage (JSON, single process)
- Redis storage (shared between processes / serverless invocations)
"""

from marketpulse.adapters.persistence.base import SubscriberRegistry
from marketpulse.adapters.persistence.file_store import FileSubscriberRegistry
from marketpulse.adapters.persistence.redis_store import RedisSubscriberRegistry


def build_registry(settings) -> SubscriberRegistry:
    """Create the registry selected by REGISTRY_BACKEND."""
    if settings.registry_backend == "redis":
        return RedisSubscriberRegistry.from_url(
            settings.redis_url,
            key=settings.redis_key,
            socket_timeout=settings.http_timeout_seconds,
        )
    return FileSubscriberRegistry(settings.subscribers_file)


__all__ = [
    "SubscriberRegistry",
    "FileSubscriberRegistry",
    "RedisSubscriberRegistry",
    "build_registry",
]
