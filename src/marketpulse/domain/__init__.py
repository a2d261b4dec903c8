# src/marketpulse/domain/__init__.py
"""
Domain Layer - Pure Business Objects

This package contains domain models and business errors.
No dependencies on infrastructure or external systems.
"""

from marketpulse.domain.models import (
    BroadcastSummary,
    CachedRate,
    DispatchResult,
    Headline,
    Quote,
    Recipient,
    Report,
)
from marketpulse.domain.errors import (
    DeliveryError,
    DomainError,
    RateLimitedError,
    RegistryError,
    RegistryWriteError,
    UpstreamUnavailableError,
)

__all__ = [
    "Quote",
    "CachedRate",
    "Headline",
    "Report",
    "Recipient",
    "DispatchResult",
    "BroadcastSummary",
    "DomainError",
    "UpstreamUnavailableError",
    "RateLimitedError",
    "RegistryError",
    "RegistryWriteError",
    "DeliveryError",
]
