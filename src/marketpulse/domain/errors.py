# src/marketpulse/domain/errors.py
"""
Domain Errors - Business Logic Exceptions

This module defines domain-specific exceptions raised by providers,
the rate cache, the subscriber registry and message senders.
"""


class DomainError(Exception):
    """Base exception for domain errors."""
    pass


class UpstreamUnavailableError(DomainError):
    """Raised when a quote, rate or news fetch fails or returns unusable data."""
    pass


class RateLimitedError(UpstreamUnavailableError):
    """Raised when an upstream provider rejects a call for quota reasons."""
    pass


class RegistryError(DomainError):
    """Raised when the subscriber store cannot be read."""
    pass


class RegistryWriteError(RegistryError):
    """Raised when a registration could not be persisted."""
    pass


class DeliveryError(DomainError):
    """Raised by a sender when a message could not be delivered to one recipient."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
