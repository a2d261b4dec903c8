# src/marketpulse/shared/validators.py
"""
Input Validation Utilities - Configuration and Identifier Checks

This module provides validation functions for bot configuration values and
for recipient identifiers coming from Telegram updates or the registry store.

Files that USE this module:
- marketpulse.config.settings (uses validation functions in Settings field validators)
- marketpulse.adapters.persistence.* (normalize stored recipient ids)

Files that this module USES:
- marketpulse.domain.models (RecipientId)
"""
import re

from marketpulse.domain.models import RecipientId


def validate_bot_token(token: str) -> bool:
    """
    Validate Telegram bot token format.

    Args:
        token: Bot token to validate

    Returns:
        True if valid, False otherwise
    """
    if not token:
        return False

    # Bot tokens should be in format: 123456789:ABCDEFghijklmnopQRSTUVwxyz
    pattern = r'^\d{8,10}:[A-Za-z0-9_-]{35}$'
    return bool(re.match(pattern, token))


def validate_api_key(api_key: str, min_length: int = 10) -> bool:
    """
    Validate API key format.

    Args:
        api_key: API key to validate
        min_length: Minimum length requirement

    Returns:
        True if valid, False otherwise
    """
    if not api_key:
        return False

    return len(api_key) >= min_length and not api_key.isspace()


def validate_clock_time(value: str) -> bool:
    """Check a 24h ``HH:MM`` string."""
    match = re.match(r'^(\d{1,2}):(\d{2})$', value or "")
    if not match:
        return False
    return int(match.group(1)) < 24 and int(match.group(2)) < 60


def normalize_recipient_id(raw: RecipientId) -> RecipientId:
    """
    Normalize a recipient identifier to its canonical form.

    Numeric chat ids (users, groups, private channels such as
    ``-1001234567890``) become ``int`` whether they arrive as int or string;
    public channel usernames stay strings and keep their leading ``@``.

    Args:
        raw: Identifier as received from Telegram or read from a store

    Returns:
        Canonical identifier (int or "@name" string)

    Raises:
        ValueError: If the identifier is empty, zero, or not a chat id/username
    """
    if isinstance(raw, bool):
        raise ValueError(f"Invalid recipient id: {raw!r}")
    if isinstance(raw, int):
        if raw == 0:
            raise ValueError("Recipient id must be non-zero")
        return raw

    text = str(raw).strip()
    if re.match(r'^-?\d+$', text):
        return normalize_recipient_id(int(text))
    if re.match(r'^@[a-zA-Z0-9_]{5,32}$', text):
        return text
    raise ValueError(f"Invalid recipient id: {raw!r}")
