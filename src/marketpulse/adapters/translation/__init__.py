# src/marketpulse/adapters/translation/__init__.py
"""
Translation Adapters - Headline Translation

This package contains the best-effort translator used for news headlines.
"""

from marketpulse.adapters.translation.google_script import (
    GoogleScriptTranslator,
    PassthroughTranslator,
    Translator,
    looks_like_markup,
)

__all__ = [
    "Translator",
    "GoogleScriptTranslator",
    "PassthroughTranslator",
    "looks_like_markup",
]
