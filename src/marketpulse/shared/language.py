# src/marketpulse/shared/language.py
"""
Language Management - Message Catalog

This module holds every user-facing string of the bot in Vietnamese (the
default, matching the audience of the bulletin) and English, and a
``translate`` helper that looks keys up and fills placeholders.

Files that USE this module:
- marketpulse.adapters.formatting.formatter (report layout strings)
- marketpulse.adapters.telegram.handlers (command replies)

Files that this module USES:
- None
"""
import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)

# Language constants
LANG_VIETNAMESE = "vi"
LANG_ENGLISH = "en"
DEFAULT_LANGUAGE = LANG_VIETNAMESE

# Display labels for the instruments in the report
SYMBOL_LABELS: Dict[str, Dict[str, str]] = {
    LANG_VIETNAMESE: {
        "XAU/USD": "Vàng (XAUUSD)",
        "EUR/USD": "EURUSD",
        "BTC/USD": "Bitcoin",
    },
    LANG_ENGLISH: {
        "XAU/USD": "Gold (XAUUSD)",
        "EUR/USD": "EURUSD",
        "BTC/USD": "Bitcoin",
    },
}

MESSAGES: Dict[str, Dict[str, str]] = {
    LANG_VIETNAMESE: {
        "report_title": "📅 *Nhịp Đập Thị Trường [{date}]*",
        "news_header": "🔴 *TIN TỨC QUAN TRỌNG:*",
        "news_item": "🔹 *{title}*\n🔗 [Xem chi tiết]({link})",
        "no_news": "• Chưa có tin tức mới.",
        "market_header": "📈 *XU HƯỚNG THỊ TRƯỜNG:*",
        "rate_line": "• Tỷ giá USD/VND: 1$ ≈ *{value} VNĐ*",
        "rate_unavailable": "• Tỷ giá USD/VND: N/A ⚠️",
        "quote_line": "• {label}: {price}{change} ≈ *{local} VNĐ*",
        "quote_line_no_local": "• {label}: {price}{change}",
        "quote_unavailable": "• {label}: N/A ⚠️",
        "technical_header": "🎯 *VÙNG KỸ THUẬT:*",
        "technical_line": "• Quan sát vùng Supply/Demand tại: *${price}*",
        "footer": "💡 _Gõ /update để cập nhật dữ liệu mới nhất._",
        "unavailable": "📅 *Bản tin [{date}]*\n⚠️ Hệ thống đang bảo trì hoặc hết API credits.",
        "welcome": (
            "Chào mừng Trader! Bạn đã đăng ký nhận bản tin {time} sáng hàng ngày.\n\n"
            "Gõ /update để xem ngay."
        ),
        "register_failed": "⚠️ Không thể đăng ký lúc này. Vui lòng thử lại sau.",
        "update_throttled": "⏰ Bạn yêu cầu quá nhanh. Vui lòng thử lại sau ít phút.",
        "update_failed": "⚠️ Không thể tạo bản tin lúc này. Vui lòng thử lại sau.",
        "help": (
            "/start - Đăng ký nhận bản tin hàng ngày\n"
            "/update - Xem bản tin mới nhất\n"
            "/help - Danh sách lệnh"
        ),
    },
    LANG_ENGLISH: {
        "report_title": "📅 *Market Pulse [{date}]*",
        "news_header": "🔴 *KEY HEADLINES:*",
        "news_item": "🔹 *{title}*\n🔗 [Read more]({link})",
        "no_news": "• No fresh headlines.",
        "market_header": "📈 *MARKET TRENDS:*",
        "rate_line": "• USD/VND rate: 1$ ≈ *{value} VND*",
        "rate_unavailable": "• USD/VND rate: N/A ⚠️",
        "quote_line": "• {label}: {price}{change} ≈ *{local} VND*",
        "quote_line_no_local": "• {label}: {price}{change}",
        "quote_unavailable": "• {label}: N/A ⚠️",
        "technical_header": "🎯 *TECHNICAL ZONE:*",
        "technical_line": "• Watch the Supply/Demand zone at: *${price}*",
        "footer": "💡 _Send /update for the latest data._",
        "unavailable": "📅 *Bulletin [{date}]*\n⚠️ Market data is temporarily unavailable (maintenance or API credits exhausted).",
        "welcome": (
            "Welcome, trader! You are subscribed to the daily {time} bulletin.\n\n"
            "Send /update to see it now."
        ),
        "register_failed": "⚠️ Could not subscribe you right now. Please try again later.",
        "update_throttled": "⏰ Too many requests. Please try again in a few minutes.",
        "update_failed": "⚠️ Could not build the bulletin right now. Please try again later.",
        "help": (
            "/start - Subscribe to the daily bulletin\n"
            "/update - Show the latest bulletin\n"
            "/help - List commands"
        ),
    },
}


def resolve_language(lang: Optional[str]) -> str:
    """Return a supported language code, falling back to the default."""
    if lang in MESSAGES:
        return lang
    return DEFAULT_LANGUAGE


def translate(key: str, lang: Optional[str] = None, **kwargs) -> str:
    """
    Look up a message by key and fill its placeholders.

    Unknown keys fall back to the default language and then to the key
    itself, so a missing entry never breaks a message being sent.

    Args:
        key: Message key
        lang: Language code ("vi" or "en"); defaults to Vietnamese
        **kwargs: Values for the message placeholders

    Returns:
        Rendered message text
    """
    catalog = MESSAGES[resolve_language(lang)]
    template = catalog.get(key) or MESSAGES[DEFAULT_LANGUAGE].get(key)
    if template is None:
        logger.warning("Missing message key: %s", key)
        return key
    return template.format(**kwargs) if kwargs else template


def symbol_label(symbol: str, lang: Optional[str] = None) -> str:
    """Display label for an instrument symbol (the symbol itself when unknown)."""
    return SYMBOL_LABELS[resolve_language(lang)].get(symbol, symbol)
