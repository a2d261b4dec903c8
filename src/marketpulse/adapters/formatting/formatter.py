# src/marketpulse/adapters/formatting/formatter.py
"""
Message Formatter - Report Rendering

This module turns a ``Report`` into the Telegram message (legacy Markdown
parse mode): date header, translated headlines, USD/VND rate, quotes with
their VND equivalents, the technical-zone line and the /update hint.

Files that USE this module:
- marketpulse.application.pipeline (renders the report once per cycle/command)
- tests.test_formatter (unit tests)

Files that this module USES:
- marketpulse.domain.models (Report, Quote)
- marketpulse.shared.language (translate, symbol_label for multi-language support)
"""
from __future__ import annotations

from datetime import tzinfo as TzInfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from marketpulse.domain.models import Quote, Report
from marketpulse.shared.language import symbol_label, translate

SEPARATOR = "━━━━━━━━━━━━━━━━━━"

# Legacy Markdown has no escapes inside an entity, so text placed in a
# *bold* span must not contain any entity delimiter.
_ENTITY_DELIMITERS = str.maketrans({"*": None, "_": " ", "`": "'", "[": "(", "]": ")"})


def entity_safe(text: str) -> str:
    """Strip Markdown entity delimiters so ``text`` can sit inside *...*."""
    return " ".join(text.translate(_ENTITY_DELIMITERS).split())

# Currency pairs are shown as bare rates with 4 decimals; everything else
# (metals, crypto) as a dollar price with 2 decimals.
FIAT_CODES = frozenset({"USD", "EUR", "GBP", "JPY", "CHF", "AUD", "CAD", "NZD", "CNY", "VND"})


def format_vnd(value: Decimal) -> str:
    """
    Format a VND amount as an integer with '.' thousands separators.

    Args:
        value: Amount in VND

    Returns:
        String like '25.450' or '1.250.000.000'
    """
    rounded = int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    sign = "-" if rounded < 0 else ""
    return sign + f"{abs(rounded):,}".replace(",", ".")


def _is_fiat_pair(symbol: str) -> bool:
    parts = [p.strip().upper() for p in symbol.split("/")]
    return len(parts) == 2 and all(p in FIAT_CODES for p in parts)


def format_price(symbol: str, price: Decimal) -> str:
    """
    Format a quote price for display.

    Returns:
        '1.0850' for currency pairs, '$2034.50' otherwise
    """
    if _is_fiat_pair(symbol):
        return f"{price:.4f}"
    return f"${price:.2f}"


def _fmt_change(percent_change: Optional[Decimal]) -> str:
    """Format daily change as ' (+0.52%)', or '' when unknown."""
    if percent_change is None:
        return ""
    return f" ({percent_change:+.2f}%)"


def _quote_line(symbol: str, quote: Optional[Quote], report: Report, lang: Optional[str]) -> str:
    label = symbol_label(symbol, lang)
    if quote is None:
        return translate("quote_unavailable", lang, label=label)
    price = format_price(symbol, quote.price)
    change = _fmt_change(quote.percent_change)
    local = report.derived_values.get(symbol)
    if local is None:
        return translate("quote_line_no_local", lang, label=label, price=price, change=change)
    return translate(
        "quote_line", lang, label=label, price=price, change=change, local=format_vnd(local)
    )


def format_report(
    report: Report,
    lang: Optional[str] = None,
    tz: Optional[TzInfo] = None,
    symbols: Sequence[str] = (),
    anchor_symbol: str = "XAU/USD",
) -> str:
    """
    Render a report as a Telegram Markdown message.

    Args:
        report: Report to render
        lang: Message language ("vi" or "en")
        tz: Timezone for the date header (defaults to the report's own)
        symbols: Symbols to list; configured symbols missing from the report
            are shown as N/A. Defaults to the quotes present in the report.
        anchor_symbol: Quote used for the technical-zone line

    Returns:
        Message text. A degraded report renders the "temporarily
        unavailable" notice only.
    """
    generated_at = report.generated_at.astimezone(tz) if tz else report.generated_at
    date_str = generated_at.strftime("%d/%m/%Y")

    if not report.available:
        return translate("unavailable", lang, date=date_str)

    lines = [translate("report_title", lang, date=date_str), SEPARATOR, ""]

    # News
    lines.append(translate("news_header", lang))
    lines.append("")
    if report.headlines:
        for headline in report.headlines:
            title = entity_safe(headline.title)
            lines.append(translate("news_item", lang, title=title, link=headline.link))
            lines.append("")
    else:
        lines.append(translate("no_news", lang))
        lines.append("")

    # Market
    lines.append(translate("market_header", lang))
    if report.local_rate is not None:
        lines.append(translate("rate_line", lang, value=format_vnd(report.local_rate)))
    else:
        lines.append(translate("rate_unavailable", lang))

    shown = list(symbols) or list(report.quotes)
    for symbol in shown:
        lines.append(_quote_line(symbol, report.quotes.get(symbol), report, lang))
    lines.append("")

    # Technical zone from the anchor quote
    anchor = report.quotes.get(anchor_symbol)
    if anchor is not None:
        lines.append(translate("technical_header", lang))
        lines.append(translate("technical_line", lang, price=f"{anchor.price:.2f}"))
        lines.append("")

    lines.append(SEPARATOR)
    lines.append(translate("footer", lang))
    return "\n".join(lines)
