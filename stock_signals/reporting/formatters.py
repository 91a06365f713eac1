"""
ASCII terminal formatters for CLI reporting commands.

All formatters accept ``StockReport`` / ``NewsArticle`` objects and return
plain multi-line strings suitable for ``typer.echo()``.  The Streamlit
dashboard reuses the small value formatters (``format_price`` etc.) so both
surfaces round the same way.

No third-party dependencies (no ``rich``, no ``colorama``).

Rounding
--------
The analysis core never rounds.  Two-decimal rounding happens only here,
at presentation time.  Missing values render as ``N/A``.

Report card layout::

    === AAPL — Apple Inc ===
      As of:           2025-01-31
      Price:           $236.00   +1.25 (+0.53%)
      Volume:          45.20M
      Recommendation:  Hold (uptrend)
      Reason:          Current price ($236.00) is above SMA(20) ($230.10).

      Indicator        Value   Status
      ---------------------------------
      SMA(20)         230.10
      RSI(14)          58.21   neutral
      MACD              1.52   bullish
      Signal            1.10
      Histogram         0.42
"""

from __future__ import annotations

from stock_signals.models.market import NewsArticle
from stock_signals.models.recommendation import StockReport

NA = "N/A"


# ── Value formatters ─────────────────────────────────────────────────────────


def format_number(value: float | None) -> str:
    """Two-decimal number, or ``N/A``."""
    return NA if value is None else f"{value:.2f}"


def format_price(value: float | None) -> str:
    """Dollar price with two decimals, or ``N/A``."""
    return NA if value is None else f"${value:.2f}"


def format_change(change: float | None, change_pct: float | None) -> str:
    """Signed change and percentage, e.g. ``+1.25 (+0.53%)``."""
    if change is None or change_pct is None:
        return NA
    return f"{change:+.2f} ({change_pct:+.2f}%)"


def format_volume(volume: int | None) -> str:
    """Volume in millions, e.g. ``45.20M``."""
    return NA if volume is None else f"{volume / 1_000_000:.2f}M"


# ── Report card ──────────────────────────────────────────────────────────────


def format_report_card(report: StockReport) -> str:
    """Format one ticker's report as an ASCII card."""
    title = report.ticker
    if report.company_name and report.company_name != report.ticker:
        title = f"{report.ticker} — {report.company_name}"

    lines: list[str] = []
    lines.append("")
    lines.append(f"=== {title} ===")
    lines.append(f"  As of:           {report.as_of.isoformat() if report.as_of else NA}")
    lines.append(
        f"  Price:           {format_price(report.latest_price)}   "
        f"{format_change(report.price_change, report.price_change_pct)}"
    )
    lines.append(f"  Volume:          {format_volume(report.latest_volume)}")
    lines.append(f"  Recommendation:  {report.recommendation_label.display}")
    lines.append(f"  Reason:          {report.rationale}")

    if report.latest_price is None:
        return "\n".join(lines)

    rows = [
        ("SMA(20)",   report.sma20,       ""),
        ("RSI(14)",   report.rsi14,       report.rsi_status),
        ("MACD",      report.macd_line,   report.macd_status),
        ("Signal",    report.signal_line, ""),
        ("Histogram", report.histogram,   ""),
    ]
    lines.append("")
    header = f"  {'Indicator':<12}  {'Value':>8}   {'Status':<11}"
    lines.append(header.rstrip())
    lines.append("  " + "-" * (len(header) - 2))
    for name, value, status in rows:
        lines.append(f"  {name:<12}  {format_number(value):>8}   {status}".rstrip())
    return "\n".join(lines)


def format_summary_table(reports: list[StockReport]) -> str:
    """One line per ticker: price, change, and recommendation."""
    lines: list[str] = []
    lines.append("")
    lines.append("=== Summary ===")
    if not reports:
        lines.append("  (no tickers analysed)")
        return "\n".join(lines)

    header = f"  {'Ticker':<8}  {'Price':>10}  {'Change':>18}  {'Recommendation':<18}"
    lines.append(header.rstrip())
    lines.append("  " + "-" * (len(header) - 2))
    for r in reports:
        lines.append(
            f"  {r.ticker:<8}  {format_price(r.latest_price):>10}  "
            f"{format_change(r.price_change, r.price_change_pct):>18}  "
            f"{r.recommendation_label.display:<18}".rstrip()
        )
    return "\n".join(lines)


# ── News ─────────────────────────────────────────────────────────────────────


def format_news_list(ticker: str, articles: list[NewsArticle]) -> str:
    """Format headlines as a numbered list with source and date."""
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== News: {ticker} ===")
    if not articles:
        lines.append("  (no related news found)")
        return "\n".join(lines)

    for n, article in enumerate(articles, start=1):
        meta = article.source or "unknown source"
        if article.published_at is not None:
            meta = f"{meta} - {article.published_at.date().isoformat()}"
        lines.append(f"  {n}. {article.title}")
        lines.append(f"     {meta}")
        lines.append(f"     {article.url}")
    return "\n".join(lines)
