"""
Stock Signals — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Fetch and analyse (sequentially, rate-limited by the client).
  5. Report result to stdout.

Install and run::

    pip install -e .
    stock-signals --help
    stock-signals validate-config
    stock-signals analyze AAPL MSFT
    stock-signals analyze AAPL --json
    stock-signals news AAPL --limit 5
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="stock-signals",
    help="Daily technical-indicator signals (SMA, RSI, MACD) for US stocks.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    import tomllib

    from pydantic import ValidationError

    from stock_signals.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except (ValidationError, tomllib.TOMLDecodeError) as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from stock_signals.utils.logging import configure_logging
    configure_logging(config.logging)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)
    ind = config.indicators

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  API endpoint:     {config.api.base_url}")
    typer.echo(f"  API key set:      {'yes' if config.api.api_key else 'no (fixture mode)'}")
    typer.echo(f"  Request spacing:  {config.api.min_request_interval_s:.1f}s")
    typer.echo(f"  SMA / RSI:        {ind.sma_period} / {ind.rsi_period}")
    typer.echo(f"  MACD:             {ind.macd_fast}/{ind.macd_slow}/{ind.macd_signal}")
    typer.echo(f"  RSI bands:        {ind.rsi_oversold:g} / {ind.rsi_overbought:g}")
    typer.echo(f"  Default tickers:  {', '.join(config.dashboard.default_tickers)}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        dumped = config.model_dump()
        if dumped["api"].get("api_key"):
            dumped["api"]["api_key"] = "***"
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(dumped, indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("analyze")
def analyze(
    tickers: Optional[list[str]] = typer.Argument(
        None,
        help="Ticker symbols (default: dashboard.default_tickers from config).",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print reports as a JSON array instead of ASCII cards.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Fetch daily closes and print indicator signals for each ticker.

    Tickers are fetched one at a time; with the free API tier expect about
    12 seconds between tickers.  Exits with code 1 only if every ticker
    failed to load.
    """
    from stock_signals.ingestion.alpha_vantage_client import AlphaVantageClient
    from stock_signals.models.recommendation import RecommendationLabel
    from stock_signals.pipeline.analyze import analyze_tickers
    from stock_signals.reporting.formatters import format_report_card, format_summary_table

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    symbols = tickers or config.dashboard.default_tickers
    if not symbols:
        typer.echo("[ERROR] No tickers given and none configured.", err=True)
        raise typer.Exit(code=1)

    with AlphaVantageClient.from_config(config.api) as client:
        reports = analyze_tickers(client, symbols, config)

    if as_json:
        typer.echo(json.dumps([r.model_dump(mode="json") for r in reports], indent=2))
    else:
        for report in reports:
            typer.echo(format_report_card(report))
        if len(reports) > 1:
            typer.echo(format_summary_table(reports))

    if reports and all(r.recommendation_label == RecommendationLabel.LOAD_FAILED for r in reports):
        raise typer.Exit(code=1)


@app.command("news")
def news(
    ticker: str = typer.Argument(..., help="Ticker symbol, e.g. AAPL."),
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-n",
        min=1,
        help="Maximum headlines (default: dashboard.news_limit from config).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Print the latest headlines mentioning TICKER."""
    from stock_signals.ingestion.alpha_vantage_client import AlphaVantageClient
    from stock_signals.pipeline.analyze import load_news
    from stock_signals.reporting.formatters import format_news_list

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    symbol = ticker.strip().upper()
    with AlphaVantageClient.from_config(config.api) as client:
        articles = load_news(client, symbol, limit or config.dashboard.news_limit)

    typer.echo(format_news_list(symbol, articles))


if __name__ == "__main__":
    app()
