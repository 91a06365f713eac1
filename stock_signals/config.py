"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``STOCK_SIGNALS_*`` prefix, plus
                                    ``ALPHA_VANTAGE_API_KEY`` for the API key

Entry point: ``load_config(config_path=None) -> AppConfig``

The CLI, the analysis pipeline, and the dashboard all receive an
``AppConfig`` instance — never raw dicts or individual env var lookups
scattered through the codebase.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class ApiConfig(BaseModel):
    """Alpha Vantage connection and rate-limit settings."""

    model_config = ConfigDict(frozen=True)

    base_url: str = "https://www.alphavantage.co/query"
    api_key: Optional[str] = None
    timeout_s: float = 30.0
    output_size: str = "compact"         # "compact" = last 100 sessions
    min_request_interval_s: float = 12.0  # free tier: 5 requests / minute
    max_retries: int = 2
    retry_backoff_s: float = 15.0
    use_fixture: bool = False

    @field_validator("output_size")
    @classmethod
    def validate_output_size(cls, v: str) -> str:
        if v not in {"compact", "full"}:
            raise ValueError(f"output_size must be 'compact' or 'full', got '{v}'.")
        return v

    @field_validator("min_request_interval_s", "retry_backoff_s", "timeout_s")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Timing values must be non-negative.")
        return v

    @field_validator("max_retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"max_retries must be >= 0, got {v}.")
        return v


class IndicatorConfig(BaseModel):
    """Indicator periods and classifier thresholds."""

    model_config = ConfigDict(frozen=True)

    sma_period: int = 20
    rsi_period: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    rsi_oversold: float = 30.0
    rsi_overbought: float = 70.0

    @field_validator("sma_period", "rsi_period", "macd_fast", "macd_slow", "macd_signal")
    @classmethod
    def validate_period(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Indicator periods must be >= 1, got {v}.")
        return v

    @model_validator(mode="after")
    def validate_ordering(self) -> "IndicatorConfig":
        if self.macd_fast >= self.macd_slow:
            raise ValueError(
                f"macd_fast ({self.macd_fast}) must be shorter than "
                f"macd_slow ({self.macd_slow})."
            )
        if not 0.0 < self.rsi_oversold < self.rsi_overbought < 100.0:
            raise ValueError(
                "RSI thresholds must satisfy 0 < rsi_oversold < rsi_overbought < 100, "
                f"got {self.rsi_oversold} / {self.rsi_overbought}."
            )
        return self


class DashboardConfig(BaseModel):
    """Presentation settings shared by the CLI and the Streamlit dashboard."""

    model_config = ConfigDict(frozen=True)

    default_tickers: list[str] = ["AAPL", "MSFT", "NVDA", "GOOGL"]
    chart_days: int = 60
    news_limit: int = 5

    @field_validator("default_tickers")
    @classmethod
    def normalize_tickers(cls, v: list[str]) -> list[str]:
        return [t.strip().upper() for t in v if t.strip()]

    @field_validator("chart_days", "news_limit")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Value must be >= 1, got {v}.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env + environment.
    """

    model_config = ConfigDict(frozen=True)

    api: ApiConfig = ApiConfig()
    indicators: IndicatorConfig = IndicatorConfig()
    dashboard: DashboardConfig = DashboardConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variables to the raw config dict.

    Supported overrides:
      ALPHA_VANTAGE_API_KEY        → raw["api"]["api_key"]
      STOCK_SIGNALS_OUTPUT_SIZE    → raw["api"]["output_size"]
      STOCK_SIGNALS_USE_FIXTURE    → raw["api"]["use_fixture"]
      STOCK_SIGNALS_LOG_LEVEL      → raw["logging"]["level"]
      STOCK_SIGNALS_DEBUG          → raw["debug"]
    """
    if api_key := os.environ.get("ALPHA_VANTAGE_API_KEY"):
        raw.setdefault("api", {})["api_key"] = api_key

    if output_size := os.environ.get("STOCK_SIGNALS_OUTPUT_SIZE"):
        raw.setdefault("api", {})["output_size"] = output_size

    if use_fixture := os.environ.get("STOCK_SIGNALS_USE_FIXTURE"):
        raw.setdefault("api", {})["use_fixture"] = use_fixture.lower() in ("1", "true", "yes")

    if log_level := os.environ.get("STOCK_SIGNALS_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("STOCK_SIGNALS_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        api=ApiConfig(**raw.get("api", {})),
        indicators=IndicatorConfig(**raw.get("indicators", {})),
        dashboard=DashboardConfig(**raw.get("dashboard", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
