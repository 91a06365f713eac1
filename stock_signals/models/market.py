"""
Market data models — the validated input contract of the analysis core.

``PriceSeries`` is what the ingestion boundary hands to the indicator
pipeline: one ticker's daily closes, strictly ascending by date with no
duplicates, every close a positive finite number.  Anything else is rejected
here with a ``pydantic.ValidationError`` so the indicator functions never see
NaN, infinities, or out-of-order data.

All models are frozen (immutable) after construction.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class PricePoint(BaseModel):
    """One daily bar: session date, closing price, and traded volume.

    Attributes:
        date: Trading session date.
        close: Closing price in the quote currency (USD for US listings).
        volume: Shares traded in the session, or ``None`` if not reported.
    """

    model_config = ConfigDict(frozen=True)

    date: date
    close: float
    volume: Optional[int] = None

    @field_validator("close")
    @classmethod
    def validate_close(cls, v: float) -> float:
        if not math.isfinite(v) or v <= 0:
            raise ValueError(f"close must be a positive finite number, got {v}.")
        return v

    @field_validator("volume")
    @classmethod
    def validate_volume(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("volume must be non-negative.")
        return v


class PriceSeries(BaseModel):
    """A daily closing-price series for one ticker, oldest first.

    Attributes:
        ticker: Upper-case ticker symbol, e.g. ``"AAPL"``.
        company_name: Display name; falls back to the ticker when the data
            source does not provide one.
        points: Daily bars in strictly ascending date order.
    """

    model_config = ConfigDict(frozen=True)

    ticker: str
    company_name: str = ""
    points: tuple[PricePoint, ...] = ()

    @field_validator("ticker")
    @classmethod
    def validate_ticker(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("ticker must not be empty.")
        return v

    @field_validator("points")
    @classmethod
    def validate_ascending(cls, v: tuple[PricePoint, ...]) -> tuple[PricePoint, ...]:
        for prev, cur in zip(v, v[1:]):
            if cur.date == prev.date:
                raise ValueError(f"Duplicate date {cur.date} in price series.")
            if cur.date < prev.date:
                raise ValueError(
                    f"Price series must be ascending by date: {cur.date} follows {prev.date}."
                )
        return v

    @property
    def display_name(self) -> str:
        return self.company_name or self.ticker

    @property
    def closes(self) -> list[float]:
        return [p.close for p in self.points]

    @property
    def dates(self) -> list[date]:
        return [p.date for p in self.points]

    def __len__(self) -> int:
        return len(self.points)

    def tail(self, n: int) -> "PriceSeries":
        """Return a copy holding only the most recent ``n`` points."""
        if n < 0:
            raise ValueError(f"n must be non-negative, got {n}.")
        return self.model_copy(update={"points": self.points[-n:] if n else ()})


class NewsArticle(BaseModel):
    """A headline related to a ticker.

    Attributes:
        title: Headline text.
        url: Link to the full article.
        source: Publisher name.
        published_at: Publication timestamp, or ``None`` if unparseable.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    url: str
    source: str = ""
    published_at: Optional[datetime] = None
