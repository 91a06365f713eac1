"""
Dashboard view state.

``DashboardState`` is the only state the presentation layer keeps between
renders: which ticker is selected, the latest report per ticker, and the
series each report was computed from (for the price chart).

It is frozen.  Every update returns a new instance, which the Streamlit app
stores back into ``st.session_state``::

    state = state.with_report(report, series).select(report.ticker)
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from stock_signals.models.market import PriceSeries
from stock_signals.models.recommendation import StockReport


class DashboardState(BaseModel):
    """Immutable snapshot of what the dashboard is showing."""

    model_config = ConfigDict(frozen=True)

    selected_ticker: Optional[str] = None
    reports: dict[str, StockReport] = Field(default_factory=dict)
    series: dict[str, PriceSeries] = Field(default_factory=dict)

    def with_report(
        self,
        report: StockReport,
        series: Optional[PriceSeries] = None,
    ) -> "DashboardState":
        """Return a new state holding ``report`` (and ``series``, if given).

        A report without a series (e.g. ``load_failed``) drops any stale
        series for that ticker so the chart never shows outdated data.
        """
        reports = {**self.reports, report.ticker: report}
        all_series = {k: v for k, v in self.series.items() if k != report.ticker}
        if series is not None:
            all_series[report.ticker] = series
        return self.model_copy(update={"reports": reports, "series": all_series})

    def select(self, ticker: str) -> "DashboardState":
        """Return a new state with ``ticker`` selected."""
        return self.model_copy(update={"selected_ticker": ticker.strip().upper()})

    @property
    def selected_report(self) -> Optional[StockReport]:
        if self.selected_ticker is None:
            return None
        return self.reports.get(self.selected_ticker)

    @property
    def selected_series(self) -> Optional[PriceSeries]:
        if self.selected_ticker is None:
            return None
        return self.series.get(self.selected_ticker)
