"""
trend_signals.py
----------------
Loads per-symbol trend signals once per mount and exposes them as a
sortable table view (`TrendTable`, one per page view).

Sorting never touches the stored rows: `sorted_rows()` re-derives the
view from a `SortState` each time. Python's sort is stable in
both directions, so rows with equal keys keep their fetched order.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, List, Optional, Sequence

from pydantic import ValidationError

from models.selection import SortState
from models.trend import SortField, TrendRow
from modules.errors import FetchError
from modules.rest_client import DashboardApiClient
from utils.utils import locale_key, parse_timestamp, utc_now

ERROR_MESSAGE = "Failed to load trend analysis data. Please try again later."

FALLBACK_TRENDS: List[TrendRow] = [
    TrendRow(id=1, symbol="EURUSD", name="Euro/US Dollar", H1=1, D1=-1, W1=1),
    TrendRow(id=2, symbol="GBPUSD", name="British Pound/US Dollar", H1=-1, D1=-1, W1=-1),
    TrendRow(id=3, symbol="USDJPY", name="US Dollar/Japanese Yen", H1=1, D1=1, W1=-1),
    TrendRow(id=4, symbol="XAUUSD", name="Gold/US Dollar", H1=1, D1=1, W1=1),
]

ViewChartCallback = Callable[[str, str], None]


def trend_label(value: int) -> str:
    if value > 0:
        return "Bullish"
    if value < 0:
        return "Bearish"
    return "Neutral"


def trend_tone(value: int) -> str:
    return trend_label(value).lower()


def latest_updated(rows: Sequence[TrendRow], clock: Callable[[], datetime] = utc_now) -> datetime:
    """Newest parseable `updated` across rows, or `clock()` when none has one."""
    latest: Optional[datetime] = None
    for row in rows:
        ts = parse_timestamp(row.updated)
        if ts is None:
            continue
        if latest is None or ts > latest:
            latest = ts
    return latest if latest is not None else clock()


def sort_rows(rows: Sequence[TrendRow], state: SortState) -> List[TrendRow]:
    """Return a new, stably sorted list; `rows` is left untouched."""
    reverse = state.direction == "desc"
    if state.field == "symbol":
        return sorted(rows, key=lambda r: locale_key(r.symbol), reverse=reverse)
    field = state.field
    return sorted(rows, key=lambda r: r.signal(field), reverse=reverse)


def parse_trends(payload: Any) -> List[TrendRow]:
    if not isinstance(payload, list):
        raise ValueError(f"expected a JSON array, got {type(payload).__name__}")
    try:
        return [TrendRow.model_validate(item) for item in payload]
    except ValidationError as exc:
        raise ValueError(f"invalid trend record: {exc}") from exc


class TrendSignalLoader:
    """Fetches trend rows once; shared by every page view."""

    def __init__(
        self,
        client: DashboardApiClient,
        url: str,
        logger: Optional[logging.Logger] = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self.client = client
        self.url = url
        self.clock = clock

        self.rows: List[TrendRow] = []
        self.loading = True
        self.error: Optional[str] = None
        self.latest_updated: Optional[datetime] = None

    # -------------------------------------------------------------------- #
    async def load(self) -> List[TrendRow]:
        self.loading = True
        try:
            payload = await self.client.get_json(self.url)
            self.logger.debug("API Response: %s", payload)
            rows = parse_trends(payload)
        except (FetchError, ValueError) as exc:
            self.logger.error("Error fetching trend data: %s", exc)
            self.error = ERROR_MESSAGE
            # kept for diagnostics only; visible_rows() hides them while error is set
            self.rows = list(FALLBACK_TRENDS)
            self.latest_updated = self.clock()
        else:
            self.rows = rows
            self.latest_updated = latest_updated(rows, self.clock)
            self.error = None
            self.logger.info("Loaded %d trend rows (latest update %s)", len(rows), self.latest_updated)
        finally:
            self.loading = False
        return self.rows

    # -------------------------------------------------------------------- #
    def sorted_rows(self, state: Optional[SortState] = None) -> List[TrendRow]:
        return sort_rows(self.rows, state or SortState())

    def visible_rows(self, state: Optional[SortState] = None) -> List[TrendRow]:
        """Rows the table should show: none while loading or after a failed fetch."""
        if self.loading or self.error:
            return []
        return self.sorted_rows(state)

    def table(
        self,
        sort_state: Optional[SortState] = None,
        on_view_chart: Optional[ViewChartCallback] = None,
    ) -> "TrendTable":
        return TrendTable(self, sort_state=sort_state, on_view_chart=on_view_chart)


class TrendTable:
    """
    One page view's trend table over the shared loader.

    Sort state and the "view chart" callback belong to the view, so two
    viewers never see each other's ordering or move each other's chart.
    """

    def __init__(
        self,
        loader: TrendSignalLoader,
        *,
        sort_state: Optional[SortState] = None,
        on_view_chart: Optional[ViewChartCallback] = None,
    ) -> None:
        self.loader = loader
        self.sort_state = sort_state or SortState()
        self.on_view_chart = on_view_chart

    @property
    def loading(self) -> bool:
        return self.loader.loading

    @property
    def error(self) -> Optional[str]:
        return self.loader.error

    @property
    def latest_updated(self) -> Optional[datetime]:
        return self.loader.latest_updated

    def sort_by(self, field: SortField) -> SortState:
        self.sort_state = self.sort_state.toggle(field)
        return self.sort_state

    def sorted_rows(self) -> List[TrendRow]:
        return self.loader.sorted_rows(self.sort_state)

    def visible_rows(self) -> List[TrendRow]:
        return self.loader.visible_rows(self.sort_state)

    def view_chart(self, symbol: str, timeframe: str) -> None:
        if self.on_view_chart is not None:
            self.on_view_chart(symbol, timeframe)
