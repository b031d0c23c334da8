"""
core/dashboard.py
-----------------
The page. `Dashboard` holds what every viewer shares: the symbol catalog,
the trend rows and the chart resolver settings, loaded once on mount.
`PageView` is one viewer's page: it owns a `Selection`, a trend-table sort
order and its own chart-resolver slot, and lives only as long as that view.

State flows one way. Controls and the trend table's "view chart" action
call the view's `select_*` methods; each produces a new `Selection`,
notifies subscribers, and re-resolves the chart when symbol, timeframe or
the refresh token changed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Sequence, Set

from models.selection import ChartResolution, Selection, SortState
from models.trend import SortField
from modules.chart_resolver import ChartImageResolver
from modules.symbol_catalog import SymbolCatalogLoader
from modules.trend_signals import TrendSignalLoader

SelectionListener = Callable[[Selection, Selection], None]


class Dashboard:
    def __init__(
        self,
        catalog: SymbolCatalogLoader,
        trends: TrendSignalLoader,
        resolver: ChartImageResolver,
        *,
        timeframes: Sequence[str] = ("H1", "D1", "W1"),
        default_symbol: str = "XAUUSD",
        fullscreen_enabled: bool = False,
        title: str = "Trading1501 Filter Analysis",
        display_timezone: str = "UTC",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self.catalog = catalog
        self.trends = trends
        # template only: every view spawns its own slot from it
        self.resolver = resolver
        self.timeframes: List[str] = list(timeframes)
        self.fullscreen_enabled = fullscreen_enabled
        self.title = title
        self.display_timezone = display_timezone

        self.initial_selection = Selection(symbol=default_symbol, timeframe=self.timeframes[0])
        self.mounted = False

    async def mount(self) -> None:
        """Fetch catalog and trends concurrently."""
        self.logger.info("Mounting dashboard (timeframes %s)", self.timeframes)
        await asyncio.gather(self.catalog.load(), self.trends.load())
        self.mounted = True

    def open_view(
        self,
        selection: Optional[Selection] = None,
        sort: Optional[SortState] = None,
        *,
        live: bool = True,
    ) -> "PageView":
        return PageView(self, selection or self.initial_selection, sort, live=live)


class PageView:
    """
    One viewer's page over a shared `Dashboard`.

    With `live=True` every selection change starts a background probe, and
    the latest one wins by URL identity. A view built for a single request
    passes `live=False` and awaits `resolve_chart()` itself.
    """

    def __init__(
        self,
        dashboard: Dashboard,
        selection: Selection,
        sort: Optional[SortState] = None,
        *,
        live: bool = True,
    ) -> None:
        self.dashboard = dashboard
        self.logger = dashboard.logger
        self.selection = selection
        self.live = live
        self.resolver = dashboard.resolver.spawn()
        # the table is the second writer of the selection
        self.table = dashboard.trends.table(sort, on_view_chart=self.view_chart)

        self._listeners: List[SelectionListener] = []
        self._tasks: Set[asyncio.Task] = set()

    # -------------------------------------------------------------------- #
    @property
    def catalog(self) -> SymbolCatalogLoader:
        return self.dashboard.catalog

    @property
    def timeframes(self) -> List[str]:
        return self.dashboard.timeframes

    @property
    def fullscreen_enabled(self) -> bool:
        return self.dashboard.fullscreen_enabled

    @property
    def title(self) -> str:
        return self.dashboard.title

    @property
    def display_timezone(self) -> str:
        return self.dashboard.display_timezone

    @property
    def sort(self) -> SortState:
        return self.table.sort_state

    @property
    def chart(self) -> Optional[ChartResolution]:
        return self.resolver.state

    def subscribe(self, listener: SelectionListener) -> None:
        self._listeners.append(listener)

    # -------------------------------------------------------------------- #
    async def mount(self) -> Optional[ChartResolution]:
        """Load the shared data if nobody has yet, then resolve the first chart."""
        if not self.dashboard.mounted:
            await self.dashboard.mount()
        return await self.resolve_chart()

    async def resolve_chart(self) -> Optional[ChartResolution]:
        s = self.selection
        return await self.resolver.resolve(s.symbol, s.timeframe, s.refresh_token)

    async def settled(self) -> Optional[ChartResolution]:
        """Wait for every probe this view has started."""
        pending = [task for task in self._tasks if not task.done()]
        while pending:
            await asyncio.gather(*pending)
            pending = [task for task in self._tasks if not task.done()]
        return self.chart

    # -------------------------------------------------------------------- #
    def _apply(self, new: Selection) -> bool:
        """Store `new` and notify; returns True when the chart must be re-resolved."""
        old = self.selection
        if new == old:
            return False
        self.selection = new
        for listener in self._listeners:
            listener(old, new)
        return (new.symbol, new.timeframe, new.refresh_token) != (
            old.symbol, old.timeframe, old.refresh_token
        )

    def _schedule_resolve(self) -> None:
        s = self.selection
        pending = self.resolver.begin(s.symbol, s.timeframe, s.refresh_token)
        if not self.live:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # no loop (sync caller): the pending state stays until resolve_chart() runs
            return
        task = loop.create_task(self.resolver.settle(pending))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def select_symbol(self, symbol: str) -> Selection:
        if self._apply(self.selection.with_symbol(symbol)):
            self._schedule_resolve()
        return self.selection

    def select_timeframe(self, timeframe: str) -> Selection:
        if timeframe not in self.timeframes:
            raise ValueError(f"Unknown timeframe {timeframe!r}; expected one of {self.timeframes}")
        if self._apply(self.selection.with_timeframe(timeframe)):
            self._schedule_resolve()
        return self.selection

    def refresh(self) -> Selection:
        if self._apply(self.selection.refreshed()):
            self._schedule_resolve()
        return self.selection

    def toggle_fullscreen(self) -> Selection:
        if not self.fullscreen_enabled:
            raise ValueError("Fullscreen is not available for this page variant")
        self._apply(self.selection.toggled_fullscreen())
        return self.selection

    def view_chart(self, symbol: str, timeframe: str) -> None:
        """Trend-table action: jump the chart to (symbol, timeframe)."""
        self.logger.info("View chart requested: %s %s", symbol, timeframe)
        new = self.selection.with_symbol(symbol)
        if timeframe in self.timeframes:
            new = new.with_timeframe(timeframe)
        if self._apply(new):
            self._schedule_resolve()

    def sort_by(self, field: SortField) -> SortState:
        if field != "symbol" and field not in self.timeframes:
            raise ValueError(f"Unknown sort field {field!r}")
        return self.table.sort_by(field)
