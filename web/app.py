"""
web/app.py
----------
FastAPI surface of the dashboard: the HTML page, the action routes its
controls link to, and a JSON mirror of the same state.

The shared data is mounted once at startup. Every request opens its own
`PageView` from the query string, so concurrent viewers never share a
selection, a sort order or a pending chart probe.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import HTMLResponse, RedirectResponse

from core.dashboard import Dashboard, PageView
from models.selection import Selection, SortState
from modules.rest_client import DashboardApiClient
from utils.utils import format_timestamp, utc_now
from web.page import page_href, render_page


def _sort_state(dashboard: Dashboard, sort: Optional[str], direction: Optional[str]) -> SortState:
    fields = ["symbol"] + dashboard.timeframes
    field = sort if sort in fields else "symbol"
    return SortState(field, "desc" if direction == "desc" else "asc")


def _selection(
    dashboard: Dashboard,
    symbol: Optional[str],
    timeframe: Optional[str],
    refresh: Optional[int],
    fullscreen: bool,
) -> Selection:
    query: Dict[str, str] = {}
    if symbol:
        query["symbol"] = symbol
    if timeframe:
        query["timeframe"] = timeframe
    if refresh is not None:
        query["refresh"] = str(refresh)
    if fullscreen and dashboard.fullscreen_enabled:
        query["fullscreen"] = "1"
    return Selection.from_query(query, default=dashboard.initial_selection, timeframes=dashboard.timeframes)


def _open_view(
    dashboard: Dashboard,
    symbol: Optional[str] = None,
    timeframe: Optional[str] = None,
    refresh: Optional[int] = None,
    fullscreen: bool = False,
    sort: Optional[str] = None,
    direction: Optional[str] = None,
) -> PageView:
    return dashboard.open_view(
        _selection(dashboard, symbol, timeframe, refresh, fullscreen),
        _sort_state(dashboard, sort, direction),
        live=False,
    )


def _trend_payload(view: PageView) -> Dict[str, object]:
    table = view.table
    return {
        "loading": table.loading,
        "error": table.error,
        "latest_updated": table.latest_updated.isoformat() if table.latest_updated else None,
        "latest_updated_display": format_timestamp(table.latest_updated, view.display_timezone),
        "sort": {"field": view.sort.field, "direction": view.sort.direction},
        "rows": [row.model_dump() for row in table.visible_rows()],
    }


def _apply_action(
    view: PageView,
    action: str,
    value: Optional[str],
    row: Optional[str],
    column: Optional[str],
    field: Optional[str],
) -> None:
    if action == "symbol" and value:
        view.select_symbol(value)
    elif action == "timeframe" and value:
        view.select_timeframe(value)
    elif action == "refresh":
        view.refresh()
    elif action == "fullscreen":
        view.toggle_fullscreen()
    elif action == "view-chart" and row and column:
        view.table.view_chart(row, column)
    elif action == "sort" and field:
        view.sort_by(field)
    else:
        raise HTTPException(status_code=404, detail=f"Unknown action {action!r}")


def create_app(dashboard: Dashboard, client: Optional[DashboardApiClient] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await dashboard.mount()
        try:
            yield
        finally:
            if client is not None:
                client.log_metrics()
                await client.close()

    app = FastAPI(title=dashboard.title, lifespan=lifespan)
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.state.dashboard = dashboard

    @app.get("/health")
    def health():
        return {"ok": True, "mounted": dashboard.mounted, "timeframes": dashboard.timeframes}

    @app.get("/", response_class=HTMLResponse)
    async def index(
        symbol: Optional[str] = Query(None),
        timeframe: Optional[str] = Query(None),
        refresh: Optional[int] = Query(None, ge=0),
        fullscreen: bool = Query(False),
        sort: Optional[str] = Query(None),
        direction: Optional[str] = Query(None),
    ):
        view = _open_view(dashboard, symbol, timeframe, refresh, fullscreen, sort, direction)
        await view.resolve_chart()
        return HTMLResponse(render_page(view, now=utc_now()))

    @app.get("/actions/{action}")
    def run_action(
        action: str,
        symbol: Optional[str] = Query(None),
        timeframe: Optional[str] = Query(None),
        refresh: Optional[int] = Query(None, ge=0),
        fullscreen: bool = Query(False),
        sort: Optional[str] = Query(None),
        direction: Optional[str] = Query(None),
        value: Optional[str] = Query(None),
        row: Optional[str] = Query(None),
        column: Optional[str] = Query(None),
        field: Optional[str] = Query(None),
    ):
        view = _open_view(dashboard, symbol, timeframe, refresh, fullscreen, sort, direction)
        try:
            _apply_action(view, action, value, row, column, field)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return RedirectResponse(page_href(view.selection, view.sort), status_code=303)

    @app.get("/api/state")
    async def page_state(
        symbol: Optional[str] = Query(None),
        timeframe: Optional[str] = Query(None),
        refresh: Optional[int] = Query(None, ge=0),
        fullscreen: bool = Query(False),
        sort: Optional[str] = Query(None),
        direction: Optional[str] = Query(None),
    ):
        view = _open_view(dashboard, symbol, timeframe, refresh, fullscreen, sort, direction)
        chart = await view.resolve_chart()
        return {
            "selection": view.selection.to_dict(),
            "timeframes": view.timeframes,
            "fullscreen_enabled": view.fullscreen_enabled,
            "symbols_loading": view.catalog.loading,
            "symbols": [s.model_dump() for s in view.catalog.symbols],
            "chart": chart.to_dict() if chart else None,
            "trends": _trend_payload(view),
        }

    @app.get("/api/symbols")
    def symbols():
        return {
            "loading": dashboard.catalog.loading,
            "placeholders": dashboard.catalog.placeholder_count(),
            "symbols": [s.model_dump() for s in dashboard.catalog.symbols],
        }

    @app.get("/api/trends")
    def trends(sort: Optional[str] = Query(None), direction: Optional[str] = Query(None)):
        return _trend_payload(_open_view(dashboard, sort=sort, direction=direction))

    @app.get("/api/chart")
    async def chart(
        symbol: Optional[str] = Query(None),
        timeframe: Optional[str] = Query(None),
        refresh: Optional[int] = Query(None, ge=0),
    ):
        resolution = await _open_view(dashboard, symbol, timeframe, refresh).resolve_chart()
        return resolution.to_dict() if resolution else None

    return app
