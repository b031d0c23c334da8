import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.dashboard import Dashboard
from models.selection import Selection, SortState
from modules.chart_resolver import ChartImageResolver
from modules.errors import FetchError
from modules.symbol_catalog import SymbolCatalogLoader
from modules.trend_signals import ERROR_MESSAGE, TrendSignalLoader

SYMBOLS = [{"id": 1, "symbol": "GBPUSD", "name": "Pound"}, {"id": 2, "symbol": "EURUSD", "name": "Euro"}]
TRENDS = [{"id": 1, "symbol": "EURUSD", "name": "Euro", "H1": 1, "D1": -1, "W1": 1}]

# ------------------------- Fixtures ------------------------- #

@pytest.fixture
def client():
    client = MagicMock()

    async def get_json(url):
        if url.endswith("/db"):
            return SYMBOLS
        if url.endswith("/ma5time"):
            return TRENDS
        raise FetchError(url, "unexpected url")

    client.get_json = AsyncMock(side_effect=get_json)
    return client

@pytest.fixture
def prober():
    prober = MagicMock()
    prober.probe = AsyncMock(return_value=True)
    return prober

def _dashboard(client, prober, **kwargs):
    ticks = iter(range(1_000, 2_000))
    return Dashboard(
        SymbolCatalogLoader(client, "https://api.example/db"),
        TrendSignalLoader(client, "https://api.example/ma5time"),
        ChartImageResolver(prober, "https://charts.example", clock=lambda: next(ticks)),
        **kwargs,
    )

@pytest.fixture
def dashboard(client, prober):
    return _dashboard(client, prober)

@pytest.fixture
def view(dashboard):
    return dashboard.open_view()

# ------------------------- Dashboard ------------------------- #

def test_initial_selection(dashboard, view):
    assert dashboard.initial_selection == Selection(symbol="XAUUSD", timeframe="H1", refresh_token=0)
    assert view.selection == dashboard.initial_selection
    assert view.sort == SortState()
    assert view.chart is None

def test_extended_variant_defaults_to_first_timeframe(client, prober):
    dash = _dashboard(client, prober, timeframes=("H4", "D1", "W1"), fullscreen_enabled=True)
    assert dash.open_view().selection.timeframe == "H4"

@pytest.mark.asyncio
async def test_dashboard_mount_loads_shared_data_once(dashboard, client):
    await dashboard.mount()

    assert dashboard.mounted
    assert [s.symbol for s in dashboard.catalog.symbols] == ["EURUSD", "GBPUSD"]
    assert [r.symbol for r in dashboard.trends.rows] == ["EURUSD"]

    await dashboard.open_view().mount()
    assert client.get_json.await_count == 2

@pytest.mark.asyncio
async def test_view_mount_loads_everything(dashboard, view, prober):
    chart = await view.mount()

    assert dashboard.mounted
    assert chart.ready
    assert view.chart.url.startswith("https://charts.example/charts/XAUUSDH1.png?t=")
    prober.probe.assert_awaited_once()

@pytest.mark.asyncio
async def test_mount_survives_collaborator_failures(client, dashboard, view):
    client.get_json.side_effect = FetchError("https://api.example", "down")

    await view.mount()

    assert len(dashboard.catalog.symbols) == 9
    assert view.table.error == ERROR_MESSAGE
    assert view.chart is not None

# ------------------------- Page view ------------------------- #

@pytest.mark.asyncio
async def test_select_symbol_re_resolves(view, prober):
    await view.mount()

    view.select_symbol("EURUSD")
    assert view.chart.loading
    assert "EURUSDH1.png" in view.chart.url

    chart = await view.settled()
    assert chart.ready
    assert prober.probe.await_count == 2

@pytest.mark.asyncio
async def test_select_same_symbol_is_noop(view, prober):
    await view.mount()

    view.select_symbol("XAUUSD")
    await view.settled()

    assert prober.probe.await_count == 1

@pytest.mark.asyncio
async def test_select_timeframe_and_refresh(view):
    await view.mount()
    first_url = view.chart.url

    view.select_timeframe("D1")
    await view.settled()
    assert view.selection.timeframe == "D1"

    view.refresh()
    await view.settled()
    assert view.selection.refresh_token == 1
    assert view.chart.url != first_url
    assert "XAUUSDD1.png" in view.chart.url

def test_unknown_timeframe_rejected(view):
    with pytest.raises(ValueError):
        view.select_timeframe("M1")

def test_fullscreen_needs_extended_variant(view, client, prober):
    with pytest.raises(ValueError):
        view.toggle_fullscreen()

    dash = _dashboard(client, prober, timeframes=("H4", "D1", "W1"), fullscreen_enabled=True)
    extended = dash.open_view()
    assert extended.toggle_fullscreen().fullscreen is True
    assert extended.toggle_fullscreen().fullscreen is False

def test_sort_by_toggles_and_rejects_unknown_fields(view):
    assert view.sort_by("D1") == SortState("D1", "asc")
    assert view.sort_by("D1") == SortState("D1", "desc")
    with pytest.raises(ValueError):
        view.sort_by("H4")

@pytest.mark.asyncio
async def test_trend_table_view_chart_changes_selection(view):
    await view.mount()
    seen = []
    view.subscribe(lambda old, new: seen.append((old, new)))

    view.table.view_chart("EURUSD", "W1")
    await view.settled()

    assert view.selection.symbol == "EURUSD"
    assert view.selection.timeframe == "W1"
    assert view.chart.symbol == "EURUSD"
    assert view.chart.timeframe == "W1"
    assert seen[0][0].symbol == "XAUUSD"
    assert seen[0][1].symbol == "EURUSD"

def test_views_do_not_share_selection_or_sort(dashboard):
    first, second = dashboard.open_view(live=False), dashboard.open_view(live=False)

    first.table.view_chart("EURUSD", "D1")
    first.sort_by("H1")

    assert first.selection == Selection(symbol="EURUSD", timeframe="D1")
    assert second.selection == dashboard.initial_selection
    assert second.sort == SortState()
    assert first.resolver is not second.resolver

@pytest.mark.asyncio
async def test_view_without_live_probing_waits_for_resolve(dashboard, prober):
    view = dashboard.open_view(live=False)

    view.select_symbol("EURUSD")
    await asyncio.sleep(0)

    assert view.chart.loading
    prober.probe.assert_not_awaited()

    chart = await view.resolve_chart()
    assert chart.ready and chart.symbol == "EURUSD"

@pytest.mark.asyncio
async def test_latest_selection_wins_over_slow_probe(client):
    release_first = asyncio.Event()
    calls = []

    class FirstSlowProber:
        async def probe(self, url):
            calls.append(url)
            if len(calls) == 2:
                await release_first.wait()
            return True

    view = _dashboard(client, FirstSlowProber()).open_view()
    await view.mount()

    view.select_symbol("AAAUSD")
    await asyncio.sleep(0)
    view.select_symbol("BBBUSD")
    for _ in range(3):
        await asyncio.sleep(0)
    assert view.chart.symbol == "BBBUSD"
    assert view.chart.ready

    release_first.set()
    await view.settled()
    assert view.chart.symbol == "BBBUSD"

@pytest.mark.asyncio
async def test_background_probes_are_tracked_until_done(view):
    await view.mount()

    view.select_symbol("EURUSD")
    assert len(view._tasks) == 1

    await view.settled()
    await asyncio.sleep(0)
    assert not view._tasks
