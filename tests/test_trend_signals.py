from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from models.selection import SortState
from models.trend import TrendRow
from modules.errors import FetchError, HttpStatusError
from modules.trend_signals import (
    ERROR_MESSAGE,
    FALLBACK_TRENDS,
    TrendSignalLoader,
    latest_updated,
    sort_rows,
    trend_label,
    trend_tone,
)

FIXED_NOW = datetime(2030, 6, 1, 12, 0, tzinfo=timezone.utc)

TRENDS = [
    {"id": 1, "symbol": "EURUSD", "name": "Euro/US Dollar", "H1": 1, "D1": -1, "W1": 1,
     "updated": "2024-01-01T00:00:00Z"},
    {"id": 2, "symbol": "GBPUSD", "name": "British Pound/US Dollar", "H1": -1, "D1": -1, "W1": -1,
     "updated": "2024-01-02T00:00:00Z"},
]

# ------------------------- Fixtures ------------------------- #

@pytest.fixture
def client():
    client = MagicMock()
    client.get_json = AsyncMock(return_value=TRENDS)
    return client

@pytest.fixture
def loader(client):
    return TrendSignalLoader(client, "https://api.example/ma5time", clock=lambda: FIXED_NOW)

def _rows(*specs):
    return [TrendRow(id=i, symbol=sym, H1=h1) for i, (sym, h1) in enumerate(specs)]

# ------------------------- Loading ------------------------- #

@pytest.mark.asyncio
async def test_load_success_end_to_end(loader):
    rows = await loader.load()

    assert [r.symbol for r in rows] == ["EURUSD", "GBPUSD"]
    assert loader.error is None
    assert loader.loading is False
    assert loader.latest_updated == datetime(2024, 1, 2, tzinfo=timezone.utc)

    assert [r.symbol for r in loader.visible_rows(SortState("symbol", "asc"))] == ["EURUSD", "GBPUSD"]
    assert [r.symbol for r in loader.visible_rows(SortState("H1", "asc"))] == ["GBPUSD", "EURUSD"]

@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    HttpStatusError("https://api.example/ma5time", 502),
    FetchError("https://api.example/ma5time", "connection reset"),
])
async def test_failure_shows_single_message(client, loader, error):
    client.get_json.side_effect = error

    await loader.load()

    assert loader.error == ERROR_MESSAGE
    assert loader.rows == FALLBACK_TRENDS
    assert loader.latest_updated == FIXED_NOW
    assert loader.visible_rows() == []

@pytest.mark.asyncio
async def test_malformed_payload_is_a_failure(client, loader):
    client.get_json.return_value = {"detail": "Not Found"}

    await loader.load()

    assert loader.error == ERROR_MESSAGE

@pytest.mark.asyncio
async def test_missing_signals_read_as_zero(client, loader):
    client.get_json.return_value = [{"id": 1, "symbol": "XAUUSD", "name": "Gold", "H1": None, "D1": 2}]

    rows = await loader.load()

    assert rows[0].H1 == 0
    assert rows[0].W1 == 0
    assert rows[0].D1 == 2

def test_visible_rows_empty_before_load(loader):
    assert loader.visible_rows() == []

# ------------------------- Latest updated ------------------------- #

def test_latest_updated_takes_maximum():
    rows = [
        TrendRow(symbol="A", updated="2024-03-01T10:00:00Z"),
        TrendRow(symbol="B", updated="2024-03-05T08:30:00+02:00"),
        TrendRow(symbol="C", updated="2024-03-02T00:00:00Z"),
    ]
    assert latest_updated(rows, lambda: FIXED_NOW) == datetime(2024, 3, 5, 6, 30, tzinfo=timezone.utc)

def test_latest_updated_skips_missing_and_garbage():
    rows = [
        TrendRow(symbol="A"),
        TrendRow(symbol="B", updated="not a date"),
        TrendRow(symbol="C", updated="2024-01-01T00:00:00Z"),
    ]
    assert latest_updated(rows, lambda: FIXED_NOW) == datetime(2024, 1, 1, tzinfo=timezone.utc)

def test_latest_updated_falls_back_to_now():
    rows = [TrendRow(symbol="A"), TrendRow(symbol="B", updated="")]
    assert latest_updated(rows, lambda: FIXED_NOW) == FIXED_NOW
    assert latest_updated([], lambda: FIXED_NOW) == FIXED_NOW

# ------------------------- Sorting ------------------------- #

def test_sort_toggle_rules():
    state = SortState()
    assert state == SortState("symbol", "asc")
    state = state.toggle("symbol")
    assert state == SortState("symbol", "desc")
    state = state.toggle("H1")
    assert state == SortState("H1", "asc")
    assert state.toggle("H1").toggle("H1") == state

def test_table_sort_by_toggles(loader):
    table = loader.table()
    assert table.sort_by("D1") == SortState("D1", "asc")
    assert table.sort_by("D1") == SortState("D1", "desc")
    assert table.sort_by("symbol") == SortState("symbol", "asc")

@pytest.mark.asyncio
async def test_tables_keep_their_own_sort_order(loader):
    await loader.load()
    first, second = loader.table(), loader.table()

    first.sort_by("H1")

    assert [r.symbol for r in first.visible_rows()] == ["GBPUSD", "EURUSD"]
    assert [r.symbol for r in second.visible_rows()] == ["EURUSD", "GBPUSD"]
    assert second.sort_state == SortState()
    assert loader.rows[0].symbol == "EURUSD"

def test_sort_does_not_mutate_rows():
    rows = _rows(("C", 1), ("A", -1), ("B", 0))
    original = list(rows)

    sort_rows(rows, SortState("symbol", "asc"))
    sort_rows(rows, SortState("H1", "desc"))

    assert rows == original

def test_sort_is_idempotent():
    rows = _rows(("C", 1), ("A", -1), ("B", 0))
    once = sort_rows(rows, SortState("H1", "asc"))
    assert sort_rows(once, SortState("H1", "asc")) == once

def test_toggling_twice_restores_order():
    rows = _rows(("C", 1), ("A", -1), ("B", 0), ("D", 1))
    state = SortState("H1", "asc")
    asc = sort_rows(rows, state)
    sort_rows(rows, state.toggle("H1"))
    assert sort_rows(rows, state.toggle("H1").toggle("H1")) == asc

def test_sort_is_stable_on_ties():
    rows = _rows(("ZZZ", 1), ("AAA", -1), ("MMM", 1), ("BBB", 1))

    asc = sort_rows(rows, SortState("H1", "asc"))
    desc = sort_rows(rows, SortState("H1", "desc"))

    assert [r.symbol for r in asc] == ["AAA", "ZZZ", "MMM", "BBB"]
    assert [r.symbol for r in desc] == ["ZZZ", "MMM", "BBB", "AAA"]

def test_symbol_sort_is_case_insensitive():
    rows = _rows(("eurusd", 0), ("AUDUSD", 0), ("Btcusd", 0))
    assert [r.symbol for r in sort_rows(rows, SortState("symbol", "asc"))] == ["AUDUSD", "Btcusd", "eurusd"]
    assert [r.symbol for r in sort_rows(rows, SortState("symbol", "desc"))] == ["eurusd", "Btcusd", "AUDUSD"]

# ------------------------- Labels / actions ------------------------- #

@pytest.mark.parametrize("value,label", [(3, "Bullish"), (1, "Bullish"), (0, "Neutral"), (-1, "Bearish")])
def test_trend_label(value, label):
    assert trend_label(value) == label
    assert trend_tone(value) == label.lower()

def test_view_chart_forwards_to_callback(loader):
    callback = MagicMock()
    table = loader.table(on_view_chart=callback)

    table.view_chart("GBPUSD", "D1")

    callback.assert_called_once_with("GBPUSD", "D1")

def test_view_chart_without_callback_is_noop(loader):
    loader.table().view_chart("GBPUSD", "D1")
