# --------------------------------------------------------------------
# models/selection.py
# Page-level UI state. Passed top-down; every change produces a new
# instance so subscribers can compare old and new.
# --------------------------------------------------------------------
from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Dict, Mapping, Optional, Sequence

from models.trend import SortDirection, SortField


@dataclass(frozen=True)
class Selection:
    symbol: str = "XAUUSD"
    timeframe: str = "H1"
    refresh_token: int = 0
    fullscreen: bool = False

    def with_symbol(self, symbol: str) -> "Selection":
        return replace(self, symbol=symbol)

    def with_timeframe(self, timeframe: str) -> "Selection":
        return replace(self, timeframe=timeframe)

    def refreshed(self) -> "Selection":
        return replace(self, refresh_token=self.refresh_token + 1)

    def toggled_fullscreen(self) -> "Selection":
        return replace(self, fullscreen=not self.fullscreen)

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)

    def to_query(self) -> Dict[str, str]:
        """Query-string form used by the page links."""
        query = {
            "symbol": self.symbol,
            "timeframe": self.timeframe,
            "refresh": str(self.refresh_token),
        }
        if self.fullscreen:
            query["fullscreen"] = "1"
        return query

    @classmethod
    def from_query(
        cls,
        query: Mapping[str, str],
        *,
        default: Optional["Selection"] = None,
        timeframes: Optional[Sequence[str]] = None,
    ) -> "Selection":
        """
        Rebuild a selection from query parameters, falling back to `default`
        for anything absent or unusable. A timeframe outside `timeframes`
        is ignored; any symbol is accepted.
        """
        base = default or cls()
        symbol = (query.get("symbol") or "").strip() or base.symbol
        timeframe = (query.get("timeframe") or "").strip() or base.timeframe
        if timeframes and timeframe not in timeframes:
            timeframe = base.timeframe
        try:
            refresh_token = int(query.get("refresh", base.refresh_token))
        except (TypeError, ValueError):
            refresh_token = base.refresh_token
        fullscreen = str(query.get("fullscreen", "")).lower() in {"1", "true", "yes", "on"}
        return cls(symbol=symbol, timeframe=timeframe,
                   refresh_token=max(refresh_token, 0), fullscreen=fullscreen)


@dataclass(frozen=True)
class SortState:
    field: SortField = "symbol"
    direction: SortDirection = "asc"

    def toggle(self, field: SortField) -> "SortState":
        """Same field flips direction; a new field starts ascending."""
        if field == self.field:
            return SortState(field, "desc" if self.direction == "asc" else "asc")
        return SortState(field, "asc")


@dataclass(frozen=True)
class ChartResolution:
    symbol: str
    timeframe: str
    url: str = ""
    loading: bool = True
    error: bool = False

    @property
    def ready(self) -> bool:
        return not self.loading and not self.error

    @property
    def label(self) -> str:
        return f"{self.symbol} • {self.timeframe}"

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["ready"] = self.ready
        data["label"] = self.label
        return data
