from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SortField = Literal["symbol", "H1", "H4", "D1", "W1"]
SortDirection = Literal["asc", "desc"]


class TrendRow(BaseModel):
    """
    Per-symbol trend signals, one signed integer per timeframe.

    Positive is bullish, negative bearish, zero neutral. A missing or null
    signal is stored as 0. `updated` is kept verbatim as sent by the API.
    """

    model_config = ConfigDict(frozen=True)

    id: int = 0
    symbol: str = Field(..., min_length=1)
    name: str = ""
    H1: int = 0
    H4: int = 0
    D1: int = 0
    W1: int = 0
    updated: Optional[str] = None

    @field_validator("H1", "H4", "D1", "W1", mode="before")
    @classmethod
    def none_is_zero(cls, v):
        return 0 if v is None else v

    @field_validator("updated", mode="before")
    @classmethod
    def blank_is_missing(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v

    def signal(self, timeframe: str) -> int:
        """Signal for `timeframe`; unknown timeframes read as neutral."""
        return int(getattr(self, timeframe, 0) or 0)
