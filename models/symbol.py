from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Symbol(BaseModel):
    """One tradable instrument from the symbol catalog endpoint."""

    model_config = ConfigDict(frozen=True)

    id: int
    symbol: str = Field(..., min_length=1)
    name: str = ""

    @field_validator("symbol")
    @classmethod
    def strip_symbol(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("symbol must not be blank")
        return v
