"""
symbol_catalog.py
-----------------
Loads the tradable symbol list once per mount. Failures never reach the
user: the selector falls back to a fixed list of common pairs.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from pydantic import ValidationError

from models.symbol import Symbol
from modules.errors import FetchError
from modules.rest_client import DashboardApiClient
from utils.utils import locale_key

PLACEHOLDER_COUNT = 9

FALLBACK_SYMBOLS: List[Symbol] = [
    Symbol(id=1, symbol="AUDUSD", name="Australian Dollar/US Dollar"),
    Symbol(id=2, symbol="BTCUSD", name="Bitcoin/US Dollar"),
    Symbol(id=3, symbol="ETHUSD", name="Ethereum/US Dollar"),
    Symbol(id=4, symbol="EURUSD", name="Euro/US Dollar"),
    Symbol(id=5, symbol="GBPUSD", name="British Pound/US Dollar"),
    Symbol(id=6, symbol="NZDUSD", name="New Zealand Dollar/US Dollar"),
    Symbol(id=7, symbol="USDCAD", name="US Dollar/Canadian Dollar"),
    Symbol(id=8, symbol="USDCHF", name="US Dollar/Swiss Franc"),
    Symbol(id=9, symbol="USDJPY", name="US Dollar/Japanese Yen"),
]


def parse_symbols(payload: Any) -> List[Symbol]:
    """Validate a catalog payload; raises ValueError on any malformed record."""
    if not isinstance(payload, list):
        raise ValueError(f"expected a JSON array, got {type(payload).__name__}")
    try:
        return [Symbol.model_validate(item) for item in payload]
    except ValidationError as exc:
        raise ValueError(f"invalid symbol record: {exc}") from exc


def sort_symbols(symbols: List[Symbol]) -> List[Symbol]:
    return sorted(symbols, key=lambda s: locale_key(s.symbol))


class SymbolCatalogLoader:
    """Fetches and publishes the sorted symbol catalog."""

    def __init__(
        self,
        client: DashboardApiClient,
        url: str,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self.client = client
        self.url = url

        self.symbols: List[Symbol] = []
        self.loading = True
        self.last_error: Optional[Exception] = None

    async def load(self) -> List[Symbol]:
        self.loading = True
        try:
            payload = await self.client.get_json(self.url)
            self.symbols = sort_symbols(parse_symbols(payload))
            self.last_error = None
            self.logger.info("Loaded %d symbols from catalog", len(self.symbols))
        except (FetchError, ValueError) as exc:
            self.last_error = exc
            self.logger.warning("Failed to fetch symbols, using fallback list: %s", exc)
            self.symbols = list(FALLBACK_SYMBOLS)
        finally:
            self.loading = False
        return self.symbols

    def placeholder_count(self) -> int:
        """Disabled placeholder buttons to render while the request is outstanding."""
        return PLACEHOLDER_COUNT if self.loading else 0
