"""
chart_resolver.py
-----------------
Derives the cache-busted chart image URL for a (symbol, timeframe) pair,
probes it out of band and reports loading / ready / error state.

Only the most recent request may commit. Every `begin()` records the URL
it derived as the desired one; a probe that settles for any other URL is
stale and its result is dropped, whatever order the probes finish in.
"""

from __future__ import annotations

import asyncio
import logging
from io import BytesIO
from typing import Callable, Optional

from matplotlib import image as mpimg

from models.selection import ChartResolution
from modules.errors import FetchError
from modules.rest_client import DashboardApiClient
from utils.utils import now_ms


class ImageProber:
    """Downloads an image and decodes it in a worker thread; never raises."""

    def __init__(self, client: DashboardApiClient, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self.client = client

    async def probe(self, url: str) -> bool:
        try:
            body = await self.client.get_bytes(url)
        except FetchError as exc:
            self.logger.warning("Chart image request failed %s", exc)
            return False
        try:
            pixels = await asyncio.to_thread(mpimg.imread, BytesIO(body), format="png")
        except Exception as exc:  # noqa: BLE001 (decoder raises many types)
            self.logger.warning("Chart image could not be decoded %s: %s", url, exc)
            return False
        return bool(getattr(pixels, "size", 0))


class ChartImageResolver:
    """Single-slot resolver: the latest requested chart wins."""

    def __init__(
        self,
        prober: ImageProber,
        base_host: str,
        logger: Optional[logging.Logger] = None,
        *,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self.prober = prober
        self.base_host = base_host.rstrip("/")
        self.clock = clock

        self.state: Optional[ChartResolution] = None
        self._desired_url: Optional[str] = None

    def spawn(self) -> "ChartImageResolver":
        """A resolver with its own empty slot, sharing prober, host and clock."""
        return ChartImageResolver(self.prober, self.base_host, self.logger, clock=self.clock)

    # -------------------------------------------------------------------- #
    def build_url(self, symbol: str, timeframe: str, timestamp_ms: Optional[int] = None) -> str:
        if timestamp_ms is None:
            timestamp_ms = self.clock()
        return f"{self.base_host}/charts/{symbol}{timeframe}.png?t={timestamp_ms}"

    def begin(self, symbol: str, timeframe: str, refresh_token: int = 0) -> ChartResolution:
        """Enter the loading state for a new request and make it the desired one."""
        url = self.build_url(symbol, timeframe)
        self._desired_url = url
        self.state = ChartResolution(symbol=symbol, timeframe=timeframe, url=url)
        self.logger.debug("Resolving chart %s %s (refresh %s): %s", symbol, timeframe, refresh_token, url)
        return self.state

    def commit(self, pending: ChartResolution, loaded: bool) -> bool:
        """Apply a settled probe; returns False when the result was stale."""
        if pending.url != self._desired_url:
            self.logger.debug("Discarding stale chart probe %s", pending.url)
            return False
        self.state = ChartResolution(
            symbol=pending.symbol,
            timeframe=pending.timeframe,
            url=pending.url,
            loading=False,
            error=not loaded,
        )
        if not loaded:
            self.logger.info("Unable to load chart for %s (%s)", pending.symbol, pending.timeframe)
        return True

    async def settle(self, pending: ChartResolution) -> ChartResolution:
        loaded = await self.prober.probe(pending.url)
        self.commit(pending, loaded)
        return self.state

    async def resolve(self, symbol: str, timeframe: str, refresh_token: int = 0) -> ChartResolution:
        pending = self.begin(symbol, timeframe, refresh_token)
        return await self.settle(pending)
