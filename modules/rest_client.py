"""
rest_client.py
--------------
Thin aiohttp wrapper used by every dashboard component: GET a JSON
document or raw bytes from a collaborator, turn every failure into a
`FetchError`, and keep request/error/latency metrics.
"""

from __future__ import annotations

import asyncio
import json
import logging
import statistics
import time
from typing import Any, Dict, List, Optional

import aiohttp

from modules.errors import FetchError, HttpStatusError


class DashboardApiClient:
    """Asynchronous GET client shared by the loaders and the image prober."""

    def __init__(
        self,
        timeout: float = 10.0,
        logger: Optional[logging.Logger] = None,
        *,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

        self.metrics: Dict[str, Any] = {
            "requests_sent": 0,
            "errors": 0,
            "latencies": [],
        }

    # -------------------------------------------------------------------- #
    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    # -------------------------------------------------------------------- #
    async def get_bytes(self, url: str) -> bytes:
        """GET `url` and return the body. Raises FetchError / HttpStatusError."""
        session = await self._get_session()
        t0 = time.time()
        try:
            async with session.get(url, timeout=self.timeout) as resp:
                self.metrics["requests_sent"] += 1
                if resp.status < 200 or resp.status >= 300:
                    raise HttpStatusError(url, resp.status)
                body = await resp.read()
        except HttpStatusError:
            self.metrics["errors"] += 1
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            self.metrics["errors"] += 1
            raise FetchError(url, str(exc) or exc.__class__.__name__) from exc
        self.metrics["latencies"].append(time.time() - t0)
        return body

    async def get_json(self, url: str) -> Any:
        """GET `url` and decode the body as JSON."""
        body = await self.get_bytes(url)
        try:
            return json.loads(body)
        except (UnicodeDecodeError, ValueError) as exc:
            self.metrics["errors"] += 1
            raise FetchError(url, f"malformed JSON body: {exc}") from exc

    # -------------------------------------------------------------------- #
    def log_metrics(self) -> None:
        latencies: List[float] = self.metrics["latencies"]
        avg = statistics.mean(latencies) if latencies else 0
        self.logger.info(
            "📊 Requests: %s | Errors: %s | Avg latency: %.3fs",
            self.metrics["requests_sent"],
            self.metrics["errors"],
            avg,
        )
