"""
errors.py
---------
Exceptions raised by the HTTP layer. Loaders catch them at the panel
boundary so one failing collaborator only degrades its own panel.
"""

from __future__ import annotations


class DashboardError(Exception):
    """Base class for dashboard errors."""


class FetchError(DashboardError):
    """Network failure, timeout or undecodable body."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url


class HttpStatusError(FetchError):
    """The collaborator answered with a non-2xx status."""

    def __init__(self, url: str, status: int) -> None:
        super().__init__(url, f"API request failed with status {status}")
        self.status = status
