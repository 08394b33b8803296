"""
Typed error hierarchy for the watcher runtime.

Every failure raised by an upstream client derives from WatcherError so the
refresh loop can log it and move on without ever taking the process down.
"""

from __future__ import annotations

from typing import Optional


class WatcherError(RuntimeError):
    """Base class for all recoverable watcher failures."""


class ConfigError(WatcherError):
    """Raised when the watcher configuration is missing or invalid."""


class UpstreamRequestError(WatcherError):
    """Transport-level failure (connection refused, timeout, ...)."""


class UpstreamStatusError(WatcherError):
    """Upstream answered with a non-success HTTP status."""

    def __init__(self, message: str, *, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class UpstreamShapeError(WatcherError):
    """Upstream payload is missing a field or has an unexpected shape."""

    def __init__(self, message: str, *, payload: Optional[str] = None):
        super().__init__(message)
        self.payload = payload


class ScrapeError(UpstreamShapeError):
    """Canonical URL could not be resolved from a scraped page."""


class AuthenticationError(WatcherError):
    """App access token could not be acquired."""
