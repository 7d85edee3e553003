from __future__ import annotations
from typing import Optional


class CrptApiError(Exception):
    """Base class for everything this client raises."""


class ConfigurationError(CrptApiError, ValueError):
    """Missing or invalid client configuration. Raised at construction time."""


class TransportError(CrptApiError):
    """
    Connection, timeout or IO failure during the HTTP exchange.
    The underlying requests exception is kept as __cause__.
    """
    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class DecodeError(CrptApiError):
    """Response body could not be decoded into the expected shape."""
    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        # keep the tail short, bodies can be whole HTML error pages
        self.body = body[:500] if body else body


class ClientClosedError(CrptApiError):
    """Call made through (or parked in) a rate-limited client after close()."""
