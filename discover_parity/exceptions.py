"""
Exceptions raised by the parity suite.
"""

from typing import Any, Dict, Optional


class ParityError(Exception):
    """Base error with an optional structured payload."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class InvalidInputError(ParityError, ValueError):
    """Caller handed the core something that is not a valid input shape."""


class APIRequestError(ParityError):
    """Every candidate endpoint rejected the discover query."""

    def __init__(self, endpoints: list, message: str = "All discover endpoints failed"):
        super().__init__(message, details={"endpoints": endpoints})
        self.endpoints = endpoints


class PageLoadError(ParityError):
    """Discover page did not render result cards in time."""

    def __init__(self, url: str, timeout: float):
        super().__init__(
            f"No result cards rendered at {url} within {timeout:.0f}s",
            details={"url": url, "timeout": timeout},
        )
        self.url = url
        self.timeout = timeout
