"""Failures raised while resolving a symbol's daily series.

Everything :meth:`trendy.stock.Stock.range` can raise derives from
:class:`ResolutionError`, so callers can catch resolver failures uniformly.
"""

from __future__ import annotations


class ResolutionError(RuntimeError):
    """Base class for failures of the memory -> store -> remote chain."""


class ProviderError(ResolutionError):
    """Raised when the remote quote provider could not supply a span."""


class TransportError(ProviderError):
    """Raised on connection failures, timeouts and non-2xx HTTP statuses."""


class ProviderRejection(ProviderError):
    """Raised when the provider answers with an exception envelope."""

    def __init__(self, message: str, exception_type: str = "", details: str = ""):
        super().__init__(message)
        self.exception_type = exception_type
        self.details = details


class NoDataError(ProviderError):
    """Raised when the provider answers successfully but without positions."""


class ParseError(ProviderError):
    """Raised when a response body or date token cannot be decoded."""


class StoreError(ResolutionError):
    """Raised when reading from or writing to the persistent store fails."""


__all__ = [
    "ResolutionError",
    "ProviderError",
    "TransportError",
    "ProviderRejection",
    "NoDataError",
    "ParseError",
    "StoreError",
]
