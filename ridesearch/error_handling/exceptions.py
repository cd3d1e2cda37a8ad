"""
Exception taxonomy for the ride search engine.

Only InvalidFilterError, StoreUnavailableError and SearchTimeoutError are
expected to reach callers; the rest are recovered inside the engine.
"""


class RideSearchError(Exception):
    """Base class for ride search errors."""
    pass


class InvalidFilterError(RideSearchError, ValueError):
    """Malformed or out-of-range search filter values."""

    def __init__(self, message: str, errors: list = None):
        super().__init__(message)
        self.errors = errors or []


class StoreUnavailableError(RideSearchError):
    """Persistent ride store query failed or timed out."""
    pass


class CacheUnavailableError(RideSearchError):
    """Distributed cache tier failed."""
    pass


class GeometryError(RideSearchError, ValueError):
    """Degenerate or non-finite coordinates."""
    pass


class MappingUnavailableError(RideSearchError):
    """Mapping/routing collaborator failed or is not configured."""
    pass


class SearchTimeoutError(RideSearchError):
    """The caller-supplied search timeout elapsed."""
    pass
