"""
Error handling module for the ride search engine.

Provides the exception taxonomy and retry logic for store calls.
"""

from .exceptions import (
    RideSearchError,
    InvalidFilterError,
    StoreUnavailableError,
    CacheUnavailableError,
    GeometryError,
    MappingUnavailableError,
    SearchTimeoutError,
)
from .error_handler import ErrorHandler, get_backoff_delay, get_timeout

__all__ = [
    'RideSearchError',
    'InvalidFilterError',
    'StoreUnavailableError',
    'CacheUnavailableError',
    'GeometryError',
    'MappingUnavailableError',
    'SearchTimeoutError',
    'ErrorHandler',
    'get_backoff_delay',
    'get_timeout',
]
