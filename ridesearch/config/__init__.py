"""Configuration module for the ride search engine."""

from .search_config import (
    SEARCH_CONFIG,
    SearchSettings,
    CacheConfig,
    SearchLimitsConfig,
    RetryConfig,
    ConnectionConfig,
    get_search_settings,
)

__all__ = [
    'SEARCH_CONFIG',
    'SearchSettings',
    'CacheConfig',
    'SearchLimitsConfig',
    'RetryConfig',
    'ConnectionConfig',
    'get_search_settings',
]
