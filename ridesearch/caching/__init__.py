"""
Multi-tier caching for search results.

Local TTL map, optional Redis tier, and the typed SearchCache on top.
"""

from .cache_keys import SEARCH_KEY_FIELDS, build_search_cache_key
from .distributed_cache import RedisSearchCache
from .local_cache import CacheEntry, CacheSweeper, LocalTTLCache
from .tiered_cache import SearchCache, TieredCache

__all__ = [
    'SEARCH_KEY_FIELDS',
    'build_search_cache_key',
    'RedisSearchCache',
    'CacheEntry',
    'CacheSweeper',
    'LocalTTLCache',
    'SearchCache',
    'TieredCache',
]
