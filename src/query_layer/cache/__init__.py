"""In-memory request cache with staleness windows and in-flight deduplication."""

from query_layer.cache.entry import CacheEntry
from query_layer.cache.request_cache import RequestCache

__all__ = [
    "CacheEntry",
    "RequestCache",
]
