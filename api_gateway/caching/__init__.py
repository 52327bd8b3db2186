"""
Gateway caching package.

Holds the in-memory response cache the gateway consults before dispatching
GET requests. Entries are short-lived (TTL) and bounded in count; call
``ApiGateway.clear_cache()`` for explicit invalidation.
"""

from .response_cache import CacheEntry, ResponseCache

__all__ = ["CacheEntry", "ResponseCache"]
