"""
In-memory response cache for gateway requests.
"""

import json
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx

from shared.logging import get_logger
from ..models import CacheConfig, RequestDescriptor


@dataclass
class CacheEntry:
    response: httpx.Response
    timestamp: float


class ResponseCache:
    """TTL cache of responses keyed by a canonical request serialization.

    Eviction on overflow is by insertion order (oldest entry first), not by
    recency of use.
    """

    def __init__(self, config: Optional[CacheConfig] = None, clock: Callable[[], float] = time.monotonic):
        self.config = config or CacheConfig()
        self.logger = get_logger("gateway.response_cache")
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, request: RequestDescriptor) -> bool:
        key = self.generate_key(request)
        return key is not None and key in self._entries

    @staticmethod
    def generate_key(request: RequestDescriptor) -> Optional[str]:
        """Derive the cache key for ``request``.

        Returns ``None`` when the request cannot be serialized.
        """
        try:
            key_parts: Dict[str, Any] = {
                "url": request.url or "",
                "method": (request.method or "get").lower(),
            }
            if request.params:
                key_parts["params"] = request.params
            if request.body is not None:
                key_parts["body"] = request.body
            return json.dumps(key_parts, sort_keys=True, separators=(",", ":"), default=str)
        except (TypeError, ValueError, AttributeError):
            return None

    def is_cacheable(self, request: RequestDescriptor) -> bool:
        if not self.config.enabled or request.skip_cache:
            return False

        method = (request.method or "GET").upper()
        if method != "GET" and not self.config.cache_non_get_requests:
            return False

        return True

    def get(self, request: RequestDescriptor) -> Optional[httpx.Response]:
        """Return the cached response for ``request`` or ``None`` on a miss."""
        if not self.is_cacheable(request):
            return None

        key = self.generate_key(request)
        if key is None:
            return None

        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._clock() - entry.timestamp >= self.config.ttl:
            del self._entries[key]
            self.logger.debug("Cache entry expired", url=request.url)
            return None

        return entry.response

    def set(self, request: RequestDescriptor, response: httpx.Response) -> None:
        """Store ``response`` for ``request`` when the request is cacheable."""
        if not self.is_cacheable(request):
            return

        key = self.generate_key(request)
        if key is None:
            return

        # an overwritten key keeps its original insertion position
        self._entries[key] = CacheEntry(response=response, timestamp=self._clock())

        max_size = self.config.max_size
        if max_size and len(self._entries) > max_size:
            self._entries.popitem(last=False)
            self.logger.debug("Cache size limit reached, evicted oldest entry", max_size=max_size)

    def clear(self) -> None:
        self._entries.clear()

    def update_config(self, config: Dict[str, Any]) -> None:
        """Merge ``config`` into the cache configuration.

        Disabling the cache drops every entry.
        """
        self.config = self.config.model_copy(update=dict(config))

        if not self.config.enabled:
            self.clear()
