"""
Unit tests for the gateway response cache.
"""

import pytest
import httpx

from api_gateway.caching import ResponseCache
from api_gateway.models import CacheConfig, RequestDescriptor
from shared.test_helpers import FakeClock


def get_request(url: str = "/users/1", **kwargs) -> RequestDescriptor:
    return RequestDescriptor(method="GET", url=url, **kwargs)


class TestResponseCache:
    """Test cases for ResponseCache."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def cache(self, clock):
        """Create ResponseCache with a 60 second TTL."""
        return ResponseCache(CacheConfig(ttl=60.0, max_size=3), clock=clock)

    @pytest.fixture
    def response(self):
        return httpx.Response(200, json={"id": 1, "name": "Test"})

    def test_set_and_get(self, cache, response):
        """Test a stored GET response is returned unchanged."""
        cache.set(get_request(), response)

        assert cache.get(get_request()) is response

    def test_miss_for_unknown_request(self, cache):
        """Test lookups for unseen requests miss."""
        assert cache.get(get_request("/users/2")) is None

    def test_key_ignores_param_order(self):
        """Test structurally equal requests derive the same key."""
        first = get_request(params={"industry": "dental", "filters": {"a": 1, "b": [1, 2]}})
        second = get_request(params={"filters": {"b": [1, 2], "a": 1}, "industry": "dental"})

        assert ResponseCache.generate_key(first) == ResponseCache.generate_key(second)

    def test_key_method_is_case_insensitive(self):
        """Test the method does not change the key by case."""
        upper = RequestDescriptor(method="GET", url="/users/1")
        lower = RequestDescriptor(method="get", url="/users/1")

        assert ResponseCache.generate_key(upper) == ResponseCache.generate_key(lower)

    def test_key_distinguishes_body_and_params(self):
        """Test different params or bodies derive different keys."""
        base = ResponseCache.generate_key(get_request(params={"page": 1}))

        assert base != ResponseCache.generate_key(get_request(params={"page": 2}))
        assert base != ResponseCache.generate_key(get_request(params={"page": 1}, body={"q": "x"}))

    def test_key_tolerates_unserializable_values(self):
        """Test key derivation never raises."""
        request = get_request(params={1: "int key", "a": "str key"})

        assert ResponseCache.generate_key(request) is None

    def test_unserializable_request_is_a_miss(self, cache, response):
        """Test malformed requests are treated as non-cacheable."""
        request = get_request(params={1: "int key", "a": "str key"})

        cache.set(request, response)

        assert cache.get(request) is None
        assert len(cache) == 0

    def test_entry_expires_at_ttl(self, cache, clock, response):
        """Test entries are valid before the TTL and removed at it."""
        cache.set(get_request(), response)

        clock.advance(59)
        assert cache.get(get_request()) is response

        clock.advance(1)
        assert cache.get(get_request()) is None
        assert len(cache) == 0

    def test_max_size_evicts_oldest_inserted(self, cache, response):
        """Test overflow evicts the earliest-inserted entry."""
        for index in range(4):
            cache.set(get_request(f"/users/{index}"), response)

        assert len(cache) == 3
        assert cache.get(get_request("/users/0")) is None
        assert cache.get(get_request("/users/3")) is response

    def test_eviction_ignores_recent_reads(self, cache, response):
        """Test reading an entry does not protect it from eviction."""
        for index in range(3):
            cache.set(get_request(f"/users/{index}"), response)

        cache.get(get_request("/users/0"))
        cache.set(get_request("/users/3"), response)

        assert cache.get(get_request("/users/0")) is None
        assert cache.get(get_request("/users/1")) is response

    def test_overwrite_keeps_insertion_position(self, cache):
        """Test overwriting an entry does not move it to the newest slot."""
        for index in range(3):
            cache.set(get_request(f"/users/{index}"), httpx.Response(200, json={"v": index}))

        refreshed = httpx.Response(200, json={"v": "new"})
        cache.set(get_request("/users/0"), refreshed)
        assert len(cache) == 3

        cache.set(get_request("/users/3"), httpx.Response(200, json={"v": 3}))
        assert cache.get(get_request("/users/0")) is None

    def test_non_get_not_cached_by_default(self, cache, response):
        """Test POST responses are ignored unless enabled."""
        request = RequestDescriptor(method="POST", url="/users", body={"name": "x"})

        cache.set(request, response)

        assert cache.get(request) is None

    def test_non_get_cached_when_enabled(self, clock, response):
        """Test cache_non_get_requests allows other methods."""
        cache = ResponseCache(CacheConfig(cache_non_get_requests=True), clock=clock)
        request = RequestDescriptor(method="POST", url="/search", body={"q": "implants"})

        cache.set(request, response)

        assert cache.get(request) is response

    def test_skip_cache_requests_bypass(self, cache, response):
        """Test descriptors flagged skip_cache are never stored."""
        request = get_request("/health", skip_cache=True)

        cache.set(request, response)

        assert len(cache) == 0

    def test_disabled_cache(self, clock, response):
        """Test a disabled cache stores nothing."""
        cache = ResponseCache(CacheConfig(enabled=False), clock=clock)

        cache.set(get_request(), response)

        assert cache.get(get_request()) is None

    def test_update_config_disabling_clears(self, cache, response):
        """Test disabling via update_config drops entries."""
        cache.set(get_request(), response)

        cache.update_config({"enabled": False})

        assert len(cache) == 0
        assert cache.config.enabled is False

    def test_update_config_merges(self, cache):
        """Test partial updates keep other settings."""
        cache.update_config({"ttl": 5.0})

        assert cache.config.ttl == 5.0
        assert cache.config.max_size == 3

    def test_clear(self, cache, response):
        """Test clear empties the cache."""
        cache.set(get_request("/a"), response)
        cache.set(get_request("/b"), response)

        cache.clear()

        assert len(cache) == 0
