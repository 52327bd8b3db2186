"""
Test helper functions and factory methods for the API gateway.
"""

import json
from typing import Any, Dict, List, Optional, Union

import httpx

from api_gateway.gateway import ApiGateway
from api_gateway.models import CacheConfig, GatewayConfig


TEST_BASE_URL = "https://api.example.com"


class FakeClock:
    """Manually advanced clock for TTL and health tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedBackend:
    """``httpx.MockTransport`` handler replaying scripted outcomes.

    Each outcome is either ``(status_code, json_body)``, an ``httpx.Response``
    factory result or an exception instance to raise. The last outcome repeats
    once the script runs out.
    """

    def __init__(self, *outcomes: Union[tuple, Exception]):
        self.outcomes: List[Union[tuple, Exception]] = list(outcomes) or [(200, {})]
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self.outcomes) > 1:
            outcome = self.outcomes.pop(0)
        else:
            outcome = self.outcomes[0]

        if isinstance(outcome, Exception):
            raise outcome

        status_code, body = outcome[0], outcome[1]
        headers = outcome[2] if len(outcome) > 2 else None
        if body is None:
            return httpx.Response(status_code, headers=headers)
        if isinstance(body, str):
            return httpx.Response(status_code, text=body, headers=headers)
        return httpx.Response(status_code, json=body, headers=headers)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def last_json(self) -> Any:
        return json.loads(self.requests[-1].content)


def create_test_gateway(
    backend: ScriptedBackend,
    cache_config: Optional[CacheConfig] = None,
    clock: Optional[FakeClock] = None,
    **config: Any
) -> ApiGateway:
    """Build a gateway wired to ``backend`` instead of the network."""
    config.setdefault("base_url", TEST_BASE_URL)
    kwargs: Dict[str, Any] = {"transport": httpx.MockTransport(backend)}
    if clock is not None:
        kwargs["clock"] = clock
    return ApiGateway(GatewayConfig(**config), cache_config, **kwargs)


def create_test_procedures() -> List[Dict[str, Any]]:
    """Sample procedure rows as served by the backend."""
    return [
        {"id": 1, "name": "Dental Implants", "industry": "dental", "yearly_growth_percentage": 6.2},
        {"id": 2, "name": "Clear Aligners", "industry": "dental", "yearly_growth_percentage": 14.1},
        {"id": 3, "name": "Botox", "industry": "aesthetic", "yearly_growth_percentage": 8.7},
    ]
