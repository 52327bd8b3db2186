"""
Shared utilities for the Market Insights API gateway.

This package aggregates the building blocks the gateway is assembled from:

- config: Gateway settings via pydantic-settings
- logging: Structured logging with correlation ids
- metrics: Prometheus metrics helpers
- errors: Error envelope model and gateway exceptions
- retry: Retry policy, retry predicate and backoff

Apart from test_helpers, modules in shared/ must not import api_gateway at
module level.
"""
