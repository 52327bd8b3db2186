"""
Probe backend endpoints through the gateway and report connectivity.

Runs every endpoint through a single gateway instance so the report carries
the same connection status and diagnostics the dashboard would see.
"""

import argparse
import asyncio
import json
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from shared.config import get_settings
from shared.logging import configure_logging, get_logger
from .gateway import ApiGateway, create_api_gateway


DEFAULT_ENDPOINTS = (
    "/health",
    "/api/data/market_insights",
    "/api/modules/access",
)

logger = get_logger("gateway.connection_check")


async def check_endpoint(gateway: ApiGateway, endpoint: str) -> Dict[str, Any]:
    """GET ``endpoint`` and summarize the outcome."""
    started = time.perf_counter()
    result = await gateway.get(endpoint)
    latency = time.perf_counter() - started

    summary: Dict[str, Any] = {
        "endpoint": endpoint,
        "ok": result.success,
        "status": result.status,
        "latency_ms": round(latency * 1000, 1),
    }
    if result.error is not None:
        summary["error"] = result.error.model_dump()

    if result.success:
        logger.info("Endpoint reachable", endpoint=endpoint, status=result.status, latency_ms=summary["latency_ms"])
    else:
        logger.warning("Endpoint check failed", endpoint=endpoint, status=result.status)

    return summary


async def check_endpoints(gateway: ApiGateway, endpoints: Sequence[str]) -> Dict[str, Any]:
    """Check ``endpoints`` one after another and build the full report."""
    results: List[Dict[str, Any]] = []
    for endpoint in endpoints:
        results.append(await check_endpoint(gateway, endpoint))

    return {
        "base_url": gateway.config.base_url,
        "ok": all(item["ok"] for item in results),
        "endpoints": results,
        "connection": gateway.get_connection_status().model_dump(),
        "diagnostics": gateway.get_diagnostics().model_dump(),
    }


async def run(base_url: Optional[str], endpoints: Sequence[str], timeout: Optional[float]) -> Dict[str, Any]:
    # probes must reach the network every time
    overrides: Dict[str, Any] = {"debug": True, "cache_enabled": False}
    if base_url:
        overrides["base_url"] = base_url
    if timeout is not None:
        overrides["timeout"] = timeout

    settings = get_settings(**overrides)

    async with create_api_gateway(settings) as gateway:
        return await check_endpoints(gateway, endpoints)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Check connectivity to the market insights backend.")
    parser.add_argument("--base-url", default=None, help="Backend base URL (defaults to MARKET_GATEWAY_BASE_URL)")
    parser.add_argument("--endpoint", action="append", dest="endpoints", default=None, help="Endpoint to check; repeatable")
    parser.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds")
    parser.add_argument("--log-level", default="warning", help="Log level")
    parser.add_argument("--output", type=Path, default=None, help="Optional path to write JSON report")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    configure_logging("connection_check", args.log_level)

    try:
        report = asyncio.run(run(args.base_url, args.endpoints or DEFAULT_ENDPOINTS, args.timeout))
    except KeyboardInterrupt:
        return 130
    except Exception as exc:  # pragma: no cover - CLI surface
        print(f"[connection-check] failed: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(report, indent=2))

    if args.output:
        args.output.write_text(json.dumps(report, indent=2))

    return 0 if report["ok"] else 1


if __name__ == "__main__":
    raise SystemExit(main())
