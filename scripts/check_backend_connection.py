#!/usr/bin/env python3
"""
Check connectivity to the market insights backend.

Thin wrapper around ``api_gateway.connection_check`` for running from a
checkout; the same command is installed as ``market-gateway-check``.
"""

from api_gateway.connection_check import main


if __name__ == "__main__":
    raise SystemExit(main())
