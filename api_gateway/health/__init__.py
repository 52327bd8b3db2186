"""
Connection health tracking for the gateway.
"""

from .connection_monitor import ConnectionMonitor, OFFLINE_THRESHOLD_SECONDS

__all__ = ["ConnectionMonitor", "OFFLINE_THRESHOLD_SECONDS"]
