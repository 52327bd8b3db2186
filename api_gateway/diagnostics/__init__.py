"""
Per-endpoint request diagnostics.
"""

from .collector import DiagnosticsCollector, DiagnosticsSummary, EndpointDiagnostics, UNKNOWN_ENDPOINT

__all__ = ["DiagnosticsCollector", "DiagnosticsSummary", "EndpointDiagnostics", "UNKNOWN_ENDPOINT"]
