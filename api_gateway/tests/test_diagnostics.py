"""
Unit tests for the diagnostics collector.
"""

import pytest
import httpx

from api_gateway.diagnostics import DiagnosticsCollector, UNKNOWN_ENDPOINT
from api_gateway.models import RequestDescriptor
from shared.errors import RequestFailedError
from shared.test_helpers import FakeClock


def failed_request(url: str, status_code: int) -> RequestFailedError:
    request = RequestDescriptor(method="GET", url=url)
    response = httpx.Response(status_code, request=httpx.Request("GET", f"https://api.example.com{url}"))
    return RequestFailedError(f"Request failed with status code {status_code}", request, response=response)


class TestDiagnosticsCollector:
    """Test cases for DiagnosticsCollector."""

    @pytest.fixture
    def clock(self):
        return FakeClock(start=1700000000.0)

    @pytest.fixture
    def collector(self, clock):
        return DiagnosticsCollector(clock=clock)

    def test_empty_summary(self, collector):
        summary = collector.get_diagnostics()

        assert summary.endpoints == []
        assert summary.total_requests == 0
        assert summary.total_errors == 0

    def test_query_string_stripped(self, collector):
        """Test requests to the same path aggregate regardless of query."""
        collector.record_request("/api/procedures?industry=dental")
        collector.record_request("/api/procedures?industry=aesthetic")

        summary = collector.get_diagnostics()

        assert len(summary.endpoints) == 1
        assert summary.endpoints[0].endpoint == "/api/procedures"
        assert summary.endpoints[0].request_count == 2

    @pytest.mark.parametrize("url", [None, "", 42])
    def test_unknown_endpoint(self, collector, url):
        """Test missing or non-string URLs map to the sentinel endpoint."""
        collector.record_request(url)

        assert collector.get_diagnostics().endpoints[0].endpoint == UNKNOWN_ENDPOINT

    def test_error_rate_and_last_error(self, collector, clock):
        """Test error counts, rate and last error details."""
        for _ in range(4):
            collector.record_request("/api/news")
        clock.advance(5)
        collector.record_error("/api/news", failed_request("/api/news", 503))

        endpoint = collector.get_diagnostics().endpoints[0]

        assert endpoint.error_count == 1
        assert endpoint.error_rate == 25.0
        assert endpoint.last_error.status == 503
        assert endpoint.last_error.time == 1700000005.0
        assert "503" in endpoint.last_error.message
        assert endpoint.last_request_time == 1700000000.0

    def test_error_without_request(self, collector):
        """Test an error on an unseen endpoint creates it with a zero error rate."""
        collector.record_error("/api/events", ValueError("boom"))

        endpoint = collector.get_diagnostics().endpoints[0]

        assert endpoint.request_count == 0
        assert endpoint.error_count == 1
        assert endpoint.error_rate == 0
        assert endpoint.last_error.status is None

    def test_totals_across_endpoints(self, collector):
        collector.record_request("/a")
        collector.record_request("/b")
        collector.record_request("/b")
        collector.record_error("/b", ValueError("boom"))

        summary = collector.get_diagnostics()

        assert summary.total_requests == 3
        assert summary.total_errors == 1
        assert [item.endpoint for item in summary.endpoints] == ["/a", "/b"]

    def test_reset(self, collector):
        collector.record_request("/a")

        collector.reset()

        assert collector.get_diagnostics().endpoints == []
