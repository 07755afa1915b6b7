"""
Tests for the web/app.py Flask API.

Tests feed endpoints, status propagation, health and metrics.
"""

import sys
import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from cache_store import CacheStore
from exceptions import FetchError
from feed_service import FeedService
from web.app import create_app


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def service(fake_fetcher, tmp_path, clock):
    """Feed service backed by a fake fetcher and a temporary cache directory."""
    return FeedService(fake_fetcher, CacheStore(tmp_path), clock=clock)


@pytest.fixture
def client(service):
    """Create a Flask test client."""
    app = create_app(service)
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


# =============================================================================
# Feed endpoints
# =============================================================================


class TestFeedEndpoints:
    """Tests for /nyheter routes."""

    def test_default_feed(self, client, fake_fetcher, two_item_page):
        """GET /nyheter serves the national news feed."""
        fake_fetcher.html = two_item_page

        response = client.get("/nyheter")

        assert response.status_code == 200
        assert response.content_type == "application/rss+xml; charset=UTF-8"
        fake_fetcher.fetch.assert_called_once_with("https://www.hsb.se/nyheter")
        channel = ET.fromstring(response.data).find("channel")
        assert len(channel.findall("item")) == 2

    def test_default_feed_with_trailing_slash(self, client, fake_fetcher):
        assert client.get("/nyheter/").status_code == 200
        fake_fetcher.fetch.assert_called_once_with("https://www.hsb.se/nyheter")

    def test_region_feed(self, client, fake_fetcher):
        response = client.get("/nyheter/norr")

        assert response.status_code == 200
        fake_fetcher.fetch.assert_called_once_with("https://www.hsb.se/norr/om-hsb/nyheter")

    def test_cooperative_feed(self, client, fake_fetcher):
        response = client.get("/nyheter/norr/hagern")

        assert response.status_code == 200
        fake_fetcher.fetch.assert_called_once_with("http://www.hsb.se/norr/brf/hagern/nyheter")

    def test_too_deep_path_is_404(self, client, fake_fetcher):
        response = client.get("/nyheter/a/b/c")

        assert response.status_code == 404
        fake_fetcher.fetch.assert_not_called()

    def test_upstream_status_is_propagated(self, client, fake_fetcher):
        """An HTTP error from hsb.se is passed on to the reader."""
        fake_fetcher.fetch.side_effect = FetchError(404, "HTTP error 404")

        response = client.get("/nyheter/okand")

        assert response.status_code == 404
        assert response.content_type.startswith("text/plain")

    def test_unexpected_error_is_500(self, client, fake_fetcher):
        fake_fetcher.fetch.side_effect = RuntimeError("boom")
        assert client.get("/nyheter/norr").status_code == 500

    def test_cached_feed_is_served_without_fetching(self, client, fake_fetcher, clock):
        client.get("/nyheter/norr")
        clock.advance(seconds=30)
        client.get("/nyheter/norr")

        assert fake_fetcher.fetch.call_count == 1

    def test_cache_control_header(self, client):
        response = client.get("/nyheter")
        assert response.headers["Cache-Control"] == "public, max-age=60"

    def test_trace_id_is_echoed(self, client):
        response = client.get("/nyheter", headers={"X-Trace-ID": "abc123"})
        assert response.headers["X-Trace-ID"] == "abc123"

    def test_trace_id_is_generated(self, client):
        response = client.get("/nyheter")
        assert len(response.headers["X-Trace-ID"]) == 8


class TestUnknownRoutes:
    def test_unknown_route_returns_json_error(self, client):
        response = client.get("/nyheter-gammal")

        assert response.status_code == 404
        assert response.get_json() == {
            "error": "not_found",
            "message": "No route for /nyheter-gammal",
        }


# =============================================================================
# Health and metrics
# =============================================================================


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_check(self, client):
        """Health check should return cache statistics."""
        client.get("/nyheter/norr")

        response = client.get("/health")

        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "healthy"
        assert data["cache"]["entries"] == 1
        assert data["cache"]["dirty"] is True
        assert data["cache"]["refreshes"] == 1
        assert "version" in data


class TestMetricsEndpoint:
    """Tests for /metrics endpoint."""

    def test_metrics_format(self, client):
        """Metrics should be exposed in Prometheus text format."""
        client.get("/nyheter/norr")
        client.get("/nyheter/a/b/c")

        response = client.get("/metrics")

        assert response.status_code == 200
        text = response.get_data(as_text=True)
        assert 'hsb_news_feed_requests_total{outcome="ok",status="200"} 1.0' in text
        assert 'hsb_news_feed_requests_total{outcome="not_found",status="404"} 1.0' in text
        assert "hsb_news_cache_entries 1.0" in text
        assert "hsb_news_feed_request_duration_seconds_count 2.0" in text

    def test_apps_do_not_share_metrics(self, service, fake_fetcher):
        """Each application instance has its own registry."""
        first = create_app(service).test_client()
        second = create_app(service).test_client()

        first.get("/nyheter/norr")

        text = second.get("/metrics").get_data(as_text=True)
        assert "hsb_news_feed_requests_total{" not in text
