"""
HSB News RSS - web front end
Flask application serving the RSS feeds, health and metrics
"""

import sys
import time as _time
import uuid
from pathlib import Path

from flask import Flask, Response, g, jsonify, request
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from feed_service import FeedService
from logging_config import get_logger
from models import ErrorResponse, HealthResponse

APP_VERSION = "1.1.0"

logger = get_logger(__name__)


class FeedMetrics:
    """Prometheus metrics of one application instance (own registry, safe in tests)"""

    def __init__(self):
        self.registry = CollectorRegistry(auto_describe=True)
        self.requests = Counter(
            "hsb_news_feed_requests_total",
            "Feed requests by outcome",
            ["outcome", "status"],
            registry=self.registry,
        )
        self.latency = Histogram(
            "hsb_news_feed_request_duration_seconds",
            "Feed request latency in seconds",
            buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
            registry=self.registry,
        )
        self.cache_entries = Gauge(
            "hsb_news_cache_entries", "Number of cached feeds", registry=self.registry
        )
        self.cache_dirty = Gauge(
            "hsb_news_cache_dirty", "1 if the cache has unsaved changes", registry=self.registry
        )
        self.cache_hits = Gauge(
            "hsb_news_cache_hits", "Requests answered from the cache", registry=self.registry
        )
        self.cache_refreshes = Gauge(
            "hsb_news_cache_refreshes", "Feed refreshes performed", registry=self.registry
        )
        self.cache_flushes = Gauge(
            "hsb_news_cache_flushes", "Successful cache writes", registry=self.registry
        )

    def update_cache(self, service: FeedService):
        stats = service.cache.stats()
        self.cache_entries.set(stats.entries)
        self.cache_dirty.set(1 if stats.dirty else 0)
        self.cache_hits.set(stats.hits)
        self.cache_refreshes.set(stats.refreshes)
        self.cache_flushes.set(stats.flushes)


def create_app(service: FeedService) -> Flask:
    """
    Build the Flask application around a feed service.

    The service owns the cache; starting and stopping its persistence is
    left to the caller.
    """
    app = Flask("hsb_news")
    metrics = FeedMetrics()
    app.extensions["feed_service"] = service
    app.extensions["feed_metrics"] = metrics

    @app.before_request
    def before_request():
        """Start timing and assign trace ID"""
        g.start_time = _time.time()
        g.trace_id = request.headers.get("X-Trace-ID") or str(uuid.uuid4())[:8]

    @app.after_request
    def after_request(response):
        """Log request completion with timing, status, and trace ID"""
        trace_id = getattr(g, "trace_id", "unknown")
        response.headers["X-Trace-ID"] = trace_id

        if request.path in ("/health", "/metrics"):
            return response

        duration = _time.time() - getattr(g, "start_time", _time.time())
        logger.info(
            "Request processed",
            extra={
                "trace_id": trace_id,
                "method": request.method,
                "path": request.path,
                "status_code": response.status_code,
                "duration_ms": round(duration * 1000, 2),
                "remote_addr": request.remote_addr,
            },
        )
        return response

    @app.route("/nyheter/", strict_slashes=False)
    @app.route("/nyheter/<path:subpath>")
    def news_feed(subpath=""):
        start = _time.time()
        result = service.handle_feed_request(subpath)
        metrics.requests.labels(outcome=result.outcome, status=str(result.status)).inc()
        metrics.latency.observe(_time.time() - start)

        response = Response(result.body, status=result.status, content_type=result.content_type)
        if result.status == 200:
            response.headers["Cache-Control"] = f"public, max-age={int(service.settings.refresh_window_seconds)}"
        return response

    @app.errorhandler(404)
    def not_found(error):
        body = ErrorResponse(error="not_found", message=f"No route for {request.path}")
        return jsonify(body.model_dump()), 404

    @app.route("/health")
    def health_check():
        """Health check endpoint for monitoring."""
        health = HealthResponse(status="healthy", cache=service.cache.stats(), version=APP_VERSION)
        return jsonify(health.model_dump())

    @app.route("/metrics")
    def metrics_endpoint():
        """Prometheus-compatible metrics endpoint."""
        metrics.update_cache(service)
        return Response(generate_latest(metrics.registry), mimetype=CONTENT_TYPE_LATEST)

    return app
