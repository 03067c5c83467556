"""
Metrics module for the ments. blog platform.

This module provides centralized metrics collection on top of
``prometheus_client`` with a private registry, so repeated application
creation in tests never collides with the global default registry.

Features:
- Request count and latency tracking
- Named counters created on first use (``metrics.increment('newsletter.sent')``)
- Histogram observations for long running operations such as broadcasts
- A ``/metrics`` exposition endpoint when enabled
"""

import time
from typing import Dict, Optional, Tuple

from flask import Flask, Response, g, request
from prometheus_client import (
    CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, generate_latest
)

# Custom registry for isolation and testing
registry = CollectorRegistry()

REQUEST_COUNT = Counter(
    'app_http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'http_status'],
    registry=registry
)

REQUEST_LATENCY = Histogram(
    'app_http_request_latency_seconds',
    'Histogram of HTTP request latency in seconds',
    ['method', 'endpoint'],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
    registry=registry
)


class Metrics:
    """
    Thin facade over named Prometheus collectors.

    Services record events by dotted name; the dots are turned into
    underscores and the configured prefix is prepended. Collectors are cached
    per name and label set.
    """

    def __init__(self, prefix: str = 'blog') -> None:
        self.prefix = prefix
        self.registry = registry
        self._counters: Dict[Tuple[str, Tuple[str, ...]], Counter] = {}
        self._histograms: Dict[Tuple[str, Tuple[str, ...]], Histogram] = {}

    def _metric_name(self, name: str) -> str:
        return f"{self.prefix}_{name.replace('.', '_').replace('-', '_')}"

    def increment(self, name: str, value: float = 1, labels: Optional[Dict[str, str]] = None) -> None:
        """Increment the counter called ``name``."""
        labels = labels or {}
        key = (name, tuple(sorted(labels)))
        counter = self._counters.get(key)
        if counter is None:
            counter = Counter(
                self._metric_name(name),
                f'{name} events',
                list(key[1]),
                registry=self.registry
            )
            self._counters[key] = counter
        if labels:
            counter.labels(**labels).inc(value)
        else:
            counter.inc(value)

    def observe(self, name: str, value: float, labels: Optional[Dict[str, str]] = None) -> None:
        """Record ``value`` in the histogram called ``name``."""
        labels = labels or {}
        key = (name, tuple(sorted(labels)))
        histogram = self._histograms.get(key)
        if histogram is None:
            histogram = Histogram(
                self._metric_name(name),
                f'{name} observations',
                list(key[1]),
                registry=self.registry
            )
            self._histograms[key] = histogram
        if labels:
            histogram.labels(**labels).observe(value)
        else:
            histogram.observe(value)

    def init_app(self, app: Flask) -> None:
        """
        Register request instrumentation and the exposition endpoint.

        Args:
            app: Flask application
        """
        if not app.config.get('METRICS_ENABLED', False):
            return

        @app.before_request
        def _start_timer():
            g.metrics_start_time = time.time()

        @app.after_request
        def _record_request(response):
            endpoint = request.endpoint or 'unknown'
            REQUEST_COUNT.labels(
                method=request.method,
                endpoint=endpoint,
                http_status=response.status_code
            ).inc()
            start = g.get('metrics_start_time')
            if start is not None:
                REQUEST_LATENCY.labels(method=request.method, endpoint=endpoint).observe(
                    time.time() - start
                )
            return response

        endpoint_path = app.config.get('METRICS_ENDPOINT_PATH', '/metrics')

        @app.route(endpoint_path)
        def metrics_view():
            return Response(generate_latest(self.registry), mimetype=CONTENT_TYPE_LATEST)

        app.logger.info("Metrics endpoint registered at %s", endpoint_path)


metrics = Metrics()
