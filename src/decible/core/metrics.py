"""
Prometheus metrics for decible.

Metrics Exposed:
    decible_generations_total              - Generations by mode and status
    decible_generation_duration_seconds    - Generation latency (provider + storage)
    decible_audio_bytes_total              - Audio bytes returned by the provider
    decible_catalog_queries_total          - Catalog queries, filtered or not
    decible_preview_cache_total            - Preview cache lookups by result
    decible_upstream_failures_total        - Provider/backend failures by target

All metrics live in a private CollectorRegistry so that importing the
package never collides with other collectors in the same process.

Usage:
    from decible.core.metrics import metrics

    metrics.record_generation("raw", "success", duration=0.8, audio_bytes=48213)
    content, content_type = metrics.get_metrics_response()
"""
from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)


class DecibleMetrics:
    """
    Metrics collector.

    A disabled collector (``enabled=False``) ignores every record call and
    serves a one-line placeholder from ``get_metrics_response()``.
    """

    def __init__(self, enabled: bool = True):
        self._enabled = enabled
        self._registry = CollectorRegistry()

        self._generations_total = Counter(
            "decible_generations_total",
            "Total generation requests",
            ["mode", "status"],
            registry=self._registry,
        )
        self._generation_duration = Histogram(
            "decible_generation_duration_seconds",
            "Generation duration in seconds",
            ["mode"],
            buckets=(0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
            registry=self._registry,
        )
        self._audio_bytes_total = Counter(
            "decible_audio_bytes_total",
            "Total audio bytes returned by the provider",
            registry=self._registry,
        )
        self._catalog_queries = Counter(
            "decible_catalog_queries_total",
            "Total catalog queries",
            ["filtered"],
            registry=self._registry,
        )
        self._preview_cache = Counter(
            "decible_preview_cache_total",
            "Voice preview cache lookups",
            ["result"],
            registry=self._registry,
        )
        self._upstream_failures = Counter(
            "decible_upstream_failures_total",
            "Failed calls to external services",
            ["target"],
            registry=self._registry,
        )
        self._rejections = Counter(
            "decible_generation_rejections_total",
            "Generation requests refused before synthesis",
            ["reason"],
            registry=self._registry,
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    def record_generation(self, mode: str, status: str, duration: float = 0.0, audio_bytes: int = 0) -> None:
        """
        Record a finished generation.

        Args:
            mode: "raw" (bytes returned) or "stored" (uploaded + recorded)
            status: "success" or "error"
            duration: Wall time in seconds
            audio_bytes: Size of the generated payload
        """
        if not self._enabled:
            return
        self._generations_total.labels(mode=mode, status=status).inc()
        if duration > 0:
            self._generation_duration.labels(mode=mode).observe(duration)
        if audio_bytes > 0:
            self._audio_bytes_total.inc(audio_bytes)

    def record_catalog_query(self, filtered: bool) -> None:
        if not self._enabled:
            return
        self._catalog_queries.labels(filtered="yes" if filtered else "no").inc()

    def record_preview_cache(self, result: str) -> None:
        """Record a preview cache lookup ("hit" or "miss")."""
        if not self._enabled:
            return
        self._preview_cache.labels(result=result).inc()

    def record_upstream_failure(self, target: str) -> None:
        """Record a failed call to "provider", "storage" or "database"."""
        if not self._enabled:
            return
        self._upstream_failures.labels(target=target).inc()

    def record_rejection(self, reason: str) -> None:
        """Record a refused generation ("no_profile", "insufficient_credits" or "rate_limited")."""
        if not self._enabled:
            return
        self._rejections.labels(reason=reason).inc()

    def get_metrics_response(self) -> tuple[bytes, str]:
        """
        Get metrics in Prometheus text format.

        Returns:
            Tuple of (content_bytes, content_type)
        """
        if not self._enabled:
            return (b"# Metrics disabled\n", "text/plain; charset=utf-8")
        return (generate_latest(self._registry), CONTENT_TYPE_LATEST)


# Process-wide collector: from decible.core.metrics import metrics
metrics = DecibleMetrics()
