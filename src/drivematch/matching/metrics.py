# -*- coding: utf-8 -*-
"""Prometheus metrics for the matching lifecycle engine."""
from __future__ import annotations

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram


class MatchingMeters:
    """Wraps Prometheus primitives behind a friendly interface."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or REGISTRY
        self._operations = Counter(
            "matching_operations_total",
            "Matching operations grouped by outcome",
            ("operation", "outcome"),
            registry=self._registry,
        )
        self._rejections = Counter(
            "matching_rejections_total",
            "Rejected matching operations per error code",
            ("code",),
            registry=self._registry,
        )
        self._delivery_failures = Counter(
            "matching_delivery_failures_total",
            "Failed post-apply side effects per kind",
            ("kind",),
            registry=self._registry,
        )
        self._duration = Histogram(
            "matching_operation_duration_seconds",
            "Wall time spent inside matching operations",
            ("operation",),
            registry=self._registry,
            buckets=(0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5),
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record_success(self, operation: str, duration: float) -> None:
        self._operations.labels(operation=operation, outcome="success").inc()
        self._duration.labels(operation=operation).observe(duration)

    def record_rejection(self, operation: str, code: str) -> None:
        self._operations.labels(operation=operation, outcome="rejected").inc()
        self._rejections.labels(code=code).inc()

    def record_delivery_failure(self, kind: str, count: int = 1) -> None:
        if count:
            self._delivery_failures.labels(kind=kind).inc(count)


__all__ = ["MatchingMeters"]
