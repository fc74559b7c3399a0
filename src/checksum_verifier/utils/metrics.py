"""
Prometheus metrics for checksum verification runs.

Usage:
    from checksum_verifier.utils.metrics import MetricsPublisher, VerificationMetrics

    MetricsPublisher(port=9091).start()
    metrics = VerificationMetrics()
    metrics.record_run(status="SUCCEEDED", duration=12.5)
"""

import logging
import time
from typing import Callable, Optional, TypeVar

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_or_create_metric(
    metric_factory: Callable[[], T],
    metric_name: str,
    registry: CollectorRegistry = REGISTRY,
) -> T:
    """
    Create a metric, or return the one already registered under that name

    Args:
        metric_factory: Callable that creates the metric
        metric_name: Registered name used for the lookup on collision
        registry: Prometheus registry the factory registers into
    """
    try:
        return metric_factory()
    except ValueError:
        existing = registry._names_to_collectors.get(metric_name)
        if existing is not None:
            return existing
        raise


class VerificationMetrics:
    """
    Metrics for checksum verification runs

    Tracks run outcomes, durations, and mismatches per checksum strategy.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """
        Args:
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.registry = registry or REGISTRY
        registry = self.registry

        self.runs_total = get_or_create_metric(
            lambda: Counter(
                "checksum_verification_runs_total",
                "Total number of checksum verification runs",
                ["status"],
                registry=registry,
            ),
            "checksum_verification_runs_total",
            registry,
        )

        self.duration_seconds = get_or_create_metric(
            lambda: Histogram(
                "checksum_verification_duration_seconds",
                "Duration of checksum verification runs in seconds",
                buckets=(1, 5, 10, 30, 60, 120, 300, 600, 1800, 3600),
                registry=registry,
            ),
            "checksum_verification_duration_seconds",
            registry,
        )

        self.last_run_timestamp = get_or_create_metric(
            lambda: Gauge(
                "checksum_verification_last_run_timestamp",
                "Timestamp of the last checksum verification run",
                registry=registry,
            ),
            "checksum_verification_last_run_timestamp",
            registry,
        )

        self.column_mismatch_total = get_or_create_metric(
            lambda: Counter(
                "checksum_column_mismatch_total",
                "Total number of mismatched leaf columns",
                ["strategy"],
                registry=registry,
            ),
            "checksum_column_mismatch_total",
            registry,
        )

        self.row_count_mismatch_total = get_or_create_metric(
            lambda: Counter(
                "checksum_row_count_mismatch_total",
                "Total number of row count mismatches between control and test",
                registry=registry,
            ),
            "checksum_row_count_mismatch_total",
            registry,
        )

    def record_run(self, status: str, duration: float) -> None:
        """
        Record a finished verification run

        Args:
            status: Run status (SUCCEEDED, ROW_COUNT_MISMATCH, COLUMN_MISMATCH, FAILED)
            duration: Duration in seconds
        """
        self.runs_total.labels(status=status).inc()
        self.duration_seconds.observe(duration)
        self.last_run_timestamp.set(time.time())

        logger.debug(f"Recorded verification run: status={status}, duration={duration:.2f}s")

    def record_column_mismatch(self, strategy: str) -> None:
        self.column_mismatch_total.labels(strategy=strategy).inc()

    def record_row_count_mismatch(self, control_count: int, test_count: int) -> None:
        self.row_count_mismatch_total.inc()
        logger.warning(
            f"Row count mismatch: control={control_count}, test={test_count}, "
            f"difference={test_count - control_count}"
        )


class MetricsPublisher:
    """
    Exposes a registry on an HTTP /metrics endpoint
    """

    def __init__(self, port: int = 9091, registry: Optional[CollectorRegistry] = None):
        self.port = port
        self.registry = registry or REGISTRY
        self._server_started = False

    def start(self) -> None:
        """Start the metrics HTTP server"""
        if self._server_started:
            logger.warning(f"Metrics server already running on port {self.port}")
            return

        try:
            start_http_server(self.port, registry=self.registry)
        except OSError as e:
            if "Address already in use" in str(e):
                raise RuntimeError(
                    f"Metrics server port {self.port} is already in use"
                ) from e
            raise

        self._server_started = True
        logger.info(f"Metrics server started on port {self.port}")

    def is_started(self) -> bool:
        return self._server_started
