"""
Utility modules for the checksum verifier

Provides:
- logging: structured logging setup
- retry: backoff decorators for query execution
- metrics: Prometheus metrics for verification runs
- tracing: OpenTelemetry spans
"""

__all__ = ["logging", "retry", "metrics", "tracing"]
