"""
Pytest configuration and fixtures for checksum verifier tests.
Provides shared column types, checksum results and metrics registries.
"""

import os

import pytest
from prometheus_client import CollectorRegistry

from checksum_verifier.checksum import ChecksumValidator, Column
from checksum_verifier.checksum.types import (
    BIGINT,
    DOUBLE,
    INTEGER,
    REAL,
    VARCHAR,
    array_type,
    map_type,
    row_type,
)
from checksum_verifier.config import VerifierConfig
from checksum_verifier.utils.metrics import VerificationMetrics

RELATIVE_ERROR_MARGIN = 1e-4
ABSOLUTE_ERROR_MARGIN = 1e-12


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(autouse=True)
def clear_verifier_env_vars(monkeypatch) -> None:
    """Keep VERIFIER_* settings of the host from leaking into tests."""
    for key in list(os.environ):
        if key.startswith("VERIFIER_"):
            monkeypatch.delenv(key)


@pytest.fixture
def config() -> VerifierConfig:
    return VerifierConfig(
        relative_error_margin=RELATIVE_ERROR_MARGIN,
        absolute_error_margin=ABSOLUTE_ERROR_MARGIN,
    )


@pytest.fixture
def validator(config: VerifierConfig) -> ChecksumValidator:
    return ChecksumValidator(config)


@pytest.fixture
def registry() -> CollectorRegistry:
    """Isolated Prometheus registry per test."""
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> VerificationMetrics:
    return VerificationMetrics(registry=registry)


@pytest.fixture
def bigint_column() -> Column:
    return Column.of("bigint", BIGINT)


@pytest.fixture
def varchar_column() -> Column:
    return Column.of("varchar", VARCHAR)


@pytest.fixture
def double_column() -> Column:
    return Column.of("double", DOUBLE)


@pytest.fixture
def real_column() -> Column:
    return Column.of("real", REAL)


@pytest.fixture
def int_array_column() -> Column:
    return Column.of("int_array", array_type(INTEGER))


@pytest.fixture
def row_array_column() -> Column:
    return Column.of("row_array", array_type(row_type(INTEGER, VARCHAR)))


@pytest.fixture
def map_column() -> Column:
    return Column.of("map", map_type(INTEGER, VARCHAR))


@pytest.fixture
def map_non_orderable_column() -> Column:
    return Column.of("map_non_orderable", map_type(VARCHAR, map_type(INTEGER, VARCHAR)))


@pytest.fixture
def row_column() -> Column:
    """row(i int, varchar, d double, a array(int), r row(double, b bigint))"""
    return Column.of(
        "row",
        row_type(
            ("i", INTEGER),
            VARCHAR,
            ("d", DOUBLE),
            ("a", array_type(INTEGER)),
            ("r", row_type(DOUBLE, ("b", BIGINT))),
        ),
    )


@pytest.fixture(autouse=True)
def no_trace_export(monkeypatch) -> None:
    """Spans are recorded in tests but never exported."""
    monkeypatch.delenv("OTLP_ENDPOINT", raising=False)
    monkeypatch.delenv("TRACE_CONSOLE", raising=False)
