"""
Verifier configuration.

Holds the tolerance margins used when comparing floating point checksums
and the options of the verification workflow. Values come from keyword
arguments, environment variables or a YAML file.

Usage:
    from checksum_verifier.config import VerifierConfig

    config = VerifierConfig.from_env()
    config = VerifierConfig.from_yaml("/etc/checksum-verifier/verifier.yaml")
"""

import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_RELATIVE_ERROR_MARGIN = 1e-4
DEFAULT_ABSOLUTE_ERROR_MARGIN = 1e-12

ENV_PREFIX = "VERIFIER_"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class VerifierConfig:
    """
    Checksum verification settings

    Attributes:
        relative_error_margin: Max relative error between floating point sums
        absolute_error_margin: Max difference between floating point means near zero
        strict_fields: Raise MissingFieldError for absent checksum fields
        dialect: sqlglot dialect used to render checksum queries
        run_concurrently: Execute control and test queries in parallel
        query_timeout: Seconds to wait for the concurrent control and test queries together (None = no limit)
    """

    relative_error_margin: float = DEFAULT_RELATIVE_ERROR_MARGIN
    absolute_error_margin: float = DEFAULT_ABSOLUTE_ERROR_MARGIN
    strict_fields: bool = False
    dialect: str = "presto"
    run_concurrently: bool = True
    query_timeout: float | None = None

    def __post_init__(self):
        if self.relative_error_margin < 0:
            raise ValueError(
                f"relative_error_margin must not be negative: {self.relative_error_margin}"
            )
        if self.absolute_error_margin < 0:
            raise ValueError(
                f"absolute_error_margin must not be negative: {self.absolute_error_margin}"
            )
        if self.query_timeout is not None and self.query_timeout <= 0:
            raise ValueError(f"query_timeout must be positive: {self.query_timeout}")

    def with_overrides(self, **overrides: Any) -> "VerifierConfig":
        return replace(self, **overrides)

    @classmethod
    def from_mapping(cls, values: dict[str, Any]) -> "VerifierConfig":
        """
        Build a config from a plain mapping

        Raises:
            ValueError: On unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown verifier settings: {', '.join(sorted(unknown))}")
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: str) -> "VerifierConfig":
        """
        Load config from a YAML file containing a mapping of settings

        Args:
            path: Path to the YAML file

        Returns:
            VerifierConfig
        """
        with open(path) as f:
            values = yaml.safe_load(f) or {}

        if not isinstance(values, dict):
            raise ValueError(f"Verifier config {path} must contain a mapping")

        logger.info(f"Loaded verifier config from {path}")
        return cls.from_mapping(values)

    @classmethod
    def from_env(cls) -> "VerifierConfig":
        """
        Load config from environment variables

        Environment variables:
            VERIFIER_RELATIVE_ERROR_MARGIN: Relative error margin (default: 1e-4)
            VERIFIER_ABSOLUTE_ERROR_MARGIN: Absolute error margin (default: 1e-12)
            VERIFIER_STRICT_FIELDS: Fail on missing checksum fields (default: false)
            VERIFIER_DIALECT: SQL dialect for rendering (default: presto)
            VERIFIER_RUN_CONCURRENTLY: Run control and test in parallel (default: true)
            VERIFIER_QUERY_TIMEOUT: Query timeout in seconds (default: none)
        """
        values: dict[str, Any] = {}

        relative = os.getenv(f"{ENV_PREFIX}RELATIVE_ERROR_MARGIN")
        if relative:
            values["relative_error_margin"] = float(relative)

        absolute = os.getenv(f"{ENV_PREFIX}ABSOLUTE_ERROR_MARGIN")
        if absolute:
            values["absolute_error_margin"] = float(absolute)

        strict = os.getenv(f"{ENV_PREFIX}STRICT_FIELDS")
        if strict:
            values["strict_fields"] = _parse_bool(strict)

        dialect = os.getenv(f"{ENV_PREFIX}DIALECT")
        if dialect:
            values["dialect"] = dialect

        concurrent = os.getenv(f"{ENV_PREFIX}RUN_CONCURRENTLY")
        if concurrent:
            values["run_concurrently"] = _parse_bool(concurrent)

        timeout = os.getenv(f"{ENV_PREFIX}QUERY_TIMEOUT")
        if timeout:
            values["query_timeout"] = float(timeout)

        return cls(**values)
