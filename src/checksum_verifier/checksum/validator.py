"""
Checksum query generation and mismatch detection.

ChecksumValidator turns a list of typed columns into one aggregation query
per side and compares the two resulting ChecksumResults column by column.
Both operations dispatch through the same strategy table, so every field the
query produces is exactly a field the comparison reads.

Usage:
    validator = ChecksumValidator(VerifierConfig())
    query = validator.build_checksum_query("warehouse.orders", columns)
    ...  # run query.sql() against control and test
    mismatches = validator.compare(columns, control_result, test_result)
"""

import logging

from sqlglot import exp

from ..config import VerifierConfig
from .column import Column, ColumnMatchResult, validate_columns
from .query import ChecksumQuery, to_relation
from .result import ChecksumResult
from .types import Strategy, classify
from .validators import ColumnValidator, create_column_validators

logger = logging.getLogger(__name__)


class ChecksumValidator:
    """Builds checksum queries and detects mismatched columns."""

    def __init__(self, config: VerifierConfig | None = None):
        self.config = config or VerifierConfig()
        self._validators = create_column_validators(
            self.validator_for,
            relative_error_margin=self.config.relative_error_margin,
            absolute_error_margin=self.config.absolute_error_margin,
            strict_fields=self.config.strict_fields,
        )

    def strategy_for(self, column: Column) -> Strategy:
        return classify(column.type, column.name)

    def validator_for(self, column: Column) -> ColumnValidator:
        """
        Resolve the validator handling a column's type

        Raises:
            UnsupportedTypeError: If the column type has no checksum strategy
        """
        return self._validators[self.strategy_for(column)]

    def build_checksum_query(
        self,
        source: str | exp.Table,
        columns: list[Column],
    ) -> ChecksumQuery:
        """
        Generate the checksum query for a relation

        Args:
            source: Relation name (e.g. 'catalog.schema.table') or table expression
            columns: Top-level columns to summarize

        Returns:
            ChecksumQuery selecting count(*) and every checksum field

        Raises:
            InvalidColumnError: If the column list is malformed
            UnsupportedTypeError: If any column or nested field type is unsupported
        """
        validate_columns(columns)
        relation = to_relation(source)

        checksum_columns = []
        for column in columns:
            checksum_columns.extend(self.validator_for(column).generate_checksum_columns(column))

        select = exp.select(exp.Count(this=exp.Star()), *checksum_columns).from_(relation)
        field_names = tuple(expression.alias for expression in checksum_columns)

        logger.debug(
            f"Generated checksum query for {relation.sql()}: "
            f"{len(columns)} columns, {len(field_names)} checksum fields"
        )
        return ChecksumQuery(select=select, source=relation, field_names=field_names)

    def field_names(self, columns: list[Column]) -> list[str]:
        """Names of the checksum fields generated for the columns, in query order."""
        validate_columns(columns)
        names = []
        for column in columns:
            names.extend(self.validator_for(column).field_names(column))
        return names

    def validate(
        self,
        columns: list[Column],
        control: ChecksumResult,
        test: ChecksumResult,
    ) -> list[ColumnMatchResult]:
        """
        Compare every leaf column, matched or not

        Row columns contribute one result per leaf sub-column.
        """
        validate_columns(columns)
        results = []
        for column in columns:
            results.extend(self.validator_for(column).validate(column, control, test))
        return results

    def compare(
        self,
        columns: list[Column],
        control: ChecksumResult,
        test: ChecksumResult,
    ) -> dict[Column, ColumnMatchResult]:
        """
        Find the mismatched (sub-)columns between control and test

        Args:
            columns: The columns the checksum query was built from
            control: Result of the control execution
            test: Result of the test execution

        Returns:
            Mapping of mismatched leaf column to its match result; empty when
            everything matched

        Raises:
            UnsupportedTypeError: If any column or nested field type is unsupported
            ChecksumFieldTypeError: If a checksum field holds the wrong kind of value
            MissingFieldError: If strict_fields is set and an expected field is absent
        """
        mismatches = {}
        for result in self.validate(columns, control, test):
            if result.matched:
                continue
            logger.info(f"Column mismatch: {result.column.name}: {result.message}")
            mismatches[result.column] = result
        return mismatches
