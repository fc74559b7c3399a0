"""
Per-strategy column validators.

Each validator owns both halves of its strategy: the aggregate expressions
emitted into the checksum query and the rule that compares the resulting
fields. Field suffixes are defined once per validator and used by both
halves.
"""

import math
from abc import ABC, abstractmethod
from typing import Callable

from sqlglot import exp

from .column import Column, ColumnMatchResult, expand_row_column
from .result import ChecksumResult
from .types import Strategy, Type

CHECKSUM = "checksum"
CARDINALITY_SUM = "cardinality_sum"
KEYS_CHECKSUM = "keys_checksum"
VALUES_CHECKSUM = "values_checksum"
SUM = "sum"
NAN_COUNT = "nan_count"
POS_INF_COUNT = "pos_inf_count"
NEG_INF_COUNT = "neg_inf_count"


def checksum_field(column: Column, suffix: str) -> str:
    return f"{column.name}_{suffix}"


def format_value(value) -> str:
    """Render a checksum value for diagnostics: digests in hex, None as null."""
    if value is None:
        return "null"
    return str(value)


def _function(name: str, *args: exp.Expression) -> exp.Anonymous:
    return exp.Anonymous(this=name, expressions=list(args))


def _ref(column: Column) -> exp.Expression:
    # Every aggregate gets its own copy; sqlglot nodes carry parent pointers
    return column.expression.copy()


def _checksum(expression: exp.Expression) -> exp.Anonymous:
    return _function("checksum", expression)


def _array_sort(expression: exp.Expression) -> exp.Anonymous:
    return _function("array_sort", expression)


def _filtered(aggregate: exp.Expression, condition: exp.Expression) -> exp.Filter:
    return exp.Filter(this=aggregate, expression=exp.Where(this=condition))


def _cardinality_sum(column: Column) -> exp.Coalesce:
    return exp.Coalesce(
        this=exp.Sum(this=_function("cardinality", _ref(column))),
        expressions=[exp.Literal.number(0)],
    )


def _aliased(column: Column, suffix: str, expression: exp.Expression) -> exp.Alias:
    return exp.alias_(expression, checksum_field(column, suffix), quoted=True)


class ColumnValidator(ABC):
    """Generates and compares the checksum fields of one strategy."""

    strategy: Strategy

    def __init__(self, strict_fields: bool = False):
        self.strict_fields = strict_fields

    @abstractmethod
    def generate_checksum_columns(self, column: Column) -> list[exp.Expression]:
        """Return the aliased aggregate expressions for the column."""

    @abstractmethod
    def validate(
        self,
        column: Column,
        control: ChecksumResult,
        test: ChecksumResult,
    ) -> list[ColumnMatchResult]:
        """Return one match result per leaf column."""

    def field_names(self, column: Column) -> list[str]:
        return [
            expression.alias
            for expression in self.generate_checksum_columns(column)
        ]


class SimpleColumnValidator(ColumnValidator):
    strategy = Strategy.SCALAR

    def generate_checksum_columns(self, column: Column) -> list[exp.Expression]:
        return [_aliased(column, CHECKSUM, _checksum(_ref(column)))]

    def validate(self, column, control, test):
        field = checksum_field(column, CHECKSUM)
        control_checksum = control.digest(field, self.strict_fields)
        test_checksum = test.digest(field, self.strict_fields)

        if control_checksum == test_checksum:
            return [ColumnMatchResult(True, column)]

        return [ColumnMatchResult(
            False,
            column,
            f"control(checksum: {format_value(control_checksum)}) "
            f"test(checksum: {format_value(test_checksum)})",
        )]


class FloatingPointColumnValidator(ColumnValidator):
    """
    Floating point columns are summarized by the sum of their finite values
    plus counts of NaN, +infinity and -infinity.

    Counts must match exactly. Sums are compared by mean against the
    absolute error margin when either mean is close to zero, and by relative
    error otherwise.
    """

    strategy = Strategy.FLOATING_POINT

    def __init__(
        self,
        relative_error_margin: float,
        absolute_error_margin: float,
        strict_fields: bool = False,
    ):
        super().__init__(strict_fields)
        self.relative_error_margin = relative_error_margin
        self.absolute_error_margin = absolute_error_margin

    def generate_checksum_columns(self, column: Column) -> list[exp.Expression]:
        if column.type.this == Type.DOUBLE:
            summand = _ref(column)
        else:
            summand = exp.Cast(this=_ref(column), to=exp.DataType.build("double"))

        infinity = _function("infinity")
        return [
            _aliased(column, SUM, _filtered(
                exp.Sum(this=summand),
                _function("is_finite", _ref(column)),
            )),
            _aliased(column, NAN_COUNT, _filtered(
                exp.Count(this=_ref(column)),
                _function("is_nan", _ref(column)),
            )),
            _aliased(column, POS_INF_COUNT, _filtered(
                exp.Count(this=_ref(column)),
                exp.EQ(this=_ref(column), expression=infinity.copy()),
            )),
            _aliased(column, NEG_INF_COUNT, _filtered(
                exp.Count(this=_ref(column)),
                exp.EQ(this=_ref(column), expression=exp.Neg(this=infinity.copy())),
            )),
        ]

    def validate(self, column, control, test):
        control_counts = self._counts(column, control)
        test_counts = self._counts(column, test)

        if control_counts != test_counts:
            return [ColumnMatchResult(
                False,
                column,
                f"control({self._format_counts(control_counts)}) "
                f"test({self._format_counts(test_counts)})",
            )]

        sum_field = checksum_field(column, SUM)
        control_sum = control.floating(sum_field, self.strict_fields)
        test_sum = test.floating(sum_field, self.strict_fields)
        return [self._compare_sums(column, control, test, control_sum, test_sum)]

    def _counts(self, column: Column, checksum: ChecksumResult) -> tuple:
        return tuple(
            checksum.integer(checksum_field(column, suffix), self.strict_fields)
            for suffix in (NAN_COUNT, POS_INF_COUNT, NEG_INF_COUNT)
        )

    @staticmethod
    def _format_counts(counts: tuple) -> str:
        nan, pos_inf, neg_inf = (format_value(count) for count in counts)
        return f"NaN: {nan}, +infinity: {pos_inf}, -infinity: {neg_inf}"

    @staticmethod
    def _mean(total: float, row_count: int) -> float:
        if row_count == 0:
            return total
        return total / row_count

    def _compare_sums(
        self,
        column: Column,
        control: ChecksumResult,
        test: ChecksumResult,
        control_sum: float | None,
        test_sum: float | None,
    ) -> ColumnMatchResult:
        if control_sum is None or test_sum is None:
            if control_sum is None and test_sum is None:
                return ColumnMatchResult(True, column)
            return ColumnMatchResult(
                False,
                column,
                f"control(sum: {format_value(control_sum)}) "
                f"test(sum: {format_value(test_sum)})",
            )

        if control_sum == test_sum:
            return ColumnMatchResult(True, column)

        # Overflowed or NaN sums cannot be compared by margin
        if not (math.isfinite(control_sum) and math.isfinite(test_sum)):
            return ColumnMatchResult(
                False,
                column,
                f"control(sum: {control_sum}) test(sum: {test_sum})",
            )

        # Near zero, means are compared against the absolute margin
        control_mean = self._mean(control_sum, control.row_count)
        test_mean = self._mean(test_sum, test.row_count)
        if (abs(control_mean) < self.absolute_error_margin
                or abs(test_mean) < self.absolute_error_margin):
            difference = abs(control_mean - test_mean)
            if difference > self.absolute_error_margin:
                return ColumnMatchResult(
                    False,
                    column,
                    f"control(mean: {control_mean}) test(mean: {test_mean}) "
                    f"difference: {difference}",
                )
            return ColumnMatchResult(True, column)

        difference = abs(control_sum - test_sum)
        relative_error = difference / (abs(control_sum) / 2 + abs(test_sum) / 2)
        if relative_error > self.relative_error_margin:
            return ColumnMatchResult(
                False,
                column,
                f"control(sum: {control_sum}) test(sum: {test_sum}) "
                f"relative error: {relative_error}",
            )
        return ColumnMatchResult(True, column)


class ArrayColumnValidator(ColumnValidator):
    """Arrays are summarized by a digest and the sum of their cardinalities."""

    @abstractmethod
    def _array_checksum(self, column: Column) -> exp.Expression:
        """Return the digest expression over the array column."""

    def generate_checksum_columns(self, column: Column) -> list[exp.Expression]:
        return [
            _aliased(column, CHECKSUM, self._array_checksum(column)),
            _aliased(column, CARDINALITY_SUM, _cardinality_sum(column)),
        ]

    def validate(self, column, control, test):
        checksum_name = checksum_field(column, CHECKSUM)
        cardinality_name = checksum_field(column, CARDINALITY_SUM)

        control_checksum = control.digest(checksum_name, self.strict_fields)
        test_checksum = test.digest(checksum_name, self.strict_fields)
        control_cardinality = control.integer(cardinality_name, self.strict_fields)
        test_cardinality = test.integer(cardinality_name, self.strict_fields)

        if control_checksum == test_checksum and control_cardinality == test_cardinality:
            return [ColumnMatchResult(True, column)]

        return [ColumnMatchResult(
            False,
            column,
            f"control(checksum: {format_value(control_checksum)}, "
            f"cardinality_sum: {format_value(control_cardinality)}) "
            f"test(checksum: {format_value(test_checksum)}, "
            f"cardinality_sum: {format_value(test_cardinality)})",
        )]


class OrderableArrayColumnValidator(ArrayColumnValidator):
    strategy = Strategy.ORDERABLE_ARRAY

    def _array_checksum(self, column):
        return _checksum(_array_sort(_ref(column)))


class UnorderableArrayColumnValidator(ArrayColumnValidator):
    strategy = Strategy.UNORDERABLE_ARRAY

    def _array_checksum(self, column):
        return _checksum(_ref(column))


class RowArrayColumnValidator(ArrayColumnValidator):
    strategy = Strategy.ROW_ARRAY

    def _array_checksum(self, column):
        # Sorting fails at execution time when row fields are not orderable
        return exp.Coalesce(
            this=_checksum(_function("try", _array_sort(_ref(column)))),
            expressions=[_checksum(_ref(column))],
        )


class MapColumnValidator(ColumnValidator):
    """
    Maps are summarized by a digest of the whole map, digests of its keys and
    values, and the sum of their cardinalities. Keys and values are sorted
    before digesting only when both types are orderable.
    """

    MAP_FIELDS = (CHECKSUM, KEYS_CHECKSUM, VALUES_CHECKSUM, CARDINALITY_SUM)

    def __init__(self, sort_elements: bool, strict_fields: bool = False):
        super().__init__(strict_fields)
        self.sort_elements = sort_elements
        self.strategy = Strategy.ORDERABLE_MAP if sort_elements else Strategy.NON_ORDERABLE_MAP

    def _elements(self, expression: exp.Expression) -> exp.Expression:
        if self.sort_elements:
            return _array_sort(expression)
        return expression

    def generate_checksum_columns(self, column: Column) -> list[exp.Expression]:
        keys = self._elements(_function("map_keys", _ref(column)))
        values = self._elements(_function("map_values", _ref(column)))
        return [
            _aliased(column, CHECKSUM, _checksum(_ref(column))),
            _aliased(column, KEYS_CHECKSUM, _checksum(keys)),
            _aliased(column, VALUES_CHECKSUM, _checksum(values)),
            _aliased(column, CARDINALITY_SUM, _cardinality_sum(column)),
        ]

    def _values(self, column: Column, checksum: ChecksumResult) -> tuple:
        return (
            checksum.digest(checksum_field(column, CHECKSUM), self.strict_fields),
            checksum.digest(checksum_field(column, KEYS_CHECKSUM), self.strict_fields),
            checksum.digest(checksum_field(column, VALUES_CHECKSUM), self.strict_fields),
            checksum.integer(checksum_field(column, CARDINALITY_SUM), self.strict_fields),
        )

    def _format(self, values: tuple) -> str:
        return ", ".join(
            f"{name}: {format_value(value)}"
            for name, value in zip(self.MAP_FIELDS, values)
        )

    def validate(self, column, control, test):
        control_values = self._values(column, control)
        test_values = self._values(column, test)

        if control_values == test_values:
            return [ColumnMatchResult(True, column)]

        return [ColumnMatchResult(
            False,
            column,
            f"control({self._format(control_values)}) test({self._format(test_values)})",
        )]


class RowColumnValidator(ColumnValidator):
    """
    Rows have no checksum of their own: every member field becomes a
    sub-column which is generated and validated with its own strategy.
    """

    strategy = Strategy.ROW

    def __init__(self, resolve: Callable[[Column], ColumnValidator], strict_fields: bool = False):
        super().__init__(strict_fields)
        self._resolve = resolve

    def generate_checksum_columns(self, column: Column) -> list[exp.Expression]:
        expressions = []
        for sub_column in expand_row_column(column):
            expressions.extend(self._resolve(sub_column).generate_checksum_columns(sub_column))
        return expressions

    def validate(self, column, control, test):
        results = []
        for sub_column in expand_row_column(column):
            results.extend(self._resolve(sub_column).validate(sub_column, control, test))
        return results


def create_column_validators(
    resolve: Callable[[Column], ColumnValidator],
    relative_error_margin: float,
    absolute_error_margin: float,
    strict_fields: bool = False,
) -> dict[Strategy, ColumnValidator]:
    """
    Build the validator table, one entry per Strategy.

    Args:
        resolve: Column to validator lookup used by the row validator to recurse
        relative_error_margin: Relative tolerance for floating point sums
        absolute_error_margin: Absolute tolerance for floating point means
        strict_fields: Raise on missing fields instead of reading them as null
    """
    validators = {
        Strategy.SCALAR: SimpleColumnValidator(strict_fields),
        Strategy.FLOATING_POINT: FloatingPointColumnValidator(
            relative_error_margin,
            absolute_error_margin,
            strict_fields,
        ),
        Strategy.ORDERABLE_ARRAY: OrderableArrayColumnValidator(strict_fields),
        Strategy.UNORDERABLE_ARRAY: UnorderableArrayColumnValidator(strict_fields),
        Strategy.ROW_ARRAY: RowArrayColumnValidator(strict_fields),
        Strategy.ORDERABLE_MAP: MapColumnValidator(sort_elements=True, strict_fields=strict_fields),
        Strategy.NON_ORDERABLE_MAP: MapColumnValidator(sort_elements=False, strict_fields=strict_fields),
        Strategy.ROW: RowColumnValidator(resolve, strict_fields),
    }
    return validators
