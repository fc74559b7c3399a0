"""
Column and column match records.

A Column is a named, typed expression in the checksum query. Top-level
columns come from the caller; row-typed columns are decomposed into
synthetic sub-columns named <name>$<field> (named fields) or
<name>$$col<position> (anonymous fields).
"""

from dataclasses import dataclass

from sqlglot import exp

from .errors import InvalidColumnError
from .types import row_fields

FIELD_SEPARATOR = "$"
POSITIONAL_FIELD_PREFIX = "$$col"


@dataclass(frozen=True)
class Column:
    """A column of the relation being verified."""

    name: str
    expression: exp.Expression
    type: exp.DataType

    @classmethod
    def create(cls, name: str, expression: exp.Expression, data_type: exp.DataType) -> "Column":
        """
        Create a caller-supplied column, rejecting reserved names.

        Raises:
            InvalidColumnError: If the name is empty or contains '$'
        """
        validate_column_name(name)
        return cls(name, expression, data_type)

    @classmethod
    def of(cls, name: str, data_type: exp.DataType) -> "Column":
        """Create a top-level column referenced by its quoted name."""
        return cls.create(name, delimited_identifier(name), data_type)


@dataclass(frozen=True)
class ColumnMatchResult:
    """Verdict for one (sub-)column; message is empty when matched."""

    matched: bool
    column: Column
    message: str = ""


def delimited_identifier(name: str) -> exp.Column:
    return exp.column(name, quoted=True)


def dereference(base: exp.Expression, field_name: str) -> exp.Dot:
    """Reference a named row field: base.field"""
    return exp.Dot(this=base.copy(), expression=exp.to_identifier(field_name))


def subscript(base: exp.Expression, position: int) -> exp.Bracket:
    """Reference a row field by its 1-based position: base[position]"""
    return exp.Bracket(
        this=base.copy(),
        expressions=[exp.Literal.number(position)],
        offset=1,
    )


def validate_column_name(name: str) -> None:
    if not name:
        raise InvalidColumnError("Column name must not be empty")
    if FIELD_SEPARATOR in name:
        raise InvalidColumnError(
            f"Column name {name!r} contains the reserved separator '{FIELD_SEPARATOR}'"
        )


def validate_columns(columns: list[Column]) -> None:
    """
    Check a caller-supplied column list before building or comparing.

    Raises:
        InvalidColumnError: On reserved or duplicate names
    """
    seen = set()
    for column in columns:
        if not isinstance(column, Column):
            raise InvalidColumnError(f"Expected Column, got {type(column).__name__}")
        validate_column_name(column.name)
        if column.name in seen:
            raise InvalidColumnError(f"Duplicate column name: {column.name}")
        seen.add(column.name)


def expand_row_column(column: Column) -> list[Column]:
    """
    Decompose a row column into one sub-column per member field.

    The builder and the detector both call this, so the sub-columns they see
    are identical (same name, expression and type).
    """
    sub_columns = []
    for position, field in enumerate(row_fields(column.type), start=1):
        if field.name is not None:
            name = f"{column.name}{FIELD_SEPARATOR}{field.name}"
            expression = dereference(column.expression, field.name)
        else:
            name = f"{column.name}{POSITIONAL_FIELD_PREFIX}{position}"
            expression = subscript(column.expression, position)
        sub_columns.append(Column(name, expression, field.type.copy()))
    return sub_columns
