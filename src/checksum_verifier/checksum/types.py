"""
Type classification for checksum generation.

Column types are sqlglot DataType expressions. This module answers the
questions the checksum engine asks of the type system (is a type orderable,
is it floating point, what are its element/key/value/field types) and maps
every supported type to exactly one checksum Strategy.
"""

from dataclasses import dataclass
from enum import Enum

from sqlglot import exp

from .errors import UnsupportedTypeError

Type = exp.DataType.Type


class Strategy(Enum):
    """Checksum handling strategies, one per category of column type."""

    SCALAR = "scalar"
    FLOATING_POINT = "floating_point"
    ORDERABLE_ARRAY = "orderable_array"
    UNORDERABLE_ARRAY = "unorderable_array"
    ROW_ARRAY = "row_array"
    ORDERABLE_MAP = "orderable_map"
    NON_ORDERABLE_MAP = "non_orderable_map"
    ROW = "row"


FLOATING_POINT_TYPES = frozenset({Type.DOUBLE, Type.FLOAT})

# Types without a total order; arrays and rows inherit orderability from their members
UNORDERABLE_TYPES = frozenset({
    Type.MAP,
    Type.JSON,
    Type.JSONB,
    Type.HLLSKETCH,
    Type.GEOMETRY,
    Type.GEOGRAPHY,
    Type.SUPER,
    Type.VARIANT,
    Type.OBJECT,
})

# Types that cannot be fed to checksum() at all
UNSUPPORTED_TYPES = frozenset({Type.UNKNOWN, Type.NULL, Type.HLLSKETCH})

BIGINT = exp.DataType.build("bigint")
INTEGER = exp.DataType.build("int")
SMALLINT = exp.DataType.build("smallint")
BOOLEAN = exp.DataType.build("boolean")
VARCHAR = exp.DataType.build("varchar")
VARBINARY = exp.DataType.build("varbinary")
DOUBLE = exp.DataType.build("double")
REAL = exp.DataType(this=Type.FLOAT)
DATE = exp.DataType.build("date")
TIMESTAMP = exp.DataType.build("timestamp")
JSON = exp.DataType.build("json")


@dataclass(frozen=True)
class RowField:
    """A member of a row type; name is None for anonymous (positional) fields."""

    name: str | None
    type: exp.DataType


def array_type(element: exp.DataType) -> exp.DataType:
    """Build array(element)."""
    return exp.DataType(this=Type.ARRAY, expressions=[element.copy()], nested=True)


def map_type(key: exp.DataType, value: exp.DataType) -> exp.DataType:
    """Build map(key, value)."""
    return exp.DataType(
        this=Type.MAP,
        expressions=[key.copy(), value.copy()],
        nested=True,
    )


def row_type(*fields) -> exp.DataType:
    """
    Build a row type.

    Args:
        *fields: Either (name, type) pairs, where name may be None for an
            anonymous field, or bare DataType values for anonymous fields

    Returns:
        STRUCT DataType with ColumnDef members for named fields
    """
    members = []
    for field in fields:
        if isinstance(field, exp.DataType):
            name, field_type = None, field
        else:
            name, field_type = field

        if name is None:
            members.append(field_type.copy())
        else:
            members.append(
                exp.ColumnDef(this=exp.to_identifier(name), kind=field_type.copy())
            )

    return exp.DataType(this=Type.STRUCT, expressions=members, nested=True)


def parse_type(signature: str, dialect: str = "presto") -> exp.DataType:
    """Parse a type signature such as 'array(map(int, varchar))'."""
    return exp.DataType.build(signature, dialect=dialect)


def is_row(data_type: exp.DataType) -> bool:
    return data_type.this == Type.STRUCT


def is_array(data_type: exp.DataType) -> bool:
    return data_type.this == Type.ARRAY


def is_map(data_type: exp.DataType) -> bool:
    return data_type.this == Type.MAP


def is_floating_point(data_type: exp.DataType) -> bool:
    return data_type.this in FLOATING_POINT_TYPES


def element_type(data_type: exp.DataType) -> exp.DataType:
    """Return the element type of an array type."""
    if not is_array(data_type) or len(data_type.expressions) != 1:
        raise UnsupportedTypeError(data_type)
    return data_type.expressions[0]


def map_types(data_type: exp.DataType) -> tuple[exp.DataType, exp.DataType]:
    """Return the (key, value) types of a map type."""
    if not is_map(data_type) or len(data_type.expressions) != 2:
        raise UnsupportedTypeError(data_type)
    key, value = data_type.expressions
    return key, value


def row_fields(data_type: exp.DataType) -> list[RowField]:
    """
    Return the members of a row type in declaration order.

    Named members are ColumnDef nodes, anonymous members are bare DataType
    nodes.

    Raises:
        UnsupportedTypeError: If the type is not a row or a member has no type
    """
    if not is_row(data_type) or not data_type.expressions:
        raise UnsupportedTypeError(data_type)

    fields = []
    for member in data_type.expressions:
        if isinstance(member, exp.ColumnDef):
            kind = member.args.get("kind")
            if not isinstance(kind, exp.DataType):
                raise UnsupportedTypeError(data_type)
            fields.append(RowField(member.name, kind))
        elif isinstance(member, exp.DataType):
            fields.append(RowField(None, member))
        else:
            raise UnsupportedTypeError(data_type)
    return fields


def _members(data_type: exp.DataType) -> list[exp.DataType]:
    if is_row(data_type):
        return [field.type for field in row_fields(data_type)]
    if is_array(data_type):
        return [element_type(data_type)]
    if is_map(data_type):
        return list(map_types(data_type))
    return []


def is_orderable(data_type: exp.DataType) -> bool:
    """Whether the type has a total order (and can therefore be sorted)."""
    if data_type.this in UNORDERABLE_TYPES:
        return False
    return all(is_orderable(member) for member in _members(data_type))


def ensure_supported(data_type: exp.DataType, column_name: str | None = None) -> None:
    """
    Check that the type and every nested type have a checksum strategy.

    Raises:
        UnsupportedTypeError: On the first unsupported type found
    """
    if not isinstance(data_type, exp.DataType) or data_type.this in UNSUPPORTED_TYPES:
        raise UnsupportedTypeError(data_type, column_name)

    try:
        members = _members(data_type)
    except UnsupportedTypeError as e:
        raise UnsupportedTypeError(data_type, column_name) from e

    for member in members:
        ensure_supported(member, column_name)


def classify(data_type: exp.DataType, column_name: str | None = None) -> Strategy:
    """
    Map a column type to its checksum strategy.

    Args:
        data_type: Column type
        column_name: Column name, only used in error messages

    Returns:
        The Strategy handling this type

    Raises:
        UnsupportedTypeError: If the type or a nested type has no strategy
    """
    ensure_supported(data_type, column_name)

    if is_floating_point(data_type):
        return Strategy.FLOATING_POINT

    if is_array(data_type):
        element = element_type(data_type)
        if is_row(element):
            return Strategy.ROW_ARRAY
        if is_orderable(element):
            return Strategy.ORDERABLE_ARRAY
        return Strategy.UNORDERABLE_ARRAY

    if is_map(data_type):
        key, value = map_types(data_type)
        if is_orderable(key) and is_orderable(value):
            return Strategy.ORDERABLE_MAP
        return Strategy.NON_ORDERABLE_MAP

    if is_row(data_type):
        return Strategy.ROW

    return Strategy.SCALAR
