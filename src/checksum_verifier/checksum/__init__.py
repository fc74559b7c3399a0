"""
Checksum query generation and mismatch detection.

This submodule provides:
- Type classification into checksum strategies
- Checksum query generation for arbitrary (nested) column types
- Typed checksum results
- Type-aware comparison of control and test checksums
"""

from .column import (
    Column,
    ColumnMatchResult,
    delimited_identifier,
    dereference,
    expand_row_column,
    subscript,
)
from .errors import (
    ChecksumError,
    ChecksumFieldTypeError,
    InvalidColumnError,
    MissingFieldError,
    UnsupportedTypeError,
)
from .query import ChecksumQuery
from .result import ChecksumResult, Digest
from .types import (
    Strategy,
    array_type,
    classify,
    is_orderable,
    map_type,
    parse_type,
    row_type,
)
from .validator import ChecksumValidator

__all__ = [
    'ChecksumValidator',
    'ChecksumQuery',
    'ChecksumResult',
    'Digest',
    'Column',
    'ColumnMatchResult',
    'Strategy',
    'classify',
    'is_orderable',
    'array_type',
    'map_type',
    'row_type',
    'parse_type',
    'delimited_identifier',
    'dereference',
    'subscript',
    'expand_row_column',
    'ChecksumError',
    'UnsupportedTypeError',
    'InvalidColumnError',
    'ChecksumFieldTypeError',
    'MissingFieldError',
]
