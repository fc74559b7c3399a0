"""
Exceptions raised by the checksum engine.

Mismatches are never raised: they are returned as ColumnMatchResult values.
Only structural problems (unsupported types, malformed columns, malformed
checksum results) are errors.
"""


class ChecksumError(Exception):
    """Base class for all checksum engine errors."""

    pass


class UnsupportedTypeError(ChecksumError):
    """Raised when a column type (or a nested type) has no checksum strategy."""

    def __init__(self, data_type, column_name: str | None = None):
        self.data_type = data_type
        self.column_name = column_name
        rendered = data_type.sql() if hasattr(data_type, "sql") else str(data_type)
        if column_name:
            message = f"Unsupported type for column {column_name}: {rendered}"
        else:
            message = f"Unsupported type: {rendered}"
        super().__init__(message)


class InvalidColumnError(ChecksumError, ValueError):
    """Raised for malformed column lists (empty, reserved or duplicate names)."""

    pass


class ChecksumFieldTypeError(ChecksumError, TypeError):
    """Raised when a checksum field holds a value of the wrong kind."""

    pass


class MissingFieldError(ChecksumError, KeyError):
    """Raised in strict mode when an expected checksum field is absent."""

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(field_name)

    def __str__(self) -> str:
        return f"Checksum field not found: {self.field_name}"
