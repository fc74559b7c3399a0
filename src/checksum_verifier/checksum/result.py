"""
Checksum query results.

A ChecksumResult is the single row produced by running a checksum query:
the row count plus one value per generated field. Values are restricted to
int, float, Digest or None so that comparisons never see loosely-typed data.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Sequence

from .errors import ChecksumFieldTypeError, MissingFieldError


@dataclass(frozen=True)
class Digest:
    """Opaque binary digest produced by checksum(); compared by value only."""

    value: bytes

    def __post_init__(self):
        if isinstance(self.value, bytes):
            return
        if not isinstance(self.value, (bytearray, memoryview)):
            raise ChecksumFieldTypeError(
                f"Digest must be binary, got {type(self.value).__name__}"
            )
        object.__setattr__(self, "value", bytes(self.value))

    def hex(self) -> str:
        return self.value.hex()

    def __str__(self) -> str:
        return self.hex()


def _normalize_value(name: str, value: Any) -> int | float | Digest | None:
    if value is None or isinstance(value, Digest):
        return value
    if isinstance(value, bool):
        raise ChecksumFieldTypeError(f"Field {name} holds a boolean: {value!r}")
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return Digest(bytes(value))
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    raise ChecksumFieldTypeError(
        f"Field {name} holds an unsupported value of type {type(value).__name__}"
    )


@dataclass(frozen=True)
class ChecksumResult:
    """
    Row count and checksum fields of one checksum query execution

    Fields that are absent read as None unless strict lookups are requested.
    """

    row_count: int
    fields: dict[str, int | float | Digest | None] = field(default_factory=dict)

    def __post_init__(self):
        if isinstance(self.row_count, bool) or not isinstance(self.row_count, int):
            raise ChecksumFieldTypeError(f"Row count must be an integer: {self.row_count!r}")
        if self.row_count < 0:
            raise ValueError(f"Row count must not be negative: {self.row_count}")

        normalized = {
            name: _normalize_value(name, value)
            for name, value in self.fields.items()
        }
        object.__setattr__(self, "fields", normalized)

    @classmethod
    def from_row(cls, field_names: Sequence[str], row: Sequence[Any]) -> "ChecksumResult":
        """
        Build a result from a fetched row whose first column is the row count

        Args:
            field_names: Column names of the row (e.g. from cursor.description)
            row: The fetched values, in the same order

        Returns:
            ChecksumResult

        Raises:
            ValueError: If names and values do not line up or the row is empty
        """
        if len(field_names) != len(row):
            raise ValueError(
                f"Row has {len(row)} values but {len(field_names)} field names"
            )
        if not row:
            raise ValueError("Checksum row is empty, expected at least the row count")

        row_count = _normalize_value("count", row[0])
        return cls(
            row_count=row_count,
            fields=dict(zip(field_names[1:], row[1:])),
        )

    def __contains__(self, name: str) -> bool:
        return name in self.fields

    def get(self, name: str, strict: bool = False) -> int | float | Digest | None:
        """
        Look up a field value

        Args:
            name: Generated field name
            strict: Raise MissingFieldError instead of returning None when absent
        """
        if name not in self.fields:
            if strict:
                raise MissingFieldError(name)
            return None
        return self.fields[name]

    def digest(self, name: str, strict: bool = False) -> Digest | None:
        value = self.get(name, strict)
        if value is not None and not isinstance(value, Digest):
            raise ChecksumFieldTypeError(f"Field {name} is not a digest: {value!r}")
        return value

    def integer(self, name: str, strict: bool = False) -> int | None:
        value = self.get(name, strict)
        if value is not None and not isinstance(value, int):
            raise ChecksumFieldTypeError(f"Field {name} is not an integer: {value!r}")
        return value

    def floating(self, name: str, strict: bool = False) -> float | None:
        value = self.get(name, strict)
        if value is None:
            return None
        if isinstance(value, Digest):
            raise ChecksumFieldTypeError(f"Field {name} is not numeric: {value!r}")
        return float(value)
