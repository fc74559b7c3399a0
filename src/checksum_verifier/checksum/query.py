"""
Checksum query value.

Wraps the generated sqlglot SELECT together with the names of the fields it
produces, in projection order, so executors and the detector agree on the
layout of the result row.
"""

from dataclasses import dataclass

from sqlglot import exp


@dataclass(frozen=True)
class ChecksumQuery:
    """A single aggregation query: count(*) followed by the checksum fields."""

    select: exp.Select
    source: exp.Table
    field_names: tuple[str, ...]

    def sql(self, dialect: str = "presto", pretty: bool = False) -> str:
        """Render the query text for the given sqlglot dialect."""
        return self.select.sql(dialect=dialect, pretty=pretty)

    def __str__(self) -> str:
        return self.sql()


def to_relation(source: str | exp.Table) -> exp.Table:
    """Accept a dotted relation name or an existing table expression."""
    if isinstance(source, exp.Table):
        return source.copy()
    return exp.to_table(source)
