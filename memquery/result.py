"""
memquery/result.py

Result objects returned by QueryEngine.execute() and delivered by paged_execute().

- ColumnMetadata: identity, alias and declared type of one output column
- ResultSet: ordered result rows plus column metadata in output order
- QueryResult: a ResultSet (complete or one page of it) with page bookkeeping

These are plain Python objects so they can be printed by the CLI or handed to
an orchestrator without extra dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .model import ColumnName

# alias -> value
ResultRow = dict[str, Any]


@dataclass(frozen=True)
class ColumnMetadata:
    """
    Output column description.

    Attributes:
        column: Source column identity.
        alias: Output name (explicit alias or the column name).
        type: Declared type name, or None when the plan declares none.
    """
    column: ColumnName
    alias: str
    type: str | None = None


@dataclass(frozen=True)
class ResultSet:
    """
    Represents the rows of a query.

    Attributes:
        columns: Column metadata in output order.
        rows: Result rows, each keyed by alias.
    """
    columns: list[ColumnMetadata]
    rows: list[ResultRow]

    @property
    def aliases(self) -> list[str]:
        return [c.alias for c in self.columns]

    def __len__(self) -> int:
        return len(self.rows)

    def tuples(self) -> list[list[Any]]:
        """Rows as value lists aligned with `aliases`."""
        return [[r.get(a) for a in self.aliases] for r in self.rows]


@dataclass(frozen=True)
class QueryResult:
    """
    Outcome of a query or one page of a paged query.

    Attributes:
        result_set: Rows and metadata.
        page: 0-based page index (0 for a non-paged result).
        last: Whether this is the final page.
        query_id: Caller-supplied identifier for paged delivery.
        stats: Optional execution stats (plan kind, join method, row counts, timing).
    """
    result_set: ResultSet
    page: int = 0
    last: bool = True
    query_id: str | None = None
    stats: dict[str, Any] | None = field(default=None, compare=False)

    @property
    def rows(self) -> list[ResultRow]:
        return self.result_set.rows

    @property
    def columns(self) -> list[ColumnMetadata]:
        return self.result_set.columns
