"""
memquery/exec/assembler.py

Builds the typed ResultSet from correlated rows.

Output columns follow the Select step's declared order. Each cell is looked up
by exact column identity (alias -> ColumnName map built once per query).
"""

from __future__ import annotations

from typing import Sequence

from ..errors import ExecutionError, PlanError
from ..model import ColumnName, Row
from ..plan import UNLIMITED, Select
from ..result import ColumnMetadata, ResultRow, ResultSet


def column_metadata(select: Select) -> list[ColumnMetadata]:
    """
    Output column metadata in selector order.

    Raises:
        PlanError: if two selectors resolve to the same alias.
    """
    out: list[ColumnMetadata] = []
    seen: set[str] = set()
    for col in select.outputs:
        alias = select.alias_of(col)
        if alias in seen:
            raise PlanError(f"Duplicate output alias: {alias}")
        seen.add(alias)
        out.append(ColumnMetadata(column=col, alias=alias, type=select.types.get(col)))
    return out


def _to_result_row(row: Row, columns: list[tuple[str, ColumnName]], strict: bool) -> ResultRow:
    values = {f.column: f.value for f in row.fields}
    out: ResultRow = {}
    for alias, col in columns:
        if col in values:
            out[alias] = values[col]
        elif strict:
            raise ExecutionError(f"Output column {col} (alias {alias}) was not produced by any scan")
    return out


def assemble(select: Select, limit: int, rows: Sequence[Row], strict: bool = True) -> ResultSet:
    """
    Project rows onto the Select step and apply the limit.

    Args:
        select: Output step (selectors, aliases, types).
        limit: Maximum rows, or UNLIMITED (-1).
        rows: Correlated rows, in output order.
        strict: Raise when a selector's column is missing from a row; when
                False the cell is left out of that row.

    Returns:
        ResultSet with at most `limit` rows.

    Raises:
        PlanError: invalid limit or duplicate alias.
        ExecutionError: missing column in strict mode.
    """
    if limit < UNLIMITED:
        raise PlanError(f"Invalid limit: {limit}")

    metadata = column_metadata(select)
    by_alias = [(m.alias, m.column) for m in metadata]

    take = len(rows) if limit == UNLIMITED else min(len(rows), limit)
    result_rows = [_to_result_row(r, by_alias, strict) for r in rows[:take]]
    return ResultSet(columns=metadata, rows=result_rows)
