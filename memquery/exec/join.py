"""
memquery/exec/join.py

Row correlation (inner join) for the memquery engine.

Responsibilities:
- Merge rows of a primary scan with rows of zero or more secondary scans by
  JoinKey equality
- Drop primary rows whose join keys do not all find a match (inner join)
- Strip join keys from rows when there is nothing to correlate against

Join methods:
- Nested-loop ("scan"): for each key, walk every row of every secondary table
- Hash ("index"): build a JoinIndex once per secondary table, then look each key up in it

Both methods pick the first matching row of each secondary table, in scan
order, and therefore return the same rows in the same order.

Design notes:
- The matched fields are inserted at the position the join key occupied in
  the primary scan's requested columns.
- A primary row with no join keys passes through unchanged.
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from ..errors import ExecutionError
from ..index.join_index import JoinIndex
from ..model import Field, JoinKey, Row

logger = logging.getLogger(__name__)

JOIN_METHODS = ("index", "scan")

# Returns the first row of one secondary table matching a key, or None.
Matcher = Callable[[JoinKey], "Row | None"]


def _scan_matcher(rows: Sequence[Row]) -> Matcher:
    def first_match(key: JoinKey) -> Row | None:
        for row in rows:
            for other in row.join_keys:
                if key.matches(other):
                    return row
        return None

    return first_match


def _index_matcher(rows: Sequence[Row]) -> Matcher:
    idx = JoinIndex.build(rows)

    def first_match(key: JoinKey) -> Row | None:
        # Candidates share join id and key; matches() still rules out same-column hits.
        for pos in idx.lookup(key.join_id, key.value):
            row = idx.rows[pos]
            if any(key.matches(other) for other in row.join_keys):
                return row
        return None

    return first_match


def _join_row(row: Row, tables: list[Matcher]) -> Row | None:
    """
    Merge one primary row with its matches.

    Returns:
        The merged row, or None if any of its join keys has no match.
    """
    if not row.join_keys:
        return row

    keys = sorted(row.join_keys, key=lambda k: k.position)
    matched: list[list[Field]] = []
    for key in keys:
        found: list[Field] = []
        hit = False
        for first_match in tables:
            other = first_match(key)
            if other is not None:
                hit = True
                found.extend(other.fields)
        if not hit:
            return None
        matched.append(found)

    out: list[Field] = []
    seen = set()

    def emit(fields: list[Field]) -> None:
        for f in fields:
            if f.column not in seen:
                seen.add(f.column)
                out.append(f)

    ki = 0
    for i, f in enumerate(row.fields):
        while ki < len(keys) and keys[ki].position <= i:
            emit(matched[ki])
            ki += 1
        emit([f])
    while ki < len(keys):
        emit(matched[ki])
        ki += 1

    return Row(fields=tuple(out))


def correlate(primary: Sequence[Row], others: Sequence[Sequence[Row]], method: str = "index") -> list[Row]:
    """
    Correlate primary rows with the rows of the secondary tables.

    Args:
        primary: Rows of the primary scan.
        others: One row list per secondary table (may be empty).
        method: "index" or "scan".

    Returns:
        Merged rows without join keys, in primary order.

    Raises:
        ExecutionError: for an unknown method.
    """
    if method not in JOIN_METHODS:
        raise ExecutionError(f"Unknown join method: {method}")

    if not others:
        return [r.data_only() for r in primary]

    build = _index_matcher if method == "index" else _scan_matcher
    tables = [build(rows) for rows in others]

    out: list[Row] = []
    for row in primary:
        joined = _join_row(row, tables)
        if joined is not None:
            out.append(joined)

    logger.debug(
        "correlate (%s): %d primary rows, %d secondary tables, %d kept",
        method,
        len(primary),
        len(others),
        len(out),
    )
    return out
