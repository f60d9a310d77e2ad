"""
memquery/exec/paging.py

Splits a materialized ResultSet into ordered pages pushed to a callback.
"""

from __future__ import annotations

import logging
from typing import Callable

from ..errors import ExecutionError
from ..result import QueryResult, ResultRow, ResultSet

logger = logging.getLogger(__name__)

ResultCallback = Callable[[QueryResult], None]


def _page(result: ResultSet, rows: list[ResultRow], page: int, last: bool, query_id: str | None) -> QueryResult:
    return QueryResult(
        result_set=ResultSet(columns=result.columns, rows=rows),
        page=page,
        last=last,
        query_id=query_id,
    )


def paginate(result: ResultSet, page_size: int, callback: ResultCallback, query_id: str | None = None) -> int:
    """
    Deliver `result` to `callback` in pages of at most `page_size` rows.

    A full buffer is emitted as soon as it reaches `page_size`; whatever is left
    after the last row (possibly nothing) goes out as the final page. Exactly
    one page, the last one, has `last=True`.

    Returns:
        Number of pages delivered.

    Raises:
        ExecutionError: if page_size is not positive (nothing is delivered).
    """
    if page_size <= 0:
        raise ExecutionError(f"page_size must be positive, got {page_size}")

    page = 0
    buf: list[ResultRow] = []
    for row in result.rows:
        buf.append(row)
        if len(buf) == page_size:
            callback(_page(result, buf, page, False, query_id))
            logger.debug("query %s: delivered page %d (%d rows)", query_id, page, len(buf))
            buf = []
            page += 1

    callback(_page(result, buf, page, True, query_id))
    logger.debug("query %s: delivered last page %d (%d rows)", query_id, page, len(buf))
    return page + 1
