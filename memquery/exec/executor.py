"""
memquery/exec/executor.py

Query execution facade for the memquery engine.

Responsibilities:
- Execute a logical workflow end to end:
    scan request(s) -> datastore search -> correlation -> projection + limit
- Deliver a computed result as ordered pages (paged_execute)
- Report asynchronous execution and query stopping as unsupported

Core design:
- Every invocation works on its own freshly scanned rows; the engine keeps no
  per-query state, so one instance can serve many threads at once.
- Search failures are wrapped in a single ExecutionError; nothing is retried
  and no partial result escapes a failed query.
- Pagination splits an already materialized result; storage is never paged.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..config import EngineConfig
from ..errors import ExecutionError, NoStorageError, UnsupportedOperationError
from ..model import Row
from ..plan import Workflow
from ..result import QueryResult
from .adapter import PlanAdapter, ScanRequest
from .assembler import assemble
from .join import correlate
from .paging import ResultCallback, paginate

if TYPE_CHECKING:
    from ..connector import Connector

logger = logging.getLogger(__name__)


@dataclass
class QueryEngine:
    """
    Executes workflows against the datastores of a connector.

    Args:
        connector: Datastores by cluster.
        config: Engine configuration; defaults to the connector's.
    """
    connector: "Connector"
    config: EngineConfig | None = None
    adapter: PlanAdapter = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.config is None:
            self.config = self.connector.config
        self.adapter = PlanAdapter(self.connector, self.config)

    # --------------------------
    # public entry points
    # --------------------------

    def execute(self, workflow: Workflow) -> QueryResult:
        """
        Execute a workflow and return the complete result.

        Returns:
            QueryResult (page 0, last) with stats.

        Raises:
            NoStorageError: the primary step's cluster has no datastore.
            PlanError: inconsistent workflow.
            ExecutionError: a datastore search failed, or strict projection
                            found a missing column.
        """
        started = time.perf_counter()

        primary_req = self.adapter.adapt(workflow, 0)
        primary = self._search(primary_req)

        others: list[list[Row]] = []
        stats: dict[str, Any] = {"plan": "scan", "rows_scanned": [len(primary)]}

        if primary_req.join_column is not None:
            stats["plan"] = "join"
            stats["join_method"] = self.config.join_method
            if primary:
                secondary_req = self.adapter.adapt(workflow, 1, primary_rows=primary)
                secondary = self._search(secondary_req)
                stats["rows_scanned"].append(len(secondary))
                others.append(secondary)

        joined = correlate(primary, others, method=self.config.join_method)
        result_set = assemble(
            workflow.last_step,
            primary_req.limit,
            joined,
            strict=self.config.strict_projection,
        )

        elapsed_ms = (time.perf_counter() - started) * 1000.0
        stats["rows"] = len(result_set)
        stats["elapsed_ms"] = round(elapsed_ms, 3)
        logger.info("Query took %.3f ms (%d rows)", elapsed_ms, len(result_set))

        return QueryResult(result_set=result_set, page=0, last=True, stats=stats)

    def paged_execute(
        self,
        query_id: str,
        workflow: Workflow,
        callback: ResultCallback,
        page_size: int | None = None,
    ) -> int:
        """
        Execute a workflow and push the result to `callback` page by page.

        Args:
            query_id: Identifier stamped on every delivered page.
            workflow: Logical workflow.
            callback: Receives each page before the next one is built.
            page_size: Rows per page; defaults to config.page_size.

        Returns:
            Number of pages delivered.

        Raises:
            Same as execute(); if execution fails no page is delivered.
        """
        size = self.config.page_size if page_size is None else page_size
        if size <= 0:
            raise ExecutionError(f"page_size must be positive, got {size}")
        result = self.execute(workflow)
        return paginate(result.result_set, size, callback, query_id=query_id)

    def async_execute(self, query_id: str, workflow: Workflow, callback: ResultCallback) -> None:
        raise UnsupportedOperationError("Async query execution is not supported")

    def stop(self, query_id: str) -> None:
        raise UnsupportedOperationError("Stopping running queries is not supported")

    # --------------------------
    # storage
    # --------------------------

    def _search(self, req: ScanRequest) -> list[Row]:
        """
        Run one scan request against its datastore.

        Raises:
            NoStorageError: if the datastore was detached in the meantime.
            ExecutionError: wrapping any failure raised by the datastore.
        """
        datastore = self.connector.get_datastore(req.cluster)
        if datastore is None:
            raise NoStorageError(req.cluster)
        try:
            return list(datastore.search(req.catalog, req.table, req.relations, req.columns))
        except Exception as e:
            raise ExecutionError(f"Cannot perform execute operation: {e}", cause=e) from e
