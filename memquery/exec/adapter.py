"""
memquery/exec/adapter.py

Turns the scan steps of a logical workflow into concrete scan requests.

Responsibilities:
- Resolve the step's cluster to an attached datastore (NoStorageError if none)
- Decide from the presence of a second scan step whether a join key column
  must be appended to the requested columns of both scans
- Carry the workflow's row limit
- Optionally narrow the secondary scan to the key values the primary scan
  actually produced (join-key pushdown)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from ..config import EngineConfig
from ..errors import NoStorageError, PlanError
from ..index.join_index import encode_key, is_null_key
from ..model import ColumnName, JoinColumn, Row
from ..plan import UNLIMITED, Join, Project, Relation, Workflow

if TYPE_CHECKING:
    from ..connector import Connector

logger = logging.getLogger(__name__)

MAX_SCAN_STEPS = 2


@dataclass(frozen=True)
class ScanRequest:
    """
    Storage-facing description of one scan.

    Attributes:
        cluster: Cluster the datastore was resolved from.
        catalog: Catalog name.
        table: Table name.
        relations: Filter predicates (conjunction).
        columns: Requested columns in order; includes `join_column` when set.
        join_column: Join key the scan must emit, if the workflow joins.
        limit: Workflow row limit (UNLIMITED = -1).
    """
    cluster: str
    catalog: str
    table: str
    relations: tuple[Relation, ...]
    columns: tuple[ColumnName | JoinColumn, ...]
    join_column: JoinColumn | None = None
    limit: int = UNLIMITED


def _join_side(join: Join, step: Project) -> ColumnName:
    """
    Pick the join column belonging to the step's table.

    Raises:
        PlanError: for a self-join (both sides in one table) or a join that
                   does not name the step's table.
    """
    if join.left.same_table(join.right.catalog, join.right.table):
        raise PlanError(
            f"Join {join.join_id} correlates {join.left.catalog}.{join.left.table} with itself; "
            "only joins between two tables are supported"
        )
    col = join.column_for(step.catalog, step.table)
    if col is None:
        raise PlanError(
            f"Join {join.join_id} does not reference {step.catalog}.{step.table}"
        )
    return col


def _distinct_keys(rows: Iterable[Row], join_id: str) -> tuple[object, ...]:
    seen: set[str] = set()
    out: list[object] = []
    for row in rows:
        for key in row.join_keys:
            if key.join_id != join_id or is_null_key(key.value):
                continue
            k = encode_key(key.value)
            if k not in seen:
                seen.add(k)
                out.append(key.value)
    return tuple(out)


class PlanAdapter:
    """
    Builds ScanRequests from workflow scan steps.

    Args:
        connector: Source of datastores by cluster.
        config: Engine configuration (join-key pushdown switch).
    """

    def __init__(self, connector: "Connector", config: EngineConfig | None = None):
        self.connector = connector
        self.config = config or connector.config

    def adapt(self, workflow: Workflow, index: int = 0, primary_rows: list[Row] | None = None) -> ScanRequest:
        """
        Adapt scan step `index` of the workflow.

        Args:
            workflow: Logical workflow.
            index: 0 for the primary scan, 1 for the secondary scan of a join.
            primary_rows: Rows of the primary scan, used for key pushdown when
                          adapting the secondary scan.

        Returns:
            ScanRequest.

        Raises:
            NoStorageError: if the step's cluster has no datastore.
            PlanError: on an inconsistent workflow.
        """
        steps = workflow.initial_steps
        if not steps:
            raise PlanError("Workflow has no scan steps")
        if len(steps) > MAX_SCAN_STEPS:
            raise PlanError(f"At most {MAX_SCAN_STEPS} scan steps are supported, got {len(steps)}")
        if not 0 <= index < len(steps):
            raise PlanError(f"Scan step {index} does not exist")

        step = steps[index]
        if self.connector.get_datastore(step.cluster) is None:
            raise NoStorageError(step.cluster)

        limit = workflow.last_step.limit
        if limit < UNLIMITED:
            raise PlanError(f"Invalid limit: {limit}")

        columns: list[ColumnName | JoinColumn] = list(step.columns)
        relations = list(step.relations)
        join_column: JoinColumn | None = None

        if len(steps) == MAX_SCAN_STEPS:
            join = step.join
            other = steps[1 - index]
            if join is None or other.join is None:
                raise PlanError("Two scan steps require a join between them")
            if other.join != join:
                raise PlanError(f"Scan steps reference different joins: {join.join_id} / {other.join.join_id}")

            key_col = _join_side(join, step)
            join_column = JoinColumn(join_id=join.join_id, column=key_col)
            columns.append(join_column)

            if index == 1 and primary_rows is not None and self.config.push_down_join_keys:
                keys = _distinct_keys(primary_rows, join.join_id)
                relations.append(Relation(column=key_col, operator="IN", value=keys))

        req = ScanRequest(
            cluster=step.cluster,
            catalog=step.catalog,
            table=step.table,
            relations=tuple(relations),
            columns=tuple(columns),
            join_column=join_column,
            limit=limit,
        )
        logger.debug(
            "scan request %s.%s on %s: %d columns, %d relations, join=%s",
            req.catalog,
            req.table,
            req.cluster,
            len(req.columns),
            len(req.relations),
            join_column.join_id if join_column else None,
        )
        return req
