"""
memquery/plan.py

Logical workflow node definitions consumed by the execution engine.

An outside planner builds these; memquery only reads them. A workflow is:
- one or two scan steps (Project), each naming a cluster/catalog/table, the
  requested columns and the filter relations pushed to storage
- a terminal output step (Select) declaring output order, aliases, types and
  the row limit

Design notes:
- Two scan steps always mean a join; both steps reference the same Join node.
- The Join is an equality between one column of each table.
- `workflow_from_dict` decodes the JSON form used by the command line driver.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .errors import PlanError
from .model import ColumnName

UNLIMITED = -1

OPERATORS = {"=", "!=", "<", "<=", ">", ">=", "IN"}


@dataclass(frozen=True)
class Relation:
    """
    Filter predicate pushed down to storage.

    Attributes:
        column: Column on the left side.
        operator: One of OPERATORS.
        value: Literal on the right side (a sequence for IN).
    """
    column: ColumnName
    operator: str
    value: Any


@dataclass(frozen=True)
class Join:
    """
    Equality join between two scan steps.

    Attributes:
        join_id: Identifier shared by the JoinKeys this join produces.
        left: Column of one table.
        right: Column of the other table.
    """
    join_id: str
    left: ColumnName
    right: ColumnName

    def column_for(self, catalog: str, table: str) -> ColumnName | None:
        """Return the side of the join that belongs to catalog.table, if any."""
        if self.left.same_table(catalog, table):
            return self.left
        if self.right.same_table(catalog, table):
            return self.right
        return None


@dataclass(frozen=True)
class Project:
    """
    Scan step: one source table.

    Attributes:
        cluster: Cluster name used to resolve the datastore.
        catalog: Catalog name.
        table: Table name.
        columns: Requested columns in order.
        relations: Filter predicates (conjunction).
        join: Join this step takes part in, if any.
    """
    cluster: str
    catalog: str
    table: str
    columns: tuple[ColumnName, ...]
    relations: tuple[Relation, ...] = ()
    join: Join | None = None


@dataclass(frozen=True)
class Select:
    """
    Output projection step.

    Attributes:
        outputs: Output selectors in declared order.
        aliases: Optional alias per selector.
        types: Declared type name per selector.
        limit: Row limit; UNLIMITED (-1) means no limit.
    """
    outputs: tuple[ColumnName, ...]
    aliases: dict[ColumnName, str] = field(default_factory=dict)
    types: dict[ColumnName, str] = field(default_factory=dict)
    limit: int = UNLIMITED

    def alias_of(self, column: ColumnName) -> str:
        return self.aliases.get(column) or column.name


@dataclass(frozen=True)
class Workflow:
    """A compiled logical workflow: scan steps plus the output step."""
    initial_steps: tuple[Project, ...]
    last_step: Select


# ---------- JSON decoding ----------

def _column(raw: Any, ctx: str) -> ColumnName:
    """
    Decode a column reference.

    Accepts "catalog.table.column" strings or {"catalog", "table", "name"} objects.
    """
    if isinstance(raw, str):
        parts = raw.split(".")
        if len(parts) != 3 or not all(parts):
            raise PlanError(f"{ctx}: expected catalog.table.column, got {raw!r}")
        return ColumnName(*parts)
    if isinstance(raw, dict):
        try:
            return ColumnName(str(raw["catalog"]), str(raw["table"]), str(raw["name"]))
        except KeyError as e:
            raise PlanError(f"{ctx}: column object missing {e}") from e
    raise PlanError(f"{ctx}: invalid column reference {raw!r}")


def _object(raw: Any, ctx: str) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise PlanError(f"{ctx}: expected an object, got {raw!r}")
    return raw


def _list(raw: Any, ctx: str) -> list[Any]:
    if not isinstance(raw, list):
        raise PlanError(f"{ctx}: expected a list, got {raw!r}")
    return raw


def _relation(raw: Any, ctx: str) -> Relation:
    raw = _object(raw, f"{ctx}.relations")
    op = str(raw.get("operator", "=")).upper()
    if op not in OPERATORS:
        raise PlanError(f"{ctx}: unsupported operator {op}")
    value = raw.get("value")
    if op == "IN":
        if not isinstance(value, list):
            raise PlanError(f"{ctx}: IN expects a list value")
        value = tuple(value)
    return Relation(column=_column(raw.get("column"), ctx), operator=op, value=value)


def workflow_from_dict(raw: dict[str, Any]) -> Workflow:
    """
    Build a Workflow from its JSON representation.

    Layout:
        {
          "join": {"id": "j1", "left": "c.t1.a", "right": "c.t2.b"},   # optional
          "steps": [{"cluster": ..., "catalog": ..., "table": ...,
                     "columns": [...], "relations": [...]}, ...],
          "select": {"outputs": [...], "aliases": {"c.t.col": "alias"},
                     "types": {"c.t.col": "INTEGER"}, "limit": -1}
        }

    Raises:
        PlanError: on malformed input.
    """
    if not isinstance(raw, dict):
        raise PlanError("Workflow must be a JSON object")

    join: Join | None = None
    if raw.get("join") is not None:
        j = _object(raw["join"], "join")
        join = Join(
            join_id=str(j.get("id", "join")),
            left=_column(j.get("left"), "join.left"),
            right=_column(j.get("right"), "join.right"),
        )

    steps: list[Project] = []
    for i, s in enumerate(_list(raw.get("steps", []), "steps")):
        ctx = f"steps[{i}]"
        s = _object(s, ctx)
        try:
            cluster, catalog, table = str(s["cluster"]), str(s["catalog"]), str(s["table"])
        except KeyError as e:
            raise PlanError(f"{ctx}: missing {e}") from e
        steps.append(
            Project(
                cluster=cluster,
                catalog=catalog,
                table=table,
                columns=tuple(_column(c, ctx) for c in _list(s.get("columns", []), f"{ctx}.columns")),
                relations=tuple(_relation(r, ctx) for r in _list(s.get("relations", []), f"{ctx}.relations")),
                join=join,
            )
        )
    if not steps:
        raise PlanError("Workflow has no scan steps")

    sel = _object(raw.get("select", {}), "select")
    outputs = tuple(_column(c, "select") for c in _list(sel.get("outputs", []), "select.outputs"))
    aliases = {
        _column(k, "select.aliases"): str(v)
        for k, v in _object(sel.get("aliases", {}), "select.aliases").items()
    }
    types = {
        _column(k, "select.types"): str(v).upper()
        for k, v in _object(sel.get("types", {}), "select.types").items()
    }
    try:
        limit = int(sel.get("limit", UNLIMITED))
    except (TypeError, ValueError) as e:
        raise PlanError(f"select.limit must be an integer: {sel.get('limit')!r}") from e

    return Workflow(
        initial_steps=tuple(steps),
        last_step=Select(outputs=outputs, aliases=aliases, types=types, limit=limit),
    )
