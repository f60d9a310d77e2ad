"""
memquery/storage/memory.py

In-memory row store implementing the datastore search contract.

Responsibilities:
- Keep rows for each catalog.table in insertion order.
- Validate inserts against the table schema (types, NOT NULL, PRIMARY KEY)
  and an optional per-table row limit.
- Answer filtered scans:
    search(catalog, table, relations, columns) -> list[Row]
  where `columns` may mix ColumnName (emits a Field) and JoinColumn (emits a
  JoinKey at that position).
- Persist schema + rows as a single JSON document (load/save).

Design notes:
- Relations are a conjunction; comparisons against NULL are false.
- One lock guards mutation; search snapshots the table under the lock and
  filters outside it, so concurrent queries never see a half-applied insert.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Iterable, Protocol, Sequence

from ..catalog import Catalog, ColumnDef, TableMeta
from ..errors import ConstraintError, StorageError
from ..model import ColumnName, Field, JoinColumn, JoinKey, Row
from ..plan import Relation

logger = logging.getLogger(__name__)


class Datastore(Protocol):
    """Search contract the execution engine consumes."""

    def search(
        self,
        catalog: str,
        table: str,
        relations: Sequence[Relation],
        columns: Sequence[ColumnName | JoinColumn],
    ) -> list[Row]:
        ...


def _same(a: Any, b: Any) -> bool:
    """Equality that keeps booleans apart from numbers."""
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    return a == b


def relation_matches(row: dict[str, Any], rel: Relation) -> bool:
    """
    Evaluate one relation against a stored row.

    Raises:
        StorageError: for unsupported operators or incomparable values.
    """
    left = row.get(rel.column.name)
    op = rel.operator
    if op == "IN":
        return left is not None and any(_same(left, v) for v in rel.value)
    if left is None or rel.value is None:
        return False
    if op == "=":
        return _same(left, rel.value)
    if op == "!=":
        return not _same(left, rel.value)
    try:
        if op == "<":
            return left < rel.value
        if op == "<=":
            return left <= rel.value
        if op == ">":
            return left > rel.value
        if op == ">=":
            return left >= rel.value
    except TypeError as e:
        raise StorageError(f"Cannot compare {rel.column} with {rel.value!r}: {e}") from e
    raise StorageError(f"Unsupported operator: {op}")


class InMemoryDatastore:
    """
    Datastore keeping every table in process memory.

    Args:
        table_row_limit: Maximum rows per table (None = unbounded).
    """

    def __init__(self, table_row_limit: int | None = None, catalog: Catalog | None = None):
        self.table_row_limit = table_row_limit
        self.catalog = catalog or Catalog()
        self._rows: dict[tuple[str, str], list[dict[str, Any]]] = {}
        self._lock = threading.RLock()
        for cname, tables in self.catalog.tables.items():
            for tname in tables:
                self._rows[(cname, tname)] = []

    # --------------------------
    # DDL
    # --------------------------

    def create_catalog(self, catalog: str) -> None:
        with self._lock:
            self.catalog.create_catalog(catalog)

    def drop_catalog(self, catalog: str) -> None:
        with self._lock:
            self.catalog.drop_catalog(catalog)
            for key in [k for k in self._rows if k[0] == catalog]:
                del self._rows[key]

    def create_table(self, catalog: str, table: str, columns: Iterable[ColumnDef]) -> TableMeta:
        """
        Create a table; the catalog is created on first use.

        Raises:
            StorageError: on invalid schema or duplicate table.
        """
        with self._lock:
            if not self.catalog.has_catalog(catalog):
                self.catalog.create_catalog(catalog)
            meta = self.catalog.add_table(catalog, table, list(columns))
            self._rows[(catalog, table)] = []
            logger.debug("Created table %s.%s (%d columns)", catalog, table, len(meta.columns))
            return meta

    def drop_table(self, catalog: str, table: str) -> None:
        with self._lock:
            self.catalog.drop_table(catalog, table)
            del self._rows[(catalog, table)]

    def truncate_table(self, catalog: str, table: str) -> None:
        with self._lock:
            self.catalog.require_table(catalog, table)
            self._rows[(catalog, table)] = []

    # --------------------------
    # DML
    # --------------------------

    def insert(self, catalog: str, table: str, row: dict[str, Any]) -> None:
        """
        Insert one row.

        Args:
            row: Column name -> value; omitted columns are NULL.

        Raises:
            StorageError: unknown table/column or type mismatch.
            ConstraintError: NOT NULL, PRIMARY KEY or row-limit violation.
        """
        with self._lock:
            meta = self.catalog.require_table(catalog, table)
            for name in row:
                meta.require_column(name)

            stored = {c.name: row.get(c.name) for c in meta.columns}
            for c in meta.columns:
                value = stored[c.name]
                if value is None and (c.not_null or c.primary_key):
                    kind = "PRIMARY KEY column cannot be NULL" if c.primary_key else "NOT NULL constraint failed"
                    raise ConstraintError(f"{kind}: {catalog}.{table}.{c.name}")
                meta.validate_value(c, value)

            rows = self._rows[(catalog, table)]
            pk = meta.primary_key_column()
            if pk is not None and any(_same(r[pk], stored[pk]) for r in rows):
                raise ConstraintError(f"PRIMARY KEY duplicate: {catalog}.{table}.{pk}={stored[pk]!r}")

            if self.table_row_limit is not None and len(rows) >= self.table_row_limit:
                raise ConstraintError(
                    f"Table {catalog}.{table} reached its row limit ({self.table_row_limit})"
                )

            rows.append(stored)

    def insert_many(self, catalog: str, table: str, rows: Iterable[dict[str, Any]]) -> int:
        n = 0
        for r in rows:
            self.insert(catalog, table, r)
            n += 1
        return n

    def row_count(self, catalog: str, table: str) -> int:
        with self._lock:
            self.catalog.require_table(catalog, table)
            return len(self._rows[(catalog, table)])

    # --------------------------
    # search contract
    # --------------------------

    def search(
        self,
        catalog: str,
        table: str,
        relations: Sequence[Relation],
        columns: Sequence[ColumnName | JoinColumn],
    ) -> list[Row]:
        """
        Return the rows of catalog.table satisfying every relation.

        Each output Row holds one Field per requested ColumnName, in order, and
        one JoinKey per requested JoinColumn positioned after the fields that
        preceded it.

        Raises:
            StorageError: unknown table/column, a column from another table,
                          or an unsupported relation.
        """
        with self._lock:
            meta = self.catalog.require_table(catalog, table)
            snapshot = list(self._rows[(catalog, table)])

        for rel in relations:
            self._check_column(meta, rel.column)
        for col in columns:
            self._check_column(meta, col.column if isinstance(col, JoinColumn) else col)

        out: list[Row] = []
        for stored in snapshot:
            if not all(relation_matches(stored, rel) for rel in relations):
                continue
            fields: list[Field] = []
            keys: list[JoinKey] = []
            for col in columns:
                if isinstance(col, JoinColumn):
                    keys.append(
                        JoinKey(
                            join_id=col.join_id,
                            column=col.column,
                            value=stored[col.column.name],
                            position=len(fields),
                        )
                    )
                else:
                    fields.append(Field(column=col, value=stored[col.name]))
            out.append(Row(fields=tuple(fields), join_keys=tuple(keys)))

        logger.debug("search %s.%s: %d of %d rows", catalog, table, len(out), len(snapshot))
        return out

    @staticmethod
    def _check_column(meta: TableMeta, column: ColumnName) -> None:
        if not column.same_table(meta.catalog, meta.name):
            raise StorageError(f"Column {column} does not belong to {meta.catalog}.{meta.name}")
        meta.require_column(column.name)

    # --------------------------
    # persistence
    # --------------------------

    def to_dict(self) -> dict[str, Any]:
        with self._lock:
            rows: dict[str, dict[str, list[dict[str, Any]]]] = {}
            for (cname, tname), trows in self._rows.items():
                rows.setdefault(cname, {})[tname] = [dict(r) for r in trows]
            return {"catalogs": self.catalog.to_dict(), "rows": rows}

    @classmethod
    def from_dict(cls, raw: dict[str, Any], table_row_limit: int | None = None) -> "InMemoryDatastore":
        """
        Build a datastore from `to_dict` output; rows go through normal insert validation.
        """
        if not isinstance(raw, dict):
            raise StorageError("Datastore document must be a JSON object")
        store = cls(table_row_limit=table_row_limit, catalog=Catalog.from_dict(raw.get("catalogs", {})))
        for cname, tables in raw.get("rows", {}).items():
            for tname, trows in tables.items():
                store.insert_many(cname, tname, trows)
        return store

    @classmethod
    def load(cls, path: str | Path, table_row_limit: int | None = None) -> "InMemoryDatastore":
        """
        Load a datastore JSON document.

        Raises:
            StorageError: if the file is missing or not valid JSON.
        """
        path = Path(path)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise StorageError(f"Datastore file not found: {path}") from e
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt datastore file {path}: {e}") from e
        return cls.from_dict(raw, table_row_limit=table_row_limit)

    def save(self, path: str | Path) -> None:
        Path(path).write_text(json.dumps(self.to_dict(), indent=2, sort_keys=True), encoding="utf-8")
