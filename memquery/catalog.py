"""
memquery/catalog.py

Schema catalog for the in-memory datastore.

Responsibilities:
- Hold table schemas grouped by catalog (keyspace) name.
- Enforce basic DDL validation rules (supported types, duplicate names, etc.).
- Validate row values against column types on insert.
- Convert the catalog to/from plain dicts for JSON persistence.

Design notes:
- A single-column PRIMARY KEY per table, as in most small stores.
- DATE values are kept as ISO-8601 strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .errors import StorageError

SUPPORTED_TYPES = {"INTEGER", "BIGINT", "DOUBLE", "VARCHAR", "TEXT", "DATE", "BOOLEAN"}


@dataclass(frozen=True)
class ColumnDef:
    """
    Column definition.

    Attributes:
        name: Column name.
        typ: Uppercased type name, one of SUPPORTED_TYPES.
        not_null: Whether NOT NULL is required.
        primary_key: Whether this column is the (single) PRIMARY KEY.
    """
    name: str
    typ: str
    not_null: bool = False
    primary_key: bool = False


@dataclass
class TableMeta:
    """
    Table metadata stored in the catalog.

    Attributes:
        catalog: Catalog name.
        name: Table name.
        columns: Column definitions in declaration order.
    """
    catalog: str
    name: str
    columns: list[ColumnDef]

    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def get_column(self, name: str) -> ColumnDef | None:
        """Return ColumnDef by name, or None if not found."""
        for c in self.columns:
            if c.name == name:
                return c
        return None

    def require_column(self, name: str) -> ColumnDef:
        c = self.get_column(name)
        if c is None:
            raise StorageError(f"Column not found: {self.catalog}.{self.name}.{name}")
        return c

    def primary_key_column(self) -> str | None:
        pks = [c.name for c in self.columns if c.primary_key]
        return pks[0] if pks else None

    def validate_value(self, col: ColumnDef, value: Any) -> None:
        """
        Validate a single value against its column type.

        Raises:
            StorageError: on type mismatch.
        """
        if value is None:
            return
        t = col.typ
        where = f"{self.catalog}.{self.name}.{col.name}"
        if t in ("INTEGER", "BIGINT"):
            if not isinstance(value, int) or isinstance(value, bool):
                raise StorageError(f"Type error: {where} expects {t}")
        elif t == "DOUBLE":
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise StorageError(f"Type error: {where} expects DOUBLE")
        elif t in ("VARCHAR", "TEXT", "DATE"):
            if not isinstance(value, str):
                raise StorageError(f"Type error: {where} expects {t}")
        elif t == "BOOLEAN":
            if not isinstance(value, bool):
                raise StorageError(f"Type error: {where} expects BOOLEAN")
        else:
            raise StorageError(f"Unsupported type: {t}")


@dataclass
class Catalog:
    """
    All table schemas known to a datastore.

    Attributes:
        tables: Mapping of catalog name -> (table name -> TableMeta).
    """
    tables: dict[str, dict[str, TableMeta]] = field(default_factory=dict)

    # ---------- lookup helpers ----------

    def has_catalog(self, catalog: str) -> bool:
        return catalog in self.tables

    def require_catalog(self, catalog: str) -> dict[str, TableMeta]:
        c = self.tables.get(catalog)
        if c is None:
            raise StorageError(f"Catalog not found: {catalog}")
        return c

    def require_table(self, catalog: str, table: str) -> TableMeta:
        """
        Fetch a table or raise StorageError.
        """
        t = self.require_catalog(catalog).get(table)
        if t is None:
            raise StorageError(f"Table not found: {catalog}.{table}")
        return t

    # ---------- DDL ----------

    def create_catalog(self, catalog: str) -> None:
        if catalog in self.tables:
            raise StorageError(f"Catalog already exists: {catalog}")
        self.tables[catalog] = {}

    def drop_catalog(self, catalog: str) -> None:
        self.require_catalog(catalog)
        del self.tables[catalog]

    def validate_create_table(self, catalog: str, table: str, columns: list[ColumnDef]) -> None:
        """
        Checks:
        - Catalog exists, table does not
        - At least one column, no duplicate column names
        - Supported types
        - At most one PRIMARY KEY column

        Raises:
            StorageError: on invalid schema.
        """
        if table in self.require_catalog(catalog):
            raise StorageError(f"Table already exists: {catalog}.{table}")
        if not columns:
            raise StorageError(f"Table {catalog}.{table} needs at least one column")

        col_names = [c.name for c in columns]
        if len(set(col_names)) != len(col_names):
            raise StorageError(f"Duplicate column name in {catalog}.{table}")

        if len([c for c in columns if c.primary_key]) > 1:
            raise StorageError("Only one PRIMARY KEY column is supported")

        for c in columns:
            if c.typ not in SUPPORTED_TYPES:
                raise StorageError(f"Unsupported type: {c.typ}")

    def add_table(self, catalog: str, table: str, columns: list[ColumnDef]) -> TableMeta:
        self.validate_create_table(catalog, table, columns)
        meta = TableMeta(catalog=catalog, name=table, columns=list(columns))
        self.tables[catalog][table] = meta
        return meta

    def drop_table(self, catalog: str, table: str) -> None:
        self.require_table(catalog, table)
        del self.tables[catalog][table]

    # ---------- persistence ----------

    def to_dict(self) -> dict[str, Any]:
        def col_to_dict(c: ColumnDef) -> dict[str, Any]:
            return {
                "name": c.name,
                "type": c.typ,
                "not_null": c.not_null,
                "primary_key": c.primary_key,
            }

        return {
            cname: {tname: [col_to_dict(c) for c in t.columns] for tname, t in tables.items()}
            for cname, tables in self.tables.items()
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Catalog":
        """
        Rebuild a catalog from `to_dict` output.

        Raises:
            StorageError: on invalid schema definitions.
        """
        cat = cls()
        for cname, tables in raw.items():
            cat.create_catalog(cname)
            for tname, cols in tables.items():
                try:
                    defs = [
                        ColumnDef(
                            name=c["name"],
                            typ=str(c.get("type", "")).upper(),
                            not_null=bool(c.get("not_null", False)),
                            primary_key=bool(c.get("primary_key", False)),
                        )
                        for c in cols
                    ]
                except (KeyError, TypeError, AttributeError) as e:
                    raise StorageError(f"Invalid column definition in {cname}.{tname}: {e}") from e
                cat.add_table(cname, tname, defs)
        return cat
