"""
memquery/model.py

Row and field model shared by the datastore, the correlation engine and the
result assembler.

A scanned row carries two channels:
- fields: the column values that may end up in the projected output
- join_keys: correlation markers, used only to match rows across scans

Only `fields` are ever projected into result rows. Each JoinKey remembers the
position it was requested at; the merged row interleaves the matched fields
there.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .index.join_index import encode_key, is_null_key


@dataclass(frozen=True)
class ColumnName:
    """
    Fully qualified column identity.

    Attributes:
        catalog: Catalog (keyspace) name.
        table: Table name.
        name: Column name.
    """
    catalog: str
    table: str
    name: str

    @property
    def qualified_name(self) -> str:
        return f"{self.catalog}.{self.table}.{self.name}"

    def same_table(self, catalog: str, table: str) -> bool:
        return self.catalog == catalog and self.table == table

    def __str__(self) -> str:
        return self.qualified_name


@dataclass(frozen=True)
class Field:
    """A scalar value bound to the column it was read from."""
    column: ColumnName
    value: Any


@dataclass(frozen=True)
class JoinKey:
    """
    Correlation marker produced by a scan.

    Attributes:
        join_id: Identifier of the Join step this key belongs to.
        column: Column the key value was read from.
        value: Key value.
        position: Number of data fields that preceded the key in the scan's
                  requested column list.
    """
    join_id: str
    column: ColumnName
    value: Any
    position: int = 0

    @property
    def encoded(self) -> str | None:
        """Typed hash key, or None for a NULL or NaN key (neither ever matches)."""
        if is_null_key(self.value):
            return None
        return encode_key(self.value)

    def matches(self, other: "JoinKey") -> bool:
        """
        True if `other` is the opposite side of the same join with an equal key.
        """
        if self.join_id != other.join_id or self.column == other.column:
            return False
        mine = self.encoded
        return mine is not None and mine == other.encoded


@dataclass(frozen=True)
class JoinColumn:
    """
    Requested-column marker asking the datastore to emit a JoinKey.

    Attributes:
        join_id: Join the produced key belongs to.
        column: Column whose value becomes the key.
    """
    join_id: str
    column: ColumnName


@dataclass(frozen=True)
class Row:
    """
    A scanned (or merged) row.

    Rows are never mutated; correlation builds new Row instances.
    """
    fields: tuple[Field, ...]
    join_keys: tuple[JoinKey, ...] = ()

    def get(self, column: ColumnName) -> Field | None:
        """Return the field for a column identity, or None if absent."""
        for f in self.fields:
            if f.column == column:
                return f
        return None

    def columns(self) -> list[ColumnName]:
        return [f.column for f in self.fields]

    def data_only(self) -> "Row":
        """Return this row with its join keys dropped."""
        if not self.join_keys:
            return self
        return Row(fields=self.fields)
