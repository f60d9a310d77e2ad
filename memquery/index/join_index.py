"""
memquery/index/join_index.py

Hash index used by the "index" correlation method.

Responsibilities:
- Encode join key values so that only equal values of compatible types collide
- Treat NULL and NaN keys as keys that never match anything
- Map (join id, encoded key) to row positions of one secondary table, in scan order
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable

from ..errors import ExecutionError

if TYPE_CHECKING:
    from ..model import Row


def is_null_key(value: Any) -> bool:
    """True for key values that never match: None and float NaN."""
    return value is None or (isinstance(value, float) and math.isnan(value))


def encode_key(value: Any) -> str:
    """
    Typed key encoding to avoid collisions:
      int 1  -> "i:1"
      float 1.0 -> "i:1" (integral floats compare equal to ints)
      float 1.5 -> "f:1.5"
      str "1"-> "s:1"
      bool True -> "b:true"
    """
    if value is None:
        return "n:null"
    if isinstance(value, bool):
        return f"b:{str(value).lower()}"
    if isinstance(value, int):
        return f"i:{value}"
    if isinstance(value, float):
        if value.is_integer():
            return f"i:{int(value)}"
        return f"f:{value!r}"
    if isinstance(value, str):
        return f"s:{value}"
    raise ExecutionError(f"Unsupported join key type: {type(value).__name__}")


@dataclass
class JoinIndex:
    """
    Hash index over the join keys of one secondary table.

    mapping: (join_id, encoded key) -> row positions in scan order.
    """
    rows: list["Row"]
    mapping: dict[tuple[str, str], list[int]] = field(default_factory=dict)

    @classmethod
    def build(cls, rows: Iterable["Row"]) -> "JoinIndex":
        idx = cls(rows=list(rows))
        for pos, row in enumerate(idx.rows):
            for key in row.join_keys:
                idx.add(key.join_id, key.value, pos)
        return idx

    def add(self, join_id: str, value: Any, pos: int) -> None:
        if is_null_key(value):
            return
        k = (join_id, encode_key(value))
        positions = self.mapping.setdefault(k, [])
        if not positions or positions[-1] != pos:
            positions.append(pos)

    def lookup(self, join_id: str, value: Any) -> list[int]:
        if is_null_key(value):
            return []
        return self.mapping.get((join_id, encode_key(value)), [])
