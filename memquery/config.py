"""
memquery/config.py

Engine settings.

Options usually arrive from a connector manifest as strings keyed by
CamelCase names ("PageSize", "TableRowLimit"); snake_case keys are accepted
too so the same mapping can come from Python code or a JSON file.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping

from .errors import ConfigError

JOIN_METHODS = {"index", "scan"}

_OPTION_KEYS = {
    "PageSize": "page_size",
    "JoinMethod": "join_method",
    "StrictProjection": "strict_projection",
    "PushDownJoinKeys": "push_down_join_keys",
    "TableRowLimit": "table_row_limit",
}


def _to_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    s = str(value).strip().lower()
    if s in ("true", "1", "yes", "on"):
        return True
    if s in ("false", "0", "no", "off"):
        return False
    raise ConfigError(f"{key}: expected a boolean, got {value!r}")


def _to_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{key}: expected an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key}: expected an integer, got {value!r}") from e


@dataclass(frozen=True)
class EngineConfig:
    """
    Attributes:
        page_size: Default page size for paged execution.
        join_method: "index" (hash per secondary table) or "scan" (nested loop).
        strict_projection: Raise when an output column is missing from a row.
        push_down_join_keys: Restrict the secondary scan to the primary's key values.
        table_row_limit: Row cap for datastores created by the connector (None = no cap).
    """
    page_size: int = 100
    join_method: str = "index"
    strict_projection: bool = True
    push_down_join_keys: bool = True
    table_row_limit: int | None = None

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise ConfigError(f"page_size must be positive, got {self.page_size}")
        if self.join_method not in JOIN_METHODS:
            raise ConfigError(f"join_method must be one of {sorted(JOIN_METHODS)}, got {self.join_method!r}")
        if self.table_row_limit is not None and self.table_row_limit <= 0:
            raise ConfigError(f"table_row_limit must be positive, got {self.table_row_limit}")

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> "EngineConfig":
        """
        Build a config from connector-style options.

        Raises:
            ConfigError: on unknown keys or malformed values.
        """
        if not options:
            return cls()

        values: dict[str, Any] = {}
        for raw_key, raw_value in options.items():
            key = _OPTION_KEYS.get(raw_key, raw_key)
            if key not in _OPTION_KEYS.values():
                raise ConfigError(f"Unknown option: {raw_key}")
            if key == "page_size":
                values[key] = _to_int(raw_key, raw_value)
            elif key == "table_row_limit":
                values[key] = None if raw_value in (None, "") else _to_int(raw_key, raw_value)
            elif key == "join_method":
                values[key] = str(raw_value).strip().lower()
            else:
                values[key] = _to_bool(raw_key, raw_value)
        return cls(**values)

    def with_options(self, **changes: Any) -> "EngineConfig":
        return replace(self, **changes)
