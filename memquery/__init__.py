"""
memquery: embedded tabular query execution engine.

Executes compiled logical workflows over one or two tables held by attached
datastores, and returns the result whole or in pages.
"""

from __future__ import annotations

from .config import EngineConfig
from .connector import Connector
from .errors import (
    ConfigError,
    ConstraintError,
    ExecutionError,
    MemQueryError,
    NoStorageError,
    PlanError,
    StorageError,
    UnsupportedOperationError,
)
from .exec.executor import QueryEngine
from .model import ColumnName, Field, JoinKey, Row
from .plan import UNLIMITED, Join, Project, Relation, Select, Workflow, workflow_from_dict
from .result import ColumnMetadata, QueryResult, ResultSet
from .storage.memory import Datastore, InMemoryDatastore

__all__ = [
    "UNLIMITED",
    "ColumnMetadata",
    "ColumnName",
    "ConfigError",
    "Connector",
    "ConstraintError",
    "Datastore",
    "EngineConfig",
    "ExecutionError",
    "Field",
    "InMemoryDatastore",
    "Join",
    "JoinKey",
    "MemQueryError",
    "NoStorageError",
    "PlanError",
    "Project",
    "QueryEngine",
    "QueryResult",
    "Relation",
    "ResultSet",
    "Row",
    "Select",
    "StorageError",
    "UnsupportedOperationError",
    "Workflow",
    "workflow_from_dict",
]
