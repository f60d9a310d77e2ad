"""
memquery/errors.py

Centralized exception types for the memquery execution engine.

This module defines:
- A common base exception for all engine errors
- Plan-level errors raised while adapting a logical workflow
- Execution errors, including the wrapper around storage search failures
- The capability-gap error for operations the engine does not provide
- Storage errors raised by the bundled in-memory datastore
"""

from __future__ import annotations


class MemQueryError(Exception):
    """
    Base class for all memquery errors.

    Catching this exception allows callers (CLI/orchestrator) to handle all engine
    errors without accidentally swallowing unrelated system exceptions.
    """


class PlanError(MemQueryError):
    """
    Raised when a logical workflow cannot be turned into scan requests.

    Examples:
      - A second scan step without a join
      - A join that names neither side's table
      - A negative limit other than the -1 "unlimited" sentinel
    """


class NoStorageError(PlanError):
    """
    Raised when a scan step targets a cluster with no attached datastore.

    Args:
        cluster: Cluster name that could not be resolved.
    """

    def __init__(self, cluster: str):
        self.cluster = cluster
        super().__init__(f"No datastore connected to {cluster}")


class ExecutionError(MemQueryError):
    """
    Raised when a valid workflow cannot be executed.

    When the failure comes from a storage search, `cause` holds the original
    exception (it is also chained as __cause__).
    """

    def __init__(self, message: str, cause: BaseException | None = None):
        self.cause = cause
        super().__init__(message)


class UnsupportedOperationError(MemQueryError):
    """
    Raised for operations the engine deliberately does not provide
    (asynchronous execution, stopping a running query).
    """


class StorageError(MemQueryError):
    """
    Raised by the in-memory datastore.

    Examples:
      - Unknown catalog/table/column
      - Unsupported relation operator
      - Type mismatch on insert
    """


class ConstraintError(StorageError):
    """
    Raised when a data integrity constraint is violated.

    Examples:
      - PRIMARY KEY duplicate
      - NOT NULL violation
      - Table row limit reached
    """


class ConfigError(MemQueryError):
    """Raised for unknown or malformed engine configuration options."""
