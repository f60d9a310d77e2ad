"""
memquery/connector.py

Public connector API.

Responsibilities:
- Hold the datastores the engine can query, keyed by cluster name:
    - connector.attach(cluster[, datastore])
    - connector.get_datastore(cluster) -> Datastore | None
- Hand out QueryEngine instances bound to this connector.

The datastore map is the only state shared between concurrent queries; it is
changed under a lock and only read while queries run.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from .config import EngineConfig
from .errors import NoStorageError
from .exec.executor import QueryEngine
from .storage.memory import Datastore, InMemoryDatastore

logger = logging.getLogger(__name__)


@dataclass
class Connector:
    """
    Registry of datastores by cluster.

    Attributes:
        config: Engine configuration shared by every engine from this connector.
        datastores: Cluster name -> datastore.
    """
    config: EngineConfig = field(default_factory=EngineConfig)
    datastores: dict[str, Datastore] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def attach(self, cluster: str, datastore: Datastore | None = None) -> Datastore:
        """
        Connect a cluster to a datastore.

        Args:
            cluster: Cluster name referenced by scan steps.
            datastore: Store to attach; a new InMemoryDatastore honouring
                       config.table_row_limit is created when omitted.

        Returns:
            The attached datastore.
        """
        if datastore is None:
            datastore = InMemoryDatastore(table_row_limit=self.config.table_row_limit)
        with self._lock:
            if cluster in self.datastores:
                logger.warning("Replacing datastore attached to cluster %s", cluster)
            self.datastores[cluster] = datastore
        logger.debug("Attached datastore to cluster %s", cluster)
        return datastore

    def detach(self, cluster: str) -> None:
        """
        Disconnect a cluster.

        Raises:
            NoStorageError: if nothing is attached to the cluster.
        """
        with self._lock:
            if cluster not in self.datastores:
                raise NoStorageError(cluster)
            del self.datastores[cluster]

    def get_datastore(self, cluster: str) -> Datastore | None:
        return self.datastores.get(cluster)

    def clusters(self) -> list[str]:
        return sorted(self.datastores)

    def query_engine(self) -> QueryEngine:
        """Return a QueryEngine bound to this connector."""
        return QueryEngine(connector=self, config=self.config)
