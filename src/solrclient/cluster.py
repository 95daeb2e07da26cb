"""
solrclient Cluster — SolrCloud Cluster Management
=================================================

Convenience wrappers over the Collections API for day-to-day cluster
operations. Each method builds one Collection command and runs it
through SolrClient.manage_collection.
"""

from typing import Any, Dict, List, Optional, Union

from .collection import Collection
from .core import SolrClient


class ClusterManager:
    """
    SolrCloud cluster management utilities.

    Example:
        manager = ClusterManager(SolrClient(host="solr1"))
        print(manager.collections())
        manager.create_collection("goddess", shards=2, replicas=2)
    """

    def __init__(self, client: SolrClient):
        """
        Initialize cluster manager.

        Args:
            client: Client pointed at any node of the cluster
        """
        self.client = client

    def _run(self, collection: Collection) -> Dict[str, Any]:
        return self.client.manage_collection(collection)

    def health(self) -> Dict[str, Any]:
        """
        Ping the configured core.

        Returns:
            Ping response (``status`` is "OK" when healthy)
        """
        return self.client.ping_server()

    def collections(self) -> List[str]:
        """
        List collection names.

        Returns:
            Collection names, sorted
        """
        response = self._run(Collection().list_collections())
        return sorted(response.get("collections", []))

    def cluster_status(self) -> Dict[str, Any]:
        """
        Get cluster state: collections, shards, replicas and live nodes.

        Returns:
            The ``cluster`` block of the CLUSTERSTATUS response
        """
        response = self._run(Collection().get_cluster_status())
        return response.get("cluster", {})

    def overseer_status(self) -> Dict[str, Any]:
        return self._run(Collection().get_overseer_status())

    def create_collection(
        self,
        name: str,
        shards: int = 1,
        replicas: int = 1,
        config_name: Optional[str] = None,
        async_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a new collection.

        Args:
            name: Collection name
            shards: Number of shards
            replicas: Replicas per shard
            config_name: Configset to use (server default if None)
            async_id: Run asynchronously under this request id

        Returns:
            Creation response
        """
        return self._run(
            Collection().create(
                name=name,
                num_shards=shards,
                replication_factor=replicas,
                collection_config_name=config_name,
                async_id=async_id,
            )
        )

    def delete_collection(self, name: str) -> Dict[str, Any]:
        """
        Delete a collection.

        Args:
            name: Collection name

        Returns:
            Deletion response
        """
        return self._run(Collection().delete(name))

    def reload_collection(self, name: str) -> Dict[str, Any]:
        """Reload a collection (picks up configset changes)."""
        return self._run(Collection().reload(name))

    def alias(self, alias: str, collections: Union[str, List[str]]) -> Dict[str, Any]:
        """
        Point an alias at one or more collections.

        Args:
            alias: Alias name
            collections: Target collection(s)

        Returns:
            Alias response
        """
        return self._run(Collection().create_alias(alias, collections))

    def request_status(self, request_id: str) -> Dict[str, Any]:
        """
        Check an asynchronous request.

        Returns:
            The ``status`` block (``state`` is e.g. "completed" or "running")
        """
        response = self._run(Collection().request_status(request_id))
        return response.get("status", {})

    def close(self):
        """Close the client connection."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
