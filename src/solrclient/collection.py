"""
solrclient Collection — Collections API Action Builder
======================================================

Builds parameter strings for the SolrCloud Collections API
(``/solr/admin/collections``).

Each method pushes an ``action=<TOKEN>`` fragment followed by the
action's parameters. Parameters left as None are omitted, list values
are comma-joined, and nothing is validated: the server rejects bad
combinations.

Example:
    collection = Collection().create(name="goddess", num_shards=2)
    collection.to_query_string()
    # "action=CREATE&name=goddess&numShards=2"
"""

from typing import Any, List, Optional, Union

from .utils import encode, join_values


StrOrList = Union[str, List[str]]


class Collection:
    """
    Accumulator for one Collections API command.

    Calling several action methods on one builder produces several
    ``action`` fragments; use one builder per command.
    """

    def __init__(self):
        self._parameters: List[str] = []

    @property
    def parameters(self) -> List[str]:
        return list(self._parameters)

    def _action(self, action: str) -> None:
        self._parameters.append(f"action={action}")

    def _push(self, name: str, value: Any) -> None:
        if value is None or value == "":
            return
        self._parameters.append(f"{name}={encode(value)}")

    def _push_list(self, name: str, value: Optional[StrOrList]) -> None:
        if value:
            self._push(name, join_values(value))

    def add_raw_parameter(self, param: str) -> "Collection":
        """Add a pre-encoded ``name=value`` fragment."""
        self._parameters.append(param)
        return self

    def create(
        self,
        name: str,
        router_name: Optional[str] = None,
        num_shards: Optional[int] = None,
        shards: Optional[StrOrList] = None,
        replication_factor: Optional[int] = None,
        max_shards_per_node: Optional[int] = None,
        create_node_set: Optional[StrOrList] = None,
        create_node_set_shuffle: Optional[bool] = None,
        collection_config_name: Optional[str] = None,
        router_field: Optional[str] = None,
        auto_add_replicas: Optional[bool] = None,
        async_id: Optional[str] = None,
    ) -> "Collection":
        """
        Create a collection.

        Args:
            name: Collection name
            router_name: "compositeId" or "implicit"
            num_shards: Number of shards
            shards: Shard names (implicit router)
            replication_factor: Replicas per shard
            max_shards_per_node: Shard limit per node
            create_node_set: Nodes to place replicas on, or "EMPTY"
            create_node_set_shuffle: Shuffle the node set
            collection_config_name: Configset name
            router_field: Routing field
            auto_add_replicas: Replace replicas on failed nodes
            async_id: Request id for asynchronous execution

        Returns:
            This builder
        """
        self._action("CREATE")
        self._push("name", name)
        self._push("router.name", router_name)
        self._push("numShards", num_shards)
        self._push_list("shards", shards)
        self._push("replicationFactor", replication_factor)
        self._push("maxShardsPerNode", max_shards_per_node)
        self._push_list("createNodeSet", create_node_set)
        self._push("createNodeSet.shuffle", create_node_set_shuffle)
        self._push("collection.configName", collection_config_name)
        self._push("router.field", router_field)
        self._push("autoAddReplicas", auto_add_replicas)
        self._push("async", async_id)
        return self

    def reload(self, name: str) -> "Collection":
        self._action("RELOAD")
        self._push("name", name)
        return self

    def split_shard(
        self,
        collection: str,
        shard: str,
        ranges: Optional[StrOrList] = None,
        split_key: Optional[str] = None,
        async_id: Optional[str] = None,
    ) -> "Collection":
        """Split a shard into two or more sub-shards."""
        self._action("SPLITSHARD")
        self._push("collection", collection)
        self._push("shard", shard)
        self._push_list("ranges", ranges)
        self._push("split.key", split_key)
        self._push("async", async_id)
        return self

    def create_shard(self, collection: str, shard: str) -> "Collection":
        """Create a shard (implicit router only)."""
        self._action("CREATESHARD")
        self._push("collection", collection)
        self._push("shard", shard)
        return self

    def delete_shard(self, collection: str, shard: str) -> "Collection":
        self._action("DELETESHARD")
        self._push("collection", collection)
        self._push("shard", shard)
        return self

    def create_alias(self, name: str, collections: StrOrList) -> "Collection":
        """Create or repoint an alias to one or more collections."""
        self._action("CREATEALIAS")
        self._push("name", name)
        self._push_list("collections", collections)
        return self

    def delete_alias(self, name: str) -> "Collection":
        self._action("DELETEALIAS")
        self._push("name", name)
        return self

    def delete(self, name: str) -> "Collection":
        self._action("DELETE")
        self._push("name", name)
        return self

    def delete_replica(
        self,
        collection: str,
        shard: str,
        replica: str,
        only_if_down: Optional[bool] = None,
    ) -> "Collection":
        self._action("DELETEREPLICA")
        self._push("collection", collection)
        self._push("shard", shard)
        self._push("replica", replica)
        self._push("onlyIfDown", only_if_down)
        return self

    def add_replica(
        self,
        collection: str,
        shard: Optional[str] = None,
        route: Optional[str] = None,
        node: Optional[str] = None,
        async_id: Optional[str] = None,
    ) -> "Collection":
        """
        Add a replica to a shard.

        Args:
            collection: Collection name
            shard: Target shard (or give ``route``)
            route: Routing key used to find the shard (``_route_``)
            node: Node to place the replica on
            async_id: Request id for asynchronous execution
        """
        self._action("ADDREPLICA")
        self._push("collection", collection)
        self._push("shard", shard)
        self._push("_route_", route)
        self._push("node", node)
        self._push("async", async_id)
        return self

    def set_cluster_property(self, name: str, val: Any = None) -> "Collection":
        """Set a cluster property; leaving ``val`` out unsets it."""
        self._action("CLUSTERPROP")
        self._push("name", name)
        self._push("val", val)
        return self

    def migrate_documents(
        self,
        collection: str,
        target_collection: str,
        split_key: str,
        forward_timeout: Optional[int] = None,
        async_id: Optional[str] = None,
    ) -> "Collection":
        self._action("MIGRATE")
        self._push("collection", collection)
        self._push("target.collection", target_collection)
        self._push("split.key", split_key)
        self._push("forward.timeout", forward_timeout)
        self._push("async", async_id)
        return self

    def add_role(self, role: str, node: str) -> "Collection":
        """Assign a role (e.g. "overseer") to a node."""
        self._action("ADDROLE")
        self._push("role", role)
        self._push("node", node)
        return self

    def remove_role(self, role: str, node: str) -> "Collection":
        self._action("REMOVEROLE")
        self._push("role", role)
        self._push("node", node)
        return self

    def get_overseer_status(self) -> "Collection":
        self._action("OVERSEERSTATUS")
        return self

    def get_cluster_status(self) -> "Collection":
        self._action("CLUSTERSTATUS")
        return self

    def request_status(self, request_id: str) -> "Collection":
        """Check the status of an asynchronous request."""
        self._action("REQUESTSTATUS")
        self._push("requestid", request_id)
        return self

    def list_collections(self) -> "Collection":
        self._action("LIST")
        return self

    def add_replica_property(
        self,
        collection: str,
        shard: str,
        replica: str,
        property: str,
        property_value: Any,
        shard_unique: Optional[bool] = None,
    ) -> "Collection":
        self._action("ADDREPLICAPROP")
        self._push("collection", collection)
        self._push("shard", shard)
        self._push("replica", replica)
        self._push("property", property)
        self._push("property.value", property_value)
        self._push("shardUnique", shard_unique)
        return self

    def delete_replica_property(
        self,
        collection: str,
        shard: str,
        replica: str,
        property: str,
    ) -> "Collection":
        self._action("DELETEREPLICAPROP")
        self._push("collection", collection)
        self._push("shard", shard)
        self._push("replica", replica)
        self._push("property", property)
        return self

    def balance_property(
        self,
        collection: str,
        property: str,
        only_active_nodes: Optional[bool] = None,
        shard_unique: Optional[bool] = None,
    ) -> "Collection":
        """Spread a unique property evenly across the collection's shards."""
        self._action("BALANCESHARDUNIQUE")
        self._push("collection", collection)
        self._push("property", property)
        self._push("onlyActiveNodes", only_active_nodes)
        self._push("shardUnique", shard_unique)
        return self

    def rebalance_leaders(
        self,
        collection: str,
        max_at_once: Optional[int] = None,
        max_wait_seconds: Optional[int] = None,
    ) -> "Collection":
        self._action("REBALANCELEADERS")
        self._push("collection", collection)
        self._push("maxAtOnce", max_at_once)
        self._push("maxWaitSeconds", max_wait_seconds)
        return self

    def to_query_string(self) -> str:
        """Join the accumulated fragments with ``&``."""
        return "&".join(self._parameters)

    def __str__(self) -> str:
        return self.to_query_string()
