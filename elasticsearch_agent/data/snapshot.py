"""
Stats snapshots (ClusterSnapshot, NodesSnapshot).

Immutable views over one poll response. Produced fresh each cycle and
discarded afterwards; only derived counter state outlives them.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from elasticsearch_agent.data.exceptions import ParseError


def _freeze(value: Any) -> Any:
    """Recursively convert decoded JSON into read-only containers."""
    if isinstance(value, dict):
        return MappingProxyType({str(k): _freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a stats value
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class FieldTree:
    """Read-only field tree addressed by dotted paths ("indices.docs.count")."""

    fields: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def lookup(self, path: str) -> Any:
        node: Any = self.fields
        for part in path.split("."):
            if not isinstance(node, Mapping) or part not in node:
                return None
            node = node[part]
        return node

    def value(self, path: str) -> Optional[float]:
        """Numeric value at path, or None when absent or not a number."""
        found = self.lookup(path)
        return found if _is_number(found) else None

    def sequence(self, path: str) -> Tuple[Any, ...]:
        """Sequence at path; empty tuple when absent."""
        found = self.lookup(path)
        return found if isinstance(found, tuple) else ()


@dataclass(frozen=True)
class ClusterSnapshot(FieldTree):
    """Cluster-wide stats from /_cluster/stats."""

    cluster_name: str = ""
    versions: Tuple[str, ...] = ()

    @classmethod
    def from_response(cls, data: Any) -> "ClusterSnapshot":
        """
        Build a snapshot from a decoded /_cluster/stats body.

        Raises:
            ParseError: body is not an object, has no cluster_name, or has
                non-object "indices"/"nodes" sections
        """
        if not isinstance(data, dict):
            raise ParseError("cluster stats body is not a JSON object", target="cluster")

        name = data.get("cluster_name")
        if not isinstance(name, str) or not name:
            raise ParseError("cluster stats body has no cluster_name", target="cluster")

        for section in ("indices", "nodes"):
            if section in data and not isinstance(data[section], dict):
                raise ParseError(f"cluster stats '{section}' is not an object", target="cluster")

        raw_versions = (data.get("nodes") or {}).get("versions") or []
        if not isinstance(raw_versions, list):
            raise ParseError("cluster stats 'nodes.versions' is not a list", target="cluster")

        return cls(
            fields=_freeze(data),
            cluster_name=name,
            versions=tuple(str(v) for v in raw_versions if v is not None),
        )


@dataclass(frozen=True)
class NodeSnapshot(FieldTree):
    """Stats of one node from /_nodes/stats."""

    node_id: str = ""
    name: str = ""
    version: Optional[str] = None


@dataclass(frozen=True)
class NodesSnapshot:
    """Per-node stats keyed by node id."""

    nodes: Mapping[str, NodeSnapshot] = field(default_factory=lambda: MappingProxyType({}))
    cluster_name: Optional[str] = None

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self):
        return iter(self.nodes.values())

    @classmethod
    def from_response(cls, data: Any) -> "NodesSnapshot":
        """
        Build a snapshot from a decoded /_nodes/stats body.

        Nodes without a "name" are reported under their node id.

        Raises:
            ParseError: body is not an object, or "nodes" is missing or holds
                non-object entries
        """
        if not isinstance(data, dict):
            raise ParseError("nodes stats body is not a JSON object", target="nodes")

        raw_nodes = data.get("nodes")
        if not isinstance(raw_nodes, dict):
            raise ParseError("nodes stats body has no 'nodes' object", target="nodes")

        nodes = {}
        for node_id, raw in raw_nodes.items():
            if not isinstance(raw, dict):
                raise ParseError(f"node entry '{node_id}' is not an object", target="nodes")
            name = raw.get("name")
            version = raw.get("version")
            nodes[str(node_id)] = NodeSnapshot(
                fields=_freeze(raw),
                node_id=str(node_id),
                name=name if isinstance(name, str) and name else str(node_id),
                version=version if isinstance(version, str) else None,
            )

        cluster_name = data.get("cluster_name")
        return cls(
            nodes=MappingProxyType(nodes),
            cluster_name=cluster_name if isinstance(cluster_name, str) else None,
        )
