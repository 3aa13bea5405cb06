"""Test doubles and canned stats bodies."""

from typing import Any, Dict, List, Tuple

from elasticsearch_agent.data.exceptions import StatsFetchError
from elasticsearch_agent.data.snapshot import ClusterSnapshot, NodesSnapshot


CLUSTER_STATS: Dict[str, Any] = {
    "cluster_name": "prod-search",
    "indices": {
        "count": 12,
        "shards": {"total": 48, "primaries": 24, "replication": 1.0},
        "docs": {"count": 100, "deleted": 5},
        "store": {"size_in_bytes": 2048, "throttle_time_in_millis": 0},
        "segments": {"count": 300},
    },
    "nodes": {
        "count": {"total": 2, "master_data": 2, "master_only": 0, "data_only": 0, "client": 0},
        "versions": ["1.7.5", "1.7.5"],
    },
}


def node_stats(name: str, query_total: int, index_total: int) -> Dict[str, Any]:
    return {
        "name": name,
        "indices": {
            "docs": {"count": 50, "deleted": 1},
            "store": {"size_in_bytes": 1024, "throttle_time_in_millis": 0},
            "indexing": {"index_total": index_total, "delete_total": 2,
                         "index_time_in_millis": 10, "delete_time_in_millis": 1},
            "search": {"query_total": query_total, "fetch_total": 3,
                       "query_time_in_millis": 40, "fetch_time_in_millis": 4},
            "get": {"total": 7, "time_in_millis": 2},
        },
        "jvm": {"mem": {"heap_used_percent": 42}},
        "os": {"load_average": [1.5, 1.2, 0.9], "swap": {"used_in_bytes": 25, "free_in_bytes": 75}},
        "thread_pool": {"search": {"completed": 500, "queue": 3}},
    }


NODES_STATS: Dict[str, Any] = {
    "cluster_name": "prod-search",
    "nodes": {
        "id-a": node_stats("node-a", query_total=10, index_total=100),
        "id-b": node_stats("node-b", query_total=20, index_total=200),
    },
}


class ScriptedFetcher:
    """
    Returns queued snapshots (or raises queued errors) in call order.

    Each entry in the script is a (cluster, nodes) pair where either side may
    be an exception instance.
    """

    def __init__(self, script: List[Tuple[Any, Any]]):
        self.script = list(script)
        self.calls: List[str] = []
        self._current = None

    def fetch(self, target: str):
        self.calls.append(target)
        if target == "cluster":
            self._current = self.script.pop(0)
            item = self._current[0]
        else:
            item = self._current[1]
        if isinstance(item, StatsFetchError):
            raise item
        return item


class RecordingEmitter:
    def __init__(self, fail_on: Tuple[str, ...] = ()):
        self.fail_on = fail_on
        self.emitted: Dict[str, Tuple[str, float]] = {}
        self.flushes = 0

    def emit(self, name: str, units: str, value: float) -> None:
        if name in self.fail_on:
            raise RuntimeError(f"cannot emit {name}")
        self.emitted[name] = (units, value)

    def flush(self) -> None:
        self.flushes += 1

    def value(self, name: str) -> float:
        return self.emitted[name][1]


def make_snapshots(cluster: Dict[str, Any], nodes: Dict[str, Any]):
    return ClusterSnapshot.from_response(cluster), NodesSnapshot.from_response(nodes)
