"""
Stats Aggregator

Cross-node summaries that no single snapshot field carries. Pure functions of
the current snapshot; nothing is remembered between cycles.
"""

from dataclasses import dataclass

from elasticsearch_agent.data.snapshot import ClusterSnapshot, NodesSnapshot


@dataclass(frozen=True)
class QueriesStat:
    """Cluster-wide query totals summed over every node."""

    search: float = 0
    fetch: float = 0
    get: float = 0
    index: float = 0
    delete: float = 0


class StatsAggregator:
    """Computes aggregate metrics from one snapshot."""

    # QueriesStat field -> per-node stats path
    QUERY_FIELDS = {
        "search": "indices.search.query_total",
        "fetch": "indices.search.fetch_total",
        "get": "indices.get.total",
        "index": "indices.indexing.index_total",
        "delete": "indices.indexing.delete_total",
    }

    def distinct_version_count(self, cluster: ClusterSnapshot) -> int:
        """Number of unique versions among reporting nodes (0 if none)."""
        return len(set(cluster.versions))

    def total_queries(self, nodes: NodesSnapshot) -> QueriesStat:
        """
        Sum query counters across every node.

        Missing per-node fields count as 0; an empty node map gives all zeros.
        """
        totals = {name: 0 for name in self.QUERY_FIELDS}
        for node in nodes:
            for name, path in self.QUERY_FIELDS.items():
                totals[name] += node.value(path) or 0
        return QueriesStat(**totals)
