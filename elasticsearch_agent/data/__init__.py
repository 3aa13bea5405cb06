"""Stats data: snapshots, fetcher, fetch errors."""

from elasticsearch_agent.data.exceptions import ParseError, StatsFetchError, TransportError
from elasticsearch_agent.data.loader import StatsFetcher
from elasticsearch_agent.data.snapshot import ClusterSnapshot, NodeSnapshot, NodesSnapshot

__all__ = [
    "StatsFetcher",
    "ClusterSnapshot",
    "NodeSnapshot",
    "NodesSnapshot",
    "StatsFetchError",
    "TransportError",
    "ParseError",
]
