"""
Metric Catalog

Fixed, exhaustive classification of every reported metric:
- GAUGE:    point-in-time field, passed through unchanged
- COUNTER:  cumulative field, reported as a per-second rate
- COMPUTED: special-cased value (aggregates, swap ratio, load average)

Metric names are part of the external contract: downstream dashboards key off
the exact strings, including the legacy names without the "V1/" prefix.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


class MetricKind(Enum):
    GAUGE = "gauge"
    COUNTER = "counter"
    COMPUTED = "computed"


class Scope(Enum):
    CLUSTER = "cluster"
    NODE = "node"


class Computation(Enum):
    """Sources of COMPUTED metrics."""

    VERSION_COUNT = "version_count"
    QUERIES_SEARCH = "queries.search"
    QUERIES_FETCH = "queries.fetch"
    QUERIES_GET = "queries.get"
    QUERIES_INDEX = "queries.index"
    QUERIES_DELETE = "queries.delete"
    LOAD_AVERAGE = "load_average"
    SWAP_RATIO = "swap_ratio"


@dataclass(frozen=True)
class MetricSpec:
    """
    One catalog entry.

    source is a dotted stats path for GAUGE/COUNTER and a Computation for
    COMPUTED metrics.
    """

    name: str
    units: str
    kind: MetricKind
    scope: Scope
    source: object

    def series_name(self, node: str = "") -> str:
        """Reported name; node metrics append "/<node>" as the final segment."""
        if self.scope is Scope.NODE:
            return f"{self.name}/{node}"
        return self.name


def _gauge(scope: Scope, name: str, units: str, path: str) -> MetricSpec:
    return MetricSpec(name, units, MetricKind.GAUGE, scope, path)


def _counter(scope: Scope, name: str, units: str, path: str) -> MetricSpec:
    return MetricSpec(name, units, MetricKind.COUNTER, scope, path)


def _computed(scope: Scope, name: str, units: str, computation: Computation) -> MetricSpec:
    return MetricSpec(name, units, MetricKind.COMPUTED, scope, computation)


C = Scope.CLUSTER
N = Scope.NODE

CLUSTER_METRICS: Tuple[MetricSpec, ...] = (
    # Documents
    _gauge(C, "V1/ClusterStats/Indices/Docs/Count", "documents", "indices.docs.count"),
    _gauge(C, "V1/ClusterStats/Indices/Docs/Deleted", "documents", "indices.docs.deleted"),
    _counter(C, "V1/ClusterStats/Indices/DocsAdded", "documents/second", "indices.docs.count"),

    # Nodes
    _gauge(C, "V1/ClusterStats/Nodes/Count/Total", "nodes", "nodes.count.total"),
    _gauge(C, "V1/ClusterStats/Nodes/Count/Master and data", "nodes", "nodes.count.master_data"),
    _gauge(C, "V1/ClusterStats/Nodes/Count/Master only", "nodes", "nodes.count.master_only"),
    _gauge(C, "V1/ClusterStats/Nodes/Count/Data only", "nodes", "nodes.count.data_only"),
    _gauge(C, "V1/ClusterStats/Nodes/Count/Client", "nodes", "nodes.count.client"),

    # Indices and shards
    _gauge(C, "V1/ClusterStats/Indices/Indices", "indices", "indices.count"),
    _gauge(C, "V1/ClusterStats/Indices/Shards", "shards", "indices.shards.total"),
    _gauge(C, "V1/ClusterStats/Indices/Primaries", "shards", "indices.shards.primaries"),
    _gauge(C, "V1/ClusterStats/Indices/Replication", "shards", "indices.shards.replication"),
    _gauge(C, "V1/ClusterStats/Indices/Segments/Count", "segments", "indices.segments.count"),

    # Store
    _gauge(C, "V1/ClusterStats/Indices/Store/Size", "bytes", "indices.store.size_in_bytes"),
    _counter(C, "V1/ClusterStats/Indices/Store/SizePerSec", "bytes/second", "indices.store.size_in_bytes"),
    _counter(C, "V1/ClusterStats/Indices/Store/ThrottleTime", "millis", "indices.store.throttle_time_in_millis"),

    # Summary
    _computed(C, "V1/ClusterStats/NumberOfVersionsInCluster", "versions", Computation.VERSION_COUNT),
    _computed(C, "V1/QueriesStats/Search", "queries", Computation.QUERIES_SEARCH),
    _computed(C, "V1/QueriesStats/Fetch", "queries", Computation.QUERIES_FETCH),
    _computed(C, "V1/QueriesStats/Get", "queries", Computation.QUERIES_GET),
    _computed(C, "V1/QueriesStats/Index", "queries", Computation.QUERIES_INDEX),
    _computed(C, "V1/QueriesStats/Delete", "queries", Computation.QUERIES_DELETE),
)

THREAD_POOLS = (
    "search", "index", "bulk", "get", "merge",
    "suggest", "warmer", "flush", "refresh", "generic",
)

_NODE_FIXED: Tuple[MetricSpec, ...] = (
    # Documents and store
    _gauge(N, "V1/NodeStats/Nodes/Indices/Docs/Count", "documents", "indices.docs.count"),
    _gauge(N, "V1/NodeStats/Indices/Store/Size", "bytes", "indices.store.size_in_bytes"),
    _counter(N, "V1/NodeStats/Indices/Store/SizePerSec", "bytes/second", "indices.store.size_in_bytes"),
    _gauge(N, "V1/NodeStats/Nodes/Indices/Docs/Deleted", "documents", "indices.docs.deleted"),

    # Indexing
    _counter(N, "V1/NodeStats/Indices/Indexing/Index", "queries", "indices.indexing.index_total"),
    _counter(N, "V1/NodeStats/Indices/Indexing/IndexTimeInMillis", "ms", "indices.indexing.index_time_in_millis"),
    _counter(N, "V1/NodeStats/Indices/Indexing/DeleteTotal", "queries", "indices.indexing.delete_total"),
    _counter(N, "V1/NodeStats/Indices/Indexing/DeleteTimeInMillis", "ms", "indices.indexing.delete_time_in_millis"),
    _counter(N, "V1/NodeStats/Indices/Refresh/Total", "refreshes", "indices.refresh.total"),
    _counter(N, "V1/NodeStats/Indices/Refresh/TotalTimeInMillis", "ms", "indices.refresh.total_time_in_millis"),
    _counter(N, "V1/NodeStats/Indices/Flush/Total", "flushes", "indices.flush.total"),
    _counter(N, "V1/NodeStats/Indices/Flush/TotalTimeInMillis", "ms", "indices.flush.total_time_in_millis"),
    _counter(N, "V1/NodeStats/Indices/Warmer/Total", "queries", "indices.warmer.total"),
    _counter(N, "V1/NodeStats/Indices/Warmer/TotalTimeInMillis", "ms", "indices.warmer.total_time_in_millis"),

    # Search
    _counter(N, "V1/NodeStats/Indices/Search/QueryTotal", "requests", "indices.search.query_total"),
    _counter(N, "V1/NodeStats/Indices/Search/QueryTimeInMillis", "ms", "indices.search.query_time_in_millis"),
    _counter(N, "V1/NodeStats/Indices/Search/FetchTotal", "requests", "indices.search.fetch_total"),
    _counter(N, "V1/NodeStats/Indices/Search/FetchTimeInMillis", "ms", "indices.search.fetch_time_in_millis"),
    _counter(N, "V1/NodeStats/Indices/Get/Total", "requests", "indices.get.total"),
    _counter(N, "V1/NodeStats/Indices/Get/TimeInMillis", "ms", "indices.get.time_in_millis"),
    _counter(N, "V1/NodeStats/Indices/Suggest/Total", "requests", "indices.suggest.total"),
    _counter(N, "V1/NodeStats/Indices/Suggest/TimeInMillis", "ms", "indices.suggest.time_in_millis"),

    # Merges and segments
    _counter(N, "V1/NodeStats/Indices/Merges/Total", "merges", "indices.merges.total"),
    _counter(N, "V1/NodeStats/Indices/Merges/TotalSizeInBytes", "bytes/second", "indices.merges.total_size_in_bytes"),
    _counter(N, "V1/NodeStats/Indices/Merges/TotalTimeInMillis", "ms", "indices.merges.total_time_in_millis"),
    _counter(N, "V1/NodeStats/Indices/Merges/TotalDocs", "docs", "indices.merges.total_docs"),
    _gauge(N, "V1/NodeStats/Indices/Segments/Count", "segments", "indices.segments.count"),

    # Caches
    _gauge(N, "V1/NodeStats/Indices/FilterCache/Size", "bytes", "indices.filter_cache.memory_size_in_bytes"),
    _gauge(N, "V1/NodeStats/Indices/FilterCache/Evictions", "evictions", "indices.filter_cache.evictions"),
    _gauge(N, "V1/NodeStats/Indices/Fielddata/Size", "bytes", "indices.fielddata.memory_size_in_bytes"),
    _gauge(N, "V1/NodeStats/Indices/Fielddata/Evictions", "evictions", "indices.fielddata.evictions"),
    _gauge(N, "V1/NodeStats/Indices/IdCache/Size", "bytes", "indices.id_cache.memory_size_in_bytes"),
    _gauge(N, "V1/NodeStats/Indices/Completion/Size", "bytes", "indices.completion.size_in_bytes"),

    # JVM and system
    _gauge(N, "V1/NodeStats/Jvm/Mem/HeapUsedPercent", "percent", "jvm.mem.heap_used_percent"),
    _gauge(N, "V1/NodeStats/Process/Cpu/Percent", "percent", "process.cpu.percent"),
    _computed(N, "V1/NodeStats/Os/LoadAverage", "units", Computation.LOAD_AVERAGE),
    _counter(N, "NodeStats/Jvm/Gc/Old/CollectionCount", "collections", "jvm.gc.collectors.old.collection_count"),
    _counter(N, "NodeStats/Jvm/Gc/Old/CollectionTime", "milliseconds", "jvm.gc.collectors.old.collection_time_in_millis"),
    _counter(N, "NodeStats/Jvm/Gc/Young/CollectionCount", "collections", "jvm.gc.collectors.young.collection_count"),
    _counter(N, "NodeStats/Jvm/Gc/Young/CollectionTime", "milliseconds", "jvm.gc.collectors.young.collection_time_in_millis"),
    _computed(N, "V1/NodeStats/Os/Swap/Percent", "percent", Computation.SWAP_RATIO),

    # I/O
    _counter(N, "NodeStats/Fs/Total/DiskReadSizeInBytes", "bytes", "fs.total.disk_read_size_in_bytes"),
    _counter(N, "NodeStats/Fs/Total/DiskWriteSizeInBytes", "bytes", "fs.total.disk_write_size_in_bytes"),
    _gauge(N, "V1/NodeStats/Process/OpenFileDescriptors", "descriptors", "process.open_file_descriptors"),
    _counter(N, "NodeStats/Indices/Store/ThrottleTimeInMillis", "ms", "indices.store.throttle_time_in_millis"),

    # Network
    _counter(N, "NodeStats/Transport/ServerOpen", "bytes", "transport.server_open"),
    _counter(N, "NodeStats/Http/TotalOpened", "connections", "http.total_opened"),
    _counter(N, "NodeStats/Transport/TxSizeInBytes", "bytes", "transport.tx_size_in_bytes"),
    _counter(N, "NodeStats/Transport/RxSizeInBytes", "bytes", "transport.rx_size_in_bytes"),
)

# Thread pools: completed is cumulative, queue is instantaneous
_NODE_THREAD_POOLS: Tuple[MetricSpec, ...] = tuple(
    spec
    for pool in THREAD_POOLS
    for spec in (
        _counter(N, f"NodeStats/ThreadPool/{pool.capitalize()}/Completed", "threads", f"thread_pool.{pool}.completed"),
        _gauge(N, f"V1/NodeStats/ThreadPool/{pool.capitalize()}/Queue", "threads", f"thread_pool.{pool}.queue"),
    )
)

NODE_METRICS: Tuple[MetricSpec, ...] = _NODE_FIXED + _NODE_THREAD_POOLS


def _index(specs: Tuple[MetricSpec, ...]) -> Dict[str, MetricSpec]:
    by_name: Dict[str, MetricSpec] = {}
    for spec in specs:
        if spec.name in by_name:
            raise ValueError(f"Duplicate metric name in catalog: {spec.name}")
        by_name[spec.name] = spec
    return by_name


CATALOG: Dict[str, MetricSpec] = _index(CLUSTER_METRICS + NODE_METRICS)


def classify(name: str) -> MetricKind:
    """
    Kind of a catalog metric.

    Raises:
        KeyError: name is not a known metric
    """
    return CATALOG[name].kind
