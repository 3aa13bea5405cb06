"""
Reporting Pipeline

Runs one poll cycle: Fetch → Aggregate → Derive → Emit.

A failed fetch (TransportError/ParseError) aborts the cycle before any counter
state is touched, so the next good cycle differences against the last good
observation. Counter series of nodes missing from a good snapshot are dropped
after deriving. Overlapping cycles are skipped, never interleaved.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from elasticsearch_agent.data.exceptions import StatsFetchError
from elasticsearch_agent.data.snapshot import ClusterSnapshot, FieldTree, NodesSnapshot
from elasticsearch_agent.engine.aggregator import StatsAggregator
from elasticsearch_agent.engine.catalog import (
    CLUSTER_METRICS,
    NODE_METRICS,
    Computation,
    MetricKind,
    MetricSpec,
    Scope,
)
from elasticsearch_agent.engine.rates import MetricKey, RateDerivationEngine
from elasticsearch_agent.monitoring.emitter import Emitter
from elasticsearch_agent.monitoring.metrics import MetricsCollector
from elasticsearch_agent.utils.math_helpers import first_number, safe_ratio

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    def fetch(self, target: str):
        ...


class CycleState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    AGGREGATING = "aggregating"
    DERIVING = "deriving"
    EMITTING = "emitting"
    FAILED = "failed"


class CycleOutcome(Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class DerivedMetric:
    """One value ready for the emitter."""

    name: str
    units: str
    value: float


@dataclass
class CycleResult:
    """What one run_cycle() call did."""

    outcome: CycleOutcome
    timestamp: Optional[float] = None
    metrics: List[DerivedMetric] = field(default_factory=list)
    emitted: int = 0
    emit_failures: int = 0
    error: Optional[StatsFetchError] = None

    @property
    def ok(self) -> bool:
        return self.outcome is CycleOutcome.COMPLETED


class ReportingPipeline:
    """
    Orchestrates poll cycles.

    State per cycle: IDLE → FETCHING → {AGGREGATING → DERIVING → EMITTING → IDLE}
    or FETCHING → FAILED → IDLE.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        emitter: Emitter,
        engine: RateDerivationEngine,
        aggregator: Optional[StatsAggregator] = None,
        collector: Optional[MetricsCollector] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize pipeline.

        Args:
            fetcher: Produces cluster and nodes snapshots
            emitter: Receives derived metrics
            engine: Counter state owner (one per agent)
            aggregator: Cross-node summaries
            collector: Agent self-metrics
            clock: Observation timestamp source (epoch seconds)
        """
        self.fetcher = fetcher
        self.emitter = emitter
        self.engine = engine
        self.aggregator = aggregator or StatsAggregator()
        self.collector = collector or MetricsCollector()
        self.clock = clock
        self.state = CycleState.IDLE
        self._cycle_lock = threading.Lock()

    def run_cycle(self, now: Optional[float] = None) -> CycleResult:
        """
        Run one complete poll cycle. Never raises fetch errors.

        Args:
            now: Observation time; defaults to clock() right after fetching

        Returns:
            CycleResult (SKIPPED if another cycle is still running)
        """
        if not self._cycle_lock.acquire(blocking=False):
            logger.warning("[Pipeline] Previous cycle still running, skipping this one")
            self.collector.record_skip()
            return CycleResult(outcome=CycleOutcome.SKIPPED, timestamp=now)

        try:
            return self._run(now)
        finally:
            self.state = CycleState.IDLE
            self._cycle_lock.release()

    def _run(self, now: Optional[float]) -> CycleResult:
        started = time.monotonic()

        # Step 1: Fetch both snapshots before anything is derived
        self.state = CycleState.FETCHING
        try:
            cluster = self.fetcher.fetch("cluster")
            nodes = self.fetcher.fetch("nodes")
        except StatsFetchError as e:
            self.state = CycleState.FAILED
            logger.error("[Pipeline] Fetch failed, no metrics this cycle: %s", e)
            self.collector.record_failure(str(e), time.monotonic() - started)
            return CycleResult(outcome=CycleOutcome.FAILED, timestamp=now, error=e)

        if now is None:
            now = self.clock()

        # Step 2: Aggregate
        self.state = CycleState.AGGREGATING
        aggregates = self.aggregate(cluster, nodes)

        # Step 3: Derive
        self.state = CycleState.DERIVING
        metrics = self.derive(cluster, nodes, aggregates, now)
        self.forget_departed(nodes)

        # Step 4: Emit
        self.state = CycleState.EMITTING
        emitted, failures = self._emit(metrics)

        duration = time.monotonic() - started
        self.collector.record_cycle(emitted, failures, duration)
        logger.info("[Pipeline] Cycle complete: %d metrics, %d emit failures, %.2fs",
                    emitted, failures, duration)
        return CycleResult(
            outcome=CycleOutcome.COMPLETED,
            timestamp=now,
            metrics=metrics,
            emitted=emitted,
            emit_failures=failures,
        )

    def aggregate(self, cluster: ClusterSnapshot, nodes: NodesSnapshot) -> Dict[Computation, float]:
        """Cluster-level computed values for this cycle."""
        queries = self.aggregator.total_queries(nodes)
        return {
            Computation.VERSION_COUNT: self.aggregator.distinct_version_count(cluster),
            Computation.QUERIES_SEARCH: queries.search,
            Computation.QUERIES_FETCH: queries.fetch,
            Computation.QUERIES_GET: queries.get,
            Computation.QUERIES_INDEX: queries.index,
            Computation.QUERIES_DELETE: queries.delete,
        }

    def derive(
        self,
        cluster: ClusterSnapshot,
        nodes: NodesSnapshot,
        aggregates: Dict[Computation, float],
        now: float,
    ) -> List[DerivedMetric]:
        """Walk the catalog once for the cluster and once per node."""
        derived: List[DerivedMetric] = []

        for spec in CLUSTER_METRICS:
            value = self._value(spec, cluster, "", aggregates, now)
            if value is not None:
                derived.append(DerivedMetric(spec.series_name(), spec.units, value))

        seen = set()
        for node in nodes:
            if node.name in seen:
                logger.warning("[Pipeline] Duplicate node name %r (id %s), reported series will collide",
                               node.name, node.node_id)
            seen.add(node.name)
            for spec in NODE_METRICS:
                value = self._value(spec, node, node.node_id, aggregates, now)
                if value is not None:
                    derived.append(DerivedMetric(spec.series_name(node.name), spec.units, value))

        return derived

    def _value(
        self,
        spec: MetricSpec,
        tree: FieldTree,
        node_id: str,
        aggregates: Dict[Computation, float],
        now: float,
    ) -> Optional[float]:
        """Value for one metric, or None to omit it this cycle."""
        if spec.kind is MetricKind.GAUGE:
            raw = tree.value(spec.source)
            return 0 if raw is None else raw

        if spec.kind is MetricKind.COUNTER:
            raw = tree.value(spec.source)
            if raw is None:
                # Missing sample: report 0 but keep the last real baseline
                return 0.0
            if spec.scope is Scope.NODE:
                key = MetricKey.for_node(spec.name, node_id)
            else:
                key = MetricKey(spec.name)
            return self.engine.process(key, raw, now)

        if spec.kind is MetricKind.COMPUTED:
            return self._compute(spec.source, tree, aggregates)

        raise ValueError(f"Unclassified metric: {spec.name}")

    def forget_departed(self, nodes: NodesSnapshot) -> int:
        """Drop counter state of nodes absent from this snapshot. Returns series dropped."""
        present = {node.node_id for node in nodes}
        dropped = 0
        for node_id in self.engine.entities() - present:
            count = self.engine.forget(node_id)
            logger.info("[Pipeline] Node %s left the cluster, dropped %d counter series", node_id, count)
            dropped += count
        return dropped

    @staticmethod
    def _compute(
        computation: Computation,
        tree: FieldTree,
        aggregates: Dict[Computation, float],
    ) -> Optional[float]:
        if computation is Computation.LOAD_AVERAGE:
            return first_number(tree.sequence("os.load_average"))

        if computation is Computation.SWAP_RATIO:
            return safe_ratio(tree.value("os.swap.used_in_bytes"), tree.value("os.swap.free_in_bytes"))

        return aggregates[computation]

    def _emit(self, metrics: List[DerivedMetric]) -> Tuple[int, int]:
        emitted = 0
        failures = 0
        for metric in metrics:
            try:
                self.emitter.emit(metric.name, metric.units, metric.value)
                emitted += 1
            except Exception as e:  # one bad emit must not stop the rest
                failures += 1
                logger.warning("[Pipeline] Emit failed for %s: %s", metric.name, e)

        try:
            self.emitter.flush()
        except Exception as e:
            logger.warning("[Pipeline] Emitter flush failed: %s", e)

        return emitted, failures
