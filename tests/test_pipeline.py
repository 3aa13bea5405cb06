"""Tests for the poll-cycle pipeline: derivation, failure policy, emission."""

import copy
import threading

import pytest

from elasticsearch_agent.data.exceptions import ParseError, TransportError
from elasticsearch_agent.engine.catalog import CATALOG, CLUSTER_METRICS, NODE_METRICS, MetricKind
from elasticsearch_agent.engine.rates import CounterState, MetricKey, RateDerivationEngine
from elasticsearch_agent.monitoring.metrics import MetricsCollector
from elasticsearch_agent.pipeline.reporting import CycleOutcome, CycleState, ReportingPipeline
from tests.helpers import (
    CLUSTER_STATS,
    NODES_STATS,
    RecordingEmitter,
    ScriptedFetcher,
    make_snapshots,
    node_stats,
)

DOCS_ADDED = "V1/ClusterStats/Indices/DocsAdded"
QUERY_RATE_A = "V1/NodeStats/Indices/Search/QueryTotal/node-a"


def snapshots_with_docs(count):
    cluster = copy.deepcopy(CLUSTER_STATS)
    cluster["indices"]["docs"]["count"] = count
    return make_snapshots(cluster, NODES_STATS)


def build(script, emitter=None):
    fetcher = ScriptedFetcher(script)
    emitter = emitter or RecordingEmitter()
    engine = RateDerivationEngine()
    pipeline = ReportingPipeline(fetcher, emitter, engine, collector=MetricsCollector())
    return pipeline, fetcher, emitter, engine


def test_failed_cycle_keeps_baseline():
    """100 @ t=0, failure @ t=60, 160 @ t=120 -> (160-100)/120 = 0.5/s."""
    failure = TransportError("connection refused", target="cluster")
    pipeline, _, emitter, engine = build([
        snapshots_with_docs(100),
        (failure, None),
        snapshots_with_docs(160),
    ])

    first = pipeline.run_cycle(now=0.0)
    assert first.ok
    assert emitter.value(DOCS_ADDED) == 0

    emitter.emitted.clear()
    second = pipeline.run_cycle(now=60.0)
    assert second.outcome is CycleOutcome.FAILED
    assert second.error is failure
    assert emitter.emitted == {}
    assert engine.state(MetricKey(DOCS_ADDED)).last_observed_at == 0.0

    third = pipeline.run_cycle(now=120.0)
    assert third.ok
    assert emitter.value(DOCS_ADDED) == pytest.approx(0.5)


def test_nodes_fetch_failure_aborts_before_any_derivation():
    cluster, _ = make_snapshots(CLUSTER_STATS, NODES_STATS)
    pipeline, fetcher, emitter, engine = build([
        (cluster, ParseError("bad body", target="nodes")),
    ])

    result = pipeline.run_cycle(now=0.0)

    assert result.outcome is CycleOutcome.FAILED
    assert fetcher.calls == ["cluster", "nodes"]
    assert len(engine) == 0
    assert emitter.emitted == {}
    assert emitter.flushes == 0
    assert pipeline.collector.snapshot()["cycles_failed"] == 1
    assert pipeline.state is CycleState.IDLE


def test_gauges_pass_through_and_counters_become_rates():
    first = make_snapshots(CLUSTER_STATS, NODES_STATS)
    nodes = copy.deepcopy(NODES_STATS)
    nodes["nodes"]["id-a"]["indices"]["search"]["query_total"] = 70
    second = make_snapshots(CLUSTER_STATS, nodes)
    pipeline, _, emitter, _ = build([first, second])

    pipeline.run_cycle(now=0.0)
    assert emitter.value(QUERY_RATE_A) == 0
    assert emitter.value("V1/NodeStats/Jvm/Mem/HeapUsedPercent/node-a") == 42

    pipeline.run_cycle(now=60.0)
    assert emitter.value(QUERY_RATE_A) == pytest.approx(1.0)
    assert emitter.emitted[QUERY_RATE_A][0] == "requests"
    assert emitter.value("V1/ClusterStats/Indices/Docs/Count") == 100
    assert emitter.value("V1/ClusterStats/Indices/Primaries") == 24


def test_aggregates_are_emitted(recording_emitter):
    pipeline, _, emitter, _ = build([make_snapshots(CLUSTER_STATS, NODES_STATS)], recording_emitter)
    pipeline.run_cycle(now=0.0)

    assert emitter.value("V1/ClusterStats/NumberOfVersionsInCluster") == 1
    assert emitter.value("V1/QueriesStats/Search") == 30
    assert emitter.value("V1/QueriesStats/Index") == 300
    assert emitter.emitted["V1/QueriesStats/Delete"] == ("queries", 4)


def test_special_cases():
    nodes = copy.deepcopy(NODES_STATS)
    nodes["nodes"]["id-b"]["os"] = {"load_average": [], "swap": {"used_in_bytes": 0, "free_in_bytes": 0}}
    pipeline, _, emitter, _ = build([make_snapshots(CLUSTER_STATS, nodes)])

    pipeline.run_cycle(now=0.0)

    assert emitter.value("V1/NodeStats/Os/LoadAverage/node-a") == 1.5
    assert "V1/NodeStats/Os/LoadAverage/node-b" not in emitter.emitted
    assert emitter.value("V1/NodeStats/Os/Swap/Percent/node-a") == pytest.approx(0.25)
    assert emitter.value("V1/NodeStats/Os/Swap/Percent/node-b") == 0


def test_missing_counter_field_reports_zero_and_keeps_state():
    name = "V1/NodeStats/Indices/Indexing/Index"
    missing = copy.deepcopy(NODES_STATS)
    del missing["nodes"]["id-a"]["indices"]["indexing"]
    later = copy.deepcopy(NODES_STATS)
    later["nodes"]["id-a"]["indices"]["indexing"]["index_total"] = 220

    pipeline, _, emitter, engine = build([
        make_snapshots(CLUSTER_STATS, NODES_STATS),
        make_snapshots(CLUSTER_STATS, missing),
        make_snapshots(CLUSTER_STATS, later),
    ])

    pipeline.run_cycle(now=0.0)
    pipeline.run_cycle(now=60.0)
    assert emitter.value(f"{name}/node-a") == 0
    assert engine.state(MetricKey(name, "node-a")).last_value == 100

    pipeline.run_cycle(now=120.0)
    assert emitter.value(f"{name}/node-a") == pytest.approx(1.0)


def test_missing_gauge_field_reports_zero():
    nodes = copy.deepcopy(NODES_STATS)
    del nodes["nodes"]["id-a"]["jvm"]
    pipeline, _, emitter, _ = build([make_snapshots(CLUSTER_STATS, nodes)])

    pipeline.run_cycle(now=0.0)
    assert emitter.value("V1/NodeStats/Jvm/Mem/HeapUsedPercent/node-a") == 0


def test_emit_failure_does_not_stop_other_metrics():
    bad = "V1/ClusterStats/Indices/Docs/Count"
    emitter = RecordingEmitter(fail_on=(bad,))
    pipeline, _, emitter, _ = build([make_snapshots(CLUSTER_STATS, NODES_STATS)], emitter)

    result = pipeline.run_cycle(now=0.0)

    assert result.ok
    assert result.emit_failures == 1
    assert result.emitted == len(result.metrics) - 1
    assert bad not in emitter.emitted
    assert "V1/ClusterStats/Indices/Docs/Deleted" in emitter.emitted
    assert emitter.flushes == 1


def test_every_catalog_metric_is_emitted_for_a_full_snapshot():
    pipeline, _, emitter, _ = build([make_snapshots(CLUSTER_STATS, NODES_STATS)])
    pipeline.run_cycle(now=0.0)

    expected = {spec.name for spec in CLUSTER_METRICS}
    for node in ("node-a", "node-b"):
        expected |= {spec.series_name(node) for spec in NODE_METRICS}
    assert set(emitter.emitted) == expected


def test_one_series_per_present_counter():
    cluster, nodes = make_snapshots(CLUSTER_STATS, NODES_STATS)
    pipeline, _, _, engine = build([(cluster, nodes)])
    pipeline.run_cycle(now=0.0)

    expected = {
        MetricKey(spec.name)
        for spec in CLUSTER_METRICS
        if spec.kind is MetricKind.COUNTER and cluster.value(spec.source) is not None
    }
    for node in nodes:
        expected |= {
            MetricKey.for_node(spec.name, node.node_id)
            for spec in NODE_METRICS
            if spec.kind is MetricKind.COUNTER and node.value(spec.source) is not None
        }
    assert expected
    assert len(engine) == len(expected)
    assert all(key in engine for key in expected)


def test_overlapping_cycle_is_skipped():
    started = threading.Event()
    release = threading.Event()
    snapshots = make_snapshots(CLUSTER_STATS, NODES_STATS)

    class SlowFetcher:
        def fetch(self, target):
            if target == "cluster":
                started.set()
                release.wait(5)
                return snapshots[0]
            return snapshots[1]

    emitter = RecordingEmitter()
    engine = RateDerivationEngine()
    pipeline = ReportingPipeline(SlowFetcher(), emitter, engine)

    results = []
    worker = threading.Thread(target=lambda: results.append(pipeline.run_cycle(now=0.0)))
    worker.start()
    assert started.wait(5)

    skipped = pipeline.run_cycle(now=1.0)
    release.set()
    worker.join(5)

    assert skipped.outcome is CycleOutcome.SKIPPED
    assert results[0].ok
    assert pipeline.collector.snapshot()["cycles_skipped"] == 1
    # Only the first cycle's baseline exists
    assert engine.state(MetricKey(DOCS_ADDED)).last_observed_at == 0.0


def test_catalog_kinds_are_closed():
    assert all(spec.kind in MetricKind for spec in CATALOG.values())


QUERY_TOTAL = "V1/NodeStats/Indices/Search/QueryTotal"


def nodes_body(**nodes):
    """nodes_body(id_1=("node-a", 1000)) -> /_nodes/stats body keyed by node id."""
    return {
        "cluster_name": "prod-search",
        "nodes": {
            node_id: node_stats(name, query_total=query_total, index_total=100)
            for node_id, (name, query_total) in nodes.items()
        },
    }


def test_nodes_sharing_a_name_keep_separate_counters():
    body = nodes_body(id_1=("node-a", 1000), id_2=("node-a", 50))
    snapshots = make_snapshots(CLUSTER_STATS, body)
    pipeline, _, emitter, engine = build([snapshots, snapshots])

    pipeline.run_cycle(now=0.0)
    pipeline.run_cycle(now=60.0)

    # Static counters on both nodes: no spike from one node "resetting" the other
    assert emitter.value(f"{QUERY_TOTAL}/node-a") == 0
    assert engine.state(MetricKey.for_node(QUERY_TOTAL, "id_1")).last_value == 1000
    assert engine.state(MetricKey.for_node(QUERY_TOTAL, "id_2")).last_value == 50
    assert engine.state(MetricKey.for_node(QUERY_TOTAL, "id_1")).last_observed_at == 60.0


def test_departed_node_series_are_dropped():
    both = make_snapshots(CLUSTER_STATS, nodes_body(id_1=("node-a", 100), id_2=("node-b", 100)))
    only_first = make_snapshots(CLUSTER_STATS, nodes_body(id_1=("node-a", 160)))
    back = make_snapshots(CLUSTER_STATS, nodes_body(id_1=("node-a", 220), id_2=("node-b", 700)))
    pipeline, _, emitter, engine = build([both, only_first, back])

    pipeline.run_cycle(now=0.0)
    assert engine.entities() == {"id_1", "id_2"}

    pipeline.run_cycle(now=60.0)
    assert engine.entities() == {"id_1"}
    assert MetricKey.for_node(QUERY_TOTAL, "id_2") not in engine
    assert MetricKey(DOCS_ADDED) in engine

    pipeline.run_cycle(now=120.0)
    # Returning node starts from a fresh baseline, not from its old value
    assert emitter.value(f"{QUERY_TOTAL}/node-b") == 0
    assert engine.state(MetricKey.for_node(QUERY_TOTAL, "id_2")) == CounterState(700, 120.0)
    assert emitter.value(f"{QUERY_TOTAL}/node-a") == pytest.approx(1.0)


def test_failed_cycle_does_not_forget_nodes():
    snapshots = make_snapshots(CLUSTER_STATS, NODES_STATS)
    failure = TransportError("timeout", target="nodes")
    pipeline, _, _, engine = build([snapshots, (snapshots[0], failure)])

    pipeline.run_cycle(now=0.0)
    pipeline.run_cycle(now=60.0)

    assert engine.entities() == {"id-a", "id-b"}
