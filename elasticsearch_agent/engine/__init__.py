"""Derivation engine: counter rates, cross-node aggregates, metric catalog."""

from elasticsearch_agent.engine.aggregator import QueriesStat, StatsAggregator
from elasticsearch_agent.engine.catalog import CATALOG, MetricKind, MetricSpec, Scope, classify
from elasticsearch_agent.engine.rates import CounterState, MetricKey, RateDerivationEngine

__all__ = [
    "RateDerivationEngine",
    "MetricKey",
    "CounterState",
    "StatsAggregator",
    "QueriesStat",
    "CATALOG",
    "MetricKind",
    "MetricSpec",
    "Scope",
    "classify",
]
