"""Reporting pipeline: one poll cycle from fetch to emit."""

from elasticsearch_agent.pipeline.reporting import (
    CycleOutcome,
    CycleResult,
    CycleState,
    DerivedMetric,
    ReportingPipeline,
)

__all__ = ["ReportingPipeline", "CycleResult", "CycleOutcome", "CycleState", "DerivedMetric"]
