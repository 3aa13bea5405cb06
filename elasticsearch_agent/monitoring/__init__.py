"""Monitoring: metric emitters and agent self-metrics."""

from elasticsearch_agent.monitoring.emitter import Emitter, LogEmitter, NewRelicEmitter
from elasticsearch_agent.monitoring.metrics import MetricsCollector

__all__ = ["Emitter", "LogEmitter", "NewRelicEmitter", "MetricsCollector"]
