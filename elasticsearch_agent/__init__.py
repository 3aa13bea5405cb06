"""
Elasticsearch Agent for New Relic

Polls an Elasticsearch cluster's stats API on a fixed cadence and reports
point-in-time and per-second rate metrics to New Relic.

Components:
- Scheduler: Triggers poll cycles at a fixed interval
- Stats Fetcher: Pulls /_cluster/stats and /_nodes/stats into snapshots
- Stats Aggregator: Cross-node summaries (version count, query totals)
- Rate Engine: Turns cumulative counters into per-second rates
- Reporting Pipeline: Fetch → Aggregate → Derive → Emit, one cycle at a time
- Monitoring: Emitters (New Relic, log) and agent self-metrics
"""

__version__ = "0.3.0"

from elasticsearch_agent.core.config import Config
from elasticsearch_agent.core.scheduler import Scheduler

__all__ = [
    "Config",
    "Scheduler",
]
