"""
Metric Emitters

Where derived metrics go:
- NewRelicEmitter: buffers one cycle of metrics and posts them to the
  New Relic Plugin API on flush()
- LogEmitter: logs every metric (dry runs, debugging)
"""

import logging
import os
import socket
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol

import requests

from elasticsearch_agent.core.config import Config

logger = logging.getLogger(__name__)


class Emitter(Protocol):
    """Sink for derived metrics."""

    def emit(self, name: str, units: str, value: float) -> None:
        ...

    def flush(self) -> None:
        ...


@dataclass
class MetricAggregate:
    """Samples of one metric waiting to be posted (Plugin API aggregate form)."""

    count: int = 0
    total: float = 0.0
    min: float = 0.0
    max: float = 0.0
    sum_of_squares: float = 0.0

    def add(self, value: float):
        value = float(value)
        if self.count == 0:
            self.min = self.max = value
        else:
            self.min = min(self.min, value)
            self.max = max(self.max, value)
        self.count += 1
        self.total += value
        self.sum_of_squares += value * value

    def to_payload(self):
        if self.count == 1:
            return self.total
        return {
            "total": self.total,
            "count": self.count,
            "min": self.min,
            "max": self.max,
            "sum_of_squares": self.sum_of_squares,
        }


class NewRelicEmitter:
    """
    Posts metrics to the New Relic Plugin API.

    Metrics are keyed on the wire as "Component/<name>[<units>]". If a post
    fails with a transient error (network, 5xx) the buffered samples are kept
    and aggregated into the next post. Client errors (4xx) drop them.
    """

    def __init__(
        self,
        config: Config,
        component_name: str,
        agent_version: str,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize emitter.

        Args:
            config: System configuration
            component_name: Human-readable label (the cluster name)
            agent_version: Reported agent version
            session: HTTP session to reuse
            clock: Time source (epoch seconds)
        """
        self.config = config
        self.component_name = component_name
        self.agent_version = agent_version
        self.session = session or requests.Session()
        self.clock = clock
        self._pending: Dict[str, MetricAggregate] = {}
        self._last_success: Optional[float] = None

    def emit(self, name: str, units: str, value: float) -> None:
        key = f"Component/{name}[{units}]"
        self._pending.setdefault(key, MetricAggregate()).add(value)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def build_payload(self, now: float) -> dict:
        if self._last_success is None:
            duration = self.config.polling.interval_sec
        else:
            duration = max(1, int(round(now - self._last_success)))
        return {
            "agent": {
                "host": socket.gethostname(),
                "pid": os.getpid(),
                "version": self.agent_version,
            },
            "components": [
                {
                    "name": self.component_name,
                    "guid": self.config.newrelic.guid,
                    "duration": duration,
                    "metrics": {k: agg.to_payload() for k, agg in self._pending.items()},
                }
            ],
        }

    def flush(self) -> None:
        """Send buffered metrics. Failures are logged, never raised."""
        if not self._pending:
            return

        now = self.clock()
        payload = self.build_payload(now)
        headers = {
            "X-License-Key": self.config.newrelic.license_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        try:
            resp = self.session.post(
                self.config.newrelic.endpoint,
                json=payload,
                headers=headers,
                timeout=self.config.newrelic.timeout_sec,
            )
        except requests.RequestException as e:
            logger.warning("[NewRelic] Post failed, keeping %d metrics for next cycle: %s", len(self._pending), e)
            return

        if resp.ok:
            logger.debug("[NewRelic] Posted %d metrics", len(self._pending))
            self._pending.clear()
            self._last_success = now
        elif resp.status_code >= 500:
            logger.warning("[NewRelic] Server error %s, keeping %d metrics", resp.status_code, len(self._pending))
        else:
            logger.error("[NewRelic] Rejected with %s, dropping %d metrics: %s",
                         resp.status_code, len(self._pending), resp.text[:200])
            self._pending.clear()

    def close(self) -> None:
        """Release the HTTP session. Unsent metrics are discarded."""
        if self._pending:
            logger.warning("[NewRelic] Closing with %d unsent metrics", len(self._pending))
        self.session.close()


class LogEmitter:
    """Logs metrics instead of sending them."""

    def __init__(self, level: int = logging.INFO):
        self.level = level
        self.count = 0

    def emit(self, name: str, units: str, value: float) -> None:
        self.count += 1
        logger.log(self.level, "[DryRun] %s [%s] = %s", name, units, value)

    def flush(self) -> None:
        logger.log(self.level, "[DryRun] Cycle emitted %d metrics", self.count)
        self.count = 0
