"""
Rate Derivation Engine

Turns ever-increasing cumulative counters into per-second rates by
remembering the previous observation of every (metric, entity) series.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional, Set

from elasticsearch_agent.utils.math_helpers import per_second

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricKey:
    """
    Identity of one counter series.

    Cluster-scoped metrics use an empty entity; node-scoped metrics use the
    node id, so the same metric on two nodes is two independent series even
    when the nodes share a display name.
    """

    name: str
    entity: str = ""

    @classmethod
    def for_node(cls, name: str, node_id: str) -> "MetricKey":
        return cls(name=name, entity=node_id)


@dataclass(frozen=True)
class CounterState:
    """Baseline for the next rate computation."""

    last_value: float
    last_observed_at: float


class RateDerivationEngine:
    """
    Owns the per-key counter table.

    process() rules:
    1. First observation of a key: store baseline, return 0
    2. Counter decreased (reset): store new baseline, return 0
    3. No time elapsed (duplicate or out-of-order sample): return 0, keep state
    4. Otherwise: store sample, return delta / elapsed

    Only this class mutates the table. One instance is created per agent and
    passed to the pipeline; state lives for the process lifetime only.
    """

    def __init__(self):
        self._states: Dict[MetricKey, CounterState] = {}
        self._lock = threading.Lock()

    def process(self, key: MetricKey, raw_value: float, now: float) -> float:
        """
        Derive a per-second rate for one counter sample.

        Args:
            key: Series identity
            raw_value: Cumulative counter value
            now: Observation time (epoch seconds)

        Returns:
            Units per second, never negative
        """
        with self._lock:
            previous = self._states.get(key)

            if previous is None:
                self._states[key] = CounterState(raw_value, now)
                return 0.0

            delta = raw_value - previous.last_value
            if delta < 0:
                logger.debug("[RateEngine] Counter reset on %s: %s -> %s", key, previous.last_value, raw_value)
                self._states[key] = CounterState(raw_value, now)
                return 0.0

            elapsed = now - previous.last_observed_at
            if elapsed <= 0:
                return 0.0

            self._states[key] = CounterState(raw_value, now)
            return per_second(delta, elapsed)

    def state(self, key: MetricKey) -> Optional[CounterState]:
        with self._lock:
            return self._states.get(key)

    def entities(self) -> Set[str]:
        """Node ids with at least one tracked series."""
        with self._lock:
            return {k.entity for k in self._states if k.entity}

    def forget(self, entity: str) -> int:
        """Drop every series of one entity (e.g. a node that left). Returns count dropped."""
        with self._lock:
            stale = [k for k in self._states if k.entity == entity]
            for k in stale:
                del self._states[k]
        return len(stale)

    def __contains__(self, key: MetricKey) -> bool:
        with self._lock:
            return key in self._states

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)
