"""
Stats Fetcher

Pulls /_cluster/stats and /_nodes/stats from the Elasticsearch HTTP API and
parses them into immutable snapshots. Timeouts, connection failures and
non-success statuses surface as TransportError; undecodable or mis-shaped
bodies surface as ParseError.
"""

import logging
from typing import Any, Dict, Optional, Union

import requests

from elasticsearch_agent.core.config import Config
from elasticsearch_agent.data.exceptions import ParseError, TransportError
from elasticsearch_agent.data.snapshot import ClusterSnapshot, NodesSnapshot

logger = logging.getLogger(__name__)

Snapshot = Union[ClusterSnapshot, NodesSnapshot]


class StatsFetcher:
    """
    Fetches stats snapshots from one Elasticsearch endpoint.

    Two logical calls per poll cycle:
    - "cluster": /_cluster/stats -> ClusterSnapshot
    - "nodes":   /_nodes/stats   -> NodesSnapshot
    """

    PATHS: Dict[str, str] = {
        "cluster": "/_cluster/stats",
        "nodes": "/_nodes/stats",
    }

    def __init__(self, config: Config, session: Optional[requests.Session] = None):
        """
        Initialize fetcher.

        Args:
            config: System configuration
            session: HTTP session to reuse (a new one is created if omitted)
        """
        self.config = config
        self.base_url = config.elasticsearch.base_url
        self.timeout = config.elasticsearch.timeout_sec
        self.session = session or requests.Session()
        self.session.headers.setdefault("Accept", "application/json")
        if config.elasticsearch.username:
            self.session.auth = (config.elasticsearch.username, config.elasticsearch.password)
        self.session.verify = config.elasticsearch.verify_tls

    def fetch(self, target: str) -> Snapshot:
        """
        Fetch and parse one snapshot.

        Args:
            target: "cluster" or "nodes"

        Returns:
            ClusterSnapshot or NodesSnapshot

        Raises:
            TransportError: unreachable, timeout, non-success status
            ParseError: response does not match the expected shape
        """
        if target not in self.PATHS:
            raise ValueError(f"Unsupported fetch target: {target}")

        body = self._get_json(target)
        if target == "cluster":
            return ClusterSnapshot.from_response(body)
        return NodesSnapshot.from_response(body)

    def fetch_cluster_stats(self) -> ClusterSnapshot:
        return self.fetch("cluster")

    def fetch_nodes_stats(self) -> NodesSnapshot:
        return self.fetch("nodes")

    def close(self):
        self.session.close()

    # ------------------------
    # Internal helpers
    # ------------------------

    def _get_json(self, target: str) -> Any:
        url = self.base_url + self.PATHS[target]
        logger.debug("[StatsFetcher] GET %s", url)

        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.Timeout as e:
            raise TransportError(
                f"timed out after {self.timeout}s", target=target, url=url, original_error=e
            ) from e
        except requests.RequestException as e:
            raise TransportError(
                "request failed", target=target, url=url, original_error=e
            ) from e

        if not resp.ok:
            raise TransportError(
                f"unexpected status {resp.status_code}",
                target=target,
                url=url,
                status_code=resp.status_code,
            )

        try:
            return resp.json()
        except ValueError as e:
            raise ParseError(
                "response is not valid JSON", target=target, url=url, original_error=e
            ) from e
