"""
Configuration management for the Elasticsearch agent.

Supports loading from YAML/dict and environment variable overrides.
"""

import os
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Literal


@dataclass
class ElasticsearchConfig:
    """Where and how to reach the cluster's stats API."""

    host: str = "localhost"
    port: int = 9200
    scheme: Literal["http", "https"] = "http"
    username: str = ""
    password: str = ""
    timeout_sec: float = 10.0  # Per-request timeout; exceeding it is a TransportError
    verify_tls: bool = True

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"


@dataclass
class PollingConfig:
    """Poll cadence."""

    interval_sec: int = 60  # New Relic plugins report once a minute


@dataclass
class NewRelicConfig:
    """New Relic Plugin API settings."""

    license_key: str = ""  # From env
    endpoint: str = "https://platform-api.newrelic.com/platform/v1/metrics"
    guid: str = "me.snov.newrelic-elasticsearch"
    timeout_sec: float = 20.0


@dataclass
class MonitoringConfig:
    """Logging for the agent itself."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_dir: str = "logs"
    log_to_file: bool = False


@dataclass
class Config:
    """
    Complete agent configuration.

    Environment variables (override config file):
    - ES_HOST, ES_PORT, ES_SCHEME: Cluster address
    - ES_USERNAME, ES_PASSWORD: Basic auth credentials
    - NEWRELIC_LICENSE_KEY: New Relic license key
    - POLL_INTERVAL_SEC: Poll cadence in seconds
    """

    elasticsearch: ElasticsearchConfig = field(default_factory=ElasticsearchConfig)
    polling: PollingConfig = field(default_factory=PollingConfig)
    newrelic: NewRelicConfig = field(default_factory=NewRelicConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    def __post_init__(self):
        """Load environment variable overrides."""
        if os.getenv("ES_HOST"):
            self.elasticsearch.host = os.getenv("ES_HOST", "localhost")

        if os.getenv("ES_PORT"):
            self.elasticsearch.port = int(os.getenv("ES_PORT", "9200"))

        if os.getenv("ES_SCHEME"):
            self.elasticsearch.scheme = os.getenv("ES_SCHEME", "http")

        if os.getenv("ES_USERNAME"):
            self.elasticsearch.username = os.getenv("ES_USERNAME", "")

        if os.getenv("ES_PASSWORD"):
            self.elasticsearch.password = os.getenv("ES_PASSWORD", "")

        if os.getenv("NEWRELIC_LICENSE_KEY"):
            self.newrelic.license_key = os.getenv("NEWRELIC_LICENSE_KEY", "")

        if os.getenv("POLL_INTERVAL_SEC"):
            self.polling.interval_sec = int(os.getenv("POLL_INTERVAL_SEC", "60"))

    @classmethod
    def from_yaml(cls, path: str) -> "Config":
        """Load config from YAML file."""
        import yaml

        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """Load config from dictionary."""
        def build(dc_type, data):
            if not is_dataclass(dc_type):
                return data
            kwargs = {}
            for f in fields(dc_type):
                if f.name in data:
                    val = data[f.name]
                    if hasattr(f.type, "__dataclass_fields__"):
                        kwargs[f.name] = build(f.type, val or {})
                    else:
                        kwargs[f.name] = val
            return dc_type(**kwargs)
        return build(cls, data)

    def validate(self, require_license: bool = True) -> list[str]:
        """
        Validate configuration parameters.

        Args:
            require_license: False for dry runs that never talk to New Relic

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.elasticsearch.host:
            errors.append("elasticsearch.host must not be empty")

        if not (1 <= self.elasticsearch.port <= 65535):
            errors.append("elasticsearch.port must be in [1, 65535]")

        if self.elasticsearch.scheme not in ("http", "https"):
            errors.append("elasticsearch.scheme must be 'http' or 'https'")

        if self.elasticsearch.timeout_sec <= 0:
            errors.append("elasticsearch.timeout_sec must be > 0")

        if self.polling.interval_sec <= 0:
            errors.append("polling.interval_sec must be > 0")

        if self.newrelic.timeout_sec <= 0:
            errors.append("newrelic.timeout_sec must be > 0")

        if require_license and not self.newrelic.license_key:
            errors.append("NEWRELIC_LICENSE_KEY environment variable required")

        return errors
