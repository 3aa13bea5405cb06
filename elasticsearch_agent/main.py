"""
Main entry point for the Elasticsearch agent.

Orchestrates all components: Scheduler → Fetcher → Aggregator → Rate engine → Emitter.
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Callable, Optional

from dotenv import load_dotenv

from elasticsearch_agent import __version__
from elasticsearch_agent.core.config import Config
from elasticsearch_agent.core.logging_setup import setup_logging
from elasticsearch_agent.core.scheduler import Scheduler
from elasticsearch_agent.data.exceptions import StatsFetchError
from elasticsearch_agent.data.loader import StatsFetcher
from elasticsearch_agent.engine.aggregator import StatsAggregator
from elasticsearch_agent.engine.rates import RateDerivationEngine
from elasticsearch_agent.monitoring.emitter import Emitter, LogEmitter, NewRelicEmitter
from elasticsearch_agent.monitoring.metrics import MetricsCollector
from elasticsearch_agent.pipeline.reporting import CycleResult, Fetcher, ReportingPipeline

logger = logging.getLogger(__name__)


class AgentStartupError(Exception):
    """The agent could not identify the cluster it is meant to monitor."""


class ElasticsearchAgent:
    """
    Main orchestrator for one monitored cluster.

    Resolves the cluster name once at startup (it labels every report for the
    life of the process), then hands each scheduler tick to the pipeline.
    """

    def __init__(
        self,
        config: Config,
        dry_run: bool = False,
        fetcher: Optional[Fetcher] = None,
        emitter: Optional[Emitter] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize agent.

        Args:
            config: System configuration
            dry_run: Log metrics instead of posting them to New Relic
            fetcher: Stats source (defaults to the HTTP fetcher)
            emitter: Metric sink (defaults by dry_run)
            clock: Time source (epoch seconds)

        Raises:
            AgentStartupError: cluster stats could not be fetched
        """
        self.config = config
        self.fetcher = fetcher or StatsFetcher(config)

        logger.info("[Init] Connecting to %s", config.elasticsearch.base_url)
        self.cluster_name = self._resolve_cluster_name()
        logger.info("[Init] Monitoring cluster '%s'", self.cluster_name)

        if emitter is None:
            if dry_run:
                emitter = LogEmitter()
            else:
                emitter = NewRelicEmitter(config, self.cluster_name, __version__, clock=clock)
        self.emitter = emitter

        self.engine = RateDerivationEngine()
        self.metrics = MetricsCollector()
        self.pipeline = ReportingPipeline(
            fetcher=self.fetcher,
            emitter=self.emitter,
            engine=self.engine,
            aggregator=StatsAggregator(),
            collector=self.metrics,
            clock=clock,
        )
        self.scheduler = Scheduler(config, self.poll_cycle, clock=clock)

        logger.info("[Init] All components initialized")

    def _resolve_cluster_name(self) -> str:
        try:
            return self.fetcher.fetch("cluster").cluster_name
        except StatsFetchError as e:
            raise AgentStartupError(
                f"Can't read cluster stats at {self.config.elasticsearch.base_url}: {e}"
            ) from e

    @property
    def component_label(self) -> str:
        return self.cluster_name

    def poll_cycle(self) -> CycleResult:
        """Execute one poll cycle."""
        return self.pipeline.run_cycle()

    def run(self):
        """Run the agent (blocks until interrupted)."""
        logger.info("[Main] Starting scheduler...")
        try:
            self.scheduler.run_forever()
        except KeyboardInterrupt:
            logger.info("[Main] Shutdown signal received")
            self.scheduler.stop()
        finally:
            logger.info("[Main] Agent stats: %s", self.metrics.snapshot())
            self.close()

    def close(self):
        """Release the fetcher and emitter HTTP sessions."""
        for component in (self.fetcher, self.emitter):
            close = getattr(component, "close", None)
            if close is not None:
                close()


def main(argv: Optional[list] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Report Elasticsearch cluster stats to New Relic")
    parser.add_argument("--config", type=str, default="", help="Path to YAML config file")
    parser.add_argument("--dry-run", action="store_true", help="Log metrics instead of sending them")
    parser.add_argument("--once", action="store_true", help="Run a single poll cycle and exit")
    args = parser.parse_args(argv)

    # Load .env if present (before Config) to populate ES_* / NEWRELIC_* variables
    load_dotenv(dotenv_path=Path.cwd() / ".env")

    if args.config:
        config = Config.from_yaml(args.config)
    else:
        config = Config()

    setup_logging(config.monitoring)
    logger.info("[Main] Elasticsearch agent %s", __version__)

    errors = config.validate(require_license=not args.dry_run)
    if errors:
        logger.error("[Main] Configuration validation failed:")
        for err in errors:
            logger.error("  - %s", err)
        return 1

    try:
        agent = ElasticsearchAgent(config, dry_run=args.dry_run)
    except AgentStartupError as e:
        logger.error("[Main] %s", e)
        return 1

    if args.once:
        try:
            result = agent.poll_cycle()
        finally:
            agent.close()
        return 0 if result.ok else 1

    agent.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
