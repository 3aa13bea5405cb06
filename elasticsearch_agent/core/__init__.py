"""Core agent components: config, logging, scheduler."""

from elasticsearch_agent.core.config import Config
from elasticsearch_agent.core.logging_setup import setup_logging
from elasticsearch_agent.core.scheduler import Scheduler

__all__ = [
    "Config",
    "Scheduler",
    "setup_logging",
]
