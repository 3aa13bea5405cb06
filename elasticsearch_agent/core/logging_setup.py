"""Logging setup driven by MonitoringConfig."""

import logging
import logging.handlers
from pathlib import Path

from elasticsearch_agent.core.config import MonitoringConfig

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(config: MonitoringConfig) -> logging.Logger:
    """
    Configure the package logger.

    Console output always; a rotating file in log_dir when log_to_file is set.
    Calling it again replaces the handlers instead of stacking them.
    """
    root = logging.getLogger("elasticsearch_agent")
    root.setLevel(config.log_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    if config.log_to_file:
        log_dir = Path(config.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / "elasticsearch_agent.log",
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    root.propagate = False
    return root
