"""
Scheduler: Triggers poll cycles at a fixed interval.

Cadence is anchored to the first poll. A cycle that overruns one or more
ticks causes those ticks to be skipped, not replayed back to back.
"""

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from elasticsearch_agent.core.config import Config

logger = logging.getLogger(__name__)


class Scheduler:
    """
    Fixed-interval poll scheduler.

    Calls poll_callback every polling.interval_sec seconds from a single
    thread. The first poll runs immediately on start.
    """

    def __init__(
        self,
        config: Config,
        poll_callback: Callable[[], None],
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize scheduler.

        Args:
            config: System configuration
            poll_callback: Function to call on each tick
            clock: Time source (epoch seconds)
        """
        self.config = config
        self.poll_callback = poll_callback
        self.clock = clock
        self.interval = float(config.polling.interval_sec)
        self.running = False
        self.last_poll_ts: float = 0.0
        self.skipped_ticks = 0
        self._next_due: Optional[float] = None
        self._stop_event = threading.Event()

    def next_poll_time(self) -> datetime:
        """
        Calculate next poll timestamp.

        Returns:
            Next poll datetime (UTC)
        """
        due = self._next_due if self._next_due is not None else self.clock()
        return datetime.fromtimestamp(due, tz=timezone.utc)

    def seconds_until_next_poll(self) -> float:
        """Calculate seconds until next poll."""
        if self._next_due is None:
            return 0.0
        return max(0.0, self._next_due - self.clock())

    def run_pending(self) -> bool:
        """
        Run the poll callback if a tick is due.

        Returns:
            True if the callback ran
        """
        if self._next_due is None:
            self._next_due = self.clock()

        if self.clock() < self._next_due:
            return False

        logger.debug("[Scheduler] Triggering poll at %s", datetime.now(timezone.utc).isoformat())
        try:
            self.poll_callback()
            self.last_poll_ts = self.clock()
        except Exception:
            logger.exception("[Scheduler] ERROR during poll")
            # Continue running despite errors

        self._advance(self.clock())
        return True

    def _advance(self, now: float):
        next_due = self._next_due + self.interval
        missed = 0
        while next_due <= now:
            next_due += self.interval
            missed += 1
        if missed:
            self.skipped_ticks += missed
            logger.warning("[Scheduler] Poll overran the interval, skipping %d tick(s)", missed)
        self._next_due = next_due

    def run_forever(self):
        """
        Run scheduler loop indefinitely.

        Blocks until stopped. Calls poll_callback at each tick.
        """
        self.running = True
        self._stop_event.clear()
        logger.info("[Scheduler] Started. Interval=%ss", self.interval)

        while self.running:
            try:
                if self.run_pending():
                    continue
                sleep_sec = self.seconds_until_next_poll()
                self._stop_event.wait(min(sleep_sec, 5.0))

            except KeyboardInterrupt:
                logger.info("[Scheduler] Interrupted by user")
                self.running = False
                break

    def stop(self):
        """Stop the scheduler loop."""
        logger.info("[Scheduler] Stopping...")
        self.running = False
        self._stop_event.set()
