"""
Periodic background loops for the expiration sweep and the metrics rollup.

Usage (see the run_inventory_jobs management command):
    runner = JobRunner()
    runner.start()
    ...
    runner.stop()

Each job owns one daemon thread. A tick starts only after the previous
one returned, so ticks of the same job never overlap. Failures inside a
tick are recorded on its JobExecution; anything escaping run_once() is
logged and the loop waits for the next interval.
"""

import logging
import threading
from typing import Callable

from django.db import close_old_connections

from autostock.conf import autostock_settings
from autostock.services.expiration import ExpirationScheduler
from autostock.services.metrics import MetricsAggregator

logger = logging.getLogger('autostock')


class PeriodicJob(threading.Thread):
    """Run ``tick`` every ``interval`` seconds until stop() is called."""

    def __init__(self, name: str, tick: Callable[[], object], interval: float,
                 run_immediately: bool = True):
        super().__init__(name=f"autostock-{name}", daemon=True)
        self.job_name = name
        self.tick = tick
        self.interval = interval
        self.run_immediately = run_immediately
        self._stop_event = threading.Event()
        self.ticks = 0

    def run(self) -> None:
        logger.info("inventory.jobs.started", extra={"job": self.job_name, "interval": self.interval})
        if not self.run_immediately:
            self._stop_event.wait(self.interval)

        while not self._stop_event.is_set():
            self.run_tick()
            self._stop_event.wait(self.interval)

        logger.info("inventory.jobs.stopped", extra={"job": self.job_name, "ticks": self.ticks})

    def run_tick(self) -> None:
        """One tick. Never raises."""
        try:
            self.tick()
        except Exception:
            logger.exception("inventory.jobs.tick_failed", extra={"job": self.job_name})
        finally:
            self.ticks += 1
            close_old_connections()

    def stop(self) -> None:
        self._stop_event.set()


class JobRunner:
    """Owns the expiration and metrics loops."""

    def __init__(self, expiration_interval: float | None = None,
                 metrics_interval: float | None = None):
        if expiration_interval is None:
            expiration_interval = autostock_settings.EXPIRATION_INTERVAL_SECONDS
        if metrics_interval is None:
            metrics_interval = autostock_settings.METRICS_INTERVAL_SECONDS

        self.jobs = [
            PeriodicJob('expiration', ExpirationScheduler.run_once, expiration_interval),
            PeriodicJob('metrics', MetricsAggregator.run_once, metrics_interval),
        ]

    def start(self) -> None:
        for job in self.jobs:
            job.start()

    def stop(self, timeout: float | None = None) -> None:
        for job in self.jobs:
            job.stop()
        for job in self.jobs:
            if job.is_alive():
                job.join(timeout)
