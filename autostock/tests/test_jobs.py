"""
Tests for the periodic job loop.
"""

import threading

from autostock.jobs import JobRunner, PeriodicJob


class TestPeriodicJob:
    """Tests for PeriodicJob (no database)."""

    def test_tick_errors_do_not_stop_the_loop(self):
        calls = []
        done = threading.Event()

        def tick():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError('boom')
            done.set()

        job = PeriodicJob('test', tick, interval=0.01)
        job.start()
        assert done.wait(5)
        job.stop()
        job.join(5)

        assert not job.is_alive()
        assert len(calls) >= 2

    def test_ticks_do_not_overlap(self):
        """A slow tick delays the next one instead of running beside it."""
        running = []
        overlaps = []
        finished = threading.Event()

        def tick():
            if running:
                overlaps.append(True)
            running.append(True)
            threading.Event().wait(0.02)
            running.pop()
            if job.ticks >= 2:
                finished.set()

        job = PeriodicJob('slow', tick, interval=0.001)
        job.start()
        assert finished.wait(5)
        job.stop()
        job.join(5)

        assert overlaps == []

    def test_stop_before_first_interval(self):
        job = PeriodicJob('idle', lambda: None, interval=60, run_immediately=False)
        job.start()
        job.stop()
        job.join(5)

        assert job.ticks == 0


class TestJobRunner:

    def test_intervals_from_settings(self, settings):
        settings.AUTOSTOCK = {'EXPIRATION_INTERVAL_SECONDS': 5, 'METRICS_INTERVAL_SECONDS': 50}

        runner = JobRunner()

        assert [job.interval for job in runner.jobs] == [5, 50]

    def test_explicit_intervals(self):
        runner = JobRunner(expiration_interval=1, metrics_interval=2)

        assert [job.job_name for job in runner.jobs] == ['expiration', 'metrics']
        assert [job.interval for job in runner.jobs] == [1, 2]
