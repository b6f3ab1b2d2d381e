"""
Tests for management commands.
"""

import threading
from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone

from autostock.management.commands.run_inventory_jobs import Command
from autostock.models import JobExecution, MetricsSnapshot, Reservation, ReservationStatus
from autostock.services.expiration import ExpirationScheduler
from autostock.services.metrics import MetricsAggregator
from autostock.services.reservations import ReservationManager


pytestmark = pytest.mark.django_db


@pytest.fixture
def overdue(stocked, car):
    reservation = ReservationManager.create(car.pk, 3, 'customer-42')
    Reservation.objects.filter(pk=reservation.pk).update(
        expires_at=timezone.now() - timedelta(minutes=1),
    )
    return reservation


class TestExpireReservations:
    """Tests for expire_reservations."""

    def test_dry_run(self, overdue):
        out = StringIO()

        call_command('expire_reservations', '--dry-run', stdout=out)

        assert '1 reservation(s) would expire' in out.getvalue()
        overdue.refresh_from_db()
        assert overdue.status == ReservationStatus.PENDING
        assert JobExecution.objects.count() == 0

    def test_expire(self, overdue):
        out = StringIO()

        call_command('expire_reservations', stdout=out)

        assert '1 reservation(s) expired' in out.getvalue()
        overdue.refresh_from_db()
        assert overdue.status == ReservationStatus.EXPIRED


class TestRollupInventoryMetrics:

    def test_rollup(self, stocked):
        out = StringIO()

        call_command('rollup_inventory_metrics', stdout=out)

        assert 'Metrics snapshot stored' in out.getvalue()
        assert MetricsSnapshot.objects.count() == 1


class TestRunInventoryJobs:
    """Tests for run_inventory_jobs with real ticks in background threads."""

    @pytest.mark.django_db(transaction=True)
    def test_runs_both_loops_until_interrupted(self, monkeypatch):
        ticked = []
        both_ticked = threading.Event()
        tick_lock = threading.Lock()

        def serialized(name, tick):
            def run(now=None):
                with tick_lock:
                    job = tick(now)
                    ticked.append(name)
                if {'expiration', 'metrics'} <= set(ticked):
                    both_ticked.set()
                return job
            return run

        monkeypatch.setattr(
            ExpirationScheduler, 'run_once', serialized('expiration', ExpirationScheduler.run_once),
        )
        monkeypatch.setattr(
            MetricsAggregator, 'run_once', serialized('metrics', MetricsAggregator.run_once),
        )

        def interrupt(command):
            assert both_ticked.wait(10)
            raise KeyboardInterrupt

        monkeypatch.setattr(Command, 'wait_for_interrupt', interrupt)
        out = StringIO()

        call_command(
            'run_inventory_jobs', '--expiration-interval', '60', '--metrics-interval', '60',
            stdout=out,
        )

        assert 'Stopping inventory jobs' in out.getvalue()
        assert not [t for t in threading.enumerate() if t.name.startswith('autostock-')]
        assert sorted(JobExecution.objects.values_list('job_type', flat=True)) == [
            'expire_reservations', 'inventory_metrics',
        ]
        assert set(JobExecution.objects.values_list('status', flat=True)) == {'completed'}
        assert MetricsSnapshot.objects.count() == 1
