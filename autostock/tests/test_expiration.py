"""
Tests for the expiration sweep.
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from autostock.exceptions import InternalInconsistency
from autostock.models import JobExecution, JobStatus, JobType, Reservation, ReservationStatus
from autostock.services.expiration import ExpirationScheduler
from autostock.services.ledger import StockLedger
from autostock.services.reservations import ReservationManager


pytestmark = pytest.mark.django_db


def _overdue(car, quantity, holder='customer-42'):
    reservation = ReservationManager.create(car.pk, quantity, holder)
    Reservation.objects.filter(pk=reservation.pk).update(
        expires_at=timezone.now() - timedelta(minutes=1),
    )
    return reservation


class TestRunOnce:
    """Tests for ExpirationScheduler.run_once()."""

    def test_overdue_reservation_released_on_next_tick(self, stocked, warehouse, car):
        """A past-due Pending reservation of 3 is expired and its units released."""
        reservation = _overdue(car, 3)

        job = ExpirationScheduler.run_once()

        assert job.job_type == JobType.EXPIRE_RESERVATIONS
        assert job.status == JobStatus.COMPLETED
        assert job.items_processed == 1
        assert job.completed_at is not None
        reservation.refresh_from_db()
        assert reservation.status == ReservationStatus.EXPIRED
        assert StockLedger.read_snapshot(warehouse.pk, car.pk).reserved_quantity == 0

    def test_leaves_live_and_confirmed_reservations(self, stocked, warehouse, car):
        live = ReservationManager.create(car.pk, 1, 'a')
        confirmed = _overdue(car, 2, 'b')
        Reservation.objects.filter(pk=confirmed.pk).update(status=ReservationStatus.CONFIRMED)

        job = ExpirationScheduler.run_once()

        assert job.items_processed == 0
        live.refresh_from_db()
        confirmed.refresh_from_db()
        assert live.status == ReservationStatus.PENDING
        assert confirmed.status == ReservationStatus.CONFIRMED

    def test_rerun_is_noop(self, stocked, warehouse, car):
        """Running twice releases exactly once."""
        _overdue(car, 3)

        ExpirationScheduler.run_once()
        second = ExpirationScheduler.run_once()

        assert second.status == JobStatus.COMPLETED
        assert second.items_processed == 0
        assert StockLedger.read_snapshot(warehouse.pk, car.pk).reserved_quantity == 0
        assert JobExecution.objects.count() == 2

    def test_item_failure_does_not_stop_sweep(self, stocked, warehouse, car, monkeypatch):
        """One reservation fails; the others still expire and the job completes."""
        broken = _overdue(car, 1, 'a')
        _overdue(car, 2, 'b')
        _overdue(car, 3, 'c')
        original = ReservationManager.expire

        def flaky_expire(reservation_id, now=None):
            if reservation_id == broken.pk:
                raise InternalInconsistency(reservation_id=str(reservation_id))
            return original(reservation_id, now=now)

        monkeypatch.setattr(ReservationManager, 'expire', flaky_expire)

        job = ExpirationScheduler.run_once()

        assert job.status == JobStatus.COMPLETED
        assert job.items_processed == 2
        broken.refresh_from_db()
        assert broken.status == ReservationStatus.PENDING

    def test_small_batches(self, stocked, car, settings):
        settings.AUTOSTOCK = {'EXPIRED_BATCH_SIZE': 2}
        for holder in 'abcde':
            _overdue(car, 1, holder)

        job = ExpirationScheduler.run_once()

        assert job.items_processed == 5
        assert not Reservation.objects.filter(status=ReservationStatus.PENDING).exists()

    def test_sweep_failure_recorded(self, stocked, car, monkeypatch):
        """If the sweep itself breaks the job is Failed and nothing is raised."""
        _overdue(car, 1)

        def broken_query(now=None):
            raise RuntimeError('database unavailable')

        monkeypatch.setattr(ExpirationScheduler, 'overdue_ids', broken_query)

        job = ExpirationScheduler.run_once()

        assert job.status == JobStatus.FAILED
        assert 'database unavailable' in job.error_message

    def test_budget_exceeded(self, stocked, car, settings):
        """A tick running past its budget is closed as Failed."""
        settings.AUTOSTOCK = {'JOB_BUDGET_SECONDS': 1e-9}
        _overdue(car, 1)

        job = ExpirationScheduler.run_once()

        assert job.status == JobStatus.FAILED
        assert 'budget' in job.error_message
        assert job.items_processed == 0
