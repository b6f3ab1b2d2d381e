"""
Expiration sweep: moves overdue Pending reservations to Expired.

Usage:
    from autostock.services.expiration import ExpirationScheduler

    job = ExpirationScheduler.run_once()
    print(job.status, job.items_processed)

Each reservation is expired independently through ReservationManager,
so one failure never blocks the rest of the sweep. Every run leaves
exactly one JobExecution row.
"""

import logging
import time
from datetime import datetime

from django.utils import timezone

from autostock.conf import autostock_settings
from autostock.exceptions import InventoryError
from autostock.models.enums import JobType
from autostock.models.job import JobExecution
from autostock.models.reservation import Reservation
from autostock.services.reservations import ReservationManager

logger = logging.getLogger('autostock')


class ExpirationScheduler:
    """One-tick expiration sweep."""

    @classmethod
    def overdue_ids(cls, now: datetime | None = None):
        """Yield ids of overdue Pending reservations, EXPIRED_BATCH_SIZE per query."""
        now = now or timezone.now()
        batch_size = max(1, autostock_settings.EXPIRED_BATCH_SIZE)
        last_pk = None

        while True:
            qs = Reservation.objects.overdue(now).order_by('pk')
            if last_pk is not None:
                qs = qs.filter(pk__gt=last_pk)
            batch = list(qs.values_list('pk', flat=True)[:batch_size])
            if not batch:
                return
            yield from batch
            last_pk = batch[-1]

    @classmethod
    def run_once(cls, now: datetime | None = None) -> JobExecution:
        """
        Expire every overdue Pending reservation.

        Returns the closed JobExecution:
            COMPLETED, items_processed = reservations expired by this run
            FAILED, when the sweep itself broke or ran past JOB_BUDGET_SECONDS
        """
        now = now or timezone.now()
        budget = autostock_settings.JOB_BUDGET_SECONDS
        job = JobExecution.start(JobType.EXPIRE_RESERVATIONS)
        started = time.monotonic()
        expired = 0

        try:
            for reservation_id in cls.overdue_ids(now):
                if budget and time.monotonic() - started > budget:
                    logger.warning(
                        "inventory.job.budget_exceeded",
                        extra={"job_id": str(job.pk), "job_type": job.job_type, "expired": expired},
                    )
                    job.fail(f"Execution budget of {budget}s exceeded", items_processed=expired)
                    return job

                try:
                    if ReservationManager.expire(reservation_id, now=now):
                        expired += 1
                except InventoryError as exc:
                    logger.warning(
                        "inventory.expiration.item_failed",
                        extra={"reservation_id": str(reservation_id), "error": exc.code},
                    )
        except Exception as exc:
            logger.exception(
                "inventory.job.failed",
                extra={"job_id": str(job.pk), "job_type": job.job_type},
            )
            job.fail(str(exc) or exc.__class__.__name__, items_processed=expired)
            return job

        job.succeed(expired)
        logger.info(
            "inventory.expiration.completed",
            extra={"job_id": str(job.pk), "expired": expired},
        )
        return job
