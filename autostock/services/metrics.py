"""
Hourly inventory rollup.

Usage:
    from autostock.services.metrics import MetricsAggregator

    MetricsAggregator.run_once()                 # upsert current hour
    MetricsAggregator.get_snapshot(some_time)    # read back

Read-only against the ledger: no locks. One snapshot per hour,
re-running within the same hour overwrites it.
"""

import logging
import time
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

from django.db.models import Count, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from autostock.conf import autostock_settings
from autostock.exceptions import NotFound
from autostock.models.car import Car
from autostock.models.enums import AlertLevel, JobType
from autostock.models.job import JobExecution
from autostock.models.location import StockLocation
from autostock.models.metrics import MetricsSnapshot
from autostock.models.reservation import Reservation
from autostock.services.alerts import evaluate

logger = logging.getLogger('autostock')


def truncate_hour(value: datetime) -> datetime:
    """Start of the UTC hour containing value. Naive values are read as the current timezone."""
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value.astimezone(dt_timezone.utc).replace(minute=0, second=0, microsecond=0)


class MetricsAggregator:
    """Metrics rollup methods."""

    @classmethod
    def compute(cls, now: datetime | None = None) -> dict:
        """Current aggregate figures, keyed like MetricsSnapshot fields."""
        now = now or timezone.now()

        total_cars = 0
        total_value = Decimal('0')
        low_stock = 0
        for price, stock, reorder_point, eoq in Car.objects.active().values_list(
            'price', 'quantity_in_stock', 'reorder_point', 'economic_order_qty',
        ):
            total_cars += 1
            total_value += price * stock
            level, _ = evaluate(stock, reorder_point, eoq)
            if level != AlertLevel.OK:
                low_stock += 1

        available_value = Decimal('0')
        for price, quantity, reserved in StockLocation.objects.filter(
            car__deleted_at__isnull=True,
        ).values_list('car__price', 'quantity', 'reserved_quantity'):
            available_value += price * (quantity - reserved)

        reservations = Reservation.objects.active(now).aggregate(
            count=Count('pk'),
            units=Coalesce(Sum('quantity'), 0),
        )

        return {
            'total_cars': total_cars,
            'total_value': total_value,
            'active_reservations': reservations['count'],
            'reserved_units': reservations['units'],
            'low_stock_count': low_stock,
            'available_stock_value': available_value,
        }

    @classmethod
    def run_once(cls, now: datetime | None = None) -> JobExecution:
        """
        Compute and upsert the snapshot for the current hour.

        Never raises: failures are recorded on the returned JobExecution.
        """
        now = now or timezone.now()
        budget = autostock_settings.JOB_BUDGET_SECONDS
        job = JobExecution.start(JobType.INVENTORY_METRICS)
        started = time.monotonic()

        try:
            figures = cls.compute(now)
            hour = truncate_hour(now)
            MetricsSnapshot.objects.update_or_create(metric_hour=hour, defaults=figures)
        except Exception as exc:
            logger.exception(
                "inventory.job.failed",
                extra={"job_id": str(job.pk), "job_type": job.job_type},
            )
            job.fail(str(exc) or exc.__class__.__name__)
            return job

        if budget and time.monotonic() - started > budget:
            logger.warning(
                "inventory.job.budget_exceeded",
                extra={"job_id": str(job.pk), "job_type": job.job_type},
            )
            job.fail(f"Execution budget of {budget}s exceeded", items_processed=1)
            return job

        job.succeed(1)
        logger.info(
            "inventory.metrics.snapshot",
            extra={"job_id": str(job.pk), "hour": hour.isoformat(), **{
                k: str(v) for k, v in figures.items()
            }},
        )
        return job

    @classmethod
    def get_snapshot(cls, hour: datetime) -> MetricsSnapshot:
        key = truncate_hour(hour)
        try:
            return MetricsSnapshot.objects.get(metric_hour=key)
        except MetricsSnapshot.DoesNotExist:
            raise NotFound(resource='metrics_snapshot', hour=key.isoformat()) from None
