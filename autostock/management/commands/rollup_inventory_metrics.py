"""
Management command to upsert the current hour's inventory metrics.

Usage:
    python manage.py rollup_inventory_metrics
"""

from django.core.management.base import BaseCommand

from autostock import inventory
from autostock.models import JobStatus


class Command(BaseCommand):
    """Hourly metrics rollup command."""

    help = 'Computes inventory metrics and stores the snapshot for the current hour'

    def handle(self, *args, **options):
        job = inventory.rollup_metrics()
        if job.status == JobStatus.COMPLETED:
            self.stdout.write(self.style.SUCCESS('Metrics snapshot stored'))
        else:
            self.stderr.write(
                self.style.ERROR(f'Metrics rollup failed: {job.error_message}')
            )
