"""
Management command to expire overdue reservations.

Usage:
    python manage.py expire_reservations
    python manage.py expire_reservations --dry-run
"""

from django.core.management.base import BaseCommand
from django.utils import timezone

from autostock import inventory
from autostock.models import JobStatus, Reservation


class Command(BaseCommand):
    """Expire overdue reservations command."""

    help = 'Expires Pending reservations past their deadline and releases the held units'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show how many reservations would expire without changing anything'
        )

    def handle(self, *args, **options):
        if options['dry_run']:
            overdue = Reservation.objects.overdue(timezone.now()).count()
            self.stdout.write(f'{overdue} reservation(s) would expire')
            return

        job = inventory.expire_reservations()
        if job.status == JobStatus.COMPLETED:
            self.stdout.write(
                self.style.SUCCESS(f'{job.items_processed} reservation(s) expired')
            )
        else:
            self.stderr.write(
                self.style.ERROR(f'Expiration sweep failed: {job.error_message}')
            )
