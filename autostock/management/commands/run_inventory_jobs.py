"""
Management command to run the background loops in the foreground process.

Usage:
    python manage.py run_inventory_jobs
    python manage.py run_inventory_jobs --expiration-interval 30 --metrics-interval 600
"""

import threading

from django.core.management.base import BaseCommand

from autostock.jobs import JobRunner


class Command(BaseCommand):
    """Run expiration and metrics loops until interrupted."""

    help = 'Runs the reservation expiration sweep and the metrics rollup periodically'

    def add_arguments(self, parser):
        parser.add_argument(
            '--expiration-interval',
            type=float,
            default=None,
            help='Seconds between expiration sweeps (default: AUTOSTOCK setting)'
        )
        parser.add_argument(
            '--metrics-interval',
            type=float,
            default=None,
            help='Seconds between metrics rollups (default: AUTOSTOCK setting)'
        )

    def handle(self, *args, **options):
        runner = JobRunner(
            expiration_interval=options['expiration_interval'],
            metrics_interval=options['metrics_interval'],
        )
        runner.start()
        self.stdout.write(self.style.SUCCESS('Inventory jobs running. Press Ctrl+C to stop.'))

        try:
            self.wait_for_interrupt()
        except KeyboardInterrupt:
            self.stdout.write('Stopping inventory jobs...')
        finally:
            runner.stop(timeout=10)

    def wait_for_interrupt(self):
        """Block until Ctrl+C."""
        threading.Event().wait()
