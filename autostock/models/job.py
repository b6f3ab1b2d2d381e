"""
JobExecution model: audit trail of background runs.
"""

import uuid

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from autostock.models.enums import JobStatus, JobType


class JobExecution(models.Model):
    """
    One row per background tick.

    Opened as RUNNING by start(), closed exactly once by succeed() or
    fail(). A closed row is never touched again.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    job_type = models.CharField(max_length=50, choices=JobType.choices, db_index=True)
    started_at = models.DateTimeField(default=timezone.now)
    completed_at = models.DateTimeField(null=True, blank=True)
    status = models.CharField(
        max_length=20,
        choices=JobStatus.choices,
        default=JobStatus.RUNNING,
        db_index=True,
    )
    items_processed = models.PositiveIntegerField(null=True, blank=True)
    error_message = models.TextField(blank=True, default='')

    class Meta:
        db_table = 'job_executions'
        verbose_name = _('Job execution')
        verbose_name_plural = _('Job executions')
        ordering = ['-started_at']

    @classmethod
    def start(cls, job_type: str) -> 'JobExecution':
        return cls.objects.create(job_type=job_type)

    def succeed(self, items_processed: int) -> None:
        self._close(JobStatus.COMPLETED, items_processed)

    def fail(self, error: str, items_processed: int | None = None) -> None:
        self._close(JobStatus.FAILED, items_processed, error)

    def _close(self, status, items_processed, error=''):
        if self.status != JobStatus.RUNNING:
            raise ValueError(f"Job {self.pk} already closed as {self.status}")
        self.status = status
        self.items_processed = items_processed
        self.error_message = error
        self.completed_at = timezone.now()
        self.save(update_fields=['status', 'items_processed', 'error_message', 'completed_at'])

    @property
    def duration_seconds(self) -> float | None:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()

    def __str__(self) -> str:
        return f"{self.job_type} @ {self.started_at:%Y-%m-%d %H:%M:%S} [{self.status}]"
