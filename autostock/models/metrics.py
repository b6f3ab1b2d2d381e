"""
MetricsSnapshot model: hourly inventory rollup.
"""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _


class MetricsSnapshot(models.Model):
    """Aggregate inventory figures for one hour. Upserted, never duplicated."""

    metric_hour = models.DateTimeField(primary_key=True, verbose_name=_('Hour'))
    total_cars = models.PositiveIntegerField(default=0)
    total_value = models.DecimalField(max_digits=20, decimal_places=2, default=Decimal('0'))
    active_reservations = models.PositiveIntegerField(default=0)
    reserved_units = models.PositiveIntegerField(default=0)
    low_stock_count = models.PositiveIntegerField(default=0)
    available_stock_value = models.DecimalField(max_digits=20, decimal_places=2, default=Decimal('0'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'inventory_metrics_history'
        verbose_name = _('Metrics snapshot')
        verbose_name_plural = _('Metrics snapshots')
        ordering = ['-metric_hour']

    def __str__(self) -> str:
        return f"Metrics {self.metric_hour:%Y-%m-%d %H:00}"
