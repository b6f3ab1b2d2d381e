"""
Warehouse model: where stock physically exists.
"""

from django.core.validators import RegexValidator
from django.db import models
from django.db.models import F, Q
from django.utils.translation import gettext_lazy as _


class Warehouse(models.Model):
    """
    A physical storage site.

    capacity_used counts units physically present (sum of StockLocation
    quantity at this site). It only moves through conditional updates
    issued by StockLedger, so it never exceeds capacity_total.
    """

    warehouse_id = models.CharField(
        primary_key=True,
        max_length=20,
        validators=[RegexValidator(r'^W[0-9]+$', _('Warehouse id must look like W0001'))],
        verbose_name=_('Warehouse ID'),
    )
    name = models.CharField(max_length=100, verbose_name=_('Name'))
    location = models.CharField(max_length=200, verbose_name=_('Location'))
    latitude = models.DecimalField(max_digits=10, decimal_places=8, null=True, blank=True)
    longitude = models.DecimalField(max_digits=11, decimal_places=8, null=True, blank=True)

    capacity_total = models.PositiveIntegerField(verbose_name=_('Total capacity'))
    capacity_used = models.PositiveIntegerField(default=0, verbose_name=_('Used capacity'))
    is_active = models.BooleanField(default=True, verbose_name=_('Active'))

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'warehouses'
        verbose_name = _('Warehouse')
        verbose_name_plural = _('Warehouses')
        ordering = ['warehouse_id']
        constraints = [
            models.CheckConstraint(condition=Q(capacity_total__gt=0), name='warehouse_capacity_positive'),
            models.CheckConstraint(
                condition=Q(capacity_used__lte=F('capacity_total')),
                name='warehouse_capacity_not_exceeded',
            ),
        ]

    @property
    def capacity_free(self) -> int:
        return self.capacity_total - self.capacity_used

    def __str__(self) -> str:
        return f"{self.warehouse_id} {self.name}"
