"""
SaleRecord model: history of completed reservations.
"""

import uuid
from decimal import Decimal

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class SaleRecord(models.Model):
    """
    Immutable record of units sold.

    Written by ReservationManager.complete() in the same transaction
    that commits the units out of the ledger. unit_price is a snapshot
    of Car.price at sale time. Feeds sales velocity in alerts.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    car = models.ForeignKey(
        'autostock.Car',
        on_delete=models.PROTECT,
        related_name='sales',
        verbose_name=_('Car'),
    )
    reservation = models.OneToOneField(
        'autostock.Reservation',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='sale',
    )
    quantity = models.PositiveIntegerField(verbose_name=_('Quantity'))
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, verbose_name=_('Unit price'))
    customer_id = models.CharField(max_length=100, blank=True, default='')
    sold_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = 'sales_history'
        verbose_name = _('Sale')
        verbose_name_plural = _('Sales')
        ordering = ['-sold_at']

    @property
    def total_price(self) -> Decimal:
        return self.unit_price * self.quantity

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Sale records are immutable.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Sale records are immutable.")

    def __str__(self) -> str:
        return f"{self.quantity}x {self.car_id} @ {self.unit_price}"
