"""
StockLocation model: the ledger row for one (warehouse, car) coordinate.
"""

from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class StockLocationQuerySet(models.QuerySet):
    """Helper filters for ledger rows."""

    def for_car(self, car_id):
        return self.filter(car_id=car_id)

    def with_free_units(self):
        """Annotate free = quantity - reserved_quantity."""
        return self.annotate(free=F('quantity') - F('reserved_quantity'))


class StockLocation(models.Model):
    """
    Units of a car present at a warehouse.

    quantity: units physically present
    reserved_quantity: units held by open reservations or outbound transfers

    Invariant: 0 <= reserved_quantity <= quantity.

    Rows are mutated ONLY by StockLedger through version compare-and-set.
    Never call save() or update() on quantity fields anywhere else.
    """

    warehouse = models.ForeignKey(
        'autostock.Warehouse',
        on_delete=models.PROTECT,
        related_name='stock_locations',
        verbose_name=_('Warehouse'),
    )
    car = models.ForeignKey(
        'autostock.Car',
        on_delete=models.PROTECT,
        related_name='stock_locations',
        verbose_name=_('Car'),
    )
    zone = models.CharField(max_length=20, default='DEFAULT', verbose_name=_('Zone'))

    quantity = models.PositiveIntegerField(default=0, verbose_name=_('Quantity'))
    reserved_quantity = models.PositiveIntegerField(default=0, verbose_name=_('Reserved'))
    version = models.PositiveBigIntegerField(default=1, editable=False, verbose_name=_('Version'))

    last_updated = models.DateTimeField(default=timezone.now)

    objects = StockLocationQuerySet.as_manager()

    class Meta:
        db_table = 'stock_locations'
        verbose_name = _('Stock location')
        verbose_name_plural = _('Stock locations')
        constraints = [
            models.UniqueConstraint(fields=['warehouse', 'car'], name='unique_stock_location'),
            models.CheckConstraint(
                condition=Q(reserved_quantity__lte=F('quantity')),
                name='stock_reserved_within_quantity',
            ),
        ]
        indexes = [
            models.Index(fields=['car'], name='stock_loc_car_idx'),
        ]

    @property
    def available(self) -> int:
        """Units free for new reservations or transfers."""
        return self.quantity - self.reserved_quantity

    def __str__(self) -> str:
        return f"{self.car_id}@{self.warehouse_id}: {self.quantity} ({self.reserved_quantity} reserved)"
