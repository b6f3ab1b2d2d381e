"""
TransferOrder model: stock moving between two warehouses.
"""

import uuid

from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from autostock.models.enums import TransferStatus


class TransferOrder(models.Model):
    """
    Movement of units of one car from a source to a destination warehouse.

    LIFECYCLE:

        PENDING ──advance()──► IN_TRANSIT ──complete()──► COMPLETED
           │                       │   │
           │ cancel()              │   └─ destination receive failed ──► FAILED
           ▼                       │ cancel()
        CANCELLED ◄────────────────┘

    PENDING and IN_TRANSIT hold the units in the source reserved_quantity.
    FAILED means the source already committed the units but the
    destination did not receive them: manual reconciliation required.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    from_warehouse = models.ForeignKey(
        'autostock.Warehouse',
        on_delete=models.PROTECT,
        related_name='outbound_transfers',
        verbose_name=_('From'),
    )
    to_warehouse = models.ForeignKey(
        'autostock.Warehouse',
        on_delete=models.PROTECT,
        related_name='inbound_transfers',
        verbose_name=_('To'),
    )
    car = models.ForeignKey(
        'autostock.Car',
        on_delete=models.PROTECT,
        related_name='transfers',
        verbose_name=_('Car'),
    )
    quantity = models.PositiveIntegerField(verbose_name=_('Quantity'))
    status = models.CharField(
        max_length=20,
        choices=TransferStatus.choices,
        default=TransferStatus.PENDING,
        db_index=True,
        verbose_name=_('Status'),
    )
    reason = models.CharField(max_length=255, blank=True, default='', verbose_name=_('Reason'))
    failure_reason = models.TextField(blank=True, default='', verbose_name=_('Failure reason'))

    requested_at = models.DateTimeField(default=timezone.now)
    dispatched_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'transfer_orders'
        verbose_name = _('Transfer order')
        verbose_name_plural = _('Transfer orders')
        ordering = ['-requested_at']
        constraints = [
            models.CheckConstraint(
                condition=~Q(from_warehouse=F('to_warehouse')),
                name='transfer_different_warehouses',
            ),
            models.CheckConstraint(condition=Q(quantity__gt=0), name='transfer_quantity_positive'),
        ]

    @property
    def needs_reconciliation(self) -> bool:
        return self.status == TransferStatus.FAILED

    def __str__(self) -> str:
        return (
            f"{self.quantity}x {self.car_id} "
            f"{self.from_warehouse_id}→{self.to_warehouse_id} [{self.status}]"
        )
