"""
Reservation model: time-bounded customer hold on stock.
"""

import uuid

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from autostock.models.enums import ReservationStatus

OPEN_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)
TERMINAL_STATUSES = (
    ReservationStatus.EXPIRED,
    ReservationStatus.CANCELLED,
    ReservationStatus.COMPLETED,
)


class ReservationQuerySet(models.QuerySet):
    """Custom QuerySet for Reservation with lifecycle filters."""

    def active(self, now=None):
        """Open reservations whose deadline has not passed."""
        now = now or timezone.now()
        return self.filter(status__in=OPEN_STATUSES, expires_at__gt=now)

    def overdue(self, now=None):
        """Pending reservations past their deadline (expiration candidates)."""
        now = now or timezone.now()
        return self.filter(status=ReservationStatus.PENDING, expires_at__lt=now)


class Reservation(models.Model):
    """
    Units of a car held for a customer until expires_at.

    LIFECYCLE:

        PENDING ──confirm()──► CONFIRMED ──complete()──► COMPLETED
           │                       │
           │ cancel()              │ cancel()
           ▼                       ▼
        CANCELLED ◄────────────────┘

        PENDING ──expire() (scheduler only)──► EXPIRED

    Expired, Cancelled and Completed are terminal.

    The held units live in StockLocation.reserved_quantity of the
    allocated warehouse; a reservation never spans warehouses.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    car = models.ForeignKey(
        'autostock.Car',
        on_delete=models.PROTECT,
        related_name='reservations',
        verbose_name=_('Car'),
    )
    warehouse = models.ForeignKey(
        'autostock.Warehouse',
        on_delete=models.PROTECT,
        related_name='reservations',
        verbose_name=_('Allocated warehouse'),
    )
    quantity = models.PositiveIntegerField(verbose_name=_('Quantity'))
    reserved_by = models.CharField(max_length=100, verbose_name=_('Reserved by'))

    expires_at = models.DateTimeField(
        db_index=True,
        verbose_name=_('Expires at'),
        help_text=_('Pending reservations are released automatically after this time'),
    )
    status = models.CharField(
        max_length=20,
        choices=ReservationStatus.choices,
        default=ReservationStatus.PENDING,
        db_index=True,
        verbose_name=_('Status'),
    )
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)
    resolved_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_('Resolved at'),
        help_text=_('When the reservation reached a terminal status'),
    )

    objects = ReservationQuerySet.as_manager()

    class Meta:
        db_table = 'reservations'
        verbose_name = _('Reservation')
        verbose_name_plural = _('Reservations')
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name='reservation_quantity_positive'),
        ]
        indexes = [
            models.Index(fields=['status', 'expires_at'], name='reservation_status_expiry_idx'),
            models.Index(fields=['car', 'status'], name='reservation_car_status_idx'),
        ]

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_expired(self) -> bool:
        """Has the deadline passed (regardless of status)?"""
        return timezone.now() > self.expires_at

    @property
    def is_active(self) -> bool:
        """Open and still within its deadline."""
        return self.status in OPEN_STATUSES and not self.is_expired

    @property
    def time_remaining_seconds(self) -> int:
        return max(0, int((self.expires_at - timezone.now()).total_seconds()))

    def __str__(self) -> str:
        return f"{self.quantity}x {self.car_id}@{self.warehouse_id} for {self.reserved_by} [{self.status}]"
