"""
Enums for Autostock models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class CarStatus(models.TextChoices):
    """Commercial status of a car model line."""
    AVAILABLE = 'available', _('Available')
    SOLD = 'sold', _('Sold')                # Aggregate stock reached zero through sales
    RESERVED = 'reserved', _('Reserved')
    MAINTENANCE = 'maintenance', _('Maintenance')


class EngineType(models.TextChoices):
    ELECTRIC = 'electric', _('Electric')
    HYBRID = 'hybrid', _('Hybrid')
    GASOLINE = 'gasoline', _('Gasoline')
    DIESEL = 'diesel', _('Diesel')
    PETROL = 'petrol', _('Petrol')


class ReservationStatus(models.TextChoices):
    """Reservation lifecycle status."""
    PENDING = 'pending', _('Pending')         # Units held, awaiting the customer
    CONFIRMED = 'confirmed', _('Confirmed')   # Customer committed to buy
    EXPIRED = 'expired', _('Expired')         # Deadline passed, units released
    CANCELLED = 'cancelled', _('Cancelled')   # Holder withdrew, units released
    COMPLETED = 'completed', _('Completed')   # Sold, units left the ledger


class TransferStatus(models.TextChoices):
    """Transfer order lifecycle status."""
    PENDING = 'pending', _('Pending')         # Units reserved at source
    IN_TRANSIT = 'in_transit', _('In transit')
    COMPLETED = 'completed', _('Completed')
    CANCELLED = 'cancelled', _('Cancelled')
    FAILED = 'failed', _('Failed')            # Needs manual reconciliation


class JobType(models.TextChoices):
    EXPIRE_RESERVATIONS = 'expire_reservations', _('Expire reservations')
    INVENTORY_METRICS = 'inventory_metrics', _('Inventory metrics')


class JobStatus(models.TextChoices):
    RUNNING = 'running', _('Running')
    COMPLETED = 'completed', _('Completed')
    FAILED = 'failed', _('Failed')


class AlertLevel(models.TextChoices):
    """Stock health of a car. Ordered from worst to best."""
    CRITICAL = 'critical', _('Critical')
    WARNING = 'warning', _('Warning')
    OK = 'ok', _('Ok')
