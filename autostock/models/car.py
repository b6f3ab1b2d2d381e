"""
Car model: catalogue entry and aggregate stock figure.
"""

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, RegexValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from autostock.models.enums import CarStatus, EngineType

FIRST_MODEL_YEAR = 1886


def validate_model_year(value):
    """Year must lie between the first automobile and next year's models."""
    latest = timezone.now().year + 1
    if not FIRST_MODEL_YEAR <= value <= latest:
        raise ValidationError(
            _('Year must be between %(first)s and %(latest)s'),
            params={'first': FIRST_MODEL_YEAR, 'latest': latest},
        )


class CarQuerySet(models.QuerySet):
    """Custom QuerySet for Car with convenience filters."""

    def active(self):
        """Cars that are not soft-deleted."""
        return self.filter(deleted_at__isnull=True)


class Car(models.Model):
    """
    A car model line held in stock.

    quantity_in_stock is the aggregate of StockLocation.quantity over all
    warehouses. It is written only by StockLedger, together with version,
    through a version-conditioned UPDATE.
    """

    car_id = models.CharField(
        primary_key=True,
        max_length=20,
        validators=[RegexValidator(r'^C\w{4,}$', _('Car id must look like C0001'))],
        verbose_name=_('Car ID'),
    )
    brand = models.CharField(max_length=50, verbose_name=_('Brand'))
    model = models.CharField(max_length=100, verbose_name=_('Model'))
    year = models.IntegerField(
        validators=[validate_model_year],
        verbose_name=_('Year'),
    )
    color = models.CharField(max_length=30, blank=True, default='', verbose_name=_('Color'))
    engine_type = models.CharField(
        max_length=20,
        choices=EngineType.choices,
        verbose_name=_('Engine'),
    )
    transmission = models.CharField(max_length=20, blank=True, default='', verbose_name=_('Transmission'))
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
        verbose_name=_('Unit price'),
    )

    quantity_in_stock = models.PositiveIntegerField(default=0, verbose_name=_('Units in stock'))
    reorder_point = models.PositiveIntegerField(
        default=5,
        verbose_name=_('Reorder point'),
        help_text=_('At or below this stock level replenishment is advised'),
    )
    economic_order_qty = models.PositiveIntegerField(
        default=10,
        validators=[MinValueValidator(1)],
        verbose_name=_('Economic order quantity'),
    )
    version = models.PositiveBigIntegerField(default=1, editable=False, verbose_name=_('Version'))

    status = models.CharField(
        max_length=20,
        choices=CarStatus.choices,
        default=CarStatus.AVAILABLE,
        db_index=True,
        verbose_name=_('Status'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True, db_index=True)

    objects = CarQuerySet.as_manager()

    class Meta:
        db_table = 'cars'
        verbose_name = _('Car')
        verbose_name_plural = _('Cars')
        ordering = ['car_id']
        constraints = [
            models.CheckConstraint(condition=Q(price__gt=0), name='car_price_positive'),
            models.CheckConstraint(condition=Q(year__gte=FIRST_MODEL_YEAR), name='car_year_sane'),
            models.CheckConstraint(condition=Q(economic_order_qty__gt=0), name='car_eoq_positive'),
        ]
        indexes = [
            models.Index(fields=['brand', 'model'], name='cars_brand_model_idx'),
        ]

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __str__(self) -> str:
        return f"{self.car_id} {self.brand} {self.model} ({self.year})"
