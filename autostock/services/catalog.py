"""
Car catalogue edits.

Usage:
    from autostock.services.catalog import CarCatalog

    car = CarCatalog.get(car_id)
    CarCatalog.update(car_id, car.version, price=Decimal('79990.00'))

Catalogue attributes share the Car row with the ledger-owned
quantity_in_stock, so every edit is a version-conditioned UPDATE of the
named columns only. A stale version raises Conflict instead of writing.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils import timezone

from autostock.exceptions import Conflict, NotFound, ValidationError
from autostock.models.car import Car
from autostock.models.enums import CarStatus

logger = logging.getLogger('autostock')

# quantity_in_stock and version belong to StockLedger
EDITABLE_FIELDS = frozenset({
    'brand',
    'model',
    'year',
    'color',
    'engine_type',
    'transmission',
    'price',
    'reorder_point',
    'economic_order_qty',
    'status',
    'deleted_at',
})

# Sold follows the aggregate reaching zero through a sale
SETTABLE_STATUSES = frozenset({
    str(CarStatus.AVAILABLE),
    str(CarStatus.RESERVED),
    str(CarStatus.MAINTENANCE),
})


class CarCatalog:
    """Catalogue methods for Car."""

    @classmethod
    def get(cls, car_id: str) -> Car:
        """Car by id, soft-deleted included."""
        try:
            return Car.objects.get(pk=car_id)
        except Car.DoesNotExist:
            raise NotFound(resource='car', car_id=car_id) from None

    @classmethod
    def clean_fields(cls, fields: dict) -> dict:
        """
        Validate attribute values with the model field validators.

        Raises:
            ValidationError('INVALID_FIELD'): field outside EDITABLE_FIELDS,
                or status Sold
            ValidationError: value rejected by the model field
        """
        unknown = sorted(set(fields) - EDITABLE_FIELDS)
        if unknown:
            raise ValidationError('INVALID_FIELD', fields=unknown)

        cleaned = {}
        for name, value in fields.items():
            try:
                cleaned[name] = Car._meta.get_field(name).clean(value, None)
            except DjangoValidationError as exc:
                raise ValidationError(field=name, errors=exc.messages) from None

        if 'status' in cleaned and str(cleaned['status']) not in SETTABLE_STATUSES:
            raise ValidationError('INVALID_FIELD', fields=['status'], status=str(cleaned['status']))
        return cleaned

    @classmethod
    def update(cls, car_id: str, expected_version: int, **fields) -> Car:
        """
        Change catalogue attributes if the car is still at expected_version.

        Only the named columns are written; version is bumped by one.

        Raises:
            NotFound: unknown car
            ValidationError: see clean_fields()
            Conflict: the car version moved since expected_version was read
        """
        cleaned = cls.clean_fields(fields)
        if not cleaned:
            return cls.get(car_id)

        updated = Car.objects.filter(pk=car_id, version=expected_version).update(
            **cleaned,
            version=expected_version + 1,
            updated_at=timezone.now(),
        )
        if not updated:
            current = cls.get(car_id)
            raise Conflict(
                resource='car',
                car_id=car_id,
                expected_version=expected_version,
                current_version=current.version,
            )

        logger.info(
            "inventory.car.updated",
            extra={
                "car_id": car_id,
                "fields": sorted(cleaned),
                "version": expected_version + 1,
            },
        )
        return cls.get(car_id)
