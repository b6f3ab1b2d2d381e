"""
Inventory queries: read-only lookups shared by the services.

No locking. Results may be slightly stale under concurrent writes.
"""

from django.db.models import Sum
from django.db.models.functions import Coalesce

from autostock.exceptions import NotFound, ValidationError
from autostock.models.car import Car
from autostock.models.location import StockLocation
from autostock.models.warehouse import Warehouse


class InventoryQueries:
    """Read-only lookup methods."""

    @classmethod
    def get_car(cls, car_id: str) -> Car:
        """Active (not soft-deleted) car, or NotFound."""
        try:
            return Car.objects.active().get(pk=car_id)
        except Car.DoesNotExist:
            raise NotFound(resource='car', car_id=car_id) from None

    @classmethod
    def get_warehouse(cls, warehouse_id: str, require_active: bool = False) -> Warehouse:
        """
        Warehouse by id.

        Raises:
            NotFound: unknown id
            ValidationError('WAREHOUSE_INACTIVE'): require_active and inactive
        """
        try:
            warehouse = Warehouse.objects.get(pk=warehouse_id)
        except Warehouse.DoesNotExist:
            raise NotFound(resource='warehouse', warehouse_id=warehouse_id) from None

        if require_active and not warehouse.is_active:
            raise ValidationError('WAREHOUSE_INACTIVE', warehouse_id=warehouse_id)
        return warehouse

    @classmethod
    def locations_for_car(cls, car_id: str, active_only: bool = True):
        """Ledger rows of a car, annotated with free units."""
        qs = StockLocation.objects.for_car(car_id).with_free_units().select_related('warehouse')
        if active_only:
            qs = qs.filter(warehouse__is_active=True)
        return qs

    @classmethod
    def reserved_by_car(cls) -> dict[str, int]:
        """{car_id: reserved units} for every car with ledger rows."""
        rows = StockLocation.objects.values('car_id').annotate(
            reserved=Coalesce(Sum('reserved_quantity'), 0),
        )
        return {row['car_id']: row['reserved'] for row in rows}

