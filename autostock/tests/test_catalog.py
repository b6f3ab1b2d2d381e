"""
Tests for CarCatalog (version-checked catalogue edits).
"""

from decimal import Decimal

import pytest

from autostock.exceptions import Conflict, NotFound, ValidationError
from autostock.models import Car, CarStatus
from autostock.services.catalog import CarCatalog
from autostock.services.ledger import StockLedger
from autostock.services.reservations import ReservationManager


pytestmark = pytest.mark.django_db


class TestUpdate:
    """Tests for CarCatalog.update()."""

    def test_update_bumps_version(self, stocked, car):
        car.refresh_from_db()

        updated = CarCatalog.update(car.pk, car.version, price=Decimal('79990.00'), color='red')

        assert updated.price == Decimal('79990.00')
        assert updated.color == 'red'
        assert updated.version == car.version + 1
        assert updated.quantity_in_stock == 10

    def test_stale_version_conflicts(self, stocked, warehouse, car):
        """A ledger commit or receive since the read makes the edit stale."""
        car.refresh_from_db()
        StockLedger.receive(warehouse.pk, car.pk, 2)

        with pytest.raises(Conflict) as exc:
            CarCatalog.update(car.pk, car.version, price=Decimal('1.00'))

        assert exc.value.data['current_version'] == car.version + 1
        current = Car.objects.get(pk=car.pk)
        assert current.price == Decimal('80338.15')
        assert current.quantity_in_stock == 12

    def test_ledger_after_edit_uses_new_version(self, stocked, car):
        """Edits and sales serialize on the same version column."""
        car.refresh_from_db()
        CarCatalog.update(car.pk, car.version, status=CarStatus.RESERVED)
        reservation = ReservationManager.create(car.pk, 10, 'customer-42')
        ReservationManager.confirm(reservation.pk)

        ReservationManager.complete(reservation.pk)

        current = Car.objects.get(pk=car.pk)
        assert current.quantity_in_stock == 0
        assert current.status == CarStatus.SOLD
        assert current.version == car.version + 2

    @pytest.mark.parametrize('field', ['quantity_in_stock', 'version', 'car_id'])
    def test_stock_fields_not_editable(self, stocked, car, field):
        with pytest.raises(ValidationError) as exc:
            CarCatalog.update(car.pk, 2, **{field: 1})

        assert exc.value.code == 'INVALID_FIELD'

    def test_sold_is_not_settable(self, stocked, car):
        with pytest.raises(ValidationError) as exc:
            CarCatalog.update(car.pk, 2, status=CarStatus.SOLD)

        assert exc.value.code == 'INVALID_FIELD'

    def test_field_validators_apply(self, stocked, car):
        with pytest.raises(ValidationError) as exc:
            CarCatalog.update(car.pk, 2, year=1700)

        assert exc.value.data['field'] == 'year'

    def test_unknown_car(self, db):
        with pytest.raises(NotFound):
            CarCatalog.update('C9999', 1, color='red')

    def test_nothing_to_change(self, stocked, car):
        car.refresh_from_db()

        assert CarCatalog.update(car.pk, car.version).version == car.version
