"""
Tests for the admin registrations.
"""

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from django.contrib import admin, messages

from autostock.admin import CarAdmin, ReservationAdmin, StockLocationAdmin, WarehouseAdmin
from autostock.models import (
    Car,
    CarStatus,
    Reservation,
    ReservationStatus,
    StockLocation,
    Warehouse,
)
from autostock.services.ledger import StockLedger
from autostock.services.reservations import ReservationManager


pytestmark = pytest.mark.django_db


class TestReservationAdmin:
    """Tests for the cancel action."""

    def test_cancel_action(self, stocked, warehouse, car):
        """Open reservations are cancelled, terminal ones are skipped."""
        open_one = ReservationManager.create(car.pk, 2, 'a')
        done = ReservationManager.create(car.pk, 1, 'b')
        ReservationManager.cancel(done.pk)

        model_admin = ReservationAdmin(Reservation, admin.site)
        model_admin.message_user = MagicMock()

        model_admin.cancel_reservations(request=None, queryset=Reservation.objects.all())

        open_one.refresh_from_db()
        assert open_one.status == ReservationStatus.CANCELLED
        assert open_one.metadata['cancel_reason'] == 'Cancelled via admin'
        assert StockLedger.read_snapshot(warehouse.pk, car.pk).reserved_quantity == 0
        message = model_admin.message_user.call_args[0][1]
        assert '1 reservation(s) cancelled.' in str(message)


class TestLedgerAdmin:

    def test_read_only(self, stocked):
        model_admin = StockLocationAdmin(StockLocation, admin.site)

        assert model_admin.has_add_permission(None) is False
        assert model_admin.has_change_permission(None) is False
        assert model_admin.has_delete_permission(None) is False
        assert model_admin.available_display(StockLocation.objects.get()) == 10


class TestCarAdmin:
    """Catalogue edits never write back stock figures."""

    def _save(self, obj, *changed):
        model_admin = CarAdmin(Car, admin.site)
        model_admin.message_user = MagicMock()
        model_admin.save_model(request=None, obj=obj, form=SimpleNamespace(changed_data=list(changed)),
                               change=True)
        return model_admin

    def test_price_edit_keeps_aggregate(self, stocked, car):
        editing = Car.objects.get(pk=car.pk)
        editing.price = Decimal('79990.00')

        model_admin = self._save(editing, 'price')

        model_admin.message_user.assert_not_called()
        car.refresh_from_db()
        assert car.price == Decimal('79990.00')
        assert car.quantity_in_stock == 10
        assert car.version == editing.version

    def test_receive_while_editing(self, stocked, warehouse, car):
        """A ledger write between load and save wins; the stale edit is refused."""
        editing = Car.objects.get(pk=car.pk)
        StockLedger.receive(warehouse.pk, car.pk, 5)
        editing.price = Decimal('79990.00')

        model_admin = self._save(editing, 'price')

        car.refresh_from_db()
        assert car.quantity_in_stock == 15
        assert car.quantity_in_stock == sum(
            snapshot.quantity for snapshot in StockLedger.snapshots_for_car(car.pk)
        )
        assert car.price == Decimal('80338.15')
        assert model_admin.message_user.call_args.kwargs['level'] == messages.ERROR

    def test_status_change(self, stocked, car):
        editing = Car.objects.get(pk=car.pk)
        editing.status = CarStatus.MAINTENANCE

        self._save(editing, 'status')

        car.refresh_from_db()
        assert car.status == CarStatus.MAINTENANCE


class TestWarehouseAdmin:

    def test_receive_while_editing(self, stocked, warehouse, car):
        """Renaming a warehouse does not roll capacity_used back."""
        editing = Warehouse.objects.get(pk=warehouse.pk)
        StockLedger.receive(warehouse.pk, car.pk, 5)
        editing.name = 'Central Lisbon'

        model_admin = WarehouseAdmin(Warehouse, admin.site)
        model_admin.save_model(request=None, obj=editing, form=SimpleNamespace(changed_data=['name']),
                               change=True)

        warehouse.refresh_from_db()
        assert warehouse.name == 'Central Lisbon'
        assert warehouse.capacity_used == 15
        assert editing.capacity_used == 15
