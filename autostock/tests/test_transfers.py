"""
Tests for TransferOrchestrator (warehouse transfers).
"""

import pytest

from autostock.exceptions import (
    CapacityExceeded,
    InsufficientStock,
    InvalidStateTransition,
    NotFound,
    ValidationError,
)
from autostock.models import StockLocation, TransferOrder, TransferStatus, Warehouse
from autostock.services.ledger import StockLedger
from autostock.services.transfers import TransferOrchestrator


pytestmark = pytest.mark.django_db


def _totals(car_id):
    rows = StockLocation.objects.filter(car_id=car_id)
    return sum(r.quantity for r in rows), sum(r.reserved_quantity for r in rows)


class TestCreate:
    """Tests for TransferOrchestrator.create()."""

    def test_create_holds_units_at_source(self, stocked, warehouse, other_warehouse, car):
        order = TransferOrchestrator.create(warehouse.pk, other_warehouse.pk, car.pk, 4)

        assert order.status == TransferStatus.PENDING
        assert StockLedger.read_snapshot(warehouse.pk, car.pk).reserved_quantity == 4

    def test_same_warehouse(self, stocked, warehouse, car):
        with pytest.raises(ValidationError) as exc:
            TransferOrchestrator.create(warehouse.pk, warehouse.pk, car.pk, 1)

        assert exc.value.code == 'SAME_WAREHOUSE'

    def test_invalid_quantity(self, stocked, warehouse, other_warehouse, car):
        with pytest.raises(ValidationError):
            TransferOrchestrator.create(warehouse.pk, other_warehouse.pk, car.pk, 0)

    def test_more_than_available(self, stocked, warehouse, other_warehouse, car):
        """An oversized transfer fails before anything is written."""
        before = StockLedger.read_snapshot(warehouse.pk, car.pk)

        with pytest.raises(InsufficientStock):
            TransferOrchestrator.create(warehouse.pk, other_warehouse.pk, car.pk, 11)

        assert StockLedger.read_snapshot(warehouse.pk, car.pk) == before
        assert TransferOrder.objects.count() == 0

    def test_source_never_held_car(self, stocked, warehouse, other_warehouse, car):
        """No ledger row at the source reads as nothing available."""
        with pytest.raises(InsufficientStock) as exc:
            TransferOrchestrator.create(other_warehouse.pk, warehouse.pk, car.pk, 1)

        assert exc.value.available == 0
        assert exc.value.requested == 1
        assert TransferOrder.objects.count() == 0

    def test_inactive_destination(self, stocked, warehouse, other_warehouse, car):
        Warehouse.objects.filter(pk=other_warehouse.pk).update(is_active=False)

        with pytest.raises(ValidationError) as exc:
            TransferOrchestrator.create(warehouse.pk, other_warehouse.pk, car.pk, 1)

        assert exc.value.code == 'WAREHOUSE_INACTIVE'

    def test_unknown_warehouse(self, stocked, warehouse, car):
        with pytest.raises(NotFound):
            TransferOrchestrator.create(warehouse.pk, 'W9999', car.pk, 1)


class TestPipeline:
    """Tests for advance/complete/cancel."""

    def test_full_transfer_conserves_units(self, stocked, warehouse, other_warehouse, car):
        """Source -4, destination +4, totals and car aggregate unchanged."""
        order = TransferOrchestrator.create(warehouse.pk, other_warehouse.pk, car.pk, 4)
        TransferOrchestrator.advance(order.pk)

        completed = TransferOrchestrator.complete(order.pk)

        assert completed.status == TransferStatus.COMPLETED
        assert completed.dispatched_at is not None
        assert completed.completed_at is not None

        source = StockLedger.read_snapshot(warehouse.pk, car.pk)
        destination = StockLedger.read_snapshot(other_warehouse.pk, car.pk)
        assert (source.quantity, source.reserved_quantity) == (6, 0)
        assert (destination.quantity, destination.reserved_quantity) == (4, 0)
        assert _totals(car.pk) == (10, 0)

        car.refresh_from_db()
        warehouse.refresh_from_db()
        other_warehouse.refresh_from_db()
        assert car.quantity_in_stock == 10
        assert warehouse.capacity_used == 6
        assert other_warehouse.capacity_used == 4

    def test_complete_requires_in_transit(self, stocked, warehouse, other_warehouse, car):
        order = TransferOrchestrator.create(warehouse.pk, other_warehouse.pk, car.pk, 4)

        with pytest.raises(InvalidStateTransition):
            TransferOrchestrator.complete(order.pk)

    def test_cancel_pending_releases_source(self, stocked, warehouse, other_warehouse, car):
        order = TransferOrchestrator.create(warehouse.pk, other_warehouse.pk, car.pk, 4)

        cancelled = TransferOrchestrator.cancel(order.pk, reason='no truck')

        assert cancelled.status == TransferStatus.CANCELLED
        assert cancelled.reason == 'no truck'
        assert StockLedger.read_snapshot(warehouse.pk, car.pk).reserved_quantity == 0

    def test_cancel_in_transit(self, stocked, warehouse, other_warehouse, car):
        order = TransferOrchestrator.create(warehouse.pk, other_warehouse.pk, car.pk, 4)
        TransferOrchestrator.advance(order.pk)

        TransferOrchestrator.cancel(order.pk)

        assert StockLedger.read_snapshot(warehouse.pk, car.pk).reserved_quantity == 0

    def test_completed_is_terminal(self, stocked, warehouse, other_warehouse, car):
        order = TransferOrchestrator.create(warehouse.pk, other_warehouse.pk, car.pk, 2)
        TransferOrchestrator.advance(order.pk)
        TransferOrchestrator.complete(order.pk)

        with pytest.raises(InvalidStateTransition):
            TransferOrchestrator.cancel(order.pk)
        with pytest.raises(InvalidStateTransition):
            TransferOrchestrator.advance(order.pk)

    def test_destination_failure_marks_failed(self, stocked, warehouse, small_warehouse, car):
        """
        Destination cannot take the units after the source committed.

        The order is Failed, the source commit stands and the error reaches
        the caller.
        """
        StockLedger.receive(small_warehouse.pk, car.pk, 3)
        order = TransferOrchestrator.create(warehouse.pk, small_warehouse.pk, car.pk, 4)
        TransferOrchestrator.advance(order.pk)

        with pytest.raises(CapacityExceeded):
            TransferOrchestrator.complete(order.pk)

        order.refresh_from_db()
        assert order.status == TransferStatus.FAILED
        assert 'CAPACITY_EXCEEDED' in order.failure_reason
        assert list(TransferOrchestrator.pending_reconciliation()) == [order]

        source = StockLedger.read_snapshot(warehouse.pk, car.pk)
        destination = StockLedger.read_snapshot(small_warehouse.pk, car.pk)
        assert (source.quantity, source.reserved_quantity) == (6, 0)
        assert destination.quantity == 3

    def test_failed_is_terminal(self, stocked, warehouse, small_warehouse, car):
        StockLedger.receive(small_warehouse.pk, car.pk, 3)
        order = TransferOrchestrator.create(warehouse.pk, small_warehouse.pk, car.pk, 4)
        TransferOrchestrator.advance(order.pk)
        with pytest.raises(CapacityExceeded):
            TransferOrchestrator.complete(order.pk)

        with pytest.raises(InvalidStateTransition):
            TransferOrchestrator.cancel(order.pk)

    def test_get(self, stocked, warehouse, other_warehouse, car):
        order = TransferOrchestrator.create(warehouse.pk, other_warehouse.pk, car.pk, 1)

        assert TransferOrchestrator.get(str(order.pk)) == order
        with pytest.raises(ValidationError):
            TransferOrchestrator.get('nope')

    def test_both_warehouses_locked_before_stock_moves(self, stocked, warehouse, other_warehouse,
                                                       car, monkeypatch):
        """Completion locks both sites in id order ahead of the source commit."""
        calls = []
        lock = StockLedger.lock_warehouses
        commit = StockLedger.commit

        def recording_lock(*warehouse_ids):
            calls.append(('lock', warehouse_ids))
            return lock(*warehouse_ids)

        def recording_commit(warehouse_id, car_id, quantity, sale=False):
            calls.append(('commit', warehouse_id))
            return commit(warehouse_id, car_id, quantity, sale=sale)

        order = TransferOrchestrator.create(warehouse.pk, other_warehouse.pk, car.pk, 3)
        TransferOrchestrator.advance(order.pk)
        monkeypatch.setattr(StockLedger, 'lock_warehouses', recording_lock)
        monkeypatch.setattr(StockLedger, 'commit', recording_commit)

        TransferOrchestrator.complete(order.pk)

        assert calls[:2] == [
            ('lock', (warehouse.pk, other_warehouse.pk)),
            ('commit', warehouse.pk),
        ]
