"""
Inventory Service: The single public interface for inventory operations.

Usage:
    from autostock import inventory, InventoryError

    inventory.adjust_stock('W0001', 'C0001', 6, action='receive')
    reservation = inventory.create_reservation('C0001', 2, 'customer-42')
    inventory.confirm_reservation(reservation.pk)
    inventory.complete_reservation(reservation.pk)

Every method returns a model instance or value object, or raises an
InventoryError subclass. Adapters (HTTP, RPC, CLI) map errors with
InventoryError.as_dict().
"""

from datetime import datetime

from autostock.exceptions import ValidationError
from autostock.services.alerts import (
    SALES_WINDOW_DAYS,
    AlertSummary,
    SalesVelocity,
    check_alerts,
    sales_velocity,
)
from autostock.services.catalog import CarCatalog
from autostock.services.expiration import ExpirationScheduler
from autostock.services.ledger import LedgerSnapshot, StockLedger
from autostock.services.metrics import MetricsAggregator
from autostock.services.queries import InventoryQueries
from autostock.services.reservations import ReservationManager
from autostock.services.transfers import TransferOrchestrator

ADJUST_ACTIONS = ('receive', 'release')


class Inventory:
    """
    Single interface for all inventory operations.

    Parameter convention: (who/where, what, how many, ...)

    IMPORTANT: All state-changing methods go through StockLedger, which
    retries lost version races internally and raises Conflict only when
    retries are exhausted. Conflict.retryable is True.
    """

    # ══════════════════════════════════════════════════════════════
    # RESERVATIONS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def create_reservation(cls, car_id: str, quantity: int, reserved_by: str,
                           expires_at: datetime | None = None,
                           ttl_minutes: int | None = None, **metadata):
        """Hold units of a car for a customer. See ReservationManager.create."""
        return ReservationManager.create(
            car_id, quantity, reserved_by,
            expires_at=expires_at, ttl_minutes=ttl_minutes, metadata=metadata,
        )

    @classmethod
    def confirm_reservation(cls, reservation_id):
        return ReservationManager.confirm(reservation_id)

    @classmethod
    def cancel_reservation(cls, reservation_id, reason: str = 'cancelled'):
        return ReservationManager.cancel(reservation_id, reason=reason)

    @classmethod
    def complete_reservation(cls, reservation_id, customer_id: str = ''):
        return ReservationManager.complete(reservation_id, customer_id=customer_id)

    @classmethod
    def get_reservation(cls, reservation_id):
        return ReservationManager.get(reservation_id)

    # ══════════════════════════════════════════════════════════════
    # CATALOGUE
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def update_car(cls, car_id: str, expected_version: int, **fields):
        """
        Edit car attributes against the version the caller last read.

        Stock figures are not editable here. Raises Conflict when the
        car changed since expected_version.
        """
        return CarCatalog.update(car_id, expected_version, **fields)

    # ══════════════════════════════════════════════════════════════
    # TRANSFERS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def create_transfer(cls, from_warehouse_id: str, to_warehouse_id: str,
                        car_id: str, quantity: int, reason: str = ''):
        return TransferOrchestrator.create(
            from_warehouse_id, to_warehouse_id, car_id, quantity, reason=reason,
        )

    @classmethod
    def advance_transfer(cls, transfer_id):
        return TransferOrchestrator.advance(transfer_id)

    @classmethod
    def complete_transfer(cls, transfer_id):
        return TransferOrchestrator.complete(transfer_id)

    @classmethod
    def cancel_transfer(cls, transfer_id, reason: str = ''):
        return TransferOrchestrator.cancel(transfer_id, reason=reason)

    @classmethod
    def get_transfer(cls, transfer_id):
        return TransferOrchestrator.get(transfer_id)

    @classmethod
    def pending_reconciliation(cls):
        return TransferOrchestrator.pending_reconciliation()

    # ══════════════════════════════════════════════════════════════
    # STOCK
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def adjust_stock(cls, warehouse_id: str, car_id: str, quantity: int,
                     action: str = 'receive') -> LedgerSnapshot:
        """
        Manual stock adjustment.

        Args:
            action: 'receive' adds units (inbound delivery),
                    'release' returns held units to free stock.

        Raises:
            ValidationError: unknown action or quantity <= 0
        """
        if action == 'receive':
            return StockLedger.receive(warehouse_id, car_id, quantity)
        if action == 'release':
            return StockLedger.release(warehouse_id, car_id, quantity)
        raise ValidationError(message=f"Unknown action {action!r}", allowed=list(ADJUST_ACTIONS))

    @classmethod
    def stock_snapshot(cls, car_id: str) -> list[LedgerSnapshot]:
        """Ledger rows of a car across all warehouses."""
        InventoryQueries.get_car(car_id)
        return StockLedger.snapshots_for_car(car_id)

    # ══════════════════════════════════════════════════════════════
    # REPORTING
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def get_alerts(cls, car_id: str | None = None) -> AlertSummary:
        return check_alerts(car_id)

    @classmethod
    def get_sales_velocity(cls, days: int = SALES_WINDOW_DAYS) -> list[SalesVelocity]:
        return sales_velocity(days)

    @classmethod
    def get_metrics_snapshot(cls, hour: datetime):
        return MetricsAggregator.get_snapshot(hour)

    # ══════════════════════════════════════════════════════════════
    # BACKGROUND
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def expire_reservations(cls):
        """Run one expiration sweep. Returns the JobExecution."""
        return ExpirationScheduler.run_once()

    @classmethod
    def rollup_metrics(cls):
        """Upsert the current hour's snapshot. Returns the JobExecution."""
        return MetricsAggregator.run_once()
