"""
Warehouse transfers: create, advance, complete, cancel.

The source holds the units in reserved_quantity from create() until
complete() or cancel(). Completion is a two-step ledger operation
(commit at source, receive at destination) with both warehouse rows
locked in ascending id order, so opposite-direction transfers never
deadlock.
"""

import logging
import uuid

from django.db import transaction
from django.utils import timezone

from autostock.exceptions import InsufficientStock, InventoryError, NotFound, ValidationError
from autostock.models.enums import TransferStatus
from autostock.models.transfer import TransferOrder
from autostock.services.ledger import StockLedger, validate_quantity
from autostock.services.queries import InventoryQueries
from autostock.transitions import TRANSFER_TRANSITIONS, ensure_transition

logger = logging.getLogger('autostock')


def _parse_id(transfer_id) -> uuid.UUID:
    if isinstance(transfer_id, uuid.UUID):
        return transfer_id
    try:
        return uuid.UUID(str(transfer_id))
    except (TypeError, ValueError):
        raise ValidationError(message='Malformed transfer id', transfer_id=str(transfer_id)) from None


def _lock(transfer_id) -> TransferOrder:
    pk = _parse_id(transfer_id)
    try:
        return TransferOrder.objects.select_for_update().get(pk=pk)
    except TransferOrder.DoesNotExist:
        raise NotFound(resource='transfer', transfer_id=str(pk)) from None


class TransferOrchestrator:
    """Transfer pipeline methods."""

    @classmethod
    def create(cls, from_warehouse_id: str, to_warehouse_id: str, car_id: str,
               quantity: int, reason: str = '') -> TransferOrder:
        """
        Open a Pending transfer and hold the units at the source.

        Raises:
            ValidationError: same warehouse, quantity <= 0, inactive endpoint
            NotFound: unknown warehouse or car
            InsufficientStock: source cannot hold the quantity, or has never
                held this car (available=0); nothing written
        """
        if from_warehouse_id == to_warehouse_id:
            raise ValidationError('SAME_WAREHOUSE', warehouse_id=from_warehouse_id)
        validate_quantity(quantity)

        InventoryQueries.get_warehouse(from_warehouse_id, require_active=True)
        InventoryQueries.get_warehouse(to_warehouse_id, require_active=True)
        InventoryQueries.get_car(car_id)

        with transaction.atomic():
            try:
                StockLedger.reserve(from_warehouse_id, car_id, quantity)
            except NotFound:
                # Source never held this car
                raise InsufficientStock(
                    available=0,
                    requested=quantity,
                    warehouse_id=from_warehouse_id,
                    car_id=car_id,
                ) from None
            order = TransferOrder.objects.create(
                from_warehouse_id=from_warehouse_id,
                to_warehouse_id=to_warehouse_id,
                car_id=car_id,
                quantity=quantity,
                reason=reason,
            )

        logger.info(
            "inventory.transfer.created",
            extra={
                "transfer_id": str(order.pk),
                "from": from_warehouse_id,
                "to": to_warehouse_id,
                "car_id": car_id,
                "qty": quantity,
            },
        )
        return order

    @classmethod
    def advance(cls, transfer_id) -> TransferOrder:
        """Pending → InTransit. Physical dispatch; no ledger effect."""
        with transaction.atomic():
            order = _lock(transfer_id)
            ensure_transition(
                TRANSFER_TRANSITIONS, order.status, TransferStatus.IN_TRANSIT,
                transfer_id=str(order.pk),
            )
            order.status = TransferStatus.IN_TRANSIT
            order.dispatched_at = timezone.now()
            order.save(update_fields=['status', 'dispatched_at'])

        logger.info("inventory.transfer.dispatched", extra={"transfer_id": str(order.pk)})
        return order

    @classmethod
    def complete(cls, transfer_id) -> TransferOrder:
        """
        InTransit → Completed.

        If the destination cannot receive after the source has committed,
        the order is kept as Failed with the reason recorded and the
        original error is raised. The source commit stands; the order
        shows up in pending_reconciliation().
        """
        failure = None

        with transaction.atomic():
            order = _lock(transfer_id)
            ensure_transition(
                TRANSFER_TRANSITIONS, order.status, TransferStatus.COMPLETED,
                transfer_id=str(order.pk),
            )
            StockLedger.lock_warehouses(order.from_warehouse_id, order.to_warehouse_id)

            StockLedger.commit(order.from_warehouse_id, order.car_id, order.quantity)
            try:
                with transaction.atomic():
                    StockLedger.receive(order.to_warehouse_id, order.car_id, order.quantity)
            except InventoryError as exc:
                failure = exc
                order.status = TransferStatus.FAILED
                order.failure_reason = str(exc)
                order.save(update_fields=['status', 'failure_reason'])
                logger.error(
                    "inventory.transfer.failed",
                    extra={
                        "transfer_id": str(order.pk),
                        "to": order.to_warehouse_id,
                        "car_id": order.car_id,
                        "qty": order.quantity,
                        "error": exc.code,
                    },
                )
            else:
                order.status = TransferStatus.COMPLETED
                order.completed_at = timezone.now()
                order.save(update_fields=['status', 'completed_at'])

        if failure is not None:
            raise failure

        logger.info("inventory.transfer.completed", extra={"transfer_id": str(order.pk)})
        return order

    @classmethod
    def cancel(cls, transfer_id, reason: str = '') -> TransferOrder:
        """Pending/InTransit → Cancelled. Held units return to the source."""
        with transaction.atomic():
            order = _lock(transfer_id)
            ensure_transition(
                TRANSFER_TRANSITIONS, order.status, TransferStatus.CANCELLED,
                transfer_id=str(order.pk),
            )
            StockLedger.release(order.from_warehouse_id, order.car_id, order.quantity)
            order.status = TransferStatus.CANCELLED
            update_fields = ['status']
            if reason:
                order.reason = reason
                update_fields.append('reason')
            order.save(update_fields=update_fields)

        logger.info("inventory.transfer.cancelled", extra={"transfer_id": str(order.pk)})
        return order

    @classmethod
    def get(cls, transfer_id) -> TransferOrder:
        pk = _parse_id(transfer_id)
        try:
            return TransferOrder.objects.select_related('car').get(pk=pk)
        except TransferOrder.DoesNotExist:
            raise NotFound(resource='transfer', transfer_id=str(pk)) from None

    @classmethod
    def pending_reconciliation(cls):
        """Failed transfers: source committed, destination never received."""
        return TransferOrder.objects.filter(status=TransferStatus.FAILED).order_by('requested_at')
