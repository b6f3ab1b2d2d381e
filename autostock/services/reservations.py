"""
Reservation lifecycle: create, confirm, complete, cancel, expire.

Ledger effects go through StockLedger only. Every transition locks the
reservation row with select_for_update() inside transaction.atomic(),
so two callers racing on the same reservation are serialized and the
loser sees the winner's terminal status.
"""

import logging
import uuid
from datetime import datetime, timedelta

from django.db import transaction
from django.utils import timezone

from autostock.conf import autostock_settings
from autostock.exceptions import InsufficientStock, InvalidStateTransition, NotFound, ValidationError
from autostock.models.enums import ReservationStatus
from autostock.models.reservation import Reservation
from autostock.models.sale import SaleRecord
from autostock.services.ledger import StockLedger, validate_quantity
from autostock.services.queries import InventoryQueries
from autostock.transitions import RESERVATION_TRANSITIONS, ensure_transition

logger = logging.getLogger('autostock')


def _parse_id(reservation_id) -> uuid.UUID:
    if isinstance(reservation_id, uuid.UUID):
        return reservation_id
    try:
        return uuid.UUID(str(reservation_id))
    except (TypeError, ValueError):
        raise ValidationError(
            message='Malformed reservation id',
            reservation_id=str(reservation_id),
        ) from None


def _lock(reservation_id) -> Reservation:
    """Fetch and lock a reservation row. Call inside transaction.atomic()."""
    pk = _parse_id(reservation_id)
    try:
        return Reservation.objects.select_for_update().get(pk=pk)
    except Reservation.DoesNotExist:
        raise NotFound(resource='reservation', reservation_id=str(pk)) from None


def _resolve(reservation: Reservation, status, **extra_fields) -> None:
    now = timezone.now()
    reservation.status = status
    reservation.resolved_at = now
    for name, value in extra_fields.items():
        setattr(reservation, name, value)
    reservation.save(update_fields=['status', 'resolved_at', 'updated_at', *extra_fields])


class ReservationManager:
    """Reservation lifecycle methods."""

    @classmethod
    def create(cls, car_id: str, quantity: int, reserved_by: str,
               expires_at: datetime | None = None, ttl_minutes: int | None = None,
               metadata: dict | None = None) -> Reservation:
        """
        Reserve units of a car in a single warehouse.

        Allocation is greedy: active warehouses ranked by free units
        (descending, ties by warehouse id); the first that can hold the
        whole quantity wins. If a candidate loses a race between ranking
        and reserving, the next one is tried.

        Raises:
            ValidationError: quantity <= 0, empty holder, expiry in the past
            NotFound: unknown or deleted car
            InsufficientStock: no single warehouse can hold the quantity
            Conflict: ledger retries exhausted
        """
        validate_quantity(quantity)
        if not reserved_by or not str(reserved_by).strip():
            raise ValidationError(message='reserved_by is required')

        now = timezone.now()
        if expires_at is None:
            ttl = autostock_settings.RESERVATION_TTL_MINUTES if ttl_minutes is None else ttl_minutes
            if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl <= 0:
                raise ValidationError('INVALID_EXPIRY', ttl_minutes=ttl)
            expires_at = now + timedelta(minutes=ttl)
        elif expires_at <= now:
            raise ValidationError('INVALID_EXPIRY', expires_at=expires_at.isoformat())

        InventoryQueries.get_car(car_id)

        rows = list(
            InventoryQueries.locations_for_car(car_id)
            .order_by('-free', 'warehouse_id')
            .values_list('warehouse_id', 'free')
        )
        best_free = max((free for _, free in rows), default=0)

        for warehouse_id, free in rows:
            if free < quantity:
                break
            try:
                with transaction.atomic():
                    StockLedger.reserve(warehouse_id, car_id, quantity)
                    reservation = Reservation.objects.create(
                        car_id=car_id,
                        warehouse_id=warehouse_id,
                        quantity=quantity,
                        reserved_by=reserved_by,
                        expires_at=expires_at,
                        status=ReservationStatus.PENDING,
                        metadata=metadata or {},
                    )
            except InsufficientStock:
                logger.info(
                    "inventory.reservation.candidate_lost",
                    extra={"car_id": car_id, "warehouse_id": warehouse_id, "qty": quantity},
                )
                continue

            logger.info(
                "inventory.reservation.created",
                extra={
                    "reservation_id": str(reservation.pk),
                    "car_id": car_id,
                    "warehouse_id": warehouse_id,
                    "qty": quantity,
                    "expires_at": expires_at.isoformat(),
                },
            )
            return reservation

        raise InsufficientStock(available=best_free, requested=quantity, car_id=car_id)

    @classmethod
    def confirm(cls, reservation_id) -> Reservation:
        """
        Pending → Confirmed. No ledger effect.

        A Pending reservation already past expires_at is waiting for the
        sweeper and cannot be confirmed.
        """
        with transaction.atomic():
            reservation = _lock(reservation_id)
            ensure_transition(
                RESERVATION_TRANSITIONS, reservation.status, ReservationStatus.CONFIRMED,
                reservation_id=str(reservation.pk),
            )
            if reservation.expires_at <= timezone.now():
                raise InvalidStateTransition(
                    current=reservation.status,
                    target=str(ReservationStatus.CONFIRMED),
                    reason='expired',
                    reservation_id=str(reservation.pk),
                )

            reservation.status = ReservationStatus.CONFIRMED
            reservation.save(update_fields=['status', 'updated_at'])

        logger.info("inventory.reservation.confirmed", extra={"reservation_id": str(reservation.pk)})
        return reservation

    @classmethod
    def complete(cls, reservation_id, customer_id: str = '') -> Reservation:
        """
        Confirmed → Completed. Units leave the ledger and a SaleRecord is written.
        """
        with transaction.atomic():
            reservation = _lock(reservation_id)
            ensure_transition(
                RESERVATION_TRANSITIONS, reservation.status, ReservationStatus.COMPLETED,
                reservation_id=str(reservation.pk),
            )

            StockLedger.commit(
                reservation.warehouse_id, reservation.car_id, reservation.quantity, sale=True,
            )
            SaleRecord.objects.create(
                car_id=reservation.car_id,
                reservation=reservation,
                quantity=reservation.quantity,
                unit_price=reservation.car.price,
                customer_id=customer_id or reservation.reserved_by,
            )
            _resolve(reservation, ReservationStatus.COMPLETED)

        logger.info(
            "inventory.reservation.completed",
            extra={
                "reservation_id": str(reservation.pk),
                "car_id": reservation.car_id,
                "qty": reservation.quantity,
            },
        )
        return reservation

    @classmethod
    def cancel(cls, reservation_id, reason: str = 'cancelled') -> Reservation:
        """Pending/Confirmed → Cancelled. Held units go back to the warehouse."""
        with transaction.atomic():
            reservation = _lock(reservation_id)
            ensure_transition(
                RESERVATION_TRANSITIONS, reservation.status, ReservationStatus.CANCELLED,
                reservation_id=str(reservation.pk),
            )

            StockLedger.release(reservation.warehouse_id, reservation.car_id, reservation.quantity)
            reservation.metadata = {**reservation.metadata, 'cancel_reason': reason}
            _resolve(reservation, ReservationStatus.CANCELLED, metadata=reservation.metadata)

        logger.info(
            "inventory.reservation.cancelled",
            extra={"reservation_id": str(reservation.pk), "reason": reason},
        )
        return reservation

    @classmethod
    def expire(cls, reservation_id, now: datetime | None = None) -> bool:
        """
        Pending → Expired. Called by the expiration sweep.

        Returns:
            True if this call expired it, False if it was already Expired.

        Raises:
            InvalidStateTransition: not Pending, or not yet past expires_at
        """
        now = now or timezone.now()

        with transaction.atomic():
            reservation = _lock(reservation_id)
            if reservation.status == ReservationStatus.EXPIRED:
                return False

            ensure_transition(
                RESERVATION_TRANSITIONS, reservation.status, ReservationStatus.EXPIRED,
                reservation_id=str(reservation.pk),
            )
            if reservation.expires_at >= now:
                raise InvalidStateTransition(
                    current=reservation.status,
                    target=str(ReservationStatus.EXPIRED),
                    reason='not_due',
                    reservation_id=str(reservation.pk),
                )

            StockLedger.release(reservation.warehouse_id, reservation.car_id, reservation.quantity)
            _resolve(reservation, ReservationStatus.EXPIRED)

        logger.info(
            "inventory.reservation.expired",
            extra={"reservation_id": str(reservation.pk), "qty": reservation.quantity},
        )
        return True

    @classmethod
    def get(cls, reservation_id) -> Reservation:
        pk = _parse_id(reservation_id)
        try:
            return Reservation.objects.select_related('car', 'warehouse').get(pk=pk)
        except Reservation.DoesNotExist:
            raise NotFound(resource='reservation', reservation_id=str(pk)) from None
