"""
Stock ledger: the only writer of StockLocation quantities.

Every mutation follows the same optimistic-concurrency loop:

    1. read the row (quantity, reserved_quantity, version)
    2. compute the new row state, raising domain errors
    3. UPDATE ... WHERE version = <read version>
    4. zero rows updated → another writer won; back off and retry

The car aggregate (Car.quantity_in_stock) and the warehouse
capacity_used move in the same transaction.atomic() block as the row,
so a lost race on any of them rolls the whole attempt back.

Lock order for writes that move stock: warehouse rows (ascending id),
then the ledger row, then the car. Each such attempt locks its warehouse
before touching the ledger row; callers spanning two warehouses take
both up front through lock_warehouses(). Reserve and release touch the
ledger row only.

No lock is held across business logic. A caller blocks for at most
CAS_MAX_RETRIES + 1 attempts, then gets Conflict.
"""

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from autostock.conf import autostock_settings
from autostock.exceptions import (
    CapacityExceeded,
    Conflict,
    InsufficientStock,
    InternalInconsistency,
    NotFound,
    ValidationError,
)
from autostock.models.car import Car
from autostock.models.enums import CarStatus
from autostock.models.location import StockLocation
from autostock.models.warehouse import Warehouse
from autostock.services.queries import InventoryQueries

logger = logging.getLogger('autostock')


@dataclass(frozen=True)
class LedgerSnapshot:
    """Point-in-time view of one ledger row."""

    location_id: int
    warehouse_id: str
    car_id: str
    quantity: int
    reserved_quantity: int
    version: int

    @property
    def available(self) -> int:
        return self.quantity - self.reserved_quantity


def validate_quantity(quantity) -> None:
    """Quantities are positive integers (bool is not a quantity)."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError('INVALID_QUANTITY', requested=quantity)


def _inconsistency(message: str, **data) -> InternalInconsistency:
    logger.critical(
        "inventory.ledger.inconsistency",
        extra={"detail": message, **{k: str(v) for k, v in data.items()}},
    )
    return InternalInconsistency(message=message, **data)


class StockLedger:
    """Per-(warehouse, car) mutation primitives with version CAS."""

    # ══════════════════════════════════════════════════════════════
    # READS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def read_snapshot(cls, warehouse_id: str, car_id: str) -> LedgerSnapshot:
        """
        Current quantity/reserved/version of a row. Single SELECT, no lock.

        Raises:
            NotFound: no ledger row for this coordinate
        """
        row = StockLocation.objects.filter(
            warehouse_id=warehouse_id,
            car_id=car_id,
        ).values('pk', 'quantity', 'reserved_quantity', 'version').first()

        if row is None:
            raise NotFound(resource='stock_location', warehouse_id=warehouse_id, car_id=car_id)

        return LedgerSnapshot(
            location_id=row['pk'],
            warehouse_id=warehouse_id,
            car_id=car_id,
            quantity=row['quantity'],
            reserved_quantity=row['reserved_quantity'],
            version=row['version'],
        )

    @classmethod
    def snapshots_for_car(cls, car_id: str) -> list[LedgerSnapshot]:
        """All ledger rows of a car, ordered by warehouse."""
        rows = StockLocation.objects.filter(car_id=car_id).order_by('warehouse_id').values(
            'pk', 'warehouse_id', 'quantity', 'reserved_quantity', 'version',
        )
        return [
            LedgerSnapshot(
                location_id=row['pk'],
                warehouse_id=row['warehouse_id'],
                car_id=car_id,
                quantity=row['quantity'],
                reserved_quantity=row['reserved_quantity'],
                version=row['version'],
            )
            for row in rows
        ]

    # ══════════════════════════════════════════════════════════════
    # MUTATIONS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def reserve(cls, warehouse_id: str, car_id: str, quantity: int) -> LedgerSnapshot:
        """
        Hold units: reserved_quantity += quantity.

        Raises:
            ValidationError('INVALID_QUANTITY'): quantity <= 0
            NotFound: no ledger row
            InsufficientStock: quantity > quantity - reserved_quantity
            Conflict: retries exhausted
        """
        validate_quantity(quantity)

        def plan(snapshot):
            if snapshot.available < quantity:
                raise InsufficientStock(
                    available=snapshot.available,
                    requested=quantity,
                    warehouse_id=warehouse_id,
                    car_id=car_id,
                )
            return snapshot.quantity, snapshot.reserved_quantity + quantity

        return cls._mutate('reserve', warehouse_id, car_id, quantity, plan)

    @classmethod
    def release(cls, warehouse_id: str, car_id: str, quantity: int) -> LedgerSnapshot:
        """
        Return held units: reserved_quantity -= quantity.

        Releasing more than is held means a caller lost track of its own
        hold. That is never clamped silently.

        Raises:
            InternalInconsistency: quantity > reserved_quantity
        """
        validate_quantity(quantity)

        def plan(snapshot):
            if snapshot.reserved_quantity < quantity:
                raise _inconsistency(
                    'Release exceeds reserved quantity',
                    warehouse_id=warehouse_id,
                    car_id=car_id,
                    reserved=snapshot.reserved_quantity,
                    requested=quantity,
                )
            return snapshot.quantity, snapshot.reserved_quantity - quantity

        return cls._mutate('release', warehouse_id, car_id, quantity, plan)

    @classmethod
    def commit(cls, warehouse_id: str, car_id: str, quantity: int,
               sale: bool = False) -> LedgerSnapshot:
        """
        Units leave the warehouse: quantity and reserved_quantity -= quantity.

        Finalizes a sale or a transfer departure. Only held units can be
        committed. With sale=True the car is marked Sold when its
        aggregate stock reaches zero.

        Raises:
            InternalInconsistency: quantity > reserved_quantity
        """
        validate_quantity(quantity)

        def plan(snapshot):
            if snapshot.reserved_quantity < quantity:
                raise _inconsistency(
                    'Commit exceeds reserved quantity',
                    warehouse_id=warehouse_id,
                    car_id=car_id,
                    reserved=snapshot.reserved_quantity,
                    requested=quantity,
                )
            return snapshot.quantity - quantity, snapshot.reserved_quantity - quantity

        return cls._mutate(
            'commit', warehouse_id, car_id, quantity, plan,
            stock_delta=-quantity, sale=sale,
        )

    @classmethod
    def receive(cls, warehouse_id: str, car_id: str, quantity: int) -> LedgerSnapshot:
        """
        Inbound units: quantity += quantity.

        Creates the ledger row on first receipt.

        Raises:
            NotFound: unknown warehouse or car
            ValidationError('WAREHOUSE_INACTIVE'): warehouse not active
            CapacityExceeded: warehouse capacity_total would be exceeded
        """
        validate_quantity(quantity)
        InventoryQueries.get_warehouse(warehouse_id, require_active=True)
        InventoryQueries.get_car(car_id)

        def plan(snapshot):
            return snapshot.quantity + quantity, snapshot.reserved_quantity

        # A failed first receipt leaves no empty row behind
        with transaction.atomic():
            StockLocation.objects.get_or_create(warehouse_id=warehouse_id, car_id=car_id)
            return cls._mutate('receive', warehouse_id, car_id, quantity, plan, stock_delta=quantity)

    @classmethod
    def write_if_unchanged(cls, snapshot: LedgerSnapshot, quantity: int,
                           reserved_quantity: int) -> LedgerSnapshot:
        """
        Compare-and-set a ledger row against the version in snapshot.

        Raises:
            InternalInconsistency: target state breaks 0 <= reserved <= quantity
            Conflict: the row version moved since snapshot was read
        """
        if not 0 <= reserved_quantity <= quantity:
            raise _inconsistency(
                'Target row state breaks 0 <= reserved <= quantity',
                warehouse_id=snapshot.warehouse_id,
                car_id=snapshot.car_id,
                quantity=quantity,
                reserved=reserved_quantity,
            )

        updated = StockLocation.objects.filter(
            pk=snapshot.location_id,
            version=snapshot.version,
        ).update(
            quantity=quantity,
            reserved_quantity=reserved_quantity,
            version=snapshot.version + 1,
            last_updated=timezone.now(),
        )
        if not updated:
            raise Conflict(
                resource='stock_location',
                warehouse_id=snapshot.warehouse_id,
                car_id=snapshot.car_id,
                expected_version=snapshot.version,
            )

        return LedgerSnapshot(
            location_id=snapshot.location_id,
            warehouse_id=snapshot.warehouse_id,
            car_id=snapshot.car_id,
            quantity=quantity,
            reserved_quantity=reserved_quantity,
            version=snapshot.version + 1,
        )

    @classmethod
    def lock_warehouses(cls, *warehouse_ids: str) -> None:
        """
        SELECT ... FOR UPDATE on warehouse rows in ascending id order.

        Must run inside transaction.atomic(). Taken before any ledger row
        or car write so every stock-moving transaction locks in the same
        order.
        """
        list(
            Warehouse.objects.select_for_update()
            .filter(pk__in=sorted(set(warehouse_ids)))
            .order_by('pk')
            .values_list('pk', flat=True)
        )

    # ══════════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _mutate(cls, operation: str, warehouse_id: str, car_id: str, quantity: int,
                plan: Callable[[LedgerSnapshot], tuple[int, int]],
                stock_delta: int = 0, sale: bool = False) -> LedgerSnapshot:
        attempts = 1 + max(0, autostock_settings.CAS_MAX_RETRIES)

        for attempt in range(1, attempts + 1):
            snapshot = cls.read_snapshot(warehouse_id, car_id)
            new_quantity, new_reserved = plan(snapshot)

            try:
                with transaction.atomic():
                    if stock_delta:
                        cls.lock_warehouses(warehouse_id)
                    result = cls.write_if_unchanged(snapshot, new_quantity, new_reserved)
                    if stock_delta:
                        cls._apply_car_delta(car_id, stock_delta, sale=sale)
                        cls._apply_capacity_delta(warehouse_id, stock_delta)
            except Conflict:
                logger.info(
                    "inventory.ledger.conflict",
                    extra={
                        "operation": operation,
                        "warehouse_id": warehouse_id,
                        "car_id": car_id,
                        "attempt": attempt,
                    },
                )
                if attempt < attempts:
                    cls._backoff(attempt)
                continue

            logger.info(
                f"inventory.ledger.{operation}",
                extra={
                    "warehouse_id": warehouse_id,
                    "car_id": car_id,
                    "qty": quantity,
                    "version": result.version,
                },
            )
            return result

        logger.warning(
            "inventory.ledger.conflict_exhausted",
            extra={
                "operation": operation,
                "warehouse_id": warehouse_id,
                "car_id": car_id,
                "attempts": attempts,
            },
        )
        raise Conflict(
            operation=operation,
            warehouse_id=warehouse_id,
            car_id=car_id,
            attempts=attempts,
        )

    @classmethod
    def _apply_car_delta(cls, car_id: str, delta: int, sale: bool = False) -> None:
        """Version-checked update of the car aggregate stock and status."""
        row = Car.objects.filter(pk=car_id).values('quantity_in_stock', 'version', 'status').first()
        if row is None:
            raise NotFound(resource='car', car_id=car_id)

        new_total = row['quantity_in_stock'] + delta
        if new_total < 0:
            raise _inconsistency(
                'Car aggregate stock would go negative',
                car_id=car_id,
                quantity_in_stock=row['quantity_in_stock'],
                delta=delta,
            )

        status = row['status']
        if sale and new_total == 0:
            status = CarStatus.SOLD
        elif status == CarStatus.SOLD and new_total > 0:
            status = CarStatus.AVAILABLE

        updated = Car.objects.filter(pk=car_id, version=row['version']).update(
            quantity_in_stock=new_total,
            status=status,
            version=row['version'] + 1,
            updated_at=timezone.now(),
        )
        if not updated:
            raise Conflict(resource='car', car_id=car_id, expected_version=row['version'])

    @classmethod
    def _apply_capacity_delta(cls, warehouse_id: str, delta: int) -> None:
        """Conditional update of capacity_used; never above capacity_total."""
        if delta > 0:
            updated = Warehouse.objects.filter(
                pk=warehouse_id,
                capacity_used__lte=F('capacity_total') - delta,
            ).update(capacity_used=F('capacity_used') + delta)
            if not updated:
                warehouse = Warehouse.objects.filter(pk=warehouse_id).values(
                    'capacity_total', 'capacity_used',
                ).first() or {}
                raise CapacityExceeded(
                    warehouse_id=warehouse_id,
                    capacity_total=warehouse.get('capacity_total'),
                    capacity_used=warehouse.get('capacity_used'),
                    requested=delta,
                )
            return

        updated = Warehouse.objects.filter(
            pk=warehouse_id,
            capacity_used__gte=-delta,
        ).update(capacity_used=F('capacity_used') + delta)
        if not updated:
            raise _inconsistency(
                'Warehouse capacity_used would go negative',
                warehouse_id=warehouse_id,
                delta=delta,
            )

    @classmethod
    def _backoff(cls, attempt: int) -> None:
        """Full-jitter exponential backoff."""
        base = autostock_settings.CAS_BACKOFF_BASE_MS / 1000
        cap = autostock_settings.CAS_BACKOFF_MAX_MS / 1000
        delay = min(cap, base * (2 ** (attempt - 1)))
        if delay > 0:
            time.sleep(random.uniform(0, delay))
