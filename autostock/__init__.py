"""
Django Autostock: multi-warehouse automobile stock engine.

Ledger with optimistic concurrency, time-bounded reservations,
warehouse transfers and low-stock alerts.

Usage:
    from autostock import inventory, InventoryError

    inventory.adjust_stock('W0001', 'C0001', 10, action='receive')
    reservation = inventory.create_reservation('C0001', 2, 'customer-42')
    inventory.confirm_reservation(reservation.pk)
    inventory.complete_reservation(reservation.pk)
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'inventory':
        from autostock.service import Inventory
        return Inventory
    elif name == 'InventoryError':
        from autostock.exceptions import InventoryError
        return InventoryError
    elif name == 'Car':
        from autostock.models.car import Car
        return Car
    elif name == 'Warehouse':
        from autostock.models.warehouse import Warehouse
        return Warehouse
    elif name == 'StockLocation':
        from autostock.models.location import StockLocation
        return StockLocation
    elif name == 'Reservation':
        from autostock.models.reservation import Reservation
        return Reservation
    elif name == 'TransferOrder':
        from autostock.models.transfer import TransferOrder
        return TransferOrder
    elif name == 'ReservationStatus':
        from autostock.models.enums import ReservationStatus
        return ReservationStatus
    elif name == 'TransferStatus':
        from autostock.models.enums import TransferStatus
        return TransferStatus
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'inventory',
    'InventoryError',
    'Car',
    'Warehouse',
    'StockLocation',
    'Reservation',
    'TransferOrder',
    'ReservationStatus',
    'TransferStatus',
]

__version__ = '0.1.0'
