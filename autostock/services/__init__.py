"""
Inventory services: modular organization of inventory operations.

    from autostock.services import StockLedger, ReservationManager, TransferOrchestrator
"""

from autostock.services.catalog import CarCatalog
from autostock.services.expiration import ExpirationScheduler
from autostock.services.ledger import LedgerSnapshot, StockLedger
from autostock.services.metrics import MetricsAggregator
from autostock.services.queries import InventoryQueries
from autostock.services.reservations import ReservationManager
from autostock.services.transfers import TransferOrchestrator

__all__ = [
    'CarCatalog',
    'InventoryQueries',
    'LedgerSnapshot',
    'StockLedger',
    'ReservationManager',
    'TransferOrchestrator',
    'ExpirationScheduler',
    'MetricsAggregator',
]
