"""
Autostock Models.

Core models for vehicle stock management:
- Car: Catalogue entry and aggregate stock
- Warehouse: Where stock physically exists
- StockLocation: Ledger row per (warehouse, car)
- Reservation: Time-bounded customer holds
- TransferOrder: Stock moving between warehouses
- SaleRecord: Completed sales
- JobExecution: Background run audit trail
- MetricsSnapshot: Hourly rollup
"""

from autostock.models.car import Car
from autostock.models.enums import (
    AlertLevel,
    CarStatus,
    EngineType,
    JobStatus,
    JobType,
    ReservationStatus,
    TransferStatus,
)
from autostock.models.job import JobExecution
from autostock.models.location import StockLocation
from autostock.models.metrics import MetricsSnapshot
from autostock.models.reservation import Reservation
from autostock.models.sale import SaleRecord
from autostock.models.transfer import TransferOrder
from autostock.models.warehouse import Warehouse

__all__ = [
    'AlertLevel',
    'CarStatus',
    'EngineType',
    'JobStatus',
    'JobType',
    'ReservationStatus',
    'TransferStatus',
    'Car',
    'Warehouse',
    'StockLocation',
    'Reservation',
    'TransferOrder',
    'SaleRecord',
    'JobExecution',
    'MetricsSnapshot',
]
