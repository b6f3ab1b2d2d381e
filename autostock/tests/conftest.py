"""
Pytest fixtures for Autostock tests.
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from autostock.models import Car, EngineType, Warehouse
from autostock.services.ledger import StockLedger


@pytest.fixture
def warehouse(db):
    """Main warehouse, room for 100 units."""
    return Warehouse.objects.create(
        warehouse_id='W0001',
        name='Central',
        location='Lisbon',
        capacity_total=100,
    )


@pytest.fixture
def other_warehouse(db):
    """Second warehouse, room for 100 units."""
    return Warehouse.objects.create(
        warehouse_id='W0002',
        name='North',
        location='Porto',
        capacity_total=100,
    )


@pytest.fixture
def small_warehouse(db):
    """Warehouse that only fits 5 units."""
    return Warehouse.objects.create(
        warehouse_id='W0003',
        name='Showroom',
        location='Braga',
        capacity_total=5,
    )


@pytest.fixture
def car(db):
    """C0001 with reorder point 5."""
    return Car.objects.create(
        car_id='C0001',
        brand='Tesla',
        model='Model 3',
        year=2024,
        engine_type=EngineType.ELECTRIC,
        price=Decimal('80338.15'),
        reorder_point=5,
        economic_order_qty=10,
    )


@pytest.fixture
def other_car(db):
    return Car.objects.create(
        car_id='C0002',
        brand='Toyota',
        model='Corolla',
        year=2023,
        engine_type=EngineType.HYBRID,
        price=Decimal('25000.00'),
        reorder_point=2,
        economic_order_qty=4,
    )


@pytest.fixture
def stocked(warehouse, car):
    """10 units of C0001 at W0001."""
    StockLedger.receive(warehouse.pk, car.pk, 10)
    return StockLedger.read_snapshot(warehouse.pk, car.pk)


@pytest.fixture
def now():
    return timezone.now()


@pytest.fixture
def past(now):
    return now - timedelta(minutes=5)
