"""
Stock alerts: reorder point evaluation and sales velocity.

Usage:
    from autostock.services.alerts import check_alerts

    # Run periodically (cron, run_inventory_jobs) or after stock changes
    summary = check_alerts()
    for alert in summary.alerts:
        print(alert.car_id, alert.level, alert.suggested_reorder_qty)

Read-only: no locks, no writes. Stale reads are acceptable.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal

from django.db.models import Q, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from autostock.conf import autostock_settings
from autostock.exceptions import ValidationError
from autostock.models.car import Car
from autostock.models.enums import AlertLevel
from autostock.models.sale import SaleRecord
from autostock.services.queries import InventoryQueries

logger = logging.getLogger('autostock')

SALES_WINDOW_DAYS = 30

_LEVEL_RANK = {
    str(AlertLevel.CRITICAL): 0,
    str(AlertLevel.WARNING): 1,
    str(AlertLevel.OK): 2,
}


@dataclass
class CarAlert:
    car_id: str
    brand: str
    model: str
    current_stock: int
    reserved_stock: int
    available_stock: int
    reorder_point: int
    economic_order_qty: int
    level: str
    suggested_reorder_qty: int | None
    avg_daily_sales: Decimal
    days_until_stockout: Decimal | None


@dataclass
class AlertSummary:
    critical_count: int = 0
    warning_count: int = 0
    alerts: list[CarAlert] = field(default_factory=list)

    @property
    def total_alerts(self) -> int:
        return len(self.alerts)


def evaluate(stock: int, reorder_point: int, economic_order_qty: int,
             warning_factor: float | None = None) -> tuple[str, int | None]:
    """
    Alert level for a stock figure.

    Critical at zero stock. Warning while stock is within
    reorder_point * ALERT_WARNING_FACTOR (default 1.5), so a car at
    6 units with reorder point 5 already warns. Ok above that.

    Returns:
        (level, suggested_reorder_qty). The suggestion is None when Ok.
    """
    if warning_factor is None:
        warning_factor = autostock_settings.ALERT_WARNING_FACTOR

    if stock == 0:
        return AlertLevel.CRITICAL, economic_order_qty
    if stock <= reorder_point * warning_factor:
        return AlertLevel.WARNING, economic_order_qty
    return AlertLevel.OK, None


def _daily_sales(now) -> dict[str, Decimal]:
    since = now - timedelta(days=SALES_WINDOW_DAYS)
    rows = (
        SaleRecord.objects.filter(sold_at__gte=since)
        .values('car_id')
        .annotate(units=Coalesce(Sum('quantity'), 0))
    )
    return {
        row['car_id']: Decimal(row['units']) / SALES_WINDOW_DAYS
        for row in rows
    }


def check_alerts(car_id: str | None = None) -> AlertSummary:
    """
    Evaluate every active car (or one) against its reorder point.

    Returns:
        AlertSummary with non-Ok cars, Critical first, then lowest stock.
    """
    cars = Car.objects.active()
    if car_id is not None:
        cars = cars.filter(pk=car_id)

    now = timezone.now()
    reserved = InventoryQueries.reserved_by_car()
    velocity = _daily_sales(now)
    summary = AlertSummary()

    for car in cars.order_by('car_id'):
        level, suggestion = evaluate(car.quantity_in_stock, car.reorder_point, car.economic_order_qty)
        if level == AlertLevel.OK:
            continue

        car_reserved = reserved.get(car.pk, 0)
        available = max(0, car.quantity_in_stock - car_reserved)
        avg_daily = velocity.get(car.pk, Decimal('0')).quantize(Decimal('0.01'))
        days_left = None
        if avg_daily > 0:
            days_left = (Decimal(available) / avg_daily).quantize(Decimal('0.1'))

        summary.alerts.append(CarAlert(
            car_id=car.pk,
            brand=car.brand,
            model=car.model,
            current_stock=car.quantity_in_stock,
            reserved_stock=car_reserved,
            available_stock=available,
            reorder_point=car.reorder_point,
            economic_order_qty=car.economic_order_qty,
            level=str(level),
            suggested_reorder_qty=suggestion,
            avg_daily_sales=avg_daily,
            days_until_stockout=days_left,
        ))
        if level == AlertLevel.CRITICAL:
            summary.critical_count += 1
        else:
            summary.warning_count += 1

        logger.warning(
            "inventory.alert.triggered",
            extra={
                "car_id": car.pk,
                "level": str(level),
                "stock": car.quantity_in_stock,
                "reorder_point": car.reorder_point,
            },
        )

    summary.alerts.sort(key=lambda a: (_LEVEL_RANK[a.level], a.current_stock, a.car_id))
    return summary


@dataclass
class SalesVelocity:
    car_id: str
    brand: str
    model: str
    units_sold: int
    avg_daily_sales: Decimal
    last_7_days_units: int
    trend: str  # 'UP' when the last 7 days outsold the 7 before, else 'DOWN'


def sales_velocity(days: int = SALES_WINDOW_DAYS, now=None) -> list[SalesVelocity]:
    """
    Units sold per active car over the last ``days`` days.

    Cars without sales in the window are left out. Ordered by average
    daily sales, fastest first.

    Raises:
        ValidationError('INVALID_DAYS'): days is not a positive integer
    """
    if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
        raise ValidationError('INVALID_DAYS', days=days)

    now = now or timezone.now()
    since = now - timedelta(days=days)
    week_ago = now - timedelta(days=7)
    two_weeks_ago = now - timedelta(days=14)

    rows = (
        SaleRecord.objects.filter(
            car__deleted_at__isnull=True,
            sold_at__gte=min(since, two_weeks_ago),
            sold_at__lte=now,
        )
        .values('car_id', 'car__brand', 'car__model')
        .annotate(
            units=Coalesce(Sum('quantity', filter=Q(sold_at__gte=since)), 0),
            last_week=Coalesce(Sum('quantity', filter=Q(sold_at__gte=week_ago)), 0),
            week_before=Coalesce(
                Sum('quantity', filter=Q(sold_at__gte=two_weeks_ago, sold_at__lt=week_ago)), 0,
            ),
        )
    )

    velocities = [
        SalesVelocity(
            car_id=row['car_id'],
            brand=row['car__brand'],
            model=row['car__model'],
            units_sold=row['units'],
            avg_daily_sales=(Decimal(row['units']) / days).quantize(Decimal('0.01')),
            last_7_days_units=row['last_week'],
            trend='UP' if row['last_week'] > row['week_before'] else 'DOWN',
        )
        for row in rows
        if row['units'] > 0
    ]
    velocities.sort(key=lambda v: (-v.avg_daily_sales, v.car_id))
    return velocities
