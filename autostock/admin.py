"""
Autostock Admin.

Provides views for production debugging:
- Car: catalogue, editable except stock/version
- Warehouse: list + edit (capacity_used read-only)
- StockLocation: read-only ledger rows
- Reservation: read-only with "cancel" action
- TransferOrder / SaleRecord: read-only
- JobExecution / MetricsSnapshot: read-only audit trail

Stock quantities only change through autostock.service.Inventory.
"""

import logging

from django.contrib import admin, messages
from django.utils.translation import gettext_lazy as _

from autostock.exceptions import InventoryError
from autostock.models import (
    Car,
    JobExecution,
    MetricsSnapshot,
    Reservation,
    SaleRecord,
    StockLocation,
    TransferOrder,
    Warehouse,
)
from autostock.models.reservation import OPEN_STATUSES
from autostock.services.catalog import EDITABLE_FIELDS as CAR_EDITABLE_FIELDS

logger = logging.getLogger('autostock')


class ReadOnlyAdminMixin:
    """No add/change/delete from the admin."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =========================================================================
# CATALOGUE
# =========================================================================

@admin.register(Car)
class CarAdmin(admin.ModelAdmin):
    """Car admin: stock figures are read-only."""

    list_display = ['car_id', 'brand', 'model', 'year', 'price',
                    'quantity_in_stock', 'reorder_point', 'status', 'is_deleted']
    list_filter = ['status', 'engine_type', 'brand']
    search_fields = ['car_id', 'brand', 'model']
    readonly_fields = ['quantity_in_stock', 'version', 'created_at', 'updated_at']

    def save_model(self, request, obj, form, change):
        """Edits go through a version-checked update of the changed columns."""
        if not change:
            super().save_model(request, obj, form, change)
            return

        from autostock import inventory

        fields = {
            name: getattr(obj, name)
            for name in form.changed_data
            if name in CAR_EDITABLE_FIELDS
        }
        try:
            inventory.update_car(obj.pk, obj.version, **fields)
        except InventoryError as exc:
            logger.warning("car admin: %s not saved: %s", obj.pk, exc)
            self.message_user(
                request,
                _('Car {car} was not saved: {error}').format(car=obj.pk, error=exc.message),
                level=messages.ERROR,
            )
        obj.refresh_from_db()


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ['warehouse_id', 'name', 'location', 'capacity_used',
                    'capacity_total', 'capacity_free', 'is_active']
    list_filter = ['is_active']
    search_fields = ['warehouse_id', 'name', 'location']
    readonly_fields = ['capacity_used', 'created_at']

    def save_model(self, request, obj, form, change):
        """capacity_used belongs to StockLedger and is never written back."""
        if not change:
            super().save_model(request, obj, form, change)
            return

        update_fields = [name for name in form.changed_data if name != 'capacity_used']
        if update_fields:
            obj.save(update_fields=update_fields)
        obj.refresh_from_db()


# =========================================================================
# LEDGER (read-only)
# =========================================================================

@admin.register(StockLocation)
class StockLocationAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Ledger rows: mutated only by StockLedger."""

    list_display = ['car', 'warehouse', 'zone', 'quantity', 'reserved_quantity',
                    'available_display', 'version', 'last_updated']
    list_filter = ['warehouse']
    search_fields = ['car__car_id', 'warehouse__warehouse_id']

    @admin.display(description=_('Available'))
    def available_display(self, obj):
        return obj.available


# =========================================================================
# RESERVATIONS (read-only with cancel action)
# =========================================================================

@admin.register(Reservation)
class ReservationAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ['id', 'car', 'warehouse', 'quantity', 'reserved_by',
                    'status', 'expires_at']
    list_filter = ['status', 'warehouse']
    search_fields = ['reserved_by', 'car__car_id']
    date_hierarchy = 'created_at'
    actions = ['cancel_reservations']

    @admin.action(description=_('Cancel selected reservations'))
    def cancel_reservations(self, request, queryset):
        from autostock import inventory

        count = 0
        for reservation in queryset.filter(status__in=OPEN_STATUSES):
            try:
                inventory.cancel_reservation(reservation.pk, reason='Cancelled via admin')
                count += 1
            except InventoryError as exc:
                logger.warning("cancel_reservations: failed to cancel %s: %s", reservation.pk, exc)

        self.message_user(request, _('{count} reservation(s) cancelled.').format(count=count))


# =========================================================================
# TRANSFERS
# =========================================================================

@admin.register(TransferOrder)
class TransferOrderAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ['id', 'car', 'from_warehouse', 'to_warehouse', 'quantity',
                    'status', 'needs_reconciliation', 'requested_at', 'completed_at']
    list_filter = ['status']
    search_fields = ['car__car_id', 'reason', 'failure_reason']


@admin.register(SaleRecord)
class SaleRecordAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Sales history: immutable."""

    list_display = ['sold_at', 'car', 'quantity', 'unit_price', 'total_price', 'customer_id']
    list_filter = ['car']
    date_hierarchy = 'sold_at'


# =========================================================================
# BACKGROUND JOBS
# =========================================================================

@admin.register(JobExecution)
class JobExecutionAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ['job_type', 'status', 'started_at', 'completed_at',
                    'duration_seconds', 'items_processed']
    list_filter = ['job_type', 'status']
    date_hierarchy = 'started_at'


@admin.register(MetricsSnapshot)
class MetricsSnapshotAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ['metric_hour', 'total_cars', 'total_value', 'active_reservations',
                    'reserved_units', 'low_stock_count', 'available_stock_value']
    date_hierarchy = 'metric_hour'
