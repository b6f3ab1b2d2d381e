"""
Initial migration for Autostock models.
"""

import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

import autostock.models.car


class Migration(migrations.Migration):
    """Create Autostock models: Car, Warehouse, StockLocation, Reservation, TransferOrder,
    SaleRecord, JobExecution, MetricsSnapshot."""

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Car',
            fields=[
                ('car_id', models.CharField(max_length=20, primary_key=True, serialize=False, validators=[django.core.validators.RegexValidator('^C\\w{4,}$', 'Car id must look like C0001')], verbose_name='Car ID')),
                ('brand', models.CharField(max_length=50, verbose_name='Brand')),
                ('model', models.CharField(max_length=100, verbose_name='Model')),
                ('year', models.IntegerField(validators=[autostock.models.car.validate_model_year], verbose_name='Year')),
                ('color', models.CharField(blank=True, default='', max_length=30, verbose_name='Color')),
                ('engine_type', models.CharField(choices=[('electric', 'Electric'), ('hybrid', 'Hybrid'), ('gasoline', 'Gasoline'), ('diesel', 'Diesel'), ('petrol', 'Petrol')], max_length=20, verbose_name='Engine')),
                ('transmission', models.CharField(blank=True, default='', max_length=20, verbose_name='Transmission')),
                ('price', models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))], verbose_name='Unit price')),
                ('quantity_in_stock', models.PositiveIntegerField(default=0, verbose_name='Units in stock')),
                ('reorder_point', models.PositiveIntegerField(default=5, help_text='At or below this stock level replenishment is advised', verbose_name='Reorder point')),
                ('economic_order_qty', models.PositiveIntegerField(default=10, validators=[django.core.validators.MinValueValidator(1)], verbose_name='Economic order quantity')),
                ('version', models.PositiveBigIntegerField(default=1, editable=False, verbose_name='Version')),
                ('status', models.CharField(choices=[('available', 'Available'), ('sold', 'Sold'), ('reserved', 'Reserved'), ('maintenance', 'Maintenance')], db_index=True, default='available', max_length=20, verbose_name='Status')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, null=True)),
            ],
            options={
                'verbose_name': 'Car',
                'verbose_name_plural': 'Cars',
                'db_table': 'cars',
                'ordering': ['car_id'],
                'indexes': [models.Index(fields=['brand', 'model'], name='cars_brand_model_idx')],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('price__gt', 0)), name='car_price_positive'),
                    models.CheckConstraint(condition=models.Q(('year__gte', 1886)), name='car_year_sane'),
                    models.CheckConstraint(condition=models.Q(('economic_order_qty__gt', 0)), name='car_eoq_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Warehouse',
            fields=[
                ('warehouse_id', models.CharField(max_length=20, primary_key=True, serialize=False, validators=[django.core.validators.RegexValidator('^W[0-9]+$', 'Warehouse id must look like W0001')], verbose_name='Warehouse ID')),
                ('name', models.CharField(max_length=100, verbose_name='Name')),
                ('location', models.CharField(max_length=200, verbose_name='Location')),
                ('latitude', models.DecimalField(blank=True, decimal_places=8, max_digits=10, null=True)),
                ('longitude', models.DecimalField(blank=True, decimal_places=8, max_digits=11, null=True)),
                ('capacity_total', models.PositiveIntegerField(verbose_name='Total capacity')),
                ('capacity_used', models.PositiveIntegerField(default=0, verbose_name='Used capacity')),
                ('is_active', models.BooleanField(default=True, verbose_name='Active')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Warehouse',
                'verbose_name_plural': 'Warehouses',
                'db_table': 'warehouses',
                'ordering': ['warehouse_id'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('capacity_total__gt', 0)), name='warehouse_capacity_positive'),
                    models.CheckConstraint(condition=models.Q(('capacity_used__lte', models.F('capacity_total'))), name='warehouse_capacity_not_exceeded'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockLocation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('zone', models.CharField(default='DEFAULT', max_length=20, verbose_name='Zone')),
                ('quantity', models.PositiveIntegerField(default=0, verbose_name='Quantity')),
                ('reserved_quantity', models.PositiveIntegerField(default=0, verbose_name='Reserved')),
                ('version', models.PositiveBigIntegerField(default=1, editable=False, verbose_name='Version')),
                ('last_updated', models.DateTimeField(default=django.utils.timezone.now)),
                ('car', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='stock_locations', to='autostock.car', verbose_name='Car')),
                ('warehouse', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='stock_locations', to='autostock.warehouse', verbose_name='Warehouse')),
            ],
            options={
                'verbose_name': 'Stock location',
                'verbose_name_plural': 'Stock locations',
                'db_table': 'stock_locations',
                'indexes': [models.Index(fields=['car'], name='stock_loc_car_idx')],
                'constraints': [
                    models.UniqueConstraint(fields=('warehouse', 'car'), name='unique_stock_location'),
                    models.CheckConstraint(condition=models.Q(('reserved_quantity__lte', models.F('quantity'))), name='stock_reserved_within_quantity'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Reservation',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('quantity', models.PositiveIntegerField(verbose_name='Quantity')),
                ('reserved_by', models.CharField(max_length=100, verbose_name='Reserved by')),
                ('expires_at', models.DateTimeField(db_index=True, help_text='Pending reservations are released automatically after this time', verbose_name='Expires at')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('confirmed', 'Confirmed'), ('expired', 'Expired'), ('cancelled', 'Cancelled'), ('completed', 'Completed')], db_index=True, default='pending', max_length=20, verbose_name='Status')),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('resolved_at', models.DateTimeField(blank=True, help_text='When the reservation reached a terminal status', null=True, verbose_name='Resolved at')),
                ('car', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='reservations', to='autostock.car', verbose_name='Car')),
                ('warehouse', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='reservations', to='autostock.warehouse', verbose_name='Allocated warehouse')),
            ],
            options={
                'verbose_name': 'Reservation',
                'verbose_name_plural': 'Reservations',
                'db_table': 'reservations',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'expires_at'], name='reservation_status_expiry_idx'),
                    models.Index(fields=['car', 'status'], name='reservation_car_status_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quantity__gt', 0)), name='reservation_quantity_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TransferOrder',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('quantity', models.PositiveIntegerField(verbose_name='Quantity')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('in_transit', 'In transit'), ('completed', 'Completed'), ('cancelled', 'Cancelled'), ('failed', 'Failed')], db_index=True, default='pending', max_length=20, verbose_name='Status')),
                ('reason', models.CharField(blank=True, default='', max_length=255, verbose_name='Reason')),
                ('failure_reason', models.TextField(blank=True, default='', verbose_name='Failure reason')),
                ('requested_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('dispatched_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('car', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transfers', to='autostock.car', verbose_name='Car')),
                ('from_warehouse', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='outbound_transfers', to='autostock.warehouse', verbose_name='From')),
                ('to_warehouse', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='inbound_transfers', to='autostock.warehouse', verbose_name='To')),
            ],
            options={
                'verbose_name': 'Transfer order',
                'verbose_name_plural': 'Transfer orders',
                'db_table': 'transfer_orders',
                'ordering': ['-requested_at'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('from_warehouse', models.F('to_warehouse')), _negated=True), name='transfer_different_warehouses'),
                    models.CheckConstraint(condition=models.Q(('quantity__gt', 0)), name='transfer_quantity_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SaleRecord',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('quantity', models.PositiveIntegerField(verbose_name='Quantity')),
                ('unit_price', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Unit price')),
                ('customer_id', models.CharField(blank=True, default='', max_length=100)),
                ('sold_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('car', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='sales', to='autostock.car', verbose_name='Car')),
                ('reservation', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='sale', to='autostock.reservation')),
            ],
            options={
                'verbose_name': 'Sale',
                'verbose_name_plural': 'Sales',
                'db_table': 'sales_history',
                'ordering': ['-sold_at'],
            },
        ),
        migrations.CreateModel(
            name='JobExecution',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('job_type', models.CharField(choices=[('expire_reservations', 'Expire reservations'), ('inventory_metrics', 'Inventory metrics')], db_index=True, max_length=50)),
                ('started_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('status', models.CharField(choices=[('running', 'Running'), ('completed', 'Completed'), ('failed', 'Failed')], db_index=True, default='running', max_length=20)),
                ('items_processed', models.PositiveIntegerField(blank=True, null=True)),
                ('error_message', models.TextField(blank=True, default='')),
            ],
            options={
                'verbose_name': 'Job execution',
                'verbose_name_plural': 'Job executions',
                'db_table': 'job_executions',
                'ordering': ['-started_at'],
            },
        ),
        migrations.CreateModel(
            name='MetricsSnapshot',
            fields=[
                ('metric_hour', models.DateTimeField(primary_key=True, serialize=False, verbose_name='Hour')),
                ('total_cars', models.PositiveIntegerField(default=0)),
                ('total_value', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=20)),
                ('active_reservations', models.PositiveIntegerField(default=0)),
                ('reserved_units', models.PositiveIntegerField(default=0)),
                ('low_stock_count', models.PositiveIntegerField(default=0)),
                ('available_stock_value', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Metrics snapshot',
                'verbose_name_plural': 'Metrics snapshots',
                'db_table': 'inventory_metrics_history',
                'ordering': ['-metric_hour'],
            },
        ),
    ]
