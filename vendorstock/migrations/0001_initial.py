"""
Initial migration for vendorstock models.
"""

from decimal import Decimal
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create vendorstock models: products, locations, batches, configs, movements, alerts."""

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='VendorProduct',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('vendor_id', models.CharField(db_index=True, max_length=64, verbose_name='Vendor')),
                ('name', models.CharField(max_length=200, verbose_name='Name')),
                ('unit', models.CharField(default='unit', max_length=20, verbose_name='Unit')),
                ('price', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12, verbose_name='Selling price')),
                ('cost_price', models.DecimalField(blank=True, decimal_places=2, help_text='Used for stock valuation. Empty = selling price.', max_digits=12, null=True, verbose_name='Cost price')),
                ('stock', models.PositiveIntegerField(default=0, verbose_name='Stock')),
                ('is_active', models.BooleanField(default=True, verbose_name='Active')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Vendor product',
                'verbose_name_plural': 'Vendor products',
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('stock__gte', 0)), name='vendor_product_stock_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='InventoryLocation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('vendor_id', models.CharField(db_index=True, max_length=64, verbose_name='Vendor')),
                ('name', models.CharField(max_length=100, verbose_name='Name')),
                ('address', models.CharField(blank=True, default='', max_length=255, verbose_name='Address')),
                ('city', models.CharField(blank=True, default='', max_length=100, verbose_name='City')),
                ('is_default', models.BooleanField(default=False, verbose_name='Default location')),
                ('is_active', models.BooleanField(default=True, verbose_name='Active')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Inventory location',
                'verbose_name_plural': 'Inventory locations',
                'ordering': ['vendor_id', 'name'],
            },
        ),
        migrations.CreateModel(
            name='StockBatch',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('vendor_id', models.CharField(db_index=True, max_length=64, verbose_name='Vendor')),
                ('batch_number', models.CharField(blank=True, default='', help_text='Lot number from the supplier', max_length=64, verbose_name='Batch number')),
                ('quantity_received', models.PositiveIntegerField(verbose_name='Quantity received')),
                ('quantity_remaining', models.PositiveIntegerField(verbose_name='Quantity remaining')),
                ('received_date', models.DateField(default=django.utils.timezone.localdate, verbose_name='Received on')),
                ('expiry_date', models.DateField(blank=True, db_index=True, help_text='Last day the lot can be sold', null=True, verbose_name='Expiry date')),
                ('warranty_end_date', models.DateField(blank=True, null=True, verbose_name='Warranty end')),
                ('purchase_price', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, verbose_name='Purchase price')),
                ('supplier_name', models.CharField(blank=True, default='', max_length=200, verbose_name='Supplier')),
                ('supplier_invoice', models.CharField(blank=True, default='', max_length=64, verbose_name='Supplier invoice')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Notes')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Created at')),
                ('location', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='batches', to='vendorstock.inventorylocation', verbose_name='Location')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='batches', to='vendorstock.vendorproduct', verbose_name='Product')),
            ],
            options={
                'verbose_name': 'Stock batch',
                'verbose_name_plural': 'Stock batches',
                'ordering': ['expiry_date', 'received_date'],
                'indexes': [
                    models.Index(fields=['product', 'quantity_remaining'], name='vendorstock_product_2b9c1e_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quantity_remaining__lte', models.F('quantity_received'))), name='stock_batch_remaining_within_received'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockConfig',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('low_stock_threshold', models.PositiveIntegerField(default=10, help_text='low_stock alert when stock <= this value', verbose_name='Low stock threshold')),
                ('critical_stock_threshold', models.PositiveIntegerField(default=3, help_text='critical_stock alert when stock <= this value', verbose_name='Critical stock threshold')),
                ('overstock_threshold', models.PositiveIntegerField(blank=True, help_text='overstock alert when stock >= this value. Empty = disabled.', null=True, verbose_name='Overstock threshold')),
                ('reorder_quantity', models.PositiveIntegerField(default=50, verbose_name='Reorder quantity')),
                ('expiry_alert_days', models.PositiveIntegerField(default=30, help_text='Days before expiry to raise expiring_soon', verbose_name='Expiry alert days')),
                ('track_batches', models.BooleanField(default=False, verbose_name='Track batches')),
                ('enable_low_stock_alerts', models.BooleanField(default=True, verbose_name='Stock level alerts')),
                ('enable_expiry_alerts', models.BooleanField(default=True, verbose_name='Expiry alerts')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='stock_config', to='vendorstock.vendorproduct', verbose_name='Product')),
            ],
            options={
                'verbose_name': 'Stock configuration',
                'verbose_name_plural': 'Stock configurations',
            },
        ),
        migrations.CreateModel(
            name='StockMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('vendor_id', models.CharField(db_index=True, max_length=64, verbose_name='Vendor')),
                ('movement_type', models.CharField(choices=[('purchase', 'Purchase'), ('sale', 'Sale'), ('return', 'Return'), ('adjustment', 'Adjustment'), ('transfer', 'Transfer'), ('damage', 'Damage'), ('expired', 'Expired')], max_length=20, verbose_name='Type')),
                ('delta', models.IntegerField(help_text='Positive = in, Negative = out', verbose_name='Delta')),
                ('previous_stock', models.PositiveIntegerField(verbose_name='Previous stock')),
                ('resulting_stock', models.PositiveIntegerField(verbose_name='Resulting stock')),
                ('unit_cost', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, verbose_name='Unit cost')),
                ('total_value', models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True, verbose_name='Total value')),
                ('reference_type', models.CharField(choices=[('order', 'Order'), ('bill', 'Bill'), ('manual', 'Manual')], default='manual', max_length=20, verbose_name='Reference type')),
                ('reference_id', models.CharField(blank=True, default='', max_length=64, verbose_name='Reference')),
                ('reason', models.CharField(max_length=255, verbose_name='Reason')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Notes')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Metadata')),
                ('performed_by', models.CharField(blank=True, default='', max_length=64, verbose_name='Performed by')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Date/Time')),
                ('batch', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='vendorstock.stockbatch', verbose_name='Batch')),
                ('location', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='vendorstock.inventorylocation', verbose_name='Location')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='vendorstock.vendorproduct', verbose_name='Product')),
            ],
            options={
                'verbose_name': 'Stock movement',
                'verbose_name_plural': 'Stock movements',
                'ordering': ['created_at', 'id'],
                'indexes': [
                    models.Index(fields=['product', 'created_at'], name='vendorstock_product_8f41d0_idx'),
                    models.Index(fields=['vendor_id', 'created_at'], name='vendorstock_vendor__5a7e32_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockAlert',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('vendor_id', models.CharField(db_index=True, max_length=64, verbose_name='Vendor')),
                ('alert_type', models.CharField(choices=[('out_of_stock', 'Out of stock'), ('critical_stock', 'Critical stock'), ('low_stock', 'Low stock'), ('overstock', 'Overstock'), ('expiring_soon', 'Expiring soon'), ('expired', 'Expired')], max_length=20, verbose_name='Type')),
                ('severity', models.CharField(choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High'), ('critical', 'Critical')], default='medium', max_length=10, verbose_name='Severity')),
                ('status', models.CharField(choices=[('open', 'Open'), ('acknowledged', 'Acknowledged'), ('resolved', 'Resolved'), ('dismissed', 'Dismissed')], db_index=True, default='open', max_length=20, verbose_name='Status')),
                ('message', models.TextField(verbose_name='Message')),
                ('current_stock', models.IntegerField(blank=True, null=True, verbose_name='Current stock')),
                ('threshold', models.IntegerField(blank=True, null=True, verbose_name='Threshold')),
                ('expiry_date', models.DateField(blank=True, null=True, verbose_name='Expiry date')),
                ('acknowledged_by', models.CharField(blank=True, default='', max_length=64, verbose_name='Acknowledged by')),
                ('acknowledged_at', models.DateTimeField(blank=True, null=True, verbose_name='Acknowledged at')),
                ('resolved_at', models.DateTimeField(blank=True, null=True, verbose_name='Resolved at')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('batch', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='alerts', to='vendorstock.stockbatch', verbose_name='Batch')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='alerts', to='vendorstock.vendorproduct', verbose_name='Product')),
            ],
            options={
                'verbose_name': 'Stock alert',
                'verbose_name_plural': 'Stock alerts',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['vendor_id', 'status'], name='vendorstock_vendor__c3e8a1_idx'),
                    models.Index(fields=['product', 'status'], name='vendorstock_product_47d2f5_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('status__in', ['open', 'acknowledged']), ('batch__isnull', True)), fields=('product', 'alert_type'), name='unique_active_product_alert'),
                    models.UniqueConstraint(condition=models.Q(('status__in', ['open', 'acknowledged']), ('batch__isnull', False)), fields=('batch', 'alert_type'), name='unique_active_batch_alert'),
                ],
            },
        ),
    ]
