"""
Tests for the Django ORM storage adapter and the models behind it.
"""

from datetime import timedelta
from io import StringIO

import pytest
from django.core.exceptions import ImproperlyConfigured
from django.core.management import call_command
from django.db import IntegrityError, transaction
from django.utils import timezone

from vendorstock.adapters import get_storage, reset_storage
from vendorstock.adapters.orm import OrmStockStorage
from vendorstock.exceptions import InsufficientStock, OrderStockError
from vendorstock.models import InventoryLocation, StockAlert, StockBatch, StockMovement, VendorProduct
from vendorstock.services.batches import BatchInfo
from vendorstock.services.integration import OrderLine

from .conftest import VENDOR


pytestmark = pytest.mark.django_db


class TestOrmMovements:

    def test_stock_in_and_out(self, orm_service, orm_product):
        orm_service.record_stock_in(orm_product.pk, 10, reason='Delivery')
        result = orm_service.record_stock_out(orm_product.pk, 4, reference_type='order', reference_id='A-1')

        orm_product.refresh_from_db()
        assert orm_product.stock == 6
        assert result.new_stock == 6
        assert StockMovement.objects.filter(product=orm_product).count() == 2

        row = StockMovement.objects.get(pk=result.movement.id)
        assert row.delta == -4
        assert row.previous_stock == 10
        assert row.resulting_stock == 6
        assert row.reference_id == 'A-1'

    def test_insufficient_stock_writes_nothing(self, orm_service, orm_product):
        orm_service.record_stock_in(orm_product.pk, 2)

        with pytest.raises(InsufficientStock):
            orm_service.record_stock_out(orm_product.pk, 3)

        orm_product.refresh_from_db()
        assert orm_product.stock == 2
        assert StockMovement.objects.filter(product=orm_product).count() == 1

    def test_location_tag(self, orm_service, orm_product):
        location = InventoryLocation.objects.create(vendor_id=VENDOR, name='Main Store')

        result = orm_service.record_stock_in(orm_product.pk, 3, location_id=location.pk)

        assert StockMovement.objects.get(pk=result.movement.id).location_id == location.pk

    def test_ledger_verifies(self, orm_service, orm_product):
        orm_service.record_stock_in(orm_product.pk, 10)
        orm_service.record_stock_out(orm_product.pk, 3)
        orm_service.adjust_stock(orm_product.pk, 5, reason='Recount')

        audit = orm_service.verify_ledger(orm_product.pk)

        assert audit.consistent
        assert audit.replayed == 5
        assert [m.delta for m in orm_service.movements_for_product(orm_product.pk)] == [10, -3, -2]


class TestOrmAlerts:

    def test_concrete_scenario(self, orm_service, orm_product):
        orm_service.update_config(orm_product.pk, low_stock_threshold=5, critical_stock_threshold=2)
        orm_service.record_stock_in(orm_product.pk, 10)

        orm_service.record_stock_out(orm_product.pk, 6)
        assert set(StockAlert.objects.filter(status='open').values_list('alert_type', flat=True)) == {'low_stock'}

        orm_service.record_stock_out(orm_product.pk, 3)
        assert set(StockAlert.objects.filter(status='open').values_list('alert_type', flat=True)) == {
            'low_stock', 'critical_stock',
        }

        orm_service.record_stock_in(orm_product.pk, 9)
        assert not StockAlert.objects.filter(status__in=['open', 'acknowledged']).exists()
        assert StockAlert.objects.filter(status='resolved').count() == 2

    def test_transitions(self, orm_service, orm_product):
        orm_service.record_stock_in(orm_product.pk, 5)
        alert = StockAlert.objects.get(product=orm_product, alert_type='low_stock')

        orm_service.acknowledge_alert(alert.pk, by='manager-1', vendor_id=VENDOR)
        orm_service.resolve_alert(alert.pk)

        alert.refresh_from_db()
        assert alert.status == 'resolved'
        assert alert.acknowledged_by == 'manager-1'
        assert alert.resolved_at is not None

    def test_one_active_alert_per_type(self, orm_product):
        StockAlert.objects.create(
            vendor_id=VENDOR, product=orm_product, alert_type='low_stock', message='low',
        )

        with pytest.raises(IntegrityError), transaction.atomic():
            StockAlert.objects.create(
                vendor_id=VENDOR, product=orm_product, alert_type='low_stock', message='low again',
            )

    def test_resolved_alert_does_not_block_new_one(self, orm_product):
        StockAlert.objects.create(
            vendor_id=VENDOR, product=orm_product, alert_type='low_stock', message='low', status='resolved',
        )

        StockAlert.objects.create(vendor_id=VENDOR, product=orm_product, alert_type='low_stock', message='low')

        assert StockAlert.objects.count() == 2


class TestOrmBatches:

    def test_fefo(self, orm_service, orm_product):
        today = timezone.localdate()
        orm_service.update_config(orm_product.pk, track_batches=True)
        orm_service.record_stock_in(orm_product.pk, 3, batch=BatchInfo('D5', expiry_date=today + timedelta(days=5)))
        orm_service.record_stock_in(orm_product.pk, 2, batch=BatchInfo('D1', expiry_date=today + timedelta(days=1)))
        orm_service.record_stock_in(orm_product.pk, 2, batch=BatchInfo('NODATE'))

        orm_service.record_stock_out(orm_product.pk, 4)

        remaining = dict(StockBatch.objects.values_list('batch_number', 'quantity_remaining'))
        assert remaining == {'D5': 1, 'D1': 0, 'NODATE': 2}
        assert list(StockBatch.objects.open().fefo().values_list('batch_number', flat=True)) == ['D5', 'NODATE']

    def test_batch_remaining_cannot_exceed_received(self, orm_product):
        with pytest.raises(IntegrityError), transaction.atomic():
            StockBatch.objects.create(
                vendor_id=VENDOR, product=orm_product, quantity_received=1, quantity_remaining=2,
            )


class TestOrmOrders:

    def test_failed_order_rolls_back(self, orm_service, orm_product, orm_other_product):
        orm_service.record_stock_in(orm_product.pk, 10)
        orm_service.record_stock_in(orm_other_product.pk, 1)

        with pytest.raises(OrderStockError):
            orm_service.on_order_status_change('ORD-1', 'pending', 'confirmed', [
                OrderLine(orm_product.pk, 2),
                OrderLine(orm_other_product.pk, 3),
            ])

        orm_product.refresh_from_db()
        assert orm_product.stock == 10
        assert not StockMovement.objects.filter(reference_id='ORD-1').exists()

    def test_confirmed_order(self, orm_service, orm_product, orm_other_product):
        orm_service.record_stock_in(orm_product.pk, 10)
        orm_service.record_stock_in(orm_other_product.pk, 10)

        orm_service.on_order_status_change('ORD-2', 'pending', 'confirmed', [
            OrderLine(orm_product.pk, 2),
            OrderLine(orm_other_product.pk, 3),
        ])

        assert StockMovement.objects.filter(reference_type='order', reference_id='ORD-2').count() == 2


class TestImmutability:

    def test_movement_cannot_be_updated(self, orm_service, orm_product):
        result = orm_service.record_stock_in(orm_product.pk, 1)
        row = StockMovement.objects.get(pk=result.movement.id)
        row.delta = 100

        with pytest.raises(ValueError):
            row.save()

    def test_movement_cannot_be_deleted(self, orm_service, orm_product):
        result = orm_service.record_stock_in(orm_product.pk, 1)

        with pytest.raises(ValueError):
            StockMovement.objects.get(pk=result.movement.id).delete()

    def test_negative_stock_rejected_by_database(self, orm_product):
        with pytest.raises(IntegrityError), transaction.atomic():
            VendorProduct.objects.filter(pk=orm_product.pk).update(stock=-1)


class TestStorageLoader:

    def test_default_backend(self):
        assert isinstance(get_storage(), OrmStockStorage)
        assert get_storage() is get_storage()

    def test_memory_backend(self, settings):
        settings.VENDORSTOCK = {'STORAGE_BACKEND': 'vendorstock.adapters.memory.MemoryStockStorage'}
        reset_storage()

        from vendorstock.adapters.memory import MemoryStockStorage
        assert isinstance(get_storage(), MemoryStockStorage)

    def test_bad_backend(self, settings):
        settings.VENDORSTOCK = {'STORAGE_BACKEND': 'vendorstock.adapters.nope.Storage'}
        reset_storage()

        with pytest.raises(ImproperlyConfigured):
            get_storage()


class TestSweepCommand:
    """sweep_stock_alerts management command."""

    def test_sweep_all_vendors(self, orm_product):
        VendorProduct.objects.filter(pk=orm_product.pk).update(stock=2)
        out = StringIO()

        call_command('sweep_stock_alerts', stdout=out)

        assert f'{VENDOR}: 0 active expiry alert(s)' in out.getvalue()
        assert StockAlert.objects.get(product=orm_product).alert_type == 'critical_stock'

    def test_expiry_sweep_for_one_vendor(self, orm_service, orm_product):
        today = timezone.localdate()
        orm_service.update_config(orm_product.pk, track_batches=True)
        orm_service.record_stock_in(orm_product.pk, 20, batch=BatchInfo('A', expiry_date=today + timedelta(days=3)))
        out = StringIO()

        call_command('sweep_stock_alerts', vendor=VENDOR, days=7, stdout=out)

        assert f'{VENDOR}: 1 active expiry alert(s)' in out.getvalue()
        assert StockAlert.objects.filter(alert_type='expiring_soon', status='open').count() == 1

    def test_dry_run_touches_nothing(self, orm_service, orm_product):
        today = timezone.localdate()
        orm_service.update_config(orm_product.pk, track_batches=True)
        orm_service.record_stock_in(orm_product.pk, 20, batch=BatchInfo('A', expiry_date=today + timedelta(days=3)))
        out = StringIO()

        call_command('sweep_stock_alerts', dry_run=True, stdout=out)

        assert f'{VENDOR}: 1 batch(es) expiring' in out.getvalue()
        assert not StockAlert.objects.filter(alert_type='expiring_soon').exists()
