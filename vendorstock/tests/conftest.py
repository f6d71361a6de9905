"""
Pytest fixtures for vendorstock tests.

Rule tests run on MemoryStockStorage (no database). Fixtures prefixed
with orm_ use the Django ORM adapter and need the db fixture.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from vendorstock.adapters import reset_storage
from vendorstock.adapters.memory import MemoryStockStorage
from vendorstock.adapters.orm import OrmStockStorage
from vendorstock.service import StockService, reset_stock_service


VENDOR = 'vendor-a'
OTHER_VENDOR = 'vendor-b'


@pytest.fixture(autouse=True)
def _reset_cached_service():
    yield
    reset_storage()
    reset_stock_service()


@pytest.fixture
def storage():
    """Fresh in-memory storage."""
    return MemoryStockStorage(lock_timeout=1)


@pytest.fixture
def service(storage):
    return StockService(storage=storage)


@pytest.fixture
def product(storage):
    """Untracked product with no stock, default thresholds (low 10, critical 3)."""
    return storage.add_product(VENDOR, 'Rice 5kg', price='12.50', cost_price='9.00')


@pytest.fixture
def other_product(storage):
    return storage.add_product(VENDOR, 'Beans 1kg', price='4.00')


@pytest.fixture
def foreign_product(storage):
    """Product of another vendor."""
    return storage.add_product(OTHER_VENDOR, 'Flour 1kg', price='3.00')


@pytest.fixture
def tracked_product(storage, service):
    """Product with batch tracking on."""
    product = storage.add_product(VENDOR, 'Milk 1L', price='1.20')
    service.update_config(product.id, track_batches=True)
    return product


@pytest.fixture
def location(storage):
    return storage.add_location(VENDOR, 'Main Store', is_default=True)


@pytest.fixture
def foreign_location(storage):
    return storage.add_location(OTHER_VENDOR, 'Other Warehouse')


@pytest.fixture
def today():
    return date(2026, 3, 10)


@pytest.fixture
def tomorrow(today):
    return today + timedelta(days=1)


# ══════════════════════════════════════════════════════════════
# ORM
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def orm_storage(db):
    return OrmStockStorage()


@pytest.fixture
def orm_service(orm_storage):
    return StockService(storage=orm_storage)


@pytest.fixture
def orm_product(db):
    from vendorstock.models import VendorProduct
    return VendorProduct.objects.create(
        vendor_id=VENDOR,
        name='Rice 5kg',
        price=Decimal('12.50'),
        cost_price=Decimal('9.00'),
    )


@pytest.fixture
def orm_other_product(db):
    from vendorstock.models import VendorProduct
    return VendorProduct.objects.create(vendor_id=VENDOR, name='Beans 1kg', price=Decimal('4.00'))
