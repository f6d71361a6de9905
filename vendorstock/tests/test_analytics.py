"""
Tests for stock analytics (turnover, slow movers, valuation).
"""

from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

import pytest

from vendorstock.exceptions import StockError
from vendorstock.services.batches import BatchInfo

from .conftest import OTHER_VENDOR, VENDOR

NOW = datetime(2026, 3, 31, 12, 0, tzinfo=dt_timezone.utc)


def at(days_ago):
    return NOW - timedelta(days=days_ago)


class TestTurnover:
    """turnover_rate() = units sold / time-weighted average stock."""

    def test_constant_stock(self, storage, service, product):
        """Stock held at 100 for the whole window, 10 sold at the very end."""
        opening = service.record_stock_in(product.id, 100).movement
        storage.backdate_movement(opening.id, at(60))
        sale = service.record_stock_out(product.id, 10).movement
        storage.backdate_movement(sale.id, NOW)

        rate = service.turnover_rate(product.id, window_days=30, now=NOW)

        assert rate == Decimal('0.1000')

    def test_time_weighted_average(self, storage, service, product):
        """100 units for 15 days, 50 for 15 days → average 75."""
        opening = service.record_stock_in(product.id, 100).movement
        storage.backdate_movement(opening.id, at(45))
        sale = service.record_stock_out(product.id, 50).movement
        storage.backdate_movement(sale.id, at(15))

        rate = service.turnover_rate(product.id, window_days=30, now=NOW)

        assert rate == Decimal('0.6667')

    def test_opening_from_first_in_window_movement(self, storage, service, product):
        """Without earlier movements the window opens at the first previous_stock."""
        receipt = service.record_stock_in(product.id, 40).movement
        storage.backdate_movement(receipt.id, at(20))

        rate = service.turnover_rate(product.id, window_days=30, now=NOW)

        assert rate == Decimal('0.0000')

    def test_zero_average_stock(self, service, product):
        assert service.turnover_rate(product.id, window_days=30, now=NOW) == Decimal('0')

    def test_non_sale_outflows_ignored(self, storage, service, product):
        opening = service.record_stock_in(product.id, 10).movement
        storage.backdate_movement(opening.id, at(60))
        damage = service.record_stock_out(product.id, 5, movement_type='damage').movement
        storage.backdate_movement(damage.id, NOW)

        assert service.turnover_rate(product.id, window_days=30, now=NOW) == Decimal('0')

    def test_unknown_product(self, service):
        with pytest.raises(StockError) as exc:
            service.turnover_rate(404, now=NOW)

        assert exc.value.code == 'PRODUCT_NOT_FOUND'


class TestSlowMoving:

    def test_products_without_sales(self, storage, service, product, other_product):
        for item in (product, other_product):
            receipt = service.record_stock_in(item.id, 10).movement
            storage.backdate_movement(receipt.id, at(200))
        sale = service.record_stock_out(product.id, 1).movement
        storage.backdate_movement(sale.id, at(10))

        slow = service.slow_moving_products(VENDOR, window_days=90, now=NOW)

        assert [p.id for p in slow] == [other_product.id]

    def test_sale_outside_window_counts_as_slow(self, storage, service, product):
        receipt = service.record_stock_in(product.id, 10).movement
        storage.backdate_movement(receipt.id, at(200))
        sale = service.record_stock_out(product.id, 1).movement
        storage.backdate_movement(sale.id, at(100))

        assert [p.id for p in service.slow_moving_products(VENDOR, window_days=90, now=NOW)] == [product.id]

    def test_empty_products_are_not_slow(self, service, product):
        assert service.slow_moving_products(VENDOR, now=NOW) == []


class TestValuation:

    def test_stock_value_uses_cost_then_price(self, service, product, other_product, foreign_product):
        service.record_stock_in(product.id, 10)        # cost 9.00
        service.record_stock_in(other_product.id, 5)   # no cost, price 4.00
        service.record_stock_in(foreign_product.id, 100)

        assert service.stock_value(VENDOR) == Decimal('110.00')
        assert service.stock_value(OTHER_VENDOR) == Decimal('300.00')

    def test_vendor_summary(self, service, product, other_product, tracked_product):
        service.record_stock_in(product.id, 4)
        service.record_stock_in(tracked_product.id, 20, batch=BatchInfo(
            'A', expiry_date=NOW.date() + timedelta(days=5),
        ))

        summary = service.vendor_summary(VENDOR, now=NOW)

        assert summary['product_count'] == 3
        assert summary['total_units'] == 24
        assert summary['out_of_stock'] == 1
        assert summary['low_stock'] == 1
        assert summary['active_alerts'] == {'low_stock': 1}
        assert summary['expiring_batches'] == 1
        assert summary['stock_value'] == Decimal('60.00')
