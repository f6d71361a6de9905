"""
Tests for order and bill integration hooks.
"""

from decimal import Decimal

import pytest

from vendorstock.exceptions import OrderStockError, StockError, StockValidationError
from vendorstock.services.integration import BillItem, OrderLine, should_deduct

from .conftest import VENDOR


def stock_of(service, product_id):
    return service.storage.products.get(product_id).stock


class TestShouldDeduct:

    @pytest.mark.parametrize('previous, new, expected', [
        ('pending', 'confirmed', True),
        (None, 'confirmed', True),
        ('processing', 'delivered', True),
        ('pending', 'completed', True),
        ('confirmed', 'delivered', False),
        ('confirmed', 'completed', False),
        ('pending', 'cancelled', False),
        ('confirmed', 'confirmed', False),
    ])
    def test_transitions(self, previous, new, expected):
        assert should_deduct(previous, new) is expected


class TestOrderHooks:
    """Order confirmation deducts every line or none."""

    def test_confirm_deducts_all_lines(self, service, product, other_product):
        service.record_stock_in(product.id, 10)
        service.record_stock_in(other_product.id, 10)

        results = service.on_order_status_change('ORD-1', 'pending', 'confirmed', [
            OrderLine(product.id, 2),
            OrderLine(other_product.id, 3),
        ])

        assert [r.new_stock for r in results] == [8, 7]
        movement = results[0].movement
        assert movement.movement_type == 'sale'
        assert movement.reference_type == 'order'
        assert movement.reference_id == 'ORD-1'
        assert movement.reason == 'Order ORD-1 confirmed'

    def test_failed_line_rolls_back_whole_order(self, service, product, other_product):
        """Second line short → first line is not deducted either."""
        service.record_stock_in(product.id, 10)
        service.record_stock_in(other_product.id, 1)

        with pytest.raises(OrderStockError) as exc:
            service.on_order_status_change('ORD-2', 'pending', 'confirmed', [
                OrderLine(product.id, 2),
                OrderLine(other_product.id, 3),
            ])

        assert stock_of(service, product.id) == 10
        assert stock_of(service, other_product.id) == 1
        assert len(service.movements_for_product(product.id)) == 1

        failures = exc.value.failures
        assert len(failures) == 1
        assert failures[0]['product_id'] == other_product.id
        assert failures[0]['error']['code'] == 'INSUFFICIENT_STOCK'
        assert failures[0]['error']['data'] == {
            'available': 1, 'requested': 3, 'product_id': other_product.id,
        }
        assert exc.value.http_status == 400

    def test_every_failing_line_reported(self, service, product, other_product):
        service.record_stock_in(product.id, 1)

        with pytest.raises(OrderStockError) as exc:
            service.on_order_status_change('ORD-3', 'pending', 'confirmed', [
                OrderLine(product.id, 2),
                OrderLine(other_product.id, 1),
                OrderLine(999, 1),
            ])

        codes = [f['error']['code'] for f in exc.value.failures]
        assert codes == ['INSUFFICIENT_STOCK', 'INSUFFICIENT_STOCK', 'PRODUCT_NOT_FOUND']
        assert exc.value.http_status == 404

    def test_no_alerts_left_by_failed_order(self, service, product, other_product):
        service.record_stock_in(product.id, 12)

        with pytest.raises(OrderStockError):
            service.on_order_status_change('ORD-4', 'pending', 'confirmed', [
                OrderLine(product.id, 5),
                OrderLine(other_product.id, 1),
            ])

        assert service.list_alerts(VENDOR, alert_type='low_stock') == []

    def test_vendor_scoped_order(self, service, product, foreign_product):
        service.record_stock_in(product.id, 5)
        service.record_stock_in(foreign_product.id, 5)

        with pytest.raises(OrderStockError) as exc:
            service.on_order_status_change('ORD-5', 'pending', 'confirmed', [
                OrderLine(product.id, 1),
                OrderLine(foreign_product.id, 1),
            ], vendor_id=VENDOR)

        assert exc.value.failures[0]['error']['code'] == 'VENDOR_MISMATCH'
        assert stock_of(service, foreign_product.id) == 5

    def test_non_deducting_transition_is_noop(self, service, product):
        service.record_stock_in(product.id, 5)

        assert service.on_order_status_change('ORD-6', 'confirmed', 'delivered', [OrderLine(product.id, 5)]) == []
        assert stock_of(service, product.id) == 5


class TestBillHooks:
    """Bill line lifecycle."""

    def test_item_added_sells(self, service, product):
        service.record_stock_in(product.id, 10)

        result = service.bills.on_item_added(BillItem('B-1', product.id, 3))

        assert result.new_stock == 7
        assert result.movement.reference_type == 'bill'
        assert result.movement.reference_id == 'B-1'

    def test_quantity_increase_sells_difference(self, service, product):
        service.record_stock_in(product.id, 10)
        item = BillItem('B-1', product.id, 3)
        service.bills.on_item_added(item)

        result = service.bills.on_item_quantity_changed(item, 3, 5)

        assert result.movement.delta == -2
        assert stock_of(service, product.id) == 5

    def test_quantity_decrease_returns_difference(self, service, product):
        service.record_stock_in(product.id, 10)
        item = BillItem('B-1', product.id, 3)
        service.bills.on_item_added(item)

        result = service.bills.on_item_quantity_changed(item, 3, 1)

        assert result.movement.movement_type == 'return'
        assert result.movement.delta == 2
        assert stock_of(service, product.id) == 9

    def test_unchanged_quantity(self, service, product):
        assert service.bills.on_item_quantity_changed(BillItem('B-1', product.id, 3), 3, '3.00') is None

    def test_item_removed_returns_all(self, service, product):
        service.record_stock_in(product.id, 10)
        item = BillItem('B-1', product.id, Decimal('4'))
        service.bills.on_item_added(item)

        service.bills.on_item_removed(item)

        assert stock_of(service, product.id) == 10
        deltas = [m.delta for m in service.movements_for_product(product.id)]
        assert deltas == [10, -4, 4]

    def test_service_items_ignored(self, service, product):
        item = BillItem('B-1', None, 1, item_type='service')

        assert service.bills.on_item_added(item) is None
        assert service.bills.on_item_removed(item) is None

    def test_errors_propagate(self, service, product):
        with pytest.raises(StockError) as exc:
            service.bills.on_item_added(BillItem('B-1', product.id, 1))

        assert exc.value.code == 'INSUFFICIENT_STOCK'

    def test_fractional_quantity_rejected(self, service, product):
        service.record_stock_in(product.id, 10)

        with pytest.raises(StockError) as exc:
            service.bills.on_item_added(BillItem('B-1', product.id, '1.5'))

        assert exc.value.code == 'INVALID_QUANTITY'
        assert stock_of(service, product.id) == 10

    def test_bill_cannot_sell_other_vendors_product(self, service, foreign_product):
        service.record_stock_in(foreign_product.id, 5)

        with pytest.raises(StockValidationError) as exc:
            service.bills.on_item_added(BillItem('B-1', foreign_product.id, 2, vendor_id=VENDOR))

        assert exc.value.code == 'VENDOR_MISMATCH'
        assert stock_of(service, foreign_product.id) == 5

    def test_bill_cannot_restock_other_vendors_product(self, service, foreign_product):
        service.record_stock_in(foreign_product.id, 5)
        item = BillItem('B-1', foreign_product.id, 3, vendor_id=VENDOR)

        for hook in (lambda: service.bills.on_item_removed(item),
                     lambda: service.bills.on_item_quantity_changed(item, 3, 1)):
            with pytest.raises(StockValidationError) as exc:
                hook()
            assert exc.value.code == 'VENDOR_MISMATCH'

        assert stock_of(service, foreign_product.id) == 5

    def test_vendor_scoped_bill(self, service, product):
        service.record_stock_in(product.id, 5)

        result = service.bills.on_item_added(BillItem('B-1', product.id, 2, vendor_id=VENDOR))

        assert result.new_stock == 3
