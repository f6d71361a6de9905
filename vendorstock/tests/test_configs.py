"""
Tests for per-product stock configuration.
"""

import pytest

from vendorstock.exceptions import StockError

from .conftest import OTHER_VENDOR, VENDOR


class TestEnsure:

    def test_created_with_defaults(self, service, product):
        config = service.get_config(product.id)

        assert config.low_stock_threshold == 10
        assert config.critical_stock_threshold == 3
        assert config.overstock_threshold is None
        assert config.reorder_quantity == 50
        assert config.expiry_alert_days == 30
        assert config.track_batches is False

    def test_defaults_follow_settings(self, service, product, settings):
        settings.VENDORSTOCK = {'DEFAULT_LOW_STOCK_THRESHOLD': 20, 'DEFAULT_REORDER_QUANTITY': 5}

        config = service.get_config(product.id)

        assert config.low_stock_threshold == 20
        assert config.reorder_quantity == 5

    def test_never_duplicated(self, service, product):
        first = service.get_config(product.id)
        second = service.get_config(product.id)

        assert first.id == second.id
        assert len(service.configs.list_for_vendor(VENDOR)) == 1

    def test_unknown_product(self, service):
        with pytest.raises(StockError) as exc:
            service.get_config(999)

        assert exc.value.code == 'PRODUCT_NOT_FOUND'


class TestUpdate:

    def test_update_thresholds(self, service, product):
        config = service.update_config(product.id, low_stock_threshold=20, critical_stock_threshold=5)

        assert config.low_stock_threshold == 20
        assert config.critical_stock_threshold == 5

    @pytest.mark.parametrize('changes', [
        {'critical_stock_threshold': 11},
        {'low_stock_threshold': -1},
        {'overstock_threshold': 10},
        {'reorder_quantity': 'ten'},
        {'expiry_alert_days': 1.5},
        {'colour': 'red'},
    ])
    def test_invalid_changes(self, service, product, changes):
        with pytest.raises(StockError) as exc:
            service.update_config(product.id, **changes)

        assert exc.value.code == 'INVALID_CONFIG'
        assert service.get_config(product.id).low_stock_threshold == 10

    def test_vendor_mismatch(self, service, product):
        with pytest.raises(StockError) as exc:
            service.update_config(product.id, vendor_id=OTHER_VENDOR, low_stock_threshold=1)

        assert exc.value.code == 'VENDOR_MISMATCH'

    def test_error_serializes_for_api(self, service, product):
        with pytest.raises(StockError) as exc:
            service.update_config(product.id, critical_stock_threshold=11)

        data = exc.value.as_dict()
        assert data['code'] == 'INVALID_CONFIG'
        assert data['data']['field'] == 'critical_stock_threshold'
        assert str(exc.value).startswith('[INVALID_CONFIG]')
