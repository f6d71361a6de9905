"""
Tests for admin actions.
"""

from types import SimpleNamespace

import pytest
from django.contrib.admin.sites import AdminSite, site
from django.test import RequestFactory

from vendorstock.admin import StockAlertAdmin, StockConfigAdmin
from vendorstock.models import StockAlert, StockConfig, StockMovement, VendorProduct

from .conftest import VENDOR


pytestmark = pytest.mark.django_db


@pytest.fixture
def request_():
    request = RequestFactory().post('/admin/')
    request.user = SimpleNamespace(pk=7)
    return request


@pytest.fixture
def alert_admin(monkeypatch):
    model_admin = StockAlertAdmin(StockAlert, AdminSite())
    monkeypatch.setattr(model_admin, 'message_user', lambda *args, **kwargs: None)
    return model_admin


@pytest.fixture
def low_alert(orm_product):
    from vendorstock import stock

    stock.record_stock_in(orm_product.pk, 5)
    return StockAlert.objects.get(product=orm_product, alert_type='low_stock')


class TestRegistration:

    def test_models_registered(self):
        for model in (VendorProduct, StockMovement, StockAlert, StockConfig):
            assert site.is_registered(model)

    def test_ledger_is_read_only(self, request_):
        from vendorstock.admin import StockMovementAdmin

        model_admin = StockMovementAdmin(StockMovement, AdminSite())

        assert not model_admin.has_add_permission(request_)
        assert not model_admin.has_change_permission(request_)
        assert not model_admin.has_delete_permission(request_)


class TestAlertActions:

    def test_acknowledge(self, alert_admin, request_, low_alert):
        count = alert_admin.acknowledge_alerts(request_, StockAlert.objects.all())

        low_alert.refresh_from_db()
        assert count == 1
        assert low_alert.status == 'acknowledged'
        assert low_alert.acknowledged_by == '7'

    def test_resolve_skips_closed_alerts(self, alert_admin, request_, low_alert):
        alert_admin.dismiss_alerts(request_, StockAlert.objects.all())

        count = alert_admin.resolve_alerts(request_, StockAlert.objects.all())

        low_alert.refresh_from_db()
        assert count == 0
        assert low_alert.status == 'dismissed'


class TestConfigAdmin:

    def test_save_goes_through_validation(self, monkeypatch, request_, orm_product):
        from vendorstock import stock

        config = stock.get_config(orm_product.pk)
        row = StockConfig.objects.get(pk=config.id)
        model_admin = StockConfigAdmin(StockConfig, AdminSite())
        errors = []
        monkeypatch.setattr(model_admin, 'message_user', lambda request, message, **kwargs: errors.append(message))
        form = SimpleNamespace(
            changed_data=['critical_stock_threshold'],
            cleaned_data={'critical_stock_threshold': 50},
        )

        model_admin.save_model(request_, row, form, change=True)

        assert errors
        assert StockConfig.objects.get(pk=config.id).critical_stock_threshold == 3

    def test_valid_save(self, request_, orm_product):
        from vendorstock import stock

        config = stock.get_config(orm_product.pk)
        row = StockConfig.objects.get(pk=config.id)
        form = SimpleNamespace(changed_data=['low_stock_threshold'], cleaned_data={'low_stock_threshold': 25})

        StockConfigAdmin(StockConfig, AdminSite()).save_model(request_, row, form, change=True)

        assert StockConfig.objects.get(pk=config.id).low_stock_threshold == 25
        assert VendorProduct.objects.get(pk=orm_product.pk).vendor_id == VENDOR
