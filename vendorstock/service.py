"""
Stock Service — The single public interface for all stock operations.

Usage:
    from vendorstock import stock, StockError

    stock.record_stock_in(product_id, 50, reason="Supplier delivery")
    stock.record_stock_out(product_id, 3, movement_type="damage", reason="Broken in transit")
    stock.list_alerts(vendor_id, status="open")
"""

from vendorstock.adapters import get_storage
from vendorstock.conf import vendorstock_settings
from vendorstock.services.alerts import AlertEngine
from vendorstock.services.analytics import StockAnalytics
from vendorstock.services.batches import BatchTracker
from vendorstock.services.configs import StockConfigs
from vendorstock.services.integration import BillStockHooks, OrderStockHooks
from vendorstock.services.movements import StockRecorder


class StockService:
    """
    Single interface for all stock operations.

    Wires the services over one storage backend. Parameter convention:
    (product_id, quantity, *, metadata...).

    IMPORTANT: Every state-changing method runs inside storage.atomic()
    with the product row locked. See each service's docstrings.
    """

    def __init__(self, storage=None, settings=None):
        self.storage = storage or get_storage()
        self.settings = settings or vendorstock_settings

        self.configs = StockConfigs(self.storage, self.settings)
        self.batches = BatchTracker(self.storage)
        self.alerts = AlertEngine(self.storage, self.configs)
        self.recorder = StockRecorder(self.storage, self.configs, self.batches, self.alerts, self.settings)
        self.analytics = StockAnalytics(self.storage, self.settings)
        self.orders = OrderStockHooks(self.storage, self.recorder)
        self.bills = BillStockHooks(self.recorder)

    # ══════════════════════════════════════════════════════════════
    # MOVEMENTS
    # ══════════════════════════════════════════════════════════════

    def record_stock_in(self, product_id, quantity, **kwargs):
        return self.recorder.record_stock_in(product_id, quantity, **kwargs)

    def record_stock_out(self, product_id, quantity, **kwargs):
        return self.recorder.record_stock_out(product_id, quantity, **kwargs)

    def adjust_stock(self, product_id, new_quantity, **kwargs):
        return self.recorder.adjust_stock(product_id, new_quantity, **kwargs)

    def movements_for_product(self, product_id, since=None, until=None):
        return self.recorder.movements_for_product(product_id, since=since, until=until)

    def movements_for_vendor(self, vendor_id, **filters):
        return self.recorder.movements_for_vendor(vendor_id, **filters)

    def verify_ledger(self, product_id):
        return self.recorder.verify_ledger(product_id)

    # ══════════════════════════════════════════════════════════════
    # CONFIG
    # ══════════════════════════════════════════════════════════════

    def get_config(self, product_id):
        return self.configs.ensure(product_id)

    def update_config(self, product_id, vendor_id=None, **changes):
        return self.configs.update(product_id, vendor_id=vendor_id, **changes)

    # ══════════════════════════════════════════════════════════════
    # ALERTS
    # ══════════════════════════════════════════════════════════════

    def list_alerts(self, vendor_id, status=None, alert_type=None):
        return self.alerts.list_alerts(vendor_id, status=status, alert_type=alert_type)

    def acknowledge_alert(self, alert_id, by='system', vendor_id=None):
        return self.alerts.acknowledge(alert_id, by=by, vendor_id=vendor_id)

    def resolve_alert(self, alert_id, vendor_id=None):
        return self.alerts.resolve(alert_id, vendor_id=vendor_id)

    def dismiss_alert(self, alert_id, vendor_id=None):
        return self.alerts.dismiss(alert_id, vendor_id=vendor_id)

    def sweep_alerts(self, vendor_id, days_ahead=None, today=None):
        """Threshold and expiry sweep for one vendor."""
        self.alerts.sweep_vendor(vendor_id)
        return self.alerts.sweep_expiry(vendor_id, days_ahead=days_ahead, today=today)

    # ══════════════════════════════════════════════════════════════
    # BATCHES
    # ══════════════════════════════════════════════════════════════

    def batches_for_product(self, product_id, include_exhausted=True):
        return self.batches.batches_for_product(product_id, include_exhausted=include_exhausted)

    def get_expiring_batches(self, vendor_id, days_ahead=None, today=None):
        if days_ahead is None:
            days_ahead = self.settings.EXPIRY_LOOKAHEAD_DAYS
        return self.batches.get_expiring_batches(vendor_id, days_ahead=days_ahead, today=today)

    # ══════════════════════════════════════════════════════════════
    # ANALYTICS
    # ══════════════════════════════════════════════════════════════

    def turnover_rate(self, product_id, window_days=None, now=None):
        return self.analytics.turnover_rate(product_id, window_days=window_days, now=now)

    def slow_moving_products(self, vendor_id, window_days=None, now=None):
        return self.analytics.slow_moving_products(vendor_id, window_days=window_days, now=now)

    def stock_value(self, vendor_id):
        return self.analytics.stock_value(vendor_id)

    def vendor_summary(self, vendor_id, now=None):
        return self.analytics.vendor_summary(vendor_id, now=now)

    # ══════════════════════════════════════════════════════════════
    # INTEGRATION
    # ══════════════════════════════════════════════════════════════

    def on_order_status_change(self, order_id, previous_status, new_status, lines, **kwargs):
        return self.orders.on_status_change(order_id, previous_status, new_status, lines, **kwargs)


_default = None


def get_stock_service() -> StockService:
    """Process-wide service on the configured storage backend."""
    global _default
    if _default is None:
        _default = StockService()
    return _default


def reset_stock_service() -> None:
    """Drop the cached service. Useful for testing."""
    global _default
    _default = None
