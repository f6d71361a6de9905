"""
Stock analytics — read-only figures derived from the ledger and counters.

Each query reads inside one atomic() block so the numbers come from a
single consistent view of the store.
"""

from collections import Counter
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.utils import timezone

from vendorstock.conf import vendorstock_settings
from vendorstock.exceptions import StockValidationError
from vendorstock.expiry import expires_within
from vendorstock.models.enums import ACTIVE_ALERT_STATUSES, MovementType
from vendorstock.protocols.records import ProductRecord

RATE_PLACES = Decimal('0.0001')


class StockAnalytics:
    """Turnover, slow movers and valuation."""

    def __init__(self, storage, settings=None):
        self.storage = storage
        self.settings = settings or vendorstock_settings

    def turnover_rate(self, product_id: int, window_days: int | None = None,
                      now: datetime | None = None) -> Decimal:
        """
        Units sold in the window divided by the average stock held.

        The average is time-weighted: each stock level counts for as long
        as it lasted inside the window. Returns 0 when the average is 0.
        """
        window_days = window_days or self.settings.TURNOVER_WINDOW_DAYS
        now = now or timezone.now()
        start = now - timedelta(days=window_days)

        with self.storage.atomic():
            product = self._get_product(product_id)
            movements = self.storage.movements.list_for_product(product_id, since=start, until=now)
            before = self.storage.movements.last_before(product_id, start)

        sold = sum(abs(m.delta) for m in movements if m.movement_type == MovementType.SALE)

        if before is not None:
            level = before.resulting_stock
        elif movements:
            level = movements[0].previous_stock
        else:
            level = product.stock

        area = Decimal(0)
        cursor = start
        for movement in movements:
            area += Decimal(level) * Decimal((movement.created_at - cursor).total_seconds())
            level = movement.resulting_stock
            cursor = movement.created_at
        area += Decimal(level) * Decimal((now - cursor).total_seconds())

        average = area / Decimal((now - start).total_seconds())
        if average == 0:
            return Decimal('0').quantize(RATE_PLACES)
        return (Decimal(sold) / average).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)

    def slow_moving_products(self, vendor_id: str, window_days: int | None = None,
                             now: datetime | None = None) -> list[ProductRecord]:
        """Products holding stock with no sale inside the window."""
        window_days = window_days or self.settings.SLOW_MOVING_WINDOW_DAYS
        now = now or timezone.now()
        start = now - timedelta(days=window_days)

        with self.storage.atomic():
            products = self.storage.products.list_for_vendor(vendor_id)
            sales = self.storage.movements.list_for_vendor(
                vendor_id, movement_type=MovementType.SALE, since=start, until=now,
            )

        sold = {m.product_id for m in sales}
        return [p for p in products if p.stock > 0 and p.id not in sold]

    def stock_value(self, vendor_id: str) -> Decimal:
        """Σ stock × unit value (cost price, else selling price)."""
        with self.storage.atomic():
            products = self.storage.products.list_for_vendor(vendor_id)
        return sum((p.stock * p.unit_value for p in products), Decimal('0'))

    def vendor_summary(self, vendor_id: str, now: datetime | None = None) -> dict:
        """Headline figures for a vendor dashboard."""
        now = now or timezone.now()
        today = timezone.localdate(now)

        with self.storage.atomic():
            products = self.storage.products.list_for_vendor(vendor_id)
            configs = {c.product_id: c for c in self.storage.configs.list_for_vendor(vendor_id)}
            alerts = [
                a for a in self.storage.alerts.list_for_vendor(vendor_id)
                if a.status in ACTIVE_ALERT_STATUSES
            ]
            open_batches = self.storage.batches.list_open_for_vendor(vendor_id)
            slow = self.slow_moving_products(vendor_id, now=now)

        low_threshold = self.settings.DEFAULT_LOW_STOCK_THRESHOLD
        low = 0
        for product in products:
            config = configs.get(product.id)
            threshold = config.low_stock_threshold if config else low_threshold
            if 0 < product.stock <= threshold:
                low += 1

        return {
            'vendor_id': vendor_id,
            'product_count': len(products),
            'total_units': sum(p.stock for p in products),
            'stock_value': sum((p.stock * p.unit_value for p in products), Decimal('0')),
            'out_of_stock': sum(1 for p in products if p.stock == 0),
            'low_stock': low,
            'active_alerts': dict(Counter(a.alert_type for a in alerts)),
            'slow_moving': len(slow),
            'expiring_batches': sum(
                1 for b in open_batches
                if expires_within(b, today, self.settings.EXPIRY_LOOKAHEAD_DAYS)
            ),
        }

    def _get_product(self, product_id: int) -> ProductRecord:
        product = self.storage.products.get(product_id)
        if product is None:
            raise StockValidationError('PRODUCT_NOT_FOUND', product_id=product_id)
        return product
