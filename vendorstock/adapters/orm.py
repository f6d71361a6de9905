"""
Django ORM storage — production StockStorage.

- atomic() wraps transaction.atomic(); nested blocks are savepoints.
- get_for_update() uses select_for_update() so concurrent stock-outs of
  one product queue on the row lock instead of reading a stale counter.
- On PostgreSQL the lock wait is bounded with lock_timeout; a timeout
  surfaces as ConcurrencyConflict, any other database error as
  PersistenceFault.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from django.db import DEFAULT_DB_ALIAS, DatabaseError, OperationalError, connections, transaction
from django.utils import timezone

from vendorstock.conf import vendorstock_settings
from vendorstock.exceptions import ConcurrencyConflict, PersistenceFault
from vendorstock.models.alert import StockAlert
from vendorstock.models.batch import StockBatch
from vendorstock.models.config import StockConfig
from vendorstock.models.enums import ACTIVE_ALERT_STATUSES
from vendorstock.models.location import InventoryLocation
from vendorstock.models.movement import StockMovement
from vendorstock.models.product import VendorProduct
from vendorstock.protocols.records import (
    AlertRecord,
    BatchRecord,
    ConfigRecord,
    LocationRecord,
    MovementRecord,
    ProductRecord,
)

logger = logging.getLogger(__name__)

LOCK_NOT_AVAILABLE = '55P03'


def _is_lock_timeout(exc: OperationalError) -> bool:
    cause = exc.__cause__
    code = getattr(cause, 'pgcode', None) or getattr(cause, 'sqlstate', None)
    if code == LOCK_NOT_AVAILABLE:
        return True
    text = str(exc).lower()
    return 'lock timeout' in text or 'database is locked' in text


# ══════════════════════════════════════════════════════════════
# MODEL → RECORD
# ══════════════════════════════════════════════════════════════

def product_record(product: VendorProduct) -> ProductRecord:
    return ProductRecord(
        id=product.pk,
        vendor_id=product.vendor_id,
        name=product.name,
        stock=product.stock,
        price=product.price,
        cost_price=product.cost_price,
        is_active=product.is_active,
    )


def location_record(location: InventoryLocation) -> LocationRecord:
    return LocationRecord(
        id=location.pk,
        vendor_id=location.vendor_id,
        name=location.name,
        is_default=location.is_default,
        is_active=location.is_active,
    )


def movement_record(movement: StockMovement) -> MovementRecord:
    return MovementRecord(
        id=movement.pk,
        vendor_id=movement.vendor_id,
        product_id=movement.product_id,
        movement_type=movement.movement_type,
        delta=movement.delta,
        previous_stock=movement.previous_stock,
        resulting_stock=movement.resulting_stock,
        reason=movement.reason,
        reference_type=movement.reference_type,
        reference_id=movement.reference_id,
        notes=movement.notes,
        location_id=movement.location_id,
        batch_id=movement.batch_id,
        unit_cost=movement.unit_cost,
        total_value=movement.total_value,
        performed_by=movement.performed_by,
        metadata=movement.metadata,
        created_at=movement.created_at,
    )


def batch_record(batch: StockBatch) -> BatchRecord:
    return BatchRecord(
        id=batch.pk,
        vendor_id=batch.vendor_id,
        product_id=batch.product_id,
        batch_number=batch.batch_number,
        quantity_received=batch.quantity_received,
        quantity_remaining=batch.quantity_remaining,
        received_date=batch.received_date,
        expiry_date=batch.expiry_date,
        warranty_end_date=batch.warranty_end_date,
        location_id=batch.location_id,
        purchase_price=batch.purchase_price,
        supplier_name=batch.supplier_name,
        supplier_invoice=batch.supplier_invoice,
        notes=batch.notes,
        created_at=batch.created_at,
    )


def config_record(config: StockConfig) -> ConfigRecord:
    return ConfigRecord(
        id=config.pk,
        product_id=config.product_id,
        low_stock_threshold=config.low_stock_threshold,
        critical_stock_threshold=config.critical_stock_threshold,
        overstock_threshold=config.overstock_threshold,
        reorder_quantity=config.reorder_quantity,
        expiry_alert_days=config.expiry_alert_days,
        track_batches=config.track_batches,
        enable_low_stock_alerts=config.enable_low_stock_alerts,
        enable_expiry_alerts=config.enable_expiry_alerts,
    )


def alert_record(alert: StockAlert) -> AlertRecord:
    return AlertRecord(
        id=alert.pk,
        vendor_id=alert.vendor_id,
        product_id=alert.product_id,
        batch_id=alert.batch_id,
        alert_type=alert.alert_type,
        severity=alert.severity,
        status=alert.status,
        message=alert.message,
        current_stock=alert.current_stock,
        threshold=alert.threshold,
        expiry_date=alert.expiry_date,
        acknowledged_by=alert.acknowledged_by,
        acknowledged_at=alert.acknowledged_at,
        resolved_at=alert.resolved_at,
        created_at=alert.created_at,
        updated_at=alert.updated_at,
    )


# ══════════════════════════════════════════════════════════════
# STORES
# ══════════════════════════════════════════════════════════════

class _Store:
    def __init__(self, using: str):
        self.using = using


class OrmProductStore(_Store):
    def _qs(self):
        return VendorProduct.objects.using(self.using)

    def get(self, product_id):
        product = self._qs().filter(pk=product_id).first()
        return product_record(product) if product else None

    def get_for_update(self, product_id):
        product = self._qs().select_for_update().filter(pk=product_id).first()
        return product_record(product) if product else None

    def update_stock(self, product_id, new_stock):
        self._qs().filter(pk=product_id).update(stock=new_stock, updated_at=timezone.now())
        return product_record(self._qs().get(pk=product_id))

    def list_for_vendor(self, vendor_id):
        return [product_record(p) for p in self._qs().filter(vendor_id=vendor_id).order_by('pk')]

    def vendor_ids(self):
        return list(self._qs().order_by('vendor_id').values_list('vendor_id', flat=True).distinct())


class OrmLocationStore(_Store):
    def get(self, location_id):
        location = InventoryLocation.objects.using(self.using).filter(pk=location_id).first()
        return location_record(location) if location else None


class OrmMovementStore(_Store):
    def _qs(self):
        return StockMovement.objects.using(self.using)

    def create(self, movement):
        row = StockMovement(
            vendor_id=movement.vendor_id,
            product_id=movement.product_id,
            location_id=movement.location_id,
            batch_id=movement.batch_id,
            movement_type=movement.movement_type,
            delta=movement.delta,
            previous_stock=movement.previous_stock,
            resulting_stock=movement.resulting_stock,
            unit_cost=movement.unit_cost,
            total_value=movement.total_value,
            reference_type=movement.reference_type,
            reference_id=movement.reference_id,
            reason=movement.reason,
            notes=movement.notes,
            metadata=movement.metadata,
            performed_by=movement.performed_by,
            created_at=movement.created_at or timezone.now(),
        )
        row.save(using=self.using)
        return movement_record(row)

    def list_for_product(self, product_id, since=None, until=None):
        qs = self._qs().filter(product_id=product_id)
        if since is not None:
            qs = qs.filter(created_at__gte=since)
        if until is not None:
            qs = qs.filter(created_at__lte=until)
        return [movement_record(m) for m in qs.order_by('created_at', 'id')]

    def list_for_vendor(self, vendor_id, product_id=None, movement_type=None,
                        since=None, until=None):
        qs = self._qs().filter(vendor_id=vendor_id)
        if product_id is not None:
            qs = qs.filter(product_id=product_id)
        if movement_type:
            qs = qs.filter(movement_type=movement_type)
        if since is not None:
            qs = qs.filter(created_at__gte=since)
        if until is not None:
            qs = qs.filter(created_at__lte=until)
        return [movement_record(m) for m in qs.order_by('-created_at', '-id')]

    def last_before(self, product_id, moment):
        movement = (
            self._qs()
            .filter(product_id=product_id, created_at__lt=moment)
            .order_by('-created_at', '-id')
            .first()
        )
        return movement_record(movement) if movement else None


class OrmConfigStore(_Store):
    def _qs(self):
        return StockConfig.objects.using(self.using)

    def get_for_product(self, product_id):
        config = self._qs().filter(product_id=product_id).first()
        return config_record(config) if config else None

    def create(self, config):
        row = StockConfig(
            product_id=config.product_id,
            low_stock_threshold=config.low_stock_threshold,
            critical_stock_threshold=config.critical_stock_threshold,
            overstock_threshold=config.overstock_threshold,
            reorder_quantity=config.reorder_quantity,
            expiry_alert_days=config.expiry_alert_days,
            track_batches=config.track_batches,
            enable_low_stock_alerts=config.enable_low_stock_alerts,
            enable_expiry_alerts=config.enable_expiry_alerts,
        )
        row.save(using=self.using)
        return config_record(row)

    def update(self, config_id, **changes):
        self._qs().filter(pk=config_id).update(updated_at=timezone.now(), **changes)
        return config_record(self._qs().get(pk=config_id))

    def list_for_vendor(self, vendor_id):
        qs = self._qs().filter(product__vendor_id=vendor_id).order_by('product_id')
        return [config_record(c) for c in qs]


class OrmAlertStore(_Store):
    def _qs(self):
        return StockAlert.objects.using(self.using)

    def get(self, alert_id):
        alert = self._qs().filter(pk=alert_id).first()
        return alert_record(alert) if alert else None

    def find_active(self, product_id, alert_type, batch_id=None):
        qs = self._qs().filter(
            product_id=product_id,
            alert_type=alert_type,
            status__in=ACTIVE_ALERT_STATUSES,
        )
        if batch_id is None:
            qs = qs.filter(batch__isnull=True)
        else:
            qs = qs.filter(batch_id=batch_id)
        alert = qs.first()
        return alert_record(alert) if alert else None

    def list_active_for_product(self, product_id):
        qs = self._qs().filter(product_id=product_id, status__in=ACTIVE_ALERT_STATUSES)
        return [alert_record(a) for a in qs.order_by('created_at', 'id')]

    def list_for_vendor(self, vendor_id, status=None, alert_type=None):
        qs = self._qs().filter(vendor_id=vendor_id)
        if status:
            qs = qs.filter(status=status)
        if alert_type:
            qs = qs.filter(alert_type=alert_type)
        return [alert_record(a) for a in qs.order_by('-created_at', '-id')]

    def create(self, alert):
        row = StockAlert(
            vendor_id=alert.vendor_id,
            product_id=alert.product_id,
            batch_id=alert.batch_id,
            alert_type=alert.alert_type,
            severity=alert.severity,
            status=alert.status,
            message=alert.message,
            current_stock=alert.current_stock,
            threshold=alert.threshold,
            expiry_date=alert.expiry_date,
            created_at=alert.created_at or timezone.now(),
        )
        row.save(using=self.using)
        return alert_record(row)

    def update(self, alert_id, **changes):
        self._qs().filter(pk=alert_id).update(updated_at=timezone.now(), **changes)
        return alert_record(self._qs().get(pk=alert_id))


class OrmBatchStore(_Store):
    def _qs(self):
        return StockBatch.objects.using(self.using)

    def get(self, batch_id):
        batch = self._qs().filter(pk=batch_id).first()
        return batch_record(batch) if batch else None

    def create(self, batch):
        row = StockBatch(
            vendor_id=batch.vendor_id,
            product_id=batch.product_id,
            location_id=batch.location_id,
            batch_number=batch.batch_number,
            quantity_received=batch.quantity_received,
            quantity_remaining=batch.quantity_remaining,
            received_date=batch.received_date,
            expiry_date=batch.expiry_date,
            warranty_end_date=batch.warranty_end_date,
            purchase_price=batch.purchase_price,
            supplier_name=batch.supplier_name,
            supplier_invoice=batch.supplier_invoice,
            notes=batch.notes,
            created_at=batch.created_at or timezone.now(),
        )
        row.save(using=self.using)
        return batch_record(row)

    def list_for_product(self, product_id):
        return [batch_record(b) for b in self._qs().filter(product_id=product_id).fefo()]

    def list_open(self, product_id):
        return [batch_record(b) for b in self._qs().filter(product_id=product_id).open().fefo()]

    def list_open_for_vendor(self, vendor_id):
        return [batch_record(b) for b in self._qs().filter(vendor_id=vendor_id).open().fefo()]

    def update_remaining(self, batch_id, new_remaining):
        self._qs().filter(pk=batch_id).update(quantity_remaining=new_remaining)
        return batch_record(self._qs().get(pk=batch_id))


# ══════════════════════════════════════════════════════════════
# STORAGE
# ══════════════════════════════════════════════════════════════

class OrmStockStorage:
    """StockStorage backed by the vendorstock models."""

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using
        self.products = OrmProductStore(using)
        self.locations = OrmLocationStore(using)
        self.movements = OrmMovementStore(using)
        self.configs = OrmConfigStore(using)
        self.alerts = OrmAlertStore(using)
        self.batches = OrmBatchStore(using)

    def in_transaction(self) -> bool:
        return connections[self.using].in_atomic_block

    @contextmanager
    def atomic(self) -> Iterator[None]:
        outermost = not self.in_transaction()
        try:
            with transaction.atomic(using=self.using):
                if outermost:
                    self._bound_lock_wait()
                yield
        except OperationalError as e:
            if _is_lock_timeout(e):
                raise ConcurrencyConflict(str(e)) from e
            logger.exception("Stock storage operational error")
            raise PersistenceFault(str(e)) from e
        except DatabaseError as e:
            logger.exception("Stock storage database error")
            raise PersistenceFault(str(e)) from e

    def _bound_lock_wait(self) -> None:
        connection = connections[self.using]
        timeout_ms = vendorstock_settings.LOCK_TIMEOUT_MS
        if connection.vendor != 'postgresql' or not timeout_ms:
            return
        with connection.cursor() as cursor:
            cursor.execute(
                "SELECT set_config('lock_timeout', %s, true)",
                [f"{int(timeout_ms)}ms"],
            )
