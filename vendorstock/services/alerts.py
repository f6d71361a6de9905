"""
Stock alerts — threshold evaluation, expiry sweep and operator actions.

Usage:
    engine = AlertEngine(storage, StockConfigs(storage))

    # After every movement (the recorder does this)
    engine.evaluate(product)

    # Periodically, or from the sweep_stock_alerts command
    engine.sweep_expiry(vendor_id)

Threshold alerts are evaluated on the current stock only. Ensuring an
alert is idempotent: an active alert of the same type is refreshed, never
duplicated.
"""

import logging
from datetime import date

from django.utils import timezone

from vendorstock.exceptions import StockValidationError
from vendorstock.expiry import expires_within, is_expired
from vendorstock.models.enums import (
    ACTIVE_ALERT_STATUSES,
    EXPIRY_ALERT_TYPES,
    THRESHOLD_ALERT_TYPES,
    AlertSeverity,
    AlertStatus,
    AlertType,
)
from vendorstock.protocols.records import AlertRecord, BatchRecord, ConfigRecord, ProductRecord

logger = logging.getLogger('vendorstock')

SEVERITY = {
    AlertType.OUT_OF_STOCK: AlertSeverity.CRITICAL,
    AlertType.CRITICAL_STOCK: AlertSeverity.HIGH,
    AlertType.LOW_STOCK: AlertSeverity.MEDIUM,
    AlertType.OVERSTOCK: AlertSeverity.LOW,
    AlertType.EXPIRING_SOON: AlertSeverity.MEDIUM,
    AlertType.EXPIRED: AlertSeverity.CRITICAL,
}

# Allowed operator transitions: action -> statuses it may start from
TRANSITIONS = {
    AlertStatus.ACKNOWLEDGED: frozenset({AlertStatus.OPEN}),
    AlertStatus.RESOLVED: ACTIVE_ALERT_STATUSES,
    AlertStatus.DISMISSED: ACTIVE_ALERT_STATUSES,
}


def breached_type(stock: int, config: ConfigRecord) -> str | None:
    """First matching threshold for the stock level, or None."""
    if stock == 0:
        return AlertType.OUT_OF_STOCK
    if stock <= config.critical_stock_threshold:
        return AlertType.CRITICAL_STOCK
    if stock <= config.low_stock_threshold:
        return AlertType.LOW_STOCK
    if config.overstock_threshold is not None and stock >= config.overstock_threshold:
        return AlertType.OVERSTOCK
    return None


def condition_holds(alert_type: str, stock: int, config: ConfigRecord) -> bool:
    """Is the condition behind a threshold alert still true?"""
    if alert_type == AlertType.OUT_OF_STOCK:
        return stock == 0
    if alert_type == AlertType.CRITICAL_STOCK:
        return stock <= config.critical_stock_threshold
    if alert_type == AlertType.LOW_STOCK:
        return stock <= config.low_stock_threshold
    if alert_type == AlertType.OVERSTOCK:
        return config.overstock_threshold is not None and stock >= config.overstock_threshold
    return False


def _threshold(alert_type: str, config: ConfigRecord) -> int | None:
    return {
        AlertType.OUT_OF_STOCK: 0,
        AlertType.CRITICAL_STOCK: config.critical_stock_threshold,
        AlertType.LOW_STOCK: config.low_stock_threshold,
        AlertType.OVERSTOCK: config.overstock_threshold,
    }.get(alert_type)


def _stock_message(alert_type: str, product: ProductRecord, stock: int, config: ConfigRecord) -> str:
    reorder = f"Suggested reorder: {config.reorder_quantity} units"
    if alert_type == AlertType.OUT_OF_STOCK:
        return f"{product.name} is out of stock. {reorder}"
    if alert_type == AlertType.CRITICAL_STOCK:
        return (f"{product.name} is critically low ({stock} left, "
                f"threshold {config.critical_stock_threshold}). {reorder}")
    if alert_type == AlertType.LOW_STOCK:
        return (f"{product.name} is running low ({stock} left, "
                f"threshold {config.low_stock_threshold}). {reorder}")
    return f"{product.name} is overstocked ({stock} units, threshold {config.overstock_threshold})"


def _expiry_message(alert_type: str, product: ProductRecord, batch: BatchRecord) -> str:
    label = batch.batch_number or f"#{batch.id}"
    verb = "expired on" if alert_type == AlertType.EXPIRED else "expires on"
    return f"Batch {label} of {product.name} {verb} {batch.expiry_date} ({batch.quantity_remaining} units)"


class AlertEngine:
    """Opens, refreshes and closes stock alerts."""

    def __init__(self, storage, configs):
        self.storage = storage
        self.configs = configs

    # ══════════════════════════════════════════════════════════════
    # THRESHOLDS
    # ══════════════════════════════════════════════════════════════

    def evaluate(self, product: ProductRecord, stock: int | None = None) -> list[AlertRecord]:
        """
        Re-evaluate threshold alerts of a product.

        First match wins for the alert to ensure (out_of_stock, critical,
        low, overstock). Every other active threshold alert stays open
        while its own condition holds and is resolved otherwise.

        Args:
            product: Product record
            stock: Post-movement stock (default: product.stock)

        Returns:
            Active threshold alerts after evaluation
        """
        stock = product.stock if stock is None else stock
        config = self.configs.ensure(product.id)

        with self.storage.atomic():
            if config.enable_low_stock_alerts:
                target = breached_type(stock, config)
                if target is not None:
                    self._ensure(
                        product, target,
                        message=_stock_message(target, product, stock, config),
                        current_stock=stock,
                        threshold=_threshold(target, config),
                    )

            active = []
            for alert in self.storage.alerts.list_active_for_product(product.id):
                if alert.alert_type not in THRESHOLD_ALERT_TYPES:
                    continue
                if condition_holds(alert.alert_type, stock, config):
                    active.append(alert)
                else:
                    self._auto_resolve(alert, current_stock=stock)
            return active

    def sweep_vendor(self, vendor_id: str) -> dict[int, list[AlertRecord]]:
        """Re-evaluate every product of a vendor against its thresholds."""
        results = {}
        for product in self.storage.products.list_for_vendor(vendor_id):
            with self.storage.atomic():
                locked = self.storage.products.get_for_update(product.id)
                results[product.id] = self.evaluate(locked)
        return results

    # ══════════════════════════════════════════════════════════════
    # EXPIRY
    # ══════════════════════════════════════════════════════════════

    def sweep_expiry(self, vendor_id: str, days_ahead: int | None = None,
                     today: date | None = None) -> list[AlertRecord]:
        """
        Open expiring_soon / expired alerts per batch.

        Args:
            vendor_id: Vendor to sweep
            days_ahead: Lookahead window (default: each product's expiry_alert_days)
            today: Reference date (default: local today)

        Returns:
            Active expiry alerts after the sweep
        """
        today = today or timezone.localdate()
        active = []

        for listed in self.storage.products.list_for_vendor(vendor_id):
            with self.storage.atomic():
                # Counter lock held while the batches are read.
                product = self.storage.products.get_for_update(listed.id)
                config = self.configs.ensure(product.id)
                window = config.expiry_alert_days if days_ahead is None else days_ahead

                for batch in self.storage.batches.list_for_product(product.id):
                    if not (config.enable_expiry_alerts and batch.is_open):
                        self.resolve_batch_alerts(batch)
                        continue

                    if is_expired(batch, today):
                        target = AlertType.EXPIRED
                    elif expires_within(batch, today, window):
                        target = AlertType.EXPIRING_SOON
                    else:
                        self.resolve_batch_alerts(batch)
                        continue

                    for alert_type in EXPIRY_ALERT_TYPES - {target}:
                        stale = self.storage.alerts.find_active(product.id, alert_type, batch.id)
                        if stale is not None:
                            self._auto_resolve(stale)

                    active.append(self._ensure(
                        product, target,
                        batch=batch,
                        message=_expiry_message(target, product, batch),
                        current_stock=batch.quantity_remaining,
                        expiry_date=batch.expiry_date,
                    ))
        return active

    def resolve_batch_alerts(self, batch: BatchRecord) -> None:
        """Close active expiry alerts of a batch (e.g. once exhausted)."""
        for alert_type in EXPIRY_ALERT_TYPES:
            alert = self.storage.alerts.find_active(batch.product_id, alert_type, batch.id)
            if alert is not None:
                self._auto_resolve(alert, current_stock=batch.quantity_remaining)

    # ══════════════════════════════════════════════════════════════
    # OPERATOR ACTIONS
    # ══════════════════════════════════════════════════════════════

    def acknowledge(self, alert_id: int, by: str = 'system', vendor_id: str | None = None) -> AlertRecord:
        """open → acknowledged"""
        return self._transition(
            alert_id, AlertStatus.ACKNOWLEDGED, vendor_id,
            acknowledged_by=by or 'system',
            acknowledged_at=timezone.now(),
        )

    def resolve(self, alert_id: int, vendor_id: str | None = None) -> AlertRecord:
        """open/acknowledged → resolved"""
        return self._transition(alert_id, AlertStatus.RESOLVED, vendor_id, resolved_at=timezone.now())

    def dismiss(self, alert_id: int, vendor_id: str | None = None) -> AlertRecord:
        """open/acknowledged → dismissed"""
        return self._transition(alert_id, AlertStatus.DISMISSED, vendor_id)

    def list_alerts(self, vendor_id: str, status: str | None = None,
                    alert_type: str | None = None) -> list[AlertRecord]:
        return self.storage.alerts.list_for_vendor(vendor_id, status=status, alert_type=alert_type)

    # ══════════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════════

    def _ensure(self, product: ProductRecord, alert_type: str, *, message: str,
                batch: BatchRecord | None = None, current_stock: int | None = None,
                threshold: int | None = None, expiry_date: date | None = None) -> AlertRecord:
        batch_id = batch.id if batch else None
        existing = self.storage.alerts.find_active(product.id, alert_type, batch_id)
        if existing is not None:
            if existing.current_stock == current_stock and existing.message == message:
                return existing
            return self.storage.alerts.update(
                existing.id,
                current_stock=current_stock,
                threshold=threshold,
                message=message,
            )

        alert = self.storage.alerts.create(AlertRecord(
            vendor_id=product.vendor_id,
            product_id=product.id,
            batch_id=batch_id,
            alert_type=alert_type,
            severity=SEVERITY[alert_type],
            message=message,
            current_stock=current_stock,
            threshold=threshold,
            expiry_date=expiry_date,
        ))
        logger.warning(
            "stock.alert.opened",
            extra={
                "alert_id": alert.id,
                "product_id": product.id,
                "batch_id": batch_id,
                "alert_type": alert_type,
                "current_stock": current_stock,
            },
        )
        return alert

    def _auto_resolve(self, alert: AlertRecord, current_stock: int | None = None) -> AlertRecord:
        changes = {'status': AlertStatus.RESOLVED.value, 'resolved_at': timezone.now()}
        if current_stock is not None:
            changes['current_stock'] = current_stock
        resolved = self.storage.alerts.update(alert.id, **changes)
        logger.info(
            "stock.alert.resolved",
            extra={
                "alert_id": alert.id,
                "product_id": alert.product_id,
                "alert_type": alert.alert_type,
                "current_stock": current_stock,
            },
        )
        return resolved

    def _transition(self, alert_id: int, target: str, vendor_id: str | None, **changes) -> AlertRecord:
        with self.storage.atomic():
            alert = self.storage.alerts.get(alert_id)
            if alert is None:
                raise StockValidationError('ALERT_NOT_FOUND', alert_id=alert_id)
            if vendor_id is not None and alert.vendor_id != vendor_id:
                raise StockValidationError('VENDOR_MISMATCH', alert_id=alert_id, vendor_id=vendor_id)
            if alert.status not in TRANSITIONS[target]:
                raise StockValidationError(
                    'INVALID_STATUS',
                    f"Cannot move alert from {alert.status} to {target}",
                    alert_id=alert_id,
                    status=alert.status,
                )
            updated = self.storage.alerts.update(alert_id, status=str(target), **changes)

        logger.info(
            "stock.alert.transition",
            extra={"alert_id": alert_id, "from": alert.status, "to": str(target)},
        )
        return updated
