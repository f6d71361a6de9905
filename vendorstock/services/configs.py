"""
Stock configs — per-product thresholds with ensure (get-or-create) semantics.
"""

import logging
from dataclasses import replace

from django.utils import timezone

from vendorstock.conf import vendorstock_settings
from vendorstock.exceptions import BatchIntegrityFault, StockValidationError
from vendorstock.protocols.records import BatchRecord, ConfigRecord

logger = logging.getLogger('vendorstock')

EDITABLE_FIELDS = frozenset({
    'low_stock_threshold',
    'critical_stock_threshold',
    'overstock_threshold',
    'reorder_quantity',
    'expiry_alert_days',
    'track_batches',
    'enable_low_stock_alerts',
    'enable_expiry_alerts',
})

OPENING_BATCH_NUMBER = 'OPENING'


def _is_count(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_config(config: ConfigRecord) -> None:
    """
    Check threshold consistency.

    Raises:
        StockValidationError('INVALID_CONFIG'): On negative or inverted thresholds
    """
    for name in ('low_stock_threshold', 'critical_stock_threshold',
                 'reorder_quantity', 'expiry_alert_days'):
        if not _is_count(getattr(config, name)):
            raise StockValidationError('INVALID_CONFIG', f"{name} must be a non-negative integer", field=name)

    if config.overstock_threshold is not None and not _is_count(config.overstock_threshold):
        raise StockValidationError(
            'INVALID_CONFIG', "overstock_threshold must be a non-negative integer",
            field='overstock_threshold',
        )

    if config.critical_stock_threshold > config.low_stock_threshold:
        raise StockValidationError(
            'INVALID_CONFIG',
            "critical_stock_threshold cannot exceed low_stock_threshold",
            field='critical_stock_threshold',
        )

    if config.overstock_threshold is not None and config.overstock_threshold <= config.low_stock_threshold:
        raise StockValidationError(
            'INVALID_CONFIG',
            "overstock_threshold must be greater than low_stock_threshold",
            field='overstock_threshold',
        )


class StockConfigs:
    """Per-product StockConfig access."""

    def __init__(self, storage, settings=None):
        self.storage = storage
        self.settings = settings or vendorstock_settings

    def defaults_for(self, product_id: int) -> ConfigRecord:
        """Unsaved config with the configured defaults."""
        return ConfigRecord(
            product_id=product_id,
            low_stock_threshold=self.settings.DEFAULT_LOW_STOCK_THRESHOLD,
            critical_stock_threshold=self.settings.DEFAULT_CRITICAL_STOCK_THRESHOLD,
            overstock_threshold=self.settings.DEFAULT_OVERSTOCK_THRESHOLD,
            reorder_quantity=self.settings.DEFAULT_REORDER_QUANTITY,
            expiry_alert_days=self.settings.EXPIRY_LOOKAHEAD_DAYS,
        )

    def ensure(self, product_id: int) -> ConfigRecord:
        """
        Get the product's config, creating it with defaults on first access.

        Raises:
            StockValidationError('PRODUCT_NOT_FOUND'): Unknown product
        """
        config = self.storage.configs.get_for_product(product_id)
        if config is not None:
            return config

        with self.storage.atomic():
            # Product row lock serializes concurrent first accesses
            if self.storage.products.get_for_update(product_id) is None:
                raise StockValidationError('PRODUCT_NOT_FOUND', product_id=product_id)
            config = self.storage.configs.get_for_product(product_id)
            if config is None:
                config = self.storage.configs.create(self.defaults_for(product_id))
            return config

    def update(self, product_id: int, vendor_id: str | None = None, **changes) -> ConfigRecord:
        """
        Update thresholds or switches.

        Turning track_batches on for a product whose stock is not covered
        by batches opens an OPENING batch for the uncovered quantity, so
        FEFO consumption and the counter agree from then on.

        Raises:
            StockValidationError('INVALID_CONFIG'): Unknown field or bad thresholds
            StockValidationError('VENDOR_MISMATCH'): Product of another vendor
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise StockValidationError(
                'INVALID_CONFIG', f"Unknown config fields: {', '.join(sorted(unknown))}",
                fields=sorted(unknown),
            )

        with self.storage.atomic():
            product = self.storage.products.get_for_update(product_id)
            if product is None:
                raise StockValidationError('PRODUCT_NOT_FOUND', product_id=product_id)
            if vendor_id is not None and product.vendor_id != vendor_id:
                raise StockValidationError('VENDOR_MISMATCH', product_id=product_id, vendor_id=vendor_id)

            config = self.ensure(product_id)
            validate_config(replace(config, **changes))

            if changes.get('track_batches') and not config.track_batches:
                self._open_uncovered_stock(product)

            return self.storage.configs.update(config.id, **changes)

    def list_for_vendor(self, vendor_id: str) -> list[ConfigRecord]:
        return self.storage.configs.list_for_vendor(vendor_id)

    def _open_uncovered_stock(self, product) -> None:
        covered = sum(b.quantity_remaining for b in self.storage.batches.list_open(product.id))
        uncovered = product.stock - covered
        if uncovered < 0:
            logger.error(
                "stock.batch.integrity",
                extra={
                    "product_id": product.id,
                    "stock": product.stock,
                    "batch_remaining": covered,
                },
            )
            raise BatchIntegrityFault(
                f"Batches hold {covered} units but stock is {product.stock}",
                product_id=product.id,
                stock=product.stock,
                batch_remaining=covered,
            )
        if uncovered == 0:
            return
        self.storage.batches.create(BatchRecord(
            vendor_id=product.vendor_id,
            product_id=product.id,
            batch_number=OPENING_BATCH_NUMBER,
            quantity_received=uncovered,
            quantity_remaining=uncovered,
            received_date=timezone.localdate(),
            notes="Stock on hand when batch tracking was enabled",
        ))
        logger.info(
            "stock.batch.created",
            extra={"product_id": product.id, "batch_number": OPENING_BATCH_NUMBER, "qty": uncovered},
        )
