"""
Django Vendorstock — stock accounting for multi-vendor marketplaces.

Usage:
    from vendorstock import stock, StockError

    stock.record_stock_in(product_id, 50, reason="Supplier delivery")
    stock.record_stock_out(product_id, 5, reference_type="order", reference_id="A-17")
    stock.list_alerts(vendor_id)
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'stock':
        from vendorstock.service import get_stock_service
        return get_stock_service()
    elif name == 'StockService':
        from vendorstock.service import StockService
        return StockService
    elif name == 'StockError':
        from vendorstock.exceptions import StockError
        return StockError
    elif name == 'VendorProduct':
        from vendorstock.models.product import VendorProduct
        return VendorProduct
    elif name == 'InventoryLocation':
        from vendorstock.models.location import InventoryLocation
        return InventoryLocation
    elif name == 'StockMovement':
        from vendorstock.models.movement import StockMovement
        return StockMovement
    elif name == 'StockBatch':
        from vendorstock.models.batch import StockBatch
        return StockBatch
    elif name == 'StockConfig':
        from vendorstock.models.config import StockConfig
        return StockConfig
    elif name == 'StockAlert':
        from vendorstock.models.alert import StockAlert
        return StockAlert
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'stock',
    'StockService',
    'StockError',
    'VendorProduct',
    'InventoryLocation',
    'StockMovement',
    'StockBatch',
    'StockConfig',
    'StockAlert',
]

__version__ = '0.1.0'
