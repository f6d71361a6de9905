"""
vendorstock Models.

Core models for stock accounting:
- VendorProduct: Product with its stock counter
- InventoryLocation: Where stock is kept (tag only)
- StockMovement: Immutable ledger of changes
- StockBatch: Lot tracking with expiry
- StockConfig: Per-product thresholds and switches
- StockAlert: Threshold and expiry alerts
"""

from vendorstock.models.alert import StockAlert
from vendorstock.models.batch import StockBatch
from vendorstock.models.config import StockConfig
from vendorstock.models.enums import (
    AlertSeverity,
    AlertStatus,
    AlertType,
    MovementType,
    ReferenceType,
)
from vendorstock.models.location import InventoryLocation
from vendorstock.models.movement import StockMovement
from vendorstock.models.product import VendorProduct

__all__ = [
    'AlertSeverity',
    'AlertStatus',
    'AlertType',
    'MovementType',
    'ReferenceType',
    'VendorProduct',
    'InventoryLocation',
    'StockMovement',
    'StockBatch',
    'StockConfig',
    'StockAlert',
]
