"""
vendorstock Protocols.

Defines the persistence boundary of the stock engine.
"""

from vendorstock.protocols.records import (
    AlertRecord,
    BatchRecord,
    ConfigRecord,
    LocationRecord,
    MovementRecord,
    ProductRecord,
)
from vendorstock.protocols.storage import (
    AlertStore,
    BatchStore,
    ConfigStore,
    LocationStore,
    MovementStore,
    ProductStore,
    StockStorage,
)

__all__ = [
    "AlertRecord",
    "BatchRecord",
    "ConfigRecord",
    "LocationRecord",
    "MovementRecord",
    "ProductRecord",
    "AlertStore",
    "BatchStore",
    "ConfigStore",
    "LocationStore",
    "MovementStore",
    "ProductStore",
    "StockStorage",
]
