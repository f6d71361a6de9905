"""
vendorstock configuration.

Usage in settings.py:
    VENDORSTOCK = {
        "STORAGE_BACKEND": "vendorstock.adapters.orm.OrmStockStorage",
        "MAX_MOVEMENT_QUANTITY": 1_000_000,
        "DEFAULT_LOW_STOCK_THRESHOLD": 10,
        "EXPIRY_LOOKAHEAD_DAYS": 30,
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class VendorStockSettings:
    """vendorstock configuration settings."""

    # Storage backend (dotted path to a StockStorage implementation)
    STORAGE_BACKEND: str = "vendorstock.adapters.orm.OrmStockStorage"

    # Sanity ceiling for a single movement
    MAX_MOVEMENT_QUANTITY: int = 1_000_000

    # Defaults for lazily created StockConfig rows
    DEFAULT_LOW_STOCK_THRESHOLD: int = 10
    DEFAULT_CRITICAL_STOCK_THRESHOLD: int = 3
    DEFAULT_OVERSTOCK_THRESHOLD: int | None = None
    DEFAULT_REORDER_QUANTITY: int = 50

    # Days before expiry that a batch raises expiring_soon
    EXPIRY_LOOKAHEAD_DAYS: int = 30

    # Analytics windows
    TURNOVER_WINDOW_DAYS: int = 30
    SLOW_MOVING_WINDOW_DAYS: int = 90

    # Lock wait bound (0 = wait forever)
    LOCK_TIMEOUT_MS: int = 5000

    # Attempts for a top-level movement after a lock timeout
    CONFLICT_RETRIES: int = 3


def get_vendorstock_settings() -> VendorStockSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "VENDORSTOCK", {})
    return VendorStockSettings(**{
        k: v for k, v in user_settings.items()
        if k in VendorStockSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_vendorstock_settings(), name)


vendorstock_settings = _LazySettings()
