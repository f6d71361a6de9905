"""
vendorstock Adapters.

Implementations of the StockStorage protocol, and the loader for the
configured backend.

Usage:
    from vendorstock.adapters import get_storage

    storage = get_storage()
    with storage.atomic():
        ...

Settings:
    VENDORSTOCK = {
        "STORAGE_BACKEND": "vendorstock.adapters.orm.OrmStockStorage",
    }
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from vendorstock.conf import vendorstock_settings
from vendorstock.protocols.storage import StockStorage

logger = logging.getLogger(__name__)


# Cached storage instance
_lock = threading.Lock()
_storage: StockStorage | None = None


def get_storage() -> StockStorage:
    """
    Return the configured storage backend.

    Raises:
        ImproperlyConfigured: If STORAGE_BACKEND is empty or import fails
    """
    global _storage

    if _storage is None:
        with _lock:
            if _storage is None:  # double-checked
                backend_path = vendorstock_settings.STORAGE_BACKEND

                if not backend_path:
                    raise ImproperlyConfigured(
                        "VENDORSTOCK['STORAGE_BACKEND'] must be configured. "
                        "Example: 'vendorstock.adapters.orm.OrmStockStorage'"
                    )

                try:
                    backend_class = import_string(backend_path)
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import storage backend '{backend_path}': {e}"
                    ) from e
                _storage = backend_class()
                logger.debug("Loaded stock storage: %s", backend_path)

    return _storage


def reset_storage() -> None:
    """Reset the cached storage. Useful for testing."""
    global _storage
    _storage = None


__all__ = [
    "get_storage",
    "reset_storage",
]
