"""
Storage Protocol — the persistence boundary of the stock engine.

vendorstock defines these protocols; adapters implement them:
- vendorstock.adapters.orm.OrmStockStorage (Django ORM, production)
- vendorstock.adapters.memory.MemoryStockStorage (in-process, tests/dev)

Services never touch models directly. Every state-changing operation runs
inside StockStorage.atomic(), and per-product updates go through
ProductStore.get_for_update() so the check-then-write on the counter is
serialized.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from vendorstock.protocols.records import (
    AlertRecord,
    BatchRecord,
    ConfigRecord,
    LocationRecord,
    MovementRecord,
    ProductRecord,
)


class ProductStore(Protocol):
    def get(self, product_id: int) -> ProductRecord | None:
        """Read a product without locking."""
        ...

    def get_for_update(self, product_id: int) -> ProductRecord | None:
        """
        Read a product and lock its row until the enclosing atomic() ends.

        Must be called inside StockStorage.atomic().
        """
        ...

    def update_stock(self, product_id: int, new_stock: int) -> ProductRecord:
        """Write the stock counter. Caller holds the row lock."""
        ...

    def list_for_vendor(self, vendor_id: str) -> list[ProductRecord]:
        ...

    def vendor_ids(self) -> list[str]:
        """Distinct vendors owning at least one product, sorted."""
        ...


class LocationStore(Protocol):
    def get(self, location_id: int) -> LocationRecord | None:
        ...


class MovementStore(Protocol):
    def create(self, movement: MovementRecord) -> MovementRecord:
        """Append a movement. Assigns id and created_at when missing."""
        ...

    def list_for_product(
        self,
        product_id: int,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[MovementRecord]:
        """Movements in ledger order (created_at, id)."""
        ...

    def list_for_vendor(
        self,
        vendor_id: str,
        product_id: int | None = None,
        movement_type: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[MovementRecord]:
        """Movements of a vendor, newest first."""
        ...

    def last_before(self, product_id: int, moment: datetime) -> MovementRecord | None:
        """Latest movement strictly before `moment`."""
        ...


class ConfigStore(Protocol):
    def get_for_product(self, product_id: int) -> ConfigRecord | None:
        ...

    def create(self, config: ConfigRecord) -> ConfigRecord:
        ...

    def update(self, config_id: int, **changes: Any) -> ConfigRecord:
        ...

    def list_for_vendor(self, vendor_id: str) -> list[ConfigRecord]:
        ...


class AlertStore(Protocol):
    def get(self, alert_id: int) -> AlertRecord | None:
        ...

    def find_active(
        self,
        product_id: int,
        alert_type: str,
        batch_id: int | None = None,
    ) -> AlertRecord | None:
        """Open or acknowledged alert for the key, if any."""
        ...

    def list_active_for_product(self, product_id: int) -> list[AlertRecord]:
        ...

    def list_for_vendor(
        self,
        vendor_id: str,
        status: str | None = None,
        alert_type: str | None = None,
    ) -> list[AlertRecord]:
        """Alerts of a vendor, newest first."""
        ...

    def create(self, alert: AlertRecord) -> AlertRecord:
        ...

    def update(self, alert_id: int, **changes: Any) -> AlertRecord:
        ...


class BatchStore(Protocol):
    def get(self, batch_id: int) -> BatchRecord | None:
        ...

    def create(self, batch: BatchRecord) -> BatchRecord:
        ...

    def list_for_product(self, product_id: int) -> list[BatchRecord]:
        ...

    def list_open(self, product_id: int) -> list[BatchRecord]:
        """Batches with remaining quantity, nearest expiry first."""
        ...

    def list_open_for_vendor(self, vendor_id: str) -> list[BatchRecord]:
        ...

    def update_remaining(self, batch_id: int, new_remaining: int) -> BatchRecord:
        ...


@runtime_checkable
class StockStorage(Protocol):
    """
    Bundle of stores plus the transaction scope.

    atomic() commits on normal exit and rolls back every write made
    inside it on exception. Nested atomic() blocks behave as savepoints.
    Backends raise ConcurrencyConflict when a lock wait times out and
    PersistenceFault for any other storage failure.
    """

    products: ProductStore
    locations: LocationStore
    movements: MovementStore
    configs: ConfigStore
    alerts: AlertStore
    batches: BatchStore

    def atomic(self) -> AbstractContextManager[None]:
        ...

    def in_transaction(self) -> bool:
        """Is the caller already inside atomic()?"""
        ...
