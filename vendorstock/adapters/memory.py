"""
In-memory storage — StockStorage for tests and local development.

Implements the StockStorage protocol without a database:

- One re-entrant lock serializes every atomic() block, so per-product
  updates are linearized (trivially: all updates are).
- Each atomic() level snapshots the containers and restores them if the
  block raises, so a failed operation leaves no visible trace.
- Records are frozen, so snapshots only copy containers.

Usage in settings.py:
    VENDORSTOCK = {
        "STORAGE_BACKEND": "vendorstock.adapters.memory.MemoryStockStorage",
    }

WARNING: State lives in the process. Do NOT use in production.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterator

from django.utils import timezone

from vendorstock.conf import vendorstock_settings
from vendorstock.exceptions import ConcurrencyConflict
from vendorstock.expiry import fefo_key
from vendorstock.models.enums import ACTIVE_ALERT_STATUSES
from vendorstock.protocols.records import (
    AlertRecord,
    BatchRecord,
    ConfigRecord,
    LocationRecord,
    MovementRecord,
    ProductRecord,
)


def _ledger_key(movement: MovementRecord):
    return (movement.created_at, movement.id)


class _State:
    """All tables of the in-memory store."""

    def __init__(self):
        self.products: dict[int, ProductRecord] = {}
        self.locations: dict[int, LocationRecord] = {}
        self.movements: list[MovementRecord] = []
        self.configs: dict[int, ConfigRecord] = {}
        self.alerts: dict[int, AlertRecord] = {}
        self.batches: dict[int, BatchRecord] = {}
        self.sequences: dict[str, int] = {}

    def copy(self) -> _State:
        clone = _State()
        clone.products = dict(self.products)
        clone.locations = dict(self.locations)
        clone.movements = list(self.movements)
        clone.configs = dict(self.configs)
        clone.alerts = dict(self.alerts)
        clone.batches = dict(self.batches)
        clone.sequences = dict(self.sequences)
        return clone


class _Store:
    def __init__(self, storage: MemoryStockStorage):
        self._storage = storage

    @property
    def _state(self) -> _State:
        return self._storage._state


class MemoryProductStore(_Store):
    def get(self, product_id):
        return self._state.products.get(product_id)

    def get_for_update(self, product_id):
        # The storage lock held by atomic() already serializes writers
        return self._state.products.get(product_id)

    def update_stock(self, product_id, new_stock):
        product = replace(self._state.products[product_id], stock=new_stock)
        self._state.products[product_id] = product
        return product

    def list_for_vendor(self, vendor_id):
        return [p for p in self._state.products.values() if p.vendor_id == vendor_id]

    def vendor_ids(self):
        return sorted({p.vendor_id for p in self._state.products.values()})


class MemoryLocationStore(_Store):
    def get(self, location_id):
        return self._state.locations.get(location_id)


class MemoryMovementStore(_Store):
    def create(self, movement):
        record = replace(
            movement,
            id=self._storage._next_id('movement'),
            created_at=movement.created_at or timezone.now(),
        )
        self._state.movements.append(record)
        return record

    def list_for_product(self, product_id, since=None, until=None):
        movements = [
            m for m in self._state.movements
            if m.product_id == product_id
            and (since is None or m.created_at >= since)
            and (until is None or m.created_at <= until)
        ]
        return sorted(movements, key=_ledger_key)

    def list_for_vendor(self, vendor_id, product_id=None, movement_type=None,
                        since=None, until=None):
        movements = [
            m for m in self._state.movements
            if m.vendor_id == vendor_id
            and (product_id is None or m.product_id == product_id)
            and (movement_type is None or m.movement_type == movement_type)
            and (since is None or m.created_at >= since)
            and (until is None or m.created_at <= until)
        ]
        return sorted(movements, key=_ledger_key, reverse=True)

    def last_before(self, product_id, moment):
        earlier = [
            m for m in self._state.movements
            if m.product_id == product_id and m.created_at < moment
        ]
        return max(earlier, key=_ledger_key, default=None)


class MemoryConfigStore(_Store):
    def get_for_product(self, product_id):
        for config in self._state.configs.values():
            if config.product_id == product_id:
                return config
        return None

    def create(self, config):
        if self.get_for_product(config.product_id) is not None:
            raise ValueError(f"Config for product {config.product_id} already exists")
        record = replace(config, id=self._storage._next_id('config'))
        self._state.configs[record.id] = record
        return record

    def update(self, config_id, **changes):
        record = replace(self._state.configs[config_id], **changes)
        self._state.configs[config_id] = record
        return record

    def list_for_vendor(self, vendor_id):
        product_ids = {
            p.id for p in self._state.products.values() if p.vendor_id == vendor_id
        }
        return [c for c in self._state.configs.values() if c.product_id in product_ids]


class MemoryAlertStore(_Store):
    def get(self, alert_id):
        return self._state.alerts.get(alert_id)

    def find_active(self, product_id, alert_type, batch_id=None):
        for alert in self._state.alerts.values():
            if (alert.product_id == product_id
                    and alert.alert_type == alert_type
                    and alert.batch_id == batch_id
                    and alert.status in ACTIVE_ALERT_STATUSES):
                return alert
        return None

    def list_active_for_product(self, product_id):
        return [
            a for a in self._state.alerts.values()
            if a.product_id == product_id and a.status in ACTIVE_ALERT_STATUSES
        ]

    def list_for_vendor(self, vendor_id, status=None, alert_type=None):
        alerts = [
            a for a in self._state.alerts.values()
            if a.vendor_id == vendor_id
            and (status is None or a.status == status)
            and (alert_type is None or a.alert_type == alert_type)
        ]
        return sorted(alerts, key=lambda a: (a.created_at, a.id), reverse=True)

    def create(self, alert):
        now = timezone.now()
        record = replace(
            alert,
            id=self._storage._next_id('alert'),
            created_at=alert.created_at or now,
            updated_at=now,
        )
        self._state.alerts[record.id] = record
        return record

    def update(self, alert_id, **changes):
        record = replace(self._state.alerts[alert_id], updated_at=timezone.now(), **changes)
        self._state.alerts[alert_id] = record
        return record


class MemoryBatchStore(_Store):
    def get(self, batch_id):
        return self._state.batches.get(batch_id)

    def create(self, batch):
        record = replace(
            batch,
            id=self._storage._next_id('batch'),
            created_at=batch.created_at or timezone.now(),
        )
        self._state.batches[record.id] = record
        return record

    def list_for_product(self, product_id):
        batches = [b for b in self._state.batches.values() if b.product_id == product_id]
        return sorted(batches, key=fefo_key)

    def list_open(self, product_id):
        return [b for b in self.list_for_product(product_id) if b.is_open]

    def list_open_for_vendor(self, vendor_id):
        batches = [
            b for b in self._state.batches.values()
            if b.vendor_id == vendor_id and b.is_open
        ]
        return sorted(batches, key=fefo_key)

    def update_remaining(self, batch_id, new_remaining):
        batch = self._state.batches[batch_id]
        if not 0 <= new_remaining <= batch.quantity_received:
            raise ValueError(
                f"Batch {batch_id} remaining {new_remaining} outside "
                f"0..{batch.quantity_received}"
            )
        record = replace(batch, quantity_remaining=new_remaining)
        self._state.batches[batch_id] = record
        return record


class MemoryStockStorage:
    """
    Dict-backed StockStorage.

    Seed catalogue data with add_product() / add_location(); products and
    locations are owned by the host application in production.
    """

    def __init__(self, lock_timeout: float | None = None):
        if lock_timeout is None:
            lock_timeout = vendorstock_settings.LOCK_TIMEOUT_MS / 1000
        self.lock_timeout = lock_timeout
        self._state = _State()
        self._lock = threading.RLock()
        self._local = threading.local()

        self.products = MemoryProductStore(self)
        self.locations = MemoryLocationStore(self)
        self.movements = MemoryMovementStore(self)
        self.configs = MemoryConfigStore(self)
        self.alerts = MemoryAlertStore(self)
        self.batches = MemoryBatchStore(self)

    def _next_id(self, kind: str) -> int:
        value = self._state.sequences.get(kind, 0) + 1
        self._state.sequences[kind] = value
        return value

    @contextmanager
    def atomic(self) -> Iterator[None]:
        timeout = self.lock_timeout if self.lock_timeout > 0 else -1
        if not self._lock.acquire(timeout=timeout):
            raise ConcurrencyConflict(
                "Timed out waiting for stock lock",
                timeout_seconds=self.lock_timeout,
            )
        snapshot = self._state.copy()
        self._local.depth = getattr(self._local, 'depth', 0) + 1
        try:
            yield
        except BaseException:
            self._state = snapshot
            raise
        finally:
            self._local.depth -= 1
            self._lock.release()

    def in_transaction(self) -> bool:
        return getattr(self._local, 'depth', 0) > 0

    # ══════════════════════════════════════════════════════════════
    # SEEDING
    # ══════════════════════════════════════════════════════════════

    def add_product(self, vendor_id: str, name: str, stock: int = 0,
                    price: Decimal | str = '0', cost_price: Decimal | str | None = None,
                    **extra: Any) -> ProductRecord:
        """Register a catalogue product (host application concern)."""
        with self.atomic():
            product = ProductRecord(
                id=self._next_id('product'),
                vendor_id=vendor_id,
                name=name,
                stock=stock,
                price=Decimal(price),
                cost_price=Decimal(cost_price) if cost_price is not None else None,
                **extra,
            )
            self._state.products[product.id] = product
            return product

    def add_location(self, vendor_id: str, name: str, **extra: Any) -> LocationRecord:
        with self.atomic():
            location = LocationRecord(
                id=self._next_id('location'),
                vendor_id=vendor_id,
                name=name,
                **extra,
            )
            self._state.locations[location.id] = location
            return location

    def backdate_movement(self, movement_id: int, created_at: datetime) -> MovementRecord:
        """Move a ledger row in time. For analytics fixtures only."""
        with self.atomic():
            for i, movement in enumerate(self._state.movements):
                if movement.id == movement_id:
                    record = replace(movement, created_at=created_at)
                    self._state.movements[i] = record
                    return record
        raise KeyError(movement_id)
