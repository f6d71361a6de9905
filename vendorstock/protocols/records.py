"""
Storage records — plain snapshots exchanged between services and storage.

Records are frozen: services never mutate them, they ask the store to
write and get a fresh record back. `id` and `created_at` are None until
the store assigns them on create().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any


@dataclass(frozen=True)
class ProductRecord:
    """Vendor product with its stock counter."""

    id: int
    vendor_id: str
    name: str
    stock: int
    price: Decimal = Decimal('0')
    cost_price: Decimal | None = None
    is_active: bool = True

    @property
    def unit_value(self) -> Decimal:
        """Value of one unit for valuation (cost, else selling price)."""
        return self.cost_price if self.cost_price is not None else self.price


@dataclass(frozen=True)
class LocationRecord:
    id: int
    vendor_id: str
    name: str
    is_default: bool = False
    is_active: bool = True


@dataclass(frozen=True)
class MovementRecord:
    """One immutable signed change of a product's stock."""

    vendor_id: str
    product_id: int
    movement_type: str
    delta: int
    previous_stock: int
    resulting_stock: int
    reason: str
    reference_type: str = 'manual'
    reference_id: str = ''
    notes: str = ''
    location_id: int | None = None
    batch_id: int | None = None
    unit_cost: Decimal | None = None
    total_value: Decimal | None = None
    performed_by: str = ''
    metadata: dict[str, Any] = field(default_factory=dict)
    id: int | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class BatchRecord:
    """Lot of a product. 0 <= quantity_remaining <= quantity_received."""

    vendor_id: str
    product_id: int
    quantity_received: int
    quantity_remaining: int
    received_date: date
    batch_number: str = ''
    expiry_date: date | None = None
    warranty_end_date: date | None = None
    location_id: int | None = None
    purchase_price: Decimal | None = None
    supplier_name: str = ''
    supplier_invoice: str = ''
    notes: str = ''
    id: int | None = None
    created_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.quantity_remaining > 0


@dataclass(frozen=True)
class ConfigRecord:
    """Per-product thresholds and switches."""

    product_id: int
    low_stock_threshold: int
    critical_stock_threshold: int
    reorder_quantity: int
    expiry_alert_days: int
    overstock_threshold: int | None = None
    track_batches: bool = False
    enable_low_stock_alerts: bool = True
    enable_expiry_alerts: bool = True
    id: int | None = None


@dataclass(frozen=True)
class AlertRecord:
    vendor_id: str
    product_id: int
    alert_type: str
    severity: str
    message: str
    status: str = 'open'
    batch_id: int | None = None
    current_stock: int | None = None
    threshold: int | None = None
    expiry_date: date | None = None
    acknowledged_by: str = ''
    acknowledged_at: datetime | None = None
    resolved_at: datetime | None = None
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
