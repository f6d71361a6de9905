"""
Stock batches — lot creation and first-expire-first-out consumption.

Consumption runs inside the recorder's atomic() block, after the product
row lock, so batch quantities and the counter move together.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import date
from decimal import Decimal

from django.utils import timezone

from vendorstock.exceptions import BatchIntegrityFault
from vendorstock.expiry import expires_within, fefo_key
from vendorstock.protocols.records import BatchRecord, ProductRecord

logger = logging.getLogger('vendorstock')


@dataclass(frozen=True)
class BatchInfo:
    """Lot metadata supplied with a stock-in."""

    batch_number: str = ''
    expiry_date: date | None = None
    received_date: date | None = None
    warranty_end_date: date | None = None
    purchase_price: Decimal | None = None
    supplier_name: str = ''
    supplier_invoice: str = ''
    notes: str = ''


@dataclass(frozen=True)
class Allocation:
    """Quantity taken from one batch by a stock-out."""

    batch_id: int
    quantity: int
    remaining: int
    batch_number: str = ''
    expiry_date: date | None = None

    @property
    def exhausted(self) -> bool:
        return self.remaining == 0

    def as_dict(self) -> dict:
        data = asdict(self)
        data['expiry_date'] = self.expiry_date.isoformat() if self.expiry_date else None
        return data


class BatchTracker:
    """Batch lifecycle for products with track_batches enabled."""

    def __init__(self, storage):
        self.storage = storage

    def create_batch(self, product: ProductRecord, info: BatchInfo | None,
                     quantity: int, location_id: int | None = None) -> BatchRecord:
        """Attach a lot to a product. remaining starts at received."""
        info = info or BatchInfo()
        batch = self.storage.batches.create(BatchRecord(
            vendor_id=product.vendor_id,
            product_id=product.id,
            location_id=location_id,
            batch_number=info.batch_number,
            quantity_received=quantity,
            quantity_remaining=quantity,
            received_date=info.received_date or timezone.localdate(),
            expiry_date=info.expiry_date,
            warranty_end_date=info.warranty_end_date,
            purchase_price=info.purchase_price,
            supplier_name=info.supplier_name,
            supplier_invoice=info.supplier_invoice,
            notes=info.notes,
        ))
        logger.info(
            "stock.batch.created",
            extra={
                "product_id": product.id,
                "batch_id": batch.id,
                "batch_number": batch.batch_number,
                "qty": quantity,
                "expiry_date": str(batch.expiry_date),
            },
        )
        return batch

    def plan_consumption(self, product_id: int, quantity: int) -> list[tuple[BatchRecord, int]]:
        """
        Pick (batch, take) pairs covering quantity, nearest expiry first.

        Raises:
            BatchIntegrityFault: Open batches hold less than quantity
        """
        open_batches = sorted(self.storage.batches.list_open(product_id), key=fefo_key)
        available = sum(b.quantity_remaining for b in open_batches)
        if available < quantity:
            logger.error(
                "stock.batch.integrity",
                extra={
                    "product_id": product_id,
                    "requested": quantity,
                    "batch_remaining": available,
                },
            )
            raise BatchIntegrityFault(
                f"Open batches hold {available} units, {quantity} requested",
                product_id=product_id,
                requested=quantity,
                batch_remaining=available,
            )

        plan = []
        needed = quantity
        for batch in open_batches:
            if needed == 0:
                break
            take = min(batch.quantity_remaining, needed)
            plan.append((batch, take))
            needed -= take
        return plan

    def consume_for_stock_out(self, product_id: int, quantity: int) -> tuple[Allocation, ...]:
        """
        Decrement batches first-expire-first-out until quantity is covered.

        Nothing is written when the batches cannot cover the quantity.
        """
        allocations = []
        for batch, take in self.plan_consumption(product_id, quantity):
            updated = self.storage.batches.update_remaining(batch.id, batch.quantity_remaining - take)
            allocations.append(Allocation(
                batch_id=batch.id,
                quantity=take,
                remaining=updated.quantity_remaining,
                batch_number=batch.batch_number,
                expiry_date=batch.expiry_date,
            ))
        return tuple(allocations)

    def batches_for_product(self, product_id: int, include_exhausted: bool = True) -> list[BatchRecord]:
        if include_exhausted:
            return self.storage.batches.list_for_product(product_id)
        return self.storage.batches.list_open(product_id)

    def get_expiring_batches(self, vendor_id: str, days_ahead: int = 30,
                             today: date | None = None) -> list[BatchRecord]:
        """
        Open batches expiring within [today, today + days_ahead], soonest first.
        """
        today = today or timezone.localdate()
        batches = [
            b for b in self.storage.batches.list_open_for_vendor(vendor_id)
            if expires_within(b, today, days_ahead)
        ]
        return sorted(batches, key=fefo_key)

    def verify_batches(self, product: ProductRecord) -> int:
        """
        Difference between the stock counter and open batch totals.

        0 means consistent. Never corrects anything.
        """
        covered = sum(b.quantity_remaining for b in self.storage.batches.list_open(product.id))
        divergence = product.stock - covered
        if divergence:
            logger.warning(
                "stock.batch.integrity",
                extra={
                    "product_id": product.id,
                    "stock": product.stock,
                    "batch_remaining": covered,
                },
            )
        return divergence
