"""
Stock movements — the only code path that changes a product's stock.

Every change runs inside storage.atomic() with the product row locked:
counter update, batch bookkeeping, ledger row and alert evaluation commit
together or not at all.
"""

import logging
from dataclasses import asdict, dataclass, field
from decimal import Decimal

from vendorstock.conf import vendorstock_settings
from vendorstock.exceptions import ConcurrencyConflict, InsufficientStock, StockValidationError
from vendorstock.models.enums import INBOUND_TYPES, OUTBOUND_TYPES, MovementType, ReferenceType
from vendorstock.protocols.records import BatchRecord, MovementRecord, ProductRecord
from vendorstock.services.batches import Allocation, BatchInfo

logger = logging.getLogger('vendorstock')


@dataclass(frozen=True)
class StockResult:
    """Outcome of one recorded movement."""

    movement: MovementRecord
    new_stock: int
    batch: BatchRecord | None = None
    allocations: tuple[Allocation, ...] = ()


@dataclass(frozen=True)
class LedgerAudit:
    """Replay of a product's ledger against its live counter."""

    product_id: int
    stock: int
    replayed: int
    movement_count: int
    broken_links: list[int] = field(default_factory=list)

    @property
    def consistent(self) -> bool:
        return self.stock == self.replayed and not self.broken_links


class StockRecorder:
    """Stock-in, stock-out and recount, each one ledger row."""

    def __init__(self, storage, configs, batches, alerts, settings=None):
        self.storage = storage
        self.configs = configs
        self.batches = batches
        self.alerts = alerts
        self.settings = settings or vendorstock_settings

    # ══════════════════════════════════════════════════════════════
    # MOVEMENTS
    # ══════════════════════════════════════════════════════════════

    def record_stock_in(self, product_id: int, quantity: int, *,
                        movement_type: str = MovementType.PURCHASE,
                        reference_type: str = ReferenceType.MANUAL,
                        reference_id: str | None = None,
                        reason: str | None = None,
                        notes: str = '',
                        vendor_id: str | None = None,
                        location_id: int | None = None,
                        unit_cost: Decimal | None = None,
                        performed_by: str | None = None,
                        batch: BatchInfo | None = None) -> StockResult:
        """
        Add units to a product.

        Products with track_batches get a batch for the received units,
        built from `batch` or unlabeled when no lot info is given.

        Raises:
            StockValidationError: Bad quantity, type, product, location or vendor
            ConcurrencyConflict: Lock wait timed out after all retries
        """
        self._validate_quantity(quantity)
        self._validate_type(movement_type, INBOUND_TYPES, 'in')

        def run():
            with self.storage.atomic():
                product = self._lock_product(product_id, vendor_id)
                self._check_location(product, location_id)
                config = self.configs.ensure(product.id)

                new_stock = product.stock + quantity
                product = self.storage.products.update_stock(product.id, new_stock)

                created = None
                metadata = {}
                if config.track_batches:
                    created = self.batches.create_batch(product, batch, quantity, location_id=location_id)
                    metadata['batches'] = [{
                        'batch_id': created.id,
                        'quantity': quantity,
                        'batch_number': created.batch_number,
                        'expiry_date': created.expiry_date.isoformat() if created.expiry_date else None,
                    }]
                elif batch is not None:
                    # Untracked products keep lot info on the ledger row only
                    metadata['lot'] = {
                        k: str(v) if v is not None else None for k, v in asdict(batch).items()
                    }

                movement = self._append(
                    product, movement_type, quantity, new_stock,
                    reference_type=reference_type, reference_id=reference_id,
                    reason=reason, notes=notes, location_id=location_id,
                    batch_id=created.id if created else None,
                    unit_cost=unit_cost, performed_by=performed_by, metadata=metadata,
                )
                self.alerts.evaluate(product, new_stock)

            logger.info(
                "stock.in",
                extra={
                    "product_id": product.id,
                    "movement_id": movement.id,
                    "movement_type": str(movement_type),
                    "qty": quantity,
                    "stock": new_stock,
                },
            )
            return StockResult(movement=movement, new_stock=new_stock, batch=created)

        return self._run(run)

    def record_stock_out(self, product_id: int, quantity: int, *,
                         movement_type: str = MovementType.SALE,
                         reference_type: str = ReferenceType.MANUAL,
                         reference_id: str | None = None,
                         reason: str | None = None,
                         notes: str = '',
                         vendor_id: str | None = None,
                         location_id: int | None = None,
                         unit_cost: Decimal | None = None,
                         performed_by: str | None = None) -> StockResult:
        """
        Remove units from a product.

        Raises:
            StockValidationError: Bad quantity, type, product, location or vendor
            InsufficientStock: quantity > current stock (nothing written)
            BatchIntegrityFault: Tracked product whose open batches are short
            ConcurrencyConflict: Lock wait timed out after all retries
        """
        self._validate_quantity(quantity)
        self._validate_type(movement_type, OUTBOUND_TYPES, 'out')

        def run():
            with self.storage.atomic():
                product = self._lock_product(product_id, vendor_id)
                self._check_location(product, location_id)
                config = self.configs.ensure(product.id)

                if quantity > product.stock:
                    raise InsufficientStock(product.stock, quantity, product_id=product.id)

                allocations = ()
                if config.track_batches:
                    allocations = self.batches.consume_for_stock_out(product.id, quantity)

                new_stock = product.stock - quantity
                product = self.storage.products.update_stock(product.id, new_stock)

                metadata = {}
                if allocations:
                    metadata['batches'] = [a.as_dict() for a in allocations]

                movement = self._append(
                    product, movement_type, -quantity, new_stock,
                    reference_type=reference_type, reference_id=reference_id,
                    reason=reason, notes=notes, location_id=location_id,
                    batch_id=allocations[0].batch_id if len(allocations) == 1 else None,
                    unit_cost=unit_cost, performed_by=performed_by, metadata=metadata,
                )

                for allocation in allocations:
                    if allocation.exhausted:
                        self.alerts.resolve_batch_alerts(self.storage.batches.get(allocation.batch_id))
                self.alerts.evaluate(product, new_stock)

            logger.info(
                "stock.out",
                extra={
                    "product_id": product.id,
                    "movement_id": movement.id,
                    "movement_type": str(movement_type),
                    "qty": quantity,
                    "stock": new_stock,
                    "batches": len(allocations),
                },
            )
            return StockResult(movement=movement, new_stock=new_stock, allocations=allocations)

        return self._run(run)

    def adjust_stock(self, product_id: int, new_quantity: int, *, reason: str,
                     vendor_id: str | None = None, location_id: int | None = None,
                     notes: str = '', performed_by: str | None = None,
                     batch: BatchInfo | None = None) -> StockResult | None:
        """
        Physical recount: set stock to new_quantity.

        Records an `adjustment` stock-in or stock-out for the difference.
        Lot info (batch) is accepted only when the recount adds stock.

        Returns:
            StockResult, or None when the count already matches

        Raises:
            StockValidationError('REASON_REQUIRED'): If reason is empty
            StockValidationError('INVALID_QUANTITY'): Negative count, or lot info on a downward recount
        """
        if not reason:
            raise StockValidationError('REASON_REQUIRED')
        if not isinstance(new_quantity, int) or isinstance(new_quantity, bool) or new_quantity < 0:
            raise StockValidationError('INVALID_QUANTITY', requested=new_quantity)

        reason = f"Adjustment: {reason}"
        common = dict(
            movement_type=MovementType.ADJUSTMENT,
            reason=reason,
            notes=notes,
            vendor_id=vendor_id,
            location_id=location_id,
            performed_by=performed_by,
        )

        def run():
            with self.storage.atomic():
                product = self._lock_product(product_id, vendor_id)
                delta = new_quantity - product.stock
                if delta == 0:
                    return None
                if delta > 0:
                    result = self.record_stock_in(product_id, delta, batch=batch, **common)
                elif batch is not None:
                    raise StockValidationError(
                        'INVALID_QUANTITY',
                        "Lot info only applies to a recount that adds stock",
                        requested=new_quantity,
                        available=product.stock,
                    )
                else:
                    result = self.record_stock_out(product_id, -delta, **common)

            logger.info(
                "stock.adjust",
                extra={"product_id": product_id, "delta": delta, "reason": reason},
            )
            return result

        return self._run(run)

    # ══════════════════════════════════════════════════════════════
    # LEDGER
    # ══════════════════════════════════════════════════════════════

    def movements_for_product(self, product_id: int, since=None, until=None) -> list[MovementRecord]:
        """Ledger of a product, oldest first."""
        return self.storage.movements.list_for_product(product_id, since=since, until=until)

    def movements_for_vendor(self, vendor_id: str, **filters) -> list[MovementRecord]:
        """Ledger of a vendor, newest first. Filters: product_id, movement_type, since, until."""
        return self.storage.movements.list_for_vendor(vendor_id, **filters)

    def verify_ledger(self, product_id: int) -> LedgerAudit:
        """
        Replay the ledger and compare with the stock counter.

        Reports only, never corrects.
        """
        with self.storage.atomic():
            product = self.storage.products.get(product_id)
            if product is None:
                raise StockValidationError('PRODUCT_NOT_FOUND', product_id=product_id)
            movements = self.storage.movements.list_for_product(product_id)

        replayed = 0
        broken = []
        for movement in movements:
            if movement.previous_stock != replayed or movement.resulting_stock != replayed + movement.delta:
                broken.append(movement.id)
            replayed += movement.delta

        audit = LedgerAudit(
            product_id=product_id,
            stock=product.stock,
            replayed=replayed,
            movement_count=len(movements),
            broken_links=broken,
        )
        if not audit.consistent:
            logger.warning(
                "stock.ledger.mismatch",
                extra={
                    "product_id": product_id,
                    "stock": product.stock,
                    "replayed": replayed,
                    "broken_links": broken,
                },
            )
        return audit

    # ══════════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════════

    def _validate_quantity(self, quantity) -> None:
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            raise StockValidationError('INVALID_QUANTITY', requested=quantity)
        if quantity > self.settings.MAX_MOVEMENT_QUANTITY:
            raise StockValidationError(
                'QUANTITY_TOO_LARGE',
                requested=quantity,
                maximum=self.settings.MAX_MOVEMENT_QUANTITY,
            )

    def _validate_type(self, movement_type, allowed, direction: str) -> None:
        if movement_type not in allowed:
            raise StockValidationError(
                'INVALID_MOVEMENT_TYPE',
                f"'{movement_type}' is not a stock-{direction} movement type",
                movement_type=str(movement_type),
                direction=direction,
            )

    def _lock_product(self, product_id: int, vendor_id: str | None) -> ProductRecord:
        product = self.storage.products.get_for_update(product_id)
        if product is None:
            raise StockValidationError('PRODUCT_NOT_FOUND', product_id=product_id)
        if vendor_id is not None and product.vendor_id != vendor_id:
            raise StockValidationError('VENDOR_MISMATCH', product_id=product_id, vendor_id=vendor_id)
        return product

    def _check_location(self, product: ProductRecord, location_id: int | None) -> None:
        if location_id is None:
            return
        location = self.storage.locations.get(location_id)
        if location is None:
            raise StockValidationError('LOCATION_NOT_FOUND', location_id=location_id)
        if location.vendor_id != product.vendor_id:
            raise StockValidationError(
                'VENDOR_MISMATCH',
                "Location belongs to another vendor",
                location_id=location_id,
                vendor_id=product.vendor_id,
            )

    def _append(self, product, movement_type, delta, new_stock, *, reference_type,
                reference_id, reason, notes, location_id, batch_id, unit_cost,
                performed_by, metadata) -> MovementRecord:
        total_value = None
        if unit_cost is not None:
            unit_cost = Decimal(unit_cost)
            total_value = unit_cost * abs(delta)
        return self.storage.movements.create(MovementRecord(
            vendor_id=product.vendor_id,
            product_id=product.id,
            movement_type=str(movement_type),
            delta=delta,
            previous_stock=new_stock - delta,
            resulting_stock=new_stock,
            reason=reason or MovementType(movement_type).label,
            reference_type=str(reference_type),
            reference_id=str(reference_id) if reference_id is not None else '',
            notes=notes,
            location_id=location_id,
            batch_id=batch_id,
            unit_cost=unit_cost,
            total_value=total_value,
            performed_by=performed_by or '',
            metadata=metadata,
        ))

    def _run(self, fn):
        """
        Run fn, retrying ConcurrencyConflict when this is the outermost call.

        Inside a caller's transaction the conflict propagates: retrying a
        savepoint cannot release locks the outer transaction already holds.
        """
        if self.storage.in_transaction():
            return fn()

        attempts = max(1, self.settings.CONFLICT_RETRIES)
        for attempt in range(1, attempts + 1):
            try:
                return fn()
            except ConcurrencyConflict:
                if attempt == attempts:
                    raise
                logger.debug("stock.retry", extra={"attempt": attempt})
