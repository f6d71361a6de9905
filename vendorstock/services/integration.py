"""
Order and bill hooks — translate sales-side events into stock movements.

Usage:
    from vendorstock import stock

    # When an order changes status
    stock.orders.on_status_change(order.id, old, new, lines=[
        OrderLine(product_id=item.product_id, quantity=item.quantity)
        for item in order.items
    ])

    # When a bill line is created, edited or deleted
    stock.bills.on_item_added(BillItem(bill.id, product_id, 3))
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from vendorstock.exceptions import (
    ConcurrencyConflict,
    OrderStockError,
    PersistenceFault,
    StockError,
    StockValidationError,
)
from vendorstock.models.enums import MovementType, ReferenceType

logger = logging.getLogger('vendorstock')

DEDUCT_STATUSES = frozenset({'confirmed', 'completed', 'delivered'})


@dataclass(frozen=True)
class OrderLine:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class BillItem:
    """Bill line. Only item_type == 'product' touches stock; vendor_id scopes it to one vendor."""

    bill_id: str
    product_id: int | None
    quantity: int | Decimal | str
    item_type: str = 'product'
    vendor_id: str | None = None


def should_deduct(previous_status: str | None, new_status: str) -> bool:
    """Deduct once, on entering a deducting status from any other."""
    return new_status in DEDUCT_STATUSES and previous_status not in DEDUCT_STATUSES


def _whole(quantity) -> int:
    """Bill quantities may arrive as strings or decimals; stock counts whole units."""
    try:
        value = Decimal(str(quantity))
    except ArithmeticError as e:
        raise StockValidationError('INVALID_QUANTITY', requested=str(quantity)) from e
    if value != value.to_integral_value():
        raise StockValidationError('INVALID_QUANTITY', requested=str(quantity))
    return int(value)


class OrderStockHooks:
    """Order confirmation → one sale movement per line, all or nothing."""

    def __init__(self, storage, recorder):
        self.storage = storage
        self.recorder = recorder

    def on_status_change(self, order_id, previous_status: str | None, new_status: str,
                         lines, vendor_id: str | None = None, performed_by: str | None = None):
        """
        Deduct stock for every line when an order is confirmed.

        Every line is attempted so the caller learns all failures at
        once; any failure rolls back the deductions already made.

        Returns:
            list[StockResult] (empty when the transition does not deduct)

        Raises:
            OrderStockError: One or more lines failed, nothing deducted
            PersistenceFault / ConcurrencyConflict: Storage failure, nothing deducted
        """
        if not should_deduct(previous_status, new_status):
            return []

        lines = list(lines)
        with self.storage.atomic():
            results = []
            failures = []
            for line in lines:
                try:
                    with self.storage.atomic():
                        results.append(self.recorder.record_stock_out(
                            line.product_id,
                            line.quantity,
                            movement_type=MovementType.SALE,
                            reference_type=ReferenceType.ORDER,
                            reference_id=order_id,
                            reason=f"Order {order_id} {new_status}",
                            vendor_id=vendor_id,
                            performed_by=performed_by,
                        ))
                except (PersistenceFault, ConcurrencyConflict):
                    raise
                except StockError as e:
                    failures.append({
                        'product_id': line.product_id,
                        'quantity': line.quantity,
                        'error': {**e.as_dict(), 'status': e.http_status},
                    })

            if failures:
                logger.error(
                    "stock.order.failed",
                    extra={
                        "order_id": order_id,
                        "lines": len(lines),
                        "failed": len(failures),
                        "codes": [f['error']['code'] for f in failures],
                    },
                )
                raise OrderStockError(order_id, failures)

        logger.info(
            "stock.order.deducted",
            extra={"order_id": order_id, "lines": len(results), "status": new_status},
        )
        return results


class BillStockHooks:
    """Bill line lifecycle → sale / return movements. Errors propagate."""

    def __init__(self, recorder):
        self.recorder = recorder

    def on_item_added(self, item: BillItem, performed_by: str | None = None):
        if not self._tracks(item):
            return None
        return self.recorder.record_stock_out(
            item.product_id,
            _whole(item.quantity),
            movement_type=MovementType.SALE,
            reference_type=ReferenceType.BILL,
            reference_id=item.bill_id,
            reason=f"Bill {item.bill_id} item added",
            vendor_id=item.vendor_id,
            performed_by=performed_by,
        )

    def on_item_quantity_changed(self, item: BillItem, old_quantity, new_quantity,
                                 performed_by: str | None = None):
        """Positive difference sells more, negative returns the surplus."""
        if not self._tracks(item):
            return None
        delta = _whole(new_quantity) - _whole(old_quantity)
        if delta > 0:
            return self.recorder.record_stock_out(
                item.product_id,
                delta,
                movement_type=MovementType.SALE,
                reference_type=ReferenceType.BILL,
                reference_id=item.bill_id,
                reason=f"Bill {item.bill_id} quantity increased",
                vendor_id=item.vendor_id,
                performed_by=performed_by,
            )
        if delta < 0:
            return self.recorder.record_stock_in(
                item.product_id,
                -delta,
                movement_type=MovementType.RETURN,
                reference_type=ReferenceType.BILL,
                reference_id=item.bill_id,
                reason=f"Bill {item.bill_id} quantity decreased",
                vendor_id=item.vendor_id,
                performed_by=performed_by,
            )
        return None

    def on_item_removed(self, item: BillItem, performed_by: str | None = None):
        if not self._tracks(item):
            return None
        return self.recorder.record_stock_in(
            item.product_id,
            _whole(item.quantity),
            movement_type=MovementType.RETURN,
            reference_type=ReferenceType.BILL,
            reference_id=item.bill_id,
            reason=f"Bill {item.bill_id} item removed",
            vendor_id=item.vendor_id,
            performed_by=performed_by,
        )

    def _tracks(self, item: BillItem) -> bool:
        return item.item_type == 'product' and item.product_id is not None
