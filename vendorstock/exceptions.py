"""
Exceptions for vendorstock.

All errors are StockError with a structured code for programmatic handling.
Subclasses group the codes by how a caller should react:

- StockValidationError: rejected before any mutation, report verbatim.
- InsufficientStock: no mutation happened, surface the available quantity.
- BatchIntegrityFault: counter and batches disagree, abort and investigate.
- ConcurrencyConflict: lock wait timed out, safe to retry.
- PersistenceFault: storage unavailable, internal error.
- OrderStockError: one or more lines of an order could not be deducted.
"""

from decimal import Decimal
from typing import Any


class StockError(Exception):
    """
    Structured exception for stock operations.

    Usage:
        try:
            stock.record_stock_out(product_id, 10)
        except StockError as e:
            if e.code == 'INSUFFICIENT_STOCK':
                print(f"Only {e.available} available")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    http_status = 400
    retryable = False

    _default_messages = {
        'INVALID_QUANTITY': 'Quantity must be a positive integer',
        'QUANTITY_TOO_LARGE': 'Quantity exceeds maximum allowed value',
        'PRODUCT_NOT_FOUND': 'Product not found',
        'LOCATION_NOT_FOUND': 'Inventory location not found',
        'BATCH_NOT_FOUND': 'Batch not found',
        'ALERT_NOT_FOUND': 'Alert not found',
        'VENDOR_MISMATCH': 'Resource belongs to another vendor',
        'INVALID_MOVEMENT_TYPE': 'Movement type not allowed for this direction',
        'INVALID_CONFIG': 'Invalid stock configuration',
        'INVALID_STATUS': 'Invalid status for this operation',
        'REASON_REQUIRED': 'Reason is required',
        'INSUFFICIENT_STOCK': 'Insufficient stock',
        'BATCH_INTEGRITY': 'Batch quantities do not cover the stock counter',
        'CONCURRENT_MODIFICATION': 'Concurrent modification detected',
        'PERSISTENCE_FAULT': 'Stock storage unavailable',
        'ORDER_STOCK_FAILED': 'Failed to deduct stock for order',
    }

    def __init__(self, code: str, message: str | None = None, **data: Any):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    @property
    def available(self) -> int:
        """Shortcut for data['available']."""
        return self.data.get('available', 0)

    @property
    def requested(self) -> int:
        """Shortcut for data['requested']."""
        return self.data.get('requested', 0)

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            }
        }


class StockValidationError(StockError):
    """Input rejected before any mutation."""

    _not_found = {'PRODUCT_NOT_FOUND', 'LOCATION_NOT_FOUND', 'BATCH_NOT_FOUND', 'ALERT_NOT_FOUND'}

    @property
    def http_status(self) -> int:
        return 404 if self.code in self._not_found else 400


class InsufficientStock(StockError):
    """Requested stock-out exceeds the current stock. Never retried."""

    def __init__(self, available: int, requested: int, **data: Any):
        super().__init__(
            'INSUFFICIENT_STOCK',
            f"Only {available} available, but {requested} requested",
            available=available,
            requested=requested,
            **data,
        )


class BatchIntegrityFault(StockError):
    """Open batches cannot cover a quantity the counter says exists."""

    http_status = 500

    def __init__(self, message: str | None = None, **data: Any):
        super().__init__('BATCH_INTEGRITY', message, **data)


class ConcurrencyConflict(StockError):
    """Lock wait timed out or retries exhausted. Transient."""

    http_status = 409
    retryable = True

    def __init__(self, message: str | None = None, **data: Any):
        super().__init__('CONCURRENT_MODIFICATION', message, **data)


class PersistenceFault(StockError):
    """Underlying store failed or is unavailable."""

    http_status = 500

    def __init__(self, message: str | None = None, **data: Any):
        super().__init__('PERSISTENCE_FAULT', message, **data)


class OrderStockError(StockError):
    """
    Aggregate failure of a multi-line order deduction.

    Attributes:
        failures: list of dicts with product_id, quantity and the nested error
    """

    def __init__(self, order_id: str, failures: list[dict[str, Any]]):
        super().__init__(
            'ORDER_STOCK_FAILED',
            f"Failed to deduct stock for order {order_id}",
            order_id=order_id,
            failures=failures,
        )

    @property
    def failures(self) -> list[dict[str, Any]]:
        return self.data['failures']

    @property
    def http_status(self) -> int:
        statuses = [f['error'].get('status', 400) for f in self.failures]
        return max(statuses, default=400)
