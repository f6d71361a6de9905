"""
Expiry helpers — isolated, testable, reusable.

Decides batch consumption order and expiry windows from a batch's dates.

Examples:
    - Milk lot expiring tomorrow is consumed before one expiring next week
    - Lot without expiry date is consumed after every dated lot
    - Two lots with the same expiry: the one received first goes first
"""

from datetime import date, timedelta


def fefo_key(batch) -> tuple:
    """
    Sort key for first-expire-first-out consumption.

    Args:
        batch: Needs .expiry_date (or None), .received_date and .id

    Returns:
        Tuple ordering nearest expiry first, undated last, then oldest received
    """
    expiry = batch.expiry_date
    return (
        expiry is None,
        expiry or date.max,
        batch.received_date,
        batch.id or 0,
    )


def is_expired(batch, today: date) -> bool:
    """Is the batch past its expiry date? Undated batches never expire."""
    if batch.expiry_date is None:
        return False
    return batch.expiry_date < today


def expires_within(batch, today: date, days: int) -> bool:
    """
    Does the batch expire within [today, today + days]?

    Already-expired batches are not "expiring", see is_expired().
    """
    if batch.expiry_date is None:
        return False
    return today <= batch.expiry_date <= today + timedelta(days=days)
