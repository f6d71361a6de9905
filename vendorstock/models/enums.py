"""
Enums for vendorstock models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class MovementType(models.TextChoices):
    """
    Why a quantity changed.

    Inbound:  PURCHASE, RETURN, ADJUSTMENT, TRANSFER
    Outbound: SALE, ADJUSTMENT, TRANSFER, DAMAGE, EXPIRED
    """
    PURCHASE = 'purchase', _('Purchase')
    SALE = 'sale', _('Sale')
    RETURN = 'return', _('Return')
    ADJUSTMENT = 'adjustment', _('Adjustment')
    TRANSFER = 'transfer', _('Transfer')
    DAMAGE = 'damage', _('Damage')
    EXPIRED = 'expired', _('Expired')


INBOUND_TYPES = frozenset({
    MovementType.PURCHASE,
    MovementType.RETURN,
    MovementType.ADJUSTMENT,
    MovementType.TRANSFER,
})

OUTBOUND_TYPES = frozenset({
    MovementType.SALE,
    MovementType.ADJUSTMENT,
    MovementType.TRANSFER,
    MovementType.DAMAGE,
    MovementType.EXPIRED,
})


class ReferenceType(models.TextChoices):
    """What caused a movement."""
    ORDER = 'order', _('Order')
    BILL = 'bill', _('Bill')
    MANUAL = 'manual', _('Manual')


class AlertType(models.TextChoices):
    """Alert kinds. Expiry alerts are keyed per batch, the rest per product."""
    OUT_OF_STOCK = 'out_of_stock', _('Out of stock')
    CRITICAL_STOCK = 'critical_stock', _('Critical stock')
    LOW_STOCK = 'low_stock', _('Low stock')
    OVERSTOCK = 'overstock', _('Overstock')
    EXPIRING_SOON = 'expiring_soon', _('Expiring soon')
    EXPIRED = 'expired', _('Expired')


THRESHOLD_ALERT_TYPES = frozenset({
    AlertType.OUT_OF_STOCK,
    AlertType.CRITICAL_STOCK,
    AlertType.LOW_STOCK,
    AlertType.OVERSTOCK,
})

EXPIRY_ALERT_TYPES = frozenset({
    AlertType.EXPIRING_SOON,
    AlertType.EXPIRED,
})


class AlertStatus(models.TextChoices):
    """
    Alert lifecycle status.

    open → acknowledged → resolved
    open/acknowledged → dismissed
    """
    OPEN = 'open', _('Open')
    ACKNOWLEDGED = 'acknowledged', _('Acknowledged')
    RESOLVED = 'resolved', _('Resolved')
    DISMISSED = 'dismissed', _('Dismissed')


ACTIVE_ALERT_STATUSES = frozenset({AlertStatus.OPEN, AlertStatus.ACKNOWLEDGED})


class AlertSeverity(models.TextChoices):
    LOW = 'low', _('Low')
    MEDIUM = 'medium', _('Medium')
    HIGH = 'high', _('High')
    CRITICAL = 'critical', _('Critical')
