"""
StockAlert model — threshold and expiry alerts.

Alerts are opened by the alert engine after every movement and by the
expiry sweep. Operators acknowledge, resolve or dismiss them.
"""

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from vendorstock.models.enums import AlertSeverity, AlertStatus, AlertType

_ACTIVE = Q(status__in=[AlertStatus.OPEN, AlertStatus.ACKNOWLEDGED])


class StockAlert(models.Model):
    """
    Alert about a product (stock levels) or one of its batches (expiry).

    At most one active (open or acknowledged) alert exists per
    (product, type) for stock levels and per (batch, type) for expiry.
    Resolved and dismissed alerts are terminal.
    """

    vendor_id = models.CharField(max_length=64, db_index=True, verbose_name=_('Vendor'))
    product = models.ForeignKey(
        'vendorstock.VendorProduct',
        on_delete=models.CASCADE,
        related_name='alerts',
        verbose_name=_('Product'),
    )
    batch = models.ForeignKey(
        'vendorstock.StockBatch',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='alerts',
        verbose_name=_('Batch'),
    )

    alert_type = models.CharField(max_length=20, choices=AlertType.choices, verbose_name=_('Type'))
    severity = models.CharField(
        max_length=10,
        choices=AlertSeverity.choices,
        default=AlertSeverity.MEDIUM,
        verbose_name=_('Severity'),
    )
    status = models.CharField(
        max_length=20,
        choices=AlertStatus.choices,
        default=AlertStatus.OPEN,
        db_index=True,
        verbose_name=_('Status'),
    )
    message = models.TextField(verbose_name=_('Message'))

    # Context at the last evaluation
    current_stock = models.IntegerField(null=True, blank=True, verbose_name=_('Current stock'))
    threshold = models.IntegerField(null=True, blank=True, verbose_name=_('Threshold'))
    expiry_date = models.DateField(null=True, blank=True, verbose_name=_('Expiry date'))

    acknowledged_by = models.CharField(max_length=64, blank=True, default='', verbose_name=_('Acknowledged by'))
    acknowledged_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Acknowledged at'))
    resolved_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Resolved at'))

    created_at = models.DateTimeField(default=timezone.now, verbose_name=_('Created at'))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_('Updated at'))

    class Meta:
        verbose_name = _('Stock alert')
        verbose_name_plural = _('Stock alerts')
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['product', 'alert_type'],
                condition=_ACTIVE & Q(batch__isnull=True),
                name='unique_active_product_alert',
            ),
            models.UniqueConstraint(
                fields=['batch', 'alert_type'],
                condition=_ACTIVE & Q(batch__isnull=False),
                name='unique_active_batch_alert',
            ),
        ]
        indexes = [
            models.Index(fields=['vendor_id', 'status'], name='vendorstock_vendor__c3e8a1_idx'),
            models.Index(fields=['product', 'status'], name='vendorstock_product_47d2f5_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.alert_type} [{self.status}]: {self.message}"
