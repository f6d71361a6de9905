"""
StockBatch model — lot tracking for products with expiry.

Usage:
    stock.record_stock_in(
        product.pk, 50,
        batch=BatchInfo(batch_number="LOT-2026-0223-A", expiry_date=date(2026, 3, 1)),
    )

Stock-out consumes batches first-expire-first-out when the product's
StockConfig has track_batches enabled.
"""

from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class StockBatchQuerySet(models.QuerySet):
    """Custom QuerySet for StockBatch with convenience filters."""

    def open(self):
        """Batches with remaining quantity."""
        return self.filter(quantity_remaining__gt=0)

    def fefo(self):
        """First-expire-first-out order; batches without expiry go last."""
        return self.order_by(
            F('expiry_date').asc(nulls_last=True), 'received_date', 'id'
        )

    def expiring_between(self, start, end):
        """Batches expiring within [start, end]."""
        return self.filter(expiry_date__gte=start, expiry_date__lte=end)

    def expired(self, today=None):
        """Batches past their expiry date."""
        return self.filter(expiry_date__lt=today or timezone.localdate())


class StockBatch(models.Model):
    """
    Lot of a product received at one time.

    Invariant: 0 <= quantity_remaining <= quantity_received.
    Exhausted batches (remaining = 0) stay for audit.
    """

    vendor_id = models.CharField(max_length=64, db_index=True, verbose_name=_('Vendor'))
    product = models.ForeignKey(
        'vendorstock.VendorProduct',
        on_delete=models.PROTECT,
        related_name='batches',
        verbose_name=_('Product'),
    )
    location = models.ForeignKey(
        'vendorstock.InventoryLocation',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='batches',
        verbose_name=_('Location'),
    )

    batch_number = models.CharField(
        max_length=64,
        blank=True,
        default='',
        verbose_name=_('Batch number'),
        help_text=_('Lot number from the supplier'),
    )

    quantity_received = models.PositiveIntegerField(verbose_name=_('Quantity received'))
    quantity_remaining = models.PositiveIntegerField(verbose_name=_('Quantity remaining'))

    received_date = models.DateField(default=timezone.localdate, verbose_name=_('Received on'))
    expiry_date = models.DateField(
        null=True,
        blank=True,
        db_index=True,
        verbose_name=_('Expiry date'),
        help_text=_('Last day the lot can be sold'),
    )
    warranty_end_date = models.DateField(null=True, blank=True, verbose_name=_('Warranty end'))

    purchase_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name=_('Purchase price'),
    )
    supplier_name = models.CharField(max_length=200, blank=True, default='', verbose_name=_('Supplier'))
    supplier_invoice = models.CharField(max_length=64, blank=True, default='', verbose_name=_('Supplier invoice'))
    notes = models.TextField(blank=True, default='', verbose_name=_('Notes'))

    created_at = models.DateTimeField(default=timezone.now, verbose_name=_('Created at'))

    objects = StockBatchQuerySet.as_manager()

    class Meta:
        verbose_name = _('Stock batch')
        verbose_name_plural = _('Stock batches')
        ordering = ['expiry_date', 'received_date']
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity_remaining__lte=F('quantity_received')),
                name='stock_batch_remaining_within_received',
            ),
        ]
        indexes = [
            models.Index(fields=['product', 'quantity_remaining'], name='vendorstock_product_2b9c1e_idx'),
        ]

    @property
    def is_expired(self) -> bool:
        """Is this batch past its expiry date?"""
        if self.expiry_date is None:
            return False
        return timezone.localdate() > self.expiry_date

    def __str__(self) -> str:
        expiry = f" (exp:{self.expiry_date})" if self.expiry_date else ""
        return f"Batch {self.batch_number or self.pk}{expiry}"
