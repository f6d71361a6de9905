"""
StockMovement model — Immutable ledger of stock changes.
"""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from vendorstock.models.enums import MovementType, ReferenceType


class StockMovement(models.Model):
    """
    Immutable record of a stock change.

    Rules:
    - NEVER update() or delete()
    - Corrections are new movements with inverse delta (movement_type=return)
    - resulting_stock is the counter right after this movement, so the
      ledger of one product is a verifiable running total
    """

    vendor_id = models.CharField(max_length=64, db_index=True, verbose_name=_('Vendor'))
    product = models.ForeignKey(
        'vendorstock.VendorProduct',
        on_delete=models.PROTECT,
        related_name='movements',
        verbose_name=_('Product'),
    )
    location = models.ForeignKey(
        'vendorstock.InventoryLocation',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='movements',
        verbose_name=_('Location'),
    )
    batch = models.ForeignKey(
        'vendorstock.StockBatch',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='movements',
        verbose_name=_('Batch'),
    )

    movement_type = models.CharField(
        max_length=20,
        choices=MovementType.choices,
        verbose_name=_('Type'),
    )
    delta = models.IntegerField(
        verbose_name=_('Delta'),
        help_text=_('Positive = in, Negative = out'),
    )
    previous_stock = models.PositiveIntegerField(verbose_name=_('Previous stock'))
    resulting_stock = models.PositiveIntegerField(verbose_name=_('Resulting stock'))

    unit_cost = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name=_('Unit cost'),
    )
    total_value = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name=_('Total value'),
    )

    # External reference (order, bill, manual)
    reference_type = models.CharField(
        max_length=20,
        choices=ReferenceType.choices,
        default=ReferenceType.MANUAL,
        verbose_name=_('Reference type'),
    )
    reference_id = models.CharField(max_length=64, blank=True, default='', verbose_name=_('Reference'))

    reason = models.CharField(max_length=255, verbose_name=_('Reason'))
    notes = models.TextField(blank=True, default='', verbose_name=_('Notes'))
    metadata = models.JSONField(default=dict, blank=True, verbose_name=_('Metadata'))

    performed_by = models.CharField(max_length=64, blank=True, default='', verbose_name=_('Performed by'))
    created_at = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Date/Time'))

    class Meta:
        verbose_name = _('Stock movement')
        verbose_name_plural = _('Stock movements')
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['product', 'created_at'], name='vendorstock_product_8f41d0_idx'),
            models.Index(fields=['vendor_id', 'created_at'], name='vendorstock_vendor__5a7e32_idx'),
        ]

    def save(self, *args, **kwargs):
        """Insert only — movements are immutable."""
        if self.pk:
            raise ValueError(
                "Stock movements are immutable. "
                "To correct, record a new movement with inverse delta."
            )
        if not self.reason:
            raise ValueError("Reason is required")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Prevent deletion — movements are immutable."""
        raise ValueError(
            "Stock movements are immutable. "
            "To reverse, record a new movement with inverse delta."
        )

    def __str__(self) -> str:
        signal = '+' if self.delta > 0 else ''
        return f"{signal}{self.delta} | {self.reason}"
