"""
StockConfig model — per-product thresholds and tracking switches.

Created lazily with defaults from VENDORSTOCK settings the first time a
product is evaluated (get-or-create, one row per product).
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class StockConfig(models.Model):
    """Alert thresholds and tracking flags of one product."""

    product = models.OneToOneField(
        'vendorstock.VendorProduct',
        on_delete=models.CASCADE,
        related_name='stock_config',
        verbose_name=_('Product'),
    )

    # Thresholds
    low_stock_threshold = models.PositiveIntegerField(
        default=10,
        verbose_name=_('Low stock threshold'),
        help_text=_('low_stock alert when stock <= this value'),
    )
    critical_stock_threshold = models.PositiveIntegerField(
        default=3,
        verbose_name=_('Critical stock threshold'),
        help_text=_('critical_stock alert when stock <= this value'),
    )
    overstock_threshold = models.PositiveIntegerField(
        null=True,
        blank=True,
        verbose_name=_('Overstock threshold'),
        help_text=_('overstock alert when stock >= this value. Empty = disabled.'),
    )
    reorder_quantity = models.PositiveIntegerField(default=50, verbose_name=_('Reorder quantity'))

    # Expiry
    expiry_alert_days = models.PositiveIntegerField(
        default=30,
        verbose_name=_('Expiry alert days'),
        help_text=_('Days before expiry to raise expiring_soon'),
    )

    # Switches
    track_batches = models.BooleanField(default=False, verbose_name=_('Track batches'))
    enable_low_stock_alerts = models.BooleanField(default=True, verbose_name=_('Stock level alerts'))
    enable_expiry_alerts = models.BooleanField(default=True, verbose_name=_('Expiry alerts'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Stock configuration')
        verbose_name_plural = _('Stock configurations')

    def __str__(self) -> str:
        return f"Config {self.product_id}: low<={self.low_stock_threshold}"
