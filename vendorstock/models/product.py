"""
VendorProduct model — a vendor's sellable product and its stock counter.
"""

from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _


class VendorProduct(models.Model):
    """
    Product owned by one vendor.

    Rules:
    - stock is a cache of the movement ledger, never edited directly
    - stock >= 0 at rest (enforced by a check constraint)
    - Only the stock recorder writes stock, under a row lock
    """

    # Tenant (vendors live in the host application)
    vendor_id = models.CharField(
        max_length=64,
        db_index=True,
        verbose_name=_('Vendor'),
    )
    name = models.CharField(max_length=200, verbose_name=_('Name'))
    unit = models.CharField(max_length=20, default='unit', verbose_name=_('Unit'))

    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0'),
        verbose_name=_('Selling price'),
    )
    cost_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name=_('Cost price'),
        help_text=_('Used for stock valuation. Empty = selling price.'),
    )

    stock = models.PositiveIntegerField(default=0, verbose_name=_('Stock'))
    is_active = models.BooleanField(default=True, verbose_name=_('Active'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Vendor product')
        verbose_name_plural = _('Vendor products')
        constraints = [
            models.CheckConstraint(
                condition=Q(stock__gte=0),
                name='vendor_product_stock_non_negative',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} [{self.vendor_id}]: {self.stock}"
