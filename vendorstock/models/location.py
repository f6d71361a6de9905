"""
InventoryLocation model — where a vendor keeps stock.

Locations are tags on movements and batches. Stock counters are kept
per product, not per location.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class InventoryLocation(models.Model):
    """
    Store, warehouse or branch of a vendor.

    Examples:
        InventoryLocation.objects.create(vendor_id='v1', name='Main Store', is_default=True)
        InventoryLocation.objects.create(vendor_id='v1', name='Warehouse')
    """

    vendor_id = models.CharField(max_length=64, db_index=True, verbose_name=_('Vendor'))
    name = models.CharField(max_length=100, verbose_name=_('Name'))
    address = models.CharField(max_length=255, blank=True, default='', verbose_name=_('Address'))
    city = models.CharField(max_length=100, blank=True, default='', verbose_name=_('City'))
    is_default = models.BooleanField(default=False, verbose_name=_('Default location'))
    is_active = models.BooleanField(default=True, verbose_name=_('Active'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Inventory location')
        verbose_name_plural = _('Inventory locations')
        ordering = ['vendor_id', 'name']

    def __str__(self) -> str:
        return self.name
