"""Django app configuration for vendorstock."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class VendorStockConfig(AppConfig):
    """Configuration for vendorstock app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "vendorstock"
    verbose_name = _("Vendor Stock")
