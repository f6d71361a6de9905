"""
Vendorstock Admin — read-mostly views for production debugging.

- VendorProduct: editable catalogue fields, stock read-only
- InventoryLocation: list + edit
- StockMovement: read-only audit trail
- StockBatch: read-only lot traceability
- StockConfig: thresholds (validated through the stock service)
- StockAlert: read-only with acknowledge / resolve / dismiss actions
"""

import logging

from django.contrib import admin, messages
from django.utils.translation import gettext_lazy as _

from vendorstock.exceptions import StockError
from vendorstock.models import (
    AlertStatus,
    InventoryLocation,
    StockAlert,
    StockBatch,
    StockConfig,
    StockMovement,
    VendorProduct,
)
from vendorstock.services.configs import EDITABLE_FIELDS

logger = logging.getLogger(__name__)


class ReadOnlyAdmin(admin.ModelAdmin):
    """Rows written only by the stock service."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =========================================================================
# PRODUCT / LOCATION
# =========================================================================

@admin.register(VendorProduct)
class VendorProductAdmin(admin.ModelAdmin):
    """Product admin. Stock only changes via the stock service."""

    list_display = ['name', 'vendor_id', 'stock', 'price', 'cost_price', 'is_active']
    list_filter = ['is_active', 'vendor_id']
    search_fields = ['name', 'vendor_id']
    readonly_fields = ['stock', 'created_at', 'updated_at']


@admin.register(InventoryLocation)
class InventoryLocationAdmin(admin.ModelAdmin):
    list_display = ['name', 'vendor_id', 'city', 'is_default', 'is_active']
    list_filter = ['is_default', 'is_active']
    search_fields = ['name', 'vendor_id']
    readonly_fields = ['created_at', 'updated_at']


# =========================================================================
# LEDGER / BATCHES (read-only)
# =========================================================================

@admin.register(StockMovement)
class StockMovementAdmin(ReadOnlyAdmin):
    """Immutable audit trail."""

    list_display = ['created_at', 'product', 'movement_type', 'delta',
                    'resulting_stock', 'reference_type', 'reference_id', 'reason']
    list_filter = ['movement_type', 'reference_type', 'created_at']
    search_fields = ['reason', 'reference_id', 'vendor_id']
    date_hierarchy = 'created_at'


@admin.register(StockBatch)
class StockBatchAdmin(ReadOnlyAdmin):
    """Lot traceability."""

    list_display = ['__str__', 'product', 'quantity_received', 'quantity_remaining',
                    'expiry_date', 'supplier_name', 'is_expired_display']
    list_filter = ['expiry_date', 'received_date']
    search_fields = ['batch_number', 'supplier_name', 'supplier_invoice']

    @admin.display(description=_('Expired?'), boolean=True)
    def is_expired_display(self, obj):
        return obj.is_expired


# =========================================================================
# CONFIG
# =========================================================================

@admin.register(StockConfig)
class StockConfigAdmin(admin.ModelAdmin):
    """Thresholds. Saved through the stock service so rules are checked."""

    list_display = ['product', 'low_stock_threshold', 'critical_stock_threshold',
                    'overstock_threshold', 'track_batches']
    list_filter = ['track_batches', 'enable_low_stock_alerts', 'enable_expiry_alerts']
    readonly_fields = ['product', 'created_at', 'updated_at']

    def has_add_permission(self, request):
        return False

    def save_model(self, request, obj, form, change):
        from vendorstock import stock

        changes = {name: form.cleaned_data[name] for name in form.changed_data if name in EDITABLE_FIELDS}
        try:
            stock.update_config(obj.product_id, **changes)
        except StockError as exc:
            self.message_user(request, exc.message, level=messages.ERROR)


# =========================================================================
# ALERTS
# =========================================================================

@admin.register(StockAlert)
class StockAlertAdmin(ReadOnlyAdmin):
    """Alerts with operator actions."""

    list_display = ['created_at', 'product', 'alert_type', 'severity', 'status', 'current_stock', 'message']
    list_filter = ['status', 'alert_type', 'severity']
    search_fields = ['message', 'vendor_id']
    actions = ['acknowledge_alerts', 'resolve_alerts', 'dismiss_alerts']

    def _apply(self, request, queryset, statuses, operation, label):
        count = 0
        for alert in queryset.filter(status__in=statuses):
            try:
                operation(alert.pk)
                count += 1
            except StockError as exc:
                logger.warning("%s: failed for alert %s: %s", label, alert.pk, exc)
        self.message_user(request, _('{count} alert(s) updated.').format(count=count))
        return count

    @admin.action(description=_('Acknowledge selected alerts'))
    def acknowledge_alerts(self, request, queryset):
        from vendorstock import stock

        by = str(getattr(request.user, 'pk', '') or 'admin')
        return self._apply(
            request, queryset, [AlertStatus.OPEN],
            lambda pk: stock.acknowledge_alert(pk, by=by), 'acknowledge_alerts',
        )

    @admin.action(description=_('Resolve selected alerts'))
    def resolve_alerts(self, request, queryset):
        from vendorstock import stock

        return self._apply(
            request, queryset, [AlertStatus.OPEN, AlertStatus.ACKNOWLEDGED],
            stock.resolve_alert, 'resolve_alerts',
        )

    @admin.action(description=_('Dismiss selected alerts'))
    def dismiss_alerts(self, request, queryset):
        from vendorstock import stock

        return self._apply(
            request, queryset, [AlertStatus.OPEN, AlertStatus.ACKNOWLEDGED],
            stock.dismiss_alert, 'dismiss_alerts',
        )
