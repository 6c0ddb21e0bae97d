"""
Buildman Admin.

Provides views for site office debugging:
- StockMovement: read-only ledger (append-only, never edited)
- StockBalance: read-only with "recalculate from ledger" action
- ConsumptionStandard: list + edit
- InventoryUnit: list + edit (allocated_cost is written by costing)
"""

import logging

from django.contrib import admin
from django.db import transaction
from django.utils.translation import gettext_lazy as _

from buildman.models import ConsumptionStandard, InventoryUnit, StockBalance, StockMovement

logger = logging.getLogger(__name__)


class ReadOnlyAdminMixin:
    """Rows change only through the stock service."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =========================================================================
# STOCK MOVEMENT ADMIN (read-only ledger)
# =========================================================================

@admin.register(StockMovement)
class StockMovementAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """StockMovement admin — read-only. Immutable audit trail."""

    list_display = ['occurred_at', 'project_id', 'material_id', 'direction',
                    'quantity', 'balance_after', 'reference_display', 'performed_by']
    list_filter = ['direction', 'reference_kind', 'occurred_at']
    search_fields = ['notes', 'invoice_id']
    readonly_fields = ['material_id', 'project_id', 'direction', 'quantity',
                       'reference_kind', 'reference_id', 'invoice_id', 'sequence',
                       'balance_after', 'performed_by', 'occurred_at', 'notes']
    date_hierarchy = 'occurred_at'
    ordering = ['-occurred_at', '-sequence']

    @admin.display(description=_('Reference'))
    def reference_display(self, obj):
        if not obj.reference_id:
            return obj.get_reference_kind_display()
        return f"{obj.get_reference_kind_display()} #{obj.reference_id}"


# =========================================================================
# STOCK BALANCE ADMIN (read-only with recalculate action)
# =========================================================================

@admin.register(StockBalance)
class StockBalanceAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """StockBalance admin — read-only cache of the ledger."""

    list_display = ['project_id', 'material_id', 'quantity', 'last_sequence', 'updated_at']
    list_filter = ['project_id']
    readonly_fields = ['material_id', 'project_id', 'quantity', 'last_sequence',
                       'created_at', 'updated_at']
    ordering = ['project_id', 'material_id']
    actions = ['recalculate_balances']

    @admin.action(description=_('Recalculate from ledger'))
    def recalculate_balances(self, request, queryset):
        count = 0
        for pk in queryset.values_list('pk', flat=True):
            with transaction.atomic():
                balance = StockBalance.objects.select_for_update().get(pk=pk)
                if balance.quantity != balance.ledger_total():
                    balance.recalculate()
                    count += 1

        logger.info(
            "stock.admin.recalculated",
            extra={"checked": queryset.count(), "repaired": count, "user_id": request.user.pk},
        )
        self.message_user(request, _('{count} balance(s) repaired.').format(count=count))


# =========================================================================
# CONSUMPTION STANDARD ADMIN
# =========================================================================

@admin.register(ConsumptionStandard)
class ConsumptionStandardAdmin(admin.ModelAdmin):
    """ConsumptionStandard admin — BOQ baselines."""

    list_display = ['project_id', 'material_id', 'standard_quantity', 'unit',
                    'tolerance_fraction', 'max_allowed_display']
    list_filter = ['project_id']
    search_fields = ['description']
    readonly_fields = ['created_at', 'updated_at']

    @admin.display(description=_('Max allowed'))
    def max_allowed_display(self, obj):
        return obj.max_allowed


# =========================================================================
# INVENTORY UNIT ADMIN
# =========================================================================

@admin.register(InventoryUnit)
class InventoryUnitAdmin(admin.ModelAdmin):
    """InventoryUnit admin — sellable units and their allocated cost."""

    list_display = ['project_id', 'unit_number', 'unit_type', 'floor_area', 'area_unit',
                    'is_sold', 'sold_price', 'allocated_cost', 'profit_loss_display']
    list_filter = ['project_id', 'is_sold', 'unit_type']
    search_fields = ['unit_number', 'buyer_name']
    readonly_fields = ['allocated_cost', 'created_at', 'updated_at']

    @admin.display(description=_('Profit/Loss'))
    def profit_loss_display(self, obj):
        value = obj.profit_loss
        return '-' if value is None else value
