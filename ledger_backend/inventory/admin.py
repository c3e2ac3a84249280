# inventory/admin.py

from django.contrib import admin

from inventory.models.item import InventoryItem
from inventory.models.stock_event import StockEvent


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ("sku", "name", "kind", "unit", "company", "is_active")
    list_filter = ("company", "kind", "is_active")
    search_fields = ("sku", "name")
    ordering = ("company", "sku")
    readonly_fields = ("created_at", "updated_at")


# ======================================================
# STOCK EVENTS (APPEND-ONLY)
# ======================================================


@admin.register(StockEvent)
class StockEventAdmin(admin.ModelAdmin):
    list_display = (
        "item",
        "event_date",
        "source",
        "quantity_delta",
        "unit_price",
        "reference_type",
        "reference_id",
    )
    list_filter = ("company", "source", "event_date")
    search_fields = ("item__sku", "reference_id")
    ordering = ("-event_date", "-id")

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
