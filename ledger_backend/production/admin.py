# production/admin.py

from django.contrib import admin

from production.models import (
    Bom,
    BomComponent,
    BomOverhead,
    ProductionOrder,
    ProductionOrderLine,
    ProductionOrderOperation,
)


class BomComponentInline(admin.TabularInline):
    model = BomComponent
    extra = 0


class BomOverheadInline(admin.TabularInline):
    model = BomOverhead
    extra = 0


@admin.register(Bom)
class BomAdmin(admin.ModelAdmin):
    list_display = ("name", "stage", "output_item", "company", "is_active")
    list_filter = ("company", "stage", "is_active")
    search_fields = ("name", "output_item__sku")
    inlines = [BomComponentInline, BomOverheadInline]


class ProductionOrderLineInline(admin.TabularInline):
    model = ProductionOrderLine
    extra = 0
    can_delete = False

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]


class ProductionOrderOperationInline(admin.TabularInline):
    model = ProductionOrderOperation
    extra = 0


@admin.register(ProductionOrder)
class ProductionOrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "bom",
        "order_date",
        "status",
        "gross_planned",
        "actual_good",
        "actual_total_cost",
    )
    list_filter = ("company", "status")
    search_fields = ("order_number", "bom__name")
    inlines = [ProductionOrderOperationInline, ProductionOrderLineInline]

    # Orders move through the production service only.
    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False
