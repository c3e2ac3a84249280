# purchases/admin.py

from django.contrib import admin

from purchases.models import (
    GoodsReceipt,
    GoodsReceiptItem,
    Supplier,
    SupplierBill,
    SupplierBillItem,
    SupplierPayment,
)


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "email", "company", "is_active")
    list_filter = ("company", "is_active")
    search_fields = ("name", "phone", "email")
    readonly_fields = ("opening_balance_voucher", "created_at")


class GoodsReceiptItemInline(admin.TabularInline):
    model = GoodsReceiptItem
    extra = 0
    can_delete = False
    readonly_fields = ("item", "quantity", "unit_price", "line_total")


@admin.register(GoodsReceipt)
class GoodsReceiptAdmin(admin.ModelAdmin):
    list_display = ("grn_number", "supplier", "receipt_date", "total_amount")
    list_filter = ("company", "receipt_date")
    search_fields = ("grn_number", "supplier__name")
    inlines = [GoodsReceiptItemInline]

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False


class SupplierBillItemInline(admin.TabularInline):
    model = SupplierBillItem
    extra = 0
    can_delete = False
    readonly_fields = ("item", "quantity", "unit_price", "line_total")


@admin.register(SupplierBill)
class SupplierBillAdmin(admin.ModelAdmin):
    list_display = ("bill_number", "supplier", "bill_date", "due_date", "status", "total_amount", "amount_paid")
    list_filter = ("company", "status")
    search_fields = ("bill_number", "supplier__name")
    inlines = [SupplierBillItemInline]

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False


@admin.register(SupplierPayment)
class SupplierPaymentAdmin(admin.ModelAdmin):
    list_display = ("bill", "payment_date", "amount", "payment_account", "reference")
    list_filter = ("company", "payment_date")
    search_fields = ("bill__bill_number", "reference")

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False
