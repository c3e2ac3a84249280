# sales/admin.py

from django.contrib import admin

from sales.models import Customer, CustomerPayment, PaymentAllocation, SalesInvoice, SalesInvoiceItem

# ======================================================
# CUSTOMER ADMIN
# ======================================================


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "email", "company", "is_active")
    list_filter = ("company", "is_active")
    search_fields = ("name", "phone", "email")
    readonly_fields = ("opening_balance_voucher", "created_at")


# ======================================================
# SALES INVOICE ADMIN
# ======================================================


class SalesInvoiceItemInline(admin.TabularInline):
    model = SalesInvoiceItem
    extra = 0
    can_delete = False

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]


@admin.register(SalesInvoice)
class SalesInvoiceAdmin(admin.ModelAdmin):
    list_display = (
        "invoice_number",
        "customer",
        "invoice_date",
        "status",
        "total_amount",
        "amount_due",
    )
    list_filter = ("company", "status", "invoice_date")
    search_fields = ("invoice_number", "customer__name")
    inlines = [SalesInvoiceItemInline]

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False


# ======================================================
# CUSTOMER PAYMENT ADMIN
# ======================================================


class PaymentAllocationInline(admin.TabularInline):
    model = PaymentAllocation
    extra = 0
    can_delete = False
    readonly_fields = ("invoice", "amount", "created_at")


@admin.register(CustomerPayment)
class CustomerPaymentAdmin(admin.ModelAdmin):
    list_display = ("receipt_number", "customer", "payment_date", "amount", "deposit_account")
    list_filter = ("company", "payment_date")
    search_fields = ("receipt_number", "customer__name", "reference")
    inlines = [PaymentAllocationInline]

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False
