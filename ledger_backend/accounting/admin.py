# accounting/admin.py

from django.contrib import admin

from accounting.models.account import Account
from accounting.models.payment_voucher import PaymentVoucher, PaymentVoucherLine
from accounting.models.sequence import VoucherSequence
from accounting.models.voucher import JournalVoucher
from accounting.models.voucher_line import JournalVoucherLine

# ============================================================
# ACCOUNT
# ============================================================


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "name",
        "account_type",
        "system_role",
        "company",
        "is_active",
    )
    list_filter = ("account_type", "is_active", "company")
    search_fields = ("code", "name")
    ordering = ("company", "code")
    readonly_fields = ("created_at", "updated_at")

    fieldsets = (
        (
            "Account Identity",
            {
                "fields": ("company", "code", "name", "account_type", "system_role"),
            },
        ),
        (
            "Status",
            {
                "fields": ("is_active",),
            },
        ),
        (
            "Audit",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )


# ============================================================
# JOURNAL VOUCHER (READ-ONLY)
# ============================================================


class JournalVoucherLineInline(admin.TabularInline):
    model = JournalVoucherLine
    extra = 0
    can_delete = False
    readonly_fields = (
        "line_no",
        "account",
        "debit",
        "credit",
        "description",
        "payee_type",
        "payee_id",
    )
    fields = readonly_fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(JournalVoucher)
class JournalVoucherAdmin(admin.ModelAdmin):
    list_display = (
        "voucher_number",
        "company",
        "entry_date",
        "source",
        "status",
        "total_debits",
        "total_credits",
    )
    list_filter = ("company", "source", "status", "entry_date")
    search_fields = ("voucher_number", "narration", "reference_id")
    ordering = ("-entry_date", "-id")
    inlines = [JournalVoucherLineInline]

    # Vouchers change only through the ledger poster.
    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(VoucherSequence)
class VoucherSequenceAdmin(admin.ModelAdmin):
    list_display = ("company", "prefix", "period", "last_value")
    list_filter = ("company", "prefix")
    readonly_fields = ("company", "prefix", "period", "last_value")

    def has_add_permission(self, request):
        return False


# ============================================================
# PAYMENT VOUCHER
# ============================================================


class PaymentVoucherLineInline(admin.TabularInline):
    model = PaymentVoucherLine
    extra = 0
    can_delete = False
    readonly_fields = ("expense_account", "description", "amount", "vat_rate", "vat_amount")


@admin.register(PaymentVoucher)
class PaymentVoucherAdmin(admin.ModelAdmin):
    list_display = (
        "number",
        "payee_name",
        "payment_date",
        "gross_amount",
        "net_payable",
        "status",
    )
    list_filter = ("company", "status")
    search_fields = ("number", "payee_name")
    readonly_fields = (
        "number",
        "gross_amount",
        "vat_amount",
        "wht_amount",
        "net_payable",
        "status",
        "journal_voucher",
        "created_at",
        "updated_at",
    )
    inlines = [PaymentVoucherLineInline]

    def has_add_permission(self, request):
        return False
