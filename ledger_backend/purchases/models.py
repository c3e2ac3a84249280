# purchases/models.py

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from accounting.models.account import Account
from accounting.models.voucher import JournalVoucher
from companies.models import Company
from inventory.models.item import InventoryItem

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES)


User = settings.AUTH_USER_MODEL


class Supplier(models.Model):
    """
    Supplier master (per company).
    """

    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="suppliers",
    )

    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=50, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address = models.TextField(blank=True, default="")

    opening_balance_voucher = models.OneToOneField(
        JournalVoucher,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="opening_balance_supplier",
    )

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["company", "name"]
        indexes = [
            models.Index(fields=["company", "name"], name="supplier_company_name_idx"),
            models.Index(fields=["company", "is_active"], name="supplier_company_active_idx"),
        ]

    def __str__(self):
        return self.name

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError({"name": "name is required"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


class GoodsReceipt(models.Model):
    """
    Goods Received Note (GRN) header.

    Receiving appends RECEIPT stock events immediately; the accounting effect is
    posted when the supplier bill raised from this GRN is approved.
    """

    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="goods_receipts",
    )

    grn_number = models.CharField(max_length=30)

    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.PROTECT,
        related_name="receipts",
    )

    receipt_date = models.DateField()
    total_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="goods_receipts_created",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-receipt_date", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "grn_number"],
                name="uniq_goods_receipt_number",
            ),
            models.CheckConstraint(
                condition=Q(total_amount__gte=Decimal("0.00")),
                name="goods_receipt_total_nonnegative",
            ),
        ]

    def clean(self):
        if self.supplier_id and self.company_id and self.supplier.company_id != self.company_id:
            raise ValidationError({"supplier": "Supplier belongs to another company"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.grn_number} ({self.supplier.name})"


class GoodsReceiptItem(models.Model):
    receipt = models.ForeignKey(
        GoodsReceipt,
        on_delete=models.CASCADE,
        related_name="items",
    )
    item = models.ForeignKey(
        InventoryItem,
        on_delete=models.PROTECT,
        related_name="goods_receipt_items",
    )

    quantity = models.DecimalField(max_digits=18, decimal_places=4)
    unit_price = models.DecimalField(max_digits=18, decimal_places=6)
    line_total = models.DecimalField(max_digits=16, decimal_places=2)

    class Meta:
        ordering = ["receipt", "id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="goods_receipt_item_qty_positive",
            ),
            models.CheckConstraint(
                condition=Q(unit_price__gte=0),
                name="goods_receipt_item_price_nonnegative",
            ),
        ]

    def __str__(self):
        return f"{self.receipt_id} | {self.item_id} x {self.quantity}"


class SupplierBill(models.Model):
    """
    Supplier bill raised from exactly one GRN.

    Lifecycle:
      AWAITING_APPROVAL → UNPAID → PARTIALLY_PAID → PAID
      AWAITING_APPROVAL → VOID
    """

    STATUS_AWAITING_APPROVAL = "AWAITING_APPROVAL"
    STATUS_UNPAID = "UNPAID"
    STATUS_PARTIALLY_PAID = "PARTIALLY_PAID"
    STATUS_PAID = "PAID"
    STATUS_VOID = "VOID"

    STATUSES = [
        (STATUS_AWAITING_APPROVAL, "Awaiting Approval"),
        (STATUS_UNPAID, "Unpaid"),
        (STATUS_PARTIALLY_PAID, "Partially Paid"),
        (STATUS_PAID, "Paid"),
        (STATUS_VOID, "Void"),
    ]

    PAYABLE_STATUSES = (STATUS_UNPAID, STATUS_PARTIALLY_PAID)

    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="supplier_bills",
    )

    bill_number = models.CharField(max_length=30)

    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.PROTECT,
        related_name="bills",
    )

    receipt = models.OneToOneField(
        GoodsReceipt,
        on_delete=models.PROTECT,
        related_name="bill",
    )

    bill_date = models.DateField()
    due_date = models.DateField()

    status = models.CharField(max_length=20, choices=STATUSES, default=STATUS_AWAITING_APPROVAL)

    total_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    amount_paid = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))

    journal_voucher = models.OneToOneField(
        JournalVoucher,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="supplier_bill",
    )

    approved_at = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="supplier_bills_created",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-bill_date", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "bill_number"],
                name="uniq_supplier_bill_number",
            ),
            models.CheckConstraint(
                condition=Q(total_amount__gte=Decimal("0.00")),
                name="supplier_bill_total_nonnegative",
            ),
            models.CheckConstraint(
                condition=Q(amount_paid__gte=Decimal("0.00")),
                name="supplier_bill_paid_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["company", "status"], name="sbill_company_status_idx"),
            models.Index(fields=["company", "supplier", "status"], name="sbill_company_supplier_idx"),
        ]

    @property
    def balance(self) -> Decimal:
        return _money(self.total_amount) - _money(self.amount_paid)

    def clean(self):
        if self.amount_paid is not None and self.total_amount is not None:
            if self.amount_paid > self.total_amount:
                raise ValidationError({"amount_paid": "amount_paid cannot exceed total_amount"})

        if self.due_date and self.bill_date and self.due_date < self.bill_date:
            raise ValidationError({"due_date": "due_date cannot be before bill_date"})

        if self.status not in (self.STATUS_AWAITING_APPROVAL, self.STATUS_VOID) and not self.journal_voucher_id:
            raise ValidationError("An approved bill must reference its ledger voucher")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.bill_number} ({self.status})"


class SupplierBillItem(models.Model):
    bill = models.ForeignKey(
        SupplierBill,
        on_delete=models.CASCADE,
        related_name="items",
    )
    item = models.ForeignKey(
        InventoryItem,
        on_delete=models.PROTECT,
        related_name="supplier_bill_items",
    )

    quantity = models.DecimalField(max_digits=18, decimal_places=4)
    unit_price = models.DecimalField(max_digits=18, decimal_places=6)
    line_total = models.DecimalField(max_digits=16, decimal_places=2)

    class Meta:
        ordering = ["bill", "id"]

    def __str__(self):
        return f"{self.bill_id} | {self.item_id} x {self.quantity}"


class SupplierPayment(models.Model):
    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="supplier_payments",
    )

    bill = models.ForeignKey(
        SupplierBill,
        on_delete=models.PROTECT,
        related_name="payments",
    )

    payment_date = models.DateField()
    amount = models.DecimalField(max_digits=16, decimal_places=2)

    payment_account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="supplier_payments",
    )

    reference = models.CharField(max_length=128, blank=True, default="")

    journal_voucher = models.OneToOneField(
        JournalVoucher,
        on_delete=models.PROTECT,
        related_name="supplier_payment",
    )

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="supplier_payments_created",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-payment_date", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=Decimal("0.00")),
                name="supplier_payment_amount_positive",
            ),
        ]

    def __str__(self):
        return f"{self.bill_id} | {self.amount}"
