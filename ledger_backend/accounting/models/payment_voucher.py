# accounting/models/payment_voucher.py

"""
======================================================
PATH: accounting/models/payment_voucher.py
======================================================
PAYMENT VOUCHER (EXPENSE PAYMENT WITH VAT / WHT)

Domain wrapper around a PAYMENT_VOUCHER journal voucher.

Amounts:
- gross = Σ line.amount
- vat   = Σ line.amount · line.vat_rate / 100
- wht   = gross · wht_rate / 100
- net   = gross + vat − wht   (what leaves the bank)

Lifecycle: SUBMITTED → APPROVED | REJECTED (both terminal).
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from accounting.models.account import Account
from accounting.models.voucher import JournalVoucher
from companies.models import Company


class PaymentVoucher(models.Model):
    STATUS_SUBMITTED = "SUBMITTED"
    STATUS_APPROVED = "APPROVED"
    STATUS_REJECTED = "REJECTED"

    STATUS_CHOICES = [
        (STATUS_SUBMITTED, "Submitted"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
    ]

    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="payment_vouchers",
    )

    number = models.CharField(max_length=30)
    payee_name = models.CharField(max_length=255)

    supplier = models.ForeignKey(
        "purchases.Supplier",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="payment_vouchers",
    )
    payment_date = models.DateField()

    bank_account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="payment_vouchers",
    )

    gross_amount = models.DecimalField(max_digits=16, decimal_places=2)
    vat_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    wht_rate = models.DecimalField(max_digits=6, decimal_places=2, default=Decimal("0.00"))
    wht_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    net_payable = models.DecimalField(max_digits=16, decimal_places=2)

    narration = models.TextField(blank=True, default="")

    status = models.CharField(
        max_length=10,
        choices=STATUS_CHOICES,
        default=STATUS_SUBMITTED,
        db_index=True,
    )

    journal_voucher = models.OneToOneField(
        JournalVoucher,
        on_delete=models.PROTECT,
        related_name="payment_voucher",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-payment_date", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "number"],
                name="uniq_payment_voucher_company_number",
            ),
        ]

    def __str__(self):
        return f"{self.number} – {self.payee_name} ({self.status})"

    def clean(self):
        if self.net_payable != self.gross_amount + self.vat_amount - self.wht_amount:
            raise ValidationError("net_payable must equal gross + vat − wht")
        if self.net_payable <= 0:
            raise ValidationError("net_payable must be > 0")


class PaymentVoucherLine(models.Model):
    payment_voucher = models.ForeignKey(
        PaymentVoucher,
        on_delete=models.CASCADE,
        related_name="lines",
    )

    expense_account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="payment_voucher_lines",
    )

    description = models.CharField(max_length=255, blank=True, default="")
    amount = models.DecimalField(max_digits=16, decimal_places=2)
    vat_rate = models.DecimalField(max_digits=6, decimal_places=2, default=Decimal("0.00"))
    vat_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.expense_account} {self.amount}"
