# accounting/models/voucher_line.py

"""
======================================================
PATH: accounting/models/voucher_line.py
======================================================
JOURNAL VOUCHER LINE MODEL

One debit OR credit against a single account.

Guarantees:
- Immutable once created (no updates, no deletes)
- Exactly one of debit/credit is non-zero; the other is 0
- Keyed by (voucher, line_no); carries company for tenant isolation
- Optional payee (customer/supplier) for sub-ledger reporting
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from accounting.models.account import Account
from accounting.models.voucher import JournalVoucher
from companies.models import Company


class JournalVoucherLine(models.Model):
    PAYEE_CUSTOMER = "customer"
    PAYEE_SUPPLIER = "supplier"

    PAYEE_TYPES = [
        (PAYEE_CUSTOMER, "Customer"),
        (PAYEE_SUPPLIER, "Supplier"),
    ]

    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="journal_voucher_lines",
    )

    voucher = models.ForeignKey(
        JournalVoucher,
        on_delete=models.PROTECT,
        related_name="lines",
    )

    line_no = models.PositiveIntegerField()

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="voucher_lines",
    )

    debit = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    credit = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))

    description = models.CharField(max_length=255, blank=True, default="")

    payee_type = models.CharField(
        max_length=10,
        choices=PAYEE_TYPES,
        null=True,
        blank=True,
        default=None,
    )
    payee_id = models.PositiveBigIntegerField(null=True, blank=True, default=None)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["voucher", "line_no"]
        verbose_name = "Journal Voucher Line"
        verbose_name_plural = "Journal Voucher Lines"
        indexes = [
            models.Index(fields=["company", "account"], name="jvl_company_account_idx"),
            models.Index(fields=["company", "payee_type", "payee_id"], name="jvl_company_payee_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["voucher", "line_no"],
                name="uniq_voucher_line_ordinal",
            ),
            models.CheckConstraint(
                condition=(Q(debit__gt=0) & Q(credit=0)) | (Q(debit=0) & Q(credit__gt=0)),
                name="chk_voucher_line_one_side",
            ),
        ]

    def __str__(self):
        side = f"Dr {self.debit}" if self.debit else f"Cr {self.credit}"
        return f"{self.voucher_id}#{self.line_no} {side} → {self.account}"

    def clean(self):
        if self.debit is None or self.credit is None:
            raise ValidationError("debit and credit are required")

        if self.debit < 0 or self.credit < 0:
            raise ValidationError("Debit or credit cannot be negative")

        if (self.debit > 0) == (self.credit > 0):
            raise ValidationError("A line must have exactly one of debit or credit")

        if self.account_id and self.company_id and self.account.company_id != self.company_id:
            raise ValidationError("Line account belongs to another company")

        if (self.payee_type is None) != (self.payee_id is None):
            raise ValidationError("payee_type and payee_id must be set together")

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("JournalVoucherLine records are immutable once created")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("JournalVoucherLine records are immutable and cannot be deleted")
