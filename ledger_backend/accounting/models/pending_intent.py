# accounting/models/pending_intent.py

"""
======================================================
PATH: accounting/models/pending_intent.py
======================================================
PENDING VOUCHER INTENT

Typed accounting intent of a DRAFT voucher. A draft has no ledger lines; when
it is posted the ledger poster materializes the lines from this record:

- INCOME:  Dr counter_account (cash/bank)  / Cr account
- PAYMENT: Dr account                      / Cr counter_account (cash/bank)
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from accounting.models.account import Account
from accounting.models.voucher import JournalVoucher


class PendingVoucherIntent(models.Model):
    class Kind(models.TextChoices):
        INCOME = "INCOME", "Income"
        PAYMENT = "PAYMENT", "Payment"

    voucher = models.OneToOneField(
        JournalVoucher,
        on_delete=models.CASCADE,
        related_name="intent",
    )

    kind = models.CharField(max_length=10, choices=Kind.choices)

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="+",
        help_text="Income or expense side of the entry",
    )
    counter_account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="+",
        help_text="Cash/bank side of the entry",
    )

    amount = models.DecimalField(
        max_digits=16,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )

    memo = models.CharField(max_length=255, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Pending Voucher Intent"
        verbose_name_plural = "Pending Voucher Intents"

    def __str__(self):
        return f"{self.kind} {self.amount} for voucher {self.voucher_id}"

    def clean(self):
        if self.account_id and self.account_id == self.counter_account_id:
            raise ValidationError("account and counter_account must differ")

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("Pending intents are immutable; delete the draft instead")

        self.full_clean()
        return super().save(*args, **kwargs)

    def as_lines(self) -> list[dict]:
        """Ledger lines this intent materializes into (poster input shape)."""
        memo = self.memo or self.voucher.narration
        if self.kind == self.Kind.INCOME:
            debit_account, credit_account = self.counter_account, self.account
        else:
            debit_account, credit_account = self.account, self.counter_account

        return [
            {"account": debit_account, "debit": self.amount, "credit": 0, "description": memo},
            {"account": credit_account, "debit": 0, "credit": self.amount, "description": memo},
        ]
