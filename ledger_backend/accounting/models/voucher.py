# accounting/models/voucher.py

"""
======================================================
PATH: accounting/models/voucher.py
======================================================
JOURNAL VOUCHER MODEL

Header of one balanced accounting event.

Guarantees:
- total_debits == total_credits at every committed state
- voucher_number is unique per company (PREFIX-YYYY-NNNNN, see services/sequences.py)
- Only status/audit/total fields may change after insert, and only through
  the ledger poster (services/ledger_poster.py)
- Vouchers with lines are never deleted; drafts (no lines) may be
- At most ONE reversal per voucher (reversal_of is one-to-one)
"""

from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from companies.models import Company


class JournalVoucher(models.Model):
    class Status(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        POSTED = "POSTED", "Posted"
        APPROVED = "APPROVED", "Approved"
        REJECTED = "REJECTED", "Rejected"

    class Source(models.TextChoices):
        MANUAL = "MANUAL", "Manual Journal"
        SALES_INVOICE = "SALES_INVOICE", "Sales Invoice"
        SALES_REVERSAL = "SALES_REVERSAL", "Sales Invoice Cancellation"
        CUSTOMER_RECEIPT = "CUSTOMER_RECEIPT", "Customer Receipt"
        SUPPLIER_BILL = "SUPPLIER_BILL", "Supplier Bill"
        SUPPLIER_PAYMENT = "SUPPLIER_PAYMENT", "Supplier Payment"
        PAYMENT_VOUCHER = "PAYMENT_VOUCHER", "Payment Voucher"
        PRODUCTION = "PRODUCTION", "Production"
        OPENING_BALANCE = "OPENING_BALANCE", "Opening Balance"
        REVERSAL = "REVERSAL", "Reversal"

    # Fields the ledger poster may touch after insert.
    MUTABLE_FIELDS = frozenset(
        {
            "status",
            "status_changed_at",
            "rejection_reason",
            "total_debits",
            "total_credits",
            "updated_at",
        }
    )

    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="journal_vouchers",
    )

    voucher_number = models.CharField(max_length=40)

    entry_date = models.DateField(help_text="Accounting effective date")

    source = models.CharField(
        max_length=30,
        choices=Source.choices,
        default=Source.MANUAL,
    )

    reference_type = models.CharField(max_length=50, blank=True, default="")
    reference_id = models.CharField(max_length=64, blank=True, default="")

    narration = models.TextField()

    total_debits = models.DecimalField(max_digits=16, decimal_places=2, default=0)
    total_credits = models.DecimalField(max_digits=16, decimal_places=2, default=0)

    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.POSTED,
    )

    reversal_of = models.OneToOneField(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="reversal",
    )

    rejection_reason = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="journal_vouchers",
    )

    status_changed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-entry_date", "-id"]
        verbose_name = "Journal Voucher"
        verbose_name_plural = "Journal Vouchers"
        indexes = [
            models.Index(fields=["company", "entry_date"], name="jv_company_date_idx"),
            models.Index(fields=["company", "status"], name="jv_company_status_idx"),
            models.Index(fields=["company", "source"], name="jv_company_source_idx"),
            models.Index(fields=["company", "reference_type", "reference_id"], name="jv_company_reference_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "voucher_number"],
                name="uniq_voucher_company_number",
            ),
            models.CheckConstraint(
                condition=Q(total_debits=models.F("total_credits")),
                name="chk_voucher_totals_balanced",
            ),
            models.CheckConstraint(
                condition=Q(total_debits__gte=0),
                name="chk_voucher_totals_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.voucher_number} [{self.status}]"

    @property
    def is_draft(self) -> bool:
        return self.status == self.Status.DRAFT

    @property
    def is_reversal(self) -> bool:
        return self.reversal_of_id is not None

    def clean(self):
        self.narration = (self.narration or "").strip()
        if not self.narration:
            raise ValidationError("Voucher narration is required")

        self.reference_type = (self.reference_type or "").strip()
        self.reference_id = (self.reference_id or "").strip()

        if self.total_debits != self.total_credits:
            raise ValidationError(
                f"Voucher not balanced: debits={self.total_debits} credits={self.total_credits}"
            )

    def save(self, *args, **kwargs):
        if self.pk:
            update_fields = kwargs.get("update_fields")
            if not update_fields or not set(update_fields) <= self.MUTABLE_FIELDS:
                raise ValidationError(
                    "JournalVoucher may only change status/totals through the ledger poster"
                )
            if "updated_at" not in update_fields:
                kwargs["update_fields"] = [*update_fields, "updated_at"]
            self.clean()
            return super().save(*args, **kwargs)

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.status not in (self.Status.DRAFT, self.Status.REJECTED) or self.lines.exists():
            raise ValidationError(
                "Only drafts without ledger lines can be deleted; reverse posted vouchers instead"
            )
        return super().delete(*args, **kwargs)
