# sales/models/sales_invoice.py

"""
SALES INVOICE (HEADER)

Lifecycle:
  DRAFT → ISSUED → PARTIAL → PAID
  ISSUED → CANCELLED (reversal voucher + restock, never deleted)

GUARANTEES:
- Money fields are computed server-side by the invoice orchestrator
- total_amount = subtotal_amount + tax_amount − discount_amount
- amount_due = total_amount − amount_paid (0 once CANCELLED)
- An issued invoice always references its SALES_INVOICE voucher
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from accounting.models.voucher import JournalVoucher
from companies.models import Company

from .customer import Customer

User = settings.AUTH_USER_MODEL


class SalesInvoice(models.Model):
    STATUS_DRAFT = "DRAFT"
    STATUS_ISSUED = "ISSUED"
    STATUS_PARTIAL = "PARTIAL"
    STATUS_PAID = "PAID"
    STATUS_CANCELLED = "CANCELLED"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_ISSUED, "Issued"),
        (STATUS_PARTIAL, "Partially Paid"),
        (STATUS_PAID, "Paid"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    STATUS_ENUM = {
        STATUS_DRAFT: {"label": "Draft", "terminal": False, "payable": False},
        STATUS_ISSUED: {"label": "Issued", "terminal": False, "payable": True},
        STATUS_PARTIAL: {"label": "Partially Paid", "terminal": False, "payable": True},
        STATUS_PAID: {"label": "Paid", "terminal": True, "payable": False},
        STATUS_CANCELLED: {"label": "Cancelled", "terminal": True, "payable": False},
    }

    PAYABLE_STATUSES = (STATUS_ISSUED, STATUS_PARTIAL)

    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="sales_invoices",
    )

    invoice_number = models.CharField(max_length=30)

    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="invoices",
    )

    invoice_date = models.DateField()
    due_date = models.DateField()

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_DRAFT)

    subtotal_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    amount_paid = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    amount_due = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))

    # COGS snapshot (Σ quantity · average unit cost at issue time)
    cogs_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))

    journal_voucher = models.OneToOneField(
        JournalVoucher,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="sales_invoice",
    )
    reversal_voucher = models.OneToOneField(
        JournalVoucher,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="cancelled_sales_invoice",
    )

    notes = models.TextField(blank=True, default="")
    cancel_reason = models.CharField(max_length=255, blank=True, default="")

    issued_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sales_invoices_created",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-invoice_date", "-id"]
        indexes = [
            models.Index(fields=["company", "status"], name="sinv_company_status_idx"),
            models.Index(fields=["company", "customer", "status"], name="sinv_company_customer_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "invoice_number"],
                name="uniq_sales_invoice_number",
            ),
            models.CheckConstraint(
                condition=Q(total_amount__gte=0) & Q(amount_paid__gte=0) & Q(amount_due__gte=0),
                name="chk_sales_invoice_amounts_non_negative",
            ),
        ]

    @classmethod
    def get_status_enum(cls):
        return cls.STATUS_ENUM

    def __str__(self):
        return f"{self.invoice_number} ({self.status})"

    @property
    def is_payable(self) -> bool:
        return self.status in self.PAYABLE_STATUSES

    def clean(self):
        if self.customer_id and self.company_id and self.customer.company_id != self.company_id:
            raise ValidationError({"customer": "Customer belongs to another company"})

        if self.due_date and self.invoice_date and self.due_date < self.invoice_date:
            raise ValidationError({"due_date": "due_date cannot be before invoice_date"})

        if self.status in (self.STATUS_ISSUED, self.STATUS_PARTIAL, self.STATUS_PAID):
            if not self.journal_voucher_id:
                raise ValidationError("An issued invoice must reference its ledger voucher")

        if self.status == self.STATUS_CANCELLED and not self.reversal_voucher_id:
            raise ValidationError("A cancelled invoice must reference its reversal voucher")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
