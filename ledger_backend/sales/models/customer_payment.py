# sales/models/customer_payment.py

"""
CUSTOMER PAYMENT + ALLOCATIONS

RULES:
- Sum(allocation.amount) == payment.amount (enforced in payment_allocation service)
- Allocations are write-once
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q

from accounting.models.account import Account
from accounting.models.voucher import JournalVoucher
from companies.models import Company

from .customer import Customer
from .sales_invoice import SalesInvoice

User = settings.AUTH_USER_MODEL


class CustomerPayment(models.Model):
    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="customer_payments",
    )

    receipt_number = models.CharField(max_length=30)

    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="payments",
    )

    payment_date = models.DateField()
    amount = models.DecimalField(max_digits=16, decimal_places=2)

    deposit_account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="customer_payments",
    )

    reference = models.CharField(max_length=128, blank=True, default="")

    journal_voucher = models.OneToOneField(
        JournalVoucher,
        on_delete=models.PROTECT,
        related_name="customer_payment",
    )

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="customer_payments_created",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-payment_date", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "receipt_number"],
                name="uniq_customer_payment_receipt",
            ),
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="chk_customer_payment_amount_positive",
            ),
        ]

    def __str__(self):
        return f"{self.receipt_number} | {self.amount}"


class PaymentAllocation(models.Model):
    payment = models.ForeignKey(
        CustomerPayment,
        on_delete=models.PROTECT,
        related_name="allocations",
    )

    invoice = models.ForeignKey(
        SalesInvoice,
        on_delete=models.PROTECT,
        related_name="allocations",
    )

    amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["invoice"], name="pay_alloc_invoice_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["payment", "invoice"],
                name="uniq_payment_allocation_invoice",
            ),
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="chk_payment_allocation_amount_positive",
            ),
        ]

    def __str__(self):
        return f"{self.payment_id} → {self.invoice_id} | {self.amount}"
