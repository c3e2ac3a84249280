# sales/models/customer.py

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models

from accounting.models.voucher import JournalVoucher
from companies.models import Company


class Customer(models.Model):
    """
    Customer master (per company).

    opening_balance_voucher is set once by the opening balance service; a second
    opening balance for the same customer is rejected.
    """

    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="customers",
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
        related_name="opening_balance_customer",
    )

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["company", "name"]
        indexes = [
            models.Index(fields=["company", "name"], name="customer_company_name_idx"),
            models.Index(fields=["company", "is_active"], name="customer_company_active_idx"),
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
