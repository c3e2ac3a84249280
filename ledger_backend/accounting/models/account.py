# accounting/models/account.py

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from companies.models import Company


class Account(models.Model):
    """
    A single account in a company's chart of accounts.

    Guarantees:
    - Account codes are unique per company
    - A system role (e.g. ACCOUNTS_RECEIVABLE) maps to at most one account per company
    - Code + name are normalized (trimmed)
    - Never mutated by the posting engine (configuration data)
    """

    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"

    ACCOUNT_TYPES = [
        (ASSET, "Asset"),
        (LIABILITY, "Liability"),
        (EQUITY, "Equity"),
        (REVENUE, "Revenue"),
        (EXPENSE, "Expense"),
    ]

    class SystemRole(models.TextChoices):
        CASH = "CASH", "Cash"
        BANK = "BANK", "Bank"
        ACCOUNTS_RECEIVABLE = "ACCOUNTS_RECEIVABLE", "Accounts Receivable"
        ACCOUNTS_PAYABLE = "ACCOUNTS_PAYABLE", "Accounts Payable"
        SALES_REVENUE = "SALES_REVENUE", "Sales Revenue"
        SALES_DISCOUNT = "SALES_DISCOUNT", "Sales Discounts"
        VAT_PAYABLE = "VAT_PAYABLE", "VAT Payable"
        INPUT_VAT = "INPUT_VAT", "Input VAT"
        WHT_PAYABLE = "WHT_PAYABLE", "Withholding Tax Payable"
        COGS = "COGS", "Cost of Goods Sold"
        INVENTORY_RAW_MATERIAL = "INVENTORY_RAW_MATERIAL", "Raw Materials Inventory"
        INVENTORY_SEMI_FINISHED = "INVENTORY_SEMI_FINISHED", "Semi-Finished Goods Inventory"
        INVENTORY_WIP = "INVENTORY_WIP", "Work in Progress"
        INVENTORY_FINISHED_GOODS = "INVENTORY_FINISHED_GOODS", "Finished Goods Inventory"
        OPENING_BALANCE_EQUITY = "OPENING_BALANCE_EQUITY", "Opening Balance Equity"

    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="accounts",
    )

    code = models.CharField(max_length=20)
    name = models.CharField(max_length=150)

    account_type = models.CharField(
        max_length=20,
        choices=ACCOUNT_TYPES,
    )

    system_role = models.CharField(
        max_length=40,
        choices=SystemRole.choices,
        null=True,
        blank=True,
        default=None,
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["company", "code"]
        verbose_name = "Account"
        verbose_name_plural = "Accounts"
        indexes = [
            models.Index(fields=["company", "code"], name="acct_company_code_idx"),
            models.Index(fields=["company", "account_type"], name="acct_company_type_idx"),
            models.Index(fields=["company", "system_role"], name="acct_company_role_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "code"],
                name="uniq_account_company_code",
            ),
            models.UniqueConstraint(
                fields=["company", "system_role"],
                condition=Q(system_role__isnull=False),
                name="uniq_account_company_system_role",
            ),
            models.CheckConstraint(
                condition=~Q(code=""),
                name="chk_account_code_not_blank",
            ),
            models.CheckConstraint(
                condition=~Q(name=""),
                name="chk_account_name_not_blank",
            ),
        ]

    def __str__(self):
        return f"{self.code} – {self.name}"

    def clean(self):
        self.code = (self.code or "").strip()
        self.name = (self.name or "").strip()
        self.system_role = (self.system_role or "").strip() or None

        if not self.code:
            raise ValidationError("Account code is required")
        if not self.name:
            raise ValidationError("Account name is required")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
