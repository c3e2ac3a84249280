"""
======================================================
PATH: accounting/migrations/0001_initial.py
======================================================
MIGRATION: CREATE LEDGER CORE

Purpose:
- Chart of accounts (per company, optional system role)
- Voucher number sequences (one row per company/prefix/period)
- JournalVoucher + JournalVoucherLine (balanced, append-only ledger)
- PendingVoucherIntent (typed intent of a DRAFT voucher)

Payment vouchers reference purchases.Supplier and are created in 0002.
"""

from __future__ import annotations

from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

SYSTEM_ROLE_CHOICES = [
    ("CASH", "Cash"),
    ("BANK", "Bank"),
    ("ACCOUNTS_RECEIVABLE", "Accounts Receivable"),
    ("ACCOUNTS_PAYABLE", "Accounts Payable"),
    ("SALES_REVENUE", "Sales Revenue"),
    ("SALES_DISCOUNT", "Sales Discounts"),
    ("VAT_PAYABLE", "VAT Payable"),
    ("INPUT_VAT", "Input VAT"),
    ("WHT_PAYABLE", "Withholding Tax Payable"),
    ("COGS", "Cost of Goods Sold"),
    ("INVENTORY_RAW_MATERIAL", "Raw Materials Inventory"),
    ("INVENTORY_SEMI_FINISHED", "Semi-Finished Goods Inventory"),
    ("INVENTORY_WIP", "Work in Progress"),
    ("INVENTORY_FINISHED_GOODS", "Finished Goods Inventory"),
    ("OPENING_BALANCE_EQUITY", "Opening Balance Equity"),
]

VOUCHER_SOURCE_CHOICES = [
    ("MANUAL", "Manual Journal"),
    ("SALES_INVOICE", "Sales Invoice"),
    ("SALES_REVERSAL", "Sales Invoice Cancellation"),
    ("CUSTOMER_RECEIPT", "Customer Receipt"),
    ("SUPPLIER_BILL", "Supplier Bill"),
    ("SUPPLIER_PAYMENT", "Supplier Payment"),
    ("PAYMENT_VOUCHER", "Payment Voucher"),
    ("PRODUCTION", "Production"),
    ("OPENING_BALANCE", "Opening Balance"),
    ("REVERSAL", "Reversal"),
]

VOUCHER_STATUS_CHOICES = [
    ("DRAFT", "Draft"),
    ("POSTED", "Posted"),
    ("APPROVED", "Approved"),
    ("REJECTED", "Rejected"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("companies", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=20)),
                ("name", models.CharField(max_length=150)),
                (
                    "account_type",
                    models.CharField(
                        max_length=20,
                        choices=[
                            ("ASSET", "Asset"),
                            ("LIABILITY", "Liability"),
                            ("EQUITY", "Equity"),
                            ("REVENUE", "Revenue"),
                            ("EXPENSE", "Expense"),
                        ],
                    ),
                ),
                (
                    "system_role",
                    models.CharField(
                        max_length=40,
                        choices=SYSTEM_ROLE_CHOICES,
                        null=True,
                        blank=True,
                        default=None,
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="accounts",
                        to="companies.company",
                    ),
                ),
            ],
            options={
                "verbose_name": "Account",
                "verbose_name_plural": "Accounts",
                "ordering": ["company", "code"],
                "indexes": [
                    models.Index(fields=["company", "code"], name="acct_company_code_idx"),
                    models.Index(fields=["company", "account_type"], name="acct_company_type_idx"),
                    models.Index(fields=["company", "system_role"], name="acct_company_role_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "code"),
                        name="uniq_account_company_code",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("system_role__isnull", False)),
                        fields=("company", "system_role"),
                        name="uniq_account_company_system_role",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("code", ""), _negated=True),
                        name="chk_account_code_not_blank",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("name", ""), _negated=True),
                        name="chk_account_name_not_blank",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="VoucherSequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("prefix", models.CharField(max_length=10)),
                ("period", models.CharField(max_length=10, blank=True, default="")),
                ("last_value", models.PositiveBigIntegerField(default=0)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="voucher_sequences",
                        to="companies.company",
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "prefix", "period"),
                        name="uniq_voucher_sequence_scope",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalVoucher",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("voucher_number", models.CharField(max_length=40)),
                ("entry_date", models.DateField(help_text="Accounting effective date")),
                (
                    "source",
                    models.CharField(max_length=30, choices=VOUCHER_SOURCE_CHOICES, default="MANUAL"),
                ),
                ("reference_type", models.CharField(max_length=50, blank=True, default="")),
                ("reference_id", models.CharField(max_length=64, blank=True, default="")),
                ("narration", models.TextField()),
                ("total_debits", models.DecimalField(max_digits=16, decimal_places=2, default=0)),
                ("total_credits", models.DecimalField(max_digits=16, decimal_places=2, default=0)),
                (
                    "status",
                    models.CharField(max_length=10, choices=VOUCHER_STATUS_CHOICES, default="POSTED"),
                ),
                ("rejection_reason", models.TextField(blank=True, default="")),
                ("status_changed_at", models.DateTimeField(null=True, blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="journal_vouchers",
                        to="companies.company",
                    ),
                ),
                (
                    "reversal_of",
                    models.OneToOneField(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reversal",
                        to="accounting.journalvoucher",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="journal_vouchers",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Journal Voucher",
                "verbose_name_plural": "Journal Vouchers",
                "ordering": ["-entry_date", "-id"],
                "indexes": [
                    models.Index(fields=["company", "entry_date"], name="jv_company_date_idx"),
                    models.Index(fields=["company", "status"], name="jv_company_status_idx"),
                    models.Index(fields=["company", "source"], name="jv_company_source_idx"),
                    models.Index(
                        fields=["company", "reference_type", "reference_id"],
                        name="jv_company_reference_idx",
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "voucher_number"),
                        name="uniq_voucher_company_number",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("total_debits", models.F("total_credits"))),
                        name="chk_voucher_totals_balanced",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("total_debits__gte", 0)),
                        name="chk_voucher_totals_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalVoucherLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("line_no", models.PositiveIntegerField()),
                ("debit", models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))),
                ("credit", models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))),
                ("description", models.CharField(max_length=255, blank=True, default="")),
                (
                    "payee_type",
                    models.CharField(
                        max_length=10,
                        choices=[("customer", "Customer"), ("supplier", "Supplier")],
                        null=True,
                        blank=True,
                        default=None,
                    ),
                ),
                ("payee_id", models.PositiveBigIntegerField(null=True, blank=True, default=None)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="journal_voucher_lines",
                        to="companies.company",
                    ),
                ),
                (
                    "voucher",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="lines",
                        to="accounting.journalvoucher",
                    ),
                ),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="voucher_lines",
                        to="accounting.account",
                    ),
                ),
            ],
            options={
                "verbose_name": "Journal Voucher Line",
                "verbose_name_plural": "Journal Voucher Lines",
                "ordering": ["voucher", "line_no"],
                "indexes": [
                    models.Index(fields=["company", "account"], name="jvl_company_account_idx"),
                    models.Index(
                        fields=["company", "payee_type", "payee_id"],
                        name="jvl_company_payee_idx",
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("voucher", "line_no"),
                        name="uniq_voucher_line_ordinal",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("debit__gt", 0), ("credit", 0)),
                            models.Q(("debit", 0), ("credit__gt", 0)),
                            _connector="OR",
                        ),
                        name="chk_voucher_line_one_side",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PendingVoucherIntent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "kind",
                    models.CharField(max_length=10, choices=[("INCOME", "Income"), ("PAYMENT", "Payment")]),
                ),
                (
                    "amount",
                    models.DecimalField(
                        max_digits=16,
                        decimal_places=2,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                    ),
                ),
                ("memo", models.CharField(max_length=255, blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "voucher",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="intent",
                        to="accounting.journalvoucher",
                    ),
                ),
                (
                    "account",
                    models.ForeignKey(
                        help_text="Income or expense side of the entry",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="accounting.account",
                    ),
                ),
                (
                    "counter_account",
                    models.ForeignKey(
                        help_text="Cash/bank side of the entry",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="accounting.account",
                    ),
                ),
            ],
            options={
                "verbose_name": "Pending Voucher Intent",
                "verbose_name_plural": "Pending Voucher Intents",
            },
        ),
    ]
