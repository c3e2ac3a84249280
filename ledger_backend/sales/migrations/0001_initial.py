"""
======================================================
PATH: sales/migrations/0001_initial.py
======================================================
MIGRATION: CREATE SALES DOCUMENTS

Purpose:
- Customer master (with its once-only opening balance voucher)
- SalesInvoice + SalesInvoiceItem (unit_cost snapshot for cancellation restock)
- CustomerPayment + PaymentAllocation (receipt split across invoices)
"""

from __future__ import annotations

from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("accounting", "0001_initial"),
        ("companies", "0001_initial"),
        ("inventory", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("phone", models.CharField(max_length=50, blank=True, default="")),
                ("email", models.EmailField(max_length=254, blank=True, default="")),
                ("address", models.TextField(blank=True, default="")),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="customers",
                        to="companies.company",
                    ),
                ),
                (
                    "opening_balance_voucher",
                    models.OneToOneField(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="opening_balance_customer",
                        to="accounting.journalvoucher",
                    ),
                ),
            ],
            options={
                "ordering": ["company", "name"],
                "indexes": [
                    models.Index(fields=["company", "name"], name="customer_company_name_idx"),
                    models.Index(fields=["company", "is_active"], name="customer_company_active_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SalesInvoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("invoice_number", models.CharField(max_length=30)),
                ("invoice_date", models.DateField()),
                ("due_date", models.DateField()),
                (
                    "status",
                    models.CharField(
                        max_length=20,
                        choices=[
                            ("DRAFT", "Draft"),
                            ("ISSUED", "Issued"),
                            ("PARTIAL", "Partially Paid"),
                            ("PAID", "Paid"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        default="DRAFT",
                    ),
                ),
                ("subtotal_amount", models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))),
                ("tax_amount", models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))),
                ("discount_amount", models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))),
                ("total_amount", models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))),
                ("amount_paid", models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))),
                ("amount_due", models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))),
                ("cogs_amount", models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))),
                ("notes", models.TextField(blank=True, default="")),
                ("cancel_reason", models.CharField(max_length=255, blank=True, default="")),
                ("issued_at", models.DateTimeField(null=True, blank=True)),
                ("cancelled_at", models.DateTimeField(null=True, blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sales_invoices",
                        to="companies.company",
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoices",
                        to="sales.customer",
                    ),
                ),
                (
                    "journal_voucher",
                    models.OneToOneField(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sales_invoice",
                        to="accounting.journalvoucher",
                    ),
                ),
                (
                    "reversal_voucher",
                    models.OneToOneField(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="cancelled_sales_invoice",
                        to="accounting.journalvoucher",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sales_invoices_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-invoice_date", "-id"],
                "indexes": [
                    models.Index(fields=["company", "status"], name="sinv_company_status_idx"),
                    models.Index(fields=["company", "customer", "status"], name="sinv_company_customer_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "invoice_number"),
                        name="uniq_sales_invoice_number",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("total_amount__gte", 0),
                            ("amount_paid__gte", 0),
                            ("amount_due__gte", 0),
                        ),
                        name="chk_sales_invoice_amounts_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SalesInvoiceItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.DecimalField(max_digits=18, decimal_places=4)),
                ("unit_price", models.DecimalField(max_digits=16, decimal_places=2)),
                ("vat_rate", models.DecimalField(max_digits=6, decimal_places=3, default=Decimal("0"))),
                ("line_subtotal", models.DecimalField(max_digits=16, decimal_places=2)),
                ("vat_amount", models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))),
                ("line_total", models.DecimalField(max_digits=16, decimal_places=2)),
                ("unit_cost", models.DecimalField(max_digits=18, decimal_places=6, default=Decimal("0"))),
                ("cogs_amount", models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))),
                (
                    "invoice",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="sales.salesinvoice",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sales_invoice_items",
                        to="inventory.inventoryitem",
                    ),
                ),
            ],
            options={
                "ordering": ["invoice", "id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gt", 0)),
                        name="chk_sales_invoice_item_qty_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("unit_price__gte", 0)),
                        name="chk_sales_invoice_item_price_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CustomerPayment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("receipt_number", models.CharField(max_length=30)),
                ("payment_date", models.DateField()),
                ("amount", models.DecimalField(max_digits=16, decimal_places=2)),
                ("reference", models.CharField(max_length=128, blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="customer_payments",
                        to="companies.company",
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="sales.customer",
                    ),
                ),
                (
                    "deposit_account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="customer_payments",
                        to="accounting.account",
                    ),
                ),
                (
                    "journal_voucher",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="customer_payment",
                        to="accounting.journalvoucher",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="customer_payments_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-payment_date", "-id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "receipt_number"),
                        name="uniq_customer_payment_receipt",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="chk_customer_payment_amount_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PaymentAllocation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "payment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="allocations",
                        to="sales.customerpayment",
                    ),
                ),
                (
                    "invoice",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="allocations",
                        to="sales.salesinvoice",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["invoice"], name="pay_alloc_invoice_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("payment", "invoice"),
                        name="uniq_payment_allocation_invoice",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="chk_payment_allocation_amount_positive",
                    ),
                ],
            },
        ),
    ]
