"""
======================================================
PATH: purchases/migrations/0001_initial.py
======================================================
MIGRATION: CREATE PURCHASING DOCUMENTS

Purpose:
- Supplier master (with its once-only opening balance voucher)
- GoodsReceipt (GRN) + items
- SupplierBill (one per GRN) + items
- SupplierPayment
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
            name="Supplier",
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
                        related_name="suppliers",
                        to="companies.company",
                    ),
                ),
                (
                    "opening_balance_voucher",
                    models.OneToOneField(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="opening_balance_supplier",
                        to="accounting.journalvoucher",
                    ),
                ),
            ],
            options={
                "ordering": ["company", "name"],
                "indexes": [
                    models.Index(fields=["company", "name"], name="supplier_company_name_idx"),
                    models.Index(fields=["company", "is_active"], name="supplier_company_active_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="GoodsReceipt",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("grn_number", models.CharField(max_length=30)),
                ("receipt_date", models.DateField()),
                ("total_amount", models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="goods_receipts",
                        to="companies.company",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="receipts",
                        to="purchases.supplier",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="goods_receipts_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-receipt_date", "-id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "grn_number"),
                        name="uniq_goods_receipt_number",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("total_amount__gte", Decimal("0.00"))),
                        name="goods_receipt_total_nonnegative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="GoodsReceiptItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.DecimalField(max_digits=18, decimal_places=4)),
                ("unit_price", models.DecimalField(max_digits=18, decimal_places=6)),
                ("line_total", models.DecimalField(max_digits=16, decimal_places=2)),
                (
                    "receipt",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="purchases.goodsreceipt",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="goods_receipt_items",
                        to="inventory.inventoryitem",
                    ),
                ),
            ],
            options={
                "ordering": ["receipt", "id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gt", 0)),
                        name="goods_receipt_item_qty_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("unit_price__gte", 0)),
                        name="goods_receipt_item_price_nonnegative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SupplierBill",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("bill_number", models.CharField(max_length=30)),
                ("bill_date", models.DateField()),
                ("due_date", models.DateField()),
                (
                    "status",
                    models.CharField(
                        max_length=20,
                        choices=[
                            ("AWAITING_APPROVAL", "Awaiting Approval"),
                            ("UNPAID", "Unpaid"),
                            ("PARTIALLY_PAID", "Partially Paid"),
                            ("PAID", "Paid"),
                            ("VOID", "Void"),
                        ],
                        default="AWAITING_APPROVAL",
                    ),
                ),
                ("total_amount", models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))),
                ("amount_paid", models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))),
                ("approved_at", models.DateTimeField(null=True, blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="supplier_bills",
                        to="companies.company",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bills",
                        to="purchases.supplier",
                    ),
                ),
                (
                    "receipt",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bill",
                        to="purchases.goodsreceipt",
                    ),
                ),
                (
                    "journal_voucher",
                    models.OneToOneField(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="supplier_bill",
                        to="accounting.journalvoucher",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="supplier_bills_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-bill_date", "-id"],
                "indexes": [
                    models.Index(fields=["company", "status"], name="sbill_company_status_idx"),
                    models.Index(fields=["company", "supplier", "status"], name="sbill_company_supplier_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "bill_number"),
                        name="uniq_supplier_bill_number",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("total_amount__gte", Decimal("0.00"))),
                        name="supplier_bill_total_nonnegative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("amount_paid__gte", Decimal("0.00"))),
                        name="supplier_bill_paid_nonnegative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SupplierBillItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.DecimalField(max_digits=18, decimal_places=4)),
                ("unit_price", models.DecimalField(max_digits=18, decimal_places=6)),
                ("line_total", models.DecimalField(max_digits=16, decimal_places=2)),
                (
                    "bill",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="purchases.supplierbill",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="supplier_bill_items",
                        to="inventory.inventoryitem",
                    ),
                ),
            ],
            options={
                "ordering": ["bill", "id"],
            },
        ),
        migrations.CreateModel(
            name="SupplierPayment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("payment_date", models.DateField()),
                ("amount", models.DecimalField(max_digits=16, decimal_places=2)),
                ("reference", models.CharField(max_length=128, blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="supplier_payments",
                        to="companies.company",
                    ),
                ),
                (
                    "bill",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="purchases.supplierbill",
                    ),
                ),
                (
                    "payment_account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="supplier_payments",
                        to="accounting.account",
                    ),
                ),
                (
                    "journal_voucher",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="supplier_payment",
                        to="accounting.journalvoucher",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="supplier_payments_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-payment_date", "-id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", Decimal("0.00"))),
                        name="supplier_payment_amount_positive",
                    ),
                ],
            },
        ),
    ]
