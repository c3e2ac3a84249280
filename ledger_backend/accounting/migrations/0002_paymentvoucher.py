"""
======================================================
PATH: accounting/migrations/0002_paymentvoucher.py
======================================================
MIGRATION: CREATE PaymentVoucher + PaymentVoucherLine

Purpose:
- Expense payment wrapper (VAT / WHT) around a PAYMENT_VOUCHER journal voucher.
- Lives after purchases.0001 because of the optional supplier link.
"""

from __future__ import annotations

from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("accounting", "0001_initial"),
        ("companies", "0001_initial"),
        ("purchases", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PaymentVoucher",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("number", models.CharField(max_length=30)),
                ("payee_name", models.CharField(max_length=255)),
                ("payment_date", models.DateField()),
                ("gross_amount", models.DecimalField(max_digits=16, decimal_places=2)),
                ("vat_amount", models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))),
                ("wht_rate", models.DecimalField(max_digits=6, decimal_places=2, default=Decimal("0.00"))),
                ("wht_amount", models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))),
                ("net_payable", models.DecimalField(max_digits=16, decimal_places=2)),
                ("narration", models.TextField(blank=True, default="")),
                (
                    "status",
                    models.CharField(
                        max_length=10,
                        choices=[
                            ("SUBMITTED", "Submitted"),
                            ("APPROVED", "Approved"),
                            ("REJECTED", "Rejected"),
                        ],
                        default="SUBMITTED",
                        db_index=True,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payment_vouchers",
                        to="companies.company",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payment_vouchers",
                        to="purchases.supplier",
                    ),
                ),
                (
                    "bank_account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payment_vouchers",
                        to="accounting.account",
                    ),
                ),
                (
                    "journal_voucher",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payment_voucher",
                        to="accounting.journalvoucher",
                    ),
                ),
            ],
            options={
                "ordering": ["-payment_date", "-id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "number"),
                        name="uniq_payment_voucher_company_number",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PaymentVoucherLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(max_length=255, blank=True, default="")),
                ("amount", models.DecimalField(max_digits=16, decimal_places=2)),
                ("vat_rate", models.DecimalField(max_digits=6, decimal_places=2, default=Decimal("0.00"))),
                ("vat_amount", models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))),
                (
                    "payment_voucher",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lines",
                        to="accounting.paymentvoucher",
                    ),
                ),
                (
                    "expense_account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payment_voucher_lines",
                        to="accounting.account",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
            },
        ),
    ]
