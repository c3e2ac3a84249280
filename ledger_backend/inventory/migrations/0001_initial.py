"""
======================================================
PATH: inventory/migrations/0001_initial.py
======================================================
MIGRATION: CREATE InventoryItem + StockEvent

Purpose:
- Item master without any quantity/cost column
- Append-only stock event stream (signed quantity_delta, never zero)
"""

from __future__ import annotations

from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("companies", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="InventoryItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("sku", models.CharField(max_length=64)),
                ("name", models.CharField(max_length=255)),
                (
                    "kind",
                    models.CharField(
                        max_length=20,
                        choices=[
                            ("RAW_MATERIAL", "Raw Material"),
                            ("SEMI_FINISHED", "Semi-Finished"),
                            ("PRODUCT", "Product"),
                        ],
                    ),
                ),
                ("unit", models.CharField(max_length=20, default="pcs")),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="inventory_items",
                        to="companies.company",
                    ),
                ),
            ],
            options={
                "ordering": ["company", "sku"],
                "indexes": [
                    models.Index(fields=["company", "kind"], name="inv_item_company_kind_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "sku"),
                        name="uniq_inventory_item_company_sku",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("sku", ""), _negated=True),
                        name="chk_inventory_item_sku_not_blank",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("event_date", models.DateField()),
                ("quantity_delta", models.DecimalField(max_digits=18, decimal_places=4)),
                (
                    "unit_price",
                    models.DecimalField(
                        max_digits=18,
                        decimal_places=6,
                        default=Decimal("0"),
                        help_text="Incoming unit price (IN) or running average at the time (OUT).",
                    ),
                ),
                (
                    "source",
                    models.CharField(
                        max_length=30,
                        choices=[
                            ("RECEIPT", "Goods Receipt"),
                            ("PRODUCTION_OUTPUT", "Production Output"),
                            ("PRODUCTION_CONSUMPTION", "Production Consumption"),
                            ("ISSUANCE", "Material Issuance"),
                            ("SALE", "Sale"),
                            ("SALE_RETURN", "Sale Cancellation Restock"),
                            ("OPENING_BALANCE", "Opening Balance"),
                        ],
                    ),
                ),
                ("reference_type", models.CharField(max_length=50, blank=True, default="")),
                ("reference_id", models.CharField(max_length=64, blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_events",
                        to="companies.company",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_events",
                        to="inventory.inventoryitem",
                    ),
                ),
            ],
            options={
                "ordering": ["event_date", "id"],
                "indexes": [
                    models.Index(fields=["item", "event_date", "id"], name="stock_event_item_replay_idx"),
                    models.Index(fields=["company", "source"], name="stock_event_company_source_idx"),
                    models.Index(
                        fields=["company", "reference_type", "reference_id"],
                        name="stock_event_reference_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity_delta", 0), _negated=True),
                        name="chk_stock_event_delta_non_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("unit_price__gte", 0)),
                        name="chk_stock_event_price_non_negative",
                    ),
                ],
            },
        ),
    ]
