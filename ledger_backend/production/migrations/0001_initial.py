"""
======================================================
PATH: production/migrations/0001_initial.py
======================================================
MIGRATION: CREATE BOMS + PRODUCTION ORDERS

Purpose:
- Bom with components (per unit of gross output) and overheads
- ProductionOrder with machine operations and per-component plan lines
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
            name="Bom",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                (
                    "stage",
                    models.CharField(
                        max_length=20,
                        choices=[("INJECTION", "Injection"), ("BLOWING", "Blowing")],
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="boms",
                        to="companies.company",
                    ),
                ),
                (
                    "output_item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="output_boms",
                        to="inventory.inventoryitem",
                    ),
                ),
            ],
            options={
                "ordering": ["company", "name"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "name"),
                        name="uniq_bom_company_name",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="BomComponent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity_required", models.DecimalField(max_digits=18, decimal_places=6)),
                ("unit", models.CharField(max_length=20, default="pcs")),
                (
                    "bom",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="components",
                        to="production.bom",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bom_usages",
                        to="inventory.inventoryitem",
                    ),
                ),
            ],
            options={
                "ordering": ["bom", "id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("bom", "item"),
                        name="uniq_bom_component_item",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("quantity_required__gt", 0)),
                        name="chk_bom_component_qty_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="BomOverhead",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120)),
                (
                    "cost_method",
                    models.CharField(
                        max_length=30,
                        choices=[
                            ("PER_UNIT", "Per good unit"),
                            ("PER_BATCH", "Per batch"),
                            ("PERCENTAGE_OF_MATERIAL", "Percentage of material"),
                        ],
                    ),
                ),
                ("cost", models.DecimalField(max_digits=16, decimal_places=4)),
                (
                    "bom",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="overheads",
                        to="production.bom",
                    ),
                ),
                (
                    "gl_account",
                    models.ForeignKey(
                        help_text="Account credited when the overhead is absorbed into WIP.",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bom_overheads",
                        to="accounting.account",
                    ),
                ),
            ],
            options={
                "ordering": ["bom", "id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("cost__gte", 0)),
                        name="chk_bom_overhead_cost_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProductionOrder",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("order_number", models.CharField(max_length=30)),
                ("order_date", models.DateField()),
                (
                    "status",
                    models.CharField(
                        max_length=20,
                        choices=[
                            ("PLANNED", "Planned"),
                            ("IN_PROGRESS", "In Progress"),
                            ("COMPLETED", "Completed"),
                        ],
                        default="PLANNED",
                    ),
                ),
                ("planned_quantity", models.DecimalField(max_digits=18, decimal_places=4, null=True, blank=True)),
                ("gross_planned", models.DecimalField(max_digits=18, decimal_places=4, default=Decimal("0"))),
                ("good_planned", models.DecimalField(max_digits=18, decimal_places=4, default=Decimal("0"))),
                ("defective_planned", models.DecimalField(max_digits=18, decimal_places=4, default=Decimal("0"))),
                (
                    "total_material_cost",
                    models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00")),
                ),
                ("cost_per_unit", models.DecimalField(max_digits=18, decimal_places=6, default=Decimal("0"))),
                ("actual_good", models.DecimalField(max_digits=18, decimal_places=4, null=True, blank=True)),
                ("actual_defective", models.DecimalField(max_digits=18, decimal_places=4, null=True, blank=True)),
                ("actual_material_cost", models.DecimalField(max_digits=18, decimal_places=2, null=True, blank=True)),
                ("actual_overhead_cost", models.DecimalField(max_digits=18, decimal_places=2, null=True, blank=True)),
                ("actual_total_cost", models.DecimalField(max_digits=18, decimal_places=2, null=True, blank=True)),
                ("actual_cost_per_unit", models.DecimalField(max_digits=18, decimal_places=6, null=True, blank=True)),
                ("completion_date", models.DateField(null=True, blank=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="production_orders",
                        to="companies.company",
                    ),
                ),
                (
                    "bom",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="production.bom",
                    ),
                ),
                (
                    "journal_voucher",
                    models.OneToOneField(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="production_order",
                        to="accounting.journalvoucher",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="production_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-order_date", "-id"],
                "indexes": [
                    models.Index(fields=["company", "status"], name="prod_order_company_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "order_number"),
                        name="uniq_production_order_number",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("gross_planned__gte", 0),
                            ("good_planned__gte", 0),
                            ("defective_planned__gte", 0),
                        ),
                        name="chk_production_order_plan_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProductionOrderOperation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("sequence", models.PositiveIntegerField(default=1)),
                ("cycle_time_seconds", models.DecimalField(max_digits=10, decimal_places=3)),
                ("cavities_per_round", models.PositiveIntegerField()),
                ("running_hours", models.DecimalField(max_digits=10, decimal_places=3)),
                ("scrap_percent", models.DecimalField(max_digits=6, decimal_places=3, default=Decimal("0"))),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="operations",
                        to="production.productionorder",
                    ),
                ),
            ],
            options={
                "ordering": ["order", "sequence"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("order", "sequence"),
                        name="uniq_production_operation_sequence",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("scrap_percent__gte", 0), ("scrap_percent__lte", 100)),
                        name="chk_production_operation_scrap_range",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProductionOrderLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("planned_consumption", models.DecimalField(max_digits=18, decimal_places=4)),
                ("on_hand_at_plan", models.DecimalField(max_digits=18, decimal_places=4)),
                ("average_unit_cost", models.DecimalField(max_digits=18, decimal_places=6)),
                ("planned_cost", models.DecimalField(max_digits=18, decimal_places=2)),
                ("shortage", models.BooleanField(default=False)),
                ("no_cost", models.BooleanField(default=False)),
                ("actual_consumption", models.DecimalField(max_digits=18, decimal_places=4, null=True, blank=True)),
                ("actual_unit_cost", models.DecimalField(max_digits=18, decimal_places=6, null=True, blank=True)),
                ("actual_cost", models.DecimalField(max_digits=18, decimal_places=2, null=True, blank=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lines",
                        to="production.productionorder",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="production_lines",
                        to="inventory.inventoryitem",
                    ),
                ),
            ],
            options={
                "ordering": ["order", "id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("order", "item"),
                        name="uniq_production_line_item",
                    ),
                ],
            },
        ),
    ]
