# production/models/order.py

"""
======================================================
PATH: production/models/order.py
======================================================
PRODUCTION ORDER

Lifecycle: PLANNED → IN_PROGRESS → COMPLETED (terminal).

- Planned quantities/costs are captured at order entry (advisory shortages and
  missing costs are flagged on the plan lines, never blocking).
- Actual quantities/costs and the PRODUCTION journal voucher are recorded once,
  at completion, by production.services.production_service.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from accounting.models.voucher import JournalVoucher
from companies.models import Company
from inventory.models.item import InventoryItem
from production.models.bom import Bom

QTY = {"max_digits": 18, "decimal_places": 4}
MONEY = {"max_digits": 18, "decimal_places": 2}
COST = {"max_digits": 18, "decimal_places": 6}


class ProductionOrder(models.Model):
    STATUS_PLANNED = "PLANNED"
    STATUS_IN_PROGRESS = "IN_PROGRESS"
    STATUS_COMPLETED = "COMPLETED"

    STATUS_CHOICES = [
        (STATUS_PLANNED, "Planned"),
        (STATUS_IN_PROGRESS, "In Progress"),
        (STATUS_COMPLETED, "Completed"),
    ]

    OPEN_STATUSES = (STATUS_PLANNED, STATUS_IN_PROGRESS)

    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="production_orders",
    )

    order_number = models.CharField(max_length=30)

    bom = models.ForeignKey(
        Bom,
        on_delete=models.PROTECT,
        related_name="orders",
    )

    order_date = models.DateField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PLANNED)

    # -------------------------
    # PLAN
    # -------------------------
    planned_quantity = models.DecimalField(null=True, blank=True, **QTY)
    gross_planned = models.DecimalField(default=Decimal("0"), **QTY)
    good_planned = models.DecimalField(default=Decimal("0"), **QTY)
    defective_planned = models.DecimalField(default=Decimal("0"), **QTY)
    total_material_cost = models.DecimalField(default=Decimal("0.00"), **MONEY)
    cost_per_unit = models.DecimalField(default=Decimal("0"), **COST)

    # -------------------------
    # ACTUALS (set on completion)
    # -------------------------
    actual_good = models.DecimalField(null=True, blank=True, **QTY)
    actual_defective = models.DecimalField(null=True, blank=True, **QTY)
    actual_material_cost = models.DecimalField(null=True, blank=True, **MONEY)
    actual_overhead_cost = models.DecimalField(null=True, blank=True, **MONEY)
    actual_total_cost = models.DecimalField(null=True, blank=True, **MONEY)
    actual_cost_per_unit = models.DecimalField(null=True, blank=True, **COST)
    completion_date = models.DateField(null=True, blank=True)

    journal_voucher = models.OneToOneField(
        JournalVoucher,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="production_order",
    )

    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="production_orders",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-order_date", "-id"]
        indexes = [
            models.Index(fields=["company", "status"], name="prod_order_company_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "order_number"],
                name="uniq_production_order_number",
            ),
            models.CheckConstraint(
                condition=Q(gross_planned__gte=0) & Q(good_planned__gte=0) & Q(defective_planned__gte=0),
                name="chk_production_order_plan_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.order_number} ({self.status})"

    @property
    def is_completed(self) -> bool:
        return self.status == self.STATUS_COMPLETED

    @property
    def actual_gross(self) -> Decimal | None:
        if self.actual_good is None or self.actual_defective is None:
            return None
        return self.actual_good + self.actual_defective

    def clean(self):
        if self.bom_id and self.company_id and self.bom.company_id != self.company_id:
            raise ValidationError({"bom": "BOM belongs to another company"})

        if self.status == self.STATUS_COMPLETED and self.journal_voucher_id is None:
            raise ValidationError("A completed order must reference its production voucher")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


class ProductionOrderOperation(models.Model):
    """One machine run feeding an INJECTION order."""

    order = models.ForeignKey(
        ProductionOrder,
        on_delete=models.CASCADE,
        related_name="operations",
    )

    sequence = models.PositiveIntegerField(default=1)
    cycle_time_seconds = models.DecimalField(max_digits=10, decimal_places=3)
    cavities_per_round = models.PositiveIntegerField()
    running_hours = models.DecimalField(max_digits=10, decimal_places=3)
    scrap_percent = models.DecimalField(max_digits=6, decimal_places=3, default=Decimal("0"))

    class Meta:
        ordering = ["order", "sequence"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "sequence"],
                name="uniq_production_operation_sequence",
            ),
            models.CheckConstraint(
                condition=Q(scrap_percent__gte=0) & Q(scrap_percent__lte=100),
                name="chk_production_operation_scrap_range",
            ),
        ]

    def __str__(self):
        return f"{self.order_id} #{self.sequence}"


class ProductionOrderLine(models.Model):
    """Per-component plan snapshot (and actual consumption once completed)."""

    order = models.ForeignKey(
        ProductionOrder,
        on_delete=models.CASCADE,
        related_name="lines",
    )

    item = models.ForeignKey(
        InventoryItem,
        on_delete=models.PROTECT,
        related_name="production_lines",
    )

    planned_consumption = models.DecimalField(**QTY)
    on_hand_at_plan = models.DecimalField(**QTY)
    average_unit_cost = models.DecimalField(**COST)
    planned_cost = models.DecimalField(**MONEY)
    shortage = models.BooleanField(default=False)
    no_cost = models.BooleanField(default=False)

    actual_consumption = models.DecimalField(null=True, blank=True, **QTY)
    actual_unit_cost = models.DecimalField(null=True, blank=True, **COST)
    actual_cost = models.DecimalField(null=True, blank=True, **MONEY)

    class Meta:
        ordering = ["order", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "item"],
                name="uniq_production_line_item",
            ),
        ]

    def __str__(self):
        return f"{self.order_id} | {self.item_id} {self.planned_consumption}"
