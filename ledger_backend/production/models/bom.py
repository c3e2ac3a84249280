# production/models/bom.py

"""
======================================================
PATH: production/models/bom.py
======================================================
BILL OF MATERIALS

- quantity_required is per ONE unit of gross output
- INJECTION boms are planned from machine operations; BLOWING boms from a
  planned quantity (no planned scrap)
- overheads are applied at completion on top of material cost
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from accounting.models.account import Account
from companies.models import Company
from inventory.models.item import InventoryItem


class Bom(models.Model):
    class Stage(models.TextChoices):
        INJECTION = "INJECTION", "Injection"
        BLOWING = "BLOWING", "Blowing"

    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="boms",
    )

    name = models.CharField(max_length=255)
    stage = models.CharField(max_length=20, choices=Stage.choices)

    output_item = models.ForeignKey(
        InventoryItem,
        on_delete=models.PROTECT,
        related_name="output_boms",
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["company", "name"]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "name"],
                name="uniq_bom_company_name",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.stage})"

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError({"name": "name is required"})

        if self.output_item_id and self.company_id and self.output_item.company_id != self.company_id:
            raise ValidationError({"output_item": "Output item belongs to another company"})

        if self.output_item_id and self.output_item.kind == InventoryItem.Kind.RAW_MATERIAL:
            raise ValidationError({"output_item": "A BOM cannot produce a raw material"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


class BomComponent(models.Model):
    bom = models.ForeignKey(
        Bom,
        on_delete=models.CASCADE,
        related_name="components",
    )

    item = models.ForeignKey(
        InventoryItem,
        on_delete=models.PROTECT,
        related_name="bom_usages",
    )

    quantity_required = models.DecimalField(max_digits=18, decimal_places=6)
    unit = models.CharField(max_length=20, default="pcs")

    class Meta:
        ordering = ["bom", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["bom", "item"],
                name="uniq_bom_component_item",
            ),
            models.CheckConstraint(
                condition=Q(quantity_required__gt=0),
                name="chk_bom_component_qty_positive",
            ),
        ]

    def __str__(self):
        return f"{self.bom_id} | {self.item_id} x {self.quantity_required}"

    def clean(self):
        if self.quantity_required is None or self.quantity_required <= 0:
            raise ValidationError({"quantity_required": "quantity_required must be > 0"})

        if self.bom_id and self.item_id:
            if self.item.company_id != self.bom.company_id:
                raise ValidationError({"item": "Component item belongs to another company"})
            if self.item_id == self.bom.output_item_id:
                raise ValidationError({"item": "A BOM cannot consume its own output"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


class BomOverhead(models.Model):
    class CostMethod(models.TextChoices):
        PER_UNIT = "PER_UNIT", "Per good unit"
        PER_BATCH = "PER_BATCH", "Per batch"
        PERCENTAGE_OF_MATERIAL = "PERCENTAGE_OF_MATERIAL", "Percentage of material"

    bom = models.ForeignKey(
        Bom,
        on_delete=models.CASCADE,
        related_name="overheads",
    )

    name = models.CharField(max_length=120)

    gl_account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="bom_overheads",
        help_text="Account credited when the overhead is absorbed into WIP.",
    )

    cost_method = models.CharField(max_length=30, choices=CostMethod.choices)
    cost = models.DecimalField(max_digits=16, decimal_places=4)

    class Meta:
        ordering = ["bom", "id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(cost__gte=0),
                name="chk_bom_overhead_cost_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.cost_method} {self.cost})"

    def amount_for(self, *, good: Decimal, material_cost: Decimal) -> Decimal:
        if self.cost_method == self.CostMethod.PER_UNIT:
            return Decimal(self.cost) * good
        if self.cost_method == self.CostMethod.PER_BATCH:
            return Decimal(self.cost)
        return material_cost * Decimal(self.cost) / Decimal("100")

    def clean(self):
        if self.cost is None or self.cost < 0:
            raise ValidationError({"cost": "cost cannot be negative"})

        if self.bom_id and self.gl_account_id and self.gl_account.company_id != self.bom.company_id:
            raise ValidationError({"gl_account": "Overhead account belongs to another company"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
