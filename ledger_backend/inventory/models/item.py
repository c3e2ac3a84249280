# inventory/models/item.py

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from accounting.models.account import Account
from companies.models import Company


class InventoryItem(models.Model):
    """
    A stock-keeping item (raw material, semi-finished or finished product).

    There is deliberately NO quantity_on_hand / unit_cost column: both are
    derived from StockEvent rows by the valuation engine.
    """

    class Kind(models.TextChoices):
        RAW_MATERIAL = "RAW_MATERIAL", "Raw Material"
        SEMI_FINISHED = "SEMI_FINISHED", "Semi-Finished"
        PRODUCT = "PRODUCT", "Product"

    INVENTORY_ROLE_BY_KIND = {
        Kind.RAW_MATERIAL: Account.SystemRole.INVENTORY_RAW_MATERIAL,
        Kind.SEMI_FINISHED: Account.SystemRole.INVENTORY_SEMI_FINISHED,
        Kind.PRODUCT: Account.SystemRole.INVENTORY_FINISHED_GOODS,
    }

    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="inventory_items",
    )

    sku = models.CharField(max_length=64)
    name = models.CharField(max_length=255)
    kind = models.CharField(max_length=20, choices=Kind.choices)
    unit = models.CharField(max_length=20, default="pcs")

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["company", "sku"]
        indexes = [
            models.Index(fields=["company", "kind"], name="inv_item_company_kind_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "sku"],
                name="uniq_inventory_item_company_sku",
            ),
            models.CheckConstraint(
                condition=~Q(sku=""),
                name="chk_inventory_item_sku_not_blank",
            ),
        ]

    def __str__(self):
        return f"{self.sku} – {self.name}"

    @property
    def inventory_role(self) -> str:
        return self.INVENTORY_ROLE_BY_KIND[self.kind]

    def clean(self):
        self.sku = (self.sku or "").strip().upper()
        self.name = (self.name or "").strip()
        if not self.sku:
            raise ValidationError({"sku": "sku is required"})
        if not self.name:
            raise ValidationError({"name": "name is required"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
