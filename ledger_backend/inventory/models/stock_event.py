# inventory/models/stock_event.py

"""
STOCK EVENT STREAM (SOURCE OF TRUTH FOR QUANTITY + COST)

Immutable, append-only inventory ledger entry.

GUARANTEES:
- Append-only (no updates, no deletes)
- quantity_delta is signed: > 0 stock in, < 0 stock out, never 0
- Direction is validated against the source (RECEIPT is always IN, SALE always OUT, ...)
- Replay order is (event_date, id): id is the insertion order and breaks ties
- unit_price on IN events is the incoming price; on OUT events it records the
  running average at the time (audit only, it never moves the average)
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from companies.models import Company
from inventory.models.item import InventoryItem


class StockEvent(models.Model):
    class Source(models.TextChoices):
        RECEIPT = "RECEIPT", "Goods Receipt"
        PRODUCTION_OUTPUT = "PRODUCTION_OUTPUT", "Production Output"
        PRODUCTION_CONSUMPTION = "PRODUCTION_CONSUMPTION", "Production Consumption"
        ISSUANCE = "ISSUANCE", "Material Issuance"
        SALE = "SALE", "Sale"
        SALE_RETURN = "SALE_RETURN", "Sale Cancellation Restock"
        OPENING_BALANCE = "OPENING_BALANCE", "Opening Balance"

    IN_SOURCES = frozenset(
        {
            Source.RECEIPT,
            Source.PRODUCTION_OUTPUT,
            Source.SALE_RETURN,
            Source.OPENING_BALANCE,
        }
    )
    OUT_SOURCES = frozenset(
        {
            Source.PRODUCTION_CONSUMPTION,
            Source.ISSUANCE,
            Source.SALE,
        }
    )

    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="stock_events",
    )

    item = models.ForeignKey(
        InventoryItem,
        on_delete=models.PROTECT,
        related_name="stock_events",
    )

    event_date = models.DateField()

    quantity_delta = models.DecimalField(max_digits=18, decimal_places=4)

    unit_price = models.DecimalField(
        max_digits=18,
        decimal_places=6,
        default=Decimal("0"),
        help_text="Incoming unit price (IN) or running average at the time (OUT).",
    )

    source = models.CharField(max_length=30, choices=Source.choices)

    reference_type = models.CharField(max_length=50, blank=True, default="")
    reference_id = models.CharField(max_length=64, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["event_date", "id"]
        indexes = [
            models.Index(fields=["item", "event_date", "id"], name="stock_event_item_replay_idx"),
            models.Index(fields=["company", "source"], name="stock_event_company_source_idx"),
            models.Index(fields=["company", "reference_type", "reference_id"], name="stock_event_reference_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(quantity_delta=0),
                name="chk_stock_event_delta_non_zero",
            ),
            models.CheckConstraint(
                condition=Q(unit_price__gte=0),
                name="chk_stock_event_price_non_negative",
            ),
        ]

    @property
    def is_in(self) -> bool:
        return self.quantity_delta > 0

    @property
    def value(self) -> Decimal:
        return self.quantity_delta * self.unit_price

    def clean(self):
        if self.quantity_delta is None or self.quantity_delta == 0:
            raise ValidationError("quantity_delta must be non-zero")

        if self.unit_price is None or self.unit_price < 0:
            raise ValidationError("unit_price cannot be negative")

        if self.source in self.IN_SOURCES and self.quantity_delta < 0:
            raise ValidationError(f"{self.source} events must increase stock")
        if self.source in self.OUT_SOURCES and self.quantity_delta > 0:
            raise ValidationError(f"{self.source} events must decrease stock")

        if self.item_id and self.company_id and self.item.company_id != self.company_id:
            raise ValidationError("Stock event item belongs to another company")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("StockEvent records are immutable")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("StockEvent records are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.item_id} | {self.source} | {self.quantity_delta} @ {self.unit_price}"
