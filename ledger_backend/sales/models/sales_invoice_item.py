# sales/models/sales_invoice_item.py

"""
SALES INVOICE ITEM

unit_cost / cogs_amount are written once, when the invoice is issued (the
average unit cost at that moment). Cancellation restocks at this unit_cost.
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.db.models import Q

from inventory.models.item import InventoryItem

from .sales_invoice import SalesInvoice


class SalesInvoiceItem(models.Model):
    invoice = models.ForeignKey(
        SalesInvoice,
        on_delete=models.CASCADE,
        related_name="items",
    )

    item = models.ForeignKey(
        InventoryItem,
        on_delete=models.PROTECT,
        related_name="sales_invoice_items",
    )

    quantity = models.DecimalField(max_digits=18, decimal_places=4)
    unit_price = models.DecimalField(max_digits=16, decimal_places=2)
    vat_rate = models.DecimalField(max_digits=6, decimal_places=3, default=Decimal("0"))

    line_subtotal = models.DecimalField(max_digits=16, decimal_places=2)
    vat_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    line_total = models.DecimalField(max_digits=16, decimal_places=2)

    unit_cost = models.DecimalField(max_digits=18, decimal_places=6, default=Decimal("0"))
    cogs_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["invoice", "id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="chk_sales_invoice_item_qty_positive",
            ),
            models.CheckConstraint(
                condition=Q(unit_price__gte=0),
                name="chk_sales_invoice_item_price_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.invoice_id} | {self.item_id} x {self.quantity}"
