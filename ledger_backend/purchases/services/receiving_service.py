# purchases/services/receiving_service.py


"""
======================================================
PATH: purchases/services/receiving_service.py
======================================================
GOODS RECEIVING SERVICE (GRN)

Receive supplier goods atomically:
1) Validate supplier + lines (quantity > 0, unit_price ≥ 0)
2) Allocate GRN-NNNNN from the locked sequence
3) Insert GRN header + lines
4) Append RECEIPT stock events (IN, priced at the purchase unit price)

The ledger effect (Dr Inventory / Cr A/P) is posted when the supplier bill
raised from this GRN is approved (bill_service.approve_supplier_bill).
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import transaction
from django.utils import timezone

from accounting.services.exceptions import InputValidationError, NotFoundError
from accounting.services.sequences import next_document_number
from inventory.models.stock_event import StockEvent
from inventory.services.stock_service import lock_items, record_stock_in
from inventory.services.valuation import quantize_cost
from purchases.models import GoodsReceipt, GoodsReceiptItem, Supplier

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
QTY_PLACES = Decimal("0.0001")

REFERENCE_TYPE = "GOODS_RECEIPT"


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def get_supplier(*, context, supplier_id) -> Supplier:
    try:
        supplier = Supplier.objects.get(company=context.company, pk=supplier_id)
    except (Supplier.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Supplier {supplier_id} not found") from exc

    if not supplier.is_active:
        raise InputValidationError(f"Supplier {supplier.name} is inactive")
    return supplier


def _normalize_lines(lines) -> list[dict]:
    if not lines:
        raise InputValidationError("A goods receipt requires at least one line")

    out = []
    for idx, line in enumerate(lines, start=1):
        if not isinstance(line, dict):
            raise InputValidationError("Each receipt line must be an object/dict")

        item_id = line.get("item_id")
        if item_id in (None, ""):
            raise InputValidationError(f"Line {idx}: item_id is required")

        try:
            quantity = Decimal(str(line.get("quantity"))).quantize(QTY_PLACES)
            unit_price = quantize_cost(Decimal(str(line.get("unit_price") or "0")))
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise InputValidationError(f"Line {idx}: invalid quantity or unit_price") from exc

        if quantity <= 0:
            raise InputValidationError(f"Line {idx}: quantity must be > 0")
        if unit_price < 0:
            raise InputValidationError(f"Line {idx}: unit_price cannot be negative")

        out.append(
            {
                "item_id": int(item_id),
                "quantity": quantity,
                "unit_price": unit_price,
                "line_total": _money(quantity * unit_price),
            }
        )
    return out


@transaction.atomic
def receive_goods(*, context, supplier_id, lines, receipt_date=None, notes: str = "") -> dict:
    """
    RECEIVE GOODS (atomic)

    Returns {receipt_id, grn_number, total_amount, lines}.
    """
    supplier = get_supplier(context=context, supplier_id=supplier_id)
    normalized = _normalize_lines(lines)
    receipt_date = receipt_date or timezone.localdate()

    items = lock_items(context=context, item_ids=[ln["item_id"] for ln in normalized])
    for item in items.values():
        if not item.is_active:
            raise InputValidationError(f"Item {item.sku} is inactive")

    total = sum((ln["line_total"] for ln in normalized), Decimal("0.00"))

    receipt = GoodsReceipt.objects.create(
        company=context.company,
        grn_number=next_document_number(company=context.company, prefix="GRN"),
        supplier=supplier,
        receipt_date=receipt_date,
        total_amount=total,
        notes=(notes or "").strip(),
        created_by=context.user if getattr(context.user, "pk", None) else None,
    )

    for ln in normalized:
        item = items[ln["item_id"]]
        GoodsReceiptItem.objects.create(
            receipt=receipt,
            item=item,
            quantity=ln["quantity"],
            unit_price=ln["unit_price"],
            line_total=ln["line_total"],
        )
        record_stock_in(
            context=context,
            item=item,
            quantity=ln["quantity"],
            unit_price=ln["unit_price"],
            source=StockEvent.Source.RECEIPT,
            event_date=receipt_date,
            reference_type=REFERENCE_TYPE,
            reference_id=receipt.pk,
        )

    logger.info(
        "Goods received",
        extra={
            "company": context.company.code,
            "grn_number": receipt.grn_number,
            "supplier": supplier.name,
            "total": str(total),
            "request_id": context.request_id,
        },
    )

    return {
        "receipt_id": receipt.pk,
        "grn_number": receipt.grn_number,
        "total_amount": str(total),
        "lines": len(normalized),
    }
