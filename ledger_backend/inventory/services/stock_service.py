# inventory/services/stock_service.py

"""
======================================================
PATH: inventory/services/stock_service.py
======================================================
STOCK EVENT SERVICE (ONLY WRITER OF StockEvent)

Hard rules:
- Items are locked (SELECT ... FOR UPDATE, ascending id) before any outgoing
  event is checked and appended, so two concurrent OUT flows on the same item
  serialize and cannot both pass the sufficiency check.
- Sufficiency is checked in event-date order: an OUT event dated D is refused
  when it exceeds the quantity on hand at D or would drive any later-dated
  running quantity negative.
- OUT events are stamped with the running average as of their date (audit only).
- Every query is filtered by context.company.

All writers must run inside the caller's transaction.atomic block so the stock
events roll back with the business document and its ledger voucher.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, OperationalError, transaction
from django.utils import timezone

from accounting.services.exceptions import (
    ConcurrencyConflictError,
    InputValidationError,
    InsufficientStockError,
    NotFoundError,
    PersistenceFailureError,
)
from inventory.models.item import InventoryItem
from inventory.models.stock_event import StockEvent
from inventory.services.valuation import Valuation, available_at, quantize_cost, valuate

logger = logging.getLogger(__name__)

QTY_PLACES = Decimal("0.0001")


def _qty(value, *, label: str = "quantity") -> Decimal:
    try:
        qty = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InputValidationError(f"Invalid {label}: {value!r}") from exc

    if not qty.is_finite():
        raise InputValidationError(f"Invalid {label}: {value!r}")

    return qty.quantize(QTY_PLACES)


def _price(value) -> Decimal:
    try:
        price = Decimal(str(value if value not in (None, "") else "0"))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InputValidationError(f"Invalid unit price: {value!r}") from exc

    if not price.is_finite() or price < 0:
        raise InputValidationError(f"Invalid unit price: {value!r}")

    return quantize_cost(price)


def get_item(*, context, item_id) -> InventoryItem:
    try:
        return InventoryItem.objects.get(company=context.company, pk=item_id)
    except (InventoryItem.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Inventory item {item_id} not found") from exc


def lock_items(*, context, item_ids) -> dict[int, InventoryItem]:
    """
    Lock the given items in ascending id order and return them by id.

    Raises NotFoundError if any id is not an item of the context company.
    """
    ids = sorted({int(i) for i in item_ids})
    if not ids:
        return {}

    try:
        items = list(
            InventoryItem.objects.select_for_update()
            .filter(company=context.company, pk__in=ids)
            .order_by("id")
        )
    except OperationalError as exc:
        raise ConcurrencyConflictError("Inventory items are locked; please retry") from exc

    found = {item.pk: item for item in items}
    missing = [i for i in ids if i not in found]
    if missing:
        raise NotFoundError(f"Inventory item(s) not found: {missing}")

    return found


def _append(*, context, item, event_date, quantity_delta, unit_price, source, reference_type, reference_id):
    try:
        with transaction.atomic():
            return StockEvent.objects.create(
                company=context.company,
                item=item,
                event_date=event_date,
                quantity_delta=quantity_delta,
                unit_price=unit_price,
                source=source,
                reference_type=(reference_type or "").strip(),
                reference_id=str(reference_id or "").strip(),
            )
    except DjangoValidationError as exc:
        raise InputValidationError("; ".join(exc.messages)) from exc
    except OperationalError as exc:
        raise ConcurrencyConflictError("Stock ledger is busy; please retry") from exc
    except DatabaseError as exc:
        raise PersistenceFailureError("Failed to write stock event") from exc


def record_stock_in(
    *,
    context,
    item: InventoryItem,
    quantity,
    unit_price,
    source: str,
    event_date,
    reference_type: str = "",
    reference_id="",
) -> StockEvent:
    if item.company_id != context.company_id:
        raise NotFoundError(f"Inventory item {item.pk} not found")

    if source not in StockEvent.IN_SOURCES:
        raise InputValidationError(f"{source} is not an incoming stock source")

    qty = _qty(quantity)
    if qty <= 0:
        raise InputValidationError("Incoming quantity must be > 0")

    event = _append(
        context=context,
        item=item,
        event_date=event_date,
        quantity_delta=qty,
        unit_price=_price(unit_price),
        source=source,
        reference_type=reference_type,
        reference_id=reference_id,
    )
    logger.debug(
        "Stock in",
        extra={"item": item.sku, "qty": str(qty), "source": source, "request_id": context.request_id},
    )
    return event


def record_stock_out(
    *,
    context,
    item: InventoryItem,
    quantity,
    source: str,
    event_date,
    reference_type: str = "",
    reference_id="",
) -> tuple[StockEvent, Valuation]:
    """
    Append an outgoing event priced at the average as of its event date.

    The caller must hold the item lock (lock_items). Returns the event and the
    valuation it was checked against (its average is the unit cost consumed).
    """
    if item.company_id != context.company_id:
        raise NotFoundError(f"Inventory item {item.pk} not found")

    if source not in StockEvent.OUT_SOURCES:
        raise InputValidationError(f"{source} is not an outgoing stock source")

    qty = _qty(quantity)
    if qty <= 0:
        raise InputValidationError("Outgoing quantity must be > 0")

    try:
        current, available = available_at(item, event_date)
    except ValueError as exc:
        raise InputValidationError(f"Invalid event date: {event_date!r}") from exc

    if available < qty:
        logger.warning(
            "Insufficient stock",
            extra={
                "item": item.sku,
                "requested": str(qty),
                "available": str(available),
                "event_date": str(event_date),
                "request_id": context.request_id,
            },
        )
        raise InsufficientStockError(item=item, requested=qty, available=available)

    event = _append(
        context=context,
        item=item,
        event_date=event_date,
        quantity_delta=-qty,
        unit_price=quantize_cost(current.average_unit_cost),
        source=source,
        reference_type=reference_type,
        reference_id=reference_id,
    )
    return event, current


@transaction.atomic
def issue_material(*, context, item_id, quantity, issue_date=None, reference_id="", memo: str = "") -> StockEvent:
    """Issue material out of stock (ISSUANCE) with the same sufficiency rule as sales."""
    items = lock_items(context=context, item_ids=[item_id])
    item = items[int(item_id)]

    event, valuation = record_stock_out(
        context=context,
        item=item,
        quantity=quantity,
        source=StockEvent.Source.ISSUANCE,
        event_date=issue_date or timezone.localdate(),
        reference_type="ISSUANCE",
        reference_id=reference_id or memo[:64],
    )
    logger.info(
        "Material issued",
        extra={
            "company": context.company.code,
            "item": item.sku,
            "qty": str(-event.quantity_delta),
            "avg_cost": str(quantize_cost(valuation.average_unit_cost)),
        },
    )
    return event


def item_history(*, context, item_id, as_of=None) -> tuple[InventoryItem, Valuation]:
    """Item plus its valuation with a per-event trace (read-only)."""
    item = get_item(context=context, item_id=item_id)
    return item, valuate(item, as_of=as_of, with_trace=True)
