# inventory/services/valuation.py

"""
======================================================
PATH: inventory/services/valuation.py
======================================================
VALUATION ENGINE (WEIGHTED AVERAGE)

Recomputes quantity on hand and weighted-average unit cost of an item from its
full stock event history. There is no stored quantity/cost to drift.

Recurrence, from (qty=0, avg=0), events ordered by (event_date, id):
- IN  (delta > 0): value = qty·avg + delta·price; qty += delta;
                   avg = value / qty   (0 when qty lands on 0)
- OUT (delta < 0): qty += delta; avg unchanged

Properties:
- side-effect free and idempotent (read-only queries, no caching)
- OUT events never move the average
- an IN event lands the average between the old average and the incoming price
- one item's result depends only on that item's events
- never clamps: callers check sufficiency BEFORE appending an OUT event
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from inventory.models.stock_event import StockEvent

ZERO = Decimal("0")
COST_PLACES = Decimal("0.000001")
QTY_PLACES = Decimal("0.0001")


@dataclass(frozen=True)
class TracePoint:
    event_id: int | None
    event_date: date | None
    source: str | None
    quantity_delta: Decimal
    unit_price: Decimal
    quantity_on_hand: Decimal
    average_unit_cost: Decimal


@dataclass(frozen=True)
class Valuation:
    quantity_on_hand: Decimal = ZERO
    average_unit_cost: Decimal = ZERO
    trace: tuple[TracePoint, ...] = field(default_factory=tuple)

    @property
    def total_value(self) -> Decimal:
        return self.quantity_on_hand * self.average_unit_cost

    def as_dict(self) -> dict:
        return {
            "quantity_on_hand": str(self.quantity_on_hand.quantize(QTY_PLACES, rounding=ROUND_HALF_UP)),
            "average_unit_cost": str(quantize_cost(self.average_unit_cost)),
            "total_value": str(self.total_value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)),
        }


def quantize_cost(value: Decimal) -> Decimal:
    return Decimal(value).quantize(COST_PLACES, rounding=ROUND_HALF_UP)


def apply_event(quantity: Decimal, average: Decimal, delta: Decimal, price: Decimal) -> tuple[Decimal, Decimal]:
    """One step of the weighted-average recurrence."""
    if delta > 0:
        new_quantity = quantity + delta
        if new_quantity == 0:
            return new_quantity, ZERO
        return new_quantity, (quantity * average + delta * price) / new_quantity

    return quantity + delta, average


def _unpack(event) -> tuple[Decimal, Decimal, int | None, date | None, str | None]:
    if isinstance(event, (tuple, list)):
        delta, price = event[0], event[1]
        return Decimal(str(delta)), Decimal(str(price or 0)), None, None, None

    return (
        Decimal(event.quantity_delta),
        Decimal(event.unit_price or 0),
        getattr(event, "id", None),
        getattr(event, "event_date", None),
        getattr(event, "source", None),
    )


def replay(events: Iterable, *, with_trace: bool = False) -> Valuation:
    """
    Run the recurrence over already-ordered events.

    Events are StockEvent-like objects (quantity_delta, unit_price) or plain
    (quantity_delta, unit_price) tuples.
    """
    quantity = ZERO
    average = ZERO
    trace: list[TracePoint] = []

    for event in events:
        delta, price, event_id, event_date, source = _unpack(event)
        if delta == 0:
            continue

        quantity, average = apply_event(quantity, average, delta, price)

        if with_trace:
            trace.append(
                TracePoint(
                    event_id=event_id,
                    event_date=event_date,
                    source=source,
                    quantity_delta=delta,
                    unit_price=price,
                    quantity_on_hand=quantity,
                    average_unit_cost=average,
                )
            )

    return Valuation(quantity_on_hand=quantity, average_unit_cost=average, trace=tuple(trace))


def event_queryset(item, *, as_of: date | None = None):
    qs = StockEvent.objects.filter(company_id=item.company_id, item=item)
    if as_of is not None:
        qs = qs.filter(event_date__lte=as_of)
    return qs.order_by("event_date", "id")


def valuate(item, *, as_of: date | None = None, with_trace: bool = False) -> Valuation:
    """Current (or as-of) quantity on hand and average unit cost of one item."""
    events = event_queryset(item, as_of=as_of).only(
        "id", "event_date", "source", "quantity_delta", "unit_price"
    )
    return replay(events.iterator(), with_trace=with_trace)


def valuate_many(items) -> dict[int, Valuation]:
    """Valuate several items with one ordered scan; items without events get zeros."""
    items = list(items)
    if not items:
        return {}

    grouped: dict[int, list[tuple[Decimal, Decimal]]] = {item.pk: [] for item in items}
    rows = (
        StockEvent.objects.filter(item_id__in=grouped.keys())
        .order_by("item_id", "event_date", "id")
        .values_list("item_id", "quantity_delta", "unit_price")
    )
    for item_id, delta, price in rows.iterator():
        grouped[item_id].append((delta, price))

    return {item_id: replay(events) for item_id, events in grouped.items()}


def _as_date(value) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def available_at(item, event_date) -> tuple[Valuation, Decimal]:
    """
    Valuation just before an OUT event dated `event_date` is appended, plus the
    largest quantity that event may take.

    A new event sorts after every existing event on or before its date, so it
    shifts the running quantity of every later-dated event down by its size.
    The available quantity is therefore the smallest running quantity from the
    insertion point onward, never only today's total.
    """
    event_date = _as_date(event_date)
    full = valuate(item, with_trace=True)
    if event_date is None:
        return Valuation(full.quantity_on_hand, full.average_unit_cost), full.quantity_on_hand

    before = Valuation()
    available = None
    for point in full.trace:
        if point.event_date is not None and point.event_date <= event_date:
            before = Valuation(point.quantity_on_hand, point.average_unit_cost)
        else:
            available = point.quantity_on_hand if available is None else min(available, point.quantity_on_hand)

    if available is None or before.quantity_on_hand < available:
        available = before.quantity_on_hand
    return before, available
