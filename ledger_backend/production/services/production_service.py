# production/services/production_service.py

"""
======================================================
PATH: production/services/production_service.py
======================================================
PRODUCTION ORDER ORCHESTRATOR

plan_production_order()
- expands the run (operations or planned quantity), prices it at current
  average costs and stores the plan + advisory flags

start_production_order()
- PLANNED → IN_PROGRESS

complete_production_order()  (atomic)
1) Lock order; must be PLANNED or IN_PROGRESS (else InvalidState, nothing posted)
2) Lock component + output items (ascending id)
3) Re-price at ACTUAL gross = actual_good + actual_defective
4) Consume components (PRODUCTION_CONSUMPTION OUT events; InsufficientStock blocks)
5) Post ONE PRODUCTION voucher:
     Dr WIP (material)      / Cr component inventory accounts
     Dr WIP (overheads)     / Cr overhead accounts
     Dr output inventory    / Cr WIP (total)
6) Output IN event for actual_good at total_cost / actual_good
7) Order → COMPLETED with actuals + voucher
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db import OperationalError, transaction
from django.utils import timezone

from accounting.models.voucher import JournalVoucher
from accounting.services.account_resolver import get_account_by_role, get_wip_account
from accounting.services.exceptions import (
    ConcurrencyConflictError,
    InputValidationError,
    InvalidStateError,
    NotFoundError,
)
from accounting.services.ledger_poster import post_voucher
from accounting.services.sequences import next_document_number
from inventory.models.stock_event import StockEvent
from inventory.services.stock_service import lock_items, record_stock_in, record_stock_out
from inventory.services.valuation import quantize_cost, valuate
from production.models import (
    Bom,
    ProductionOrder,
    ProductionOrderLine,
    ProductionOrderOperation,
)
from production.services.costing import (
    RunOperation,
    expand_blowing,
    expand_run,
    overhead_amounts,
    price_run,
    to_decimal,
)

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
QTY_PLACES = Decimal("0.0001")

REFERENCE_TYPE = "PRODUCTION_ORDER"


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _qty(v) -> Decimal:
    return Decimal(v).quantize(QTY_PLACES, rounding=ROUND_HALF_UP)


def _get_bom(*, context, bom_id) -> Bom:
    try:
        bom = Bom.objects.select_related("output_item").get(company=context.company, pk=bom_id)
    except (Bom.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"BOM {bom_id} not found") from exc

    if not bom.is_active:
        raise InvalidStateError(f"BOM {bom.name} is inactive")
    return bom


def _lock_order(*, context, order_id) -> ProductionOrder:
    try:
        return (
            ProductionOrder.objects.select_for_update()
            .select_related("bom", "bom__output_item")
            .get(company=context.company, pk=order_id)
        )
    except (ProductionOrder.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Production order {order_id} not found") from exc
    except OperationalError as exc:
        raise ConcurrencyConflictError(
            f"Production order {order_id} is locked; please retry"
        ) from exc


def _order_result(order: ProductionOrder) -> dict:
    return {
        "order_id": order.pk,
        "order_number": order.order_number,
        "status": order.status,
        "gross_planned": str(order.gross_planned),
        "good_planned": str(order.good_planned),
        "defective_planned": str(order.defective_planned),
        "total_material_cost": str(order.total_material_cost),
        "cost_per_unit": str(order.cost_per_unit),
    }


# ============================================================
# PLAN
# ============================================================


@transaction.atomic
def plan_production_order(
    *,
    context,
    bom_id,
    order_date=None,
    operations: list | None = None,
    planned_quantity=None,
    notes: str = "",
) -> dict:
    bom = _get_bom(context=context, bom_id=bom_id)
    order_date = order_date or timezone.localdate()

    run_ops: list[RunOperation] = []
    if bom.stage == Bom.Stage.INJECTION:
        if planned_quantity not in (None, ""):
            raise InputValidationError("Injection orders are planned from operations, not a quantity")
        if not operations:
            raise InputValidationError("Injection orders require at least one operation")
        run_ops = [RunOperation.from_payload(op) for op in operations]
        output = expand_run(run_ops)
    else:
        if operations:
            raise InputValidationError("Blowing orders take a planned quantity, not operations")
        output = expand_blowing(planned_quantity)

    if output.gross <= 0:
        raise InputValidationError("Planned gross output must be > 0")

    cost = price_run(bom, gross=output.gross, good=output.good)

    order = ProductionOrder.objects.create(
        company=context.company,
        order_number=next_document_number(company=context.company, prefix="PO"),
        bom=bom,
        order_date=order_date,
        status=ProductionOrder.STATUS_PLANNED,
        planned_quantity=_qty(output.gross) if bom.stage == Bom.Stage.BLOWING else None,
        gross_planned=_qty(output.gross),
        good_planned=_qty(output.good),
        defective_planned=_qty(output.defective),
        total_material_cost=_money(cost.total_material_cost),
        cost_per_unit=quantize_cost(cost.cost_per_unit),
        notes=(notes or "").strip(),
        created_by=context.user if getattr(context.user, "pk", None) else None,
    )

    ProductionOrderOperation.objects.bulk_create(
        [
            ProductionOrderOperation(
                order=order,
                sequence=idx,
                cycle_time_seconds=op.cycle_time_seconds,
                cavities_per_round=int(op.cavities_per_round),
                running_hours=op.running_hours,
                scrap_percent=op.scrap_percent,
            )
            for idx, op in enumerate(run_ops, start=1)
        ]
    )

    ProductionOrderLine.objects.bulk_create(
        [
            ProductionOrderLine(
                order=order,
                item=c.item,
                planned_consumption=_qty(c.consumption),
                on_hand_at_plan=_qty(c.on_hand),
                average_unit_cost=quantize_cost(c.average_unit_cost),
                planned_cost=_money(c.cost),
                shortage=c.shortage,
                no_cost=c.no_cost,
            )
            for c in cost.components
        ]
    )

    if cost.has_shortage or cost.has_missing_cost:
        logger.warning(
            "Production order planned with advisories",
            extra={
                "order_number": order.order_number,
                "shortage": cost.has_shortage,
                "no_cost": cost.has_missing_cost,
            },
        )

    logger.info(
        "Production order planned",
        extra={"company": context.company.code, "order_number": order.order_number},
    )

    result = _order_result(order)
    result["components"] = [
        {
            "item_id": c.item.pk,
            "sku": c.item.sku,
            "consumption": str(_qty(c.consumption)),
            "on_hand": str(_qty(c.on_hand)),
            "average_unit_cost": str(quantize_cost(c.average_unit_cost)),
            "cost": str(_money(c.cost)),
            "shortage": c.shortage,
            "no_cost": c.no_cost,
        }
        for c in cost.components
    ]
    return result


@transaction.atomic
def start_production_order(*, context, order_id) -> dict:
    order = _lock_order(context=context, order_id=order_id)

    if order.status != ProductionOrder.STATUS_PLANNED:
        raise InvalidStateError(
            f"Only planned orders can be started (order {order.order_number} is {order.status})"
        )

    order.status = ProductionOrder.STATUS_IN_PROGRESS
    order.save(update_fields=["status", "updated_at"])
    logger.info("Production order started", extra={"order_number": order.order_number})
    return _order_result(order)


# ============================================================
# COMPLETE
# ============================================================


@transaction.atomic
def complete_production_order(
    *,
    context,
    order_id,
    actual_good,
    actual_defective=0,
    completion_date=None,
) -> dict:
    order = _lock_order(context=context, order_id=order_id)

    if order.status not in ProductionOrder.OPEN_STATUSES:
        raise InvalidStateError(
            f"Production order {order.order_number} is {order.status} and cannot be completed again"
        )

    good = _qty(to_decimal(actual_good, "actual_good"))
    defective = _qty(to_decimal(actual_defective, "actual_defective"))
    if good <= 0:
        raise InputValidationError("actual_good must be > 0")
    if defective < 0:
        raise InputValidationError("actual_defective cannot be negative")

    gross = good + defective
    completion_date = completion_date or timezone.localdate()
    bom = order.bom
    output_item = bom.output_item

    components = list(bom.components.select_related("item").order_by("id"))
    locked = lock_items(
        context=context,
        item_ids=[c.item_id for c in components] + [output_item.pk],
    )
    valuations = {c.item_id: valuate(locked[c.item_id]) for c in components}

    cost = price_run(bom, gross=gross, good=good, valuations=valuations)

    # 4) consume components
    material_lines: list[dict] = []
    material_total = Decimal("0.00")
    actuals: dict[int, tuple[Decimal, Decimal, Decimal]] = {}
    for component in cost.components:
        item = locked[component.item.pk]
        consumption = _qty(component.consumption)
        if consumption <= 0:
            continue

        _, valuation = record_stock_out(
            context=context,
            item=item,
            quantity=consumption,
            source=StockEvent.Source.PRODUCTION_CONSUMPTION,
            event_date=completion_date,
            reference_type=REFERENCE_TYPE,
            reference_id=order.pk,
        )
        amount = _money(consumption * valuation.average_unit_cost)
        actuals[item.pk] = (consumption, valuation.average_unit_cost, amount)
        if amount <= 0:
            continue

        material_total += amount
        material_lines.append(
            {
                "account": get_account_by_role(context.company, item.inventory_role),
                "credit": amount,
                "description": f"Consumption {item.sku} x {consumption}",
            }
        )

    # overheads
    overhead_lines: list[dict] = []
    overhead_total = Decimal("0.00")
    for overhead, raw_amount in overhead_amounts(bom, good=good, material_cost=material_total):
        amount = _money(raw_amount)
        if amount <= 0:
            continue
        overhead_total += amount
        overhead_lines.append(
            {
                "account": overhead.gl_account,
                "credit": amount,
                "description": f"Overhead {overhead.name}",
            }
        )

    total_cost = material_total + overhead_total
    if total_cost <= 0:
        raise InputValidationError(
            f"Production order {order.order_number} has no cost to capitalize; "
            "component costs or overheads are missing"
        )

    # 5) one PRODUCTION voucher
    wip = get_wip_account(context.company)
    output_account = get_account_by_role(context.company, output_item.inventory_role)

    lines: list[dict] = []
    if material_total > 0:
        lines.append({"account": wip, "debit": material_total, "description": "WIP material"})
        lines.extend(material_lines)
    if overhead_total > 0:
        lines.append({"account": wip, "debit": overhead_total, "description": "WIP overheads"})
        lines.extend(overhead_lines)
    lines.append(
        {
            "account": output_account,
            "debit": total_cost,
            "description": f"Output {output_item.sku} x {good}",
        }
    )
    lines.append({"account": wip, "credit": total_cost, "description": "WIP to inventory"})

    voucher = post_voucher(
        context=context,
        narration=f"Production order {order.order_number} completed",
        lines=lines,
        entry_date=completion_date,
        source=JournalVoucher.Source.PRODUCTION,
        reference_type=REFERENCE_TYPE,
        reference_id=order.pk,
    )

    # 6) output
    unit_cost = total_cost / good
    record_stock_in(
        context=context,
        item=locked[output_item.pk],
        quantity=good,
        unit_price=unit_cost,
        source=StockEvent.Source.PRODUCTION_OUTPUT,
        event_date=completion_date,
        reference_type=REFERENCE_TYPE,
        reference_id=order.pk,
    )

    # 7) actuals
    for item_id, (consumption, avg, amount) in actuals.items():
        ProductionOrderLine.objects.update_or_create(
            order=order,
            item_id=item_id,
            defaults={
                "actual_consumption": consumption,
                "actual_unit_cost": quantize_cost(avg),
                "actual_cost": amount,
            },
            create_defaults={
                "planned_consumption": Decimal("0"),
                "on_hand_at_plan": Decimal("0"),
                "average_unit_cost": quantize_cost(avg),
                "planned_cost": Decimal("0.00"),
                "actual_consumption": consumption,
                "actual_unit_cost": quantize_cost(avg),
                "actual_cost": amount,
            },
        )

    order.actual_good = good
    order.actual_defective = defective
    order.actual_material_cost = material_total
    order.actual_overhead_cost = overhead_total
    order.actual_total_cost = total_cost
    order.actual_cost_per_unit = quantize_cost(unit_cost)
    order.completion_date = completion_date
    order.journal_voucher = voucher
    order.status = ProductionOrder.STATUS_COMPLETED
    order.save()

    logger.info(
        "Production order completed",
        extra={
            "company": context.company.code,
            "order_number": order.order_number,
            "voucher_number": voucher.voucher_number,
            "total_cost": str(total_cost),
            "request_id": context.request_id,
        },
    )

    result = _order_result(order)
    result.update(
        {
            "actual_gross": str(gross),
            "actual_good": str(good),
            "actual_defective": str(defective),
            "material_cost": str(material_total),
            "overhead_cost": str(overhead_total),
            "total_cost": str(total_cost),
            "cost_per_unit": str(quantize_cost(unit_cost)),
            "voucher_id": voucher.pk,
            "voucher_number": voucher.voucher_number,
        }
    )
    return result
