# production/services/costing.py

"""
======================================================
PATH: production/services/costing.py
======================================================
COSTING ENGINE (PURE CALCULATIONS)

Run expansion (INJECTION), per operation:
  rounds_per_hour = 3600 / cycle_time_seconds   (0 when cycle time is 0)
  gross           = rounds_per_hour · running_hours · cavities_per_round
  defective       = gross · scrap_percent / 100
  good            = gross − defective
Totals are plain sums, so expansion is additive over operations.

BLOWING: gross = good = planned_quantity, defective = 0.

Pricing:
- consumption = gross · quantity_required (material is consumed for scrap too)
- cost        = consumption · current average unit cost (valuation engine)
- cost per unit is spread over GOOD output only
- shortage / no-cost flags are advisory at planning time

Nothing here writes to the database.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Iterable

from accounting.services.exceptions import InputValidationError
from inventory.services.valuation import Valuation, valuate_many

ZERO = Decimal("0")
HUNDRED = Decimal("100")
SECONDS_PER_HOUR = Decimal("3600")


def to_decimal(value, label: str) -> Decimal:
    try:
        out = Decimal(str(value if value not in (None, "") else "0"))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InputValidationError(f"Invalid {label}: {value!r}") from exc
    if not out.is_finite():
        raise InputValidationError(f"Invalid {label}: {value!r}")
    return out


# ============================================================
# RUN EXPANSION
# ============================================================


@dataclass(frozen=True)
class RunOperation:
    cycle_time_seconds: Decimal
    cavities_per_round: Decimal
    running_hours: Decimal
    scrap_percent: Decimal = ZERO

    def __post_init__(self):
        if self.cycle_time_seconds < 0:
            raise InputValidationError("cycle_time_seconds cannot be negative")
        if self.cavities_per_round < 0:
            raise InputValidationError("cavities_per_round cannot be negative")
        if self.running_hours < 0:
            raise InputValidationError("running_hours cannot be negative")
        if not (ZERO <= self.scrap_percent <= HUNDRED):
            raise InputValidationError("scrap_percent must be between 0 and 100")

    @classmethod
    def build(cls, *, cycle_time_seconds, cavities_per_round, running_hours, scrap_percent=0) -> "RunOperation":
        return cls(
            cycle_time_seconds=to_decimal(cycle_time_seconds, "cycle_time_seconds"),
            cavities_per_round=to_decimal(cavities_per_round, "cavities_per_round"),
            running_hours=to_decimal(running_hours, "running_hours"),
            scrap_percent=to_decimal(scrap_percent, "scrap_percent"),
        )

    @classmethod
    def from_payload(cls, payload) -> "RunOperation":
        if not isinstance(payload, dict):
            raise InputValidationError("Each operation must be an object/dict")
        return cls.build(
            cycle_time_seconds=payload.get("cycle_time_seconds"),
            cavities_per_round=payload.get("cavities_per_round"),
            running_hours=payload.get("running_hours"),
            scrap_percent=payload.get("scrap_percent", 0),
        )

    @classmethod
    def from_model(cls, operation) -> "RunOperation":
        return cls.build(
            cycle_time_seconds=operation.cycle_time_seconds,
            cavities_per_round=operation.cavities_per_round,
            running_hours=operation.running_hours,
            scrap_percent=operation.scrap_percent,
        )

    @property
    def rounds_per_hour(self) -> Decimal:
        if self.cycle_time_seconds > 0:
            return SECONDS_PER_HOUR / self.cycle_time_seconds
        return ZERO


@dataclass(frozen=True)
class RunOutput:
    gross: Decimal = ZERO
    good: Decimal = ZERO
    defective: Decimal = ZERO

    def __add__(self, other: "RunOutput") -> "RunOutput":
        return RunOutput(
            gross=self.gross + other.gross,
            good=self.good + other.good,
            defective=self.defective + other.defective,
        )


def expand_operation(operation: RunOperation) -> RunOutput:
    gross = operation.rounds_per_hour * operation.running_hours * operation.cavities_per_round
    defective = gross * operation.scrap_percent / HUNDRED
    return RunOutput(gross=gross, good=gross - defective, defective=defective)


def expand_run(operations: Iterable[RunOperation]) -> RunOutput:
    total = RunOutput()
    for operation in operations:
        total = total + expand_operation(operation)
    return total


def expand_blowing(planned_quantity) -> RunOutput:
    qty = to_decimal(planned_quantity, "planned_quantity")
    if qty < 0:
        raise InputValidationError("planned_quantity cannot be negative")
    return RunOutput(gross=qty, good=qty, defective=ZERO)


# ============================================================
# PRICING
# ============================================================


@dataclass(frozen=True)
class ComponentCost:
    item: object
    quantity_required: Decimal
    consumption: Decimal
    on_hand: Decimal
    average_unit_cost: Decimal
    cost: Decimal
    shortage: bool
    no_cost: bool


@dataclass(frozen=True)
class RunCost:
    gross: Decimal
    good: Decimal
    total_material_cost: Decimal
    cost_per_unit: Decimal
    components: tuple[ComponentCost, ...] = field(default_factory=tuple)

    @property
    def has_shortage(self) -> bool:
        return any(c.shortage for c in self.components)

    @property
    def has_missing_cost(self) -> bool:
        return any(c.no_cost for c in self.components)


def price_run(bom, *, gross, good, valuations: dict[int, Valuation] | None = None) -> RunCost:
    """
    Price every BOM component at its current average cost.

    `valuations` (item_id → Valuation) may be passed in when the caller already
    replayed the component items under a lock.
    """
    gross = to_decimal(gross, "gross")
    good = to_decimal(good, "good")

    components = list(bom.components.select_related("item").order_by("id"))
    if valuations is None:
        valuations = valuate_many([c.item for c in components])

    priced: list[ComponentCost] = []
    total = ZERO
    for component in components:
        valuation = valuations.get(component.item_id) or Valuation()
        consumption = gross * Decimal(component.quantity_required)
        cost = consumption * valuation.average_unit_cost
        total += cost
        priced.append(
            ComponentCost(
                item=component.item,
                quantity_required=Decimal(component.quantity_required),
                consumption=consumption,
                on_hand=valuation.quantity_on_hand,
                average_unit_cost=valuation.average_unit_cost,
                cost=cost,
                shortage=consumption > valuation.quantity_on_hand,
                no_cost=valuation.average_unit_cost == 0,
            )
        )

    return RunCost(
        gross=gross,
        good=good,
        total_material_cost=total,
        cost_per_unit=(total / good) if good > 0 else ZERO,
        components=tuple(priced),
    )


def overhead_amounts(bom, *, good, material_cost) -> list[tuple[object, Decimal]]:
    """[(BomOverhead, amount)] for every overhead with a non-zero amount."""
    good = to_decimal(good, "good")
    material_cost = to_decimal(material_cost, "material_cost")
    out = []
    for overhead in bom.overheads.select_related("gl_account").order_by("id"):
        amount = overhead.amount_for(good=good, material_cost=material_cost)
        if amount > 0:
            out.append((overhead, amount))
    return out
