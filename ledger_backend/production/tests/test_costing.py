# production/tests/test_costing.py

from __future__ import annotations

from decimal import Decimal

from django.test import SimpleTestCase, TestCase

from accounting.models.account import Account
from accounting.services.exceptions import InputValidationError
from companies.testing import make_company, make_context, make_item, stock_in
from production.models import Bom, BomComponent, BomOverhead
from production.services.costing import (
    RunOperation,
    expand_blowing,
    expand_operation,
    expand_run,
    overhead_amounts,
    price_run,
)

D = Decimal


def _op(cycle, cavities, hours, scrap=0):
    return RunOperation.build(
        cycle_time_seconds=cycle,
        cavities_per_round=cavities,
        running_hours=hours,
        scrap_percent=scrap,
    )


class ExpandRunTests(SimpleTestCase):
    def test_injection_operation_expansion(self):
        op = _op(30, 32, 8, 3)

        self.assertEqual(op.rounds_per_hour, D("120"))
        out = expand_run([op])
        self.assertEqual(out.gross, D("30720"))
        self.assertEqual(out.defective, D("921.6"))
        self.assertEqual(out.good, D("29798.4"))

    def test_expansion_is_additive(self):
        a = _op(30, 32, 8, 3)
        b = _op("12.5", 4, "6.5", "1.5")

        combined = expand_run([a, b])
        separate = expand_operation(a) + expand_operation(b)

        self.assertEqual(combined, separate)
        self.assertEqual(combined.gross, combined.good + combined.defective)

    def test_zero_cycle_time_produces_nothing(self):
        out = expand_run([_op(0, 32, 8, 3)])
        self.assertEqual(out.gross, D("0"))
        self.assertEqual(out.good, D("0"))

    def test_no_operations_is_empty(self):
        self.assertEqual(expand_run([]).gross, D("0"))

    def test_scrap_outside_range_is_rejected(self):
        with self.assertRaises(InputValidationError):
            _op(30, 32, 8, 101)
        with self.assertRaises(InputValidationError):
            _op(30, 32, -1)

    def test_from_payload_requires_a_dict(self):
        with self.assertRaises(InputValidationError):
            RunOperation.from_payload([30, 32, 8])

    def test_blowing_has_no_scrap(self):
        out = expand_blowing("5000")
        self.assertEqual((out.gross, out.good, out.defective), (D("5000"), D("5000"), D("0")))


class PriceRunTests(TestCase):
    def setUp(self):
        self.company = make_company("ACME")
        self.ctx = make_context(self.company)
        self.resin = make_item(self.company, sku="RESIN")
        self.dye = make_item(self.company, sku="DYE")
        self.preform = make_item(self.company, sku="PREFORM", kind="SEMI_FINISHED")

        self.bom = Bom.objects.create(
            company=self.company, name="Preform 28g", stage=Bom.Stage.INJECTION, output_item=self.preform
        )
        BomComponent.objects.create(bom=self.bom, item=self.resin, quantity_required=D("0.028"))
        BomComponent.objects.create(bom=self.bom, item=self.dye, quantity_required=D("0.0005"))

    def test_consumption_is_priced_on_gross_and_spread_over_good(self):
        stock_in(self.ctx, self.resin, 2000, "1.50")
        stock_in(self.ctx, self.dye, 50, "8.00")

        cost = price_run(self.bom, gross=D("1000"), good=D("950"))

        resin, dye = cost.components
        self.assertEqual(resin.consumption, D("28"))
        self.assertEqual(resin.cost, D("42"))
        self.assertEqual(dye.consumption, D("0.5"))
        self.assertEqual(dye.cost, D("4"))
        self.assertEqual(cost.total_material_cost, D("46"))
        self.assertEqual(cost.cost_per_unit, D("46") / D("950"))
        self.assertFalse(cost.has_shortage)
        self.assertFalse(cost.has_missing_cost)

    def test_shortage_and_missing_cost_are_flagged(self):
        stock_in(self.ctx, self.resin, 10, "1.50")

        cost = price_run(self.bom, gross=D("1000"), good=D("1000"))

        resin, dye = cost.components
        self.assertTrue(resin.shortage)
        self.assertFalse(resin.no_cost)
        self.assertTrue(dye.no_cost)
        self.assertTrue(dye.shortage)

    def test_zero_good_output_has_zero_unit_cost(self):
        cost = price_run(self.bom, gross=D("10"), good=D("0"))
        self.assertEqual(cost.cost_per_unit, D("0"))

    def test_overhead_methods(self):
        factory = Account.objects.get(company=self.company, code="5100")
        BomOverhead.objects.create(
            bom=self.bom, name="Power", gl_account=factory,
            cost_method=BomOverhead.CostMethod.PER_UNIT, cost=D("0.01"),
        )
        BomOverhead.objects.create(
            bom=self.bom, name="Setup", gl_account=factory,
            cost_method=BomOverhead.CostMethod.PER_BATCH, cost=D("25"),
        )
        BomOverhead.objects.create(
            bom=self.bom, name="Handling", gl_account=factory,
            cost_method=BomOverhead.CostMethod.PERCENTAGE_OF_MATERIAL, cost=D("10"),
        )

        amounts = [amount for _, amount in overhead_amounts(self.bom, good=D("500"), material_cost=D("80"))]

        self.assertEqual(amounts, [D("5"), D("25"), D("8")])
