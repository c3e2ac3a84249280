# production/tests/test_production_orders.py

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.test import TestCase

from accounting.models.account import Account
from accounting.models.voucher import JournalVoucher
from accounting.services.exceptions import InputValidationError, InsufficientStockError, InvalidStateError
from companies.testing import account, make_company, make_context, make_item, stock_in
from inventory.models.stock_event import StockEvent
from inventory.services.valuation import valuate
from production.models import Bom, BomComponent, BomOverhead, ProductionOrder
from production.services.production_service import (
    complete_production_order,
    plan_production_order,
    start_production_order,
)

D = Decimal
Role = Account.SystemRole

SCENARIO_OPERATION = {
    "cycle_time_seconds": 30,
    "cavities_per_round": 32,
    "running_hours": 8,
    "scrap_percent": 3,
}


class ProductionOrderTests(TestCase):
    """
    BOM: 0.015 resin @ 2.00 + 0.0005 masterbatch @ 10.00 per piece,
    overheads 0.01/unit, 5.00/batch, 10% of material.

    Completing 1000 good + 20 defective (gross 1020):
      resin        15.3 · 2.00  = 30.60
      masterbatch  0.51 · 10.00 =  5.10
      material                     35.70
      overheads  10.00 + 5.00 + 3.57 = 18.57
      total                        54.27
    """

    def setUp(self):
        self.company = make_company("ACME")
        self.ctx = make_context(self.company)
        self.resin = make_item(self.company, sku="RESIN")
        self.masterbatch = make_item(self.company, sku="MB-BLUE")
        self.bottle = make_item(self.company, sku="BOTTLE-1L", kind="PRODUCT")

        stock_in(self.ctx, self.resin, 1000, "2.00")
        stock_in(self.ctx, self.masterbatch, 10, "10.00")

        self.bom = Bom.objects.create(
            company=self.company, name="Bottle 1L", stage=Bom.Stage.INJECTION, output_item=self.bottle
        )
        BomComponent.objects.create(bom=self.bom, item=self.resin, quantity_required=D("0.015"))
        BomComponent.objects.create(bom=self.bom, item=self.masterbatch, quantity_required=D("0.0005"))

        self.factory = Account.objects.get(company=self.company, code="5100")
        for name, method, cost in (
            ("Power", BomOverhead.CostMethod.PER_UNIT, "0.01"),
            ("Setup", BomOverhead.CostMethod.PER_BATCH, "5.00"),
            ("Handling", BomOverhead.CostMethod.PERCENTAGE_OF_MATERIAL, "10"),
        ):
            BomOverhead.objects.create(
                bom=self.bom, name=name, gl_account=self.factory, cost_method=method, cost=D(cost)
            )

    def _plan(self, operations=None):
        return plan_production_order(
            context=self.ctx,
            bom_id=self.bom.pk,
            order_date=date(2024, 4, 1),
            operations=operations or [SCENARIO_OPERATION],
        )

    # =====================================================
    # PLAN
    # =====================================================

    def test_plan_stores_expanded_run_and_advisories(self):
        result = self._plan()

        order = ProductionOrder.objects.get(pk=result["order_id"])
        self.assertEqual(order.order_number, "PO-00001")
        self.assertEqual(order.status, ProductionOrder.STATUS_PLANNED)
        self.assertEqual(order.gross_planned, D("30720"))
        self.assertEqual(order.good_planned, D("29798.4"))
        self.assertEqual(order.defective_planned, D("921.6"))
        self.assertEqual(order.operations.count(), 1)

        # 30720 · 0.015 = 460.8 resin, on hand 1000: enough
        # 30720 · 0.0005 = 15.36 masterbatch, on hand 10: short
        lines = {line.item_id: line for line in order.lines.all()}
        self.assertFalse(lines[self.resin.pk].shortage)
        self.assertTrue(lines[self.masterbatch.pk].shortage)

    def test_injection_plan_requires_operations(self):
        with self.assertRaises(InputValidationError):
            plan_production_order(context=self.ctx, bom_id=self.bom.pk, planned_quantity=100)

    def test_blowing_plan_uses_planned_quantity(self):
        preform = make_item(self.company, sku="PREFORM", kind="SEMI_FINISHED")
        bom = Bom.objects.create(
            company=self.company, name="Blow 1L", stage=Bom.Stage.BLOWING, output_item=make_item(
                self.company, sku="BOTTLE-BLOWN", kind="PRODUCT"
            )
        )
        BomComponent.objects.create(bom=bom, item=preform, quantity_required=D("1"))

        result = plan_production_order(context=self.ctx, bom_id=bom.pk, planned_quantity="2500")

        self.assertEqual(D(result["gross_planned"]), D("2500"))
        self.assertEqual(D(result["defective_planned"]), D("0"))
        self.assertTrue(result["components"][0]["no_cost"])

    def test_start_moves_planned_to_in_progress_once(self):
        order_id = self._plan()["order_id"]

        self.assertEqual(
            start_production_order(context=self.ctx, order_id=order_id)["status"],
            ProductionOrder.STATUS_IN_PROGRESS,
        )
        with self.assertRaises(InvalidStateError):
            start_production_order(context=self.ctx, order_id=order_id)

    # =====================================================
    # COMPLETE
    # =====================================================

    def test_completion_consumes_posts_and_produces(self):
        order_id = self._plan()["order_id"]

        result = complete_production_order(
            context=self.ctx,
            order_id=order_id,
            actual_good=1000,
            actual_defective=20,
            completion_date=date(2024, 4, 2),
        )

        self.assertEqual(D(result["material_cost"]), D("35.70"))
        self.assertEqual(D(result["overhead_cost"]), D("18.57"))
        self.assertEqual(D(result["total_cost"]), D("54.27"))
        self.assertEqual(result["voucher_number"], "PR-2024-00001")

        # consumption on gross
        self.assertEqual(valuate(self.resin).quantity_on_hand, D("984.7"))
        self.assertEqual(valuate(self.masterbatch).quantity_on_hand, D("9.49"))

        # output on good at total / good
        bottles = valuate(self.bottle)
        self.assertEqual(bottles.quantity_on_hand, D("1000"))
        self.assertEqual(bottles.average_unit_cost, D("0.05427"))

        voucher = JournalVoucher.objects.get(pk=result["voucher_id"])
        self.assertEqual(voucher.source, JournalVoucher.Source.PRODUCTION)
        wip = account(self.company, Role.INVENTORY_WIP)
        wip_debits = sum(l.debit for l in voucher.lines.filter(account=wip))
        wip_credits = sum(l.credit for l in voucher.lines.filter(account=wip))
        self.assertEqual(wip_debits, D("54.27"))
        self.assertEqual(wip_credits, D("54.27"))
        self.assertEqual(
            voucher.lines.get(account=account(self.company, Role.INVENTORY_FINISHED_GOODS)).debit,
            D("54.27"),
        )
        self.assertEqual(
            voucher.lines.get(account=account(self.company, Role.INVENTORY_RAW_MATERIAL), description__startswith="Consumption RESIN").credit,
            D("30.60"),
        )
        self.assertEqual(sum(l.credit for l in voucher.lines.filter(account=self.factory)), D("18.57"))

        order = ProductionOrder.objects.get(pk=order_id)
        self.assertEqual(order.status, ProductionOrder.STATUS_COMPLETED)
        self.assertEqual(order.journal_voucher_id, voucher.pk)
        self.assertEqual(order.actual_gross, D("1020"))
        line = order.lines.get(item=self.resin)
        self.assertEqual(line.actual_consumption, D("15.3"))
        self.assertEqual(line.actual_cost, D("30.60"))

    def test_completing_a_completed_order_is_rejected(self):
        order_id = self._plan()["order_id"]
        complete_production_order(context=self.ctx, order_id=order_id, actual_good=1000, actual_defective=20)
        vouchers = JournalVoucher.objects.count()
        events = StockEvent.objects.count()

        with self.assertRaises(InvalidStateError):
            complete_production_order(context=self.ctx, order_id=order_id, actual_good=1000)

        self.assertEqual(JournalVoucher.objects.count(), vouchers)
        self.assertEqual(StockEvent.objects.count(), events)

    def test_insufficient_component_stock_blocks_completion(self):
        order_id = self._plan()["order_id"]
        events = StockEvent.objects.count()

        # 30000 gross needs 15 masterbatch, only 10 on hand
        with self.assertRaises(InsufficientStockError):
            complete_production_order(context=self.ctx, order_id=order_id, actual_good=30000)

        self.assertEqual(StockEvent.objects.count(), events)
        self.assertFalse(JournalVoucher.objects.exists())
        self.assertEqual(ProductionOrder.objects.get(pk=order_id).status, ProductionOrder.STATUS_PLANNED)

    def test_good_quantity_must_be_positive(self):
        order_id = self._plan()["order_id"]

        with self.assertRaises(InputValidationError):
            complete_production_order(context=self.ctx, order_id=order_id, actual_good=0)
