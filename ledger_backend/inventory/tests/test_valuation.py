# inventory/tests/test_valuation.py

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase, TestCase

from companies.testing import make_company, make_context, make_item, stock_in
from inventory.models.stock_event import StockEvent
from inventory.services.stock_service import record_stock_out
from inventory.services.valuation import apply_event, replay, valuate, valuate_many

D = Decimal


class ReplayTests(SimpleTestCase):
    """
    Pure recurrence tests (no database).
    """

    def test_receipt_issue_receipt_trace(self):
        valuation = replay([(100, "2.00"), (-30, 0), (50, "3.00")], with_trace=True)

        self.assertEqual(valuation.quantity_on_hand, D("120"))
        averages = [p.average_unit_cost for p in valuation.trace]
        self.assertEqual(averages[0], D("2"))
        self.assertEqual(averages[1], D("2"))
        # 70 on hand at 2.00 plus 50 at 3.00
        self.assertEqual(averages[2], (D("70") * D("2") + D("50") * D("3")) / D("120"))
        self.assertEqual(valuation.as_dict()["average_unit_cost"], "2.416667")

    def test_two_receipts_blend(self):
        valuation = replay([(100, "2.00"), (50, "3.00")])
        self.assertEqual(valuation.average_unit_cost.quantize(D("0.01")), D("2.33"))

    def test_out_events_never_move_the_average(self):
        qty, avg = apply_event(D("40"), D("7.125"), D("-15"), D("999"))
        self.assertEqual(qty, D("25"))
        self.assertEqual(avg, D("7.125"))

    def test_in_event_lands_between_old_average_and_price(self):
        for price in ("0.50", "2.00", "9.75"):
            qty, avg = apply_event(D("10"), D("2.00"), D("5"), D(price))
            low, high = sorted([D("2.00"), D(price)])
            self.assertTrue(low <= avg <= high, (price, avg))

    def test_average_resets_when_stock_returns_to_zero(self):
        valuation = replay([(10, 4), (-10, 0)])
        self.assertEqual(valuation.quantity_on_hand, D("0"))
        self.assertEqual(valuation.average_unit_cost, D("4"))

        qty, avg = apply_event(D("-5"), D("4"), D("5"), D("6"))
        self.assertEqual(qty, D("0"))
        self.assertEqual(avg, D("0"))

    def test_replay_is_idempotent(self):
        events = [(5, "1.10"), (3, "1.40"), (-2, 0)]
        self.assertEqual(replay(events), replay(events))

    def test_empty_history_is_zero(self):
        valuation = replay([])
        self.assertEqual(valuation.quantity_on_hand, D("0"))
        self.assertEqual(valuation.total_value, D("0"))


class ValuateTests(TestCase):
    def setUp(self):
        self.company = make_company("ACME")
        self.ctx = make_context(self.company)
        self.item = make_item(self.company, sku="PET-RESIN")

    def test_orders_events_by_date_then_id(self):
        # inserted out of date order; the later-dated receipt must apply last
        stock_in(self.ctx, self.item, 50, "3.00", event_date=date(2024, 1, 3))
        stock_in(self.ctx, self.item, 100, "2.00", event_date=date(2024, 1, 1))
        record_stock_out(
            context=self.ctx,
            item=self.item,
            quantity=30,
            source=StockEvent.Source.ISSUANCE,
            event_date=date(2024, 1, 2),
        )

        valuation = valuate(self.item, with_trace=True)

        self.assertEqual(valuation.quantity_on_hand, D("120"))
        self.assertEqual([p.quantity_on_hand for p in valuation.trace], [D("100"), D("70"), D("120")])

    def test_as_of_ignores_later_events(self):
        stock_in(self.ctx, self.item, 10, "5.00", event_date=date(2024, 1, 1))
        stock_in(self.ctx, self.item, 10, "7.00", event_date=date(2024, 2, 1))

        valuation = valuate(self.item, as_of=date(2024, 1, 31))
        self.assertEqual(valuation.quantity_on_hand, D("10"))
        self.assertEqual(valuation.average_unit_cost, D("5"))

    def test_items_are_isolated(self):
        other = make_item(self.company, sku="MASTERBATCH")
        stock_in(self.ctx, self.item, 10, "1.00")
        before = valuate(self.item)

        stock_in(self.ctx, other, 500, "40.00")

        self.assertEqual(valuate(self.item), before)

    def test_valuate_many_matches_valuate(self):
        other = make_item(self.company, sku="CAPS")
        empty = make_item(self.company, sku="LABELS")
        stock_in(self.ctx, self.item, 10, "1.00")
        stock_in(self.ctx, self.item, 30, "2.00")
        stock_in(self.ctx, other, 4, "9.00")

        many = valuate_many([self.item, other, empty])

        self.assertEqual(many[self.item.pk].average_unit_cost, valuate(self.item).average_unit_cost)
        self.assertEqual(many[other.pk].quantity_on_hand, D("4"))
        self.assertEqual(many[empty.pk].quantity_on_hand, D("0"))

    def test_valuation_has_no_side_effects(self):
        stock_in(self.ctx, self.item, 10, "1.00")
        count = StockEvent.objects.count()

        valuate(self.item)
        valuate(self.item)

        self.assertEqual(StockEvent.objects.count(), count)
