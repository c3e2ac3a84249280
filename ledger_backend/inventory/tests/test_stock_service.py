# inventory/tests/test_stock_service.py

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from accounting.services.exceptions import InputValidationError, InsufficientStockError, NotFoundError
from companies.testing import make_company, make_context, make_item, stock_in
from inventory.models.stock_event import StockEvent
from inventory.services.stock_service import (
    issue_material,
    item_history,
    lock_items,
    record_stock_in,
    record_stock_out,
)
from inventory.services.valuation import valuate


class StockServiceTests(TestCase):
    def setUp(self):
        self.company = make_company("ACME")
        self.ctx = make_context(self.company)
        self.item = make_item(self.company, sku="RESIN")

    def test_issue_records_out_event_at_current_average(self):
        stock_in(self.ctx, self.item, 100, "2.00")
        stock_in(self.ctx, self.item, 100, "4.00")

        event = issue_material(
            context=self.ctx, item_id=self.item.pk, quantity=50, issue_date=date(2024, 2, 1)
        )

        self.assertEqual(event.quantity_delta, Decimal("-50"))
        self.assertEqual(event.source, StockEvent.Source.ISSUANCE)
        self.assertEqual(event.unit_price, Decimal("3"))
        valuation = valuate(self.item)
        self.assertEqual(valuation.quantity_on_hand, Decimal("150"))
        self.assertEqual(valuation.average_unit_cost, Decimal("3"))

    def test_issue_more_than_on_hand_is_refused(self):
        stock_in(self.ctx, self.item, 10, "2.00")

        with self.assertRaises(InsufficientStockError) as cm:
            issue_material(context=self.ctx, item_id=self.item.pk, quantity=11, issue_date=date(2024, 2, 1))

        self.assertEqual(cm.exception.requested, Decimal("11"))
        self.assertEqual(cm.exception.available, Decimal("10"))
        self.assertIn("RESIN", str(cm.exception))
        self.assertEqual(StockEvent.objects.count(), 1)

    def test_direction_must_match_source(self):
        with self.assertRaises(InputValidationError):
            record_stock_in(
                context=self.ctx,
                item=self.item,
                quantity=1,
                unit_price=1,
                source=StockEvent.Source.SALE,
                event_date=date(2024, 1, 1),
            )

        with self.assertRaises(InputValidationError):
            record_stock_out(
                context=self.ctx,
                item=self.item,
                quantity=1,
                source=StockEvent.Source.RECEIPT,
                event_date=date(2024, 1, 1),
            )

    def test_zero_quantity_is_rejected(self):
        with self.assertRaises(InputValidationError):
            stock_in(self.ctx, self.item, 0, "1.00")

    def test_events_are_immutable(self):
        event = stock_in(self.ctx, self.item, 5, "1.00")
        event.quantity_delta = Decimal("500")

        with self.assertRaises(ValidationError):
            event.save()
        with self.assertRaises(ValidationError):
            event.delete()

    def test_lock_items_rejects_foreign_items(self):
        other = make_company("OTHER")
        foreign = make_item(other, sku="FOREIGN")

        with self.assertRaises(NotFoundError):
            lock_items(context=self.ctx, item_ids=[self.item.pk, foreign.pk])

    def test_item_history_returns_running_trace(self):
        stock_in(self.ctx, self.item, 10, "1.00", event_date=date(2024, 1, 1))
        stock_in(self.ctx, self.item, 10, "3.00", event_date=date(2024, 1, 5))

        item, valuation = item_history(context=self.ctx, item_id=self.item.pk)

        self.assertEqual(item.pk, self.item.pk)
        self.assertEqual(len(valuation.trace), 2)
        self.assertEqual(valuation.trace[-1].average_unit_cost, Decimal("2"))

    # --------------------------------------------------
    # BACKDATED OUTGOING EVENTS
    # --------------------------------------------------

    def test_out_event_before_first_receipt_is_refused(self):
        stock_in(self.ctx, self.item, 10, "2.00", event_date=date(2024, 1, 10))

        with self.assertRaises(InsufficientStockError) as cm:
            issue_material(context=self.ctx, item_id=self.item.pk, quantity=5, issue_date=date(2024, 1, 5))

        self.assertEqual(cm.exception.available, Decimal("0"))
        self.assertEqual(StockEvent.objects.filter(item=self.item).count(), 1)
        self.assertEqual(valuate(self.item).average_unit_cost, Decimal("2"))

    def test_out_event_may_not_drive_later_balances_negative(self):
        stock_in(self.ctx, self.item, 10, "2.00", event_date=date(2024, 1, 1))
        issue_material(context=self.ctx, item_id=self.item.pk, quantity=8, issue_date=date(2024, 1, 20))

        # 10 on hand on 2024-01-10, but only 2 can leave without breaking 2024-01-20
        with self.assertRaises(InsufficientStockError) as cm:
            issue_material(context=self.ctx, item_id=self.item.pk, quantity=5, issue_date=date(2024, 1, 10))

        self.assertEqual(cm.exception.available, Decimal("2"))

        issue_material(context=self.ctx, item_id=self.item.pk, quantity=2, issue_date=date(2024, 1, 10))
        trace = valuate(self.item, with_trace=True).trace
        self.assertEqual([p.quantity_on_hand for p in trace], [Decimal("10"), Decimal("8"), Decimal("0")])

    def test_backdated_out_event_is_priced_at_average_of_its_date(self):
        stock_in(self.ctx, self.item, 10, "2.00", event_date=date(2024, 1, 1))
        stock_in(self.ctx, self.item, 10, "4.00", event_date=date(2024, 1, 20))

        event = issue_material(
            context=self.ctx, item_id=self.item.pk, quantity=5, issue_date=date(2024, 1, 10)
        )

        self.assertEqual(event.unit_price, Decimal("2"))
        valuation = valuate(self.item, with_trace=True)
        self.assertTrue(all(p.quantity_on_hand >= 0 for p in valuation.trace))
        self.assertEqual(valuation.quantity_on_hand, Decimal("15"))
        self.assertEqual(valuation.average_unit_cost, Decimal("50") / Decimal("15"))
