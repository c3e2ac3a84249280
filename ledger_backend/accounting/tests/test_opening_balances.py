# accounting/tests/test_opening_balances.py

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.test import TestCase

from accounting.models.account import Account
from accounting.models.voucher import JournalVoucher
from accounting.services.exceptions import InputValidationError, InvalidStateError
from accounting.services.opening_balances_service import (
    post_customer_opening_balance,
    post_inventory_opening_balance,
    post_supplier_opening_balance,
)
from companies.testing import account, make_company, make_context, make_customer, make_item, make_supplier, stock_in
from inventory.models.stock_event import StockEvent
from inventory.services.valuation import valuate

Role = Account.SystemRole
AS_OF = date(2024, 1, 1)


class OpeningBalanceTests(TestCase):
    def setUp(self):
        self.company = make_company("ACME")
        self.ctx = make_context(self.company)
        self.obe = account(self.company, Role.OPENING_BALANCE_EQUITY)

    def test_customer_opening_balance_debits_receivable(self):
        customer = make_customer(self.company, "Retail One")

        result = post_customer_opening_balance(
            context=self.ctx, customer_id=customer.pk, amount="1500", as_of=AS_OF
        )

        voucher = JournalVoucher.objects.get(pk=result["voucher_id"])
        self.assertEqual(voucher.voucher_number, "OB-2024-00001")
        ar_line = voucher.lines.get(account=account(self.company, Role.ACCOUNTS_RECEIVABLE))
        self.assertEqual(ar_line.debit, Decimal("1500.00"))
        self.assertEqual(ar_line.payee_id, customer.pk)
        self.assertEqual(voucher.lines.get(account=self.obe).credit, Decimal("1500.00"))

        customer.refresh_from_db()
        self.assertEqual(customer.opening_balance_voucher_id, voucher.pk)

    def test_customer_opening_balance_only_once(self):
        customer = make_customer(self.company)
        post_customer_opening_balance(context=self.ctx, customer_id=customer.pk, amount=10, as_of=AS_OF)

        with self.assertRaises(InvalidStateError):
            post_customer_opening_balance(context=self.ctx, customer_id=customer.pk, amount=10, as_of=AS_OF)

        self.assertEqual(JournalVoucher.objects.count(), 1)

    def test_supplier_opening_balance_credits_payable_once(self):
        supplier = make_supplier(self.company)

        result = post_supplier_opening_balance(
            context=self.ctx, supplier_id=supplier.pk, amount="800.00", as_of=AS_OF
        )
        voucher = JournalVoucher.objects.get(pk=result["voucher_id"])
        self.assertEqual(voucher.lines.get(account=self.obe).debit, Decimal("800.00"))
        self.assertEqual(
            voucher.lines.get(account=account(self.company, Role.ACCOUNTS_PAYABLE)).credit,
            Decimal("800.00"),
        )

        with self.assertRaises(InvalidStateError):
            post_supplier_opening_balance(context=self.ctx, supplier_id=supplier.pk, amount=1, as_of=AS_OF)

    def test_zero_amount_is_rejected(self):
        customer = make_customer(self.company)
        with self.assertRaises(InputValidationError):
            post_customer_opening_balance(context=self.ctx, customer_id=customer.pk, amount=0, as_of=AS_OF)

    def test_inventory_opening_balance_seeds_stock_and_value(self):
        item = make_item(self.company, sku="RESIN")

        result = post_inventory_opening_balance(
            context=self.ctx, item_id=item.pk, quantity="250", unit_cost="4.20", as_of=AS_OF
        )

        valuation = valuate(item)
        self.assertEqual(valuation.quantity_on_hand, Decimal("250"))
        self.assertEqual(valuation.average_unit_cost, Decimal("4.20"))

        event = StockEvent.objects.get(pk=result["stock_event_id"])
        self.assertEqual(event.source, StockEvent.Source.OPENING_BALANCE)

        voucher = JournalVoucher.objects.get(pk=result["voucher_id"])
        inv_line = voucher.lines.get(account=account(self.company, Role.INVENTORY_RAW_MATERIAL))
        self.assertEqual(inv_line.debit, Decimal("1050.00"))

    def test_inventory_opening_balance_refused_after_movements(self):
        item = make_item(self.company)
        stock_in(self.ctx, item, 10, 2)

        with self.assertRaises(InvalidStateError):
            post_inventory_opening_balance(
                context=self.ctx, item_id=item.pk, quantity=5, unit_cost=1, as_of=AS_OF
            )

        self.assertFalse(JournalVoucher.objects.exists())
