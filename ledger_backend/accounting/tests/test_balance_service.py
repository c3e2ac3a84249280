# accounting/tests/test_balance_service.py

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.test import TestCase

from accounting.models.account import Account
from accounting.services.balance_service import account_balances, trial_balance
from accounting.services.exceptions import InputValidationError
from accounting.services.ledger_poster import post_voucher, reverse_voucher
from accounting.services.opening_balances_service import (
    post_customer_opening_balance,
    post_inventory_opening_balance,
)
from accounting.services.payment_voucher_service import (
    approve_payment_voucher,
    create_payment_voucher,
    reject_payment_voucher,
)
from companies.testing import account, make_company, make_context, make_customer, make_item, make_supplier
from sales.services.invoice_orchestrator import issue_sales_invoice
from sales.services.payment_allocation import allocate_payment

D = Decimal
Role = Account.SystemRole
AS_OF = date(2024, 1, 1)


class TrialBalanceTests(TestCase):
    """
    GUARANTEES:
    - Σ debit == Σ credit over every effective voucher of the company
    - rejected vouchers and their automatic reversals are left out
    - as_of filters on entry date (inclusive)
    """

    def setUp(self):
        self.company = make_company("ACME")
        self.ctx = make_context(self.company)
        self.bank = account(self.company, Role.BANK)
        self.cash = account(self.company, Role.CASH)
        self.revenue = account(self.company, Role.SALES_REVENUE)
        self.expense = Account.objects.get(company=self.company, code="6000")
        self.customer = make_customer(self.company, "Water Works Ltd")
        self.supplier = make_supplier(self.company, "Power Co")
        self.bottle = make_item(self.company, sku="BOTTLE-1L", kind="PRODUCT")

    # --------------------------------------------------
    # Helpers
    # --------------------------------------------------

    def _payment_voucher(self):
        return create_payment_voucher(
            context=self.ctx,
            payee_name="Power Co",
            payment_date=date(2024, 6, 30),
            bank_account_id=self.bank.pk,
            lines=[{"expense_account_id": self.expense.pk, "amount": "1000.00", "vat_rate": "7.5"}],
            wht_rate="5",
            supplier_id=self.supplier.pk,
        )

    def _mixed_scenario(self):
        post_customer_opening_balance(context=self.ctx, customer_id=self.customer.pk, amount="1500", as_of=AS_OF)
        post_inventory_opening_balance(
            context=self.ctx, item_id=self.bottle.pk, quantity="100", unit_cost="0.40", as_of=AS_OF
        )

        invoice = issue_sales_invoice(
            context=self.ctx,
            customer_id=self.customer.pk,
            invoice_date=date(2024, 5, 10),
            lines=[{"item_id": self.bottle.pk, "quantity": 60, "unit_price": "1.00", "vat_rate": "7.5"}],
        )
        allocate_payment(
            context=self.ctx,
            customer_id=self.customer.pk,
            amount="64.50",
            deposit_account_id=self.bank.pk,
            allocations=[{"invoice_id": invoice["invoice_id"], "amount": "64.50"}],
            payment_date=date(2024, 5, 20),
        )

        approved = self._payment_voucher()
        approve_payment_voucher(context=self.ctx, payment_voucher_id=approved["payment_voucher_id"])
        rejected = self._payment_voucher()
        reject_payment_voucher(context=self.ctx, payment_voucher_id=rejected["payment_voucher_id"], reason="duplicate")

        manual = post_voucher(
            context=self.ctx,
            narration="Petty cash top-up",
            lines=[{"account": self.cash, "debit": "250.00"}, {"account": self.bank, "credit": "250.00"}],
            entry_date=date(2024, 7, 1),
        )
        reverse_voucher(context=self.ctx, voucher_id=manual.pk, entry_date=date(2024, 7, 2))

    def _balance(self, acc):
        rows = {r["account_id"]: r for r in account_balances(context=self.ctx)}
        return rows[acc.pk]["balance"] if acc.pk in rows else D("0.00")

    # --------------------------------------------------
    # TOTALS
    # --------------------------------------------------

    def test_debits_equal_credits_after_mixed_activity(self):
        self._mixed_scenario()

        tb = trial_balance(context=self.ctx)

        self.assertTrue(tb["totals"]["balanced"])
        self.assertEqual(tb["totals"]["debit"], tb["totals"]["credit"])
        self.assertEqual(
            sum(D(a["debit"]) for a in tb["accounts"]),
            sum(D(a["credit"]) for a in tb["accounts"]),
        )

    def test_account_balances_follow_normal_side(self):
        self._mixed_scenario()

        # opening 1500 + invoice 64.50 - receipt 64.50
        self.assertEqual(self._balance(account(self.company, Role.ACCOUNTS_RECEIVABLE)), D("1500.00"))
        self.assertEqual(self._balance(self.revenue), D("60.00"))
        self.assertEqual(self._balance(account(self.company, Role.COGS)), D("24.00"))
        # rejected payment voucher and its reversal are left out
        self.assertEqual(self._balance(self.expense), D("1000.00"))
        # manual entry and its reversal net to zero
        self.assertEqual(self._balance(self.cash), D("0.00"))

    def test_as_of_is_inclusive_entry_date(self):
        self._mixed_scenario()

        tb = trial_balance(context=self.ctx, as_of="2024-01-01")

        self.assertEqual(tb["as_of"], "2024-01-01")
        self.assertEqual(tb["totals"]["debit"], "1540.00")
        self.assertEqual(tb["totals"]["credit"], "1540.00")

    def test_invalid_as_of_is_rejected(self):
        with self.assertRaises(InputValidationError):
            trial_balance(context=self.ctx, as_of="yesterday")

    def test_empty_ledger_is_balanced(self):
        tb = trial_balance(context=self.ctx)

        self.assertEqual(tb["accounts"], [])
        self.assertEqual(tb["totals"], {"debit": "0.00", "credit": "0.00", "balanced": True})

    def test_other_companies_are_not_counted(self):
        other = make_company("OTHER")
        other_ctx = make_context(other)
        post_voucher(
            context=other_ctx,
            narration="Elsewhere",
            lines=[
                {"account": account(other, Role.CASH), "debit": "75.00"},
                {"account": account(other, Role.SALES_REVENUE), "credit": "75.00"},
            ],
        )

        self.assertEqual(trial_balance(context=self.ctx)["accounts"], [])
        self.assertEqual(trial_balance(context=other_ctx)["totals"]["debit"], "75.00")
