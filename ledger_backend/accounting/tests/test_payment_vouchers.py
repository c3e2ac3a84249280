# accounting/tests/test_payment_vouchers.py

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.test import TestCase

from accounting.models.account import Account
from accounting.models.payment_voucher import PaymentVoucher
from accounting.models.voucher import JournalVoucher
from accounting.services.exceptions import InputValidationError, InvalidStateError
from accounting.services.payment_voucher_service import (
    approve_payment_voucher,
    create_payment_voucher,
    reject_payment_voucher,
)
from companies.testing import account, make_company, make_context, make_supplier

Role = Account.SystemRole


class PaymentVoucherTests(TestCase):
    """
    gross = 1000, VAT 7.5% = 75, WHT 5% of gross = 50 → net 1025
    """

    def setUp(self):
        self.company = make_company("ACME")
        self.ctx = make_context(self.company)
        self.bank = account(self.company, Role.BANK)
        self.expense = Account.objects.get(company=self.company, code="6000")
        self.supplier = make_supplier(self.company, "Power Co")

    def _create(self, **overrides):
        payload = {
            "payee_name": "Power Co",
            "payment_date": date(2024, 6, 30),
            "bank_account_id": self.bank.pk,
            "lines": [{"expense_account_id": self.expense.pk, "amount": "1000.00", "vat_rate": "7.5"}],
            "wht_rate": "5",
            "supplier_id": self.supplier.pk,
        }
        payload.update(overrides)
        return create_payment_voucher(context=self.ctx, **payload)

    def test_create_computes_amounts_and_posts_voucher(self):
        result = self._create()

        self.assertEqual(result["number"], "PVN-00001")
        self.assertEqual(result["status"], PaymentVoucher.STATUS_SUBMITTED)
        self.assertEqual(result["gross_amount"], "1000.00")
        self.assertEqual(result["vat_amount"], "75.00")
        self.assertEqual(result["wht_amount"], "50.00")
        self.assertEqual(result["net_payable"], "1025.00")

        voucher = JournalVoucher.objects.get(pk=result["voucher_id"])
        self.assertEqual(voucher.source, JournalVoucher.Source.PAYMENT_VOUCHER)
        self.assertEqual(voucher.total_debits, Decimal("1075.00"))
        self.assertEqual(voucher.lines.get(account=self.expense).debit, Decimal("1000.00"))
        self.assertEqual(voucher.lines.get(account=account(self.company, Role.INPUT_VAT)).debit, Decimal("75.00"))
        self.assertEqual(voucher.lines.get(account=account(self.company, Role.WHT_PAYABLE)).credit, Decimal("50.00"))

        bank_line = voucher.lines.get(account=self.bank)
        self.assertEqual(bank_line.credit, Decimal("1025.00"))
        self.assertEqual(bank_line.payee_id, self.supplier.pk)

    def test_no_tax_lines_when_rates_are_zero(self):
        result = self._create(
            lines=[{"expense_account_id": self.expense.pk, "amount": "200"}],
            wht_rate=0,
            supplier_id=None,
        )

        voucher = JournalVoucher.objects.get(pk=result["voucher_id"])
        self.assertEqual(voucher.lines.count(), 2)

    def test_bank_account_must_be_an_asset(self):
        with self.assertRaises(InputValidationError):
            self._create(bank_account_id=self.expense.pk)

        self.assertFalse(PaymentVoucher.objects.exists())

    def test_approve_is_idempotent(self):
        result = self._create()

        approve_payment_voucher(context=self.ctx, payment_voucher_id=result["payment_voucher_id"])
        again = approve_payment_voucher(context=self.ctx, payment_voucher_id=result["payment_voucher_id"])

        self.assertEqual(again["status"], PaymentVoucher.STATUS_APPROVED)
        self.assertEqual(
            JournalVoucher.objects.get(pk=result["voucher_id"]).status,
            JournalVoucher.Status.APPROVED,
        )

    def test_reject_reverses_the_posting(self):
        result = self._create()

        rejected = reject_payment_voucher(
            context=self.ctx, payment_voucher_id=result["payment_voucher_id"], reason="duplicate"
        )

        self.assertEqual(rejected["status"], PaymentVoucher.STATUS_REJECTED)
        original = JournalVoucher.objects.get(pk=result["voucher_id"])
        self.assertEqual(original.status, JournalVoucher.Status.REJECTED)
        self.assertTrue(JournalVoucher.objects.filter(reversal_of=original).exists())

    def test_opposite_action_after_decision_is_invalid(self):
        approved = self._create()
        approve_payment_voucher(context=self.ctx, payment_voucher_id=approved["payment_voucher_id"])
        with self.assertRaises(InvalidStateError):
            reject_payment_voucher(context=self.ctx, payment_voucher_id=approved["payment_voucher_id"])

        rejected = self._create()
        reject_payment_voucher(context=self.ctx, payment_voucher_id=rejected["payment_voucher_id"])
        with self.assertRaises(InvalidStateError):
            approve_payment_voucher(context=self.ctx, payment_voucher_id=rejected["payment_voucher_id"])
