# sales/tests/test_payment_allocation.py

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.test import TestCase

from accounting.models.account import Account
from accounting.models.voucher import JournalVoucher
from accounting.services.exceptions import InputValidationError, InvalidStateError, NotFoundError
from companies.testing import account, make_company, make_context, make_customer, make_item, stock_in
from sales.models import CustomerPayment, PaymentAllocation, SalesInvoice
from sales.services.invoice_orchestrator import cancel_sales_invoice, issue_sales_invoice
from sales.services.payment_allocation import allocate_payment

D = Decimal
Role = Account.SystemRole


class PaymentAllocationTests(TestCase):
    def setUp(self):
        self.company = make_company("ACME")
        self.ctx = make_context(self.company)
        self.customer = make_customer(self.company, "Water Works Ltd")
        self.bank = account(self.company, Role.BANK)
        self.item = make_item(self.company, sku="BOTTLE-1L", kind="PRODUCT")
        stock_in(self.ctx, self.item, 1000, "0.40")

        self.inv_a = self._invoice(100)  # 100.00
        self.inv_b = self._invoice(50)  # 50.00

    def _invoice(self, qty, customer=None):
        return issue_sales_invoice(
            context=self.ctx,
            customer_id=(customer or self.customer).pk,
            invoice_date=date(2024, 5, 1),
            lines=[{"item_id": self.item.pk, "quantity": qty, "unit_price": "1.00"}],
        )["invoice_id"]

    def _allocate(self, amount, allocations, **kwargs):
        return allocate_payment(
            context=self.ctx,
            customer_id=self.customer.pk,
            amount=amount,
            deposit_account_id=self.bank.pk,
            allocations=allocations,
            payment_date=date(2024, 5, 20),
            **kwargs,
        )

    def test_payment_split_across_invoices(self):
        result = self._allocate(
            "130.00",
            [{"invoice_id": self.inv_a, "amount": "100.00"}, {"invoice_id": self.inv_b, "amount": "30.00"}],
        )

        self.assertEqual(result["receipt_number"], "RCPT-00001")
        self.assertEqual(result["voucher_number"], "RC-2024-00001")

        a = SalesInvoice.objects.get(pk=self.inv_a)
        b = SalesInvoice.objects.get(pk=self.inv_b)
        self.assertEqual(a.status, SalesInvoice.STATUS_PAID)
        self.assertEqual(a.amount_due, D("0.00"))
        self.assertEqual(b.status, SalesInvoice.STATUS_PARTIAL)
        self.assertEqual(b.amount_due, D("20.00"))

        voucher = JournalVoucher.objects.get(pk=result["voucher_id"])
        self.assertEqual(voucher.lines.get(account=self.bank).debit, D("130.00"))
        ar = voucher.lines.get(account=account(self.company, Role.ACCOUNTS_RECEIVABLE))
        self.assertEqual(ar.credit, D("130.00"))
        self.assertEqual(ar.payee_id, self.customer.pk)

        self.assertEqual(PaymentAllocation.objects.filter(payment_id=result["payment_id"]).count(), 2)

    def test_partial_invoice_can_be_settled_later(self):
        self._allocate("30", [{"invoice_id": self.inv_b, "amount": "30"}])
        self._allocate("20", [{"invoice_id": self.inv_b, "amount": "20"}])

        self.assertEqual(SalesInvoice.objects.get(pk=self.inv_b).status, SalesInvoice.STATUS_PAID)

    def test_allocations_must_sum_to_amount(self):
        with self.assertRaises(InputValidationError):
            self._allocate("100.00", [{"invoice_id": self.inv_a, "amount": "99.99"}])

        self.assertFalse(CustomerPayment.objects.exists())

    def test_allocation_cannot_exceed_amount_due(self):
        with self.assertRaises(InputValidationError):
            self._allocate("60.00", [{"invoice_id": self.inv_b, "amount": "60.00"}])

        self.assertEqual(SalesInvoice.objects.get(pk=self.inv_b).amount_due, D("50.00"))

    def test_duplicate_invoice_in_allocations_is_rejected(self):
        with self.assertRaises(InputValidationError):
            self._allocate(
                "20",
                [{"invoice_id": self.inv_a, "amount": "10"}, {"invoice_id": self.inv_a, "amount": "10"}],
            )

    def test_zero_allocation_is_rejected(self):
        with self.assertRaises(InputValidationError):
            self._allocate(
                "10",
                [{"invoice_id": self.inv_a, "amount": "10"}, {"invoice_id": self.inv_b, "amount": "0"}],
            )

    def test_invoice_of_another_customer_is_rejected(self):
        other = make_customer(self.company, "Someone Else")
        foreign = self._invoice(10, customer=other)

        with self.assertRaises(InputValidationError):
            self._allocate("10", [{"invoice_id": foreign, "amount": "10"}])

    def test_cancelled_invoice_cannot_take_payment(self):
        cancel_sales_invoice(context=self.ctx, invoice_id=self.inv_b)

        with self.assertRaises(InvalidStateError):
            self._allocate("10", [{"invoice_id": self.inv_b, "amount": "10"}])

    def test_paid_invoice_cannot_be_cancelled(self):
        self._allocate("10", [{"invoice_id": self.inv_a, "amount": "10"}])

        with self.assertRaises(InvalidStateError):
            cancel_sales_invoice(context=self.ctx, invoice_id=self.inv_a)

    def test_deposit_account_must_be_an_asset(self):
        with self.assertRaises(InputValidationError):
            allocate_payment(
                context=self.ctx,
                customer_id=self.customer.pk,
                amount="10",
                deposit_account_id=account(self.company, Role.SALES_REVENUE).pk,
                allocations=[{"invoice_id": self.inv_a, "amount": "10"}],
            )

    def test_unknown_invoice_is_not_found(self):
        with self.assertRaises(NotFoundError):
            self._allocate("10", [{"invoice_id": 987654, "amount": "10"}])
