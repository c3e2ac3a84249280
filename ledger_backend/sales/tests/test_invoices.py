# sales/tests/test_invoices.py

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from django.test import TestCase

from accounting.models.account import Account
from accounting.models.voucher import JournalVoucher
from accounting.services.exceptions import InputValidationError, InsufficientStockError, InvalidStateError, NotFoundError
from accounting.services.ledger_poster import reject_voucher, reverse_voucher
from companies.testing import account, make_company, make_context, make_customer, make_item, stock_in
from inventory.models.stock_event import StockEvent
from inventory.services.valuation import valuate
from sales.models import SalesInvoice, SalesInvoiceItem
from sales.services.invoice_orchestrator import (
    cancel_sales_invoice,
    issue_draft_sales_invoice,
    issue_sales_invoice,
)

D = Decimal
Role = Account.SystemRole
INVOICE_DATE = date(2024, 5, 10)


class SalesInvoiceTests(TestCase):
    """
    GUARANTEES:
    - issuing writes header, lines, SALE events and one balanced voucher together
    - any failure (e.g. insufficient stock) writes nothing at all
    - cancellation reverses the voucher and restocks at the recorded unit cost
    """

    def setUp(self):
        self.company = make_company("ACME")
        self.ctx = make_context(self.company)
        self.customer = make_customer(self.company, "Water Works Ltd")
        self.bottle = make_item(self.company, sku="BOTTLE-1L", kind="PRODUCT")
        self.cap = make_item(self.company, sku="CAP-28", kind="PRODUCT")
        stock_in(self.ctx, self.bottle, 100, "0.40", source="PRODUCTION_OUTPUT")
        stock_in(self.ctx, self.cap, 500, "0.05", source="PRODUCTION_OUTPUT")

    def _issue(self, lines=None, **kwargs):
        return issue_sales_invoice(
            context=self.ctx,
            customer_id=self.customer.pk,
            invoice_date=INVOICE_DATE,
            lines=lines
            or [
                {"item_id": self.bottle.pk, "quantity": 60, "unit_price": "1.00", "vat_rate": "7.5"},
                {"item_id": self.cap.pk, "quantity": 200, "unit_price": "0.10"},
            ],
            **kwargs,
        )

    def test_issue_posts_revenue_vat_receivable_and_cogs(self):
        result = self._issue(discount_amount="5.00")

        # subtotal 60 + 20 = 80, VAT 4.50, discount 5 → total 79.50
        self.assertEqual(result["invoice_number"], "INV-00001")
        self.assertEqual(result["subtotal_amount"], "80.00")
        self.assertEqual(result["tax_amount"], "4.50")
        self.assertEqual(result["total_amount"], "79.50")
        self.assertEqual(result["amount_due"], "79.50")
        # COGS 60 · 0.40 + 200 · 0.05 = 34.00
        self.assertEqual(result["cogs_amount"], "34.00")
        self.assertEqual(result["voucher_number"], "SI-2024-00001")

        voucher = JournalVoucher.objects.get(pk=result["voucher_id"])
        self.assertEqual(voucher.total_debits, voucher.total_credits)

        ar = voucher.lines.get(account=account(self.company, Role.ACCOUNTS_RECEIVABLE))
        self.assertEqual(ar.debit, D("79.50"))
        self.assertEqual(ar.payee_id, self.customer.pk)
        self.assertEqual(voucher.lines.get(account=account(self.company, Role.SALES_DISCOUNT)).debit, D("5.00"))
        self.assertEqual(voucher.lines.get(account=account(self.company, Role.SALES_REVENUE)).credit, D("80.00"))
        self.assertEqual(voucher.lines.get(account=account(self.company, Role.VAT_PAYABLE)).credit, D("4.50"))
        self.assertEqual(voucher.lines.get(account=account(self.company, Role.COGS)).debit, D("34.00"))
        self.assertEqual(
            voucher.lines.get(account=account(self.company, Role.INVENTORY_FINISHED_GOODS)).credit,
            D("34.00"),
        )

        self.assertEqual(valuate(self.bottle).quantity_on_hand, D("40"))
        self.assertEqual(valuate(self.cap).quantity_on_hand, D("300"))

        invoice = SalesInvoice.objects.get(pk=result["invoice_id"])
        self.assertEqual(invoice.status, SalesInvoice.STATUS_ISSUED)
        self.assertEqual(invoice.due_date, INVOICE_DATE + timedelta(days=30))
        self.assertEqual(invoice.items.get(item=self.bottle).unit_cost, D("0.40"))

    def test_insufficient_stock_writes_nothing(self):
        with self.assertRaises(InsufficientStockError) as cm:
            self._issue(lines=[{"item_id": self.bottle.pk, "quantity": 101, "unit_price": "1.00"}])

        self.assertEqual(cm.exception.available, D("100"))
        self.assertFalse(SalesInvoice.objects.exists())
        self.assertFalse(SalesInvoiceItem.objects.exists())
        self.assertFalse(JournalVoucher.objects.exists())
        self.assertFalse(StockEvent.objects.filter(source=StockEvent.Source.SALE).exists())

    def test_requirements_are_aggregated_per_item(self):
        with self.assertRaises(InsufficientStockError):
            self._issue(
                lines=[
                    {"item_id": self.bottle.pk, "quantity": 60, "unit_price": "1.00"},
                    {"item_id": self.bottle.pk, "quantity": 41, "unit_price": "1.00"},
                ]
            )

        self.assertFalse(SalesInvoice.objects.exists())

    def test_unknown_customer_is_not_found(self):
        with self.assertRaises(NotFoundError):
            issue_sales_invoice(
                context=self.ctx,
                customer_id=999999,
                lines=[{"item_id": self.bottle.pk, "quantity": 1, "unit_price": "1"}],
            )

    def test_discount_larger_than_total_is_rejected(self):
        with self.assertRaises(InputValidationError):
            self._issue(
                lines=[{"item_id": self.bottle.pk, "quantity": 1, "unit_price": "1.00"}],
                discount_amount="2.00",
            )

    def test_draft_then_issue(self):
        draft = self._issue(as_draft=True)

        self.assertEqual(draft["status"], SalesInvoice.STATUS_DRAFT)
        self.assertIsNone(draft["voucher_id"])
        self.assertEqual(valuate(self.bottle).quantity_on_hand, D("100"))

        issued = issue_draft_sales_invoice(context=self.ctx, invoice_id=draft["invoice_id"])
        self.assertEqual(issued["status"], SalesInvoice.STATUS_ISSUED)
        self.assertEqual(valuate(self.bottle).quantity_on_hand, D("40"))

        with self.assertRaises(InvalidStateError):
            issue_draft_sales_invoice(context=self.ctx, invoice_id=draft["invoice_id"])

    def test_cancel_reverses_and_restocks(self):
        result = self._issue()
        stock_in(self.ctx, self.bottle, 40, "1.00", event_date=date(2024, 5, 11))

        cancelled = cancel_sales_invoice(
            context=self.ctx,
            invoice_id=result["invoice_id"],
            reason="customer refused delivery",
            cancel_date=date(2024, 5, 12),
        )

        self.assertEqual(cancelled["status"], SalesInvoice.STATUS_CANCELLED)
        self.assertEqual(cancelled["amount_due"], "0.00")
        self.assertEqual(cancelled["reversal_voucher_number"], "SR-2024-00001")

        reversal = JournalVoucher.objects.get(pk=cancelled["reversal_voucher_id"])
        self.assertEqual(reversal.reversal_of_id, result["voucher_id"])
        self.assertEqual(reversal.source, JournalVoucher.Source.SALES_REVERSAL)

        restock = StockEvent.objects.get(item=self.bottle, source=StockEvent.Source.SALE_RETURN)
        self.assertEqual(restock.quantity_delta, D("60"))
        self.assertEqual(restock.unit_price, D("0.40"))

        # 40 @ 0.40 + 40 @ 1.00 + 60 @ 0.40 back
        valuation = valuate(self.bottle)
        self.assertEqual(valuation.quantity_on_hand, D("140"))
        self.assertEqual(valuation.average_unit_cost, (D("80") * D("0.7") + D("60") * D("0.4")) / D("140"))

    def test_cancel_twice_is_rejected(self):
        result = self._issue()
        cancel_sales_invoice(context=self.ctx, invoice_id=result["invoice_id"])

        with self.assertRaises(InvalidStateError):
            cancel_sales_invoice(context=self.ctx, invoice_id=result["invoice_id"])

    def test_invoice_voucher_cannot_be_reversed_outside_cancellation(self):
        result = self._issue()

        with self.assertRaises(InvalidStateError):
            reverse_voucher(context=self.ctx, voucher_id=result["voucher_id"])
        with self.assertRaises(InvalidStateError):
            reject_voucher(context=self.ctx, voucher_id=result["voucher_id"])

        self.assertFalse(JournalVoucher.objects.filter(reversal_of_id=result["voucher_id"]).exists())
        invoice = SalesInvoice.objects.get(pk=result["invoice_id"])
        self.assertEqual(invoice.status, SalesInvoice.STATUS_ISSUED)

        cancelled = cancel_sales_invoice(context=self.ctx, invoice_id=result["invoice_id"])
        self.assertEqual(cancelled["status"], SalesInvoice.STATUS_CANCELLED)
        self.assertEqual(
            JournalVoucher.objects.get(reversal_of_id=result["voucher_id"]).source,
            JournalVoucher.Source.SALES_REVERSAL,
        )

    def test_invoice_of_another_company_is_not_found(self):
        result = self._issue()
        other_ctx = make_context(make_company("OTHER"))

        with self.assertRaises(NotFoundError):
            cancel_sales_invoice(context=other_ctx, invoice_id=result["invoice_id"])
