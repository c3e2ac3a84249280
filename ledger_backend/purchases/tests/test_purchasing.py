# purchases/tests/test_purchasing.py

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from django.test import TestCase

from accounting.models.account import Account
from accounting.models.voucher import JournalVoucher
from accounting.services.exceptions import InputValidationError, InvalidStateError
from companies.testing import account, make_company, make_context, make_item, make_supplier
from inventory.models.stock_event import StockEvent
from inventory.services.valuation import valuate
from purchases.models import GoodsReceipt, SupplierBill, SupplierPayment
from purchases.services.bill_service import (
    approve_supplier_bill,
    create_bill_from_receipt,
    void_supplier_bill,
)
from purchases.services.payment_service import pay_supplier_bill
from purchases.services.receiving_service import receive_goods

D = Decimal
Role = Account.SystemRole
RECEIPT_DATE = date(2024, 3, 5)


class PurchasingTestBase(TestCase):
    def setUp(self):
        self.company = make_company("ACME")
        self.ctx = make_context(self.company)
        self.supplier = make_supplier(self.company, "Resin Traders")
        self.resin = make_item(self.company, sku="RESIN")
        self.preform = make_item(self.company, sku="PREFORM", kind="SEMI_FINISHED")

    def _receive(self):
        return receive_goods(
            context=self.ctx,
            supplier_id=self.supplier.pk,
            receipt_date=RECEIPT_DATE,
            lines=[
                {"item_id": self.resin.pk, "quantity": "500", "unit_price": "1.80"},
                {"item_id": self.preform.pk, "quantity": "1000", "unit_price": "0.12"},
            ],
        )

    def _approved_bill(self):
        receipt = self._receive()
        bill = create_bill_from_receipt(context=self.ctx, receipt_id=receipt["receipt_id"], bill_date=RECEIPT_DATE)
        return approve_supplier_bill(context=self.ctx, bill_id=bill["bill_id"])


class ReceivingTests(PurchasingTestBase):
    def test_receipt_adds_stock_without_posting(self):
        result = self._receive()

        self.assertEqual(result["grn_number"], "GRN-00001")
        self.assertEqual(result["total_amount"], "1020.00")
        self.assertEqual(valuate(self.resin).quantity_on_hand, D("500"))
        self.assertEqual(valuate(self.resin).average_unit_cost, D("1.80"))
        self.assertEqual(StockEvent.objects.filter(source=StockEvent.Source.RECEIPT).count(), 2)
        self.assertFalse(JournalVoucher.objects.exists())

    def test_negative_price_is_rejected(self):
        with self.assertRaises(InputValidationError):
            receive_goods(
                context=self.ctx,
                supplier_id=self.supplier.pk,
                lines=[{"item_id": self.resin.pk, "quantity": "1", "unit_price": "-1"}],
            )

        self.assertFalse(GoodsReceipt.objects.exists())


class SupplierBillTests(PurchasingTestBase):
    def test_bill_from_receipt_awaits_approval(self):
        receipt = self._receive()

        bill = create_bill_from_receipt(context=self.ctx, receipt_id=receipt["receipt_id"], bill_date=RECEIPT_DATE)

        obj = SupplierBill.objects.get(pk=bill["bill_id"])
        self.assertEqual(obj.bill_number, "BILL-00001")
        self.assertEqual(obj.status, SupplierBill.STATUS_AWAITING_APPROVAL)
        self.assertEqual(obj.total_amount, D("1020.00"))
        self.assertEqual(obj.due_date, RECEIPT_DATE + timedelta(days=30))
        self.assertEqual(obj.items.count(), 2)

    def test_receipt_can_only_be_billed_once(self):
        receipt = self._receive()
        create_bill_from_receipt(context=self.ctx, receipt_id=receipt["receipt_id"])

        with self.assertRaises(InvalidStateError):
            create_bill_from_receipt(context=self.ctx, receipt_id=receipt["receipt_id"])

    def test_approval_posts_inventory_against_payable(self):
        bill = self._approved_bill()

        self.assertEqual(bill["status"], SupplierBill.STATUS_UNPAID)
        voucher = JournalVoucher.objects.get(pk=bill["voucher_id"])
        self.assertEqual(voucher.source, JournalVoucher.Source.SUPPLIER_BILL)
        self.assertEqual(voucher.voucher_number, "PB-2024-00001")
        self.assertEqual(
            voucher.lines.get(account=account(self.company, Role.INVENTORY_RAW_MATERIAL)).debit, D("900.00")
        )
        self.assertEqual(
            voucher.lines.get(account=account(self.company, Role.INVENTORY_SEMI_FINISHED)).debit, D("120.00")
        )
        ap = voucher.lines.get(account=account(self.company, Role.ACCOUNTS_PAYABLE))
        self.assertEqual(ap.credit, D("1020.00"))
        self.assertEqual(ap.payee_id, self.supplier.pk)

    def test_approved_bill_cannot_be_voided_or_reapproved(self):
        bill = self._approved_bill()

        with self.assertRaises(InvalidStateError):
            void_supplier_bill(context=self.ctx, bill_id=bill["bill_id"])
        with self.assertRaises(InvalidStateError):
            approve_supplier_bill(context=self.ctx, bill_id=bill["bill_id"])

    def test_void_keeps_received_stock(self):
        receipt = self._receive()
        bill = create_bill_from_receipt(context=self.ctx, receipt_id=receipt["receipt_id"])

        voided = void_supplier_bill(context=self.ctx, bill_id=bill["bill_id"])

        self.assertEqual(voided["status"], SupplierBill.STATUS_VOID)
        self.assertEqual(valuate(self.resin).quantity_on_hand, D("500"))


class SupplierPaymentTests(PurchasingTestBase):
    def test_partial_then_full_payment(self):
        bill = self._approved_bill()

        first = pay_supplier_bill(
            context=self.ctx, bill_id=bill["bill_id"], amount="400", payment_method="bank",
            payment_date=date(2024, 3, 20),
        )
        self.assertEqual(first["status"], SupplierBill.STATUS_PARTIALLY_PAID)
        self.assertEqual(first["balance"], "620.00")
        self.assertEqual(first["payment_voucher_number"], "SP-2024-00001")

        voucher = JournalVoucher.objects.get(pk=first["payment_voucher_id"])
        ap = voucher.lines.get(account=account(self.company, Role.ACCOUNTS_PAYABLE))
        self.assertEqual(ap.debit, D("400.00"))
        self.assertEqual(ap.payee_id, self.supplier.pk)
        self.assertEqual(voucher.lines.get(account=account(self.company, Role.BANK)).credit, D("400.00"))

        second = pay_supplier_bill(
            context=self.ctx,
            bill_id=bill["bill_id"],
            amount="620",
            payment_account_id=account(self.company, Role.CASH).pk,
        )
        self.assertEqual(second["status"], SupplierBill.STATUS_PAID)
        self.assertEqual(second["balance"], "0.00")
        self.assertEqual(SupplierPayment.objects.filter(bill_id=bill["bill_id"]).count(), 2)

    def test_overpayment_is_rejected(self):
        bill = self._approved_bill()

        with self.assertRaises(InputValidationError):
            pay_supplier_bill(context=self.ctx, bill_id=bill["bill_id"], amount="1020.01")

    def test_unapproved_bill_cannot_be_paid(self):
        receipt = self._receive()
        bill = create_bill_from_receipt(context=self.ctx, receipt_id=receipt["receipt_id"])

        with self.assertRaises(InvalidStateError):
            pay_supplier_bill(context=self.ctx, bill_id=bill["bill_id"], amount="10")

    def test_paid_bill_cannot_be_paid_again(self):
        bill = self._approved_bill()
        pay_supplier_bill(context=self.ctx, bill_id=bill["bill_id"], amount="1020")

        with self.assertRaises(InvalidStateError):
            pay_supplier_bill(context=self.ctx, bill_id=bill["bill_id"], amount="1")

    def test_payment_account_must_be_an_asset(self):
        bill = self._approved_bill()

        with self.assertRaises(InputValidationError):
            pay_supplier_bill(
                context=self.ctx,
                bill_id=bill["bill_id"],
                amount="10",
                payment_account_id=account(self.company, Role.ACCOUNTS_PAYABLE).pk,
            )

    def test_unknown_payment_method_is_rejected(self):
        bill = self._approved_bill()

        with self.assertRaises(InputValidationError):
            pay_supplier_bill(context=self.ctx, bill_id=bill["bill_id"], amount="10", payment_method="cheque")
