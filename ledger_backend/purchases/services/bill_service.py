# purchases/services/bill_service.py

"""
======================================================
PATH: purchases/services/bill_service.py
======================================================
SUPPLIER BILL SERVICE

- create_bill_from_receipt(): one bill per GRN (a second one is InvalidState);
  the bill starts AWAITING_APPROVAL and carries the GRN lines
- approve_supplier_bill(): posts the SUPPLIER_BILL voucher
      Dr Inventory (by item kind)   line totals
      Cr A/P                        total      (payee = supplier)
  and moves the bill to UNPAID
- void_supplier_bill(): AWAITING_APPROVAL → VOID (nothing was posted yet)
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.db import OperationalError, transaction
from django.utils import timezone

from accounting.models.voucher import JournalVoucher
from accounting.models.voucher_line import JournalVoucherLine
from accounting.services.account_resolver import get_account_by_role, get_payable_account
from accounting.services.exceptions import (
    ConcurrencyConflictError,
    InputValidationError,
    InvalidStateError,
    NotFoundError,
)
from accounting.services.ledger_poster import post_voucher
from accounting.services.sequences import next_document_number
from purchases.models import GoodsReceipt, SupplierBill, SupplierBillItem

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
BILL_DUE_DAYS = 30

REFERENCE_TYPE = "SUPPLIER_BILL"


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def lock_bill(*, context, bill_id) -> SupplierBill:
    try:
        return (
            SupplierBill.objects.select_for_update()
            .select_related("supplier")
            .get(company=context.company, pk=bill_id)
        )
    except (SupplierBill.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Supplier bill {bill_id} not found") from exc
    except OperationalError as exc:
        raise ConcurrencyConflictError(f"Supplier bill {bill_id} is locked; please retry") from exc


def bill_result(bill: SupplierBill) -> dict:
    return {
        "bill_id": bill.pk,
        "bill_number": bill.bill_number,
        "status": bill.status,
        "total_amount": str(bill.total_amount),
        "amount_paid": str(bill.amount_paid),
        "balance": str(bill.balance),
        "voucher_id": bill.journal_voucher_id,
    }


@transaction.atomic
def create_bill_from_receipt(*, context, receipt_id, bill_date=None, due_date=None) -> dict:
    try:
        receipt = (
            GoodsReceipt.objects.select_for_update()
            .select_related("supplier")
            .get(company=context.company, pk=receipt_id)
        )
    except (GoodsReceipt.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Goods receipt {receipt_id} not found") from exc

    existing = SupplierBill.objects.filter(receipt=receipt).values_list("bill_number", flat=True).first()
    if existing:
        raise InvalidStateError(f"{receipt.grn_number} is already billed as {existing}")

    bill_date = bill_date or timezone.localdate()
    due_date = due_date or bill_date + timedelta(days=BILL_DUE_DAYS)

    bill = SupplierBill.objects.create(
        company=context.company,
        bill_number=next_document_number(company=context.company, prefix="BILL"),
        supplier=receipt.supplier,
        receipt=receipt,
        bill_date=bill_date,
        due_date=due_date,
        status=SupplierBill.STATUS_AWAITING_APPROVAL,
        total_amount=_money(receipt.total_amount),
        created_by=context.user if getattr(context.user, "pk", None) else None,
    )

    SupplierBillItem.objects.bulk_create(
        [
            SupplierBillItem(
                bill=bill,
                item_id=line.item_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                line_total=line.line_total,
            )
            for line in receipt.items.order_by("id")
        ]
    )

    logger.info(
        "Supplier bill created",
        extra={"company": context.company.code, "bill_number": bill.bill_number, "grn": receipt.grn_number},
    )
    return bill_result(bill)


@transaction.atomic
def approve_supplier_bill(*, context, bill_id) -> dict:
    bill = lock_bill(context=context, bill_id=bill_id)

    if bill.status != SupplierBill.STATUS_AWAITING_APPROVAL:
        raise InvalidStateError(
            f"Only bills awaiting approval can be approved (bill {bill.bill_number} is {bill.status})"
        )

    if bill.total_amount <= 0:
        raise InputValidationError(f"Bill {bill.bill_number} has no amount to post; void it instead")

    debits: OrderedDict[int, list] = OrderedDict()
    for line in bill.items.select_related("item").order_by("id"):
        amount = _money(line.line_total)
        if amount <= 0:
            continue
        account = get_account_by_role(context.company, line.item.inventory_role)
        entry = debits.setdefault(account.pk, [account, Decimal("0.00")])
        entry[1] += amount

    lines = [
        {"account": account, "debit": amount, "description": f"Bill {bill.bill_number}"}
        for account, amount in debits.values()
    ]
    lines.append(
        {
            "account": get_payable_account(context.company),
            "credit": bill.total_amount,
            "description": f"Bill {bill.bill_number}",
            "payee_type": JournalVoucherLine.PAYEE_SUPPLIER,
            "payee_id": bill.supplier_id,
        }
    )

    voucher = post_voucher(
        context=context,
        narration=f"Supplier bill {bill.bill_number} from {bill.supplier.name}",
        lines=lines,
        entry_date=bill.bill_date,
        source=JournalVoucher.Source.SUPPLIER_BILL,
        reference_type=REFERENCE_TYPE,
        reference_id=bill.pk,
    )

    bill.journal_voucher = voucher
    bill.status = SupplierBill.STATUS_UNPAID
    bill.approved_at = timezone.now()
    bill.save()

    logger.info(
        "Supplier bill approved",
        extra={
            "company": context.company.code,
            "bill_number": bill.bill_number,
            "voucher_number": voucher.voucher_number,
            "request_id": context.request_id,
        },
    )
    return bill_result(bill)


@transaction.atomic
def void_supplier_bill(*, context, bill_id) -> dict:
    bill = lock_bill(context=context, bill_id=bill_id)

    if bill.status != SupplierBill.STATUS_AWAITING_APPROVAL:
        raise InvalidStateError(
            f"Only bills awaiting approval can be voided (bill {bill.bill_number} is {bill.status})"
        )

    bill.status = SupplierBill.STATUS_VOID
    bill.save(update_fields=["status", "updated_at"])
    logger.info("Supplier bill voided", extra={"bill_number": bill.bill_number})
    return bill_result(bill)
