# purchases/services/payment_service.py

"""
SUPPLIER BILL PAYMENT

pay_supplier_bill() (atomic):
- bill must be UNPAID or PARTIALLY_PAID
- 0 < amount ≤ bill balance
- payment account must be an Asset; when no account id is given it is
  resolved from payment_method ("cash" → CASH role, "bank"/"transfer" → BANK)
- posts Dr A/P (payee = supplier) / Cr payment account
- bill → PAID when fully settled, else PARTIALLY_PAID
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import transaction
from django.utils import timezone

from accounting.models.account import Account
from accounting.models.voucher import JournalVoucher
from accounting.models.voucher_line import JournalVoucherLine
from accounting.services.account_resolver import (
    get_account,
    get_account_by_role,
    get_payable_account,
    require_type,
)
from accounting.services.exceptions import InputValidationError, InvalidStateError
from accounting.services.ledger_poster import post_voucher
from purchases.models import SupplierBill, SupplierPayment
from purchases.services.bill_service import bill_result, lock_bill

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    try:
        return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InputValidationError(f"Invalid money value: {v!r}") from exc


def _resolve_payment_account(*, context, payment_account_id, payment_method: str | None) -> Account:
    if payment_account_id not in (None, ""):
        return get_account(context.company, payment_account_id, expected_type=Account.ASSET)

    m = (payment_method or "bank").lower().strip()
    if m == "cash":
        account = get_account_by_role(context.company, Account.SystemRole.CASH)
    elif m in ("bank", "transfer"):
        account = get_account_by_role(context.company, Account.SystemRole.BANK)
    else:
        logger.error("Unsupported payment method", extra={"payment_method": m})
        raise InputValidationError(f"Unsupported payment_method={m!r}. Use cash or bank.")

    return require_type(account, Account.ASSET)


@transaction.atomic
def pay_supplier_bill(
    *,
    context,
    bill_id,
    amount,
    payment_date=None,
    payment_account_id=None,
    payment_method: str | None = None,
    reference: str = "",
) -> dict:
    bill = lock_bill(context=context, bill_id=bill_id)

    if bill.status not in SupplierBill.PAYABLE_STATUSES:
        raise InvalidStateError(
            f"Bill {bill.bill_number} is {bill.status} and cannot be paid"
        )

    amount = _money(amount)
    if amount <= 0:
        raise InputValidationError("Payment amount must be > 0")

    balance = bill.balance
    if amount > balance:
        raise InputValidationError(
            f"Payment {amount} exceeds the outstanding balance {balance} of bill {bill.bill_number}"
        )

    payment_account = _resolve_payment_account(
        context=context,
        payment_account_id=payment_account_id,
        payment_method=payment_method,
    )
    payment_date = payment_date or timezone.localdate()

    voucher = post_voucher(
        context=context,
        narration=f"Payment of supplier bill {bill.bill_number} to {bill.supplier.name}",
        lines=[
            {
                "account": get_payable_account(context.company),
                "debit": amount,
                "description": f"Bill {bill.bill_number}",
                "payee_type": JournalVoucherLine.PAYEE_SUPPLIER,
                "payee_id": bill.supplier_id,
            },
            {
                "account": payment_account,
                "credit": amount,
                "description": (reference or f"Bill {bill.bill_number}").strip(),
            },
        ],
        entry_date=payment_date,
        source=JournalVoucher.Source.SUPPLIER_PAYMENT,
    )

    SupplierPayment.objects.create(
        company=context.company,
        bill=bill,
        payment_date=payment_date,
        amount=amount,
        payment_account=payment_account,
        reference=(reference or "").strip()[:128],
        journal_voucher=voucher,
        created_by=context.user if getattr(context.user, "pk", None) else None,
    )

    bill.amount_paid = bill.amount_paid + amount
    bill.status = (
        SupplierBill.STATUS_PAID
        if bill.amount_paid >= bill.total_amount
        else SupplierBill.STATUS_PARTIALLY_PAID
    )
    bill.save(update_fields=["amount_paid", "status", "updated_at"])

    logger.info(
        "Supplier bill paid",
        extra={
            "company": context.company.code,
            "bill_number": bill.bill_number,
            "amount": str(amount),
            "status": bill.status,
            "voucher_number": voucher.voucher_number,
            "request_id": context.request_id,
        },
    )

    result = bill_result(bill)
    result.update(
        {
            "paid": str(amount),
            "payment_voucher_id": voucher.pk,
            "payment_voucher_number": voucher.voucher_number,
        }
    )
    return result
