# accounting/services/payment_voucher_service.py

"""
======================================================
PATH: accounting/services/payment_voucher_service.py
======================================================
PAYMENT VOUCHER SERVICE (EXPENSE PAYMENTS WITH VAT / WHT)

create_payment_voucher():
- gross = Σ line.amount
- vat   = Σ line.amount · vat_rate / 100
- wht   = gross · wht_rate / 100
- net   = gross + vat − wht  (must be > 0)
- posts ONE PAYMENT_VOUCHER journal voucher (status POSTED):
      Dr each expense account     line amount
      Dr Input VAT                vat
      Cr WHT Payable              wht
      Cr bank                     net
- the payment voucher starts SUBMITTED

approve_payment_voucher(): journal voucher → APPROVED, PV → APPROVED (re-approve is a no-op)
reject_payment_voucher():  journal voucher → REJECTED + automatic reversal, PV → REJECTED
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import OperationalError, transaction
from django.utils import timezone

from accounting.models.account import Account
from accounting.models.payment_voucher import PaymentVoucher, PaymentVoucherLine
from accounting.models.voucher import JournalVoucher
from accounting.models.voucher_line import JournalVoucherLine
from accounting.services.account_resolver import get_account, get_account_by_role
from accounting.services.exceptions import (
    ConcurrencyConflictError,
    InputValidationError,
    InvalidStateError,
    NotFoundError,
)
from accounting.services.ledger_poster import (
    approve_document_voucher,
    post_voucher,
    reject_document_voucher,
)
from accounting.services.sequences import next_document_number
from purchases.models import Supplier

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
HUNDRED = Decimal("100")


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    try:
        return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InputValidationError(f"Invalid money value: {v!r}") from exc


def _rate(v, label: str) -> Decimal:
    try:
        rate = Decimal(str(v if v not in (None, "") else "0"))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InputValidationError(f"Invalid {label}: {v!r}") from exc
    if not rate.is_finite() or rate < 0 or rate > HUNDRED:
        raise InputValidationError(f"{label} must be between 0 and 100")
    return rate.quantize(TWOPLACES)


def _resolve_supplier(*, context, supplier_id):
    if supplier_id in (None, ""):
        return None

    try:
        return Supplier.objects.get(company=context.company, pk=supplier_id)
    except (Supplier.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Supplier {supplier_id} not found") from exc


def _lock_payment_voucher(*, context, payment_voucher_id) -> PaymentVoucher:
    try:
        return PaymentVoucher.objects.select_for_update().get(
            company=context.company, pk=payment_voucher_id
        )
    except (PaymentVoucher.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Payment voucher {payment_voucher_id} not found") from exc
    except OperationalError as exc:
        raise ConcurrencyConflictError(
            f"Payment voucher {payment_voucher_id} is locked; please retry"
        ) from exc


def _result(pv: PaymentVoucher) -> dict:
    return {
        "payment_voucher_id": pv.pk,
        "number": pv.number,
        "status": pv.status,
        "gross_amount": str(pv.gross_amount),
        "vat_amount": str(pv.vat_amount),
        "wht_amount": str(pv.wht_amount),
        "net_payable": str(pv.net_payable),
        "voucher_id": pv.journal_voucher_id,
    }


@transaction.atomic
def create_payment_voucher(
    *,
    context,
    payee_name: str,
    bank_account_id,
    lines,
    payment_date=None,
    wht_rate=0,
    supplier_id=None,
    narration: str = "",
) -> dict:
    supplier = _resolve_supplier(context=context, supplier_id=supplier_id)
    payee_name = (payee_name or (supplier.name if supplier else "")).strip()
    if not payee_name:
        raise InputValidationError("payee_name is required")

    if not lines:
        raise InputValidationError("A payment voucher requires at least one expense line")

    bank = get_account(context.company, bank_account_id, expected_type=Account.ASSET)
    wht_rate = _rate(wht_rate, "wht_rate")
    payment_date = payment_date or timezone.localdate()

    normalized = []
    for idx, line in enumerate(lines, start=1):
        if not isinstance(line, dict):
            raise InputValidationError("Each payment voucher line must be an object/dict")

        account = get_account(
            context.company, line.get("expense_account_id"), expected_type=Account.EXPENSE
        )
        amount = _money(line.get("amount"))
        if amount <= 0:
            raise InputValidationError(f"Line {idx}: amount must be > 0")

        vat_rate = _rate(line.get("vat_rate"), "vat_rate")
        normalized.append(
            {
                "account": account,
                "amount": amount,
                "vat_rate": vat_rate,
                "vat_amount": _money(amount * vat_rate / HUNDRED),
                "description": str(line.get("description") or "").strip()[:255],
            }
        )

    gross = sum((ln["amount"] for ln in normalized), Decimal("0.00"))
    vat = sum((ln["vat_amount"] for ln in normalized), Decimal("0.00"))
    wht = _money(gross * wht_rate / HUNDRED)
    net = gross + vat - wht
    if net <= 0:
        raise InputValidationError("Net payable must be > 0")

    number = next_document_number(company=context.company, prefix="PVN")

    ledger_lines = [
        {
            "account": ln["account"],
            "debit": ln["amount"],
            "description": ln["description"] or f"{number} {payee_name}",
        }
        for ln in normalized
    ]
    if vat > 0:
        ledger_lines.append(
            {
                "account": get_account_by_role(context.company, Account.SystemRole.INPUT_VAT),
                "debit": vat,
                "description": f"Input VAT {number}",
            }
        )
    if wht > 0:
        ledger_lines.append(
            {
                "account": get_account_by_role(context.company, Account.SystemRole.WHT_PAYABLE),
                "credit": wht,
                "description": f"WHT {wht_rate}% {number}",
            }
        )
    bank_line = {"account": bank, "credit": net, "description": f"{number} {payee_name}"}
    if supplier is not None:
        bank_line.update({"payee_type": JournalVoucherLine.PAYEE_SUPPLIER, "payee_id": supplier.pk})
    ledger_lines.append(bank_line)

    voucher = post_voucher(
        context=context,
        narration=(narration or f"Payment voucher {number} to {payee_name}").strip(),
        lines=ledger_lines,
        entry_date=payment_date,
        source=JournalVoucher.Source.PAYMENT_VOUCHER,
        reference_type="PAYMENT_VOUCHER",
        reference_id=number,
    )

    pv = PaymentVoucher(
        company=context.company,
        number=number,
        payee_name=payee_name,
        supplier=supplier,
        payment_date=payment_date,
        bank_account=bank,
        gross_amount=gross,
        vat_amount=vat,
        wht_rate=wht_rate,
        wht_amount=wht,
        net_payable=net,
        narration=(narration or "").strip(),
        status=PaymentVoucher.STATUS_SUBMITTED,
        journal_voucher=voucher,
    )
    try:
        pv.full_clean()
    except DjangoValidationError as exc:
        raise InputValidationError("; ".join(exc.messages)) from exc
    pv.save()

    PaymentVoucherLine.objects.bulk_create(
        [
            PaymentVoucherLine(
                payment_voucher=pv,
                expense_account=ln["account"],
                description=ln["description"],
                amount=ln["amount"],
                vat_rate=ln["vat_rate"],
                vat_amount=ln["vat_amount"],
            )
            for ln in normalized
        ]
    )

    logger.info(
        "Payment voucher submitted",
        extra={
            "company": context.company.code,
            "number": number,
            "net": str(net),
            "voucher_number": voucher.voucher_number,
            "request_id": context.request_id,
        },
    )
    return _result(pv)


@transaction.atomic
def approve_payment_voucher(*, context, payment_voucher_id) -> dict:
    pv = _lock_payment_voucher(context=context, payment_voucher_id=payment_voucher_id)

    if pv.status == PaymentVoucher.STATUS_APPROVED:
        return _result(pv)

    if pv.status != PaymentVoucher.STATUS_SUBMITTED:
        raise InvalidStateError(f"Payment voucher {pv.number} is {pv.status} and cannot be approved")

    approve_document_voucher(
        context=context,
        voucher_id=pv.journal_voucher_id,
        source=JournalVoucher.Source.PAYMENT_VOUCHER,
    )
    pv.status = PaymentVoucher.STATUS_APPROVED
    pv.save(update_fields=["status", "updated_at"])

    logger.info("Payment voucher approved", extra={"company": context.company.code, "number": pv.number})
    return _result(pv)


@transaction.atomic
def reject_payment_voucher(*, context, payment_voucher_id, reason: str = "") -> dict:
    pv = _lock_payment_voucher(context=context, payment_voucher_id=payment_voucher_id)

    if pv.status == PaymentVoucher.STATUS_REJECTED:
        return _result(pv)

    if pv.status != PaymentVoucher.STATUS_SUBMITTED:
        raise InvalidStateError(f"Payment voucher {pv.number} is {pv.status} and cannot be rejected")

    reject_document_voucher(
        context=context,
        voucher_id=pv.journal_voucher_id,
        source=JournalVoucher.Source.PAYMENT_VOUCHER,
        reason=reason,
    )
    pv.status = PaymentVoucher.STATUS_REJECTED
    pv.save(update_fields=["status", "updated_at"])

    logger.info(
        "Payment voucher rejected",
        extra={"company": context.company.code, "number": pv.number, "reason": reason},
    )
    return _result(pv)
