# sales/services/payment_allocation.py

"""
CUSTOMER PAYMENT ALLOCATION

Receive one customer payment and allocate it across that customer's open
invoices (atomic).

RULES:
- amount > 0; Σ allocation.amount == amount (2dp exact)
- each allocation > 0 and ≤ the invoice's amount_due
- invoices must be ISSUED or PARTIAL and belong to the customer
- deposit account must be an Asset (cash / bank)

Ledger:
  Dr deposit account   amount
  Cr A/R               amount   (payee = customer)
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import OperationalError, transaction
from django.utils import timezone

from accounting.models.account import Account
from accounting.models.voucher import JournalVoucher
from accounting.models.voucher_line import JournalVoucherLine
from accounting.services.account_resolver import get_account, get_receivable_account
from accounting.services.exceptions import (
    ConcurrencyConflictError,
    InputValidationError,
    InvalidStateError,
    NotFoundError,
)
from accounting.services.ledger_poster import post_voucher
from accounting.services.sequences import next_document_number
from sales.models import Customer, CustomerPayment, PaymentAllocation, SalesInvoice

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    try:
        return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InputValidationError(f"Invalid money value: {v!r}") from exc


def _validate_and_normalize_allocations(allocations, *, amount: Decimal) -> list[dict]:
    """
    allocations: list of dicts: {invoice_id, amount}
    Returns normalized list with Decimal 2dp amounts.
    """
    if not allocations:
        raise InputValidationError("At least one invoice allocation is required")

    out = []
    seen = set()
    for idx, a in enumerate(allocations, start=1):
        if not isinstance(a, dict):
            raise InputValidationError("Each allocation must be an object/dict")

        invoice_id = a.get("invoice_id")
        if invoice_id in (None, ""):
            raise InputValidationError(f"Allocation {idx}: invoice_id is required")
        try:
            invoice_id = int(invoice_id)
        except (TypeError, ValueError) as exc:
            raise InputValidationError(f"Allocation {idx}: invalid invoice_id") from exc

        if invoice_id in seen:
            raise InputValidationError(f"Invoice {invoice_id} is allocated more than once")
        seen.add(invoice_id)

        alloc_amount = _money(a.get("amount"))
        if alloc_amount <= 0:
            raise InputValidationError(f"Allocation {idx}: amount must be > 0")

        out.append({"invoice_id": invoice_id, "amount": alloc_amount})

    total = sum((a["amount"] for a in out), Decimal("0.00"))
    if total != amount:
        raise InputValidationError(
            f"Allocations ({total}) must equal the payment amount ({amount})"
        )
    return out


@transaction.atomic
def allocate_payment(
    *,
    context,
    customer_id,
    amount,
    deposit_account_id,
    allocations,
    payment_date=None,
    reference: str = "",
) -> dict:
    try:
        customer = Customer.objects.get(company=context.company, pk=customer_id)
    except (Customer.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Customer {customer_id} not found") from exc

    amount = _money(amount)
    if amount <= 0:
        raise InputValidationError("Payment amount must be > 0")

    normalized = _validate_and_normalize_allocations(allocations, amount=amount)
    deposit = get_account(context.company, deposit_account_id, expected_type=Account.ASSET)
    payment_date = payment_date or timezone.localdate()

    ids = sorted(a["invoice_id"] for a in normalized)
    try:
        invoices = {
            inv.pk: inv
            for inv in SalesInvoice.objects.select_for_update()
            .filter(company=context.company, pk__in=ids)
            .order_by("id")
        }
    except OperationalError as exc:
        raise ConcurrencyConflictError("Invoices are locked; please retry") from exc

    missing = [i for i in ids if i not in invoices]
    if missing:
        raise NotFoundError(f"Sales invoice(s) not found: {missing}")

    for a in normalized:
        invoice = invoices[a["invoice_id"]]
        if invoice.customer_id != customer.pk:
            raise InputValidationError(
                f"Invoice {invoice.invoice_number} belongs to another customer"
            )
        if not invoice.is_payable:
            raise InvalidStateError(
                f"Invoice {invoice.invoice_number} is {invoice.status} and cannot take payments"
            )
        if a["amount"] > invoice.amount_due:
            raise InputValidationError(
                f"Allocation {a['amount']} exceeds amount due {invoice.amount_due} "
                f"on invoice {invoice.invoice_number}"
            )

    receipt_number = next_document_number(company=context.company, prefix="RCPT")

    voucher = post_voucher(
        context=context,
        narration=f"Customer receipt {receipt_number} from {customer.name}",
        lines=[
            {"account": deposit, "debit": amount, "description": f"Receipt {receipt_number}"},
            {
                "account": get_receivable_account(context.company),
                "credit": amount,
                "description": f"Receipt {receipt_number}",
                "payee_type": JournalVoucherLine.PAYEE_CUSTOMER,
                "payee_id": customer.pk,
            },
        ],
        entry_date=payment_date,
        source=JournalVoucher.Source.CUSTOMER_RECEIPT,
        reference_type="CUSTOMER_PAYMENT",
        reference_id=receipt_number,
    )

    payment = CustomerPayment.objects.create(
        company=context.company,
        receipt_number=receipt_number,
        customer=customer,
        payment_date=payment_date,
        amount=amount,
        deposit_account=deposit,
        reference=(reference or "").strip()[:128],
        journal_voucher=voucher,
        created_by=context.user if getattr(context.user, "pk", None) else None,
    )

    results = []
    for a in normalized:
        invoice = invoices[a["invoice_id"]]
        PaymentAllocation.objects.create(payment=payment, invoice=invoice, amount=a["amount"])

        invoice.amount_paid = invoice.amount_paid + a["amount"]
        invoice.amount_due = invoice.total_amount - invoice.amount_paid
        invoice.status = (
            SalesInvoice.STATUS_PAID if invoice.amount_due <= 0 else SalesInvoice.STATUS_PARTIAL
        )
        invoice.save(update_fields=["amount_paid", "amount_due", "status", "updated_at"])
        results.append(
            {
                "invoice_id": invoice.pk,
                "invoice_number": invoice.invoice_number,
                "allocated": str(a["amount"]),
                "amount_due": str(invoice.amount_due),
                "status": invoice.status,
            }
        )

    logger.info(
        "Customer payment allocated",
        extra={
            "company": context.company.code,
            "receipt_number": receipt_number,
            "amount": str(amount),
            "invoices": len(results),
            "request_id": context.request_id,
        },
    )

    return {
        "payment_id": payment.pk,
        "receipt_number": receipt_number,
        "amount": str(amount),
        "voucher_id": voucher.pk,
        "voucher_number": voucher.voucher_number,
        "allocations": results,
    }
