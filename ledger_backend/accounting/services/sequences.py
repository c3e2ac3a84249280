# accounting/services/sequences.py

"""
======================================================
PATH: accounting/services/sequences.py
======================================================
SEQUENCE ALLOCATOR (VOUCHER + DOCUMENT NUMBERS)

Numbers are drawn from a VoucherSequence row locked with SELECT ... FOR UPDATE.
The lock is held until the caller's transaction commits, so allocation and the
insert of the numbered row are atomic together. Never derive numbers from
"max(existing) + 1".

Formats:
- vouchers:  PREFIX-YYYY-NNNNN  (per company, per prefix, per year)
- documents: PREFIX-NNNNN       (per company, per prefix)
"""

from __future__ import annotations

import logging
from datetime import date

from django.conf import settings
from django.db import DatabaseError, IntegrityError, OperationalError, transaction

from accounting.models.sequence import VoucherSequence
from accounting.models.voucher import JournalVoucher
from accounting.services.exceptions import (
    ConcurrencyConflictError,
    InputValidationError,
    PersistenceFailureError,
)

logger = logging.getLogger(__name__)

SOURCE_PREFIXES = {
    JournalVoucher.Source.MANUAL: "JV",
    JournalVoucher.Source.SALES_INVOICE: "SI",
    JournalVoucher.Source.SALES_REVERSAL: "SR",
    JournalVoucher.Source.CUSTOMER_RECEIPT: "RC",
    JournalVoucher.Source.SUPPLIER_BILL: "PB",
    JournalVoucher.Source.SUPPLIER_PAYMENT: "SP",
    JournalVoucher.Source.PAYMENT_VOUCHER: "PV",
    JournalVoucher.Source.PRODUCTION: "PR",
    JournalVoucher.Source.OPENING_BALANCE: "OB",
    JournalVoucher.Source.REVERSAL: "RV",
}

DOCUMENT_WIDTH = 5


def _number_width() -> int:
    return int(getattr(settings, "LEDGER_VOUCHER_NUMBER_WIDTH", 5) or 5)


def prefix_for_source(source: str) -> str:
    default = getattr(settings, "LEDGER_VOUCHER_PREFIX", "JV") or "JV"
    return SOURCE_PREFIXES.get(source, default)


def _lock_sequence(*, company, prefix: str, period: str) -> VoucherSequence:
    try:
        return VoucherSequence.objects.select_for_update().get(
            company=company, prefix=prefix, period=period
        )
    except VoucherSequence.DoesNotExist:
        pass

    try:
        # Savepoint: a lost creation race must not poison the outer transaction.
        with transaction.atomic():
            return VoucherSequence.objects.create(
                company=company, prefix=prefix, period=period, last_value=0
            )
    except IntegrityError:
        return VoucherSequence.objects.select_for_update().get(
            company=company, prefix=prefix, period=period
        )


def next_value(*, company, prefix: str, period: str = "") -> int:
    """
    Allocate the next value for (company, prefix, period).

    Must run inside the caller's transaction.atomic block.
    """
    prefix = (prefix or "").strip().upper()
    if not prefix:
        raise InputValidationError("Sequence prefix is required")

    try:
        seq = _lock_sequence(company=company, prefix=prefix, period=period)
        seq.last_value += 1
        seq.save(update_fields=["last_value", "updated_at"])
    except OperationalError as exc:
        logger.warning(
            "Sequence lock contention",
            extra={"company_id": getattr(company, "pk", None), "prefix": prefix, "period": period},
        )
        raise ConcurrencyConflictError(
            f"Could not allocate a {prefix} number; please retry"
        ) from exc
    except DatabaseError as exc:
        raise PersistenceFailureError(f"Could not allocate a {prefix} number") from exc

    return seq.last_value


def format_voucher_number(prefix: str, year: int, value: int) -> str:
    return f"{prefix}-{year:04d}-{value:0{_number_width()}d}"


def format_document_number(prefix: str, value: int) -> str:
    return f"{prefix}-{value:0{DOCUMENT_WIDTH}d}"


def next_voucher_number(*, company, source: str, entry_date: date) -> str:
    prefix = prefix_for_source(source)
    year = entry_date.year
    value = next_value(company=company, prefix=prefix, period=str(year))
    return format_voucher_number(prefix, year, value)


def next_document_number(*, company, prefix: str) -> str:
    prefix = (prefix or "").strip().upper()
    value = next_value(company=company, prefix=prefix, period="")
    return format_document_number(prefix, value)
