# accounting/services/ledger_poster.py

"""
======================================================
PATH: accounting/services/ledger_poster.py
======================================================
LEDGER POSTER (ACCOUNTING ENGINE)

This module is the ONLY place allowed to:
- Create JournalVoucher
- Create JournalVoucherLine
- Enforce debit == credit
- Allocate voucher numbers (PREFIX-YYYY-NNNNN, locked sequence row)
- Move vouchers through DRAFT → POSTED → APPROVED | REJECTED
- Reverse vouchers (additive, never mutates the original's lines)

Every orchestrator (sales, production, purchases, payments, opening balances)
composes its ledger effect through post_voucher(); none of them re-implement
balance checks.

Lifecycle policy:
- DRAFT vouchers have no lines; their accounting intent lives in
  PendingVoucherIntent and is materialized when the draft is posted.
- Approving an APPROVED voucher is a no-op.
- Rejecting a POSTED voucher marks it REJECTED and posts a reversing voucher;
  rejecting a REJECTED voucher is a no-op; APPROVED vouchers cannot be rejected.
- A voucher can be reversed at most once; a reversal cannot itself be reversed.
- Only DRAFT (or REJECTED-while-draft) vouchers can be deleted.
- The public transitions act on MANUAL vouchers only. Vouchers generated by a
  business document move through that document (cancel_sales_invoice,
  approve_payment_voucher, ...), which calls the *_document_voucher helpers.

All public functions take the request context first and are atomic: any failure
rolls back every row written, including the caller's enclosing business rows.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, IntegrityError, OperationalError, transaction
from django.utils import timezone

from accounting.models.account import Account
from accounting.models.pending_intent import PendingVoucherIntent
from accounting.models.voucher import JournalVoucher
from accounting.models.voucher_line import JournalVoucherLine
from accounting.services.exceptions import (
    ConcurrencyConflictError,
    InputValidationError,
    InvalidStateError,
    NotFoundError,
    PersistenceFailureError,
    UnbalancedVoucherError,
)
from accounting.services.sequences import next_voucher_number

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
MIN_LINE_AMOUNT = Decimal("0.01")
BALANCE_EPSILON = Decimal("0.01")

Status = JournalVoucher.Status
Source = JournalVoucher.Source

PAYEE_TYPES = {JournalVoucherLine.PAYEE_CUSTOMER, JournalVoucherLine.PAYEE_SUPPLIER}


def _money(value) -> Decimal:
    if value is None or value == "":
        return Decimal("0.00")

    if isinstance(value, Decimal):
        amt = value
    else:
        try:
            amt = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise InputValidationError(f"Invalid money value: {value!r}") from exc

    if not amt.is_finite():
        raise InputValidationError(f"Invalid money value: {value!r}")

    return amt.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _as_date(value) -> date:
    if value is None or value == "":
        return timezone.localdate()
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise InputValidationError(f"Invalid entry date: {value!r}") from exc


def is_balanced(total_debits: Decimal, total_credits: Decimal) -> bool:
    return abs(total_debits - total_credits) < BALANCE_EPSILON


def _normalize_lines(*, context, lines) -> tuple[list[dict], Decimal, Decimal]:
    total_debits = Decimal("0.00")
    total_credits = Decimal("0.00")
    normalized: list[dict] = []

    for idx, line in enumerate(lines, start=1):
        if not isinstance(line, dict):
            raise InputValidationError("Each voucher line must be an object/dict")

        account = line.get("account")
        if not isinstance(account, Account):
            raise InputValidationError(f"Line {idx}: account is required")

        if account.company_id != context.company_id:
            raise InputValidationError(
                f"Line {idx}: account {account.code} belongs to another company"
            )

        if not account.is_active:
            raise InputValidationError(f"Line {idx}: account {account.code} is inactive")

        debit = _money(line.get("debit"))
        credit = _money(line.get("credit"))

        if debit < 0 or credit < 0:
            raise InputValidationError(f"Line {idx}: debit or credit cannot be negative")

        if debit > 0 and credit > 0:
            raise InputValidationError(f"Line {idx}: a line cannot have both debit and credit")

        if debit == 0 and credit == 0:
            raise InputValidationError(f"Line {idx}: a line must have either debit or credit")

        if 0 < debit < MIN_LINE_AMOUNT or 0 < credit < MIN_LINE_AMOUNT:
            raise InputValidationError(f"Line {idx}: amount too small")

        payee_type = (line.get("payee_type") or "").strip() or None
        payee_id = line.get("payee_id")
        if payee_type is not None and payee_type not in PAYEE_TYPES:
            raise InputValidationError(f"Line {idx}: invalid payee_type {payee_type!r}")
        if (payee_type is None) != (payee_id in (None, "")):
            raise InputValidationError(f"Line {idx}: payee_type and payee_id go together")

        total_debits += debit
        total_credits += credit

        normalized.append(
            {
                "account": account,
                "debit": debit,
                "credit": credit,
                "description": str(line.get("description") or "").strip()[:255],
                "payee_type": payee_type,
                "payee_id": int(payee_id) if payee_type else None,
            }
        )

    return normalized, total_debits, total_credits


def assert_balanced(total_debits: Decimal, total_credits: Decimal) -> None:
    if not is_balanced(total_debits, total_credits):
        raise UnbalancedVoucherError(total_debits, total_credits)


def _assert_reference_free(*, context, source, reference_type, reference_id) -> None:
    if not reference_type or not reference_id:
        return

    live = (
        JournalVoucher.objects.filter(
            company=context.company,
            source=source,
            reference_type=reference_type,
            reference_id=reference_id,
            status__in=[Status.POSTED, Status.APPROVED],
            reversal__isnull=True,
        )
        .values_list("voucher_number", flat=True)
        .first()
    )
    if live:
        raise InvalidStateError(
            f"{reference_type}:{reference_id} is already posted as voucher {live}"
        )


def _insert_voucher(
    *,
    context,
    entry_date: date,
    source: str,
    narration: str,
    reference_type: str,
    reference_id: str,
    status: str,
    total: Decimal,
    reversal_of: JournalVoucher | None = None,
) -> JournalVoucher:
    voucher_number = next_voucher_number(
        company=context.company, source=source, entry_date=entry_date
    )

    try:
        # Savepoint so a unique-number race surfaces as a typed conflict.
        with transaction.atomic():
            return JournalVoucher.objects.create(
                company=context.company,
                voucher_number=voucher_number,
                entry_date=entry_date,
                source=source,
                reference_type=reference_type,
                reference_id=reference_id,
                narration=narration,
                total_debits=total,
                total_credits=total,
                status=status,
                reversal_of=reversal_of,
                created_by=context.user if getattr(context.user, "pk", None) else None,
                status_changed_at=timezone.now(),
            )
    except (IntegrityError, DjangoValidationError) as exc:
        if reversal_of is not None and JournalVoucher.objects.filter(reversal_of=reversal_of).exists():
            raise InvalidStateError(
                f"Voucher {reversal_of.voucher_number} has already been reversed"
            ) from exc
        if JournalVoucher.objects.filter(
            company=context.company, voucher_number=voucher_number
        ).exists():
            raise ConcurrencyConflictError(
                f"Voucher number {voucher_number} was taken concurrently; please retry"
            ) from exc
        if isinstance(exc, DjangoValidationError):
            raise InputValidationError("; ".join(exc.messages)) from exc
        raise PersistenceFailureError("Failed to write voucher header") from exc


def _insert_lines(*, context, voucher: JournalVoucher, normalized: list[dict]) -> None:
    rows = [
        JournalVoucherLine(
            company=context.company,
            voucher=voucher,
            line_no=line_no,
            account=line["account"],
            debit=line["debit"],
            credit=line["credit"],
            description=line["description"],
            payee_type=line["payee_type"],
            payee_id=line["payee_id"],
        )
        for line_no, line in enumerate(normalized, start=1)
    ]
    try:
        JournalVoucherLine.objects.bulk_create(rows)
    except OperationalError as exc:
        raise ConcurrencyConflictError("Ledger is busy; please retry") from exc
    except DatabaseError as exc:
        raise PersistenceFailureError("Failed to write voucher lines") from exc


def _lock_voucher(*, context, voucher_id) -> JournalVoucher:
    try:
        return JournalVoucher.objects.select_for_update().get(
            company=context.company, pk=voucher_id
        )
    except (JournalVoucher.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Voucher {voucher_id} not found") from exc
    except OperationalError as exc:
        raise ConcurrencyConflictError(f"Voucher {voucher_id} is locked; please retry") from exc


def _set_status(voucher: JournalVoucher, status: str, **extra) -> JournalVoucher:
    voucher.status = status
    voucher.status_changed_at = timezone.now()
    fields = ["status", "status_changed_at"]
    for name, value in extra.items():
        setattr(voucher, name, value)
        fields.append(name)
    voucher.save(update_fields=fields)
    return voucher


# ============================================================
# POST
# ============================================================


@transaction.atomic
def post_voucher(
    *,
    context,
    narration: str,
    lines: list | None = None,
    entry_date=None,
    source: str = Source.MANUAL,
    reference_type: str = "",
    reference_id="",
    status: str = Status.POSTED,
    intent: dict | None = None,
) -> JournalVoucher:
    """
    Insert one voucher (+ its lines) atomically and return it.

    status=POSTED: lines required (≥ 2), balanced within BALANCE_EPSILON.
    status=DRAFT:  no lines; `intent` = {kind, account, counter_account, amount, memo?}
                   is stored as a PendingVoucherIntent and posted later.
    """
    narration = (narration or "").strip()
    if not narration:
        raise InputValidationError("Voucher narration is required")

    if source not in Source.values:
        raise InputValidationError(f"Unknown voucher source {source!r}")

    entry_date = _as_date(entry_date)
    reference_type = (reference_type or "").strip()
    reference_id = str(reference_id or "").strip()

    if status == Status.DRAFT:
        if lines:
            raise InputValidationError(
                "Draft vouchers carry a pending intent, not ledger lines"
            )
        return _create_draft(
            context=context,
            narration=narration,
            entry_date=entry_date,
            source=source,
            reference_type=reference_type,
            reference_id=reference_id,
            intent=intent,
        )

    if status != Status.POSTED:
        raise InputValidationError("Vouchers are created as DRAFT or POSTED")

    if not lines or len(lines) < 2:
        raise InputValidationError("A voucher must contain at least two lines")

    normalized, total_debits, total_credits = _normalize_lines(context=context, lines=lines)
    assert_balanced(total_debits, total_credits)

    _assert_reference_free(
        context=context,
        source=source,
        reference_type=reference_type,
        reference_id=reference_id,
    )

    voucher = _insert_voucher(
        context=context,
        entry_date=entry_date,
        source=source,
        narration=narration,
        reference_type=reference_type,
        reference_id=reference_id,
        status=Status.POSTED,
        total=total_debits,
    )
    _insert_lines(context=context, voucher=voucher, normalized=normalized)

    logger.info(
        "Voucher posted",
        extra={
            "company": context.company.code,
            "voucher_number": voucher.voucher_number,
            "source": source,
            "total": str(total_debits),
            "request_id": context.request_id,
        },
    )
    return voucher


def _create_draft(*, context, narration, entry_date, source, reference_type, reference_id, intent):
    if not isinstance(intent, dict):
        raise InputValidationError("A draft voucher requires a pending intent")

    kind = str(intent.get("kind") or "").strip().upper()
    if kind not in PendingVoucherIntent.Kind.values:
        raise InputValidationError("Intent kind must be INCOME or PAYMENT")

    account = intent.get("account")
    counter_account = intent.get("counter_account")
    for label, acc in (("account", account), ("counter_account", counter_account)):
        if not isinstance(acc, Account) or acc.company_id != context.company_id:
            raise InputValidationError(f"Intent {label} is missing or belongs to another company")
        if not acc.is_active:
            raise InputValidationError(f"Intent {label} {acc.code} is inactive")

    if account.pk == counter_account.pk:
        raise InputValidationError("Intent account and counter_account must differ")

    amount = _money(intent.get("amount"))
    if amount < MIN_LINE_AMOUNT:
        raise InputValidationError("Intent amount must be > 0")

    voucher = _insert_voucher(
        context=context,
        entry_date=entry_date,
        source=source,
        narration=narration,
        reference_type=reference_type,
        reference_id=reference_id,
        status=Status.DRAFT,
        total=amount,
    )
    PendingVoucherIntent.objects.create(
        voucher=voucher,
        kind=kind,
        account=account,
        counter_account=counter_account,
        amount=amount,
        memo=str(intent.get("memo") or "").strip()[:255],
    )

    logger.info(
        "Draft voucher created",
        extra={
            "company": context.company.code,
            "voucher_number": voucher.voucher_number,
            "kind": kind,
            "request_id": context.request_id,
        },
    )
    return voucher


# ============================================================
# TRANSITIONS
# ============================================================


@transaction.atomic
def post_draft_voucher(*, context, voucher_id) -> JournalVoucher:
    """DRAFT → POSTED: materialize the pending intent into ledger lines."""
    voucher = _lock_voucher(context=context, voucher_id=voucher_id)
    _assert_manual(voucher, "posted")

    if voucher.status != Status.DRAFT:
        raise InvalidStateError(
            f"Only draft vouchers can be posted (voucher {voucher.voucher_number} is {voucher.status})"
        )

    if voucher.lines.exists():
        raise InvalidStateError(f"Draft {voucher.voucher_number} already has ledger lines")

    try:
        intent = voucher.intent
    except PendingVoucherIntent.DoesNotExist as exc:
        raise InvalidStateError(
            f"Draft {voucher.voucher_number} has no pending intent to post"
        ) from exc

    normalized, total_debits, total_credits = _normalize_lines(
        context=context, lines=intent.as_lines()
    )
    assert_balanced(total_debits, total_credits)

    _insert_lines(context=context, voucher=voucher, normalized=normalized)
    _set_status(voucher, Status.POSTED, total_debits=total_debits, total_credits=total_credits)

    logger.info(
        "Draft voucher posted",
        extra={"company": context.company.code, "voucher_number": voucher.voucher_number},
    )
    return voucher


def _assert_manual(voucher: JournalVoucher, action: str) -> None:
    if voucher.source != Source.MANUAL:
        raise InvalidStateError(
            f"Voucher {voucher.voucher_number} belongs to a {voucher.get_source_display()} document "
            f"and cannot be {action} directly; use the document's cancel/approve"
        )


def _lock_document_voucher(*, context, voucher_id, source: str) -> JournalVoucher:
    voucher = _lock_voucher(context=context, voucher_id=voucher_id)
    if voucher.source != source:
        raise InvalidStateError(
            f"Voucher {voucher.voucher_number} is a {voucher.source} voucher, not {source}"
        )
    return voucher


def _approve_locked(*, context, voucher: JournalVoucher) -> JournalVoucher:
    if voucher.status == Status.APPROVED:
        return voucher

    if voucher.status != Status.POSTED:
        raise InvalidStateError(
            f"Only posted vouchers can be approved (voucher {voucher.voucher_number} is {voucher.status})"
        )

    _set_status(voucher, Status.APPROVED)
    logger.info(
        "Voucher approved",
        extra={"company": context.company.code, "voucher_number": voucher.voucher_number},
    )
    return voucher


@transaction.atomic
def approve_voucher(*, context, voucher_id) -> JournalVoucher:
    """POSTED → APPROVED for manual journals. Approving an already approved voucher is a no-op."""
    voucher = _lock_voucher(context=context, voucher_id=voucher_id)
    _assert_manual(voucher, "approved")
    return _approve_locked(context=context, voucher=voucher)


@transaction.atomic
def approve_document_voucher(*, context, voucher_id, source: str) -> JournalVoucher:
    """Approve the voucher of a business document; called by that document's orchestrator."""
    voucher = _lock_document_voucher(context=context, voucher_id=voucher_id, source=source)
    return _approve_locked(context=context, voucher=voucher)


def _reject_locked(*, context, voucher: JournalVoucher, reason: str = "", entry_date=None) -> JournalVoucher:
    reason = (reason or "").strip()

    if voucher.status == Status.REJECTED:
        return voucher

    if voucher.status == Status.APPROVED:
        raise InvalidStateError(
            f"Voucher {voucher.voucher_number} is approved and can no longer be rejected"
        )

    if voucher.status == Status.POSTED:
        _reverse_locked(
            context=context,
            original=voucher,
            entry_date=entry_date,
            narration=f"Reversal of rejected voucher {voucher.voucher_number}",
        )

    _set_status(voucher, Status.REJECTED, rejection_reason=reason)
    logger.info(
        "Voucher rejected",
        extra={
            "company": context.company.code,
            "voucher_number": voucher.voucher_number,
            "reason": reason,
        },
    )
    return voucher


@transaction.atomic
def reject_voucher(*, context, voucher_id, reason: str = "", entry_date=None) -> JournalVoucher:
    """
    DRAFT → REJECTED, or POSTED → REJECTED plus an automatic reversing voucher.

    Manual journals only. Rejecting an already rejected voucher is a no-op.
    """
    voucher = _lock_voucher(context=context, voucher_id=voucher_id)
    _assert_manual(voucher, "rejected")
    return _reject_locked(context=context, voucher=voucher, reason=reason, entry_date=entry_date)


@transaction.atomic
def reject_document_voucher(*, context, voucher_id, source: str, reason: str = "", entry_date=None) -> JournalVoucher:
    """Reject the voucher of a business document; called by that document's orchestrator."""
    voucher = _lock_document_voucher(context=context, voucher_id=voucher_id, source=source)
    return _reject_locked(context=context, voucher=voucher, reason=reason, entry_date=entry_date)


# ============================================================
# REVERSAL
# ============================================================


def _reverse_locked(
    *,
    context,
    original: JournalVoucher,
    entry_date=None,
    narration: str | None = None,
    source: str = Source.REVERSAL,
    reference_type: str | None = None,
    reference_id: str | None = None,
) -> JournalVoucher:
    if original.is_reversal:
        raise InvalidStateError(
            f"Voucher {original.voucher_number} is itself a reversal and cannot be reversed"
        )

    if original.status not in (Status.POSTED, Status.APPROVED):
        raise InvalidStateError(
            f"Only posted or approved vouchers can be reversed (voucher {original.voucher_number} is {original.status})"
        )

    existing = JournalVoucher.objects.filter(reversal_of=original).first()
    if existing is not None:
        raise InvalidStateError(
            f"Voucher {original.voucher_number} was already reversed by {existing.voucher_number}"
        )

    swapped = [
        {
            "account": line.account,
            "debit": line.credit,
            "credit": line.debit,
            "description": f"Reversal: {line.description}".strip()[:255],
            "payee_type": line.payee_type,
            "payee_id": line.payee_id,
        }
        for line in original.lines.select_related("account").order_by("line_no")
    ]
    if not swapped:
        raise InvalidStateError(f"Voucher {original.voucher_number} has no lines to reverse")

    normalized, total_debits, total_credits = _normalize_lines(context=context, lines=swapped)
    assert_balanced(total_debits, total_credits)

    reversal = _insert_voucher(
        context=context,
        entry_date=_as_date(entry_date),
        source=source,
        narration=narration or f"Reversal of {original.voucher_number}: {original.narration}",
        reference_type=original.reference_type if reference_type is None else reference_type,
        reference_id=original.reference_id if reference_id is None else str(reference_id),
        status=Status.POSTED,
        total=original.total_debits,
        reversal_of=original,
    )
    _insert_lines(context=context, voucher=reversal, normalized=normalized)

    logger.info(
        "Voucher reversed",
        extra={
            "company": context.company.code,
            "voucher_number": original.voucher_number,
            "reversal_number": reversal.voucher_number,
        },
    )
    return reversal


@transaction.atomic
def reverse_voucher(*, context, voucher_id, entry_date=None, narration: str | None = None) -> JournalVoucher:
    """
    Post a new voucher with debit/credit swapped on every line of a manual journal.

    The original is never mutated; a voucher can be reversed only once.
    Vouchers generated by business documents are reversed through the document
    (e.g. cancel_sales_invoice), so the document and its ledger effect move together.
    """
    original = _lock_voucher(context=context, voucher_id=voucher_id)
    _assert_manual(original, "reversed")
    return _reverse_locked(context=context, original=original, entry_date=entry_date, narration=narration)


@transaction.atomic
def reverse_document_voucher(
    *,
    context,
    voucher_id,
    source: str,
    reversal_source: str = Source.REVERSAL,
    entry_date=None,
    narration: str | None = None,
) -> JournalVoucher:
    """Reverse the voucher of a business document; called by that document's orchestrator."""
    original = _lock_document_voucher(context=context, voucher_id=voucher_id, source=source)
    return _reverse_locked(
        context=context,
        original=original,
        entry_date=entry_date,
        narration=narration,
        source=reversal_source,
    )


# ============================================================
# DRAFT DELETION
# ============================================================


@transaction.atomic
def delete_draft_voucher(*, context, voucher_id) -> str:
    voucher = _lock_voucher(context=context, voucher_id=voucher_id)
    _assert_manual(voucher, "deleted")

    if voucher.status not in (Status.DRAFT, Status.REJECTED) or voucher.lines.exists():
        raise InvalidStateError(
            f"Only drafts can be deleted (voucher {voucher.voucher_number} is {voucher.status}); "
            "reverse posted vouchers instead"
        )

    number = voucher.voucher_number
    voucher.delete()
    logger.info(
        "Draft voucher deleted",
        extra={"company": context.company.code, "voucher_number": number},
    )
    return number


def get_voucher(*, context, voucher_id) -> JournalVoucher:
    try:
        return (
            JournalVoucher.objects.select_related("reversal_of")
            .prefetch_related("lines__account")
            .get(company=context.company, pk=voucher_id)
        )
    except (JournalVoucher.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Voucher {voucher_id} not found") from exc
