# accounting/services/balance_service.py

"""
BALANCE & TRIAL BALANCE SERVICE

Read-only aggregation over JournalVoucherLine.

RULES:
- READ-ONLY: no writes, ever
- Tenant-scoped: only the context company's lines
- Only ledger-effective vouchers count: POSTED or APPROVED
- A REJECTED voucher and the reversal generated by its rejection cancel out,
  so both are left out
- Timeline is JournalVoucher.entry_date (as_of is inclusive)

Balance rule:
- Assets & Expenses → debit balance  (debits - credits)
- Liabilities, Equity & Revenue → credit balance (credits - debits)
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Sum
from django.utils.dateparse import parse_date

from accounting.models.account import Account
from accounting.models.voucher import JournalVoucher
from accounting.models.voucher_line import JournalVoucherLine
from accounting.services.exceptions import InputValidationError

TWOPLACES = Decimal("0.01")

EFFECTIVE_STATUSES = (JournalVoucher.Status.POSTED, JournalVoucher.Status.APPROVED)
DEBIT_NORMAL_TYPES = (Account.ASSET, Account.EXPENSE)


def _q2(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _cutoff(as_of) -> date:
    if isinstance(as_of, datetime):
        return as_of.date()
    if isinstance(as_of, date):
        return as_of
    d = parse_date(str(as_of).strip())
    if d is None:
        raise InputValidationError(f"Invalid as_of date: {as_of!r} (expected YYYY-MM-DD)")
    return d


def _effective_lines(*, company, as_of=None):
    qs = JournalVoucherLine.objects.filter(
        company=company,
        voucher__status__in=EFFECTIVE_STATUSES,
    ).exclude(voucher__reversal_of__status=JournalVoucher.Status.REJECTED)

    if as_of is not None:
        qs = qs.filter(voucher__entry_date__lte=_cutoff(as_of))

    return qs


def account_balances(*, context, as_of=None) -> list[dict]:
    """
    Σ debit / Σ credit per account with a non-zero movement, ordered by code.

    balance is signed by the account's normal side.
    """
    rows = (
        _effective_lines(company=context.company, as_of=as_of)
        .values("account_id")
        .annotate(debit=Sum("debit"), credit=Sum("credit"))
    )
    totals = {r["account_id"]: (_q2(r["debit"]), _q2(r["credit"])) for r in rows}
    if not totals:
        return []

    accounts = Account.objects.filter(company=context.company, pk__in=totals.keys()).order_by("code")

    out = []
    for acc in accounts:
        debit, credit = totals[acc.pk]
        if debit == 0 and credit == 0:
            continue

        balance = debit - credit if acc.account_type in DEBIT_NORMAL_TYPES else credit - debit
        out.append(
            {
                "account_id": acc.pk,
                "account_code": acc.code,
                "account_name": acc.name,
                "account_type": acc.account_type,
                "debit": debit,
                "credit": credit,
                "balance": _q2(balance),
            }
        )
    return out


def trial_balance(*, context, as_of=None) -> dict:
    accounts = account_balances(context=context, as_of=as_of)

    total_debit = _q2(sum((a["debit"] for a in accounts), Decimal("0.00")))
    total_credit = _q2(sum((a["credit"] for a in accounts), Decimal("0.00")))

    return {
        "company": context.company.code,
        "as_of": _cutoff(as_of).isoformat() if as_of is not None else None,
        "accounts": [
            {
                **a,
                "debit": str(a["debit"]),
                "credit": str(a["credit"]),
                "balance": str(a["balance"]),
            }
            for a in accounts
        ],
        "totals": {
            "debit": str(total_debit),
            "credit": str(total_credit),
            "balanced": total_debit == total_credit,
        },
    }
