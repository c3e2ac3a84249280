# PATH: accounting/services/account_resolver.py

"""
PATH: accounting/services/account_resolver.py

ACCOUNT RESOLVER (CHART-OF-ACCOUNTS DIRECTORY)

This module answers ONE question:
"Which account of THIS company should be used for this purpose?"

Lookups:
- by system role (ACCOUNTS_RECEIVABLE, INPUT_VAT, ...)
- by code
- by id, optionally asserting the account type (a payment account must be an Asset)

Design goals:
- deterministic
- company-scoped (an account of another company is simply "not found")
- hard-fail on missing setup (so we never post to the wrong account)
- no caching: accounts are read fresh inside the posting transaction

Bootstrap:
- seed_default_chart(company) seeds the default chart idempotently.
"""

from __future__ import annotations

import logging

from django.db import transaction

from accounting.models.account import Account
from accounting.services.exceptions import AccountResolutionError, InputValidationError

logger = logging.getLogger(__name__)

Role = Account.SystemRole

# ------------------------------------------------------------
# DEFAULT CHART (code, name, type, system role)
# ------------------------------------------------------------

DEFAULT_CHART = [
    ("1000", "Cash on Hand", Account.ASSET, Role.CASH),
    ("1010", "Bank", Account.ASSET, Role.BANK),
    ("1100", "Accounts Receivable", Account.ASSET, Role.ACCOUNTS_RECEIVABLE),
    ("1150", "Input VAT", Account.ASSET, Role.INPUT_VAT),
    ("1200", "Raw Materials Inventory", Account.ASSET, Role.INVENTORY_RAW_MATERIAL),
    ("1210", "Semi-Finished Goods Inventory", Account.ASSET, Role.INVENTORY_SEMI_FINISHED),
    ("1220", "Finished Goods Inventory", Account.ASSET, Role.INVENTORY_FINISHED_GOODS),
    ("1400", "Work in Progress", Account.ASSET, Role.INVENTORY_WIP),
    ("2000", "Accounts Payable", Account.LIABILITY, Role.ACCOUNTS_PAYABLE),
    ("2100", "VAT Payable", Account.LIABILITY, Role.VAT_PAYABLE),
    ("2150", "Withholding Tax Payable", Account.LIABILITY, Role.WHT_PAYABLE),
    ("3900", "Opening Balance Equity", Account.EQUITY, Role.OPENING_BALANCE_EQUITY),
    ("4000", "Sales Revenue", Account.REVENUE, Role.SALES_REVENUE),
    ("4050", "Sales Discounts", Account.REVENUE, Role.SALES_DISCOUNT),
    ("5000", "Cost of Goods Sold", Account.EXPENSE, Role.COGS),
    ("5100", "Factory Overheads", Account.EXPENSE, None),
    ("6000", "General Expenses", Account.EXPENSE, None),
]


def _company_label(company) -> str:
    return getattr(company, "code", None) or str(getattr(company, "pk", "?"))


def get_account_by_role(company, role: str) -> Account:
    role = (str(role) if role else "").strip().upper()
    if not role:
        raise InputValidationError("Account role is required")

    try:
        return Account.objects.get(company=company, system_role=role, is_active=True)
    except Account.DoesNotExist as exc:
        logger.warning(
            "Account resolution failed: no account for role",
            extra={"company": _company_label(company), "role": role},
        )
        raise AccountResolutionError(
            f"No active account with role {role} in company {_company_label(company)}. "
            "Seed the chart of accounts (manage.py seed_chart)."
        ) from exc


def get_account_by_code(company, code: str) -> Account:
    code = (code or "").strip()
    if not code:
        raise InputValidationError("Account code is required")

    try:
        return Account.objects.get(company=company, code=code, is_active=True)
    except Account.DoesNotExist as exc:
        raise AccountResolutionError(
            f"Account with code={code} not found in company {_company_label(company)}"
        ) from exc


def get_account(company, account_id, *, expected_type: str | None = None) -> Account:
    if account_id in (None, ""):
        raise InputValidationError("Account id is required")

    try:
        account = Account.objects.get(company=company, pk=account_id, is_active=True)
    except (Account.DoesNotExist, ValueError, TypeError) as exc:
        raise AccountResolutionError(
            f"Account {account_id} not found in company {_company_label(company)}"
        ) from exc

    if expected_type is not None:
        require_type(account, expected_type)
    return account


def require_type(account: Account, expected_type: str) -> Account:
    if account.account_type != expected_type:
        raise InputValidationError(
            f"Account {account.code} must be of type {expected_type}, not {account.account_type}"
        )
    return account


def resolve_account(company, *, role: str | None = None, code: str | None = None, account_id=None) -> Account:
    """Resolve by the most specific key given: id, then code, then role."""
    if account_id not in (None, ""):
        return get_account(company, account_id)
    if code:
        return get_account_by_code(company, code)
    if role:
        return get_account_by_role(company, role)
    raise InputValidationError("Provide account_id, code or role to resolve an account")


# ------------------------------------------------------------
# Semantic helpers used by orchestrators
# ------------------------------------------------------------


def get_receivable_account(company) -> Account:
    return get_account_by_role(company, Role.ACCOUNTS_RECEIVABLE)


def get_payable_account(company) -> Account:
    return get_account_by_role(company, Role.ACCOUNTS_PAYABLE)


def get_wip_account(company) -> Account:
    return get_account_by_role(company, Role.INVENTORY_WIP)


def get_opening_balance_equity_account(company) -> Account:
    return get_account_by_role(company, Role.OPENING_BALANCE_EQUITY)


# ------------------------------------------------------------
# Bootstrap
# ------------------------------------------------------------


@transaction.atomic
def seed_default_chart(company) -> list[Account]:
    """
    Create the default chart for a company (idempotent).

    Existing codes are kept as they are. Roles are only assigned when no other
    account of the company already holds them.
    """
    accounts: list[Account] = []
    taken_roles = set(
        Account.objects.filter(company=company, system_role__isnull=False).values_list(
            "system_role", flat=True
        )
    )

    for code, name, account_type, role in DEFAULT_CHART:
        account = Account.objects.filter(company=company, code=code).first()
        if account is None:
            account = Account.objects.create(
                company=company,
                code=code,
                name=name,
                account_type=account_type,
                system_role=role if role and role not in taken_roles else None,
            )
            if role:
                taken_roles.add(role)
        accounts.append(account)

    logger.info(
        "Default chart seeded",
        extra={"company": _company_label(company), "accounts": len(accounts)},
    )
    return accounts
