# companies/testing.py

"""
Shared builders for the test suites of every app.

Each builder creates the minimum valid rows for one company; nothing here
is imported by production code.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from itertools import count

from django.contrib.auth import get_user_model

from accounting.models.account import Account
from accounting.services.account_resolver import get_account_by_role, seed_default_chart
from companies.context import build_context
from companies.models import Company

_seq = count(1)

D = Decimal


def make_company(code: str | None = None, *, name: str | None = None, seed_chart: bool = True) -> Company:
    code = code or f"CO{next(_seq)}"
    company = Company.objects.create(code=code, name=name or f"{code} Ltd")
    if seed_chart:
        seed_default_chart(company)
    return company


def make_user(username: str | None = None, *, company: Company | None = None, password: str = "pass"):
    User = get_user_model()
    user = User.objects.create_user(username=username or f"user{next(_seq)}", password=password)
    if company is not None:
        company.members.add(user)
    return user


def make_context(company: Company | None = None, *, user=None):
    company = company or make_company()
    return build_context(company=company, user=user, request_id=f"test-{next(_seq)}")


def account(company: Company, role: str) -> Account:
    return get_account_by_role(company, role)


def make_item(company: Company, *, sku: str | None = None, kind: str = "RAW_MATERIAL", name: str | None = None):
    from inventory.models.item import InventoryItem

    sku = sku or f"ITEM-{next(_seq)}"
    return InventoryItem.objects.create(company=company, sku=sku, name=name or sku.title(), kind=kind)


def stock_in(context, item, quantity, unit_price, *, event_date: date | None = None, source: str = "RECEIPT"):
    from inventory.services.stock_service import record_stock_in

    return record_stock_in(
        context=context,
        item=item,
        quantity=D(str(quantity)),
        unit_price=D(str(unit_price)),
        source=source,
        event_date=event_date or date(2024, 1, 1),
        reference_type="TEST",
        reference_id="seed",
    )


def make_customer(company: Company, name: str | None = None):
    from sales.models import Customer

    return Customer.objects.create(company=company, name=name or f"Customer {next(_seq)}")


def make_supplier(company: Company, name: str | None = None):
    from purchases.models import Supplier

    return Supplier.objects.create(company=company, name=name or f"Supplier {next(_seq)}")
