# PATH: accounting/services/opening_balances_service.py

"""
OPENING BALANCES SERVICE

Responsibilities:
- Validate amounts / quantities
- Resolve the control accounts by system role for the context company
- Build postings and call the posting engine (post_voucher, source OPENING_BALANCE)
- Atomic + once-only:
    customer / supplier: the party's opening_balance_voucher link is set once
    inventory: rejected as soon as the item has any stock event

Postings:
  customer   Dr A/R (payee = customer)   / Cr Opening Balance Equity
  supplier   Dr Opening Balance Equity   / Cr A/P (payee = supplier)
  inventory  Dr Inventory (by item kind) / Cr Opening Balance Equity   (qty · unit_cost)

No HTTP, no DRF serializers here.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import OperationalError, transaction
from django.utils import timezone

from accounting.models.voucher import JournalVoucher
from accounting.models.voucher_line import JournalVoucherLine
from accounting.services.account_resolver import (
    get_account_by_role,
    get_opening_balance_equity_account,
    get_payable_account,
    get_receivable_account,
)
from accounting.services.exceptions import (
    ConcurrencyConflictError,
    InputValidationError,
    InvalidStateError,
    NotFoundError,
)
from accounting.services.ledger_poster import post_voucher
from inventory.models.stock_event import StockEvent
from inventory.services.stock_service import lock_items, record_stock_in
from inventory.services.valuation import quantize_cost
from purchases.models import Supplier
from sales.models import Customer

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")

REFERENCE_CUSTOMER = "CUSTOMER_OPENING_BALANCE"
REFERENCE_SUPPLIER = "SUPPLIER_OPENING_BALANCE"
REFERENCE_INVENTORY = "INVENTORY_OPENING_BALANCE"


def _money(v) -> Decimal:
    try:
        return Decimal(str(v if v not in (None, "") else "0")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InputValidationError(f"Invalid money value: {v!r}") from exc


def _positive_amount(v) -> Decimal:
    amount = _money(v)
    if amount <= 0:
        raise InputValidationError("Opening balance amount must be > 0")
    return amount


def _lock_party(model, *, context, party_id, label: str):
    try:
        return model.objects.select_for_update().get(company=context.company, pk=party_id)
    except (model.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"{label} {party_id} not found") from exc
    except OperationalError as exc:
        raise ConcurrencyConflictError(f"{label} {party_id} is locked; please retry") from exc


def _result(voucher: JournalVoucher, **extra) -> dict:
    data = {
        "voucher_id": voucher.pk,
        "voucher_number": voucher.voucher_number,
        "entry_date": voucher.entry_date.isoformat(),
        "amount": str(voucher.total_debits),
    }
    data.update(extra)
    return data


@transaction.atomic
def post_customer_opening_balance(*, context, customer_id, amount, as_of=None) -> dict:
    customer = _lock_party(Customer, context=context, party_id=customer_id, label="Customer")
    if customer.opening_balance_voucher_id:
        raise InvalidStateError(f"Customer {customer.name} already has an opening balance")

    amount = _positive_amount(amount)
    as_of = as_of or timezone.localdate()

    voucher = post_voucher(
        context=context,
        narration=f"Opening balance for customer {customer.name}",
        lines=[
            {
                "account": get_receivable_account(context.company),
                "debit": amount,
                "description": f"Opening balance {customer.name}",
                "payee_type": JournalVoucherLine.PAYEE_CUSTOMER,
                "payee_id": customer.pk,
            },
            {
                "account": get_opening_balance_equity_account(context.company),
                "credit": amount,
                "description": f"Opening balance {customer.name}",
            },
        ],
        entry_date=as_of,
        source=JournalVoucher.Source.OPENING_BALANCE,
        reference_type=REFERENCE_CUSTOMER,
        reference_id=customer.pk,
    )

    customer.opening_balance_voucher = voucher
    customer.save(update_fields=["opening_balance_voucher"])

    logger.info(
        "Customer opening balance posted",
        extra={"company": context.company.code, "customer": customer.pk, "voucher_number": voucher.voucher_number},
    )
    return _result(voucher, customer_id=customer.pk)


@transaction.atomic
def post_supplier_opening_balance(*, context, supplier_id, amount, as_of=None) -> dict:
    supplier = _lock_party(Supplier, context=context, party_id=supplier_id, label="Supplier")
    if supplier.opening_balance_voucher_id:
        raise InvalidStateError(f"Supplier {supplier.name} already has an opening balance")

    amount = _positive_amount(amount)
    as_of = as_of or timezone.localdate()

    voucher = post_voucher(
        context=context,
        narration=f"Opening balance for supplier {supplier.name}",
        lines=[
            {
                "account": get_opening_balance_equity_account(context.company),
                "debit": amount,
                "description": f"Opening balance {supplier.name}",
            },
            {
                "account": get_payable_account(context.company),
                "credit": amount,
                "description": f"Opening balance {supplier.name}",
                "payee_type": JournalVoucherLine.PAYEE_SUPPLIER,
                "payee_id": supplier.pk,
            },
        ],
        entry_date=as_of,
        source=JournalVoucher.Source.OPENING_BALANCE,
        reference_type=REFERENCE_SUPPLIER,
        reference_id=supplier.pk,
    )

    supplier.opening_balance_voucher = voucher
    supplier.save(update_fields=["opening_balance_voucher"])

    logger.info(
        "Supplier opening balance posted",
        extra={"company": context.company.code, "supplier": supplier.pk, "voucher_number": voucher.voucher_number},
    )
    return _result(voucher, supplier_id=supplier.pk)


@transaction.atomic
def post_inventory_opening_balance(*, context, item_id, quantity, unit_cost, as_of=None) -> dict:
    """
    Seed an item's stock with one OPENING_BALANCE event and post its value.

    The item must have no stock events yet: an opening balance placed after
    other movements would silently rewrite the running average.
    """
    try:
        item_id = int(item_id)
    except (TypeError, ValueError) as exc:
        raise NotFoundError(f"Inventory item {item_id} not found") from exc
    item = lock_items(context=context, item_ids=[item_id])[item_id]

    if StockEvent.objects.filter(company=context.company, item=item).exists():
        raise InvalidStateError(f"Item {item.sku} already has stock movements; opening balance refused")

    try:
        qty = Decimal(str(quantity))
        cost = quantize_cost(Decimal(str(unit_cost)))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InputValidationError("Invalid quantity or unit_cost") from exc

    if qty <= 0:
        raise InputValidationError("Opening quantity must be > 0")
    if cost <= 0:
        raise InputValidationError("Opening unit_cost must be > 0")

    amount = _money(qty * cost)
    if amount <= 0:
        raise InputValidationError("Opening stock value rounds to zero")

    as_of = as_of or timezone.localdate()

    voucher = post_voucher(
        context=context,
        narration=f"Opening stock for {item.sku} {item.name}",
        lines=[
            {
                "account": get_account_by_role(context.company, item.inventory_role),
                "debit": amount,
                "description": f"Opening stock {item.sku} {qty} @ {cost}",
            },
            {
                "account": get_opening_balance_equity_account(context.company),
                "credit": amount,
                "description": f"Opening stock {item.sku}",
            },
        ],
        entry_date=as_of,
        source=JournalVoucher.Source.OPENING_BALANCE,
        reference_type=REFERENCE_INVENTORY,
        reference_id=item.pk,
    )

    event = record_stock_in(
        context=context,
        item=item,
        quantity=qty,
        unit_price=cost,
        source=StockEvent.Source.OPENING_BALANCE,
        event_date=as_of,
        reference_type=REFERENCE_INVENTORY,
        reference_id=voucher.pk,
    )

    logger.info(
        "Inventory opening balance posted",
        extra={
            "company": context.company.code,
            "item": item.sku,
            "quantity": str(qty),
            "voucher_number": voucher.voucher_number,
        },
    )
    return _result(voucher, item_id=item.pk, stock_event_id=event.pk, quantity=str(event.quantity_delta))
