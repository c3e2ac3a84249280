# sales/services/invoice_orchestrator.py

"""
SALES INVOICE ORCHESTRATOR (APPLICATION SERVICE)

Purpose:
- Issue a sales invoice: price + decrement stock, record the invoice, post the
  SALES_INVOICE voucher. All or nothing.
- Cancel an issued invoice: reversal voucher + restock, never delete.

Issue flow (one DB transaction):
1) Validate payload (customer, ≥1 line, quantity > 0, price ≥ 0, vat 0..100)
2) Lock items (ascending id); aggregate requirements per item and check
   quantity ≤ on hand BEFORE anything is written (InsufficientStock otherwise)
3) Compute subtotal, tax, discount, total (server-side only)
4) Insert invoice header + lines
5) Append SALE OUT events; COGS = Σ quantity · average unit cost
6) Post voucher:
     Dr A/R           total     (payee = customer)
     Dr Discounts     discount
     Cr Revenue       subtotal
     Cr VAT Payable   tax
     Dr COGS / Cr Inventory (by item kind)   cogs
Any failure rolls back header, lines, stock events and voucher together.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings
from django.db import OperationalError, transaction
from django.utils import timezone

from accounting.models.account import Account
from accounting.models.voucher import JournalVoucher
from accounting.models.voucher_line import JournalVoucherLine
from accounting.services.account_resolver import get_account_by_role, get_receivable_account
from accounting.services.exceptions import (
    ConcurrencyConflictError,
    InputValidationError,
    InsufficientStockError,
    InvalidStateError,
    NotFoundError,
)
from accounting.services.ledger_poster import post_voucher, reverse_document_voucher
from accounting.services.sequences import next_document_number
from inventory.models.item import InventoryItem
from inventory.models.stock_event import StockEvent
from inventory.services.stock_service import lock_items, record_stock_in, record_stock_out
from inventory.services.valuation import available_at, quantize_cost
from sales.models import Customer, SalesInvoice, SalesInvoiceItem

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
QTY_PLACES = Decimal("0.0001")
HUNDRED = Decimal("100")

REFERENCE_TYPE = "SALES_INVOICE"


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    try:
        return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InputValidationError(f"Invalid money value: {v!r}") from exc


def _decimal(v, label: str) -> Decimal:
    try:
        out = Decimal(str(v))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InputValidationError(f"Invalid {label}: {v!r}") from exc
    if not out.is_finite():
        raise InputValidationError(f"Invalid {label}: {v!r}")
    return out


def _get_customer(*, context, customer_id) -> Customer:
    try:
        customer = Customer.objects.get(company=context.company, pk=customer_id)
    except (Customer.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Customer {customer_id} not found") from exc

    if not customer.is_active:
        raise InputValidationError(f"Customer {customer.name} is inactive")
    return customer


def _lock_invoice(*, context, invoice_id) -> SalesInvoice:
    try:
        return (
            SalesInvoice.objects.select_for_update()
            .select_related("customer")
            .get(company=context.company, pk=invoice_id)
        )
    except (SalesInvoice.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Sales invoice {invoice_id} not found") from exc
    except OperationalError as exc:
        raise ConcurrencyConflictError(f"Sales invoice {invoice_id} is locked; please retry") from exc


def _normalize_lines(lines) -> list[dict]:
    """
    lines: list of dicts: {item_id, quantity, unit_price, vat_rate?}
    Returns normalized list with computed line money.
    """
    if not lines:
        raise InputValidationError("An invoice requires at least one line")

    out = []
    for idx, line in enumerate(lines, start=1):
        if not isinstance(line, dict):
            raise InputValidationError("Each invoice line must be an object/dict")

        item_id = line.get("item_id")
        if item_id in (None, ""):
            raise InputValidationError(f"Line {idx}: item_id is required")

        quantity = _decimal(line.get("quantity"), "quantity").quantize(QTY_PLACES)
        if quantity <= 0:
            raise InputValidationError(f"Line {idx}: quantity must be > 0")

        unit_price = _money(line.get("unit_price"))
        if unit_price < 0:
            raise InputValidationError(f"Line {idx}: unit_price cannot be negative")

        vat_rate = _decimal(line.get("vat_rate") or 0, "vat_rate")
        if vat_rate < 0 or vat_rate > HUNDRED:
            raise InputValidationError(f"Line {idx}: vat_rate must be between 0 and 100")

        line_subtotal = _money(quantity * unit_price)
        vat_amount = _money(line_subtotal * vat_rate / HUNDRED)

        out.append(
            {
                "item_id": int(item_id),
                "quantity": quantity,
                "unit_price": unit_price,
                "vat_rate": vat_rate,
                "line_subtotal": line_subtotal,
                "vat_amount": vat_amount,
                "line_total": line_subtotal + vat_amount,
            }
        )
    return out


def _fetch_items(*, context, item_ids) -> dict[int, InventoryItem]:
    ids = sorted(set(item_ids))
    found = {i.pk: i for i in InventoryItem.objects.filter(company=context.company, pk__in=ids)}
    missing = [i for i in ids if i not in found]
    if missing:
        raise NotFoundError(f"Inventory item(s) not found: {missing}")
    return found


def _assert_sufficient_stock(*, items, invoice_items, invoice_date) -> None:
    required: OrderedDict[int, Decimal] = OrderedDict()
    for line in invoice_items:
        required[line.item_id] = required.get(line.item_id, Decimal("0")) + line.quantity

    for item_id, qty in required.items():
        _, available = available_at(items[item_id], invoice_date)
        if qty > available:
            raise InsufficientStockError(item=items[item_id], requested=qty, available=available)


def _result(invoice: SalesInvoice) -> dict:
    return {
        "invoice_id": invoice.pk,
        "invoice_number": invoice.invoice_number,
        "status": invoice.status,
        "subtotal_amount": str(invoice.subtotal_amount),
        "tax_amount": str(invoice.tax_amount),
        "discount_amount": str(invoice.discount_amount),
        "total_amount": str(invoice.total_amount),
        "amount_due": str(invoice.amount_due),
        "cogs_amount": str(invoice.cogs_amount),
        "voucher_id": invoice.journal_voucher_id,
        "voucher_number": invoice.journal_voucher.voucher_number if invoice.journal_voucher_id else None,
    }


# ============================================================
# ISSUE
# ============================================================


def _issue(*, context, invoice: SalesInvoice) -> SalesInvoice:
    invoice_items = list(invoice.items.select_related("item").order_by("id"))
    if not invoice_items:
        raise InputValidationError(f"Invoice {invoice.invoice_number} has no lines")

    items = lock_items(context=context, item_ids=[li.item_id for li in invoice_items])
    _assert_sufficient_stock(items=items, invoice_items=invoice_items, invoice_date=invoice.invoice_date)

    cogs_total = Decimal("0.00")
    inventory_credits: OrderedDict[int, tuple[Account, Decimal]] = OrderedDict()
    for line in invoice_items:
        item = items[line.item_id]
        _, valuation = record_stock_out(
            context=context,
            item=item,
            quantity=line.quantity,
            source=StockEvent.Source.SALE,
            event_date=invoice.invoice_date,
            reference_type=REFERENCE_TYPE,
            reference_id=invoice.pk,
        )
        line.unit_cost = quantize_cost(valuation.average_unit_cost)
        line.cogs_amount = _money(line.quantity * valuation.average_unit_cost)
        line.save(update_fields=["unit_cost", "cogs_amount"])

        if line.cogs_amount > 0:
            cogs_total += line.cogs_amount
            account = get_account_by_role(context.company, item.inventory_role)
            _, running = inventory_credits.get(account.pk, (account, Decimal("0.00")))
            inventory_credits[account.pk] = (account, running + line.cogs_amount)

    customer_ref = {
        "payee_type": JournalVoucherLine.PAYEE_CUSTOMER,
        "payee_id": invoice.customer_id,
    }
    company = context.company
    lines: list[dict] = []
    if invoice.total_amount > 0:
        lines.append(
            {
                "account": get_receivable_account(company),
                "debit": invoice.total_amount,
                "description": f"Invoice {invoice.invoice_number}",
                **customer_ref,
            }
        )
    if invoice.discount_amount > 0:
        lines.append(
            {
                "account": get_account_by_role(company, Account.SystemRole.SALES_DISCOUNT),
                "debit": invoice.discount_amount,
                "description": "Discount allowed",
            }
        )
    lines.append(
        {
            "account": get_account_by_role(company, Account.SystemRole.SALES_REVENUE),
            "credit": invoice.subtotal_amount,
            "description": "Sales",
        }
    )
    if invoice.tax_amount > 0:
        lines.append(
            {
                "account": get_account_by_role(company, Account.SystemRole.VAT_PAYABLE),
                "credit": invoice.tax_amount,
                "description": "Output VAT",
            }
        )
    if cogs_total > 0:
        lines.append(
            {
                "account": get_account_by_role(company, Account.SystemRole.COGS),
                "debit": cogs_total,
                "description": "Cost of goods sold",
            }
        )
        for account, amount in inventory_credits.values():
            lines.append({"account": account, "credit": amount, "description": "Inventory relief"})

    voucher = post_voucher(
        context=context,
        narration=f"Sales invoice {invoice.invoice_number} to {invoice.customer.name}",
        lines=lines,
        entry_date=invoice.invoice_date,
        source=JournalVoucher.Source.SALES_INVOICE,
        reference_type=REFERENCE_TYPE,
        reference_id=invoice.pk,
    )

    invoice.journal_voucher = voucher
    invoice.cogs_amount = cogs_total
    invoice.amount_paid = Decimal("0.00")
    invoice.amount_due = invoice.total_amount
    invoice.status = SalesInvoice.STATUS_ISSUED
    invoice.issued_at = timezone.now()
    invoice.save()

    logger.info(
        "Sales invoice issued",
        extra={
            "company": company.code,
            "invoice_number": invoice.invoice_number,
            "voucher_number": voucher.voucher_number,
            "total": str(invoice.total_amount),
            "cogs": str(cogs_total),
            "request_id": context.request_id,
        },
    )
    return invoice


@transaction.atomic
def issue_sales_invoice(
    *,
    context,
    customer_id,
    lines,
    invoice_date=None,
    discount_amount=0,
    due_date=None,
    as_draft: bool = False,
    notes: str = "",
) -> dict:
    customer = _get_customer(context=context, customer_id=customer_id)
    normalized = _normalize_lines(lines)

    discount = _money(discount_amount)
    if discount < 0:
        raise InputValidationError("discount_amount cannot be negative")

    subtotal = sum((ln["line_subtotal"] for ln in normalized), Decimal("0.00"))
    tax = sum((ln["vat_amount"] for ln in normalized), Decimal("0.00"))
    total = subtotal + tax - discount

    if subtotal <= 0:
        raise InputValidationError("Invoice subtotal must be > 0")
    if total < 0:
        raise InputValidationError("Discount cannot exceed subtotal plus tax")

    invoice_date = invoice_date or timezone.localdate()
    due_date = due_date or invoice_date + timedelta(days=int(settings.SALES_INVOICE_DUE_DAYS))

    items = _fetch_items(context=context, item_ids=[ln["item_id"] for ln in normalized])

    invoice = SalesInvoice.objects.create(
        company=context.company,
        invoice_number=next_document_number(company=context.company, prefix="INV"),
        customer=customer,
        invoice_date=invoice_date,
        due_date=due_date,
        status=SalesInvoice.STATUS_DRAFT,
        subtotal_amount=subtotal,
        tax_amount=tax,
        discount_amount=discount,
        total_amount=total,
        amount_due=total,
        notes=(notes or "").strip(),
        created_by=context.user if getattr(context.user, "pk", None) else None,
    )

    SalesInvoiceItem.objects.bulk_create(
        [
            SalesInvoiceItem(
                invoice=invoice,
                item=items[ln["item_id"]],
                quantity=ln["quantity"],
                unit_price=ln["unit_price"],
                vat_rate=ln["vat_rate"],
                line_subtotal=ln["line_subtotal"],
                vat_amount=ln["vat_amount"],
                line_total=ln["line_total"],
            )
            for ln in normalized
        ]
    )

    if as_draft:
        logger.info(
            "Sales invoice drafted",
            extra={"company": context.company.code, "invoice_number": invoice.invoice_number},
        )
        return _result(invoice)

    return _result(_issue(context=context, invoice=invoice))


@transaction.atomic
def issue_draft_sales_invoice(*, context, invoice_id) -> dict:
    invoice = _lock_invoice(context=context, invoice_id=invoice_id)

    if invoice.status != SalesInvoice.STATUS_DRAFT:
        raise InvalidStateError(
            f"Only draft invoices can be issued (invoice {invoice.invoice_number} is {invoice.status})"
        )

    return _result(_issue(context=context, invoice=invoice))


# ============================================================
# CANCEL
# ============================================================


@transaction.atomic
def cancel_sales_invoice(*, context, invoice_id, reason: str = "", cancel_date=None) -> dict:
    """
    ISSUED → CANCELLED: reverse the invoice voucher and restock every line at the
    unit cost recorded when it was issued.
    """
    invoice = _lock_invoice(context=context, invoice_id=invoice_id)

    if invoice.status != SalesInvoice.STATUS_ISSUED:
        raise InvalidStateError(
            f"Only issued, unpaid invoices can be cancelled (invoice {invoice.invoice_number} is {invoice.status})"
        )

    if invoice.allocations.exists() or invoice.amount_paid > 0:
        raise InvalidStateError(
            f"Invoice {invoice.invoice_number} has payments allocated and cannot be cancelled"
        )

    cancel_date = cancel_date or timezone.localdate()

    reversal = reverse_document_voucher(
        context=context,
        voucher_id=invoice.journal_voucher_id,
        source=JournalVoucher.Source.SALES_INVOICE,
        reversal_source=JournalVoucher.Source.SALES_REVERSAL,
        entry_date=cancel_date,
        narration=f"Cancellation of sales invoice {invoice.invoice_number}",
    )

    invoice_items = list(invoice.items.order_by("id"))
    items = lock_items(context=context, item_ids=[li.item_id for li in invoice_items])
    for line in invoice_items:
        record_stock_in(
            context=context,
            item=items[line.item_id],
            quantity=line.quantity,
            unit_price=line.unit_cost,
            source=StockEvent.Source.SALE_RETURN,
            event_date=cancel_date,
            reference_type=REFERENCE_TYPE,
            reference_id=invoice.pk,
        )

    invoice.status = SalesInvoice.STATUS_CANCELLED
    invoice.reversal_voucher = reversal
    invoice.amount_due = Decimal("0.00")
    invoice.cancel_reason = (reason or "").strip()[:255]
    invoice.cancelled_at = timezone.now()
    invoice.save()

    logger.info(
        "Sales invoice cancelled",
        extra={
            "company": context.company.code,
            "invoice_number": invoice.invoice_number,
            "reversal_number": reversal.voucher_number,
            "request_id": context.request_id,
        },
    )

    result = _result(invoice)
    result["reversal_voucher_id"] = reversal.pk
    result["reversal_voucher_number"] = reversal.voucher_number
    return result
