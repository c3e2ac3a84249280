# accounting/models/__init__.py

"""
ACCOUNTING MODELS PACKAGE EXPORTS

Note:
- Keep this file *imports-only* (no business logic).
- Do NOT import services from models anywhere (models must stay pure).
"""

from accounting.models.account import Account
from accounting.models.payment_voucher import PaymentVoucher, PaymentVoucherLine
from accounting.models.pending_intent import PendingVoucherIntent
from accounting.models.sequence import VoucherSequence
from accounting.models.voucher import JournalVoucher
from accounting.models.voucher_line import JournalVoucherLine

__all__ = [
    "Account",
    "JournalVoucher",
    "JournalVoucherLine",
    "PendingVoucherIntent",
    "VoucherSequence",
    "PaymentVoucher",
    "PaymentVoucherLine",
]
