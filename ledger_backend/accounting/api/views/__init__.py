# accounting/api/views/__init__.py

"""
accounting.api.views package

Expose public API views cleanly without making routing/imports fragile.

Important:
- Do NOT import accounting.api.urls from here to avoid circular imports.
"""

from accounting.api.views.accounts import AccountListView
from accounting.api.views.opening_balances import OpeningBalancesCreateView
from accounting.api.views.payment_vouchers import (
    PaymentVoucherApproveView,
    PaymentVoucherListCreateView,
    PaymentVoucherRejectView,
)
from accounting.api.views.trial_balance import TrialBalanceView
from accounting.api.views.vouchers import (
    DraftVoucherCreateView,
    VoucherApproveView,
    VoucherDetailView,
    VoucherListCreateView,
    VoucherPostDraftView,
    VoucherRejectView,
    VoucherReverseView,
)

__all__ = [
    "AccountListView",
    "OpeningBalancesCreateView",
    "PaymentVoucherListCreateView",
    "PaymentVoucherApproveView",
    "PaymentVoucherRejectView",
    "TrialBalanceView",
    "VoucherListCreateView",
    "DraftVoucherCreateView",
    "VoucherDetailView",
    "VoucherPostDraftView",
    "VoucherApproveView",
    "VoucherRejectView",
    "VoucherReverseView",
]
