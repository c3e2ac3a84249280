# accounting/api/urls.py

from django.urls import path

from accounting.api.views import (
    AccountListView,
    DraftVoucherCreateView,
    OpeningBalancesCreateView,
    PaymentVoucherApproveView,
    PaymentVoucherListCreateView,
    PaymentVoucherRejectView,
    TrialBalanceView,
    VoucherApproveView,
    VoucherDetailView,
    VoucherListCreateView,
    VoucherPostDraftView,
    VoucherRejectView,
    VoucherReverseView,
)

urlpatterns = [
    # Master data (read-only)
    path("accounts/", AccountListView.as_view(), name="accounts"),
    # Vouchers
    path("vouchers/", VoucherListCreateView.as_view(), name="vouchers"),
    path("vouchers/drafts/", DraftVoucherCreateView.as_view(), name="voucher-drafts"),
    path("vouchers/<int:pk>/", VoucherDetailView.as_view(), name="voucher-detail"),
    path("vouchers/<int:pk>/post/", VoucherPostDraftView.as_view(), name="voucher-post"),
    path("vouchers/<int:pk>/approve/", VoucherApproveView.as_view(), name="voucher-approve"),
    path("vouchers/<int:pk>/reject/", VoucherRejectView.as_view(), name="voucher-reject"),
    path("vouchers/<int:pk>/reverse/", VoucherReverseView.as_view(), name="voucher-reverse"),
    # Reports
    path("trial-balance/", TrialBalanceView.as_view(), name="trial-balance"),
    # Posting actions
    path("opening-balances/", OpeningBalancesCreateView.as_view(), name="opening-balances"),
    path("payment-vouchers/", PaymentVoucherListCreateView.as_view(), name="payment-vouchers"),
    path(
        "payment-vouchers/<int:pk>/approve/",
        PaymentVoucherApproveView.as_view(),
        name="payment-voucher-approve",
    ),
    path(
        "payment-vouchers/<int:pk>/reject/",
        PaymentVoucherRejectView.as_view(),
        name="payment-voucher-reject",
    ),
]
