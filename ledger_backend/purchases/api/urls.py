# purchases/api/urls.py

from django.urls import path

from purchases.api.views import (
    GoodsReceiptListCreateView,
    SupplierBillApproveView,
    SupplierBillListCreateView,
    SupplierBillPayView,
    SupplierBillVoidView,
    SupplierListCreateView,
    SupplierPaymentListView,
)

urlpatterns = [
    path("suppliers/", SupplierListCreateView.as_view(), name="purchase-suppliers"),
    path("receipts/", GoodsReceiptListCreateView.as_view(), name="purchase-receipts"),
    path("bills/", SupplierBillListCreateView.as_view(), name="supplier-bills"),
    path("bills/<int:pk>/approve/", SupplierBillApproveView.as_view(), name="supplier-bill-approve"),
    path("bills/<int:pk>/void/", SupplierBillVoidView.as_view(), name="supplier-bill-void"),
    path("bills/<int:pk>/pay/", SupplierBillPayView.as_view(), name="supplier-bill-pay"),
    path("payments/", SupplierPaymentListView.as_view(), name="supplier-payments"),
]
