# sales/api/urls.py

"""
SALES API URLS (CANONICAL)

Provides:
- Invoices:
    /api/sales/invoices/                  (list / issue)
    /api/sales/invoices/<id>/             (retrieve)
    /api/sales/invoices/<id>/issue/       (draft -> issued)
    /api/sales/invoices/<id>/cancel/      (issued -> cancelled)

- Customer payments:
    /api/sales/payments/                  (list / receive + allocate)
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from sales.api.viewsets.invoice import CustomerPaymentViewSet, SalesInvoiceViewSet

router = DefaultRouter()
router.register(r"invoices", SalesInvoiceViewSet, basename="sales-invoices")
router.register(r"payments", CustomerPaymentViewSet, basename="sales-payments")

urlpatterns = [
    path("", include(router.urls)),
]
