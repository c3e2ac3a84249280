# sales/api/viewsets/invoice.py

"""
======================================================
PATH: sales/api/viewsets/invoice.py
======================================================
SALES INVOICE + CUSTOMER PAYMENT VIEWSETS

Invoices:
- GET  /api/sales/invoices/               list (filter: status, customer)
- GET  /api/sales/invoices/<id>/          retrieve with lines
- POST /api/sales/invoices/               issue (or save as draft with as_draft=true)
- POST /api/sales/invoices/<id>/issue/    DRAFT -> ISSUED
- POST /api/sales/invoices/<id>/cancel/   ISSUED -> CANCELLED (reverse + restock)

Payments:
- GET  /api/sales/payments/               list
- POST /api/sales/payments/               receive + allocate across invoices

Security:
- Requires IsAuthenticated + company membership (X-Company-ID)
- Writes require the matching Django model permission
======================================================
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from companies.api import CompanyScopedMixin
from sales.models import CustomerPayment, SalesInvoice
from sales.serializers import (
    CustomerPaymentSerializer,
    PaymentAllocateSerializer,
    SalesInvoiceCancelSerializer,
    SalesInvoiceIssueSerializer,
    SalesInvoiceSerializer,
)
from sales.services.invoice_orchestrator import (
    cancel_sales_invoice,
    issue_draft_sales_invoice,
    issue_sales_invoice,
)
from sales.services.payment_allocation import allocate_payment


class SalesInvoiceViewSet(CompanyScopedMixin, viewsets.ReadOnlyModelViewSet):
    serializer_class = SalesInvoiceSerializer
    filterset_fields = ["status", "customer"]
    required_permissions = {"POST": "sales.add_salesinvoice"}

    # ======================================================
    # QUERYSET
    # ======================================================

    def get_queryset(self):
        return (
            SalesInvoice.objects.filter(company=self.get_ledger_context().company)
            .select_related("customer")
            .prefetch_related("items__item")
            .order_by("-invoice_date", "-id")
        )

    def _detail(self, invoice_id) -> dict:
        return SalesInvoiceSerializer(self.get_queryset().get(pk=invoice_id)).data

    # ======================================================
    # ISSUE (or DRAFT)
    # ======================================================

    @extend_schema(request=SalesInvoiceIssueSerializer, responses={201: SalesInvoiceSerializer, 409: dict})
    def create(self, request, *args, **kwargs):
        s = SalesInvoiceIssueSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        result = issue_sales_invoice(context=self.get_ledger_context(), **s.validated_data)
        return Response(self._detail(result["invoice_id"]), status=status.HTTP_201_CREATED)

    @extend_schema(request=None, responses={200: SalesInvoiceSerializer, 409: dict})
    @action(detail=True, methods=["post"], url_path="issue")
    def issue(self, request, pk=None):
        result = issue_draft_sales_invoice(context=self.get_ledger_context(), invoice_id=pk)
        return Response(self._detail(result["invoice_id"]), status=status.HTTP_200_OK)

    # ======================================================
    # CANCEL
    # ======================================================

    @extend_schema(request=SalesInvoiceCancelSerializer, responses={200: SalesInvoiceSerializer, 409: dict})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        s = SalesInvoiceCancelSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        result = cancel_sales_invoice(context=self.get_ledger_context(), invoice_id=pk, **s.validated_data)
        return Response(self._detail(result["invoice_id"]), status=status.HTTP_200_OK)


class CustomerPaymentViewSet(CompanyScopedMixin, mixins.ListModelMixin, viewsets.GenericViewSet):
    serializer_class = CustomerPaymentSerializer
    filterset_fields = ["customer"]
    required_permissions = {"POST": "sales.add_customerpayment"}

    def get_queryset(self):
        return (
            CustomerPayment.objects.filter(company=self.get_ledger_context().company)
            .prefetch_related("allocations__invoice")
            .order_by("-payment_date", "-id")
        )

    @extend_schema(request=PaymentAllocateSerializer, responses={201: dict, 400: dict})
    def create(self, request, *args, **kwargs):
        s = PaymentAllocateSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        result = allocate_payment(context=self.get_ledger_context(), **s.validated_data)
        return Response(result, status=status.HTTP_201_CREATED)
