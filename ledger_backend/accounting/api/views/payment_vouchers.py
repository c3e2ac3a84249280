# accounting/api/views/payment_vouchers.py

"""
PAYMENT VOUCHERS API

GET  /api/accounting/payment-vouchers/               list
POST /api/accounting/payment-vouchers/               create + post (SUBMITTED)
POST /api/accounting/payment-vouchers/<id>/approve/  SUBMITTED -> APPROVED (idempotent)
POST /api/accounting/payment-vouchers/<id>/reject/   SUBMITTED -> REJECTED (voucher reversed)
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import ListAPIView
from rest_framework.response import Response

from accounting.api.serializers.payment_vouchers import (
    PaymentVoucherCreateSerializer,
    PaymentVoucherRejectSerializer,
    PaymentVoucherSerializer,
)
from accounting.models.payment_voucher import PaymentVoucher
from accounting.services.payment_voucher_service import (
    approve_payment_voucher,
    create_payment_voucher,
    reject_payment_voucher,
)
from companies.api import CompanyScopedAPIView, CompanyScopedMixin

PAYMENT_VOUCHER_POST_PERMISSION = "accounting.add_paymentvoucher"
PAYMENT_VOUCHER_APPROVE_PERMISSION = "accounting.change_paymentvoucher"


class PaymentVoucherListCreateView(CompanyScopedMixin, ListAPIView):
    serializer_class = PaymentVoucherSerializer
    filterset_fields = ["status"]
    required_permissions = {"POST": PAYMENT_VOUCHER_POST_PERMISSION}

    def get_queryset(self):
        return PaymentVoucher.objects.filter(company=self.get_ledger_context().company).select_related(
            "bank_account", "journal_voucher"
        )

    @extend_schema(
        tags=["accounting"],
        request=PaymentVoucherCreateSerializer,
        responses={201: dict, 400: dict, 404: dict},
    )
    def post(self, request, *args, **kwargs):
        s = PaymentVoucherCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        result = create_payment_voucher(context=self.get_ledger_context(), **s.validated_data)
        return Response(result, status=status.HTTP_201_CREATED)


class PaymentVoucherApproveView(CompanyScopedAPIView):
    required_permissions = {"POST": PAYMENT_VOUCHER_APPROVE_PERMISSION}

    @extend_schema(tags=["accounting"], request=None, responses={200: dict, 409: dict})
    def post(self, request, pk, *args, **kwargs):
        result = approve_payment_voucher(context=self.get_ledger_context(), payment_voucher_id=pk)
        return Response(result, status=status.HTTP_200_OK)


class PaymentVoucherRejectView(CompanyScopedAPIView):
    serializer_class = PaymentVoucherRejectSerializer
    required_permissions = {"POST": PAYMENT_VOUCHER_APPROVE_PERMISSION}

    @extend_schema(tags=["accounting"], responses={200: dict, 409: dict})
    def post(self, request, pk, *args, **kwargs):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        result = reject_payment_voucher(
            context=self.get_ledger_context(),
            payment_voucher_id=pk,
            reason=s.validated_data["reason"],
        )
        return Response(result, status=status.HTTP_200_OK)
