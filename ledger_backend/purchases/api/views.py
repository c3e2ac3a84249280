# purchases/api/views.py

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import ListAPIView
from rest_framework.response import Response

from companies.api import CompanyScopedAPIView, CompanyScopedMixin
from purchases.api.serializers import (
    GoodsReceiptCreateSerializer,
    GoodsReceiptSerializer,
    SupplierBillCreateSerializer,
    SupplierBillPaySerializer,
    SupplierBillSerializer,
    SupplierPaymentSerializer,
    SupplierSerializer,
)
from purchases.models import GoodsReceipt, Supplier, SupplierBill, SupplierPayment
from purchases.services.bill_service import (
    approve_supplier_bill,
    create_bill_from_receipt,
    void_supplier_bill,
)
from purchases.services.payment_service import pay_supplier_bill
from purchases.services.receiving_service import receive_goods

BILL_APPROVE_PERMISSION = "purchases.change_supplierbill"


class SupplierListCreateView(CompanyScopedMixin, ListAPIView):
    serializer_class = SupplierSerializer
    required_permissions = {"POST": "purchases.add_supplier"}

    def get_queryset(self):
        return Supplier.objects.filter(company=self.get_ledger_context().company, is_active=True).order_by("name")

    @extend_schema(tags=["purchases"], request=SupplierSerializer, responses={201: SupplierSerializer})
    def post(self, request, *args, **kwargs):
        s = SupplierSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        supplier = s.save(company=self.get_ledger_context().company)
        return Response(SupplierSerializer(supplier).data, status=status.HTTP_201_CREATED)


class GoodsReceiptListCreateView(CompanyScopedMixin, ListAPIView):
    serializer_class = GoodsReceiptSerializer
    filterset_fields = ["supplier"]
    required_permissions = {"POST": "purchases.add_goodsreceipt"}

    def get_queryset(self):
        return GoodsReceipt.objects.filter(company=self.get_ledger_context().company).order_by(
            "-receipt_date", "-id"
        )

    @extend_schema(tags=["purchases"], request=GoodsReceiptCreateSerializer, responses={201: dict})
    def post(self, request, *args, **kwargs):
        s = GoodsReceiptCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        result = receive_goods(context=self.get_ledger_context(), **s.validated_data)
        return Response(result, status=status.HTTP_201_CREATED)


class SupplierBillListCreateView(CompanyScopedMixin, ListAPIView):
    serializer_class = SupplierBillSerializer
    filterset_fields = ["status", "supplier"]
    required_permissions = {"POST": "purchases.add_supplierbill"}

    def get_queryset(self):
        return (
            SupplierBill.objects.filter(company=self.get_ledger_context().company)
            .select_related("supplier")
            .order_by("-bill_date", "-id")
        )

    @extend_schema(tags=["purchases"], request=SupplierBillCreateSerializer, responses={201: dict, 409: dict})
    def post(self, request, *args, **kwargs):
        s = SupplierBillCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        result = create_bill_from_receipt(context=self.get_ledger_context(), **s.validated_data)
        return Response(result, status=status.HTTP_201_CREATED)


class SupplierBillApproveView(CompanyScopedAPIView):
    required_permissions = {"POST": BILL_APPROVE_PERMISSION}

    @extend_schema(tags=["purchases"], request=None, responses={200: dict, 409: dict})
    def post(self, request, pk, *args, **kwargs):
        return Response(
            approve_supplier_bill(context=self.get_ledger_context(), bill_id=pk),
            status=status.HTTP_200_OK,
        )


class SupplierBillVoidView(CompanyScopedAPIView):
    required_permissions = {"POST": BILL_APPROVE_PERMISSION}

    @extend_schema(tags=["purchases"], request=None, responses={200: dict, 409: dict})
    def post(self, request, pk, *args, **kwargs):
        return Response(
            void_supplier_bill(context=self.get_ledger_context(), bill_id=pk),
            status=status.HTTP_200_OK,
        )


class SupplierBillPayView(CompanyScopedAPIView):
    serializer_class = SupplierBillPaySerializer
    required_permissions = {"POST": "purchases.add_supplierpayment"}

    @extend_schema(tags=["purchases"], responses={201: dict, 400: dict, 409: dict})
    def post(self, request, pk, *args, **kwargs):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        result = pay_supplier_bill(context=self.get_ledger_context(), bill_id=pk, **s.validated_data)
        return Response(result, status=status.HTTP_201_CREATED)


class SupplierPaymentListView(CompanyScopedMixin, ListAPIView):
    serializer_class = SupplierPaymentSerializer
    filterset_fields = ["bill"]

    def get_queryset(self):
        return SupplierPayment.objects.filter(company=self.get_ledger_context().company).order_by(
            "-payment_date", "-id"
        )
