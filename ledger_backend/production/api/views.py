# production/api/views.py

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import ListAPIView
from rest_framework.response import Response

from companies.api import CompanyScopedAPIView, CompanyScopedMixin
from production.api.serializers import (
    BomCreateSerializer,
    BomSerializer,
    ProductionCompleteSerializer,
    ProductionOrderSerializer,
    ProductionPlanSerializer,
)
from production.models import Bom, ProductionOrder
from production.services.bom_service import create_bom
from production.services.production_service import (
    complete_production_order,
    plan_production_order,
    start_production_order,
)

PRODUCTION_PERMISSION = "production.add_productionorder"


class BomListCreateView(CompanyScopedMixin, ListAPIView):
    serializer_class = BomSerializer
    filterset_fields = ["stage", "is_active"]
    required_permissions = {"POST": "production.add_bom"}

    def get_queryset(self):
        return (
            Bom.objects.filter(company=self.get_ledger_context().company)
            .prefetch_related("components__item", "overheads")
            .order_by("name")
        )

    @extend_schema(tags=["production"], request=BomCreateSerializer, responses={201: BomSerializer})
    def post(self, request, *args, **kwargs):
        s = BomCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        bom = create_bom(context=self.get_ledger_context(), **s.validated_data)
        return Response(BomSerializer(bom).data, status=status.HTTP_201_CREATED)


class ProductionOrderListCreateView(CompanyScopedMixin, ListAPIView):
    serializer_class = ProductionOrderSerializer
    filterset_fields = ["status", "bom"]
    required_permissions = {"POST": PRODUCTION_PERMISSION}

    def get_queryset(self):
        return ProductionOrder.objects.filter(company=self.get_ledger_context().company).order_by(
            "-order_date", "-id"
        )

    @extend_schema(tags=["production"], request=ProductionPlanSerializer, responses={201: dict, 400: dict})
    def post(self, request, *args, **kwargs):
        s = ProductionPlanSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        result = plan_production_order(context=self.get_ledger_context(), **s.validated_data)
        return Response(result, status=status.HTTP_201_CREATED)


class ProductionOrderStartView(CompanyScopedAPIView):
    required_permissions = {"POST": PRODUCTION_PERMISSION}

    @extend_schema(tags=["production"], request=None, responses={200: dict, 409: dict})
    def post(self, request, pk, *args, **kwargs):
        return Response(
            start_production_order(context=self.get_ledger_context(), order_id=pk),
            status=status.HTTP_200_OK,
        )


class ProductionOrderCompleteView(CompanyScopedAPIView):
    serializer_class = ProductionCompleteSerializer
    required_permissions = {"POST": PRODUCTION_PERMISSION}

    @extend_schema(tags=["production"], responses={200: dict, 409: dict})
    def post(self, request, pk, *args, **kwargs):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        result = complete_production_order(context=self.get_ledger_context(), order_id=pk, **s.validated_data)
        return Response(result, status=status.HTTP_200_OK)
