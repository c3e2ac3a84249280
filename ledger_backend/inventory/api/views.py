# inventory/api/views.py

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.fields import DateField
from rest_framework.generics import ListAPIView
from rest_framework.response import Response

from companies.api import CompanyScopedAPIView, CompanyScopedMixin
from inventory.api.serializers import (
    InventoryItemSerializer,
    IssuanceCreateSerializer,
    StockEventSerializer,
)
from inventory.models.item import InventoryItem
from inventory.services.stock_service import get_item, issue_material, item_history
from inventory.services.valuation import valuate

AS_OF_PARAMETER = OpenApiParameter(name="as_of", type=str, required=False, description="YYYY-MM-DD")


def _as_of(request):
    raw = (request.query_params.get("as_of") or "").strip()
    return DateField().to_internal_value(raw) if raw else None


class InventoryItemListCreateView(CompanyScopedMixin, ListAPIView):
    serializer_class = InventoryItemSerializer
    filterset_fields = ["kind", "is_active"]
    required_permissions = {"POST": "inventory.add_inventoryitem"}

    def get_queryset(self):
        return InventoryItem.objects.filter(company=self.get_ledger_context().company).order_by("sku")

    @extend_schema(tags=["inventory"], request=InventoryItemSerializer, responses={201: InventoryItemSerializer})
    def post(self, request, *args, **kwargs):
        s = InventoryItemSerializer(data=request.data, context={"company": self.get_ledger_context().company})
        s.is_valid(raise_exception=True)
        item = s.save()
        return Response(InventoryItemSerializer(item).data, status=status.HTTP_201_CREATED)


class InventoryItemValuationView(CompanyScopedAPIView):
    @extend_schema(tags=["inventory"], parameters=[AS_OF_PARAMETER], responses={200: dict, 404: dict})
    def get(self, request, pk, *args, **kwargs):
        item = get_item(context=self.get_ledger_context(), item_id=pk)
        valuation = valuate(item, as_of=_as_of(request))
        return Response({"item_id": item.pk, "sku": item.sku, **valuation.as_dict()}, status=status.HTTP_200_OK)


class InventoryItemHistoryView(CompanyScopedAPIView):
    @extend_schema(tags=["inventory"], parameters=[AS_OF_PARAMETER], responses={200: dict, 404: dict})
    def get(self, request, pk, *args, **kwargs):
        item, valuation = item_history(context=self.get_ledger_context(), item_id=pk, as_of=_as_of(request))

        return Response(
            {
                "item_id": item.pk,
                "sku": item.sku,
                **valuation.as_dict(),
                "events": [
                    {
                        "event_id": point.event_id,
                        "event_date": point.event_date,
                        "source": point.source,
                        "quantity_delta": str(point.quantity_delta),
                        "unit_price": str(point.unit_price),
                        "quantity_on_hand": str(point.quantity_on_hand),
                        "average_unit_cost": str(point.average_unit_cost),
                    }
                    for point in valuation.trace
                ],
            },
            status=status.HTTP_200_OK,
        )


class IssuanceCreateView(CompanyScopedAPIView):
    serializer_class = IssuanceCreateSerializer
    required_permissions = {"POST": "inventory.add_stockevent"}

    @extend_schema(tags=["inventory"], responses={201: StockEventSerializer, 404: dict, 409: dict})
    def post(self, request, *args, **kwargs):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        event = issue_material(context=self.get_ledger_context(), **s.validated_data)
        return Response(StockEventSerializer(event).data, status=status.HTTP_201_CREATED)
