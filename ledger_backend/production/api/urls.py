# production/api/urls.py

from django.urls import path

from production.api.views import (
    BomListCreateView,
    ProductionOrderCompleteView,
    ProductionOrderListCreateView,
    ProductionOrderStartView,
)

urlpatterns = [
    path("boms/", BomListCreateView.as_view(), name="production-boms"),
    path("orders/", ProductionOrderListCreateView.as_view(), name="production-orders"),
    path("orders/<int:pk>/start/", ProductionOrderStartView.as_view(), name="production-order-start"),
    path("orders/<int:pk>/complete/", ProductionOrderCompleteView.as_view(), name="production-order-complete"),
]
