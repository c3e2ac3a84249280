# inventory/api/urls.py

from django.urls import path

from inventory.api.views import (
    InventoryItemHistoryView,
    InventoryItemListCreateView,
    InventoryItemValuationView,
    IssuanceCreateView,
)

urlpatterns = [
    path("items/", InventoryItemListCreateView.as_view(), name="inventory-items"),
    path("items/<int:pk>/valuation/", InventoryItemValuationView.as_view(), name="inventory-item-valuation"),
    path("items/<int:pk>/history/", InventoryItemHistoryView.as_view(), name="inventory-item-history"),
    path("issuances/", IssuanceCreateView.as_view(), name="inventory-issuances"),
]
