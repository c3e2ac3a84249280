# inventory/api/serializers.py

from decimal import Decimal

from rest_framework import serializers

from inventory.models.item import InventoryItem
from inventory.models.stock_event import StockEvent


class InventoryItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = InventoryItem
        fields = ("id", "sku", "name", "kind", "unit", "is_active", "created_at")
        read_only_fields = ("id", "created_at")

    def validate_sku(self, value):
        sku = (value or "").strip().upper()
        company = self.context["company"]
        if InventoryItem.objects.filter(company=company, sku=sku).exists():
            raise serializers.ValidationError(f"Item {sku} already exists")
        return sku

    def create(self, validated_data):
        return InventoryItem.objects.create(company=self.context["company"], **validated_data)


class StockEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = StockEvent
        fields = (
            "id",
            "event_date",
            "source",
            "quantity_delta",
            "unit_price",
            "reference_type",
            "reference_id",
            "created_at",
        )
        read_only_fields = fields


class IssuanceCreateSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=18, decimal_places=4, min_value=Decimal("0.0001"))
    issue_date = serializers.DateField(required=False, allow_null=True, default=None)
    reference_id = serializers.CharField(required=False, allow_blank=True, default="", max_length=64)
    memo = serializers.CharField(required=False, allow_blank=True, default="")
