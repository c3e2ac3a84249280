# accounting/api/serializers/opening_balances.py
"""

OPENING BALANCES SERIALIZERS

One endpoint, three kinds of opening balance:
- customer:  party_id + amount
- supplier:  party_id + amount
- inventory: party_id (item) + quantity + unit_cost

Keeps DRF validation thin; the service enforces duplicates and ownership.
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

KIND_CUSTOMER = "customer"
KIND_SUPPLIER = "supplier"
KIND_INVENTORY = "inventory"


class OpeningBalanceCreateSerializer(serializers.Serializer):
    kind = serializers.ChoiceField(choices=[KIND_CUSTOMER, KIND_SUPPLIER, KIND_INVENTORY])
    party_id = serializers.IntegerField()
    as_of = serializers.DateField(required=False, allow_null=True, default=None)

    amount = serializers.DecimalField(
        max_digits=16, decimal_places=2, min_value=Decimal("0.01"), required=False
    )
    quantity = serializers.DecimalField(
        max_digits=18, decimal_places=4, min_value=Decimal("0.0001"), required=False
    )
    unit_cost = serializers.DecimalField(
        max_digits=18, decimal_places=6, min_value=Decimal("0.000001"), required=False
    )

    def validate(self, attrs):
        if attrs["kind"] == KIND_INVENTORY:
            missing = [f for f in ("quantity", "unit_cost") if attrs.get(f) is None]
        else:
            missing = [] if attrs.get("amount") is not None else ["amount"]

        if missing:
            raise serializers.ValidationError(
                {field: f"Required for {attrs['kind']} opening balances." for field in missing}
            )
        return attrs
