# production/api/serializers.py

from decimal import Decimal

from rest_framework import serializers

from production.models import Bom, BomComponent, BomOverhead, ProductionOrder


class BomComponentSerializer(serializers.ModelSerializer):
    item_sku = serializers.CharField(source="item.sku", read_only=True)

    class Meta:
        model = BomComponent
        fields = ("id", "item", "item_sku", "quantity_required", "unit")
        read_only_fields = fields


class BomOverheadSerializer(serializers.ModelSerializer):
    class Meta:
        model = BomOverhead
        fields = ("id", "name", "gl_account", "cost_method", "cost")
        read_only_fields = fields


class BomSerializer(serializers.ModelSerializer):
    components = BomComponentSerializer(many=True, read_only=True)
    overheads = BomOverheadSerializer(many=True, read_only=True)

    class Meta:
        model = Bom
        fields = ("id", "name", "stage", "output_item", "is_active", "components", "overheads")
        read_only_fields = fields


class BomComponentCreateSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    quantity_required = serializers.DecimalField(max_digits=18, decimal_places=6, min_value=Decimal("0.000001"))
    unit = serializers.CharField(required=False, allow_blank=True, default="pcs", max_length=20)


class BomOverheadCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120)
    gl_account_id = serializers.IntegerField()
    cost_method = serializers.ChoiceField(choices=BomOverhead.CostMethod.choices)
    cost = serializers.DecimalField(max_digits=16, decimal_places=4, min_value=Decimal("0"))


class BomCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    stage = serializers.ChoiceField(choices=Bom.Stage.choices)
    output_item_id = serializers.IntegerField()
    components = BomComponentCreateSerializer(many=True, allow_empty=False)
    overheads = BomOverheadCreateSerializer(many=True, required=False, default=list)


class RunOperationSerializer(serializers.Serializer):
    cycle_time_seconds = serializers.DecimalField(max_digits=10, decimal_places=3, min_value=Decimal("0"))
    cavities_per_round = serializers.IntegerField(min_value=0)
    running_hours = serializers.DecimalField(max_digits=10, decimal_places=3, min_value=Decimal("0"))
    scrap_percent = serializers.DecimalField(
        max_digits=6, decimal_places=3, min_value=Decimal("0"), max_value=Decimal("100"),
        required=False, default=Decimal("0"),
    )


class ProductionPlanSerializer(serializers.Serializer):
    bom_id = serializers.IntegerField()
    order_date = serializers.DateField(required=False, allow_null=True, default=None)
    operations = RunOperationSerializer(many=True, required=False, default=list)
    planned_quantity = serializers.DecimalField(
        max_digits=18, decimal_places=4, min_value=Decimal("0.0001"), required=False, allow_null=True, default=None
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ProductionCompleteSerializer(serializers.Serializer):
    actual_good = serializers.DecimalField(max_digits=18, decimal_places=4, min_value=Decimal("0.0001"))
    actual_defective = serializers.DecimalField(
        max_digits=18, decimal_places=4, min_value=Decimal("0"), required=False, default=Decimal("0")
    )
    completion_date = serializers.DateField(required=False, allow_null=True, default=None)


class ProductionOrderSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductionOrder
        fields = (
            "id",
            "order_number",
            "bom",
            "order_date",
            "status",
            "planned_quantity",
            "gross_planned",
            "good_planned",
            "defective_planned",
            "total_material_cost",
            "cost_per_unit",
            "actual_good",
            "actual_defective",
            "actual_total_cost",
            "actual_cost_per_unit",
            "completion_date",
            "journal_voucher",
        )
        read_only_fields = fields
