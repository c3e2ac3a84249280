# purchases/api/serializers.py

from decimal import Decimal

from rest_framework import serializers

from purchases.models import GoodsReceipt, Supplier, SupplierBill, SupplierPayment


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = ("id", "name", "phone", "email", "address", "is_active", "created_at")
        read_only_fields = ("id", "created_at")


class GoodsReceiptSerializer(serializers.ModelSerializer):
    items = serializers.SerializerMethodField()

    class Meta:
        model = GoodsReceipt
        fields = ("id", "grn_number", "supplier", "receipt_date", "total_amount", "notes", "items")
        read_only_fields = fields

    def get_items(self, obj):
        qs = obj.items.select_related("item").all()
        return [
            {
                "id": it.id,
                "item_id": it.item_id,
                "sku": it.item.sku,
                "quantity": str(it.quantity),
                "unit_price": str(it.unit_price),
                "line_total": str(it.line_total),
            }
            for it in qs
        ]


class GoodsReceiptLineCreateSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=18, decimal_places=4, min_value=Decimal("0.0001"))
    unit_price = serializers.DecimalField(max_digits=18, decimal_places=6, min_value=Decimal("0"))


class GoodsReceiptCreateSerializer(serializers.Serializer):
    supplier_id = serializers.IntegerField()
    receipt_date = serializers.DateField(required=False, allow_null=True, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    lines = GoodsReceiptLineCreateSerializer(many=True, allow_empty=False)


class SupplierBillSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)
    balance = serializers.DecimalField(max_digits=16, decimal_places=2, read_only=True)

    class Meta:
        model = SupplierBill
        fields = (
            "id",
            "bill_number",
            "supplier",
            "supplier_name",
            "receipt",
            "bill_date",
            "due_date",
            "status",
            "total_amount",
            "amount_paid",
            "balance",
            "journal_voucher",
            "approved_at",
        )
        read_only_fields = fields


class SupplierBillCreateSerializer(serializers.Serializer):
    receipt_id = serializers.IntegerField()
    bill_date = serializers.DateField(required=False, allow_null=True, default=None)
    due_date = serializers.DateField(required=False, allow_null=True, default=None)


class SupplierBillPaySerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=16, decimal_places=2, min_value=Decimal("0.01"))
    payment_date = serializers.DateField(required=False, allow_null=True, default=None)
    payment_account_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    payment_method = serializers.ChoiceField(
        choices=["cash", "bank", "transfer"], required=False, allow_null=True, default=None
    )
    reference = serializers.CharField(required=False, allow_blank=True, default="", max_length=128)


class SupplierPaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = SupplierPayment
        fields = (
            "id",
            "bill",
            "payment_date",
            "amount",
            "payment_account",
            "reference",
            "journal_voucher",
            "created_at",
        )
        read_only_fields = fields
