# sales/serializers/invoice.py

from decimal import Decimal

from rest_framework import serializers

from sales.models import SalesInvoice, SalesInvoiceItem


class SalesInvoiceItemSerializer(serializers.ModelSerializer):
    sku = serializers.CharField(source="item.sku", read_only=True)

    class Meta:
        model = SalesInvoiceItem
        fields = (
            "id",
            "item",
            "sku",
            "quantity",
            "unit_price",
            "vat_rate",
            "line_subtotal",
            "vat_amount",
            "line_total",
            "unit_cost",
            "cogs_amount",
        )
        read_only_fields = fields


class SalesInvoiceSerializer(serializers.ModelSerializer):
    items = SalesInvoiceItemSerializer(many=True, read_only=True)
    customer_name = serializers.CharField(source="customer.name", read_only=True)

    class Meta:
        model = SalesInvoice
        fields = (
            "id",
            "invoice_number",
            "customer",
            "customer_name",
            "invoice_date",
            "due_date",
            "status",
            "subtotal_amount",
            "tax_amount",
            "discount_amount",
            "total_amount",
            "amount_paid",
            "amount_due",
            "cogs_amount",
            "journal_voucher",
            "reversal_voucher",
            "cancel_reason",
            "notes",
            "items",
        )
        read_only_fields = fields


class SalesInvoiceLineInputSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=18, decimal_places=4, min_value=Decimal("0.0001"))
    unit_price = serializers.DecimalField(max_digits=16, decimal_places=2, min_value=Decimal("0"))
    vat_rate = serializers.DecimalField(
        max_digits=6, decimal_places=3, min_value=Decimal("0"), max_value=Decimal("100"),
        required=False, default=Decimal("0"),
    )


class SalesInvoiceIssueSerializer(serializers.Serializer):
    customer_id = serializers.IntegerField()
    invoice_date = serializers.DateField(required=False, allow_null=True, default=None)
    due_date = serializers.DateField(required=False, allow_null=True, default=None)
    discount_amount = serializers.DecimalField(
        max_digits=16, decimal_places=2, min_value=Decimal("0"), required=False, default=Decimal("0")
    )
    as_draft = serializers.BooleanField(required=False, default=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    lines = SalesInvoiceLineInputSerializer(many=True, allow_empty=False)


class SalesInvoiceCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)
    cancel_date = serializers.DateField(required=False, allow_null=True, default=None)
