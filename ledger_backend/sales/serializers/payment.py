# sales/serializers/payment.py

from decimal import Decimal

from rest_framework import serializers

from sales.models import CustomerPayment, PaymentAllocation


class PaymentAllocationSerializer(serializers.ModelSerializer):
    invoice_number = serializers.CharField(source="invoice.invoice_number", read_only=True)

    class Meta:
        model = PaymentAllocation
        fields = ("invoice", "invoice_number", "amount")
        read_only_fields = fields


class CustomerPaymentSerializer(serializers.ModelSerializer):
    allocations = PaymentAllocationSerializer(many=True, read_only=True)

    class Meta:
        model = CustomerPayment
        fields = (
            "id",
            "receipt_number",
            "customer",
            "payment_date",
            "amount",
            "deposit_account",
            "reference",
            "journal_voucher",
            "allocations",
        )
        read_only_fields = fields


class AllocationInputSerializer(serializers.Serializer):
    invoice_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=16, decimal_places=2)


class PaymentAllocateSerializer(serializers.Serializer):
    customer_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=16, decimal_places=2, min_value=Decimal("0.01"))
    deposit_account_id = serializers.IntegerField()
    payment_date = serializers.DateField(required=False, allow_null=True, default=None)
    reference = serializers.CharField(required=False, allow_blank=True, default="", max_length=128)
    allocations = AllocationInputSerializer(many=True, allow_empty=False)
