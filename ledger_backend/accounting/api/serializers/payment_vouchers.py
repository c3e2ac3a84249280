# accounting/api/serializers/payment_vouchers.py

from decimal import Decimal

from rest_framework import serializers

from accounting.models.payment_voucher import PaymentVoucher


class PaymentVoucherSerializer(serializers.ModelSerializer):
    bank_account_code = serializers.CharField(source="bank_account.code", read_only=True)
    voucher_number = serializers.CharField(source="journal_voucher.voucher_number", read_only=True)

    class Meta:
        model = PaymentVoucher
        fields = (
            "id",
            "number",
            "payee_name",
            "supplier",
            "payment_date",
            "bank_account",
            "bank_account_code",
            "gross_amount",
            "vat_amount",
            "wht_rate",
            "wht_amount",
            "net_payable",
            "status",
            "narration",
            "journal_voucher",
            "voucher_number",
        )
        read_only_fields = fields


class PaymentVoucherLineInputSerializer(serializers.Serializer):
    expense_account_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=16, decimal_places=2, min_value=Decimal("0.01"))
    vat_rate = serializers.DecimalField(
        max_digits=6, decimal_places=2, min_value=Decimal("0"), max_value=Decimal("100"),
        required=False, default=Decimal("0"),
    )
    description = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)


class PaymentVoucherCreateSerializer(serializers.Serializer):
    payee_name = serializers.CharField(required=False, allow_blank=True, default="")
    supplier_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    bank_account_id = serializers.IntegerField()
    payment_date = serializers.DateField(required=False, allow_null=True, default=None)
    wht_rate = serializers.DecimalField(
        max_digits=6, decimal_places=2, min_value=Decimal("0"), max_value=Decimal("100"),
        required=False, default=Decimal("0"),
    )
    narration = serializers.CharField(required=False, allow_blank=True, default="")
    lines = PaymentVoucherLineInputSerializer(many=True, allow_empty=False)


class PaymentVoucherRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")
