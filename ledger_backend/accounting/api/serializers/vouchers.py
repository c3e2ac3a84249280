# accounting/api/serializers/vouchers.py

"""
JOURNAL VOUCHER SERIALIZERS

Output serializers mirror the stored voucher (DB truth).
Input serializers only check shape; balance, account ownership and state
rules are enforced by the ledger poster.
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from accounting.models.pending_intent import PendingVoucherIntent
from accounting.models.voucher import JournalVoucher
from accounting.models.voucher_line import JournalVoucherLine


class VoucherLineSerializer(serializers.ModelSerializer):
    account_code = serializers.CharField(source="account.code", read_only=True)
    account_name = serializers.CharField(source="account.name", read_only=True)

    class Meta:
        model = JournalVoucherLine
        fields = (
            "line_no",
            "account",
            "account_code",
            "account_name",
            "debit",
            "credit",
            "description",
            "payee_type",
            "payee_id",
        )
        read_only_fields = fields


class VoucherSerializer(serializers.ModelSerializer):
    lines = VoucherLineSerializer(many=True, read_only=True)
    reversal_of_number = serializers.CharField(
        source="reversal_of.voucher_number", read_only=True, default=None
    )

    class Meta:
        model = JournalVoucher
        fields = (
            "id",
            "voucher_number",
            "entry_date",
            "source",
            "status",
            "narration",
            "reference_type",
            "reference_id",
            "total_debits",
            "total_credits",
            "reversal_of",
            "reversal_of_number",
            "rejection_reason",
            "status_changed_at",
            "created_at",
            "lines",
        )
        read_only_fields = fields


class VoucherLineInputSerializer(serializers.Serializer):
    account_id = serializers.IntegerField()
    debit = serializers.DecimalField(
        max_digits=16, decimal_places=2, required=False, default=Decimal("0.00"), min_value=Decimal("0")
    )
    credit = serializers.DecimalField(
        max_digits=16, decimal_places=2, required=False, default=Decimal("0.00"), min_value=Decimal("0")
    )
    description = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)
    payee_type = serializers.ChoiceField(
        choices=JournalVoucherLine.PAYEE_TYPES, required=False, allow_null=True, default=None
    )
    payee_id = serializers.IntegerField(required=False, allow_null=True, default=None)


class VoucherPostSerializer(serializers.Serializer):
    narration = serializers.CharField()
    entry_date = serializers.DateField(required=False, allow_null=True, default=None)
    reference_type = serializers.CharField(required=False, allow_blank=True, default="", max_length=50)
    reference_id = serializers.CharField(required=False, allow_blank=True, default="", max_length=64)
    lines = VoucherLineInputSerializer(many=True)

    def validate_lines(self, value):
        if len(value) < 2:
            raise serializers.ValidationError("A voucher must contain at least two lines.")
        return value


class DraftVoucherSerializer(serializers.Serializer):
    narration = serializers.CharField()
    entry_date = serializers.DateField(required=False, allow_null=True, default=None)
    kind = serializers.ChoiceField(choices=PendingVoucherIntent.Kind.choices)
    account_id = serializers.IntegerField()
    counter_account_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=16, decimal_places=2, min_value=Decimal("0.01"))
    memo = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)


class VoucherRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")
    entry_date = serializers.DateField(required=False, allow_null=True, default=None)


class VoucherReverseSerializer(serializers.Serializer):
    entry_date = serializers.DateField(required=False, allow_null=True, default=None)
    narration = serializers.CharField(required=False, allow_blank=True, default="")
