# accounting/api/serializers/__init__.py

from accounting.api.serializers.accounts import AccountListSerializer
from accounting.api.serializers.opening_balances import OpeningBalanceCreateSerializer
from accounting.api.serializers.payment_vouchers import (
    PaymentVoucherCreateSerializer,
    PaymentVoucherSerializer,
)
from accounting.api.serializers.vouchers import (
    DraftVoucherSerializer,
    VoucherPostSerializer,
    VoucherSerializer,
)

__all__ = [
    "AccountListSerializer",
    "OpeningBalanceCreateSerializer",
    "PaymentVoucherSerializer",
    "PaymentVoucherCreateSerializer",
    "VoucherSerializer",
    "VoucherPostSerializer",
    "DraftVoucherSerializer",
]
