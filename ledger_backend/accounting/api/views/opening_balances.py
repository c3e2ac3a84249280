# PATH: accounting/api/views/opening_balances.py

"""
PATH: accounting/api/views/opening_balances.py

OPENING BALANCES API

POST:
- Validates request via serializer (shape only)
- Dispatches to the customer / supplier / inventory opening balance service,
  each of which posts one balanced OPENING_BALANCE voucher against
  Opening Balance Equity

Security:
- Authenticated + company member
- requires explicit permission to post opening balances
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response

from accounting.api.serializers.opening_balances import (
    KIND_CUSTOMER,
    KIND_SUPPLIER,
    OpeningBalanceCreateSerializer,
)
from accounting.services.opening_balances_service import (
    post_customer_opening_balance,
    post_inventory_opening_balance,
    post_supplier_opening_balance,
)
from companies.api import CompanyScopedAPIView

OPENING_BALANCE_PERMISSION = "accounting.add_journalvoucher"


class OpeningBalancesCreateView(CompanyScopedAPIView):
    serializer_class = OpeningBalanceCreateSerializer
    required_permissions = {"POST": OPENING_BALANCE_PERMISSION}

    @extend_schema(
        tags=["accounting"],
        request=OpeningBalanceCreateSerializer,
        responses={201: dict, 400: dict, 403: dict, 404: dict, 409: dict},
    )
    def post(self, request, *args, **kwargs):
        ctx = self.get_ledger_context()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if data["kind"] == KIND_CUSTOMER:
            result = post_customer_opening_balance(
                context=ctx, customer_id=data["party_id"], amount=data["amount"], as_of=data["as_of"]
            )
        elif data["kind"] == KIND_SUPPLIER:
            result = post_supplier_opening_balance(
                context=ctx, supplier_id=data["party_id"], amount=data["amount"], as_of=data["as_of"]
            )
        else:
            result = post_inventory_opening_balance(
                context=ctx,
                item_id=data["party_id"],
                quantity=data["quantity"],
                unit_cost=data["unit_cost"],
                as_of=data["as_of"],
            )

        return Response(result, status=status.HTTP_201_CREATED)
