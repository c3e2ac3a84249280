# accounting/api/views/accounts.py

"""
PATH: accounting/api/views/accounts.py

CHART OF ACCOUNTS API (READ-ONLY)

GET /api/accounting/accounts/
Returns the acting company's accounts, ordered by code.

- Tenant-scoped via X-Company-ID (membership required)
- ?type=ASSET narrows by account type
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response

from accounting.api.serializers.accounts import AccountListSerializer
from accounting.models.account import Account
from companies.api import CompanyScopedAPIView


class AccountListView(CompanyScopedAPIView):
    serializer_class = AccountListSerializer

    @extend_schema(
        tags=["accounting"],
        parameters=[OpenApiParameter(name="type", type=str, required=False)],
        responses=AccountListSerializer(many=True),
    )
    def get(self, request, *args, **kwargs):
        ctx = self.get_ledger_context()

        qs = Account.objects.filter(company=ctx.company, is_active=True).order_by("code")

        account_type = (request.query_params.get("type") or "").strip().upper()
        if account_type:
            qs = qs.filter(account_type=account_type)

        return Response(AccountListSerializer(qs, many=True).data, status=status.HTTP_200_OK)
