"""
PATH: accounting/api/views/trial_balance.py

TRIAL BALANCE API VIEW (READ-ONLY)

GET /api/accounting/trial-balance/?as_of=YYYY-MM-DD

- Tenant-scoped via X-Company-ID (membership required)
- Permission-gated: requires accounting.view_journalvoucher
- as_of is an inclusive entry date; omitted means every effective voucher
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response

from accounting.services.balance_service import trial_balance
from companies.api import CompanyScopedAPIView

VIEW_PERMISSION = "accounting.view_journalvoucher"


class TrialBalanceView(CompanyScopedAPIView):
    required_permissions = {"GET": VIEW_PERMISSION}

    @extend_schema(
        tags=["accounting"],
        parameters=[
            OpenApiParameter(
                name="as_of",
                type=str,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Inclusive entry date (YYYY-MM-DD).",
            ),
        ],
        responses={200: dict},
    )
    def get(self, request, *args, **kwargs):
        ctx = self.get_ledger_context()
        as_of = (request.query_params.get("as_of") or "").strip() or None
        return Response(trial_balance(context=ctx, as_of=as_of), status=status.HTTP_200_OK)
