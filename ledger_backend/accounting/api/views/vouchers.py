# accounting/api/views/vouchers.py

"""
PATH: accounting/api/views/vouchers.py

JOURNAL VOUCHER API

GET    /api/accounting/vouchers/                 list (filter: status, source, entry_date range)
POST   /api/accounting/vouchers/                 post a balanced voucher
GET    /api/accounting/vouchers/<id>/            detail with lines
DELETE /api/accounting/vouchers/<id>/            drafts only
POST   /api/accounting/vouchers/drafts/          create a DRAFT with a pending intent
POST   /api/accounting/vouchers/<id>/post/       DRAFT -> POSTED
POST   /api/accounting/vouchers/<id>/approve/    POSTED -> APPROVED
POST   /api/accounting/vouchers/<id>/reject/     -> REJECTED (posted ones are auto-reversed)
POST   /api/accounting/vouchers/<id>/reverse/    post the mirror voucher

Vouchers are never edited through the API; corrections are reversals.
"""

from __future__ import annotations

import django_filters
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import ListAPIView
from rest_framework.response import Response

from accounting.api.serializers.vouchers import (
    DraftVoucherSerializer,
    VoucherPostSerializer,
    VoucherRejectSerializer,
    VoucherReverseSerializer,
    VoucherSerializer,
)
from accounting.models.voucher import JournalVoucher
from accounting.services.account_resolver import get_account
from accounting.services.ledger_poster import (
    approve_voucher,
    delete_draft_voucher,
    get_voucher,
    post_draft_voucher,
    post_voucher,
    reject_voucher,
    reverse_voucher,
)
from companies.api import CompanyScopedAPIView, CompanyScopedMixin

POST_PERMISSION = "accounting.add_journalvoucher"
APPROVE_PERMISSION = "accounting.change_journalvoucher"
DELETE_PERMISSION = "accounting.delete_journalvoucher"


class VoucherFilter(django_filters.FilterSet):
    date_from = django_filters.DateFilter(field_name="entry_date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="entry_date", lookup_expr="lte")

    class Meta:
        model = JournalVoucher
        fields = ["status", "source", "reference_type", "reference_id"]


def _detail(ctx, voucher_id) -> dict:
    return VoucherSerializer(get_voucher(context=ctx, voucher_id=voucher_id)).data


class VoucherListCreateView(CompanyScopedMixin, ListAPIView):
    serializer_class = VoucherSerializer
    filterset_class = VoucherFilter
    required_permissions = {"POST": POST_PERMISSION}

    def get_queryset(self):
        ctx = self.get_ledger_context()
        return (
            JournalVoucher.objects.filter(company=ctx.company)
            .select_related("reversal_of")
            .prefetch_related("lines__account")
            .order_by("-entry_date", "-id")
        )

    @extend_schema(
        tags=["accounting"],
        request=VoucherPostSerializer,
        responses={201: VoucherSerializer, 400: dict, 404: dict, 409: dict},
    )
    def post(self, request, *args, **kwargs):
        ctx = self.get_ledger_context()
        s = VoucherPostSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        lines = [
            {
                "account": get_account(ctx.company, line["account_id"]),
                "debit": line["debit"],
                "credit": line["credit"],
                "description": line["description"],
                "payee_type": line["payee_type"],
                "payee_id": line["payee_id"],
            }
            for line in data["lines"]
        ]

        voucher = post_voucher(
            context=ctx,
            narration=data["narration"],
            lines=lines,
            entry_date=data["entry_date"],
            reference_type=data["reference_type"],
            reference_id=data["reference_id"],
        )
        return Response(_detail(ctx, voucher.pk), status=status.HTTP_201_CREATED)


class DraftVoucherCreateView(CompanyScopedAPIView):
    serializer_class = DraftVoucherSerializer
    required_permissions = {"POST": POST_PERMISSION}

    @extend_schema(tags=["accounting"], responses={201: VoucherSerializer, 400: dict})
    def post(self, request, *args, **kwargs):
        ctx = self.get_ledger_context()
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        voucher = post_voucher(
            context=ctx,
            narration=data["narration"],
            entry_date=data["entry_date"],
            status=JournalVoucher.Status.DRAFT,
            intent={
                "kind": data["kind"],
                "account": get_account(ctx.company, data["account_id"]),
                "counter_account": get_account(ctx.company, data["counter_account_id"]),
                "amount": data["amount"],
                "memo": data["memo"],
            },
        )
        return Response(_detail(ctx, voucher.pk), status=status.HTTP_201_CREATED)


class VoucherDetailView(CompanyScopedAPIView):
    serializer_class = VoucherSerializer
    required_permissions = {"DELETE": DELETE_PERMISSION}

    @extend_schema(tags=["accounting"], responses={200: VoucherSerializer, 404: dict})
    def get(self, request, pk, *args, **kwargs):
        return Response(_detail(self.get_ledger_context(), pk), status=status.HTTP_200_OK)

    @extend_schema(tags=["accounting"], responses={204: None, 404: dict, 409: dict})
    def delete(self, request, pk, *args, **kwargs):
        delete_draft_voucher(context=self.get_ledger_context(), voucher_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class VoucherPostDraftView(CompanyScopedAPIView):
    required_permissions = {"POST": POST_PERMISSION}

    @extend_schema(tags=["accounting"], request=None, responses={200: VoucherSerializer, 409: dict})
    def post(self, request, pk, *args, **kwargs):
        ctx = self.get_ledger_context()
        voucher = post_draft_voucher(context=ctx, voucher_id=pk)
        return Response(_detail(ctx, voucher.pk), status=status.HTTP_200_OK)


class VoucherApproveView(CompanyScopedAPIView):
    required_permissions = {"POST": APPROVE_PERMISSION}

    @extend_schema(tags=["accounting"], request=None, responses={200: VoucherSerializer, 409: dict})
    def post(self, request, pk, *args, **kwargs):
        ctx = self.get_ledger_context()
        voucher = approve_voucher(context=ctx, voucher_id=pk)
        return Response(_detail(ctx, voucher.pk), status=status.HTTP_200_OK)


class VoucherRejectView(CompanyScopedAPIView):
    serializer_class = VoucherRejectSerializer
    required_permissions = {"POST": APPROVE_PERMISSION}

    @extend_schema(tags=["accounting"], responses={200: VoucherSerializer, 409: dict})
    def post(self, request, pk, *args, **kwargs):
        ctx = self.get_ledger_context()
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        voucher = reject_voucher(
            context=ctx,
            voucher_id=pk,
            reason=s.validated_data["reason"],
            entry_date=s.validated_data["entry_date"],
        )
        return Response(_detail(ctx, voucher.pk), status=status.HTTP_200_OK)


class VoucherReverseView(CompanyScopedAPIView):
    serializer_class = VoucherReverseSerializer
    required_permissions = {"POST": POST_PERMISSION}

    @extend_schema(tags=["accounting"], responses={201: VoucherSerializer, 409: dict})
    def post(self, request, pk, *args, **kwargs):
        ctx = self.get_ledger_context()
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        reversal = reverse_voucher(
            context=ctx,
            voucher_id=pk,
            entry_date=s.validated_data["entry_date"],
            narration=s.validated_data["narration"] or None,
        )
        return Response(_detail(ctx, reversal.pk), status=status.HTTP_201_CREATED)
