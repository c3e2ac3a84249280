# production/services/bom_service.py

"""
BOM SERVICE

create_bom() stores a bill of materials with its components and overheads in
one transaction. Every referenced item/account must belong to the acting
company; model validation errors surface as InputValidationError.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction

from accounting.services.account_resolver import get_account
from accounting.services.exceptions import InputValidationError
from inventory.services.stock_service import get_item
from production.models import Bom, BomComponent, BomOverhead

logger = logging.getLogger(__name__)


def _message(exc: DjangoValidationError) -> str:
    if hasattr(exc, "message_dict"):
        return "; ".join(f"{field}: {' '.join(msgs)}" for field, msgs in exc.message_dict.items())
    return " ".join(exc.messages)


@transaction.atomic
def create_bom(*, context, name: str, stage: str, output_item_id, components, overheads=()) -> Bom:
    if not components:
        raise InputValidationError("A BOM requires at least one component")

    output_item = get_item(context=context, item_id=output_item_id)

    try:
        bom = Bom.objects.create(company=context.company, name=name, stage=stage, output_item=output_item)

        for comp in components:
            BomComponent.objects.create(
                bom=bom,
                item=get_item(context=context, item_id=comp.get("item_id")),
                quantity_required=comp.get("quantity_required"),
                unit=comp.get("unit") or "pcs",
            )

        for oh in overheads or ():
            BomOverhead.objects.create(
                bom=bom,
                name=oh.get("name"),
                gl_account=get_account(context.company, oh.get("gl_account_id")),
                cost_method=oh.get("cost_method"),
                cost=oh.get("cost"),
            )
    except DjangoValidationError as exc:
        raise InputValidationError(_message(exc)) from exc
    except IntegrityError as exc:
        raise InputValidationError(f"BOM {name!r} could not be saved: duplicate name or component") from exc

    logger.info(
        "BOM created",
        extra={
            "company": context.company.code,
            "bom": bom.name,
            "stage": bom.stage,
            "components": len(components),
            "request_id": context.request_id,
        },
    )
    return bom
