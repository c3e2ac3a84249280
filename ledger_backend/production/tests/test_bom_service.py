# production/tests/test_bom_service.py

from decimal import Decimal

from django.test import TestCase

from accounting.models.account import Account
from accounting.services.exceptions import InputValidationError, NotFoundError
from companies.testing import make_company, make_context, make_item
from production.models import Bom, BomOverhead
from production.services.bom_service import create_bom

D = Decimal


class CreateBomTests(TestCase):
    def setUp(self):
        self.company = make_company("ACME")
        self.ctx = make_context(self.company)
        self.resin = make_item(self.company, sku="RESIN")
        self.pigment = make_item(self.company, sku="PIGMENT")
        self.preform = make_item(self.company, sku="PREFORM", kind="SEMI_FINISHED")
        self.overheads_account = Account.objects.get(company=self.company, code="5100")

    def _create(self, **overrides):
        kwargs = {
            "context": self.ctx,
            "name": "Preform 20g",
            "stage": Bom.Stage.INJECTION,
            "output_item_id": self.preform.id,
            "components": [
                {"item_id": self.resin.id, "quantity_required": D("0.02"), "unit": "kg"},
                {"item_id": self.pigment.id, "quantity_required": D("0.0004")},
            ],
            "overheads": [
                {
                    "name": "Machine power",
                    "gl_account_id": self.overheads_account.id,
                    "cost_method": BomOverhead.CostMethod.PER_BATCH,
                    "cost": D("150"),
                }
            ],
        }
        kwargs.update(overrides)
        return create_bom(**kwargs)

    def test_creates_bom_with_components_and_overheads(self):
        bom = self._create()

        self.assertEqual(bom.company, self.company)
        self.assertEqual(bom.output_item, self.preform)
        self.assertEqual(bom.components.count(), 2)
        self.assertEqual(bom.components.get(item=self.pigment).unit, "pcs")
        self.assertEqual(bom.overheads.get().gl_account, self.overheads_account)

    def test_components_are_required(self):
        with self.assertRaises(InputValidationError):
            self._create(components=[])

    def test_raw_material_output_is_rejected(self):
        with self.assertRaises(InputValidationError):
            self._create(output_item_id=self.resin.id)

    def test_consuming_own_output_is_rejected_and_rolled_back(self):
        with self.assertRaises(InputValidationError):
            self._create(components=[{"item_id": self.preform.id, "quantity_required": D("1")}])

        self.assertFalse(Bom.objects.filter(company=self.company).exists())

    def test_non_positive_quantity_is_rejected(self):
        with self.assertRaises(InputValidationError):
            self._create(components=[{"item_id": self.resin.id, "quantity_required": D("0")}])

    def test_duplicate_name_is_rejected(self):
        self._create()

        with self.assertRaises(InputValidationError):
            self._create()

        self.assertEqual(Bom.objects.filter(company=self.company).count(), 1)

    def test_items_of_other_companies_are_not_found(self):
        other = make_company("GLOBEX")
        foreign = make_item(other, sku="RESIN")

        with self.assertRaises(NotFoundError):
            self._create(components=[{"item_id": foreign.id, "quantity_required": D("1")}])

    def test_overhead_account_of_other_company_is_not_found(self):
        other = make_company("GLOBEX")
        foreign = Account.objects.get(company=other, code="5100")

        with self.assertRaises(NotFoundError):
            self._create(
                overheads=[
                    {
                        "name": "Power",
                        "gl_account_id": foreign.id,
                        "cost_method": BomOverhead.CostMethod.PER_UNIT,
                        "cost": D("0.01"),
                    }
                ]
            )
