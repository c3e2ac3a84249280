# production/models/__init__.py

from production.models.bom import Bom, BomComponent, BomOverhead
from production.models.order import (
    ProductionOrder,
    ProductionOrderLine,
    ProductionOrderOperation,
)

__all__ = [
    "Bom",
    "BomComponent",
    "BomOverhead",
    "ProductionOrder",
    "ProductionOrderLine",
    "ProductionOrderOperation",
]
