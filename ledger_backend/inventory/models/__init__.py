# inventory/models/__init__.py

from inventory.models.item import InventoryItem
from inventory.models.stock_event import StockEvent

__all__ = [
    "InventoryItem",
    "StockEvent",
]
