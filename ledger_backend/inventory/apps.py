# inventory/apps.py

"""
INVENTORY APP CONFIG

Inventory items and the append-only stock event stream. Quantity on hand and
weighted-average cost are always recomputed from the stream (services/valuation.py).
"""

from django.apps import AppConfig


class InventoryConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "inventory"
    verbose_name = "Inventory"
