# production/apps.py

"""
PRODUCTION APP CONFIG

Bills of materials, production orders and the costing engine that turns
machine-run parameters into quantities and material cost.
"""

from django.apps import AppConfig


class ProductionConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "production"
    verbose_name = "Production"
