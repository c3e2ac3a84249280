# backend/settings/__init__.py
"""
PATH: backend/settings/__init__.py

Settings package entrypoint.

Dev/prod are NOT imported here. Use DJANGO_SETTINGS_MODULE to select:
- backend.settings.dev   (local development + tests)
- backend.settings.prod  (production)
"""
