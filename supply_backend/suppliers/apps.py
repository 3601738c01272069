# suppliers/apps.py

from django.apps import AppConfig


class SuppliersConfig(AppConfig):
    """
    Supplier registry + logistics companies.

    Balances are NEVER stored here; they are always derived from the
    accounting ledger (accounting.services.balance_service).
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "suppliers"
    verbose_name = "Suppliers"
