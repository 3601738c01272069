# purchases/apps.py

from django.apps import AppConfig


class PurchasesConfig(AppConfig):
    """
    Dispatch orders from suppliers: confirmation (stock-in + ledger),
    supplier returns, payment distribution and credit application.
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "purchases"
    verbose_name = "Purchases"
