# accounting/apps.py

from django.apps import AppConfig


class AccountingConfig(AppConfig):
    """
    Append-only transaction ledger + derived balances.

    LedgerEntry is the single source of truth for every supplier, buyer and
    logistics balance.
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "accounting"
    verbose_name = "Accounting"
