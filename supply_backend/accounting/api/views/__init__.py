# accounting/api/views/__init__.py

from accounting.api.views.balances import (
    DebitAdjustmentCreateView,
    EntityBalanceView,
    EntityStatementView,
    TotalBalanceView,
)
from accounting.api.views.ledger_entries import LedgerEntryViewSet

__all__ = [
    "LedgerEntryViewSet",
    "EntityBalanceView",
    "EntityStatementView",
    "TotalBalanceView",
    "DebitAdjustmentCreateView",
]
