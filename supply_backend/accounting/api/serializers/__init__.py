# accounting/api/serializers/__init__.py

from accounting.api.serializers.ledger_entries import (
    DebitAdjustmentSerializer,
    LedgerEntrySerializer,
)

__all__ = [
    "LedgerEntrySerializer",
    "DebitAdjustmentSerializer",
]
