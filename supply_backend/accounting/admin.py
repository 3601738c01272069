# accounting/admin.py

from django.contrib import admin

from accounting.models.ledger import LedgerEntry

# ============================================================
# LEDGER ENTRY (READ-ONLY)
# ============================================================


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    list_display = (
        "date",
        "entity_type",
        "entity_id",
        "transaction_type",
        "debit",
        "credit",
        "payment_method",
        "reference_model",
        "reference_id",
    )
    list_filter = ("entity_type", "transaction_type", "payment_method", "reference_model")
    search_fields = ("entity_id", "reference_id", "description")
    ordering = ("date", "created_at")

    readonly_fields = (
        "entity_type",
        "entity_id",
        "transaction_type",
        "reference_model",
        "reference_id",
        "debit",
        "credit",
        "date",
        "description",
        "remarks",
        "payment_method",
        "cash_payment",
        "bank_payment",
        "created_by",
        "created_at",
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
