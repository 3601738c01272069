# accounting/api/serializers/ledger_entries.py

from decimal import Decimal

from rest_framework import serializers

from accounting.models.ledger import LedgerEntry


class LedgerEntrySerializer(serializers.ModelSerializer):
    signed_amount = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    created_by_username = serializers.CharField(source="created_by.username", read_only=True, default=None)

    class Meta:
        model = LedgerEntry
        fields = [
            "id",
            "entity_type",
            "entity_id",
            "transaction_type",
            "reference_model",
            "reference_id",
            "debit",
            "credit",
            "signed_amount",
            "date",
            "description",
            "remarks",
            "payment_method",
            "cash_payment",
            "bank_payment",
            "created_by",
            "created_by_username",
            "created_at",
        ]
        read_only_fields = fields


class DebitAdjustmentSerializer(serializers.Serializer):
    """Manual debit: the business owes the entity more (corrections, fees)."""

    entity_type = serializers.ChoiceField(choices=LedgerEntry.EntityType.choices)
    entity_id = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0.01"))
    description = serializers.CharField(max_length=255)
    remarks = serializers.CharField(required=False, allow_blank=True, default="")
    date = serializers.DateTimeField(required=False, allow_null=True, default=None)
