# accounting/api/views/ledger_entries.py

"""
LEDGER ENTRY BROWSER (READ-ONLY / AUDIT SAFE)

Entries are append-only; this surface never writes.

Filters:
    ?entity_type=supplier&entity_id=<uuid>
    ?transaction_type=payment
    ?reference_id=<uuid>
    ?date_from=2026-01-01&date_to=2026-01-31
    ?ordering=date | -date | created_at | -created_at   (default: -date)
"""

from django_filters import rest_framework as filters
from drf_spectacular.utils import extend_schema
from rest_framework import filters as drf_filters
from rest_framework.permissions import IsAuthenticated
from rest_framework.viewsets import ReadOnlyModelViewSet

from accounting.api.serializers import LedgerEntrySerializer
from accounting.models.ledger import LedgerEntry


class LedgerEntryFilterSet(filters.FilterSet):
    entity_type = filters.ChoiceFilter(choices=LedgerEntry.EntityType.choices)
    entity_id = filters.UUIDFilter()
    transaction_type = filters.ChoiceFilter(choices=LedgerEntry.TransactionType.choices)
    reference_id = filters.UUIDFilter()
    payment_method = filters.ChoiceFilter(choices=LedgerEntry.PaymentMethod.choices)
    date_from = filters.DateFilter(field_name="date", lookup_expr="date__gte")
    date_to = filters.DateFilter(field_name="date", lookup_expr="date__lte")

    class Meta:
        model = LedgerEntry
        fields = [
            "entity_type",
            "entity_id",
            "transaction_type",
            "reference_id",
            "payment_method",
        ]


@extend_schema(tags=["accounting"])
class LedgerEntryViewSet(ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = LedgerEntrySerializer
    http_method_names = ["get", "head", "options"]
    filterset_class = LedgerEntryFilterSet
    filter_backends = [filters.DjangoFilterBackend, drf_filters.OrderingFilter]
    ordering_fields = ["date", "created_at"]
    ordering = ["-date", "-created_at"]

    queryset = LedgerEntry.objects.select_related("created_by")
