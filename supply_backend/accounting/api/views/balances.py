# accounting/api/views/balances.py

"""
ENTITY BALANCES

GET  /balances/<entity_type>/<entity_id>/            summary + dashboard + payment split
GET  /balances/<entity_type>/<entity_id>/statement/  entries with running balance
GET  /balances/<entity_type>/                        totals across every entity of a type
POST /adjustments/                                   manual debit adjustment

Balances are recomputed from LedgerEntry on every request.
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.api.serializers import DebitAdjustmentSerializer, LedgerEntrySerializer
from accounting.models.ledger import LedgerEntry
from accounting.services.balance_service import (
    get_balance_summary,
    get_entity_dashboard,
    get_entity_statement,
    get_payment_totals_by_method,
    get_total_balance,
)
from accounting.services.exceptions import AccountingServiceError
from accounting.services.posting import record_debit_adjustment
from backend.api_errors import service_error_response


def _unknown_entity_type(entity_type):
    if entity_type in LedgerEntry.EntityType.values:
        return None
    return Response(
        {"detail": f"Unknown entity type: {entity_type!r}"},
        status=status.HTTP_400_BAD_REQUEST,
    )


@extend_schema(tags=["accounting"])
class EntityBalanceView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, entity_type, entity_id):
        bad = _unknown_entity_type(entity_type)
        if bad is not None:
            return bad

        summary = get_balance_summary(entity_type, entity_id)
        return Response(
            {
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                **summary,
                "dashboard": get_entity_dashboard(entity_type, entity_id),
                "payments_by_method": get_payment_totals_by_method(entity_type, entity_id),
            }
        )


@extend_schema(tags=["accounting"])
class EntityStatementView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, entity_type, entity_id):
        bad = _unknown_entity_type(entity_type)
        if bad is not None:
            return bad

        rows = get_entity_statement(entity_type, entity_id)
        return Response(
            {
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "closing_balance": rows[-1]["balance"] if rows else "0.00",
                "entries": rows,
            }
        )


@extend_schema(tags=["accounting"])
class TotalBalanceView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, entity_type):
        try:
            return Response(get_total_balance(entity_type))
        except AccountingServiceError as exc:
            return service_error_response(exc)


@extend_schema(tags=["accounting"], request=DebitAdjustmentSerializer, responses=LedgerEntrySerializer)
class DebitAdjustmentCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        s = DebitAdjustmentSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            entry = record_debit_adjustment(
                entity_type=data["entity_type"],
                entity_id=data["entity_id"],
                amount=data["amount"],
                description=data["description"],
                remarks=data.get("remarks") or "",
                date=data.get("date"),
                user=request.user,
            )
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(LedgerEntrySerializer(entry).data, status=status.HTTP_201_CREATED)
