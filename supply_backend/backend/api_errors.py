# backend/api_errors.py

"""
SERVICE ERROR -> HTTP RESPONSE

Views call services inside try/except and hand the domain error here:
- not found                          -> 404
- unsupported reconciliation, order
  already confirmed / line failures  -> 409
- batch exhaustion (integrity)       -> 500, logged
- every other domain / validation    -> 400
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from rest_framework import status
from rest_framework.response import Response

from products.services.exceptions import (
    BatchExhaustionError,
    BatchNotFoundError,
    InventoryNotFoundError,
    UnsupportedReconciliationDirectionError,
    VariantNotFoundError,
)
from purchases.services.exceptions import (
    DispatchOrderConfirmationError,
    DispatchOrderNotFoundError,
)

logger = logging.getLogger("inventory")

NOT_FOUND = (
    InventoryNotFoundError,
    BatchNotFoundError,
    VariantNotFoundError,
    DispatchOrderNotFoundError,
)
CONFLICT = (UnsupportedReconciliationDirectionError,)


def service_error_response(exc: Exception) -> Response:
    if isinstance(exc, NOT_FOUND):
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)

    if isinstance(exc, CONFLICT):
        return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

    if isinstance(exc, DispatchOrderConfirmationError):
        return Response(
            {"detail": str(exc), "failures": exc.failures},
            status=status.HTTP_409_CONFLICT,
        )

    if isinstance(exc, BatchExhaustionError):
        logger.error("Batch ledger integrity error surfaced to API", extra={"error": str(exc)})
        return Response(
            {"detail": "Inventory batch ledger is inconsistent; run validate_inventory"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, ValidationError):
        detail = exc.message_dict if hasattr(exc, "error_dict") else exc.messages
        return Response({"detail": detail}, status=status.HTTP_400_BAD_REQUEST)

    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
