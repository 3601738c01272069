# accounting/services/ledger_service.py

"""
======================================================
PATH: accounting/services/ledger_service.py
======================================================
LEDGER APPEND SERVICE (TRANSACTION LEDGER ENGINE)

This module is the ONLY place allowed to:
- Create LedgerEntry rows
- Normalize money to 2dp (ROUND_HALF_UP)
- Enforce "debit XOR credit" and a present entity reference

No business validation beyond that: posting.py maps business events to
entries, and orchestrators (purchases services) decide WHEN to post.

Appending is safe to run concurrently; callers that need a consistent
read-then-write (payment distribution) hold their own row lock.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.utils import timezone

from accounting.models.ledger import LedgerEntry
from accounting.services.exceptions import InvalidLedgerEntryError

logger = logging.getLogger("ledger")

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def _money(value) -> Decimal:
    if value is None or value == "":
        return ZERO

    if isinstance(value, Decimal):
        amt = value
    else:
        try:
            amt = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise InvalidLedgerEntryError(f"Invalid money value: {value!r}") from exc

    return amt.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _as_aware_dt(dt: datetime | None) -> datetime:
    if dt is None:
        return timezone.now()
    if timezone.is_naive(dt):
        return timezone.make_aware(dt, timezone.get_current_timezone())
    return dt


def append_entry(
    *,
    entity_type: str,
    entity_id,
    transaction_type: str,
    debit=None,
    credit=None,
    reference_model: str = "",
    reference_id=None,
    date: datetime | None = None,
    description: str = "",
    remarks: str = "",
    payment_method: str = "",
    cash_payment=None,
    bank_payment=None,
    created_by=None,
) -> LedgerEntry:
    if not entity_type or entity_type not in LedgerEntry.EntityType.values:
        raise InvalidLedgerEntryError(f"Invalid entity_type: {entity_type!r}")

    if not entity_id:
        raise InvalidLedgerEntryError("entity_id is required")

    if transaction_type not in LedgerEntry.TransactionType.values:
        raise InvalidLedgerEntryError(f"Invalid transaction_type: {transaction_type!r}")

    dr = _money(debit)
    cr = _money(credit)

    if dr < ZERO or cr < ZERO:
        raise InvalidLedgerEntryError("debit and credit must be non-negative")

    if dr > ZERO and cr > ZERO:
        raise InvalidLedgerEntryError(
            "A ledger entry is either a debit or a credit row, never both nonzero"
        )

    method = (payment_method or "").strip().lower()
    if method not in LedgerEntry.PaymentMethod.values:
        raise InvalidLedgerEntryError("Invalid payment_method. Use 'cash' or 'bank'.")

    try:
        entry = LedgerEntry.objects.create(
            entity_type=entity_type,
            entity_id=getattr(entity_id, "pk", entity_id),
            transaction_type=transaction_type,
            reference_model=reference_model or "",
            reference_id=getattr(reference_id, "pk", reference_id),
            debit=dr,
            credit=cr,
            date=_as_aware_dt(date),
            description=(description or "").strip()[:255],
            remarks=remarks or "",
            payment_method=method,
            cash_payment=_money(cash_payment),
            bank_payment=_money(bank_payment),
            created_by=created_by,
        )
    except ValidationError as exc:
        raise InvalidLedgerEntryError(str(exc)) from exc

    logger.info(
        "Ledger entry posted",
        extra={
            "entry_id": str(entry.id),
            "entity_type": entry.entity_type,
            "entity_id": str(entry.entity_id),
            "transaction_type": entry.transaction_type,
            "debit": str(entry.debit),
            "credit": str(entry.credit),
            "reference_id": str(entry.reference_id) if entry.reference_id else None,
        },
    )

    return entry
