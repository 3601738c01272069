# accounting/services/posting.py

"""
======================================================
PATH: accounting/services/posting.py
======================================================
POSTING ADAPTER

Map business events -> ledger entries and call append_entry (the engine).

This module should remain a thin adapter:
- It DOES NOT do workflows (orchestrators in purchases do).
- It DOES decide which side (debit / credit) each event lands on.
- It ALWAYS calls append_entry for validation + immutability.

Sides (balance = Σdebit − Σcredit):
- purchase, charge, adjustment            -> DEBIT  (business owes more)
- payment, return, advance credit          -> CREDIT (business owes less)
- credit_application                       -> DEBIT (consume held credit)
                                              + CREDIT referencing the order (settle it)
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from accounting.models.ledger import LedgerEntry
from accounting.services.exceptions import InvalidLedgerEntryError
from accounting.services.ledger_service import append_entry

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")

ORDER = LedgerEntry.ReferenceModel.DISPATCH_ORDER
RETURN = LedgerEntry.ReferenceModel.SUPPLIER_RETURN


def _money(v) -> Decimal:
    if v is None or v == "":
        return ZERO
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _positive(amount, *, what: str) -> Decimal:
    amt = _money(amount)
    if amt <= ZERO:
        raise InvalidLedgerEntryError(f"{what} amount must be > 0")
    return amt


def record_purchase(*, supplier, order_id, order_number: str, amount, user=None, date=None) -> LedgerEntry:
    amt = _positive(amount, what="Purchase")
    return append_entry(
        entity_type=LedgerEntry.EntityType.SUPPLIER,
        entity_id=supplier.pk,
        transaction_type=LedgerEntry.TransactionType.PURCHASE,
        reference_model=ORDER,
        reference_id=order_id,
        debit=amt,
        date=date,
        description=f"Dispatch order {order_number} from {supplier.name}",
        created_by=user,
    )


def record_payment(
    *,
    entity_type: str,
    entity_id,
    amount,
    payment_method: str,
    order_id=None,
    order_number: str = "",
    user=None,
    date=None,
    description: str = "",
    remarks: str = "",
) -> LedgerEntry:
    """
    Payment credit. Without order_id it is an advance credit (no reference).
    """
    amt = _positive(amount, what="Payment")
    method = (payment_method or "").strip().lower()

    if not description:
        description = (
            f"{method.title() or 'Payment'} payment for order {order_number}".strip()
            if order_id
            else "Advance payment (credit)"
        )

    return append_entry(
        entity_type=entity_type,
        entity_id=entity_id,
        transaction_type=LedgerEntry.TransactionType.PAYMENT,
        reference_model=ORDER if order_id else LedgerEntry.ReferenceModel.NONE,
        reference_id=order_id,
        credit=amt,
        date=date,
        description=description,
        remarks=remarks,
        payment_method=method,
        cash_payment=amt if method == LedgerEntry.PaymentMethod.CASH else ZERO,
        bank_payment=amt if method == LedgerEntry.PaymentMethod.BANK else ZERO,
        created_by=user,
    )


def record_advance_credit(*, entity_type: str, entity_id, amount, payment_method: str, user=None, date=None) -> LedgerEntry:
    return record_payment(
        entity_type=entity_type,
        entity_id=entity_id,
        amount=amount,
        payment_method=payment_method,
        order_id=None,
        user=user,
        date=date,
        description="Advance payment (credit)",
    )


def record_return(
    *,
    supplier,
    amount,
    return_id=None,
    order_id=None,
    order_number: str = "",
    user=None,
    date=None,
    description: str = "",
) -> LedgerEntry:
    """
    Return credit. References the SupplierReturn document when there is one,
    otherwise the order directly.
    """
    amt = _positive(amount, what="Return")

    if return_id:
        reference_model, reference_id = RETURN, return_id
    elif order_id:
        reference_model, reference_id = ORDER, order_id
    else:
        reference_model, reference_id = LedgerEntry.ReferenceModel.NONE, None

    return append_entry(
        entity_type=LedgerEntry.EntityType.SUPPLIER,
        entity_id=supplier.pk,
        transaction_type=LedgerEntry.TransactionType.RETURN,
        reference_model=reference_model,
        reference_id=reference_id,
        credit=amt,
        date=date,
        description=description or f"Return to {supplier.name}" + (f" (order {order_number})" if order_number else ""),
        created_by=user,
    )


def record_debit_adjustment(
    *,
    entity_type: str,
    entity_id,
    amount,
    description: str,
    user=None,
    date=None,
    remarks: str = "",
) -> LedgerEntry:
    """Manual charge: the business owes the entity more."""
    amt = _positive(amount, what="Adjustment")
    description = (description or "").strip()
    if not description:
        raise InvalidLedgerEntryError("Adjustment description is required")

    return append_entry(
        entity_type=entity_type,
        entity_id=entity_id,
        transaction_type=LedgerEntry.TransactionType.ADJUSTMENT,
        debit=amt,
        date=date,
        description=description,
        remarks=remarks,
        created_by=user,
    )


def record_logistics_charge(
    *,
    company,
    order_id,
    order_number: str,
    total_boxes: int,
    box_rate,
    user=None,
    date=None,
) -> LedgerEntry | None:
    """total_boxes × box_rate as a charge debit; nothing is posted for a zero charge."""
    amount = _money(Decimal(int(total_boxes or 0)) * _money(box_rate))
    if amount <= ZERO:
        return None

    return append_entry(
        entity_type=LedgerEntry.EntityType.LOGISTICS,
        entity_id=company.pk,
        transaction_type=LedgerEntry.TransactionType.CHARGE,
        reference_model=ORDER,
        reference_id=order_id,
        debit=amount,
        date=date,
        description=f"Logistics charge for order {order_number}: {int(total_boxes)} boxes x {_money(box_rate)}",
        created_by=user,
    )


def record_credit_application(
    *,
    entity_type: str,
    entity_id,
    order_id,
    order_number: str,
    amount,
    user=None,
    date=None,
) -> tuple[LedgerEntry, LedgerEntry]:
    """
    Move held credit onto an order.

    DEBIT  credit_application (consumes the held credit)
    CREDIT credit_application referencing the order (settles it)

    The pair nets to zero on the entity balance: the order's own purchase
    debit is what already absorbed the credit.
    """
    amt = _positive(amount, what="Credit application")

    consume = append_entry(
        entity_type=entity_type,
        entity_id=entity_id,
        transaction_type=LedgerEntry.TransactionType.CREDIT_APPLICATION,
        reference_model=ORDER,
        reference_id=order_id,
        debit=amt,
        date=date,
        description=f"Credit applied from account to order {order_number}",
        created_by=user,
    )
    settle = append_entry(
        entity_type=entity_type,
        entity_id=entity_id,
        transaction_type=LedgerEntry.TransactionType.CREDIT_APPLICATION,
        reference_model=ORDER,
        reference_id=order_id,
        credit=amt,
        date=date,
        description=f"Order {order_number} settled from account credit",
        created_by=user,
    )
    return consume, settle
