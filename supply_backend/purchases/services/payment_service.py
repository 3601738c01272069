# purchases/services/payment_service.py

"""
======================================================
PATH: purchases/services/payment_service.py
======================================================
PAYMENT DISTRIBUTION + CREDIT APPLICATION

distribute_supplier_payment():
- lock supplier row (serialises concurrent distributions)
- walk pending orders oldest-confirmed first
- each order takes min(remaining_amount, order_remaining) as a payment credit
- leftover becomes one unreferenced advance credit

apply_credit_to_order():
- available credit = −(balance excluding the order) − credit already moved onto it
- applied = min(available, amount_due), posted as a balance-neutral pair

distribute_logistics_payment():
- same walk over unpaid logistics charges
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction
from django.db.models import Sum
from django.db.models.functions import Coalesce

from accounting.models import LedgerEntry
from accounting.services.balance_service import get_balance, get_balance_excluding_order
from accounting.services.posting import (
    record_advance_credit,
    record_credit_application,
    record_payment,
)
from purchases.models import DispatchOrder
from purchases.selectors import (
    get_order_balance_summary,
    get_pending_logistics_charges,
    get_pending_orders_for_supplier,
)
from purchases.services.exceptions import CreditApplicationError, PaymentDistributionError
from purchases.services.locking import lock_dispatch_order, lock_supplier
from suppliers.models import LogisticsCompany, Supplier

logger = logging.getLogger("payments")

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")

ADVANCE_CREDIT = "ADVANCE_CREDIT"


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _validate_amount_and_method(amount, payment_method: str) -> tuple[Decimal, str]:
    amt = _money(amount)
    if amt <= ZERO:
        logger.error("Invalid payment amount", extra={"amount": str(amount)})
        raise PaymentDistributionError("Amount must be > 0")

    method = (payment_method or "").strip().lower()
    if method not in LedgerEntry.PaymentMethod.values or not method:
        logger.error("Invalid payment method provided", extra={"payment_method": payment_method})
        raise PaymentDistributionError("Invalid payment_method. Use 'cash' or 'bank'.")

    return amt, method


def _walk(pending: list[dict], amount: Decimal, post) -> tuple[list[dict], Decimal]:
    """Apply `amount` across `pending` rows in order; `post(row, applied)` books each slice."""
    remaining = amount
    distributions = []
    for row in pending:
        if remaining <= ZERO:
            break
        owed = row["remaining"]
        applied = min(remaining, owed)
        post(row, applied)
        remaining = _money(remaining - applied)
        distributions.append(
            {
                "order_id": row["order_id"],
                "order_number": row["order_number"],
                "amount_applied": applied,
                "previous_remaining": owed,
                "new_remaining": _money(owed - applied),
                "fully_paid": applied >= owed,
            }
        )
    return distributions, remaining


def _advance_row(amount: Decimal) -> dict:
    return {
        "order_id": None,
        "order_number": ADVANCE_CREDIT,
        "amount_applied": amount,
        "previous_remaining": ZERO,
        "new_remaining": -amount,
        "fully_paid": False,
    }


@transaction.atomic
def distribute_supplier_payment(
    *,
    supplier_id,
    amount,
    payment_method: str,
    user=None,
    date=None,
    remarks: str = "",
) -> dict:
    """
    DISTRIBUTE ONE SUPPLIER PAYMENT (atomic)

    Returns:
      {supplier_id, total_amount, total_distributed, remaining_credit,
       distributions: [...], new_balance}
    """
    amt, method = _validate_amount_and_method(amount, payment_method)

    try:
        supplier = lock_supplier(supplier_id, is_active=True)
    except Supplier.DoesNotExist as exc:
        logger.error("Supplier not found during payment distribution", extra={"supplier_id": str(supplier_id)})
        raise PaymentDistributionError("Supplier not found") from exc

    logger.info(
        "Distributing supplier payment",
        extra={"supplier_id": str(supplier.pk), "amount": str(amt), "payment_method": method},
    )

    def post(row, applied):
        record_payment(
            entity_type=LedgerEntry.EntityType.SUPPLIER,
            entity_id=supplier.pk,
            amount=applied,
            payment_method=method,
            order_id=row["order"].pk,
            order_number=row["order_number"],
            user=user,
            date=date,
            remarks=remarks,
        )

    distributions, leftover = _walk(get_pending_orders_for_supplier(supplier), amt, post)

    if leftover > ZERO:
        record_advance_credit(
            entity_type=LedgerEntry.EntityType.SUPPLIER,
            entity_id=supplier.pk,
            amount=leftover,
            payment_method=method,
            user=user,
            date=date,
        )
        distributions.append(_advance_row(leftover))

    new_balance = get_balance(LedgerEntry.EntityType.SUPPLIER, supplier.pk)

    logger.info(
        "Supplier payment distributed",
        extra={
            "supplier_id": str(supplier.pk),
            "orders_paid": len([d for d in distributions if d["order_id"]]),
            "advance_credit": str(leftover),
            "new_balance": str(new_balance),
        },
    )

    return {
        "supplier_id": str(supplier.pk),
        "total_amount": amt,
        "total_distributed": _money(amt - leftover),
        "remaining_credit": leftover,
        "distributions": distributions,
        "new_balance": new_balance,
    }


@transaction.atomic
def distribute_logistics_payment(
    *,
    company_id,
    amount,
    payment_method: str,
    user=None,
    date=None,
    remarks: str = "",
) -> dict:
    amt, method = _validate_amount_and_method(amount, payment_method)

    try:
        company = LogisticsCompany.objects.select_for_update().get(id=company_id, is_active=True)
    except LogisticsCompany.DoesNotExist as exc:
        logger.error("Logistics company not found during payment", extra={"company_id": str(company_id)})
        raise PaymentDistributionError("Logistics company not found") from exc

    def post(row, applied):
        record_payment(
            entity_type=LedgerEntry.EntityType.LOGISTICS,
            entity_id=company.pk,
            amount=applied,
            payment_method=method,
            order_id=row["order"].pk,
            order_number=row["order_number"],
            user=user,
            date=date,
            remarks=remarks,
            description=f"Logistics payment for order {row['order_number']}",
        )

    distributions, leftover = _walk(get_pending_logistics_charges(company), amt, post)

    if leftover > ZERO:
        record_advance_credit(
            entity_type=LedgerEntry.EntityType.LOGISTICS,
            entity_id=company.pk,
            amount=leftover,
            payment_method=method,
            user=user,
            date=date,
        )
        distributions.append(_advance_row(leftover))

    new_balance = get_balance(LedgerEntry.EntityType.LOGISTICS, company.pk)

    logger.info(
        "Logistics payment distributed",
        extra={"company_id": str(company.pk), "amount": str(amt), "new_balance": str(new_balance)},
    )

    return {
        "company_id": str(company.pk),
        "total_amount": amt,
        "total_distributed": _money(amt - leftover),
        "remaining_credit": leftover,
        "distributions": distributions,
        "new_balance": new_balance,
    }


def _credit_already_applied(*, entity_type: str, entity_id, order_id) -> Decimal:
    total = LedgerEntry.objects.filter(
        entity_type=entity_type,
        entity_id=entity_id,
        transaction_type=LedgerEntry.TransactionType.CREDIT_APPLICATION,
        reference_model=LedgerEntry.ReferenceModel.DISPATCH_ORDER,
        reference_id=order_id,
    ).aggregate(total=Coalesce(Sum("debit"), ZERO))["total"]
    return _money(total)


@transaction.atomic
def apply_credit_to_order(
    *,
    supplier_id,
    order_id,
    amount_due,
    order_number: str = "",
    user=None,
    date=None,
) -> Decimal:
    """
    Move held supplier credit onto an order. Returns the amount applied
    (0.00 when the supplier holds no credit or nothing is due).
    """
    due = _money(amount_due)
    if due < ZERO:
        raise CreditApplicationError("amount_due cannot be negative")
    if due == ZERO:
        return ZERO

    try:
        supplier = lock_supplier(supplier_id)
    except Supplier.DoesNotExist as exc:
        raise CreditApplicationError("Supplier not found") from exc

    entity_type = LedgerEntry.EntityType.SUPPLIER
    balance_excl = get_balance_excluding_order(entity_type, supplier.pk, order_id=order_id)
    already = _credit_already_applied(entity_type=entity_type, entity_id=supplier.pk, order_id=order_id)

    available = _money(-balance_excl - already)
    if available <= ZERO:
        return ZERO

    applied = min(available, due)
    record_credit_application(
        entity_type=entity_type,
        entity_id=supplier.pk,
        order_id=order_id,
        order_number=order_number,
        amount=applied,
        user=user,
        date=date,
    )

    logger.info(
        "Supplier credit applied to order",
        extra={
            "supplier_id": str(supplier.pk),
            "order_id": str(order_id),
            "available": str(available),
            "applied": str(applied),
        },
    )
    return applied


@transaction.atomic
def apply_available_credit(*, order_id, user=None) -> dict:
    """
    Apply held supplier credit to a confirmed order's current remaining balance.
    """
    order = lock_dispatch_order(order_id)

    if order.status != DispatchOrder.Status.CONFIRMED:
        raise CreditApplicationError("Credit can only be applied to confirmed orders")

    before = get_order_balance_summary(order)
    applied = apply_credit_to_order(
        supplier_id=order.supplier_id,
        order_id=order.pk,
        amount_due=max(ZERO, before["remaining"]),
        order_number=order.order_number,
        user=user,
    )
    after = get_order_balance_summary(order)
    return {"applied": applied, "order": after}
