# accounting/services/balance_service.py

"""
BALANCE CALCULATOR (AUTHORITATIVE)

Read-only ledger aggregation helpers.

RULES:
- READ-ONLY: no writes, ever
- LedgerEntry is the single source of truth (no stored balance is trusted)
- balance = Σdebit − Σcredit, recomputed on every call
- Order remaining = live order value − order payments − order returns;
  the live value is computed by the caller from current item quantities
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Count, Q, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from accounting.models.ledger import LedgerEntry
from accounting.services.exceptions import BalanceServiceError

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")

ORDER = LedgerEntry.ReferenceModel.DISPATCH_ORDER
TT = LedgerEntry.TransactionType


def _q2(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _as_aware_dt(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    if timezone.is_naive(dt):
        return timezone.make_aware(dt, timezone.get_current_timezone())
    return dt


def _pk(v):
    return getattr(v, "pk", v)


def entity_entries(entity_type: str, entity_id, *, as_of: datetime | None = None):
    if not entity_type or not entity_id:
        raise BalanceServiceError("entity_type and entity_id are required")

    qs = LedgerEntry.objects.filter(entity_type=entity_type, entity_id=_pk(entity_id))

    as_of_dt = _as_aware_dt(as_of)
    if as_of_dt is not None:
        qs = qs.filter(date__lte=as_of_dt)

    return qs


def _totals(qs) -> dict:
    agg = qs.aggregate(
        debit_total=Coalesce(Sum("debit"), ZERO),
        credit_total=Coalesce(Sum("credit"), ZERO),
    )
    debit = _q2(agg["debit_total"])
    credit = _q2(agg["credit_total"])
    return {"debit_total": debit, "credit_total": credit, "balance": _q2(debit - credit)}


def get_balance(entity_type: str, entity_id, *, as_of: datetime | None = None) -> Decimal:
    """
    Σdebit − Σcredit over all entries for the entity.
    Positive: business owes the entity. Negative: entity holds business credit.
    """
    return _totals(entity_entries(entity_type, entity_id, as_of=as_of))["balance"]


def get_balance_summary(entity_type: str, entity_id, *, as_of: datetime | None = None) -> dict:
    return _totals(entity_entries(entity_type, entity_id, as_of=as_of))


def get_supplier_balance(supplier_id) -> Decimal:
    return get_balance(LedgerEntry.EntityType.SUPPLIER, supplier_id)


def get_logistics_balance(company_id) -> Decimal:
    return get_balance(LedgerEntry.EntityType.LOGISTICS, company_id)


def get_balance_excluding_order(entity_type: str, entity_id, *, order_id) -> Decimal:
    """Entity balance ignoring every entry that references `order_id`."""
    qs = entity_entries(entity_type, entity_id).exclude(
        reference_model=ORDER, reference_id=_pk(order_id)
    )
    return _totals(qs)["balance"]


# ============================================================
# ORDER-LEVEL AGGREGATES
# ============================================================


def _order_entries(order_id, *, entity_type: str | None = None):
    qs = LedgerEntry.objects.filter(reference_model=ORDER, reference_id=_pk(order_id))
    if entity_type:
        qs = qs.filter(entity_type=entity_type)
    return qs


def get_order_payments(order_id, *, entity_type: str = LedgerEntry.EntityType.SUPPLIER) -> dict:
    """
    {cash, bank, credit, total} for one order.

    - cash / bank: payment credits by method label
    - credit: credit_application credits (account credit moved onto the order)
    - total: every payment credit (any label) + credit
    """
    qs = _order_entries(order_id, entity_type=entity_type)

    agg = qs.aggregate(
        cash=Coalesce(
            Sum("credit", filter=Q(transaction_type=TT.PAYMENT, payment_method=LedgerEntry.PaymentMethod.CASH)),
            ZERO,
        ),
        bank=Coalesce(
            Sum("credit", filter=Q(transaction_type=TT.PAYMENT, payment_method=LedgerEntry.PaymentMethod.BANK)),
            ZERO,
        ),
        all_payments=Coalesce(Sum("credit", filter=Q(transaction_type=TT.PAYMENT)), ZERO),
        credit=Coalesce(Sum("credit", filter=Q(transaction_type=TT.CREDIT_APPLICATION)), ZERO),
    )

    credit = _q2(agg["credit"])
    return {
        "cash": _q2(agg["cash"]),
        "bank": _q2(agg["bank"]),
        "credit": credit,
        "total": _q2(_q2(agg["all_payments"]) + credit),
    }


def get_order_return_total(order_id, *, entity_type: str = LedgerEntry.EntityType.SUPPLIER) -> Decimal:
    """
    Return credits posted directly against the order.

    Returns recorded through a SupplierReturn document reference the document
    and reduce the order's live value through returned quantities instead.
    """
    total = _order_entries(order_id, entity_type=entity_type).filter(
        transaction_type=TT.RETURN
    ).aggregate(total=Coalesce(Sum("credit"), ZERO))["total"]
    return _q2(total)


def get_order_remaining_balance(
    order_id,
    live_order_value,
    *,
    entity_type: str = LedgerEntry.EntityType.SUPPLIER,
) -> Decimal:
    payments = get_order_payments(order_id, entity_type=entity_type)["total"]
    returns = get_order_return_total(order_id, entity_type=entity_type)
    return _q2(_q2(live_order_value) - payments - returns)


def get_order_charge_total(order_id) -> Decimal:
    total = _order_entries(order_id, entity_type=LedgerEntry.EntityType.LOGISTICS).filter(
        transaction_type=TT.CHARGE
    ).aggregate(total=Coalesce(Sum("debit"), ZERO))["total"]
    return _q2(total)


# ============================================================
# ENTITY REPORTING
# ============================================================


def get_payment_totals_by_method(entity_type: str, entity_id) -> dict:
    agg = entity_entries(entity_type, entity_id).filter(transaction_type=TT.PAYMENT).aggregate(
        cash=Coalesce(Sum("credit", filter=Q(payment_method=LedgerEntry.PaymentMethod.CASH)), ZERO),
        bank=Coalesce(Sum("credit", filter=Q(payment_method=LedgerEntry.PaymentMethod.BANK)), ZERO),
        total=Coalesce(Sum("credit"), ZERO),
    )
    return {"cash": _q2(agg["cash"]), "bank": _q2(agg["bank"]), "total": _q2(agg["total"])}


def get_entity_statement(entity_type: str, entity_id, *, as_of: datetime | None = None) -> list[dict]:
    """
    Chronological entries with a running balance (display order = date, created_at).
    """
    running = ZERO
    rows = []
    for entry in entity_entries(entity_type, entity_id, as_of=as_of).order_by("date", "created_at"):
        running = _q2(running + entry.debit - entry.credit)
        rows.append(
            {
                "id": str(entry.id),
                "date": entry.date,
                "transaction_type": entry.transaction_type,
                "reference_model": entry.reference_model,
                "reference_id": str(entry.reference_id) if entry.reference_id else None,
                "description": entry.description,
                "payment_method": entry.payment_method,
                "debit": _q2(entry.debit),
                "credit": _q2(entry.credit),
                "balance": running,
            }
        )
    return rows


def get_entity_dashboard(entity_type: str, entity_id) -> dict:
    agg = entity_entries(entity_type, entity_id).aggregate(
        purchases=Coalesce(Sum("debit", filter=Q(transaction_type=TT.PURCHASE)), ZERO),
        charges=Coalesce(Sum("debit", filter=Q(transaction_type=TT.CHARGE)), ZERO),
        adjustments=Coalesce(Sum("debit", filter=Q(transaction_type=TT.ADJUSTMENT)), ZERO),
        payments=Coalesce(Sum("credit", filter=Q(transaction_type=TT.PAYMENT)), ZERO),
        returns=Coalesce(Sum("credit", filter=Q(transaction_type=TT.RETURN)), ZERO),
        debit_total=Coalesce(Sum("debit"), ZERO),
        credit_total=Coalesce(Sum("credit"), ZERO),
        entries=Count("id"),
    )
    balance = _q2(_q2(agg["debit_total"]) - _q2(agg["credit_total"]))
    return {
        "total_purchases": _q2(agg["purchases"]),
        "total_charges": _q2(agg["charges"]),
        "total_adjustments": _q2(agg["adjustments"]),
        "total_payments": _q2(agg["payments"]),
        "total_returns": _q2(agg["returns"]),
        "balance": balance,
        "entry_count": int(agg["entries"] or 0),
    }


def get_total_balance(entity_type: str) -> dict:
    """
    Balances across every entity of a type, grouped per entity in one query.
    payable: Σ positive balances (business owes). receivable: Σ |negative| balances.
    """
    if entity_type not in LedgerEntry.EntityType.values:
        raise BalanceServiceError(f"Invalid entity_type: {entity_type!r}")

    rows = (
        LedgerEntry.objects.filter(entity_type=entity_type)
        .values("entity_id")
        .annotate(
            balance=Coalesce(Sum("debit"), ZERO) - Coalesce(Sum("credit"), ZERO),
        )
    )

    payable = ZERO
    receivable = ZERO
    count = 0
    for r in rows:
        count += 1
        bal = _q2(r["balance"])
        if bal > ZERO:
            payable += bal
        elif bal < ZERO:
            receivable += -bal

    return {
        "entity_type": entity_type,
        "entity_count": count,
        "total_payable": _q2(payable),
        "total_receivable": _q2(receivable),
        "net_balance": _q2(payable - receivable),
    }
