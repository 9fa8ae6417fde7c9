"""
Fee ledger: class fee lookup and paid / remaining / percent computation.

Only approved payments count toward the paid amount. The remaining balance is not
clamped at zero, so an overpaid admission reports a negative balance.
"""

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Union

from preschool.core.config import settings
from preschool.core.enums import PaymentStatus

Number = Union[Decimal, int, float, str]

# Keys are normalised with _class_key()
CLASS_FEES = {
    "nursery": Decimal("25000"),
    "lkg": Decimal("30000"),
    "ukg": Decimal("32000"),
    "class1": Decimal("35000"),
}


def _to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


def _class_key(class_name: str) -> str:
    # "L.K.G." -> "lkg", "Class 1" -> "class1"
    return re.sub(r"[^a-z0-9]", "", (class_name or "").lower())


def fee_for_class(class_name: str, default: Optional[Number] = None) -> Decimal:
    """Look up the static class fee, falling back to the configured default."""
    fee = CLASS_FEES.get(_class_key(class_name))
    if fee is not None:
        return fee
    if default is None:
        default = settings.default_admission_fee
    return _to_decimal(default)


def resolve_admission_fee(class_name: str, total_fee: Optional[Number] = None) -> Decimal:
    """Caller-supplied positive fee wins; otherwise the class table; otherwise the default."""
    supplied = _to_decimal(total_fee)
    if supplied > 0:
        return supplied
    return fee_for_class(class_name)


@dataclass(frozen=True)
class FeeLedger:
    total_fee: Decimal
    paid_amount: Decimal
    remaining_balance: Decimal
    payment_percent: int


def _status_of(payment) -> str:
    status = payment["status"] if isinstance(payment, dict) else payment.status
    return status.value if isinstance(status, PaymentStatus) else str(status)


def _amount_of(payment) -> Decimal:
    amount = payment["amount"] if isinstance(payment, dict) else payment.amount
    return _to_decimal(amount)


def approved_total(payments: Iterable) -> Decimal:
    """Sum of amounts over approved payments (objects with .status/.amount or dicts)."""
    total = Decimal("0")
    for p in payments:
        if _status_of(p) == PaymentStatus.APPROVED.value:
            total += _amount_of(p)
    return total


def payment_percent(paid_amount: Number, total_fee: Number) -> int:
    total = _to_decimal(total_fee)
    if total <= 0:
        return 0
    pct = Decimal(100) * _to_decimal(paid_amount) / total
    return int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_ledger(total_fee: Number, payments: Iterable) -> FeeLedger:
    total = _to_decimal(total_fee)
    paid = approved_total(payments)
    return FeeLedger(
        total_fee=total,
        paid_amount=paid,
        remaining_balance=total - paid,
        payment_percent=payment_percent(paid, total),
    )


def ledger_from_totals(total_fee: Number, paid_amount: Number) -> FeeLedger:
    """Ledger for pre-aggregated totals (e.g. summed over several admissions)."""
    total = _to_decimal(total_fee)
    paid = _to_decimal(paid_amount)
    return FeeLedger(
        total_fee=total,
        paid_amount=paid,
        remaining_balance=total - paid,
        payment_percent=payment_percent(paid, total),
    )
