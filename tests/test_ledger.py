from decimal import Decimal

import pytest

from preschool.core.ledger import (
    approved_total,
    compute_ledger,
    fee_for_class,
    ledger_from_totals,
    payment_percent,
    resolve_admission_fee,
)


def test_only_approved_payments_count() -> None:
    payments = [
        {"amount": "15000", "status": "approved"},
        {"amount": "5000", "status": "approved"},
        {"amount": "10000", "status": "under_verification"},
        {"amount": "2500", "status": "rejected"},
    ]
    ledger = compute_ledger(Decimal("30000"), payments)

    assert ledger.paid_amount == Decimal("20000")
    assert ledger.remaining_balance == Decimal("10000")
    assert ledger.payment_percent == 67


def test_no_payments() -> None:
    ledger = compute_ledger(25000, [])
    assert ledger.paid_amount == 0
    assert ledger.remaining_balance == Decimal("25000")
    assert ledger.payment_percent == 0


def test_zero_fee_has_zero_percent() -> None:
    ledger = compute_ledger(0, [{"amount": 500, "status": "approved"}])
    assert ledger.payment_percent == 0
    assert ledger.remaining_balance == Decimal("-500")


def test_overpayment_is_not_clamped() -> None:
    ledger = ledger_from_totals(Decimal("20000"), Decimal("25000"))
    assert ledger.remaining_balance == Decimal("-5000")
    assert ledger.payment_percent == 125


@pytest.mark.parametrize(
    "paid, total, expected",
    [
        (1, 200, 1),  # 0.5 rounds half up
        (1, 3, 33),
        (2, 3, 67),
        (30000, 30000, 100),
    ],
)
def test_payment_percent_rounds_half_up(paid, total, expected) -> None:
    assert payment_percent(paid, total) == expected


def test_ledger_is_idempotent() -> None:
    payments = [{"amount": "1000", "status": "approved"}]
    assert compute_ledger(5000, payments) == compute_ledger(5000, payments)


def test_approved_total_accepts_objects() -> None:
    class P:
        def __init__(self, amount, status):
            self.amount = amount
            self.status = status

    assert approved_total([P(Decimal("100.50"), "approved"), P(Decimal("99"), "pending_upload")]) == Decimal("100.50")


@pytest.mark.parametrize(
    "class_name, fee",
    [
        ("nursery", Decimal("25000")),
        ("Nursery", Decimal("25000")),
        ("lkg", Decimal("30000")),
        ("L.K.G.", Decimal("30000")),
        ("UKG", Decimal("32000")),
        ("Class 1", Decimal("35000")),
        ("playgroup", Decimal("20000")),
    ],
)
def test_fee_for_class(class_name, fee) -> None:
    assert fee_for_class(class_name) == fee


def test_supplied_fee_wins_only_when_positive() -> None:
    assert resolve_admission_fee("nursery", Decimal("18000")) == Decimal("18000")
    assert resolve_admission_fee("nursery", 0) == Decimal("25000")
    assert resolve_admission_fee("nursery", None) == Decimal("25000")
    assert resolve_admission_fee("unknown", None) == Decimal("20000")
