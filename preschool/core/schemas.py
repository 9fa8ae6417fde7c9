from decimal import Decimal

from pydantic import BaseModel

from preschool.core.ledger import FeeLedger


class FeeLedgerResponse(BaseModel):
    """Paid / remaining / percent for one admission or an aggregate of admissions."""

    total_fee: Decimal
    paid_amount: Decimal
    remaining_balance: Decimal
    payment_percent: int

    @classmethod
    def from_ledger(cls, ledger: FeeLedger) -> "FeeLedgerResponse":
        return cls(
            total_fee=ledger.total_fee,
            paid_amount=ledger.paid_amount,
            remaining_balance=ledger.remaining_balance,
            payment_percent=ledger.payment_percent,
        )
