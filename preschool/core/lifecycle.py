"""
Admission, payment and help query state machines.

Admission: submitted -> approved | rejected (terminal).
Payment:   pending_upload -> under_verification -> approved | rejected (terminal).
Query:     open -> replied | closed, replied -> replied | closed.
"""

from typing import Dict, FrozenSet, Union

from preschool.core.enums import AdmissionStatus, PaymentStatus, QueryStatus
from preschool.core.exceptions import InvalidStatusTransition

ADMISSION_TRANSITIONS: Dict[AdmissionStatus, FrozenSet[AdmissionStatus]] = {
    AdmissionStatus.SUBMITTED: frozenset({AdmissionStatus.APPROVED, AdmissionStatus.REJECTED}),
    AdmissionStatus.APPROVED: frozenset(),
    AdmissionStatus.REJECTED: frozenset(),
}

PAYMENT_TRANSITIONS: Dict[PaymentStatus, FrozenSet[PaymentStatus]] = {
    PaymentStatus.PENDING_UPLOAD: frozenset({PaymentStatus.UNDER_VERIFICATION}),
    PaymentStatus.UNDER_VERIFICATION: frozenset({PaymentStatus.APPROVED, PaymentStatus.REJECTED}),
    PaymentStatus.APPROVED: frozenset(),
    PaymentStatus.REJECTED: frozenset(),
}


def transition_admission(
    current: Union[AdmissionStatus, str],
    target: Union[AdmissionStatus, str],
) -> AdmissionStatus:
    """Return the new admission status or raise InvalidStatusTransition."""
    cur = AdmissionStatus(current)
    tgt = AdmissionStatus(target)
    if tgt not in ADMISSION_TRANSITIONS[cur]:
        raise InvalidStatusTransition("admission", cur.value, tgt.value)
    return tgt


def transition_payment(
    current: Union[PaymentStatus, str],
    target: Union[PaymentStatus, str],
) -> PaymentStatus:
    """Return the new payment status or raise InvalidStatusTransition."""
    cur = PaymentStatus(current)
    tgt = PaymentStatus(target)
    if tgt not in PAYMENT_TRANSITIONS[cur]:
        raise InvalidStatusTransition("payment", cur.value, tgt.value)
    return tgt


def initial_payment_status(has_receipt: bool) -> PaymentStatus:
    if has_receipt:
        return PaymentStatus.UNDER_VERIFICATION
    return PaymentStatus.PENDING_UPLOAD


def is_terminal_admission(status: Union[AdmissionStatus, str]) -> bool:
    return not ADMISSION_TRANSITIONS[AdmissionStatus(status)]


def is_terminal_payment(status: Union[PaymentStatus, str]) -> bool:
    return not PAYMENT_TRANSITIONS[PaymentStatus(status)]


# A replied query may be answered again before it is closed
QUERY_TRANSITIONS: Dict[QueryStatus, FrozenSet[QueryStatus]] = {
    QueryStatus.OPEN: frozenset({QueryStatus.REPLIED, QueryStatus.CLOSED}),
    QueryStatus.REPLIED: frozenset({QueryStatus.REPLIED, QueryStatus.CLOSED}),
    QueryStatus.CLOSED: frozenset(),
}


def transition_query(
    current: Union[QueryStatus, str],
    target: Union[QueryStatus, str],
) -> QueryStatus:
    cur = QueryStatus(current)
    tgt = QueryStatus(target)
    if tgt not in QUERY_TRANSITIONS[cur]:
        raise InvalidStatusTransition("query", cur.value, tgt.value)
    return tgt
