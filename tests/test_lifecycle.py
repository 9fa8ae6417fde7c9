import pytest

from preschool.core.enums import AdmissionStatus, PaymentStatus, QueryStatus
from preschool.core.exceptions import InvalidStatusTransition
from preschool.core.lifecycle import (
    initial_payment_status,
    is_terminal_admission,
    is_terminal_payment,
    transition_admission,
    transition_payment,
    transition_query,
)


@pytest.mark.parametrize("target", ["approved", "rejected"])
def test_submitted_admission_can_be_decided(target) -> None:
    assert transition_admission("submitted", target) == AdmissionStatus(target)


@pytest.mark.parametrize(
    "current, target",
    [
        ("approved", "rejected"),
        ("rejected", "approved"),
        ("approved", "submitted"),
        ("submitted", "submitted"),
    ],
)
def test_illegal_admission_transitions(current, target) -> None:
    with pytest.raises(InvalidStatusTransition) as exc:
        transition_admission(current, target)
    assert exc.value.status_code == 400
    assert f"{current} -> {target}" in exc.value.message


def test_payment_happy_path() -> None:
    status = initial_payment_status(has_receipt=False)
    assert status == PaymentStatus.PENDING_UPLOAD
    status = transition_payment(status, PaymentStatus.UNDER_VERIFICATION)
    status = transition_payment(status, PaymentStatus.APPROVED)
    assert is_terminal_payment(status)


def test_payment_with_receipt_starts_under_verification() -> None:
    assert initial_payment_status(has_receipt=True) == PaymentStatus.UNDER_VERIFICATION


@pytest.mark.parametrize(
    "current, target",
    [
        ("pending_upload", "approved"),
        ("approved", "rejected"),
        ("rejected", "under_verification"),
        ("under_verification", "pending_upload"),
    ],
)
def test_illegal_payment_transitions(current, target) -> None:
    with pytest.raises(InvalidStatusTransition):
        transition_payment(current, target)


def test_terminal_states() -> None:
    assert not is_terminal_admission("submitted")
    assert is_terminal_admission("approved")
    assert is_terminal_admission(AdmissionStatus.REJECTED)
    assert not is_terminal_payment("under_verification")


def test_query_transitions() -> None:
    assert transition_query("open", "replied") == QueryStatus.REPLIED
    assert transition_query("replied", "replied") == QueryStatus.REPLIED
    assert transition_query("replied", "closed") == QueryStatus.CLOSED
    with pytest.raises(InvalidStatusTransition):
        transition_query("closed", "open")
    with pytest.raises(InvalidStatusTransition):
        transition_query("open", "open")
