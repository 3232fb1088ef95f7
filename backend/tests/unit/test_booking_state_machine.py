"""Transition table for the booking x payment compound state."""

import pytest

from app.core.enums import RoleName
from app.core.exceptions import AuthorizationError, InvalidTransition
from app.models.booking import BookingStatus as B, PaymentStatus as P
from app.principal import SYSTEM_PRINCIPAL, Principal
from app.services.booking_state_machine import BookingAction as A, BookingState, plan_transition

CLIENT = Principal(user_id="client-1", role=RoleName.CLIENT)
COMPANION = Principal(user_id="companion-1", role=RoleName.COMPANION)
STRANGER = Principal(user_id="client-2", role=RoleName.CLIENT)
ADMIN = Principal(user_id="admin-1", role=RoleName.ADMIN)


def _state(booking_status, payment_status, *, has_reference=True):
    return BookingState(
        booking_status=booking_status,
        payment_status=payment_status,
        client_id=CLIENT.user_id,
        companion_id=COMPANION.user_id,
        has_payment_reference=has_reference,
        booking_id="bk-1",
    )


@pytest.mark.parametrize(
    "start,action,actor,target,requires_refund",
    [
        ((B.PENDING, P.PENDING), A.PAYMENT_SUCCEEDED, SYSTEM_PRINCIPAL, (B.PENDING, P.PAID), False),
        ((B.PENDING, P.PENDING), A.PAYMENT_SUCCEEDED, CLIENT, (B.PENDING, P.PAID), False),
        ((B.PENDING, P.FAILED), A.PAYMENT_SUCCEEDED, SYSTEM_PRINCIPAL, (B.PENDING, P.PAID), False),
        ((B.PENDING, P.PENDING), A.PAYMENT_FAILED, SYSTEM_PRINCIPAL, (B.PENDING, P.FAILED), False),
        ((B.PENDING, P.PAID), A.ACCEPT, COMPANION, (B.ACCEPTED, P.PAID), False),
        ((B.PENDING, P.PAID), A.REJECT, COMPANION, (B.REJECTED, P.REFUND_PENDING), True),
        ((B.PENDING, P.PENDING), A.REJECT, COMPANION, (B.REJECTED, P.PENDING), False),
        ((B.PENDING, P.FAILED), A.REJECT, COMPANION, (B.REJECTED, P.FAILED), False),
        ((B.ACCEPTED, P.PAID), A.COMPLETE, COMPANION, (B.COMPLETED, P.PAID), False),
        ((B.PENDING, P.PAID), A.CANCEL, CLIENT, (B.CANCELLED, P.REFUND_PENDING), True),
        ((B.ACCEPTED, P.PAID), A.CANCEL, COMPANION, (B.CANCELLED, P.REFUND_PENDING), True),
        ((B.PENDING, P.PENDING), A.CANCEL, CLIENT, (B.CANCELLED, P.PENDING), False),
        ((B.PENDING, P.FAILED), A.CANCEL, COMPANION, (B.CANCELLED, P.FAILED), False),
        ((B.PENDING, P.PAID), A.EXPIRE, SYSTEM_PRINCIPAL, (B.EXPIRED, P.REFUND_PENDING), True),
        ((B.EXPIRED, P.REFUND_PENDING), A.REFUND_PROCESSED, SYSTEM_PRINCIPAL, (B.EXPIRED, P.REFUNDED), False),
    ],
)
def test_legal_transitions(start, action, actor, target, requires_refund):
    plan = plan_transition(_state(*start), action, actor)

    assert plan.target == target
    assert plan.requires_refund is requires_refund
    assert plan.no_op is False
    if requires_refund:
        assert plan.refunded_payment_status == P.REFUNDED


@pytest.mark.parametrize(
    "start,action,actor",
    [
        ((B.PENDING, P.PENDING), A.ACCEPT, COMPANION),
        ((B.PENDING, P.FAILED), A.ACCEPT, COMPANION),
        ((B.PENDING, P.PENDING), A.COMPLETE, COMPANION),
        ((B.PENDING, P.PAID), A.COMPLETE, COMPANION),
        ((B.COMPLETED, P.PAID), A.CANCEL, CLIENT),
        ((B.REJECTED, P.REFUNDED), A.ACCEPT, COMPANION),
        ((B.CANCELLED, P.REFUNDED), A.CANCEL, CLIENT),
        ((B.PENDING, P.PENDING), A.EXPIRE, SYSTEM_PRINCIPAL),
        ((B.ACCEPTED, P.PAID), A.EXPIRE, SYSTEM_PRINCIPAL),
        ((B.PENDING, P.PAID), A.PAYMENT_FAILED, SYSTEM_PRINCIPAL),
        ((B.CANCELLED, P.PENDING), A.PAYMENT_SUCCEEDED, SYSTEM_PRINCIPAL),
        ((B.ACCEPTED, P.PAID), A.REFUND_PROCESSED, SYSTEM_PRINCIPAL),
        ((B.PENDING, P.PAID), A.REFUND_FAILED, SYSTEM_PRINCIPAL),
    ],
)
def test_illegal_transitions_raise(start, action, actor):
    with pytest.raises(InvalidTransition) as exc_info:
        plan_transition(_state(*start), action, actor)

    assert exc_info.value.code == "INVALID_TRANSITION"
    assert exc_info.value.details["booking_id"] == "bk-1"
    assert exc_info.value.booking_status == start[0].value


@pytest.mark.parametrize("booking_status", [B.PENDING, B.ACCEPTED, B.COMPLETED])
def test_repeated_payment_success_is_a_no_op(booking_status):
    plan = plan_transition(_state(booking_status, P.PAID), A.PAYMENT_SUCCEEDED, SYSTEM_PRINCIPAL)

    assert plan.no_op is True
    assert plan.target == (booking_status, P.PAID)


def test_repeated_payment_failure_is_a_no_op():
    plan = plan_transition(_state(B.PENDING, P.FAILED), A.PAYMENT_FAILED, SYSTEM_PRINCIPAL)

    assert plan.no_op is True


def test_repeated_refund_processed_is_a_no_op():
    plan = plan_transition(_state(B.REJECTED, P.REFUNDED), A.REFUND_PROCESSED, SYSTEM_PRINCIPAL)

    assert plan.no_op is True


@pytest.mark.parametrize("payment_status", [P.REFUND_PENDING, P.REFUNDED])
def test_refund_failure_flags_reconciliation(payment_status):
    plan = plan_transition(_state(B.CANCELLED, payment_status), A.REFUND_FAILED, SYSTEM_PRINCIPAL)

    assert plan.target == (B.CANCELLED, P.REFUND_PENDING)
    assert plan.flag_reconciliation is True


def test_initialize_payment_only_once():
    fresh = _state(B.PENDING, P.PENDING, has_reference=False)
    assert plan_transition(fresh, A.INITIALIZE_PAYMENT, CLIENT).target == (B.PENDING, P.PENDING)

    with pytest.raises(InvalidTransition):
        plan_transition(_state(B.PENDING, P.PENDING), A.INITIALIZE_PAYMENT, CLIENT)


@pytest.mark.parametrize(
    "action,actor",
    [
        (A.INITIALIZE_PAYMENT, COMPANION),
        (A.INITIALIZE_PAYMENT, STRANGER),
        (A.ACCEPT, CLIENT),
        (A.REJECT, ADMIN),
        (A.COMPLETE, SYSTEM_PRINCIPAL),
        (A.CANCEL, STRANGER),
        (A.CANCEL, ADMIN),
        (A.EXPIRE, COMPANION),
        (A.REFUND_PROCESSED, CLIENT),
        (A.PAYMENT_SUCCEEDED, COMPANION),
    ],
)
def test_wrong_actor_is_rejected_before_state_checks(action, actor):
    # Authorization is checked first, even from a state the action could never leave.
    with pytest.raises(AuthorizationError) as exc_info:
        plan_transition(_state(B.COMPLETED, P.PAID), action, actor)

    assert exc_info.value.code == "NOT_AUTHORIZED"
    assert exc_info.value.details["action"] == action.value


def test_companion_of_another_booking_cannot_accept():
    other = Principal(user_id="companion-2", role=RoleName.COMPANION)

    with pytest.raises(AuthorizationError):
        plan_transition(_state(B.PENDING, P.PAID), A.ACCEPT, other)
