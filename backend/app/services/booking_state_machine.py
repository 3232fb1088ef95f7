"""
Transition table for the booking x payment compound state.

Pure functions only: nothing here touches the database or the gateway.
BookingService and the expiration sweeper ask :func:`plan_transition` what
to do and then carry the plan out.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app.core.enums import RoleName
from app.core.exceptions import AuthorizationError, InvalidTransition
from app.models.booking import Booking, BookingStatus, PaymentStatus
from app.principal import Principal


class BookingAction(str, Enum):
    INITIALIZE_PAYMENT = "initialize_payment"
    PAYMENT_SUCCEEDED = "payment_succeeded"
    PAYMENT_FAILED = "payment_failed"
    ACCEPT = "accept"
    REJECT = "reject"
    COMPLETE = "complete"
    CANCEL = "cancel"
    EXPIRE = "expire"
    REFUND_PROCESSED = "refund_processed"
    REFUND_FAILED = "refund_failed"


@dataclass(frozen=True)
class BookingState:
    """Compound state plus the facts the guards need."""

    booking_status: BookingStatus
    payment_status: PaymentStatus
    client_id: str
    companion_id: str
    has_payment_reference: bool = False
    booking_id: Optional[str] = None

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingState":
        booking_status, payment_status = booking.status_pair
        return cls(
            booking_status=booking_status,
            payment_status=payment_status,
            client_id=booking.client_id,
            companion_id=booking.companion_id,
            has_payment_reference=bool(booking.payment_reference),
            booking_id=booking.id,
        )


@dataclass(frozen=True)
class TransitionPlan:
    """
    What a legal action does to a booking.

    ``target_*`` is the state to persist before any gateway call. When
    ``requires_refund`` is set the caller refunds next and, on success, moves
    the payment leg to ``refunded_payment_status``.
    """

    action: BookingAction
    target_booking_status: BookingStatus
    target_payment_status: PaymentStatus
    requires_refund: bool = False
    refunded_payment_status: Optional[PaymentStatus] = None
    no_op: bool = False
    flag_reconciliation: bool = False

    @property
    def target(self) -> tuple[BookingStatus, PaymentStatus]:
        return self.target_booking_status, self.target_payment_status


_REFUNDABLE_CANCEL_STATES = frozenset(
    {
        (BookingStatus.PENDING, PaymentStatus.PAID),
        (BookingStatus.ACCEPTED, PaymentStatus.PAID),
    }
)
_UNPAID = frozenset({PaymentStatus.PENDING, PaymentStatus.FAILED})


def _invalid(state: BookingState, action: BookingAction) -> InvalidTransition:
    return InvalidTransition(
        action.value,
        state.booking_status.value,
        state.payment_status.value,
        booking_id=state.booking_id,
    )


def _deny(state: BookingState, action: BookingAction, actor: Principal, reason: str) -> None:
    raise AuthorizationError(
        reason,
        details={
            "action": action.value,
            "booking_id": state.booking_id,
            "actor_id": actor.user_id,
            "actor_role": actor.role.value,
        },
    )


def _authorize(state: BookingState, action: BookingAction, actor: Principal) -> None:
    is_client = actor.role == RoleName.CLIENT and actor.user_id == state.client_id
    is_companion = actor.role == RoleName.COMPANION and actor.user_id == state.companion_id

    if action == BookingAction.INITIALIZE_PAYMENT:
        if not is_client:
            _deny(state, action, actor, "Only the booking's client can pay for it")
    elif action in (BookingAction.PAYMENT_SUCCEEDED, BookingAction.PAYMENT_FAILED):
        if not (actor.is_system or is_client):
            _deny(state, action, actor, "Only the client or the gateway can settle a payment")
    elif action in (BookingAction.ACCEPT, BookingAction.REJECT, BookingAction.COMPLETE):
        if not is_companion:
            _deny(
                state, action, actor, f"Only the booked companion can {action.value} this booking"
            )
    elif action == BookingAction.CANCEL:
        if not (is_client or is_companion):
            _deny(state, action, actor, "Only a party to the booking can cancel it")
    elif action in (
        BookingAction.EXPIRE,
        BookingAction.REFUND_PROCESSED,
        BookingAction.REFUND_FAILED,
    ):
        if not actor.is_system:
            _deny(state, action, actor, f"{action.value} is a system-only action")


def plan_transition(
    state: BookingState, action: BookingAction, actor: Principal
) -> TransitionPlan:
    """
    Decide what ``action`` by ``actor`` does to a booking in ``state``.

    Raises:
        AuthorizationError: the actor may not perform this action on this booking
        InvalidTransition: the action is not legal from the current compound state
    """
    _authorize(state, action, actor)

    booking_status = state.booking_status
    payment_status = state.payment_status
    pair = (booking_status, payment_status)

    def stay(**flags: bool) -> TransitionPlan:
        return TransitionPlan(action, booking_status, payment_status, **flags)

    if action == BookingAction.INITIALIZE_PAYMENT:
        unpaid_pending = pair == (BookingStatus.PENDING, PaymentStatus.PENDING)
        if unpaid_pending and not state.has_payment_reference:
            return stay()
        raise _invalid(state, action)

    if action == BookingAction.PAYMENT_SUCCEEDED:
        # The gateway is authoritative: a card retried on the same checkout can
        # succeed after an earlier attempt was reported failed.
        if booking_status == BookingStatus.PENDING and payment_status in _UNPAID:
            return TransitionPlan(action, BookingStatus.PENDING, PaymentStatus.PAID)
        # Webhook and client verification race; whoever lands second changes nothing.
        if payment_status == PaymentStatus.PAID and booking_status in (
            BookingStatus.PENDING,
            BookingStatus.ACCEPTED,
            BookingStatus.COMPLETED,
        ):
            return stay(no_op=True)
        raise _invalid(state, action)

    if action == BookingAction.PAYMENT_FAILED:
        if pair == (BookingStatus.PENDING, PaymentStatus.PENDING):
            return TransitionPlan(action, BookingStatus.PENDING, PaymentStatus.FAILED)
        if pair == (BookingStatus.PENDING, PaymentStatus.FAILED):
            return stay(no_op=True)
        raise _invalid(state, action)

    if action == BookingAction.ACCEPT:
        if pair == (BookingStatus.PENDING, PaymentStatus.PAID):
            return TransitionPlan(action, BookingStatus.ACCEPTED, PaymentStatus.PAID)
        raise _invalid(state, action)

    if action == BookingAction.REJECT:
        if pair == (BookingStatus.PENDING, PaymentStatus.PAID):
            return TransitionPlan(
                action,
                BookingStatus.REJECTED,
                PaymentStatus.REFUND_PENDING,
                requires_refund=True,
                refunded_payment_status=PaymentStatus.REFUNDED,
            )
        if booking_status == BookingStatus.PENDING and payment_status in _UNPAID:
            return TransitionPlan(action, BookingStatus.REJECTED, payment_status)
        raise _invalid(state, action)

    if action == BookingAction.COMPLETE:
        if pair == (BookingStatus.ACCEPTED, PaymentStatus.PAID):
            return TransitionPlan(action, BookingStatus.COMPLETED, PaymentStatus.PAID)
        raise _invalid(state, action)

    if action == BookingAction.CANCEL:
        if pair in _REFUNDABLE_CANCEL_STATES:
            return TransitionPlan(
                action,
                BookingStatus.CANCELLED,
                PaymentStatus.REFUND_PENDING,
                requires_refund=True,
                refunded_payment_status=PaymentStatus.REFUNDED,
            )
        if booking_status == BookingStatus.PENDING and payment_status in _UNPAID:
            return TransitionPlan(action, BookingStatus.CANCELLED, payment_status)
        raise _invalid(state, action)

    if action == BookingAction.EXPIRE:
        if pair == (BookingStatus.PENDING, PaymentStatus.PAID):
            return TransitionPlan(
                action,
                BookingStatus.EXPIRED,
                PaymentStatus.REFUND_PENDING,
                requires_refund=True,
                refunded_payment_status=PaymentStatus.REFUNDED,
            )
        raise _invalid(state, action)

    if action == BookingAction.REFUND_PROCESSED:
        if payment_status == PaymentStatus.REFUND_PENDING:
            return TransitionPlan(action, booking_status, PaymentStatus.REFUNDED)
        if payment_status == PaymentStatus.REFUNDED:
            return stay(no_op=True)
        raise _invalid(state, action)

    if action == BookingAction.REFUND_FAILED:
        # A refund the gateway accepted can still bounce later; money is not back.
        if payment_status in (PaymentStatus.REFUND_PENDING, PaymentStatus.REFUNDED):
            return TransitionPlan(
                action,
                booking_status,
                PaymentStatus.REFUND_PENDING,
                flag_reconciliation=True,
            )
        raise _invalid(state, action)

    raise _invalid(state, action)
