# backend/app/services/booking_service.py
"""
Booking Service for the companion marketplace

Orchestrates every booking action a client, companion or the payment
gateway can take:
- creation with a commission snapshot
- payment initialization, client-side verification and webhook charges
- accept / reject / complete / cancel
- refund settlement with a reconciliation fallback

Each action asks the state machine for a plan, persists it in one
transaction and only then talks to the gateway for refunds and sends
notifications. A failed refund never rolls a booking back; it leaves the
payment leg at ``refund_pending`` with ``needs_reconciliation`` set.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
import logging
from typing import Any, Callable, List, Optional
from urllib.parse import urlencode

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import RoleName
from ..core.exceptions import (
    AuthorizationError,
    BusinessRuleException,
    ConflictException,
    NotFoundException,
    RefundFailure,
    ValidationException,
)
from ..models.booking import Booking, BookingStatus, PaymentStatus
from ..models.notification import NotificationType
from ..principal import SYSTEM_PRINCIPAL, Principal
from ..repositories.factory import RepositoryFactory
from ..schemas.booking_state import BookingMoney, BookingStateResponse
from .base import BaseService
from .booking_state_machine import BookingAction, BookingState, TransitionPlan, plan_transition
from .commission_calculator import compute_split
from .notification_service import NotificationService, PendingNotification
from .payment_gateway import (
    InitializeResult,
    PaymentGatewayAdapter,
    VERIFY_FAILED,
    build_payment_gateway,
    check_captured_amount,
)
from .webhook_ledger_service import WebhookLedgerService

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


_TERMINAL_NOTICES = {
    BookingStatus.ACCEPTED: (
        NotificationType.BOOKING_ACCEPTED,
        "Booking Accepted",
        "Your booking has been accepted",
    ),
    BookingStatus.REJECTED: (
        NotificationType.BOOKING_REJECTED,
        "Booking Declined",
        "Your booking request was declined",
    ),
    BookingStatus.COMPLETED: (
        NotificationType.BOOKING_COMPLETED,
        "Booking Completed",
        "Your booking has been marked as completed",
    ),
    BookingStatus.CANCELLED: (
        NotificationType.BOOKING_CANCELLED,
        "Booking Cancelled",
        "A booking you were part of has been cancelled",
    ),
    BookingStatus.EXPIRED: (
        NotificationType.BOOKING_EXPIRED,
        "Booking Expired",
        "Your booking request has expired",
    ),
}


class BookingService(BaseService):
    """
    Service layer for booking and payment orchestration.

    Collaborators are injectable so tests and workers can supply their own
    gateway, notification sink, clock and expiration window.
    """

    def __init__(
        self,
        db: Session,
        gateway: Optional[PaymentGatewayAdapter] = None,
        notification_service: Optional[NotificationService] = None,
        *,
        expiration_hours: Optional[int] = None,
        callback_url: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(db)
        self._gateway = gateway
        self.notification_service = notification_service or NotificationService(db)
        self.expiration_window = timedelta(
            hours=expiration_hours or settings.booking_expiration_hours
        )
        self.callback_url = callback_url or settings.payment_callback_url
        self._clock = clock or _now_utc

        self.repository = RepositoryFactory.create_booking_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.platform_settings_repository = (
            RepositoryFactory.create_platform_settings_repository(db)
        )
        self.webhook_ledger = WebhookLedgerService(db)

    @property
    def gateway(self) -> PaymentGatewayAdapter:
        if self._gateway is None:
            self._gateway = build_payment_gateway()
        return self._gateway

    # Creation

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        principal: Principal,
        companion_id: str,
        start_time: datetime,
        duration_hours: int,
        location: Optional[str] = None,
        special_requests: Optional[str] = None,
    ) -> Booking:
        """
        Create a pending, unpaid booking with the commission snapshotted.

        Raises:
            AuthorizationError: caller is not a client
            ValidationException: bad duration or booking oneself
            NotFoundException: companion or companion profile missing
            ConflictException: an open booking with this companion already exists
        """
        if principal.role != RoleName.CLIENT:
            raise AuthorizationError(
                "Only clients can create bookings",
                details={"actor_role": principal.role.value},
            )
        if principal.user_id == companion_id:
            raise ValidationException("You cannot book yourself", code="SELF_BOOKING")
        if start_time is None:
            raise ValidationException("start_time is required", code="MISSING_START_TIME")

        client = self.user_repository.get_profile(principal.user_id)
        if client is None:
            raise NotFoundException(
                "Client profile not found",
                code="CLIENT_NOT_FOUND",
                details={"client_id": principal.user_id},
            )
        companion_user = self.user_repository.get_profile(companion_id)
        profile = self.user_repository.get_companion_profile(companion_id)
        if companion_user is None or profile is None:
            raise NotFoundException(
                "Companion not found",
                code="COMPANION_NOT_FOUND",
                details={"companion_id": companion_id},
            )

        if self.repository.find_open_between(principal.user_id, companion_id):
            raise ConflictException(
                "Please wait for your current booking to fulfil",
                code="OPEN_BOOKING_EXISTS",
                details={"companion_id": companion_id},
            )

        commission = self._current_commission_percentage()
        split = compute_split(profile.hourly_rate, duration_hours, commission)
        now = self._clock()

        with self.transaction():
            booking = self.repository.create(
                client_id=principal.user_id,
                companion_id=companion_id,
                start_time=_ensure_utc(start_time),
                duration_hours=duration_hours,
                location=location,
                special_requests=special_requests,
                hourly_rate=Decimal(str(profile.hourly_rate)),
                commission_percentage=commission,
                total_amount=split.total_amount,
                platform_fee=split.platform_fee,
                companion_earnings=split.companion_earnings,
                booking_status=BookingStatus.PENDING.value,
                payment_status=PaymentStatus.PENDING.value,
                created_at=now,
                expires_at=now + self.expiration_window,
            )

        self.log_operation(
            "create_booking",
            booking_id=booking.id,
            client_id=booking.client_id,
            companion_id=booking.companion_id,
            total_amount=str(booking.total_amount),
        )
        self._dispatch(
            [
                PendingNotification(
                    user_id=companion_id,
                    event_type=NotificationType.BOOKING_CREATED,
                    title="New Booking Request",
                    body=(
                        f"{client.full_name or 'A client'} wants to book you for "
                        f"{duration_hours} hours on {_ensure_utc(start_time):%b %d, %Y}"
                    ),
                    related_booking_id=booking.id,
                )
            ]
        )
        return booking

    def _current_commission_percentage(self) -> Decimal:
        record = self.platform_settings_repository.get_platform_settings()
        if record is not None and record.commission_percentage is not None:
            return Decimal(str(record.commission_percentage))
        return Decimal(str(settings.default_commission_percentage))

    # Payment

    @BaseService.measure_operation("initialize_payment")
    def initialize_payment(
        self,
        principal: Principal,
        booking_id: str,
        callback_url: Optional[str] = None,
    ) -> InitializeResult:
        """Open a gateway checkout for the booking total and store its reference."""
        booking = self._get_booking_or_404(booking_id)
        plan_transition(
            BookingState.from_booking(booking), BookingAction.INITIALIZE_PAYMENT, principal
        )

        client = self.user_repository.get_profile(booking.client_id)
        if client is None or not client.email:
            raise NotFoundException(
                "Client profile not found",
                code="CLIENT_NOT_FOUND",
                details={"client_id": booking.client_id},
            )
        profile = self.user_repository.get_companion_profile(booking.companion_id)
        settlement_target = profile.settlement_subaccount_code if profile else None

        resolved_callback = callback_url or self._default_callback_url(booking.id)
        result = self.gateway.initialize(
            client.email,
            booking.total_amount,
            {
                "booking_id": booking.id,
                "client_id": booking.client_id,
                "companion_id": booking.companion_id,
                "platform_fee": booking.platform_fee,
            },
            settlement_target=settlement_target,
            callback_url=resolved_callback,
        )

        with self.transaction():
            locked = self.repository.get_booking(booking.id, for_update=True)
            if locked is None:
                raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
            # A concurrent initialize may have won while we were at the gateway.
            plan_transition(
                BookingState.from_booking(locked), BookingAction.INITIALIZE_PAYMENT, principal
            )
            locked.payment_reference = result.reference
            self.repository.flush()

        self.log_operation("initialize_payment", booking_id=booking.id, reference=result.reference)
        return result

    def _default_callback_url(self, booking_id: str) -> Optional[str]:
        if not self.callback_url:
            return None
        separator = "&" if "?" in self.callback_url else "?"
        return f"{self.callback_url}{separator}{urlencode({'booking': booking_id})}"

    @BaseService.measure_operation("verify_payment")
    def verify_payment(self, principal: Principal, booking_id: str) -> Booking:
        """
        Client-triggered payment confirmation.

        Asks the gateway for the authoritative status of the stored reference
        and applies the result. A still-open checkout leaves the booking as is.
        """
        booking = self._get_booking_or_404(booking_id)
        state = BookingState.from_booking(booking)
        plan = plan_transition(state, BookingAction.PAYMENT_SUCCEEDED, principal)
        if plan.no_op:
            return booking
        if not booking.payment_reference:
            raise BusinessRuleException(
                "Payment has not been initialized for this booking",
                code="PAYMENT_NOT_INITIALIZED",
                details={"booking_id": booking.id},
            )

        result = self.gateway.verify(booking.payment_reference)
        if result.succeeded:
            check_captured_amount(booking.total_amount, result.amount, reference=result.reference)
            return self._apply_payment_succeeded(booking.id, principal)
        if result.status == VERIFY_FAILED:
            return self._apply_payment_failed(booking.id, principal)

        self.logger.info(
            "Payment still pending at gateway",
            extra={"booking_id": booking.id, "gateway_status": result.gateway_status},
        )
        return booking

    @BaseService.measure_operation("apply_gateway_charge")
    def apply_gateway_charge(
        self, reference: str, amount: Any, booking_id: Optional[str] = None
    ) -> Booking:
        """
        Apply a gateway-reported successful charge.

        The captured ``amount`` (major units) must equal the booking total;
        a mismatch raises before anything is written.
        """
        booking = self._get_booking_by_reference(reference)
        if booking_id and booking_id != booking.id:
            raise ValidationException(
                "Charge metadata does not match the booking for this reference",
                code="BOOKING_REFERENCE_MISMATCH",
                details={"reference": reference, "booking_id": booking_id},
            )
        check_captured_amount(booking.total_amount, amount, reference=reference)
        return self._apply_payment_succeeded(booking.id, SYSTEM_PRINCIPAL)

    @BaseService.measure_operation("flag_payment_mismatch")
    def flag_payment_mismatch(self, reference: str, reason: str) -> Booking:
        """
        Flag a booking whose captured charge did not match its total.

        Statuses are left alone; money moved at the gateway, so an operator
        decides whether to refund or honour the charge.
        """
        with self.transaction():
            booking = self._get_booking_by_reference(reference, for_update=True)
            booking.needs_reconciliation = True
            booking.reconciliation_reason = reason
            booking.updated_at = self._clock()
            self.repository.flush()

        self.logger.error(
            "Captured amount mismatch; booking flagged for reconciliation",
            extra={"booking_id": booking.id, "reference": reference, "reason": reason},
        )
        return booking

    @BaseService.measure_operation("apply_gateway_failure")
    def apply_gateway_failure(self, reference: str) -> Booking:
        booking = self._get_booking_by_reference(reference)
        return self._apply_payment_failed(booking.id, SYSTEM_PRINCIPAL)

    def _apply_payment_succeeded(self, booking_id: str, actor: Principal) -> Booking:
        now = self._clock()
        with self.transaction():
            booking = self._get_booking_or_404(booking_id, for_update=True)
            plan = plan_transition(
                BookingState.from_booking(booking), BookingAction.PAYMENT_SUCCEEDED, actor
            )
            if plan.no_op:
                return booking
            booking.payment_status = plan.target_payment_status.value
            booking.paid_at = now
            booking.updated_at = now
            self.repository.flush()

        self.log_operation("payment_succeeded", booking_id=booking.id, actor=actor.user_id)
        self._dispatch(
            [
                PendingNotification(
                    user_id=booking.companion_id,
                    event_type=NotificationType.PAYMENT_RECEIVED,
                    title="Payment Received",
                    body="A booking request has been paid and is waiting for your response",
                    related_booking_id=booking.id,
                )
            ]
        )
        return booking

    def _apply_payment_failed(self, booking_id: str, actor: Principal) -> Booking:
        with self.transaction():
            booking = self._get_booking_or_404(booking_id, for_update=True)
            plan = plan_transition(
                BookingState.from_booking(booking), BookingAction.PAYMENT_FAILED, actor
            )
            if not plan.no_op:
                booking.payment_status = plan.target_payment_status.value
                booking.updated_at = self._clock()
                self.repository.flush()

        self.log_operation("payment_failed", booking_id=booking.id, actor=actor.user_id)
        return booking

    # Companion / party actions

    @BaseService.measure_operation("accept_booking")
    def accept(self, principal: Principal, booking_id: str) -> Booking:
        return self._transition(principal, booking_id, BookingAction.ACCEPT)

    @BaseService.measure_operation("reject_booking")
    def reject(self, principal: Principal, booking_id: str) -> Booking:
        return self._transition(principal, booking_id, BookingAction.REJECT)

    @BaseService.measure_operation("complete_booking")
    def complete(self, principal: Principal, booking_id: str) -> Booking:
        return self._transition(principal, booking_id, BookingAction.COMPLETE)

    @BaseService.measure_operation("cancel_booking")
    def cancel(self, principal: Principal, booking_id: str) -> Booking:
        return self._transition(principal, booking_id, BookingAction.CANCEL)

    def _transition(self, principal: Principal, booking_id: str, action: BookingAction) -> Booking:
        now = self._clock()
        with self.transaction():
            booking = self._get_booking_or_404(booking_id, for_update=True)
            plan = plan_transition(BookingState.from_booking(booking), action, principal)
            self._apply_plan(booking, plan, principal, now)
            if action == BookingAction.ACCEPT:
                self.user_repository.increment_companion_bookings(booking.companion_id)
            self.repository.flush()

        self.log_operation(
            action.value,
            booking_id=booking.id,
            actor=principal.user_id,
            booking_status=booking.booking_status,
            payment_status=booking.payment_status,
        )

        if plan.requires_refund:
            self.settle_refund(booking.id, plan)
            self.repository.refresh(booking)

        notice = self._notice_for(booking, plan.target_booking_status, principal.user_id)
        self._dispatch([notice] if notice else [])
        return booking

    def _apply_plan(
        self, booking: Booking, plan: TransitionPlan, actor: Principal, now: datetime
    ) -> None:
        booking.booking_status = plan.target_booking_status.value
        booking.payment_status = plan.target_payment_status.value
        booking.updated_at = now
        if plan.target_booking_status == BookingStatus.ACCEPTED:
            booking.accepted_at = now
        elif plan.target_booking_status == BookingStatus.COMPLETED:
            booking.completed_at = now
        elif plan.target_booking_status == BookingStatus.CANCELLED:
            booking.cancelled_at = now
            booking.cancelled_by_id = actor.user_id

    def _notice_for(
        self, booking: Booking, status: BookingStatus, actor_id: str
    ) -> Optional[PendingNotification]:
        template = _TERMINAL_NOTICES.get(status)
        if template is None:
            return None
        event_type, title, body = template
        if actor_id == SYSTEM_PRINCIPAL.user_id:
            recipient = booking.client_id
        else:
            recipient = booking.counterparty_of(actor_id)
        return PendingNotification(
            user_id=recipient,
            event_type=event_type,
            title=title,
            body=body,
            related_booking_id=booking.id,
        )

    # Refunds

    def settle_refund(self, booking_id: str, plan: TransitionPlan) -> bool:
        """
        Refund a booking already committed at ``refund_pending``.

        Returns True when the gateway accepted the refund. On failure the
        booking keeps its new status, the payment leg stays ``refund_pending``
        and the booking is flagged for manual reconciliation.
        """
        booking = self._get_booking_or_404(booking_id)
        reference = booking.payment_reference
        flagged_before = bool(booking.needs_reconciliation)
        try:
            if not reference:
                raise RefundFailure(booking.id, "booking has no payment reference")
            refund = self.gateway.refund(reference)
        except RefundFailure as exc:
            self.logger.error(
                "Refund failed; booking flagged for reconciliation",
                extra={
                    "booking_id": booking.id,
                    "reference": reference,
                    "action": plan.action.value,
                    "reason": exc.reason,
                },
            )
            with self.transaction():
                self.repository.update_booking(
                    booking.id,
                    needs_reconciliation=True,
                    reconciliation_reason=f"{plan.action.value} refund failed: {exc.reason}",
                    updated_at=self._clock(),
                )
            return False

        refunded_status = plan.refunded_payment_status or PaymentStatus.REFUNDED
        with self.transaction():
            moved = self.repository.compare_and_set(
                booking.id,
                expected_booking_status=plan.target_booking_status,
                expected_payment_status=PaymentStatus.REFUND_PENDING,
                expected_needs_reconciliation=flagged_before,
                payment_status=refunded_status.value,
                refund_id=refund.refund_id,
                updated_at=self._clock(),
            )
        if not moved:
            # A refund webhook landed first: refund.processed settled it or
            # refund.failed flagged it, and either outcome stands.
            self.logger.info(
                "Refund outcome already recorded by webhook",
                extra={"booking_id": booking.id, "reference": reference},
            )
        self.log_operation(
            "refund",
            booking_id=booking.id,
            reference=reference,
            refund_id=refund.refund_id,
            action=plan.action.value,
        )
        return True

    @BaseService.measure_operation("retry_refund")
    def retry_refund(self, booking_id: str) -> bool:
        """
        Ask the gateway again for a refund that previously failed.

        Only a ``refund_pending`` booking flagged for reconciliation is retried.
        Success settles the payment leg and clears the flag; a failure bumps
        ``refund_attempts`` and keeps the booking flagged. Returns True when
        the refund went through.
        """
        booking = self._get_booking_or_404(booking_id)
        state = BookingState.from_booking(booking)
        if state.payment_status != PaymentStatus.REFUND_PENDING or not booking.needs_reconciliation:
            return False

        reference = booking.payment_reference
        attempts = (booking.refund_attempts or 0) + 1
        try:
            if not reference:
                raise RefundFailure(booking.id, "booking has no payment reference")
            refund = self.gateway.refund(reference)
        except RefundFailure as exc:
            self.logger.warning(
                "Refund retry failed",
                extra={"booking_id": booking.id, "attempt": attempts, "reason": exc.reason},
            )
            with self.transaction():
                self.repository.update_booking(
                    booking.id,
                    refund_attempts=attempts,
                    reconciliation_reason=f"refund retry {attempts} failed: {exc.reason}",
                    updated_at=self._clock(),
                )
            return False

        plan = plan_transition(state, BookingAction.REFUND_PROCESSED, SYSTEM_PRINCIPAL)
        with self.transaction():
            moved = self.repository.compare_and_set(
                booking.id,
                expected_booking_status=state.booking_status,
                expected_payment_status=PaymentStatus.REFUND_PENDING,
                expected_needs_reconciliation=True,
                payment_status=plan.target_payment_status.value,
                refund_id=refund.refund_id,
                refund_attempts=attempts,
                needs_reconciliation=False,
                reconciliation_reason=None,
                updated_at=self._clock(),
            )
        if moved:
            self.log_operation(
                "refund_retry", booking_id=booking.id, reference=reference, attempt=attempts
            )
            self._dispatch(
                [
                    PendingNotification(
                        user_id=booking.client_id,
                        event_type=NotificationType.PAYMENT_REFUNDED,
                        title="Payment Refunded",
                        body="Your payment for this booking has been refunded",
                        related_booking_id=booking.id,
                    )
                ]
            )
        return True

    @BaseService.measure_operation("apply_refund_processed")
    def apply_refund_processed(self, reference: str, refund_id: Optional[str] = None) -> Booking:
        with self.transaction():
            booking = self._get_booking_by_reference(reference, for_update=True)
            plan = plan_transition(
                BookingState.from_booking(booking),
                BookingAction.REFUND_PROCESSED,
                SYSTEM_PRINCIPAL,
            )
            if not plan.no_op:
                booking.payment_status = plan.target_payment_status.value
                if refund_id and not booking.refund_id:
                    booking.refund_id = refund_id
                booking.updated_at = self._clock()
                self.repository.flush()
                refunded_now = True
            else:
                refunded_now = False

        if refunded_now:
            self.log_operation("refund_processed", booking_id=booking.id, reference=reference)
            self._dispatch(
                [
                    PendingNotification(
                        user_id=booking.client_id,
                        event_type=NotificationType.PAYMENT_REFUNDED,
                        title="Payment Refunded",
                        body="Your payment for this booking has been refunded",
                        related_booking_id=booking.id,
                    )
                ]
            )
        return booking

    @BaseService.measure_operation("apply_refund_failed")
    def apply_refund_failed(self, reference: str, reason: Optional[str] = None) -> Booking:
        with self.transaction():
            booking = self._get_booking_by_reference(reference, for_update=True)
            plan = plan_transition(
                BookingState.from_booking(booking), BookingAction.REFUND_FAILED, SYSTEM_PRINCIPAL
            )
            booking.payment_status = plan.target_payment_status.value
            booking.needs_reconciliation = plan.flag_reconciliation
            booking.reconciliation_reason = (
                f"gateway reported refund failure: {reason or 'unknown'}"
            )
            booking.updated_at = self._clock()
            self.repository.flush()

        self.logger.error(
            "Gateway reported refund failure; booking flagged for reconciliation",
            extra={"booking_id": booking.id, "reference": reference, "reason": reason},
        )
        return booking

    # Reads

    @BaseService.measure_operation("get_booking_state")
    def get_booking_state(self, principal: Principal, booking_id: str) -> BookingStateResponse:
        """Compound state for a party to the booking or an operator."""
        booking = self._get_booking_or_404(booking_id)
        if not (principal.is_admin or principal.is_system or booking.is_party(principal.user_id)):
            raise AuthorizationError(
                "You do not have access to this booking",
                details={"booking_id": booking_id, "actor_id": principal.user_id},
            )

        event_ids: List[str] = []
        if principal.is_admin or principal.is_system:
            event_ids = [
                event.event_id
                for event in self.webhook_ledger.events_for_booking(booking.id)
            ]

        return BookingStateResponse(
            booking_id=booking.id,
            client_id=booking.client_id,
            companion_id=booking.companion_id,
            booking_status=booking.booking_status,
            payment_status=booking.payment_status,
            payment_reference=booking.payment_reference,
            refund_id=booking.refund_id,
            needs_reconciliation=bool(booking.needs_reconciliation),
            reconciliation_reason=booking.reconciliation_reason,
            money=BookingMoney(
                hourly_rate=booking.hourly_rate,
                commission_percentage=booking.commission_percentage,
                total_amount=booking.total_amount,
                platform_fee=booking.platform_fee,
                companion_earnings=booking.companion_earnings,
            ),
            created_at=booking.created_at,
            expires_at=booking.expires_at,
            paid_at=booking.paid_at,
            accepted_at=booking.accepted_at,
            completed_at=booking.completed_at,
            cancelled_at=booking.cancelled_at,
            webhook_event_ids=event_ids,
        )

    # Helpers

    def _get_booking_or_404(self, booking_id: str, *, for_update: bool = False) -> Booking:
        booking = self.repository.get_booking(booking_id, for_update=for_update)
        if booking is None:
            raise NotFoundException(
                "Booking not found",
                code="BOOKING_NOT_FOUND",
                details={"booking_id": booking_id},
            )
        return booking

    def _get_booking_by_reference(self, reference: str, *, for_update: bool = False) -> Booking:
        if not reference:
            raise ValidationException("Payment reference is required", code="MISSING_REFERENCE")
        booking = self.repository.get_by_payment_reference(reference)
        if booking is None:
            raise NotFoundException(
                "No booking for payment reference",
                code="BOOKING_NOT_FOUND",
                details={"reference": reference},
            )
        if for_update:
            return self._get_booking_or_404(booking.id, for_update=True)
        return booking

    def _dispatch(self, pending: List[PendingNotification]) -> None:
        if pending:
            self.notification_service.dispatch(pending)
