# backend/app/services/expiration_sweeper.py
"""
Expiration sweep for paid bookings the companion never answered.

A booking that is still ``pending`` but already ``paid`` when its
expiration window runs out is moved to ``expired`` and refunded. Each
booking is handled on its own: one failure is counted and logged and the
scan carries on. Unpaid pending bookings are never touched; there is
nothing to refund.

A second pass retries refunds that failed earlier: flagged
``refund_pending`` bookings get up to ``refund_retry_max_attempts`` more
gateway calls before they are left to an operator.
"""

from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
import logging
from typing import Dict, Optional, Set

from sqlalchemy.orm import Session

from ..core.config import settings
from ..models.booking import BookingStatus, PaymentStatus
from ..models.notification import NotificationType
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..principal import SYSTEM_PRINCIPAL
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .booking_service import BookingService
from .booking_state_machine import BookingAction, BookingState, plan_transition
from .notification_service import NotificationService, PendingNotification
from .payment_gateway import PaymentGatewayAdapter

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 500

OUTCOME_SKIPPED = "skipped"
OUTCOME_REFUNDED = "refunded"
OUTCOME_REFUND_FAILED = "refund_failed"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SweepResult:
    scanned: int = 0
    expired: int = 0
    refunded: int = 0
    refund_failures: int = 0
    skipped: int = 0
    errors: int = 0
    refunds_retried: int = 0
    refunds_recovered: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def _record_sweep_metrics(result: SweepResult) -> None:
    try:
        for outcome, count in (
            ("expired", result.expired),
            (OUTCOME_REFUNDED, result.refunded),
            (OUTCOME_REFUND_FAILED, result.refund_failures),
            (OUTCOME_SKIPPED, result.skipped),
            ("error", result.errors),
            ("refund_retried", result.refunds_retried),
            ("refund_recovered", result.refunds_recovered),
        ):
            prometheus_metrics.record_sweep_outcome(outcome, count)
    except ValueError as exc:
        logger.debug("Failed to record sweep metrics: %s", exc)


class ExpirationSweeper(BaseService):
    """Expire and refund stale paid bookings, then retry failed refunds."""

    def __init__(
        self,
        db: Session,
        gateway: Optional[PaymentGatewayAdapter] = None,
        notification_service: Optional[NotificationService] = None,
        *,
        expiration_hours: Optional[int] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        refund_retry_max_attempts: Optional[int] = None,
        booking_service: Optional[BookingService] = None,
    ):
        super().__init__(db)
        self.notification_service = notification_service or NotificationService(db)
        self.booking_service = booking_service or BookingService(
            db, gateway=gateway, notification_service=self.notification_service
        )
        self.expiration_window = timedelta(
            hours=expiration_hours or settings.booking_expiration_hours
        )
        self.batch_size = batch_size
        self.refund_retry_max_attempts = (
            refund_retry_max_attempts
            if refund_retry_max_attempts is not None
            else settings.refund_retry_max_attempts
        )
        self.repository = RepositoryFactory.create_booking_repository(db)

    @BaseService.measure_operation("sweep_expired_bookings")
    def sweep(self, now: Optional[datetime] = None) -> SweepResult:
        """
        Expire every paid booking created before ``now - expiration window``
        and retry the refunds still waiting on reconciliation.

        Returns the per-outcome counts for the run.
        """
        now = now or _now_utc()
        cutoff = now - self.expiration_window
        result = SweepResult()
        failed_this_run: Set[Optional[str]] = set()

        candidates = self.repository.find_stale_paid_pending(cutoff, limit=self.batch_size)
        # Plain values: a rollback below must not force a reload per booking
        snapshots = [BookingState.from_booking(booking) for booking in candidates]
        result.scanned = len(snapshots)

        for state in snapshots:
            try:
                outcome = self._expire_one(state, now)
            except Exception as exc:
                self.db.rollback()
                result.errors += 1
                self.logger.exception(
                    "Failed to expire booking",
                    extra={"booking_id": state.booking_id, "error": str(exc)},
                )
                continue

            if outcome == OUTCOME_SKIPPED:
                result.skipped += 1
                continue
            result.expired += 1
            if outcome == OUTCOME_REFUNDED:
                result.refunded += 1
            else:
                result.refund_failures += 1
                failed_this_run.add(state.booking_id)

        self._retry_failed_refunds(result, skip=failed_this_run)

        _record_sweep_metrics(result)
        self.log_operation("sweep_expired_bookings", cutoff=cutoff.isoformat(), **result.to_dict())
        return result

    def _retry_failed_refunds(self, result: SweepResult, *, skip: Set[Optional[str]]) -> None:
        if self.refund_retry_max_attempts <= 0:
            return
        flagged = self.repository.find_refunds_to_retry(
            max_attempts=self.refund_retry_max_attempts, limit=self.batch_size
        )
        # A refund that failed moments ago in this run waits for the next one
        booking_ids = [booking.id for booking in flagged if booking.id not in skip]
        for booking_id in booking_ids:
            result.refunds_retried += 1
            try:
                recovered = self.booking_service.retry_refund(booking_id)
            except Exception as exc:
                self.db.rollback()
                result.errors += 1
                self.logger.exception(
                    "Failed to retry refund",
                    extra={"booking_id": booking_id, "error": str(exc)},
                )
                continue
            if recovered:
                result.refunds_recovered += 1

    def _expire_one(self, state: BookingState, now: datetime) -> str:
        plan = plan_transition(state, BookingAction.EXPIRE, SYSTEM_PRINCIPAL)
        booking_id = state.booking_id
        if booking_id is None:
            raise ValueError("Booking snapshot has no id")

        # Re-check at write time: a concurrent accept or cancel wins.
        with self.transaction():
            moved = self.repository.compare_and_set(
                booking_id,
                expected_booking_status=BookingStatus.PENDING,
                expected_payment_status=PaymentStatus.PAID,
                booking_status=plan.target_booking_status.value,
                payment_status=plan.target_payment_status.value,
                updated_at=now,
            )
        if not moved:
            self.logger.info(
                "Booking moved on before it could expire", extra={"booking_id": booking_id}
            )
            return OUTCOME_SKIPPED

        refunded = self.booking_service.settle_refund(booking_id, plan)
        self.notification_service.dispatch(
            [
                PendingNotification(
                    user_id=state.client_id,
                    event_type=NotificationType.BOOKING_EXPIRED,
                    title="Booking Expired",
                    body=self._expired_body(refunded),
                    related_booking_id=booking_id,
                )
            ]
        )
        return OUTCOME_REFUNDED if refunded else OUTCOME_REFUND_FAILED

    @staticmethod
    def _expired_body(refunded: bool) -> str:
        if refunded:
            return "Your booking request has expired and payment has been refunded"
        return "Your booking request has expired; your refund is being processed"
