# backend/app/repositories/booking_repository.py
"""
Booking Repository for the booking engine

Implements the narrow set of booking queries the orchestration layer needs:
- get/update by id
- lookup by gateway payment reference (webhook correlation)
- open-booking check between a client and a companion
- the expiration scan for stale paid bookings
- guarded compare-and-set updates for the sweeper's re-check
"""

from datetime import datetime
import logging
from typing import Any, List, Optional

from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.booking import Booking, BookingStatus, PaymentStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

OPEN_BOOKING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.ACCEPTED.value)


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def get_booking(self, booking_id: str, *, for_update: bool = False) -> Optional[Booking]:
        return self.get_by_id(booking_id, for_update=for_update)

    def update_booking(self, booking_id: str, **fields: Any) -> Optional[Booking]:
        return self.update(booking_id, **fields)

    def get_by_payment_reference(self, reference: str) -> Optional[Booking]:
        """Find the booking a gateway reference was issued for."""
        return self.find_one_by(payment_reference=reference)

    def find_open_between(self, client_id: str, companion_id: str) -> List[Booking]:
        """Pending or accepted bookings between the same client and companion."""
        query = self._build_query().filter(
            Booking.client_id == client_id,
            Booking.companion_id == companion_id,
            Booking.booking_status.in_(OPEN_BOOKING_STATUSES),
        )
        return self._execute_query(query)

    def find_stale_paid_pending(self, cutoff: datetime, *, limit: int = 500) -> List[Booking]:
        """
        Bookings still waiting on the companion, already paid, created before ``cutoff``.

        Oldest first so a bounded batch always drains the longest-waiting bookings.
        """
        query = (
            self._build_query()
            .filter(
                and_(
                    Booking.booking_status == BookingStatus.PENDING.value,
                    Booking.payment_status == PaymentStatus.PAID.value,
                    Booking.created_at < cutoff,
                )
            )
            .order_by(Booking.created_at.asc())
            .limit(limit)
        )
        return self._execute_query(query)

    def find_refunds_to_retry(self, *, max_attempts: int, limit: int = 500) -> List[Booking]:
        """
        Flagged ``refund_pending`` bookings that still have refund attempts left.

        Least-tried first so a booking that keeps failing cannot starve the rest.
        """
        query = (
            self._build_query()
            .filter(
                and_(
                    Booking.payment_status == PaymentStatus.REFUND_PENDING.value,
                    Booking.needs_reconciliation.is_(True),
                    Booking.refund_attempts < max_attempts,
                )
            )
            .order_by(Booking.refund_attempts.asc(), Booking.created_at.asc())
            .limit(limit)
        )
        return self._execute_query(query)

    def compare_and_set(
        self,
        booking_id: str,
        *,
        expected_booking_status: BookingStatus,
        expected_payment_status: PaymentStatus,
        expected_needs_reconciliation: Optional[bool] = None,
        **fields: Any,
    ) -> bool:
        """
        Apply ``fields`` only if the booking is still in the expected compound state.

        ``expected_needs_reconciliation`` additionally pins the reconciliation
        flag. Returns False when a concurrent writer already moved the booking
        on; nothing is written in that case.
        """
        criteria = [
            Booking.id == booking_id,
            Booking.booking_status == expected_booking_status.value,
            Booking.payment_status == expected_payment_status.value,
        ]
        if expected_needs_reconciliation is not None:
            criteria.append(Booking.needs_reconciliation.is_(expected_needs_reconciliation))
        try:
            updated = (
                self.db.query(Booking)
                .filter(*criteria)
                .update(fields, synchronize_session="fetch")
            )
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Guarded update failed for booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to update booking: {str(e)}")
        return updated == 1
