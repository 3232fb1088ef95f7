"""Commission and settlement split calculations for bookings."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from app.core.exceptions import ValidationException

TWO_PLACES = Decimal("0.01")
MINOR_UNITS_PER_MAJOR = 100


@dataclass(frozen=True)
class CommissionSplit:
    """Money snapshot taken when a booking is created."""

    total_amount: Decimal
    platform_fee: Decimal
    companion_earnings: Decimal


def round2(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _to_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationException(
            f"{field} must be a number",
            code="INVALID_AMOUNT",
            details={field: value},
        )
    try:
        # str() keeps floats like 0.1 from dragging binary noise into the result
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationException(
            f"{field} must be a number",
            code="INVALID_AMOUNT",
            details={field: value},
        ) from exc
    if not result.is_finite():
        raise ValidationException(
            f"{field} must be finite",
            code="INVALID_AMOUNT",
            details={field: str(value)},
        )
    return result


def compute_split(
    hourly_rate: Any,
    duration_hours: Any,
    commission_percentage: Any,
) -> CommissionSplit:
    """
    Split a booking total into the platform fee and the companion's earnings.

    Earnings are the remainder after the rounded fee, so
    ``platform_fee + companion_earnings == total_amount`` holds exactly.

    Raises:
        ValidationException: negative rate, a non-integer or sub-hour duration,
            or a commission outside 0-100.
    """
    rate = _to_decimal(hourly_rate, "hourly_rate")
    if rate < 0:
        raise ValidationException(
            "Hourly rate cannot be negative",
            code="NEGATIVE_HOURLY_RATE",
            details={"hourly_rate": str(rate)},
        )

    if isinstance(duration_hours, bool) or not isinstance(duration_hours, int):
        raise ValidationException(
            "Duration must be a whole number of hours",
            code="INVALID_DURATION",
            details={"duration_hours": duration_hours},
        )
    if duration_hours < 1:
        raise ValidationException(
            "Duration must be at least one hour",
            code="INVALID_DURATION",
            details={"duration_hours": duration_hours},
        )

    commission = _to_decimal(commission_percentage, "commission_percentage")
    if commission < 0 or commission > 100:
        raise ValidationException(
            "Commission percentage must be between 0 and 100",
            code="INVALID_COMMISSION",
            details={"commission_percentage": str(commission)},
        )

    total_amount = round2(rate * duration_hours)
    platform_fee = round2(total_amount * commission / Decimal(100))
    return CommissionSplit(
        total_amount=total_amount,
        platform_fee=platform_fee,
        companion_earnings=total_amount - platform_fee,
    )


def to_minor_units(amount: Any) -> int:
    """Convert a major-unit amount (naira) to the gateway's integer minor unit (kobo)."""
    value = _to_decimal(amount, "amount")
    return int((value * MINOR_UNITS_PER_MAJOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int) -> Decimal:
    return round2(Decimal(int(amount)) / MINOR_UNITS_PER_MAJOR)
