# backend/app/core/exceptions.py
"""
Domain-specific exceptions for the booking and payment engine.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when input shape or range validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Booking / payment exceptions

ValidationError = ValidationException


class AuthorizationError(ForbiddenException):
    """Raised when the actor is not a party to the booking or has the wrong role."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="NOT_AUTHORIZED", details=details or {})


class InvalidTransition(BusinessRuleException):
    """Raised when an action is not legal from the booking's current compound state."""

    def __init__(
        self,
        action: str,
        booking_status: str,
        payment_status: str,
        *,
        booking_id: Optional[str] = None,
    ):
        super().__init__(
            message=(
                f"Cannot {action} a booking in state ({booking_status}, {payment_status})"
            ),
            code="INVALID_TRANSITION",
            details={
                "action": action,
                "booking_status": booking_status,
                "payment_status": payment_status,
                "booking_id": booking_id,
            },
        )
        self.action = action
        self.booking_status = booking_status
        self.payment_status = payment_status


class PaymentAmountMismatch(BusinessRuleException):
    """Raised when the gateway reports a captured amount that differs from the booking total.

    Never retried automatically; requires human review.
    """

    def __init__(self, expected: Any, actual: Any, *, reference: Optional[str] = None):
        super().__init__(
            message=f"Payment amount {actual} does not match booking total {expected}",
            code="PAYMENT_AMOUNT_MISMATCH",
            details={"expected": str(expected), "actual": str(actual), "reference": reference},
        )
        self.expected = expected
        self.actual = actual
        self.reference = reference


class PaymentGatewayError(ServiceException):
    """Raised when a payment gateway call fails, times out, or returns garbage.

    Transient by classification: callers (or the sweeper) retry later.
    """

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        operation: Optional[str] = None,
        error_body: Any | None = None,
    ):
        super().__init__(
            message=message,
            code="PAYMENT_GATEWAY_ERROR",
            details={"operation": operation, "gateway_status": status_code},
        )
        self.gateway_status = status_code
        self.operation = operation
        self.error_body = error_body


class RefundFailure(PaymentGatewayError):
    """Raised when the refund leg of a transition could not be completed."""

    def __init__(self, reference: str, reason: str):
        super().__init__(f"Refund failed for {reference}: {reason}", operation="refund")
        self.code = "REFUND_FAILED"
        self.reference = reference
        self.reason = reason


class SignatureVerificationError(DomainException):
    """Raised when a webhook body does not carry a valid gateway signature."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message=message, code="INVALID_SIGNATURE")


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
