# backend/app/core/exceptions.py
"""
Domain-specific exceptions for the sauna booking platform.

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
    """Raised when business validation fails."""

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


class UnauthorizedException(DomainException):
    """Raised when user is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class PaymentException(DomainException):
    """Raised when the payment provider cannot start or complete a payment.

    Payment failures are retryable from the customer's point of view.
    """

    status_code = status.HTTP_402_PAYMENT_REQUIRED

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code or "PAYMENT_FAILED", details=details)
        self.details.setdefault("retryable", True)


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


class NotificationException(DomainException):
    """Raised by the email layer when the provider rejects a message."""

    status_code = status.HTTP_502_BAD_GATEWAY


# Specific business exceptions


class SlotUnavailableException(ConflictException):
    """Raised when a time slot cannot take the requested party."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time slot is no longer available",
            code="SLOT_UNAVAILABLE",
            details=details or {},
        )


class CapacityExceededException(ConflictException):
    """Raised inside a confirmation when the atomic capacity reservation loses."""

    def __init__(self, slot_id: str, party_size: int):
        super().__init__(
            message="Time slot filled before payment completed",
            code="CAPACITY_EXCEEDED",
            details={"time_slot_id": slot_id, "party_size": party_size},
        )


class InvalidStateTransitionException(BusinessRuleException):
    """Raised when a booking is moved along an edge the state machine lacks."""

    def __init__(self, booking_id: str, current: str, target: str):
        super().__init__(
            message=f"Cannot move booking from {current} to {target}",
            code="INVALID_BOOKING_TRANSITION",
            details={"booking_id": booking_id, "current": current, "target": target},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
