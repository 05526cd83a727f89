"""Domain error codes for the registrations module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    INVALID_ID = "INVALID_ID"
    FORM_NOT_ACTIVE = "FORM_NOT_ACTIVE"
    NOT_FOUND = "NOT_FOUND"
    INSUFFICIENT_INVENTORY = "INSUFFICIENT_INVENTORY"
    TICKET_SALES_CLOSED = "TICKET_SALES_CLOSED"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    DUPLICATE_CONFIRMATION_CODE = "DUPLICATE_CONFIRMATION_CODE"
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"
    STORE_TIMEOUT = "STORE_TIMEOUT"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    """Raised when submitted registration data fails validation.

    ``field_errors`` maps a dotted field path (for example
    ``additional_participants.0.email``) to its error messages.
    """

    def __init__(self, field_errors: dict[str, list[str]]) -> None:
        super().__init__(
            code=ErrorCode.VALIDATION_FAILED,
            message="Registration data is invalid",
        )
        self.field_errors = field_errors


class InvalidIdError(DomainError):
    """Raised when an identifier is not a valid UUID."""

    def __init__(self, entity: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_ID,
            message=f"Invalid {entity} ID format",
        )
        self.entity = entity


class FormNotActiveError(DomainError):
    """Raised when an event has no active registration form."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.FORM_NOT_ACTIVE,
            message="Registration is not open for this event",
        )
        self.event_id = event_id


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(
            code=ErrorCode.NOT_FOUND,
            message=f"{entity} not found",
        )
        self.entity = entity
        self.entity_id = entity_id


class InsufficientInventoryError(DomainError):
    """Raised when a ticket type cannot cover the requested quantity."""

    def __init__(self, ticket_type_id: str) -> None:
        super().__init__(
            code=ErrorCode.INSUFFICIENT_INVENTORY,
            message="Not enough tickets available",
        )
        self.ticket_type_id = ticket_type_id


class TicketSalesClosedError(DomainError):
    """Raised when a ticket type is outside its sales window."""

    def __init__(self, ticket_type_id: str) -> None:
        super().__init__(
            code=ErrorCode.TICKET_SALES_CLOSED,
            message="Ticket sales are closed for this ticket type",
        )
        self.ticket_type_id = ticket_type_id


class InvalidStatusTransitionError(DomainError):
    """Raised when a status change is not allowed from the current state."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_STATUS_TRANSITION,
            message=f"Cannot change status from {current} to {requested}",
        )
        self.current = current
        self.requested = requested


class DuplicateConfirmationCodeError(DomainError):
    """Raised by a store when a confirmation code is already taken."""

    def __init__(self, confirmation_code: str) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_CONFIRMATION_CODE,
            message="Confirmation code already in use",
        )
        self.confirmation_code = confirmation_code


class PersistenceError(DomainError):
    """Raised when the store fails to read or write."""

    def __init__(self, operation: str, code: ErrorCode = ErrorCode.PERSISTENCE_FAILED) -> None:
        super().__init__(
            code=code,
            message="Registration storage is unavailable",
        )
        self.operation = operation


class StoreTimeoutError(PersistenceError):
    """Raised when a store operation exceeds its time bound."""

    def __init__(self, operation: str) -> None:
        super().__init__(operation, code=ErrorCode.STORE_TIMEOUT)
