"""Store interfaces (repository pattern).

Stores must be swappable and return domain models. Implementations
raise PersistenceError (or StoreTimeoutError) for storage failures and
never leak backend exceptions.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from registrations.domain import (
    ConfirmationCode,
    EventId,
    FormConfig,
    PaymentStatus,
    Registration,
    RegistrationId,
    RegistrationStatus,
    RegistrationSummary,
    TicketType,
    TicketTypeId,
)


class FormConfigProvider(ABC):
    """Read-only access to event registration forms and ticket types."""

    @abstractmethod
    def get_form_config_by_event_id(self, event_id: EventId) -> FormConfig | None:
        """Return the event's form, preferring the active one, or None."""
        ...

    @abstractmethod
    def get_event_ticket_types(self, event_id: EventId) -> list[TicketType]:
        """Return the event's active ticket types ordered by name."""
        ...


class TicketInventoryStore(ABC):
    """Interface for the per-ticket-type available quantity counter."""

    @abstractmethod
    def get_ticket_type(self, ticket_type_id: TicketTypeId) -> TicketType | None:
        """Return a ticket type by ID, or None if not found."""
        ...

    @abstractmethod
    def decrement_available(self, ticket_type_id: TicketTypeId, quantity: int) -> bool:
        """Atomically subtract quantity if at least that much is available.

        Returns False when the ticket type is missing or short. The check
        and the write must be a single conditional update.
        """
        ...

    @abstractmethod
    def increment_available(self, ticket_type_id: TicketTypeId, quantity: int) -> bool:
        """Atomically add quantity back, never exceeding max_quantity.

        Returns False when the ticket type does not exist.
        """
        ...


class RegistrationStore(ABC):
    """Interface for registration persistence operations."""

    @abstractmethod
    def create(self, registration: Registration) -> RegistrationId:
        """Persist a new registration, stamping created_at/updated_at.

        Raises DuplicateConfirmationCodeError if the code is taken.
        """
        ...

    @abstractmethod
    def get(self, registration_id: RegistrationId) -> Registration | None:
        """Return a registration by ID, or None if not found."""
        ...

    @abstractmethod
    def get_by_confirmation_code(self, code: ConfirmationCode) -> Registration | None:
        """Return the registration holding a confirmation code, or None."""
        ...

    @abstractmethod
    def confirmation_code_exists(self, code: ConfirmationCode) -> bool:
        """Check if a confirmation code is already in use."""
        ...

    @abstractmethod
    def list_by_event(self, event_id: EventId) -> list[Registration]:
        """Return an event's registrations ordered by registration_date descending."""
        ...

    @abstractmethod
    def update_status(
        self,
        registration_id: RegistrationId,
        *,
        expected_status: RegistrationStatus,
        expected_payment_status: PaymentStatus,
        status: RegistrationStatus,
        payment_status: PaymentStatus,
        approved_at: datetime | None,
        approved_by: str,
    ) -> bool:
        """Compare-and-set the status fields.

        Writes only if the stored status and payment status still equal
        the expected values. Returns False otherwise (or if missing).
        """
        ...

    def summarize(self, event_id: EventId) -> RegistrationSummary:
        """Aggregate the event's registrations."""
        return RegistrationSummary.from_registrations(self.list_by_event(event_id))
