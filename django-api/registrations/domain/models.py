"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in registrations/models.py (persistence layer).
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from registrations.domain.value_objects import (
    ConfirmationCode,
    EventId,
    FormConfigId,
    Money,
    ParticipantId,
    RegistrationId,
    TicketTypeId,
)


class FieldType(Enum):
    """Input types a CustomField can declare."""

    TEXT = "text"
    EMAIL = "email"
    PHONE = "phone"
    SELECT = "select"
    CHECKBOX = "checkbox"
    TEXTAREA = "textarea"
    FILE = "file"
    DATE = "date"


class RegistrationStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    WAITLISTED = "waitlisted"


class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


@dataclass(frozen=True)
class TicketType:
    """Domain representation of a TicketType.

    ``available_quantity`` is a snapshot; capacity decisions go through
    the inventory store's atomic operations, never through this value.
    """

    id: TicketTypeId
    event_id: EventId
    name: str
    price: Money
    max_quantity: int
    available_quantity: int
    is_active: bool = True
    description: str = ""
    sales_start_date: datetime | None = None
    sales_end_date: datetime | None = None

    def __post_init__(self) -> None:
        if self.max_quantity < 1:
            raise ValueError("Max quantity must be at least 1")
        if not 0 <= self.available_quantity <= self.max_quantity:
            raise ValueError("Available quantity must be between 0 and max quantity")

    def is_on_sale(self, at: datetime) -> bool:
        if self.sales_start_date is not None and at < self.sales_start_date:
            return False
        if self.sales_end_date is not None and at > self.sales_end_date:
            return False
        return True


@dataclass(frozen=True)
class FieldRules:
    """Optional constraints attached to a CustomField."""

    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    file_types: tuple[str, ...] = ()
    max_file_size: int | None = None


@dataclass(frozen=True)
class CustomField:
    """An event-defined question asked of every participant."""

    id: str
    name: str
    label: str
    type: FieldType
    required: bool = False
    order: int = 0
    options: tuple[str, ...] = ()
    rules: FieldRules = FieldRules()
    placeholder: str = ""


@dataclass(frozen=True)
class FormConfig:
    """Domain representation of an event's registration form."""

    id: FormConfigId
    event_id: EventId
    title: str
    custom_fields: tuple[CustomField, ...] = ()
    allow_group_registration: bool = False
    max_group_size: int | None = None
    requires_approval: bool = False
    is_active: bool = True
    description: str = ""
    confirmation_message: str = ""


@dataclass(frozen=True)
class UploadedFile:
    """Metadata for a file stored by the upload collaborator."""

    id: str
    field_id: str
    file_name: str
    file_url: str
    file_size: int
    mime_type: str
    uploaded_at: datetime | None = None


@dataclass(frozen=True)
class ParticipantData:
    """Participant details as submitted, before validation."""

    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    custom_field_values: Mapping[str, Any] = field(default_factory=dict)
    uploaded_files: tuple[UploadedFile, ...] = ()


@dataclass(frozen=True)
class Participant:
    """A validated participant attached to a Registration."""

    id: ParticipantId
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    custom_field_values: Mapping[str, Any] = field(default_factory=dict)
    uploaded_files: tuple[UploadedFile, ...] = ()


@dataclass(frozen=True)
class TicketRequest:
    """A caller's request for a quantity of one ticket type."""

    ticket_type_id: str
    quantity: int


@dataclass(frozen=True)
class TicketSelection:
    """A reserved quantity of one ticket type with its price snapshot."""

    ticket_type_id: TicketTypeId
    quantity: int
    unit_price: Money

    @property
    def subtotal(self) -> Money:
        return self.unit_price.times(self.quantity)


@dataclass(frozen=True)
class RegistrationFormData:
    """Fully assembled submission payload."""

    primary_participant: ParticipantData
    additional_participants: tuple[ParticipantData, ...] = ()
    ticket_selections: tuple[TicketRequest, ...] = ()
    agree_to_terms: bool = False
    marketing_opt_in: bool = False
    notes: str = ""


@dataclass(frozen=True)
class Registration:
    """Domain representation of a Registration.

    Participants and ticket selections never change after creation;
    only status, payment status and approval stamps do.
    """

    id: RegistrationId
    event_id: EventId
    form_config_id: FormConfigId
    primary_participant: Participant
    additional_participants: tuple[Participant, ...]
    ticket_selections: tuple[TicketSelection, ...]
    total_amount: Money
    status: RegistrationStatus
    payment_status: PaymentStatus
    confirmation_code: ConfirmationCode
    registration_date: datetime
    approved_at: datetime | None = None
    approved_by: str = ""
    payment_id: str = ""
    notes: str = ""
    marketing_opt_in: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def participants(self) -> tuple[Participant, ...]:
        return (self.primary_participant, *self.additional_participants)

    @property
    def is_cancelled(self) -> bool:
        return self.status is RegistrationStatus.CANCELLED


@dataclass(frozen=True)
class SubmissionResult:
    registration_id: RegistrationId
    confirmation_code: ConfirmationCode


@dataclass(frozen=True)
class RegistrationSummary:
    """Aggregate counters for an event's registrations."""

    total_registrations: int
    confirmed_registrations: int
    pending_registrations: int
    cancelled_registrations: int
    waitlisted_registrations: int
    total_revenue: Money
    tickets_sold: dict[str, int]
    registrations_by_date: dict[str, int]

    @classmethod
    def from_registrations(cls, registrations: list[Registration]) -> "RegistrationSummary":
        """Aggregate a list of registrations for one event."""
        status_counts = {status: 0 for status in RegistrationStatus}
        revenue = Money.zero()
        tickets_sold: dict[str, int] = {}
        by_date: dict[str, int] = {}

        for registration in registrations:
            status_counts[registration.status] += 1
            if registration.payment_status is PaymentStatus.COMPLETED:
                revenue = revenue + registration.total_amount
            if not registration.is_cancelled:
                for selection in registration.ticket_selections:
                    key = str(selection.ticket_type_id)
                    tickets_sold[key] = tickets_sold.get(key, 0) + selection.quantity
            day = _calendar_day(registration.registration_date).isoformat()
            by_date[day] = by_date.get(day, 0) + 1

        return cls(
            total_registrations=len(registrations),
            confirmed_registrations=status_counts[RegistrationStatus.CONFIRMED],
            pending_registrations=status_counts[RegistrationStatus.PENDING],
            cancelled_registrations=status_counts[RegistrationStatus.CANCELLED],
            waitlisted_registrations=status_counts[RegistrationStatus.WAITLISTED],
            total_revenue=revenue,
            tickets_sold=tickets_sold,
            registrations_by_date=by_date,
        )


def _calendar_day(moment: datetime) -> date:
    # Days are bucketed in UTC; naive datetimes are taken as UTC already.
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.date()
