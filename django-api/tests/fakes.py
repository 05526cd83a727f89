"""In-memory store implementations and builders for service tests.

The fakes are thread-safe so race scenarios can run real threads
against them; each check-and-write happens under one lock, like the
conditional UPDATE in the Django stores.
"""

import threading
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from django.utils import timezone

from registrations.domain import (
    ConfirmationCode,
    CustomField,
    EventId,
    FormConfig,
    FormConfigId,
    Money,
    ParticipantData,
    PaymentStatus,
    Registration,
    RegistrationFormData,
    RegistrationId,
    RegistrationStatus,
    TicketRequest,
    TicketType,
    TicketTypeId,
)
from registrations.domain.errors import DuplicateConfirmationCodeError
from registrations.services.inventory_service import InventoryReservationService
from registrations.services.registration_service import RegistrationOrchestrator
from registrations.stores.interfaces import (
    FormConfigProvider,
    RegistrationStore,
    TicketInventoryStore,
)


class InMemoryTicketInventoryStore(TicketInventoryStore):
    def __init__(self, ticket_types: tuple[TicketType, ...] = ()) -> None:
        self._lock = threading.Lock()
        self._ticket_types = {t.id: t for t in ticket_types}
        self.fail_increment_for: set[TicketTypeId] = set()

    def add(self, ticket_type: TicketType) -> None:
        with self._lock:
            self._ticket_types[ticket_type.id] = ticket_type

    def available(self, ticket_type_id: TicketTypeId) -> int:
        with self._lock:
            return self._ticket_types[ticket_type_id].available_quantity

    def all(self) -> list[TicketType]:
        with self._lock:
            return list(self._ticket_types.values())

    def get_ticket_type(self, ticket_type_id: TicketTypeId) -> TicketType | None:
        with self._lock:
            return self._ticket_types.get(ticket_type_id)

    def decrement_available(self, ticket_type_id: TicketTypeId, quantity: int) -> bool:
        with self._lock:
            current = self._ticket_types.get(ticket_type_id)
            if current is None or current.available_quantity < quantity:
                return False
            self._ticket_types[ticket_type_id] = replace(
                current, available_quantity=current.available_quantity - quantity
            )
            return True

    def increment_available(self, ticket_type_id: TicketTypeId, quantity: int) -> bool:
        if ticket_type_id in self.fail_increment_for:
            raise RuntimeError("inventory store unavailable")
        with self._lock:
            current = self._ticket_types.get(ticket_type_id)
            if current is None:
                return False
            self._ticket_types[ticket_type_id] = replace(
                current,
                available_quantity=min(
                    current.available_quantity + quantity, current.max_quantity
                ),
            )
            return True


class InMemoryFormConfigProvider(FormConfigProvider):
    """Serves form configs and reads ticket types from the inventory fake."""

    def __init__(self, inventory: InMemoryTicketInventoryStore) -> None:
        self._inventory = inventory
        self._forms: dict[EventId, FormConfig] = {}

    def add(self, form_config: FormConfig) -> None:
        self._forms[form_config.event_id] = form_config

    def get_form_config_by_event_id(self, event_id: EventId) -> FormConfig | None:
        return self._forms.get(event_id)

    def get_event_ticket_types(self, event_id: EventId) -> list[TicketType]:
        return sorted(
            (t for t in self._inventory.all() if t.event_id == event_id and t.is_active),
            key=lambda t: t.name,
        )


class InMemoryRegistrationStore(RegistrationStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._registrations: dict[RegistrationId, Registration] = {}
        # Exception raised by the next create() calls, e.g. a PersistenceError.
        self.create_error: BaseException | None = None
        # Codes reported as taken by confirmation_code_exists().
        self.taken_codes: set[str] = set()
        self.create_calls = 0

    def count(self) -> int:
        with self._lock:
            return len(self._registrations)

    def create(self, registration: Registration) -> RegistrationId:
        with self._lock:
            self.create_calls += 1
            if self.create_error is not None:
                raise self.create_error
            code = registration.confirmation_code.value
            if any(r.confirmation_code.value == code for r in self._registrations.values()):
                raise DuplicateConfirmationCodeError(code)
            now = timezone.now()
            self._registrations[registration.id] = replace(
                registration, created_at=now, updated_at=now
            )
            return registration.id

    def get(self, registration_id: RegistrationId) -> Registration | None:
        with self._lock:
            return self._registrations.get(registration_id)

    def get_by_confirmation_code(self, code: ConfirmationCode) -> Registration | None:
        with self._lock:
            for registration in self._registrations.values():
                if registration.confirmation_code == code:
                    return registration
            return None

    def confirmation_code_exists(self, code: ConfirmationCode) -> bool:
        if code.value in self.taken_codes:
            return True
        return self.get_by_confirmation_code(code) is not None

    def list_by_event(self, event_id: EventId) -> list[Registration]:
        with self._lock:
            matching = [r for r in self._registrations.values() if r.event_id == event_id]
        return sorted(matching, key=lambda r: r.registration_date, reverse=True)

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
        with self._lock:
            current = self._registrations.get(registration_id)
            if current is None:
                return False
            if (
                current.status is not expected_status
                or current.payment_status is not expected_payment_status
            ):
                return False
            self._registrations[registration_id] = replace(
                current,
                status=status,
                payment_status=payment_status,
                approved_at=approved_at,
                approved_by=approved_by,
                updated_at=timezone.now(),
            )
            return True

    def put(self, registration: Registration) -> None:
        with self._lock:
            self._registrations[registration.id] = registration


class SequenceCodeGenerator:
    """Returns the given codes in order, then repeats the last one."""

    def __init__(self, *codes: str) -> None:
        self._codes = list(codes)
        self.calls = 0

    def generate(self) -> ConfirmationCode:
        index = min(self.calls, len(self._codes) - 1)
        self.calls += 1
        return ConfirmationCode(self._codes[index])


# -- builders ---------------------------------------------------------


def make_ticket_type(
    event_id: EventId,
    name: str = "General",
    price: str = "25.00",
    max_quantity: int = 10,
    available_quantity: int | None = None,
    **kwargs,
) -> TicketType:
    return TicketType(
        id=TicketTypeId(uuid4()),
        event_id=event_id,
        name=name,
        price=Money(Decimal(price)),
        max_quantity=max_quantity,
        available_quantity=max_quantity if available_quantity is None else available_quantity,
        **kwargs,
    )


def make_form_config(
    event_id: EventId,
    custom_fields: tuple[CustomField, ...] = (),
    **kwargs,
) -> FormConfig:
    return FormConfig(
        id=FormConfigId(uuid4()),
        event_id=event_id,
        title="Conference registration",
        custom_fields=custom_fields,
        **kwargs,
    )


def make_participant(**overrides) -> ParticipantData:
    data = {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "email": "ada@example.com",
        "phone": "+447700900123",
    }
    data.update(overrides)
    return ParticipantData(**data)


def make_form_data(
    *selections: tuple[TicketTypeId | str, int],
    additional: tuple[ParticipantData, ...] = (),
    **overrides,
) -> RegistrationFormData:
    data = {
        "primary_participant": make_participant(),
        "additional_participants": additional,
        "ticket_selections": tuple(
            TicketRequest(ticket_type_id=str(ticket_type_id), quantity=quantity)
            for ticket_type_id, quantity in selections
        ),
        "agree_to_terms": True,
    }
    data.update(overrides)
    return RegistrationFormData(**data)


class Harness:
    """An orchestrator wired to fresh in-memory stores for one event."""

    def __init__(self, **form_options) -> None:
        self.event_id = EventId(uuid4())
        self.inventory = InMemoryTicketInventoryStore()
        self.form_configs = InMemoryFormConfigProvider(self.inventory)
        self.store = InMemoryRegistrationStore()
        self.form_config = make_form_config(self.event_id, **form_options)
        self.form_configs.add(self.form_config)
        self.service = RegistrationOrchestrator(
            form_configs=self.form_configs,
            inventory=InventoryReservationService(self.inventory),
            store=self.store,
        )

    def add_ticket_type(self, **kwargs) -> TicketType:
        ticket_type = make_ticket_type(self.event_id, **kwargs)
        self.inventory.add(ticket_type)
        return ticket_type

    def submit(self, *selections, **overrides):
        return self.service.submit(str(self.event_id), make_form_data(*selections, **overrides))


# -- HTTP payloads ----------------------------------------------------


def participant_payload(**overrides) -> dict:
    payload = {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "email": "ada@example.com",
        "phone": "+447700900123",
        "custom_field_values": {"company": "Analytical Engines", "dietary": "vegan"},
    }
    payload.update(overrides)
    return payload


def submission_payload(*selections, **overrides) -> dict:
    payload = {
        "primary_participant": participant_payload(),
        "ticket_selections": [
            {"ticket_type_id": str(ticket_type_id), "quantity": quantity}
            for ticket_type_id, quantity in selections
        ],
        "agree_to_terms": True,
    }
    payload.update(overrides)
    return payload


def submit(api_client, event_id, payload):
    return api_client.post(f"/api/events/{event_id}/registrations", payload, format="json")
