"""Registration service - all business logic lives here.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors

Submission is a saga: inventory is reserved per ticket type, then the
registration is persisted. Any failure (or interruption) after the
first reservation releases every reservation granted so far, so a
submission either fully commits or leaves inventory untouched.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from asgiref.sync import sync_to_async
from django.utils import timezone

from registrations.conf import get_setting
from registrations.domain import (
    ConfirmationCode,
    EventId,
    FormConfig,
    Money,
    Participant,
    PaymentStatus,
    Registration,
    RegistrationFormData,
    RegistrationId,
    RegistrationStatus,
    RegistrationSummary,
    SubmissionResult,
    TicketSelection,
    TicketType,
    TicketTypeId,
)
from registrations.domain.errors import (
    DuplicateConfirmationCodeError,
    FormNotActiveError,
    InvalidIdError,
    InvalidStatusTransitionError,
    NotFoundError,
    PersistenceError,
    TicketSalesClosedError,
    ValidationError,
)
from registrations.domain.transitions import can_transition_payment, can_transition_status
from registrations.services.confirmation_codes import ConfirmationCodeGenerator
from registrations.services.inventory_service import InventoryReservationService, Reservation
from registrations.services.validation_engine import FieldErrors, ValidationEngine
from registrations.stores.interfaces import FormConfigProvider, RegistrationStore

logger = logging.getLogger(__name__)


def _parse_id(id_cls, value: str, entity: str):
    try:
        return id_cls.from_string(value)
    except (TypeError, ValueError, AttributeError):
        raise InvalidIdError(entity)


class RegistrationOrchestrator:
    """Coordinates validation, inventory and persistence for registrations."""

    def __init__(
        self,
        form_configs: FormConfigProvider,
        inventory: InventoryReservationService,
        store: RegistrationStore,
        validation: ValidationEngine | None = None,
        codes: ConfirmationCodeGenerator | None = None,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._form_configs = form_configs
        self._inventory = inventory
        self._store = store
        self._validation = validation or ValidationEngine()
        self._codes = codes or ConfirmationCodeGenerator()
        self._clock = clock

    # -- submission ---------------------------------------------------

    def submit(self, event_id: str, form_data: RegistrationFormData) -> SubmissionResult:
        """Register participants for an event.

        Raises:
            InvalidIdError: If the event_id is not a valid UUID.
            FormNotActiveError: If the event has no active form.
            ValidationError: If participant or ticket data is invalid.
            NotFoundError: If a selected ticket type does not exist.
            TicketSalesClosedError: If a ticket type is outside its sales window.
            InsufficientInventoryError: If a ticket type cannot cover the request.
            PersistenceError: If the registration could not be stored.
        """
        event = _parse_id(EventId, event_id, "event")
        form_config = self._form_configs.get_form_config_by_event_id(event)
        if form_config is None or not form_config.is_active:
            raise FormNotActiveError(event_id)

        participants = self._validate(form_config, form_data)
        now = self._clock()
        ticket_types = {t.id: t for t in self._form_configs.get_event_ticket_types(event)}
        selections = self._price_selections(form_data, ticket_types, now)

        reservations: list[Reservation] = []
        committed = False
        try:
            for selection in selections:
                reservations.append(
                    self._inventory.reserve(selection.ticket_type_id, selection.quantity)
                )

            total = sum((s.subtotal for s in selections), start=Money.zero())

            registration_id = RegistrationId.new()

            def build(code: ConfirmationCode) -> Registration:
                return Registration(
                    id=registration_id,
                    event_id=event,
                    form_config_id=form_config.id,
                    primary_participant=participants[0],
                    additional_participants=tuple(participants[1:]),
                    ticket_selections=tuple(selections),
                    total_amount=total,
                    status=(
                        RegistrationStatus.PENDING
                        if form_config.requires_approval
                        else RegistrationStatus.CONFIRMED
                    ),
                    payment_status=(
                        PaymentStatus.COMPLETED if total.is_zero() else PaymentStatus.PENDING
                    ),
                    confirmation_code=code,
                    registration_date=now,
                    notes=form_data.notes,
                    marketing_opt_in=form_data.marketing_opt_in,
                )

            stored = self._persist(build)
            committed = True
        finally:
            if not committed and reservations:
                self._compensate(event_id, reservations)

        logger.info(
            "Registration submitted",
            extra={
                "event_id": event_id,
                "registration_id": str(stored.id),
                "status": stored.status.value,
            },
        )
        return SubmissionResult(
            registration_id=stored.id, confirmation_code=stored.confirmation_code
        )

    async def asubmit(self, event_id: str, form_data: RegistrationFormData) -> SubmissionResult:
        """Run submit() in a worker thread.

        Cancelling the awaiting task does not interrupt the worker, so the
        submission still ends in a commit or a full rollback.
        """
        return await sync_to_async(self.submit, thread_sensitive=False)(event_id, form_data)

    def _validate(self, form_config: FormConfig, form_data: RegistrationFormData) -> list[Participant]:
        validators = self._validation.compile(form_config.custom_fields)
        errors: FieldErrors = {}

        errors.update(
            self._validation.collect_errors(
                form_data.primary_participant, validators, prefix="primary_participant."
            )
        )
        for index, participant in enumerate(form_data.additional_participants):
            errors.update(
                self._validation.collect_errors(
                    participant, validators, prefix=f"additional_participants.{index}."
                )
            )

        group_size = 1 + len(form_data.additional_participants)
        if form_data.additional_participants and not form_config.allow_group_registration:
            errors["additional_participants"] = ["Group registration is not allowed"]
        elif form_config.max_group_size and group_size > form_config.max_group_size:
            errors["additional_participants"] = [
                f"Group size cannot exceed {form_config.max_group_size}"
            ]

        if not form_data.agree_to_terms:
            errors["agree_to_terms"] = ["You must agree to the terms and conditions"]

        if not form_data.ticket_selections:
            errors["ticket_selections"] = ["At least one ticket must be selected"]
        for index, request in enumerate(form_data.ticket_selections):
            if request.quantity < 1:
                errors[f"ticket_selections.{index}.quantity"] = ["Quantity must be at least 1"]
            try:
                TicketTypeId.from_string(request.ticket_type_id)
            except (TypeError, ValueError):
                errors[f"ticket_selections.{index}.ticket_type_id"] = ["Invalid ticket type ID"]

        if errors:
            raise ValidationError(errors)

        return [
            self._validation.accept(form_data.primary_participant),
            *(self._validation.accept(p) for p in form_data.additional_participants),
        ]

    def _price_selections(
        self,
        form_data: RegistrationFormData,
        ticket_types: dict[TicketTypeId, TicketType],
        now: datetime,
    ) -> list[TicketSelection]:
        """Merge requests per ticket type and snapshot the stored price."""
        quantities: dict[TicketTypeId, int] = {}
        for request in form_data.ticket_selections:
            ticket_type_id = TicketTypeId.from_string(request.ticket_type_id)
            quantities[ticket_type_id] = quantities.get(ticket_type_id, 0) + request.quantity

        selections = []
        for ticket_type_id, quantity in quantities.items():
            ticket_type = ticket_types.get(ticket_type_id)
            if ticket_type is None:
                raise NotFoundError("TicketType", str(ticket_type_id))
            if not ticket_type.is_on_sale(now):
                raise TicketSalesClosedError(str(ticket_type_id))
            selections.append(
                TicketSelection(
                    ticket_type_id=ticket_type_id,
                    quantity=quantity,
                    unit_price=ticket_type.price,
                )
            )
        return selections

    def _persist(self, build: Callable[[ConfirmationCode], Registration]) -> Registration:
        attempts = get_setting("CONFIRMATION_CODE_ATTEMPTS")
        for attempt in range(1, attempts + 1):
            code = self._codes.generate()
            if self._store.confirmation_code_exists(code):
                logger.info("Confirmation code collision", extra={"attempt": attempt})
                continue
            candidate = build(code)
            try:
                self._store.create(candidate)
            except DuplicateConfirmationCodeError:
                logger.info("Confirmation code taken at insert", extra={"attempt": attempt})
                continue
            return candidate
        logger.error(
            "Could not issue a unique confirmation code",
            extra={"attempts": attempts},
        )
        raise PersistenceError("issue confirmation code")

    def _compensate(self, event_id: str, reservations: list[Reservation]) -> None:
        logger.warning(
            "Rolling back ticket reservations",
            extra={
                "event_id": event_id,
                "reservations": [(str(r.ticket_type_id), r.quantity) for r in reservations],
            },
        )
        try:
            self._inventory.release_all(reservations)
        except Exception:
            # The submission's own error is the one that propagates.
            logger.exception("Reservation rollback incomplete", extra={"event_id": event_id})

    # -- status -------------------------------------------------------

    def update_status(
        self,
        registration_id: str,
        status: RegistrationStatus | str,
        payment_status: PaymentStatus | str | None = None,
        approved_by: str = "",
    ) -> Registration:
        """Move a registration through its status lifecycle.

        Inventory is not touched: capacity is committed at submission.

        Raises:
            InvalidIdError: If the registration_id is not a valid UUID.
            ValidationError: If a status value is unknown.
            NotFoundError: If the registration does not exist.
            InvalidStatusTransitionError: If either transition is not allowed.
        """
        rid = _parse_id(RegistrationId, registration_id, "registration")
        target_status = _parse_enum(RegistrationStatus, status, "status")
        target_payment = (
            _parse_enum(PaymentStatus, payment_status, "payment_status")
            if payment_status is not None
            else None
        )

        attempts = get_setting("STATUS_UPDATE_ATTEMPTS")
        for _ in range(attempts):
            current = self._store.get(rid)
            if current is None:
                raise NotFoundError("Registration", registration_id)

            if not can_transition_status(current.status, target_status):
                raise InvalidStatusTransitionError(current.status.value, target_status.value)
            new_payment = target_payment or current.payment_status
            if not can_transition_payment(current.payment_status, new_payment):
                raise InvalidStatusTransitionError(
                    current.payment_status.value, new_payment.value
                )

            approved_at = current.approved_at
            approver = current.approved_by
            if target_status is RegistrationStatus.CONFIRMED and (
                current.status is not RegistrationStatus.CONFIRMED or approved_at is None
            ):
                approved_at = self._clock()
                approver = approved_by or approver

            updated = self._store.update_status(
                rid,
                expected_status=current.status,
                expected_payment_status=current.payment_status,
                status=target_status,
                payment_status=new_payment,
                approved_at=approved_at,
                approved_by=approver,
            )
            if updated:
                logger.info(
                    "Registration status updated",
                    extra={
                        "registration_id": registration_id,
                        "from_status": current.status.value,
                        "to_status": target_status.value,
                        "payment_status": new_payment.value,
                    },
                )
                refreshed = self._store.get(rid)
                if refreshed is None:
                    raise NotFoundError("Registration", registration_id)
                return refreshed

            logger.info(
                "Registration changed concurrently, retrying status update",
                extra={"registration_id": registration_id},
            )

        raise PersistenceError("update registration status")

    # -- queries ------------------------------------------------------

    def get_registration(self, registration_id: str) -> Registration:
        """Return a registration by ID.

        Raises:
            InvalidIdError: If the registration_id is not a valid UUID.
            NotFoundError: If the registration does not exist.
        """
        registration = self._store.get(_parse_id(RegistrationId, registration_id, "registration"))
        if registration is None:
            raise NotFoundError("Registration", registration_id)
        return registration

    def get_registration_by_code(self, confirmation_code: str) -> Registration:
        """Return the registration holding a confirmation code.

        Raises:
            InvalidIdError: If the code is not 8 characters of A-Z/0-9.
            NotFoundError: If no registration holds the code.
        """
        try:
            code = ConfirmationCode(confirmation_code.upper())
        except (AttributeError, ValueError):
            raise InvalidIdError("confirmation code")
        registration = self._store.get_by_confirmation_code(code)
        if registration is None:
            raise NotFoundError("Registration", confirmation_code)
        return registration

    def list_event_registrations(self, event_id: str) -> list[Registration]:
        """Return an event's registrations, newest first."""
        return self._store.list_by_event(_parse_id(EventId, event_id, "event"))

    def get_summary(self, event_id: str) -> RegistrationSummary:
        """Return aggregate counters for an event's registrations."""
        return self._store.summarize(_parse_id(EventId, event_id, "event"))


def _parse_enum(enum_cls, value, field_name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError({field_name: [f"Must be one of: {allowed}"]})
