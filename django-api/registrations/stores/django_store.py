"""Django ORM implementations of the registration stores.

Every database failure is translated into PersistenceError, or
StoreTimeoutError when the configured statement/busy timeout expired.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from django.db import DatabaseError, IntegrityError, OperationalError, transaction
from django.db.models import F
from django.db.models.functions import Least
from django.utils.dateparse import parse_datetime

from registrations import models
from registrations.domain import (
    ConfirmationCode,
    CustomField,
    EventId,
    FieldRules,
    FieldType,
    FormConfig,
    FormConfigId,
    Money,
    Participant,
    ParticipantId,
    PaymentStatus,
    Registration,
    RegistrationId,
    RegistrationStatus,
    TicketSelection,
    TicketType,
    TicketTypeId,
    UploadedFile,
)
from registrations.domain.errors import (
    DuplicateConfirmationCodeError,
    PersistenceError,
    StoreTimeoutError,
)
from registrations.stores.interfaces import (
    FormConfigProvider,
    RegistrationStore,
    TicketInventoryStore,
)

logger = logging.getLogger(__name__)

_TIMEOUT_MARKERS = ("timeout", "canceling statement", "database is locked")


def _is_timeout(exc: OperationalError) -> bool:
    text = str(exc).lower()
    return any(marker in text for marker in _TIMEOUT_MARKERS)


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except OperationalError as exc:
        if _is_timeout(exc):
            logger.error("Store operation timed out", extra={"operation": operation})
            raise StoreTimeoutError(operation) from exc
        logger.exception("Store operation failed", extra={"operation": operation})
        raise PersistenceError(operation) from exc
    except DatabaseError as exc:
        logger.exception("Store operation failed", extra={"operation": operation})
        raise PersistenceError(operation) from exc


def _ticket_type_to_domain(row: models.TicketType) -> TicketType:
    return TicketType(
        id=TicketTypeId(row.id),
        event_id=EventId(row.event_id),
        name=row.name,
        description=row.description,
        price=Money(row.price),
        max_quantity=row.max_quantity,
        available_quantity=row.available_quantity,
        is_active=row.is_active,
        sales_start_date=row.sales_start_date,
        sales_end_date=row.sales_end_date,
    )


def _custom_field_to_domain(row: models.CustomField) -> CustomField:
    return CustomField(
        id=str(row.id),
        name=row.name,
        label=row.label,
        type=FieldType(row.field_type),
        required=row.required,
        order=row.order,
        options=tuple(row.options or ()),
        placeholder=row.placeholder,
        rules=FieldRules(
            min_length=row.min_length,
            max_length=row.max_length,
            pattern=row.pattern or None,
            file_types=tuple(row.file_types or ()),
            max_file_size=row.max_file_size,
        ),
    )


def _form_config_to_domain(row: models.FormConfig) -> FormConfig:
    return FormConfig(
        id=FormConfigId(row.id),
        event_id=EventId(row.event_id),
        title=row.title,
        description=row.description,
        custom_fields=tuple(_custom_field_to_domain(f) for f in row.custom_fields.all()),
        allow_group_registration=row.allow_group_registration,
        max_group_size=row.max_group_size,
        requires_approval=row.requires_approval,
        confirmation_message=row.confirmation_message,
        is_active=row.is_active,
    )


def _file_to_json(uploaded: UploadedFile) -> dict:
    return {
        "id": uploaded.id,
        "field_id": uploaded.field_id,
        "file_name": uploaded.file_name,
        "file_url": uploaded.file_url,
        "file_size": uploaded.file_size,
        "mime_type": uploaded.mime_type,
        "uploaded_at": uploaded.uploaded_at.isoformat() if uploaded.uploaded_at else None,
    }


def _file_from_json(data: dict) -> UploadedFile:
    uploaded_at = data.get("uploaded_at")
    return UploadedFile(
        id=data["id"],
        field_id=data["field_id"],
        file_name=data["file_name"],
        file_url=data["file_url"],
        file_size=data["file_size"],
        mime_type=data["mime_type"],
        uploaded_at=parse_datetime(uploaded_at) if uploaded_at else None,
    )


def _participant_to_domain(row: models.Participant) -> Participant:
    return Participant(
        id=ParticipantId(row.id),
        first_name=row.first_name,
        last_name=row.last_name,
        email=row.email,
        phone=row.phone or None,
        custom_field_values=dict(row.custom_field_values or {}),
        uploaded_files=tuple(_file_from_json(f) for f in row.uploaded_files or ()),
    )


def _registration_to_domain(row: models.Registration) -> Registration:
    participants = [_participant_to_domain(p) for p in row.participants.all()]
    selections = tuple(
        TicketSelection(
            ticket_type_id=TicketTypeId(t.ticket_type_id),
            quantity=t.quantity,
            unit_price=Money(t.unit_price),
        )
        for t in row.ticket_selections.all()
    )
    return Registration(
        id=RegistrationId(row.id),
        event_id=EventId(row.event_id),
        form_config_id=FormConfigId(row.form_config_id),
        primary_participant=participants[0],
        additional_participants=tuple(participants[1:]),
        ticket_selections=selections,
        total_amount=Money(row.total_amount),
        status=RegistrationStatus(row.status),
        payment_status=PaymentStatus(row.payment_status),
        confirmation_code=ConfirmationCode(row.confirmation_code),
        registration_date=row.registration_date,
        approved_at=row.approved_at,
        approved_by=row.approved_by,
        payment_id=row.payment_id,
        notes=row.notes,
        marketing_opt_in=row.marketing_opt_in,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class DjangoFormConfigProvider(FormConfigProvider):
    """Reads form definitions and ticket types with the Django ORM."""

    def get_form_config_by_event_id(self, event_id: EventId) -> FormConfig | None:
        with _translate_errors("get form config"):
            row = (
                models.FormConfig.objects.filter(event_id=event_id.value)
                .prefetch_related("custom_fields")
                .order_by("-is_active", "-updated_at")
                .first()
            )
            return _form_config_to_domain(row) if row is not None else None

    def get_event_ticket_types(self, event_id: EventId) -> list[TicketType]:
        with _translate_errors("list ticket types"):
            rows = models.TicketType.objects.filter(
                event_id=event_id.value, is_active=True
            ).order_by("name")
            return [_ticket_type_to_domain(row) for row in rows]


class DjangoTicketInventoryStore(TicketInventoryStore):
    """Ticket inventory backed by single-statement conditional UPDATEs."""

    def get_ticket_type(self, ticket_type_id: TicketTypeId) -> TicketType | None:
        with _translate_errors("get ticket type"):
            row = models.TicketType.objects.filter(pk=ticket_type_id.value).first()
            return _ticket_type_to_domain(row) if row is not None else None

    def decrement_available(self, ticket_type_id: TicketTypeId, quantity: int) -> bool:
        with _translate_errors("reserve inventory"):
            updated = models.TicketType.objects.filter(
                pk=ticket_type_id.value,
                available_quantity__gte=quantity,
            ).update(available_quantity=F("available_quantity") - quantity)
        return updated == 1

    def increment_available(self, ticket_type_id: TicketTypeId, quantity: int) -> bool:
        with _translate_errors("release inventory"):
            updated = models.TicketType.objects.filter(pk=ticket_type_id.value).update(
                available_quantity=Least(
                    F("available_quantity") + quantity, F("max_quantity")
                )
            )
        return updated == 1


class DjangoRegistrationStore(RegistrationStore):
    """PostgreSQL-backed registration store using Django ORM."""

    def _queryset(self):
        return models.Registration.objects.prefetch_related(
            "participants", "ticket_selections"
        )

    def create(self, registration: Registration) -> RegistrationId:
        code = str(registration.confirmation_code)
        with _translate_errors("create registration"):
            try:
                with transaction.atomic():
                    row = models.Registration.objects.create(
                        id=registration.id.value,
                        event_id=registration.event_id.value,
                        form_config_id=registration.form_config_id.value,
                        total_amount=registration.total_amount.amount,
                        status=registration.status.value,
                        payment_status=registration.payment_status.value,
                        payment_id=registration.payment_id,
                        confirmation_code=code,
                        notes=registration.notes,
                        marketing_opt_in=registration.marketing_opt_in,
                        registration_date=registration.registration_date,
                        approved_at=registration.approved_at,
                        approved_by=registration.approved_by,
                    )
                    models.Participant.objects.bulk_create(
                        models.Participant(
                            id=participant.id.value,
                            registration=row,
                            position=position,
                            first_name=participant.first_name,
                            last_name=participant.last_name,
                            email=participant.email,
                            phone=participant.phone or "",
                            custom_field_values=dict(participant.custom_field_values),
                            uploaded_files=[_file_to_json(f) for f in participant.uploaded_files],
                        )
                        for position, participant in enumerate(registration.participants)
                    )
                    models.RegistrationTicket.objects.bulk_create(
                        models.RegistrationTicket(
                            registration=row,
                            ticket_type_id=selection.ticket_type_id.value,
                            position=position,
                            quantity=selection.quantity,
                            unit_price=selection.unit_price.amount,
                        )
                        for position, selection in enumerate(registration.ticket_selections)
                    )
            except IntegrityError as exc:
                if "confirmation_code" in str(exc):
                    raise DuplicateConfirmationCodeError(code) from exc
                raise
        return registration.id

    def get(self, registration_id: RegistrationId) -> Registration | None:
        with _translate_errors("get registration"):
            row = self._queryset().filter(pk=registration_id.value).first()
            return _registration_to_domain(row) if row is not None else None

    def get_by_confirmation_code(self, code: ConfirmationCode) -> Registration | None:
        with _translate_errors("get registration by code"):
            row = self._queryset().filter(confirmation_code=code.value).first()
            return _registration_to_domain(row) if row is not None else None

    def confirmation_code_exists(self, code: ConfirmationCode) -> bool:
        with _translate_errors("check confirmation code"):
            return models.Registration.objects.filter(confirmation_code=code.value).exists()

    def list_by_event(self, event_id: EventId) -> list[Registration]:
        with _translate_errors("list registrations"):
            rows = self._queryset().filter(event_id=event_id.value).order_by(
                "-registration_date"
            )
            return [_registration_to_domain(row) for row in rows]

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
        with _translate_errors("update registration status"):
            with transaction.atomic():
                row = (
                    models.Registration.objects.select_for_update()
                    .filter(pk=registration_id.value)
                    .first()
                )
                if row is None:
                    return False
                if (
                    row.status != expected_status.value
                    or row.payment_status != expected_payment_status.value
                ):
                    return False
                row.status = status.value
                row.payment_status = payment_status.value
                row.approved_at = approved_at
                row.approved_by = approved_by
                # post_save drives cache invalidation in signals.py
                row.save(
                    update_fields=[
                        "status",
                        "payment_status",
                        "approved_at",
                        "approved_by",
                        "updated_at",
                    ]
                )
        return True
