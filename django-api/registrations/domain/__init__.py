from registrations.domain.models import (
    CustomField,
    FieldRules,
    FieldType,
    FormConfig,
    Participant,
    ParticipantData,
    PaymentStatus,
    Registration,
    RegistrationFormData,
    RegistrationStatus,
    RegistrationSummary,
    SubmissionResult,
    TicketRequest,
    TicketSelection,
    TicketType,
    UploadedFile,
)
from registrations.domain.value_objects import (
    ConfirmationCode,
    EventId,
    FormConfigId,
    Money,
    ParticipantId,
    RegistrationId,
    TicketTypeId,
)

__all__ = [
    "CustomField",
    "FieldRules",
    "FieldType",
    "FormConfig",
    "Participant",
    "ParticipantData",
    "PaymentStatus",
    "Registration",
    "RegistrationFormData",
    "RegistrationStatus",
    "RegistrationSummary",
    "SubmissionResult",
    "TicketRequest",
    "TicketSelection",
    "TicketType",
    "UploadedFile",
    "ConfirmationCode",
    "EventId",
    "FormConfigId",
    "Money",
    "ParticipantId",
    "RegistrationId",
    "TicketTypeId",
]
